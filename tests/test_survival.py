"""
tests/test_survival.py - Fractional-Age Survival Tests

Author: Actuarial Pipeline Project
License: MIT
"""

import math

import numpy as np
import pytest

from life_valuation.exceptions import ConfigError, OutOfRangeError, ValidationError
from life_valuation.survival import SurvivalEngine, fractional_survival, tpx, tqx
from life_valuation.table_config import Assumption, MortTableConfig


@pytest.fixture(params=list(Assumption))
def any_assumption_config(request, three_age_table):
    return MortTableConfig(table=three_age_table, assumption=request.param)


class TestIntegerAges:
    """Whole-year survival is the same under every assumption."""

    def test_zero_duration(self, any_assumption_config):
        assert tpx(any_assumption_config, x=60, t=0) == 1.0
        assert tpx(any_assumption_config, x=60.7, t=0) == 1.0

    def test_one_year(self, any_assumption_config):
        assert tpx(any_assumption_config, x=60, t=1) == pytest.approx(0.99)
        assert tpx(any_assumption_config, x=61, t=1) == pytest.approx(0.98)

    def test_multi_year_product(self, any_assumption_config):
        assert tpx(any_assumption_config, x=60, t=2) == pytest.approx(0.99 * 0.98)

    def test_beyond_omega_is_zero(self, any_assumption_config):
        assert tpx(any_assumption_config, x=60, t=3) == 0.0
        assert tpx(any_assumption_config, x=62, t=0.5) == 0.0

    def test_tpx_plus_tqx(self, any_assumption_config):
        for x, t in [(60, 1.0), (60.25, 1.5), (61.5, 0.25)]:
            total = tpx(any_assumption_config, x=x, t=t) + tqx(any_assumption_config, x=x, t=t)
            assert total == pytest.approx(1.0)


class TestFractionalAges:
    """A year split at the half: each assumption gives its own value."""

    def test_assumptions_differ_across_birthday(self, three_age_table):
        values = {
            assumption: tpx(MortTableConfig(table=three_age_table, assumption=assumption),
                            x=60.5, t=1)
            for assumption in Assumption
        }

        assert values[Assumption.UDD] == pytest.approx((0.99 / 0.995) * (1 - 0.5 * 0.02))
        assert values[Assumption.CFM] == pytest.approx(math.sqrt(0.99 * 0.98))
        assert values[Assumption.HPB] == pytest.approx(0.995 * (0.98 / 0.99))
        assert len({round(v, 12) for v in values.values()}) == 3

    def test_udd_within_year(self, three_age_config):
        assert tpx(three_age_config, x=60, t=0.25) == pytest.approx(1 - 0.25 * 0.01)

    def test_cfm_within_year(self, three_age_table):
        mt = MortTableConfig(table=three_age_table, assumption="CFM")
        assert tpx(mt, x=60.2, t=0.3) == pytest.approx(0.99 ** 0.3)

    def test_hpb_from_integer_age(self):
        """s = 0 reduces to px / (1 - (1-t)q)."""
        q, t = 0.02, 0.4
        assert fractional_survival(q, 0.0, t, Assumption.HPB) == pytest.approx(
            (1 - q) / (1 - (1 - t) * q)
        )

    def test_fraction_snapped_to_integer(self, three_age_config):
        assert tpx(three_age_config, x=60 + 1e-14, t=1) == pytest.approx(0.99)


class TestDeferredDeath:

    def test_deferred_tqx(self, three_age_config):
        """₁|q60 = p60 - ₂p60 = p60·q61"""
        assert tqx(three_age_config, x=60, t=1, k=1) == pytest.approx(0.99 * 0.02)

    def test_certain_death_by_omega(self, three_age_config):
        assert tqx(three_age_config, x=60, t=3) == pytest.approx(1.0)

    def test_negative_defer(self, three_age_config):
        with pytest.raises(ValidationError):
            tqx(three_age_config, x=60, t=1, k=-1)

    def test_numpy_integer_defer(self, three_age_config):
        assert tqx(three_age_config, x=60, t=1, k=np.int64(1)) == pytest.approx(0.99 * 0.02)


class TestLifeExpectancy:

    def test_curtate(self, three_age_config):
        engine = SurvivalEngine(three_age_config)
        assert engine.curtate_life_expectancy(60) == pytest.approx(0.99 + 0.99 * 0.98)

    def test_complete_adds_half_year(self, three_age_config):
        engine = SurvivalEngine(three_age_config)
        assert engine.complete_life_expectancy(61) == pytest.approx(0.98 + 0.5)

    def test_terminal_age(self, three_age_config):
        assert SurvivalEngine(three_age_config).curtate_life_expectancy(62) == 0.0


class TestSelectSurvival:

    def test_entry_age_routes_to_select_curve(self, select_config):
        assert tpx(select_config, x=60, t=1, entry_age=60) == pytest.approx(0.99)
        assert tpx(select_config, x=61, t=1, entry_age=60) == pytest.approx(0.982)
        assert tpx(select_config, x=61, t=1) == pytest.approx(0.97)

    def test_entry_age_after_x(self, select_config):
        with pytest.raises(ValidationError) as exc_info:
            tpx(select_config, x=60, t=1, entry_age=61)
        assert exc_info.value.field == "entry_age"


class TestSurvivalValidation:

    def test_missing_age(self, three_age_config):
        with pytest.raises(ConfigError):
            tpx(three_age_config, t=1)

    def test_negative_duration(self, three_age_config):
        with pytest.raises(ValidationError):
            tpx(three_age_config, x=60, t=-1)

    def test_negative_age(self, three_age_config):
        with pytest.raises(ValidationError) as exc_info:
            tpx(three_age_config, x=-1, t=1)
        assert not isinstance(exc_info.value, OutOfRangeError)

    @pytest.mark.parametrize("x", [59, 63, 70.5])
    def test_age_outside_table(self, three_age_config, x):
        with pytest.raises(OutOfRangeError):
            tpx(three_age_config, x=x, t=1)
