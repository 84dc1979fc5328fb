"""
tests/test_commutation.py - Commutation Engine and Cache Tests

Author: Actuarial Pipeline Project
License: MIT
"""

import gc
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from life_valuation import commutation
from life_valuation.commutation import (
    CommutationCache,
    build_commutation_table,
    get_commutation_table,
)
from life_valuation.exceptions import ConfigError, OutOfRangeError, ValidationError
from life_valuation.table_config import MortTableConfig


class TestCommutationValues:
    """Ages 60-62, qx 0.01/0.02/1.0, radix 1000, i = 5%."""

    I = 0.05
    V = 1 / 1.05

    def test_dx(self, three_age_config):
        table = get_commutation_table(three_age_config, self.I)

        assert table.value("Dx", 60) == pytest.approx(self.V ** 60 * 1000)
        assert table.value("Dx", 62) == pytest.approx(self.V ** 62 * 970.2)

    def test_cx_uses_zero_lives_past_omega(self, three_age_config):
        table = get_commutation_table(three_age_config, self.I)

        assert table.value("Cx", 60) == pytest.approx(self.V ** 61 * 10)
        assert table.value("Cx", 62) == pytest.approx(self.V ** 63 * 970.2)

    def test_two_year_endowment(self, three_age_config):
        table = get_commutation_table(three_age_config, self.I)
        row60, row62 = table.lookup(60), table.lookup(62)

        endowment = (row60.Mx - row62.Mx) / row60.Dx + row62.Dx / row60.Dx
        expected = (10 * self.V + 19.8 * self.V ** 2 + 970.2 * self.V ** 2) / 1000
        assert endowment == pytest.approx(expected)

    def test_recurrences(self, sult_config):
        table = get_commutation_table(sult_config, 0.04)

        for col, acc in [("Cx", "Mx"), ("Dx", "Nx"), ("Mx", "Rx"), ("Nx", "Sx")]:
            base, total = getattr(table, col), getattr(table, acc)
            np.testing.assert_allclose(total[:-1], base[:-1] + total[1:], rtol=1e-12)
            assert total[-1] == pytest.approx(base[-1])

    def test_whole_life_identity(self, sult_config):
        """Mx = Dx - d·Nx"""
        table = get_commutation_table(sult_config, 0.05)
        d = 0.05 / 1.05
        np.testing.assert_allclose(table.Mx, table.Dx - d * table.Nx, rtol=1e-9, atol=1e-300)

    def test_zero_interest(self, three_age_config):
        table = get_commutation_table(three_age_config, 0.0)
        assert table.value("Nx", 60) == pytest.approx(1000 + 990 + 970.2)
        assert table.value("Mx", 60) == pytest.approx(1000)

    def test_values_past_omega_are_zero(self, three_age_config):
        table = get_commutation_table(three_age_config, self.I)
        assert table.value("Sx", 63) == 0.0

    def test_lookup_outside_range(self, three_age_config):
        table = get_commutation_table(three_age_config, self.I)
        with pytest.raises(OutOfRangeError):
            table.lookup(63)
        with pytest.raises(OutOfRangeError):
            table.lookup(59)

    def test_lookup_rejects_fractional_age(self, three_age_config):
        table = get_commutation_table(three_age_config, self.I)
        with pytest.raises(ValidationError):
            table.lookup(60.7)
        assert table.lookup(61.0).age == 61

    def test_to_dataframe(self, three_age_config):
        df = get_commutation_table(three_age_config, self.I).to_dataframe()
        assert list(df.columns) == ["age", "Dx", "Cx", "Mx", "Nx", "Rx", "Sx"]
        assert df["age"].tolist() == [60, 61, 62]

    def test_invalid_rate(self, three_age_config):
        with pytest.raises(ValidationError):
            build_commutation_table(three_age_config.curve(), -1.0)


class TestSelectCommutation:

    def test_entry_age_curve(self, select_config):
        table = get_commutation_table(select_config, 0.05, entry_age=60)
        curve = select_config.curve(60)

        assert table.min_age == 60
        assert table.entry_age == 60
        np.testing.assert_allclose(table.Dx, 1.05 ** -curve.ages * curve.lx)

    def test_unknown_entry_age(self, select_config):
        with pytest.raises(OutOfRangeError):
            get_commutation_table(select_config, 0.05, entry_age=40)


class TestCommutationCache:
    """Each (table, entry age, rate) is built once and then shared."""

    def test_build_once(self, three_age_config):
        cache = CommutationCache()
        first = cache.get(three_age_config, 0.05)
        second = cache.get(three_age_config, 0.05)

        assert first is second
        assert cache.build_count == 1
        assert len(cache) == 1

    def test_distinct_keys(self, three_age_config, three_age_table):
        cache = CommutationCache()
        cache.get(three_age_config, 0.05)
        cache.get(three_age_config, 0.06)
        cache.get(MortTableConfig(table=three_age_table), 0.05)

        assert cache.build_count == 3

    def test_entry_age_ignored_for_ultimate(self, three_age_config):
        cache = CommutationCache()
        assert cache.get(three_age_config, 0.05, entry_age=60) is cache.get(three_age_config, 0.05)

    def test_concurrent_first_requests(self, sult_config):
        cache = CommutationCache()
        with ThreadPoolExecutor(max_workers=16) as pool:
            tables = list(pool.map(lambda _: cache.get(sult_config, 0.03), range(64)))

        assert cache.build_count == 1
        assert all(table is tables[0] for table in tables)

    def test_clear(self, three_age_config):
        cache = CommutationCache()
        cache.get(three_age_config, 0.05)
        cache.clear()

        assert len(cache) == 0
        assert cache.build_count == 0
        cache.get(three_age_config, 0.05)
        assert cache.build_count == 1

    def test_entries_released_with_config(self, three_age_table):
        cache = CommutationCache()
        mt = MortTableConfig(table=three_age_table)
        cache.get(mt, 0.05)
        assert len(cache) == 1

        for pct in (0.9, 1.1, 1.2):
            mt = MortTableConfig(table=three_age_table, pct=pct)
            cache.get(mt, 0.05)
        del mt
        gc.collect()

        assert len(cache) == 0
        assert cache.build_count == 4

    def test_default_cache_does_not_grow(self, three_age_table):
        before = len(commutation.default_cache)
        for _ in range(50):
            mt = MortTableConfig(table=three_age_table)
            get_commutation_table(mt, 0.05)
        del mt
        gc.collect()

        assert len(commutation.default_cache) <= before

    def test_tables_are_read_only(self, three_age_config):
        table = CommutationCache().get(three_age_config, 0.05)
        with pytest.raises(ValueError):
            table.Dx[0] = 0.0


class TestAccessors:

    def test_accessors_match_table(self, three_age_config):
        table = get_commutation_table(three_age_config, 0.05)
        for name in ("Dx", "Cx", "Mx", "Nx", "Rx", "Sx"):
            accessor = getattr(commutation, name)
            assert accessor(three_age_config, i=0.05, x=61) == pytest.approx(table.value(name, 61))

    def test_missing_rate(self, three_age_config):
        with pytest.raises(ConfigError) as exc_info:
            commutation.Dx(three_age_config, x=60)
        assert exc_info.value.field == "i"

    def test_rate_at_minus_one(self, three_age_config):
        with pytest.raises(ValidationError):
            commutation.Nx(three_age_config, i=-1, x=60)

    def test_age_outside_table(self, three_age_config):
        with pytest.raises(OutOfRangeError):
            commutation.Mx(three_age_config, i=0.05, x=63)
