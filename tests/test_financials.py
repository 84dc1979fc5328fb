"""
tests/test_financials.py - Interest Theory Tests

Author: Actuarial Pipeline Project
License: MIT
"""

import numpy as np
import pytest

from life_valuation.exceptions import ValidationError
from life_valuation.financials import (
    Daan,
    Dan,
    Iaan,
    Ian,
    InterestBasis,
    aan,
    alpha_m,
    an,
    beta_m,
    discount_factors,
    effective_d_to_i,
    effective_i_to_d,
    effective_to_nominal_d,
    effective_to_nominal_i,
    nominal_to_effective_d,
    nominal_to_effective_i,
    sn,
    ssn,
)


class TestRateConversions:

    def test_nominal_effective_round_trip(self):
        nominal = effective_to_nominal_i(0.06, 12)
        assert nominal_to_effective_i(nominal, 12) == pytest.approx(0.06)

    def test_semi_annual(self):
        assert nominal_to_effective_i(0.06, 2) == pytest.approx(0.0609)

    def test_discount_round_trip(self):
        nominal = effective_to_nominal_d(0.05, 4)
        assert nominal_to_effective_d(nominal, 4) == pytest.approx(0.05)

    def test_interest_discount(self):
        assert effective_i_to_d(0.05) == pytest.approx(0.05 / 1.05)
        assert effective_d_to_i(effective_i_to_d(0.05)) == pytest.approx(0.05)

    def test_nominal_ordering(self):
        """d < d(m) < δ < i(m) < i for m > 1"""
        basis = InterestBasis(0.08)
        assert basis.d < basis.nominal_d(4) < basis.delta < basis.nominal_i(4) < basis.i

    def test_invalid_rate(self):
        with pytest.raises(ValidationError):
            InterestBasis(-1.0)

    def test_invalid_frequency(self):
        with pytest.raises(ValidationError):
            effective_to_nominal_i(0.05, 0)


class TestMthlyFactors:

    def test_annual_factors(self):
        assert alpha_m(0.05, 1) == 1.0
        assert beta_m(0.05, 1) == 0.0

    def test_zero_interest_limits(self):
        assert alpha_m(0.0, 12) == 1.0
        assert beta_m(0.0, 12) == pytest.approx(11 / 24)

    def test_textbook_values(self):
        """α(12) ≈ 1.00020, β(12) ≈ 0.46651 at 5%"""
        assert alpha_m(0.05, 12) == pytest.approx(1.00020, abs=1e-5)
        assert beta_m(0.05, 12) == pytest.approx(0.46651, abs=1e-5)

    def test_discount_factors_vector(self):
        factors = discount_factors(0.05, [0, 1, 2.5])
        np.testing.assert_allclose(factors, [1.0, 1 / 1.05, 1.05 ** -2.5])


class TestAnnuitiesCertain:
    """Reference values to four decimals."""

    @pytest.mark.parametrize("i, n, expected", [
        (0.005, 1, 0.9950),
        (0.01, 20, 18.0456),
        (0.015, 41, 30.4590),
        (0.02, 80, 39.7445),
        (0.025, 100, 36.6141),
    ])
    def test_an(self, i, n, expected):
        assert an(i, n) == pytest.approx(expected, abs=1e-4)

    @pytest.mark.parametrize("i, n, expected", [
        (0.03, 1, 0.9709),
        (0.04, 23, 152.9852),
        (0.05, 48, 287.3239),
        (0.06, 70, 269.7117),
        (0.07, 100, 216.4693),
    ])
    def test_Ian(self, i, n, expected):
        assert Ian(i, n) == pytest.approx(expected, abs=1e-4)

    @pytest.mark.parametrize("i, n, expected", [
        (0.08, 1, 0.9259),
        (0.09, 34, 260.9129),
        (0.1, 70, 600.1266),
        (0.12, 100, 763.8897),
        (0.15, 50, 288.9299),
    ])
    def test_Dan(self, i, n, expected):
        assert Dan(i, n) == pytest.approx(expected, abs=1e-4)

    def test_due_is_immediate_accumulated_one_year(self):
        assert aan(0.05, 10) == pytest.approx(1.05 * an(0.05, 10))
        assert Iaan(0.05, 10) == pytest.approx(1.05 * Ian(0.05, 10))
        assert Daan(0.05, 10) == pytest.approx(1.05 * Dan(0.05, 10))

    def test_deferral(self):
        assert an(0.05, 10, t=3) == pytest.approx(1.05 ** -3 * an(0.05, 10))

    def test_mthly_due(self):
        d12 = effective_to_nominal_d(0.05 / 1.05, 12)
        assert aan(0.05, 10, m=12) == pytest.approx((1 - 1.05 ** -10) / d12)

    def test_accumulated_values(self):
        assert sn(0.05, 10) == pytest.approx((1.05 ** 10 - 1) / 0.05)
        assert ssn(0.05, 10) == pytest.approx(1.05 * sn(0.05, 10))

    def test_zero_interest(self):
        assert an(0.0, 7) == 7.0
        assert Ian(0.0, 4) == 10.0
        assert Daan(0.0, 4) == 10.0

    def test_zero_term(self):
        assert an(0.05, 0) == 0.0

    def test_negative_term(self):
        with pytest.raises(ValidationError):
            aan(0.05, -1)
