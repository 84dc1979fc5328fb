"""
life_valuation/financials.py - Interest Theory Engine

Time-value-of-money building blocks shared by the life-contingent formulas.

Mathematical Framework:
- Discount factors: v^t = (1+i)^{-t}
- Nominal rates: i^(m) = m[(1+i)^{1/m} - 1],  d^(m) = m[1 - (1-d)^{1/m}]
- m-thly UDD adjustments: α(m) = i·d / (i^(m)·d^(m)),  β(m) = (i - i^(m)) / (i^(m)·d^(m))
- Annuities certain: äₙ = (1 - vⁿ)/d,  aₙ = (1 - vⁿ)/i,  (Iä)ₙ = (äₙ - n·vⁿ)/d,
  (Da)ₙ = (n - aₙ)/i

Author: Actuarial Pipeline Project
License: MIT
"""

import logging
import math
from dataclasses import dataclass
from typing import Sequence, Union

import numpy as np

from .exceptions import ValidationError

logger = logging.getLogger(__name__)


def _check_rate(i: float, name: str = "i") -> float:
    if isinstance(i, bool) or not isinstance(i, (int, float, np.integer, np.floating)):
        raise ValidationError(f"{name} must be numeric, got {i!r}", field=name)
    if not math.isfinite(i) or i <= -1:
        raise ValidationError(f"{name} must be finite and exceed -1, got {i}", field=name)
    return float(i)


def _check_count(value, name: str, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        if not (isinstance(value, float) and value.is_integer()):
            raise ValidationError(f"{name} must be a whole number, got {value!r}", field=name)
    if value < minimum:
        raise ValidationError(f"{name} must be at least {minimum}, got {value}", field=name)
    return int(value)


# =============================================================================
# RATE CONVERSIONS
# =============================================================================

def nominal_to_effective_i(nominal_i: float, m: int) -> float:
    """i = (1 + i^(m)/m)^m - 1"""
    m = _check_count(m, "m", 1)
    return (1.0 + nominal_i / m) ** m - 1.0


def effective_to_nominal_i(i: float, m: int) -> float:
    """i^(m) = m[(1+i)^{1/m} - 1]"""
    i = _check_rate(i)
    m = _check_count(m, "m", 1)
    return m * ((1.0 + i) ** (1.0 / m) - 1.0)


def effective_to_nominal_d(d: float, m: int) -> float:
    """d^(m) = m[1 - (1-d)^{1/m}]"""
    m = _check_count(m, "m", 1)
    if d >= 1:
        raise ValidationError(f"Discount rate must be below 1, got {d}", field="d")
    return m * (1.0 - (1.0 - d) ** (1.0 / m))


def nominal_to_effective_d(nominal_d: float, m: int) -> float:
    """d = 1 - (1 - d^(m)/m)^m"""
    m = _check_count(m, "m", 1)
    return 1.0 - (1.0 - nominal_d / m) ** m


def effective_i_to_d(i: float) -> float:
    """d = i / (1+i)"""
    i = _check_rate(i)
    return i / (1.0 + i)


def effective_d_to_i(d: float) -> float:
    """i = d / (1-d)"""
    if d >= 1:
        raise ValidationError(f"Discount rate must be below 1, got {d}", field="d")
    return d / (1.0 - d)


def effective_i_to_nominal_d(i: float, m: int) -> float:
    """d^(m) from the effective interest rate."""
    return effective_to_nominal_d(effective_i_to_d(i), m)


def effective_i_to_delta(i: float) -> float:
    """Force of interest δ = ln(1+i)"""
    return math.log1p(_check_rate(i))


# =============================================================================
# INTEREST BASIS
# =============================================================================

@dataclass(frozen=True)
class InterestBasis:
    """
    Effective annual interest rate with its derived quantities.

    Attributes:
        i: Effective annual rate (> -1)
    """
    i: float

    def __post_init__(self):
        object.__setattr__(self, "i", _check_rate(self.i))

    @property
    def v(self) -> float:
        return 1.0 / (1.0 + self.i)

    @property
    def d(self) -> float:
        return self.i / (1.0 + self.i)

    @property
    def delta(self) -> float:
        return math.log1p(self.i)

    def nominal_i(self, m: int = 1) -> float:
        return effective_to_nominal_i(self.i, m)

    def nominal_d(self, m: int = 1) -> float:
        return effective_to_nominal_d(self.d, m)

    def discount_factor(self, years: float) -> float:
        """v^t"""
        return (1.0 + self.i) ** (-years)

    def alpha(self, m: int) -> float:
        """α(m) = i·d / (i^(m)·d^(m)); 1 when i = 0."""
        m = _check_count(m, "m", 1)
        if m == 1 or self.i == 0:
            return 1.0
        return self.i * self.d / (self.nominal_i(m) * self.nominal_d(m))

    def beta(self, m: int) -> float:
        """β(m) = (i - i^(m)) / (i^(m)·d^(m)); (m-1)/(2m) when i = 0."""
        m = _check_count(m, "m", 1)
        if m == 1:
            return 0.0
        if self.i == 0:
            return (m - 1) / (2.0 * m)
        i_m = self.nominal_i(m)
        return (self.i - i_m) / (i_m * self.nominal_d(m))

    def insurance_factor(self, m: int) -> float:
        """i / i^(m): UDD conversion from annual to m-thly death benefits."""
        m = _check_count(m, "m", 1)
        if m == 1 or self.i == 0:
            return 1.0
        return self.i / self.nominal_i(m)


def alpha_m(i: float, m: int) -> float:
    return InterestBasis(i).alpha(m)


def beta_m(i: float, m: int) -> float:
    return InterestBasis(i).beta(m)


def discount_factors(i: float, times: Union[Sequence[float], np.ndarray]) -> np.ndarray:
    """
    Vector of discount factors v^t.

    Args:
        i: Effective annual interest rate
        times: Times in years

    Returns:
        numpy array of (1+i)^{-t}
    """
    i = _check_rate(i)
    return np.power(1.0 + i, -np.asarray(times, dtype=np.float64))


# =============================================================================
# ANNUITIES CERTAIN
# =============================================================================

def _certain_inputs(i: float, n: int, t: int, m: int):
    basis = InterestBasis(i)
    n = _check_count(n, "n", 0)
    t = _check_count(t, "t", 0)
    m = _check_count(m, "m", 1)
    return basis, n, t, m


def aan(i: float, n: int, t: int = 0, m: int = 1) -> float:
    """
    Deferred annuity-due certain, payable m-thly.

    ₜ|äₙ⁽ᵐ⁾ = vᵗ · (1 - vⁿ) / d⁽ᵐ⁾
    """
    basis, n, t, m = _certain_inputs(i, n, t, m)
    if basis.i == 0:
        return float(n)
    return basis.v ** t * (1.0 - basis.v ** n) / basis.nominal_d(m)


def an(i: float, n: int, t: int = 0, m: int = 1) -> float:
    """
    Deferred annuity-immediate certain, payable m-thly.

    ₜ|aₙ⁽ᵐ⁾ = vᵗ · (1 - vⁿ) / i⁽ᵐ⁾
    """
    basis, n, t, m = _certain_inputs(i, n, t, m)
    if basis.i == 0:
        return float(n)
    return basis.v ** t * (1.0 - basis.v ** n) / basis.nominal_i(m)


def Iaan(i: float, n: int, t: int = 0, m: int = 1) -> float:
    """Increasing annuity-due certain: vᵗ · (äₙ - n·vⁿ) / d⁽ᵐ⁾"""
    basis, n, t, m = _certain_inputs(i, n, t, m)
    if basis.i == 0:
        return n * (n + 1) / 2.0
    annual_due = (1.0 - basis.v ** n) / basis.d
    return basis.v ** t * (annual_due - n * basis.v ** n) / basis.nominal_d(m)


def Ian(i: float, n: int, t: int = 0, m: int = 1) -> float:
    """Increasing annuity-immediate certain: vᵗ · (äₙ - n·vⁿ) / i⁽ᵐ⁾"""
    basis, n, t, m = _certain_inputs(i, n, t, m)
    if basis.i == 0:
        return n * (n + 1) / 2.0
    annual_due = (1.0 - basis.v ** n) / basis.d
    return basis.v ** t * (annual_due - n * basis.v ** n) / basis.nominal_i(m)


def Dan(i: float, n: int, t: int = 0, m: int = 1) -> float:
    """Decreasing annuity-immediate certain: vᵗ · (n - aₙ) / i⁽ᵐ⁾"""
    basis, n, t, m = _certain_inputs(i, n, t, m)
    if basis.i == 0:
        return n * (n + 1) / 2.0
    annual_immediate = (1.0 - basis.v ** n) / basis.i
    return basis.v ** t * (n - annual_immediate) / basis.nominal_i(m)


def Daan(i: float, n: int, t: int = 0, m: int = 1) -> float:
    """Decreasing annuity-due certain: vᵗ · (n - aₙ) / d⁽ᵐ⁾"""
    basis, n, t, m = _certain_inputs(i, n, t, m)
    if basis.i == 0:
        return n * (n + 1) / 2.0
    annual_immediate = (1.0 - basis.v ** n) / basis.i
    return basis.v ** t * (n - annual_immediate) / basis.nominal_d(m)


def sn(i: float, n: int, m: int = 1) -> float:
    """Accumulated annuity-immediate: aₙ⁽ᵐ⁾ · (1+i)ⁿ"""
    return an(i, n, m=m) * (1.0 + i) ** n


def ssn(i: float, n: int, m: int = 1) -> float:
    """Accumulated annuity-due: äₙ⁽ᵐ⁾ · (1+i)ⁿ"""
    return aan(i, n, m=m) * (1.0 + i) ** n


def Isn(i: float, n: int, m: int = 1) -> float:
    return Ian(i, n, m=m) * (1.0 + i) ** n


def Issn(i: float, n: int, m: int = 1) -> float:
    return Iaan(i, n, m=m) * (1.0 + i) ** n


def Dsn(i: float, n: int, m: int = 1) -> float:
    return Dan(i, n, m=m) * (1.0 + i) ** n


def Dssn(i: float, n: int, m: int = 1) -> float:
    return Daan(i, n, m=m) * (1.0 + i) ** n
