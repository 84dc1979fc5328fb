"""
life_valuation/formulas.py - Life Contingency Formula Library

Present values of life insurances and life annuities, evaluated from
commutation functions. Every function takes a MortTableConfig plus keyword
parameters and validates them before any lookup.

Parameters:
- i: effective annual interest rate
- x: attained age (integer)
- n: term in years (term/endowment/temporary forms)
- t: deferral in years (y = x + t), default 0
- m: payment frequency per year, default 1 (UDD approximation)
- moment: 1 for the expected value, k for the k-th moment at (1+i)^k - 1
- entry_age: selection age for select tables
- g: geometric growth rate (g-forms only)

Mathematical Framework (y = x + t):
- Insurance:   Ax = My/Dx,  A¹x:n = (My - My+n)/Dx,  ₙEx = Dy+n/Dx
- Increasing:  (IA)x = Ry/Dx,  (IA)¹x:n = (Ry - Ry+n - n·My+n)/Dx
- Decreasing:  (DA)¹x:n = (n·My - (Ry+1 - Ry+n+1))/Dx
- Annuity-due: äx = Ny/Dx,  äx:n = (Ny - Ny+n)/Dx
- Increasing:  (Iä)x = Sy/Dx,  (Iä)x:n = (Sy - Sy+n - n·Ny+n)/Dx
- Decreasing:  (Dä)x:n = (n·Ny - (Sy+1 - Sy+n+1))/Dx
- m-thly:      A⁽ᵐ⁾ = (i/i⁽ᵐ⁾)·A,  ä⁽ᵐ⁾ = α(m)·ä - β(m)·Δ,  a⁽ᵐ⁾ = ä⁽ᵐ⁾ - Δ/m
- Geometric:   payment (1+g)^s at time s, valued at i' = (1+i)/(1+g) - 1

Author: Actuarial Pipeline Project
License: MIT
"""

import logging
import math
from typing import Sequence

from .commutation import CommutationTable, get_commutation_table
from .exceptions import ComputationError
from .financials import InterestBasis
from .table_config import MortTableConfig
from .validation import CalcParams, validate_params

logger = logging.getLogger(__name__)


class _Evaluation:
    """
    Validated parameters bound to the commutation table at the effective
    rate (growth-adjusted, then raised to the requested moment).
    """

    def __init__(self, mt: MortTableConfig, required: Sequence[str], geometric: bool = False,
                 **params):
        if geometric:
            required = tuple(required) + ("g",)
        p: CalcParams = validate_params(mt, required, **params)

        rate = p.i
        if geometric:
            rate = (1.0 + rate) / (1.0 + p.g) - 1.0
        if p.moment > 1:
            rate = (1.0 + rate) ** p.moment - 1.0

        self.p = p
        self.x = p.x
        self.y = p.x + p.t
        self.n = p.n
        self.m = p.m
        self.basis = InterestBasis(rate)
        self.table: CommutationTable = get_commutation_table(mt, rate, p.entry_age)

        self.Dx = self.table.value("Dx", self.x)
        if not math.isfinite(self.Dx) or self.Dx <= 0.0:
            raise ComputationError(
                f"D{self.x} = {self.Dx} at i={rate}; no lives to value at age {self.x}"
            )

    def col(self, column: str, age: int) -> float:
        return self.table.value(column, age)

    def ratio(self, numerator: float) -> float:
        result = numerator / self.Dx
        if not math.isfinite(result):
            raise ComputationError(f"Non-finite result {result} at x={self.x}")
        return result

    # m-thly adjustments

    def insurance(self, numerator: float) -> float:
        return self.ratio(numerator) * self.basis.insurance_factor(self.m)

    def annuity_due(self, numerator: float, delta: float) -> float:
        """α(m)·numerator/Dx - β(m)·delta/Dx"""
        if self.m == 1:
            return self.ratio(numerator)
        return self.ratio(self.basis.alpha(self.m) * numerator - self.basis.beta(self.m) * delta)

    def annuity_immediate(self, numerator: float, delta: float) -> float:
        return self.annuity_due(numerator, delta) - self.ratio(delta) / self.m


_TERM = ("i", "x", "n")
_WHOLE = ("i", "x")


# =============================================================================
# LEVEL INSURANCE
# =============================================================================

def Ax(mt: MortTableConfig, *, i=None, x=None, t=0, m=1, moment=1, entry_age=None) -> float:
    """Whole life insurance: ₜ|Ax = My/Dx"""
    ev = _Evaluation(mt, _WHOLE, i=i, x=x, t=t, m=m, moment=moment, entry_age=entry_age)
    return ev.insurance(ev.col("Mx", ev.y))


def Ax1n(mt: MortTableConfig, *, i=None, x=None, n=None, t=0, m=1, moment=1,
         entry_age=None) -> float:
    """Term insurance: ₜ|A¹x:n = (My - My+n)/Dx"""
    ev = _Evaluation(mt, _TERM, i=i, x=x, n=n, t=t, m=m, moment=moment, entry_age=entry_age)
    return ev.insurance(ev.col("Mx", ev.y) - ev.col("Mx", ev.y + ev.n))


def Exn(mt: MortTableConfig, *, i=None, x=None, n=None, t=0, moment=1, entry_age=None) -> float:
    """Pure endowment: ₜ|ₙEx = Dy+n/Dx"""
    ev = _Evaluation(mt, _TERM, i=i, x=x, n=n, t=t, moment=moment, entry_age=entry_age)
    return ev.ratio(ev.col("Dx", ev.y + ev.n))


def Axn(mt: MortTableConfig, *, i=None, x=None, n=None, t=0, m=1, moment=1,
        entry_age=None) -> float:
    """Endowment insurance: A¹x:n + ₙEx (death benefit m-thly, survival benefit at n)"""
    ev = _Evaluation(mt, _TERM, i=i, x=x, n=n, t=t, m=m, moment=moment, entry_age=entry_age)
    term = ev.insurance(ev.col("Mx", ev.y) - ev.col("Mx", ev.y + ev.n))
    return term + ev.ratio(ev.col("Dx", ev.y + ev.n))


# =============================================================================
# INCREASING / DECREASING INSURANCE
# =============================================================================

def IAx(mt: MortTableConfig, *, i=None, x=None, t=0, m=1, moment=1, entry_age=None) -> float:
    """Increasing whole life insurance, benefit k+1 in year k+1: Ry/Dx"""
    ev = _Evaluation(mt, _WHOLE, i=i, x=x, t=t, m=m, moment=moment, entry_age=entry_age)
    return ev.insurance(ev.col("Rx", ev.y))


def IAx1n(mt: MortTableConfig, *, i=None, x=None, n=None, t=0, m=1, moment=1,
          entry_age=None) -> float:
    """Increasing term insurance: (Ry - Ry+n - n·My+n)/Dx"""
    ev = _Evaluation(mt, _TERM, i=i, x=x, n=n, t=t, m=m, moment=moment, entry_age=entry_age)
    y, n = ev.y, ev.n
    return ev.insurance(ev.col("Rx", y) - ev.col("Rx", y + n) - n * ev.col("Mx", y + n))


def IAxn(mt: MortTableConfig, *, i=None, x=None, n=None, t=0, m=1, moment=1,
         entry_age=None) -> float:
    """Increasing endowment insurance: (IA)¹x:n + n·ₙEx"""
    ev = _Evaluation(mt, _TERM, i=i, x=x, n=n, t=t, m=m, moment=moment, entry_age=entry_age)
    y, n = ev.y, ev.n
    term = ev.insurance(ev.col("Rx", y) - ev.col("Rx", y + n) - n * ev.col("Mx", y + n))
    return term + n * ev.ratio(ev.col("Dx", y + n))


def DAx1n(mt: MortTableConfig, *, i=None, x=None, n=None, t=0, m=1, moment=1,
          entry_age=None) -> float:
    """Decreasing term insurance, benefit n-k in year k+1: (n·My - (Ry+1 - Ry+n+1))/Dx"""
    ev = _Evaluation(mt, _TERM, i=i, x=x, n=n, t=t, m=m, moment=moment, entry_age=entry_age)
    y, n = ev.y, ev.n
    return ev.insurance(n * ev.col("Mx", y) - (ev.col("Rx", y + 1) - ev.col("Rx", y + n + 1)))


def DAxn(mt: MortTableConfig, *, i=None, x=None, n=None, t=0, m=1, moment=1,
         entry_age=None) -> float:
    """Decreasing endowment insurance: (DA)¹x:n + ₙEx"""
    ev = _Evaluation(mt, _TERM, i=i, x=x, n=n, t=t, m=m, moment=moment, entry_age=entry_age)
    y, n = ev.y, ev.n
    term = ev.insurance(n * ev.col("Mx", y) - (ev.col("Rx", y + 1) - ev.col("Rx", y + n + 1)))
    return term + ev.ratio(ev.col("Dx", y + n))


# =============================================================================
# LEVEL ANNUITIES
# =============================================================================

def aax(mt: MortTableConfig, *, i=None, x=None, t=0, m=1, moment=1, entry_age=None) -> float:
    """Whole life annuity-due: ₜ|äx = Ny/Dx"""
    ev = _Evaluation(mt, _WHOLE, i=i, x=x, t=t, m=m, moment=moment, entry_age=entry_age)
    return ev.annuity_due(ev.col("Nx", ev.y), ev.col("Dx", ev.y))


def aaxn(mt: MortTableConfig, *, i=None, x=None, n=None, t=0, m=1, moment=1,
         entry_age=None) -> float:
    """Temporary annuity-due: ₜ|äx:n = (Ny - Ny+n)/Dx"""
    ev = _Evaluation(mt, _TERM, i=i, x=x, n=n, t=t, m=m, moment=moment, entry_age=entry_age)
    y, n = ev.y, ev.n
    return ev.annuity_due(ev.col("Nx", y) - ev.col("Nx", y + n),
                          ev.col("Dx", y) - ev.col("Dx", y + n))


def ax(mt: MortTableConfig, *, i=None, x=None, t=0, m=1, moment=1, entry_age=None) -> float:
    """Whole life annuity-immediate: ₜ|ax = ₜ|äx - ₜEx"""
    ev = _Evaluation(mt, _WHOLE, i=i, x=x, t=t, m=m, moment=moment, entry_age=entry_age)
    return ev.annuity_immediate(ev.col("Nx", ev.y), ev.col("Dx", ev.y))


def axn(mt: MortTableConfig, *, i=None, x=None, n=None, t=0, m=1, moment=1,
        entry_age=None) -> float:
    """Temporary annuity-immediate: ₜ|äx:n - ₜEx + ₜ₊ₙEx"""
    ev = _Evaluation(mt, _TERM, i=i, x=x, n=n, t=t, m=m, moment=moment, entry_age=entry_age)
    y, n = ev.y, ev.n
    return ev.annuity_immediate(ev.col("Nx", y) - ev.col("Nx", y + n),
                                ev.col("Dx", y) - ev.col("Dx", y + n))


# =============================================================================
# INCREASING / DECREASING ANNUITIES
# =============================================================================

def Iaax(mt: MortTableConfig, *, i=None, x=None, t=0, m=1, moment=1, entry_age=None) -> float:
    """Increasing whole life annuity-due: Sy/Dx"""
    ev = _Evaluation(mt, _WHOLE, i=i, x=x, t=t, m=m, moment=moment, entry_age=entry_age)
    return ev.annuity_due(ev.col("Sx", ev.y), ev.col("Nx", ev.y))


def Iaaxn(mt: MortTableConfig, *, i=None, x=None, n=None, t=0, m=1, moment=1,
          entry_age=None) -> float:
    """Increasing temporary annuity-due: (Sy - Sy+n - n·Ny+n)/Dx"""
    ev = _Evaluation(mt, _TERM, i=i, x=x, n=n, t=t, m=m, moment=moment, entry_age=entry_age)
    y, n = ev.y, ev.n
    annual = ev.col("Sx", y) - ev.col("Sx", y + n) - n * ev.col("Nx", y + n)
    delta = ev.col("Nx", y) - ev.col("Nx", y + n) - n * ev.col("Dx", y + n)
    return ev.annuity_due(annual, delta)


def Daaxn(mt: MortTableConfig, *, i=None, x=None, n=None, t=0, m=1, moment=1,
          entry_age=None) -> float:
    """Decreasing temporary annuity-due: (n·Ny - (Sy+1 - Sy+n+1))/Dx"""
    ev = _Evaluation(mt, _TERM, i=i, x=x, n=n, t=t, m=m, moment=moment, entry_age=entry_age)
    y, n = ev.y, ev.n
    annual = n * ev.col("Nx", y) - (ev.col("Sx", y + 1) - ev.col("Sx", y + n + 1))
    delta = n * ev.col("Dx", y) - (ev.col("Nx", y + 1) - ev.col("Nx", y + n + 1))
    return ev.annuity_due(annual, delta)


# =============================================================================
# GEOMETRICALLY INCREASING FORMS
# =============================================================================

def gAx(mt: MortTableConfig, *, i=None, x=None, g=None, t=0, m=1, moment=1,
        entry_age=None) -> float:
    """Whole life insurance with benefit growing at g: Ax at (1+i)/(1+g) - 1"""
    ev = _Evaluation(mt, _WHOLE, geometric=True, i=i, x=x, g=g, t=t, m=m, moment=moment,
                     entry_age=entry_age)
    return ev.insurance(ev.col("Mx", ev.y))


def gAx1n(mt: MortTableConfig, *, i=None, x=None, n=None, g=None, t=0, m=1, moment=1,
          entry_age=None) -> float:
    ev = _Evaluation(mt, _TERM, geometric=True, i=i, x=x, n=n, g=g, t=t, m=m, moment=moment,
                     entry_age=entry_age)
    return ev.insurance(ev.col("Mx", ev.y) - ev.col("Mx", ev.y + ev.n))


def gExn(mt: MortTableConfig, *, i=None, x=None, n=None, g=None, t=0, moment=1,
         entry_age=None) -> float:
    ev = _Evaluation(mt, _TERM, geometric=True, i=i, x=x, n=n, g=g, t=t, moment=moment,
                     entry_age=entry_age)
    return ev.ratio(ev.col("Dx", ev.y + ev.n))


def gAxn(mt: MortTableConfig, *, i=None, x=None, n=None, g=None, t=0, m=1, moment=1,
         entry_age=None) -> float:
    ev = _Evaluation(mt, _TERM, geometric=True, i=i, x=x, n=n, g=g, t=t, m=m, moment=moment,
                     entry_age=entry_age)
    term = ev.insurance(ev.col("Mx", ev.y) - ev.col("Mx", ev.y + ev.n))
    return term + ev.ratio(ev.col("Dx", ev.y + ev.n))


def gaax(mt: MortTableConfig, *, i=None, x=None, g=None, t=0, m=1, moment=1,
         entry_age=None) -> float:
    """Whole life annuity-due with payments growing at g"""
    ev = _Evaluation(mt, _WHOLE, geometric=True, i=i, x=x, g=g, t=t, m=m, moment=moment,
                     entry_age=entry_age)
    return ev.annuity_due(ev.col("Nx", ev.y), ev.col("Dx", ev.y))


def gaaxn(mt: MortTableConfig, *, i=None, x=None, n=None, g=None, t=0, m=1, moment=1,
          entry_age=None) -> float:
    ev = _Evaluation(mt, _TERM, geometric=True, i=i, x=x, n=n, g=g, t=t, m=m, moment=moment,
                     entry_age=entry_age)
    y, n = ev.y, ev.n
    return ev.annuity_due(ev.col("Nx", y) - ev.col("Nx", y + n),
                          ev.col("Dx", y) - ev.col("Dx", y + n))
