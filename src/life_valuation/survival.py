"""
life_valuation/survival.py - Fractional-Age Survival Engine

Survival and death probabilities over arbitrary real intervals, built from
integer-age qx under a fractional-age assumption.

Mathematical Framework:
- Whole years:  ₙpₓ = ∏ (1 - q(x+k))
- UDD:  ₜp(x+s) = (1 - (s+t)·qx) / (1 - s·qx)
- CFM:  ₜp(x+s) = (1 - qx)^t
- HPB:  ₜp(x+s) = (1 - (1-s)·qx) / (1 - (1-s-t)·qx)
- Deferred death:  ₖ|ₜqₓ = ₖpₓ - ₖ₊ₜpₓ

Author: Actuarial Pipeline Project
License: MIT
"""

import logging
import math
from typing import Optional

from .exceptions import ValidationError
from .table_config import Assumption, MortTableConfig
from .validation import ParameterValidator, _require_number

logger = logging.getLogger(__name__)

# Fractions closer than this to an integer boundary are snapped to it
AGE_TOLERANCE = 1e-12


def fractional_survival(q: float, s: float, t: float, assumption: Assumption) -> float:
    """
    ₜp(a+s) within a single year of age, for s + t <= 1.

    Args:
        q: One-year mortality rate at integer age a
        s: Fractional starting offset within the year
        t: Length of the interval
        assumption: UDD, CFM or HPB
    """
    if t <= 0:
        return 1.0
    if assumption is Assumption.UDD:
        return (1.0 - (s + t) * q) / (1.0 - s * q)
    if assumption is Assumption.CFM:
        return (1.0 - q) ** t
    # HPB (Balducci)
    return (1.0 - (1.0 - s) * q) / (1.0 - (1.0 - s - t) * q)


class SurvivalEngine:
    """
    tpx / tqx calculator for one mortality configuration.

    Lives selected at entry_age follow the select curve for that entry age;
    otherwise the ultimate curve is used.
    """

    def __init__(self, mt: MortTableConfig):
        self.mt = mt
        self.assumption = mt.assumption
        self._validator = ParameterValidator(mt, integer_ages=False, check_horizon=False)

    def tpx(self, x: float, t: float = 1.0, entry_age: Optional[int] = None) -> float:
        """
        Probability that a life aged x survives t years.

        Args:
            x: Attained age (real)
            t: Duration in years (real, >= 0)
            entry_age: Age at selection, for select tables

        Returns:
            ₜpₓ; 1.0 when t = 0 and 0.0 when x + t passes omega
        """
        p = self._validator.validate(("x",), x=x, t=t, entry_age=entry_age)
        return self._tpx(p.x, p.t, p.entry_age)

    def tqx(self, x: float, t: float = 1.0, defer: float = 0.0,
            entry_age: Optional[int] = None) -> float:
        """
        Probability that a life aged x survives defer years and then dies
        within the following t years.
        """
        p = self._validator.validate(("x",), x=x, t=t, entry_age=entry_age)
        defer = float(_require_number(defer, "defer"))
        if defer < 0:
            raise ValidationError(f"defer must be non-negative, got {defer}", field="defer")

        return self._tpx(p.x, defer, p.entry_age) - self._tpx(p.x, defer + p.t, p.entry_age)

    def curtate_life_expectancy(self, x: float, entry_age: Optional[int] = None) -> float:
        """eₓ = Σ_{k>=1} ₖpₓ"""
        p = self._validator.validate(("x",), x=x, entry_age=entry_age)
        total = 0.0
        k = 1
        while p.x + k <= self.mt.omega:
            total += self._tpx(p.x, k, p.entry_age)
            k += 1
        return total

    def complete_life_expectancy(self, x: float, entry_age: Optional[int] = None) -> float:
        """e̊ₓ ≈ eₓ + 1/2"""
        return self.curtate_life_expectancy(x, entry_age) + 0.5

    def _tpx(self, x: float, t: float, entry_age: Optional[int]) -> float:
        if t <= AGE_TOLERANCE:
            return 1.0
        if x + t > self.mt.omega + AGE_TOLERANCE:
            return 0.0

        curve = self.mt.curve(entry_age)
        qx = curve.qx
        base = curve.min_age

        age = math.floor(x)
        s = x - age
        if 1.0 - s < AGE_TOLERANCE:
            age, s = age + 1, 0.0
        elif s < AGE_TOLERANCE:
            s = 0.0

        remaining = t
        result = 1.0

        if s > 0.0:
            lead = min(1.0 - s, remaining)
            result *= fractional_survival(qx[age - base], s, lead, self.assumption)
            remaining -= lead
            age += 1

        while remaining >= 1.0 - AGE_TOLERANCE and result > 0.0:
            result *= 1.0 - qx[age - base]
            remaining -= 1.0
            age += 1

        if remaining > AGE_TOLERANCE and result > 0.0:
            result *= fractional_survival(qx[age - base], 0.0, remaining, self.assumption)

        return max(float(result), 0.0)


def tpx(mt: MortTableConfig, *, x=None, t=1.0, entry_age=None) -> float:
    """ₜpₓ under mt's fractional-age assumption."""
    return SurvivalEngine(mt).tpx(x, t, entry_age=entry_age)


def tqx(mt: MortTableConfig, *, x=None, t=1.0, k=0.0, entry_age=None) -> float:
    """ₖ|ₜqₓ under mt's fractional-age assumption."""
    return SurvivalEngine(mt).tqx(x, t, defer=k, entry_age=entry_age)
