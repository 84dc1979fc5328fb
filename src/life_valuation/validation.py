"""
life_valuation/validation.py - Calculation Parameter Validation

Every survival, commutation and formula entry point validates its keyword
parameters here before touching the table. Rules run in a fixed order and
the first violation raises, naming the offending field:

1. Required parameters present                      -> ConfigError
2. x numeric, non-negative, within [min_age, omega] -> ValidationError / OutOfRangeError
3. n integer >= 0
4. t >= 0, and x + t + n <= omega                   -> OutOfRangeError beyond omega
5. m integer >= 1
6. moment integer >= 1
7. entry_age <= x, >= min_age, a select entry age   -> ValidationError / OutOfRangeError
8. i > -1 (and g > -1 when given)

Author: Actuarial Pipeline Project
License: MIT
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np

from .exceptions import ConfigError, OutOfRangeError, ValidationError
from .table_config import MortTableConfig

logger = logging.getLogger(__name__)

Number = Union[int, float]


@dataclass(frozen=True)
class CalcParams:
    """Normalized calculation parameters."""
    i: Optional[float] = None
    x: Optional[Number] = None
    n: Optional[int] = None
    t: Number = 0
    m: int = 1
    moment: int = 1
    entry_age: Optional[int] = None
    g: Optional[float] = None

    @property
    def y(self) -> Number:
        """Attained age at the end of the deferral period."""
        return self.x + self.t


def _is_number(value) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return False
    return isinstance(value, (int, float, np.integer, np.floating)) and math.isfinite(value)


def _require_number(value, name: str) -> float:
    if not _is_number(value):
        raise ValidationError(f"{name} must be a finite number, got {value!r}", field=name)
    return value


def _require_integer(value, name: str) -> int:
    _require_number(value, name)
    if float(value) != int(value):
        raise ValidationError(f"{name} must be a whole number, got {value!r}", field=name)
    return int(value)


class ParameterValidator:
    """
    Cross-field validator bound to one mortality configuration.

    Args:
        mt: Mortality table configuration the parameters apply to
        integer_ages: Require integral x and t (commutation-based formulas)
        check_horizon: Reject x + t + n beyond omega (survival clamps to 0 instead)
    """

    def __init__(self, mt: MortTableConfig, integer_ages: bool = True,
                 check_horizon: bool = True):
        self.mt = mt
        self.integer_ages = integer_ages
        self.check_horizon = check_horizon

    def validate(self, required: Sequence[str] = (), *, i=None, x=None, n=None, t=0,
                 m=1, moment=1, entry_age=None, g=None) -> CalcParams:
        supplied = {"i": i, "x": x, "n": n, "t": t, "m": m,
                    "moment": moment, "entry_age": entry_age, "g": g}
        for name in required:
            if supplied.get(name) is None:
                raise ConfigError(f"Missing required parameter '{name}'", field=name)

        mt = self.mt

        if x is not None:
            x = _require_integer(x, "x") if self.integer_ages else _require_number(x, "x")
            if x < 0:
                raise ValidationError(f"x must be non-negative, got {x}", field="x")
            if x < mt.min_age or x > mt.omega:
                raise OutOfRangeError(
                    f"Age x={x} outside table range [{mt.min_age}, {mt.omega}]", field="x"
                )

        if n is not None:
            n = _require_integer(n, "n")
            if n < 0:
                raise ValidationError(f"n must be non-negative, got {n}", field="n")

        t = _require_integer(t, "t") if self.integer_ages else _require_number(t, "t")
        if t < 0:
            raise ValidationError(f"t must be non-negative, got {t}", field="t")

        if self.check_horizon and x is not None:
            end = x + t + (n or 0)
            if end > mt.omega:
                field = "n" if n else "t"
                raise OutOfRangeError(
                    f"x + t + n = {end} exceeds omega {mt.omega}", field=field
                )

        m = _require_integer(m, "m")
        if m < 1:
            raise ValidationError(f"m must be at least 1, got {m}", field="m")

        moment = _require_integer(moment, "moment")
        if moment < 1:
            raise ValidationError(f"moment must be at least 1, got {moment}", field="moment")

        if entry_age is not None:
            entry_age = _require_integer(entry_age, "entry_age")
            if x is not None and entry_age > x:
                raise ValidationError(
                    f"entry_age {entry_age} exceeds attained age x={x}", field="entry_age"
                )
            if entry_age < mt.min_age:
                raise OutOfRangeError(
                    f"entry_age {entry_age} below table minimum age {mt.min_age}",
                    field="entry_age",
                )
            if mt.is_select and entry_age not in mt.entry_ages:
                raise OutOfRangeError(
                    f"entry_age {entry_age} is not a select entry age "
                    f"[{mt.entry_ages[0]}, {mt.entry_ages[-1]}]",
                    field="entry_age",
                )

        if i is not None:
            i = float(_require_number(i, "i"))
            if i <= -1:
                raise ValidationError(f"Interest rate must exceed -1, got {i}", field="i")

        if g is not None:
            g = float(_require_number(g, "g"))
            if g <= -1:
                raise ValidationError(f"Growth rate must exceed -1, got {g}", field="g")

        return CalcParams(i=i, x=x, n=n, t=t, m=m, moment=moment, entry_age=entry_age, g=g)


def validate_params(mt: MortTableConfig, required: Sequence[str] = (),
                    integer_ages: bool = True, check_horizon: bool = True,
                    **params) -> CalcParams:
    """Shortcut for ParameterValidator(mt, ...).validate(required, **params)."""
    validator = ParameterValidator(mt, integer_ages=integer_ages, check_horizon=check_horizon)
    return validator.validate(required, **params)
