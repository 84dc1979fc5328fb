"""
life_valuation/library.py - Parametric Mortality Table Library

Built-in tables generated from analytical mortality laws, so that common
textbook assumptions need no external data.

EMBEDDED LAWS:
- Constant force:  μx = λ
- De Moivre:       μx = 1 / (ω - x)
- Gompertz:        μx = B·C^x
- Makeham:         μx = A + B·C^x
- Weibull:         μx = k·x^n
- Standard Ultimate Life Table (Makeham A=0.00022, B=2.7e-6, C=1.124, ages 20+)

Every law table is cut at its first qx = 1.0 and closed at the final age.

Author: Actuarial Pipeline Project
License: MIT
"""

import logging
import math
from typing import Callable

import numpy as np

from .exceptions import ValidationError
from .mortality import DEFAULT_RADIX, MortalityTable, qx_rows

logger = logging.getLogger(__name__)


# Standard Ultimate Life Table parameters
SULT_A = 0.00022
SULT_B = 2.7e-6
SULT_C = 1.124
SULT_START_AGE = 20

DEFAULT_OMEGA = 150


def _check_age_range(start_age: int, omega: int) -> None:
    if start_age < 0:
        raise ValidationError(f"start_age must be non-negative, got {start_age}", field="start_age")
    if omega <= start_age:
        raise ValidationError(
            f"omega ({omega}) must exceed start_age ({start_age})", field="omega"
        )


def _law_table(rate: Callable[[np.ndarray], np.ndarray], start_age: int, omega: int,
               description: str, radix: float) -> MortalityTable:
    """Tabulate qx = rate(age) over start_age..omega and close the table."""
    _check_age_range(start_age, omega)
    ages = np.arange(start_age, omega + 1)
    qx = np.clip(rate(ages.astype(np.float64)), 0.0, 1.0)

    ones = np.flatnonzero(qx >= 1.0)
    if ones.size:
        cut = int(ones[0]) + 1
        logger.debug(f"{description}: qx reaches 1.0 at age {ages[cut - 1]}, table cut there")
        ages, qx = ages[:cut], qx[:cut]
    qx[-1] = 1.0

    return MortalityTable.from_qx_rows(qx_rows(ages, qx), radix=radix, description=description)


def constant_force_table(lam: float, start_age: int = 0, omega: int = DEFAULT_OMEGA,
                         radix: float = DEFAULT_RADIX) -> MortalityTable:
    """
    Constant force of mortality.

    qx = 1 - exp(-λ) at every age.

    Args:
        lam: Force of mortality λ > 0
        start_age: First age in the table
        omega: Terminal age
        radix: l(start_age)
    """
    if lam <= 0:
        raise ValidationError(f"Constant force lambda must be positive, got {lam}", field="lam")
    q = 1.0 - math.exp(-lam)
    return _law_table(lambda x: np.full_like(x, q), start_age, omega,
                      "Constant Force Law", radix)


def de_moivre_table(start_age: int = 0, omega: int = DEFAULT_OMEGA,
                    radix: float = DEFAULT_RADIX) -> MortalityTable:
    """
    De Moivre's law with limiting age ω.

    qx = 1 / (ω - x), so the last age with survivors is ω - 1.
    """
    _check_age_range(start_age, omega)
    return _law_table(lambda x: 1.0 / (omega - x), start_age, omega - 1,
                      "De Moivre Law", radix)


def gompertz_table(B: float, C: float, start_age: int = 0, omega: int = DEFAULT_OMEGA,
                   radix: float = DEFAULT_RADIX) -> MortalityTable:
    """
    Gompertz law: qx = 1 - exp(-B/ln(C) · C^x · (C - 1)).

    Requires B > 0 and C > 1.
    """
    if B <= 0 or C <= 1:
        raise ValidationError(f"Gompertz parameters must be B > 0 and C > 1, got B={B}, C={C}")
    factor = B / math.log(C) * (C - 1.0)
    return _law_table(lambda x: -np.expm1(-factor * np.power(C, x)), start_age, omega,
                      "Gompertz Law", radix)


def makeham_table(A: float, B: float, C: float, start_age: int = 0,
                  omega: int = DEFAULT_OMEGA, radix: float = DEFAULT_RADIX,
                  description: str = "Makeham Law") -> MortalityTable:
    """
    Makeham law: qx = 1 - exp(-A - B/ln(C) · C^x · (C - 1)).

    Requires B > 0, C > 1 and A >= -B.
    """
    if B <= 0 or C <= 1 or A < -B:
        raise ValidationError(
            f"Makeham parameters must be B > 0, C > 1 and A >= -B, got A={A}, B={B}, C={C}"
        )
    factor = B / math.log(C) * (C - 1.0)
    return _law_table(lambda x: -np.expm1(-A - factor * np.power(C, x)), start_age, omega,
                      description, radix)


def weibull_table(k: float, n: float, start_age: int = 0, omega: int = DEFAULT_OMEGA,
                  radix: float = DEFAULT_RADIX) -> MortalityTable:
    """
    Weibull law: qx = 1 - exp(-k/(n+1) · ((x+1)^(n+1) - x^(n+1))).

    Requires k > 0 and n > 1.
    """
    if k <= 0 or n <= 1:
        raise ValidationError(f"Weibull parameters must be k > 0 and n > 1, got k={k}, n={n}")

    def rate(x):
        return -np.expm1(-k / (n + 1.0) * (np.power(x + 1.0, n + 1.0) - np.power(x, n + 1.0)))

    return _law_table(rate, start_age, omega, "Weibull Law", radix)


def standard_ultimate_life_table(radix: float = DEFAULT_RADIX,
                                 omega: int = DEFAULT_OMEGA) -> MortalityTable:
    """
    Standard Ultimate Life Table.

    Makeham mortality with A = 0.00022, B = 2.7e-6, C = 1.124 from age 20.
    """
    return makeham_table(SULT_A, SULT_B, SULT_C, start_age=SULT_START_AGE, omega=omega,
                         radix=radix, description="Standard Ultimate Life Table")
