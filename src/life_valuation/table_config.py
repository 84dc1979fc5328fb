"""
life_valuation/table_config.py - Mortality Table Configuration

Wraps a canonical MortalityTable with the valuation options that shape it:
radix, percentage loading and fractional-age assumption. Construction
derives the working table every calculation reads from.

Author: Actuarial Pipeline Project
License: MIT
"""

import logging
import math
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from .exceptions import ConfigError, ValidationError
from .mortality import MortalityTable, UltimateTable

logger = logging.getLogger(__name__)


class Assumption(str, Enum):
    """Fractional-age survival assumption."""
    UDD = "UDD"   # Uniform distribution of deaths
    CFM = "CFM"   # Constant force of mortality
    HPB = "HPB"   # Hyperbolic (Balducci)


class MortTableConfig(BaseModel):
    """
    Immutable valuation view of a mortality table.

    Attributes:
        table: Canonical source table
        radix: l(min_age) of the working table (None keeps the native lx)
        pct: Multiplier applied to every non-terminal qx
        assumption: Fractional-age survival assumption
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    table: MortalityTable
    radix: Optional[float] = Field(None, description="Starting lx of the working table")
    pct: float = Field(1.0, description="Mortality loading factor")
    assumption: Assumption = Field(Assumption.UDD, description="Fractional-age assumption")

    _working: MortalityTable = PrivateAttr()

    @field_validator("assumption", mode="before")
    @classmethod
    def _normalize_assumption(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    def __init__(self, **data: Any):
        super().__init__(**data)

        if not math.isfinite(self.pct) or self.pct <= 0:
            raise ValidationError(f"pct must be a positive finite number, got {self.pct}", field="pct")
        if self.radix is not None and (not math.isfinite(self.radix) or self.radix <= 0):
            raise ValidationError(f"radix must be a positive finite number, got {self.radix}", field="radix")

        self._working = self.table.rescaled(radix=self.radix, pct=self.pct)
        logger.info(
            f"Mortality config: '{self.table.description}' ages {self.min_age}-{self.omega}, "
            f"pct={self.pct}, radix={self.radix or 'native'}, assumption={self.assumption.value}"
        )

    # ------------------------------------------------------------- working table

    @property
    def working_table(self) -> MortalityTable:
        return self._working

    @property
    def table_id(self) -> str:
        return self._working.table_id

    @property
    def min_age(self) -> int:
        return self._working.min_age

    @property
    def max_age(self) -> int:
        return self._working.max_age

    @property
    def omega(self) -> int:
        return self._working.omega

    @property
    def is_select(self) -> bool:
        return self._working.is_select

    @property
    def select_period(self) -> int:
        return self._working.select_period

    @property
    def entry_ages(self) -> Tuple[int, ...]:
        return self._working.entry_ages

    def curve(self, entry_age: Optional[int] = None) -> UltimateTable:
        return self._working.curve(entry_age)

    def qx(self, age, duration=None) -> float:
        return self._working.qx_at(age, duration)

    def lx(self, age, duration=None) -> float:
        return self._working.lx_at(age, duration)

    def px(self, age, duration=None) -> float:
        return self._working.px_at(age, duration)

    def dx(self, age) -> float:
        return self._working.dx_at(age)


CONFIG_OPTIONS = ("radix", "pct", "assumption")


def create_table_config(table: MortalityTable,
                        options: Optional[Mapping[str, Any]] = None) -> MortTableConfig:
    """
    Factory for MortTableConfig from a mapping of named options.

    Args:
        table: Canonical mortality table
        options: Any of 'radix', 'pct', 'assumption'

    Returns:
        Configured MortTableConfig
    """
    options = dict(options or {})
    unknown = sorted(set(options) - set(CONFIG_OPTIONS))
    if unknown:
        raise ConfigError(
            f"Unknown mortality config option(s): {', '.join(unknown)}; "
            f"expected any of {', '.join(CONFIG_OPTIONS)}",
            field=unknown[0],
        )

    params: Dict[str, Any] = {"table": table}
    params.update(options)
    return MortTableConfig(**params)
