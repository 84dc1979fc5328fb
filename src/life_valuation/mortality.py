"""
life_valuation/mortality.py - Canonical Mortality Table

Normalizes raw (age, rate) rows delivered by external loaders into an
immutable table holding both qx and lx, for ultimate or select & ultimate
tables.

Mathematical Framework:
- qx = 1 - l(x+1) / l(x)
- l(x+1) = l(x) × (1 - qx)
- Terminal age omega carries qx = 1.0 (no survivors to omega + 1)
- Select rates q[x]+d apply for durations d < select period, after which
  the ultimate rate q(x+d) applies

Author: Actuarial Pipeline Project
License: MIT
"""

import logging
import math
import threading
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .exceptions import DataIntegrityError, OutOfRangeError, ValidationError

logger = logging.getLogger(__name__)


DEFAULT_RADIX = 100_000.0

# Loaded rates within this distance of 1.0 are treated as floating-point noise
QX_TOLERANCE = 1e-12


class RateKind(Enum):
    """Which column a raw table carries."""
    QX = "qx"
    LX = "lx"


@dataclass(frozen=True)
class RawTableRow:
    """
    One row of the ingestion contract.

    Attributes:
        age: Attained age (integer)
        value: qx or lx value
        kind: RateKind.QX or RateKind.LX
        duration: Years since selection (select tables only)
    """
    age: int
    value: float
    kind: RateKind
    duration: Optional[int] = None


@dataclass(frozen=True)
class RawTable:
    """Raw rows tagged once at ingestion: rate kind and select/ultimate layout."""
    kind: RateKind
    rows: Tuple[RawTableRow, ...]
    select: bool = False

    @classmethod
    def from_rows(cls, rows: Iterable[RawTableRow]) -> "RawTable":
        rows = tuple(rows)
        if not rows:
            raise DataIntegrityError("Raw table contains no rows")

        try:
            kinds = {RateKind(row.kind) for row in rows}
        except ValueError as exc:
            raise DataIntegrityError(f"Unknown rate kind in raw table: {exc}") from exc
        if len(kinds) != 1:
            raise DataIntegrityError("Raw table mixes qx and lx rows")

        with_duration = sum(row.duration is not None for row in rows)
        if with_duration not in (0, len(rows)):
            raise DataIntegrityError(
                "Either every row or no row may carry a duration"
            )

        return cls(kind=kinds.pop(), rows=rows, select=with_duration > 0)


# =============================================================================
# ROW NORMALIZATION
# =============================================================================

def _as_int(value, name: str) -> int:
    if isinstance(value, bool):
        raise DataIntegrityError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, (int, np.integer)):
        return int(value)
    try:
        as_float = float(value)
    except (TypeError, ValueError) as exc:
        raise DataIntegrityError(f"{name} must be an integer, got {value!r}") from exc
    if not math.isfinite(as_float) or not as_float.is_integer():
        raise DataIntegrityError(f"{name} must be a whole number, got {value!r}")
    return int(as_float)


def _as_float(value, name: str) -> float:
    try:
        as_float = float(value)
    except (TypeError, ValueError) as exc:
        raise DataIntegrityError(f"{name} must be numeric, got {value!r}") from exc
    if not math.isfinite(as_float):
        raise DataIntegrityError(f"{name} must be finite, got {value!r}")
    return as_float


def _check_contiguous(ages: Sequence[int], label: str) -> None:
    """Ages must increase by exactly one, in the order given."""
    for prev, curr in zip(ages, ages[1:]):
        if curr != prev + 1:
            raise DataIntegrityError(
                f"{label} ages must be contiguous and increasing: {prev} followed by {curr}"
            )


def _check_qx_domain(qx: np.ndarray, ages: Sequence[int]) -> None:
    bad = np.flatnonzero((qx < 0.0) | (qx > 1.0))
    if bad.size:
        idx = int(bad[0])
        raise DataIntegrityError(f"qx at age {ages[idx]} is {qx[idx]}, outside [0, 1]")


def _resolve_terminal(ages: List[int], qx: np.ndarray) -> Tuple[List[int], np.ndarray]:
    """
    Keep the first qx = 1.0 row as omega and drop later duplicates.

    A table without any qx = 1.0 row is closed at its final age.
    """
    ones = np.flatnonzero(qx == 1.0)
    if ones.size == 0:
        logger.warning(f"No terminal row with qx=1.0; closing table at age {ages[-1]}")
        qx = qx.copy()
        qx[-1] = 1.0
        return ages, qx

    first = int(ones[0])
    tail = qx[first + 1:]
    if np.any(tail != 1.0):
        raise DataIntegrityError(
            f"Terminal age {ages[first]} (qx=1.0) is followed by rows with qx < 1.0"
        )
    if tail.size:
        logger.warning(
            f"Dropped {tail.size} duplicate terminal row(s) after age {ages[first]}"
        )
    return ages[:first + 1], qx[:first + 1].copy()


def _lx_from_qx(qx: np.ndarray, radix: float) -> np.ndarray:
    lx = np.empty(len(qx), dtype=np.float64)
    lx[0] = radix
    for k in range(1, len(qx)):
        lx[k] = lx[k - 1] * (1.0 - qx[k - 1])
    return lx


def _qx_from_lx(lx: np.ndarray) -> np.ndarray:
    qx = np.ones(len(lx), dtype=np.float64)
    for k in range(len(lx) - 1):
        qx[k] = 1.0 - lx[k + 1] / lx[k]
    return qx


# =============================================================================
# TABLE VARIANTS
# =============================================================================

def _integer_age(age, name: str = "age") -> int:
    if isinstance(age, (int, np.integer)) and not isinstance(age, bool):
        return int(age)
    if isinstance(age, float) and age.is_integer():
        return int(age)
    raise ValidationError(f"{name} must be an integer age, got {age!r}", field=name)


@dataclass(frozen=True, eq=False)
class UltimateTable:
    """
    Aggregate/ultimate curve indexed by attained age.

    qx and lx are read-only numpy arrays over ages min_age..omega.
    """
    min_age: int
    qx: np.ndarray
    lx: np.ndarray

    def __post_init__(self):
        self.qx.setflags(write=False)
        self.lx.setflags(write=False)

    @property
    def max_age(self) -> int:
        return self.min_age + len(self.qx) - 1

    @property
    def omega(self) -> int:
        return self.max_age

    @property
    def ages(self) -> np.ndarray:
        return np.arange(self.min_age, self.max_age + 1)

    def index(self, age) -> int:
        """Array offset of an integer age, or OutOfRangeError."""
        age = _integer_age(age)
        if age < self.min_age or age > self.max_age:
            raise OutOfRangeError(
                f"Age {age} outside table range [{self.min_age}, {self.max_age}]",
                field="age",
            )
        return age - self.min_age

    def qx_at(self, age) -> float:
        return float(self.qx[self.index(age)])

    def lx_at(self, age) -> float:
        return float(self.lx[self.index(age)])

    def px_at(self, age) -> float:
        return 1.0 - self.qx_at(age)

    def dx_at(self, age) -> float:
        idx = self.index(age)
        lx_next = self.lx[idx + 1] if idx + 1 < len(self.lx) else 0.0
        return float(self.lx[idx] - lx_next)


@dataclass(frozen=True, eq=False)
class SelectTable:
    """
    Select & ultimate table.

    select_qx[k, d] is q[entry_ages[k]] + d for d < select_period; NaN where
    entry age + d lies beyond omega. select_lx follows the same layout.
    """
    entry_ages: Tuple[int, ...]
    select_period: int
    select_qx: np.ndarray
    select_lx: np.ndarray
    ultimate: UltimateTable

    def __post_init__(self):
        self.select_qx.setflags(write=False)
        self.select_lx.setflags(write=False)

    def entry_index(self, entry_age) -> int:
        entry_age = _integer_age(entry_age, "entry_age")
        offset = entry_age - self.entry_ages[0]
        if offset < 0 or offset >= len(self.entry_ages):
            raise OutOfRangeError(
                f"Entry age {entry_age} outside select range "
                f"[{self.entry_ages[0]}, {self.entry_ages[-1]}]",
                field="entry_age",
            )
        return offset

    def _select_value(self, values: np.ndarray, entry_age, duration) -> float:
        duration = _integer_age(duration, "duration")
        if duration < 0:
            raise OutOfRangeError(f"Duration {duration} is negative", field="duration")
        k = self.entry_index(entry_age)
        attained = self.entry_ages[k] + duration
        if attained > self.ultimate.max_age:
            raise OutOfRangeError(
                f"Attained age {attained} beyond omega {self.ultimate.max_age}",
                field="duration",
            )
        return float(values[k, duration])

    def qx_at(self, entry_age, duration) -> float:
        if duration >= self.select_period:
            return self.ultimate.qx_at(entry_age + duration)
        return self._select_value(self.select_qx, entry_age, duration)

    def lx_at(self, entry_age, duration) -> float:
        if duration >= self.select_period:
            return self.ultimate.lx_at(entry_age + duration)
        return self._select_value(self.select_lx, entry_age, duration)


def _derive_select_lx(entry_ages: Sequence[int], select_qx: np.ndarray,
                      ultimate: UltimateTable) -> np.ndarray:
    """
    Select lx consistent with the select rates and the ultimate curve.

    Back from the ultimate lx at entry + select period where that age exists
    and no select rate is 1.0; otherwise forward from the ultimate lx at
    the entry age.
    """
    n_entry, period = select_qx.shape
    select_lx = np.full((n_entry, period), np.nan)
    omega = ultimate.max_age

    for k, entry in enumerate(entry_ages):
        rates = select_qx[k]
        anchor = entry + period
        known = rates[~np.isnan(rates)]
        if anchor <= omega and np.all(known < 1.0):
            lx_next = ultimate.lx_at(anchor)
            for d in range(period - 1, -1, -1):
                lx_next = lx_next / (1.0 - rates[d])
                select_lx[k, d] = lx_next
        else:
            lx_curr = ultimate.lx_at(entry)
            for d in range(period):
                if entry + d > omega:
                    break
                select_lx[k, d] = lx_curr
                lx_curr = lx_curr * (1.0 - rates[d])
    return select_lx


# =============================================================================
# MORTALITY TABLE
# =============================================================================

TableVariant = Union[UltimateTable, SelectTable]


@dataclass(frozen=True, eq=False)
class MortalityTable:
    """
    Immutable canonical mortality table.

    variant is either an UltimateTable or a SelectTable (which carries its
    own ultimate fallback). Every lookup dispatches on the variant.

    Attributes:
        variant: Table layout
        description: Free-text label
        table_id: Identity token used to key derived caches
    """
    variant: TableVariant
    description: str = "Custom Mortality Data"
    table_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    _curves: Dict[int, UltimateTable] = field(default_factory=dict, init=False, repr=False)
    _curve_lock: Any = field(default_factory=threading.Lock, init=False, repr=False)

    # ---------------------------------------------------------------- shape

    @property
    def is_select(self) -> bool:
        return isinstance(self.variant, SelectTable)

    @property
    def ultimate(self) -> UltimateTable:
        if isinstance(self.variant, SelectTable):
            return self.variant.ultimate
        return self.variant

    @property
    def min_age(self) -> int:
        return self.ultimate.min_age

    @property
    def max_age(self) -> int:
        return self.ultimate.max_age

    @property
    def omega(self) -> int:
        return self.ultimate.max_age

    @property
    def select_period(self) -> int:
        if isinstance(self.variant, SelectTable):
            return self.variant.select_period
        return 0

    @property
    def entry_ages(self) -> Tuple[int, ...]:
        if isinstance(self.variant, SelectTable):
            return self.variant.entry_ages
        return ()

    # -------------------------------------------------------------- lookups

    def qx_at(self, age, duration=None) -> float:
        """
        Mortality rate lookup.

        qx_at(age) reads the ultimate curve at attained age. For select
        tables qx_at(entry_age, duration) reads the select rate while
        duration < select_period and the ultimate rate at entry_age +
        duration afterwards.
        """
        if duration is None:
            return self.ultimate.qx_at(age)
        if isinstance(self.variant, SelectTable):
            return self.variant.qx_at(age, duration)
        return self.ultimate.qx_at(age + duration)

    def lx_at(self, age, duration=None) -> float:
        if duration is None:
            return self.ultimate.lx_at(age)
        if isinstance(self.variant, SelectTable):
            return self.variant.lx_at(age, duration)
        return self.ultimate.lx_at(age + duration)

    def px_at(self, age, duration=None) -> float:
        return 1.0 - self.qx_at(age, duration)

    def dx_at(self, age) -> float:
        return self.ultimate.dx_at(age)

    def curve(self, entry_age: Optional[int] = None) -> UltimateTable:
        """
        Attained-age curve for a life selected at entry_age.

        Ultimate tables ignore entry_age. For select tables the curve spans
        entry_age..omega: select rates for the select period, then ultimate.
        """
        if not isinstance(self.variant, SelectTable) or entry_age is None:
            return self.ultimate

        select = self.variant
        entry_age = select.entry_ages[select.entry_index(entry_age)]
        cached = self._curves.get(entry_age)
        if cached is not None:
            return cached

        with self._curve_lock:
            cached = self._curves.get(entry_age)
            if cached is None:
                cached = self._build_select_curve(select, entry_age)
                self._curves[entry_age] = cached
        return cached

    @staticmethod
    def _build_select_curve(select: SelectTable, entry_age: int) -> UltimateTable:
        ultimate = select.ultimate
        k = entry_age - select.entry_ages[0]
        span = min(select.select_period, ultimate.max_age - entry_age + 1)
        start = entry_age + span - ultimate.min_age

        qx = np.concatenate([select.select_qx[k, :span], ultimate.qx[start:]])
        lx = np.concatenate([select.select_lx[k, :span], ultimate.lx[start:]])
        qx[-1] = 1.0

        logger.debug(f"Built select curve for entry age {entry_age} ({len(qx)} ages)")
        return UltimateTable(min_age=entry_age, qx=qx, lx=lx)

    # --------------------------------------------------------- construction

    @classmethod
    def from_raw(cls, raw: Union[RawTable, Iterable[RawTableRow]],
                 radix: float = DEFAULT_RADIX,
                 description: str = "Custom Mortality Data") -> "MortalityTable":
        """Build from a RawTable (or bare rows), dispatching on its tags."""
        if not isinstance(raw, RawTable):
            raw = RawTable.from_rows(raw)

        if raw.select:
            return cls._from_select_rows(raw, radix, description)
        if raw.kind is RateKind.QX:
            return cls.from_qx_rows(raw.rows, radix=radix, description=description)
        return cls.from_lx_rows(raw.rows, description=description)

    @classmethod
    def from_qx_rows(cls, rows: Iterable[RawTableRow],
                     radix: float = DEFAULT_RADIX,
                     description: str = "Custom Mortality Data") -> "MortalityTable":
        """Ultimate table from qx rows; lx is generated from the radix."""
        rows = list(rows)
        if not rows:
            raise DataIntegrityError("Raw table contains no rows")
        radix = _as_float(radix, "radix")
        if radix <= 0:
            raise DataIntegrityError(f"Radix must be positive, got {radix}")

        ages = [_as_int(row.age, "age") for row in rows]
        qx = np.array([_as_float(row.value, f"qx at age {row.age}") for row in rows])
        ultimate = cls._ultimate_from_qx(ages, qx, radix, "Ultimate")
        return cls(variant=ultimate, description=description)

    @classmethod
    def from_lx_rows(cls, rows: Iterable[RawTableRow],
                     description: str = "Custom Mortality Data") -> "MortalityTable":
        """Ultimate table from lx rows; qx is derived from successive lx."""
        rows = list(rows)
        if not rows:
            raise DataIntegrityError("Raw table contains no rows")

        ages = [_as_int(row.age, "age") for row in rows]
        lx = np.array([_as_float(row.value, f"lx at age {row.age}") for row in rows])
        ultimate = cls._ultimate_from_lx(ages, lx, "Ultimate")
        return cls(variant=ultimate, description=description)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame, radix: Optional[float] = None,
                       description: str = "Created from DataFrame") -> "MortalityTable":
        """
        Build from a DataFrame with columns age, qx and/or lx, and an
        optional duration column for select tables.

        When both qx and lx are present (as produced by to_dataframe) the
        rates are read from qx and the radix from the first ultimate lx.
        """
        columns = set(df.columns)
        if "age" not in columns:
            raise DataIntegrityError("DataFrame must contain an 'age' column")
        has_qx, has_lx = "qx" in columns, "lx" in columns
        if not (has_qx or has_lx):
            raise DataIntegrityError("DataFrame must contain a 'qx' or 'lx' column")
        if df.empty:
            raise DataIntegrityError("DataFrame contains no rows")

        kind = RateKind.QX if has_qx else RateKind.LX
        has_duration = "duration" in columns
        if radix is None:
            radix = DEFAULT_RADIX
            if has_qx and has_lx:
                ultimate_rows = df[df["duration"] == df["duration"].max()] if has_duration else df
                radix = _as_float(ultimate_rows["lx"].iloc[0], "radix")
        rows = [
            RawTableRow(
                age=_as_int(record["age"], "age"),
                value=record[kind.value],
                kind=kind,
                duration=_as_int(record["duration"], "duration") if has_duration else None,
            )
            for record in df.to_dict("records")
        ]
        return cls.from_raw(rows, radix=radix, description=description)

    def to_dataframe(self) -> pd.DataFrame:
        """age, qx, lx columns (plus duration rows for select tables)."""
        ultimate = self.ultimate
        if not isinstance(self.variant, SelectTable):
            return pd.DataFrame({"age": ultimate.ages, "qx": ultimate.qx, "lx": ultimate.lx})

        select = self.variant
        records = []
        for k, entry in enumerate(select.entry_ages):
            for d in range(select.select_period):
                if entry + d > ultimate.max_age:
                    break
                records.append({
                    "age": entry + d, "qx": select.select_qx[k, d],
                    "lx": select.select_lx[k, d], "duration": d,
                })
        for age, q, l in zip(ultimate.ages, ultimate.qx, ultimate.lx):
            records.append({"age": int(age), "qx": q, "lx": l, "duration": select.select_period})
        return pd.DataFrame.from_records(records, columns=["age", "qx", "lx", "duration"])

    def rescaled(self, radix: Optional[float] = None, pct: float = 1.0) -> "MortalityTable":
        """
        Working copy with qx loaded by pct and lx rescaled to radix.

        The terminal rate stays 1.0. Any other loaded rate above 1.0 is a
        ValidationError.
        """
        if not math.isfinite(pct) or pct <= 0:
            raise ValidationError(f"pct must be a positive finite number, got {pct}", field="pct")
        if radix is not None and (not math.isfinite(radix) or radix <= 0):
            raise ValidationError(f"radix must be a positive finite number, got {radix}", field="radix")

        ultimate = self.ultimate
        target = ultimate.lx[0] if radix is None else float(radix)

        if pct == 1.0:
            scale = target / ultimate.lx[0]
            new_ultimate = UltimateTable(
                min_age=ultimate.min_age,
                qx=ultimate.qx.copy(),
                lx=ultimate.lx * scale,
            )
        else:
            qx = _load_rates(ultimate.qx[:-1], pct, ultimate.ages[:-1])
            qx = np.append(qx, 1.0)
            new_ultimate = UltimateTable(
                min_age=ultimate.min_age, qx=qx, lx=_lx_from_qx(qx, target)
            )

        if not isinstance(self.variant, SelectTable):
            variant = new_ultimate
        else:
            select = self.variant
            if pct == 1.0:
                select_qx = select.select_qx.copy()
                select_lx = select.select_lx * scale
            else:
                select_qx = np.full_like(select.select_qx, np.nan)
                for k, entry in enumerate(select.entry_ages):
                    valid = ~np.isnan(select.select_qx[k])
                    ages = entry + np.flatnonzero(valid)
                    select_qx[k, valid] = _load_rates(select.select_qx[k, valid], pct, ages)
                select_lx = _derive_select_lx(select.entry_ages, select_qx, new_ultimate)
            variant = SelectTable(
                entry_ages=select.entry_ages,
                select_period=select.select_period,
                select_qx=select_qx,
                select_lx=select_lx,
                ultimate=new_ultimate,
            )

        return MortalityTable(variant=variant, description=self.description)

    # ------------------------------------------------------------- internals

    @staticmethod
    def _ultimate_from_qx(ages: List[int], qx: np.ndarray, radix: float,
                          label: str) -> UltimateTable:
        _check_contiguous(ages, label)
        _check_qx_domain(qx, ages)
        ages, qx = _resolve_terminal(ages, qx)
        return UltimateTable(min_age=ages[0], qx=qx, lx=_lx_from_qx(qx, radix))

    @staticmethod
    def _ultimate_from_lx(ages: List[int], lx: np.ndarray, label: str) -> UltimateTable:
        _check_contiguous(ages, label)
        if np.any(lx < 0.0):
            idx = int(np.flatnonzero(lx < 0.0)[0])
            raise DataIntegrityError(f"lx at age {ages[idx]} is negative")
        if np.any(np.diff(lx) > 0.0):
            idx = int(np.flatnonzero(np.diff(lx) > 0.0)[0])
            raise DataIntegrityError(
                f"lx must be non-increasing: l({ages[idx]})={lx[idx]} < l({ages[idx + 1]})={lx[idx + 1]}"
            )
        if lx[0] <= 0.0:
            raise DataIntegrityError(f"lx at starting age {ages[0]} must be positive")

        # Zero-lx rows after the last survivor lie beyond omega
        alive = int(np.flatnonzero(lx > 0.0)[-1])
        if alive + 1 < len(lx):
            logger.debug(f"Dropped {len(lx) - alive - 1} zero-lx row(s) beyond age {ages[alive]}")
        ages, lx = ages[:alive + 1], lx[:alive + 1].copy()

        return UltimateTable(min_age=ages[0], qx=_qx_from_lx(lx), lx=lx)

    @classmethod
    def _from_select_rows(cls, raw: RawTable, radix: float,
                          description: str) -> "MortalityTable":
        by_duration: Dict[int, List[Tuple[int, float]]] = {}
        for row in raw.rows:
            duration = _as_int(row.duration, "duration")
            if duration < 0:
                raise DataIntegrityError(f"Duration must be non-negative, got {duration}")
            by_duration.setdefault(duration, []).append(
                (_as_int(row.age, "age"), _as_float(row.value, f"{raw.kind.value} at age {row.age}"))
            )

        durations = sorted(by_duration)
        if durations != list(range(len(durations))):
            raise DataIntegrityError(f"Durations must be contiguous from 0, got {durations}")

        period = durations[-1]
        ult_ages = [age for age, _ in by_duration[period]]
        ult_values = np.array([value for _, value in by_duration[period]])

        if raw.kind is RateKind.QX:
            ultimate = cls._ultimate_from_qx(ult_ages, ult_values, _as_float(radix, "radix"), "Ultimate")
        else:
            ultimate = cls._ultimate_from_lx(ult_ages, ult_values, "Ultimate")

        if period == 0:
            return cls(variant=ultimate, description=description)

        select_maps: List[Dict[int, float]] = []
        for d in range(period):
            ages = [age for age, _ in by_duration[d]]
            _check_contiguous(ages, f"Duration {d}")
            select_maps.append(dict(by_duration[d]))

        entry_ages = tuple(sorted(select_maps[0]))
        omega = ultimate.max_age
        if entry_ages[0] < ultimate.min_age or entry_ages[-1] > omega:
            raise DataIntegrityError(
                f"Select entry ages {entry_ages[0]}..{entry_ages[-1]} fall outside the "
                f"ultimate range [{ultimate.min_age}, {omega}]"
            )

        values = np.full((len(entry_ages), period), np.nan)
        for k, entry in enumerate(entry_ages):
            for d in range(period):
                if entry + d > omega:
                    break
                if entry + d not in select_maps[d]:
                    raise DataIntegrityError(
                        f"Missing select {raw.kind.value} for entry age {entry}, duration {d}"
                    )
                values[k, d] = select_maps[d][entry + d]

        if raw.kind is RateKind.QX:
            select_qx = values
            known = select_qx[~np.isnan(select_qx)]
            if np.any((known < 0.0) | (known > 1.0)):
                raise DataIntegrityError("Select qx values must lie in [0, 1]")
            select_lx = _derive_select_lx(entry_ages, select_qx, ultimate)
        else:
            select_lx = values
            known = select_lx[~np.isnan(select_lx)]
            if np.any(known <= 0.0):
                raise DataIntegrityError("Select lx values must be positive")
            select_qx = np.full_like(select_lx, np.nan)
            for k, entry in enumerate(entry_ages):
                for d in range(period):
                    attained = entry + d
                    if attained > omega:
                        break
                    if attained + 1 > omega:
                        lx_next = 0.0
                    elif d + 1 < period:
                        lx_next = select_lx[k, d + 1]
                    else:
                        lx_next = ultimate.lx_at(attained + 1)
                    select_qx[k, d] = 1.0 - lx_next / select_lx[k, d]
            known = select_qx[~np.isnan(select_qx)]
            if np.any((known < -QX_TOLERANCE) | (known > 1.0)):
                raise DataIntegrityError("Select lx values imply qx outside [0, 1]")
            select_qx = np.clip(select_qx, 0.0, 1.0)

        select = SelectTable(
            entry_ages=entry_ages,
            select_period=period,
            select_qx=select_qx,
            select_lx=select_lx,
            ultimate=ultimate,
        )
        return cls(variant=select, description=description)


def _load_rates(qx: np.ndarray, pct: float, ages: Sequence[int]) -> np.ndarray:
    loaded = qx * pct
    over = np.flatnonzero(loaded > 1.0 + QX_TOLERANCE)
    if over.size:
        idx = int(over[0])
        raise ValidationError(
            f"Loaded qx at age {int(ages[idx])} is {loaded[idx]:.6f} (> 1.0) with pct={pct}",
            field="pct",
        )
    return np.clip(loaded, 0.0, 1.0)


def qx_rows(ages: Sequence[int], rates: Sequence[float]) -> List[RawTableRow]:
    """Convenience: pair ages with qx values as ingestion rows."""
    return [RawTableRow(age=int(a), value=float(q), kind=RateKind.QX) for a, q in zip(ages, rates)]


def lx_rows(ages: Sequence[int], values: Sequence[float]) -> List[RawTableRow]:
    """Convenience: pair ages with lx values as ingestion rows."""
    return [RawTableRow(age=int(a), value=float(l), kind=RateKind.LX) for a, l in zip(ages, values)]
