"""
life_valuation/commutation.py - Commutation Function Engine

Builds Dx, Cx, Mx, Nx, Rx, Sx for a mortality curve at a given interest
rate in one backward pass, and caches the result per working table and
(entry age, i).

Mathematical Framework:
- Dx = v^x · lx
- Cx = v^(x+1) · (lx - l(x+1)),  l(omega+1) = 0
- Mx = Σ_{k>=x} Ck,  Nx = Σ_{k>=x} Dk
- Rx = Σ_{k>=x} Mk,  Sx = Σ_{k>=x} Nk

Concurrency:
- Each cache key owns a lock while its table is being built; later requests
  read the finished table without locking.
- Entries live only as long as the working table they were built from.

Author: Actuarial Pipeline Project
License: MIT
"""

import logging
import threading
import weakref
from dataclasses import dataclass
from typing import Dict, NamedTuple, Optional, Tuple

import numpy as np
import pandas as pd

from .exceptions import OutOfRangeError, ValidationError
from .mortality import MortalityTable, UltimateTable, _integer_age
from .table_config import MortTableConfig
from .validation import validate_params

logger = logging.getLogger(__name__)

COLUMNS = ("Dx", "Cx", "Mx", "Nx", "Rx", "Sx")

CacheKey = Tuple[Optional[int], float]


class CommutationRow(NamedTuple):
    age: int
    Dx: float
    Cx: float
    Mx: float
    Nx: float
    Rx: float
    Sx: float


@dataclass(frozen=True, eq=False)
class CommutationTable:
    """
    Commutation columns over ages min_age..omega of one curve.

    Attributes:
        i: Effective annual interest rate
        entry_age: Selection age of the curve (None for the ultimate curve)
        min_age: First age of the curve
    """
    i: float
    entry_age: Optional[int]
    min_age: int
    Dx: np.ndarray
    Cx: np.ndarray
    Mx: np.ndarray
    Nx: np.ndarray
    Rx: np.ndarray
    Sx: np.ndarray

    def __post_init__(self):
        for name in COLUMNS:
            getattr(self, name).setflags(write=False)

    @property
    def max_age(self) -> int:
        return self.min_age + len(self.Dx) - 1

    @property
    def ages(self) -> np.ndarray:
        return np.arange(self.min_age, self.max_age + 1)

    def index(self, age: int) -> int:
        age = _integer_age(age)
        if age < self.min_age or age > self.max_age:
            raise OutOfRangeError(
                f"Age {age} outside commutation range [{self.min_age}, {self.max_age}]",
                field="x",
            )
        return age - self.min_age

    def lookup(self, age: int) -> CommutationRow:
        """All six columns at one age."""
        idx = self.index(age)
        return CommutationRow(int(age), *(float(getattr(self, name)[idx]) for name in COLUMNS))

    def value(self, column: str, age: int) -> float:
        """
        One column at one age. Every column is 0 past omega, since no lives
        remain there.
        """
        if age > self.max_age:
            return 0.0
        return float(getattr(self, column)[self.index(age)])

    def to_dataframe(self) -> pd.DataFrame:
        data = {"age": self.ages}
        data.update({name: getattr(self, name) for name in COLUMNS})
        return pd.DataFrame(data)


def build_commutation_table(curve: UltimateTable, i: float,
                            entry_age: Optional[int] = None) -> CommutationTable:
    """
    One backward pass from omega with running accumulators.

    Args:
        curve: Attained-age curve (ultimate or select view)
        i: Effective annual interest rate, > -1
        entry_age: Selection age the curve belongs to
    """
    if i <= -1:
        raise ValidationError(f"Interest rate must exceed -1, got {i}", field="i")

    v = 1.0 / (1.0 + i)
    size = len(curve.lx)
    lx = curve.lx

    Dx = np.empty(size)
    Cx = np.empty(size)
    Mx = np.empty(size)
    Nx = np.empty(size)
    Rx = np.empty(size)
    Sx = np.empty(size)

    m_acc = n_acc = r_acc = s_acc = 0.0
    lx_next = 0.0
    for k in range(size - 1, -1, -1):
        age = curve.min_age + k
        Dx[k] = v ** age * lx[k]
        Cx[k] = v ** (age + 1) * (lx[k] - lx_next)
        m_acc += Cx[k]
        n_acc += Dx[k]
        r_acc += m_acc
        s_acc += n_acc
        Mx[k], Nx[k], Rx[k], Sx[k] = m_acc, n_acc, r_acc, s_acc
        lx_next = lx[k]

    logger.debug(
        f"Built commutation table: ages {curve.min_age}-{curve.max_age}, i={i}, entry_age={entry_age}"
    )
    return CommutationTable(i=i, entry_age=entry_age, min_age=curve.min_age,
                            Dx=Dx, Cx=Cx, Mx=Mx, Nx=Nx, Rx=Rx, Sx=Sx)


class CommutationCache:
    """
    Lazily built commutation tables keyed by working table, then by
    (entry_age, i).

    Entries are held weakly against the working MortalityTable, so they are
    released together with the config that owns that table. Concurrent first
    requests for one key run the build once; populated entries are read
    without taking any lock.
    """

    def __init__(self):
        self._tables: "weakref.WeakKeyDictionary[MortalityTable, Dict[CacheKey, CommutationTable]]" = (
            weakref.WeakKeyDictionary()
        )
        self._locks: "weakref.WeakKeyDictionary[MortalityTable, Dict[CacheKey, threading.Lock]]" = (
            weakref.WeakKeyDictionary()
        )
        self._registry_lock = threading.Lock()
        self.build_count = 0

    def __len__(self) -> int:
        with self._registry_lock:
            return sum(len(tables) for tables in list(self._tables.values()))

    @staticmethod
    def key_for(mt: MortTableConfig, i: float, entry_age: Optional[int]) -> CacheKey:
        return (entry_age if mt.is_select else None, float(i))

    def get(self, mt: MortTableConfig, i: float,
            entry_age: Optional[int] = None) -> CommutationTable:
        if i <= -1:
            raise ValidationError(f"Interest rate must exceed -1, got {i}", field="i")

        owner = mt.working_table
        key = self.key_for(mt, i, entry_age)
        tables = self._tables.get(owner)
        if tables is not None:
            table = tables.get(key)
            if table is not None:
                return table

        with self._registry_lock:
            tables = self._tables.setdefault(owner, {})
            lock = self._locks.setdefault(owner, {}).setdefault(key, threading.Lock())

        with lock:
            table = tables.get(key)
            if table is None:
                table = build_commutation_table(mt.curve(key[0]), key[1], key[0])
                tables[key] = table
                with self._registry_lock:
                    self.build_count += 1
                    self._locks.get(owner, {}).pop(key, None)
        return table

    def clear(self) -> None:
        with self._registry_lock:
            self._tables.clear()
            self._locks.clear()
            self.build_count = 0


default_cache = CommutationCache()


def get_commutation_table(mt: MortTableConfig, i: float, entry_age: Optional[int] = None,
                          cache: Optional[CommutationCache] = None) -> CommutationTable:
    """Commutation table for mt at rate i, from cache (the shared default if omitted)."""
    return (cache or default_cache).get(mt, i, entry_age)


def _column(column: str, mt: MortTableConfig, i, x, entry_age) -> float:
    p = validate_params(mt, ("i", "x"), i=i, x=x, entry_age=entry_age)
    return get_commutation_table(mt, p.i, p.entry_age).value(column, p.x)


def Dx(mt: MortTableConfig, *, i=None, x=None, entry_age=None) -> float:
    """Dx = v^x · lx"""
    return _column("Dx", mt, i, x, entry_age)


def Cx(mt: MortTableConfig, *, i=None, x=None, entry_age=None) -> float:
    """Cx = v^(x+1) · dx"""
    return _column("Cx", mt, i, x, entry_age)


def Mx(mt: MortTableConfig, *, i=None, x=None, entry_age=None) -> float:
    return _column("Mx", mt, i, x, entry_age)


def Nx(mt: MortTableConfig, *, i=None, x=None, entry_age=None) -> float:
    return _column("Nx", mt, i, x, entry_age)


def Rx(mt: MortTableConfig, *, i=None, x=None, entry_age=None) -> float:
    return _column("Rx", mt, i, x, entry_age)


def Sx(mt: MortTableConfig, *, i=None, x=None, entry_age=None) -> float:
    return _column("Sx", mt, i, x, entry_age)
