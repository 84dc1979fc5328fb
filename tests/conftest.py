"""
tests/conftest.py - Shared mortality fixtures

Author: Actuarial Pipeline Project
License: MIT
"""

import pytest

from life_valuation.library import standard_ultimate_life_table
from life_valuation.mortality import MortalityTable, RateKind, RawTableRow, qx_rows
from life_valuation.table_config import MortTableConfig


@pytest.fixture
def select_raw_rows():
    """Two-year select table: entry ages 60-62, ultimate ages 60-63."""
    select_0 = {60: 0.010, 61: 0.015, 62: 0.030}
    select_1 = {61: 0.018, 62: 0.035, 63: 0.900}
    ultimate = {60: 0.02, 61: 0.03, 62: 0.05, 63: 1.0}

    rows = []
    for duration, rates in enumerate((select_0, select_1, ultimate)):
        for age, q in rates.items():
            rows.append(RawTableRow(age=age, value=q, kind=RateKind.QX, duration=duration))
    return rows


@pytest.fixture
def three_age_table():
    """Ages 60-62 with qx 0.01, 0.02, 1.0 and radix 1000."""
    return MortalityTable.from_qx_rows(qx_rows([60, 61, 62], [0.01, 0.02, 1.0]), radix=1000)


@pytest.fixture
def three_age_config(three_age_table):
    return MortTableConfig(table=three_age_table)


@pytest.fixture
def select_table(select_raw_rows):
    return MortalityTable.from_raw(select_raw_rows)


@pytest.fixture
def select_config(select_table):
    return MortTableConfig(table=select_table)


@pytest.fixture(scope="session")
def sult_config():
    return MortTableConfig(table=standard_ultimate_life_table())
