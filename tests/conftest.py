"""
Pytest configuration and fixtures for the CashLedger test suite.

This module provides reusable fixtures for testing all CashLedger components.
Fixtures follow the principle of "arrange-act-assert" with clear separation.
"""

import json
from datetime import date
from typing import List

import pytest

from cashledger.cashflows import Contract
from cashledger.fifo import Transaction
from cashledger.series import EconomicIndicators, IndexedSeries


# ---------------------------------------------------------------------------
# Date Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def start_date() -> date:
    """Standard contract start date for tests."""
    return date(2024, 1, 1)


# ---------------------------------------------------------------------------
# Transaction Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def simple_transactions() -> List[Transaction]:
    """
    One BUY and one partial SELL.

    BUY  10 @ 100, commission 10 on 2024-01-01
    SELL  4 @ 150, commission  4 on 2024-01-31
    Realized gain: (600 - 4) - (400 + 4) = 192
    """
    return [
        Transaction(date(2024, 1, 1), "BUY", 10, 100.0, commission=10.0, currency="USD"),
        Transaction(date(2024, 1, 31), "SELL", 4, 150.0, commission=4.0, currency="USD"),
    ]


@pytest.fixture
def two_lot_transactions() -> List[Transaction]:
    """
    Two BUY lots and a SELL spanning both.

    BUY  5 @ 10, commission  5
    BUY  5 @ 20, commission 10
    SELL 7 @ 30, commission  7
    """
    return [
        Transaction(date(2024, 1, 1), "BUY", 5, 10.0, commission=5.0),
        Transaction(date(2024, 2, 1), "BUY", 5, 20.0, commission=10.0),
        Transaction(date(2024, 3, 1), "SELL", 7, 30.0, commission=7.0),
    ]


# ---------------------------------------------------------------------------
# Indicator Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def flat_inflation() -> IndexedSeries:
    """2% monthly index for every month of 2024."""
    return IndexedSeries.monthly({date(2024, m, 1): 0.02 for m in range(1, 13)}, name="IPC")


@pytest.fixture
def fx_series() -> IndexedSeries:
    """
    Step-wise FX series.

    900 at the close of 2023 (contract origin), 990 from March 2024.
    """
    return IndexedSeries(
        {date(2023, 12, 29): 900.0, date(2024, 3, 1): 990.0},
        name="TC_USD_ARS",
    )


@pytest.fixture
def indicators(flat_inflation, fx_series) -> EconomicIndicators:
    return EconomicIndicators(inflation=flat_inflation, fx=fx_series)


# ---------------------------------------------------------------------------
# Contract Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def indexed_contract(start_date) -> Contract:
    """Local-currency rent of 1000, indexed every 3 months for a year."""
    return Contract(
        start_date=start_date,
        duration_months=12,
        initial_amount=1000.0,
        currency="ARS",
        adjustment_mode="INDEXED",
        adjustment_frequency_months=3,
        contract_id="c1",
    )


@pytest.fixture
def foreign_contract(start_date) -> Contract:
    """USD-denominated rent of 500, nominally indexed every 3 months."""
    return Contract(
        start_date=start_date,
        duration_months=6,
        initial_amount=500.0,
        currency="USD",
        adjustment_mode="INDEXED",
        adjustment_frequency_months=3,
        contract_id="usd-1",
    )


# ---------------------------------------------------------------------------
# File Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def transactions_file(tmp_path):
    """Transactions JSON matching ``simple_transactions``."""
    data = {
        "instrument": "AAPL",
        "transactions": [
            {"date": "2024-01-01", "kind": "BUY", "quantity": 10, "unit_price": 100, "commission": 10},
            {"date": "2024-01-31", "type": "sell", "quantity": 4, "price": 150, "commission": 4},
        ],
    }
    path = tmp_path / "trades.json"
    path.write_text(json.dumps(data))
    return path


@pytest.fixture
def contracts_file(tmp_path):
    """Contracts JSON with one indexed contract and IPC rows stored in percent."""
    indicators = [
        {"type": "IPC", "date": f"2024-{m:02d}-01", "value": 2.0} for m in range(1, 13)
    ]
    indicators.append({"type": "TC_USD_ARS", "date": "2023-12-29", "value": 900.0})
    indicators.append({"type": "OTHER", "date": "2024-01-01", "value": 1.0})
    data = {
        "contracts": [
            {
                "contract_id": "c1",
                "start_date": "2024-01-01",
                "duration_months": 12,
                "initial_amount": 1000,
                "currency": "ARS",
                "adjustment_mode": "IPC",
                "adjustment_frequency_months": 3,
            }
        ],
        "indicators": indicators,
    }
    path = tmp_path / "contracts.json"
    path.write_text(json.dumps(data))
    return path


@pytest.fixture
def cashflows_file(tmp_path):
    """Two-flow stream returning exactly 10% over 365 days."""
    data = {"amounts": [-1000, 1100], "dates": ["2023-01-01", "2024-01-01"]}
    path = tmp_path / "flows.json"
    path.write_text(json.dumps(data))
    return path
