"""
Serialization module for CashLedger.

Purpose
-------
JSON loading of engine inputs and JSON-ready conversion of engine results.

Supports:
- Transactions of one instrument
- Contracts plus economic-indicator rows
- Cashflow streams
- FIFO results and cash-flow schedules

Design Principles
-----------------
- Type-safe: inputs are validated with the Pydantic models in ``config``
- Human-readable: plain JSON, ISO dates
- Versioned: written files carry ``schema_version``

File layouts
------------
Transactions::

    {"instrument": "AAPL", "transactions": [{"date": "2024-01-02", "kind": "BUY", ...}]}

Contracts::

    {"contracts": [{"contract_id": "c1", "start_date": "2024-01-01", ...}],
     "indicators": [{"type": "IPC", "date": "2024-01-01", "value": 2.5}, ...]}

Cashflows::

    {"amounts": [-1000, 1100], "dates": ["2023-01-01", "2024-01-01"]}

Example
-------
>>> from pathlib import Path
>>> instrument, transactions = load_transactions(Path("trades.json"))
>>> result = match_lots(transactions)
>>> save_json(fifo_result_to_dict(result, instrument=instrument), Path("out.json"))
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError as PydanticValidationError

from .cashflows import CashflowEntry, Contract
from .config import (
    CashflowStreamConfig,
    ContractConfig,
    IndicatorRecordConfig,
    TransactionConfig,
)
from .exceptions import ConfigurationError
from .fifo import (
    FifoResult,
    OpenPositionEvent,
    OversellWarning,
    PositionEvent,
    RealizedGainEvent,
    Transaction,
)
from .series import EconomicIndicators
from .types import (
    CashflowEntryDict,
    FifoResultDict,
    OpenPositionDict,
    OversellWarningDict,
    RealizedGainDict,
)
from .xirr import CashflowStream

__all__ = [
    "SCHEMA_VERSION",
    "read_json",
    "save_json",
    "transactions_from_dicts",
    "load_transactions",
    "load_contracts",
    "load_cashflow_stream",
    "event_to_dict",
    "fifo_result_to_dict",
    "entry_to_dict",
    "schedule_to_records",
]


# ---------------------------------------------------------------------------
# Schema Version
# ---------------------------------------------------------------------------

SCHEMA_VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------

def read_json(path: Path) -> Dict[str, Any]:
    """Read a JSON object from *path*, raising ConfigurationError on failure."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"File not found: {path}") from None
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from None
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a JSON object in {path}, got {type(data).__name__}.")
    return data


def save_json(data: Dict[str, Any], path: Path) -> None:
    """Write *data* as indented JSON, stamping ``schema_version``."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {"schema_version": SCHEMA_VERSION, **data}
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


def _validated(model, data: Dict[str, Any], where: str):
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid {where}: {e}") from e


# ---------------------------------------------------------------------------
# Input loaders
# ---------------------------------------------------------------------------

def transactions_from_dicts(rows: Sequence[Dict[str, Any]]) -> List[Transaction]:
    """Validate transaction rows and convert them to Transaction objects."""
    return [
        _validated(TransactionConfig, row, f"transaction #{i}").to_transaction()
        for i, row in enumerate(rows)
    ]


def load_transactions(path: Path) -> Tuple[Optional[str], List[Transaction]]:
    """
    Load one instrument's transactions.

    Returns
    -------
    (instrument, transactions)
        ``instrument`` is None when the file does not name one.
    """
    data = read_json(path)
    rows = data.get("transactions")
    if not isinstance(rows, list):
        raise ConfigurationError(f"{path}: 'transactions' must be a list.")
    return data.get("instrument"), transactions_from_dicts(rows)


def load_contracts(path: Path) -> Tuple[List[Contract], EconomicIndicators]:
    """
    Load contracts and the indicator rows they are generated against.

    IPC rows are stored in percent and converted to decimals.
    """
    data = read_json(path)
    contract_rows = data.get("contracts")
    if not isinstance(contract_rows, list):
        raise ConfigurationError(f"{path}: 'contracts' must be a list.")
    contracts = [
        _validated(ContractConfig, row, f"contract #{i}").to_contract()
        for i, row in enumerate(contract_rows)
    ]
    indicator_rows = data.get("indicators", [])
    if not isinstance(indicator_rows, list):
        raise ConfigurationError(f"{path}: 'indicators' must be a list.")
    records = [
        _validated(IndicatorRecordConfig, row, f"indicator #{i}").model_dump()
        for i, row in enumerate(indicator_rows)
    ]
    return contracts, EconomicIndicators.from_records(records)


def load_cashflow_stream(path: Path) -> CashflowStream:
    data = read_json(path)
    data.pop("schema_version", None)
    config = _validated(CashflowStreamConfig, data, "cashflow stream")
    return CashflowStream(list(config.amounts), list(config.dates))


# ---------------------------------------------------------------------------
# Result serialization
# ---------------------------------------------------------------------------

def _iso(d: date) -> str:
    return d.isoformat()


def event_to_dict(event: PositionEvent) -> RealizedGainDict | OpenPositionDict:
    """Serialize either event variant, tagged with its status."""
    if isinstance(event, RealizedGainEvent):
        return {
            "status": "CLOSED",
            "sale_date": _iso(event.sale_date),
            "quantity_sold": event.quantity_sold,
            "sell_unit_price": event.sell_unit_price,
            "sell_commission": event.sell_commission,
            "weighted_avg_cost_basis_price": event.weighted_avg_cost_basis_price,
            "prorated_buy_commission": event.prorated_buy_commission,
            "gain_absolute": event.gain_absolute,
            "gain_percent": event.gain_percent,
            "currency": event.currency,
            "quantity_requested": event.quantity_requested,
            "unfilled_quantity": event.unfilled_quantity,
            "buy_exchange_rate_avg": event.buy_exchange_rate_avg,
        }
    if isinstance(event, OpenPositionEvent):
        return {
            "status": "OPEN",
            "origin_date": _iso(event.origin_date),
            "quantity": event.quantity,
            "unit_price": event.unit_price,
            "prorated_commission": event.prorated_commission,
            "currency": event.currency,
            "original_lot_quantity": event.original_lot_quantity,
            "exchange_rate": event.exchange_rate,
        }
    raise TypeError(f"Unsupported position event: {type(event).__name__}")


def _oversell_to_dict(warning: OversellWarning) -> OversellWarningDict:
    return {
        "sale_date": _iso(warning.sale_date),
        "quantity_requested": warning.quantity_requested,
        "quantity_filled": warning.quantity_filled,
        "quantity_unfilled": warning.quantity_unfilled,
    }


def fifo_result_to_dict(result: FifoResult, *, instrument: Optional[str] = None) -> FifoResultDict:
    out: FifoResultDict = {
        "realized_gains": [event_to_dict(g) for g in result.realized_gains],
        "open_positions": [event_to_dict(p) for p in result.open_positions],
        "total_realized_gain": result.total_realized_gain,
        "oversells": [_oversell_to_dict(w) for w in result.oversells],
    }
    if instrument is not None:
        out["instrument"] = instrument
    return out


def entry_to_dict(entry: CashflowEntry) -> CashflowEntryDict:
    return {
        "contract_id": entry.contract_id,
        "date": _iso(entry.date),
        "month_index": entry.month_index,
        "amount_local": entry.amount_local,
        "amount_foreign": entry.amount_foreign,
        "monthly_index_rate": entry.monthly_index_rate,
        "accumulated_index_since_adjustment": entry.accumulated_index_since_adjustment,
        "fx_rate": entry.fx_rate,
        "fx_rate_at_origin": entry.fx_rate_at_origin,
        "fx_rate_at_closing_of_month": entry.fx_rate_at_closing_of_month,
        "accumulated_inflation_since_start": entry.accumulated_inflation_since_start,
        "accumulated_devaluation_since_start": entry.accumulated_devaluation_since_start,
    }


def schedule_to_records(entries: Sequence[CashflowEntry]) -> List[CashflowEntryDict]:
    return [entry_to_dict(e) for e in entries]
