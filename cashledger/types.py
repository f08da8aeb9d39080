"""
Type definitions for CashLedger.

Purpose
-------
Provides TypedDict definitions for the structured dictionaries that cross
the package boundary: rows read from the indicator table and the
serialized forms of engine results.

Type Definitions
----------------
IndicatorRecordDict
    One indicator-table row: {"type", "date", "value"}

RealizedGainDict / OpenPositionDict
    Serialized FIFO events, tagged by "status" ("CLOSED" / "OPEN")

CashflowEntryDict
    Serialized schedule row

FifoResultDict
    Serialized matcher output
"""

from datetime import date
from typing import List, Literal, Optional, Union

from typing_extensions import NotRequired, TypedDict

__all__ = [
    "IndicatorRecordDict",
    "RealizedGainDict",
    "OpenPositionDict",
    "OversellWarningDict",
    "FifoResultDict",
    "CashflowEntryDict",
]


class IndicatorRecordDict(TypedDict):
    """
    One row of the economic-indicator table.

    Attributes
    ----------
    type : str
        Indicator key, e.g. "IPC" or "TC_USD_ARS".
    date : date or str
        Observation date (ISO string accepted).
    value : float
        Raw stored value. IPC rows are percentages.
    """

    type: str
    date: Union[date, str]
    value: float


class RealizedGainDict(TypedDict):
    status: Literal["CLOSED"]
    sale_date: str
    quantity_sold: float
    sell_unit_price: float
    sell_commission: float
    weighted_avg_cost_basis_price: float
    prorated_buy_commission: float
    gain_absolute: float
    gain_percent: float
    currency: str
    quantity_requested: float
    unfilled_quantity: float
    buy_exchange_rate_avg: float


class OpenPositionDict(TypedDict):
    status: Literal["OPEN"]
    origin_date: str
    quantity: float
    unit_price: float
    prorated_commission: float
    currency: str
    original_lot_quantity: float
    exchange_rate: float


class OversellWarningDict(TypedDict):
    sale_date: str
    quantity_requested: float
    quantity_filled: float
    quantity_unfilled: float


class FifoResultDict(TypedDict):
    """
    Serialized matcher output.

    ``instrument`` is present only when the caller supplied one.
    """

    instrument: NotRequired[str]
    realized_gains: List[RealizedGainDict]
    open_positions: List[OpenPositionDict]
    total_realized_gain: float
    oversells: List[OversellWarningDict]


class CashflowEntryDict(TypedDict):
    contract_id: NotRequired[Optional[str]]
    date: str
    month_index: int
    amount_local: float
    amount_foreign: float
    monthly_index_rate: Optional[float]
    accumulated_index_since_adjustment: Optional[float]
    fx_rate: float
    fx_rate_at_origin: float
    fx_rate_at_closing_of_month: float
    accumulated_inflation_since_start: Optional[float]
    accumulated_devaluation_since_start: Optional[float]
