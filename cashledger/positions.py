"""
Position valuation for CashLedger.

Marks the open lots of a ``FifoResult`` to a market price and combines
unrealized and realized P&L for one instrument.

Example
-------
>>> result = match_lots(transactions)
>>> summary = summarize_position(result, market_price=120.0)
>>> summary.unrealized_gain
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .exceptions import ValidationError
from .fifo import FifoResult
from .utils import check_finite, check_non_negative

__all__ = [
    "PositionSummary",
    "summarize_position",
]


@dataclass(frozen=True)
class PositionSummary:
    """
    Valuation of one instrument.

    Attributes
    ----------
    instrument : str, optional
        Ticker or identifier, if supplied.
    open_quantity : float
        Units still held.
    open_cost : float
        Purchase cost of held units including prorated buy commissions.
    average_cost : float
        open_cost / open_quantity (0.0 when flat).
    market_price : float
        Price used for valuation.
    market_value : float
        open_quantity * market_price.
    unrealized_gain : float
        market_value - open_cost.
    unrealized_gain_percent : float
        unrealized_gain / open_cost * 100 (0.0 when open_cost is 0).
    realized_gain : float
        FifoResult.total_realized_gain.
    """

    instrument: Optional[str]
    open_quantity: float
    open_cost: float
    average_cost: float
    market_price: float
    market_value: float
    unrealized_gain: float
    unrealized_gain_percent: float
    realized_gain: float

    @property
    def total_gain(self) -> float:
        return self.realized_gain + self.unrealized_gain


def summarize_position(
    result: FifoResult,
    market_price: float,
    *,
    instrument: Optional[str] = None,
) -> PositionSummary:
    """Value the open lots of *result* at *market_price*."""
    try:
        check_finite("market_price", float(market_price))
        check_non_negative("market_price", float(market_price))
    except ValueError as e:
        raise ValidationError(str(e)) from None

    quantity = result.open_quantity
    cost = float(sum(p.cost for p in result.open_positions))
    value = quantity * float(market_price)
    unrealized = value - cost

    return PositionSummary(
        instrument=instrument,
        open_quantity=quantity,
        open_cost=cost,
        average_cost=cost / quantity if quantity > 0 else 0.0,
        market_price=float(market_price),
        market_value=value,
        unrealized_gain=unrealized,
        unrealized_gain_percent=unrealized / cost * 100.0 if cost != 0 else 0.0,
        realized_gain=result.total_realized_gain,
    )
