"""
FIFO lot matching module for CashLedger.

Purpose
-------
Computes realized gains and the remaining open-lot inventory for a single
instrument by consuming the oldest purchase lots first. The matcher is a pure
function of its transaction list: nothing is read from or written to storage,
and every run rebuilds the inventory from scratch.

Key components
--------------
- Transaction:
    Immutable BUY/SELL input. Quantity is always positive; direction is
    carried by ``kind``.

- Lot:
    Mutable purchase batch owned by one matcher run. Its remaining quantity
    decreases as SELLs consume it; it leaves the inventory at zero.

- RealizedGainEvent / OpenPositionEvent:
    The two variants of ``PositionEvent``. One realized event per SELL that
    matched inventory; one open event per surviving lot.

- match_lots:
    The matcher. Returns a ``FifoResult``.

Algorithm
---------
1. Stable sort by date (same-date transactions keep input order).
2. BUY pushes a lot onto a FIFO queue.
3. SELL of q consumes the oldest lots. A consumed quantity c of a lot adds
   ``c * unit_price`` to cost basis and
   ``(c / original_quantity) * original_commission`` to the prorated buy
   commission.
4. The SELL's own commission is charged in full to its single event:
       gain = (matched * sell_price - sell_commission)
              - (cost_basis + prorated_buy_commission)
       gain_pct = gain / (cost_basis + prorated_buy_commission) * 100

Oversell policy
---------------
A SELL larger than the inventory is either partially filled
(``oversell="partial"``, default) or rejected (``oversell="raise"``). A
partial fill is never silent: the event records ``quantity_requested`` and
``unfilled_quantity``, an ``OversellWarning`` is appended to
``FifoResult.oversells`` and a warning is logged.

Example
-------
>>> from datetime import date
>>> txs = [
...     Transaction(date(2024, 1, 1), "BUY", 10, 100.0, commission=10.0, currency="USD"),
...     Transaction(date(2024, 1, 31), "SELL", 4, 150.0, commission=4.0, currency="USD"),
... ]
>>> result = match_lots(txs)
>>> result.realized_gains[0].gain_absolute
192.0
>>> result.open_positions[0].quantity
6.0
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Deque, Iterable, List, Sequence, Union

import pandas as pd

from .constants import DEFAULT_OVERSELL_POLICY, FOREIGN_CURRENCY, OVERSELL_POLICIES, QUANTITY_EPSILON
from .exceptions import ConfigurationError, OversellError, TransactionError
from .utils import check_finite, to_date

__all__ = [
    "TransactionKind",
    "Transaction",
    "Lot",
    "RealizedGainEvent",
    "OpenPositionEvent",
    "PositionEvent",
    "OversellWarning",
    "FifoResult",
    "match_lots",
]

logger = logging.getLogger(__name__)


class TransactionKind(str, Enum):
    BUY = "BUY"
    SELL = "SELL"

    @classmethod
    def parse(cls, value: Union["TransactionKind", str]) -> "TransactionKind":
        """Case-insensitive parse; raises TransactionError on unknown kinds."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise TransactionError(
                f"Unknown transaction kind {value!r}. Expected BUY or SELL."
            ) from None


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Transaction:
    """
    One trade of a single instrument.

    Parameters
    ----------
    date : date
        Trade date. Datetimes and ISO strings are coerced to ``date``.
    kind : TransactionKind or str
        "BUY" or "SELL" (case-insensitive).
    quantity : float
        Units traded. Must be positive.
    unit_price : float
        Price per unit. Must be non-negative.
    commission : float, default 0.0
        Total commission paid on the trade. Must be non-negative.
    currency : str, default "USD"
        Currency of price and commission.
    exchange_rate : float, default 1.0
        FX rate at the moment of the trade, averaged into realized events.

    Raises
    ------
    TransactionError
        On non-positive quantity, negative price/commission, non-finite
        numbers or an unknown kind.
    """

    date: date
    kind: TransactionKind
    quantity: float
    unit_price: float
    commission: float = 0.0
    currency: str = FOREIGN_CURRENCY
    exchange_rate: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", to_date(self.date))
        object.__setattr__(self, "kind", TransactionKind.parse(self.kind))
        for name in ("quantity", "unit_price", "commission", "exchange_rate"):
            value = float(getattr(self, name))
            try:
                check_finite(name, value)
            except ValueError as e:
                raise TransactionError(str(e)) from None
            object.__setattr__(self, name, value)
        if self.quantity <= 0:
            raise TransactionError(
                f"quantity must be positive, got {self.quantity} "
                f"({self.kind.value} on {self.date}). Direction is given by kind."
            )
        if self.unit_price < 0:
            raise TransactionError(f"unit_price must be non-negative, got {self.unit_price}.")
        if self.commission < 0:
            raise TransactionError(f"commission must be non-negative, got {self.commission}.")

    @property
    def gross_amount(self) -> float:
        return self.quantity * self.unit_price


@dataclass
class Lot:
    """Open purchase batch. Mutated in place while SELLs consume it."""

    origin_date: date
    original_quantity: float
    remaining_quantity: float
    unit_price: float
    original_commission: float
    currency: str
    exchange_rate: float = 1.0

    @classmethod
    def from_buy(cls, tx: Transaction) -> "Lot":
        return cls(
            origin_date=tx.date,
            original_quantity=tx.quantity,
            remaining_quantity=tx.quantity,
            unit_price=tx.unit_price,
            original_commission=tx.commission,
            currency=tx.currency,
            exchange_rate=tx.exchange_rate,
        )

    def commission_for(self, quantity: float) -> float:
        """Share of the original commission attributable to *quantity* units."""
        if self.original_quantity <= 0:
            return 0.0
        return (quantity / self.original_quantity) * self.original_commission


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RealizedGainEvent:
    sale_date: date
    quantity_sold: float
    sell_unit_price: float
    sell_commission: float
    weighted_avg_cost_basis_price: float
    prorated_buy_commission: float
    gain_absolute: float
    gain_percent: float
    currency: str
    quantity_requested: float
    unfilled_quantity: float = 0.0
    buy_exchange_rate_avg: float = 1.0

    @property
    def cost_basis(self) -> float:
        return self.quantity_sold * self.weighted_avg_cost_basis_price

    @property
    def net_proceeds(self) -> float:
        return self.quantity_sold * self.sell_unit_price - self.sell_commission

    @property
    def is_partial_fill(self) -> bool:
        return self.unfilled_quantity > QUANTITY_EPSILON


@dataclass(frozen=True)
class OpenPositionEvent:
    origin_date: date
    quantity: float
    unit_price: float
    prorated_commission: float
    currency: str
    original_lot_quantity: float
    exchange_rate: float = 1.0

    @property
    def cost(self) -> float:
        """Purchase cost of the remaining units including their commission share."""
        return self.quantity * self.unit_price + self.prorated_commission


PositionEvent = Union[RealizedGainEvent, OpenPositionEvent]


@dataclass(frozen=True)
class OversellWarning:
    """A SELL that asked for more units than the inventory held."""

    sale_date: date
    quantity_requested: float
    quantity_filled: float
    quantity_unfilled: float


@dataclass(frozen=True)
class FifoResult:
    """
    Output of one matcher run.

    Attributes
    ----------
    realized_gains : list of RealizedGainEvent
        One per SELL that matched inventory, in processing order.
    open_positions : list of OpenPositionEvent
        Surviving lots, oldest first.
    total_realized_gain : float
        Sum of ``gain_absolute`` across realized events.
    oversells : list of OversellWarning
        SELLs that could not be fully matched (empty when none).
    """

    realized_gains: List[RealizedGainEvent] = field(default_factory=list)
    open_positions: List[OpenPositionEvent] = field(default_factory=list)
    total_realized_gain: float = 0.0
    oversells: List[OversellWarning] = field(default_factory=list)

    @property
    def open_quantity(self) -> float:
        return float(sum(p.quantity for p in self.open_positions))

    @property
    def quantity_sold(self) -> float:
        return float(sum(g.quantity_sold for g in self.realized_gains))

    @property
    def has_oversells(self) -> bool:
        return bool(self.oversells)

    def events(self) -> List[PositionEvent]:
        """All events ordered by their date (sale date or lot origin date)."""
        tagged: List[PositionEvent] = [*self.open_positions, *self.realized_gains]
        return sorted(tagged, key=_event_date)

    def realized_frame(self) -> pd.DataFrame:
        """Realized events as a DataFrame indexed by sale date."""
        columns = [
            "quantity_sold", "sell_unit_price", "sell_commission",
            "weighted_avg_cost_basis_price", "prorated_buy_commission",
            "gain_absolute", "gain_percent", "currency", "unfilled_quantity",
        ]
        rows = [{c: getattr(g, c) for c in columns} for g in self.realized_gains]
        index = pd.DatetimeIndex([pd.Timestamp(g.sale_date) for g in self.realized_gains], name="sale_date")
        return pd.DataFrame(rows, index=index, columns=columns)

    def open_frame(self) -> pd.DataFrame:
        """Open lots as a DataFrame indexed by origin date."""
        columns = ["quantity", "unit_price", "prorated_commission", "currency", "original_lot_quantity"]
        rows = [{c: getattr(p, c) for c in columns} for p in self.open_positions]
        index = pd.DatetimeIndex([pd.Timestamp(p.origin_date) for p in self.open_positions], name="origin_date")
        return pd.DataFrame(rows, index=index, columns=columns)


def _event_date(event: PositionEvent) -> date:
    if isinstance(event, RealizedGainEvent):
        return event.sale_date
    if isinstance(event, OpenPositionEvent):
        return event.origin_date
    raise TypeError(f"Unsupported position event: {type(event).__name__}")


# ---------------------------------------------------------------------------
# Matcher
# ---------------------------------------------------------------------------

def _sorted_transactions(transactions: Iterable[Transaction]) -> List[Transaction]:
    # sorted() is stable: same-date transactions keep their input order,
    # which decides which lot is oldest.
    return sorted(transactions, key=lambda tx: tx.date)


def _consume(inventory: Deque[Lot], quantity: float) -> tuple[float, float, float, float]:
    """Consume up to *quantity* units from the head of *inventory*.

    Returns (matched, cost_basis, prorated_commission, weighted_exchange_rate).
    """
    remaining = quantity
    matched = 0.0
    cost_basis = 0.0
    commission = 0.0
    weighted_fx = 0.0

    while remaining > QUANTITY_EPSILON and inventory:
        lot = inventory[0]
        if lot.remaining_quantity <= remaining + QUANTITY_EPSILON:
            consumed = lot.remaining_quantity
            inventory.popleft()
            remaining = max(remaining - consumed, 0.0)
        else:
            consumed = remaining
            lot.remaining_quantity -= consumed
            remaining = 0.0

        matched += consumed
        cost_basis += consumed * lot.unit_price
        commission += lot.commission_for(consumed)
        weighted_fx += consumed * lot.exchange_rate

    return matched, cost_basis, commission, weighted_fx


def match_lots(
    transactions: Sequence[Transaction],
    *,
    oversell: str = DEFAULT_OVERSELL_POLICY,
) -> FifoResult:
    """
    Match SELLs against the oldest BUY lots of one instrument.

    Parameters
    ----------
    transactions : Sequence[Transaction]
        All trades of a single instrument, in any order. Same-date trades
        are processed in input order.
    oversell : {"partial", "raise"}, default "partial"
        What to do when a SELL exceeds the inventory. "partial" fills the
        available units and reports the rest in ``FifoResult.oversells``;
        "raise" raises ``OversellError``.

    Returns
    -------
    FifoResult

    Raises
    ------
    TransactionError
        If an element is not a Transaction.
    ConfigurationError
        If *oversell* is not a known policy.
    OversellError
        Under ``oversell="raise"`` when a SELL exceeds the inventory.
    """
    if oversell not in OVERSELL_POLICIES:
        raise ConfigurationError(
            f"oversell must be one of {OVERSELL_POLICIES}, got {oversell!r}."
        )
    for tx in transactions:
        if not isinstance(tx, Transaction):
            raise TransactionError(f"Expected Transaction, got {type(tx).__name__}.")

    inventory: Deque[Lot] = deque()
    realized: List[RealizedGainEvent] = []
    oversells: List[OversellWarning] = []
    total_gain = 0.0

    for tx in _sorted_transactions(transactions):
        if tx.kind is TransactionKind.BUY:
            inventory.append(Lot.from_buy(tx))
            continue

        matched, cost_basis, buy_commission, weighted_fx = _consume(inventory, tx.quantity)
        unfilled = tx.quantity - matched
        if unfilled <= QUANTITY_EPSILON:
            unfilled = 0.0
        else:
            warning = OversellWarning(
                sale_date=tx.date,
                quantity_requested=tx.quantity,
                quantity_filled=matched,
                quantity_unfilled=unfilled,
            )
            if oversell == "raise":
                raise OversellError(
                    f"SELL of {tx.quantity:g} on {tx.date} exceeds inventory "
                    f"({matched:g} available).",
                    warning,
                )
            logger.warning(
                "Oversell on %s: requested %g, filled %g, unfilled %g",
                tx.date, tx.quantity, matched, unfilled,
            )
            oversells.append(warning)

        if matched <= QUANTITY_EPSILON:
            continue

        total_cost = cost_basis + buy_commission
        gain = (matched * tx.unit_price - tx.commission) - total_cost
        gain_pct = gain / total_cost * 100.0 if total_cost != 0 else 0.0

        realized.append(
            RealizedGainEvent(
                sale_date=tx.date,
                quantity_sold=matched,
                sell_unit_price=tx.unit_price,
                sell_commission=tx.commission,
                weighted_avg_cost_basis_price=cost_basis / matched,
                prorated_buy_commission=buy_commission,
                gain_absolute=gain,
                gain_percent=gain_pct,
                currency=tx.currency,
                quantity_requested=tx.quantity,
                unfilled_quantity=unfilled,
                buy_exchange_rate_avg=weighted_fx / matched,
            )
        )
        total_gain += gain

    open_positions = [
        OpenPositionEvent(
            origin_date=lot.origin_date,
            quantity=lot.remaining_quantity,
            unit_price=lot.unit_price,
            prorated_commission=lot.commission_for(lot.remaining_quantity),
            currency=lot.currency,
            original_lot_quantity=lot.original_quantity,
            exchange_rate=lot.exchange_rate,
        )
        for lot in inventory
    ]

    return FifoResult(
        realized_gains=realized,
        open_positions=open_positions,
        total_realized_gain=total_gain,
        oversells=oversells,
    )
