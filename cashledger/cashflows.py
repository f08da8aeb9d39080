"""
Indexed cash-flow generation module for CashLedger.

Purpose
-------
Builds the deterministic month-by-month payment schedule of a rental
contract. Local-currency contracts can be escalated by a monthly inflation
index at fixed adjustment intervals; every entry is tracked in both the
local and the foreign currency, together with the inflation and currency
devaluation accumulated since the contract started.

Key components
--------------
- Contract:
    Immutable contract definition (start, duration, initial amount,
    currency, adjustment mode and frequency).

- CashflowEntry:
    One monthly schedule row. Optional figures are ``None`` when the
    underlying data is missing, never a fabricated number.

- generate_schedule:
    Produces exactly ``duration_months`` entries, one calendar month apart.
    The previous period's amount is threaded through an explicit
    accumulator state, so the generator holds no module-level state.

- adjustment_notice:
    Detects whether a date falls on an adjustment month and computes the
    escalated amount.

Schedule rules
--------------
For month m = 0 .. duration-1, payment date = first-of-month(start) + m:

- Local currency, INDEXED:
      m == 0                     -> initial amount
      m % freq == 0 and m != 0   -> previous * prod_{k=m-freq}^{m-1}(1 + ipc_k)
      otherwise                  -> previous (carried forward)
- Local currency, FIXED: initial amount every month.
- Foreign currency: foreign amount = initial; local = foreign * fx.
- Foreign amount of a local contract = local / fx (0 when fx is 0).

    accumulated inflation  = prod_{k<m}(1 + ipc_k) - 1   (None on any gap)
    accumulated devaluation = fx_m / fx_origin - 1        (only when the
                                                           inflation figure
                                                           is defined)

Example
-------
>>> from datetime import date
>>> contract = Contract(date(2024, 1, 1), 12, 1000.0, "ARS", "INDEXED", 3)
>>> indicators = EconomicIndicators(
...     inflation=IndexedSeries.monthly({date(2024, m, 1): 0.02 for m in range(1, 13)}),
...     fx=IndexedSeries({date(2023, 12, 29): 900.0}),
... )
>>> entries = generate_schedule(contract, indicators)
>>> round(entries[3].amount_local, 2)
1061.21
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .constants import LOCAL_CURRENCY, MONTHS_PER_YEAR
from .exceptions import ContractError
from .series import EconomicIndicators
from .utils import (
    add_months,
    compound_rates,
    first_of_month,
    last_day_of_month,
    month_offset,
    to_date,
)

__all__ = [
    "AdjustmentMode",
    "Contract",
    "CashflowEntry",
    "AdjustmentNotice",
    "generate_schedule",
    "schedule_to_frame",
    "adjustment_notice",
]

logger = logging.getLogger(__name__)


class AdjustmentMode(str, Enum):
    INDEXED = "INDEXED"
    FIXED = "FIXED"

    @classmethod
    def parse(cls, value: Union["AdjustmentMode", str]) -> "AdjustmentMode":
        """Case-insensitive parse. "IPC" is accepted as INDEXED."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().upper()
        if key == "IPC":
            return cls.INDEXED
        try:
            return cls(key)
        except ValueError:
            raise ContractError(
                f"Unknown adjustment mode {value!r}. Expected INDEXED or FIXED."
            ) from None


@dataclass(frozen=True)
class Contract:
    """
    Rental contract definition.

    Parameters
    ----------
    start_date : date
        Contract start. Payments fall on the first of each month from the
        start month onward.
    duration_months : int
        Number of monthly payments. Must be positive.
    initial_amount : float
        First-month rent in the contract currency. Must be non-negative.
    currency : str, default "ARS"
        Contract currency. Equal to the local currency means local-currency
        rent; anything else is treated as the foreign currency of the FX
        series.
    adjustment_mode : AdjustmentMode or str, default INDEXED
        INDEXED escalates local rent by the inflation index; FIXED never does.
    adjustment_frequency_months : int, default 12
        Months between adjustments. Must be positive.
    contract_id : str, optional
        Identifier used by schedule storage.

    Raises
    ------
    ContractError
        On non-positive duration or frequency, negative or non-finite
        amount, or unknown adjustment mode.
    """

    start_date: date
    duration_months: int
    initial_amount: float
    currency: str = LOCAL_CURRENCY
    adjustment_mode: AdjustmentMode = AdjustmentMode.INDEXED
    adjustment_frequency_months: int = MONTHS_PER_YEAR
    contract_id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_date", to_date(self.start_date))
        object.__setattr__(self, "adjustment_mode", AdjustmentMode.parse(self.adjustment_mode))
        object.__setattr__(self, "currency", str(self.currency).strip().upper())

        if int(self.duration_months) != self.duration_months or self.duration_months <= 0:
            raise ContractError(
                f"duration_months must be a positive integer, got {self.duration_months}."
            )
        if (
            int(self.adjustment_frequency_months) != self.adjustment_frequency_months
            or self.adjustment_frequency_months <= 0
        ):
            raise ContractError(
                "adjustment_frequency_months must be a positive integer, "
                f"got {self.adjustment_frequency_months}."
            )
        amount = float(self.initial_amount)
        if not math.isfinite(amount) or amount < 0:
            raise ContractError(f"initial_amount must be finite and non-negative, got {self.initial_amount}.")

        object.__setattr__(self, "duration_months", int(self.duration_months))
        object.__setattr__(self, "adjustment_frequency_months", int(self.adjustment_frequency_months))
        object.__setattr__(self, "initial_amount", amount)

    @property
    def end_date(self) -> date:
        """First day of the last payment month."""
        return add_months(self.start_date, self.duration_months - 1)

    def is_local(self, local_currency: str = LOCAL_CURRENCY) -> bool:
        return self.currency == local_currency.strip().upper()

    def is_adjustment_month(self, m: int) -> bool:
        return m != 0 and m % self.adjustment_frequency_months == 0


@dataclass(frozen=True)
class CashflowEntry:
    """
    One month of a contract schedule.

    Attributes
    ----------
    date : date
        Payment date (first of month).
    month_index : int
        1-based position in the schedule.
    amount_local, amount_foreign : float
        Payment in local and foreign currency.
    monthly_index_rate : float, optional
        Inflation rate recorded for the payment month (None if missing).
    accumulated_index_since_adjustment : float, optional
        Compounded index over the preceding adjustment window; set only on
        adjustment months of INDEXED contracts. Informational for
        foreign-currency contracts.
    fx_rate : float
        FX rate in force on the payment date.
    fx_rate_at_origin : float
        FX rate at the close of the month before the contract start.
    fx_rate_at_closing_of_month : float
        FX rate in force on the last day of the payment month.
    accumulated_inflation_since_start : float, optional
        prod(1 + ipc) over months before this one, minus 1.
    accumulated_devaluation_since_start : float, optional
        fx_rate / fx_rate_at_origin - 1.
    contract_id : str, optional
        Owning contract.
    """

    date: date
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
    contract_id: Optional[str] = None


@dataclass(frozen=True)
class AdjustmentNotice:
    contract_id: Optional[str]
    adjustment_date: date
    previous_amount: float
    new_amount: float
    compounded_rate: float

    @property
    def percent_change(self) -> float:
        return self.compounded_rate * 100.0


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

class _ScheduleContext(NamedTuple):
    """Per-contract lookups computed once before the month loop."""

    start: date
    is_local: bool
    fx_origin: float
    rates: np.ndarray      # index rate per schedule month, 0.0 where missing
    present: np.ndarray    # True where the index series has the month


class _ScheduleState(NamedTuple):
    """Accumulator threaded from one month to the next."""

    previous_amount_local: float
    inflation_factor: Optional[float]  # None once a month is missing


def _build_context(
    contract: Contract, indicators: EconomicIndicators, local_currency: str
) -> _ScheduleContext:
    start = first_of_month(contract.start_date)
    window = indicators.inflation.window(start, contract.duration_months)
    present = ~np.isnan(window)
    rates = np.where(present, window, 0.0)
    fx_origin = indicators.fx.asof(last_day_of_month(add_months(start, -1)))
    return _ScheduleContext(
        start=start,
        is_local=contract.is_local(local_currency),
        fx_origin=fx_origin,
        rates=rates,
        present=present,
    )


def _window_rate(ctx: _ScheduleContext, m: int, frequency: int) -> float:
    """Compounded index over the *frequency* months preceding month *m*."""
    return compound_rates(ctx.rates[m - frequency:m])


def _step(
    contract: Contract,
    m: int,
    state: _ScheduleState,
    ctx: _ScheduleContext,
    indicators: EconomicIndicators,
) -> Tuple[CashflowEntry, _ScheduleState]:
    payment_date = add_months(ctx.start, m)
    fx_rate = indicators.fx.asof(payment_date)
    fx_closing = indicators.fx.asof(last_day_of_month(payment_date))
    indexed = contract.adjustment_mode is AdjustmentMode.INDEXED
    adjusting = indexed and contract.is_adjustment_month(m)

    accumulated_index: Optional[float] = None
    if adjusting:
        accumulated_index = _window_rate(ctx, m, contract.adjustment_frequency_months)

    if ctx.is_local:
        if m == 0 or not indexed:
            amount_local = contract.initial_amount
        elif adjusting:
            amount_local = state.previous_amount_local * (1.0 + accumulated_index)
        else:
            amount_local = state.previous_amount_local
        amount_foreign = amount_local / fx_rate if fx_rate > 0 else 0.0
    else:
        # Index figure above is reporting-only here; it never touches the amount.
        amount_foreign = contract.initial_amount
        amount_local = amount_foreign * fx_rate

    inflation = None if state.inflation_factor is None else state.inflation_factor - 1.0
    devaluation = None
    if inflation is not None and ctx.fx_origin > 0 and fx_rate > 0:
        devaluation = fx_rate / ctx.fx_origin - 1.0

    entry = CashflowEntry(
        date=payment_date,
        month_index=m + 1,
        amount_local=amount_local,
        amount_foreign=amount_foreign,
        monthly_index_rate=float(ctx.rates[m]) if ctx.present[m] else None,
        accumulated_index_since_adjustment=accumulated_index,
        fx_rate=fx_rate,
        fx_rate_at_origin=ctx.fx_origin,
        fx_rate_at_closing_of_month=fx_closing,
        accumulated_inflation_since_start=inflation,
        accumulated_devaluation_since_start=devaluation,
        contract_id=contract.contract_id,
    )

    next_factor = None
    if state.inflation_factor is not None and ctx.present[m]:
        next_factor = state.inflation_factor * (1.0 + float(ctx.rates[m]))
    return entry, _ScheduleState(previous_amount_local=amount_local, inflation_factor=next_factor)


def generate_schedule(
    contract: Contract,
    indicators: EconomicIndicators,
    *,
    local_currency: str = LOCAL_CURRENCY,
) -> List[CashflowEntry]:
    """
    Generate the full monthly schedule of *contract*.

    Parameters
    ----------
    contract : Contract
        Contract definition.
    indicators : EconomicIndicators
        Inflation index (monthly decimals) and FX series.
    local_currency : str, default "ARS"
        Currency in which indexed rent is escalated.

    Returns
    -------
    list of CashflowEntry
        Exactly ``contract.duration_months`` entries, one calendar month
        apart. Calling twice with unchanged inputs yields equal lists.
    """
    ctx = _build_context(contract, indicators, local_currency)
    if indicators.fx.is_empty:
        logger.debug("FX series is empty; foreign amounts for %s default to 0", contract.contract_id)

    state = _ScheduleState(previous_amount_local=contract.initial_amount, inflation_factor=1.0)
    entries: List[CashflowEntry] = []
    for m in range(contract.duration_months):
        entry, state = _step(contract, m, state, ctx, indicators)
        entries.append(entry)
    return entries


def schedule_to_frame(entries: Sequence[CashflowEntry]) -> pd.DataFrame:
    """Schedule as a DataFrame indexed by payment date."""
    columns = [
        "month_index", "amount_local", "amount_foreign", "monthly_index_rate",
        "accumulated_index_since_adjustment", "fx_rate", "fx_rate_at_origin",
        "fx_rate_at_closing_of_month", "accumulated_inflation_since_start",
        "accumulated_devaluation_since_start",
    ]
    rows = [{c: getattr(e, c) for c in columns} for e in entries]
    index = pd.DatetimeIndex([pd.Timestamp(e.date) for e in entries], name="date")
    return pd.DataFrame(rows, index=index, columns=columns)


# ---------------------------------------------------------------------------
# Adjustment notices
# ---------------------------------------------------------------------------

def adjustment_notice(
    contract: Contract,
    indicators: EconomicIndicators,
    as_of: date,
    *,
    last_amount: Optional[float] = None,
    local_currency: str = LOCAL_CURRENCY,
) -> Optional[AdjustmentNotice]:
    """
    Compute the escalation due in the month of *as_of*, if any.

    Parameters
    ----------
    contract : Contract
        Must be a local-currency INDEXED contract; others never adjust.
    indicators : EconomicIndicators
        Index data for the preceding window.
    as_of : date
        Date whose month is checked.
    last_amount : float, optional
        Rent currently paid. Defaults to the amount the schedule carries in
        the month before *as_of*.

    Returns
    -------
    AdjustmentNotice or None
        None when the month is not an adjustment month, falls outside the
        contract, or the index window has missing months.
    """
    if contract.adjustment_mode is not AdjustmentMode.INDEXED or not contract.is_local(local_currency):
        return None

    m = month_offset(contract.start_date, to_date(as_of))
    if m <= 0 or m >= contract.duration_months or not contract.is_adjustment_month(m):
        return None

    frequency = contract.adjustment_frequency_months
    window_start = add_months(contract.start_date, m - frequency)
    window = indicators.inflation.window(window_start, frequency)
    if np.isnan(window).any():
        logger.debug(
            "Index data incomplete for %s window starting %s; no notice",
            contract.contract_id, window_start,
        )
        return None

    if last_amount is None:
        schedule = generate_schedule(contract, indicators, local_currency=local_currency)
        last_amount = schedule[m - 1].amount_local

    rate = compound_rates(window)
    return AdjustmentNotice(
        contract_id=contract.contract_id,
        adjustment_date=add_months(contract.start_date, m),
        previous_amount=float(last_amount),
        new_amount=float(last_amount) * (1.0 + rate),
        compounded_rate=rate,
    )
