"""
Money-weighted return module for CashLedger.

Purpose
-------
Solves for the annualized internal rate of return of an irregular, dated
cashflow stream (XIRR):

    sum_i amounts[i] / (1 + r) ** (days[i] / 365) = 0

where days[i] is the number of whole days from dates[0] to dates[i].

Method
------
Newton-Raphson from a fixed, ordered list of seed rates, using the
closed-form derivative

    NPV'(r) = sum_i -(days[i] / 365) * amounts[i] / (1 + r) ** (days[i] / 365 + 1)

A seed is abandoned when the derivative vanishes or the iterate stops being
finite. The first seed whose final rate satisfies |NPV(r)| < 1e-4 wins and
is rounded to 10 decimals.

No solution is a normal outcome: ``xirr`` returns ``None`` and callers are
expected to display it as "N/A".

Example
-------
>>> from datetime import date
>>> xirr([-1000.0, 1100.0], [date(2023, 1, 1), date(2024, 1, 1)])
0.1
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Sequence

import numpy as np

from .constants import (
    DAYS_PER_YEAR,
    DEFAULT_XIRR_DERIVATIVE_FLOOR,
    DEFAULT_XIRR_GUESSES,
    DEFAULT_XIRR_MAX_ITERS,
    DEFAULT_XIRR_NPV_TOLERANCE,
    DEFAULT_XIRR_PRECISION,
    DEFAULT_XIRR_STEP_TOLERANCE,
)
from .exceptions import ValidationError
from .fifo import Transaction, TransactionKind
from .utils import days_between, to_date

__all__ = [
    "xnpv",
    "xirr",
    "CashflowStream",
]

logger = logging.getLogger(__name__)


def _year_fractions(dates: Sequence[date]) -> np.ndarray:
    d0 = dates[0]
    return np.array([days_between(d0, d) for d in dates], dtype=float) / DAYS_PER_YEAR


def _validate(amounts: Sequence[float], dates: Sequence[date]) -> tuple[np.ndarray, List[date]]:
    if len(amounts) != len(dates):
        raise ValidationError(
            f"amounts and dates must have the same length, got {len(amounts)} and {len(dates)}."
        )
    values = np.asarray(amounts, dtype=float)
    if values.ndim != 1:
        raise ValidationError(f"amounts must be 1-D, got shape {values.shape}.")
    if not np.isfinite(values).all():
        raise ValidationError("amounts must contain only finite values.")
    return values, [to_date(d) for d in dates]


def _npv(rate: float, values: np.ndarray, t: np.ndarray) -> float:
    with np.errstate(all="ignore"):
        return float(np.sum(values / np.power(1.0 + rate, t)))


def _npv_derivative(rate: float, values: np.ndarray, t: np.ndarray) -> float:
    with np.errstate(all="ignore"):
        return float(np.sum(-t * values / np.power(1.0 + rate, t + 1.0)))


def xnpv(rate: float, amounts: Sequence[float], dates: Sequence[date]) -> float:
    """Net present value of dated flows at annual *rate* (Actual/365, day 0 = dates[0])."""
    values, ds = _validate(amounts, dates)
    if values.size == 0:
        return 0.0
    return _npv(float(rate), values, _year_fractions(ds))


def xirr(
    amounts: Sequence[float],
    dates: Sequence[date],
    *,
    guesses: Sequence[float] = DEFAULT_XIRR_GUESSES,
    max_iter: int = DEFAULT_XIRR_MAX_ITERS,
    step_tolerance: float = DEFAULT_XIRR_STEP_TOLERANCE,
    npv_tolerance: float = DEFAULT_XIRR_NPV_TOLERANCE,
    derivative_floor: float = DEFAULT_XIRR_DERIVATIVE_FLOOR,
    precision: int = DEFAULT_XIRR_PRECISION,
) -> Optional[float]:
    """
    Annualized money-weighted rate of return.

    Parameters
    ----------
    amounts : Sequence[float]
        Signed flows (negative = money invested, positive = money returned).
    dates : Sequence[date]
        Flow dates, parallel to *amounts*. ``dates[0]`` is day 0; the
        sequence need not be sorted.
    guesses : Sequence[float]
        Seed rates tried in order.
    max_iter : int
        Iteration cap per seed.
    step_tolerance : float
        Convergence threshold on |r_{n+1} - r_n|.
    npv_tolerance : float
        Acceptance threshold on |NPV(r)|.
    derivative_floor : float
        |NPV'| below this abandons the seed.
    precision : int
        Decimal places of the returned rate.

    Returns
    -------
    float or None
        The rate, or None when fewer than two flows are given, the flows do
        not change sign, or no seed converges.

    Raises
    ------
    ValidationError
        If *amounts* and *dates* differ in length or amounts are not finite.
    """
    values, ds = _validate(amounts, dates)
    if values.size < 2 or not (values > 0).any() or not (values < 0).any():
        return None

    t = _year_fractions(ds)

    for guess in guesses:
        rate = float(guess)
        diverged = False
        for _ in range(max_iter):
            f = _npv(rate, values, t)
            df = _npv_derivative(rate, values, t)
            if not np.isfinite(df) or abs(df) < derivative_floor:
                diverged = True
                break
            new_rate = rate - f / df
            if not np.isfinite(new_rate):
                diverged = True
                break
            if abs(new_rate - rate) < step_tolerance:
                rate = new_rate
                break
            rate = new_rate

        if diverged:
            continue
        residual = _npv(rate, values, t)
        if np.isfinite(rate) and np.isfinite(residual) and abs(residual) < npv_tolerance:
            return round(rate, precision)

    logger.debug("XIRR did not converge for %d flows from any of %d seeds", values.size, len(guesses))
    return None


@dataclass(frozen=True)
class CashflowStream:
    """
    Parallel (amount, date) sequence fed to the solver.

    Examples
    --------
    >>> stream = CashflowStream.from_transactions(
    ...     transactions, market_value=1250.0, valuation_date=date(2024, 6, 30)
    ... )
    >>> stream.xirr()
    """

    amounts: List[float] = field(default_factory=list)
    dates: List[date] = field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.amounts) != len(self.dates):
            raise ValidationError(
                f"amounts and dates must have the same length, got {len(self.amounts)} and {len(self.dates)}."
            )
        object.__setattr__(self, "amounts", [float(a) for a in self.amounts])
        object.__setattr__(self, "dates", [to_date(d) for d in self.dates])

    def __len__(self) -> int:
        return len(self.amounts)

    def add(self, amount: float, when: date) -> "CashflowStream":
        """Return a new stream with one more flow."""
        return CashflowStream([*self.amounts, amount], [*self.dates, when])

    def sorted(self) -> "CashflowStream":
        """Return the flows ordered by date (stable)."""
        pairs = sorted(zip(self.dates, self.amounts), key=lambda p: p[0])
        return CashflowStream([a for _, a in pairs], [d for d, _ in pairs])

    def xnpv(self, rate: float) -> float:
        return xnpv(rate, self.amounts, self.dates)

    def xirr(self, **kwargs) -> Optional[float]:
        """Solve this stream; keyword arguments are forwarded to ``xirr``."""
        return xirr(self.amounts, self.dates, **kwargs)

    @classmethod
    def from_transactions(
        cls,
        transactions: Iterable[Transaction],
        *,
        market_value: Optional[float] = None,
        valuation_date: Optional[date] = None,
    ) -> "CashflowStream":
        """
        Flows implied by trades of one instrument.

        BUY contributes -(quantity * price + commission), SELL contributes
        +(quantity * price - commission). When *market_value* is given, the
        current holding is added as a terminal inflow on *valuation_date*.
        """
        txs = sorted(transactions, key=lambda tx: tx.date)
        amounts: List[float] = []
        dates: List[date] = []
        for tx in txs:
            if tx.kind is TransactionKind.BUY:
                amounts.append(-(tx.gross_amount + tx.commission))
            else:
                amounts.append(tx.gross_amount - tx.commission)
            dates.append(tx.date)
        if market_value is not None:
            if valuation_date is None:
                raise ValidationError("valuation_date is required with market_value.")
            amounts.append(float(market_value))
            dates.append(to_date(valuation_date))
        return cls(amounts, dates)

    @classmethod
    def consolidate(cls, streams: Iterable["CashflowStream"]) -> "CashflowStream":
        """Merge several streams into one, ordered by date."""
        amounts: List[float] = []
        dates: List[date] = []
        for s in streams:
            amounts.extend(s.amounts)
            dates.extend(s.dates)
        return cls(amounts, dates).sorted()
