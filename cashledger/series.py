"""
Time-series index module for CashLedger.

Purpose
-------
Read-only lookup structures over dated economic indicators consumed by the
cash-flow generator: a monthly inflation index (IPC) and a local/foreign FX
rate. Both are sparse step functions: a lookup returns the last known value
on or before the requested date.

Key components
--------------
- IndexedSeries:
    Sorted, append-only mapping date -> decimal backed by a pandas Series.
    Monthly series normalize their keys to first-of-month so that any date
    inside a month resolves to that month's value.

- EconomicIndicators:
    Frozen bundle of the two series used by one batch run, with a loader
    for rows of the persistent indicator table keyed by (type, date).

Example
-------
>>> from datetime import date
>>> ipc = IndexedSeries.monthly({date(2024, 1, 1): 0.02, date(2024, 2, 1): 0.03})
>>> ipc.get_month(date(2024, 2, 17))
0.03
>>> fx = IndexedSeries({date(2024, 1, 10): 800.0, date(2024, 2, 5): 850.0})
>>> fx.asof(date(2024, 1, 31))
800.0
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping, Optional

import numpy as np
import pandas as pd

from .constants import INDICATOR_FX, INDICATOR_INFLATION
from .exceptions import SeriesError
from .types import IndicatorRecordDict
from .utils import first_of_month, month_index, to_date

__all__ = [
    "IndexedSeries",
    "EconomicIndicators",
]

logger = logging.getLogger(__name__)


class IndexedSeries:
    """
    Sparse, step-wise dated series of decimal values.

    Parameters
    ----------
    data : Mapping[date, float], optional
        Observations. Duplicate keys (after month normalization) keep the
        last value, matching an upsert-by-(type, date) table.
    monthly : bool, default False
        Normalize keys to first-of-month and enable ``get_month``.
    name : str, default "value"
        Label used in frames and log messages.

    Notes
    -----
    - Instances are treated as immutable by readers; ``append`` returns a new
      series and rejects points that are not strictly after the last date.
    - ``asof`` falls back to the earliest known value for dates before the
      first observation, and to 0.0 when the series is empty.
    """

    def __init__(
        self,
        data: Optional[Mapping[date, float]] = None,
        *,
        monthly: bool = False,
        name: str = "value",
    ) -> None:
        self.is_monthly = monthly
        self.name = name

        items = list((data or {}).items())
        dates = []
        values = []
        for key, value in items:
            d = to_date(key)
            if monthly:
                d = first_of_month(d)
            v = float(value)
            if not math.isfinite(v):
                raise SeriesError(f"{name}: value for {d} must be finite, got {value}.")
            dates.append(pd.Timestamp(d))
            values.append(v)

        s = pd.Series(values, index=pd.DatetimeIndex(dates), dtype=float, name=name)
        s = s[~s.index.duplicated(keep="last")].sort_index()
        self._data = s

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def monthly(
        cls, data: Optional[Mapping[date, float]] = None, *, name: str = "value"
    ) -> "IndexedSeries":
        """Build a month-keyed series (inflation-style)."""
        return cls(data, monthly=True, name=name)

    @classmethod
    def from_pandas(cls, series: pd.Series, *, monthly: bool = False) -> "IndexedSeries":
        """Build from a pandas Series indexed by dates."""
        data = {to_date(k): float(v) for k, v in series.items()}
        return cls(data, monthly=monthly, name=str(series.name or "value"))

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return int(self._data.size)

    def __repr__(self) -> str:
        kind = "monthly" if self.is_monthly else "daily"
        return f"IndexedSeries(name={self.name!r}, {kind}, n={len(self)})"

    @property
    def is_empty(self) -> bool:
        return self._data.empty

    @property
    def first_date(self) -> Optional[date]:
        return None if self.is_empty else self._data.index[0].date()

    @property
    def last_date(self) -> Optional[date]:
        return None if self.is_empty else self._data.index[-1].date()

    def to_series(self) -> pd.Series:
        """Return a copy of the underlying pandas Series."""
        return self._data.copy()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def has_month(self, d: date) -> bool:
        """True if a value is recorded for *d*'s calendar month."""
        return self.get_month(d) is not None

    def get_month(self, d: date) -> Optional[float]:
        """Exact calendar-month lookup; None if that month has no value.

        On a non-monthly series, returns the last observation inside the
        month of *d*.
        """
        if self.is_empty:
            return None
        d = to_date(d)
        start = pd.Timestamp(first_of_month(d))
        end = start + pd.offsets.MonthBegin(1)
        window = self._data[(self._data.index >= start) & (self._data.index < end)]
        if window.empty:
            return None
        return float(window.iloc[-1])

    def asof(self, d: date, *, fallback_to_earliest: bool = True) -> float:
        """Latest value on or before *d*.

        Parameters
        ----------
        d : date
            Lookup date.
        fallback_to_earliest : bool, default True
            When *d* precedes the first observation, return the earliest
            value instead of 0.0.

        Returns
        -------
        float
            The step-function value, or 0.0 for an empty series.
        """
        if self.is_empty:
            return 0.0
        ts = pd.Timestamp(to_date(d))
        pos = int(self._data.index.searchsorted(ts, side="right"))
        if pos == 0:
            return float(self._data.iloc[0]) if fallback_to_earliest else 0.0
        return float(self._data.iloc[pos - 1])

    def window(self, start: date, periods: int) -> np.ndarray:
        """Month values for *periods* consecutive months from *start*.

        Observations are bucketed by calendar month (last one wins), so
        series keyed on mid-month or month-end dates resolve like
        ``get_month``. Missing months are NaN.
        """
        months = month_index(to_date(start), periods).to_period("M")
        if self.is_empty:
            return np.full(len(months), np.nan)
        by_month = self._data.groupby(self._data.index.to_period("M")).last()
        return by_month.reindex(months).to_numpy(dtype=float)

    # ------------------------------------------------------------------
    # Append-only update
    # ------------------------------------------------------------------

    def append(self, d: date, value: float) -> "IndexedSeries":
        """Return a new series with one more point strictly after the last."""
        d = to_date(d)
        if self.is_monthly:
            d = first_of_month(d)
        last = self.last_date
        if last is not None and d <= last:
            raise SeriesError(
                f"{self.name}: cannot append {d}; series is append-only and ends at {last}."
            )
        data = {k.date(): float(v) for k, v in self._data.items()}
        data[d] = value
        return IndexedSeries(data, monthly=self.is_monthly, name=self.name)


@dataclass(frozen=True)
class EconomicIndicators:
    """
    Indicator series loaded once per batch run.

    Attributes
    ----------
    inflation : IndexedSeries
        Monthly index rates as decimals (0.02 = 2%).
    fx : IndexedSeries
        Local-currency units per unit of foreign currency.
    """

    inflation: IndexedSeries = field(default_factory=lambda: IndexedSeries.monthly(name=INDICATOR_INFLATION))
    fx: IndexedSeries = field(default_factory=lambda: IndexedSeries(name=INDICATOR_FX))

    @classmethod
    def from_records(
        cls,
        records: Iterable[IndicatorRecordDict],
        *,
        inflation_type: str = INDICATOR_INFLATION,
        fx_type: str = INDICATOR_FX,
        inflation_in_percent: bool = True,
    ) -> "EconomicIndicators":
        """
        Build both series from indicator-table rows.

        Parameters
        ----------
        records : Iterable[IndicatorRecordDict]
            Rows with ``type``, ``date`` and ``value`` keys.
        inflation_type, fx_type : str
            Indicator type keys to pick out.
        inflation_in_percent : bool, default True
            Inflation rows store percentages (3.0 for 3%); divide by 100.

        Notes
        -----
        Rows of any other type are ignored.
        """
        inflation = {}
        fx = {}
        skipped = 0
        for row in records:
            kind = row["type"]
            d = to_date(row["date"])
            value = float(row["value"])
            if kind == inflation_type:
                inflation[d] = value / 100.0 if inflation_in_percent else value
            elif kind == fx_type:
                fx[d] = value
            else:
                skipped += 1
        if skipped:
            logger.debug("Ignored %d indicator rows of unrelated types", skipped)
        return cls(
            inflation=IndexedSeries.monthly(inflation, name=inflation_type),
            fx=IndexedSeries(fx, name=fx_type),
        )
