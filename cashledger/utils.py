"""General utilities for CashLedger

Contents
--------
- Validation helpers
- Calendar helpers (first/last of month, month arithmetic, day counts)
- Index builders (first-of-month DatetimeIndex)
- Compounding helpers
"""

from __future__ import annotations

import calendar
import math
from datetime import date, datetime
from typing import Iterable

import numpy as np
import pandas as pd

__all__ = [
    # Validation
    "check_non_negative",
    "check_finite",
    # Calendar
    "to_date",
    "first_of_month",
    "last_day_of_month",
    "add_months",
    "month_offset",
    "days_between",
    # Index
    "month_index",
    # Compounding
    "compound_rates",
]

# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def check_non_negative(name: str, value: float) -> None:
    """Raise if *value* is negative (strict)."""
    if value < 0:
        raise ValueError(f"{name} must be non-negative (got {value}).")


def check_finite(name: str, value: float) -> None:
    """Raise if *value* is NaN or infinite."""
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite (got {value}).")


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------

def to_date(value: date | datetime | pd.Timestamp | str) -> date:
    """Coerce datetimes, Timestamps and ISO strings to a plain ``date``."""
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    raise TypeError(f"Cannot interpret {value!r} as a date.")


def first_of_month(d: date) -> date:
    """Return the first calendar day of *d*'s month."""
    return date(d.year, d.month, 1)


def last_day_of_month(d: date) -> date:
    """Return the last calendar day of *d*'s month."""
    return date(d.year, d.month, calendar.monthrange(d.year, d.month)[1])


def add_months(d: date, months: int) -> date:
    """Shift *d* by *months* calendar months, normalized to first-of-month.

    Negative values move backwards. Day-of-month is discarded, so month-end
    overflow (Jan 31 + 1) cannot occur.
    """
    total = d.year * 12 + (d.month - 1) + int(months)
    return date(total // 12, total % 12 + 1, 1)


def month_offset(start_date: date, target_date: date) -> int:
    """
    Calculate month offset between two dates.

    Parameters
    ----------
    start_date : date
        Reference start date (month 0).
    target_date : date
        Target date.

    Returns
    -------
    int
        Month offset (0-indexed). Negative if target_date < start_date.
    """
    year_diff = target_date.year - start_date.year
    month_diff = target_date.month - start_date.month
    return year_diff * 12 + month_diff


def days_between(start: date, end: date) -> int:
    """Whole calendar days from *start* to *end* (negative if end < start)."""
    return (to_date(end) - to_date(start)).days


# ---------------------------------------------------------------------------
# Index helpers
# ---------------------------------------------------------------------------

def month_index(start: date, months: int) -> pd.DatetimeIndex:
    """Construct a first-of-month DatetimeIndex for *months* periods from *start*'s month."""
    if months <= 0:
        return pd.DatetimeIndex([], dtype="datetime64[ns]")
    first = pd.Timestamp(start.year, start.month, 1)
    return pd.date_range(start=first, periods=months, freq="MS")


# ---------------------------------------------------------------------------
# Compounding helpers
# ---------------------------------------------------------------------------

def compound_rates(rates: Iterable[float]) -> float:
    """Compound periodic rates: prod(1 + r_k) - 1.

    An empty input compounds to 0.0.
    """
    arr = np.fromiter((float(r) for r in rates), dtype=float)
    if arr.size == 0:
        return 0.0
    return float(np.prod(1.0 + arr) - 1.0)
