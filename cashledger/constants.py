"""
Global constants for CashLedger.

Purpose
-------
Centralizes default values and magic numbers used by the accounting
engines. Using constants instead of hardcoded values keeps the solver
tolerances, currency codes and indicator keys consistent across modules.

Usage
-----
>>> from cashledger.constants import DEFAULT_XIRR_GUESSES, LOCAL_CURRENCY
>>>
>>> rate = xirr(amounts, dates, guesses=DEFAULT_XIRR_GUESSES)

Categories
----------
- Currencies: local/foreign currency codes
- Indicators: indicator type keys of the economic-indicator table
- FIFO: quantity tolerance
- XIRR: seeds, tolerances, iteration caps
- Time: calendar conversions
"""

from typing import Tuple

__all__ = [
    # Currencies
    "LOCAL_CURRENCY",
    "FOREIGN_CURRENCY",
    # Indicators
    "INDICATOR_INFLATION",
    "INDICATOR_FX",
    # FIFO
    "QUANTITY_EPSILON",
    "OVERSELL_POLICIES",
    "DEFAULT_OVERSELL_POLICY",
    # XIRR
    "DEFAULT_XIRR_GUESSES",
    "DEFAULT_XIRR_MAX_ITERS",
    "DEFAULT_XIRR_STEP_TOLERANCE",
    "DEFAULT_XIRR_NPV_TOLERANCE",
    "DEFAULT_XIRR_DERIVATIVE_FLOOR",
    "DEFAULT_XIRR_PRECISION",
    # Time
    "DAYS_PER_YEAR",
    "MONTHS_PER_YEAR",
]


# =============================================================================
# Currencies
# =============================================================================

LOCAL_CURRENCY: str = "ARS"
"""Currency in which indexed rent is contractually escalated."""

FOREIGN_CURRENCY: str = "USD"
"""Reference foreign currency quoted by the FX series (local units per unit)."""


# =============================================================================
# Indicators
# =============================================================================

INDICATOR_INFLATION: str = "IPC"
"""Monthly inflation index. Stored as percentages (3.0 means 3%)."""

INDICATOR_FX: str = "TC_USD_ARS"
"""Local-currency price of one unit of FOREIGN_CURRENCY."""


# =============================================================================
# FIFO
# =============================================================================

QUANTITY_EPSILON: float = 1e-9
"""Quantities at or below this magnitude are treated as zero."""

OVERSELL_POLICIES: Tuple[str, ...] = ("partial", "raise")
"""Accepted values for the matcher's ``oversell`` argument."""

DEFAULT_OVERSELL_POLICY: str = "partial"
"""Fill what inventory allows and report the unfilled remainder."""


# =============================================================================
# XIRR
# =============================================================================

DEFAULT_XIRR_GUESSES: Tuple[float, ...] = (0.05, 0.10, 0.01, -0.10, 0.20)
"""Seed rates tried in order; the first converged seed wins."""

DEFAULT_XIRR_MAX_ITERS: int = 200
"""Newton-Raphson iteration cap per seed."""

DEFAULT_XIRR_STEP_TOLERANCE: float = 1e-9
"""Successive iterates closer than this are considered converged."""

DEFAULT_XIRR_NPV_TOLERANCE: float = 1e-4
"""A converged rate is accepted only if |NPV(rate)| is below this."""

DEFAULT_XIRR_DERIVATIVE_FLOOR: float = 1e-12
"""A derivative smaller than this abandons the current seed."""

DEFAULT_XIRR_PRECISION: int = 10
"""Decimal places of the returned rate."""


# =============================================================================
# Time
# =============================================================================

DAYS_PER_YEAR: float = 365.0
"""Day-count denominator for XIRR exponents (Actual/365)."""

MONTHS_PER_YEAR: int = 12
"""Number of months in a year."""
