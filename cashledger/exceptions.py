"""
Custom exceptions for CashLedger.

Purpose
-------
Provides a unified exception hierarchy for consistent error handling
across all CashLedger modules. All exceptions inherit from CashLedgerError,
enabling catch-all handling when needed.

Exception Hierarchy
-------------------
CashLedgerError (base)
├── ConfigurationError - Invalid configuration or settings
├── ValidationError - Malformed input data
│   ├── TransactionError - Bad quantity, price, commission or kind
│   ├── ContractError - Bad duration, frequency, amount or adjustment mode
│   └── SeriesError - Non-monotonic appends or non-finite values
└── OversellError - SELL exceeds inventory under the "raise" policy

Notes
-----
Data sparseness (missing index months, FX dates before the first quote) and
XIRR non-convergence are NOT errors: they surface as ``None`` fields or a
``None`` rate.

Usage
-----
>>> from cashledger.exceptions import TransactionError
>>>
>>> raise TransactionError("quantity must be positive, got 0")
>>>
>>> # Catch all CashLedger exceptions
>>> try:
...     result = match_lots(transactions)
... except CashLedgerError as e:
...     print(f"CashLedger error: {e}")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .fifo import OversellWarning


class CashLedgerError(Exception):
    """
    Base exception for all CashLedger errors.

    Examples
    --------
    >>> try:
    ...     generate_schedule(contract, indicators)
    ... except CashLedgerError as e:
    ...     logger.error(f"Schedule generation failed: {e}")
    """
    pass


class ConfigurationError(CashLedgerError):
    """
    Invalid configuration or settings.

    Raised when a configuration file or setting cannot be turned into
    engine inputs, such as:
    - Unknown oversell policy
    - Unreadable or schema-invalid JSON input files
    """
    pass


class ValidationError(CashLedgerError):
    """
    Malformed input data.

    Raised when engine inputs fail validation checks. Validation errors
    fail fast and are never silently coerced.

    Examples
    --------
    >>> raise ValidationError(
    ...     "amounts and dates must have the same length, got 3 and 2"
    ... )
    """
    pass


class TransactionError(ValidationError):
    """
    Malformed transaction.

    Raised for:
    - Non-positive quantity
    - Negative unit price or commission
    - Unrecognized transaction kind

    Examples
    --------
    >>> raise TransactionError("Unknown transaction kind 'SWAP'. Expected BUY or SELL.")
    """
    pass


class ContractError(ValidationError):
    """
    Malformed rental contract.

    Raised for:
    - Non-positive duration or adjustment frequency
    - Negative initial amount
    - Unknown adjustment mode
    """
    pass


class SeriesError(ValidationError):
    """
    Invalid time-series operation.

    Raised when appending a point that is not strictly after the last
    known date, or when a value is not finite.
    """
    pass


class OversellError(CashLedgerError):
    """
    SELL quantity exceeds available inventory.

    Raised only under the ``oversell="raise"`` policy. The default policy
    fills what is available and reports the remainder as an
    ``OversellWarning`` instead.

    Attributes
    ----------
    warning : OversellWarning
        The sale date and requested/filled/unfilled quantities.
    """

    def __init__(self, message: str, warning: OversellWarning) -> None:
        super().__init__(message)
        self.warning = warning
