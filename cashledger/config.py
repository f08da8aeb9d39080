"""
Configuration management module for CashLedger.

Purpose
-------
Pydantic models for type-safe validation of engine inputs read from files
(transactions, contracts, indicator rows, cashflow streams), solver
settings, and environment-driven application settings.

Design Principles
-----------------
- Type-safe: Pydantic enforces types and validates ranges
- Immutable: Frozen models prevent accidental mutation
- Serializable: Easy conversion to/from JSON
- Environment-aware: Supports .env files via pydantic-settings

Example
-------
>>> from cashledger.config import TransactionConfig, XirrConfig
>>> tx = TransactionConfig(date="2024-01-02", kind="BUY", quantity=10, unit_price=100)
>>> tx.to_transaction()
Transaction(date=datetime.date(2024, 1, 2), kind=<TransactionKind.BUY: 'BUY'>, ...)
>>>
>>> solver = XirrConfig(max_iter=500)
>>> solver.model_dump()
"""

from __future__ import annotations

import datetime
import logging
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_XIRR_DERIVATIVE_FLOOR,
    DEFAULT_XIRR_GUESSES,
    DEFAULT_XIRR_MAX_ITERS,
    DEFAULT_XIRR_NPV_TOLERANCE,
    DEFAULT_XIRR_PRECISION,
    DEFAULT_XIRR_STEP_TOLERANCE,
    FOREIGN_CURRENCY,
    LOCAL_CURRENCY,
    MONTHS_PER_YEAR,
)

__all__ = [
    "TransactionConfig",
    "ContractConfig",
    "IndicatorRecordConfig",
    "CashflowStreamConfig",
    "XirrConfig",
    "AppSettings",
    "configure_logging",
]


# ---------------------------------------------------------------------------
# Transaction Configuration
# ---------------------------------------------------------------------------

class TransactionConfig(BaseModel):
    """
    One trade as read from a transactions file.

    Attributes
    ----------
    date : datetime.date
        Trade date.
    kind : str
        "BUY" or "SELL" (case-insensitive). Also accepted under the key "type".
    quantity : float
        Positive number of units.
    unit_price : float
        Non-negative price per unit. Also accepted under the key "price".
    commission : float
        Non-negative commission.
    currency : str
        Price currency.
    exchange_rate : float
        FX rate at trade time.

    Examples
    --------
    >>> TransactionConfig(date="2024-03-01", type="sell", quantity=4, price=150, commission=4)
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    date: datetime.date = Field(description="Trade date")
    kind: Literal["BUY", "SELL"] = Field(alias="type", description="Trade direction")
    quantity: float = Field(gt=0, description="Units traded (always positive)")
    unit_price: float = Field(ge=0, alias="price", description="Price per unit")
    commission: float = Field(default=0.0, ge=0, description="Commission paid")
    currency: str = Field(default=FOREIGN_CURRENCY, min_length=1, max_length=10, description="Price currency")
    exchange_rate: float = Field(default=1.0, gt=0, description="FX rate at trade time")

    @field_validator("kind", mode="before")
    @classmethod
    def normalize_kind(cls, v):
        """Accept lower/mixed case kinds."""
        return str(v).strip().upper() if v is not None else v

    def to_transaction(self):
        from .fifo import Transaction

        return Transaction(
            date=self.date,
            kind=self.kind,
            quantity=self.quantity,
            unit_price=self.unit_price,
            commission=self.commission,
            currency=self.currency,
            exchange_rate=self.exchange_rate,
        )


# ---------------------------------------------------------------------------
# Contract Configuration
# ---------------------------------------------------------------------------

class ContractConfig(BaseModel):
    """
    Rental contract as read from a contracts file.

    Examples
    --------
    >>> ContractConfig(
    ...     contract_id="depto-1",
    ...     start_date="2024-01-01",
    ...     duration_months=24,
    ...     initial_amount=350_000,
    ...     currency="ARS",
    ...     adjustment_mode="IPC",
    ...     adjustment_frequency_months=3,
    ... )
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    contract_id: Optional[str] = Field(default=None, max_length=100, description="Contract identifier")
    start_date: datetime.date = Field(description="Contract start date")
    duration_months: int = Field(gt=0, le=1200, description="Number of monthly payments")
    initial_amount: float = Field(ge=0, description="First-month rent")
    currency: str = Field(default=LOCAL_CURRENCY, min_length=1, max_length=10, description="Contract currency")
    adjustment_mode: Literal["INDEXED", "FIXED"] = Field(default="INDEXED", description="Escalation mode")
    adjustment_frequency_months: int = Field(default=MONTHS_PER_YEAR, gt=0, description="Months between adjustments")

    @field_validator("adjustment_mode", mode="before")
    @classmethod
    def normalize_mode(cls, v):
        """Accept "IPC" as INDEXED and any casing."""
        if v is None:
            return v
        key = str(v).strip().upper()
        return "INDEXED" if key == "IPC" else key

    def to_contract(self):
        from .cashflows import Contract

        return Contract(
            start_date=self.start_date,
            duration_months=self.duration_months,
            initial_amount=self.initial_amount,
            currency=self.currency,
            adjustment_mode=self.adjustment_mode,
            adjustment_frequency_months=self.adjustment_frequency_months,
            contract_id=self.contract_id,
        )


# ---------------------------------------------------------------------------
# Indicator Configuration
# ---------------------------------------------------------------------------

class IndicatorRecordConfig(BaseModel):
    """One row of the economic-indicator table keyed by (type, date)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: str = Field(min_length=1, max_length=50, description="Indicator key, e.g. IPC")
    date: datetime.date = Field(description="Observation date")
    value: float = Field(description="Stored value (IPC in percent)")

    @field_validator("value")
    @classmethod
    def validate_finite(cls, v):
        """Reject NaN and infinities."""
        if v != v or v in (float("inf"), float("-inf")):
            raise ValueError(f"value must be finite, got {v}")
        return v


# ---------------------------------------------------------------------------
# Cashflow Stream Configuration
# ---------------------------------------------------------------------------

class CashflowStreamConfig(BaseModel):
    """Parallel amounts/dates as read from a cashflow file."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    amounts: List[float] = Field(description="Signed flows")
    dates: List[datetime.date] = Field(description="Flow dates")

    @field_validator("dates")
    @classmethod
    def validate_lengths(cls, v, info):
        """Ensure dates are parallel to amounts."""
        amounts = info.data.get("amounts")
        if amounts is not None and len(amounts) != len(v):
            raise ValueError(
                f"amounts and dates must have the same length, got {len(amounts)} and {len(v)}"
            )
        return v


# ---------------------------------------------------------------------------
# Solver Configuration
# ---------------------------------------------------------------------------

class XirrConfig(BaseModel):
    """
    Configuration for the XIRR solver.

    Attributes
    ----------
    guesses : tuple of float
        Seed rates, tried in order.
    max_iter : int
        Newton iterations per seed.
    step_tolerance : float
        Convergence threshold on successive rates.
    npv_tolerance : float
        Acceptance threshold on |NPV|.
    derivative_floor : float
        Seeds are abandoned below this derivative magnitude.
    precision : int
        Decimal places of the returned rate.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    guesses: Tuple[float, ...] = Field(
        default=DEFAULT_XIRR_GUESSES,
        min_length=1,
        description="Seed rates"
    )
    max_iter: int = Field(
        default=DEFAULT_XIRR_MAX_ITERS,
        ge=1,
        le=10_000,
        description="Iteration cap per seed"
    )
    step_tolerance: float = Field(
        default=DEFAULT_XIRR_STEP_TOLERANCE,
        gt=0,
        le=1e-3,
        description="Convergence threshold"
    )
    npv_tolerance: float = Field(
        default=DEFAULT_XIRR_NPV_TOLERANCE,
        gt=0,
        le=1.0,
        description="Acceptance threshold on |NPV|"
    )
    derivative_floor: float = Field(
        default=DEFAULT_XIRR_DERIVATIVE_FLOOR,
        gt=0,
        description="Minimum usable derivative magnitude"
    )
    precision: int = Field(
        default=DEFAULT_XIRR_PRECISION,
        ge=0,
        le=15,
        description="Decimal places of the result"
    )

    @field_validator("guesses")
    @classmethod
    def validate_guesses(cls, v):
        """Seeds at or below -100% make (1 + r) non-positive."""
        if any(g <= -1 for g in v):
            raise ValueError(f"guesses must be > -1, got {v}")
        return v


# ---------------------------------------------------------------------------
# Application Settings (Environment Variables)
# ---------------------------------------------------------------------------

class AppSettings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Supports .env files for local development. Environment variables
    are prefixed with CASHLEDGER_ (e.g., CASHLEDGER_LOG_LEVEL=DEBUG).

    Attributes
    ----------
    log_level : str
        Logging level: "DEBUG", "INFO", "WARNING", "ERROR"
    local_currency : str
        Currency in which indexed rent is escalated
    oversell_policy : str
        "partial" (fill and warn) or "raise"
    regeneration_workers : int, optional
        Thread-pool size for bulk schedule regeneration (None = default)

    Examples
    --------
    >>> settings = AppSettings()
    >>> settings.oversell_policy
    'partial'

    # With .env file:
    # CASHLEDGER_OVERSELL_POLICY=raise
    >>> settings = AppSettings(_env_file=".env")
    """

    model_config = SettingsConfigDict(
        env_prefix="CASHLEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging level"
    )
    local_currency: str = Field(
        default=LOCAL_CURRENCY,
        min_length=1,
        max_length=10,
        description="Local currency code"
    )
    oversell_policy: Literal["partial", "raise"] = Field(
        default="partial",
        description="FIFO behaviour when a SELL exceeds inventory"
    )
    regeneration_workers: Optional[int] = Field(
        default=None,
        ge=1,
        le=64,
        description="Worker threads for bulk regeneration"
    )


def configure_logging(settings: Optional[AppSettings] = None) -> logging.Logger:
    """Attach a stream handler to the package logger at ``settings.log_level``."""
    settings = settings or AppSettings()
    logger = logging.getLogger("cashledger")
    logger.setLevel(settings.log_level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(handler)
    return logger
