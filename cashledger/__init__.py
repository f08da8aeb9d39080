"""
CashLedger - Position & Cash-Flow Accounting Engine

Deterministic engines behind a personal portfolio ledger: realized gains
from FIFO lot matching, inflation-indexed rent schedules tracked in two
currencies, and money-weighted returns of dated cashflows.

Modules
-------
- fifo           : FIFO lot matching, realized and open position events
- positions      : Mark-to-market valuation of open lots
- series         : Date-keyed indicator series (inflation index, FX)
- cashflows      : Contract schedules and adjustment notices
- schedule_store : Atomic schedule replacement and bulk regeneration
- xirr           : XNPV / XIRR and cashflow streams
- config         : Pydantic input models and application settings
- serialization  : JSON loading and result conversion
- utils          : Shared utilities (validation, calendar helpers, rates)

"""

from .cashflows import AdjustmentMode, CashflowEntry, Contract, adjustment_notice, generate_schedule
from .exceptions import (
    CashLedgerError,
    ConfigurationError,
    ContractError,
    OversellError,
    SeriesError,
    TransactionError,
    ValidationError,
)
from .fifo import (
    FifoResult,
    OpenPositionEvent,
    OversellWarning,
    RealizedGainEvent,
    Transaction,
    TransactionKind,
    match_lots,
)
from .positions import PositionSummary, summarize_position
from .series import EconomicIndicators, IndexedSeries
from .xirr import CashflowStream, xirr, xnpv
from . import utils

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # FIFO
    "Transaction",
    "TransactionKind",
    "RealizedGainEvent",
    "OpenPositionEvent",
    "OversellWarning",
    "FifoResult",
    "match_lots",
    "PositionSummary",
    "summarize_position",
    # Cash flows
    "IndexedSeries",
    "EconomicIndicators",
    "AdjustmentMode",
    "Contract",
    "CashflowEntry",
    "generate_schedule",
    "adjustment_notice",
    # Returns
    "CashflowStream",
    "xirr",
    "xnpv",
    # Errors
    "CashLedgerError",
    "ConfigurationError",
    "ValidationError",
    "TransactionError",
    "ContractError",
    "SeriesError",
    "OversellError",
    "utils",
]
