"""
Schedule storage seam for CashLedger.

A contract's cash-flow rows are identified by (contract_id, month_index) and
are only ever replaced as a whole: regeneration deletes every row of the
contract and inserts the freshly generated schedule under one transaction
boundary, so readers see either the old or the new schedule, never a mix.

The engine only depends on ``ScheduleStore``. ``InMemoryScheduleStore`` is
the reference implementation used by the CLI and the tests; a database
backend implements the same three operations inside a single transaction.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .cashflows import CashflowEntry, Contract, generate_schedule
from .constants import LOCAL_CURRENCY
from .exceptions import ValidationError
from .series import EconomicIndicators

__all__ = [
    "ScheduleStore",
    "InMemoryScheduleStore",
    "regenerate_schedule",
    "regenerate_all",
]

logger = logging.getLogger(__name__)


class ScheduleStore(ABC):
    """
    Abstract interface for schedule persistence.

    Any storage implementation must make ``replace_schedule`` atomic with
    respect to ``get_schedule``.
    """

    @abstractmethod
    def replace_schedule(self, contract_id: str, entries: Sequence[CashflowEntry]) -> None:
        """
        Delete every row of *contract_id* and insert *entries*.

        Args:
            contract_id: Owning contract
            entries: Complete new schedule
        """
        pass

    @abstractmethod
    def get_schedule(self, contract_id: str) -> List[CashflowEntry]:
        """
        Return the stored schedule ordered by month_index.

        Returns:
            The schedule, or an empty list if none is stored
        """
        pass

    @abstractmethod
    def delete_schedule(self, contract_id: str) -> bool:
        """
        Remove every row of *contract_id*.

        Returns:
            True if a schedule existed
        """
        pass

    @abstractmethod
    def contract_ids(self) -> List[str]:
        pass


class InMemoryScheduleStore(ScheduleStore):
    """Dict-backed store. Schedules are swapped as immutable tuples under a lock."""

    def __init__(self) -> None:
        self._rows: Dict[str, Tuple[CashflowEntry, ...]] = {}
        self._lock = threading.Lock()

    def replace_schedule(self, contract_id: str, entries: Sequence[CashflowEntry]) -> None:
        rows = tuple(sorted(entries, key=lambda e: e.month_index))
        keys = [e.month_index for e in rows]
        if len(set(keys)) != len(keys):
            raise ValidationError(f"Duplicate month_index in schedule for contract {contract_id!r}.")
        with self._lock:
            self._rows[contract_id] = rows

    def get_schedule(self, contract_id: str) -> List[CashflowEntry]:
        with self._lock:
            rows = self._rows.get(contract_id, ())
        return list(rows)

    def delete_schedule(self, contract_id: str) -> bool:
        with self._lock:
            return self._rows.pop(contract_id, None) is not None

    def contract_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._rows)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)


def regenerate_schedule(
    contract: Contract,
    indicators: EconomicIndicators,
    store: ScheduleStore,
    *,
    local_currency: str = LOCAL_CURRENCY,
) -> List[CashflowEntry]:
    """
    Recompute *contract*'s schedule and replace the stored one.

    Raises
    ------
    ValidationError
        If the contract has no ``contract_id``.
    """
    if not contract.contract_id:
        raise ValidationError("contract_id is required to store a schedule.")
    entries = generate_schedule(contract, indicators, local_currency=local_currency)
    store.replace_schedule(contract.contract_id, entries)
    logger.info("Regenerated %d cash-flow rows for contract %s", len(entries), contract.contract_id)
    return entries


def regenerate_all(
    contracts: Iterable[Contract],
    indicators: EconomicIndicators,
    store: ScheduleStore,
    *,
    max_workers: Optional[int] = None,
    local_currency: str = LOCAL_CURRENCY,
) -> int:
    """
    Regenerate every contract's schedule.

    Contracts are independent, so they are fanned out over a thread pool.
    The first failure propagates after the pool drains.

    Returns
    -------
    int
        Number of contracts regenerated.
    """
    contracts = list(contracts)
    if not contracts:
        return 0
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [
            pool.submit(regenerate_schedule, c, indicators, store, local_currency=local_currency)
            for c in contracts
        ]
        for future in futures:
            future.result()
    logger.info("Regenerated schedules for %d contracts", len(contracts))
    return len(contracts)
