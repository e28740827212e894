"""Royalty ledger services."""

from royalty_ledger.services.batch_state import BatchStateMachine, InvalidTransitionError
from royalty_ledger.services.cache import InMemoryLedgerCache, LedgerCache
from royalty_ledger.services.ledger_service import LedgerService
from royalty_ledger.services.reconciliation_service import (
    AllocationPayoutWriter,
    BatchNotFoundError,
    ReconciliationService,
)

__all__ = [
    "BatchStateMachine",
    "InvalidTransitionError",
    "InMemoryLedgerCache",
    "LedgerCache",
    "LedgerService",
    "AllocationPayoutWriter",
    "BatchNotFoundError",
    "ReconciliationService",
]
