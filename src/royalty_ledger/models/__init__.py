"""ORM models for the royalty ledger."""

from royalty_ledger.models.base import Base, TimestampMixin, UpdatedAtMixin
from royalty_ledger.models.ledger import QuarterlyBalanceReport
from royalty_ledger.models.payouts import Payee, PayoutRecord
from royalty_ledger.models.reconciliation import ReconciliationBatch, RoyaltyAllocation

__all__ = [
    "Base",
    "TimestampMixin",
    "UpdatedAtMixin",
    "Payee",
    "PayoutRecord",
    "QuarterlyBalanceReport",
    "ReconciliationBatch",
    "RoyaltyAllocation",
]
