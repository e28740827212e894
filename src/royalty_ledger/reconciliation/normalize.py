"""Map stored batch and allocation rows into evaluation snapshots."""

from __future__ import annotations

from typing import TYPE_CHECKING

from royalty_ledger.ledger.types import to_decimal
from royalty_ledger.reconciliation.completeness import AllocationSnapshot, BatchSnapshot

if TYPE_CHECKING:
    from royalty_ledger.models import ReconciliationBatch, RoyaltyAllocation


def batch_from_model(row: ReconciliationBatch) -> BatchSnapshot:
    return BatchSnapshot(
        id=row.reconciliation_batch_id,
        batch_id=row.batch_id,
        source=row.source,
        total_gross_amount=to_decimal(row.total_gross_amount),
        status=row.status,
        date_received=row.date_received,
        linked_statement_id=row.linked_statement_id,
        statement_period_start=row.statement_period_start,
        statement_period_end=row.statement_period_end,
    )


def allocation_from_model(row: RoyaltyAllocation) -> AllocationSnapshot:
    return AllocationSnapshot(
        id=row.royalty_allocation_id,
        gross_royalty_amount=to_decimal(row.gross_royalty_amount),
        batch_id=row.batch_id,
        statement_id=row.statement_id,
        staging_record_id=row.staging_record_id,
        payee_id=row.payee_id,
    )
