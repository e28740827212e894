"""Reconciliation completeness evaluation for royalty statement batches."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from royalty_ledger.ledger.periods import quarter_of
from royalty_ledger.ledger.types import ZERO, round2

DEFAULT_TOLERANCE = Decimal("0.01")


class BatchSource(str, Enum):
    DSP = "DSP"
    PRO = "PRO"
    YOUTUBE = "YouTube"
    OTHER = "Other"


class BatchStatus(str, Enum):
    """Workflow status stored on a batch."""

    PENDING = "Pending"
    IMPORTED = "Imported"
    PROCESSED = "Processed"


class ReconciliationStatus(str, Enum):
    """Derived allocation status of a batch."""

    COMPLETE = "Complete"
    INCOMPLETE = "Incomplete"
    PROCESSED = "Processed"


class ProcessErrorKind(str, Enum):
    NOT_READY = "NOT_READY"
    INVALID_PERIOD = "INVALID_PERIOD"


class BatchProcessError(Exception):
    """Raised when a batch cannot be processed to payouts."""

    def __init__(self, kind: ProcessErrorKind, message: str):
        self.kind = kind
        self.message = message
        super().__init__(f"{kind.value}: {message}")


@dataclass(frozen=True)
class BatchSnapshot:
    """A reconciliation batch normalized for evaluation."""

    id: UUID
    batch_id: str
    source: str
    total_gross_amount: Decimal
    status: str
    date_received: date | None = None
    linked_statement_id: str | None = None
    statement_period_start: date | None = None
    statement_period_end: date | None = None

    @property
    def is_processed(self) -> bool:
        return self.status == BatchStatus.PROCESSED


@dataclass(frozen=True)
class AllocationSnapshot:
    """A royalty allocation normalized for evaluation."""

    id: UUID
    gross_royalty_amount: Decimal
    batch_id: UUID | None = None
    statement_id: str | None = None
    staging_record_id: str | None = None
    payee_id: UUID | None = None


@dataclass(frozen=True)
class BatchEvaluation:
    """Allocation progress and processing readiness of one batch."""

    batch: BatchSnapshot
    allocated_amount: Decimal
    progress: Decimal
    reconciliation_status: ReconciliationStatus
    can_process: bool

    @property
    def progress_percent(self) -> str:
        """Progress as a percentage with one decimal place, e.g. '99.5'."""
        return f"{self.progress * 100:.1f}"


def statement_allocations_for(
    batch: BatchSnapshot,
    allocations: Iterable[AllocationSnapshot],
) -> list[AllocationSnapshot]:
    """Allocations reachable through the batch's linked statement."""
    statement_id = batch.linked_statement_id
    if not statement_id:
        return []
    return [
        a for a in allocations
        if a.statement_id == statement_id or a.staging_record_id == statement_id
    ]


def allocations_for_batch(
    batch: BatchSnapshot,
    allocations: Iterable[AllocationSnapshot],
    statement_allocations: Iterable[AllocationSnapshot] = (),
) -> list[AllocationSnapshot]:
    """Allocations attributed to a batch, each allocation id at most once.

    Includes allocations linked to the batch directly plus, when the batch
    has a linked statement, allocations recorded against that statement.
    """
    seen: set[UUID] = set()
    result: list[AllocationSnapshot] = []

    direct = (a for a in allocations if a.batch_id == batch.id)
    via_statement = statement_allocations_for(batch, statement_allocations)
    for allocation in (*direct, *via_statement):
        if allocation.id in seen:
            continue
        seen.add(allocation.id)
        result.append(allocation)

    return result


def compute_allocated_amount(
    batch: BatchSnapshot,
    allocations: Iterable[AllocationSnapshot],
    statement_allocations: Iterable[AllocationSnapshot] = (),
) -> Decimal:
    """Sum of gross royalty allocated to a batch.

    An allocation reachable both directly and through the linked statement
    is counted once.
    """
    attributed = allocations_for_batch(batch, allocations, statement_allocations)
    return round2(sum((a.gross_royalty_amount for a in attributed), ZERO))


def compute_progress(total_gross_amount: Decimal, allocated_amount: Decimal) -> Decimal:
    if total_gross_amount > 0:
        return allocated_amount / total_gross_amount
    return ZERO


def classify(
    batch: BatchSnapshot,
    allocated_amount: Decimal,
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> BatchEvaluation:
    """Classify a batch as Complete/Incomplete and decide whether it can be processed.

    Complete means the progress is strictly within ``tolerance`` of 100%.
    Processed batches are reported as Processed regardless of progress.
    """
    progress = compute_progress(batch.total_gross_amount, allocated_amount)
    complete = abs(progress - 1) < tolerance

    if batch.is_processed:
        status = ReconciliationStatus.PROCESSED
    elif complete:
        status = ReconciliationStatus.COMPLETE
    else:
        status = ReconciliationStatus.INCOMPLETE

    return BatchEvaluation(
        batch=batch,
        allocated_amount=allocated_amount,
        progress=progress,
        reconciliation_status=status,
        can_process=complete and not batch.is_processed,
    )


def evaluate_batch(
    batch: BatchSnapshot,
    allocations: Iterable[AllocationSnapshot],
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> BatchEvaluation:
    """Compute allocated amount and classification from one allocation pool."""
    pool = list(allocations)
    allocated = compute_allocated_amount(batch, pool, pool)
    return classify(batch, allocated, tolerance)


def validate_processing(
    evaluation: BatchEvaluation,
    target_quarter: int,
    target_year: int,
    today: date | None = None,
) -> None:
    """Check that a batch may be processed into the target period.

    Raises BatchProcessError (NOT_READY first, then INVALID_PERIOD).
    Batches may only post to the current or a future calendar quarter.
    """
    if not evaluation.can_process:
        if evaluation.batch.is_processed:
            reason = f"Batch {evaluation.batch.batch_id} is already processed"
        else:
            reason = (
                f"Batch {evaluation.batch.batch_id} is {evaluation.progress_percent}% "
                "allocated; it must be complete before processing"
            )
        raise BatchProcessError(ProcessErrorKind.NOT_READY, reason)

    if target_quarter not in (1, 2, 3, 4):
        raise BatchProcessError(
            ProcessErrorKind.INVALID_PERIOD,
            f"Quarter must be between 1 and 4, got {target_quarter}",
        )

    current = quarter_of(today or date.today())
    if (target_year, target_quarter) < current:
        raise BatchProcessError(
            ProcessErrorKind.INVALID_PERIOD,
            f"Cannot process into Q{target_quarter} {target_year}; "
            f"earliest allowed period is Q{current[1]} {current[0]}",
        )
