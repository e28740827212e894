"""Reconciliation batch service.

Evaluates how much of each batch's gross amount has been allocated, and
processes complete batches into payouts for a target quarter.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from royalty_ledger.config import get_settings
from royalty_ledger.ledger.periods import quarter_end, quarter_start
from royalty_ledger.ledger.types import ZERO, round2
from royalty_ledger.models import PayoutRecord, ReconciliationBatch, RoyaltyAllocation
from royalty_ledger.reconciliation.completeness import (
    AllocationSnapshot,
    BatchEvaluation,
    BatchProcessError,
    BatchStatus,
    ProcessErrorKind,
    allocations_for_batch,
    classify,
    compute_allocated_amount,
    validate_processing,
)
from royalty_ledger.reconciliation.normalize import allocation_from_model, batch_from_model
from royalty_ledger.services.batch_state import BatchStateMachine

logger = logging.getLogger(__name__)


class BatchNotFoundError(Exception):
    """Raised when a batch does not exist or belongs to another user."""

    def __init__(self, batch_id: UUID):
        self.batch_id = batch_id
        super().__init__(f"Reconciliation batch {batch_id} not found")


class PayoutWriter(Protocol):
    """Creates payouts for a processed batch."""

    async def create_payouts(
        self,
        session: AsyncSession,
        batch: ReconciliationBatch,
        allocations: list[AllocationSnapshot],
        period_start: date,
        period_end: date,
    ) -> int: ...


class AllocationPayoutWriter:
    """Default payout writer: one pending payout per payee in the batch."""

    async def create_payouts(
        self,
        session: AsyncSession,
        batch: ReconciliationBatch,
        allocations: list[AllocationSnapshot],
        period_start: date,
        period_end: date,
    ) -> int:
        by_payee: dict[UUID, Decimal] = defaultdict(lambda: ZERO)
        for allocation in allocations:
            if allocation.payee_id is None:
                logger.warning(
                    "Allocation %s in batch %s has no payee; no payout created",
                    allocation.id,
                    batch.batch_id,
                )
                continue
            by_payee[allocation.payee_id] += allocation.gross_royalty_amount

        for payee_id, gross in by_payee.items():
            amount = round2(gross)
            session.add(
                PayoutRecord(
                    user_id=batch.user_id,
                    payee_id=payee_id,
                    gross_royalties=amount,
                    total_expenses=ZERO,
                    amount_due=amount,
                    status="pending",
                    workflow_stage="pending",
                    period_start=period_start,
                    period_end=period_end,
                    source_batch_id=batch.reconciliation_batch_id,
                )
            )
        return len(by_payee)


@dataclass
class ProcessResult:
    """Outcome of processing a batch to payouts."""

    batch_id: UUID
    year: int
    quarter: int
    payouts_created: int
    allocated_amount: Decimal


class ReconciliationService:
    """Service for batch completeness and batch processing."""

    def __init__(
        self,
        session: AsyncSession,
        payout_writer: PayoutWriter | None = None,
        tolerance: Decimal | None = None,
    ):
        self.session = session
        self.payout_writer = payout_writer or AllocationPayoutWriter()
        self.tolerance = (
            get_settings().completeness_tolerance if tolerance is None else tolerance
        )

    async def evaluate_batches(self, user_id: UUID) -> list[BatchEvaluation]:
        """Evaluate every batch of a user, newest received first."""
        result = await self.session.execute(
            select(ReconciliationBatch)
            .where(ReconciliationBatch.user_id == user_id)
            .order_by(ReconciliationBatch.date_received.desc())
        )
        evaluations = []
        for batch in result.scalars().all():
            evaluation, _ = await self._evaluate(batch)
            evaluations.append(evaluation)
        return evaluations

    async def evaluate_batch(self, user_id: UUID, batch_id: UUID) -> BatchEvaluation:
        batch = await self._get_batch(user_id, batch_id)
        evaluation, _ = await self._evaluate(batch)
        return evaluation

    async def process_batch(
        self,
        user_id: UUID,
        batch_id: UUID,
        quarter: int,
        year: int,
        today: date | None = None,
    ) -> ProcessResult:
        """Process a complete batch into payouts dated in the target quarter.

        Raises BatchProcessError before any write when the batch is not
        complete or the target period is in the past. The batch row is
        claimed with a conditional update before payouts are written, so a
        concurrent request for the same batch fails with NOT_READY.
        """
        batch = await self._get_batch(user_id, batch_id)
        evaluation, attributed = await self._evaluate(batch)
        validate_processing(evaluation, quarter, year, today)
        BatchStateMachine.validate_transition(batch.status, BatchStatus.PROCESSED)

        await self._claim(batch, quarter, year)

        created = await self.payout_writer.create_payouts(
            self.session,
            batch,
            attributed,
            quarter_start(year, quarter),
            quarter_end(year, quarter),
        )
        await self.session.flush()

        logger.info(
            "Processed batch %s into Q%d %d: %d payout(s), %s allocated",
            batch.batch_id,
            quarter,
            year,
            created,
            evaluation.allocated_amount,
        )
        return ProcessResult(
            batch_id=batch.reconciliation_batch_id,
            year=year,
            quarter=quarter,
            payouts_created=created,
            allocated_amount=evaluation.allocated_amount,
        )

    async def _claim(self, batch: ReconciliationBatch, quarter: int, year: int) -> None:
        # Conditional update: only one request can move the row to Processed
        result = await self.session.execute(
            update(ReconciliationBatch)
            .where(
                ReconciliationBatch.reconciliation_batch_id == batch.reconciliation_batch_id,
                ReconciliationBatch.status != BatchStatus.PROCESSED.value,
            )
            .values(
                status=BatchStatus.PROCESSED.value,
                processed_at=datetime.now(timezone.utc),
                processed_year=year,
                processed_quarter=quarter,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.refresh(batch)

        if result.rowcount == 0:
            logger.warning(
                "Batch %s was processed concurrently; status is %s",
                batch.batch_id,
                batch.status,
            )
            raise BatchProcessError(
                ProcessErrorKind.NOT_READY,
                f"Batch {batch.batch_id} has already been processed",
            )

    async def _get_batch(self, user_id: UUID, batch_id: UUID) -> ReconciliationBatch:
        batch = await self.session.get(ReconciliationBatch, batch_id)
        if batch is None or batch.user_id != user_id:
            raise BatchNotFoundError(batch_id)
        return batch

    async def _evaluate(
        self, batch: ReconciliationBatch
    ) -> tuple[BatchEvaluation, list[AllocationSnapshot]]:
        snapshot = batch_from_model(batch)

        direct = (
            await self.session.execute(
                select(RoyaltyAllocation).where(
                    RoyaltyAllocation.user_id == batch.user_id,
                    RoyaltyAllocation.batch_id == batch.reconciliation_batch_id,
                )
            )
        ).scalars().all()

        via_statement: list[RoyaltyAllocation] = []
        if batch.linked_statement_id:
            via_statement = list(
                (
                    await self.session.execute(
                        select(RoyaltyAllocation).where(
                            RoyaltyAllocation.user_id == batch.user_id,
                            or_(
                                RoyaltyAllocation.statement_id == batch.linked_statement_id,
                                RoyaltyAllocation.staging_record_id == batch.linked_statement_id,
                            ),
                        )
                    )
                ).scalars().all()
            )

        direct_snapshots = [allocation_from_model(a) for a in direct]
        statement_snapshots = [allocation_from_model(a) for a in via_statement]

        allocated = compute_allocated_amount(snapshot, direct_snapshots, statement_snapshots)
        attributed = allocations_for_batch(snapshot, direct_snapshots, statement_snapshots)
        return classify(snapshot, allocated, self.tolerance), attributed
