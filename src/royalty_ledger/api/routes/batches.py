"""Reconciliation batch endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path

from royalty_ledger.api.dependencies import Cache, DbSession, UserId
from royalty_ledger.api.schemas import (
    BatchEvaluationResponse,
    BatchListResponse,
    ErrorResponse,
    ProcessBatchRequest,
    ProcessBatchResponse,
)
from royalty_ledger.ledger.periods import period_label
from royalty_ledger.reconciliation.completeness import BatchStatus
from royalty_ledger.services.ledger_service import LedgerService
from royalty_ledger.services.reconciliation_service import ReconciliationService

router = APIRouter(prefix="/batches", tags=["batches"])


@router.get(
    "",
    response_model=BatchListResponse,
    responses={400: {"model": ErrorResponse}},
)
async def list_batches(db: DbSession, user_id: UserId) -> BatchListResponse:
    """List the user's batches with allocation progress."""
    evaluations = await ReconciliationService(db).evaluate_batches(user_id)
    return BatchListResponse(
        items=[BatchEvaluationResponse.from_evaluation(e) for e in evaluations],
        total=len(evaluations),
    )


@router.get(
    "/{batch_id}",
    response_model=BatchEvaluationResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_batch(
    db: DbSession,
    user_id: UserId,
    batch_id: Annotated[UUID, Path()],
) -> BatchEvaluationResponse:
    evaluation = await ReconciliationService(db).evaluate_batch(user_id, batch_id)
    return BatchEvaluationResponse.from_evaluation(evaluation)


@router.post(
    "/{batch_id}/process",
    response_model=ProcessBatchResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def process_batch(
    db: DbSession,
    user_id: UserId,
    cache: Cache,
    payload: ProcessBatchRequest,
    batch_id: Annotated[UUID, Path()],
) -> ProcessBatchResponse:
    """Process a complete batch into payouts for the target quarter."""
    result = await ReconciliationService(db).process_batch(
        user_id, batch_id, payload.quarter, payload.year
    )
    await db.commit()
    LedgerService(db, cache=cache).invalidate(user_id)

    return ProcessBatchResponse(
        batch_id=result.batch_id,
        status=BatchStatus.PROCESSED.value,
        period_label=period_label(result.year, result.quarter),
        payouts_created=result.payouts_created,
        allocated_amount=result.allocated_amount,
    )
