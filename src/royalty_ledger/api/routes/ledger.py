"""Quarterly balance ledger endpoints."""

from datetime import datetime, timezone
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, Response

from royalty_ledger.api.dependencies import Cache, DbSession, UserId
from royalty_ledger.api.schemas import (
    ErrorResponse,
    LedgerEntryResponse,
    LedgerResponse,
    RegenerateResponse,
)
from royalty_ledger.ledger.export import export_filename, export_to_csv
from royalty_ledger.ledger.reporting import account_summary, filter_entries, summarize
from royalty_ledger.services.ledger_service import LedgerService

router = APIRouter(tags=["ledger"])


@router.get(
    "/ledger",
    response_model=LedgerResponse,
    responses={400: {"model": ErrorResponse}},
)
async def get_ledger(
    db: DbSession,
    user_id: UserId,
    cache: Cache,
    search: str | None = None,
    year: int | None = None,
    quarter: Annotated[int | None, Query(ge=1, le=4)] = None,
) -> LedgerResponse:
    """Quarterly balances for every payee of the user, newest period first."""
    selection = await LedgerService(db, cache=cache).get_ledger(user_id)
    entries = filter_entries(selection.entries, search=search, year=year, quarter=quarter)
    return LedgerResponse.build(
        selection, entries, summarize(entries), account_summary(selection.entries)
    )


@router.get(
    "/ledger/export",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}},
)
async def export_ledger(
    db: DbSession,
    user_id: UserId,
    cache: Cache,
    search: str | None = None,
    year: int | None = None,
    quarter: Annotated[int | None, Query(ge=1, le=4)] = None,
) -> Response:
    """Download the (filtered) ledger as CSV."""
    selection = await LedgerService(db, cache=cache).get_ledger(user_id)
    entries = filter_entries(selection.entries, search=search, year=year, quarter=quarter)
    return Response(
        content=export_to_csv(entries),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


@router.post(
    "/ledger/regenerate",
    response_model=RegenerateResponse,
    responses={400: {"model": ErrorResponse}},
)
async def regenerate_ledger(
    db: DbSession,
    user_id: UserId,
    cache: Cache,
) -> RegenerateResponse:
    """Rebuild the persisted reports from payouts."""
    now = datetime.now(timezone.utc)
    written = await LedgerService(db, cache=cache).regenerate_reports(user_id, now=now)
    await db.commit()
    return RegenerateResponse(reports_written=written, generated_at=now)


@router.get(
    "/payees/{payee_id}/ledger",
    response_model=list[LedgerEntryResponse],
    responses={400: {"model": ErrorResponse}},
)
async def get_payee_ledger(
    db: DbSession,
    user_id: UserId,
    cache: Cache,
    payee_id: Annotated[UUID, Path()],
) -> list[LedgerEntryResponse]:
    """One payee's quarterly balances, newest period first."""
    entries = await LedgerService(db, cache=cache).get_payee_ledger(user_id, payee_id)
    return [LedgerEntryResponse.from_entry(e) for e in entries]
