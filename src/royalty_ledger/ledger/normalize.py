"""Normalization of stored rows into canonical ledger types.

ORM rows are mapped here before any ledger computation touches them.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING
from uuid import UUID

from royalty_ledger.ledger.types import (
    EntrySource,
    PayeeInfo,
    PayoutSnapshot,
    QuarterlyBalanceEntry,
    to_decimal,
)

if TYPE_CHECKING:
    from royalty_ledger.models import Payee, PayoutRecord, QuarterlyBalanceReport


def payout_from_model(row: PayoutRecord) -> PayoutSnapshot:
    return PayoutSnapshot(
        id=row.payout_id,
        payee_id=row.payee_id,
        gross_royalties=to_decimal(row.gross_royalties),
        total_expenses=to_decimal(row.total_expenses),
        amount_due=to_decimal(row.amount_due),
        status=row.status or "",
        workflow_stage=row.workflow_stage,
        period_start=row.period_start,
        created_at=row.created_at,
        contact_id=row.contact_id,
    )


def payee_from_model(row: Payee) -> PayeeInfo:
    return PayeeInfo(
        payee_id=row.payee_id,
        name=row.payee_name,
        beginning_balance=to_decimal(row.beginning_balance),
        agreement_title=row.agreement_title,
    )


def payee_directory(rows: Iterable[Payee]) -> dict[UUID, PayeeInfo]:
    """Index payee rows by id."""
    return {row.payee_id: payee_from_model(row) for row in rows}


def entry_from_report(
    row: QuarterlyBalanceReport,
    payees: Mapping[UUID, PayeeInfo] | None = None,
) -> QuarterlyBalanceEntry:
    """Map a persisted report row into the canonical entry shape."""
    payee = (payees or {}).get(row.payee_id)
    return QuarterlyBalanceEntry(
        id=row.quarterly_balance_report_id,
        payee_id=row.payee_id,
        year=row.year,
        quarter=row.quarter,
        opening_balance=to_decimal(row.opening_balance),
        royalties_amount=to_decimal(row.royalties_amount),
        expenses_amount=to_decimal(row.expenses_amount),
        payments_amount=to_decimal(row.payments_amount),
        closing_balance=to_decimal(row.closing_balance),
        is_calculated=bool(row.is_calculated),
        source=EntrySource.PERSISTED,
        payee_name=payee.name if payee else None,
        agreement_title=payee.agreement_title if payee else None,
    )
