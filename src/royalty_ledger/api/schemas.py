"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from royalty_ledger.ledger.reporting import AccountSummary, LedgerSummary, balance_status
from royalty_ledger.ledger.types import LedgerSelection, QuarterlyBalanceEntry
from royalty_ledger.reconciliation.completeness import BatchEvaluation
from royalty_ledger.services.batch_state import BatchStateMachine


# ============================================================================
# Ledger schemas
# ============================================================================


class LedgerEntryResponse(BaseModel):
    """Schema for one quarterly balance entry."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID | None = None
    payee_id: UUID
    payee_name: str | None = None
    agreement_title: str | None = None
    year: int
    quarter: int
    period_label: str
    opening_balance: Decimal
    royalties_amount: Decimal
    expenses_amount: Decimal
    payments_amount: Decimal
    closing_balance: Decimal
    is_calculated: bool
    source: str
    balance_status: str

    @classmethod
    def from_entry(cls, entry: QuarterlyBalanceEntry) -> "LedgerEntryResponse":
        return cls(
            id=entry.id,
            payee_id=entry.payee_id,
            payee_name=entry.payee_name,
            agreement_title=entry.agreement_title,
            year=entry.year,
            quarter=entry.quarter,
            period_label=entry.period_label,
            opening_balance=entry.opening_balance,
            royalties_amount=entry.royalties_amount,
            expenses_amount=entry.expenses_amount,
            payments_amount=entry.payments_amount,
            closing_balance=entry.closing_balance,
            is_calculated=entry.is_calculated,
            source=entry.source.value,
            balance_status=balance_status(entry.closing_balance).value,
        )


class LedgerSummaryResponse(BaseModel):
    """Totals over the returned entries."""

    model_config = ConfigDict(from_attributes=True)

    total_balance: Decimal
    total_royalties: Decimal
    total_expenses: Decimal
    total_payments: Decimal
    report_count: int

    @classmethod
    def from_summary(cls, summary: LedgerSummary) -> "LedgerSummaryResponse":
        return cls.model_validate(summary)


class AccountSummaryResponse(BaseModel):
    """Account position across every payee, regardless of filters."""

    current_balance: Decimal
    total_earned: Decimal
    total_paid: Decimal
    pending_amount: Decimal

    @classmethod
    def from_account(cls, account: AccountSummary) -> "AccountSummaryResponse":
        return cls(
            current_balance=account.current_balance,
            total_earned=account.total_earned,
            total_paid=account.total_paid,
            pending_amount=account.pending_amount,
        )


class LedgerResponse(BaseModel):
    """Schema for a ledger listing."""

    source: str
    reason: str
    items: list[LedgerEntryResponse]
    summary: LedgerSummaryResponse
    account: AccountSummaryResponse

    @classmethod
    def build(
        cls,
        selection: LedgerSelection,
        entries: list[QuarterlyBalanceEntry],
        summary: LedgerSummary,
        account: AccountSummary,
    ) -> "LedgerResponse":
        return cls(
            source=selection.source.value,
            reason=selection.reason,
            items=[LedgerEntryResponse.from_entry(e) for e in entries],
            summary=LedgerSummaryResponse.from_summary(summary),
            account=AccountSummaryResponse.from_account(account),
        )


class RegenerateResponse(BaseModel):
    """Schema for report regeneration results."""

    reports_written: int
    generated_at: datetime


# ============================================================================
# Batch schemas
# ============================================================================


class BatchEvaluationResponse(BaseModel):
    """Schema for a batch with its reconciliation progress."""

    id: UUID
    batch_id: str
    source: str
    status: str
    total_gross_amount: Decimal
    date_received: date | None = None
    linked_statement_id: str | None = None
    allocated_amount: Decimal
    progress_percent: str
    reconciliation_status: str
    can_process: bool
    allocations_editable: bool
    next_statuses: list[str]

    @classmethod
    def from_evaluation(cls, evaluation: BatchEvaluation) -> "BatchEvaluationResponse":
        batch = evaluation.batch
        return cls(
            id=batch.id,
            batch_id=batch.batch_id,
            source=batch.source,
            status=batch.status,
            total_gross_amount=batch.total_gross_amount,
            date_received=batch.date_received,
            linked_statement_id=batch.linked_statement_id,
            allocated_amount=evaluation.allocated_amount,
            progress_percent=evaluation.progress_percent,
            reconciliation_status=evaluation.reconciliation_status.value,
            can_process=evaluation.can_process,
            allocations_editable=BatchStateMachine.can_modify_allocations(batch.status),
            next_statuses=BatchStateMachine.get_next_statuses(batch.status),
        )


class BatchListResponse(BaseModel):
    items: list[BatchEvaluationResponse]
    total: int


class ProcessBatchRequest(BaseModel):
    """Target period for processing a batch to payouts."""

    quarter: int
    year: int


class ProcessBatchResponse(BaseModel):
    batch_id: UUID
    status: str
    period_label: str
    payouts_created: int
    allocated_amount: Decimal


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error responses."""

    detail: str
    code: str | None = None
