"""Type definitions for the balance ledger pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any
from uuid import UUID

CENT = Decimal("0.01")
ZERO = Decimal("0")


def round2(value: Decimal) -> Decimal:
    """Round a monetary amount to cents (half-up)."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value: Any) -> Decimal:
    """Coerce a stored amount (None, int, float, str, Decimal) to Decimal."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # str() avoids binary float expansion (0.1 -> 0.1000000000000000055...)
        return Decimal(str(value))
    return Decimal(value)


class EntrySource(str, Enum):
    """Where a ledger entry came from."""

    PERSISTED = "persisted"
    EPHEMERAL = "ephemeral"


@dataclass(frozen=True)
class PayoutSnapshot:
    """A payout record normalized for aggregation."""

    id: UUID
    payee_id: UUID | None
    gross_royalties: Decimal
    total_expenses: Decimal
    amount_due: Decimal
    status: str
    created_at: datetime
    workflow_stage: str | None = None
    period_start: date | None = None
    contact_id: UUID | None = None

    @property
    def is_paid(self) -> bool:
        """Payment counts when either the status or the workflow stage says paid."""
        return (self.status or "").lower() == "paid" or (
            (self.workflow_stage or "").lower() == "paid"
        )

    @property
    def period_date(self) -> date:
        if self.period_start is not None:
            return self.period_start
        return self.created_at.date()


@dataclass(frozen=True)
class PayeeInfo:
    """Payee directory entry used to label and seed ledgers."""

    payee_id: UUID
    name: str
    beginning_balance: Decimal = ZERO
    agreement_title: str | None = None


@dataclass
class QuarterlyBalanceEntry:
    """Canonical (payee, year, quarter) ledger row."""

    payee_id: UUID
    year: int
    quarter: int
    opening_balance: Decimal
    royalties_amount: Decimal
    expenses_amount: Decimal
    payments_amount: Decimal
    closing_balance: Decimal
    is_calculated: bool
    source: EntrySource
    payee_name: str | None = None
    agreement_title: str | None = None
    id: UUID | None = None

    @property
    def period_label(self) -> str:
        return f"Q{self.quarter} {self.year}"

    @property
    def period_key(self) -> tuple[int, int]:
        return (self.year, self.quarter)

    def expected_closing(self) -> Decimal:
        """Closing balance implied by this entry's own movements."""
        return round2(
            self.opening_balance
            + self.royalties_amount
            - self.expenses_amount
            - self.payments_amount
        )


@dataclass
class QuarterAccumulator:
    """Running per-(payee, quarter) sums before balances are assigned."""

    payee_id: UUID
    year: int
    quarter: int
    royalties_amount: Decimal = ZERO
    expenses_amount: Decimal = ZERO
    payments_amount: Decimal = ZERO

    def add(self, payout: PayoutSnapshot) -> None:
        self.royalties_amount += payout.gross_royalties
        self.expenses_amount += payout.total_expenses
        if payout.is_paid:
            self.payments_amount += payout.amount_due


@dataclass(frozen=True)
class LedgerViolation:
    """A conservation or continuity break found by the consistency check."""

    payee_id: UUID
    period_label: str
    kind: str  # 'conservation' or 'continuity'
    expected: Decimal
    actual: Decimal

    def __str__(self) -> str:
        return (
            f"{self.kind} violation for payee {self.payee_id} at {self.period_label}: "
            f"expected {self.expected}, got {self.actual}"
        )


@dataclass
class LedgerSelection:
    """Outcome of choosing between persisted and rebuilt ledger rows."""

    entries: list[QuarterlyBalanceEntry]
    source: EntrySource
    reason: str
    rebuilt_payees: set[UUID] = field(default_factory=set)

    @property
    def is_ephemeral(self) -> bool:
        return self.source == EntrySource.EPHEMERAL
