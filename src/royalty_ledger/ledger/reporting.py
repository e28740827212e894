"""Filtering and summaries over ledger entries."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from uuid import UUID

from royalty_ledger.ledger.types import ZERO, QuarterlyBalanceEntry, round2

HEALTHY_THRESHOLD = Decimal("1000")


class BalanceStatus(str, Enum):
    HEALTHY = "Healthy"
    LOW = "Low"
    DEFICIT = "Deficit"
    ZERO = "Zero"


def balance_status(balance: Decimal) -> BalanceStatus:
    if balance > HEALTHY_THRESHOLD:
        return BalanceStatus.HEALTHY
    if balance > 0:
        return BalanceStatus.LOW
    if balance < 0:
        return BalanceStatus.DEFICIT
    return BalanceStatus.ZERO


def filter_entries(
    entries: Iterable[QuarterlyBalanceEntry],
    search: str | None = None,
    year: int | None = None,
    quarter: int | None = None,
) -> list[QuarterlyBalanceEntry]:
    """Filter entries by free-text search, year and quarter.

    Search matches payee name, agreement title or period label,
    case-insensitively.
    """
    needle = search.strip().lower() if search else ""
    result = []
    for entry in entries:
        if year is not None and entry.year != year:
            continue
        if quarter is not None and entry.quarter != quarter:
            continue
        if needle:
            haystack = (
                (entry.payee_name or "").lower(),
                (entry.agreement_title or "").lower(),
                entry.period_label.lower(),
            )
            if not any(needle in field for field in haystack):
                continue
        result.append(entry)
    return result


@dataclass
class LedgerSummary:
    """Totals over a set of ledger entries."""

    total_balance: Decimal = ZERO
    total_royalties: Decimal = ZERO
    total_expenses: Decimal = ZERO
    total_payments: Decimal = ZERO
    report_count: int = 0


def summarize(entries: Iterable[QuarterlyBalanceEntry]) -> LedgerSummary:
    summary = LedgerSummary()
    for entry in entries:
        summary.total_balance += entry.closing_balance
        summary.total_royalties += entry.royalties_amount
        summary.total_expenses += entry.expenses_amount
        summary.total_payments += entry.payments_amount
        summary.report_count += 1
    summary.total_balance = round2(summary.total_balance)
    summary.total_royalties = round2(summary.total_royalties)
    summary.total_expenses = round2(summary.total_expenses)
    summary.total_payments = round2(summary.total_payments)
    return summary


@dataclass
class AccountSummary:
    """Client-facing account position."""

    current_balance: Decimal
    total_earned: Decimal
    total_paid: Decimal

    @property
    def pending_amount(self) -> Decimal:
        return self.total_earned - self.total_paid


def account_summary(entries: Iterable[QuarterlyBalanceEntry]) -> AccountSummary:
    """Current balance is the latest closing balance of each payee, summed."""
    latest: dict[UUID, QuarterlyBalanceEntry] = {}
    earned = ZERO
    paid = ZERO
    for entry in entries:
        earned += entry.royalties_amount
        paid += entry.payments_amount
        current = latest.get(entry.payee_id)
        if current is None or entry.period_key > current.period_key:
            latest[entry.payee_id] = entry

    return AccountSummary(
        current_balance=round2(sum((e.closing_balance for e in latest.values()), ZERO)),
        total_earned=round2(earned),
        total_paid=round2(paid),
    )
