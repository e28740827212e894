"""Balance ledger builder.

Turns a payee's payout history into a chronological chain of quarterly
balance entries, and decides whether persisted report rows can be trusted
or must be rebuilt from payouts.

Pipeline (stable order):
1) Derive (year, quarter) per payout from period_start, else created_at
2) Accumulate royalties, expenses and paid amounts per (payee, quarter)
3) Sort each payee's quarters ascending
4) Walk the chain carrying the running balance
5) Present newest-first
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from decimal import Decimal
from uuid import UUID

from royalty_ledger.ledger.periods import quarter_of
from royalty_ledger.ledger.types import (
    CENT,
    ZERO,
    EntrySource,
    LedgerSelection,
    LedgerViolation,
    PayeeInfo,
    PayoutSnapshot,
    QuarterAccumulator,
    QuarterlyBalanceEntry,
    round2,
)

logger = logging.getLogger(__name__)

Ledger = dict[UUID, list[QuarterlyBalanceEntry]]


def accumulate_quarters(
    payouts: Iterable[PayoutSnapshot],
) -> dict[tuple[UUID, int, int], QuarterAccumulator]:
    """Group payouts by (payee, year, quarter) and sum their amounts."""
    groups: dict[tuple[UUID, int, int], QuarterAccumulator] = {}
    skipped = 0

    for payout in payouts:
        if payout.payee_id is None:
            skipped += 1
            logger.warning("Skipping payout %s: missing payee_id", payout.id)
            continue

        year, quarter = quarter_of(payout.period_date)
        key = (payout.payee_id, year, quarter)
        acc = groups.get(key)
        if acc is None:
            acc = QuarterAccumulator(payee_id=payout.payee_id, year=year, quarter=quarter)
            groups[key] = acc
        acc.add(payout)

    if skipped:
        logger.info("Skipped %d payout(s) without a payee", skipped)
    return groups


def chain_balances(
    quarters: list[QuarterAccumulator],
    payee: PayeeInfo | None = None,
) -> list[QuarterlyBalanceEntry]:
    """Assign opening/closing balances to one payee's quarters.

    ``quarters`` must already be sorted ascending by (year, quarter). Returns
    entries in the same chronological order.
    """
    running = round2(payee.beginning_balance) if payee is not None else ZERO
    entries: list[QuarterlyBalanceEntry] = []

    for acc in quarters:
        entry = QuarterlyBalanceEntry(
            payee_id=acc.payee_id,
            year=acc.year,
            quarter=acc.quarter,
            opening_balance=running,
            royalties_amount=round2(acc.royalties_amount),
            expenses_amount=round2(acc.expenses_amount),
            payments_amount=round2(acc.payments_amount),
            closing_balance=ZERO,
            is_calculated=True,
            source=EntrySource.EPHEMERAL,
            payee_name=payee.name if payee is not None else None,
            agreement_title=payee.agreement_title if payee is not None else None,
        )
        entry.closing_balance = entry.expected_closing()
        running = entry.closing_balance
        entries.append(entry)

    return entries


def build_ledger_from_payouts(
    payouts: Iterable[PayoutSnapshot],
    payees: Mapping[UUID, PayeeInfo] | None = None,
) -> Ledger:
    """Build every payee's ledger from raw payouts.

    Each payee's list is returned newest-first. Payees without payouts get
    no entries.
    """
    payees = payees or {}
    by_payee: dict[UUID, list[QuarterAccumulator]] = defaultdict(list)
    for acc in accumulate_quarters(payouts).values():
        by_payee[acc.payee_id].append(acc)

    ledger: Ledger = {}
    for payee_id, quarters in by_payee.items():
        # Balances must be chained oldest-first before any reordering
        quarters.sort(key=lambda a: (a.year, a.quarter))
        chronological = chain_balances(quarters, payees.get(payee_id))
        ledger[payee_id] = list(reversed(chronological))

    logger.debug("Built ephemeral ledger for %d payee(s)", len(ledger))
    return ledger


def flatten_ledger(ledger: Mapping[UUID, list[QuarterlyBalanceEntry]]) -> list[QuarterlyBalanceEntry]:
    """All entries newest-first by (year, quarter) for presentation."""
    entries = [entry for payee_entries in ledger.values() for entry in payee_entries]
    return sort_newest_first(entries)


def sort_newest_first(entries: Iterable[QuarterlyBalanceEntry]) -> list[QuarterlyBalanceEntry]:
    # Stable sort keeps payee grouping within a quarter deterministic
    return sorted(entries, key=lambda e: e.period_key, reverse=True)


def group_by_payee(entries: Iterable[QuarterlyBalanceEntry]) -> Ledger:
    """Group entries by payee, each list sorted oldest-first."""
    grouped: Ledger = defaultdict(list)
    for entry in entries:
        grouped[entry.payee_id].append(entry)
    for payee_entries in grouped.values():
        payee_entries.sort(key=lambda e: e.period_key)
    return dict(grouped)


def verify_ledger(entries: Iterable[QuarterlyBalanceEntry]) -> list[LedgerViolation]:
    """Check conservation and continuity for every payee's chain.

    Returns an empty list when the ledger is internally consistent.
    """
    violations: list[LedgerViolation] = []

    for payee_id, chain in group_by_payee(entries).items():
        previous: QuarterlyBalanceEntry | None = None
        for entry in chain:
            expected = entry.expected_closing()
            if round2(entry.closing_balance) != expected:
                violations.append(
                    LedgerViolation(
                        payee_id=payee_id,
                        period_label=entry.period_label,
                        kind="conservation",
                        expected=expected,
                        actual=entry.closing_balance,
                    )
                )
            if previous is not None and round2(entry.opening_balance) != round2(
                previous.closing_balance
            ):
                violations.append(
                    LedgerViolation(
                        payee_id=payee_id,
                        period_label=entry.period_label,
                        kind="continuity",
                        expected=previous.closing_balance,
                        actual=entry.opening_balance,
                    )
                )
            previous = entry

    return violations


def _totals(
    rows: Iterable[tuple[UUID, Decimal, Decimal, Decimal]],
) -> dict[UUID, tuple[Decimal, Decimal, Decimal]]:
    sums: dict[UUID, list[Decimal]] = defaultdict(lambda: [ZERO, ZERO, ZERO])
    for payee_id, royalties, expenses, payments in rows:
        bucket = sums[payee_id]
        bucket[0] += royalties
        bucket[1] += expenses
        bucket[2] += payments
    return {k: (round2(v[0]), round2(v[1]), round2(v[2])) for k, v in sums.items()}


def find_divergent_payees(
    persisted: Iterable[QuarterlyBalanceEntry],
    payouts: Iterable[PayoutSnapshot],
) -> set[UUID]:
    """Payees whose persisted totals differ from their payout totals by a cent or more."""
    persisted_totals = _totals(
        (e.payee_id, e.royalties_amount, e.expenses_amount, e.payments_amount)
        for e in persisted
    )
    payout_totals = _totals(
        (
            p.payee_id,
            p.gross_royalties,
            p.total_expenses,
            p.amount_due if p.is_paid else ZERO,
        )
        for p in payouts
        if p.payee_id is not None
    )

    divergent: set[UUID] = set()
    zero = (ZERO, ZERO, ZERO)
    for payee_id in persisted_totals.keys() | payout_totals.keys():
        stored = persisted_totals.get(payee_id, zero)
        actual = payout_totals.get(payee_id, zero)
        if any(abs(a - b) >= CENT for a, b in zip(stored, actual)):
            divergent.add(payee_id)
    return divergent


def select_ledger_source(
    persisted: list[QuarterlyBalanceEntry],
    payouts: list[PayoutSnapshot],
    payees: Mapping[UUID, PayeeInfo] | None = None,
    *,
    verify_totals: bool = True,
) -> LedgerSelection:
    """Decide between persisted report rows and a ledger rebuilt from payouts.

    Persisted rows are stale when payouts mention more payees than the
    persisted rows do. With ``verify_totals`` the persisted rows are also
    rejected when any payee's totals diverge from its payouts or the chain
    itself is broken.
    """
    persisted_payees = {e.payee_id for e in persisted}
    payout_payees = {p.payee_id for p in payouts if p.payee_id is not None}

    def rebuild(reason: str, affected: set[UUID]) -> LedgerSelection:
        logger.info("Rebuilding ledger from %d payout(s): %s", len(payouts), reason)
        return LedgerSelection(
            entries=flatten_ledger(build_ledger_from_payouts(payouts, payees)),
            source=EntrySource.EPHEMERAL,
            reason=reason,
            rebuilt_payees=affected,
        )

    if len(payout_payees) > len(persisted_payees):
        missing = payout_payees - persisted_payees
        return rebuild(f"{len(missing)} payee(s) missing from persisted reports", missing)

    if verify_totals:
        divergent = find_divergent_payees(persisted, payouts)
        if divergent:
            return rebuild(f"{len(divergent)} payee(s) with diverging totals", divergent)

        violations = verify_ledger(persisted)
        if violations:
            for violation in violations:
                logger.warning("Persisted ledger inconsistent: %s", violation)
            return rebuild(
                f"{len(violations)} balance violation(s) in persisted reports",
                {v.payee_id for v in violations},
            )

    return LedgerSelection(
        entries=sort_newest_first(persisted),
        source=EntrySource.PERSISTED,
        reason="persisted reports are current",
    )
