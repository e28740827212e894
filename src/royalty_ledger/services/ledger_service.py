"""Quarterly balance ledger service.

Reads one snapshot of a user's persisted reports, payouts and payees,
normalizes them, and serves the ledger from whichever source is current.
Also regenerates the persisted reports from payouts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from royalty_ledger.config import get_settings
from royalty_ledger.ledger.builder import build_ledger_from_payouts, select_ledger_source
from royalty_ledger.ledger.normalize import entry_from_report, payee_directory, payout_from_model
from royalty_ledger.ledger.types import (
    LedgerSelection,
    PayeeInfo,
    PayoutSnapshot,
    QuarterlyBalanceEntry,
)
from royalty_ledger.models import Payee, PayoutRecord, QuarterlyBalanceReport
from royalty_ledger.services.cache import LedgerCache

logger = logging.getLogger(__name__)


@dataclass
class LedgerInputs:
    """Everything the ledger needs for one user, read together."""

    persisted: list[QuarterlyBalanceEntry]
    payouts: list[PayoutSnapshot]
    payees: dict[UUID, PayeeInfo]


class LedgerService:
    """Service for serving and regenerating quarterly balance ledgers."""

    def __init__(
        self,
        session: AsyncSession,
        cache: LedgerCache | None = None,
        verify_totals: bool | None = None,
        cache_ttl_seconds: int | None = None,
    ):
        settings = get_settings()
        self.session = session
        self.cache = cache
        self.verify_totals = (
            settings.verify_ledger_totals if verify_totals is None else verify_totals
        )
        self.cache_ttl_seconds = (
            settings.ledger_cache_ttl_seconds if cache_ttl_seconds is None else cache_ttl_seconds
        )

    async def load_inputs(self, user_id: UUID) -> LedgerInputs:
        """Read payees, payouts and persisted reports for a user."""
        payee_rows = (
            await self.session.execute(select(Payee).where(Payee.user_id == user_id))
        ).scalars().all()
        payees = payee_directory(payee_rows)

        payout_rows = (
            await self.session.execute(
                select(PayoutRecord)
                .where(PayoutRecord.user_id == user_id)
                .order_by(PayoutRecord.created_at)
            )
        ).scalars().all()

        report_rows = (
            await self.session.execute(
                select(QuarterlyBalanceReport)
                .where(QuarterlyBalanceReport.user_id == user_id)
                .order_by(
                    QuarterlyBalanceReport.year.desc(),
                    QuarterlyBalanceReport.quarter.desc(),
                )
            )
        ).scalars().all()

        return LedgerInputs(
            persisted=[entry_from_report(row, payees) for row in report_rows],
            payouts=[payout_from_model(row) for row in payout_rows],
            payees=payees,
        )

    async def get_ledger(
        self, user_id: UUID, verify_totals: bool | None = None
    ) -> LedgerSelection:
        """Return the user's ledger, newest-first, from the current source."""
        verify = self.verify_totals if verify_totals is None else verify_totals
        # Selections made under a non-default check are not shared.
        use_cache = self.cache is not None and verify == self.verify_totals
        key = self._cache_key(user_id)
        if use_cache:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        inputs = await self.load_inputs(user_id)
        selection = select_ledger_source(
            inputs.persisted,
            inputs.payouts,
            inputs.payees,
            verify_totals=verify,
        )
        logger.info(
            "Ledger for user %s served from %s rows (%s)",
            user_id,
            selection.source.value,
            selection.reason,
        )

        if use_cache:
            self.cache.set(key, selection, self.cache_ttl_seconds)
        return selection

    async def get_payee_ledger(
        self, user_id: UUID, payee_id: UUID
    ) -> list[QuarterlyBalanceEntry]:
        """One payee's entries, newest-first."""
        selection = await self.get_ledger(user_id)
        return [e for e in selection.entries if e.payee_id == payee_id]

    async def regenerate_reports(self, user_id: UUID, now: datetime | None = None) -> int:
        """Rebuild the user's ledger from payouts and replace persisted reports.

        Returns the number of report rows written.
        """
        now = now or datetime.now(timezone.utc)
        inputs = await self.load_inputs(user_id)
        ledger = build_ledger_from_payouts(inputs.payouts, inputs.payees)

        await self.session.execute(
            delete(QuarterlyBalanceReport).where(QuarterlyBalanceReport.user_id == user_id)
        )

        written = 0
        for payee_entries in ledger.values():
            for entry in payee_entries:
                self.session.add(
                    QuarterlyBalanceReport(
                        user_id=user_id,
                        payee_id=entry.payee_id,
                        year=entry.year,
                        quarter=entry.quarter,
                        opening_balance=entry.opening_balance,
                        royalties_amount=entry.royalties_amount,
                        expenses_amount=entry.expenses_amount,
                        payments_amount=entry.payments_amount,
                        closing_balance=entry.closing_balance,
                        is_calculated=True,
                        calculation_date=now,
                    )
                )
                written += 1

        await self.session.flush()
        self.invalidate(user_id)

        logger.info("Regenerated %d quarterly balance report(s) for user %s", written, user_id)
        return written

    def invalidate(self, user_id: UUID) -> None:
        """Drop the cached ledger for a user (after payouts change)."""
        if self.cache is not None:
            self.cache.invalidate(self._cache_key(user_id))

    def _cache_key(self, user_id: UUID) -> str:
        return f"ledger:{user_id}"
