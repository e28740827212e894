"""Integration test fixtures: seeded payees, payouts and batches."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from royalty_ledger.api.app import create_app
from royalty_ledger.api.dependencies import get_db_session
from royalty_ledger.models import (
    Payee,
    PayoutRecord,
    ReconciliationBatch,
    RoyaltyAllocation,
)


@dataclass
class LedgerData:
    """Seeded ledger rows for one user."""

    user_id: UUID
    jane: Payee
    sam: Payee


@dataclass
class BatchData:
    """Seeded reconciliation batches for one user."""

    user_id: UUID
    complete: ReconciliationBatch
    incomplete: ReconciliationBatch
    processed: ReconciliationBatch
    payee: Payee


def add_payout(
    session: AsyncSession,
    user_id: UUID,
    payee_id: UUID | None,
    created: datetime,
    gross: str,
    expenses: str = "0",
    due: str = "0",
    status: str = "pending",
) -> PayoutRecord:
    payout = PayoutRecord(
        payout_id=uuid4(),
        user_id=user_id,
        payee_id=payee_id,
        gross_royalties=Decimal(gross),
        total_expenses=Decimal(expenses),
        amount_due=Decimal(due),
        status=status,
        created_at=created,
    )
    session.add(payout)
    return payout


@pytest.fixture
async def ledger_data(session: AsyncSession, user_id: UUID) -> LedgerData:
    """Two payees; Jane has the two-quarter 2024 history, Sam one 2024 Q1 payout."""
    jane = Payee(
        payee_id=uuid4(),
        user_id=user_id,
        payee_name="Jane Writer",
        payee_type="writer",
        agreement_title="Catalog A",
        beginning_balance=Decimal("0"),
    )
    sam = Payee(
        payee_id=uuid4(),
        user_id=user_id,
        payee_name="Sam Publisher",
        payee_type="publisher",
        agreement_title="Sub-Publishing",
        beginning_balance=Decimal("100.00"),
    )
    session.add_all([jane, sam])
    await session.flush()

    add_payout(
        session, user_id, jane.payee_id,
        datetime(2024, 2, 1, tzinfo=timezone.utc), "1000", "100", "900", status="paid",
    )
    add_payout(
        session, user_id, jane.payee_id,
        datetime(2024, 5, 1, tzinfo=timezone.utc), "1100", "50", "0",
    )
    add_payout(
        session, user_id, sam.payee_id,
        datetime(2024, 3, 1, tzinfo=timezone.utc), "40", "0", "0",
    )
    # Belongs to nobody; must be skipped
    add_payout(
        session, user_id, None,
        datetime(2024, 3, 2, tzinfo=timezone.utc), "5000",
    )
    # Another user's payout never leaks in
    add_payout(
        session, uuid4(), jane.payee_id,
        datetime(2024, 3, 3, tzinfo=timezone.utc), "777",
    )
    await session.flush()
    return LedgerData(user_id=user_id, jane=jane, sam=sam)


@pytest.fixture
async def batch_data(session: AsyncSession, user_id: UUID) -> BatchData:
    """A complete, an incomplete and an already processed batch."""
    payee = Payee(
        payee_id=uuid4(),
        user_id=user_id,
        payee_name="Jane Writer",
        payee_type="writer",
    )
    complete = ReconciliationBatch(
        reconciliation_batch_id=uuid4(),
        user_id=user_id,
        batch_id="DSP-2024-03",
        source="DSP",
        total_gross_amount=Decimal("1000.00"),
        date_received=date(2024, 4, 5),
        linked_statement_id="STMT-100",
        status="Imported",
    )
    incomplete = ReconciliationBatch(
        reconciliation_batch_id=uuid4(),
        user_id=user_id,
        batch_id="PRO-2024-Q1",
        source="PRO",
        total_gross_amount=Decimal("1000.00"),
        date_received=date(2024, 4, 1),
        status="Pending",
    )
    processed = ReconciliationBatch(
        reconciliation_batch_id=uuid4(),
        user_id=user_id,
        batch_id="YT-2023-12",
        source="YouTube",
        total_gross_amount=Decimal("50.00"),
        date_received=date(2024, 1, 10),
        status="Processed",
    )
    session.add_all([payee, complete, incomplete, processed])
    await session.flush()

    session.add_all(
        [
            # Direct and via the linked statement: counted once
            RoyaltyAllocation(
                royalty_allocation_id=uuid4(),
                user_id=user_id,
                batch_id=complete.reconciliation_batch_id,
                statement_id="STMT-100",
                payee_id=payee.payee_id,
                gross_royalty_amount=Decimal("600.00"),
            ),
            RoyaltyAllocation(
                royalty_allocation_id=uuid4(),
                user_id=user_id,
                staging_record_id="STMT-100",
                payee_id=payee.payee_id,
                gross_royalty_amount=Decimal("395.00"),
            ),
            RoyaltyAllocation(
                royalty_allocation_id=uuid4(),
                user_id=user_id,
                batch_id=incomplete.reconciliation_batch_id,
                payee_id=payee.payee_id,
                gross_royalty_amount=Decimal("990.00"),
            ),
            RoyaltyAllocation(
                royalty_allocation_id=uuid4(),
                user_id=user_id,
                batch_id=processed.reconciliation_batch_id,
                payee_id=payee.payee_id,
                gross_royalty_amount=Decimal("50.00"),
            ),
        ]
    )
    await session.flush()
    return BatchData(
        user_id=user_id,
        complete=complete,
        incomplete=incomplete,
        processed=processed,
        payee=payee,
    )


@pytest.fixture
async def client(session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client bound to the test session."""
    app = create_app()

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_db_session] = override_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
