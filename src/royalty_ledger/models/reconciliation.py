"""Reconciliation batch and royalty allocation models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from royalty_ledger.models.base import Base, Money, TimestampMixin, UpdatedAtMixin


class ReconciliationBatch(Base, TimestampMixin, UpdatedAtMixin):
    """An externally received royalty statement awaiting allocation."""

    __tablename__ = "reconciliation_batch"

    reconciliation_batch_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    batch_id: Mapped[str] = mapped_column(String, nullable=False)
    source: Mapped[str] = mapped_column(String, nullable=False)
    total_gross_amount: Mapped[Money]
    date_received: Mapped[date] = mapped_column(Date, nullable=False)
    # A statement may back at most one batch
    linked_statement_id: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)
    status: Mapped[str] = mapped_column(String, nullable=False, default="Pending")
    statement_period_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    statement_period_end: Mapped[date | None] = mapped_column(Date, nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    processed_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    processed_quarter: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "source IN ('DSP', 'PRO', 'YouTube', 'Other')",
            name="reconciliation_batch_source_check",
        ),
        CheckConstraint(
            "status IN ('Pending', 'Imported', 'Processed')",
            name="reconciliation_batch_status_check",
        ),
    )

    allocations: Mapped[list[RoyaltyAllocation]] = relationship(back_populates="batch")


class RoyaltyAllocation(Base, TimestampMixin):
    """Portion of gross royalty attributed to a batch and/or a statement."""

    __tablename__ = "royalty_allocation"

    royalty_allocation_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    batch_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("reconciliation_batch.reconciliation_batch_id", ondelete="SET NULL"),
        nullable=True,
    )
    statement_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    staging_record_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    payee_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("payee.payee_id", ondelete="SET NULL"),
        nullable=True,
    )
    song_title: Mapped[str | None] = mapped_column(String, nullable=True)
    gross_royalty_amount: Mapped[Money]
    net_amount: Mapped[Decimal | None] = mapped_column(nullable=True)

    batch: Mapped[ReconciliationBatch | None] = relationship(back_populates="allocations")
