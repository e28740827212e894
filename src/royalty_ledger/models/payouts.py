"""Payee and payout models."""

from __future__ import annotations

from datetime import date
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from royalty_ledger.models.base import Base, Money, TimestampMixin, UpdatedAtMixin


class Payee(Base, TimestampMixin, UpdatedAtMixin):
    """Entity entitled to receive royalty payments (writer, publisher, agent...)."""

    __tablename__ = "payee"

    payee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    payee_name: Mapped[str] = mapped_column(String, nullable=False)
    payee_type: Mapped[str] = mapped_column(String, nullable=False, default="writer")
    agreement_title: Mapped[str | None] = mapped_column(String, nullable=True)

    # Balance carried in from before the first recorded payout
    beginning_balance: Mapped[Money]
    beginning_balance_as_of_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    beginning_balance_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "payee_type IN ('writer', 'publisher', 'agent', 'artist', 'producer', 'other')",
            name="payee_type_check",
        ),
    )

    payouts: Mapped[list[PayoutRecord]] = relationship(back_populates="payee")


class PayoutRecord(Base, TimestampMixin):
    """One disbursement event tied to a payee.

    Read-only from the ledger's point of view; rows are written by the payout
    workflow (and by batch processing, see ``source_batch_id``).
    """

    __tablename__ = "payout"

    payout_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    payee_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("payee.payee_id", ondelete="SET NULL"),
        nullable=True,
    )
    contact_id: Mapped[UUID | None] = mapped_column(nullable=True)
    gross_royalties: Mapped[Money]
    total_expenses: Mapped[Money]
    amount_due: Mapped[Money]
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    workflow_stage: Mapped[str | None] = mapped_column(String, nullable=True)
    period_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    period_end: Mapped[date | None] = mapped_column(Date, nullable=True)
    source_batch_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("reconciliation_batch.reconciliation_batch_id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'processing', 'paid', 'cancelled')",
            name="payout_status_check",
        ),
        Index("ix_payout_user_payee", "user_id", "payee_id"),
        # One payout per payee per processed batch
        UniqueConstraint("source_batch_id", "payee_id", name="uq_payout_source_batch_payee"),
    )

    payee: Mapped[Payee | None] = relationship(back_populates="payouts")
