"""Persisted quarterly balance report model."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from royalty_ledger.models.base import Base, Money, TimestampMixin, UpdatedAtMixin
from royalty_ledger.models.payouts import Payee


class QuarterlyBalanceReport(Base, TimestampMixin, UpdatedAtMixin):
    """One (payee, year, quarter) balance row as stored by report generation."""

    __tablename__ = "quarterly_balance_report"

    quarterly_balance_report_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    payee_id: Mapped[UUID] = mapped_column(
        ForeignKey("payee.payee_id", ondelete="CASCADE"),
        nullable=False,
    )
    contact_id: Mapped[UUID | None] = mapped_column(nullable=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    quarter: Mapped[int] = mapped_column(Integer, nullable=False)
    opening_balance: Mapped[Money]
    royalties_amount: Mapped[Money]
    expenses_amount: Mapped[Money]
    payments_amount: Mapped[Money]
    closing_balance: Mapped[Money]
    is_calculated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    calculation_date: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        CheckConstraint("quarter BETWEEN 1 AND 4", name="quarterly_balance_report_quarter_check"),
        UniqueConstraint(
            "user_id", "payee_id", "year", "quarter",
            name="quarterly_balance_report_period_uniq",
        ),
    )

    payee: Mapped[Payee] = relationship()

    @property
    def period_label(self) -> str:
        return f"Q{self.quarter} {self.year}"
