from __future__ import annotations
from datetime import datetime, date
from sqlalchemy import String, Date, DateTime, ForeignKey, Numeric, Text, Boolean, Integer, JSON, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lifeledger.db.base import Base
from lifeledger.models.category import Category
from lifeledger.scheduling.recurrence import Frequency
from lifeledger.scheduling.state import RuleStatus


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class RecurringTransaction(Base):
    __tablename__ = "recurring_transactions"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    ledger_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    account_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    # Entry details
    name: Mapped[str] = mapped_column(String(200))
    kind: Mapped[str] = mapped_column(String(20), index=True)  # Income/Expense
    amount: Mapped[float] = mapped_column(Numeric(14, 2, asdecimal=False))
    category_id: Mapped[int | None] = mapped_column(ForeignKey("categories.id"), nullable=True)
    category: Mapped["Category | None"] = relationship(lazy="selectin")
    note: Mapped[str] = mapped_column(Text, default="")
    tags: Mapped[list[str]] = mapped_column(JSON, default=list)

    # Recurrence rule
    frequency: Mapped[Frequency] = mapped_column(
        SAEnum(Frequency, name="recurrence_frequency", values_callable=_enum_values, create_constraint=True)
    )
    interval: Mapped[int] = mapped_column(Integer, default=1)
    anchor_day_of_week: Mapped[int | None] = mapped_column(Integer, nullable=True)    # 1=Mon..7=Sun
    anchor_day_of_month: Mapped[int | None] = mapped_column(Integer, nullable=True)   # 1-31
    anchor_month_of_year: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 1-12
    start_date: Mapped[date] = mapped_column(Date, index=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    max_occurrences: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Schedule state; a completed rule keeps next_due_date equal to last_executed_date
    next_due_date: Mapped[date] = mapped_column(Date, index=True)
    last_executed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    occurrence_count: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[RuleStatus] = mapped_column(
        SAEnum(RuleStatus, name="recurring_status", values_callable=_enum_values, create_constraint=True),
        default=RuleStatus.ACTIVE,
        index=True,
    )
    is_enabled: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    auto_execute: Mapped[bool] = mapped_column(Boolean, default=True)
    reminder_days_before: Mapped[int] = mapped_column(Integer, default=0)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Note: no relationship to booked entries is defined here.
    # Access them via select(LedgerEntry).where(LedgerEntry.recurring_transaction_id == self.id)
