from __future__ import annotations
from datetime import datetime, date
from enum import Enum
from sqlalchemy import Integer, String, Date, DateTime, ForeignKey, Numeric, Text, Boolean, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lifeledger.db.base import Base
from lifeledger.models.category import Category


class TransactionKind(str, Enum):
    INCOME = "Income"
    EXPENSE = "Expense"


class LedgerEntry(Base):
    """A booked income/expense line; generated entries point back at their rule."""
    __tablename__ = "ledger_entries"
    __table_args__ = (
        UniqueConstraint("recurring_transaction_id", "entry_date", name="uq_ledger_entry_rule_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    ledger_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    recurring_transaction_id: Mapped[int | None] = mapped_column(
        ForeignKey("recurring_transactions.id", ondelete="SET NULL"), index=True, nullable=True
    )

    entry_date: Mapped[date] = mapped_column(Date, index=True)
    kind: Mapped[str] = mapped_column(String(20), index=True, default=TransactionKind.EXPENSE.value)
    amount: Mapped[float] = mapped_column(Numeric(14, 2, asdecimal=False))
    description: Mapped[str | None] = mapped_column(Text, default=None)

    category_id: Mapped[int | None] = mapped_column(ForeignKey("categories.id"), nullable=True, index=True)
    category: Mapped["Category | None"] = relationship(lazy="selectin")
    notes: Mapped[str | None] = mapped_column(Text, default=None)
    is_generated: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
