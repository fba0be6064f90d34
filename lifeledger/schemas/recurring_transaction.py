from __future__ import annotations

from datetime import date, datetime
from pydantic import BaseModel, Field, computed_field, field_validator
from typing import Optional

from lifeledger.models.ledger_entry import TransactionKind
from lifeledger.scheduling.recurrence import Frequency, RecurrenceRule, describe
from lifeledger.scheduling.state import RuleStatus
from lifeledger.utils.dates import to_epoch_day


class RecurringTransactionBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    kind: TransactionKind
    amount: float
    category_id: Optional[int] = None
    note: str = ""
    tags: list[str] = Field(default_factory=list)
    ledger_id: Optional[int] = None
    account_id: Optional[int] = None
    frequency: Frequency = Frequency.MONTHLY
    interval: int = 1
    # ranges are checked by the scheduler so every driver gets the same message
    anchor_day_of_week: Optional[int] = Field(None, description="1=Monday .. 7=Sunday")
    anchor_day_of_month: Optional[int] = Field(None, description="1-31, clamped to the month length")
    anchor_month_of_year: Optional[int] = Field(None, description="1-12, yearly rules only")
    start_date: date
    end_date: Optional[date] = None
    max_occurrences: Optional[int] = None
    auto_execute: bool = True
    reminder_days_before: int = Field(0, ge=0, le=365)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError('Name cannot be empty')
        return v.strip()


class RecurringTransactionCreate(RecurringTransactionBase):
    pass


class RecurringTransactionUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    kind: Optional[TransactionKind] = None
    amount: Optional[float] = None
    category_id: Optional[int] = None
    note: Optional[str] = None
    tags: Optional[list[str]] = None
    ledger_id: Optional[int] = None
    account_id: Optional[int] = None
    frequency: Optional[Frequency] = None
    interval: Optional[int] = None
    anchor_day_of_week: Optional[int] = None
    anchor_day_of_month: Optional[int] = None
    anchor_month_of_year: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    max_occurrences: Optional[int] = None
    auto_execute: Optional[bool] = None
    reminder_days_before: Optional[int] = Field(None, ge=0, le=365)


class RecurringTransactionOut(BaseModel):
    id: int
    ledger_id: Optional[int] = None
    account_id: Optional[int] = None
    name: str
    kind: TransactionKind
    amount: float
    category_id: Optional[int] = None
    note: str = ""
    tags: list[str] = Field(default_factory=list)
    frequency: Frequency
    interval: int
    anchor_day_of_week: Optional[int] = None
    anchor_day_of_month: Optional[int] = None
    anchor_month_of_year: Optional[int] = None
    start_date: date
    end_date: Optional[date] = None
    max_occurrences: Optional[int] = None
    next_due_date: date
    last_executed_date: Optional[date] = None
    occurrence_count: int
    status: RuleStatus
    is_enabled: bool
    auto_execute: bool
    reminder_days_before: int
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def schedule_description(self) -> str:
        return describe(RecurrenceRule.from_record(self))

    @computed_field
    @property
    def next_due_epoch_day(self) -> int:
        return to_epoch_day(self.next_due_date)

    @computed_field
    @property
    def start_epoch_day(self) -> int:
        return to_epoch_day(self.start_date)

    class Config:
        from_attributes = True


class LedgerEntryOut(BaseModel):
    id: int
    ledger_id: Optional[int] = None
    recurring_transaction_id: Optional[int] = None
    entry_date: date
    kind: TransactionKind
    amount: float
    description: Optional[str] = None
    category_id: Optional[int] = None
    notes: Optional[str] = None
    is_generated: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ExecutionOut(BaseModel):
    fired_date: date
    completed: bool
    entry: LedgerEntryOut
    rule: RecurringTransactionOut

    class Config:
        from_attributes = True


class RunDueOut(BaseModel):
    today: date
    executed: list[ExecutionOut] = Field(default_factory=list)
    skipped: list[int] = Field(default_factory=list)
    failed: list[int] = Field(default_factory=list)

    class Config:
        from_attributes = True


class RecurringSummaryOut(BaseModel):
    kind: TransactionKind
    count: int
    total: float


class OccurrencesOut(BaseModel):
    rule_id: int
    dates: list[date]
