from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import and_, func, or_, select, update
from datetime import date, datetime

from lifeledger.models.recurring_transaction import RecurringTransaction
from lifeledger.scheduling.state import RuleStatus, ScheduleState


class RecurringTransactionRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, data: dict) -> RecurringTransaction:
        """Create a new recurring transaction"""
        rule = RecurringTransaction(**data)
        self.db.add(rule)
        await self.db.commit()
        await self.db.refresh(rule)
        return rule

    async def get_by_id(self, rule_id: int) -> Optional[RecurringTransaction]:
        """Get a recurring transaction by ID"""
        res = await self.db.execute(
            select(RecurringTransaction).where(RecurringTransaction.id == rule_id)
        )
        return res.scalar_one_or_none()

    async def list(self, ledger_id: int | None = None, enabled_only: bool = False) -> List[RecurringTransaction]:
        """List recurring transactions, enabled first, by next due date"""
        query = select(RecurringTransaction)
        if ledger_id is not None:
            query = query.where(RecurringTransaction.ledger_id == ledger_id)
        if enabled_only:
            query = query.where(RecurringTransaction.is_enabled == True)
        query = query.order_by(
            RecurringTransaction.is_enabled.desc(),
            RecurringTransaction.next_due_date,
            RecurringTransaction.id,
        )
        res = await self.db.execute(query)
        return list(res.scalars().all())

    async def list_due(self, today: date) -> List[RecurringTransaction]:
        """Enabled, active rules whose current occurrence is due on or before today"""
        res = await self.db.execute(
            select(RecurringTransaction)
            .where(
                and_(
                    RecurringTransaction.is_enabled == True,
                    RecurringTransaction.status == RuleStatus.ACTIVE,
                    RecurringTransaction.next_due_date <= today,
                    or_(
                        RecurringTransaction.max_occurrences.is_(None),
                        RecurringTransaction.occurrence_count < RecurringTransaction.max_occurrences,
                    ),
                    or_(
                        RecurringTransaction.end_date.is_(None),
                        RecurringTransaction.next_due_date <= RecurringTransaction.end_date,
                    ),
                )
            )
            .order_by(RecurringTransaction.next_due_date, RecurringTransaction.id)
        )
        return list(res.scalars().all())

    async def list_reminder_candidates(self, today: date) -> List[RecurringTransaction]:
        """Enabled, active manual rules due after today"""
        res = await self.db.execute(
            select(RecurringTransaction)
            .where(
                and_(
                    RecurringTransaction.is_enabled == True,
                    RecurringTransaction.status == RuleStatus.ACTIVE,
                    RecurringTransaction.auto_execute == False,
                    RecurringTransaction.next_due_date > today,
                )
            )
            .order_by(RecurringTransaction.next_due_date, RecurringTransaction.id)
        )
        return list(res.scalars().all())

    async def summary_by_kind(self) -> List[tuple[str, int, float]]:
        """(kind, count, total amount) over enabled, active rules"""
        res = await self.db.execute(
            select(
                RecurringTransaction.kind,
                func.count(RecurringTransaction.id),
                func.coalesce(func.sum(RecurringTransaction.amount), 0),
            )
            .where(
                RecurringTransaction.is_enabled == True,
                RecurringTransaction.status == RuleStatus.ACTIVE,
            )
            .group_by(RecurringTransaction.kind)
            .order_by(RecurringTransaction.kind)
        )
        return [(kind, count, float(total)) for kind, count, total in res.all()]

    async def update(self, rule: RecurringTransaction, data: dict) -> RecurringTransaction:
        """Update a recurring transaction"""
        for field, value in data.items():
            setattr(rule, field, value)
        rule.updated_at = datetime.utcnow()
        await self.db.commit()
        await self.db.refresh(rule)
        return rule

    async def set_enabled(self, rule: RecurringTransaction, is_enabled: bool) -> RecurringTransaction:
        """Pause or resume without touching the schedule"""
        rule.is_enabled = is_enabled
        rule.updated_at = datetime.utcnow()
        await self.db.commit()
        await self.db.refresh(rule)
        return rule

    async def apply_execution(self, rule_id: int, before: ScheduleState, after: ScheduleState) -> bool:
        """
        Compare-and-set the schedule state after an execution.
        Only matches while the stored state is still `before`; does not commit.
        Returns False when another writer advanced the rule first.
        """
        res = await self.db.execute(
            update(RecurringTransaction)
            .where(
                RecurringTransaction.id == rule_id,
                RecurringTransaction.next_due_date == before.next_due_date,
                RecurringTransaction.occurrence_count == before.occurrence_count,
                RecurringTransaction.status == before.status,
            )
            .values(
                next_due_date=after.next_due_date,
                last_executed_date=after.last_executed_date,
                occurrence_count=after.occurrence_count,
                status=after.status,
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        return res.rowcount == 1

    async def delete(self, rule: RecurringTransaction) -> bool:
        """Delete a recurring transaction; the caller has detached its entries"""
        await self.db.delete(rule)
        await self.db.commit()
        return True
