from datetime import date

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lifeledger.models.ledger_entry import LedgerEntry


class LedgerEntryRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, entry_id: int) -> LedgerEntry | None:
        res = await self.db.execute(select(LedgerEntry).where(LedgerEntry.id == entry_id))
        return res.scalar_one_or_none()

    async def find_for_occurrence(self, rule_id: int, entry_date: date) -> LedgerEntry | None:
        """The entry already booked for (rule, date), if any"""
        res = await self.db.execute(
            select(LedgerEntry).where(
                LedgerEntry.recurring_transaction_id == rule_id,
                LedgerEntry.entry_date == entry_date,
            )
        )
        return res.scalar_one_or_none()

    async def add(self, entry: LedgerEntry) -> LedgerEntry:
        """Stage an entry in the current transaction; the caller commits"""
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def list_by_rule(self, rule_id: int) -> list[LedgerEntry]:
        res = await self.db.execute(
            select(LedgerEntry)
            .where(LedgerEntry.recurring_transaction_id == rule_id)
            .order_by(LedgerEntry.entry_date.desc())
        )
        return list(res.scalars().all())

    async def detach_rule(self, rule_id: int) -> None:
        """Keep booked entries when their rule is deleted; the caller commits"""
        await self.db.execute(
            update(LedgerEntry)
            .where(LedgerEntry.recurring_transaction_id == rule_id)
            .values(recurring_transaction_id=None)
        )
