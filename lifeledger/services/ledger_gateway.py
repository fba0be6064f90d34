"""
Booking side of the scheduler.

The engine only depends on the ``LedgerGateway`` protocol. ``SqlLedgerGateway``
writes into ``ledger_entries`` inside the caller's session and never commits,
so the booking and the rule update land in the same database transaction.
"""
import logging
from datetime import date
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lifeledger.core.errors import PersistenceError
from lifeledger.models.ledger_entry import LedgerEntry
from lifeledger.models.recurring_transaction import RecurringTransaction
from lifeledger.repositories.ledger_entry_repository import LedgerEntryRepository

logger = logging.getLogger(__name__)


class LedgerGateway(Protocol):
    async def book_entry(self, rule: RecurringTransaction, entry_date: date) -> LedgerEntry:
        """Book one occurrence of ``rule`` dated ``entry_date``.

        Must be idempotent on (rule.id, entry_date) and raise PersistenceError
        on storage failure.
        """
        ...


class SqlLedgerGateway:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.entry_repo = LedgerEntryRepository(db)

    async def book_entry(self, rule: RecurringTransaction, entry_date: date) -> LedgerEntry:
        try:
            existing = await self.entry_repo.find_for_occurrence(rule.id, entry_date)
            if existing:
                logger.info("Entry for rule %s on %s already booked (#%s)", rule.id, entry_date, existing.id)
                return existing

            entry = LedgerEntry(
                ledger_id=rule.ledger_id,
                recurring_transaction_id=rule.id,
                entry_date=entry_date,
                kind=rule.kind,
                amount=rule.amount,
                description=rule.name,
                category_id=rule.category_id,
                notes=rule.note or None,
                is_generated=True,
            )
            return await self.entry_repo.add(entry)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not book entry for rule {rule.id} on {entry_date}") from exc
