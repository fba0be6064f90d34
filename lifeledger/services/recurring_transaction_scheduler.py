import asyncio
import logging
from datetime import date
from typing import List

from sqlalchemy.exc import SQLAlchemyError

from lifeledger.core.config import settings
from lifeledger.core.errors import ScheduleError
from lifeledger.db.session import AsyncSessionLocal
from lifeledger.services.schedule_engine import RunReport, ScheduleEngine

logger = logging.getLogger(__name__)


class RecurringTransactionScheduler:
    """Drives the schedule engine from outside a request: the startup loop and the CLI"""

    @staticmethod
    async def run_due(today: date | None = None) -> RunReport:
        """Execute every due auto-executing rule once, in a fresh session."""
        async with AsyncSessionLocal() as db:
            return await ScheduleEngine(db).run_due(today)

    @staticmethod
    async def due(today: date | None = None) -> List[dict]:
        async with AsyncSessionLocal() as db:
            rules = await ScheduleEngine(db).due_rules(today)
            return [_rule_row(rule) for rule in rules]

    @staticmethod
    async def reminders(today: date | None = None) -> List[dict]:
        async with AsyncSessionLocal() as db:
            rules = await ScheduleEngine(db).upcoming_reminders(today)
            return [_rule_row(rule) for rule in rules]

    @staticmethod
    async def preview(rule_id: int, count: int = 12) -> List[date]:
        async with AsyncSessionLocal() as db:
            return await ScheduleEngine(db).preview(rule_id, count)


def _rule_row(rule) -> dict:
    return {
        "id": rule.id,
        "name": rule.name,
        "kind": rule.kind,
        "amount": float(rule.amount),
        "next_due_date": rule.next_due_date,
        "auto_execute": rule.auto_execute,
    }


async def run_recurring_transactions_scheduler() -> None:
    """
    Background task started with the API.
    Runs shortly after startup, then every SCHEDULER_INTERVAL_SECONDS. A failed
    run is retried after SCHEDULER_RETRY_SECONDS.
    """
    delay = settings.SCHEDULER_STARTUP_DELAY_SECONDS
    while True:
        await asyncio.sleep(delay)
        try:
            report = await RecurringTransactionScheduler.run_due(date.today())
        except (ScheduleError, SQLAlchemyError, OSError):
            logger.exception(
                "Recurring transaction run failed; retrying in %ss", settings.SCHEDULER_RETRY_SECONDS
            )
            delay = settings.SCHEDULER_RETRY_SECONDS
            continue

        if report.failed:
            logger.warning("Recurring transactions %s failed and will be retried next run", report.failed)
        delay = settings.SCHEDULER_INTERVAL_SECONDS
