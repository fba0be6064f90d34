import logging
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lifeledger.core.errors import (
    AlreadyExecutedError,
    PersistenceError,
    RuleCompletedError,
    RuleNotFoundError,
    RulePausedError,
    RuleValidationError,
)
from lifeledger.models.ledger_entry import LedgerEntry, TransactionKind
from lifeledger.models.recurring_transaction import RecurringTransaction
from lifeledger.repositories.category_repository import CategoryRepository
from lifeledger.repositories.ledger_entry_repository import LedgerEntryRepository
from lifeledger.repositories.recurring_transaction_repository import RecurringTransactionRepository
from lifeledger.scheduling.recurrence import RecurrenceRule, advance, occurrences, seed
from lifeledger.scheduling.state import RuleStatus, ScheduleState, fire, is_due
from lifeledger.schemas.recurring_transaction import (
    RecurringTransactionCreate,
    RecurringTransactionUpdate,
)
from lifeledger.services.ledger_gateway import LedgerGateway, SqlLedgerGateway
from lifeledger.services.locks import RuleLocks, rule_locks

logger = logging.getLogger(__name__)

RULE_FIELDS = (
    "frequency", "interval", "anchor_day_of_week", "anchor_day_of_month",
    "anchor_month_of_year", "start_date", "end_date", "max_occurrences",
)
EDITABLE_FIELDS = RULE_FIELDS + (
    "name", "kind", "amount", "category_id", "note", "tags", "ledger_id",
    "account_id", "auto_execute", "reminder_days_before",
)


@dataclass
class ExecutionOutcome:
    rule: RecurringTransaction
    entry: LedgerEntry
    fired_date: date
    completed: bool


@dataclass
class RunReport:
    today: date
    executed: list[ExecutionOutcome] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)


class ScheduleEngine:
    """Lifecycle of recurring transactions: seed, detect due, execute, terminate."""

    def __init__(
        self,
        db: AsyncSession,
        ledger: Optional[LedgerGateway] = None,
        locks: Optional[RuleLocks] = None,
    ):
        self.db = db
        self.rule_repo = RecurringTransactionRepository(db)
        self.entry_repo = LedgerEntryRepository(db)
        self.category_repository = CategoryRepository(db)
        self.ledger = ledger or SqlLedgerGateway(db)
        self.locks = locks or rule_locks

    # ── validation ────────────────────────────────────────

    @staticmethod
    def _validate_entry_fields(data: dict) -> None:
        name = data.get("name")
        if not name or not name.strip():
            raise RuleValidationError("Name cannot be empty")
        amount = data.get("amount")
        if amount is None or not math.isfinite(amount) or amount <= 0:
            raise RuleValidationError("Amount must be positive")
        try:
            data["kind"] = TransactionKind(data.get("kind")).value
        except ValueError:
            raise RuleValidationError("Kind must be Income or Expense") from None
        data["name"] = name.strip()
        if data.get("note") is None:
            data["note"] = ""
        if data.get("tags") is None:
            data["tags"] = []
        if data.get("reminder_days_before") is None or data["reminder_days_before"] < 0:
            raise RuleValidationError("reminder_days_before cannot be negative")
        if not isinstance(data.get("auto_execute"), bool):
            raise RuleValidationError("auto_execute must be true or false")

    async def _resolve_category(self, category_id: int | None) -> None:
        if category_id is None:
            return
        category = await self.category_repository.get(category_id)
        if not category:
            raise RuleValidationError(f"Category {category_id} does not exist")
        if not category.is_active:
            raise RuleValidationError(f"Category '{category.name}' is not active")

    async def _validated(self, data: dict) -> RecurrenceRule:
        self._validate_entry_fields(data)
        rule = RecurrenceRule(**{name: data.get(name) for name in RULE_FIELDS})
        data["frequency"] = rule.frequency
        await self._resolve_category(data.get("category_id"))
        return rule

    @staticmethod
    def _first_due(rule: RecurrenceRule, today: date, last_executed: date | None = None) -> date:
        due = seed(rule, today)
        # never hand back a day that was already booked
        while last_executed is not None and due <= last_executed:
            due = advance(rule, due)
        if rule.end_date is not None and due > rule.end_date:
            raise RuleValidationError(
                f"No occurrence falls between {max(rule.start_date, today + timedelta(days=1))} "
                f"and the end date {rule.end_date}"
            )
        return due

    # ── CRUD ──────────────────────────────────────────────

    async def get_rule(self, rule_id: int) -> RecurringTransaction:
        rule = await self.rule_repo.get_by_id(rule_id)
        if not rule:
            raise RuleNotFoundError(rule_id)
        return rule

    async def list_rules(self, ledger_id: int | None = None, enabled_only: bool = False) -> List[RecurringTransaction]:
        return await self.rule_repo.list(ledger_id=ledger_id, enabled_only=enabled_only)

    async def create_rule(self, spec: RecurringTransactionCreate, today: date | None = None) -> RecurringTransaction:
        """Validate, seed the first due date and persist a new rule"""
        today = today or date.today()
        data = spec.model_dump()
        rule = await self._validated(data)

        first_due = self._first_due(rule, today)
        data.update(
            next_due_date=first_due,
            last_executed_date=None,
            occurrence_count=0,
            status=RuleStatus.ACTIVE,
            is_enabled=True,
        )
        try:
            created = await self.rule_repo.create(data)
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise PersistenceError("Could not save recurring transaction") from exc

        logger.info(
            "Created recurring transaction #%s '%s' (%s), first due %s",
            created.id, created.name, created.frequency.value, created.next_due_date,
        )
        return created

    async def edit_rule(
        self, rule_id: int, spec: RecurringTransactionUpdate, today: date | None = None
    ) -> RecurringTransaction:
        """
        Replace the rule fields and re-seed next_due_date from the new rule.
        Progress toward the old schedule is discarded; occurrence_count and
        last_executed_date are kept. Completed rules cannot be edited.
        """
        today = today or date.today()
        current = await self.get_rule(rule_id)
        if RuleStatus(current.status) is RuleStatus.COMPLETED:
            raise RuleCompletedError(rule_id)
        data = {name: getattr(current, name) for name in EDITABLE_FIELDS}
        data.update(spec.model_dump(exclude_unset=True))
        rule = await self._validated(data)

        if rule.max_occurrences is not None and rule.max_occurrences <= current.occurrence_count:
            raise RuleValidationError(
                f"max_occurrences must exceed the {current.occurrence_count} occurrence(s) already booked"
            )
        data.update(next_due_date=self._first_due(rule, today, current.last_executed_date))
        try:
            updated = await self.rule_repo.update(current, data)
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise PersistenceError(f"Could not update recurring transaction {rule_id}") from exc

        logger.info("Edited recurring transaction #%s, next due %s", rule_id, updated.next_due_date)
        return updated

    async def delete_rule(self, rule_id: int) -> None:
        """Delete a rule; entries it already booked stay in the ledger"""
        rule = await self.get_rule(rule_id)
        try:
            await self.entry_repo.detach_rule(rule_id)
            await self.rule_repo.delete(rule)
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise PersistenceError(f"Could not delete recurring transaction {rule_id}") from exc
        self.locks.discard(rule_id)
        logger.info("Deleted recurring transaction #%s", rule_id)

    async def pause(self, rule_id: int) -> RecurringTransaction:
        return await self._set_enabled(rule_id, False)

    async def resume(self, rule_id: int) -> RecurringTransaction:
        return await self._set_enabled(rule_id, True)

    async def _set_enabled(self, rule_id: int, is_enabled: bool) -> RecurringTransaction:
        rule = await self.get_rule(rule_id)
        try:
            rule = await self.rule_repo.set_enabled(rule, is_enabled)
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise PersistenceError(f"Could not update recurring transaction {rule_id}") from exc
        logger.info(
            "%s recurring transaction #%s (next due %s)",
            "Resumed" if is_enabled else "Paused", rule_id, rule.next_due_date,
        )
        return rule

    # ── scheduling ────────────────────────────────────────

    async def due_rules(self, today: date | None = None) -> List[RecurringTransaction]:
        """Rules whose current occurrence is due on or before today. Read-only."""
        today = today or date.today()
        candidates = await self.rule_repo.list_due(today)
        return [
            rule for rule in candidates
            if is_due(RecurrenceRule.from_record(rule), ScheduleState.from_record(rule), today, rule.is_enabled)
        ]

    async def execute(self, rule_id: int) -> ExecutionOutcome:
        """
        Book the occurrence at next_due_date and advance the rule.

        The booking and the rule update are committed together; on failure
        both are rolled back and PersistenceError is raised.
        """
        async with self.locks.for_rule(rule_id):
            return await self._execute_locked(rule_id)

    async def _execute_locked(self, rule_id: int) -> ExecutionOutcome:
        rule = await self.get_rule(rule_id)
        if not rule.is_enabled:
            raise RulePausedError(rule_id)

        before = ScheduleState.from_record(rule)
        after = fire(RecurrenceRule.from_record(rule), before, rule_id)
        fired_date = before.next_due_date

        try:
            entry = await self.ledger.book_entry(rule, fired_date)
            if not await self.rule_repo.apply_execution(rule_id, before, after):
                await self.db.rollback()
                raise AlreadyExecutedError(rule_id, fired_date)
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("Executing recurring transaction #%s for %s failed: %s", rule_id, fired_date, exc)
            raise PersistenceError(f"Could not execute recurring transaction {rule_id}") from exc
        except PersistenceError:
            await self.db.rollback()
            logger.error("Booking recurring transaction #%s for %s failed", rule_id, fired_date)
            raise

        await self.db.refresh(rule)
        completed = after.is_completed
        if completed:
            logger.info(
                "Recurring transaction #%s fired %s and is now completed after %s occurrence(s)",
                rule_id, fired_date, after.occurrence_count,
            )
        else:
            logger.info("Recurring transaction #%s fired %s, next due %s", rule_id, fired_date, after.next_due_date)
        return ExecutionOutcome(rule=rule, entry=entry, fired_date=fired_date, completed=completed)

    async def run_due(self, today: date | None = None) -> RunReport:
        """
        Execute every due auto-executing rule once.
        At most one occurrence per rule fires per call, however overdue it is.
        """
        today = today or date.today()
        due = await self.due_rules(today)
        rule_ids = [rule.id for rule in due if rule.auto_execute]
        report = RunReport(today=today)

        for rule_id in rule_ids:
            try:
                outcome = await self.execute(rule_id)
            except (AlreadyExecutedError, RuleCompletedError, RulePausedError, RuleNotFoundError) as exc:
                logger.debug("Skipping recurring transaction #%s: %s", rule_id, exc)
                report.skipped.append(rule_id)
            except PersistenceError:
                report.failed.append(rule_id)
            else:
                report.executed.append(outcome)

        if report.failed:
            # a rollback expired everything loaded in this session
            for outcome in report.executed:
                await self.db.refresh(outcome.rule)
                await self.db.refresh(outcome.entry)

        logger.info(
            "Recurring run for %s: %s executed, %s skipped, %s failed",
            today, len(report.executed), len(report.skipped), len(report.failed),
        )
        return report

    async def upcoming_reminders(self, today: date | None = None) -> List[RecurringTransaction]:
        """Manual rules falling due within their reminder window"""
        today = today or date.today()
        candidates = await self.rule_repo.list_reminder_candidates(today)
        return [
            rule for rule in candidates
            if rule.next_due_date <= today + timedelta(days=rule.reminder_days_before)
        ]

    async def preview(self, rule_id: int, limit: int = 12) -> List[date]:
        """Upcoming due dates of a rule, starting with its current next_due_date"""
        rule = await self.get_rule(rule_id)
        state = ScheduleState.from_record(rule)
        if state.is_completed:
            return []
        return occurrences(RecurrenceRule.from_record(rule), state.next_due_date, limit, state.occurrence_count)

    async def summary(self) -> List[dict]:
        """Count and total amount of enabled, active rules per kind"""
        rows = await self.rule_repo.summary_by_kind()
        return [{"kind": kind, "count": count, "total": total} for kind, count, total in rows]

    async def list_entries(self, rule_id: int) -> List[LedgerEntry]:
        await self.get_rule(rule_id)
        return await self.entry_repo.list_by_rule(rule_id)
