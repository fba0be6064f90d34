"""
Lifecycle state of a recurring transaction and its transitions.

``fire`` turns the state before an execution into the state after it. The
engine books the ledger entry, then persists the returned state; nothing here
has side effects.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Any

from lifeledger.core.errors import AlreadyExecutedError, RuleCompletedError
from lifeledger.scheduling.recurrence import RecurrenceRule, advance


class RuleStatus(str, Enum):
    ACTIVE = "Active"
    COMPLETED = "Completed"


@dataclass(frozen=True)
class ScheduleState:
    next_due_date: date
    last_executed_date: date | None = None
    occurrence_count: int = 0
    status: RuleStatus = RuleStatus.ACTIVE

    @classmethod
    def from_record(cls, record: Any) -> "ScheduleState":
        return cls(
            next_due_date=record.next_due_date,
            last_executed_date=record.last_executed_date,
            occurrence_count=record.occurrence_count,
            status=RuleStatus(record.status),
        )

    @property
    def is_completed(self) -> bool:
        return self.status is RuleStatus.COMPLETED

    @property
    def already_executed(self) -> bool:
        return self.last_executed_date is not None and self.last_executed_date == self.next_due_date


def is_due(rule: RecurrenceRule, state: ScheduleState, today: date, enabled: bool = True) -> bool:
    """Whether the current occurrence should fire on ``today``."""
    if not enabled or state.is_completed or state.already_executed:
        return False
    if state.next_due_date > today:
        return False
    if rule.max_occurrences is not None and state.occurrence_count >= rule.max_occurrences:
        return False
    if rule.end_date is not None and state.next_due_date > rule.end_date:
        return False
    return True


def fire(rule: RecurrenceRule, state: ScheduleState, rule_id: int | None = None) -> ScheduleState:
    """State after booking the occurrence at ``state.next_due_date``.

    Raises AlreadyExecutedError when that occurrence was already booked and
    RuleCompletedError for terminated rules.
    """
    if state.is_completed:
        raise RuleCompletedError(rule_id)
    if state.already_executed:
        raise AlreadyExecutedError(rule_id, state.next_due_date)

    fired = state.next_due_date
    count = state.occurrence_count + 1
    following = advance(rule, fired)

    capped = rule.max_occurrences is not None and count >= rule.max_occurrences
    past_end = rule.end_date is not None and following > rule.end_date
    if capped or past_end:
        # the fired day stays as next_due_date; the rule never moves again
        return replace(state, last_executed_date=fired, occurrence_count=count, status=RuleStatus.COMPLETED)

    return replace(state, next_due_date=following, last_executed_date=fired, occurrence_count=count)
