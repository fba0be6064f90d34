"""
Errors raised by the recurring transaction scheduler.

Every error derives from ``ScheduleError`` so drivers and the HTTP layer can
translate them with a single handler.
"""
from datetime import date


class ScheduleError(Exception):
    """Base class for scheduler failures."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RuleValidationError(ScheduleError, ValueError):
    """A rule specification violates a structural invariant."""


class RuleNotFoundError(ScheduleError):
    status_code = 404

    def __init__(self, rule_id: int):
        super().__init__(f"Recurring transaction {rule_id} not found")
        self.rule_id = rule_id


class AlreadyExecutedError(ScheduleError):
    """The current occurrence was already booked; callers treat this as a no-op."""

    status_code = 409

    def __init__(self, rule_id: int | None, due_date: date):
        super().__init__(f"Occurrence {due_date.isoformat()} of rule {rule_id} was already executed")
        self.rule_id = rule_id
        self.due_date = due_date


class RuleCompletedError(ScheduleError):
    status_code = 409

    def __init__(self, rule_id: int | None):
        super().__init__(f"Recurring transaction {rule_id} is completed")
        self.rule_id = rule_id


class RulePausedError(ScheduleError):
    status_code = 409

    def __init__(self, rule_id: int | None):
        super().__init__(f"Recurring transaction {rule_id} is paused")
        self.rule_id = rule_id


class PersistenceError(ScheduleError):
    """The ledger or the rule store failed; no state was changed."""

    status_code = 503
