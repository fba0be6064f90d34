"""
Calendar recurrence arithmetic.

Pure functions mapping a ``RecurrenceRule`` and a reference day to due days.
Nothing here touches the database; invalid rules are rejected when the
``RecurrenceRule`` is built, so ``seed`` and ``advance`` never fail.

Month-based steps go through ``dateutil.relativedelta`` with an absolute
``day`` so the result is clamped to the target month's length
(Jan 31 -> Feb 29 -> Mar 31 for a rule anchored on the 31st).
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Any

from dateutil.relativedelta import relativedelta

from lifeledger.core.errors import RuleValidationError


class Frequency(str, Enum):
    """Recurrence frequency; each member carries its relativedelta unit and multiplier."""

    DAILY = ("Daily", "days", 1)
    WEEKLY = ("Weekly", "weeks", 1)
    BIWEEKLY = ("Biweekly", "weeks", 2)
    MONTHLY = ("Monthly", "months", 1)
    QUARTERLY = ("Quarterly", "months", 3)
    YEARLY = ("Yearly", "years", 1)

    def __new__(cls, value: str, unit: str, multiplier: int):
        member = str.__new__(cls, value)
        member._value_ = value
        member.unit = unit
        member.multiplier = multiplier
        return member

    @property
    def uses_day_of_week(self) -> bool:
        return self.unit == "weeks"

    @property
    def uses_day_of_month(self) -> bool:
        return self.unit in ("months", "years")

    def step(self, interval: int, anchor_day: int | None = None) -> relativedelta:
        """One period of ``interval`` units, optionally re-anchored on a day of month."""
        kwargs: dict[str, int] = {self.unit: self.multiplier * interval}
        if anchor_day is not None and self.uses_day_of_month:
            kwargs["day"] = anchor_day
        return relativedelta(**kwargs)


def _check_range(name: str, value: int | None, low: int, high: int) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
        raise RuleValidationError(f"{name} must be between {low} and {high}")


@dataclass(frozen=True)
class RecurrenceRule:
    frequency: Frequency
    start_date: date
    interval: int = 1
    anchor_day_of_week: int | None = None    # 1=Mon..7=Sun
    anchor_day_of_month: int | None = None   # 1-31, clamped to month length
    anchor_month_of_year: int | None = None  # 1-12
    end_date: date | None = None
    max_occurrences: int | None = None

    def __post_init__(self):
        if not isinstance(self.frequency, Frequency):
            try:
                object.__setattr__(self, "frequency", Frequency(self.frequency))
            except ValueError:
                raise RuleValidationError(f"Unknown frequency: {self.frequency!r}") from None
        if not isinstance(self.start_date, date):
            raise RuleValidationError("start_date is required")
        if isinstance(self.interval, bool) or not isinstance(self.interval, int) or self.interval < 1:
            raise RuleValidationError("interval must be a positive integer")
        _check_range("anchor_day_of_week", self.anchor_day_of_week, 1, 7)
        _check_range("anchor_day_of_month", self.anchor_day_of_month, 1, 31)
        _check_range("anchor_month_of_year", self.anchor_month_of_year, 1, 12)
        if self.end_date is not None and self.end_date < self.start_date:
            raise RuleValidationError("end_date cannot be before start_date")
        if self.max_occurrences is not None:
            if isinstance(self.max_occurrences, bool) or not isinstance(self.max_occurrences, int) \
                    or self.max_occurrences < 1:
                raise RuleValidationError("max_occurrences must be at least 1")

    @classmethod
    def from_record(cls, record: Any) -> "RecurrenceRule":
        """Build a rule from any object exposing the rule attributes (ORM row, schema)."""
        return cls(
            frequency=record.frequency,
            start_date=record.start_date,
            interval=record.interval,
            anchor_day_of_week=record.anchor_day_of_week,
            anchor_day_of_month=record.anchor_day_of_month,
            anchor_month_of_year=record.anchor_month_of_year,
            end_date=record.end_date,
            max_occurrences=record.max_occurrences,
        )


def _day_of_month(rule: RecurrenceRule) -> int:
    # without an explicit anchor the start day anchors every step
    return rule.anchor_day_of_month or rule.start_date.day


def seed(rule: RecurrenceRule, today: date) -> date:
    """First due day on or after max(start_date, tomorrow).

    The interval is not applied here; spacing only shows up on ``advance``.
    """
    reference = max(rule.start_date, today + timedelta(days=1))
    frequency = rule.frequency

    if frequency.uses_day_of_week:
        if rule.anchor_day_of_week is None:
            return reference
        return reference + timedelta(days=(rule.anchor_day_of_week - reference.isoweekday()) % 7)

    if frequency.uses_day_of_month:
        day = rule.anchor_day_of_month or reference.day
        if frequency is Frequency.YEARLY and rule.anchor_month_of_year is not None:
            month = rule.anchor_month_of_year
            candidate = reference + relativedelta(month=month, day=day)
            if candidate < reference:
                candidate = reference + relativedelta(years=1, month=month, day=day)
            return candidate
        candidate = reference + relativedelta(day=day)
        if candidate < reference:
            candidate = reference + relativedelta(months=1, day=day)
        return candidate

    return reference


def advance(rule: RecurrenceRule, fired: date) -> date:
    """Due day following ``fired``: one period of ``interval`` units later.

    Month-based steps land on the anchor day, or on the start day when no
    anchor is set, so a short month never shifts the rest of the schedule.
    """
    anchor = _day_of_month(rule) if rule.frequency.uses_day_of_month else None
    return fired + rule.frequency.step(rule.interval, anchor)


def occurrences(rule: RecurrenceRule, first: date, limit: int, already_fired: int = 0) -> list[date]:
    """Up to ``limit`` due days starting at ``first``, stopping at end_date / max_occurrences."""
    result: list[date] = []
    current = first
    fired = already_fired
    while len(result) < limit:
        if rule.end_date is not None and current > rule.end_date:
            break
        if rule.max_occurrences is not None and fired >= rule.max_occurrences:
            break
        result.append(current)
        fired += 1
        current = advance(rule, current)
    return result


_UNIT_NAMES = {"days": "day", "weeks": "week", "months": "month", "years": "year"}


def describe(rule: RecurrenceRule) -> str:
    """Human readable schedule, e.g. 'Every 2 weeks on Monday'."""
    frequency = rule.frequency
    count = frequency.multiplier * rule.interval
    unit = _UNIT_NAMES[frequency.unit]
    text = f"Every {unit}" if count == 1 else f"Every {count} {unit}s"

    if frequency.uses_day_of_week and rule.anchor_day_of_week is not None:
        text += f" on {calendar.day_name[rule.anchor_day_of_week - 1]}"
    elif frequency is Frequency.YEARLY and rule.anchor_month_of_year is not None:
        day = _day_of_month(rule)
        text += f" on {calendar.month_name[rule.anchor_month_of_year]} {day}"
    elif frequency.uses_day_of_month and rule.anchor_day_of_month is not None:
        text += f" on day {rule.anchor_day_of_month}"
    return text
