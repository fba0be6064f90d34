"""
Tests for schedule state transitions
"""
from datetime import date

import pytest

from lifeledger.core.errors import AlreadyExecutedError, RuleCompletedError
from lifeledger.scheduling.recurrence import Frequency, RecurrenceRule
from lifeledger.scheduling.state import RuleStatus, ScheduleState, fire, is_due


def monthly_on_15th(**kwargs) -> RecurrenceRule:
    return RecurrenceRule(Frequency.MONTHLY, start_date=date(2024, 1, 15), anchor_day_of_month=15, **kwargs)


@pytest.mark.unit
class TestFire:
    def test_fire_advances_and_counts(self):
        state = ScheduleState(next_due_date=date(2024, 1, 15))
        after = fire(monthly_on_15th(), state)
        assert after.next_due_date == date(2024, 2, 15)
        assert after.last_executed_date == date(2024, 1, 15)
        assert after.occurrence_count == 1
        assert after.status is RuleStatus.ACTIVE

    def test_fire_does_not_mutate_input(self):
        state = ScheduleState(next_due_date=date(2024, 1, 15))
        fire(monthly_on_15th(), state)
        assert state.occurrence_count == 0
        assert state.last_executed_date is None

    def test_already_executed_is_rejected(self):
        state = ScheduleState(next_due_date=date(2024, 1, 15), last_executed_date=date(2024, 1, 15), occurrence_count=1)
        with pytest.raises(AlreadyExecutedError) as exc_info:
            fire(monthly_on_15th(), state, rule_id=9)
        assert exc_info.value.due_date == date(2024, 1, 15)
        assert exc_info.value.rule_id == 9

    def test_completed_is_rejected(self):
        state = ScheduleState(next_due_date=date(2024, 1, 15), status=RuleStatus.COMPLETED)
        with pytest.raises(RuleCompletedError):
            fire(monthly_on_15th(), state)

    def test_end_date_one_day_before_third_occurrence(self):
        rule = monthly_on_15th(end_date=date(2024, 3, 14))
        state = ScheduleState(next_due_date=date(2024, 1, 15))

        state = fire(rule, state)
        assert state.status is RuleStatus.ACTIVE
        assert state.next_due_date == date(2024, 2, 15)

        state = fire(rule, state)
        assert state.status is RuleStatus.COMPLETED
        assert state.occurrence_count == 2
        assert state.next_due_date == date(2024, 2, 15)
        assert not is_due(rule, state, date(2024, 12, 31))

    def test_max_occurrences_completes_rule(self):
        rule = RecurrenceRule(Frequency.DAILY, start_date=date(2024, 1, 1), max_occurrences=3)
        state = ScheduleState(next_due_date=date(2024, 1, 1))
        for _ in range(3):
            assert is_due(rule, state, date(2024, 6, 1))
            state = fire(rule, state)
        assert state.status is RuleStatus.COMPLETED
        assert state.occurrence_count == 3
        assert not is_due(rule, state, date(2024, 6, 1))
        with pytest.raises(RuleCompletedError):
            fire(rule, state)


@pytest.mark.unit
class TestIsDue:
    def test_not_due_before_next_due_date(self):
        state = ScheduleState(next_due_date=date(2024, 1, 15))
        assert not is_due(monthly_on_15th(), state, date(2024, 1, 14))
        assert is_due(monthly_on_15th(), state, date(2024, 1, 15))

    def test_overdue_is_due(self):
        state = ScheduleState(next_due_date=date(2024, 1, 15))
        assert is_due(monthly_on_15th(), state, date(2024, 4, 1))

    def test_disabled_is_not_due(self):
        state = ScheduleState(next_due_date=date(2024, 1, 15))
        assert not is_due(monthly_on_15th(), state, date(2024, 2, 1), enabled=False)

    def test_already_executed_is_not_due(self):
        state = ScheduleState(next_due_date=date(2024, 1, 15), last_executed_date=date(2024, 1, 15))
        assert not is_due(monthly_on_15th(), state, date(2024, 2, 1))

    def test_past_end_date_is_not_due(self):
        rule = monthly_on_15th(end_date=date(2024, 2, 1))
        state = ScheduleState(next_due_date=date(2024, 2, 15), occurrence_count=1)
        assert not is_due(rule, state, date(2024, 3, 1))
