"""
Tests for calendar recurrence arithmetic
"""
import calendar
from datetime import date, timedelta

import pytest

from lifeledger.core.errors import RuleValidationError
from lifeledger.scheduling.recurrence import (
    Frequency,
    RecurrenceRule,
    advance,
    describe,
    occurrences,
    seed,
)

MONDAY = 1


@pytest.mark.unit
class TestSeed:
    def test_future_start_is_used_as_is(self):
        rule = RecurrenceRule(Frequency.DAILY, start_date=date(2024, 6, 1))
        assert seed(rule, today=date(2024, 1, 1)) == date(2024, 6, 1)

    def test_seed_never_returns_today(self):
        rule = RecurrenceRule(Frequency.DAILY, start_date=date(2024, 1, 1))
        assert seed(rule, today=date(2024, 3, 10)) == date(2024, 3, 11)

    def test_monthly_anchor_later_in_month(self):
        rule = RecurrenceRule(Frequency.MONTHLY, start_date=date(2024, 1, 1), anchor_day_of_month=20)
        assert seed(rule, today=date(2024, 3, 10)) == date(2024, 3, 20)

    def test_monthly_anchor_already_passed_rolls_to_next_month(self):
        rule = RecurrenceRule(Frequency.MONTHLY, start_date=date(2024, 1, 1), anchor_day_of_month=5)
        assert seed(rule, today=date(2024, 3, 10)) == date(2024, 4, 5)

    def test_monthly_anchor_clamped_in_short_month(self):
        rule = RecurrenceRule(Frequency.MONTHLY, start_date=date(2024, 1, 1), anchor_day_of_month=31)
        assert seed(rule, today=date(2024, 2, 10)) == date(2024, 2, 29)
        assert seed(rule, today=date(2023, 2, 10)) == date(2023, 2, 28)

    def test_monthly_without_anchor_uses_reference_day(self):
        rule = RecurrenceRule(Frequency.MONTHLY, start_date=date(2024, 5, 17))
        assert seed(rule, today=date(2024, 5, 1)) == date(2024, 5, 17)

    def test_weekly_anchor_rolls_forward(self):
        # 2024-01-03 is a Wednesday
        rule = RecurrenceRule(Frequency.WEEKLY, start_date=date(2024, 1, 1), anchor_day_of_week=MONDAY)
        assert seed(rule, today=date(2024, 1, 3)) == date(2024, 1, 8)

    def test_weekly_anchor_on_reference_day(self):
        rule = RecurrenceRule(Frequency.WEEKLY, start_date=date(2024, 1, 1), anchor_day_of_week=4)
        assert seed(rule, today=date(2024, 1, 3)) == date(2024, 1, 4)

    def test_yearly_anchor_month(self):
        rule = RecurrenceRule(
            Frequency.YEARLY, start_date=date(2024, 1, 1), anchor_month_of_year=2, anchor_day_of_month=29
        )
        assert seed(rule, today=date(2024, 1, 1)) == date(2024, 2, 29)
        assert seed(rule, today=date(2024, 3, 1)) == date(2025, 2, 28)

    def test_interval_is_not_applied_when_seeding(self):
        rule = RecurrenceRule(Frequency.MONTHLY, start_date=date(2024, 1, 1), interval=6, anchor_day_of_month=20)
        assert seed(rule, today=date(2024, 3, 10)) == date(2024, 3, 20)

    @pytest.mark.parametrize("frequency", list(Frequency))
    def test_seed_is_after_today_and_not_before_start(self, frequency):
        starts = [date(2023, 12, 31), date(2024, 2, 29), date(2024, 7, 15)]
        todays = [date(2024, 1, 30), date(2024, 2, 28), date(2024, 12, 31)]
        for start in starts:
            for anchor_dom in (None, 1, 15, 31):
                rule = RecurrenceRule(
                    frequency,
                    start_date=start,
                    anchor_day_of_month=anchor_dom if frequency.uses_day_of_month else None,
                    anchor_day_of_week=3 if frequency.uses_day_of_week else None,
                )
                for today in todays:
                    due = seed(rule, today)
                    assert due >= max(start, today + timedelta(days=1))


@pytest.mark.unit
class TestAdvance:
    def test_monthly_31st_clamps_without_drift(self):
        rule = RecurrenceRule(Frequency.MONTHLY, start_date=date(2024, 1, 31), anchor_day_of_month=31)
        first = seed(rule, today=date(2024, 1, 30))
        assert occurrences(rule, first, 4) == [
            date(2024, 1, 31),
            date(2024, 2, 29),
            date(2024, 3, 31),
            date(2024, 4, 30),
        ]

    def test_monthly_without_anchor_keeps_start_day(self):
        rule = RecurrenceRule(Frequency.MONTHLY, start_date=date(2024, 1, 31))
        assert occurrences(rule, seed(rule, today=date(2024, 1, 1)), 4) == [
            date(2024, 1, 31),
            date(2024, 2, 29),
            date(2024, 3, 31),
            date(2024, 4, 30),
        ]

    def test_yearly_without_anchor_keeps_leap_day(self):
        rule = RecurrenceRule(Frequency.YEARLY, start_date=date(2024, 2, 29))
        assert advance(rule, date(2025, 2, 28)) == date(2026, 2, 28)
        assert advance(rule, date(2027, 2, 28)) == date(2028, 2, 29)

    def test_biweekly_monday_seeded_on_wednesday(self):
        rule = RecurrenceRule(Frequency.BIWEEKLY, start_date=date(2024, 1, 1), anchor_day_of_week=MONDAY)
        first = seed(rule, today=date(2024, 1, 3))
        assert first == date(2024, 1, 8)
        assert first.isoweekday() == MONDAY
        assert advance(rule, first) - first == timedelta(days=14)

    def test_quarterly_keeps_anchor(self):
        rule = RecurrenceRule(Frequency.QUARTERLY, start_date=date(2024, 1, 31), anchor_day_of_month=31)
        assert advance(rule, date(2024, 1, 31)) == date(2024, 4, 30)
        assert advance(rule, date(2024, 4, 30)) == date(2024, 7, 31)

    def test_yearly_leap_day(self):
        rule = RecurrenceRule(
            Frequency.YEARLY, start_date=date(2024, 2, 29), anchor_month_of_year=2, anchor_day_of_month=29
        )
        assert occurrences(rule, date(2024, 2, 29), 5) == [
            date(2024, 2, 29),
            date(2025, 2, 28),
            date(2026, 2, 28),
            date(2027, 2, 28),
            date(2028, 2, 29),
        ]

    def test_daily_interval(self):
        rule = RecurrenceRule(Frequency.DAILY, start_date=date(2024, 1, 1), interval=3)
        assert advance(rule, date(2024, 1, 30)) == date(2024, 2, 2)

    def test_every_two_months(self):
        rule = RecurrenceRule(Frequency.MONTHLY, start_date=date(2024, 1, 1), interval=2, anchor_day_of_month=30)
        assert advance(rule, date(2023, 12, 30)) == date(2024, 2, 29)
        assert advance(rule, date(2024, 2, 29)) == date(2024, 4, 30)

    @pytest.mark.parametrize("frequency", list(Frequency))
    @pytest.mark.parametrize("interval", [1, 2, 5])
    def test_advance_strictly_increasing_and_clamped(self, frequency, interval):
        rule = RecurrenceRule(
            frequency,
            start_date=date(2024, 1, 31),
            interval=interval,
            anchor_day_of_month=31 if frequency.uses_day_of_month else None,
        )
        current = seed(rule, today=date(2024, 1, 1))
        for _ in range(40):
            following = advance(rule, current)
            assert following > current
            assert following.day <= calendar.monthrange(following.year, following.month)[1]
            current = following


@pytest.mark.unit
class TestOccurrences:
    def test_stops_at_end_date(self):
        rule = RecurrenceRule(
            Frequency.MONTHLY, start_date=date(2024, 1, 15), anchor_day_of_month=15, end_date=date(2024, 3, 14)
        )
        assert occurrences(rule, date(2024, 1, 15), 10) == [date(2024, 1, 15), date(2024, 2, 15)]

    def test_stops_at_max_occurrences(self):
        rule = RecurrenceRule(Frequency.DAILY, start_date=date(2024, 1, 1), max_occurrences=5)
        assert occurrences(rule, date(2024, 1, 3), 10, already_fired=3) == [date(2024, 1, 3), date(2024, 1, 4)]


@pytest.mark.unit
class TestRuleValidation:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"interval": 0},
            {"interval": -2},
            {"anchor_day_of_week": 0},
            {"anchor_day_of_week": 8},
            {"anchor_day_of_month": 0},
            {"anchor_day_of_month": 32},
            {"anchor_month_of_year": 13},
            {"end_date": date(2023, 12, 31)},
            {"max_occurrences": 0},
        ],
    )
    def test_invalid_rules_are_rejected(self, kwargs):
        with pytest.raises(RuleValidationError):
            RecurrenceRule(Frequency.MONTHLY, start_date=date(2024, 1, 1), **kwargs)

    def test_unknown_frequency(self):
        with pytest.raises(RuleValidationError):
            RecurrenceRule("Hourly", start_date=date(2024, 1, 1))

    def test_frequency_from_string(self):
        rule = RecurrenceRule("Biweekly", start_date=date(2024, 1, 1))
        assert rule.frequency is Frequency.BIWEEKLY

    def test_validation_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            RecurrenceRule(Frequency.DAILY, start_date=date(2024, 1, 1), interval=0)


@pytest.mark.unit
class TestDescribe:
    def test_biweekly(self):
        rule = RecurrenceRule(Frequency.BIWEEKLY, start_date=date(2024, 1, 1), anchor_day_of_week=MONDAY)
        assert describe(rule) == "Every 2 weeks on Monday"

    def test_monthly(self):
        rule = RecurrenceRule(Frequency.MONTHLY, start_date=date(2024, 1, 1), anchor_day_of_month=31)
        assert describe(rule) == "Every month on day 31"

    def test_yearly(self):
        rule = RecurrenceRule(
            Frequency.YEARLY, start_date=date(2024, 1, 1), anchor_month_of_year=3, anchor_day_of_month=31
        )
        assert describe(rule) == "Every year on March 31"

    def test_quarterly_interval(self):
        rule = RecurrenceRule(Frequency.QUARTERLY, start_date=date(2024, 1, 1), interval=2)
        assert describe(rule) == "Every 6 months"

    def test_daily(self):
        assert describe(RecurrenceRule(Frequency.DAILY, start_date=date(2024, 1, 1))) == "Every day"
