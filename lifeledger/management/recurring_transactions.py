#!/usr/bin/env python3
"""
Management command for recurring transactions.
Usage:
    python -m lifeledger.management.recurring_transactions --help
    python -m lifeledger.management.recurring_transactions --run
    python -m lifeledger.management.recurring_transactions --run --today 2024-03-31
    python -m lifeledger.management.recurring_transactions --due
    python -m lifeledger.management.recurring_transactions --reminders
    python -m lifeledger.management.recurring_transactions --preview 7 --count 6
"""

import asyncio
import argparse
import sys
from datetime import date

from lifeledger.core.errors import ScheduleError
from lifeledger.core.logging import configure_logging
from lifeledger.services.recurring_transaction_scheduler import RecurringTransactionScheduler
from lifeledger.utils.dates import parse_day


def _day(value: str) -> date:
    try:
        return parse_day(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid day {value!r}: use YYYY-MM-DD or an epoch-day number") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Run and inspect recurring transactions')
    action = parser.add_mutually_exclusive_group()
    action.add_argument('--run', action='store_true', help='Execute every due auto-executing rule once')
    action.add_argument('--due', action='store_true', help='List rules that are due')
    action.add_argument('--reminders', action='store_true', help='List manual rules inside their reminder window')
    action.add_argument('--preview', type=int, metavar='RULE_ID', help='Show upcoming due dates of a rule')
    parser.add_argument('--count', type=int, default=12, help='Number of dates for --preview')
    parser.add_argument('--today', type=_day, help='Reference day (YYYY-MM-DD or epoch day); defaults to today')
    return parser


async def run(today: date):
    """Execute due rules for the given day"""
    report = await RecurringTransactionScheduler.run_due(today)
    print(f"Executed {len(report.executed)} recurring transactions for {today}")
    for outcome in report.executed:
        suffix = " (completed)" if outcome.completed else ""
        print(f"  - {outcome.fired_date}: {outcome.rule.name} ({outcome.entry.amount}){suffix}")
    if report.skipped:
        print(f"Skipped: {', '.join(str(rule_id) for rule_id in report.skipped)}")
    if report.failed:
        print(f"Failed: {', '.join(str(rule_id) for rule_id in report.failed)}")
    return 1 if report.failed else 0


def list_rules(rows: list[dict], title: str):
    print(f"{title}: {len(rows)}")
    for row in rows:
        mode = "auto" if row["auto_execute"] else "manual"
        print(f"  - #{row['id']} {row['next_due_date']}: {row['name']} {row['kind']} {row['amount']} [{mode}]")
    return 0


async def preview(rule_id: int, count: int):
    dates = await RecurringTransactionScheduler.preview(rule_id, count)
    print(f"Next {len(dates)} due dates for recurring transaction #{rule_id}")
    for day in dates:
        print(f"  - {day.isoformat()}")
    return 0


async def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging()
    today = args.today or date.today()

    try:
        if args.run:
            return await run(today)
        if args.due:
            return list_rules(await RecurringTransactionScheduler.due(today), f"Due on {today}")
        if args.reminders:
            return list_rules(await RecurringTransactionScheduler.reminders(today), f"Reminders for {today}")
        if args.preview is not None:
            return await preview(args.preview, args.count)
    except ScheduleError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 2

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
