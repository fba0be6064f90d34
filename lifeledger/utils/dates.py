from datetime import date, timedelta

EPOCH = date(1970, 1, 1)


def to_epoch_day(d: date) -> int:
    """Number of whole days between 1970-01-01 and d."""
    return (d - EPOCH).days


def from_epoch_day(days: int) -> date:
    return EPOCH + timedelta(days=days)


def parse_day(value: str) -> date:
    """Parse either an ISO date (YYYY-MM-DD) or an epoch-day integer."""
    value = value.strip()
    if value.lstrip("-").isdigit():
        return from_epoch_day(int(value))
    return date.fromisoformat(value)


def today() -> date:
    return date.today()
