"""
Date helpers for booking windows and telemetry filters.

All datetimes handled by the services are naive UTC, matching what the
models store.
"""

from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple

from timezone_utils import to_utc_naive


def parse_datetime(value) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or datetime into a naive UTC datetime.

    Accepts datetime/date objects, 'YYYY-MM-DD' strings and full timestamps
    with an optional 'Z' or numeric offset. Returns None for empty input and
    raises ValueError for anything unparseable.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return to_utc_naive(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if not isinstance(value, str):
        raise ValueError(f"Unsupported date value: {value!r}")

    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    return to_utc_naive(datetime.fromisoformat(text))


def parse_day(value) -> Optional[date]:
    parsed = parse_datetime(value)
    return parsed.date() if parsed else None


def day_start(day: date) -> datetime:
    return datetime.combine(day, time.min)


def day_end(day: date) -> datetime:
    """Last representable instant of a calendar day"""
    return datetime.combine(day, time.max)


def single_day_range(day: date) -> Tuple[datetime, datetime]:
    """Half-open range [day 00:00, next day 00:00)"""
    start = day_start(day)
    return start, start + timedelta(days=1)


def windows_overlap(start_a: datetime, end_a: datetime,
                    start_b: datetime, end_b: datetime) -> bool:
    """Closed-interval overlap; windows sharing an endpoint overlap"""
    return start_a <= end_b and end_a >= start_b


def expand_days(start: datetime, end: datetime) -> List[str]:
    """Every calendar day touched by [start, end], both ends inclusive, as ISO strings"""
    first = start.date() if isinstance(start, datetime) else start
    last = end.date() if isinstance(end, datetime) else end

    days = []
    current = first
    while current <= last:
        days.append(current.isoformat())
        current += timedelta(days=1)
    return days
