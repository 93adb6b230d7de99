import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Optional, Tuple


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes for timezone-aware columns."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def quarter_bounds(year: int, quarter: int) -> Tuple[date, date]:
    first_month = (quarter - 1) * 3 + 1
    start, _ = month_bounds(year, first_month)
    _, end = month_bounds(year, first_month + 2)
    return start, end


def year_bounds(year: int) -> Tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Inclusive on both ends."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def count_weekdays(start: date, end: date) -> int:
    return sum(1 for d in iter_days(start, end) if d.weekday() < 5)


def inclusive_days(start: date, end: date) -> int:
    return (end - start).days + 1


def overlap(start_a: date, end_a: date, start_b: date, end_b: date) -> Optional[Tuple[date, date]]:
    """Intersection of two inclusive date ranges, or None."""
    start = max(start_a, start_b)
    end = min(end_a, end_b)
    if start > end:
        return None
    return start, end
