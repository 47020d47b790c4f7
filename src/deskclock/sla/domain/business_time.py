"""
Business-Time Arithmetic
=========================

Pure functions converting between wall-clock instants and business-time
budgets inside a tenant's BusinessCalendar.

Instants are handled as aware UTC datetimes. Work windows are built from
local calendar dates in the calendar's timezone and then converted to UTC,
so additions and differences are always absolute and stay exact across
DST changes.

Budgets and results are integer milliseconds. Internally everything is
kept as timedelta so that no rounding happens before the final conversion.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import TYPE_CHECKING, Tuple

from deskclock.core import InvalidCalendarException

if TYPE_CHECKING:
    from deskclock.sla.domain.value_objects import BusinessCalendar


ONE_MS = timedelta(milliseconds=1)
ONE_DAY = timedelta(days=1)
DAYS_PER_WEEK = 7


def as_utc(instant: datetime) -> datetime:
    """Return `instant` as an aware UTC datetime. Naive values are read as UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def local_date(instant: datetime, calendar: BusinessCalendar) -> date:
    """Calendar date of `instant` in the calendar's timezone."""
    return as_utc(instant).astimezone(calendar.tzinfo).date()


def work_window(day: date, calendar: BusinessCalendar) -> Tuple[datetime, datetime]:
    """UTC bounds of the work window on the local date `day`."""
    tz = calendar.tzinfo
    start = datetime.combine(day, calendar.start_time, tzinfo=tz)
    end = datetime.combine(day, calendar.end_time, tzinfo=tz)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def next_work_day(
    day: date,
    calendar: BusinessCalendar,
    inclusive: bool = True
) -> date:
    """
    First work day on or after `day` (strictly after it when not inclusive).

    Raises:
        InvalidCalendarException: if no day of the week is a work day
    """
    candidate = day if inclusive else day + ONE_DAY
    for _ in range(DAYS_PER_WEEK):
        if calendar.is_work_day(candidate):
            return candidate
        candidate += ONE_DAY
    raise InvalidCalendarException("no work days configured")


def normalize_to_business_time(instant: datetime, calendar: BusinessCalendar) -> datetime:
    """
    Move `instant` forward to the first in-window instant.

    Instants already inside a work window are returned unchanged (as UTC).
    Before the day's start, the day's start is returned. At or after the
    day's end, or on a non-work day, the next work day's start is returned.
    """
    cursor = as_utc(instant)
    day = local_date(cursor, calendar)

    if not calendar.is_work_day(day):
        return work_window(next_work_day(day, calendar), calendar)[0]

    start, end = work_window(day, calendar)
    if cursor < start:
        return start
    if cursor >= end:
        return work_window(next_work_day(day, calendar, inclusive=False), calendar)[0]
    return cursor


def is_within_business_hours(instant: datetime, calendar: BusinessCalendar) -> bool:
    """True when `instant` lies inside a work window (end excluded)."""
    return normalize_to_business_time(instant, calendar) == as_utc(instant)


def add_business_time(
    start_utc: datetime,
    budget_ms: int,
    calendar: BusinessCalendar
) -> datetime:
    """
    Instant reached after `budget_ms` of business time counted from `start_utc`.

    The count starts at `start_utc` normalized forward into business hours.
    A zero budget returns `start_utc` itself, without normalization.

    Args:
        start_utc: Start instant (naive values are read as UTC)
        budget_ms: Business-time budget in milliseconds, >= 0
        calendar: Tenant calendar

    Returns:
        The deadline as an aware UTC datetime

    Raises:
        ValueError: if budget_ms is negative
        InvalidCalendarException: if the calendar has no work days
    """
    if budget_ms < 0:
        raise ValueError(f"budget_ms must be >= 0, got {budget_ms}")
    if budget_ms == 0:
        return start_utc

    cursor = normalize_to_business_time(start_utc, calendar)
    remaining = timedelta(milliseconds=budget_ms)

    while True:
        day = local_date(cursor, calendar)
        _, end = work_window(day, calendar)
        available = max(end - cursor, timedelta(0))

        if remaining <= available:
            return cursor + remaining

        remaining -= available
        cursor = work_window(next_work_day(day, calendar, inclusive=False), calendar)[0]


def business_time_between(
    start_utc: datetime,
    end_utc: datetime,
    calendar: BusinessCalendar
) -> int:
    """
    Milliseconds of business time between two instants.

    Each local date from the start's date to the end's date (inclusive)
    contributes the overlap of its work window with [start_utc, end_utc].

    Returns:
        Elapsed business milliseconds, 0 when end_utc <= start_utc
    """
    start = as_utc(start_utc)
    end = as_utc(end_utc)
    if end <= start:
        return 0

    first_day = local_date(start, calendar)
    last_day = local_date(end, calendar)

    total = timedelta(0)
    for offset in range((last_day - first_day).days + 1):
        day = first_day + timedelta(days=offset)
        if not calendar.is_work_day(day):
            continue

        window_start, window_end = work_window(day, calendar)
        overlap_start = max(start, window_start)
        overlap_end = min(end, window_end)
        if overlap_end > overlap_start:
            total += overlap_end - overlap_start

    return total // ONE_MS
