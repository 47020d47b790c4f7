"""
SLA Value Objects
==================

Immutable value objects for SLA domain.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, tzinfo
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

from deskclock.config import (
    ClockState, SLAState, TicketPriority, VALID_PRIORITIES, MS_PER_HOUR, settings
)
from deskclock.core import InvalidCalendarException
from deskclock.sla.domain.business_time import (
    add_business_time, business_time_between
)


_HHMM = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_hhmm(value: str) -> time:
    """Parse a local time-of-day written as HH:MM."""
    match = _HHMM.match(value or "")
    if not match:
        raise InvalidCalendarException(f"time '{value}' is not in HH:MM format")

    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise InvalidCalendarException(f"time '{value}' is out of range")
    return time(hour, minute)


@dataclass(frozen=True)
class BusinessCalendar:
    """
    A tenant's working calendar.

    Owned by the tenant configuration and loaded fresh for every
    computation, since tenants may edit it at any time.

    Attributes:
        timezone: IANA timezone identifier
        work_days: ISO weekday numbers (1=Monday..7=Sunday)
        start: Local start of the work window (HH:MM)
        end: Local end of the work window (HH:MM)
    """
    timezone: str
    work_days: FrozenSet[int]
    start: str
    end: str

    _tzinfo: tzinfo = field(init=False, repr=False, compare=False)
    _start_time: time = field(init=False, repr=False, compare=False)
    _end_time: time = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        """Validate calendar on initialization."""
        work_days = frozenset(self.work_days)
        if not work_days:
            raise InvalidCalendarException("at least one work day is required")
        invalid_days = sorted(d for d in work_days if not 1 <= d <= 7)
        if invalid_days:
            raise InvalidCalendarException(
                f"work days must be between 1 (Monday) and 7 (Sunday), got {invalid_days}"
            )

        try:
            zone = ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError, TypeError):
            raise InvalidCalendarException(f"unknown timezone '{self.timezone}'")

        start_time = parse_hhmm(self.start)
        end_time = parse_hhmm(self.end)
        if start_time >= end_time:
            raise InvalidCalendarException(
                f"start ({self.start}) must be before end ({self.end})"
            )

        object.__setattr__(self, "work_days", work_days)
        object.__setattr__(self, "_tzinfo", zone)
        object.__setattr__(self, "_start_time", start_time)
        object.__setattr__(self, "_end_time", end_time)

    @classmethod
    def of(
        cls,
        timezone: str,
        work_days: Iterable[int],
        start: str,
        end: str
    ) -> "BusinessCalendar":
        """Build a calendar from any iterable of weekdays."""
        return cls(timezone=timezone, work_days=frozenset(work_days), start=start, end=end)

    @classmethod
    def default(cls) -> "BusinessCalendar":
        """Calendar given to new tenants (from settings)."""
        return cls.of(
            settings.default_timezone,
            settings.default_work_days,
            settings.default_work_start,
            settings.default_work_end,
        )

    @property
    def tzinfo(self) -> tzinfo:
        return self._tzinfo

    @property
    def start_time(self) -> time:
        return self._start_time

    @property
    def end_time(self) -> time:
        return self._end_time

    @property
    def daily_ms(self) -> int:
        """Length of one work window in milliseconds (ignoring DST)."""
        start = self._start_time.hour * 60 + self._start_time.minute
        end = self._end_time.hour * 60 + self._end_time.minute
        return (end - start) * 60 * 1000

    def is_work_day(self, day: date) -> bool:
        """Check whether a local date is a work day."""
        return day.isoweekday() in self.work_days

    def to_dict(self) -> dict:
        return {
            "timezone": self.timezone,
            "work_days": sorted(self.work_days),
            "start": self.start,
            "end": self.end,
        }


@dataclass(frozen=True)
class ClockBudgets:
    """Business-time budgets, in milliseconds, for the clocks of one ticket."""
    response_ms: int
    resolution_ms: int
    ola_resolution_ms: int


class TenantSettings(BaseModel):
    """
    SLA-related settings of a tenant.

    Mirrors the tenant configuration document: timezone, working hours
    and the base SLA/OLA targets in business hours.
    """
    tenant_id: str = Field(..., min_length=1)
    timezone: str = Field(default_factory=lambda: settings.default_timezone)
    work_days: List[int] = Field(default_factory=lambda: list(settings.default_work_days))
    work_start: str = Field(default_factory=lambda: settings.default_work_start)
    work_end: str = Field(default_factory=lambda: settings.default_work_end)
    sla_response_hours: float = Field(
        default_factory=lambda: settings.default_sla_response_hours, ge=0
    )
    sla_resolution_hours: float = Field(
        default_factory=lambda: settings.default_sla_resolution_hours, ge=0
    )
    ola_resolution_hours: float = Field(
        default_factory=lambda: settings.default_ola_resolution_hours, ge=0
    )

    def calendar(self) -> BusinessCalendar:
        """
        Build the tenant's business calendar.

        Raises:
            InvalidCalendarException: if the stored calendar is malformed
        """
        return BusinessCalendar.of(self.timezone, self.work_days, self.work_start, self.work_end)


DEFAULT_PRIORITY_MULTIPLIERS = {
    TicketPriority.LOW: 1.5,
    TicketPriority.MEDIUM: 1.0,
    TicketPriority.HIGH: 0.5,
    TicketPriority.URGENT: 0.25,
}


class SLAPolicy(BaseModel):
    """
    SLA policy loaded from YAML.

    Effective budget = tenant target hours × priority multiplier
    """
    priority_multipliers: Dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_PRIORITY_MULTIPLIERS),
        description="Budget multipliers by ticket priority"
    )
    warning_threshold_percent: int = Field(
        default=15,
        ge=0,
        le=100,
        description="Remaining budget share at which a clock is at risk"
    )

    @field_validator("priority_multipliers")
    @classmethod
    def validate_priority_multipliers(cls, v: Dict[str, float]) -> Dict[str, float]:
        """Fill missing priorities with defaults and reject negative multipliers."""
        for priority, multiplier in v.items():
            if multiplier < 0:
                raise ValueError(f"multiplier for '{priority}' must be >= 0")

        for priority in VALID_PRIORITIES:
            if priority not in v:
                v[priority] = DEFAULT_PRIORITY_MULTIPLIERS[priority]

        return v

    def hours_to_ms(self, hours: float, priority: str) -> int:
        """
        Convert target hours into a budget for a priority.

        Example:
            24 resolution hours, priority "high" (0.5) -> 12h = 43_200_000 ms
        """
        multiplier = self.priority_multipliers.get(priority, 1.0)
        return int(round(hours * multiplier * MS_PER_HOUR))

    def budgets_for(self, tenant: TenantSettings, priority: str) -> ClockBudgets:
        """Budgets for a ticket of `priority` under the tenant's targets."""
        return ClockBudgets(
            response_ms=self.hours_to_ms(tenant.sla_response_hours, priority),
            resolution_ms=self.hours_to_ms(tenant.sla_resolution_hours, priority),
            ola_resolution_ms=self.hours_to_ms(tenant.ola_resolution_hours, priority),
        )


class SLACalculator:
    """
    Pure functions for SLA calculations.

    Stateless utility class; every method takes the calendar explicitly.
    """

    @staticmethod
    def calculate_deadline(
        started_at: datetime,
        budget_ms: int,
        calendar: BusinessCalendar
    ) -> datetime:
        """Deadline `budget_ms` of business time after `started_at`."""
        return add_business_time(started_at, budget_ms, calendar)

    @staticmethod
    def elapsed_business_ms(
        started_at: datetime,
        current_time: datetime,
        calendar: BusinessCalendar
    ) -> int:
        """Business time elapsed since `started_at`, pauses included."""
        return business_time_between(started_at, current_time, calendar)

    @staticmethod
    def calculate_remaining_metrics(
        clock,
        current_time: datetime,
        calendar: BusinessCalendar
    ) -> Tuple[int, float, bool]:
        """
        Calculate remaining time metrics for a started clock.

        Returns:
            Tuple of (remaining_ms, percentage_remaining, is_breached).
            remaining_ms is negative once the clock is overdue.
        """
        remaining = clock.remaining_ms(current_time, calendar)
        is_breached = clock.is_breached(current_time, calendar)

        if clock.budget_ms <= 0:
            percentage = 0.0
        else:
            percentage = max(0.0, min(100.0, remaining / clock.budget_ms * 100))

        return remaining, round(percentage, 2), is_breached

    @staticmethod
    def calculate_status(
        clock,
        current_time: datetime,
        calendar: BusinessCalendar,
        warning_threshold_percent: int = 15
    ) -> Optional[SLAState]:
        """
        Calculate current SLA state of a clock.

        Returns:
            None for a clock that has not started, otherwise the SLAState
        """
        if clock.state == ClockState.NOT_STARTED:
            return None

        _, percentage, is_breached = SLACalculator.calculate_remaining_metrics(
            clock, current_time, calendar
        )

        if clock.state == ClockState.COMPLETED:
            return SLAState.BREACHED if is_breached else SLAState.MET
        if is_breached:
            return SLAState.BREACHED
        if percentage <= warning_threshold_percent:
            return SLAState.AT_RISK
        return SLAState.ON_TRACK
