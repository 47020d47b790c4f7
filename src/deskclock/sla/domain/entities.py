"""
SLA Domain Entities
====================

Pure Python domain entities for SLA/OLA clock tracking.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns.

Clock invariant: `due_at` is the single source of truth for a deadline.
It is computed once when the clock starts and pushed forward, on every
resume, by the business time that elapsed while the clock was paused.
`paused_ms` keeps the wall-clock total of all pauses for reporting only.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from deskclock.config import (
    AgreementType, ClockState, SLAState, TicketPriority, TicketStatus
)
from deskclock.core import InvalidTransitionException
from deskclock.sla.domain.business_time import (
    ONE_MS, add_business_time, as_utc, business_time_between
)
from deskclock.sla.domain.value_objects import BusinessCalendar, ClockBudgets


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class Clock:
    """
    A single business-time deadline (first response, resolution or OLA).

    Transitions mutate the clock in place and return it, so calls can be
    chained. Pausing, resuming and completing are idempotent; driving a
    clock that never started raises InvalidTransitionException.
    """

    budget_ms: int = 0
    started_at: Optional[datetime] = None
    due_at: Optional[datetime] = None
    paused_at: Optional[datetime] = None
    paused_ms: int = 0
    completed_at: Optional[datetime] = None

    @property
    def state(self) -> str:
        if self.started_at is None:
            return ClockState.NOT_STARTED
        if self.completed_at is not None:
            return ClockState.COMPLETED
        if self.paused_at is not None:
            return ClockState.PAUSED
        return ClockState.RUNNING

    @property
    def is_started(self) -> bool:
        return self.started_at is not None

    def _require_started(self, action: str) -> None:
        if self.started_at is None:
            raise InvalidTransitionException(action, ClockState.NOT_STARTED)

    # ========== Transitions ==========

    def start(
        self,
        started_at: datetime,
        budget_ms: int,
        calendar: BusinessCalendar
    ) -> "Clock":
        """Start the clock with a business-time budget."""
        if self.started_at is not None:
            raise InvalidTransitionException("start", self.state)

        self.started_at = as_utc(started_at)
        self.budget_ms = budget_ms
        self.due_at = as_utc(add_business_time(self.started_at, budget_ms, calendar))
        self.paused_at = None
        self.paused_ms = 0
        self.completed_at = None
        return self

    def pause(self, now: datetime) -> "Clock":
        """Stop the clock while the ticket waits on someone else."""
        self._require_started("pause")
        if self.state == ClockState.RUNNING:
            self.paused_at = as_utc(now)
        return self

    def resume(self, now: datetime, calendar: BusinessCalendar) -> "Clock":
        """Restart a paused clock, pushing the deadline past the pause."""
        self._require_started("resume")
        if self.state != ClockState.PAUSED:
            return self

        now = as_utc(now)
        pause_wall = max(now - self.paused_at, timedelta(0))
        self.paused_ms += pause_wall // ONE_MS
        self.due_at = self._pushed_due(now, calendar)
        self.paused_at = None
        return self

    def complete(self, now: datetime, calendar: BusinessCalendar) -> "Clock":
        """Record the milestone. An already recorded milestone is kept."""
        self._require_started("complete")
        if self.state == ClockState.COMPLETED:
            return self
        if self.state == ClockState.PAUSED:
            self.resume(now, calendar)

        self.completed_at = as_utc(now)
        return self

    def reopen(self) -> "Clock":
        """Run a completed clock again against its original deadline."""
        if self.state == ClockState.COMPLETED:
            self.completed_at = None
        return self

    # ========== Queries ==========

    def _pushed_due(self, now: datetime, calendar: BusinessCalendar) -> datetime:
        paused_business_ms = business_time_between(self.paused_at, now, calendar)
        return as_utc(add_business_time(self.due_at, paused_business_ms, calendar))

    def effective_due(self, now: datetime, calendar: BusinessCalendar) -> Optional[datetime]:
        """
        Deadline as it stands at `now`.

        While paused this is the deadline the clock would get if it
        resumed at `now`.
        """
        if self.state == ClockState.PAUSED:
            return self._pushed_due(as_utc(now), calendar)
        return self.due_at

    def is_breached(self, now: datetime, calendar: BusinessCalendar) -> bool:
        """
        Whether the milestone was, or is now, late.

        Completed clocks compare the milestone instant, others compare
        `now`. Reaching the deadline exactly is not a breach.
        """
        state = self.state
        if state == ClockState.NOT_STARTED:
            return False
        if state == ClockState.COMPLETED:
            return self.completed_at > self.due_at
        return as_utc(now) > self.effective_due(now, calendar)

    def remaining_ms(self, now: datetime, calendar: BusinessCalendar) -> int:
        """
        Business milliseconds left before the deadline.

        Negative values are business milliseconds overdue. Completed
        clocks are measured at their milestone instant.
        """
        if self.state == ClockState.NOT_STARTED:
            return self.budget_ms

        at = self.completed_at if self.state == ClockState.COMPLETED else as_utc(now)
        due = self.effective_due(at, calendar)
        if at <= due:
            return business_time_between(at, due, calendar)
        return -business_time_between(due, at, calendar)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": self.state,
            "budget_ms": self.budget_ms,
            "started_at": _iso(self.started_at),
            "due_at": _iso(self.due_at),
            "paused_at": _iso(self.paused_at),
            "paused_ms": self.paused_ms,
            "completed_at": _iso(self.completed_at),
        }


@dataclass
class TicketClocks:
    """
    The SLA and OLA clocks embedded in a ticket.

    SLA clocks start with the ticket; the OLA clock starts when the
    ticket is first assigned.
    """

    ticket_id: str
    tenant_id: str
    priority: str = TicketPriority.MEDIUM
    status: str = TicketStatus.OPEN
    sla_response: Clock = field(default_factory=Clock)
    sla_resolution: Clock = field(default_factory=Clock)
    ola: Clock = field(default_factory=Clock)
    assigned_at: Optional[datetime] = None
    version: int = 0

    @classmethod
    def open(
        cls,
        ticket_id: str,
        tenant_id: str,
        created_at: datetime,
        budgets: ClockBudgets,
        calendar: BusinessCalendar,
        priority: str = TicketPriority.MEDIUM,
    ) -> "TicketClocks":
        """Clocks for a newly created ticket, with both SLA clocks running."""
        clocks = cls(ticket_id=ticket_id, tenant_id=tenant_id, priority=priority)
        clocks.sla_response.start(created_at, budgets.response_ms, calendar)
        clocks.sla_resolution.start(created_at, budgets.resolution_ms, calendar)
        return clocks

    def clocks_for(self, agreement: str) -> list[Clock]:
        """Clocks belonging to an agreement that have been started."""
        if agreement == AgreementType.SLA:
            candidates = [self.sla_response, self.sla_resolution]
        else:
            candidates = [self.ola]
        return [clock for clock in candidates if clock.is_started]

    def to_document(self) -> Dict[str, Any]:
        """
        Render the clocks in the ticket document layout used by the
        helpdesk (`sla.*` / `ola.*` fields).
        """
        sla_pause = self.sla_resolution.paused_at or self.sla_response.paused_at
        return {
            "sla": {
                "responseDue": self.sla_response.due_at,
                "resolutionDue": self.sla_resolution.due_at,
                "firstResponseAt": self.sla_response.completed_at,
                "resolvedAt": self.sla_resolution.completed_at,
                "pausedAt": sla_pause,
                "pausedMs": self.sla_resolution.paused_ms,
            },
            "ola": {
                "ownDue": self.ola.due_at,
                "ownedAt": self.assigned_at,
                "resolvedAt": self.ola.completed_at,
                "pausedAt": self.ola.paused_at,
                "pausedMs": self.ola.paused_ms,
            },
        }


@dataclass
class ClockMetrics:
    """Point-in-time view of one clock."""
    deadline: datetime
    remaining_ms: int
    percentage_remaining: float
    is_breached: bool
    state: SLAState
    met_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "deadline": self.deadline.isoformat(),
            "remaining_ms": self.remaining_ms,
            "percentage_remaining": self.percentage_remaining,
            "is_breached": self.is_breached,
            "state": self.state,
            "met_at": _iso(self.met_at),
        }


@dataclass
class SLAMetrics:
    """
    SLA metrics for a ticket.

    Contains calculated SLA/OLA information including deadlines,
    remaining business time and breach status.
    """

    ticket_id: str
    evaluated_at: datetime
    response: ClockMetrics
    resolution: ClockMetrics
    ola: Optional[ClockMetrics] = None

    # Overall status (computed field)
    is_any_breached: bool = field(init=False)

    def __post_init__(self):
        """Calculate overall breach status."""
        self.is_any_breached = (
            self.response.is_breached
            or self.resolution.is_breached
            or (self.ola is not None and self.ola.is_breached)
        )

    def _all(self) -> list[ClockMetrics]:
        return [m for m in (self.response, self.resolution, self.ola) if m is not None]

    @property
    def most_urgent_state(self) -> SLAState:
        """Get the most urgent SLA state."""
        states = [m.state for m in self._all()]
        if self.is_any_breached:
            return SLAState.BREACHED
        if SLAState.AT_RISK in states:
            return SLAState.AT_RISK
        if all(state == SLAState.MET for state in states):
            return SLAState.MET
        return SLAState.ON_TRACK

    @property
    def next_deadline(self) -> datetime:
        """Get the earliest deadline still pending."""
        pending = [
            m.deadline for m in self._all()
            if m.state not in (SLAState.MET, SLAState.BREACHED)
        ]
        if pending:
            return min(pending)
        return min(m.deadline for m in self._all())

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "ticket_id": self.ticket_id,
            "evaluated_at": self.evaluated_at.isoformat(),
            "response": self.response.to_dict(),
            "resolution": self.resolution.to_dict(),
            "ola": self.ola.to_dict() if self.ola else None,
            "overall": {
                "state": self.most_urgent_state,
                "is_any_breached": self.is_any_breached,
                "next_deadline": self.next_deadline.isoformat(),
            },
        }
