"""
SLA Application Services
=========================

Application services orchestrate business logic and coordinate between
domain entities and repositories.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations

The tenant calendar is fetched from the tenant store on every operation;
nothing here keeps a calendar between calls.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from deskclock.config import (
    AgreementType, LifecycleEvent, PAUSING_STATUSES, TERMINAL_STATUSES,
    TicketPriority
)
from deskclock.core import ResourceNotFoundException, ValidationException
from deskclock.sla.domain import (
    BusinessCalendar, Clock, ClockBudgets, ClockMetrics, SLACalculator,
    SLAMetrics, SLAPolicy, TenantSettings, TicketClocks
)
from deskclock.sla.application.dto import TicketEventRequest
from deskclock.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class ITicketClockRepository(ABC):
    """Interface for the ticket store holding clock state."""

    @abstractmethod
    async def get(self, ticket_id: str) -> Optional[TicketClocks]:
        """Get the clocks of a ticket."""

    @abstractmethod
    async def add(self, clocks: TicketClocks) -> TicketClocks:
        """Store the clocks of a new ticket."""

    @abstractmethod
    async def save(self, clocks: TicketClocks) -> TicketClocks:
        """
        Store updated clocks.

        Must fail with ConcurrencyException when the stored version no
        longer matches `clocks.version`, and bump the version otherwise.
        """

    @abstractmethod
    async def list_for_tenant(self, tenant_id: str) -> List[TicketClocks]:
        """All tracked tickets of a tenant."""


class ITenantSettingsRepository(ABC):
    """Interface for the tenant configuration store."""

    @abstractmethod
    async def get(self, tenant_id: str) -> Optional[TenantSettings]:
        """Get a tenant's SLA settings."""

    @abstractmethod
    async def upsert(self, tenant_settings: TenantSettings) -> TenantSettings:
        """Create or replace a tenant's SLA settings."""


class ISLAPolicyProvider(ABC):
    """Interface for SLA policy access."""

    @abstractmethod
    def get_policy(self) -> SLAPolicy:
        """Get current SLA policy."""


# ========== Deadline Recompute Trigger ==========

class DeadlineRecomputeTrigger:
    """
    Maps ticket lifecycle events onto clock transitions.

    | Event                          | SLA clocks              | OLA clock          |
    |--------------------------------|-------------------------|--------------------|
    | created                        | start both              | -                  |
    | status -> waiting on customer  | pause                   | pause if started   |
    | status leaves waiting          | resume                  | resume if started  |
    | first agent reply              | complete response       | -                  |
    | first assignment               | -                       | start              |
    | status -> resolved/closed      | complete resolution     | complete if started|
    | status leaves resolved/closed  | reopen resolution       | reopen if started  |

    SLA and OLA pause on their own status sets, which are the same by
    default.
    """

    def __init__(
        self,
        sla_pausing_statuses: Iterable[str] = PAUSING_STATUSES,
        ola_pausing_statuses: Optional[Iterable[str]] = None
    ):
        self._pausing = {
            AgreementType.SLA: frozenset(sla_pausing_statuses),
            AgreementType.OLA: frozenset(
                sla_pausing_statuses if ola_pausing_statuses is None else ola_pausing_statuses
            ),
        }

    def is_paused_status(self, agreement: str, status: str) -> bool:
        return status in self._pausing[agreement]

    def on_created(
        self,
        ticket_id: str,
        tenant_id: str,
        created_at: datetime,
        budgets: ClockBudgets,
        calendar: BusinessCalendar,
        priority: str = TicketPriority.MEDIUM
    ) -> TicketClocks:
        return TicketClocks.open(
            ticket_id, tenant_id, created_at, budgets, calendar, priority=priority
        )

    def on_status_changed(
        self,
        clocks: TicketClocks,
        new_status: str,
        now: datetime,
        calendar: BusinessCalendar
    ) -> TicketClocks:
        old_status = clocks.status
        if new_status == old_status:
            return clocks

        was_terminal = old_status in TERMINAL_STATUSES
        is_terminal = new_status in TERMINAL_STATUSES

        if was_terminal and not is_terminal:
            clocks.sla_resolution.reopen()
            clocks.ola.reopen()

        for agreement in (AgreementType.SLA, AgreementType.OLA):
            was_paused = self.is_paused_status(agreement, old_status)
            now_paused = self.is_paused_status(agreement, new_status)
            for clock in clocks.clocks_for(agreement):
                if now_paused and not was_paused:
                    clock.pause(now)
                elif was_paused and not now_paused:
                    clock.resume(now, calendar)

        if is_terminal and not was_terminal:
            clocks.sla_resolution.complete(now, calendar)
            if clocks.ola.is_started:
                clocks.ola.complete(now, calendar)

        clocks.status = new_status
        return clocks

    def on_first_reply(
        self,
        clocks: TicketClocks,
        now: datetime,
        calendar: BusinessCalendar
    ) -> TicketClocks:
        clocks.sla_response.complete(now, calendar)
        return clocks

    def on_assigned(
        self,
        clocks: TicketClocks,
        now: datetime,
        budget_ms: int,
        calendar: BusinessCalendar
    ) -> TicketClocks:
        """Start the OLA clock on first ownership; reassignments keep it."""
        if clocks.ola.is_started:
            return clocks

        clocks.ola.start(now, budget_ms, calendar)
        clocks.assigned_at = clocks.ola.started_at

        if self.is_paused_status(AgreementType.OLA, clocks.status):
            clocks.ola.pause(now)
        elif clocks.status in TERMINAL_STATUSES:
            clocks.ola.complete(now, calendar)
        return clocks


# ========== Metrics ==========

def _clock_metrics(
    clock: Clock,
    now: datetime,
    calendar: BusinessCalendar,
    warning_threshold_percent: int
) -> Optional[ClockMetrics]:
    if not clock.is_started:
        return None

    remaining, percentage, is_breached = SLACalculator.calculate_remaining_metrics(
        clock, now, calendar
    )
    return ClockMetrics(
        deadline=clock.effective_due(now, calendar),
        remaining_ms=remaining,
        percentage_remaining=percentage,
        is_breached=is_breached,
        state=SLACalculator.calculate_status(
            clock, now, calendar, warning_threshold_percent
        ),
        met_at=clock.completed_at,
    )


def build_metrics(
    clocks: TicketClocks,
    now: datetime,
    calendar: BusinessCalendar,
    warning_threshold_percent: int = 15
) -> SLAMetrics:
    """Evaluate every started clock of a ticket at `now`."""
    return SLAMetrics(
        ticket_id=clocks.ticket_id,
        evaluated_at=now,
        response=_clock_metrics(clocks.sla_response, now, calendar, warning_threshold_percent),
        resolution=_clock_metrics(clocks.sla_resolution, now, calendar, warning_threshold_percent),
        ola=_clock_metrics(clocks.ola, now, calendar, warning_threshold_percent),
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ========== Application Services ==========

class TenantCalendarService:
    """
    Reads and writes tenant SLA settings.

    Calendars are validated when written, so a malformed calendar is
    rejected at configuration time instead of failing later inside a
    ticket mutation.
    """

    def __init__(self, tenant_repository: ITenantSettingsRepository):
        self._tenant_repo = tenant_repository

    async def get_settings(self, tenant_id: str) -> TenantSettings:
        """Stored settings, or the defaults for a tenant that has none."""
        stored = await self._tenant_repo.get(tenant_id)
        return stored or TenantSettings(tenant_id=tenant_id)

    async def get_calendar(self, tenant_id: str) -> BusinessCalendar:
        return (await self.get_settings(tenant_id)).calendar()

    async def update_settings(self, tenant_settings: TenantSettings) -> TenantSettings:
        """
        Validate and store tenant settings.

        Raises:
            InvalidCalendarException: if the calendar is malformed
        """
        calendar = tenant_settings.calendar()
        saved = await self._tenant_repo.upsert(tenant_settings)

        logger.info(
            "Tenant calendar updated",
            extra={"tenant_id": saved.tenant_id, **calendar.to_dict()}
        )
        return saved


class SLAClockService:
    """
    Service for ticket clock tracking.

    Every mutation is a read-modify-write of one ticket's clocks; the
    repository's version check serializes concurrent events per ticket.
    """

    def __init__(
        self,
        clock_repository: ITicketClockRepository,
        tenant_service: TenantCalendarService,
        policy_provider: ISLAPolicyProvider,
        trigger: Optional[DeadlineRecomputeTrigger] = None
    ):
        self._clock_repo = clock_repository
        self._tenants = tenant_service
        self._policy_provider = policy_provider
        self._trigger = trigger or DeadlineRecomputeTrigger()

    async def _load(self, ticket_id: str) -> TicketClocks:
        clocks = await self._clock_repo.get(ticket_id)
        if clocks is None:
            raise ResourceNotFoundException("Ticket", ticket_id)
        return clocks

    async def open_ticket(
        self,
        ticket_id: str,
        tenant_id: str,
        created_at: datetime,
        priority: str = TicketPriority.MEDIUM
    ) -> TicketClocks:
        """Start the SLA clocks of a newly created ticket."""
        if await self._clock_repo.get(ticket_id) is not None:
            raise ValidationException(
                f"Ticket '{ticket_id}' is already tracked",
                {"ticket_id": ticket_id}
            )

        tenant = await self._tenants.get_settings(tenant_id)
        calendar = tenant.calendar()
        budgets = self._policy_provider.get_policy().budgets_for(tenant, priority)

        clocks = self._trigger.on_created(
            ticket_id, tenant_id, created_at, budgets, calendar, priority=priority
        )
        clocks = await self._clock_repo.add(clocks)

        logger.info(
            "SLA clocks started",
            extra={
                "ticket_id": ticket_id,
                "tenant_id": tenant_id,
                "priority": priority,
                "response_due": clocks.sla_response.due_at,
                "resolution_due": clocks.sla_resolution.due_at,
            }
        )
        return clocks

    async def apply_event(self, ticket_id: str, event: TicketEventRequest) -> TicketClocks:
        """Apply one lifecycle event to a ticket's clocks."""
        clocks = await self._load(ticket_id)
        tenant = await self._tenants.get_settings(clocks.tenant_id)
        calendar = tenant.calendar()
        now = event.occurred_at

        if event.event == LifecycleEvent.STATUS_CHANGED:
            previous = clocks.status
            self._trigger.on_status_changed(clocks, event.status, now, calendar)
            logger.info(
                "Ticket status changed",
                extra={
                    "ticket_id": ticket_id,
                    "tenant_id": clocks.tenant_id,
                    "from_status": previous,
                    "to_status": clocks.status,
                    "sla_resolution_state": clocks.sla_resolution.state,
                }
            )
        elif event.event == LifecycleEvent.FIRST_REPLY:
            self._trigger.on_first_reply(clocks, now, calendar)
            logger.info(
                "First response recorded",
                extra={
                    "ticket_id": ticket_id,
                    "tenant_id": clocks.tenant_id,
                    "first_response_at": clocks.sla_response.completed_at,
                    "response_breached": clocks.sla_response.is_breached(now, calendar),
                }
            )
        elif event.event == LifecycleEvent.ASSIGNED:
            budget_ms = self._policy_provider.get_policy().budgets_for(
                tenant, clocks.priority
            ).ola_resolution_ms
            self._trigger.on_assigned(clocks, now, budget_ms, calendar)
            logger.info(
                "Ticket assigned",
                extra={
                    "ticket_id": ticket_id,
                    "tenant_id": clocks.tenant_id,
                    "ola_due": clocks.ola.due_at,
                }
            )
        else:
            raise ValidationException(f"Unsupported lifecycle event '{event.event}'")

        return await self._clock_repo.save(clocks)

    async def get_clocks(self, ticket_id: str) -> TicketClocks:
        return await self._load(ticket_id)

    async def calculate_metrics(
        self,
        ticket_id: str,
        now: Optional[datetime] = None
    ) -> tuple[TicketClocks, SLAMetrics]:
        """Evaluate a ticket's clocks against its tenant's current calendar."""
        clocks = await self._load(ticket_id)
        calendar = await self._tenants.get_calendar(clocks.tenant_id)
        policy = self._policy_provider.get_policy()

        metrics = build_metrics(
            clocks, now or _utcnow(), calendar, policy.warning_threshold_percent
        )
        return clocks, metrics


@dataclass
class ComplianceReport:
    """SLA compliance counts for one tenant."""
    tenant_id: str
    total: int = 0
    response_met: int = 0
    resolution_met: int = 0
    breached: int = 0
    ola_met: int = 0
    ola_breached: int = 0

    @staticmethod
    def _rate(count: int, total: int) -> float:
        return round(count / total * 100, 2) if total else 0.0

    @property
    def response_rate(self) -> float:
        return self._rate(self.response_met, self.total)

    @property
    def resolution_rate(self) -> float:
        return self._rate(self.resolution_met, self.total)

    def to_dict(self) -> dict:
        return {
            "tenant_id": self.tenant_id,
            "total": self.total,
            "response_met": self.response_met,
            "resolution_met": self.resolution_met,
            "breached": self.breached,
            "ola_met": self.ola_met,
            "ola_breached": self.ola_breached,
            "response_rate": self.response_rate,
            "resolution_rate": self.resolution_rate,
        }


class ComplianceService:
    """
    Tenant-level SLA compliance.

    A milestone counts as met when it was reached at or before its due
    instant and as breached when it was reached after it. Pending
    milestones count as neither.
    """

    def __init__(self, clock_repository: ITicketClockRepository):
        self._clock_repo = clock_repository

    async def report(self, tenant_id: str) -> ComplianceReport:
        report = ComplianceReport(tenant_id=tenant_id)

        for clocks in await self._clock_repo.list_for_tenant(tenant_id):
            report.total += 1

            response_late = _completed_late(clocks.sla_response)
            resolution_late = _completed_late(clocks.sla_resolution)

            if response_late is False:
                report.response_met += 1
            if resolution_late is False:
                report.resolution_met += 1
            if response_late or resolution_late:
                report.breached += 1

            ola_late = _completed_late(clocks.ola)
            if ola_late is False:
                report.ola_met += 1
            elif ola_late:
                report.ola_breached += 1

        return report


def _completed_late(clock: Clock) -> Optional[bool]:
    """None while the milestone is pending, else whether it was late."""
    if clock.completed_at is None:
        return None
    return clock.completed_at > clock.due_at
