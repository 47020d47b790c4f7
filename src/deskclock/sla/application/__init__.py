"""
SLA Application Layer
======================

Application layer for the SLA/OLA clock engine.

Contains:
- Services: Orchestrate clock transitions and coordinate with repositories
- Trigger: Maps ticket lifecycle events onto clock transitions
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from deskclock.sla.application.dto import (
    TicketOpenRequest,
    TicketEventRequest,
    TenantSettingsRequest,
    TenantSettingsResponse,
    ClockResponse,
    ClockStatusResponse,
    TicketClocksResponse,
    ComplianceReportResponse,
)
from deskclock.sla.application.services import (
    DeadlineRecomputeTrigger,
    SLAClockService,
    TenantCalendarService,
    ComplianceService,
    ComplianceReport,
    build_metrics,
    ITicketClockRepository,
    ITenantSettingsRepository,
    ISLAPolicyProvider,
)

__all__ = [
    # DTOs
    "TicketOpenRequest",
    "TicketEventRequest",
    "TenantSettingsRequest",
    "TenantSettingsResponse",
    "ClockResponse",
    "ClockStatusResponse",
    "TicketClocksResponse",
    "ComplianceReportResponse",
    # Services
    "DeadlineRecomputeTrigger",
    "SLAClockService",
    "TenantCalendarService",
    "ComplianceService",
    "ComplianceReport",
    "build_metrics",
    # Repository Interfaces
    "ITicketClockRepository",
    "ITenantSettingsRepository",
    "ISLAPolicyProvider",
]
