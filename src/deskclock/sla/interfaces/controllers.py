"""
SLA Controllers (API Routes)
=============================

FastAPI routes for the SLA clock engine.

Controllers are thin - they delegate to application services.
Application exceptions are translated to HTTP responses by the handler
registered in main.py.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from deskclock.infrastructure.database import get_session
from deskclock.sla.application import (
    ClockResponse,
    ClockStatusResponse,
    ComplianceReportResponse,
    ComplianceService,
    ISLAPolicyProvider,
    SLAClockService,
    TenantCalendarService,
    TenantSettingsRequest,
    TenantSettingsResponse,
    TicketClocksResponse,
    TicketEventRequest,
    TicketOpenRequest,
)
from deskclock.sla.domain import ClockMetrics, SLAMetrics, TenantSettings, TicketClocks
from deskclock.sla.infrastructure import (
    SQLAlchemyTenantSettingsRepository,
    SQLAlchemyTicketClockRepository,
)
from deskclock.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)
router = APIRouter(prefix="/sla", tags=["SLA Clocks"])


# ========== Dependencies ==========

def get_policy_provider(request: Request) -> ISLAPolicyProvider:
    """Policy manager created at startup."""
    return request.app.state.policy_manager


async def get_tenant_service(
    session: AsyncSession = Depends(get_session)
) -> TenantCalendarService:
    return TenantCalendarService(SQLAlchemyTenantSettingsRepository(session))


async def get_clock_service(
    session: AsyncSession = Depends(get_session),
    tenant_service: TenantCalendarService = Depends(get_tenant_service),
    policy_provider: ISLAPolicyProvider = Depends(get_policy_provider)
) -> SLAClockService:
    return SLAClockService(
        SQLAlchemyTicketClockRepository(session),
        tenant_service,
        policy_provider,
    )


async def get_compliance_service(
    session: AsyncSession = Depends(get_session)
) -> ComplianceService:
    return ComplianceService(SQLAlchemyTicketClockRepository(session))


# ========== Response mapping ==========

def _status_response(metrics: Optional[ClockMetrics]) -> Optional[ClockStatusResponse]:
    if metrics is None:
        return None
    return ClockStatusResponse(
        deadline=metrics.deadline,
        remaining_ms=metrics.remaining_ms,
        percentage_remaining=metrics.percentage_remaining,
        is_breached=metrics.is_breached,
        state=metrics.state,
        met_at=metrics.met_at,
    )


def _clocks_response(clocks: TicketClocks, metrics: SLAMetrics) -> TicketClocksResponse:
    return TicketClocksResponse(
        ticket_id=clocks.ticket_id,
        tenant_id=clocks.tenant_id,
        priority=clocks.priority,
        status=clocks.status,
        version=clocks.version,
        assigned_at=clocks.assigned_at,
        evaluated_at=metrics.evaluated_at,
        sla_response=ClockResponse(**clocks.sla_response.to_dict()),
        sla_resolution=ClockResponse(**clocks.sla_resolution.to_dict()),
        ola=ClockResponse(**clocks.ola.to_dict()),
        response_status=_status_response(metrics.response),
        resolution_status=_status_response(metrics.resolution),
        ola_status=_status_response(metrics.ola),
        overall_state=metrics.most_urgent_state,
        next_deadline=metrics.next_deadline,
    )


def _settings_response(tenant_settings: TenantSettings) -> TenantSettingsResponse:
    return TenantSettingsResponse(**tenant_settings.model_dump())


# ========== Route Handlers ==========

@router.post(
    "/tickets",
    response_model=TicketClocksResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start SLA clocks for a new ticket",
)
async def open_ticket(
    request: TicketOpenRequest,
    service: SLAClockService = Depends(get_clock_service)
):
    clocks = await service.open_ticket(
        request.ticket_id,
        request.tenant_id,
        request.created_at,
        priority=request.priority,
    )
    _, metrics = await service.calculate_metrics(clocks.ticket_id, now=request.created_at)
    return _clocks_response(clocks, metrics)


@router.post(
    "/tickets/{ticket_id}/events",
    response_model=TicketClocksResponse,
    summary="Apply a ticket lifecycle event",
    description="""
    Moves the ticket's clocks for one lifecycle event.

    - `status_changed`: entering `waiting_customer` pauses, leaving it resumes;
      `resolved`/`closed` complete the resolution clocks; leaving them reopens.
    - `first_reply`: completes the first-response clock.
    - `assigned`: starts the OLA clock on first ownership.
    """,
)
async def apply_event(
    ticket_id: str,
    event: TicketEventRequest,
    service: SLAClockService = Depends(get_clock_service)
):
    clocks = await service.apply_event(ticket_id, event)
    _, metrics = await service.calculate_metrics(ticket_id, now=event.occurred_at)
    return _clocks_response(clocks, metrics)


@router.get(
    "/tickets/{ticket_id}",
    response_model=TicketClocksResponse,
    summary="Get ticket clocks and SLA status",
)
async def get_ticket_clocks(
    ticket_id: str,
    now: Optional[datetime] = Query(None, description="Evaluation instant (defaults to now)"),
    service: SLAClockService = Depends(get_clock_service)
):
    clocks, metrics = await service.calculate_metrics(ticket_id, now=now)
    return _clocks_response(clocks, metrics)


@router.get(
    "/tenants/{tenant_id}/settings",
    response_model=TenantSettingsResponse,
    summary="Get tenant SLA settings",
)
async def get_tenant_settings(
    tenant_id: str,
    service: TenantCalendarService = Depends(get_tenant_service)
):
    return _settings_response(await service.get_settings(tenant_id))


@router.put(
    "/tenants/{tenant_id}/settings",
    response_model=TenantSettingsResponse,
    summary="Replace tenant SLA settings",
    description="Rejects malformed calendars (no work days, start not before end, unknown timezone) with 422.",
)
async def put_tenant_settings(
    tenant_id: str,
    request: TenantSettingsRequest,
    service: TenantCalendarService = Depends(get_tenant_service)
):
    saved = await service.update_settings(
        TenantSettings(tenant_id=tenant_id, **request.model_dump())
    )
    return _settings_response(saved)


@router.get(
    "/tenants/{tenant_id}/compliance",
    response_model=ComplianceReportResponse,
    summary="Tenant SLA compliance",
)
async def get_compliance(
    tenant_id: str,
    service: ComplianceService = Depends(get_compliance_service)
):
    with log_latency(logger, "compliance_report", tenant_id=tenant_id):
        report = await service.report(tenant_id)
    return ComplianceReportResponse(**report.to_dict())
