"""
SLA Application DTOs
=====================

Data Transfer Objects for the SLA API layer.

These Pydantic models handle serialization/deserialization and validation
for API requests and responses.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from deskclock.config import settings


# ========== Type Aliases for Literals ==========
PriorityStr = Literal["low", "medium", "high", "urgent"]
TicketStatusStr = Literal["open", "in_progress", "waiting_customer", "resolved", "closed"]
ClockStateStr = Literal["not_started", "running", "paused", "completed"]
SLAStateStr = Literal["on_track", "at_risk", "breached", "met"]
EventTypeStr = Literal["status_changed", "first_reply", "assigned"]


# ========== Request DTOs ==========

class TicketOpenRequest(BaseModel):
    """Request to start tracking a newly created ticket."""
    ticket_id: str = Field(..., min_length=1, description="Ticket identifier, e.g. TKT-000123")
    tenant_id: str = Field(..., min_length=1, description="Owning tenant")
    priority: PriorityStr = Field(default="medium", description="Ticket priority")
    created_at: datetime = Field(..., description="Ticket creation timestamp")


class TicketEventRequest(BaseModel):
    """A ticket lifecycle event that moves the clocks."""
    event: EventTypeStr = Field(..., description="Lifecycle event type")
    occurred_at: datetime = Field(..., description="When the event happened")
    status: Optional[TicketStatusStr] = Field(
        None,
        description="New ticket status (status_changed only)"
    )

    @model_validator(mode="after")
    def validate_status(self) -> "TicketEventRequest":
        """A status change must carry the new status."""
        if self.event == "status_changed" and self.status is None:
            raise ValueError("status is required for status_changed events")
        return self


class TenantSettingsRequest(BaseModel):
    """Tenant SLA settings as written by an administrator."""
    timezone: str = Field(default=settings.default_timezone, description="IANA timezone")
    work_days: List[int] = Field(
        default_factory=lambda: list(settings.default_work_days),
        description="ISO weekdays, 1=Monday..7=Sunday"
    )
    work_start: str = Field(default=settings.default_work_start, description="HH:MM")
    work_end: str = Field(default=settings.default_work_end, description="HH:MM")
    sla_response_hours: float = Field(default=settings.default_sla_response_hours, ge=0)
    sla_resolution_hours: float = Field(default=settings.default_sla_resolution_hours, ge=0)
    ola_resolution_hours: float = Field(default=settings.default_ola_resolution_hours, ge=0)


# ========== Response DTOs ==========

class ClockResponse(BaseModel):
    """Stored state of a single clock."""
    state: ClockStateStr
    budget_ms: int
    started_at: Optional[datetime] = None
    due_at: Optional[datetime] = None
    paused_at: Optional[datetime] = None
    paused_ms: int = 0
    completed_at: Optional[datetime] = None


class ClockStatusResponse(BaseModel):
    """Evaluated status of a single clock."""
    deadline: datetime = Field(..., description="Deadline as of evaluation time")
    remaining_ms: int = Field(..., description="Business ms left (negative when overdue)")
    percentage_remaining: float = Field(..., description="Share of budget left")
    is_breached: bool
    state: SLAStateStr
    met_at: Optional[datetime] = None


class TicketClocksResponse(BaseModel):
    """Clocks and evaluated SLA status of a ticket."""
    ticket_id: str
    tenant_id: str
    priority: PriorityStr
    status: TicketStatusStr
    version: int
    assigned_at: Optional[datetime] = None
    evaluated_at: datetime

    sla_response: ClockResponse
    sla_resolution: ClockResponse
    ola: ClockResponse

    response_status: ClockStatusResponse
    resolution_status: ClockStatusResponse
    ola_status: Optional[ClockStatusResponse] = None
    overall_state: SLAStateStr
    next_deadline: datetime


class TenantSettingsResponse(TenantSettingsRequest):
    """Stored tenant SLA settings."""
    tenant_id: str


class ComplianceReportResponse(BaseModel):
    """SLA compliance of a tenant's tickets."""
    tenant_id: str
    total: int = Field(..., description="Tracked tickets")
    response_met: int = Field(..., description="First responses at or before due")
    resolution_met: int = Field(..., description="Resolutions at or before due")
    breached: int = Field(..., description="Tickets with a late first response or resolution")
    ola_met: int
    ola_breached: int
    response_rate: float = Field(..., description="Percentage of tickets with response met")
    resolution_rate: float = Field(..., description="Percentage of tickets with resolution met")
