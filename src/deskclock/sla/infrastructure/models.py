"""
SLA Infrastructure Models
==========================

SQLAlchemy ORM models for SLA module.

These are the database representations of our domain entities.
They belong in the infrastructure layer, not the domain layer.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON, BigInteger, DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from deskclock.infrastructure.database import Base
from deskclock.config import TicketPriority, TicketStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TicketClockModel(Base):
    """
    Clock fields of a ticket.

    Maps to the 'ticket_clocks' table. `version` is the optimistic
    concurrency guard for per-ticket read-modify-write.
    """
    __tablename__ = "ticket_clocks"

    ticket_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    tenant_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default=TicketPriority.MEDIUM)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default=TicketStatus.OPEN)
    assigned_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # SLA first response
    response_budget_ms: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    response_started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    response_due_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    response_paused_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    response_paused_ms: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    first_response_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # SLA resolution
    resolution_budget_ms: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    resolution_started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolution_due_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolution_paused_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolution_paused_ms: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # OLA
    ola_budget_ms: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    ola_started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    ola_due_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    ola_paused_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    ola_paused_ms: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    ola_resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)


class TenantSettingsModel(Base):
    """
    SLA settings of a tenant.

    Maps to the 'tenant_sla_settings' table.
    """
    __tablename__ = "tenant_sla_settings"

    tenant_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False)
    work_days: Mapped[List[int]] = mapped_column(JSON, nullable=False)
    work_start: Mapped[str] = mapped_column(String(5), nullable=False)
    work_end: Mapped[str] = mapped_column(String(5), nullable=False)
    sla_response_hours: Mapped[float] = mapped_column(Float, nullable=False)
    sla_resolution_hours: Mapped[float] = mapped_column(Float, nullable=False)
    ola_resolution_hours: Mapped[float] = mapped_column(Float, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
