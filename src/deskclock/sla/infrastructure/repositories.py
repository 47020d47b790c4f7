"""
SLA Infrastructure Repositories
=================================

Concrete implementations of repository interfaces using SQLAlchemy.

This layer contains the data access logic - how we store and retrieve
ticket clocks and tenant settings.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from deskclock.core import ConcurrencyException, ResourceNotFoundException
from deskclock.sla.application import ITicketClockRepository, ITenantSettingsRepository
from deskclock.sla.domain import Clock, TenantSettings, TicketClocks
from deskclock.sla.domain.business_time import as_utc
from deskclock.sla.infrastructure.models import TenantSettingsModel, TicketClockModel


# Column prefix of each clock in the ticket_clocks table.
_CLOCK_COLUMNS = {
    "sla_response": ("response", "first_response_at"),
    "sla_resolution": ("resolution", "resolved_at"),
    "ola": ("ola", "ola_resolved_at"),
}


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes
    return as_utc(value) if value is not None else None


def _clock_to_columns(clock: Clock, prefix: str, completed_column: str) -> Dict[str, Any]:
    return {
        f"{prefix}_budget_ms": clock.budget_ms,
        f"{prefix}_started_at": clock.started_at,
        f"{prefix}_due_at": clock.due_at,
        f"{prefix}_paused_at": clock.paused_at,
        f"{prefix}_paused_ms": clock.paused_ms,
        completed_column: clock.completed_at,
    }


def _clock_from_model(model: TicketClockModel, prefix: str, completed_column: str) -> Clock:
    return Clock(
        budget_ms=getattr(model, f"{prefix}_budget_ms"),
        started_at=_utc(getattr(model, f"{prefix}_started_at")),
        due_at=_utc(getattr(model, f"{prefix}_due_at")),
        paused_at=_utc(getattr(model, f"{prefix}_paused_at")),
        paused_ms=getattr(model, f"{prefix}_paused_ms"),
        completed_at=_utc(getattr(model, completed_column)),
    )


class SQLAlchemyTicketClockRepository(ITicketClockRepository):
    """
    SQLAlchemy implementation of the ticket clock store.

    `save` is a compare-and-set on the version column, so two events
    racing on the same ticket cannot both commit against the same prior
    state.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _columns(clocks: TicketClocks) -> Dict[str, Any]:
        columns: Dict[str, Any] = {
            "tenant_id": clocks.tenant_id,
            "priority": clocks.priority,
            "status": clocks.status,
            "assigned_at": clocks.assigned_at,
        }
        for attribute, (prefix, completed_column) in _CLOCK_COLUMNS.items():
            columns.update(
                _clock_to_columns(getattr(clocks, attribute), prefix, completed_column)
            )
        return columns

    @staticmethod
    def _to_domain(model: TicketClockModel) -> TicketClocks:
        clocks = {
            attribute: _clock_from_model(model, prefix, completed_column)
            for attribute, (prefix, completed_column) in _CLOCK_COLUMNS.items()
        }
        return TicketClocks(
            ticket_id=model.ticket_id,
            tenant_id=model.tenant_id,
            priority=model.priority,
            status=model.status,
            assigned_at=_utc(model.assigned_at),
            version=model.version,
            **clocks,
        )

    async def get(self, ticket_id: str) -> Optional[TicketClocks]:
        """Get the clocks of a ticket."""
        stmt = (
            select(TicketClockModel)
            .where(TicketClockModel.ticket_id == ticket_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model else None

    async def add(self, clocks: TicketClocks) -> TicketClocks:
        """Store the clocks of a new ticket."""
        model = TicketClockModel(
            ticket_id=clocks.ticket_id,
            version=1,
            **self._columns(clocks),
        )
        self._session.add(model)
        await self._session.flush()

        clocks.version = model.version
        return clocks

    async def save(self, clocks: TicketClocks) -> TicketClocks:
        """Store updated clocks if nobody changed them since they were read."""
        stmt = (
            update(TicketClockModel)
            .where(
                TicketClockModel.ticket_id == clocks.ticket_id,
                TicketClockModel.version == clocks.version,
            )
            .values(
                **self._columns(clocks),
                version=clocks.version + 1,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)

        if result.rowcount != 1:
            exists = await self._session.scalar(
                select(TicketClockModel.ticket_id).where(
                    TicketClockModel.ticket_id == clocks.ticket_id
                )
            )
            if exists is None:
                raise ResourceNotFoundException("Ticket", clocks.ticket_id)
            raise ConcurrencyException("Ticket", clocks.ticket_id, clocks.version)

        clocks.version += 1
        return clocks

    async def list_for_tenant(self, tenant_id: str) -> List[TicketClocks]:
        """All tracked tickets of a tenant, oldest first."""
        stmt = (
            select(TicketClockModel)
            .where(TicketClockModel.tenant_id == tenant_id)
            .order_by(TicketClockModel.created_at.asc())
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]


class SQLAlchemyTenantSettingsRepository(ITenantSettingsRepository):
    """SQLAlchemy implementation of the tenant configuration store."""

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _to_domain(model: TenantSettingsModel) -> TenantSettings:
        return TenantSettings(
            tenant_id=model.tenant_id,
            timezone=model.timezone,
            work_days=list(model.work_days),
            work_start=model.work_start,
            work_end=model.work_end,
            sla_response_hours=model.sla_response_hours,
            sla_resolution_hours=model.sla_resolution_hours,
            ola_resolution_hours=model.ola_resolution_hours,
        )

    async def get(self, tenant_id: str) -> Optional[TenantSettings]:
        """Get a tenant's SLA settings."""
        model = await self._session.get(TenantSettingsModel, tenant_id, populate_existing=True)
        return self._to_domain(model) if model else None

    async def upsert(self, tenant_settings: TenantSettings) -> TenantSettings:
        """Create or replace a tenant's SLA settings."""
        values = tenant_settings.model_dump(exclude={"tenant_id"})
        values["work_days"] = sorted(set(values["work_days"]))

        model = await self._session.get(TenantSettingsModel, tenant_settings.tenant_id)
        if model is None:
            model = TenantSettingsModel(tenant_id=tenant_settings.tenant_id, **values)
            self._session.add(model)
        else:
            for key, value in values.items():
                setattr(model, key, value)
            model.updated_at = datetime.now(timezone.utc)

        await self._session.flush()
        return self._to_domain(model)
