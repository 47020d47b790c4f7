"""
SLA Infrastructure Layer
=========================

Infrastructure implementations for the SLA clock engine:
- Models: SQLAlchemy ORM models
- Repositories: Data access layer (ticket clocks, tenant settings)
- External: SLA policy file with hot reload
"""

from deskclock.sla.infrastructure.models import TicketClockModel, TenantSettingsModel
from deskclock.sla.infrastructure.repositories import (
    SQLAlchemyTicketClockRepository,
    SQLAlchemyTenantSettingsRepository,
)
from deskclock.sla.infrastructure.external import SLAPolicyManager

__all__ = [
    "TicketClockModel",
    "TenantSettingsModel",
    "SQLAlchemyTicketClockRepository",
    "SQLAlchemyTenantSettingsRepository",
    "SLAPolicyManager",
]
