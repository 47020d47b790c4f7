"""
SLA Domain Layer
================

Domain layer for the SLA/OLA clock engine.

Contains:
- Business-time arithmetic: pure calendar functions (add_business_time,
  business_time_between)
- Entities: Clock state machine, TicketClocks aggregate, SLAMetrics
- Value Objects: BusinessCalendar, TenantSettings, SLAPolicy, ClockBudgets
- Domain Services: Stateless business logic (SLACalculator)

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from deskclock.sla.domain.business_time import (
    add_business_time,
    business_time_between,
    normalize_to_business_time,
    is_within_business_hours,
)
from deskclock.sla.domain.value_objects import (
    BusinessCalendar,
    ClockBudgets,
    TenantSettings,
    SLAPolicy,
    SLACalculator,
)
from deskclock.sla.domain.entities import (
    Clock,
    TicketClocks,
    ClockMetrics,
    SLAMetrics,
)

__all__ = [
    # Business-time arithmetic
    "add_business_time",
    "business_time_between",
    "normalize_to_business_time",
    "is_within_business_hours",
    # Value Objects & Services
    "BusinessCalendar",
    "ClockBudgets",
    "TenantSettings",
    "SLAPolicy",
    "SLACalculator",
    # Entities
    "Clock",
    "TicketClocks",
    "ClockMetrics",
    "SLAMetrics",
]
