"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from pathlib import Path
from typing import List


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="deskclock", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root logging level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="sqlite+aiosqlite:///./deskclock.db",
        description="SQLAlchemy async connection URL"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== SLA Policy ==========
    sla_policy_path: Path = Field(
        default=Path("sla_policy.yaml"),
        description="Path to SLA policy YAML file"
    )
    watch_sla_policy: bool = Field(
        default=True,
        description="Reload the SLA policy when the file changes"
    )

    # ========== Tenant defaults ==========
    default_timezone: str = Field(
        default="America/Sao_Paulo",
        description="IANA timezone used for new tenants"
    )
    default_work_days: List[int] = Field(
        default=[1, 2, 3, 4, 5],
        description="ISO weekdays (1=Monday..7=Sunday) worked by new tenants"
    )
    default_work_start: str = Field(default="09:00", description="Work window start (HH:MM)")
    default_work_end: str = Field(default="18:00", description="Work window end (HH:MM)")
    default_sla_response_hours: float = Field(
        default=4,
        description="Business hours to first response",
        ge=0
    )
    default_sla_resolution_hours: float = Field(
        default=24,
        description="Business hours to resolution",
        ge=0
    )
    default_ola_resolution_hours: float = Field(
        default=8,
        description="Business hours from ownership to resolution",
        ge=0
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "test", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class TicketStatus(str):
    """Ticket lifecycle statuses."""
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    WAITING_CUSTOMER = "waiting_customer"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority(str):
    """Ticket priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class AgreementType(str):
    """Which agreement a clock belongs to."""
    SLA = "sla"     # customer-facing
    OLA = "ola"     # internal, starts at ownership


class ClockState(str):
    """States of a single deadline clock."""
    NOT_STARTED = "not_started"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


class SLAState(str):
    """SLA status states."""
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    BREACHED = "breached"
    MET = "met"


class LifecycleEvent(str):
    """Ticket lifecycle events that move clocks."""
    CREATED = "created"
    STATUS_CHANGED = "status_changed"
    FIRST_REPLY = "first_reply"
    ASSIGNED = "assigned"


# ========== Lists for validation ==========

VALID_STATUSES = [
    TicketStatus.OPEN, TicketStatus.IN_PROGRESS,
    TicketStatus.WAITING_CUSTOMER, TicketStatus.RESOLVED,
    TicketStatus.CLOSED
]
VALID_PRIORITIES = [
    TicketPriority.LOW, TicketPriority.MEDIUM,
    TicketPriority.HIGH, TicketPriority.URGENT
]
VALID_SLA_STATES = [SLAState.ON_TRACK, SLAState.AT_RISK, SLAState.BREACHED, SLAState.MET]

# Statuses in which the ticket waits on someone outside the team.
PAUSING_STATUSES = frozenset({TicketStatus.WAITING_CUSTOMER})

# Statuses that end the resolution milestone.
TERMINAL_STATUSES = frozenset({TicketStatus.RESOLVED, TicketStatus.CLOSED})

MS_PER_HOUR = 60 * 60 * 1000
