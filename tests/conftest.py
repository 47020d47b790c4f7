"""Shared fixtures for the clock engine tests."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio

from deskclock.infrastructure.database import (
    close_database, create_tables, init_database
)
from deskclock.sla.domain import BusinessCalendar

HOUR_MS = 60 * 60 * 1000

SAO_PAULO = ZoneInfo("America/Sao_Paulo")


def utc(year, month, day, hour=0, minute=0, second=0, microsecond=0):
    return datetime(year, month, day, hour, minute, second, microsecond, tzinfo=timezone.utc)


def local(zone, year, month, day, hour=0, minute=0):
    """A wall-clock time in `zone`, returned as UTC."""
    return datetime(year, month, day, hour, minute, tzinfo=zone).astimezone(timezone.utc)


@pytest.fixture
def utc_calendar() -> BusinessCalendar:
    """Mon-Fri 09:00-18:00 UTC. 2024-01-01 is a Monday."""
    return BusinessCalendar.of("UTC", [1, 2, 3, 4, 5], "09:00", "18:00")


@pytest.fixture
def sao_paulo_calendar() -> BusinessCalendar:
    return BusinessCalendar.of("America/Sao_Paulo", [1, 2, 3, 4, 5], "09:00", "18:00")


@pytest_asyncio.fixture
async def database(tmp_path):
    """A fresh SQLite database file with all tables created."""
    init_database(f"sqlite+aiosqlite:///{tmp_path / 'clocks.db'}")
    await create_tables()
    yield
    await close_database()
