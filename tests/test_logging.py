"""Tests for structured JSON logging."""

import json
import logging
from datetime import datetime, timezone

from deskclock.shared.infrastructure.logging import (
    CustomJsonFormatter,
    get_context_logger,
    get_logger,
)


def format_record(**extra):
    formatter = CustomJsonFormatter("%(name)s %(levelname)s %(message)s", environment="test")
    record = logging.LogRecord("deskclock.test", logging.INFO, __file__, 1, "Clock paused", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return json.loads(formatter.format(record))


def test_json_line_carries_context():
    line = format_record(ticket_id="TKT-000001", tenant_id="acme", correlation_id="abc")
    assert line["message"] == "Clock paused"
    assert line["environment"] == "test"
    assert line["ticket_id"] == "TKT-000001"
    assert line["tenant_id"] == "acme"
    assert line["correlation_id"] == "abc"
    assert "timestamp" in line


def test_datetimes_rendered_as_iso():
    line = format_record(due_at=datetime(2024, 1, 1, 13, tzinfo=timezone.utc))
    assert line["due_at"] == "2024-01-01T13:00:00+00:00"


def test_context_logger():
    assert isinstance(get_context_logger("deskclock.test"), logging.Logger)

    adapter = get_context_logger("deskclock.test", correlation_id="abc", ticket_id="TKT-1")
    assert isinstance(adapter, logging.LoggerAdapter)
    assert adapter.extra == {"correlation_id": "abc", "ticket_id": "TKT-1"}
    assert adapter.logger is get_logger("deskclock.test")
