"""Tests for the lifecycle-event to clock-transition mapping."""

import pytest

from deskclock.config import ClockState, TicketStatus
from deskclock.sla.application import DeadlineRecomputeTrigger
from deskclock.sla.domain import ClockBudgets
from tests.conftest import HOUR_MS, utc

BUDGETS = ClockBudgets(
    response_ms=4 * HOUR_MS,
    resolution_ms=24 * HOUR_MS,
    ola_resolution_ms=8 * HOUR_MS,
)


@pytest.fixture
def trigger():
    return DeadlineRecomputeTrigger()


@pytest.fixture
def clocks(trigger, utc_calendar):
    return trigger.on_created("TKT-000001", "acme", utc(2024, 1, 1, 9), BUDGETS, utc_calendar)


def test_created_starts_sla_clocks_only(clocks):
    assert clocks.sla_response.state == ClockState.RUNNING
    assert clocks.sla_resolution.state == ClockState.RUNNING
    assert clocks.ola.state == ClockState.NOT_STARTED
    assert clocks.sla_response.due_at == utc(2024, 1, 1, 13)
    # Mon 9h + Tue 9h + Wed 6h
    assert clocks.sla_resolution.due_at == utc(2024, 1, 3, 15)


def test_waiting_on_customer_pauses_sla(trigger, clocks, utc_calendar):
    trigger.on_status_changed(clocks, TicketStatus.WAITING_CUSTOMER, utc(2024, 1, 1, 10), utc_calendar)

    assert clocks.status == TicketStatus.WAITING_CUSTOMER
    assert clocks.sla_response.state == ClockState.PAUSED
    assert clocks.sla_resolution.state == ClockState.PAUSED
    assert clocks.ola.state == ClockState.NOT_STARTED


def test_leaving_waiting_resumes_and_pushes_deadlines(trigger, clocks, utc_calendar):
    trigger.on_status_changed(clocks, TicketStatus.WAITING_CUSTOMER, utc(2024, 1, 1, 10), utc_calendar)
    trigger.on_status_changed(clocks, TicketStatus.IN_PROGRESS, utc(2024, 1, 1, 12), utc_calendar)

    assert clocks.sla_response.state == ClockState.RUNNING
    assert clocks.sla_response.due_at == utc(2024, 1, 1, 15)
    assert clocks.sla_resolution.due_at == utc(2024, 1, 3, 17)


def test_first_reply_completes_response_only(trigger, clocks, utc_calendar):
    trigger.on_first_reply(clocks, utc(2024, 1, 1, 11), utc_calendar)

    assert clocks.sla_response.state == ClockState.COMPLETED
    assert clocks.sla_response.completed_at == utc(2024, 1, 1, 11)
    assert clocks.sla_resolution.state == ClockState.RUNNING


def test_first_assignment_starts_ola(trigger, clocks, utc_calendar):
    trigger.on_assigned(clocks, utc(2024, 1, 1, 10), 8 * HOUR_MS, utc_calendar)

    assert clocks.ola.state == ClockState.RUNNING
    assert clocks.assigned_at == utc(2024, 1, 1, 10)
    assert clocks.ola.due_at == utc(2024, 1, 1, 18)


def test_reassignment_keeps_ola(trigger, clocks, utc_calendar):
    trigger.on_assigned(clocks, utc(2024, 1, 1, 10), 8 * HOUR_MS, utc_calendar)
    trigger.on_assigned(clocks, utc(2024, 1, 2, 10), 8 * HOUR_MS, utc_calendar)

    assert clocks.assigned_at == utc(2024, 1, 1, 10)
    assert clocks.ola.due_at == utc(2024, 1, 1, 18)


def test_assignment_while_waiting_starts_paused(trigger, clocks, utc_calendar):
    trigger.on_status_changed(clocks, TicketStatus.WAITING_CUSTOMER, utc(2024, 1, 1, 10), utc_calendar)
    trigger.on_assigned(clocks, utc(2024, 1, 1, 11), 8 * HOUR_MS, utc_calendar)

    assert clocks.ola.state == ClockState.PAUSED

    trigger.on_status_changed(clocks, TicketStatus.OPEN, utc(2024, 1, 1, 13), utc_calendar)
    assert clocks.ola.state == ClockState.RUNNING
    # Started 11:00 with 8h, paused 2h
    assert clocks.ola.due_at == utc(2024, 1, 2, 12)


def test_started_ola_pauses_with_sla(trigger, clocks, utc_calendar):
    trigger.on_assigned(clocks, utc(2024, 1, 1, 10), 8 * HOUR_MS, utc_calendar)
    trigger.on_status_changed(clocks, TicketStatus.WAITING_CUSTOMER, utc(2024, 1, 1, 11), utc_calendar)
    assert clocks.ola.state == ClockState.PAUSED


def test_resolution_completes_resolution_and_ola(trigger, clocks, utc_calendar):
    trigger.on_assigned(clocks, utc(2024, 1, 1, 10), 8 * HOUR_MS, utc_calendar)
    trigger.on_status_changed(clocks, TicketStatus.RESOLVED, utc(2024, 1, 1, 16), utc_calendar)

    assert clocks.sla_resolution.completed_at == utc(2024, 1, 1, 16)
    assert clocks.ola.completed_at == utc(2024, 1, 1, 16)
    # Responding is a separate milestone
    assert clocks.sla_response.state == ClockState.RUNNING


def test_resolution_without_assignment_leaves_ola_unstarted(trigger, clocks, utc_calendar):
    trigger.on_status_changed(clocks, TicketStatus.CLOSED, utc(2024, 1, 1, 16), utc_calendar)
    assert clocks.sla_resolution.state == ClockState.COMPLETED
    assert clocks.ola.state == ClockState.NOT_STARTED


def test_resolving_while_waiting_folds_in_pause(trigger, clocks, utc_calendar):
    trigger.on_status_changed(clocks, TicketStatus.WAITING_CUSTOMER, utc(2024, 1, 1, 10), utc_calendar)
    trigger.on_status_changed(clocks, TicketStatus.RESOLVED, utc(2024, 1, 1, 12), utc_calendar)

    assert clocks.sla_resolution.state == ClockState.COMPLETED
    assert clocks.sla_resolution.paused_ms == 2 * HOUR_MS
    # The response clock keeps running once the ticket is no longer waiting
    assert clocks.sla_response.state == ClockState.RUNNING


def test_resolved_to_closed_keeps_milestone(trigger, clocks, utc_calendar):
    trigger.on_status_changed(clocks, TicketStatus.RESOLVED, utc(2024, 1, 1, 16), utc_calendar)
    trigger.on_status_changed(clocks, TicketStatus.CLOSED, utc(2024, 1, 2, 9), utc_calendar)
    assert clocks.sla_resolution.completed_at == utc(2024, 1, 1, 16)


def test_reopening_restores_running_resolution(trigger, clocks, utc_calendar):
    trigger.on_assigned(clocks, utc(2024, 1, 1, 10), 8 * HOUR_MS, utc_calendar)
    trigger.on_status_changed(clocks, TicketStatus.RESOLVED, utc(2024, 1, 1, 16), utc_calendar)
    trigger.on_status_changed(clocks, TicketStatus.IN_PROGRESS, utc(2024, 1, 2, 9), utc_calendar)

    assert clocks.sla_resolution.state == ClockState.RUNNING
    assert clocks.sla_resolution.due_at == utc(2024, 1, 3, 15)
    assert clocks.ola.state == ClockState.RUNNING


def test_reopening_into_waiting_pauses(trigger, clocks, utc_calendar):
    trigger.on_status_changed(clocks, TicketStatus.RESOLVED, utc(2024, 1, 1, 16), utc_calendar)
    trigger.on_status_changed(clocks, TicketStatus.WAITING_CUSTOMER, utc(2024, 1, 2, 9), utc_calendar)
    assert clocks.sla_resolution.state == ClockState.PAUSED


def test_same_status_is_a_no_op(trigger, clocks, utc_calendar):
    trigger.on_status_changed(clocks, TicketStatus.WAITING_CUSTOMER, utc(2024, 1, 1, 10), utc_calendar)
    trigger.on_status_changed(clocks, TicketStatus.WAITING_CUSTOMER, utc(2024, 1, 1, 11), utc_calendar)
    assert clocks.sla_response.paused_at == utc(2024, 1, 1, 10)


def test_ola_pause_statuses_can_differ(utc_calendar):
    trigger = DeadlineRecomputeTrigger(ola_pausing_statuses=())
    clocks = trigger.on_created("TKT-000002", "acme", utc(2024, 1, 1, 9), BUDGETS, utc_calendar)
    trigger.on_assigned(clocks, utc(2024, 1, 1, 9), 8 * HOUR_MS, utc_calendar)
    trigger.on_status_changed(clocks, TicketStatus.WAITING_CUSTOMER, utc(2024, 1, 1, 10), utc_calendar)

    assert clocks.sla_resolution.state == ClockState.PAUSED
    assert clocks.ola.state == ClockState.RUNNING


def test_ticket_document_layout(trigger, clocks, utc_calendar):
    trigger.on_assigned(clocks, utc(2024, 1, 1, 10), 8 * HOUR_MS, utc_calendar)
    document = clocks.to_document()

    assert document["sla"]["responseDue"] == utc(2024, 1, 1, 13)
    assert document["sla"]["firstResponseAt"] is None
    assert document["ola"]["ownDue"] == utc(2024, 1, 1, 18)
    assert document["ola"]["ownedAt"] == utc(2024, 1, 1, 10)
