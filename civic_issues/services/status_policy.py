# File: civic_issues/services/status_policy.py
# Project: civic-issues-backend
"""Allowed status moves for reports and emergencies.

Both lifecycles are tables of ``current -> {allowed next}``. Anything not
listed, including staying put, going backwards, leaving a terminal state,
or naming a status that does not exist, is refused.
"""

from enum import Enum
from typing import Mapping, Union

from civic_issues.core.errors import InvalidTransitionError
from civic_issues.models.emergency import EmergencyStatus
from civic_issues.models.report import ReportStatus

StatusLike = Union[str, Enum, None]

REPORT_TRANSITIONS: Mapping[str, frozenset] = {
    ReportStatus.submitted.value: frozenset({ReportStatus.in_progress.value, ReportStatus.rejected.value}),
    ReportStatus.in_progress.value: frozenset({ReportStatus.resolved.value, ReportStatus.rejected.value}),
    ReportStatus.resolved.value: frozenset(),
    ReportStatus.rejected.value: frozenset(),
}

EMERGENCY_TRANSITIONS: Mapping[str, frozenset] = {
    EmergencyStatus.reported.value: frozenset({EmergencyStatus.received.value}),
    EmergencyStatus.received.value: frozenset({EmergencyStatus.dispatched.value}),
    EmergencyStatus.dispatched.value: frozenset({EmergencyStatus.resolved.value}),
    EmergencyStatus.resolved.value: frozenset(),
}

TERMINAL_REPORT_STATUSES = frozenset(s for s, nxt in REPORT_TRANSITIONS.items() if not nxt)


def _value(status: StatusLike):
    return status.value if isinstance(status, Enum) else status


def _allowed(table: Mapping[str, frozenset], current: StatusLike, requested: StatusLike) -> bool:
    return _value(requested) in table.get(_value(current), frozenset())


def is_valid_report_transition(current: StatusLike, requested: StatusLike) -> bool:
    return _allowed(REPORT_TRANSITIONS, current, requested)


def is_valid_emergency_transition(current: StatusLike, requested: StatusLike) -> bool:
    return _allowed(EMERGENCY_TRANSITIONS, current, requested)


def is_terminal_report_status(status: StatusLike) -> bool:
    return _value(status) in TERMINAL_REPORT_STATUSES


def ensure_report_transition(current: StatusLike, requested: StatusLike) -> None:
    if not is_valid_report_transition(current, requested):
        raise InvalidTransitionError(
            f"Invalid status transition from {_value(current)} to {_value(requested)}"
        )


def ensure_emergency_transition(current: StatusLike, requested: StatusLike) -> None:
    if not is_valid_emergency_transition(current, requested):
        raise InvalidTransitionError(
            f"Invalid status transition from {_value(current)} to {_value(requested)}"
        )
