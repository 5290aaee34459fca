# File: civic_issues/services/audit.py
# Project: civic-issues-backend

from datetime import datetime
from typing import Optional

from civic_issues.core.clock import local_now
from civic_issues.models.emergency import Emergency, EmergencyStatus, EmergencyStatusEntry
from civic_issues.models.report import Report, ReportStatus, ReportStatusEntry

REPORT_SUBMITTED_REMARK = "Report submitted"
EMERGENCY_REPORTED_REMARK = "Emergency reported"

# status -> attribute stamped the first time that status is reached
_REPORT_MILESTONES = {
    ReportStatus.resolved: "resolved_at",
    ReportStatus.rejected: "rejected_at",
}
_EMERGENCY_MILESTONES = {
    EmergencyStatus.received: "received_at",
    EmergencyStatus.dispatched: "dispatched_at",
    EmergencyStatus.resolved: "resolved_at",
}


def _stamp_once(entity, attr: Optional[str], at: datetime) -> None:
    if attr and getattr(entity, attr) is None:
        setattr(entity, attr, at)


def record_report_status(
    report: Report,
    status: ReportStatus,
    actor_id: Optional[int] = None,
    remarks: Optional[str] = None,
    at: Optional[datetime] = None,
) -> ReportStatusEntry:
    """Set the report's status and append the matching history row.

    Works on the in-memory object only; the caller owns the session and
    the commit. Transition rules are checked before this is called.
    """
    at = at or local_now()
    status = ReportStatus(status)
    report.status = status
    _stamp_once(report, _REPORT_MILESTONES.get(status), at)
    entry = ReportStatusEntry(status=status, changed_by_id=actor_id, changed_at=at, remarks=remarks)
    report.status_history.append(entry)
    return entry


def record_emergency_status(
    emergency: Emergency,
    status: EmergencyStatus,
    actor_id: Optional[int] = None,
    remarks: Optional[str] = None,
    at: Optional[datetime] = None,
) -> EmergencyStatusEntry:
    at = at or local_now()
    status = EmergencyStatus(status)
    emergency.status = status
    _stamp_once(emergency, _EMERGENCY_MILESTONES.get(status), at)
    entry = EmergencyStatusEntry(status=status, changed_by_id=actor_id, changed_at=at, remarks=remarks)
    emergency.status_history.append(entry)
    return entry
