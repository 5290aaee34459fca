# File: civic_issues/services/reports.py
# Project: civic-issues-backend

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from civic_issues.core.clock import local_now
from civic_issues.core.errors import BadRequestError, ConflictError, InvalidTransitionError, NotFoundError
from civic_issues.models.department import Department
from civic_issues.models.media import MediaKind
from civic_issues.models.report import Priority, Report, ReportStatus
from civic_issues.models.user import User
from civic_issues.schemas.report import ReportCreate, ReportStatusPatch
from civic_issues.services import departments as dept_service
from civic_issues.services.access import Actor, ensure_department_assigned, ensure_report_access, report_scope
from civic_issues.services.audit import REPORT_SUBMITTED_REMARK, record_report_status
from civic_issues.services.geo import bounding_box, longitude_ranges, nearest
from civic_issues.services.identifiers import next_report_code
from civic_issues.services.media import PendingUpload, discard_uploads, store_uploads
from civic_issues.services.status_policy import ensure_report_transition, is_terminal_report_status
from civic_issues.services.storage import REPORTS_FOLDER

logger = logging.getLogger(__name__)

TERMINAL_REPORT_MESSAGE = "Cannot update resolved or rejected reports"
REJECTION_MIN_LEN = 10

SORTABLE = {
    "created_at": Report.created_at,
    "updated_at": Report.updated_at,
    "status": Report.status,
    "priority": Report.priority,
    "title": Report.title,
    "report_code": Report.report_code,
}


def get_report(db: Session, report_id: int) -> Report:
    report = db.get(Report, report_id)
    if not report:
        raise NotFoundError("Report not found")
    return report


def get_scoped_report(db: Session, actor: Actor, report_id: int) -> Report:
    report = get_report(db, report_id)
    ensure_report_access(actor, report)
    return report


def create_report(
    db: Session,
    citizen: User,
    payload: ReportCreate,
    uploads: List[PendingUpload],
    storage,
    geocoder,
    now: Optional[datetime] = None,
) -> Report:
    dept = dept_service.get_active_department(db, payload.department_id)
    if not any(u.kind == MediaKind.image for u in uploads):
        raise BadRequestError(
            "At least one image is required",
            errors=[{"field": "images", "message": "At least one image is required"}],
        )

    loc = payload.location
    address = loc.address or geocoder.reverse(loc.lat, loc.lng)
    media = store_uploads(storage, uploads, REPORTS_FOLDER)

    now = now or local_now()
    report = Report(
        report_code=next_report_code(db, now),
        citizen_id=citizen.id,
        department_id=dept.id,
        title=payload.title,
        description=payload.description,
        priority=Priority.medium,
        lng=loc.lng,
        lat=loc.lat,
        address=address,
        landmark=loc.landmark,
        created_at=now,
    )
    report.media.extend(media)
    record_report_status(report, ReportStatus.submitted, None, REPORT_SUBMITTED_REMARK, at=now)
    db.add(report)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        discard_uploads(storage, media)
        raise ConflictError("Report identifier already taken, please retry")

    dept_service.on_report_created(db, dept.id)
    db.commit()
    db.refresh(report)
    logger.info("Report %s created in department %s", report.report_code, dept.code)
    return report


def _guard_terminal(report: Report) -> None:
    if is_terminal_report_status(report.status):
        raise InvalidTransitionError(TERMINAL_REPORT_MESSAGE)


def _clean_reason(reason: Optional[str]) -> str:
    reason = (reason or "").strip()
    if len(reason) < REJECTION_MIN_LEN:
        raise BadRequestError(
            "Rejection reason is required",
            errors=[{"field": "rejection_reason",
                     "message": f"Rejection reason must be between {REJECTION_MIN_LEN} and 500 characters"}],
        )
    return reason


def _apply_counters(db: Session, report: Report, status: ReportStatus) -> None:
    if status == ReportStatus.resolved:
        dept_service.on_report_resolved(db, report.department_id)
    elif status == ReportStatus.rejected:
        dept_service.on_report_rejected(db, report.department_id)
    else:
        return
    db.commit()


def update_report_status(db: Session, actor: Actor, report_id: int, payload: ReportStatusPatch) -> Report:
    report = get_scoped_report(db, actor, report_id)
    _guard_terminal(report)
    ensure_report_transition(report.status, payload.status)

    remarks = payload.remarks
    if payload.status == ReportStatus.rejected:
        remarks = _clean_reason(remarks)
        report.rejection_reason = remarks
        report.rejected_by_id = actor.id
    if report.assigned_officer_id is None:
        report.assigned_officer_id = actor.id
    record_report_status(report, payload.status, actor.id, remarks)
    db.commit()

    _apply_counters(db, report, payload.status)
    db.refresh(report)
    return report


def reject_report(db: Session, actor: Actor, report_id: int, reason: Optional[str]) -> Report:
    report = get_scoped_report(db, actor, report_id)
    _guard_terminal(report)
    reason = _clean_reason(reason)
    ensure_report_transition(report.status, ReportStatus.rejected)

    report.rejection_reason = reason
    report.rejected_by_id = actor.id
    if report.assigned_officer_id is None:
        report.assigned_officer_id = actor.id
    record_report_status(report, ReportStatus.rejected, actor.id, reason)
    db.commit()

    _apply_counters(db, report, ReportStatus.rejected)
    db.refresh(report)
    return report


def query_reports(
    db: Session,
    actor: Actor,
    status: Optional[ReportStatus] = None,
    department_id: Optional[int] = None,
    priority: Optional[Priority] = None,
    search: Optional[str] = None,
    citizen_id: Optional[int] = None,
):
    q = db.query(Report).filter(report_scope(actor))
    if department_id is not None:
        if actor.is_officer:
            ensure_department_assigned(actor, department_id)
        q = q.filter(Report.department_id == department_id)
    if status is not None:
        q = q.filter(Report.status == status)
    if priority is not None:
        q = q.filter(Report.priority == priority)
    if citizen_id is not None:
        q = q.filter(Report.citizen_id == citizen_id)
    if search:
        term = f"%{search.strip()}%"
        q = q.filter(or_(
            Report.title.ilike(term),
            Report.description.ilike(term),
            Report.report_code.ilike(term),
        ))
    return q


def ordered(q, sort_by: str = "created_at", sort_order: str = "desc"):
    col = SORTABLE.get(sort_by)
    if col is None:
        raise BadRequestError(
            "Invalid sort field",
            errors=[{"field": "sort_by", "message": f"Must be one of {', '.join(sorted(SORTABLE))}"}],
        )
    return q.order_by(col.asc() if sort_order == "asc" else col.desc(), Report.id.desc())


def status_breakdown(q) -> dict:
    rows = q.with_entities(Report.status, func.count(Report.id)).group_by(Report.status).all()
    counts = {s.value: 0 for s in ReportStatus}
    for status, n in rows:
        counts[ReportStatus(status).value] = n
    counts["total"] = sum(counts[s.value] for s in ReportStatus)
    return counts


def statistics(db: Session, actor: Actor, department_id: Optional[int] = None) -> dict:
    q = query_reports(db, actor, department_id=department_id)
    counts = dict(
        q.with_entities(Report.department_id, func.count(Report.id)).group_by(Report.department_id).all()
    )
    depts = db.query(Department).filter(Department.id.in_(list(counts))).all() if counts else []
    by_department = sorted(
        ({"department_id": d.id, "name": d.name, "code": d.code, "count": counts[d.id]} for d in depts),
        key=lambda row: (-row["count"], row["name"]),
    )
    return {"by_status": status_breakdown(q), "by_department": by_department}


def nearby_reports(db: Session, actor: Actor, lat: float, lng: float, radius_m: float, limit: int):
    min_lat, max_lat, min_lng, max_lng = bounding_box(lat, lng, radius_m)
    rows = (
        query_reports(db, actor)
        .filter(
            Report.lat.between(min_lat, max_lat),
            or_(*(Report.lng.between(lo, hi) for lo, hi in longitude_ranges(min_lng, max_lng))),
        )
        .all()
    )
    return nearest(rows, lat, lng, radius_m, limit)
