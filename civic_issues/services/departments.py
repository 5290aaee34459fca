# File: civic_issues/services/departments.py
# Project: civic-issues-backend
"""Department codes and the denormalised report/officer counters."""

import re
from typing import Optional

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from civic_issues.core.errors import ConflictError, ForbiddenError, NotFoundError
from civic_issues.models.department import Department
from civic_issues.models.report import Report, ReportStatus
from civic_issues.models.user import User, officer_departments

CODE_MAX_LEN = 30
_CONNECTORS = {"AND"}


def department_code(name: str) -> str:
    """'Roads and Transport' -> 'ROADS_TRANSPORT', 'Roads & Water' -> 'ROADS_WATER'."""
    words = re.sub(r"[^A-Z0-9\s]", "", name.upper()).split()
    kept = [w for w in words if w not in _CONNECTORS] or words
    return "_".join(kept)[:CODE_MAX_LEN]


def get_department(db: Session, department_id: int) -> Department:
    dept = db.get(Department, department_id)
    if not dept:
        raise NotFoundError("Department not found")
    return dept


def get_active_department(db: Session, department_id: int) -> Department:
    dept = get_department(db, department_id)
    if not dept.is_active:
        raise ForbiddenError("Department is inactive")
    return dept


def ensure_unique_name(db: Session, name: str, exclude_id: Optional[int] = None) -> str:
    code = department_code(name)
    q = db.query(Department).filter(
        (func.lower(Department.name) == name.lower()) | (Department.code == code)
    )
    if exclude_id is not None:
        q = q.filter(Department.id != exclude_id)
    if q.first():
        raise ConflictError("Department with this name already exists")
    return code


def _bump(db: Session, department_id: int, **deltas: int) -> None:
    values = {}
    for column, delta in deltas.items():
        col = getattr(Department, column)
        # counters never go below zero
        values[column] = case((col + delta < 0, 0), else_=col + delta) if delta < 0 else col + delta
    db.execute(update(Department).where(Department.id == department_id).values(**values))


def on_report_created(db: Session, department_id: int) -> None:
    _bump(db, department_id, total_reports=1, active_reports=1)


def on_report_resolved(db: Session, department_id: int) -> None:
    _bump(db, department_id, active_reports=-1, resolved_reports=1)


def on_report_rejected(db: Session, department_id: int) -> None:
    _bump(db, department_id, active_reports=-1)


def on_officer_assigned(db: Session, department_id: int) -> None:
    _bump(db, department_id, assigned_officers=1)


def on_officer_removed(db: Session, department_id: int) -> None:
    _bump(db, department_id, assigned_officers=-1)


def status_counts(db: Session, department_id: int) -> dict:
    rows = (
        db.query(Report.status, func.count(Report.id))
        .filter(Report.department_id == department_id)
        .group_by(Report.status)
        .all()
    )
    counts = {s.value: 0 for s in ReportStatus}
    for status, n in rows:
        counts[ReportStatus(status).value] = n
    return counts


def recount(db: Session, dept: Department) -> Department:
    """Rebuild the counters from the reports and officer assignments."""
    counts = status_counts(db, dept.id)
    officers = db.scalar(
        select(func.count())
        .select_from(officer_departments.join(User, User.id == officer_departments.c.user_id))
        .where(officer_departments.c.department_id == dept.id, User.is_deleted.is_(False))
    ) or 0
    dept.total_reports = sum(counts.values())
    dept.active_reports = counts["submitted"] + counts["in_progress"]
    dept.resolved_reports = counts["resolved"]
    dept.assigned_officers = officers
    return dept
