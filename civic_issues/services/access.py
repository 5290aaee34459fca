# File: civic_issues/services/access.py
# Project: civic-issues-backend
"""Who may see or change which reports and emergencies.

Citizens own their records, officers work inside their assigned
departments, admins see everything. List endpoints use the ``*_scope``
predicates; single-record reads and writes go through ``ensure_*`` so a
direct id lookup cannot step around the list filter.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from sqlalchemy import false, select, true
from sqlalchemy.orm import Session

from civic_issues.core.errors import ForbiddenError
from civic_issues.models.emergency import Emergency
from civic_issues.models.report import Report
from civic_issues.models.user import User, UserRole, officer_departments


@dataclass(frozen=True)
class Actor:
    id: int
    role: UserRole
    department_ids: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def is_citizen(self) -> bool:
        return self.role == UserRole.citizen

    @property
    def is_officer(self) -> bool:
        return self.role == UserRole.officer

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin


def assigned_department_ids(db: Session, user_id: int) -> FrozenSet[int]:
    rows = db.execute(
        select(officer_departments.c.department_id).where(officer_departments.c.user_id == user_id)
    ).scalars()
    return frozenset(rows)


def actor_for(db: Session, user: User) -> Actor:
    dept_ids = assigned_department_ids(db, user.id) if user.role == UserRole.officer else frozenset()
    return Actor(id=user.id, role=user.role, department_ids=dept_ids)


def report_scope(actor: Actor):
    if actor.is_admin:
        return true()
    if actor.is_officer:
        if not actor.department_ids:
            return false()
        return Report.department_id.in_(sorted(actor.department_ids))
    return Report.citizen_id == actor.id


def emergency_scope(actor: Actor):
    # emergencies carry no department; any responder may see them
    if actor.is_admin or actor.is_officer:
        return true()
    return Emergency.citizen_id == actor.id


def can_access_report(actor: Actor, report: Report) -> bool:
    if actor.is_admin:
        return True
    if actor.is_officer:
        return report.department_id in actor.department_ids
    return report.citizen_id == actor.id


def can_access_emergency(actor: Actor, emergency: Emergency) -> bool:
    if actor.is_admin or actor.is_officer:
        return True
    return emergency.citizen_id == actor.id


def ensure_report_access(actor: Actor, report: Report) -> None:
    if not can_access_report(actor, report):
        raise ForbiddenError("You do not have access to this report")


def ensure_emergency_access(actor: Actor, emergency: Emergency) -> None:
    if not can_access_emergency(actor, emergency):
        raise ForbiddenError("You do not have access to this emergency")


def ensure_department_assigned(actor: Actor, department_id: Optional[int]) -> None:
    if actor.is_admin:
        return
    if not actor.is_officer or department_id not in actor.department_ids:
        raise ForbiddenError("Officer not assigned to this department")
