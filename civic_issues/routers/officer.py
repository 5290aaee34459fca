# File: civic_issues/routers/officer.py
from typing import Optional

from fastapi import APIRouter, Depends, File, Header, Query, Request, UploadFile
from sqlalchemy.orm import Session

from civic_issues.core.pagination import PageParams, ok, page_meta, paginate
from civic_issues.core.ratelimit import LIST_LIMIT, limiter
from civic_issues.core.security import get_actor, require_role
from civic_issues.db.session import get_db
from civic_issues.models.emergency import Emergency, EmergencyStatus, EmergencyType
from civic_issues.models.report import Priority, ReportStatus
from civic_issues.models.user import User
from civic_issues.schemas.common import DepartmentLite
from civic_issues.schemas.department import DepartmentOut
from civic_issues.schemas.emergency import emergency_out
from civic_issues.schemas.report import ReportReject, ReportStatusPatch, report_out
from civic_issues.schemas.user import DepartmentAssign, OfficerOut, ProfileUpdate
from civic_issues.services import departments as dept_service
from civic_issues.services import emergencies as emergency_service
from civic_issues.services import reports as report_service
from civic_issues.services import users as user_service
from civic_issues.services.access import Actor, ensure_department_assigned
from civic_issues.services.media import store_profile_image
from civic_issues.services.storage import PROFILES_FOLDER

officer_only = require_role("officer")
router = APIRouter(prefix="/api/officer", tags=["officer"], dependencies=[Depends(officer_only)])


def selected_department(
    x_department_id: Optional[int] = Header(None, alias="X-Department-Id"),
    department_id: Optional[int] = Query(None),
    actor: Actor = Depends(get_actor),
) -> Optional[int]:
    """Department the officer is working in, from header or query; None means all assigned."""
    chosen = x_department_id if x_department_id is not None else department_id
    if chosen is not None:
        ensure_department_assigned(actor, chosen)
    return chosen


@router.post("/select-department")
def select_department(payload: DepartmentAssign, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    ensure_department_assigned(actor, payload.department_id)
    dept = dept_service.get_department(db, payload.department_id)
    return ok({"department": DepartmentOut.model_validate(dept)}, "Department selected")


@router.get("/reports")
@limiter.limit(LIST_LIMIT)
def list_reports(
    request: Request,
    status: Optional[ReportStatus] = Query(None),
    priority: Optional[Priority] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: PageParams = Depends(),
    department_id: Optional[int] = Depends(selected_department),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    q = report_service.query_reports(
        db, actor, status=status, department_id=department_id, priority=priority, search=search
    )
    items, total = paginate(report_service.ordered(q), page)
    return ok({"reports": [report_out(r) for r in items], "pagination": page_meta(total, page)})


@router.get("/reports/{report_id}")
def get_report(report_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    report = report_service.get_scoped_report(db, actor, report_id)
    return ok({"report": report_out(report)})


@router.patch("/reports/{report_id}/status")
def update_report_status(report_id: int, payload: ReportStatusPatch, db: Session = Depends(get_db),
                         actor: Actor = Depends(get_actor)):
    report = report_service.update_report_status(db, actor, report_id, payload)
    return ok({"report": report_out(report)}, "Report status updated successfully")


@router.post("/reports/{report_id}/reject")
def reject_report(report_id: int, payload: ReportReject, db: Session = Depends(get_db),
                  actor: Actor = Depends(get_actor)):
    report = report_service.reject_report(db, actor, report_id, payload.rejection_reason)
    return ok({"report": report_out(report)}, "Report rejected")


@router.get("/dashboard")
def dashboard(
    department_id: Optional[int] = Depends(selected_department),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    user: User = Depends(officer_only),
):
    q = report_service.query_reports(db, actor, department_id=department_id)
    recent = report_service.ordered(q).limit(5).all()
    return ok({
        "departments": [DepartmentLite.model_validate(d) for d in user.departments if not d.is_deleted],
        "selected_department_id": department_id,
        "reports": report_service.status_breakdown(q),
        "assigned_to_me": q.filter_by(assigned_officer_id=actor.id).count(),
        "recent_reports": [report_out(r) for r in recent],
    })


@router.get("/emergencies")
def list_emergencies(
    type: Optional[EmergencyType] = Query(None),
    status: Optional[EmergencyStatus] = Query(None),
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    q = emergency_service.query_emergencies(db, actor, type=type, status=status)
    items, total = paginate(q.order_by(emergency_service.PRIORITY_RANK, Emergency.created_at.desc()), page)
    return ok({"emergencies": [emergency_out(e) for e in items], "pagination": page_meta(total, page)})


@router.get("/profile")
def get_profile(user: User = Depends(officer_only)):
    return ok({"user": OfficerOut.model_validate(user)})


@router.put("/profile")
def update_profile(payload: ProfileUpdate, db: Session = Depends(get_db), user: User = Depends(officer_only)):
    user = user_service.update_profile(db, user, payload)
    return ok({"user": OfficerOut.model_validate(user)}, "Profile updated successfully")


@router.post("/profile/image")
def upload_profile_image(
    request: Request,
    profile_image: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(officer_only),
):
    url = store_profile_image(request.app.state.storage, profile_image, PROFILES_FOLDER)
    user = user_service.update_profile(db, user, ProfileUpdate(), profile_image=url)
    return ok({"user": OfficerOut.model_validate(user)}, "Profile image updated")
