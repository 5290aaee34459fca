# File: civic_issues/routers/admin.py
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from civic_issues.core.pagination import PageParams, ok, page_meta, paginate
from civic_issues.core.security import get_actor, require_role
from civic_issues.db.session import get_db
from civic_issues.models.department import Department
from civic_issues.models.emergency import Emergency, EmergencyStatus, EmergencyType
from civic_issues.models.report import Priority, ReportStatus
from civic_issues.models.user import AccountStatus, User, UserRole
from civic_issues.schemas.emergency import emergency_out
from civic_issues.schemas.report import report_out
from civic_issues.schemas.user import AccountStatusPatch, DepartmentAssign, OfficerCreate, OfficerOut, OfficerUpdate
from civic_issues.services import emergencies as emergency_service
from civic_issues.services import reports as report_service
from civic_issues.services import users as user_service
from civic_issues.services.access import Actor

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_role("admin"))])


@router.post("/officers", status_code=201)
def create_officer(payload: OfficerCreate, db: Session = Depends(get_db)):
    officer = user_service.create_officer(db, payload)
    return ok({"officer": OfficerOut.model_validate(officer)}, "Officer created successfully")


@router.get("/officers")
def list_officers(
    account_status: Optional[AccountStatus] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
):
    items, total = paginate(user_service.query_officers(db, account_status, search), page)
    return ok({"officers": [OfficerOut.model_validate(o) for o in items], "pagination": page_meta(total, page)})


@router.get("/officers/{officer_id}")
def get_officer(officer_id: int, db: Session = Depends(get_db)):
    return ok({"officer": OfficerOut.model_validate(user_service.get_officer(db, officer_id))})


@router.put("/officers/{officer_id}")
def update_officer(officer_id: int, payload: OfficerUpdate, db: Session = Depends(get_db)):
    officer = user_service.update_officer(db, user_service.get_officer(db, officer_id), payload)
    return ok({"officer": OfficerOut.model_validate(officer)}, "Officer updated successfully")


@router.patch("/officers/{officer_id}/status")
def set_officer_status(officer_id: int, payload: AccountStatusPatch, db: Session = Depends(get_db)):
    officer = user_service.set_account_status(db, user_service.get_officer(db, officer_id), payload.account_status)
    return ok({"officer": OfficerOut.model_validate(officer)}, f"Officer account {payload.account_status.value}")


@router.delete("/officers/{officer_id}")
def delete_officer(officer_id: int, db: Session = Depends(get_db)):
    user_service.delete_officer(db, user_service.get_officer(db, officer_id))
    return ok(message="Officer deleted successfully")


@router.post("/officers/{officer_id}/departments")
def assign_department(officer_id: int, payload: DepartmentAssign, db: Session = Depends(get_db)):
    officer = user_service.assign_department(db, user_service.get_officer(db, officer_id), payload.department_id)
    return ok({"officer": OfficerOut.model_validate(officer)}, "Department assigned successfully")


@router.delete("/officers/{officer_id}/departments/{department_id}")
def remove_department(officer_id: int, department_id: int, db: Session = Depends(get_db)):
    officer = user_service.remove_department(db, user_service.get_officer(db, officer_id), department_id)
    return ok({"officer": OfficerOut.model_validate(officer)}, "Department removed successfully")


@router.get("/reports")
def all_reports(
    status: Optional[ReportStatus] = Query(None),
    department_id: Optional[int] = Query(None),
    priority: Optional[Priority] = Query(None),
    citizen_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    sort_by: str = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    q = report_service.query_reports(
        db, actor, status=status, department_id=department_id, priority=priority,
        search=search, citizen_id=citizen_id,
    )
    items, total = paginate(report_service.ordered(q, sort_by, sort_order), page)
    return ok({"reports": [report_out(r) for r in items], "pagination": page_meta(total, page)})


@router.get("/emergencies")
def all_emergencies(
    type: Optional[EmergencyType] = Query(None),
    status: Optional[EmergencyStatus] = Query(None),
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    q = emergency_service.query_emergencies(db, actor, type=type, status=status)
    items, total = paginate(q.order_by(Emergency.created_at.desc(), Emergency.id.desc()), page)
    return ok({"emergencies": [emergency_out(e) for e in items], "pagination": page_meta(total, page)})


@router.get("/dashboard")
def dashboard(db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    users_by_role = {r.value: db.query(User).filter(User.role == r).count() for r in UserRole}
    return ok({
        "users": users_by_role,
        "departments": {
            "total": db.query(Department).count(),
            "active": db.query(Department).filter(Department.is_active.is_(True)).count(),
        },
        "reports": report_service.status_breakdown(report_service.query_reports(db, actor)),
        "emergencies": {
            "total": db.query(Emergency).count(),
            "active": db.query(Emergency).filter(Emergency.status != EmergencyStatus.resolved).count(),
        },
    })
