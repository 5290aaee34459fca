# File: civic_issues/routers/departments.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from civic_issues.core.pagination import PageParams, ok, page_meta, paginate
from civic_issues.core.security import get_current_user, require_role
from civic_issues.db.session import get_db
from civic_issues.models.department import Department
from civic_issues.models.user import User
from civic_issues.schemas.department import DepartmentCreate, DepartmentOut, DepartmentUpdate
from civic_issues.services import departments as dept_service

router = APIRouter(prefix="/api/departments", tags=["departments"])
admin_only = require_role("admin")


@router.post("", status_code=201)
def create_department(payload: DepartmentCreate, db: Session = Depends(get_db), admin: User = Depends(admin_only)):
    code = dept_service.ensure_unique_name(db, payload.name)
    dept = Department(
        name=payload.name,
        code=code,
        description=payload.description,
        icon=payload.icon,
        contact_email=payload.contact_email,
        contact_phone=payload.contact_phone,
        created_by_id=admin.id,
    )
    db.add(dept)
    db.commit()
    db.refresh(dept)
    return ok({"department": DepartmentOut.model_validate(dept)}, "Department created successfully")


@router.get("")
def list_departments(
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    _=Depends(get_current_user),
):
    q = db.query(Department)
    if is_active is not None:
        q = q.filter(Department.is_active.is_(is_active))
    if search:
        term = f"%{search.strip()}%"
        q = q.filter(or_(Department.name.ilike(term), Department.code.ilike(term), Department.description.ilike(term)))
    items, total = paginate(q.order_by(Department.name), page)
    return ok({
        "departments": [DepartmentOut.model_validate(d) for d in items],
        "pagination": page_meta(total, page),
    })


@router.get("/active")
def list_active_departments(db: Session = Depends(get_db)):
    rows = db.query(Department).filter(Department.is_active.is_(True)).order_by(Department.name).all()
    return ok({"departments": [DepartmentOut.model_validate(d) for d in rows]})


@router.get("/{department_id}")
def get_department(department_id: int, db: Session = Depends(get_db)):
    dept = dept_service.get_department(db, department_id)
    return ok({"department": DepartmentOut.model_validate(dept)})


@router.put("/{department_id}")
def update_department(department_id: int, payload: DepartmentUpdate, db: Session = Depends(get_db),
                      admin: User = Depends(admin_only)):
    dept = dept_service.get_department(db, department_id)
    data = payload.model_dump(exclude_unset=True)
    name = data.pop("name", None)
    if name and name.lower() != dept.name.lower():
        dept.code = dept_service.ensure_unique_name(db, name, exclude_id=dept.id)
        dept.name = name
    elif name:
        # case-only rename keeps the slug stable
        dept.name = name
    for field, value in data.items():
        setattr(dept, field, value)
    dept.updated_by_id = admin.id
    db.commit()
    db.refresh(dept)
    return ok({"department": DepartmentOut.model_validate(dept)}, "Department updated successfully")


@router.delete("/{department_id}")
def delete_department(department_id: int, db: Session = Depends(get_db), admin: User = Depends(admin_only)):
    dept = dept_service.get_department(db, department_id)
    dept.is_deleted = True
    dept.is_active = False
    dept.updated_by_id = admin.id
    db.commit()
    return ok(message="Department deleted successfully")


@router.patch("/{department_id}/toggle-status")
def toggle_department_status(department_id: int, db: Session = Depends(get_db), admin: User = Depends(admin_only)):
    dept = dept_service.get_department(db, department_id)
    dept.is_active = not dept.is_active
    dept.updated_by_id = admin.id
    db.commit()
    db.refresh(dept)
    state = "activated" if dept.is_active else "deactivated"
    return ok({"department": DepartmentOut.model_validate(dept)}, f"Department {state} successfully")


@router.get("/{department_id}/stats")
def department_stats(department_id: int, db: Session = Depends(get_db), _=Depends(admin_only)):
    dept = dept_service.get_department(db, department_id)
    return ok({
        "department": DepartmentOut.model_validate(dept),
        "counters": {
            "total_reports": dept.total_reports,
            "active_reports": dept.active_reports,
            "resolved_reports": dept.resolved_reports,
            "assigned_officers": dept.assigned_officers,
        },
        "reports_by_status": dept_service.status_counts(db, dept.id),
    })


@router.post("/{department_id}/recount")
def recount_department(department_id: int, db: Session = Depends(get_db), _=Depends(admin_only)):
    dept = dept_service.recount(db, dept_service.get_department(db, department_id))
    db.commit()
    db.refresh(dept)
    return ok({"department": DepartmentOut.model_validate(dept)}, "Counters recomputed")
