# File: civic_issues/routers/reports.py
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from civic_issues.core.pagination import PageParams, ok, page_meta, paginate
from civic_issues.core.ratelimit import LIST_LIMIT, limiter
from civic_issues.core.security import get_actor, require_role
from civic_issues.db.session import get_db
from civic_issues.models.report import Priority, ReportStatus
from civic_issues.schemas.report import NearbyReportOut, report_out
from civic_issues.services import reports as report_service
from civic_issues.services.access import Actor
from civic_issues.services.geo import DEFAULT_NEARBY_LIMIT, DEFAULT_RADIUS_M

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("")
@limiter.limit(LIST_LIMIT)
def list_reports(
    request: Request,
    status: Optional[ReportStatus] = Query(None),
    department_id: Optional[int] = Query(None),
    priority: Optional[Priority] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    sort_by: str = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    q = report_service.query_reports(
        db, actor, status=status, department_id=department_id, priority=priority, search=search
    )
    items, total = paginate(report_service.ordered(q, sort_by, sort_order), page)
    return ok({"reports": [report_out(r) for r in items], "pagination": page_meta(total, page)})


@router.get("/statistics")
def report_statistics(
    department_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    _=Depends(require_role("officer", "admin")),
):
    return ok(report_service.statistics(db, actor, department_id))


@router.get("/nearby")
def nearby_reports(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius: float = Query(DEFAULT_RADIUS_M, gt=0, le=100000),
    limit: int = Query(DEFAULT_NEARBY_LIMIT, ge=1, le=100),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
):
    hits = report_service.nearby_reports(db, actor, lat, lng, radius, limit)
    return ok({"reports": [
        NearbyReportOut(**report_out(r).model_dump(), distance_m=round(d, 1)) for r, d in hits
    ]})


@router.get("/{report_id}")
def get_report(report_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    report = report_service.get_scoped_report(db, actor, report_id)
    return ok({"report": report_out(report)})
