# File: civic_issues/routers/citizen.py
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from sqlalchemy.orm import Session

from civic_issues.core.pagination import PageParams, ok, page_meta, paginate
from civic_issues.core.ratelimit import LIST_LIMIT, REPORT_CREATE_LIMIT, limiter
from civic_issues.core.security import get_actor, require_role
from civic_issues.db.session import get_db
from civic_issues.models.emergency import Emergency
from civic_issues.models.media import MediaKind
from civic_issues.models.report import ReportStatus
from civic_issues.models.user import User
from civic_issues.schemas.common import parse_location, validate_input
from civic_issues.schemas.report import ReportCreate, report_out
from civic_issues.schemas.user import ProfileUpdate, UserOut
from civic_issues.services import reports as report_service
from civic_issues.services import users as user_service
from civic_issues.services.access import Actor
from civic_issues.services.media import read_uploads, store_profile_image
from civic_issues.services.storage import PROFILES_FOLDER

router = APIRouter(prefix="/api/citizen", tags=["citizen"])
citizen_only = require_role("citizen")


@router.post("/reports", status_code=201)
@limiter.limit(REPORT_CREATE_LIMIT)
def create_report(
    request: Request,
    title: str = Form(...),
    description: str = Form(...),
    department_id: int = Form(...),
    location: Optional[str] = Form(None),
    images: List[UploadFile] | None = File(default=None),
    videos: List[UploadFile] | None = File(default=None),
    audio: List[UploadFile] | None = File(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(citizen_only),
):
    payload = validate_input(ReportCreate, {
        "title": title,
        "description": description,
        "department_id": department_id,
        "location": parse_location(location),
    })
    uploads = (
        read_uploads(MediaKind.image, images)
        + read_uploads(MediaKind.video, videos)
        + read_uploads(MediaKind.audio, audio)
    )
    report = report_service.create_report(
        db, user, payload, uploads, request.app.state.storage, request.app.state.geocoder
    )
    return ok({"report": report_out(report)}, "Report submitted successfully")


@router.get("/reports")
@limiter.limit(LIST_LIMIT)
def my_reports(
    request: Request,
    status: Optional[ReportStatus] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    _=Depends(citizen_only),
):
    q = report_service.ordered(report_service.query_reports(db, actor, status=status, search=search))
    items, total = paginate(q, page)
    return ok({"reports": [report_out(r) for r in items], "pagination": page_meta(total, page)})


@router.get("/reports/{report_id}")
def my_report(report_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor),
              _=Depends(citizen_only)):
    report = report_service.get_scoped_report(db, actor, report_id)
    return ok({"report": report_out(report)})


@router.get("/dashboard")
def dashboard(db: Session = Depends(get_db), actor: Actor = Depends(get_actor), _=Depends(citizen_only)):
    q = report_service.query_reports(db, actor)
    recent = report_service.ordered(q).limit(5).all()
    emergencies = db.query(Emergency).filter(Emergency.citizen_id == actor.id).count()
    return ok({
        "reports": report_service.status_breakdown(q),
        "emergencies": emergencies,
        "recent_reports": [report_out(r) for r in recent],
    })


@router.get("/profile")
def get_profile(user: User = Depends(citizen_only)):
    return ok({"user": UserOut.model_validate(user)})


@router.put("/profile")
def update_profile(payload: ProfileUpdate, db: Session = Depends(get_db), user: User = Depends(citizen_only)):
    user = user_service.update_profile(db, user, payload)
    return ok({"user": UserOut.model_validate(user)}, "Profile updated successfully")


@router.post("/profile/image")
def upload_profile_image(
    request: Request,
    profile_image: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(citizen_only),
):
    url = store_profile_image(request.app.state.storage, profile_image, PROFILES_FOLDER)
    user = user_service.update_profile(db, user, ProfileUpdate(), profile_image=url)
    return ok({"user": UserOut.model_validate(user)}, "Profile image updated")
