# File: civic_issues/routers/emergencies.py
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from sqlalchemy.orm import Session

from civic_issues.core.pagination import PageParams, ok, page_meta, paginate
from civic_issues.core.ratelimit import EMERGENCY_CREATE_LIMIT, limiter
from civic_issues.core.security import get_actor, require_role
from civic_issues.db.session import get_db
from civic_issues.models.emergency import Emergency, EmergencyStatus, EmergencyType
from civic_issues.models.media import MediaKind
from civic_issues.models.user import User
from civic_issues.schemas.common import parse_location, validate_input
from civic_issues.schemas.emergency import EmergencyCreate, EmergencyStatusPatch, emergency_out
from civic_issues.services import emergencies as emergency_service
from civic_issues.services.access import Actor
from civic_issues.services.geo import DEFAULT_NEARBY_LIMIT, DEFAULT_RADIUS_M
from civic_issues.services.media import read_uploads

router = APIRouter(prefix="/api/emergency", tags=["emergency"])
responders = require_role("officer", "admin")


@router.post("", status_code=201)
@limiter.limit(EMERGENCY_CREATE_LIMIT)
def create_emergency(
    request: Request,
    type: str = Form(...),
    title: str = Form(...),
    description: str = Form(...),
    contact_number: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    severity_level: Optional[str] = Form(None),
    casualties_reported: Optional[int] = Form(None),
    images: List[UploadFile] | None = File(default=None),
    videos: List[UploadFile] | None = File(default=None),
    audio: List[UploadFile] | None = File(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(require_role("citizen")),
):
    data = {
        "type": type,
        "title": title,
        "description": description,
        "contact_number": contact_number,
        "location": parse_location(location),
    }
    if severity_level:
        data["severity_level"] = severity_level
    if casualties_reported is not None:
        data["casualties_reported"] = casualties_reported
    payload = validate_input(EmergencyCreate, data)
    uploads = (
        read_uploads(MediaKind.image, images)
        + read_uploads(MediaKind.video, videos)
        + read_uploads(MediaKind.audio, audio)
    )
    emergency = emergency_service.create_emergency(
        db, user, payload, uploads, request.app.state.storage, request.app.state.geocoder
    )
    return ok({"emergency": emergency_out(emergency)}, "Emergency reported successfully. Help is on the way!")


@router.get("/my-emergencies")
def my_emergencies(
    status: Optional[EmergencyStatus] = Query(None),
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    _=Depends(require_role("citizen")),
):
    q = emergency_service.query_emergencies(db, actor, status=status)
    items, total = paginate(q.order_by(Emergency.created_at.desc(), Emergency.id.desc()), page)
    return ok({"emergencies": [emergency_out(e) for e in items], "pagination": page_meta(total, page)})


@router.get("/active")
def active_emergencies(
    type: Optional[EmergencyType] = Query(None),
    page: PageParams = Depends(),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    _=Depends(responders),
):
    items, total = paginate(emergency_service.active_emergencies(db, actor, type=type), page)
    return ok({"emergencies": [emergency_out(e) for e in items], "pagination": page_meta(total, page)})


@router.get("/nearby")
def nearby_emergencies(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius: float = Query(DEFAULT_RADIUS_M, gt=0, le=100000),
    limit: int = Query(DEFAULT_NEARBY_LIMIT, ge=1, le=100),
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    _=Depends(responders),
):
    hits = emergency_service.nearby_emergencies(db, actor, lat, lng, radius, limit)
    return ok({"emergencies": [
        {**emergency_out(e).model_dump(mode="json"), "distance_m": round(d, 1)} for e, d in hits
    ]})


@router.get("/{emergency_id}")
def get_emergency(emergency_id: int, db: Session = Depends(get_db), actor: Actor = Depends(get_actor)):
    emergency = emergency_service.get_scoped_emergency(db, actor, emergency_id)
    return ok({"emergency": emergency_out(emergency)})


@router.patch("/{emergency_id}/status")
def update_emergency_status(
    emergency_id: int,
    payload: EmergencyStatusPatch,
    db: Session = Depends(get_db),
    actor: Actor = Depends(get_actor),
    _=Depends(responders),
):
    emergency = emergency_service.update_emergency_status(db, actor, emergency_id, payload)
    return ok({"emergency": emergency_out(emergency)}, "Emergency status updated successfully")
