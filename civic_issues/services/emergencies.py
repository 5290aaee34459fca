# File: civic_issues/services/emergencies.py
# Project: civic-issues-backend

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import case, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from civic_issues.core.clock import local_now
from civic_issues.core.errors import ConflictError, NotFoundError
from civic_issues.models.emergency import Emergency, EmergencyStatus, EmergencyType
from civic_issues.models.report import Priority
from civic_issues.models.user import User
from civic_issues.schemas.emergency import EmergencyCreate, EmergencyStatusPatch
from civic_issues.services.access import Actor, emergency_scope, ensure_emergency_access
from civic_issues.services.audit import EMERGENCY_REPORTED_REMARK, record_emergency_status
from civic_issues.services.geo import bounding_box, longitude_ranges, nearest
from civic_issues.services.identifiers import next_emergency_code
from civic_issues.services.media import PendingUpload, discard_uploads, store_uploads
from civic_issues.services.status_policy import ensure_emergency_transition
from civic_issues.services.storage import EMERGENCIES_FOLDER

logger = logging.getLogger(__name__)

PRIORITY_RANK = case(
    (Emergency.priority == Priority.critical, 0),
    (Emergency.priority == Priority.high, 1),
    (Emergency.priority == Priority.medium, 2),
    else_=3,
)


def get_emergency(db: Session, emergency_id: int) -> Emergency:
    emergency = db.get(Emergency, emergency_id)
    if not emergency:
        raise NotFoundError("Emergency not found")
    return emergency


def get_scoped_emergency(db: Session, actor: Actor, emergency_id: int) -> Emergency:
    emergency = get_emergency(db, emergency_id)
    ensure_emergency_access(actor, emergency)
    return emergency


def create_emergency(
    db: Session,
    citizen: User,
    payload: EmergencyCreate,
    uploads: List[PendingUpload],
    storage,
    geocoder,
    now: Optional[datetime] = None,
) -> Emergency:
    loc = payload.location
    address = loc.address or geocoder.reverse(loc.lat, loc.lng)
    media = store_uploads(storage, uploads, EMERGENCIES_FOLDER)

    now = now or local_now()
    emergency = Emergency(
        emergency_code=next_emergency_code(db, payload.type, now),
        citizen_id=citizen.id,
        type=payload.type,
        title=payload.title,
        description=payload.description,
        contact_number=payload.contact_number,
        priority=Priority.high,
        severity_level=payload.severity_level,
        casualties_reported=payload.casualties_reported,
        lng=loc.lng,
        lat=loc.lat,
        address=address,
        landmark=loc.landmark,
        created_at=now,
    )
    emergency.media.extend(media)
    record_emergency_status(emergency, EmergencyStatus.reported, None, EMERGENCY_REPORTED_REMARK, at=now)
    db.add(emergency)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        discard_uploads(storage, media)
        raise ConflictError("Emergency identifier already taken, please retry")
    db.refresh(emergency)
    logger.info("Emergency %s reported (%s)", emergency.emergency_code, emergency.type.value)
    return emergency


def update_emergency_status(db: Session, actor: Actor, emergency_id: int, payload: EmergencyStatusPatch) -> Emergency:
    emergency = get_scoped_emergency(db, actor, emergency_id)
    ensure_emergency_transition(emergency.status, payload.status)
    if emergency.responded_by_id is None:
        emergency.responded_by_id = actor.id
    record_emergency_status(emergency, payload.status, actor.id, payload.remarks)
    db.commit()
    db.refresh(emergency)
    return emergency


def query_emergencies(
    db: Session,
    actor: Actor,
    type: Optional[EmergencyType] = None,
    status: Optional[EmergencyStatus] = None,
):
    q = db.query(Emergency).filter(emergency_scope(actor))
    if type is not None:
        q = q.filter(Emergency.type == type)
    if status is not None:
        q = q.filter(Emergency.status == status)
    return q


def active_emergencies(db: Session, actor: Actor, type: Optional[EmergencyType] = None):
    return (
        query_emergencies(db, actor, type=type)
        .filter(Emergency.status != EmergencyStatus.resolved)
        .order_by(PRIORITY_RANK, Emergency.created_at.desc(), Emergency.id.desc())
    )


def nearby_emergencies(db: Session, actor: Actor, lat: float, lng: float, radius_m: float, limit: int):
    min_lat, max_lat, min_lng, max_lng = bounding_box(lat, lng, radius_m)
    rows = (
        query_emergencies(db, actor)
        .filter(
            Emergency.status != EmergencyStatus.resolved,
            Emergency.lat.between(min_lat, max_lat),
            or_(*(Emergency.lng.between(lo, hi) for lo, hi in longitude_ranges(min_lng, max_lng))),
        )
        .all()
    )
    return nearest(rows, lat, lng, radius_m, limit)
