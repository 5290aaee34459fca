# File: civic_issues/schemas/emergency.py
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from civic_issues.models.emergency import Emergency, EmergencyStatus, EmergencyType, Severity
from civic_issues.models.report import Priority
from civic_issues.schemas.common import (
    PHONE_PATTERN,
    LocationIn,
    LocationOut,
    MediaBundle,
    StatusEntryOut,
    UserLite,
    location_out,
    media_bundle,
)


class EmergencyCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    type: EmergencyType
    title: str = Field(min_length=5, max_length=200)
    description: str = Field(min_length=10, max_length=1000)
    contact_number: str = Field(pattern=PHONE_PATTERN)
    location: LocationIn
    severity_level: Severity = Severity.moderate
    casualties_reported: int = Field(default=0, ge=0)


class EmergencyOut(BaseModel):
    id: int
    emergency_code: str
    type: EmergencyType
    title: str
    description: str
    contact_number: str
    status: EmergencyStatus
    priority: Priority
    severity_level: Severity
    casualties_reported: int

    location: LocationOut
    media: MediaBundle

    citizen: Optional[UserLite] = None
    responded_by: Optional[UserLite] = None

    received_at: Optional[datetime] = None
    dispatched_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    status_history: List[StatusEntryOut] = []

    created_at: datetime
    updated_at: Optional[datetime] = None


class EmergencyStatusPatch(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    status: EmergencyStatus
    remarks: Optional[str] = Field(default=None, max_length=500)


def emergency_out(e: Emergency) -> EmergencyOut:
    return EmergencyOut.model_validate({
        "id": e.id,
        "emergency_code": e.emergency_code,
        "type": e.type,
        "title": e.title,
        "description": e.description,
        "contact_number": e.contact_number,
        "status": e.status,
        "priority": e.priority,
        "severity_level": e.severity_level,
        "casualties_reported": e.casualties_reported,
        "location": location_out(e),
        "media": media_bundle(e.media),
        "citizen": UserLite.model_validate(e.citizen) if e.citizen else None,
        "responded_by": UserLite.model_validate(e.responded_by) if e.responded_by else None,
        "received_at": e.received_at,
        "dispatched_at": e.dispatched_at,
        "resolved_at": e.resolved_at,
        "status_history": [StatusEntryOut.model_validate(h) for h in e.status_history],
        "created_at": e.created_at,
        "updated_at": e.updated_at,
    })
