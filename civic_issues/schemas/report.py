# File: civic_issues/schemas/report.py
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from civic_issues.models.report import Priority, Report, ReportStatus
from civic_issues.schemas.common import (
    DepartmentLite,
    LocationIn,
    LocationOut,
    MediaBundle,
    StatusEntryOut,
    UserLite,
    location_out,
    media_bundle,
)


class ReportCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=5, max_length=200)
    description: str = Field(min_length=10, max_length=2000)
    department_id: int
    location: LocationIn


class ReportOut(BaseModel):
    id: int
    report_code: str
    title: str
    description: str
    status: ReportStatus
    priority: Priority

    location: LocationOut
    media: MediaBundle

    department: Optional[DepartmentLite] = None
    citizen: Optional[UserLite] = None
    assigned_officer: Optional[UserLite] = None

    rejection_reason: Optional[str] = None
    rejected_by_id: Optional[int] = None
    rejected_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    status_history: List[StatusEntryOut] = []

    created_at: datetime
    updated_at: Optional[datetime] = None


class ReportStatusPatch(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    status: ReportStatus
    remarks: Optional[str] = Field(default=None, max_length=500)


class ReportReject(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    rejection_reason: str = Field(default="", max_length=500)


class NearbyReportOut(ReportOut):
    distance_m: float


def report_out(r: Report) -> ReportOut:
    return ReportOut.model_validate({
        "id": r.id,
        "report_code": r.report_code,
        "title": r.title,
        "description": r.description,
        "status": r.status,
        "priority": r.priority,
        "location": location_out(r),
        "media": media_bundle(r.media),
        "department": DepartmentLite.model_validate(r.department) if r.department else None,
        "citizen": UserLite.model_validate(r.citizen) if r.citizen else None,
        "assigned_officer": UserLite.model_validate(r.assigned_officer) if r.assigned_officer else None,
        "rejection_reason": r.rejection_reason,
        "rejected_by_id": r.rejected_by_id,
        "rejected_at": r.rejected_at,
        "resolved_at": r.resolved_at,
        "status_history": [StatusEntryOut.model_validate(h) for h in r.status_history],
        "created_at": r.created_at,
        "updated_at": r.updated_at,
    })
