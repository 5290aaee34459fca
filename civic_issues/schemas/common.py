# File: civic_issues/schemas/common.py
import json
from datetime import datetime
from enum import Enum
from typing import Any, List, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from civic_issues.core.errors import BadRequestError
from civic_issues.models.media import MediaKind

PHONE_PATTERN = r"^[0-9]{10,15}$"

M = TypeVar("M", bound=BaseModel)


class UserLite(BaseModel):
    """Lightweight user info embedded in reports and emergencies."""
    id: int
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None

    class Config:
        from_attributes = True


class DepartmentLite(BaseModel):
    id: int
    name: str
    code: str
    icon: Optional[str] = None

    class Config:
        from_attributes = True


class LocationIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    coordinates: List[float] = Field(min_length=2, max_length=2)
    address: Optional[str] = Field(default=None, max_length=300)
    landmark: Optional[str] = Field(default=None, max_length=200)

    @field_validator("coordinates")
    @classmethod
    def _lon_lat_in_range(cls, v: List[float]) -> List[float]:
        lon, lat = v
        if not -180 <= lon <= 180:
            raise ValueError("Longitude must be between -180 and 180")
        if not -90 <= lat <= 90:
            raise ValueError("Latitude must be between -90 and 90")
        return v

    @property
    def lng(self) -> float:
        return self.coordinates[0]

    @property
    def lat(self) -> float:
        return self.coordinates[1]


class LocationOut(BaseModel):
    type: Literal["Point"] = "Point"
    coordinates: List[float]
    address: Optional[str] = None
    landmark: Optional[str] = None


class MediaOut(BaseModel):
    url: str
    provider_id: str
    uploaded_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MediaBundle(BaseModel):
    images: List[MediaOut] = []
    videos: List[MediaOut] = []
    audio: List[MediaOut] = []


class StatusEntryOut(BaseModel):
    status: str
    changed_by_id: Optional[int] = None
    changed_at: datetime
    remarks: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _enum_value(cls, v):
        return v.value if isinstance(v, Enum) else v

    class Config:
        from_attributes = True


def location_out(entity) -> LocationOut:
    return LocationOut(coordinates=[entity.lng, entity.lat], address=entity.address, landmark=entity.landmark)


def media_bundle(attachments) -> MediaBundle:
    bundle = MediaBundle()
    buckets = {MediaKind.image: bundle.images, MediaKind.video: bundle.videos, MediaKind.audio: bundle.audio}
    for a in attachments:
        buckets[MediaKind(a.kind)].append(MediaOut.model_validate(a))
    return bundle


def _errors_from(exc: ValidationError, prefix: str = "") -> list[dict]:
    out = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()))
        out.append({"field": f"{prefix}{field}" if field else prefix.rstrip(".") or "request",
                    "message": err.get("msg", "Invalid value")})
    return out


def validate_input(model_cls: Type[M], data: Any) -> M:
    """Validate hand-assembled input (multipart forms) into the 400 envelope."""
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        raise BadRequestError("Validation error", errors=_errors_from(e))


def parse_location(raw: Optional[str]) -> LocationIn:
    if raw is None or not str(raw).strip():
        raise BadRequestError("Validation error", errors=[{"field": "location", "message": "Location is required"}])
    try:
        data = json.loads(raw)
    except ValueError:
        raise BadRequestError("Validation error", errors=[{"field": "location", "message": "Location must be valid JSON"}])
    try:
        return LocationIn.model_validate(data)
    except ValidationError as e:
        raise BadRequestError("Validation error", errors=_errors_from(e, prefix="location."))
