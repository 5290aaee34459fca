# File: civic_issues/services/storage.py
# Project: civic-issues-backend

import base64
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

import requests

from civic_issues.core.errors import UpstreamError

logger = logging.getLogger(__name__)

REPORTS_FOLDER = "civic-reports"
EMERGENCIES_FOLDER = "civic-emergencies"
PROFILES_FOLDER = "civic-profiles"


@dataclass(frozen=True)
class StoredMedia:
    url: str
    provider_id: str


def make_object_key(folder: str, filename: Optional[str]) -> str:
    ext = ((filename or "").rsplit(".", 1)[-1] if "." in (filename or "") else "bin").lower()
    return f"{folder}/{uuid.uuid4().hex}.{ext}"


class SupabaseStorage:
    """Uploads media to Supabase Storage via REST; the bucket must be public."""

    def __init__(self, base_url: Optional[str], service_role: Optional[str], bucket: str, timeout: float = 30):
        self.base_url = (base_url or "").rstrip("/")
        self.service_role = service_role
        self.bucket = bucket
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.service_role)

    def upload(self, data: bytes, folder: str, content_type: str, filename: Optional[str] = None) -> StoredMedia:
        key = make_object_key(folder, filename)
        if not self.configured:
            # Local development without a bucket: keep the bytes inline.
            b64 = base64.b64encode(data).decode("utf-8")
            return StoredMedia(url=f"data:{content_type};base64,{b64}", provider_id=key)
        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{key}"
        try:
            r = requests.post(url, headers={
                "Authorization": f"Bearer {self.service_role}",
                "Content-Type": content_type,
                "x-upsert": "true",
            }, data=data, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Media upload to {folder} failed: {e}", exc_info=True)
            raise UpstreamError("Media upload failed") from e
        return StoredMedia(url=f"{self.base_url}/storage/v1/object/public/{self.bucket}/{key}", provider_id=key)

    def delete(self, provider_id: str) -> None:
        if not self.configured:
            return
        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{provider_id}"
        try:
            r = requests.delete(url, headers={"Authorization": f"Bearer {self.service_role}"}, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Media delete of {provider_id} failed: {e}", exc_info=True)
            raise UpstreamError("Media delete failed") from e
