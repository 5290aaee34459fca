# File: civic_issues/services/media.py
# Project: civic-issues-backend

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from fastapi import UploadFile

from civic_issues.core.errors import BadRequestError, UpstreamError
from civic_issues.models.media import MediaAttachment, MediaKind

logger = logging.getLogger(__name__)

MB = 1024 * 1024

# kind -> (max files, max bytes per file, allowed content types)
MEDIA_RULES = {
    MediaKind.image: (5, 10 * MB, {"image/jpeg", "image/jpg", "image/png", "image/webp"}),
    MediaKind.video: (2, 50 * MB, {"video/mp4", "video/mpeg", "video/quicktime"}),
    MediaKind.audio: (2, 10 * MB, {"audio/mpeg", "audio/wav", "audio/mp3"}),
}


@dataclass
class PendingUpload:
    kind: MediaKind
    data: bytes
    content_type: str
    filename: Optional[str]


def read_uploads(kind: MediaKind, files: Optional[List[UploadFile]]) -> List[PendingUpload]:
    """Read and check one multipart field; nothing is uploaded yet."""
    files = [f for f in (files or []) if f is not None and f.filename]
    max_files, max_bytes, allowed = MEDIA_RULES[kind]
    field = "audio" if kind == MediaKind.audio else f"{kind.value}s"
    if len(files) > max_files:
        raise BadRequestError(f"Max {max_files} {field} allowed", errors=[{"field": field, "message": "Too many files"}])
    out = []
    for f in files:
        if f.content_type not in allowed:
            raise BadRequestError(
                f"Invalid file type: {f.content_type}",
                errors=[{"field": field, "message": f"Unsupported type {f.content_type}"}],
            )
        data = f.file.read()
        if len(data) > max_bytes:
            raise BadRequestError(
                f"{f.filename} exceeds {max_bytes // MB}MB",
                errors=[{"field": field, "message": "File too large"}],
            )
        out.append(PendingUpload(kind=kind, data=data, content_type=f.content_type, filename=f.filename))
    return out


def store_uploads(storage, uploads: Iterable[PendingUpload], folder: str) -> List[MediaAttachment]:
    """Upload every file or none: a failure removes the ones already stored."""
    attachments = []
    try:
        for u in uploads:
            stored = storage.upload(u.data, folder, u.content_type, u.filename)
            attachments.append(MediaAttachment(
                kind=u.kind,
                url=stored.url,
                provider_id=stored.provider_id,
                content_type=u.content_type,
                size=len(u.data),
            ))
    except UpstreamError:
        discard_uploads(storage, attachments)
        raise
    return attachments


def store_profile_image(storage, file: Optional[UploadFile], folder: str) -> str:
    uploads = read_uploads(MediaKind.image, [file] if file else [])
    if not uploads:
        raise BadRequestError("Profile image is required", errors=[{"field": "profile_image", "message": "Missing file"}])
    return store_uploads(storage, uploads[:1], folder)[0].url


def discard_uploads(storage, attachments: Iterable[MediaAttachment]) -> None:
    """Best-effort removal of objects whose database row never made it."""
    for a in attachments:
        try:
            storage.delete(a.provider_id)
        except UpstreamError:
            logger.warning("Orphaned media object left in storage: %s", a.provider_id)
