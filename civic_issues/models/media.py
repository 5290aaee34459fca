# File: civic_issues/models/media.py
# Project: civic-issues-backend

from __future__ import annotations
from enum import Enum as PyEnum
from datetime import datetime
from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from civic_issues.core.clock import local_now
from civic_issues.db.base import Base

class MediaKind(str, PyEnum):
    image = "image"
    video = "video"
    audio = "audio"

class MediaAttachment(Base):
    __tablename__ = "media_attachments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    report_id: Mapped[int | None] = mapped_column(ForeignKey("reports.id", ondelete="CASCADE"), index=True, nullable=True)
    emergency_id: Mapped[int | None] = mapped_column(
        ForeignKey("emergencies.id", ondelete="CASCADE"), index=True, nullable=True
    )
    kind: Mapped[MediaKind] = mapped_column(Enum(MediaKind), nullable=False)
    url: Mapped[str] = mapped_column(Text)
    provider_id: Mapped[str] = mapped_column(String(500))
    content_type: Mapped[str] = mapped_column(String(100))
    size: Mapped[int] = mapped_column(Integer)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=local_now)
