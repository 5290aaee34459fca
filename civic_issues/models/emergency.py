# File: civic_issues/models/emergency.py
# Project: civic-issues-backend

from __future__ import annotations
from enum import Enum as PyEnum
from datetime import datetime
from sqlalchemy import CheckConstraint, DateTime, Enum, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from civic_issues.core.clock import local_now
from civic_issues.db.base import Base, SoftDeleteMixin
from civic_issues.models.media import MediaAttachment
from civic_issues.models.report import Priority
from civic_issues.models.user import User

class EmergencyType(str, PyEnum):
    police = "police"
    medical = "medical"
    fire = "fire"
    disaster = "disaster"

class EmergencyStatus(str, PyEnum):
    reported = "reported"
    received = "received"
    dispatched = "dispatched"
    resolved = "resolved"

class Severity(str, PyEnum):
    minor = "minor"
    moderate = "moderate"
    severe = "severe"
    critical = "critical"

class Emergency(SoftDeleteMixin, Base):
    __tablename__ = "emergencies"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    emergency_code: Mapped[str] = mapped_column(String(24), unique=True, index=True)
    type: Mapped[EmergencyType] = mapped_column(Enum(EmergencyType), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(String(1000))
    contact_number: Mapped[str] = mapped_column(String(15), nullable=False)

    status: Mapped[EmergencyStatus] = mapped_column(
        Enum(EmergencyStatus), default=EmergencyStatus.reported, index=True
    )
    priority: Mapped[Priority] = mapped_column(Enum(Priority), default=Priority.high, index=True)
    severity_level: Mapped[Severity] = mapped_column(Enum(Severity), default=Severity.moderate)
    casualties_reported: Mapped[int] = mapped_column(Integer, default=0, server_default="0")

    citizen_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    responded_by_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    lng: Mapped[float] = mapped_column(Float, nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    address: Mapped[str | None] = mapped_column(String(300), nullable=True)
    landmark: Mapped[str | None] = mapped_column(String(200), nullable=True)

    received_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    dispatched_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=local_now, index=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, onupdate=local_now)

    citizen: Mapped[User] = relationship(User, foreign_keys=[citizen_id])
    responded_by: Mapped[User | None] = relationship(User, foreign_keys=[responded_by_id])
    media: Mapped[list[MediaAttachment]] = relationship(
        MediaAttachment, order_by=MediaAttachment.id, cascade="all, delete-orphan"
    )
    status_history: Mapped[list["EmergencyStatusEntry"]] = relationship(
        "EmergencyStatusEntry", order_by="EmergencyStatusEntry.id", cascade="all, delete-orphan"
    )

    __table_args__ = (CheckConstraint("casualties_reported >= 0", name="ck_emergency_casualties"),)

Index("ix_emergencies_lat_lng", Emergency.lat, Emergency.lng)

class EmergencyStatusEntry(Base):
    __tablename__ = "emergency_status_history"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    emergency_id: Mapped[int] = mapped_column(
        ForeignKey("emergencies.id", ondelete="CASCADE"), index=True, nullable=False
    )
    status: Mapped[EmergencyStatus] = mapped_column(Enum(EmergencyStatus), nullable=False)
    changed_by_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    changed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=local_now, nullable=False)
    remarks: Mapped[str | None] = mapped_column(String(500), nullable=True)
