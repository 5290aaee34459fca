# File: civic_issues/models/report.py
# Project: civic-issues-backend

from __future__ import annotations
from enum import Enum as PyEnum
from datetime import datetime
from sqlalchemy import DateTime, Enum, Float, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from civic_issues.core.clock import local_now
from civic_issues.db.base import Base, SoftDeleteMixin
from civic_issues.models.department import Department
from civic_issues.models.media import MediaAttachment
from civic_issues.models.user import User

class ReportStatus(str, PyEnum):
    submitted = "submitted"
    in_progress = "in_progress"
    resolved = "resolved"
    rejected = "rejected"

class Priority(str, PyEnum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"

class Report(SoftDeleteMixin, Base):
    __tablename__ = "reports"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    report_code: Mapped[str] = mapped_column(String(20), unique=True, index=True)
    title: Mapped[str] = mapped_column(String(200), index=True)
    description: Mapped[str] = mapped_column(String(2000))
    status: Mapped[ReportStatus] = mapped_column(Enum(ReportStatus), default=ReportStatus.submitted, index=True)
    priority: Mapped[Priority] = mapped_column(Enum(Priority), default=Priority.medium, index=True)

    citizen_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    department_id: Mapped[int] = mapped_column(ForeignKey("departments.id"), index=True)
    assigned_officer_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), index=True, nullable=True
    )

    lng: Mapped[float] = mapped_column(Float, nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    address: Mapped[str | None] = mapped_column(String(300), nullable=True)
    landmark: Mapped[str | None] = mapped_column(String(200), nullable=True)

    rejection_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    rejected_by_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=local_now, index=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, onupdate=local_now)

    citizen: Mapped[User] = relationship(User, foreign_keys=[citizen_id])
    department: Mapped[Department] = relationship(Department)
    assigned_officer: Mapped[User | None] = relationship(User, foreign_keys=[assigned_officer_id])
    rejected_by: Mapped[User | None] = relationship(User, foreign_keys=[rejected_by_id])
    media: Mapped[list[MediaAttachment]] = relationship(
        MediaAttachment, order_by=MediaAttachment.id, cascade="all, delete-orphan"
    )
    status_history: Mapped[list["ReportStatusEntry"]] = relationship(
        "ReportStatusEntry", order_by="ReportStatusEntry.id", cascade="all, delete-orphan"
    )

Index("ix_reports_lat_lng", Report.lat, Report.lng)

class ReportStatusEntry(Base):
    """One row per status assignment; rows are only ever inserted."""
    __tablename__ = "report_status_history"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    report_id: Mapped[int] = mapped_column(ForeignKey("reports.id", ondelete="CASCADE"), index=True, nullable=False)
    status: Mapped[ReportStatus] = mapped_column(Enum(ReportStatus), nullable=False)
    changed_by_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    changed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=local_now, nullable=False)
    remarks: Mapped[str | None] = mapped_column(String(500), nullable=True)
