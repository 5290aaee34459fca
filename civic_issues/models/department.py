# File: civic_issues/models/department.py
# Project: civic-issues-backend

from __future__ import annotations
from datetime import datetime
from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from civic_issues.core.clock import local_now
from civic_issues.db.base import Base, SoftDeleteMixin

class Department(SoftDeleteMixin, Base):
    __tablename__ = "departments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    code: Mapped[str] = mapped_column(String(30), unique=True, index=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    icon: Mapped[str | None] = mapped_column(String(500), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(15), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true", index=True)

    # denormalised; kept in step by services.departments
    total_reports: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    active_reports: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    resolved_reports: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    assigned_officers: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)

    created_by_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=local_now)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, onupdate=local_now)
