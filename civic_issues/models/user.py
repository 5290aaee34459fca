# File: civic_issues/models/user.py
# Project: civic-issues-backend

from __future__ import annotations
from enum import Enum as PyEnum
from datetime import datetime
from sqlalchemy import Column, DateTime, Enum, ForeignKey, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship
from civic_issues.core.clock import local_now
from civic_issues.db.base import Base, SoftDeleteMixin
from civic_issues.models.department import Department

class UserRole(str, PyEnum):
    citizen = "citizen"
    officer = "officer"
    admin = "admin"

class AccountStatus(str, PyEnum):
    active = "active"
    inactive = "inactive"
    suspended = "suspended"

class AuthProvider(str, PyEnum):
    local = "local"
    google = "google"

officer_departments = Table(
    "officer_departments",
    Base.metadata,
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("department_id", ForeignKey("departments.id", ondelete="CASCADE"), primary_key=True, index=True),
)

class User(SoftDeleteMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    # uniqueness is enforced among live users only, so no DB-level unique here
    email: Mapped[str] = mapped_column(String(255), index=True)
    hashed_password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    auth_provider: Mapped[AuthProvider] = mapped_column(Enum(AuthProvider), default=AuthProvider.local, nullable=False)
    google_id: Mapped[str | None] = mapped_column(String(128), unique=True, nullable=True)

    full_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    phone_number: Mapped[str | None] = mapped_column(String(15), nullable=True)
    profile_image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    street: Mapped[str | None] = mapped_column(String(200), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    pincode: Mapped[str | None] = mapped_column(String(10), nullable=True)

    role: Mapped[UserRole] = mapped_column(Enum(UserRole), nullable=False, default=UserRole.citizen, index=True)
    account_status: Mapped[AccountStatus] = mapped_column(
        Enum(AccountStatus), nullable=False, default=AccountStatus.active, index=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=local_now)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, onupdate=local_now)
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    departments: Mapped[list[Department]] = relationship(
        Department, secondary=officer_departments, order_by=Department.name
    )

    @property
    def is_active(self) -> bool:
        return self.account_status == AccountStatus.active and not self.is_deleted
