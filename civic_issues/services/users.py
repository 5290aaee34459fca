# File: civic_issues/services/users.py
# Project: civic-issues-backend

import logging
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from civic_issues.core.clock import local_now
from civic_issues.core.config import Settings
from civic_issues.core.errors import (
    AuthenticationError,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from civic_issues.core.security import hash_password, verify_password
from civic_issues.models.user import AccountStatus, AuthProvider, User, UserRole
from civic_issues.schemas.auth import RegisterIn
from civic_issues.schemas.user import OfficerCreate, OfficerUpdate, ProfileUpdate
from civic_issues.services import departments as dept_service
from civic_issues.services.identity import ExternalIdentity

logger = logging.getLogger(__name__)


def find_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == email.lower()).first()


def ensure_email_free(db: Session, email: str, exclude_id: Optional[int] = None) -> None:
    existing = find_by_email(db, email)
    if existing and existing.id != exclude_id:
        raise ConflictError("User with this email already exists")


def ensure_active(user: User) -> None:
    if not user.is_active:
        raise ForbiddenError("Account is inactive or suspended")


def register_citizen(db: Session, payload: RegisterIn, settings: Settings) -> User:
    email = payload.email.lower()
    domain = (settings.registration_email_domain or "").lower().lstrip("@")
    if domain and not email.endswith("@" + domain):
        raise BadRequestError(
            f"Registration is limited to @{domain} addresses",
            errors=[{"field": "email", "message": f"Use an @{domain} address"}],
        )
    ensure_email_free(db, email)
    user = User(
        email=email,
        hashed_password=hash_password(payload.password),
        auth_provider=AuthProvider.local,
        full_name=payload.full_name.strip(),
        phone_number=payload.phone_number,
        role=UserRole.citizen,
        account_status=AccountStatus.active,
        last_login=local_now(),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    user = find_by_email(db, email)
    if not user or user.auth_provider != AuthProvider.local or not verify_password(password, user.hashed_password):
        raise AuthenticationError("Invalid email or password")
    ensure_active(user)
    user.last_login = local_now()
    db.commit()
    db.refresh(user)
    return user


def login_with_identity(db: Session, identity: ExternalIdentity, phone_number: Optional[str] = None) -> User:
    user = db.query(User).filter(User.google_id == identity.uid).first() or find_by_email(db, identity.email)
    if user is None:
        user = User(
            email=identity.email,
            auth_provider=AuthProvider.google,
            google_id=identity.uid,
            full_name=(identity.display_name or identity.email.split("@")[0])[:100],
            phone_number=phone_number,
            profile_image=identity.photo_url,
            role=UserRole.citizen,
            account_status=AccountStatus.active,
        )
        db.add(user)
        logger.info("Created citizen account for %s via Google sign-in", identity.email)
    else:
        ensure_active(user)
        if user.google_id is None:
            user.google_id = identity.uid
    user.last_login = local_now()
    db.commit()
    db.refresh(user)
    return user


def update_profile(db: Session, user: User, payload: ProfileUpdate, profile_image: Optional[str] = None) -> User:
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(user, field, value)
    if profile_image:
        user.profile_image = profile_image
    db.commit()
    db.refresh(user)
    return user


# Officer management (admin only)

def get_officer(db: Session, officer_id: int) -> User:
    officer = db.get(User, officer_id)
    if not officer or officer.role != UserRole.officer:
        raise NotFoundError("Officer not found")
    return officer


def query_officers(db: Session, account_status: Optional[AccountStatus] = None, search: Optional[str] = None):
    q = db.query(User).filter(User.role == UserRole.officer)
    if account_status is not None:
        q = q.filter(User.account_status == account_status)
    if search:
        term = f"%{search.strip()}%"
        q = q.filter(or_(User.full_name.ilike(term), User.email.ilike(term), User.phone_number.ilike(term)))
    return q.order_by(User.created_at.desc(), User.id.desc())


def create_officer(db: Session, payload: OfficerCreate) -> User:
    email = payload.email.lower()
    ensure_email_free(db, email)
    dept_ids = list(dict.fromkeys(payload.departments))
    depts = [dept_service.get_department(db, d) for d in dept_ids]
    officer = User(
        email=email,
        hashed_password=hash_password(payload.password),
        auth_provider=AuthProvider.local,
        full_name=payload.full_name,
        phone_number=payload.phone_number,
        role=UserRole.officer,
        account_status=AccountStatus.active,
    )
    officer.departments.extend(depts)
    db.add(officer)
    db.commit()
    for d in depts:
        dept_service.on_officer_assigned(db, d.id)
    db.commit()
    db.refresh(officer)
    return officer


def update_officer(db: Session, officer: User, payload: OfficerUpdate) -> User:
    data = payload.model_dump(exclude_unset=True)
    if data.get("email"):
        data["email"] = data["email"].lower()
        ensure_email_free(db, data["email"], exclude_id=officer.id)
    for field, value in data.items():
        if value is not None:
            setattr(officer, field, value)
    db.commit()
    db.refresh(officer)
    return officer


def set_account_status(db: Session, user: User, status: AccountStatus) -> User:
    user.account_status = status
    db.commit()
    db.refresh(user)
    return user


def assign_department(db: Session, officer: User, department_id: int) -> User:
    dept = dept_service.get_department(db, department_id)
    if any(d.id == dept.id for d in officer.departments):
        raise ConflictError("Officer already assigned to this department")
    officer.departments.append(dept)
    db.commit()
    dept_service.on_officer_assigned(db, dept.id)
    db.commit()
    db.refresh(officer)
    return officer


def remove_department(db: Session, officer: User, department_id: int) -> User:
    dept = next((d for d in officer.departments if d.id == department_id), None)
    if dept is None:
        raise BadRequestError("Officer is not assigned to this department")
    officer.departments.remove(dept)
    db.commit()
    dept_service.on_officer_removed(db, department_id)
    db.commit()
    db.refresh(officer)
    return officer


def delete_officer(db: Session, officer: User) -> None:
    for d in officer.departments:
        dept_service.on_officer_removed(db, d.id)
    officer.is_deleted = True
    officer.account_status = AccountStatus.inactive
    db.commit()
