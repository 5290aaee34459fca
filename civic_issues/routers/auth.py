# File: civic_issues/routers/auth.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from civic_issues.core.config import Settings
from civic_issues.core.pagination import ok
from civic_issues.core.ratelimit import AUTH_LIMIT, limiter
from civic_issues.core.security import get_current_user, get_settings, make_token
from civic_issues.db.session import get_db
from civic_issues.models.user import User
from civic_issues.schemas.auth import GoogleLoginIn, LoginIn, RegisterIn
from civic_issues.schemas.user import OfficerOut
from civic_issues.services import users as user_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _session_payload(user: User, settings: Settings) -> dict:
    return {"user": OfficerOut.model_validate(user), **make_token(user, settings)}


@router.post("/register", status_code=201)
@limiter.limit(AUTH_LIMIT)
def register(request: Request, payload: RegisterIn, db: Session = Depends(get_db),
             settings: Settings = Depends(get_settings)):
    user = user_service.register_citizen(db, payload, settings)
    return ok(_session_payload(user, settings), "Registration successful")


@router.post("/login")
@limiter.limit(AUTH_LIMIT)
def login(request: Request, payload: LoginIn, db: Session = Depends(get_db),
          settings: Settings = Depends(get_settings)):
    user = user_service.authenticate(db, payload.email, payload.password)
    return ok(_session_payload(user, settings), "Login successful")


@router.post("/google")
@limiter.limit(AUTH_LIMIT)
def google_login(request: Request, payload: GoogleLoginIn, db: Session = Depends(get_db),
                 settings: Settings = Depends(get_settings)):
    identity = request.app.state.identity.verify(payload.id_token)
    user = user_service.login_with_identity(db, identity, payload.phone_number)
    return ok(_session_payload(user, settings), "Login successful")


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return ok({"user": OfficerOut.model_validate(user)})


@router.post("/refresh")
def refresh(user: User = Depends(get_current_user), settings: Settings = Depends(get_settings)):
    return ok(_session_payload(user, settings), "Token refreshed")


@router.post("/logout")
def logout(user: User = Depends(get_current_user)):
    # tokens are stateless; the client drops its copy
    return ok(message="Logout successful")
