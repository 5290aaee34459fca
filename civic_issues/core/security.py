# civic_issues/core/security.py
from fastapi import HTTPException, Request, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
import time, jwt
from sqlalchemy.orm import Session
from passlib.hash import bcrypt_sha256
from civic_issues.core.config import Settings
from civic_issues.db.session import get_db
from civic_issues.models.user import User, UserRole
from civic_issues.services.access import Actor, actor_for

ALGO = "HS256"
bearer = HTTPBearer(auto_error=False)

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def hash_password(raw: str) -> str:
    return bcrypt_sha256.hash(raw)

def verify_password(raw: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    return bcrypt_sha256.verify(raw, hashed)

def make_token(user: User, settings: Settings) -> dict:
    ttl = settings.jwt_expires_minutes * 60
    now = int(time.time())
    payload = {"sub": str(user.id), "role": user.role.value, "iat": now, "exp": now + ttl}
    return {
        "access_token": jwt.encode(payload, settings.jwt_secret, algorithm=ALGO),
        "token_type": "bearer",
        "expires_in": ttl,
    }

def _decode_token(creds: Optional[HTTPAuthorizationCredentials], secret: str) -> dict:
    if not creds:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        return jwt.decode(creds.credentials, secret, algorithms=[ALGO])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

def get_current_user(creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
                     db: Session = Depends(get_db),
                     settings: Settings = Depends(get_settings)) -> User:
    payload = _decode_token(creds, settings.jwt_secret)
    sub = payload.get("sub")
    if not sub or not str(sub).isdigit():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")
    # soft-deleted users are filtered out by the session
    user = db.get(User, int(sub))
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is not active")
    return user

def get_actor(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Actor:
    return actor_for(db, user)

def require_role(*roles):
    role_values = [r.value if isinstance(r, UserRole) else r for r in roles]
    def _dep(user: User = Depends(get_current_user)):
        if user.role.value not in role_values:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied for this role")
        return user
    return _dep
