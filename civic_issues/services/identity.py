# File: civic_issues/services/identity.py
# Project: civic-issues-backend

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from civic_issues.core.errors import AuthenticationError, UpstreamError

logger = logging.getLogger(__name__)

LOOKUP_URL = "https://identitytoolkit.googleapis.com/v1/accounts:lookup"


@dataclass(frozen=True)
class ExternalIdentity:
    uid: str
    email: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    email_verified: bool = False


class FirebaseIdentityVerifier:
    """Checks a Firebase ID token with the Identity Toolkit REST API."""

    def __init__(self, api_key: Optional[str], timeout: float = 10.0):
        self.api_key = api_key
        self.timeout = timeout

    def verify(self, id_token: str) -> ExternalIdentity:
        if not self.api_key:
            raise UpstreamError("Google sign-in is not configured")
        try:
            r = requests.post(
                LOOKUP_URL,
                params={"key": self.api_key},
                json={"idToken": id_token},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Identity provider unreachable: {e}", exc_info=True)
            raise UpstreamError("Identity provider unavailable") from e
        if r.status_code != 200:
            raise AuthenticationError("Invalid or expired ID token")
        users = (r.json() or {}).get("users") or []
        if not users or not users[0].get("email"):
            raise AuthenticationError("Invalid or expired ID token")
        u = users[0]
        return ExternalIdentity(
            uid=u["localId"],
            email=u["email"].lower(),
            display_name=u.get("displayName"),
            photo_url=u.get("photoUrl"),
            email_verified=bool(u.get("emailVerified")),
        )
