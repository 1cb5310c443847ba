"""Firebase ID token verification.

Sign-in happens in the browser against Firebase Auth (Google provider); the
front end sends the resulting ID token as a bearer token and we only verify it.
"""

from dataclasses import dataclass, field
from typing import Any

from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from hugo_credits.core.exceptions import UnauthorizedError


@dataclass(frozen=True)
class AuthenticatedUser:
    uid: str
    email: str = ""
    claims: dict[str, Any] = field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        return self.claims.get("admin") is True


def parse_bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise UnauthorizedError("Not authenticated")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError("Invalid authorization header")
    return token.strip()


def verify_firebase_id_token(token: str, project_id: str) -> dict:
    """Verify a Firebase ID token issued for `project_id`; return decoded claims (sub, email, ...)."""
    if not project_id:
        raise UnauthorizedError("Authentication not configured")
    try:
        return id_token.verify_firebase_token(
            token,
            google_requests.Request(),
            audience=project_id,
        )
    except Exception as e:
        raise UnauthorizedError(f"Invalid Firebase token: {e}") from e


def user_from_claims(claims: dict) -> AuthenticatedUser:
    uid = claims.get("sub") or claims.get("user_id")
    if not uid:
        raise UnauthorizedError("Missing sub in token")
    return AuthenticatedUser(uid=uid, email=claims.get("email") or "", claims=claims)
