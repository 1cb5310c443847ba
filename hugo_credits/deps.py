"""Shared FastAPI dependencies."""

from fastapi import Depends, Header, Request

from hugo_credits.core.exceptions import ForbiddenError
from hugo_credits.core.security import (
    AuthenticatedUser,
    parse_bearer_token,
    user_from_claims,
    verify_firebase_id_token,
)
from hugo_credits.services.credits import CreditLedger


def get_ledger(request: Request) -> CreditLedger:
    return request.app.state.ledger


def get_current_user(
    request: Request,
    authorization: str | None = Header(default=None),
) -> AuthenticatedUser:
    """Dependency: verify the Firebase ID token against the app's Firebase project."""
    token = parse_bearer_token(authorization)
    claims = verify_firebase_id_token(token, request.app.state.settings.firebase_project_id)
    return user_from_claims(claims)


def require_admin(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
    """Dependency: require an `admin: true` custom claim on the token."""
    if not user.is_admin:
        raise ForbiddenError("Admin only")
    return user
