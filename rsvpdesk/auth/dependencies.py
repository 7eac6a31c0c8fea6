"""
Authentication Dependencies
Shared-secret check guarding every admin endpoint
"""

import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from rsvpdesk.config import Settings
from rsvpdesk.dependencies import get_app_settings

UNAUTHORIZED_DETAIL = "Unauthorized. Valid admin credentials required."


def _matches(candidate: Optional[str], secret: str) -> bool:
    if not candidate:
        return False
    return secrets.compare_digest(candidate.encode("utf-8"), secret.encode("utf-8"))


def is_admin_request(authorization: Optional[str], password_param: Optional[str], secret: Optional[str]) -> bool:
    """
    Check a request's credential against the admin secret

    Args:
        authorization: Authorization header, either "Bearer <secret>" or the bare secret
        password_param: ?password= query parameter
        secret: Configured ADMIN_PASSWORD

    Returns:
        True if any supplied credential matches
    """
    if not secret:
        return False

    if authorization:
        token = authorization[len("Bearer "):] if authorization.startswith("Bearer ") else authorization
        if _matches(token, secret):
            return True

    return _matches(password_param, secret)


async def require_admin(request: Request, settings: Settings = Depends(get_app_settings)) -> None:
    """
    Require the admin credential

    Raises:
        HTTPException: 401 with the same message whatever was wrong
    """
    if not is_admin_request(
        request.headers.get("authorization"),
        request.query_params.get("password"),
        settings.ADMIN_PASSWORD,
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=UNAUTHORIZED_DETAIL,
            headers={"WWW-Authenticate": "Bearer"},
        )
