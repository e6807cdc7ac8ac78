"""
Authentication dependencies for FastAPI routes.

Session failures are classified where they happen and reported to an
explicit invalidation callback (``get_session_invalidator``), which
deployments override through ``app.dependency_overrides``.
"""

import logging
from typing import Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from golf_league.services import auth_service

logger = logging.getLogger(__name__)

security = HTTPBearer()

SessionInvalidator = Callable[[Optional[dict], auth_service.AuthError], None]


def _log_session_invalidation(payload: Optional[dict], error: auth_service.AuthError) -> None:
    logger.info(f"Session invalidated ({error.kind.value})")


def get_session_invalidator() -> SessionInvalidator:
    """Callback invoked when a request carries a dead session."""
    return _log_session_invalidation


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    invalidate_session: SessionInvalidator = Depends(get_session_invalidator),
) -> dict:
    """
    Dependency to get the current authenticated user from the bearer token.

    Returns:
        User dictionary with ``id`` and ``role``

    Raises:
        HTTPException: 401 if the token is invalid or expired
    """
    try:
        payload = auth_service.decode_token(credentials.credentials)
    except auth_service.AuthError as e:
        if auth_service.is_session_error(e):
            invalidate_session(None, e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {"id": payload["user_id"], "role": payload.get("role")}


async def require_user(user: dict = Depends(get_current_user)) -> dict:
    """Require any authenticated user."""
    return user


async def require_admin(user: dict = Depends(get_current_user)) -> dict:
    """Require an authenticated league admin."""
    if user.get("role") != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user
