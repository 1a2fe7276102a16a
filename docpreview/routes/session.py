from __future__ import annotations

import logging

from fastapi import Header, HTTPException, status

from docpreview.infrastructure import get_session_repository

logger = logging.getLogger(__name__)
BEARER = "Bearer"


def unauthorized(detail: str = "Unauthorized") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": BEARER},
    )


async def get_current_user(authorization: str | None = Header(default=None)) -> str:
    """Resolve the bearer token to the user id owning the session."""

    if not authorization:
        raise unauthorized()
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != BEARER.lower() or not token.strip():
        raise unauthorized()

    user_id = get_session_repository().resolve(token.strip())
    if user_id is None:
        logger.debug("Rejected unknown session token")
        raise unauthorized()
    return user_id
