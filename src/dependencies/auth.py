from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from core.security import decode_token
from dependencies.services import Users
from schemas.user import UserInDB, UserRole


# --------------------------------------------------------------------------- #
# Common constants / helpers
# --------------------------------------------------------------------------- #
LOGGER = logging.getLogger(__name__)
BEARER = "Bearer"


def unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    """Return the canonical 401 response."""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": BEARER},
    )


def forbidden(detail: str = "Access denied") -> HTTPException:
    """Return the canonical 403 response."""
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def not_found(detail: str = "Resource not found") -> HTTPException:
    """Return the canonical 404 response."""
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


# --------------------------------------------------------------------------- #
# The dependencies
# --------------------------------------------------------------------------- #
async def get_current_user(
    users: Users,
    token: Annotated[str, Depends(oauth2_scheme)],
) -> UserInDB:
    """
    Resolve the currently authenticated user from a JWT.

    Raises
    ------
    HTTPException(401)
        If the token is missing, malformed, expired, or the user does not exist.
    """
    # `decode_token` raises HTTPException(401) itself on bad tokens
    token_data = decode_token(token)

    user = await users.get_by_id(token_data.user_id)
    if user is None:
        LOGGER.debug("User not found for sub=%s", token_data.sub)
        raise unauthorized()
    return user


CurrentUser = Annotated[UserInDB, Depends(get_current_user)]


def require_roles(*roles: UserRole) -> Callable[[UserInDB], Awaitable[UserInDB]]:
    """Build a dependency admitting only users whose role is in ``roles``."""
    allowed = frozenset(roles)

    async def _check(current_user: CurrentUser) -> UserInDB:
        if current_user.role not in allowed:
            LOGGER.info(
                "Role %s denied; requires one of %s",
                current_user.role.value,
                sorted(r.value for r in allowed),
            )
            raise forbidden()
        return current_user

    return _check
