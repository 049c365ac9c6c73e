"""Password hashing and JWT access tokens."""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from fastapi import HTTPException, status
from jose import JWTError, jwt

from core.config import Settings, get_settings
from schemas.auth import TokenData


def _settings() -> Settings:  # lazy accessor to allow tests to set env first
    return get_settings()


# Argon2id with library defaults, shared by the whole process
_password_hasher = PasswordHasher()

logger = logging.getLogger(__name__)


def _credentials_error(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_access_token(
    data: dict[str, Any], expires_delta: timedelta | None = None
) -> str:
    """Encode ``data`` (which must carry ``sub``) into a signed, expiring JWT."""
    s = _settings()
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=s.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return jwt.encode({**data, "exp": expire}, s.SECRET_KEY, algorithm=s.ALGORITHM)


def get_password_hash(password: str) -> str:
    """Hash a plaintext password using Argon2id."""
    return _password_hasher.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    """Check ``plain`` against an Argon2 hash; any mismatch or bad hash is False."""
    try:
        return _password_hasher.verify(hashed, plain)
    except (VerificationError, InvalidHashError):
        return False


def decode_token(token: str) -> TokenData:
    """Decode and validate a bearer JWT, raising 401 on any problem."""
    s = _settings()
    try:
        payload = jwt.decode(token, s.SECRET_KEY, algorithms=[s.ALGORITHM])
    except JWTError as err:
        logger.info("Rejected access token: %s", err.__class__.__name__)
        raise _credentials_error("Could not validate credentials") from err

    sub = payload.get("sub")
    if sub is None:
        raise _credentials_error("Token missing subject")
    try:
        user_id = int(sub)
    except (TypeError, ValueError) as err:
        raise _credentials_error("Token subject is not a user id") from err

    role = payload.get("role")
    return TokenData(sub=str(sub), user_id=user_id, role=role if isinstance(role, str) else None)
