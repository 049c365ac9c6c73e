"""Auth API routes: registration, token login and the current profile."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm

from core.ratelimit import check_rate_limit
from core.security import create_access_token, get_password_hash, verify_password
from crud.users import to_public
from dependencies.auth import CurrentUser
from dependencies.services import Users
from schemas.api import ApiResponse
from schemas.auth import SELF_SERVICE_ROLES, Token, UserRegister
from schemas.user import UserPublic


router = APIRouter(prefix="/auth", tags=["auth"])

PasswordForm = Annotated[OAuth2PasswordRequestForm, Depends()]

_logger = logging.getLogger(__name__)


@router.post("/login", response_model=Token, dependencies=[Depends(check_rate_limit)])
async def login(form_data: PasswordForm, users: Users) -> Token:
    """
    OAuth2-compatible token login, get an access token for future requests.

    - **username**: The user's username
    - **password**: The user's password
    """
    user = await users.get_by_username(form_data.username)
    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(
        data={"sub": str(user.id), "role": user.role.value}
    )
    return Token(access_token=access_token, token_type="bearer")


@router.post(
    "/register",
    response_model=ApiResponse[UserPublic],
    status_code=201,
    dependencies=[Depends(check_rate_limit)],
)
async def register(payload: UserRegister, users: Users) -> ApiResponse[UserPublic]:
    """
    Register a new user account.

    - **username**: 3-32 chars, alphanumeric, underscore, hyphen
    - **email**: Valid email address
    - **password**: Minimum length of 12 characters
    - **role**: student (default), teacher or parent

    A taken username or email is reported as 409.
    """
    if payload.role not in SELF_SERVICE_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Role '{payload.role.value}' cannot be self-registered",
        )

    user = await users.create(
        username=payload.username,
        email=payload.email,
        hashed_password=get_password_hash(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=payload.role,
        grade=payload.grade,
        subjects=payload.subjects,
    )
    _logger.info("Registered user_id=%s role=%s", user.id, user.role.value)
    return ApiResponse(data=to_public(user), message="Registration successful")


@router.get("/me", response_model=ApiResponse[UserPublic])
async def read_me(current_user: CurrentUser) -> ApiResponse[UserPublic]:
    """Profile of the authenticated caller."""
    return ApiResponse(data=to_public(current_user), message="Current user")
