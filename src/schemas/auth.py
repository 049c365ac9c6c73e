from pydantic import BaseModel, EmailStr, Field

from schemas.user import UserRole


class Token(BaseModel):
    access_token: str = Field(..., description="Access token for authentication")
    token_type: str = Field(..., description="Type of the token, e.g., 'bearer'")


class TokenData(BaseModel):
    sub: str = Field(..., description="Subject (user id) of the token")
    user_id: int = Field(..., description="Numeric user id parsed from the subject")
    role: str | None = Field(
        default=None, description="Role at issue time; the store stays authoritative"
    )


# Roles that may be chosen at self-registration; staff roles are provisioned.
SELF_SERVICE_ROLES = (UserRole.STUDENT, UserRole.TEACHER, UserRole.PARENT)


class UserRegister(BaseModel):
    """Schema for user registration."""

    username: str = Field(
        ...,
        min_length=3,
        max_length=32,
        pattern=r"^[a-zA-Z0-9_\-]{3,32}$",
        description="Username (3-32 chars, alphanumeric, underscore, hyphen)",
    )
    email: EmailStr = Field(..., description="Valid email address")
    password: str = Field(
        ...,
        min_length=12,
        description="Password with minimum length of 12 characters",
    )
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(..., min_length=1, max_length=50)
    role: UserRole = Field(default=UserRole.STUDENT)
    grade: str | None = Field(
        default=None, max_length=32, description="Grade level, for students"
    )
    subjects: list[str] = Field(
        default_factory=list, description="Subjects taught, for teachers"
    )
