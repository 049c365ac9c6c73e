from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserRole(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    PARENT = "parent"
    PRINCIPAL = "principal"
    ADMIN = "admin"


class UserBase(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, description="Username")
    email: EmailStr = Field(..., description="User's email address")
    first_name: str = Field(..., max_length=50, description="User's first name")
    last_name: str = Field(..., max_length=50, description="User's last name")
    role: UserRole = Field(default=UserRole.STUDENT)
    grade: str | None = Field(default=None, description="Grade level, for students")
    subjects: list[str] = Field(
        default_factory=list, description="Subjects taught, for teachers"
    )

    model_config = ConfigDict(from_attributes=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class UserPublic(UserBase):
    id: int = Field(..., description="Unique identifier for the user")
    created_at: datetime


class UserInDB(UserPublic):
    hashed_password: str = Field(..., description="Argon2 hash of the password")
