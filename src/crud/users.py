"""In-memory user store."""

import itertools
from datetime import UTC, datetime

from core.exceptions import DuplicateUserError, UserNotFoundError
from schemas.user import UserInDB, UserPublic, UserRole


class UserStore:
    """Users keyed by id, unique on username and (case-insensitive) email."""

    def __init__(self) -> None:
        self._users: dict[int, UserInDB] = {}
        self._ids = itertools.count(1)

    async def get_by_id(self, user_id: int) -> UserInDB | None:
        """Get a user by their ID."""
        return self._users.get(user_id)

    async def require(self, user_id: int) -> UserInDB:
        user = self._users.get(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def get_by_username(self, username: str) -> UserInDB | None:
        """Get a user by their username."""
        return next((u for u in self._users.values() if u.username == username), None)

    async def get_by_email(self, email: str) -> UserInDB | None:
        """Get a user by their email address."""
        email = email.lower()
        return next((u for u in self._users.values() if u.email == email), None)

    async def create(
        self,
        *,
        username: str,
        email: str,
        hashed_password: str,
        first_name: str,
        last_name: str,
        role: UserRole = UserRole.STUDENT,
        grade: str | None = None,
        subjects: list[str] | None = None,
    ) -> UserInDB:
        """Create a new user.

        Raises:
            DuplicateUserError: username or email is already taken.
        """
        email = email.lower()
        if await self.get_by_username(username) or await self.get_by_email(email):
            raise DuplicateUserError("Username or email already exists")

        user = UserInDB(
            id=next(self._ids),
            username=username,
            email=email,
            hashed_password=hashed_password,
            first_name=first_name,
            last_name=last_name,
            role=role,
            grade=grade,
            subjects=list(subjects or []),
            created_at=datetime.now(UTC),
        )
        self._users[user.id] = user
        return user

    async def list_users(self, role: UserRole | None = None) -> list[UserInDB]:
        users = sorted(self._users.values(), key=lambda u: u.id)
        if role is None:
            return users
        return [u for u in users if u.role == role]


def to_public(user: UserInDB) -> UserPublic:
    """Strip the password hash before a user leaves the API."""
    return UserPublic.model_validate(user.model_dump(exclude={"hashed_password"}))


DEMO_SUBJECTS = ["Mathematics", "Science", "English"]


async def seed_demo_teacher(store: UserStore, hashed_password: str) -> UserInDB | None:
    """Create the ``demo`` teacher account unless it already exists."""
    if await store.get_by_username("demo"):
        return None
    return await store.create(
        username="demo",
        email="demo@example.com",
        hashed_password=hashed_password,
        first_name="Demo",
        last_name="User",
        role=UserRole.TEACHER,
        subjects=DEMO_SUBJECTS,
    )
