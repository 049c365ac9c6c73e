"""Shared test fixtures for pytest.

We set minimal env defaults (SECRET_KEY, ENVIRONMENT) early so importing
modules that instantiate settings (core.security) succeeds without needing
an external .env file during tests.
"""

import os
from collections.abc import AsyncGenerator, Callable, Generator
from typing import Any

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient


os.environ.setdefault("SECRET_KEY", "test-secret-key")  # pragma: allowlist secret
os.environ.setdefault("ENVIRONMENT", "test")

from core.security import create_access_token, get_password_hash
from crud.interactions import InMemoryInteractionStore
from crud.library import LibraryStore
from crud.users import UserStore
from dependencies.services import (
    get_gateway,
    get_interaction_store,
    get_library_store,
    get_user_store,
)
from main import app
from schemas.user import UserInDB, UserRole
from services.generation.gateway import ContentGateway
from services.generation.provider import CompletionRequest
from services.generation.retry import RetryController


TEST_PASSWORD = "correct-horse-battery"  # pragma: allowlist secret


class FakeProvider:
    """Provider double that replays a scripted list of outcomes.

    Each outcome is either a raw text payload or an exception to raise.
    Calls beyond the script fail the test loudly.
    """

    def __init__(self, *outcomes: str | Exception) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[CompletionRequest] = []
        self.image_prompts: list[str] = []

    def _next(self) -> str:
        if not self.outcomes:
            raise AssertionError("provider called more often than scripted")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def complete(self, request: CompletionRequest) -> str:
        self.calls.append(request)
        return self._next()

    async def generate_image(self, prompt: str) -> str:
        self.image_prompts.append(prompt)
        return self._next()

    @property
    def call_count(self) -> int:
        return len(self.calls) + len(self.image_prompts)


class RecordingSleep:
    """Injected sleep that records waits instead of blocking."""

    def __init__(self) -> None:
        self.waits: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_gateway(
    sleeper: RecordingSleep,
) -> Callable[..., tuple[ContentGateway, FakeProvider]]:
    """Build a gateway around a scripted provider with instant retries."""

    def _make(*outcomes: str | Exception) -> tuple[ContentGateway, FakeProvider]:
        provider = FakeProvider(*outcomes)
        gateway = ContentGateway(
            lambda: provider, RetryController(max_attempts=3, base_delay=2.0, sleep=sleeper)
        )
        return gateway, provider

    return _make


@pytest.fixture
def user_store() -> UserStore:
    return UserStore()


@pytest.fixture
def library_store() -> LibraryStore:
    return LibraryStore()


@pytest.fixture
def interaction_store() -> InMemoryInteractionStore:
    return InMemoryInteractionStore()


@pytest.fixture
def fake_provider() -> FakeProvider:
    """Provider used by the API fixtures; tests append outcomes to its script."""
    return FakeProvider()


@pytest.fixture
def api_overrides(
    user_store: UserStore,
    library_store: LibraryStore,
    interaction_store: InMemoryInteractionStore,
    fake_provider: FakeProvider,
    sleeper: RecordingSleep,
) -> Generator[None, None, None]:
    """Point the app at fresh stores and the scripted provider."""
    gateway = ContentGateway(
        lambda: fake_provider, RetryController(max_attempts=3, base_delay=2.0, sleep=sleeper)
    )
    app.dependency_overrides[get_user_store] = lambda: user_store
    app.dependency_overrides[get_library_store] = lambda: library_store
    app.dependency_overrides[get_interaction_store] = lambda: interaction_store
    app.dependency_overrides[get_gateway] = lambda: gateway
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def client(api_overrides: None) -> Generator[TestClient, None, None]:
    """
    Create a test client for the FastAPI application.
    """
    with TestClient(app) as client:
        yield client


@pytest_asyncio.fixture
async def async_client(api_overrides: None) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def create_user(user_store: UserStore) -> Callable[..., Any]:
    """Create a user directly in the store and return it."""

    async def _create(
        username: str = "student1",
        role: UserRole = UserRole.STUDENT,
        **extra: Any,
    ) -> UserInDB:
        fields = {
            "email": f"{username}@example.com",
            "first_name": username.capitalize(),
            "last_name": "Tester",
            "hashed_password": get_password_hash(TEST_PASSWORD),
            **extra,
        }
        return await user_store.create(username=username, role=role, **fields)

    return _create


@pytest.fixture
def auth_headers() -> Callable[[UserInDB], dict[str, str]]:
    """Bearer headers for a user, as issued by the login endpoint."""

    def _headers(user: UserInDB) -> dict[str, str]:
        token = create_access_token({"sub": str(user.id), "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}

    return _headers
