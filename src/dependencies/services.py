"""Process-wide service and store providers.

Each provider is cached so the whole app shares one instance; tests swap
them through ``app.dependency_overrides``.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from core.config import get_settings
from crud.interactions import InMemoryInteractionStore, InteractionStore
from crud.library import LibraryStore
from crud.users import UserStore
from services.generation.gateway import ContentGateway
from services.interaction_logger import InteractionLogger


@lru_cache
def get_user_store() -> UserStore:
    return UserStore()


@lru_cache
def get_library_store() -> LibraryStore:
    return LibraryStore()


@lru_cache
def get_interaction_store() -> InteractionStore:
    return InMemoryInteractionStore()


@lru_cache
def get_gateway() -> ContentGateway:
    return ContentGateway.from_settings(get_settings())


def get_interaction_logger(
    store: Annotated[InteractionStore, Depends(get_interaction_store)],
) -> InteractionLogger:
    return InteractionLogger(store)


Users = Annotated[UserStore, Depends(get_user_store)]
Library = Annotated[LibraryStore, Depends(get_library_store)]
Gateway = Annotated[ContentGateway, Depends(get_gateway)]
Interactions = Annotated[InteractionLogger, Depends(get_interaction_logger)]
