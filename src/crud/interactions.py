"""Append-only interaction log storage."""

from __future__ import annotations

import itertools
from typing import Protocol

from schemas.interactions import InteractionLogEntry, StoredInteraction


class InteractionStore(Protocol):
    """Narrow contract the interaction logger depends on."""

    async def append(self, entry: InteractionLogEntry) -> StoredInteraction:
        """Persist ``entry`` and return it with its assigned id."""
        ...

    async def list(self, user_id: int, limit: int) -> list[StoredInteraction]:
        """Return at most ``limit`` entries for ``user_id``, newest first."""
        ...


class InMemoryInteractionStore:
    """Process-lifetime log; entries are frozen and never evicted.

    Entries are deep-copied on the way in and out, so a caller editing a
    returned entry's ``context`` cannot change the stored record.
    """

    def __init__(self) -> None:
        self._entries: list[StoredInteraction] = []
        self._ids = itertools.count(1)

    async def append(self, entry: InteractionLogEntry) -> StoredInteraction:
        stored = StoredInteraction(id=next(self._ids), **entry.model_dump())
        self._entries.append(stored)
        return stored.model_copy(deep=True)

    async def list(self, user_id: int, limit: int) -> list[StoredInteraction]:
        if limit <= 0:
            return []
        mine = (e for e in reversed(self._entries) if e.user_id == user_id)
        return [e.model_copy(deep=True) for e in itertools.islice(mine, limit)]

    def __len__(self) -> int:
        return len(self._entries)
