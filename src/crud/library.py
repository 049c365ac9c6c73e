"""Keyed-map storage for saved learning content.

Every operation is a whole insert, replace or lookup; records are pydantic
models replaced wholesale, never mutated in place.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel

from core.exceptions import ResourceNotFoundError
from schemas.library import (
    FlashcardDeck,
    FlashcardRecord,
    Lesson,
    MindMap,
    Quiz,
    QuizAttempt,
    StudyProgress,
    StudyProgressUpsert,
)


class InMemoryRepository[T: BaseModel]:
    """Records of one type keyed by integer id."""

    def __init__(self, model: type[T], name: str, ids: Iterator[int]) -> None:
        self._model = model
        self._name = name
        self._ids = ids
        self._rows: dict[int, T] = {}

    async def add(self, **fields: Any) -> T:
        record = self._model.model_validate({"id": next(self._ids), **fields})
        self._rows[record.id] = record  # type: ignore[attr-defined]
        return record

    async def get(self, record_id: int) -> T | None:
        return self._rows.get(record_id)

    async def require(self, record_id: int) -> T:
        record = self._rows.get(record_id)
        if record is None:
            raise ResourceNotFoundError(self._name, record_id)
        return record

    async def require_visible(self, record_id: int, user_id: int) -> T:
        """Like :meth:`require`, but records owned by others must be public."""
        record = await self.require(record_id)
        if not _visible_to(user_id)(record):
            raise ResourceNotFoundError(self._name, record_id)
        return record

    async def replace(self, record: T) -> T:
        self._rows[record.id] = record  # type: ignore[attr-defined]
        return record

    async def filter(self, predicate: Callable[[T], bool] | None = None) -> list[T]:
        rows = [self._rows[k] for k in sorted(self._rows)]
        return rows if predicate is None else [r for r in rows if predicate(r)]


def _visible_to(user_id: int) -> Callable[[Any], bool]:
    return lambda record: record.user_id == user_id or record.is_public


class LibraryStore:
    """All saved content, sharing one increasing id sequence."""

    def __init__(self) -> None:
        ids = itertools.count(1)
        self.decks = InMemoryRepository(FlashcardDeck, "Flashcard deck", ids)
        self.cards = InMemoryRepository(FlashcardRecord, "Flashcard", ids)
        self.quizzes = InMemoryRepository(Quiz, "Quiz", ids)
        self.attempts = InMemoryRepository(QuizAttempt, "Quiz attempt", ids)
        self.lessons = InMemoryRepository(Lesson, "Lesson", ids)
        self.mind_maps = InMemoryRepository(MindMap, "Mind map", ids)
        self.progress = InMemoryRepository(StudyProgress, "Study progress", ids)

    @staticmethod
    def now() -> datetime:
        return datetime.now(UTC)

    async def decks_for(self, user_id: int) -> list[FlashcardDeck]:
        return await self.decks.filter(_visible_to(user_id))

    async def cards_in(self, deck_id: int) -> list[FlashcardRecord]:
        return await self.cards.filter(lambda c: c.deck_id == deck_id)

    async def quizzes_for(self, user_id: int) -> list[Quiz]:
        return await self.quizzes.filter(_visible_to(user_id))

    async def lessons_for(self, user_id: int) -> list[Lesson]:
        return await self.lessons.filter(_visible_to(user_id))

    async def mind_maps_for(self, user_id: int) -> list[MindMap]:
        return await self.mind_maps.filter(_visible_to(user_id))

    async def attempts_by_user(self, user_id: int) -> list[QuizAttempt]:
        return await self.attempts.filter(lambda a: a.user_id == user_id)

    async def attempts_for_quiz(self, quiz_id: int) -> list[QuizAttempt]:
        return await self.attempts.filter(lambda a: a.quiz_id == quiz_id)

    async def progress_for(self, user_id: int) -> list[StudyProgress]:
        return await self.progress.filter(lambda p: p.user_id == user_id)

    async def upsert_progress(
        self, user_id: int, payload: StudyProgressUpsert
    ) -> StudyProgress:
        """Insert or replace the record keyed by (user, subject, topic)."""
        existing = await self.progress.filter(
            lambda p: p.user_id == user_id
            and p.subject == payload.subject
            and p.topic == payload.topic
        )
        fields = {**payload.model_dump(), "user_id": user_id, "last_studied": self.now()}
        if existing:
            updated = StudyProgress(id=existing[0].id, **fields)
            return await self.progress.replace(updated)
        return await self.progress.add(**fields)
