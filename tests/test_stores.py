"""Tests for the in-memory user and library stores."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.exceptions import DuplicateUserError, ResourceNotFoundError, UserNotFoundError
from crud.users import seed_demo_teacher, to_public
from schemas.library import QuizAttemptCreate, StudyProgressUpsert
from schemas.user import UserRole


class TestUserStore:
    @pytest.mark.asyncio
    async def test_create_assigns_increasing_ids(self, create_user) -> None:
        first = await create_user("alice")
        second = await create_user("bobby")
        assert (first.id, second.id) == (1, 2)

    @pytest.mark.asyncio
    async def test_email_is_case_insensitive_and_unique(self, create_user, user_store) -> None:
        await create_user("alice", email="Alice@Example.com")

        assert (await user_store.get_by_email("ALICE@example.com")).username == "alice"
        with pytest.raises(DuplicateUserError):
            await create_user("alice2", email="alice@example.com")

    @pytest.mark.asyncio
    async def test_duplicate_username_is_rejected(self, create_user) -> None:
        await create_user("alice")
        with pytest.raises(DuplicateUserError):
            await create_user("alice", email="other@example.com")

    @pytest.mark.asyncio
    async def test_require_unknown_user(self, user_store) -> None:
        with pytest.raises(UserNotFoundError):
            await user_store.require(404)

    @pytest.mark.asyncio
    async def test_list_users_filters_by_role(self, create_user, user_store) -> None:
        await create_user("alice")
        await create_user("teach", role=UserRole.TEACHER)
        teachers = await user_store.list_users(UserRole.TEACHER)
        assert [u.username for u in teachers] == ["teach"]

    @pytest.mark.asyncio
    async def test_public_view_hides_password_hash(self, create_user) -> None:
        public = to_public(await create_user("alice"))
        assert "hashed_password" not in public.model_dump()

    @pytest.mark.asyncio
    async def test_demo_teacher_is_seeded_once(self, user_store) -> None:
        seeded = await seed_demo_teacher(user_store, "hash")
        assert seeded is not None
        assert seeded.role is UserRole.TEACHER
        assert await seed_demo_teacher(user_store, "hash") is None


class TestLibraryStore:
    @pytest.mark.asyncio
    async def test_ids_are_shared_across_record_types(self, library_store) -> None:
        deck = await library_store.decks.add(
            title="Cells", subject="biology", grade="7", user_id=1,
            created_at=library_store.now(),
        )
        lesson = await library_store.lessons.add(
            title="Cells", subject="biology", grade="7", user_id=1,
            created_at=library_store.now(),
        )
        assert lesson.id == deck.id + 1

    @pytest.mark.asyncio
    async def test_visibility_is_owned_or_public(self, library_store) -> None:
        now = library_store.now()
        mine = await library_store.quizzes.add(
            title="Mine", subject="math", grade="5", user_id=1, created_at=now
        )
        public = await library_store.quizzes.add(
            title="Shared", subject="math", grade="5", user_id=2, created_at=now,
            is_public=True,
        )
        private = await library_store.quizzes.add(
            title="Secret", subject="math", grade="5", user_id=2, created_at=now
        )

        visible = await library_store.quizzes_for(1)
        assert [q.id for q in visible] == [mine.id, public.id]
        with pytest.raises(ResourceNotFoundError):
            await library_store.quizzes.require_visible(private.id, 1)

    @pytest.mark.asyncio
    async def test_progress_upsert_replaces_by_subject_and_topic(self, library_store) -> None:
        first = await library_store.upsert_progress(
            1, StudyProgressUpsert(subject="math", topic="fractions", mastery_level=40)
        )
        second = await library_store.upsert_progress(
            1, StudyProgressUpsert(subject="math", topic="fractions", mastery_level=80)
        )
        await library_store.upsert_progress(
            1, StudyProgressUpsert(subject="math", topic="decimals")
        )

        progress = await library_store.progress_for(1)
        assert second.id == first.id
        assert len(progress) == 2
        assert progress[0].mastery_level == 80

    @pytest.mark.asyncio
    async def test_require_missing_record(self, library_store) -> None:
        with pytest.raises(ResourceNotFoundError, match="Lesson 9 not found"):
            await library_store.lessons.require(9)


def test_attempt_score_cannot_exceed_total() -> None:
    with pytest.raises(ValidationError):
        QuizAttemptCreate(quiz_id=1, score=5, total_questions=3)
