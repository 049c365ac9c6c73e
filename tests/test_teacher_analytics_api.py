"""API tests for teacher class analysis and the school analytics overview."""

from __future__ import annotations

import pytest
import pytest_asyncio

from schemas.user import UserRole
from services.generation.exceptions import ProviderError


@pytest_asyncio.fixture
async def school(create_user, library_store):
    """A teacher's math quiz with attempts from two students and the teacher."""
    teacher = await create_user("teacher1", role=UserRole.TEACHER)
    s1 = await create_user("student1")
    s2 = await create_user("student2")
    await create_user("parent1", role=UserRole.PARENT)
    principal = await create_user("principal1", role=UserRole.PRINCIPAL)

    now = library_store.now()
    quiz = await library_store.quizzes.add(
        title="Fractions check",
        subject="math",
        grade="grade-5",
        user_id=teacher.id,
        created_at=now,
    )
    for user, score in ((s1, 1), (s1, 3), (s2, 4), (teacher, 2)):
        await library_store.attempts.add(
            quiz_id=quiz.id,
            score=score,
            total_questions=4,
            time_spent=60,
            user_id=user.id,
            completed_at=now,
        )
    return {"teacher": teacher, "s1": s1, "s2": s2, "principal": principal, "quiz": quiz}


ANALYZE = "/api/v1/teacher/analyze-student-performance"


@pytest.mark.asyncio
async def test_class_analysis_uses_latest_student_attempts(
    async_client, school, auth_headers, fake_provider, interaction_store
) -> None:
    fake_provider.outcomes.append("The class is doing well overall.")

    resp = await async_client.post(
        ANALYZE, json={"quizId": school["quiz"].id}, headers=auth_headers(school["teacher"])
    )

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["analysis"] == "The class is doing well overall."
    assert data["quizTitle"] == "Fractions check"
    rows = {row["name"]: row for row in data["studentData"]}
    assert set(rows) == {"Student1 Tester", "Student2 Tester"}
    assert rows["Student1 Tester"]["averageScore"] == 75
    assert rows["Student2 Tester"]["totalQuestions"] == 4

    history = await interaction_store.list(school["teacher"].id, 10)
    assert history[0].kind == "class_analysis"
    assert history[0].response == "Class average: 88%"


@pytest.mark.asyncio
async def test_class_analysis_falls_back(async_client, school, auth_headers, fake_provider) -> None:
    fake_provider.outcomes.append(ProviderError(status_code=401))

    resp = await async_client.post(
        ANALYZE, json={"quizId": school["quiz"].id}, headers=auth_headers(school["teacher"])
    )

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert "class average of 88%" in data["analysis"]
    assert len(data["studentData"]) == 2


@pytest.mark.asyncio
async def test_students_cannot_analyze(async_client, school, auth_headers, fake_provider) -> None:
    resp = await async_client.post(
        ANALYZE, json={"quizId": school["quiz"].id}, headers=auth_headers(school["s1"])
    )
    assert resp.status_code == 403
    assert fake_provider.call_count == 0


@pytest.mark.asyncio
async def test_missing_quiz_id_is_input_error(async_client, school, auth_headers) -> None:
    resp = await async_client.post(ANALYZE, json={}, headers=auth_headers(school["teacher"]))
    assert resp.status_code == 400
    assert resp.json()["error"]["details"]["field"] == "quizId"


@pytest.mark.asyncio
async def test_quiz_without_student_attempts_is_404(
    async_client, create_user, library_store, auth_headers
) -> None:
    teacher = await create_user("teacher2", role=UserRole.TEACHER)
    quiz = await library_store.quizzes.add(
        title="Empty", subject="art", grade="grade-3", user_id=teacher.id,
        created_at=library_store.now(),
    )

    resp = await async_client.post(ANALYZE, json={"quizId": quiz.id}, headers=auth_headers(teacher))

    assert resp.status_code == 404
    assert resp.json()["message"] == "No student attempts found for this quiz"


@pytest.mark.asyncio
async def test_analytics_overview(async_client, school, auth_headers) -> None:
    resp = await async_client.get(
        "/api/v1/analytics/overview", headers=auth_headers(school["principal"])
    )

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["totalStudents"] == 2
    assert data["totalTeachers"] == 1
    assert data["totalParents"] == 1
    assert data["totalQuizAttempts"] == 4
    assert data["averagePerformance"] == 62.5
    assert data["studentsNeedingAttention"] == 1
    assert data["subjectPerformance"] == {"math": 62.5}


@pytest.mark.asyncio
async def test_analytics_on_empty_school(async_client, create_user, auth_headers) -> None:
    admin = await create_user("admin1", role=UserRole.ADMIN)

    data = (
        await async_client.get("/api/v1/analytics/overview", headers=auth_headers(admin))
    ).json()["data"]

    assert data["totalQuizAttempts"] == 0
    assert data["averagePerformance"] == 0.0
    assert data["subjectPerformance"] == {}


@pytest.mark.asyncio
@pytest.mark.parametrize("username", ["teacher1", "student1"])
async def test_analytics_is_staff_only(async_client, school, user_store, auth_headers, username) -> None:
    user = await user_store.get_by_username(username)
    resp = await async_client.get("/api/v1/analytics/overview", headers=auth_headers(user))
    assert resp.status_code == 403
