"""API tests for the AI generation endpoints."""

from __future__ import annotations

import json

import pytest
import pytest_asyncio

from services.generation.exceptions import ProviderError


FLASHCARDS_BODY = {
    "content": "Photosynthesis converts light to energy",
    "subject": "science",
    "gradeLevel": "grade-7",
    "numberOfCards": 5,
}


def five_cards() -> str:
    return json.dumps(
        {
            "flashcards": [
                {"question": f"Q{i}?", "answer": f"A{i}", "difficulty": "easy"}
                for i in range(5)
            ]
        }
    )


@pytest_asyncio.fixture
async def student(create_user):
    return await create_user("student1", grade="grade 5")


@pytest.fixture
def headers(student, auth_headers) -> dict[str, str]:
    return auth_headers(student)


@pytest.mark.asyncio
async def test_generate_flashcards_returns_envelope(async_client, headers, fake_provider) -> None:
    fake_provider.outcomes.append(five_cards())

    resp = await async_client.post(
        "/api/v1/ai/generate-flashcards", json=FLASHCARDS_BODY, headers=headers
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    cards = body["data"]["flashcards"]
    assert len(cards) == 5
    assert set(cards[0]) == {"question", "answer", "difficulty"}


@pytest.mark.asyncio
async def test_fallback_is_a_normal_success(async_client, headers, fake_provider, sleeper) -> None:
    fake_provider.outcomes.extend(ProviderError(status_code=429) for _ in range(3))

    resp = await async_client.post(
        "/api/v1/ai/generate-flashcards", json=FLASHCARDS_BODY, headers=headers
    )

    assert resp.status_code == 200
    assert len(resp.json()["data"]["flashcards"]) == 2
    assert fake_provider.call_count == 3
    assert sleeper.waits == [2.0, 4.0]


@pytest.mark.asyncio
async def test_blank_topic_is_400_before_provider_call(async_client, headers, fake_provider) -> None:
    resp = await async_client.post(
        "/api/v1/ai/generate-mind-map",
        json={"topic": "", "subject": "math", "depth": 2},
        headers=headers,
    )

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["type"] == "input_error"
    assert body["error"]["details"]["field"] == "topic"
    assert fake_provider.call_count == 0


@pytest.mark.asyncio
async def test_missing_body_fields_are_input_errors(async_client, headers) -> None:
    resp = await async_client.post("/api/v1/ai/generate-quiz", json={}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["type"] == "input_error"


@pytest.mark.asyncio
async def test_quiz_with_one_bad_item_serves_static_quiz(async_client, headers, fake_provider) -> None:
    items = [{"question": f"Q{i}", "options": ["A", "B"], "correctAnswer": "A"} for i in range(10)]
    items[4].pop("correctAnswer")
    fake_provider.outcomes.append(json.dumps({"questions": items}))

    resp = await async_client.post(
        "/api/v1/ai/generate-quiz",
        json={"topic": "fractions", "subject": "math", "gradeLevel": "grade-5", "numberOfQuestions": 10},
        headers=headers,
    )

    assert resp.status_code == 200
    questions = resp.json()["data"]["questions"]
    assert len(questions) == 4
    assert {"correctAnswer", "timeLimit", "points", "difficulty"} <= set(questions[0])


@pytest.mark.asyncio
async def test_lesson_and_mind_map_use_camel_case_keys(async_client, headers, fake_provider) -> None:
    fake_provider.outcomes.extend([ProviderError(status_code=401), ProviderError(status_code=401)])

    lesson = await async_client.post(
        "/api/v1/ai/generate-lesson",
        json={"topic": "volcanoes", "subject": "science", "gradeLevel": "grade-4", "duration": 30},
        headers=headers,
    )
    mind_map = await async_client.post(
        "/api/v1/ai/generate-mind-map",
        json={"topic": "cells", "subject": "biology"},
        headers=headers,
    )

    assert lesson.status_code == 200
    assert "lessonPlan" in lesson.json()["data"]
    assert mind_map.json()["data"]["mindMapData"]["label"] == "cells"


@pytest.mark.asyncio
async def test_chat_passes_user_grade_as_level(async_client, headers, fake_provider) -> None:
    fake_provider.outcomes.append("Fractions are parts of a whole.")

    resp = await async_client.post(
        "/api/v1/ai/chat",
        json={"message": "What is a fraction?", "context": [{"role": "user", "content": "hi"}]},
        headers=headers,
    )

    assert resp.json()["data"] == {"response": "Fractions are parts of a whole."}
    assert "grade 5" in fake_provider.calls[0].messages[0]["content"]


@pytest.mark.asyncio
async def test_chat_interaction_summaries_are_bounded(
    async_client, headers, fake_provider, interaction_store, student
) -> None:
    fake_provider.outcomes.append("r" * 500)

    await async_client.post("/api/v1/ai/chat", json={"message": "m" * 500}, headers=headers)

    entry = (await interaction_store.list(student.id, 1))[0]
    assert entry.prompt == "m" * 100 + "..."
    assert entry.response == "r" * 100 + "..."


@pytest.mark.asyncio
async def test_explain_and_image(async_client, headers, fake_provider) -> None:
    fake_provider.outcomes.extend(["Plants eat light.", "https://img.example/p.png"])

    explain = await async_client.post(
        "/api/v1/ai/explain", json={"text": "photosynthesis", "level": "kid"}, headers=headers
    )
    image = await async_client.post(
        "/api/v1/ai/generate-image", json={"topic": "plants", "subject": "science"}, headers=headers
    )

    assert explain.json()["data"]["explanation"] == "Plants eat light."
    assert image.json()["data"]["url"] == "https://img.example/p.png"


@pytest.mark.asyncio
async def test_analyze_quiz_results(async_client, headers, fake_provider) -> None:
    fake_provider.outcomes.append("Great effort!")

    resp = await async_client.post(
        "/api/v1/ai/analyze-quiz-results",
        json={
            "topic": "sums",
            "subject": "math",
            "questions": [{"question": "1+1?", "correctAnswer": "2"}],
            "userAnswers": ["2"],
            "score": "1/1",
        },
        headers=headers,
    )

    assert resp.status_code == 200
    assert resp.json()["data"] == {"analysis": "Great effort!"}


@pytest.mark.asyncio
async def test_interactions_are_recorded_newest_first(async_client, headers, fake_provider) -> None:
    fake_provider.outcomes.extend([five_cards(), ProviderError(status_code=500), ProviderError(status_code=500), ProviderError(status_code=500)])
    await async_client.post("/api/v1/ai/generate-flashcards", json=FLASHCARDS_BODY, headers=headers)
    await async_client.post(
        "/api/v1/ai/explain", json={"text": "gravity"}, headers=headers
    )

    resp = await async_client.get("/api/v1/ai/interactions", headers=headers)

    entries = resp.json()["data"]
    assert [e["kind"] for e in entries] == ["explanation", "flashcards"]
    assert entries[0]["context"]["usedFallback"] is True
    assert entries[0]["context"]["errorCode"] == "provider_transient"
    assert entries[1]["prompt"].startswith("Generate 5 flashcards for science (grade-7)")
    assert entries[1]["response"] == "Generated 5 flashcards"
    assert "userId" in entries[1]


@pytest.mark.asyncio
@pytest.mark.parametrize(("limit", "expected"), [("1", 1), ("0", 1), ("abc", 2), ("500", 2)])
async def test_interaction_limit_is_clamped(async_client, headers, fake_provider, limit, expected) -> None:
    fake_provider.outcomes.extend(["one", "two"])
    for text in ("a", "b"):
        await async_client.post("/api/v1/ai/explain", json={"text": text}, headers=headers)

    resp = await async_client.get(f"/api/v1/ai/interactions?limit={limit}", headers=headers)

    assert len(resp.json()["data"]) == expected


@pytest.mark.asyncio
async def test_interactions_are_private(async_client, headers, fake_provider, create_user, auth_headers) -> None:
    fake_provider.outcomes.append("one")
    await async_client.post("/api/v1/ai/explain", json={"text": "a"}, headers=headers)
    other = await create_user("student2")

    resp = await async_client.get("/api/v1/ai/interactions", headers=auth_headers(other))

    assert resp.json()["data"] == []


@pytest.mark.asyncio
async def test_ai_routes_require_authentication(async_client) -> None:
    resp = await async_client.post("/api/v1/ai/generate-flashcards", json=FLASHCARDS_BODY)
    assert resp.status_code == 401
