"""Tests for static fallback content."""

from __future__ import annotations

import json

import pytest

from schemas.generation import QuestionType
from services.generation.fallbacks import build_fallback
from services.generation.requests import (
    ChatRequest,
    ClassAnalysisRequest,
    ExplanationRequest,
    FlashcardsRequest,
    ImageRequest,
    LessonPlanRequest,
    MindMapRequest,
    QuizFeedbackRequest,
    QuizRequest,
    StudentResult,
)
from services.generation.validators import validate_output


def _keys(model) -> set[str]:
    return set(model.model_dump(by_alias=True))


# request -> a provider payload the validator accepts for it
VALID_OUTPUTS = [
    (
        FlashcardsRequest.build("light", "science", "grade-7", 2),
        json.dumps({"flashcards": [{"question": "Q", "answer": "A"}]}),
    ),
    (
        QuizRequest.build("fractions", "math", "grade-5"),
        json.dumps(
            {"questions": [{"question": "Q", "correctAnswer": "A", "options": ["A", "B"]}]}
        ),
    ),
    (
        LessonPlanRequest.build("volcanoes", "science", "grade-4"),
        json.dumps({"title": "T", "objectives": ["o"], "structure": [{"section": "s"}]}),
    ),
    (MindMapRequest.build("cells", "biology"), json.dumps({"label": "Cells"})),
    (ExplanationRequest.build("mitosis"), "Cells divide."),
    (ChatRequest.build("hello"), "Hi there!"),
    (ImageRequest.build("volcano", "science"), "https://img.example/v.png"),
    (
        QuizFeedbackRequest.build(
            "sums", "math", [{"question": "1+1?", "correctAnswer": "2"}], ["2"], "1/1"
        ),
        "Great job.",
    ),
    (
        ClassAnalysisRequest.build(
            "Fractions", "math", "grade-5", [StudentResult(1, "Ana", 3, 4)]
        ),
        "The class did well.",
    ),
]


@pytest.mark.parametrize(
    ("request_obj", "raw"), VALID_OUTPUTS, ids=lambda v: type(v).__name__
)
def test_fallback_has_the_same_shape_as_validated_content(request_obj, raw) -> None:
    real = validate_output(request_obj, raw)
    fallback = build_fallback(request_obj)

    assert type(fallback) is type(real)
    assert _keys(fallback) == _keys(real)


def test_flashcard_fallback_has_two_cards_echoing_subject() -> None:
    result = build_fallback(FlashcardsRequest.build("light", "science", "grade-7", 5))
    assert len(result.flashcards) == 2
    assert "science" in result.flashcards[0].question


def test_flashcard_fallback_respects_a_smaller_count() -> None:
    result = build_fallback(FlashcardsRequest.build("light", "science", "grade-7", 1))
    assert len(result.flashcards) == 1


def test_quiz_fallback_is_the_gamified_set() -> None:
    result = build_fallback(QuizRequest.build("fractions", "math", "grade-5"))

    assert len(result.questions) == 4
    assert [q.points for q in result.questions] == [100, 150, 200, 250]
    assert result.questions[1].type is QuestionType.TRUE_FALSE
    assert all("fractions" in q.question for q in result.questions)


def test_lesson_fallback_sections_add_up_to_duration() -> None:
    request = LessonPlanRequest.build("volcanoes", "science", "grade-4", duration=50)
    plan = build_fallback(request).lesson_plan

    assert len(plan.structure) == 3
    assert sum(s.duration for s in plan.structure) == 50


@pytest.mark.parametrize(("depth", "has_leaves"), [(1, False), (2, True), (5, True)])
def test_mind_map_fallback_respects_depth(depth: int, has_leaves: bool) -> None:
    root = build_fallback(MindMapRequest.build("cells", "biology", depth)).mind_map_data

    assert root.label == "cells"
    assert len(root.children) == 3
    assert bool(root.children[0].children) is has_leaves


def test_image_fallback_uses_placeholder_template() -> None:
    result = build_fallback(
        ImageRequest.build("water cycle", "science"),
        image_placeholder="https://placeholder.test/?q={topic}",
    )
    assert result.url == "https://placeholder.test/?q=water+cycle"


def test_quiz_feedback_fallback_reports_local_score() -> None:
    request = QuizFeedbackRequest.build(
        "sums",
        "math",
        [{"question": "1+1?", "correctAnswer": "2"}, {"question": "2+2?", "correctAnswer": "4"}],
        ["2", "5"],
        "1/2",
    )
    analysis = build_fallback(request).analysis
    assert "50%" in analysis
    assert "1 of 2" in analysis


def test_class_analysis_fallback_carries_student_rows() -> None:
    request = ClassAnalysisRequest.build(
        "Fractions",
        "math",
        "grade-5",
        [StudentResult(1, "Ana", 1, 4), StudentResult(2, "Ben", 4, 4)],
    )
    result = build_fallback(request)

    assert [row.average_score for row in result.student_data] == [25, 100]
    assert "1 student(s) scored below 60%" in result.analysis
    assert result.quiz_title == "Fractions"
