"""Decode raw provider output into typed results, all or nothing.

Required fields are strict: one missing or empty required value anywhere in
a batch raises :class:`ContentValidationError` for the whole response. Soft
fields (difficulty, time limits, explanations, activities ...) are repaired
to defaults instead. Nothing partially typed ever leaves this module.
"""

from __future__ import annotations

import json
import re
from functools import singledispatch
from typing import Any

from schemas.generation import (
    ChatResult,
    ClassAnalysisResult,
    Difficulty,
    ExplanationResult,
    Flashcard,
    FlashcardsResult,
    GenerationResult,
    ImageResult,
    LessonPlan,
    LessonPlanResult,
    LessonSection,
    MindMapNode,
    MindMapResult,
    QuestionType,
    QuizFeedbackResult,
    QuizQuestion,
    QuizResult,
    StudentRow,
)
from services.generation.exceptions import ContentValidationError
from services.generation.requests import (
    DIFFICULTIES,
    QUESTION_TYPES,
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
from services.generation.sanitize import clamp_count


TIME_LIMIT_RANGE = (5, 300)
POINTS_RANGE = (0, 1000)
POINTS_BY_DIFFICULTY = {"easy": 100, "medium": 150, "hard": 200}
DEFAULT_TIME_LIMIT = 30
DEFAULT_EXPLANATION = "Review the key ideas behind this question."

_FENCE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


def parse_json_object(raw: str) -> dict[str, Any]:
    """Parse ``raw`` as a JSON object, tolerating a surrounding markdown fence."""
    text = _FENCE.sub("", raw.strip())
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ContentValidationError(f"Output is not valid JSON: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise ContentValidationError("Output is not a JSON object")
    return data


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _required_text(item: dict[str, Any], key: str, where: str) -> str:
    text = _text(item.get(key))
    if not text:
        raise ContentValidationError(f"{where}: '{key}' is missing or empty")
    return text


def _scalar_text(value: Any) -> str:
    """Stringify scalar answers (``True`` -> ``"True"``); containers are rejected."""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool | int | float):
        return str(value)
    return ""


def _required_list(data: dict[str, Any], key: str) -> list[Any]:
    value = data.get(key)
    if not isinstance(value, list) or not value:
        raise ContentValidationError(f"'{key}' must be a non-empty list")
    return value


def _soft_strings(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [s for s in (_text(v) for v in value) if s]


def _difficulty(value: Any) -> Difficulty:
    text = _text(value).lower()
    return Difficulty(text) if text in DIFFICULTIES else Difficulty.MEDIUM


def _item(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ContentValidationError(f"{where}: expected an object")
    return value


@singledispatch
def validate_output(request: object, raw: str) -> GenerationResult:
    """Decode ``raw`` for ``request``'s kind or raise ContentValidationError."""
    raise TypeError(f"No validator for {type(request).__name__}")


@validate_output.register
def _flashcards(request: FlashcardsRequest, raw: str) -> FlashcardsResult:
    items = _required_list(parse_json_object(raw), "flashcards")
    cards: list[Flashcard] = []
    for index, value in enumerate(items):
        where = f"flashcard {index + 1}"
        item = _item(value, where)
        cards.append(
            Flashcard(
                question=_required_text(item, "question", where),
                answer=_required_text(item, "answer", where),
                difficulty=_difficulty(item.get("difficulty")),
            )
        )
    return FlashcardsResult(flashcards=cards[: request.card_count])


def _quiz_question(item: dict[str, Any], where: str) -> QuizQuestion:
    question = _required_text(item, "question", where)
    correct = _scalar_text(item.get("correctAnswer"))
    if not correct:
        raise ContentValidationError(f"{where}: 'correctAnswer' is missing or empty")

    raw_options = item.get("options")
    options = (
        [s for s in (_scalar_text(v) for v in raw_options) if s]
        if isinstance(raw_options, list)
        else []
    )
    qtype = _text(item.get("type")).lower()
    if qtype not in QUESTION_TYPES:
        qtype = "multiple-choice" if options else "short-answer"
    if qtype == "multiple-choice":
        if len(options) < 2:
            raise ContentValidationError(f"{where}: multiple-choice needs 2+ options")
    else:
        options = []

    difficulty = _difficulty(item.get("difficulty"))
    return QuizQuestion(
        type=QuestionType(qtype),
        question=question,
        options=options or None,
        correct_answer=correct,
        explanation=_text(item.get("explanation")) or DEFAULT_EXPLANATION,
        difficulty=difficulty,
        time_limit=clamp_count(item.get("timeLimit"), *TIME_LIMIT_RANGE, DEFAULT_TIME_LIMIT),
        points=clamp_count(
            item.get("points"), *POINTS_RANGE, POINTS_BY_DIFFICULTY[difficulty.value]
        ),
        image_url=_text(item.get("imageUrl")) or None,
    )


@validate_output.register
def _quiz(request: QuizRequest, raw: str) -> QuizResult:
    items = _required_list(parse_json_object(raw), "questions")
    questions = [
        _quiz_question(_item(value, f"question {i + 1}"), f"question {i + 1}")
        for i, value in enumerate(items)
    ]
    return QuizResult(questions=questions[: request.question_count])


@validate_output.register
def _lesson_plan(request: LessonPlanRequest, raw: str) -> LessonPlanResult:
    data = parse_json_object(raw)
    title = _required_text(data, "title", "lesson plan")

    objectives = _required_list(data, "objectives")
    if any(not _text(o) for o in objectives):
        raise ContentValidationError("lesson plan: objectives must be non-empty text")

    sections_raw = _required_list(data, "structure")
    default_minutes = max(1, request.duration // len(sections_raw))
    sections: list[LessonSection] = []
    for index, value in enumerate(sections_raw):
        where = f"lesson section {index + 1}"
        item = _item(value, where)
        sections.append(
            LessonSection(
                section=_required_text(item, "section", where),
                duration=clamp_count(
                    item.get("duration"), 1, request.duration, default_minutes
                ),
                content=_text(item.get("content")),
                activities=_soft_strings(item.get("activities")),
            )
        )

    plan = LessonPlan(
        title=title,
        summary=_text(data.get("summary")),
        objectives=[_text(o) for o in objectives],
        structure=sections,
        materials=_soft_strings(data.get("materials")),
        assessment=_soft_strings(data.get("assessment")),
    )
    return LessonPlanResult(lesson_plan=plan)


def _mind_map_node(value: Any, path: str, level: int, depth: int) -> MindMapNode:
    item = _item(value, f"mind map node {path}")
    label = _required_text(item, "label", f"mind map node {path}")
    node_id = _text(item.get("id")) or path

    children: list[MindMapNode] = []
    raw_children = item.get("children")
    if level < depth and raw_children is not None:
        if not isinstance(raw_children, list):
            raise ContentValidationError(f"mind map node {path}: children must be a list")
        children = [
            _mind_map_node(child, f"{path}-{i + 1}", level + 1, depth)
            for i, child in enumerate(raw_children)
        ]
    return MindMapNode(id=node_id, label=label, children=children)


@validate_output.register
def _mind_map(request: MindMapRequest, raw: str) -> MindMapResult:
    root = _mind_map_node(parse_json_object(raw), "root", 0, request.depth)
    return MindMapResult(mind_map_data=root)


def _plain_text(raw: str, what: str) -> str:
    text = raw.strip()
    if not text:
        raise ContentValidationError(f"{what} is empty")
    return text


@validate_output.register
def _explanation(request: ExplanationRequest, raw: str) -> ExplanationResult:
    return ExplanationResult(explanation=_plain_text(raw, "explanation"))


@validate_output.register
def _chat(request: ChatRequest, raw: str) -> ChatResult:
    return ChatResult(response=_plain_text(raw, "tutor reply"))


@validate_output.register
def _image(request: ImageRequest, raw: str) -> ImageResult:
    url = raw.strip()
    if not url.startswith(("https://", "http://", "data:image/")):
        raise ContentValidationError("image: no usable url in provider output")
    return ImageResult(url=url)


@validate_output.register
def _quiz_feedback(request: QuizFeedbackRequest, raw: str) -> QuizFeedbackResult:
    return QuizFeedbackResult(analysis=_plain_text(raw, "quiz feedback"))


def student_rows(students: tuple[StudentResult, ...]) -> list[StudentRow]:
    return [
        StudentRow(
            id=s.student_id,
            name=s.name,
            score=s.score,
            total_questions=s.total_questions,
            average_score=s.percent,
            time_spent=s.time_spent,
        )
        for s in students
    ]


@validate_output.register
def _class_analysis(request: ClassAnalysisRequest, raw: str) -> ClassAnalysisResult:
    return ClassAnalysisResult(
        analysis=_plain_text(raw, "class analysis"),
        student_data=student_rows(request.students),
        quiz_title=request.quiz_title,
        subject=request.subject,
        grade=request.grade,
    )
