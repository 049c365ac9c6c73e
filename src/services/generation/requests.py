"""Typed generation requests, one frozen variant per content kind.

Every ``build`` classmethod is the single place where a kind's raw inbound
fields are normalized and clamped. Empty required text raises
:class:`InputError` before anything else happens, so a request object that
exists is always safe to render into a prompt.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from services.generation.exceptions import InputError
from services.generation.sanitize import clamp_count, normalize, pick_choice


class GenerationKind(str, Enum):
    """Tag shared by requests, results and interaction records."""

    FLASHCARDS = "flashcards"
    QUIZ = "quiz"
    LESSON_PLAN = "lesson_plan"
    MIND_MAP = "mind_map"
    EXPLANATION = "explanation"
    CHAT = "chat"
    IMAGE = "image"
    QUIZ_FEEDBACK = "quiz_feedback"
    CLASS_ANALYSIS = "class_analysis"


DIFFICULTIES: tuple[str, ...] = ("easy", "medium", "hard")
QUESTION_TYPES: tuple[str, ...] = ("multiple-choice", "true-false", "short-answer")
DEFAULT_QUESTION_TYPES: tuple[str, ...] = ("multiple-choice", "true-false")
EXPLANATION_LEVELS: tuple[str, ...] = ("kid", "teen", "parent", "teacher")
LEARNING_STYLES: tuple[str, ...] = ("visual", "auditory", "kinesthetic", "mixed")
CHAT_ROLES: tuple[str, ...] = ("user", "assistant")

# (minimum, maximum, default)
CARD_COUNT_RANGE = (1, 20, 10)
QUESTION_COUNT_RANGE = (1, 20, 10)
LESSON_DURATION_RANGE = (5, 240, 45)
MIND_MAP_DEPTH_RANGE = (1, 5, 3)
MAX_CHAT_HISTORY = 20
DEFAULT_USER_LEVEL = "middle school"


def _required(field: str, value: Any) -> str:
    text = normalize(value)
    if not text:
        raise InputError(field)
    return text


def _flag(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() not in {"false", "0", "no", "off", ""}
    return bool(value)


@dataclass(frozen=True, slots=True)
class FlashcardsRequest:
    content: str
    subject: str
    grade_level: str
    card_count: int
    kind: GenerationKind = GenerationKind.FLASHCARDS

    @classmethod
    def build(
        cls,
        content: Any,
        subject: Any,
        grade_level: Any,
        card_count: Any = None,
    ) -> FlashcardsRequest:
        return cls(
            content=_required("content", content),
            subject=_required("subject", subject),
            grade_level=_required("gradeLevel", grade_level),
            card_count=clamp_count(card_count, *CARD_COUNT_RANGE),
        )


@dataclass(frozen=True, slots=True)
class QuizRequest:
    topic: str
    subject: str
    grade_level: str
    question_count: int
    question_types: tuple[str, ...]
    kind: GenerationKind = GenerationKind.QUIZ

    @classmethod
    def build(
        cls,
        topic: Any,
        subject: Any,
        grade_level: Any,
        question_count: Any = None,
        question_types: Iterable[Any] | None = None,
    ) -> QuizRequest:
        kept: list[str] = []
        for raw in question_types or ():
            qtype = normalize(raw).lower()
            if qtype in QUESTION_TYPES and qtype not in kept:
                kept.append(qtype)
        return cls(
            topic=_required("topic", topic),
            subject=_required("subject", subject),
            grade_level=_required("gradeLevel", grade_level),
            question_count=clamp_count(question_count, *QUESTION_COUNT_RANGE),
            question_types=tuple(kept) or DEFAULT_QUESTION_TYPES,
        )


@dataclass(frozen=True, slots=True)
class LessonPlanRequest:
    topic: str
    subject: str
    grade_level: str
    duration: int
    learning_style: str
    include_visuals: bool
    kind: GenerationKind = GenerationKind.LESSON_PLAN

    @classmethod
    def build(
        cls,
        topic: Any,
        subject: Any,
        grade_level: Any,
        duration: Any = None,
        learning_style: Any = None,
        include_visuals: Any = None,
    ) -> LessonPlanRequest:
        return cls(
            topic=_required("topic", topic),
            subject=_required("subject", subject),
            grade_level=_required("gradeLevel", grade_level),
            duration=clamp_count(duration, *LESSON_DURATION_RANGE),
            learning_style=pick_choice(learning_style, LEARNING_STYLES, "mixed"),
            include_visuals=_flag(include_visuals, default=True),
        )


@dataclass(frozen=True, slots=True)
class MindMapRequest:
    topic: str
    subject: str
    depth: int
    kind: GenerationKind = GenerationKind.MIND_MAP

    @classmethod
    def build(cls, topic: Any, subject: Any, depth: Any = None) -> MindMapRequest:
        return cls(
            topic=_required("topic", topic),
            subject=_required("subject", subject),
            depth=clamp_count(depth, *MIND_MAP_DEPTH_RANGE),
        )


@dataclass(frozen=True, slots=True)
class ExplanationRequest:
    text: str
    level: str
    context: str = ""
    kind: GenerationKind = GenerationKind.EXPLANATION

    @classmethod
    def build(
        cls, text: Any, level: Any = None, context: Any = None
    ) -> ExplanationRequest:
        return cls(
            text=_required("text", text),
            level=pick_choice(level, EXPLANATION_LEVELS, "teen"),
            context=normalize(context),
        )


@dataclass(frozen=True, slots=True)
class ChatMessage:
    role: str
    content: str


@dataclass(frozen=True, slots=True)
class ChatRequest:
    message: str
    history: tuple[ChatMessage, ...]
    user_level: str
    kind: GenerationKind = GenerationKind.CHAT

    @classmethod
    def build(
        cls,
        message: Any,
        history: Iterable[Mapping[str, Any]] | None = None,
        user_level: Any = None,
    ) -> ChatRequest:
        turns: list[ChatMessage] = []
        for item in history or ():
            if not isinstance(item, Mapping):
                continue
            content = normalize(item.get("content"))
            if not content:
                continue
            role = pick_choice(item.get("role"), CHAT_ROLES, "user")
            turns.append(ChatMessage(role=role, content=content))
        return cls(
            message=_required("message", message),
            history=tuple(turns[-MAX_CHAT_HISTORY:]),
            user_level=normalize(user_level) or DEFAULT_USER_LEVEL,
        )


@dataclass(frozen=True, slots=True)
class ImageRequest:
    topic: str
    subject: str
    kind: GenerationKind = GenerationKind.IMAGE

    @classmethod
    def build(cls, topic: Any, subject: Any) -> ImageRequest:
        return cls(topic=_required("topic", topic), subject=_required("subject", subject))


@dataclass(frozen=True, slots=True)
class AnsweredQuestion:
    question: str
    correct_answer: str
    user_answer: str
    explanation: str

    @property
    def is_correct(self) -> bool:
        return self.user_answer == self.correct_answer


@dataclass(frozen=True, slots=True)
class QuizFeedbackRequest:
    topic: str
    subject: str
    score: str
    questions: tuple[AnsweredQuestion, ...]
    kind: GenerationKind = GenerationKind.QUIZ_FEEDBACK

    @property
    def correct_count(self) -> int:
        return sum(1 for q in self.questions if q.is_correct)

    @property
    def percent(self) -> int:
        # round-half-up, matching how scores are shown to students
        return int(self.correct_count * 100 / len(self.questions) + 0.5)

    @classmethod
    def build(
        cls,
        topic: Any,
        subject: Any,
        questions: Iterable[Mapping[str, Any]] | None,
        user_answers: Iterable[Any] | None,
        score: Any,
    ) -> QuizFeedbackRequest:
        topic_text = _required("topic", topic)
        subject_text = _required("subject", subject)
        score_text = _required("score", score)
        answers = list(user_answers or ())
        if not answers:
            raise InputError("userAnswers")
        graded: list[AnsweredQuestion] = []
        for index, item in enumerate(questions or ()):
            if not isinstance(item, Mapping):
                continue
            question = normalize(item.get("question"))
            if not question:
                continue
            given = normalize(answers[index]) if index < len(answers) else ""
            graded.append(
                AnsweredQuestion(
                    question=question,
                    correct_answer=normalize(item.get("correctAnswer")),
                    user_answer=given or "No answer provided",
                    explanation=normalize(item.get("explanation"))
                    or "No explanation provided",
                )
            )
        if not graded:
            raise InputError("questions")
        return cls(
            topic=topic_text,
            subject=subject_text,
            score=score_text,
            questions=tuple(graded),
        )


@dataclass(frozen=True, slots=True)
class StudentResult:
    student_id: int
    name: str
    score: int
    total_questions: int
    time_spent: int | None = None

    @property
    def percent(self) -> int:
        if self.total_questions <= 0:
            return 0
        return int(self.score * 100 / self.total_questions + 0.5)


@dataclass(frozen=True, slots=True)
class ClassAnalysisRequest:
    quiz_title: str
    subject: str
    grade: str
    students: tuple[StudentResult, ...]
    kind: GenerationKind = GenerationKind.CLASS_ANALYSIS

    @property
    def class_average(self) -> int:
        if not self.students:
            return 0
        return int(sum(s.percent for s in self.students) / len(self.students) + 0.5)

    @classmethod
    def build(
        cls,
        quiz_title: Any,
        subject: Any,
        grade: Any,
        students: Iterable[StudentResult],
    ) -> ClassAnalysisRequest:
        return cls(
            quiz_title=_required("title", quiz_title),
            subject=_required("subject", subject),
            grade=normalize(grade) or "unspecified grade",
            students=tuple(students),
        )


GenerationRequest = (
    FlashcardsRequest
    | QuizRequest
    | LessonPlanRequest
    | MindMapRequest
    | ExplanationRequest
    | ChatRequest
    | ImageRequest
    | QuizFeedbackRequest
    | ClassAnalysisRequest
)
