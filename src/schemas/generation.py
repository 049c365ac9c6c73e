"""Wire schemas for the AI generation endpoints.

Request bodies keep every field optional: presence and emptiness of free text
is decided by the gateway's request builders so that a missing field and a
blank one produce the same ``input_error``. Result models are shared by real
and fallback content, and serialize with the camelCase keys the web client
reads (``correctAnswer``, ``mindMapData`` ...).
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


Number = int | float | str


class Difficulty(str, Enum):
    """Difficulty levels for flashcards and quiz questions."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    TRUE_FALSE = "true-false"
    SHORT_ANSWER = "short-answer"


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class FlashcardsBody(_CamelModel):
    content: str | None = None
    subject: str | None = None
    grade_level: str | None = Field(default=None, alias="gradeLevel")
    number_of_cards: Number | None = Field(
        default=None,
        validation_alias=AliasChoices("numberOfCards", "cardCount", "number_of_cards"),
        description="Requested card count, clamped to 1-20 (default 10)",
    )


class QuizBody(_CamelModel):
    topic: str | None = None
    subject: str | None = None
    grade_level: str | None = Field(default=None, alias="gradeLevel")
    number_of_questions: Number | None = Field(default=None, alias="numberOfQuestions")
    question_types: list[Any] | None = Field(default=None, alias="questionTypes")


class LessonPlanBody(_CamelModel):
    topic: str | None = None
    subject: str | None = None
    grade_level: str | None = Field(default=None, alias="gradeLevel")
    duration: Number | None = Field(
        default=None, description="Lesson length in minutes, clamped to 5-240"
    )
    learning_style: str | None = Field(default=None, alias="learningStyle")
    include_visuals: bool | str | None = Field(default=None, alias="includeVisuals")


class MindMapBody(_CamelModel):
    topic: str | None = None
    subject: str | None = None
    depth: Number | None = None


class ExplainBody(_CamelModel):
    text: str | None = None
    level: str | None = None
    context: str | None = None


class ChatBody(_CamelModel):
    message: str | None = None
    context: list[dict[str, Any]] | None = Field(
        default=None, description="Previous turns as {role, content} objects"
    )


class ImageBody(_CamelModel):
    topic: str | None = None
    subject: str | None = None


class QuizFeedbackBody(_CamelModel):
    topic: str | None = None
    subject: str | None = None
    questions: list[dict[str, Any]] | None = None
    user_answers: list[Any] | None = Field(default=None, alias="userAnswers")
    score: Number | None = None


class ClassAnalysisBody(_CamelModel):
    quiz_id: int | None = Field(default=None, alias="quizId")


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class Flashcard(_CamelModel):
    question: str
    answer: str
    difficulty: Difficulty = Difficulty.MEDIUM


class FlashcardsResult(_CamelModel):
    flashcards: list[Flashcard]


class QuizQuestion(_CamelModel):
    type: QuestionType
    question: str
    options: list[str] | None = None
    correct_answer: str = Field(alias="correctAnswer")
    explanation: str
    difficulty: Difficulty = Difficulty.MEDIUM
    time_limit: int = Field(default=30, alias="timeLimit", description="Seconds")
    points: int = 100
    image_url: str | None = Field(default=None, alias="imageUrl")


class QuizResult(_CamelModel):
    questions: list[QuizQuestion]


class LessonSection(_CamelModel):
    section: str
    duration: int = Field(description="Minutes")
    content: str = ""
    activities: list[str] = Field(default_factory=list)


class LessonPlan(_CamelModel):
    title: str
    summary: str = ""
    objectives: list[str]
    structure: list[LessonSection]
    materials: list[str] = Field(default_factory=list)
    assessment: list[str] = Field(default_factory=list)


class LessonPlanResult(_CamelModel):
    lesson_plan: LessonPlan = Field(alias="lessonPlan")


class MindMapNode(_CamelModel):
    id: str
    label: str
    children: list[MindMapNode] = Field(default_factory=list)


class MindMapResult(_CamelModel):
    mind_map_data: MindMapNode = Field(alias="mindMapData")


class ExplanationResult(_CamelModel):
    explanation: str


class ChatResult(_CamelModel):
    response: str


class ImageResult(_CamelModel):
    url: str


class QuizFeedbackResult(_CamelModel):
    analysis: str


class StudentRow(_CamelModel):
    id: int
    name: str
    score: int
    total_questions: int = Field(alias="totalQuestions")
    average_score: int = Field(alias="averageScore", description="Percent correct")
    time_spent: int | None = Field(default=None, alias="timeSpent")


class ClassAnalysisResult(_CamelModel):
    analysis: str
    student_data: list[StudentRow] = Field(alias="studentData")
    quiz_title: str = Field(alias="quizTitle")
    subject: str
    grade: str


GenerationResult = (
    FlashcardsResult
    | QuizResult
    | LessonPlanResult
    | MindMapResult
    | ExplanationResult
    | ChatResult
    | ImageResult
    | QuizFeedbackResult
    | ClassAnalysisResult
)
