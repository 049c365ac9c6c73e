"""Schemas for saved learning content: decks, quizzes, lessons, mind maps, progress.

Stored records are returned as-is to their owners; wire keys are camelCase.
"""

from datetime import datetime
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from schemas.generation import Difficulty, QuizQuestion


class _LibraryModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class _Owned(_LibraryModel):
    id: int
    user_id: int
    created_at: datetime


# ---------------------------------------------------------------------------
# Flashcards
# ---------------------------------------------------------------------------


class FlashcardDeckCreate(_LibraryModel):
    title: str = Field(..., min_length=1, max_length=200)
    subject: str = Field(..., min_length=1, max_length=100)
    grade: str = Field(..., min_length=1, max_length=32)
    description: str | None = None
    is_public: bool = False


class FlashcardDeck(FlashcardDeckCreate, _Owned):
    pass


class FlashcardCreate(_LibraryModel):
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)
    difficulty: Difficulty = Difficulty.MEDIUM


class FlashcardRecord(FlashcardCreate):
    id: int
    deck_id: int
    created_at: datetime


# ---------------------------------------------------------------------------
# Quizzes
# ---------------------------------------------------------------------------


class QuizCreate(_LibraryModel):
    title: str = Field(..., min_length=1, max_length=200)
    subject: str = Field(..., min_length=1, max_length=100)
    grade: str = Field(..., min_length=1, max_length=32)
    description: str | None = None
    questions: list[QuizQuestion] = Field(default_factory=list)
    time_limit: int | None = Field(default=None, ge=1, description="Minutes")
    is_public: bool = False


class Quiz(QuizCreate, _Owned):
    pass


class QuizAttemptCreate(_LibraryModel):
    quiz_id: int
    score: int = Field(..., ge=0)
    total_questions: int = Field(..., ge=1)
    answers: list[Any] = Field(default_factory=list)
    time_spent: int | None = Field(default=None, ge=0, description="Seconds")

    @model_validator(mode="after")
    def _score_within_total(self) -> Self:
        if self.score > self.total_questions:
            raise ValueError("score cannot exceed totalQuestions")
        return self


class QuizAttempt(QuizAttemptCreate):
    id: int
    user_id: int
    completed_at: datetime

    @property
    def percent(self) -> float:
        return self.score * 100 / self.total_questions


# ---------------------------------------------------------------------------
# Lessons and mind maps
# ---------------------------------------------------------------------------


class LessonCreate(_LibraryModel):
    title: str = Field(..., min_length=1, max_length=200)
    subject: str = Field(..., min_length=1, max_length=100)
    grade: str = Field(..., min_length=1, max_length=32)
    description: str | None = None
    content: dict[str, Any] = Field(default_factory=dict)
    objectives: list[str] = Field(default_factory=list)
    duration: int | None = Field(default=None, ge=1, description="Minutes")
    is_public: bool = False


class Lesson(LessonCreate, _Owned):
    pass


class MindMapCreate(_LibraryModel):
    title: str = Field(..., min_length=1, max_length=200)
    subject: str = Field(..., min_length=1, max_length=100)
    data: dict[str, Any] = Field(default_factory=dict)
    is_public: bool = False


class MindMap(MindMapCreate, _Owned):
    pass


# ---------------------------------------------------------------------------
# Study progress and analytics
# ---------------------------------------------------------------------------


class StudyProgressUpsert(_LibraryModel):
    subject: str = Field(..., min_length=1, max_length=100)
    topic: str = Field(..., min_length=1, max_length=200)
    mastery_level: int = Field(default=0, ge=0, le=100)
    time_spent: int = Field(default=0, ge=0, description="Minutes")


class StudyProgress(StudyProgressUpsert):
    id: int
    user_id: int
    last_studied: datetime


class AnalyticsOverview(_LibraryModel):
    total_students: int
    total_teachers: int
    total_parents: int
    total_quiz_attempts: int
    average_performance: float = Field(description="Mean attempt percentage")
    students_needing_attention: int = Field(
        description="Students whose average attempt percentage is below 60"
    )
    subject_performance: dict[str, float] = Field(default_factory=dict)
