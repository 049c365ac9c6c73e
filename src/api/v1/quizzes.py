"""Saved quizzes and the attempts students make at them."""

import logging

from fastapi import APIRouter, status

from dependencies.auth import CurrentUser
from dependencies.services import Library
from schemas.api import ApiResponse
from schemas.library import Quiz, QuizAttempt, QuizAttemptCreate, QuizCreate


router = APIRouter(prefix="/quizzes", tags=["quizzes"])
attempts_router = APIRouter(prefix="/quiz-attempts", tags=["quizzes"])

logger = logging.getLogger(__name__)


@router.get("", response_model=ApiResponse[list[Quiz]])
async def list_quizzes(
    current_user: CurrentUser, library: Library
) -> ApiResponse[list[Quiz]]:
    quizzes = await library.quizzes_for(current_user.id)
    return ApiResponse(data=quizzes, message="Quizzes retrieved")


@router.post(
    "", response_model=ApiResponse[Quiz], status_code=status.HTTP_201_CREATED
)
async def create_quiz(
    payload: QuizCreate, current_user: CurrentUser, library: Library
) -> ApiResponse[Quiz]:
    quiz = await library.quizzes.add(
        **payload.model_dump(), user_id=current_user.id, created_at=library.now()
    )
    return ApiResponse(data=quiz, message="Quiz created")


@router.get("/{quiz_id}", response_model=ApiResponse[Quiz])
async def get_quiz(
    quiz_id: int, current_user: CurrentUser, library: Library
) -> ApiResponse[Quiz]:
    """A single quiz; private quizzes of other users are reported as missing."""
    quiz = await library.quizzes.require_visible(quiz_id, current_user.id)
    return ApiResponse(data=quiz, message="Quiz retrieved")


@attempts_router.get("", response_model=ApiResponse[list[QuizAttempt]])
async def list_attempts(
    current_user: CurrentUser, library: Library
) -> ApiResponse[list[QuizAttempt]]:
    """The caller's own attempts, oldest first."""
    attempts = await library.attempts_by_user(current_user.id)
    return ApiResponse(data=attempts, message="Quiz attempts retrieved")


@attempts_router.post(
    "", response_model=ApiResponse[QuizAttempt], status_code=status.HTTP_201_CREATED
)
async def record_attempt(
    payload: QuizAttemptCreate, current_user: CurrentUser, library: Library
) -> ApiResponse[QuizAttempt]:
    """Record a finished attempt at a quiz the caller can see."""
    await library.quizzes.require_visible(payload.quiz_id, current_user.id)
    attempt = await library.attempts.add(
        **payload.model_dump(), user_id=current_user.id, completed_at=library.now()
    )
    logger.info(
        "Quiz attempt recorded: quiz_id=%s user_id=%s score=%s/%s",
        attempt.quiz_id,
        attempt.user_id,
        attempt.score,
        attempt.total_questions,
    )
    return ApiResponse(data=attempt, message="Quiz attempt recorded")
