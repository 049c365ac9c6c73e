"""Saved lesson plans."""

from fastapi import APIRouter, status

from dependencies.auth import CurrentUser
from dependencies.services import Library
from schemas.api import ApiResponse
from schemas.library import Lesson, LessonCreate


router = APIRouter(prefix="/lessons", tags=["lessons"])


@router.get("", response_model=ApiResponse[list[Lesson]])
async def list_lessons(
    current_user: CurrentUser, library: Library
) -> ApiResponse[list[Lesson]]:
    lessons = await library.lessons_for(current_user.id)
    return ApiResponse(data=lessons, message="Lessons retrieved")


@router.post(
    "", response_model=ApiResponse[Lesson], status_code=status.HTTP_201_CREATED
)
async def create_lesson(
    payload: LessonCreate, current_user: CurrentUser, library: Library
) -> ApiResponse[Lesson]:
    lesson = await library.lessons.add(
        **payload.model_dump(), user_id=current_user.id, created_at=library.now()
    )
    return ApiResponse(data=lesson, message="Lesson created")


@router.get("/{lesson_id}", response_model=ApiResponse[Lesson])
async def get_lesson(
    lesson_id: int, current_user: CurrentUser, library: Library
) -> ApiResponse[Lesson]:
    lesson = await library.lessons.require_visible(lesson_id, current_user.id)
    return ApiResponse(data=lesson, message="Lesson retrieved")
