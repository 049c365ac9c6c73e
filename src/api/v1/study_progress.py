"""Per-topic mastery tracking for the authenticated user."""

from fastapi import APIRouter

from dependencies.auth import CurrentUser
from dependencies.services import Library
from schemas.api import ApiResponse
from schemas.library import StudyProgress, StudyProgressUpsert


router = APIRouter(prefix="/study-progress", tags=["study-progress"])


@router.get("", response_model=ApiResponse[list[StudyProgress]])
async def list_progress(
    current_user: CurrentUser, library: Library
) -> ApiResponse[list[StudyProgress]]:
    progress = await library.progress_for(current_user.id)
    return ApiResponse(data=progress, message="Study progress retrieved")


@router.post("", response_model=ApiResponse[StudyProgress])
async def upsert_progress(
    payload: StudyProgressUpsert, current_user: CurrentUser, library: Library
) -> ApiResponse[StudyProgress]:
    """Create or replace the record for (subject, topic)."""
    record = await library.upsert_progress(current_user.id, payload)
    return ApiResponse(data=record, message="Study progress saved")
