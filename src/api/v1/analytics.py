"""School-level analytics for principals and administrators."""

from collections import defaultdict
from statistics import fmean
from typing import Annotated

from fastapi import APIRouter, Depends

from dependencies.auth import require_roles
from dependencies.services import Library, Users
from schemas.api import ApiResponse
from schemas.library import AnalyticsOverview
from schemas.user import UserInDB, UserRole


router = APIRouter(prefix="/analytics", tags=["analytics"])

Staff = Annotated[
    UserInDB, Depends(require_roles(UserRole.PRINCIPAL, UserRole.ADMIN))
]

# Students averaging below this percentage need attention
ATTENTION_THRESHOLD = 60.0


@router.get("/overview", response_model=ApiResponse[AnalyticsOverview])
async def overview(
    _staff: Staff, users: Users, library: Library
) -> ApiResponse[AnalyticsOverview]:
    """User counts by role and quiz performance across the whole school."""
    all_users = await users.list_users()
    roles = [u.role for u in all_users]
    student_ids = {u.id for u in all_users if u.role == UserRole.STUDENT}

    attempts = await library.attempts.filter()
    quiz_subjects = {q.id: q.subject for q in await library.quizzes.filter()}

    by_student: dict[int, list[float]] = defaultdict(list)
    by_subject: dict[str, list[float]] = defaultdict(list)
    for attempt in attempts:
        if attempt.user_id in student_ids:
            by_student[attempt.user_id].append(attempt.percent)
        subject = quiz_subjects.get(attempt.quiz_id)
        if subject is not None:
            by_subject[subject].append(attempt.percent)

    data = AnalyticsOverview(
        total_students=roles.count(UserRole.STUDENT),
        total_teachers=roles.count(UserRole.TEACHER),
        total_parents=roles.count(UserRole.PARENT),
        total_quiz_attempts=len(attempts),
        average_performance=(
            round(fmean(a.percent for a in attempts), 1) if attempts else 0.0
        ),
        students_needing_attention=sum(
            1 for scores in by_student.values() if fmean(scores) < ATTENTION_THRESHOLD
        ),
        subject_performance={
            subject: round(fmean(scores), 1) for subject, scores in by_subject.items()
        },
    )
    return ApiResponse(data=data, message="Analytics overview")
