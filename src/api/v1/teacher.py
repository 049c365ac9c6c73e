"""Teacher-only tools built on saved quizzes and student attempts."""

from typing import Annotated, cast

from fastapi import APIRouter, Depends, HTTPException, status

from core.ratelimit import check_rate_limit
from dependencies.auth import require_roles
from dependencies.services import Gateway, Interactions, Library, Users
from schemas.api import ApiResponse
from schemas.generation import ClassAnalysisBody, ClassAnalysisResult
from schemas.user import UserInDB, UserRole
from services.generation.exceptions import InputError
from services.generation.requests import ClassAnalysisRequest, StudentResult


router = APIRouter(prefix="/teacher", tags=["teacher"])

Teacher = Annotated[UserInDB, Depends(require_roles(UserRole.TEACHER))]


@router.post(
    "/analyze-student-performance",
    response_model=ApiResponse[ClassAnalysisResult],
    dependencies=[Depends(check_rate_limit)],
)
async def analyze_student_performance(
    body: ClassAnalysisBody,
    teacher: Teacher,
    users: Users,
    library: Library,
    gateway: Gateway,
    interactions: Interactions,
) -> ApiResponse[ClassAnalysisResult]:
    """Class-level analysis of every student's latest attempt at a quiz."""
    if body.quiz_id is None:
        raise InputError("quizId")
    quiz = await library.quizzes.require_visible(body.quiz_id, teacher.id)

    students = {u.id: u for u in await users.list_users(UserRole.STUDENT)}
    latest = {}
    for attempt in await library.attempts_for_quiz(quiz.id):
        if attempt.user_id in students:
            latest[attempt.user_id] = attempt
    if not latest:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No student attempts found for this quiz",
        )

    request = ClassAnalysisRequest.build(
        quiz_title=quiz.title,
        subject=quiz.subject,
        grade=quiz.grade,
        students=[
            StudentResult(
                student_id=user_id,
                name=students[user_id].full_name,
                score=attempt.score,
                total_questions=attempt.total_questions,
                time_spent=attempt.time_spent,
            )
            for user_id, attempt in latest.items()
        ],
    )
    outcome = await gateway.analyze_class(request)
    result = cast(ClassAnalysisResult, outcome.result)

    await interactions.record(
        user_id=teacher.id,
        kind=request.kind.value,
        prompt=(
            f"Analyze class performance on {request.quiz_title} "
            f"({len(request.students)} students)"
        ),
        response=f"Class average: {request.class_average}%",
        context={"quizId": quiz.id, "subject": request.subject},
        outcome=outcome,
    )
    return ApiResponse(data=result, message="Class analysis generated")
