"""AI content generation endpoints.

Each handler builds a typed request (a blank required field is an
``input_error`` 400 before any provider call), runs it through the gateway,
records the interaction and returns the result. Fallback content is returned
with the same shape and status as real content.
"""

from __future__ import annotations

from typing import Annotated, cast

from fastapi import APIRouter, Depends, Query

from core.config import get_settings
from core.ratelimit import check_rate_limit
from dependencies.auth import CurrentUser
from dependencies.services import Gateway, Interactions
from schemas.api import ApiResponse
from schemas.generation import (
    ChatBody,
    ChatResult,
    ExplainBody,
    ExplanationResult,
    FlashcardsBody,
    FlashcardsResult,
    ImageBody,
    ImageResult,
    LessonPlanBody,
    LessonPlanResult,
    MindMapBody,
    MindMapResult,
    QuizBody,
    QuizFeedbackBody,
    QuizFeedbackResult,
    QuizResult,
)
from schemas.interactions import StoredInteraction
from services.generation.requests import (
    ChatRequest,
    ExplanationRequest,
    FlashcardsRequest,
    ImageRequest,
    LessonPlanRequest,
    MindMapRequest,
    QuizFeedbackRequest,
    QuizRequest,
)
from services.generation.sanitize import clamp_count
from services.interaction_logger import excerpt


router = APIRouter(
    prefix="/ai", tags=["ai"], dependencies=[Depends(check_rate_limit)]
)

HISTORY_LIMIT_RANGE = (1, 200)


@router.post("/generate-flashcards", response_model=ApiResponse[FlashcardsResult])
async def generate_flashcards(
    body: FlashcardsBody,
    current_user: CurrentUser,
    gateway: Gateway,
    interactions: Interactions,
) -> ApiResponse[FlashcardsResult]:
    """Generate study flashcards from pasted source text."""
    request = FlashcardsRequest.build(
        content=body.content,
        subject=body.subject,
        grade_level=body.grade_level,
        card_count=body.number_of_cards,
    )
    outcome = await gateway.generate_flashcards(request)
    result = cast(FlashcardsResult, outcome.result)

    await interactions.record(
        user_id=current_user.id,
        kind=request.kind.value,
        prompt=(
            f"Generate {request.card_count} flashcards for {request.subject} "
            f"({request.grade_level}): {excerpt(request.content)}"
        ),
        response=f"Generated {len(result.flashcards)} flashcards",
        context={
            "subject": request.subject,
            "gradeLevel": request.grade_level,
            "numberOfCards": request.card_count,
        },
        outcome=outcome,
    )
    return ApiResponse(data=result, message="Flashcards generated")


@router.post("/generate-quiz", response_model=ApiResponse[QuizResult])
async def generate_quiz(
    body: QuizBody,
    current_user: CurrentUser,
    gateway: Gateway,
    interactions: Interactions,
) -> ApiResponse[QuizResult]:
    """Generate a gamified quiz (difficulty, time limit and points per question)."""
    request = QuizRequest.build(
        topic=body.topic,
        subject=body.subject,
        grade_level=body.grade_level,
        question_count=body.number_of_questions,
        question_types=body.question_types,
    )
    outcome = await gateway.generate_quiz(request)
    result = cast(QuizResult, outcome.result)

    await interactions.record(
        user_id=current_user.id,
        kind=request.kind.value,
        prompt=(
            f"Generate {request.question_count} quiz questions about "
            f"{request.topic} for {request.subject} ({request.grade_level})"
        ),
        response=f"Generated {len(result.questions)} questions",
        context={
            "topic": request.topic,
            "subject": request.subject,
            "gradeLevel": request.grade_level,
            "numberOfQuestions": request.question_count,
            "questionTypes": list(request.question_types),
        },
        outcome=outcome,
    )
    return ApiResponse(data=result, message="Quiz generated")


@router.post("/generate-lesson", response_model=ApiResponse[LessonPlanResult])
async def generate_lesson(
    body: LessonPlanBody,
    current_user: CurrentUser,
    gateway: Gateway,
    interactions: Interactions,
) -> ApiResponse[LessonPlanResult]:
    """Generate a timed lesson plan."""
    request = LessonPlanRequest.build(
        topic=body.topic,
        subject=body.subject,
        grade_level=body.grade_level,
        duration=body.duration,
        learning_style=body.learning_style,
        include_visuals=body.include_visuals,
    )
    outcome = await gateway.generate_lesson_plan(request)
    result = cast(LessonPlanResult, outcome.result)

    await interactions.record(
        user_id=current_user.id,
        kind=request.kind.value,
        prompt=(
            f"Generate lesson plan for {request.topic} in {request.subject} "
            f"({request.grade_level}, {request.duration} min)"
        ),
        response=f"Generated lesson: {result.lesson_plan.title}",
        context={
            "topic": request.topic,
            "subject": request.subject,
            "gradeLevel": request.grade_level,
            "duration": request.duration,
            "learningStyle": request.learning_style,
            "includeVisuals": request.include_visuals,
        },
        outcome=outcome,
    )
    return ApiResponse(data=result, message="Lesson plan generated")


@router.post("/generate-mind-map", response_model=ApiResponse[MindMapResult])
async def generate_mind_map(
    body: MindMapBody,
    current_user: CurrentUser,
    gateway: Gateway,
    interactions: Interactions,
) -> ApiResponse[MindMapResult]:
    """Generate a labeled topic tree no deeper than the requested depth."""
    request = MindMapRequest.build(
        topic=body.topic, subject=body.subject, depth=body.depth
    )
    outcome = await gateway.generate_mind_map(request)
    result = cast(MindMapResult, outcome.result)

    await interactions.record(
        user_id=current_user.id,
        kind=request.kind.value,
        prompt=(
            f"Generate mind map for {request.topic} in {request.subject} "
            f"(depth: {request.depth})"
        ),
        response=f"Generated mind map with root: {result.mind_map_data.label}",
        context={
            "topic": request.topic,
            "subject": request.subject,
            "depth": request.depth,
        },
        outcome=outcome,
    )
    return ApiResponse(data=result, message="Mind map generated")


@router.post("/explain", response_model=ApiResponse[ExplanationResult])
async def explain(
    body: ExplainBody,
    current_user: CurrentUser,
    gateway: Gateway,
    interactions: Interactions,
) -> ApiResponse[ExplanationResult]:
    """Explain a passage for a kid, teen, parent or teacher audience."""
    request = ExplanationRequest.build(
        text=body.text, level=body.level, context=body.context
    )
    outcome = await gateway.explain(request)
    result = cast(ExplanationResult, outcome.result)

    await interactions.record(
        user_id=current_user.id,
        kind=request.kind.value,
        prompt=f'Explain "{excerpt(request.text)}" at {request.level} level',
        response=excerpt(result.explanation),
        context={"level": request.level, "hasContext": bool(request.context)},
        outcome=outcome,
    )
    return ApiResponse(data=result, message="Explanation generated")


@router.post("/chat", response_model=ApiResponse[ChatResult])
async def chat(
    body: ChatBody,
    current_user: CurrentUser,
    gateway: Gateway,
    interactions: Interactions,
) -> ApiResponse[ChatResult]:
    """One tutoring turn; prior turns travel in ``context``."""
    request = ChatRequest.build(
        message=body.message, history=body.context, user_level=current_user.grade
    )
    outcome = await gateway.chat(request)
    result = cast(ChatResult, outcome.result)

    await interactions.record(
        user_id=current_user.id,
        kind=request.kind.value,
        prompt=excerpt(request.message),
        response=excerpt(result.response),
        context={
            "userLevel": request.user_level,
            "contextLength": len(request.history),
        },
        outcome=outcome,
    )
    return ApiResponse(data=result, message="Tutor reply generated")


@router.post("/generate-image", response_model=ApiResponse[ImageResult])
async def generate_image(
    body: ImageBody,
    current_user: CurrentUser,
    gateway: Gateway,
    interactions: Interactions,
) -> ApiResponse[ImageResult]:
    """Generate an educational illustration; a placeholder URL on failure."""
    request = ImageRequest.build(topic=body.topic, subject=body.subject)
    outcome = await gateway.generate_image(request)
    result = cast(ImageResult, outcome.result)

    await interactions.record(
        user_id=current_user.id,
        kind=request.kind.value,
        prompt=f"Generate educational image for {request.topic} in {request.subject}",
        response="Generated image URL",
        context={"topic": request.topic, "subject": request.subject},
        outcome=outcome,
    )
    return ApiResponse(data=result, message="Image generated")


@router.post("/analyze-quiz-results", response_model=ApiResponse[QuizFeedbackResult])
async def analyze_quiz_results(
    body: QuizFeedbackBody,
    current_user: CurrentUser,
    gateway: Gateway,
    interactions: Interactions,
) -> ApiResponse[QuizFeedbackResult]:
    """Personalised tutor feedback on a finished quiz."""
    request = QuizFeedbackRequest.build(
        topic=body.topic,
        subject=body.subject,
        questions=body.questions,
        user_answers=body.user_answers,
        score=body.score,
    )
    outcome = await gateway.analyze_quiz_results(request)
    result = cast(QuizFeedbackResult, outcome.result)

    await interactions.record(
        user_id=current_user.id,
        kind=request.kind.value,
        prompt=(
            f"Analyze {request.topic} quiz results in {request.subject} "
            f"(score: {request.score})"
        ),
        response=excerpt(result.analysis),
        context={
            "topic": request.topic,
            "subject": request.subject,
            "correct": request.correct_count,
            "total": len(request.questions),
        },
        outcome=outcome,
    )
    return ApiResponse(data=result, message="Quiz feedback generated")


@router.get("/interactions", response_model=ApiResponse[list[StoredInteraction]])
async def list_interactions(
    current_user: CurrentUser,
    interactions: Interactions,
    limit: Annotated[str | None, Query(description="Max entries, 1-200")] = None,
) -> ApiResponse[list[StoredInteraction]]:
    """The caller's own interaction history, newest first."""
    count = clamp_count(
        limit, *HISTORY_LIMIT_RANGE, get_settings().INTERACTION_HISTORY_LIMIT
    )
    history = await interactions.history(current_user.id, count)
    return ApiResponse(data=history, message=f"{len(history)} interactions")
