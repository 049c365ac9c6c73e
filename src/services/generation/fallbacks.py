"""Static substitute content, shaped exactly like validated results.

Fallbacks only echo a few request fields (topic, subject, counts), never
call out, and never fail for a request that passed its builder.
"""

from __future__ import annotations

from functools import singledispatch
from urllib.parse import quote_plus

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
)
from services.generation.requests import (
    ChatRequest,
    ClassAnalysisRequest,
    ExplanationRequest,
    FlashcardsRequest,
    ImageRequest,
    LessonPlanRequest,
    MindMapRequest,
    QuizFeedbackRequest,
    QuizRequest,
)
from services.generation.validators import student_rows


DEFAULT_IMAGE_PLACEHOLDER = "https://placehold.co/1024x1024?text={topic}"


@singledispatch
def build_fallback(
    request: object, *, image_placeholder: str = DEFAULT_IMAGE_PLACEHOLDER
) -> GenerationResult:
    """Return deterministic placeholder content for ``request``'s kind."""
    raise TypeError(f"No fallback for {type(request).__name__}")


@build_fallback.register
def _flashcards(
    request: FlashcardsRequest, *, image_placeholder: str = DEFAULT_IMAGE_PLACEHOLDER
) -> FlashcardsResult:
    subject = request.subject
    cards = [
        Flashcard(
            question=f"What is {subject}?",
            answer=(
                f"{subject} is a field of study that focuses on understanding key "
                "concepts and their applications."
            ),
            difficulty=Difficulty.EASY,
        ),
        Flashcard(
            question=f"Why is {subject} important?",
            answer=(
                f"{subject} helps us understand the world around us and develop "
                "critical thinking skills."
            ),
            difficulty=Difficulty.MEDIUM,
        ),
    ]
    return FlashcardsResult(flashcards=cards[: request.card_count])


@build_fallback.register
def _quiz(
    request: QuizRequest, *, image_placeholder: str = DEFAULT_IMAGE_PLACEHOLDER
) -> QuizResult:
    topic = request.topic
    questions = [
        QuizQuestion(
            type=QuestionType.MULTIPLE_CHOICE,
            question=f"What is the main focus of {topic}?",
            options=[
                "Understanding key concepts",
                "Memorizing facts",
                "Practical applications",
                "Historical context",
            ],
            correct_answer="Understanding key concepts",
            explanation="The primary goal is to understand the fundamental concepts.",
            difficulty=Difficulty.EASY,
            time_limit=20,
            points=100,
        ),
        QuizQuestion(
            type=QuestionType.TRUE_FALSE,
            question=f"{topic} is an important area of study in modern education.",
            correct_answer="True",
            explanation="Most educational topics have relevance in modern education.",
            difficulty=Difficulty.MEDIUM,
            time_limit=15,
            points=150,
        ),
        QuizQuestion(
            type=QuestionType.MULTIPLE_CHOICE,
            question=f"Which of the following is a practical application of {topic}?",
            options=[
                "Solving real-world problems",
                "Taking tests",
                "Memorizing formulas",
                "Writing essays",
            ],
            correct_answer="Solving real-world problems",
            explanation=f"{topic} is most valuable when applied to solve actual problems.",
            difficulty=Difficulty.HARD,
            time_limit=30,
            points=200,
        ),
        QuizQuestion(
            type=QuestionType.SHORT_ANSWER,
            question=f"Briefly explain why {topic} is relevant in today's world.",
            correct_answer="It helps us understand and solve contemporary problems.",
            explanation=(
                f"{topic} provides frameworks and tools to address modern challenges."
            ),
            difficulty=Difficulty.HARD,
            time_limit=45,
            points=250,
        ),
    ]
    return QuizResult(questions=questions[: request.question_count])


@build_fallback.register
def _lesson_plan(
    request: LessonPlanRequest, *, image_placeholder: str = DEFAULT_IMAGE_PLACEHOLDER
) -> LessonPlanResult:
    topic = request.topic
    intro = max(1, round(request.duration * 0.2))
    wrap_up = max(1, round(request.duration * 0.2))
    main = request.duration - intro - wrap_up

    plan = LessonPlan(
        title=f"Introduction to {topic}",
        summary=(
            f"A {request.duration}-minute {request.subject} lesson introducing "
            f"{topic} for {request.grade_level} students."
        ),
        objectives=[
            f"Describe the key ideas of {topic}",
            f"Apply {topic} to a simple real-world example",
        ],
        structure=[
            LessonSection(
                section="Introduction",
                duration=intro,
                content=f"Activate prior knowledge and introduce {topic}.",
                activities=["Warm-up question", "Share learning objectives"],
            ),
            LessonSection(
                section="Main Activity",
                duration=main,
                content=f"Explore the core concepts of {topic} through guided practice.",
                activities=["Guided examples", "Small-group practice"],
            ),
            LessonSection(
                section="Wrap-up",
                duration=wrap_up,
                content="Summarize the lesson and check understanding.",
                activities=["Exit ticket"],
            ),
        ],
        materials=["Whiteboard", "Student notebooks"],
        assessment=["Exit ticket responses", "Observation during group work"],
    )
    return LessonPlanResult(lesson_plan=plan)


_MIND_MAP_BRANCHES: list[tuple[str, list[str]]] = [
    ("Key Concepts", ["Basic Definition", "Important Facts"]),
    ("Applications", ["Real-world Examples", "Practice Problems"]),
    ("Resources", ["Further Reading"]),
]


@build_fallback.register
def _mind_map(
    request: MindMapRequest, *, image_placeholder: str = DEFAULT_IMAGE_PLACEHOLDER
) -> MindMapResult:
    branches: list[MindMapNode] = []
    detail_number = 0
    for index, (label, details) in enumerate(_MIND_MAP_BRANCHES, start=1):
        leaves: list[MindMapNode] = []
        for detail in details:
            detail_number += 1
            leaves.append(MindMapNode(id=f"detail{detail_number}", label=detail))
        branches.append(
            MindMapNode(
                id=f"subtopic{index}",
                label=label,
                children=leaves if request.depth >= 2 else [],
            )
        )
    root = MindMapNode(id="root", label=request.topic, children=branches)
    return MindMapResult(mind_map_data=root)


@build_fallback.register
def _explanation(
    request: ExplanationRequest, *, image_placeholder: str = DEFAULT_IMAGE_PLACEHOLDER
) -> ExplanationResult:
    return ExplanationResult(
        explanation=(
            "I couldn't generate an explanation for that text right now. "
            "Please try again in a moment."
        )
    )


@build_fallback.register
def _chat(
    request: ChatRequest, *, image_placeholder: str = DEFAULT_IMAGE_PLACEHOLDER
) -> ChatResult:
    return ChatResult(
        response=(
            "I'm sorry, I couldn't process that. Could you try asking in a "
            "different way?"
        )
    )


@build_fallback.register
def _image(
    request: ImageRequest, *, image_placeholder: str = DEFAULT_IMAGE_PLACEHOLDER
) -> ImageResult:
    return ImageResult(url=image_placeholder.format(topic=quote_plus(request.topic)))


@build_fallback.register
def _quiz_feedback(
    request: QuizFeedbackRequest, *, image_placeholder: str = DEFAULT_IMAGE_PLACEHOLDER
) -> QuizFeedbackResult:
    analysis = (
        "Hey there!\n\n"
        f"I've looked at your {request.topic} quiz results, and you scored "
        f"{request.score} ({request.percent}%). You answered "
        f"{request.correct_count} of {len(request.questions)} questions correctly.\n\n"
        "You showed good understanding in some areas! For the questions you "
        "missed, focus on the core concepts and try making some flashcards to "
        "reinforce those ideas.\n\n"
        f"Keep practicing. Learning {request.topic} takes time, and every quiz "
        "helps you improve."
    )
    return QuizFeedbackResult(analysis=analysis)


@build_fallback.register
def _class_analysis(
    request: ClassAnalysisRequest, *, image_placeholder: str = DEFAULT_IMAGE_PLACEHOLDER
) -> ClassAnalysisResult:
    count = len(request.students)
    struggling = sum(1 for s in request.students if s.percent < 60)
    analysis = (
        f"{count} student(s) attempted {request.quiz_title}, with a class average "
        f"of {request.class_average}%. {struggling} student(s) scored below 60% "
        "and may need additional support. Consider reviewing the questions most "
        "often missed before moving on."
    )
    return ClassAnalysisResult(
        analysis=analysis,
        student_data=student_rows(request.students),
        quiz_title=request.quiz_title,
        subject=request.subject,
        grade=request.grade,
    )
