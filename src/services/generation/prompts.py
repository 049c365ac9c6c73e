"""Prompt builders: pure functions from a request to provider messages.

Each JSON kind spells out the exact shape the validators check for, so the
text here and ``validators.py`` must change together.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import singledispatch

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


DEFAULT_TEMPERATURE = 0.7
CHAT_TEMPERATURE = 0.8
CHAT_MAX_TOKENS = 500
FEEDBACK_MAX_TOKENS = 2000
ANALYSIS_MAX_TOKENS = 500


@dataclass(frozen=True, slots=True)
class Prompt:
    """System and user text plus the sampling options for one provider call."""

    system: str
    user: str
    json_mode: bool = True
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int | None = None

    def as_messages(self) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


LEVEL_INSTRUCTIONS: dict[str, str] = {
    "kid": (
        "Explain this in very simple terms that a young child (ages 6-10) would "
        "understand. Use simple words and fun examples."
    ),
    "teen": (
        "Explain this for a teenager (ages 13-17). Use relatable examples and "
        "clear explanations."
    ),
    "parent": (
        "Explain this for a parent who wants to understand their child's "
        "schoolwork. Include context and practical applications."
    ),
    "teacher": (
        "Provide a detailed pedagogical explanation suitable for an educator, "
        "including teaching strategies and common misconceptions."
    ),
}


@singledispatch
def build_prompt(request: object) -> Prompt:
    """Render ``request`` into the messages sent to the provider."""
    raise TypeError(f"No prompt builder for {type(request).__name__}")


@build_prompt.register
def _flashcards(request: FlashcardsRequest) -> Prompt:
    user = f"""Create {request.card_count} educational flashcards for {request.subject} at {request.grade_level} level from the following content:

{request.content}

Generate flashcards that:
- Test key concepts and facts
- Are appropriate for {request.grade_level} students
- Have clear, concise questions and comprehensive answers
- Include a mix of difficulty levels (easy, medium, hard)

Return exactly {request.card_count} flashcards as a JSON object with this format:
{{
  "flashcards": [
    {{
      "question": "Clear, specific question",
      "answer": "Comprehensive answer with explanation",
      "difficulty": "easy|medium|hard"
    }}
  ]
}}"""
    return Prompt(
        system=(
            "You are an expert educator who creates engaging and effective "
            "flashcards for students. Always respond with valid JSON."
        ),
        user=user,
    )


@build_prompt.register
def _quiz(request: QuizRequest) -> Prompt:
    user = f"""Create {request.question_count} quiz questions about "{request.topic}" for {request.subject} at {request.grade_level} level.

Question types to include: {", ".join(request.question_types)}

Generate questions that:
- Test understanding of key concepts
- Are appropriate for the grade level
- Include clear explanations for answers
- Vary in difficulty (easy, medium, hard)

Return as a JSON object with this format:
{{
  "questions": [
    {{
      "type": "{"|".join(request.question_types)}",
      "question": "Question text",
      "options": ["A", "B", "C", "D"] (only for multiple-choice),
      "correctAnswer": "Correct answer",
      "explanation": "Why this is correct",
      "difficulty": "easy|medium|hard",
      "timeLimit": 30,
      "points": 100
    }}
  ]
}}"""
    return Prompt(
        system=(
            "You are an expert educator who creates fair and educational quiz "
            "questions. Always respond with valid JSON."
        ),
        user=user,
    )


@build_prompt.register
def _lesson_plan(request: LessonPlanRequest) -> Prompt:
    visuals = "Yes" if request.include_visuals else "No"
    user = f"""Create a comprehensive {request.duration}-minute lesson plan for "{request.topic}" in {request.subject} for {request.grade_level} students.

Requirements:
- Learning style focus: {request.learning_style}
- Include visuals: {visuals}
- Age-appropriate content and activities
- Clear learning objectives
- Structured timeline whose section durations add up to {request.duration} minutes
- Assessment methods

Return as JSON with this format:
{{
  "title": "Lesson title",
  "summary": "Brief lesson overview",
  "objectives": ["Learning objective 1", "Learning objective 2"],
  "structure": [
    {{
      "section": "Introduction",
      "duration": 5,
      "content": "What will be covered",
      "activities": ["Activity 1", "Activity 2"]
    }}
  ],
  "materials": ["Material 1", "Material 2"],
  "assessment": ["Assessment method 1", "Assessment method 2"]
}}"""
    return Prompt(
        system=(
            "You are an expert curriculum designer who creates engaging and "
            "effective lesson plans. Always respond with valid JSON."
        ),
        user=user,
    )


@build_prompt.register
def _mind_map(request: MindMapRequest) -> Prompt:
    user = f"""Create a hierarchical mind map for "{request.topic}" in {request.subject} with {request.depth} levels of depth below the root.

The mind map should:
- Have the main topic as the root
- Branch into major subtopics
- Include relevant details and concepts
- Be educationally structured

Return as JSON with this format:
{{
  "id": "root",
  "label": "Main Topic",
  "children": [
    {{
      "id": "subtopic1",
      "label": "Subtopic 1",
      "children": [
        {{
          "id": "detail1",
          "label": "Detail 1"
        }}
      ]
    }}
  ]
}}"""
    return Prompt(
        system=(
            "You are an expert educator who creates well-structured mind maps "
            "for learning. Always respond with valid JSON."
        ),
        user=user,
    )


@build_prompt.register
def _explanation(request: ExplanationRequest) -> Prompt:
    lines = [LEVEL_INSTRUCTIONS[request.level], "", f'Text to explain: "{request.text}"']
    if request.context:
        lines.append(f"Context: {request.context}")
    lines += [
        "",
        "Provide a clear, engaging explanation appropriate for the target audience.",
    ]
    return Prompt(
        system=(
            "You are a skilled educator who can explain complex concepts at "
            "different levels. Tailor your explanations to the specific audience."
        ),
        user="\n".join(lines),
        json_mode=False,
    )


@build_prompt.register
def _chat(request: ChatRequest) -> Prompt:
    system = f"""You are EduMind AI, a helpful and encouraging AI tutor for {request.user_level} students. You:

- Explain concepts clearly and age-appropriately
- Ask follow-up questions to check understanding
- Provide examples and analogies
- Encourage students when they struggle
- Break down complex problems into steps
- Adapt your teaching style to the student's needs

Keep responses conversational and supportive. If asked about homework, guide the student through the thinking process rather than giving direct answers."""
    history = ""
    if request.history:
        turns = "\n".join(f"{m.role}: {m.content}" for m in request.history)
        history = f"Previous conversation context:\n{turns}\n\n"
    return Prompt(
        system=system,
        user=f"{history}Student message: {request.message}",
        json_mode=False,
        temperature=CHAT_TEMPERATURE,
        max_tokens=CHAT_MAX_TOKENS,
    )


@build_prompt.register
def _quiz_feedback(request: QuizFeedbackRequest) -> Prompt:
    blocks = []
    for number, q in enumerate(request.questions, start=1):
        blocks.append(
            f"Question {number}: {q.question}\n"
            f"User's Answer: {q.user_answer}\n"
            f"Correct Answer: {q.correct_answer}\n"
            f"Result: {'Correct' if q.is_correct else 'Incorrect'}\n"
            f"Explanation: {q.explanation}"
        )
    answered = "\n\n".join(blocks)
    user = f"""Analyze the following quiz results for a student studying {request.topic} in {request.subject}:

Questions and Answers:
{answered}

Overall Score: {request.score}

Respond as a friendly, supportive AI tutor having a one-on-one conversation with this student:

1. Greet them warmly, acknowledge their effort and mention their score encouragingly
2. Briefly discuss the questions they got right and why those concepts matter
3. Explain the questions they got wrong supportively, with a clear explanation of the correct answer
4. Suggest 2-3 specific concepts to focus on next and how to approach them so they can master {request.topic}
5. End with an encouraging message

Address the student as "you" and avoid headings or formal academic language."""
    return Prompt(
        system=(
            "You are EduBuddy, a friendly and supportive AI tutor. You write "
            "personalized, encouraging feedback that reads like a one-on-one chat, "
            "honest about areas needing improvement and specific about how to improve."
        ),
        user=user,
        json_mode=False,
        max_tokens=FEEDBACK_MAX_TOKENS,
    )


@build_prompt.register
def _class_analysis(request: ClassAnalysisRequest) -> Prompt:
    rows = "\n".join(
        f"- {s.name}: {s.percent}% ({s.score}/{s.total_questions})"
        for s in request.students
    )
    user = f"""Analyze the following quiz results:

Quiz: {request.quiz_title}
Subject: {request.subject}
Grade: {request.grade}

Student Performance:
{rows or "- no graded student attempts"}

Provide a brief analysis of student performance, focusing on:
1. Overall class performance
2. Areas where students might need additional help
3. Recommendations for teaching strategies

Keep the analysis concise and focused only on quiz performance."""
    return Prompt(
        system=(
            "You are an educational analytics assistant. Provide concise, "
            "actionable insights based on quiz performance data."
        ),
        user=user,
        json_mode=False,
        max_tokens=ANALYSIS_MAX_TOKENS,
    )


def build_image_prompt(request: ImageRequest) -> str:
    """Image generation takes a single description instead of chat messages."""
    return f"""Create an educational illustration for "{request.topic}" in {request.subject}. The image should be:
- Clear and informative
- Appropriate for students
- Visually engaging
- Scientifically/academically accurate
- Suitable for classroom use"""
