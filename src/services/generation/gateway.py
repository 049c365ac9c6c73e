"""Content-generation gateway.

One pipeline for every kind: build prompt -> call provider under the retry
controller -> validate -> fall back. Once a request object exists, the
caller always gets content back; only bugs and provider misconfiguration
escape as exceptions.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from core.config import Settings
from core.error_handler import StructuredLogger
from schemas.generation import GenerationResult
from services.generation.exceptions import ContentValidationError, GenerationError
from services.generation.fallbacks import DEFAULT_IMAGE_PLACEHOLDER, build_fallback
from services.generation.prompts import build_image_prompt, build_prompt
from services.generation.provider import CompletionRequest, ProviderClient, get_provider
from services.generation.requests import (
    ChatRequest,
    ClassAnalysisRequest,
    ExplanationRequest,
    FlashcardsRequest,
    GenerationRequest,
    ImageRequest,
    LessonPlanRequest,
    MindMapRequest,
    QuizFeedbackRequest,
    QuizRequest,
)
from services.generation.retry import RetryController, Success
from services.generation.validators import validate_output


log = StructuredLogger(__name__)


@dataclass(frozen=True, slots=True)
class GenerationOutcome:
    """Result plus how it was obtained; only ``result`` goes over the wire."""

    result: GenerationResult
    used_fallback: bool
    attempts: int
    error_code: str | None = None


class ContentGateway:
    """Turns typed generation requests into validated or fallback content."""

    def __init__(
        self,
        provider_factory: Callable[[], ProviderClient],
        retry: RetryController | None = None,
        *,
        model: str = "gpt-4o",
        image_placeholder: str = DEFAULT_IMAGE_PLACEHOLDER,
    ) -> None:
        self._provider_factory = provider_factory
        self._provider: ProviderClient | None = None
        self._retry = retry or RetryController()
        self._model = model
        self._image_placeholder = image_placeholder

    @classmethod
    def from_settings(cls, settings: Settings) -> ContentGateway:
        return cls(
            get_provider,
            RetryController(
                max_attempts=settings.RETRY_MAX_ATTEMPTS,
                base_delay=settings.RETRY_BASE_DELAY_SECONDS,
            ),
            model=settings.CHAT_MODEL,
            image_placeholder=settings.IMAGE_PLACEHOLDER_URL,
        )

    @property
    def provider(self) -> ProviderClient:
        # Resolved on first use so bad input is rejected without credentials.
        if self._provider is None:
            self._provider = self._provider_factory()
        return self._provider

    async def generate(self, request: GenerationRequest) -> GenerationOutcome:
        provider = self.provider
        if isinstance(request, ImageRequest):
            image_prompt = build_image_prompt(request)

            async def call() -> str:
                return await provider.generate_image(image_prompt)

        else:
            prompt = build_prompt(request)
            completion = CompletionRequest(
                model=self._model,
                messages=prompt.as_messages(),
                temperature=prompt.temperature,
                json_mode=prompt.json_mode,
                max_tokens=prompt.max_tokens,
            )

            async def call() -> str:
                return await provider.complete(completion)

        final = await self._retry.run(call)

        error: GenerationError
        if isinstance(final, Success):
            try:
                result = validate_output(request, final.raw)
            except ContentValidationError as exc:
                error = exc
            else:
                return GenerationOutcome(
                    result=result, used_fallback=False, attempts=final.attempts
                )
        else:
            error = final.error

        log.warning(
            "Serving fallback content",
            kind=request.kind.value,
            error_code=error.error_code,
            reason=error.message,
            attempts=final.attempts,
        )
        return GenerationOutcome(
            result=build_fallback(request, image_placeholder=self._image_placeholder),
            used_fallback=True,
            attempts=final.attempts,
            error_code=error.error_code,
        )

    async def generate_flashcards(self, request: FlashcardsRequest) -> GenerationOutcome:
        return await self.generate(request)

    async def generate_quiz(self, request: QuizRequest) -> GenerationOutcome:
        return await self.generate(request)

    async def generate_lesson_plan(self, request: LessonPlanRequest) -> GenerationOutcome:
        return await self.generate(request)

    async def generate_mind_map(self, request: MindMapRequest) -> GenerationOutcome:
        return await self.generate(request)

    async def explain(self, request: ExplanationRequest) -> GenerationOutcome:
        return await self.generate(request)

    async def chat(self, request: ChatRequest) -> GenerationOutcome:
        return await self.generate(request)

    async def generate_image(self, request: ImageRequest) -> GenerationOutcome:
        return await self.generate(request)

    async def analyze_quiz_results(
        self, request: QuizFeedbackRequest
    ) -> GenerationOutcome:
        return await self.generate(request)

    async def analyze_class(self, request: ClassAnalysisRequest) -> GenerationOutcome:
        return await self.generate(request)
