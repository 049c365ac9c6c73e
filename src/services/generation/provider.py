"""External LLM provider clients.

Both clients turn SDK failures into :class:`ProviderError` carrying the HTTP
status of the failed call (``None`` for network faults and timeouts), which
is the only thing the retry controller looks at. SDK-level retries are
disabled; retrying belongs to ``RetryController``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import TYPE_CHECKING, Protocol

import httpx
import openai

from core.config import Settings, get_settings
from services.generation.exceptions import ProviderError, ProviderTerminalError


if TYPE_CHECKING:
    from google import genai

logger = logging.getLogger(__name__)

IMAGE_SIZE = "1024x1024"


@dataclass(frozen=True, slots=True)
class CompletionRequest:
    """One chat-completion call as the provider sees it."""

    model: str
    messages: list[dict[str, str]] = field(default_factory=list)
    temperature: float = 0.7
    json_mode: bool = False
    max_tokens: int | None = None


class ProviderClient(Protocol):
    """Interface the gateway consumes; fakes implement it in tests."""

    async def complete(self, request: CompletionRequest) -> str:
        """Return the raw text payload of a completion."""
        ...

    async def generate_image(self, prompt: str) -> str:
        """Return a URL (or data URL) for a generated image."""
        ...


def _normalize_azure_endpoint(endpoint: str) -> str:
    """Drop trailing slashes so the SDK does not build ``//openai/...`` paths."""
    return endpoint.rstrip("/")


class OpenAIProvider:
    """Chat completions and images through the OpenAI or Azure OpenAI SDK."""

    def __init__(self, client: openai.AsyncOpenAI, image_model: str) -> None:
        self._client = client
        self._image_model = image_model

    @classmethod
    def from_settings(cls, settings: Settings) -> OpenAIProvider:
        client: openai.AsyncOpenAI
        if settings.LLM_PROVIDER == "azure_openai":
            client = openai.AsyncAzureOpenAI(
                azure_endpoint=_normalize_azure_endpoint(
                    settings.AZURE_OPENAI_ENDPOINT or ""
                ),
                api_key=settings.AZURE_OPENAI_API_KEY,
                api_version=settings.AZURE_OPENAI_API_VERSION,
                timeout=settings.PROVIDER_TIMEOUT_SECONDS,
                max_retries=0,
            )
        else:
            client = openai.AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY,
                base_url=settings.OPENAI_BASE_URL,
                timeout=settings.PROVIDER_TIMEOUT_SECONDS,
                max_retries=0,
            )
        return cls(client, image_model=settings.IMAGE_MODEL)

    async def complete(self, request: CompletionRequest) -> str:
        kwargs: dict[str, object] = {
            "model": request.model,
            "messages": request.messages,
            "temperature": request.temperature,
        }
        if request.json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        if request.max_tokens is not None:
            kwargs["max_tokens"] = request.max_tokens

        try:
            response = await self._client.chat.completions.create(**kwargs)  # type: ignore[call-overload]
        except openai.OpenAIError as exc:
            raise _translate_openai_error(exc) from exc

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def generate_image(self, prompt: str) -> str:
        try:
            response = await self._client.images.generate(
                model=self._image_model,
                prompt=prompt,
                n=1,
                size=IMAGE_SIZE,
                quality="standard",
            )
        except openai.OpenAIError as exc:
            raise _translate_openai_error(exc) from exc

        if not response.data:
            return ""
        image = response.data[0]
        if image.url:
            return image.url
        if image.b64_json:
            return f"data:image/png;base64,{image.b64_json}"
        return ""


def _translate_openai_error(exc: openai.OpenAIError) -> ProviderError:
    if isinstance(exc, openai.APIStatusError):
        return ProviderError(str(exc.message), status_code=exc.status_code)
    if isinstance(exc, openai.APITimeoutError):
        return ProviderTerminalError("Provider call timed out")
    if isinstance(exc, openai.APIConnectionError):
        return ProviderTerminalError("Could not reach provider")
    return ProviderTerminalError(f"Provider client error: {exc.__class__.__name__}")


class GeminiProvider:
    """Chat-style completions through ``google.genai``; images are unsupported."""

    def __init__(self, client: genai.Client) -> None:
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> GeminiProvider:
        from google import genai
        from google.genai import types

        client = genai.Client(
            api_key=settings.GEMINI_API_KEY,
            # HttpOptions.timeout is in milliseconds
            http_options=types.HttpOptions(
                timeout=int(settings.PROVIDER_TIMEOUT_SECONDS * 1000)
            ),
        )
        return cls(client)

    async def complete(self, request: CompletionRequest) -> str:
        from google.genai import errors, types

        system = "\n\n".join(
            m["content"] for m in request.messages if m["role"] == "system"
        )
        contents = "\n\n".join(
            m["content"] for m in request.messages if m["role"] != "system"
        )
        config = types.GenerateContentConfig(
            system_instruction=system or None,
            temperature=request.temperature,
            max_output_tokens=request.max_tokens,
            response_mime_type="application/json" if request.json_mode else None,
        )
        try:
            response = await self._client.aio.models.generate_content(
                model=request.model,
                contents=contents,
                config=config,
            )
        except errors.APIError as exc:
            raise ProviderError(str(exc.message or exc), status_code=exc.code) from exc
        except httpx.TimeoutException as exc:
            raise ProviderTerminalError("Provider call timed out") from exc
        except httpx.HTTPError as exc:
            raise ProviderTerminalError("Could not reach provider") from exc

        return response.text or ""

    async def generate_image(self, prompt: str) -> str:
        raise ProviderTerminalError(
            "Image generation is not available with the Gemini provider",
            status_code=501,
        )


def _validate_openai_credentials(settings: Settings) -> None:
    if settings.LLM_PROVIDER == "azure_openai":
        if (
            not settings.AZURE_OPENAI_ENDPOINT
            or not settings.AZURE_OPENAI_API_KEY
            or not settings.AZURE_OPENAI_API_VERSION
        ):
            raise ValueError(
                "LLM_PROVIDER=azure_openai requires AZURE_OPENAI_ENDPOINT, "
                "AZURE_OPENAI_API_KEY and AZURE_OPENAI_API_VERSION."
            )
    elif not settings.OPENAI_API_KEY:
        raise ValueError("LLM_PROVIDER=openai requires OPENAI_API_KEY.")


@lru_cache
def get_provider() -> ProviderClient:
    """Build and cache the provider client selected by ``LLM_PROVIDER``.

    Raises:
        ValueError: when the selected provider has no credentials configured.
    """
    settings = get_settings()

    if settings.LLM_PROVIDER == "gemini":
        if not settings.GEMINI_API_KEY:
            raise ValueError("LLM_PROVIDER=gemini requires GEMINI_API_KEY.")
        logger.info("Using Gemini provider with model %s", settings.CHAT_MODEL)
        return GeminiProvider.from_settings(settings)

    _validate_openai_credentials(settings)
    logger.info(
        "Using %s provider with model %s", settings.LLM_PROVIDER, settings.CHAT_MODEL
    )
    return OpenAIProvider.from_settings(settings)
