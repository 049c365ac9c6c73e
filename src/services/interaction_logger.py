"""Records one interaction entry per completed generation request.

Recording is best effort: a failing store is reported through the structured
logger and never fails the request that produced the content.
"""

from __future__ import annotations

from typing import Any

from core.error_handler import StructuredLogger
from crud.interactions import InteractionStore
from schemas.interactions import InteractionLogEntry, StoredInteraction
from services.generation.exceptions import InteractionLogError
from services.generation.gateway import GenerationOutcome


log = StructuredLogger(__name__)

SUMMARY_SOURCE_CHARS = 100


def excerpt(text: str, limit: int = SUMMARY_SOURCE_CHARS) -> str:
    """First ``limit`` characters of ``text`` with an ellipsis when cut."""
    return text if len(text) <= limit else f"{text[:limit]}..."


class InteractionLogger:
    """Appends interaction records through an :class:`InteractionStore`."""

    def __init__(self, store: InteractionStore) -> None:
        self._store = store

    async def record(
        self,
        *,
        user_id: int,
        kind: str,
        prompt: str,
        response: str,
        context: dict[str, Any] | None = None,
        outcome: GenerationOutcome | None = None,
    ) -> StoredInteraction | None:
        """Append one entry; returns None when the store failed."""
        full_context = dict(context or {})
        if outcome is not None:
            full_context["usedFallback"] = outcome.used_fallback
            full_context["attempts"] = outcome.attempts
            if outcome.error_code:
                full_context["errorCode"] = outcome.error_code

        try:
            entry = InteractionLogEntry(
                user_id=user_id,
                kind=kind,
                prompt=prompt,
                response=response,
                context=full_context,
            )
            return await self._store.append(entry)
        except Exception as exc:  # noqa: BLE001 - logging must not fail the request
            error = InteractionLogError(f"{exc.__class__.__name__}: {exc}")
            log.exception(
                "Failed to record AI interaction",
                kind=kind,
                error_code=error.error_code,
                reason=error.message,
            )
            return None

    async def history(self, user_id: int, limit: int) -> list[StoredInteraction]:
        return await self._store.list(user_id, limit)
