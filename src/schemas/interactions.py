"""Interaction log records: one per completed generation request."""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class InteractionLogEntry(BaseModel):
    """Immutable record of who asked for what and what they got back."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    user_id: int = Field(description="Actor identity")
    kind: str = Field(description="Generation kind, e.g. 'flashcards'")
    prompt: str = Field(description="Short summary of the request")
    response: str = Field(description="Short summary of the delivered content")
    context: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class StoredInteraction(InteractionLogEntry):
    """An entry after the store assigned it an id."""

    id: int
