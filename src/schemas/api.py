"""Response envelope shared by every EduMind endpoint."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel


T = TypeVar("T")


class ApiResponse[T](BaseModel):
    """Standard envelope: ``data`` on success, ``error`` details on failure.

    Attributes:
        success: Whether the request was successful.
        data: Payload for successful calls (generation results, records ...).
        message: Short human-readable status text.
        error: Error details when ``success`` is False.
    """

    success: bool = True
    data: T | None = None
    message: str = "Operation completed successfully"
    error: dict[str, Any] | None = None


class ErrorResponse(ApiResponse[None]):
    """Envelope produced by the global exception handler."""

    success: bool = False
    message: str = "An error occurred"
