"""Error taxonomy for the content-generation gateway.

Only :class:`InputError` ever reaches an HTTP caller. Provider and validation
failures are absorbed by the gateway, which substitutes fallback content, and
interaction-log failures are swallowed by the logger. Each exception carries
a stable ``error_code`` used as a tag in logs and interaction context.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, eq=False)
class GenerationError(Exception):
    """Base class for gateway domain errors."""

    message: str
    error_code: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.error_code}: {self.message}"


class InputError(GenerationError):
    """A required free-text field is empty after normalization."""

    def __init__(self, field: str, message: str | None = None) -> None:
        super().__init__(
            message=message or f"'{field}' is required",
            error_code="missing_field",
        )
        self.field = field


class ProviderError(GenerationError):
    """The external provider failed; ``status_code`` is None for network faults."""

    def __init__(
        self,
        message: str = "Provider call failed",
        status_code: int | None = None,
        error_code: str = "provider_error",
    ) -> None:
        super().__init__(message=message, error_code=error_code)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        """Rate limits and server faults are worth another attempt."""
        code = self.status_code
        return code is not None and (code == 429 or code >= 500)


class ProviderTransientError(ProviderError):
    """Retryable failure whose retry budget ran out."""

    def __init__(
        self, message: str = "Provider unavailable", status_code: int | None = None
    ) -> None:
        super().__init__(
            message=message, status_code=status_code, error_code="provider_transient"
        )


class ProviderTerminalError(ProviderError):
    """Failure that is never retried (auth, bad request, timeout)."""

    def __init__(
        self, message: str = "Provider rejected the call", status_code: int | None = None
    ) -> None:
        super().__init__(
            message=message, status_code=status_code, error_code="provider_terminal"
        )


class ContentValidationError(GenerationError):
    """Provider output did not match the shape requested for its kind."""

    def __init__(self, message: str = "Provider output failed validation") -> None:
        super().__init__(message=message, error_code="invalid_output")


class InteractionLogError(GenerationError):
    """Appending an interaction record failed."""

    def __init__(self, message: str = "Failed to record interaction") -> None:
        super().__init__(message=message, error_code="log_failed")
