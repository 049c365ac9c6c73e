"""Bounded retry of provider calls as an explicit state machine.

    Attempting(n) --success------------------------> Success(raw)
    Attempting(n) --429/5xx, n+1 < max_attempts----> RetryableFailure -> Attempting(n+1)
    Attempting(n) --429/5xx, budget spent----------> TerminalFailure(ProviderTransientError)
    Attempting(n) --anything else------------------> TerminalFailure(ProviderTerminalError)

The wait before ``Attempting(n+1)`` is ``base_delay * (n + 1)`` seconds,
linear in the attempt number. ``advance`` is the pure transition function;
``run`` drives real calls through it with ``tenacity``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
)

from core.error_handler import StructuredLogger
from services.generation.exceptions import (
    ProviderError,
    ProviderTerminalError,
    ProviderTransientError,
)


log = StructuredLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class Attempting:
    attempt: int  # zero-based


@dataclass(frozen=True, slots=True)
class RetryableFailure:
    attempt: int
    error: ProviderError
    wait_seconds: float


@dataclass(frozen=True, slots=True)
class Success:
    raw: str
    attempts: int


@dataclass(frozen=True, slots=True)
class TerminalFailure:
    error: ProviderTransientError | ProviderTerminalError
    attempts: int


class RetryController:
    """Drive one provider call through the retry state machine."""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 2.0,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._sleep = sleep

    @staticmethod
    def is_retryable(exc: BaseException) -> bool:
        """Rate limits and server faults, unless already classified terminal."""
        return (
            isinstance(exc, ProviderError)
            and not isinstance(exc, ProviderTerminalError)
            and exc.retryable
        )

    def conclude(self, error: ProviderError, attempts: int) -> TerminalFailure:
        """Terminal state for the error that ended the call after ``attempts``."""
        if not self.is_retryable(error):
            terminal = (
                error
                if isinstance(error, ProviderTerminalError)
                else ProviderTerminalError(error.message, error.status_code)
            )
            return TerminalFailure(error=terminal, attempts=attempts)

        transient = (
            error
            if isinstance(error, ProviderTransientError)
            else ProviderTransientError(error.message, error.status_code)
        )
        return TerminalFailure(error=transient, attempts=attempts)

    def advance(
        self, state: Attempting, outcome: str | ProviderError
    ) -> RetryableFailure | Success | TerminalFailure:
        """Pure transition out of ``Attempting`` given one call outcome."""
        attempts = state.attempt + 1
        if isinstance(outcome, str):
            return Success(raw=outcome, attempts=attempts)

        if self.is_retryable(outcome) and attempts < self.max_attempts:
            return RetryableFailure(
                attempt=state.attempt,
                error=outcome,
                wait_seconds=self.base_delay * attempts,
            )
        return self.conclude(outcome, attempts)

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        log.warning(
            "Provider attempt failed, retrying",
            attempt=retry_state.attempt_number,
            status_code=getattr(error, "status_code", None),
            wait_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
        )

    async def run(self, call: Callable[[], Awaitable[str]]) -> Success | TerminalFailure:
        """Invoke ``call`` until it succeeds or reaches a terminal state.

        Only :class:`ProviderError` is treated as a call outcome; any other
        exception is a bug and propagates.
        """
        attempts = 0

        async def attempt() -> str:
            nonlocal attempts
            attempts += 1
            log.info("Provider attempt started", attempt=attempts)
            return await call()

        retrying = AsyncRetrying(
            retry=retry_if_exception(self.is_retryable),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_incrementing(start=self.base_delay, increment=self.base_delay),
            sleep=self._sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            raw = await retrying(attempt)
        except ProviderError as exc:
            failure = self.conclude(exc, attempts)
            log.warning(
                "Provider call failed terminally",
                attempts=failure.attempts,
                status_code=failure.error.status_code,
                error_code=failure.error.error_code,
            )
            return failure

        log.info("Provider call succeeded", attempts=attempts)
        return Success(raw=raw, attempts=attempts)
