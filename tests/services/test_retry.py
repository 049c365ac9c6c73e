"""Tests for the provider retry state machine."""

from __future__ import annotations

import pytest

from services.generation.exceptions import (
    ProviderError,
    ProviderTerminalError,
    ProviderTransientError,
)
from services.generation.retry import (
    Attempting,
    RetryableFailure,
    RetryController,
    Success,
    TerminalFailure,
)


def scripted_call(*outcomes: str | Exception):
    """An async callable replaying ``outcomes``, plus a counter of calls made."""
    remaining = list(outcomes)
    calls = {"count": 0}

    async def call() -> str:
        calls["count"] += 1
        outcome = remaining.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    return call, calls


class TestAdvance:
    def test_text_outcome_is_success(self) -> None:
        state = RetryController().advance(Attempting(1), "payload")
        assert state == Success(raw="payload", attempts=2)

    @pytest.mark.parametrize("status_code", [429, 500, 502, 503])
    def test_retryable_status_schedules_linear_wait(self, status_code: int) -> None:
        controller = RetryController(base_delay=2.0)
        first = controller.advance(Attempting(0), ProviderError(status_code=status_code))
        second = controller.advance(Attempting(1), ProviderError(status_code=status_code))

        assert isinstance(first, RetryableFailure)
        assert first.wait_seconds == 2.0
        assert isinstance(second, RetryableFailure)
        assert second.wait_seconds == 4.0

    def test_retryable_status_on_last_attempt_is_transient_terminal(self) -> None:
        state = RetryController(max_attempts=3).advance(
            Attempting(2), ProviderError(status_code=429)
        )
        assert isinstance(state, TerminalFailure)
        assert isinstance(state.error, ProviderTransientError)
        assert state.error.status_code == 429
        assert state.attempts == 3

    @pytest.mark.parametrize("status_code", [400, 401, 403, 404, None])
    def test_non_retryable_errors_are_terminal_at_once(self, status_code) -> None:
        state = RetryController().advance(
            Attempting(0), ProviderError(status_code=status_code)
        )
        assert isinstance(state, TerminalFailure)
        assert isinstance(state.error, ProviderTerminalError)
        assert state.error.error_code == "provider_terminal"
        assert state.attempts == 1

    def test_terminal_error_is_never_retried_even_with_5xx_status(self) -> None:
        error = ProviderTerminalError("unsupported", status_code=501)
        state = RetryController().advance(Attempting(0), error)
        assert isinstance(state, TerminalFailure)
        assert state.error is error

    def test_max_attempts_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            RetryController(max_attempts=0)


class TestRun:
    @pytest.mark.asyncio
    async def test_three_rate_limits_make_three_attempts(self, sleeper) -> None:
        controller = RetryController(max_attempts=3, base_delay=2.0, sleep=sleeper)
        call, calls = scripted_call(*(ProviderError(status_code=429) for _ in range(3)))

        final = await controller.run(call)

        assert calls["count"] == 3
        assert sleeper.waits == [2.0, 4.0]
        assert isinstance(final, TerminalFailure)
        assert final.error.error_code == "provider_transient"
        assert final.attempts == 3

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failure(self, sleeper) -> None:
        controller = RetryController(sleep=sleeper)
        call, calls = scripted_call(ProviderError(status_code=503), '{"ok": true}')

        final = await controller.run(call)

        assert final == Success(raw='{"ok": true}', attempts=2)
        assert calls["count"] == 2
        assert sleeper.waits == [2.0]

    @pytest.mark.asyncio
    async def test_auth_failure_makes_a_single_attempt(self, sleeper) -> None:
        controller = RetryController(sleep=sleeper)
        call, calls = scripted_call(ProviderError(status_code=401))

        final = await controller.run(call)

        assert calls["count"] == 1
        assert sleeper.waits == []
        assert isinstance(final, TerminalFailure)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_attempts", [1, 2, 3, 5])
    async def test_attempts_never_exceed_budget(self, sleeper, max_attempts: int) -> None:
        controller = RetryController(max_attempts=max_attempts, sleep=sleeper)
        call, calls = scripted_call(*(ProviderError(status_code=500) for _ in range(10)))

        await controller.run(call)

        assert calls["count"] == max_attempts
        assert len(sleeper.waits) == max_attempts - 1

    @pytest.mark.asyncio
    async def test_unexpected_exceptions_propagate(self, sleeper) -> None:
        controller = RetryController(sleep=sleeper)
        call, _ = scripted_call(RuntimeError("bug"))

        with pytest.raises(RuntimeError):
            await controller.run(call)

    @pytest.mark.asyncio
    async def test_terminal_error_with_5xx_status_is_not_retried(self, sleeper) -> None:
        controller = RetryController(sleep=sleeper)
        error = ProviderTerminalError("unsupported", status_code=501)
        call, calls = scripted_call(error)

        final = await controller.run(call)

        assert calls["count"] == 1
        assert sleeper.waits == []
        assert isinstance(final, TerminalFailure)
        assert final.error is error

    @pytest.mark.asyncio
    async def test_waits_grow_linearly_with_base_delay(self, sleeper) -> None:
        controller = RetryController(max_attempts=4, base_delay=0.5, sleep=sleeper)
        call, _ = scripted_call(*(ProviderError(status_code=502) for _ in range(4)))

        await controller.run(call)

        assert sleeper.waits == [0.5, 1.0, 1.5]

    @pytest.mark.asyncio
    async def test_retries_are_logged(self, sleeper, caplog) -> None:
        controller = RetryController(sleep=sleeper)
        call, _ = scripted_call(ProviderError(status_code=429), "ok")

        with caplog.at_level("WARNING"):
            await controller.run(call)

        assert any("retrying" in r.getMessage() for r in caplog.records)


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (ProviderError(status_code=429), True),
        (ProviderError(status_code=503), True),
        (ProviderTransientError(status_code=500), True),
        (ProviderError(status_code=401), False),
        (ProviderError(status_code=None), False),
        (ProviderTerminalError(status_code=501), False),
        (RuntimeError("bug"), False),
    ],
)
def test_is_retryable(error: BaseException, expected: bool) -> None:
    assert RetryController.is_retryable(error) is expected
