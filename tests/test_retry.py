"""Unit tests for retry logic and error classification."""
import httpx
import pytest

from workout_voice_coach.speech.elevenlabs import SpeechSynthesisError
from workout_voice_coach.speech.retry import (
    DEFAULT_MAX_ATTEMPTS,
    is_retryable_error,
    retry_async_call,
)


class TestIsRetryableError:
    """Test error classification for retry decisions."""

    @pytest.mark.parametrize("status_code", [429, 500, 502, 503, 504])
    def test_transient_status_codes_are_retryable(self, status_code):
        """Rate limits and 5xx responses should be retried."""
        assert is_retryable_error(SpeechSynthesisError("failed", status_code=status_code)) is True

    @pytest.mark.parametrize("status_code", [400, 401, 403, 404, 422])
    def test_client_errors_are_not_retryable(self, status_code):
        """Bad requests and auth failures should fail fast."""
        assert is_retryable_error(SpeechSynthesisError("failed", status_code=status_code)) is False

    def test_http_status_error_uses_response_code(self):
        request = httpx.Request("POST", "https://api.elevenlabs.io/v1/text-to-speech/v")
        response = httpx.Response(503, request=request)
        error = httpx.HTTPStatusError("busy", request=request, response=response)
        assert is_retryable_error(error) is True

    def test_transport_errors_are_retryable(self):
        assert is_retryable_error(httpx.ConnectError("refused")) is True
        assert is_retryable_error(httpx.ReadTimeout("slow")) is True

    @pytest.mark.parametrize("message", ["Request timed out", "Read timeout"])
    def test_timeout_messages_are_retryable(self, message):
        assert is_retryable_error(Exception(message)) is True

    def test_unknown_errors_are_not_retryable(self):
        assert is_retryable_error(ValueError("bad input")) is False


class TestRetryAsyncCall:
    """Test the async retry wrapper."""

    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        calls = []

        async def succeed(value):
            calls.append(value)
            return value * 2

        assert await retry_async_call(succeed, 21) == 42
        assert calls == [21]

    @pytest.mark.asyncio
    async def test_retries_transient_failure(self):
        attempts = []

        async def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise SpeechSynthesisError("busy", status_code=503)
            return "ok"

        result = await retry_async_call(flaky, min_wait_seconds=0, max_wait_seconds=0)
        assert result == "ok"
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_reraises_after_max_attempts(self):
        attempts = []

        async def always_busy():
            attempts.append(1)
            raise SpeechSynthesisError("busy", status_code=503)

        with pytest.raises(SpeechSynthesisError):
            await retry_async_call(always_busy, min_wait_seconds=0, max_wait_seconds=0)
        assert len(attempts) == DEFAULT_MAX_ATTEMPTS

    @pytest.mark.asyncio
    async def test_non_retryable_fails_immediately(self):
        attempts = []

        async def unauthorized():
            attempts.append(1)
            raise SpeechSynthesisError("nope", status_code=401)

        with pytest.raises(SpeechSynthesisError):
            await retry_async_call(unauthorized, min_wait_seconds=0, max_wait_seconds=0)
        assert len(attempts) == 1

    @pytest.mark.asyncio
    async def test_passes_keyword_arguments(self):
        async def join(a, b, sep="-"):
            return f"{a}{sep}{b}"

        assert await retry_async_call(join, "x", "y", sep="+") == "x+y"
