"""Speech synthesis clients."""
from .elevenlabs import (
    SpeechSynthesisError,
    Voice,
    add_count_breaks,
    fetch_voices,
    is_valid_api_key,
    synthesize_speech,
)
from .retry import create_retry_decorator, is_retryable_error, retry_async_call

__all__ = [
    "SpeechSynthesisError",
    "Voice",
    "add_count_breaks",
    "create_retry_decorator",
    "fetch_voices",
    "is_retryable_error",
    "is_valid_api_key",
    "retry_async_call",
    "synthesize_speech",
]
