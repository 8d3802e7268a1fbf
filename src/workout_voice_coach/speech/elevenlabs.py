"""ElevenLabs text-to-speech client.

Synthesizes narration audio and lists available voices. API keys are passed
per call (or taken from settings) and never logged.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, Field

from workout_voice_coach.config import settings
from workout_voice_coach.speech.retry import retry_async_call

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

VOICE_SETTINGS = {
    "stability": 0.5,
    "similarity_boost": 0.75,
    "style": 0.5,
    "use_speaker_boost": True,
}

# Numbers and number words followed by whitespace or punctuation get a pause,
# so counted reps are spoken one at a time.
COUNT_PATTERN = re.compile(
    r'(\d+|\b(?:one|two|three|four|five|six|seven|eight|nine|ten)\b)(?=[\s.,])',
    re.IGNORECASE,
)
COUNT_BREAK = '<break time="1.0s" />'

API_KEY_PATTERN = re.compile(r'^sk_[a-f0-9]{40}$')


class SpeechSynthesisError(RuntimeError):
    """Raised when speech synthesis or a voice lookup fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class Voice(BaseModel):
    """Voice available to an ElevenLabs account"""
    voice_id: str
    name: str
    labels: Dict[str, str] = Field(default_factory=dict)


def add_count_breaks(text: str) -> str:
    """Insert a one second break after each spoken count."""
    return COUNT_PATTERN.sub(lambda m: f"{m.group(1)}{COUNT_BREAK}", text)


def is_valid_api_key(api_key: str) -> bool:
    """ElevenLabs keys look like 'sk_' followed by 40 hex characters."""
    return bool(API_KEY_PATTERN.match(api_key or ""))


def _error_message(prefix: str, response: httpx.Response) -> str:
    message = f"{prefix}: {response.status_code} {response.reason_phrase}"
    body = response.text
    try:
        detail = json.loads(body).get("detail")
    except (ValueError, AttributeError):
        detail = None
    if detail:
        if isinstance(detail, dict):
            detail = detail.get("message") or json.dumps(detail)
        message += f" - {detail}"
    elif body:
        message += f" - {body}"
    return message


async def _post_speech(client: httpx.AsyncClient, url: str, api_key: str, payload: Dict[str, Any]) -> bytes:
    response = await client.post(
        url,
        headers={
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": api_key,
        },
        json=payload,
    )
    if response.status_code != 200:
        message = _error_message("Speech synthesis failed", response)
        logger.error(message)
        raise SpeechSynthesisError(message, status_code=response.status_code)
    return response.content


async def synthesize_speech(
    text: str,
    voice_id: Optional[str],
    api_key: Optional[str],
    *,
    model_id: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
    max_attempts: int = 3,
) -> bytes:
    """
    Synthesize narration audio with the ElevenLabs streaming endpoint.

    Args:
        text: Narration text
        voice_id: ElevenLabs voice ID
        api_key: ElevenLabs API key
        model_id: Model to use (default from settings)
        client: Optional shared httpx client
        max_attempts: Attempts for transient failures (429, 5xx, timeouts)

    Returns:
        MP3 audio bytes

    Raises:
        SpeechSynthesisError: If credentials are missing or the request fails
    """
    if not api_key or not voice_id:
        raise SpeechSynthesisError("API key and voice ID are required")

    logger.info(f"Synthesizing speech ({len(text)} chars, voice {voice_id})")
    url = f"{settings.ELEVENLABS_BASE_URL}/text-to-speech/{voice_id}/stream"
    payload = {
        "text": add_count_breaks(text),
        "model_id": model_id or settings.ELEVENLABS_MODEL_ID,
        "voice_settings": VOICE_SETTINGS,
    }

    try:
        if client is not None:
            audio = await retry_async_call(_post_speech, client, url, api_key, payload, max_attempts=max_attempts)
        else:
            async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT) as own_client:
                audio = await retry_async_call(
                    _post_speech, own_client, url, api_key, payload, max_attempts=max_attempts
                )
    except httpx.HTTPError as e:
        raise SpeechSynthesisError(f"Speech synthesis failed: {e}") from e

    logger.info(f"Received {len(audio)} bytes of audio")
    return audio


async def fetch_voices(api_key: Optional[str], client: Optional[httpx.AsyncClient] = None) -> List[Voice]:
    """
    List the voices available to an API key.

    Raises:
        SpeechSynthesisError: If the key is missing or the request fails
    """
    if not api_key:
        raise SpeechSynthesisError("API key is required")

    url = f"{settings.ELEVENLABS_BASE_URL}/voices"
    headers = {"Accept": "application/json", "xi-api-key": api_key}
    try:
        if client is not None:
            response = await client.get(url, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT) as own_client:
                response = await own_client.get(url, headers=headers)
    except httpx.HTTPError as e:
        raise SpeechSynthesisError(f"Failed to fetch voices: {e}") from e

    if response.status_code != 200:
        message = _error_message("Failed to fetch voices", response)
        logger.error(message)
        raise SpeechSynthesisError(message, status_code=response.status_code)

    voices = []
    for voice in response.json().get("voices", []):
        labels = {k: str(v) for k, v in (voice.get("labels") or {}).items()}
        labels.setdefault("accent", "Unknown")
        labels.setdefault("description", "No description")
        voices.append(Voice(voice_id=voice["voice_id"], name=voice.get("name", ""), labels=labels))
    logger.info(f"Fetched {len(voices)} voices")
    return voices
