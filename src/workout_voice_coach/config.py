"""Configuration settings for the workout voice coach."""
import os
from typing import Literal


EnvironmentType = Literal["development", "staging", "production"]
FrontMatterNotation = Literal["yaml", "lines"]


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


class Settings:
    """Application settings."""

    # Environment
    ENVIRONMENT: EnvironmentType = "development"

    # Speech synthesis
    ELEVENLABS_API_KEY: str | None = None
    ELEVENLABS_VOICE_ID: str | None = None
    ELEVENLABS_MODEL_ID: str = "eleven_monolingual_v1"
    ELEVENLABS_BASE_URL: str = "https://api.elevenlabs.io/v1"

    # Parser
    WORKOUT_REQUIRE_FRONT_MATTER: bool = True
    WORKOUT_FRONT_MATTER_NOTATION: FrontMatterNotation = "yaml"

    # Playback timing (seconds)
    EXERCISE_END_BUFFER_SECONDS: float = 1.0
    ADVANCE_DELAY_SECONDS: float = 1.0
    NARRATION_GAP_SECONDS: float = 0.1

    def __init__(self):
        # Environment
        env = os.getenv("ENVIRONMENT", "development").lower()
        if env in ("development", "staging", "production"):
            self.ENVIRONMENT = env  # type: ignore
        else:
            self.ENVIRONMENT = "development"

        # Speech synthesis
        self.ELEVENLABS_API_KEY = os.getenv("ELEVENLABS_API_KEY")
        self.ELEVENLABS_VOICE_ID = os.getenv("ELEVENLABS_VOICE_ID")
        self.ELEVENLABS_MODEL_ID = os.getenv("ELEVENLABS_MODEL_ID", "eleven_monolingual_v1")
        self.ELEVENLABS_BASE_URL = os.getenv(
            "ELEVENLABS_BASE_URL", "https://api.elevenlabs.io/v1"
        ).rstrip("/")

        # Parser
        self.WORKOUT_REQUIRE_FRONT_MATTER = (
            os.getenv("WORKOUT_REQUIRE_FRONT_MATTER", "true").lower() != "false"
        )
        notation = os.getenv("WORKOUT_FRONT_MATTER_NOTATION", "yaml").lower()
        self.WORKOUT_FRONT_MATTER_NOTATION = notation if notation in ("yaml", "lines") else "yaml"  # type: ignore

        # Playback timing
        self.EXERCISE_END_BUFFER_SECONDS = _env_float("EXERCISE_END_BUFFER_SECONDS", 1.0)
        self.ADVANCE_DELAY_SECONDS = _env_float("ADVANCE_DELAY_SECONDS", 1.0)
        self.NARRATION_GAP_SECONDS = _env_float("NARRATION_GAP_SECONDS", 0.1)


settings = Settings()
