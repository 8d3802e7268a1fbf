"""
Test fixtures for workout-voice-coach.

Provides the sample workout document, narration doubles and a manual timer
scheduler so playback tests run offline and deterministically.
"""

import random
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
FIXTURES = Path(__file__).resolve().parent / "fixtures"

# Make src/ importable so tests can do `import workout_voice_coach...`
for p in {ROOT, SRC}:
    p_str = str(p)
    if p_str not in sys.path:
        sys.path.insert(0, p_str)

from workout_voice_coach.main import app
from workout_voice_coach.parsers import WorkoutParser

from factories import ManualScheduler, RecordingPlayer


# ---------------------------------------------------------------------------
# Core Test Client
# ---------------------------------------------------------------------------


@pytest.fixture
def client() -> TestClient:
    """Per-test FastAPI TestClient."""
    return TestClient(app)


# ---------------------------------------------------------------------------
# Sample Data Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_document() -> str:
    """Warm-up (4 movements), Main Workout (4 circuits x 2), Cool Down (4 stretches)."""
    return (FIXTURES / "workout.md").read_text(encoding="utf-8")


@pytest.fixture
def parser() -> WorkoutParser:
    return WorkoutParser(require_front_matter=True, front_matter_notation="yaml")


@pytest.fixture
def workout(parser, sample_document):
    return parser.parse(sample_document)


# ---------------------------------------------------------------------------
# Playback Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def recording_player() -> RecordingPlayer:
    return RecordingPlayer()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)
