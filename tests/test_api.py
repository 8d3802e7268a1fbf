"""
Tests for the HTTP endpoints.

Speech calls are patched out so the tests run offline.
"""

import pytest
from unittest.mock import AsyncMock, patch

from workout_voice_coach.config import settings
from workout_voice_coach.speech.elevenlabs import SpeechSynthesisError, Voice


@pytest.fixture
def no_configured_credentials(monkeypatch):
    monkeypatch.setattr(settings, "ELEVENLABS_API_KEY", None)
    monkeypatch.setattr(settings, "ELEVENLABS_VOICE_ID", None)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


class TestParseEndpoint:
    """Tests for POST /workouts/parse"""

    def test_parses_sample_document(self, client, sample_document):
        response = client.post("/workouts/parse", json={"text": sample_document})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["workout"]["title"] == "Full Body Circuit"
        kinds = [phase["kind"] for phase in data["workout"]["phases"]]
        assert kinds == ["exercises", "circuits", "exercises"]
        assert len(data["warnings"]) == 1

    def test_missing_front_matter_is_422(self, client):
        response = client.post("/workouts/parse", json={"text": "# Warm-up\n### Jog"})
        assert response.status_code == 422
        assert "front-matter" in response.json()["detail"]

    def test_permissive_request(self, client):
        response = client.post(
            "/workouts/parse",
            json={"text": "# Warm-up\n### Jog\n- duration: 60", "require_front_matter": False},
        )
        assert response.status_code == 200
        phases = response.json()["workout"]["phases"]
        assert phases[0]["exercises"][0]["duration"] == 60

    def test_unknown_notation_is_rejected(self, client, sample_document):
        response = client.post(
            "/workouts/parse",
            json={"text": sample_document, "front_matter_notation": "toml"},
        )
        assert response.status_code == 422


class TestOutlineEndpoint:
    """Tests for POST /workouts/outline"""

    def test_lists_steps_in_playback_order(self, client, sample_document):
        response = client.post("/workouts/outline", json={"text": sample_document})
        assert response.status_code == 200
        data = response.json()
        assert data["total_exercises"] == 16
        assert len(data["steps"]) == 16
        push_ups = data["steps"][6]
        assert push_ups["exercise_name"] == "Exercise 3: Push-Ups"
        assert push_ups["circuit_name"] == "Circuit 2: Upper Body Push"
        assert (push_ups["phase_index"], push_ups["circuit_index"], push_ups["exercise_index"]) == (1, 1, 0)
        assert data["steps"][0]["duration"] == 30


class TestVoicesEndpoint:
    """Tests for GET /voices"""

    def test_requires_key(self, client, no_configured_credentials):
        response = client.get("/voices")
        assert response.status_code == 400

    def test_lists_voices(self, client):
        voices = [Voice(voice_id="v1", name="Rachel", labels={"accent": "american"})]
        with patch("workout_voice_coach.api.routes.fetch_voices", new_callable=AsyncMock, return_value=voices) as mock:
            response = client.get("/voices", headers={"X-ElevenLabs-Key": "sk_test"})
        assert response.status_code == 200
        assert response.json()[0]["name"] == "Rachel"
        mock.assert_awaited_once_with("sk_test")

    def test_rejected_key(self, client):
        error = SpeechSynthesisError("Failed to fetch voices: 401 Unauthorized", status_code=401)
        with patch("workout_voice_coach.api.routes.fetch_voices", new_callable=AsyncMock, side_effect=error):
            response = client.get("/voices", headers={"X-ElevenLabs-Key": "sk_bad"})
        assert response.status_code == 401


class TestSpeechPreviewEndpoint:
    """Tests for POST /speech/preview"""

    def test_returns_audio(self, client):
        with patch(
            "workout_voice_coach.api.routes.synthesize_speech",
            new_callable=AsyncMock,
            return_value=b"ID3-audio",
        ) as mock:
            response = client.post(
                "/speech/preview",
                json={"text": "Ready?", "voice_id": "v1"},
                headers={"X-ElevenLabs-Key": "sk_test"},
            )
        assert response.status_code == 200
        assert response.headers["content-type"] == "audio/mpeg"
        assert response.content == b"ID3-audio"
        mock.assert_awaited_once_with("Ready?", "v1", "sk_test")

    def test_missing_voice(self, client, no_configured_credentials):
        response = client.post(
            "/speech/preview",
            json={"text": "Ready?"},
            headers={"X-ElevenLabs-Key": "sk_test"},
        )
        assert response.status_code == 400

    def test_upstream_failure_is_502(self, client):
        error = SpeechSynthesisError("Speech synthesis failed: 503 Service Unavailable", status_code=503)
        with patch("workout_voice_coach.api.routes.synthesize_speech", new_callable=AsyncMock, side_effect=error):
            response = client.post(
                "/speech/preview",
                json={"text": "Ready?", "voice_id": "v1"},
                headers={"X-ElevenLabs-Key": "sk_test"},
            )
        assert response.status_code == 502
        assert "503" in response.json()["detail"]
