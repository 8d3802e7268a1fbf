"""
Workout voice coach endpoints

- POST /workouts/parse    parse a workout document into the typed tree
- POST /workouts/outline  the exercises in the order playback visits them
- GET  /voices            ElevenLabs voices for a key
- POST /speech/preview    synthesize one narration line
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Header, HTTPException
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from workout_voice_coach.config import FrontMatterNotation, settings
from workout_voice_coach.parsers import ParseResult, WorkoutFormatError, WorkoutParser
from workout_voice_coach.playback.sequencer import PlaybackStep, iter_steps
from workout_voice_coach.speech.elevenlabs import SpeechSynthesisError, Voice, fetch_voices, synthesize_speech

logger = logging.getLogger(__name__)

router = APIRouter()

# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class ParseWorkoutRequest(BaseModel):
    """Request model for POST /workouts/parse and /workouts/outline"""
    text: str = Field(..., max_length=200000, description="Workout document (front matter + body)")
    require_front_matter: Optional[bool] = Field(
        default=None, description="Fail when the '---' front matter block is missing (default from settings)"
    )
    front_matter_notation: Optional[FrontMatterNotation] = Field(
        default=None, description="'yaml' or 'lines' (default from settings)"
    )


class OutlineResponse(BaseModel):
    """Response model for POST /workouts/outline"""
    title: Optional[str] = None
    total_exercises: int
    steps: List[PlaybackStep]
    warnings: List[str] = Field(default_factory=list)


class SpeechPreviewRequest(BaseModel):
    """Request model for POST /speech/preview"""
    text: str = Field(..., min_length=1, max_length=5000)
    voice_id: Optional[str] = Field(default=None, description="Defaults to ELEVENLABS_VOICE_ID")


def _parse(request: ParseWorkoutRequest) -> ParseResult:
    parser = WorkoutParser(
        require_front_matter=request.require_front_matter,
        front_matter_notation=request.front_matter_notation,
    )
    try:
        return parser.parse_document(request.text)
    except WorkoutFormatError as e:
        logger.warning(f"Rejected workout document: {e}")
        raise HTTPException(status_code=422, detail=str(e))


def _synthesis_error(e: SpeechSynthesisError) -> HTTPException:
    detail = str(e)
    if e.status_code in (401, 403):
        return HTTPException(status_code=401, detail=detail)
    return HTTPException(status_code=502, detail=detail)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/health")
def health():
    """Health check endpoint."""
    return {"ok": True}


@router.post("/workouts/parse")
def parse_workout_document(request: ParseWorkoutRequest) -> JSONResponse:
    """Parse a workout document. Recoverable problems come back as warnings."""
    result = _parse(request)
    return JSONResponse(result.model_dump())


@router.post("/workouts/outline", response_model=OutlineResponse)
def outline_workout(request: ParseWorkoutRequest) -> OutlineResponse:
    """List the exercises in the order the sequencer visits them."""
    result = _parse(request)
    workout = result.workout
    return OutlineResponse(
        title=workout.title,
        total_exercises=workout.total_exercises,
        steps=list(iter_steps(workout)),
        warnings=result.warnings,
    )


@router.get("/voices", response_model=List[Voice])
async def list_voices(x_elevenlabs_key: Optional[str] = Header(default=None)) -> List[Voice]:
    """Voices available to the given key (or the configured one)."""
    api_key = x_elevenlabs_key or settings.ELEVENLABS_API_KEY
    if not api_key:
        raise HTTPException(status_code=400, detail="ElevenLabs API key is required")
    try:
        return await fetch_voices(api_key)
    except SpeechSynthesisError as e:
        raise _synthesis_error(e)


@router.post("/speech/preview")
async def preview_speech(
    request: SpeechPreviewRequest,
    x_elevenlabs_key: Optional[str] = Header(default=None),
) -> Response:
    """Synthesize a single narration line as MP3."""
    api_key = x_elevenlabs_key or settings.ELEVENLABS_API_KEY
    voice_id = request.voice_id or settings.ELEVENLABS_VOICE_ID
    if not api_key or not voice_id:
        raise HTTPException(status_code=400, detail="API key and voice ID are required")
    try:
        audio = await synthesize_speech(request.text, voice_id, api_key)
    except SpeechSynthesisError as e:
        raise _synthesis_error(e)
    return Response(content=audio, media_type="audio/mpeg")
