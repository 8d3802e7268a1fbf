"""Workout document parser."""
from .base import Diagnostics, WorkoutDecodeError, WorkoutFormatError
from .models import (
    Circuit,
    CircuitPhase,
    Exercise,
    ExercisePhase,
    ExerciseVoiceInstructions,
    ParseResult,
    Phase,
    PhaseVoiceInstructions,
    TempoBreakdown,
    TimeRange,
    Workout,
    WorkoutMetadata,
)
from .values import coerce_value, parse_tempo, parse_time_range, parse_time_to_seconds
from .workout_parser import WorkoutParser, parse_workout

__all__ = [
    "Circuit",
    "CircuitPhase",
    "Diagnostics",
    "Exercise",
    "ExercisePhase",
    "ExerciseVoiceInstructions",
    "ParseResult",
    "Phase",
    "PhaseVoiceInstructions",
    "TempoBreakdown",
    "TimeRange",
    "Workout",
    "WorkoutDecodeError",
    "WorkoutFormatError",
    "WorkoutMetadata",
    "WorkoutParser",
    "coerce_value",
    "parse_tempo",
    "parse_time_range",
    "parse_time_to_seconds",
    "parse_workout",
]
