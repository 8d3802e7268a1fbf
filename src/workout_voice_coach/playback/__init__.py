"""Narration playback: audio abstraction, narration queue and workout sequencer."""
from .audio import ENDED, ERROR, AudioResource, PlaybackError
from .narration import NarrationItem, NarrationPlayer, SpeechConfig
from .sequencer import PlaybackPosition, PlaybackState, PlaybackStep, WorkoutSequencer, iter_steps

__all__ = [
    "ENDED",
    "ERROR",
    "AudioResource",
    "NarrationItem",
    "NarrationPlayer",
    "PlaybackError",
    "PlaybackPosition",
    "PlaybackState",
    "PlaybackStep",
    "SpeechConfig",
    "WorkoutSequencer",
    "iter_steps",
]
