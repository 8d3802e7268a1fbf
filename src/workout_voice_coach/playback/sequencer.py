"""
Workout Sequencer

State machine that walks a parsed workout during playback. It queues the
narration for each exercise, advances exercise -> circuit -> phase either
on user request or when a timed exercise's completion timer fires, and
stops cleanly at any point.

Timer callbacks are bound to the session that armed them; once a session
is stopped or restarted its callbacks do nothing.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterator, List, Optional

from pydantic import BaseModel

from workout_voice_coach.config import settings
from workout_voice_coach.parsers.models import Circuit, CircuitPhase, Exercise, Workout
from workout_voice_coach.playback.narration import NarrationPlayer

logger = logging.getLogger(__name__)

Scheduler = Callable[[float, Callable[[], Any]], Any]


@dataclass
class PlaybackState:
    is_playing: bool = False
    current_phase_index: int = 0
    current_exercise_index: int = 0
    current_circuit_index: int = 0


class PlaybackPosition(BaseModel):
    """Snapshot of where playback is, for UI polling"""
    is_playing: bool
    phase_index: int
    circuit_index: int
    exercise_index: int
    total_phases: int
    progress: float
    phase_name: Optional[str] = None
    circuit_name: Optional[str] = None
    exercise_name: Optional[str] = None


class PlaybackStep(BaseModel):
    """One exercise in the order the sequencer visits it"""
    phase_index: int
    circuit_index: int
    exercise_index: int
    phase_name: str
    circuit_name: Optional[str] = None
    exercise_name: str
    duration: Optional[float] = None


def iter_steps(workout: Workout) -> Iterator[PlaybackStep]:
    """Yield every exercise in playback order."""
    for phase_index, phase in enumerate(workout.phases):
        circuits = phase.circuits if isinstance(phase, CircuitPhase) else [None]
        for circuit_index, container in enumerate(phase.containers):
            circuit = circuits[circuit_index]
            for exercise_index, exercise in enumerate(container):
                yield PlaybackStep(
                    phase_index=phase_index,
                    circuit_index=circuit_index,
                    exercise_index=exercise_index,
                    phase_name=phase.name,
                    circuit_name=circuit.name if circuit is not None else None,
                    exercise_name=exercise.name,
                    duration=exercise.duration,
                )


class WorkoutSequencer:
    """Drives narration playback through a workout."""

    def __init__(
        self,
        player: NarrationPlayer,
        workout: Optional[Workout] = None,
        *,
        rng: Optional[random.Random] = None,
        call_later: Optional[Scheduler] = None,
        end_buffer_seconds: Optional[float] = None,
        advance_delay_seconds: Optional[float] = None,
    ):
        """
        Args:
            player: Narration player that owns the audio resource
            workout: Workout to play; can also be set later with `load`
            rng: Source of randomness for motivation picks (seed it for tests)
            call_later: `(delay, callback) -> handle with cancel()`; defaults
                to the running event loop's `call_later`
            end_buffer_seconds: Added to a timed exercise before it completes
            advance_delay_seconds: Gap between the end narration and the advance
        """
        self.player = player
        self._workout = workout
        self._rng = rng or random.Random()
        self._call_later = call_later
        self.end_buffer_seconds = (
            settings.EXERCISE_END_BUFFER_SECONDS if end_buffer_seconds is None else end_buffer_seconds
        )
        self.advance_delay_seconds = (
            settings.ADVANCE_DELAY_SECONDS if advance_delay_seconds is None else advance_delay_seconds
        )
        self._state = PlaybackState()
        self._session = 0
        self._timer: Any = None

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def workout(self) -> Optional[Workout]:
        return self._workout

    @property
    def state(self) -> PlaybackState:
        return replace(self._state)

    @property
    def is_playing(self) -> bool:
        return self._state.is_playing

    @property
    def current_phase(self):
        if self._workout is None or not self._workout.phases:
            return None
        index = self._state.current_phase_index
        return self._workout.phases[index] if index < len(self._workout.phases) else None

    @property
    def current_circuit(self) -> Optional[Circuit]:
        phase = self.current_phase
        if not isinstance(phase, CircuitPhase):
            return None
        index = self._state.current_circuit_index
        return phase.circuits[index] if index < len(phase.circuits) else None

    @property
    def current_exercise(self) -> Optional[Exercise]:
        container = self._current_container()
        index = self._state.current_exercise_index
        return container[index] if index < len(container) else None

    def position(self) -> PlaybackPosition:
        total = len(self._workout.phases) if self._workout is not None else 0
        phase = self.current_phase
        circuit = self.current_circuit
        exercise = self.current_exercise
        return PlaybackPosition(
            is_playing=self._state.is_playing,
            phase_index=self._state.current_phase_index,
            circuit_index=self._state.current_circuit_index,
            exercise_index=self._state.current_exercise_index,
            total_phases=total,
            progress=self._state.current_phase_index / total if total else 0.0,
            phase_name=phase.name if phase is not None else None,
            circuit_name=circuit.name if circuit is not None else None,
            exercise_name=exercise.name if exercise is not None else None,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def load(self, workout: Workout):
        """Replace the workout, stopping any running session."""
        self.stop()
        self._workout = workout
        self._state = PlaybackState()
        logger.info(f"Loaded workout '{workout.title}' ({len(workout.phases)} phases)")

    def start(self):
        """Start (or restart) playback from the first exercise."""
        if self._workout is None:
            logger.error("No workout loaded")
            return
        if not self._workout.phases:
            logger.warning(f"Workout '{self._workout.title}' has no phases to play")
            return

        logger.info(f"Starting workout: {self._workout.title}")
        self._cancel_timer()
        self.player.clear()
        self._session += 1
        self._state = PlaybackState(is_playing=True)
        self.player.activate()

        first_phase = self._workout.phases[0]
        if first_phase.voice_instructions is not None:
            self.player.enqueue(first_phase.voice_instructions.start, "phase-start")
        self._enter_current_exercise()
        self._log_progress()

    def advance_exercise(self):
        """Move to the next exercise, circuit or phase; finish after the last one."""
        if self._workout is None or not self._state.is_playing:
            logger.debug("advance_exercise ignored: playback is not running")
            return

        state = self._state
        phase = self._workout.phases[state.current_phase_index]
        containers = phase.containers
        container = self._current_container()

        is_last_exercise = state.current_exercise_index >= len(container) - 1
        is_last_circuit = state.current_circuit_index >= max(len(containers), 1) - 1
        is_last_phase = state.current_phase_index >= len(self._workout.phases) - 1

        self._cancel_timer()

        if not is_last_exercise:
            state.current_exercise_index += 1
            logger.info(f"Moving to next exercise: {state.current_exercise_index + 1}/{len(container)}")
        elif not is_last_circuit:
            state.current_exercise_index = 0
            state.current_circuit_index += 1
            logger.info(f"Moving to next circuit: {state.current_circuit_index + 1}/{len(containers)}")
            self.player.enqueue(f"Starting circuit {state.current_circuit_index + 1}", "circuit")
        elif not is_last_phase:
            state.current_phase_index += 1
            state.current_exercise_index = 0
            state.current_circuit_index = 0
            next_phase = self._workout.phases[state.current_phase_index]
            logger.info(f"Moving to next phase: {next_phase.name}")
            if next_phase.voice_instructions is not None:
                self.player.enqueue(next_phase.voice_instructions.start, "phase-start")
        else:
            logger.info("Workout complete")
            if phase.voice_instructions is not None:
                self.player.enqueue(phase.voice_instructions.end, "workout-end")
            self._finish()
            return

        self._enter_current_exercise()
        self._log_progress()

    def advance_phase(self):
        """Skip to the first exercise of the next phase. Does not arm a timer."""
        if self._workout is None or not self._state.is_playing:
            logger.debug("advance_phase ignored: playback is not running")
            return
        if self._state.current_phase_index >= len(self._workout.phases) - 1:
            logger.info("Already at last phase")
            return

        self._cancel_timer()
        self.player.clear_pending()

        self._state.current_phase_index += 1
        self._state.current_exercise_index = 0
        self._state.current_circuit_index = 0
        next_phase = self._workout.phases[self._state.current_phase_index]
        logger.info(f"Skipping to next phase: {next_phase.name}")

        if next_phase.voice_instructions is not None:
            self.player.enqueue(next_phase.voice_instructions.start, "phase-start")
        exercise = self.current_exercise
        if exercise is not None:
            self._queue_exercise_instructions(exercise)
        self._log_progress()

    def stop(self):
        """
        Stop playback, drop queued narration and silence the audio.

        No-op while idle, so the closing narration of a finished workout is
        not cut off.
        """
        if not self._state.is_playing:
            return
        logger.info("Stopping workout playback")
        self._cancel_timer()
        self.player.clear()
        self._session += 1
        self._state.is_playing = False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _finish(self):
        """Terminal transition: idle, but let the closing narration play out."""
        self._cancel_timer()
        self._session += 1
        self._state.is_playing = False
        self.player.close()

    def _current_container(self) -> List[Exercise]:
        phase = self.current_phase
        if phase is None:
            return []
        containers = phase.containers
        index = self._state.current_circuit_index
        return containers[index] if index < len(containers) else []

    def _enter_current_exercise(self):
        exercise = self.current_exercise
        if exercise is None:
            return
        self._queue_exercise_instructions(exercise)
        if exercise.duration:
            self._arm_exercise_timer(exercise)

    def _queue_exercise_instructions(self, exercise: Exercise):
        voice = exercise.voice_instructions
        if voice.is_empty():
            logger.warning(f"No voice instructions for exercise: {exercise.name}")
            return

        logger.debug(f"Queueing instructions for exercise: {exercise.name}")
        self.player.enqueue(voice.start, "start")
        self.player.enqueue(voice.main, "main")
        self.player.enqueue(voice.form, "form")
        self.player.enqueue(voice.count, "count")
        if voice.motivation:
            self.player.enqueue(self._rng.choice(voice.motivation), "motivation")

    def _schedule(self, delay: float, callback: Callable[[], Any]) -> Any:
        call_later = self._call_later or asyncio.get_running_loop().call_later
        return call_later(delay, callback)

    def _arm_exercise_timer(self, exercise: Exercise):
        delay = exercise.duration + self.end_buffer_seconds
        session = self._session
        logger.info(f"Setting timer for {exercise.name}: {delay:.1f}s")
        self._timer = self._schedule(delay, lambda: self._on_exercise_timer(session, exercise))

    def _on_exercise_timer(self, session: int, exercise: Exercise):
        if not self._is_live(session):
            return
        logger.info(f"Exercise timer completed: {exercise.name}")
        self.player.enqueue(exercise.voice_instructions.end, "exercise-end")
        self._timer = self._schedule(self.advance_delay_seconds, lambda: self._on_advance_timer(session))

    def _on_advance_timer(self, session: int):
        if self._is_live(session):
            self.advance_exercise()

    def _is_live(self, session: int) -> bool:
        return self._state.is_playing and session == self._session

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _log_progress(self):
        position = self.position()
        logger.info(
            f"Workout progress: phase {position.phase_index + 1}/{position.total_phases} "
            f"({position.phase_name}), circuit {position.circuit_index + 1}, "
            f"exercise {position.exercise_index + 1} ({position.exercise_name or 'None'})"
        )
