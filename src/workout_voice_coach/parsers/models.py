"""
Parser Models

Pydantic models for the typed workout tree produced by the document parser.
A phase is a tagged variant: either a list of exercises or a list of circuits.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Number = Union[int, float]


class TimeRange(BaseModel):
    """A start/end pair in whole seconds, decoded from 'MM:SS - MM:SS'."""
    start: int
    end: int


class TempoBreakdown(BaseModel):
    """Seconds spent in each part of a repetition ('E-B-C-T').

    Components the tempo string does not provide, or that are not numeric,
    are None.
    """
    eccentric: Optional[int] = None     # Lowering phase
    bottom_hold: Optional[int] = None   # Pause at bottom
    concentric: Optional[int] = None    # Rising phase
    top_hold: Optional[int] = None      # Pause at top


class ExerciseVoiceInstructions(BaseModel):
    """Narration attached to an exercise"""
    start: Optional[str] = None
    main: Optional[str] = None
    form: Optional[str] = None
    count: Optional[str] = None
    motivation: Optional[List[str]] = Field(
        default=None, description="Pool of lines, one is picked at random per exercise"
    )
    end: Optional[str] = None

    def is_empty(self) -> bool:
        return not any(
            (self.start, self.main, self.form, self.count, self.motivation, self.end)
        )


class PhaseVoiceInstructions(BaseModel):
    """Narration attached to a phase"""
    start: Optional[str] = None
    end: Optional[str] = None


class Exercise(BaseModel):
    """Leaf unit of work"""
    name: str = Field(..., description="Full heading text, e.g. 'Exercise 1: Bodyweight Squats'")
    exercise_type: Optional[str] = Field(default=None, description="Free-form tag: strength, cardio, ...")
    sets: Optional[int] = None
    reps: Optional[Union[int, str]] = Field(default=None, description="Integer or 'continuous'")
    reps_per_set: Optional[Union[int, str]] = None
    duration: Optional[Number] = Field(default=None, description="Seconds")
    duration_per_set: Optional[Number] = Field(default=None, description="Seconds")
    tempo: Optional[str] = None
    tempo_breakdown: Optional[TempoBreakdown] = None
    rest_between_sets: Optional[Number] = Field(default=None, description="Seconds")
    timing: Optional[TimeRange] = None
    form_cues: List[str] = Field(default_factory=list)
    voice_instructions: ExerciseVoiceInstructions = Field(default_factory=ExerciseVoiceInstructions)
    extra: Dict[str, Any] = Field(
        default_factory=dict, description="Other declared keys, camelCased"
    )

    @property
    def display_name(self) -> str:
        """Heading text after a 'Label N:' prefix, or the whole name."""
        _, sep, rest = self.name.partition(":")
        if sep and rest.strip():
            return rest.strip()
        return self.name


class Circuit(BaseModel):
    """Repeatable block of exercises inside a main workout phase"""
    name: str
    rounds: Optional[int] = None
    work_duration: Optional[Number] = Field(default=None, description="Seconds")
    rest_duration: Optional[Number] = Field(default=None, description="Seconds")
    exercises: List[Exercise] = Field(default_factory=list)
    extra: Dict[str, Any] = Field(default_factory=dict)


class PhaseBase(BaseModel):
    """Fields shared by both phase variants"""
    name: str
    duration: Optional[Number] = Field(default=None, description="Minutes")
    circuit_count: Optional[int] = None
    voice_instructions: Optional[PhaseVoiceInstructions] = None
    extra: Dict[str, Any] = Field(default_factory=dict)


class ExercisePhase(PhaseBase):
    """Phase whose content is a flat list of exercises"""
    kind: Literal["exercises"] = "exercises"
    exercises: List[Exercise] = Field(default_factory=list)

    @property
    def containers(self) -> List[List[Exercise]]:
        return [self.exercises]


class CircuitPhase(PhaseBase):
    """Main workout phase whose content is a list of circuits"""
    kind: Literal["circuits"] = "circuits"
    circuits: List[Circuit] = Field(default_factory=list)

    @property
    def containers(self) -> List[List[Exercise]]:
        return [circuit.exercises for circuit in self.circuits]


Phase = Annotated[Union[ExercisePhase, CircuitPhase], Field(discriminator="kind")]


class PhaseSummary(BaseModel):
    """Phase entry from the front matter 'phases' list"""
    model_config = ConfigDict(extra="allow")

    name: str
    duration: Optional[Number] = None


class WorkoutMetadata(BaseModel):
    """Decoded front matter. Unknown keys are kept as extra attributes."""
    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None
    duration: Optional[Number] = None
    phases: List[PhaseSummary] = Field(default_factory=list)
    extra: Dict[str, Any] = Field(default_factory=dict, description="Front matter values that failed validation")

    def phase_duration(self, name: str) -> Optional[Number]:
        for summary in self.phases:
            if summary.name == name:
                return summary.duration
        return None


class Workout(BaseModel):
    """Root of the parsed tree"""
    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    duration: Optional[Number] = Field(default=None, description="Minutes")
    phases: List[Phase] = Field(default_factory=list)
    metadata: WorkoutMetadata = Field(default_factory=WorkoutMetadata)

    @property
    def total_exercises(self) -> int:
        return sum(
            len(container) for phase in self.phases for container in phase.containers
        )


class ParseResult(BaseModel):
    """Result from a parse call"""
    success: bool = True
    workout: Workout
    warnings: List[str] = Field(default_factory=list)
