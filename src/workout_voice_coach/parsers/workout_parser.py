"""
Workout Parser

Builds the typed workout tree from a workout document:

    ---
    <front matter>
    ---
    # Phase
    ## Circuit N: name        (main workout phases only)
    ### Exercise heading
    - key: value
    **[VOICE]**: "..."

The parser holds only its configuration, so one instance can be shared and
every call to `parse` is independent of the previous ones.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from workout_voice_coach.config import settings
from workout_voice_coach.utils import camel_case

from .base import Diagnostics, WorkoutDecodeError
from .document import split_document
from .metadata import decode_front_matter
from .models import (
    Circuit,
    CircuitPhase,
    Exercise,
    ExercisePhase,
    ExerciseVoiceInstructions,
    ParseResult,
    PhaseVoiceInstructions,
    TimeRange,
    Workout,
    WorkoutMetadata,
)
from .values import coerce_value, parse_tempo, parse_time_range, phase_duration_minutes
from .voice import DEFAULT_MOTIVATION, DEFAULT_WORKOUT_END, VoiceTag, read_voice_tag

logger = logging.getLogger(__name__)


class PhaseVoiceCollector:
    """Phase narration gathered while the phase's blocks are parsed."""

    def __init__(self, phase_name: str, diagnostics: Diagnostics):
        self.phase_name = phase_name
        self.diagnostics = diagnostics
        self.start: Optional[str] = None
        self.end: Optional[str] = None

    def take(self, tag: VoiceTag) -> bool:
        """Accept a phase-level tag. Returns False for tags that are not phase-level."""
        if tag.key == "start" and not tag.is_array:
            self.start = tag.value
            return True
        if tag.key == "end" and tag.is_array:
            if tag.error is not None:
                self.diagnostics.recover(
                    tag.error, f"Failed to parse VOICE_END array in phase '{self.phase_name}'"
                )
                self.end = DEFAULT_WORKOUT_END
            elif tag.value:
                self.end = tag.value[0]
            return True
        if tag.key == "end":
            self.end = tag.value
            return True
        return False

    def build(self) -> Optional[PhaseVoiceInstructions]:
        if self.start is None and self.end is None:
            return None
        return PhaseVoiceInstructions(start=self.start, end=self.end)


class WorkoutParser:
    """Parser for markdown workout documents with voice annotations"""

    PHASE_SPLIT = re.compile(r'^(?=# )', re.MULTILINE)
    CIRCUIT_SPLIT = re.compile(r'^(?=## Circuit \d+:)', re.MULTILINE)
    EXERCISE_SPLIT = re.compile(r'^(?=### )', re.MULTILINE)

    PHASE_HEADING = re.compile(r'^# (.+)$')
    CIRCUIT_HEADING = re.compile(r'^## (Circuit \d+:.*)$')
    EXERCISE_HEADING = re.compile(r'^### (.+)$')
    SUBSECTION = re.compile(r'^#{2,} ')

    # "key: value" in a phase preamble, optionally written as a list item
    PHASE_META_PATTERN = re.compile(r'^(?:-\s+)?([A-Za-z_][A-Za-z0-9_ \-]*?)\s*:\s*(.+)$')
    # "- key: value" at the start of a line
    LIST_ITEM_PATTERN = re.compile(r'^- ([^:]+):\s*(.*)$')
    FORM_CUE_PATTERN = re.compile(r'^\s+- (.+)$')
    CUE_QUOTES = re.compile(r'^["\']|["\']$')

    MAIN_WORKOUT = "main workout"

    # camelCased key -> Exercise field
    EXERCISE_FIELDS = {
        "exerciseType": "exercise_type",
        "sets": "sets",
        "reps": "reps",
        "repsPerSet": "reps_per_set",
        "duration": "duration",
        "durationPerSet": "duration_per_set",
        "tempo": "tempo",
        "restBetweenSets": "rest_between_sets",
        "timing": "timing",
    }
    CIRCUIT_FIELDS = {
        "rounds": "rounds",
        "workDuration": "work_duration",
        "restDuration": "rest_duration",
    }
    SECONDS_FIELDS = ("duration", "duration_per_set", "rest_between_sets", "work_duration", "rest_duration")

    def __init__(self, require_front_matter: Optional[bool] = None,
                 front_matter_notation: Optional[str] = None):
        self.require_front_matter = (
            settings.WORKOUT_REQUIRE_FRONT_MATTER if require_front_matter is None else require_front_matter
        )
        self.front_matter_notation = front_matter_notation or settings.WORKOUT_FRONT_MATTER_NOTATION

    def parse(self, content: str) -> Workout:
        """
        Parse a workout document.

        Raises:
            WorkoutFormatError: If the document is missing its front matter
                and front matter is required
        """
        return self.parse_document(content).workout

    def parse_document(self, content: str) -> ParseResult:
        """Parse a workout document and return the tree with its diagnostics."""
        diagnostics = Diagnostics()
        logger.info(
            f"Parsing workout document ({len(content)} chars, "
            f"voice tags: {'**[VOICE' in content})"
        )

        document = split_document(content, self.require_front_matter, diagnostics)
        metadata = decode_front_matter(document.front_matter, self.front_matter_notation, diagnostics)
        phases = self._parse_phases(document.body, metadata, diagnostics)

        workout = Workout(
            title=metadata.title,
            duration=metadata.duration,
            phases=phases,
            metadata=metadata,
        )
        logger.info(
            f"Parsed workout '{workout.title}': {len(phases)} phases, "
            f"{workout.total_exercises} exercises, {len(diagnostics.warnings)} warnings"
        )
        return ParseResult(workout=workout, warnings=diagnostics.warnings)

    def parse_time_range(self, text: str) -> TimeRange:
        return parse_time_range(text)

    @classmethod
    def is_main_workout_phase(cls, phase_name: str) -> bool:
        return cls.MAIN_WORKOUT in phase_name.lower()

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _parse_phases(self, body: str, metadata: WorkoutMetadata, diagnostics: Diagnostics) -> list:
        phases = []
        for block in self.PHASE_SPLIT.split(body):
            if not block.strip():
                continue
            lines = block.split("\n")
            heading = self.PHASE_HEADING.match(lines[0])
            if not heading:
                diagnostics.add_warning("Ignoring content before the first phase heading")
                continue
            phase_name = heading.group(1).strip()
            logger.debug(f"Found phase {len(phases) + 1}: {phase_name}")
            phases.append(self._parse_phase(phase_name, lines[1:], metadata, diagnostics))
        return phases

    def _split_preamble(self, lines: List[str]) -> Tuple[List[str], List[str]]:
        for i, line in enumerate(lines):
            if self.SUBSECTION.match(line):
                return lines[:i], lines[i:]
        return lines, []

    def _parse_phase(self, name: str, lines: List[str], metadata: WorkoutMetadata,
                     diagnostics: Diagnostics):
        voice = PhaseVoiceCollector(name, diagnostics)
        preamble, rest = self._split_preamble(lines)
        phase_meta = self._parse_phase_metadata(preamble, voice)

        extra: Dict[str, Any] = {}
        duration = None
        circuit_count = None
        for key, value in phase_meta.items():
            if key == "duration":
                try:
                    duration = phase_duration_minutes(value)
                except WorkoutDecodeError as e:
                    diagnostics.recover(e, f"Phase '{name}' duration")
                    duration = None
                else:
                    if not isinstance(duration, (int, float)):
                        diagnostics.add_warning(f"Phase '{name}' duration is not a number of minutes: {value}")
                        duration = None
                if duration is None:
                    extra[key] = value
            elif key == "circuits" and isinstance(value, int):
                circuit_count = value
            else:
                extra[key] = value
        if duration is None:
            duration = metadata.phase_duration(name)

        content = "\n".join(rest)
        if self.is_main_workout_phase(name):
            circuits = self._parse_circuits(content, voice, diagnostics)
            return CircuitPhase(
                name=name,
                duration=duration,
                circuit_count=circuit_count,
                voice_instructions=voice.build(),
                circuits=circuits,
                extra=extra,
            )

        exercises = self._parse_exercises(content, voice, diagnostics)
        return ExercisePhase(
            name=name,
            duration=duration,
            circuit_count=circuit_count,
            voice_instructions=voice.build(),
            exercises=exercises,
            extra=extra,
        )

    def _parse_phase_metadata(self, preamble: List[str], voice: PhaseVoiceCollector) -> Dict[str, Any]:
        """Flat `key: value` pairs and phase voice tags before the first subsection."""
        meta: Dict[str, Any] = {}
        i = 0
        while i < len(preamble):
            tag = read_voice_tag(preamble, i)
            if tag is not None:
                if not voice.take(tag):
                    logger.debug(f"Ignoring {tag.key} voice tag in phase '{voice.phase_name}'")
                i += tag.lines_consumed
                continue
            match = self.PHASE_META_PATTERN.match(preamble[i].strip())
            if match and not preamble[i].lstrip().startswith("#"):
                meta[camel_case(match.group(1))] = coerce_value(match.group(2))
            i += 1
        return meta

    # ------------------------------------------------------------------
    # Circuits
    # ------------------------------------------------------------------

    def _parse_circuits(self, content: str, voice: PhaseVoiceCollector,
                        diagnostics: Diagnostics) -> List[Circuit]:
        circuits = []
        for block in self.CIRCUIT_SPLIT.split(content):
            if not block.strip():
                continue
            lines = block.split("\n")
            heading = self.CIRCUIT_HEADING.match(lines[0])
            if not heading:
                if self.EXERCISE_SPLIT.search(block):
                    diagnostics.add_warning(
                        f"Exercises outside a circuit in phase '{voice.phase_name}' were ignored"
                    )
                continue
            circuits.append(self._parse_circuit(heading.group(1).strip(), lines[1:], voice, diagnostics))
        return circuits

    def _parse_circuit(self, name: str, lines: List[str], voice: PhaseVoiceCollector,
                       diagnostics: Diagnostics) -> Circuit:
        logger.debug(f"Found circuit: {name}")
        fields: Dict[str, Any] = {"name": name, "extra": {}}
        body_start = len(lines)
        i = 0
        while i < len(lines):
            line = lines[i]
            if self.EXERCISE_HEADING.match(line):
                body_start = i
                break
            tag = read_voice_tag(lines, i)
            if tag is not None:
                if tag.key == "end" and tag.is_array:
                    voice.take(tag)
                else:
                    logger.debug(f"Ignoring {tag.key} voice tag in circuit '{name}'")
                i += tag.lines_consumed
                continue
            item = self.LIST_ITEM_PATTERN.match(line.rstrip())
            if item and item.group(2).strip():
                key = camel_case(item.group(1))
                value = coerce_value(item.group(2))
                field = self.CIRCUIT_FIELDS.get(key)
                if field == "rounds" and not isinstance(value, int):
                    diagnostics.add_warning(f"Circuit '{name}' rounds is not a whole number: {value}")
                    fields["extra"][key] = value
                elif field in self.SECONDS_FIELDS and not isinstance(value, (int, float)):
                    diagnostics.add_warning(f"Circuit '{name}' {key} is not a number: {value}")
                    fields["extra"][key] = value
                elif field:
                    fields[field] = value
                else:
                    fields["extra"][key] = value
            i += 1

        exercises = self._parse_exercises("\n".join(lines[body_start:]), voice, diagnostics)
        return Circuit(exercises=exercises, **fields)

    # ------------------------------------------------------------------
    # Exercises
    # ------------------------------------------------------------------

    def _parse_exercises(self, content: str, voice: PhaseVoiceCollector,
                         diagnostics: Diagnostics) -> List[Exercise]:
        exercises = []
        for block in self.EXERCISE_SPLIT.split(content):
            if not block.startswith("### "):
                continue
            lines = block.split("\n")
            heading = self.EXERCISE_HEADING.match(lines[0])
            if not heading:
                continue
            name = heading.group(1).strip().rstrip(":").strip()
            logger.debug(f"Found exercise {len(exercises) + 1}: {name} (phase '{voice.phase_name}')")
            exercises.append(self._parse_exercise(name, lines[1:], voice, diagnostics))
        return exercises

    def _parse_exercise(self, name: str, lines: List[str], voice: PhaseVoiceCollector,
                        diagnostics: Diagnostics) -> Exercise:
        fields: Dict[str, Any] = {"name": name, "extra": {}}
        instructions: Dict[str, Any] = {}
        form_cues: List[str] = []

        i = 0
        while i < len(lines):
            line = lines[i].rstrip()

            tag = read_voice_tag(lines, i)
            if tag is not None:
                self._apply_exercise_voice(name, tag, instructions, voice, diagnostics)
                i += tag.lines_consumed
                continue

            item = self.LIST_ITEM_PATTERN.match(line)
            if item:
                key = camel_case(item.group(1))
                if key == "formCues":
                    cues, consumed = self._scan_form_cues(lines, i + 1)
                    form_cues.extend(cues)
                    i += 1 + consumed
                    continue
                raw_value = item.group(2).strip()
                if raw_value:
                    self._apply_exercise_field(name, key, coerce_value(raw_value), fields, diagnostics)
            i += 1

        if "tempo" in fields:
            breakdown = parse_tempo(fields["tempo"])
            if None in (breakdown.eccentric, breakdown.bottom_hold, breakdown.concentric, breakdown.top_hold):
                diagnostics.add_warning(f"Exercise '{name}' has malformed tempo '{fields['tempo']}'")
            fields["tempo_breakdown"] = breakdown

        return Exercise(
            form_cues=form_cues,
            voice_instructions=ExerciseVoiceInstructions(**instructions),
            **fields,
        )

    def _apply_exercise_field(self, name: str, key: str, value: Any, fields: Dict[str, Any],
                              diagnostics: Diagnostics):
        field = self.EXERCISE_FIELDS.get(key)
        if field is None:
            fields["extra"][key] = value
        elif field == "exercise_type" or field == "tempo":
            fields[field] = str(value)
        elif field == "timing":
            try:
                fields["timing"] = parse_time_range(str(value))
            except WorkoutDecodeError as e:
                diagnostics.recover(e, f"Exercise '{name}' timing")
                fields["extra"][key] = value
        elif field == "sets" and not isinstance(value, int):
            diagnostics.add_warning(f"Exercise '{name}' sets is not a whole number: {value}")
            fields["extra"][key] = value
        elif field in self.SECONDS_FIELDS and not isinstance(value, (int, float)):
            diagnostics.add_warning(f"Exercise '{name}' {key} is not a number of seconds: {value}")
            fields["extra"][key] = value
        else:
            fields[field] = value

    def _apply_exercise_voice(self, name: str, tag: VoiceTag, instructions: Dict[str, Any],
                              voice: PhaseVoiceCollector, diagnostics: Diagnostics):
        if tag.key == "end" and tag.is_array:
            # The array form of VOICE_END closes the phase
            voice.take(tag)
            return

        if tag.key == "motivation":
            if tag.error is not None:
                diagnostics.recover(tag.error, f"Failed to parse VOICE_MOTIVATION array for '{name}'")
                instructions["motivation"] = [DEFAULT_MOTIVATION]
            elif tag.is_array:
                instructions["motivation"] = tag.value or [DEFAULT_MOTIVATION]
            elif tag.value:
                instructions["motivation"] = [tag.value]
            return

        if tag.is_array:
            if tag.error is not None:
                diagnostics.recover(tag.error, f"Failed to parse {tag.key} voice array for '{name}'")
                return
            instructions[tag.key] = tag.value[0] if tag.value else None
        else:
            instructions[tag.key] = tag.value

    def _scan_form_cues(self, lines: List[str], start: int) -> Tuple[List[str], int]:
        """Indented `- "cue"` lines after `- form_cues:`. Returns (cues, lines consumed)."""
        cues = []
        j = start
        while j < len(lines):
            match = self.FORM_CUE_PATTERN.match(lines[j].rstrip())
            if not match:
                break
            cue = self.CUE_QUOTES.sub("", match.group(1).strip()).strip()
            if cue:
                cues.append(cue)
            j += 1
        return cues, j - start


def parse_workout(content: str, **options: Any) -> Workout:
    """Parse a workout document with a throwaway parser configured by `options`."""
    return WorkoutParser(**options).parse(content)
