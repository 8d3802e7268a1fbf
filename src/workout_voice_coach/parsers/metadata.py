"""
Metadata Decoder

Decodes the front matter block into a WorkoutMetadata record. Two notations
are understood:

- "yaml": full YAML, including nested lists of maps and free-form keys
- "lines": a restricted line scanner that only knows `title:`, `duration:`
  and a `phases:` list of two-line `- name: "X"` / `duration: N` entries

Neither decoder raises on bad input: a failure of the whole block yields an
empty record and a diagnostic, a bad field only loses that field.
"""

import logging
import re
from typing import Any, Dict, List

import yaml
from pydantic import ValidationError

from .base import Diagnostics
from .models import WorkoutMetadata
from .values import coerce_value

logger = logging.getLogger(__name__)

NOTATIONS = ("yaml", "lines")

PHASE_ENTRY_INDENT = re.compile(r'^ {2,}-')


def decode_front_matter(text: str, notation: str = "yaml",
                        diagnostics: Diagnostics | None = None) -> WorkoutMetadata:
    """
    Decode front matter text in the given notation.

    Args:
        text: Front matter without the '---' delimiters
        notation: "yaml" or "lines"
        diagnostics: Collector for recoverable failures

    Returns:
        WorkoutMetadata, empty when the block could not be decoded
    """
    diagnostics = diagnostics or Diagnostics()
    if notation not in NOTATIONS:
        raise ValueError(f"Unknown front matter notation: {notation}")

    if not text.strip():
        return WorkoutMetadata()

    if notation == "lines":
        data = scan_front_matter_lines(text)
    else:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            diagnostics.add_warning(f"Failed to parse workout metadata: {e}")
            return WorkoutMetadata()
        if data is None:
            return WorkoutMetadata()
        if not isinstance(data, dict):
            diagnostics.add_warning(
                f"Failed to parse workout metadata: expected a mapping, got {type(data).__name__}"
            )
            return WorkoutMetadata()

    return build_metadata(data, diagnostics)


def build_metadata(data: Dict[str, Any], diagnostics: Diagnostics) -> WorkoutMetadata:
    """
    Validate a decoded front matter map field by field.

    A scalar title is coerced to text. Any other field that fails validation
    is moved to `extra` with a warning; a bad entry of the `phases` list only
    drops that entry.
    """
    data = dict(data)
    title = data.get("title")
    if title is not None and not isinstance(title, (str, dict, list)):
        data["title"] = str(title)

    try:
        return WorkoutMetadata.model_validate(data)
    except ValidationError as e:
        errors = e.errors()

    invalid: Dict[str, Any] = {}
    bad_phases = set()
    for error in errors:
        loc = error["loc"]
        key = loc[0]
        if key == "phases" and len(loc) > 1 and isinstance(loc[1], int):
            bad_phases.add(loc[1])
        elif key in data:
            invalid[key] = data.pop(key)
            diagnostics.add_warning(f"Invalid workout metadata field '{key}': {invalid[key]!r}")

    if bad_phases:
        phases = data["phases"]
        invalid["phases"] = [phases[i] for i in sorted(bad_phases)]
        data["phases"] = [entry for i, entry in enumerate(phases) if i not in bad_phases]
        for i in sorted(bad_phases):
            diagnostics.add_warning(f"Invalid workout metadata phase entry: {phases[i]!r}")

    data["extra"] = invalid
    return WorkoutMetadata.model_validate(data)


def _value_after(line: str, key: str) -> str:
    return line.split(f"{key}:", 1)[1].strip()


def scan_front_matter_lines(text: str) -> Dict[str, Any]:
    """
    Line-scanning decoder for the restricted front matter notation.

    Unrecognised lines are ignored.
    """
    lines = text.split("\n")
    data: Dict[str, Any] = {}
    phases: List[Dict[str, Any]] = []

    i = 0
    while i < len(lines):
        line = lines[i].strip()
        if line.startswith("title:"):
            data["title"] = _value_after(line, "title").replace('"', "")
        elif line.startswith("duration:"):
            duration = coerce_value(_value_after(line, "duration"))
            if isinstance(duration, int):
                data["duration"] = duration
        elif line.startswith("phases:"):
            entries, consumed = _scan_phase_entries(lines, i + 1)
            phases.extend(entries)
            i += consumed
        i += 1

    if phases:
        data["phases"] = phases
    return data


def _scan_phase_entries(lines: List[str], start: int) -> tuple[List[Dict[str, Any]], int]:
    """Read `- name:` / `duration:` pairs; returns entries and lines consumed."""
    entries: List[Dict[str, Any]] = []
    j = start
    while j < len(lines) and PHASE_ENTRY_INDENT.match(lines[j]):
        entry_line = lines[j].strip()
        if "name:" not in entry_line:
            j += 1
            continue
        name = _value_after(entry_line, "name").replace('"', "")
        duration_line = lines[j + 1].strip() if j + 1 < len(lines) else ""
        if duration_line.startswith("duration:"):
            duration = coerce_value(_value_after(duration_line, "duration"))
            if isinstance(duration, int):
                entries.append({"name": name, "duration": duration})
            j += 2
        else:
            j += 1
    return entries, j - start

