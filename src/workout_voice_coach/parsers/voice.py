"""
Voice Instruction Extractor

Finds narration tagged with `**[VOICE...]**:` markers. Scalar tags carry a
quoted string; array tags carry a bracketed list of quoted strings that may
span several lines, with trailing commas allowed.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Union

from .base import WorkoutDecodeError

logger = logging.getLogger(__name__)

VOICE_TAG_PATTERN = re.compile(r'\*\*\[(VOICE(?:_[A-Z]+)?)\]\*\*:\s*(.*)$')
QUOTED_TEXT_PATTERN = re.compile(r'"([^"]*)"')
TRAILING_COMMA_PATTERN = re.compile(r',\s*\]$')

# Tag -> instruction key
TAG_KEYS = {
    "VOICE": "main",
    "VOICE_START": "start",
    "VOICE_FORM": "form",
    "VOICE_COUNT": "count",
    "VOICE_MOTIVATION": "motivation",
    "VOICE_END": "end",
}

DEFAULT_MOTIVATION = "Keep going! You're doing great!"
DEFAULT_WORKOUT_END = "Excellent work completing your workout!"


@dataclass
class VoiceTag:
    """One tagged narration found in a block of lines."""
    key: str
    value: Union[str, List[str], None]
    is_array: bool
    line_index: int
    lines_consumed: int
    error: Optional[WorkoutDecodeError] = None


def match_voice_tag(line: str) -> Optional[re.Match]:
    return VOICE_TAG_PATTERN.search(line)


def extract_scalar(fragment: str) -> Optional[str]:
    """Quoted text after the tag; falls back to the bare remainder."""
    match = QUOTED_TEXT_PATTERN.search(fragment)
    if match:
        return match.group(1)
    fragment = fragment.strip()
    return fragment or None


def _bracket_depth_change(text: str, depth: int, in_string: bool) -> tuple[int, bool, bool]:
    """Walk text updating bracket depth outside quotes. Returns (depth, in_string, closed)."""
    escaped = False
    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "[":
            depth += 1
        elif char == "]":
            depth -= 1
            if depth == 0:
                return depth, in_string, True
    return depth, in_string, False


def scan_bracketed(lines: List[str], start: int, fragment: str) -> tuple[str, int]:
    """
    Accumulate a bracketed array that begins with `fragment` on lines[start].

    Returns:
        Tuple of (array_text, lines_consumed). lines_consumed counts the
        starting line, so a one-line array consumes 1. When no closing
        bracket is found the rest of the lines are consumed.
    """
    parts = [fragment.strip()]
    depth, in_string, closed = _bracket_depth_change(fragment, 0, False)
    j = start + 1
    while not closed and j < len(lines):
        line = lines[j].strip()
        parts.append(line)
        depth, in_string, closed = _bracket_depth_change(line, depth, in_string)
        j += 1
    return "\n".join(parts), j - start


def decode_string_array(array_text: str) -> List[str]:
    """
    Decode a bracketed list of double-quoted strings.

    Raises:
        WorkoutDecodeError: If the text is not a list of strings
    """
    text = array_text.strip()
    end = text.rfind("]")
    if not text.startswith("[") or end == -1:
        raise WorkoutDecodeError("Voice array is missing its brackets")
    text = TRAILING_COMMA_PATTERN.sub("]", text[:end + 1])
    try:
        items = json.loads(text)
    except json.JSONDecodeError as e:
        raise WorkoutDecodeError(f"Voice array is not valid: {e.msg}") from e
    if not isinstance(items, list) or not all(isinstance(item, str) for item in items):
        raise WorkoutDecodeError("Voice array must contain only strings")
    return items


def read_voice_tag(lines: List[str], index: int) -> Optional[VoiceTag]:
    """
    Read the voice tag on lines[index], if any, including a multi-line array.

    Decode failures are reported on the returned tag (value None) so the
    caller can substitute its own default.
    """
    match = match_voice_tag(lines[index])
    if not match:
        return None
    tag, fragment = match.group(1), match.group(2)
    key = TAG_KEYS.get(tag)
    if key is None:
        logger.debug(f"Ignoring unknown voice tag {tag}")
        return None

    if fragment.lstrip().startswith("["):
        array_text, consumed = scan_bracketed(lines, index, fragment)
        try:
            values = decode_string_array(array_text)
        except WorkoutDecodeError as e:
            return VoiceTag(key, None, True, index, consumed, error=e)
        return VoiceTag(key, values, True, index, consumed)

    return VoiceTag(key, extract_scalar(fragment), False, index, 1)
