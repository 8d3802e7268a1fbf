"""
Scalar value decoding for workout documents.

Covers the Value Coercer used for every `key: value` pair, the two time
notations ('M:SS' and 'M:SS - M:SS') and the 'E-B-C-T' tempo notation.
"""

import re
from typing import Any, Optional

from .base import WorkoutDecodeError
from .models import TempoBreakdown, TimeRange

QUOTED_PATTERN = re.compile(r'^(["\']).*\1$', re.DOTALL)
INTEGER_PATTERN = re.compile(r'^\d+$')
DECIMAL_PATTERN = re.compile(r'^\d*\.\d+$')
CONTINUOUS = "continuous"

# Strict 'MM:SS - MM:SS' range used by the exercise `timing` field
TIME_RANGE_PATTERN = re.compile(r'^\s*(\d+)(?::(\d{1,2}))?\s*-\s*(\d+)(?::(\d{1,2}))?\s*$')


def coerce_value(raw: str) -> Any:
    """
    Convert a raw scalar token into a typed value.

    Order: quoted string (quotes stripped), integer, decimal, the literal
    'continuous', otherwise the trimmed text unchanged. No range checks.
    """
    value = raw.strip()
    if len(value) >= 2 and QUOTED_PATTERN.match(value):
        return value[1:-1]
    if INTEGER_PATTERN.match(value):
        return int(value)
    if DECIMAL_PATTERN.match(value):
        return float(value)
    if value == CONTINUOUS:
        return CONTINUOUS
    return value


def parse_time_to_seconds(text: str) -> int:
    """
    Convert 'M:SS' to seconds. A missing seconds part counts as 00.

    Raises:
        WorkoutDecodeError: If either side is not a whole number
    """
    minutes, _, seconds = str(text).strip().partition(":")
    seconds = seconds.strip() or "00"
    try:
        return int(minutes.strip()) * 60 + int(seconds)
    except ValueError as e:
        raise WorkoutDecodeError(f"Invalid time '{text}'") from e


def parse_time_range(text: str) -> TimeRange:
    """
    Decode 'MM:SS - MM:SS' into whole seconds.

    Raises:
        WorkoutDecodeError: If the text is not a two-sided time range
    """
    match = TIME_RANGE_PATTERN.match(str(text))
    if not match:
        raise WorkoutDecodeError(f"Invalid time range '{text}'")
    start_min, start_sec, end_min, end_sec = match.groups()
    return TimeRange(
        start=int(start_min) * 60 + int(start_sec or 0),
        end=int(end_min) * 60 + int(end_sec or 0),
    )


def _tempo_part(parts: list, index: int) -> Optional[int]:
    if index >= len(parts):
        return None
    try:
        return int(parts[index].strip())
    except ValueError:
        return None


def parse_tempo(tempo: str) -> TempoBreakdown:
    """
    Split 'E-B-C-T' into its four integer components.

    Missing or non-numeric components come back as None rather than failing.
    """
    parts = str(tempo).split("-")
    return TempoBreakdown(
        eccentric=_tempo_part(parts, 0),
        bottom_hold=_tempo_part(parts, 1),
        concentric=_tempo_part(parts, 2),
        top_hold=_tempo_part(parts, 3),
    )


def phase_duration_minutes(value: Any) -> Any:
    """Phase durations are minutes; 'M:SS' strings become fractional minutes."""
    if isinstance(value, str) and ":" in value:
        seconds = parse_time_to_seconds(value)
        minutes = seconds / 60
        return int(minutes) if minutes.is_integer() else minutes
    return value
