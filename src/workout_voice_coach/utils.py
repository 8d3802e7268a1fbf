"""Utility functions."""
import re

_CAMEL_BOUNDARY = re.compile(r"[^a-zA-Z0-9]+(.)")


def camel_case(key: str) -> str:
    """Convert a metadata key like 'rest_between_sets' to 'restBetweenSets'."""
    key = key.strip().lower()
    camel = _CAMEL_BOUNDARY.sub(lambda m: m.group(1).upper(), key)
    return camel.rstrip("_- ")


def preview(text: str, limit: int = 30) -> str:
    """Shorten text for log lines."""
    return text[:limit] + ("..." if len(text) > limit else "")
