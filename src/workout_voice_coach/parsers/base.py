"""
Parser Base

Error types shared by the document decoders and the per-call diagnostics
collector that gathers recoverable problems while a document is parsed.
"""

import logging
from typing import List

logger = logging.getLogger(__name__)


class WorkoutFormatError(ValueError):
    """Raised when a document cannot be parsed at all (no partial tree)."""


class WorkoutDecodeError(ValueError):
    """Raised by a decoder for malformed content that the parser recovers from."""


class Diagnostics:
    """Collects recoverable parse problems for a single parse call."""

    def __init__(self):
        self.warnings: List[str] = []

    def add_warning(self, warning: str):
        """Add a warning message"""
        self.warnings.append(warning)
        logger.warning(f"Parser warning: {warning}")

    def recover(self, exc: WorkoutDecodeError, context: str):
        """Record a decode failure that was replaced by a safe default."""
        self.add_warning(f"{context}: {exc}")
