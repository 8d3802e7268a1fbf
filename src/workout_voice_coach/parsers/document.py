"""
Document Splitter

Separates a workout document into its front matter and body. The strict
policy requires the leading '---' delimiter pair; the permissive policy
treats front matter as optional.
"""

import logging
import re
from dataclasses import dataclass

from .base import Diagnostics, WorkoutFormatError

logger = logging.getLogger(__name__)

FRONT_MATTER_PATTERN = re.compile(r'^---[ \t]*\n(?:(.*?)\n)?---[ \t]*(?:\n(.*))?$', re.DOTALL)


@dataclass(frozen=True)
class SplitDocument:
    front_matter: str
    body: str
    has_front_matter: bool = True


def normalize_newlines(content: str) -> str:
    return content.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")


def split_document(content: str, require_front_matter: bool = True,
                   diagnostics: Diagnostics | None = None) -> SplitDocument:
    """
    Split raw text into front matter and a trimmed body.

    Args:
        content: Raw document text
        require_front_matter: Fail when the delimiter pair is missing
        diagnostics: Collector for the permissive-mode warning

    Returns:
        SplitDocument with the front matter text and the trimmed body

    Raises:
        WorkoutFormatError: If the front matter is missing in strict mode
    """
    text = normalize_newlines(content)
    match = FRONT_MATTER_PATTERN.match(text)
    if match:
        return SplitDocument(
            front_matter=match.group(1) or "",
            body=(match.group(2) or "").strip(),
        )

    if require_front_matter:
        raise WorkoutFormatError("Invalid workout document format: Missing front-matter")

    message = "Document has no front-matter; parsing body only"
    if diagnostics is not None:
        diagnostics.add_warning(message)
    else:
        logger.warning(message)
    return SplitDocument(front_matter="", body=text.strip(), has_front_matter=False)
