"""Tests for splitting documents into front matter and body."""
import pytest

from workout_voice_coach.parsers.base import Diagnostics, WorkoutFormatError
from workout_voice_coach.parsers.document import normalize_newlines, split_document


class TestSplitDocument:
    """Test the strict and permissive front matter policies."""

    def test_splits_front_matter_and_trims_body(self):
        doc = split_document("---\ntitle: Test\n---\n\n# Warm-up\n\n")
        assert doc.front_matter == "title: Test"
        assert doc.body == "# Warm-up"
        assert doc.has_front_matter is True

    def test_windows_newlines(self):
        doc = split_document("---\r\ntitle: Test\r\n---\r\n# Warm-up\r\n")
        assert doc.front_matter == "title: Test"
        assert doc.body == "# Warm-up"

    def test_byte_order_mark_is_ignored(self):
        doc = split_document("\ufeff---\ntitle: Test\n---\n# Warm-up")
        assert doc.front_matter == "title: Test"

    def test_empty_front_matter(self):
        doc = split_document("---\n---\n# Warm-up")
        assert doc.front_matter == ""
        assert doc.body == "# Warm-up"

    def test_front_matter_only(self):
        doc = split_document("---\ntitle: Test\n---")
        assert doc.front_matter == "title: Test"
        assert doc.body == ""

    def test_later_rules_stay_in_body(self):
        doc = split_document("---\ntitle: Test\n---\n# A\n---\n# B")
        assert doc.body == "# A\n---\n# B"

    def test_missing_front_matter_is_fatal_in_strict_mode(self):
        with pytest.raises(WorkoutFormatError, match="Missing front-matter"):
            split_document("# Warm-up\n### Jog")

    def test_unclosed_front_matter_is_fatal(self):
        with pytest.raises(WorkoutFormatError):
            split_document("---\ntitle: Test\n# Warm-up")

    def test_permissive_mode_parses_body_only(self):
        diagnostics = Diagnostics()
        doc = split_document("\n# Warm-up\n### Jog\n", require_front_matter=False, diagnostics=diagnostics)
        assert doc.has_front_matter is False
        assert doc.front_matter == ""
        assert doc.body == "# Warm-up\n### Jog"
        assert len(diagnostics.warnings) == 1


def test_normalize_newlines():
    assert normalize_newlines("a\r\nb\rc") == "a\nb\nc"
