"""Unit tests for utility functions."""
import pytest
from workout_voice_coach.utils import camel_case, preview


class TestUtils:
    """Test cases for utility functions."""

    @pytest.mark.parametrize(
        "key,expected",
        [
            ("rest_between_sets", "restBetweenSets"),
            ("form_cues", "formCues"),
            ("Work Duration", "workDuration"),
            ("work-duration", "workDuration"),
            ("sets", "sets"),
            ("trailing_", "trailing"),
        ],
    )
    def test_camel_case(self, key, expected):
        """Test camel_case key normalisation."""
        assert camel_case(key) == expected

    def test_preview_short_text(self):
        """Short text is returned unchanged."""
        assert preview("Go!") == "Go!"

    def test_preview_long_text(self):
        """Long text is cut and marked."""
        assert preview("a" * 40) == "a" * 30 + "..."
