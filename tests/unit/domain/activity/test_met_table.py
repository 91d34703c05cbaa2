"""
Unit tests for the MET table and intensity parsing.
"""

import pytest

from kalry.domain.activity.met_table import MET_TABLE, MetEntry, lookup
from kalry.domain.activity.models import Intensity


class TestLookup:
    """Test activity label matching."""

    @pytest.mark.parametrize(
        "label,expected",
        [
            ("Running", "running"),
            ("run", "running"),
            ("Treadmill Running", "running"),
            ("JUMP ROPE", "jump rope"),
            ("bike", "stationary bike"),
            ("HIIT circuit", "hiit"),
        ],
    )
    def test_matches(self, label: str, expected: str) -> None:
        """Test case-insensitive substring match in both directions."""
        entry = lookup(label)
        assert entry is not None
        assert entry.activity_key == expected

    def test_first_match_wins(self) -> None:
        """Test table order decides between overlapping keys."""
        table = (
            MetEntry(activity_key="walking", light=1, moderate=2, vigorous=3),
            MetEntry(activity_key="walk", light=4, moderate=5, vigorous=6),
        )
        entry = lookup("walk", table)
        assert entry is not None
        assert entry.moderate == 2

    @pytest.mark.parametrize("label", ["Quidditch", "", "   "])
    def test_no_match(self, label: str) -> None:
        assert lookup(label) is None

    def test_values_increase_with_intensity(self) -> None:
        for entry in MET_TABLE:
            assert entry.light <= entry.moderate <= entry.vigorous


class TestIntensity:
    """Test intensity normalization."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("light", Intensity.LIGHT),
            ("LOW", Intensity.LIGHT),
            ("moderate", Intensity.MODERATE),
            ("medium", Intensity.MODERATE),
            (" Vigorous ", Intensity.VIGOROUS),
            ("high", Intensity.VIGOROUS),
            (20, Intensity.LIGHT),
            (33, Intensity.LIGHT),
            (50, Intensity.MODERATE),
            (66.0, Intensity.MODERATE),
            (90, Intensity.VIGOROUS),
            (Intensity.LIGHT, Intensity.LIGHT),
        ],
    )
    def test_parse(self, value, expected: Intensity) -> None:
        assert Intensity.parse(value) == expected

    @pytest.mark.parametrize("value", [None, True, "extreme", ""])
    def test_unknown_is_moderate(self, value) -> None:
        assert Intensity.parse(value) == Intensity.MODERATE
