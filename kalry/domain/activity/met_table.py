"""MET reference table - Metabolic Equivalent of Task per activity and intensity."""

from __future__ import annotations

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from kalry.domain.activity.models import Intensity


class MetEntry(BaseModel):
    """MET values of one activity at each intensity.

    Example:
        >>> entry = MetEntry(activity_key="running", light=6.0, moderate=9.8, vigorous=12.3)
        >>> entry.met(Intensity.MODERATE)
        9.8
    """

    model_config = ConfigDict(frozen=True)

    activity_key: str = Field(..., min_length=1, description="Canonical lowercase label")
    light: float = Field(..., gt=0)
    moderate: float = Field(..., gt=0)
    vigorous: float = Field(..., gt=0)

    def met(self, intensity: Intensity) -> float:
        """MET value for an intensity."""
        return {
            Intensity.LIGHT: self.light,
            Intensity.MODERATE: self.moderate,
            Intensity.VIGOROUS: self.vigorous,
        }[intensity]

    def matches(self, label: str) -> bool:
        """Case-insensitive substring match in both directions."""
        query = label.strip().lower()
        if not query:
            return False
        return self.activity_key in query or query in self.activity_key


def _entry(key: str, light: float, moderate: float, vigorous: float) -> MetEntry:
    return MetEntry(activity_key=key, light=light, moderate=moderate, vigorous=vigorous)


# Order matters: first match wins
MET_TABLE: Tuple[MetEntry, ...] = (
    # Running
    _entry("running", 6.0, 9.8, 12.3),
    _entry("jogging", 6.0, 7.0, 8.3),
    # Cycling
    _entry("cycling", 4.0, 8.0, 12.0),
    _entry("stationary bike", 3.5, 6.8, 10.5),
    # Swimming
    _entry("swimming", 6.0, 8.0, 11.0),
    # Other cardio
    _entry("jumping jacks", 7.0, 8.0, 10.0),
    _entry("burpees", 8.0, 10.0, 12.0),
    _entry("mountain climbers", 7.0, 8.0, 10.0),
    _entry("jump rope", 8.0, 10.0, 12.0),
    _entry("rowing", 4.5, 7.0, 12.0),
    _entry("elliptical", 5.0, 7.0, 9.0),
    _entry("stair climbing", 6.0, 8.0, 11.0),
    _entry("walking", 3.0, 3.5, 4.5),
    _entry("hiit", 8.0, 10.0, 12.5),
)

DEFAULT_MET = _entry("default", 5.0, 7.0, 9.0)

STRENGTH_MET = _entry("strength training", 3.5, 5.0, 6.0)

# Walking at a moderate pace
STEP_WALKING_MET = 3.5


def lookup(activity_label: str, table: Tuple[MetEntry, ...] = MET_TABLE) -> Optional[MetEntry]:
    """First entry matching a label, or None.

    Args:
        activity_label: Free-form activity name, e.g. "Morning Running"
        table: Entries to search, in priority order

    Returns:
        Matching MetEntry or None
    """
    for entry in table:
        if entry.matches(activity_label):
            return entry
    return None
