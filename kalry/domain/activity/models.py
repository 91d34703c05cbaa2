"""
Activity domain models.

Inputs and outputs of the activity energy engine.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Intensity(str, Enum):
    """Exercise intensity used to pick a MET value."""

    LIGHT = "light"
    MODERATE = "moderate"
    VIGOROUS = "vigorous"

    @classmethod
    def parse(cls, value: Union[Intensity, str, int, float, None]) -> Intensity:
        """
        Normalize the intensity forms used across the app.

        Accepts light/moderate/vigorous, low/medium/high, or a 0-100
        slider value (<=33 light, <=66 moderate, above vigorous).
        Anything else is MODERATE.

        Example:
            >>> Intensity.parse("HIGH")
            <Intensity.VIGOROUS: 'vigorous'>
            >>> Intensity.parse(50)
            <Intensity.MODERATE: 'moderate'>
        """
        if isinstance(value, Intensity):
            return value
        if isinstance(value, bool) or value is None:
            return cls.MODERATE
        if isinstance(value, (int, float)):
            if value <= 33:
                return cls.LIGHT
            if value <= 66:
                return cls.MODERATE
            return cls.VIGOROUS

        key = str(value).strip().lower()
        aliases = {
            "light": cls.LIGHT,
            "low": cls.LIGHT,
            "moderate": cls.MODERATE,
            "medium": cls.MODERATE,
            "vigorous": cls.VIGOROUS,
            "high": cls.VIGOROUS,
        }
        return aliases.get(key, cls.MODERATE)


class BodyProfile(BaseModel):
    """
    Body metrics used for personalized estimates.

    Missing age and gender fall back to 30 and "female".
    """

    model_config = ConfigDict(frozen=True)

    weight_kg: Optional[float] = Field(None, gt=0, description="Weight in kg")
    height_cm: Optional[float] = Field(None, gt=0, description="Height in cm")
    age: Optional[int] = Field(None, gt=0, description="Age in years")
    gender: Optional[str] = Field(None, description="'male' or 'female'")


class WorkoutExercise(BaseModel):
    """One exercise of an interval workout."""

    model_config = ConfigDict(frozen=True)

    name: str = Field("cardio", description="Exercise name")
    duration_seconds: float = Field(45, ge=0, description="Seconds per round")
    rounds: int = Field(1, ge=1, description="Rounds performed")


class StepLog(BaseModel):
    """Steps counted for a day, with the calories stored alongside."""

    model_config = ConfigDict(frozen=True)

    steps: int = Field(..., ge=0)
    calories: Optional[float] = Field(None, ge=0)


class StrengthWorkoutLog(BaseModel):
    """Logged strength workout."""

    model_config = ConfigDict(frozen=True)

    duration_seconds: Optional[float] = Field(None, ge=0)
    total_kcal: Optional[float] = Field(None, ge=0)


class CardioSessionLog(BaseModel):
    """Saved cardio session."""

    model_config = ConfigDict(frozen=True)

    name: str = Field("cardio")
    estimated_time_seconds: Optional[float] = Field(None, ge=0)
    estimated_calories: Optional[float] = Field(None, ge=0)


class BurnSource(str, Enum):
    """Where burned calories came from."""

    STEPS = "steps"
    WORKOUT = "workout"
    CARDIO = "cardio"


class BurnBreakdownEntry(BaseModel):
    """One line of the daily burn breakdown."""

    model_config = ConfigDict(frozen=True)

    type: BurnSource
    name: str
    calories: int
    duration_seconds: Optional[float] = None


class DailyBurnSummary(BaseModel):
    """Calories burned in a day, by source."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    steps: int = 0
    workouts: int = 0
    cardio: int = 0
    breakdown: List[BurnBreakdownEntry] = Field(default_factory=list)
