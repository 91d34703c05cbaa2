"""ActivityEnergyService - calories burned from MET values."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence, Union

import structlog

from kalry.domain.activity.met_table import (
    DEFAULT_MET,
    MET_TABLE,
    STEP_WALKING_MET,
    STRENGTH_MET,
    MetEntry,
    lookup,
)
from kalry.domain.activity.models import (
    BodyProfile,
    BurnBreakdownEntry,
    BurnSource,
    CardioSessionLog,
    DailyBurnSummary,
    Intensity,
    StepLog,
    StrengthWorkoutLog,
    WorkoutExercise,
)
from kalry.domain.shared.errors import ValidationError

logger = structlog.get_logger(__name__)

IntensityLike = Union[Intensity, str, int, float, None]

STRIDE_FACTOR = 0.415  # Stride length as a fraction of height
WALKING_SPEED_KMH = 5.0
MALE_MULTIPLIER = 1.05
DEFAULT_AGE = 30
DEFAULT_GENDER = "female"


def round_calories(value: float) -> int:
    """Round to the nearest whole calorie, halves up.

    Example:
        >>> round_calories(342.5)
        343
    """
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _require_non_negative(name: str, value: float) -> None:
    if value < 0:
        raise ValidationError(f"{name} must not be negative: {value}")


class ActivityEnergyService:
    """Estimate energy expenditure from activities.

    Formula:
        kcal = MET × weight_kg × hours

    Activity labels are matched against the MET table case-insensitively,
    in both directions ("run" matches "running", "morning running" matches
    "running"). The first match wins; unknown labels use a default entry.

    Example:
        >>> service = ActivityEnergyService()
        >>> service.estimate_energy("Running", 30, 70, "moderate")
        343
    """

    def __init__(self, table: Sequence[MetEntry] = MET_TABLE, default: MetEntry = DEFAULT_MET):
        self.table = tuple(table)
        self.default = default

    def resolve(self, activity_label: str) -> MetEntry:
        """MET entry for a label, falling back to the default entry."""
        entry = lookup(activity_label or "", self.table)
        if entry is None:
            logger.debug("No MET entry matched, using default", activity=activity_label)
            return self.default
        return entry

    def estimate_energy(
        self,
        activity_label: str,
        duration_minutes: float,
        weight_kg: float,
        intensity: IntensityLike = Intensity.MODERATE,
    ) -> int:
        """Calories burned by an activity.

        Args:
            activity_label: Activity name, e.g. "Running"
            duration_minutes: Duration in minutes
            weight_kg: Body weight in kg
            intensity: light/moderate/vigorous (aliases accepted)

        Returns:
            Whole calories

        Raises:
            ValidationError: Negative duration or weight
        """
        _require_non_negative("duration_minutes", duration_minutes)
        _require_non_negative("weight_kg", weight_kg)

        met = self.resolve(activity_label).met(Intensity.parse(intensity))
        return round_calories(met * weight_kg * (duration_minutes / 60))

    def estimate_from_steps(
        self,
        steps: int,
        weight_kg: float,
        height_cm: float,
        age: int = DEFAULT_AGE,
        gender: str = DEFAULT_GENDER,
    ) -> int:
        """Calories burned walking a number of steps.

        Stride is height × 0.415, walked at 5 km/h with MET 3.5. Men get a
        5% multiplier. age is accepted for API compatibility and unused.

        Example:
            >>> ActivityEnergyService().estimate_from_steps(10000, 70, 175, 30, "male")
            374
        """
        _require_non_negative("steps", steps)
        _require_non_negative("weight_kg", weight_kg)
        _require_non_negative("height_cm", height_cm)

        stride_m = (height_cm / 100) * STRIDE_FACTOR
        distance_km = (steps * stride_m) / 1000
        hours = distance_km / WALKING_SPEED_KMH
        multiplier = MALE_MULTIPLIER if (gender or "").strip().lower() == "male" else 1.0

        return round_calories(STEP_WALKING_MET * weight_kg * hours * multiplier)

    def estimate_strength(
        self,
        duration_minutes: float,
        weight_kg: float,
        intensity: IntensityLike = Intensity.MODERATE,
    ) -> int:
        """Calories burned by strength training (MET 3.5 / 5.0 / 6.0)."""
        _require_non_negative("duration_minutes", duration_minutes)
        _require_non_negative("weight_kg", weight_kg)

        met = STRENGTH_MET.met(Intensity.parse(intensity))
        return round_calories(met * weight_kg * (duration_minutes / 60))

    def estimate_session(
        self,
        exercise_name: Optional[str],
        duration_minutes: float,
        weight_kg: float,
        intensity: IntensityLike = Intensity.MODERATE,
        rounds: int = 1,
    ) -> int:
        """Calories for a session repeated over rounds."""
        return self.estimate_energy(
            exercise_name or "cardio", duration_minutes * rounds, weight_kg, intensity
        )

    def estimate_workout(
        self,
        exercises: Sequence[WorkoutExercise],
        weight_kg: float,
        intensity: IntensityLike = Intensity.MODERATE,
    ) -> int:
        """Calories for an interval workout.

        Each exercise contributes its own rounded estimate for
        duration_seconds × rounds.
        """
        if not exercises:
            return 0

        total = 0
        for exercise in exercises:
            minutes = (exercise.duration_seconds * exercise.rounds) / 60
            total += self.estimate_energy(exercise.name or "cardio", minutes, weight_kg, intensity)
        return total

    def summarize_day(
        self,
        profile: Optional[BodyProfile],
        steps: Optional[StepLog] = None,
        workouts: Sequence[StrengthWorkoutLog] = (),
        cardio_sessions: Sequence[CardioSessionLog] = (),
    ) -> DailyBurnSummary:
        """Total calories burned in a day from steps, workouts and cardio.

        Stored calories are used when present; otherwise they are estimated
        from the profile. Steps are always re-estimated when weight and
        height are known.
        """
        profile = profile or BodyProfile()
        weight = profile.weight_kg
        breakdown = []

        step_calories = 0
        if steps and steps.steps > 0:
            if weight and profile.height_cm:
                step_calories = self.estimate_from_steps(
                    steps.steps,
                    weight,
                    profile.height_cm,
                    profile.age or DEFAULT_AGE,
                    profile.gender or DEFAULT_GENDER,
                )
            else:
                step_calories = round_calories(steps.calories or 0)
            breakdown.append(
                BurnBreakdownEntry(
                    type=BurnSource.STEPS, name=f"{steps.steps} steps", calories=step_calories
                )
            )

        workout_calories = 0
        for workout in workouts:
            calories = round_calories(workout.total_kcal or 0)
            if not calories and workout.duration_seconds and weight:
                calories = self.estimate_strength(workout.duration_seconds / 60, weight)
            workout_calories += calories
            breakdown.append(
                BurnBreakdownEntry(
                    type=BurnSource.WORKOUT,
                    name="Strength Training",
                    calories=calories,
                    duration_seconds=workout.duration_seconds,
                )
            )

        cardio_calories = 0
        for session in cardio_sessions:
            calories = round_calories(session.estimated_calories or 0)
            if not calories and session.estimated_time_seconds and weight:
                calories = self.estimate_energy(
                    session.name, session.estimated_time_seconds / 60, weight
                )
            cardio_calories += calories
            breakdown.append(
                BurnBreakdownEntry(
                    type=BurnSource.CARDIO,
                    name=session.name,
                    calories=calories,
                    duration_seconds=session.estimated_time_seconds,
                )
            )

        return DailyBurnSummary(
            total=step_calories + workout_calories + cardio_calories,
            steps=step_calories,
            workouts=workout_calories,
            cardio=cardio_calories,
            breakdown=breakdown,
        )
