"""
Food log domain models.

Flattened nutrition records stored per user and date.
"""

from __future__ import annotations

from datetime import date as date_type, datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from kalry.domain.shared.value_objects import UserId


class MealType(str, Enum):
    """Meal slot a record is logged under."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


class UserSession(BaseModel):
    """Signed-in user context; user_id is None when signed out."""

    model_config = ConfigDict(frozen=True)

    user_id: Optional[UserId] = None

    def is_authenticated(self) -> bool:
        return self.user_id is not None


class FoodLogEntry(BaseModel):
    """
    One logged meal.

    Item names are joined into food_name and only the record total is kept.

    Example:
        >>> entry.food_name
        '200g black beans, 1 glass orange juice'
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    user_id: UserId
    food_name: str = Field(..., min_length=1)
    calories: float = Field(..., ge=0)
    protein: float = Field(..., ge=0)
    carbs: float = Field(..., ge=0)
    fat: float = Field(..., ge=0)
    fiber: Optional[float] = Field(None, ge=0)
    meal_type: MealType
    date: date_type
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class DailyTotals(BaseModel):
    """Consumed macros for one user and day."""

    model_config = ConfigDict(frozen=True)

    date: date_type
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    entries: int = 0

    def add(self, entry: FoodLogEntry) -> DailyTotals:
        """New totals including an entry."""
        return self.model_copy(
            update={
                "calories": self.calories + entry.calories,
                "protein": self.protein + entry.protein,
                "carbs": self.carbs + entry.carbs,
                "fat": self.fat + entry.fat,
                "entries": self.entries + 1,
            }
        )
