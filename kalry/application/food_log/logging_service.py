"""
Food logging service.

Flattens a NutritionRecord into a FoodLogEntry and stores it.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional

import structlog

from kalry.domain.extraction.models import NutritionRecord
from kalry.domain.food_log.models import DailyTotals, FoodLogEntry, MealType, UserSession
from kalry.domain.food_log.ports import IFoodLogRepository
from kalry.domain.shared.errors import AuthenticationRequiredError
from kalry.infrastructure.cache.timed_cache import TimedCache

logger = structlog.get_logger(__name__)


class FoodLogService:
    """
    Logs analyzed meals for the signed-in user.

    When a DailyTotals cache is given and holds fresh totals for the
    logged day, they are updated in place instead of being reloaded.

    Example:
        >>> service = FoodLogService(InMemoryFoodLogRepository())
        >>> entry = await service.log(record, MealType.LUNCH, session)
        >>> entry.food_name
        '200g black beans'
    """

    def __init__(
        self,
        repository: IFoodLogRepository,
        totals_cache: Optional[TimedCache[DailyTotals]] = None,
    ):
        self.repository = repository
        self.totals_cache = totals_cache

    async def log(
        self,
        record: NutritionRecord,
        meal_type: MealType,
        session: UserSession,
        day: Optional[date] = None,
    ) -> FoodLogEntry:
        """
        Store a record as one log entry.

        Args:
            record: Validated nutrition record
            meal_type: Meal slot
            session: Current user session
            day: Log date (default: today, UTC)

        Returns:
            Stored FoodLogEntry

        Raises:
            AuthenticationRequiredError: No signed-in user
        """
        if not session.is_authenticated():
            raise AuthenticationRequiredError("You must be logged in to log food.")

        entry = FoodLogEntry(
            user_id=session.user_id,
            food_name=record.food_name(),
            calories=record.total.calories,
            protein=record.total.protein,
            carbs=record.total.carbs,
            fat=record.total.fat,
            fiber=record.total.fiber,
            meal_type=meal_type,
            date=day or datetime.now(timezone.utc).date(),
        )
        await self.repository.save(entry)

        logger.info(
            "Food logged",
            user_id=str(entry.user_id),
            meal_type=meal_type.value,
            calories=entry.calories,
        )
        self._update_totals(entry)
        return entry

    async def daily_totals(self, session: UserSession, day: date) -> DailyTotals:
        """
        Consumed totals for a day, served from the cache when fresh.

        Raises:
            AuthenticationRequiredError: No signed-in user
        """
        if not session.is_authenticated():
            raise AuthenticationRequiredError("You must be logged in to view your log.")

        if self.totals_cache is not None:
            cached = self.totals_cache.get()
            if cached is not None and cached.date == day:
                return cached

        totals = DailyTotals(date=day)
        for entry in await self.repository.get_by_date(session.user_id, day):
            totals = totals.add(entry)

        if self.totals_cache is not None:
            self.totals_cache.set(totals)
        return totals

    def _update_totals(self, entry: FoodLogEntry) -> None:
        if self.totals_cache is None or not self.totals_cache.is_fresh():
            return
        cached = self.totals_cache.value
        if cached is None or cached.date != entry.date:
            return
        self.totals_cache.set(cached.add(entry))
