"""
Unit tests for FoodLogService.
"""

from datetime import date, datetime, timezone

import pytest

from kalry.application.food_log.logging_service import FoodLogService
from kalry.domain.extraction.models import NutritionRecord
from kalry.domain.food_log.models import DailyTotals, MealType, UserSession
from kalry.domain.shared.errors import AuthenticationRequiredError
from kalry.infrastructure.cache.timed_cache import TimedCache
from kalry.infrastructure.persistence.in_memory.food_log_repository import (
    InMemoryFoodLogRepository,
)

DAY = date(2024, 5, 10)


def test_session_authentication(signed_in: UserSession) -> None:
    assert signed_in.is_authenticated()
    assert not UserSession().is_authenticated()


@pytest.fixture
def repository() -> InMemoryFoodLogRepository:
    return InMemoryFoodLogRepository()


class TestLog:
    """Test logging records."""

    @pytest.mark.asyncio
    async def test_flattens_record(
        self,
        repository: InMemoryFoodLogRepository,
        sample_record: NutritionRecord,
        signed_in: UserSession,
    ) -> None:
        """Test names are joined and totals copied."""
        service = FoodLogService(repository)
        entry = await service.log(sample_record, MealType.LUNCH, signed_in, DAY)

        assert entry.food_name == "200g black beans"
        assert entry.calories == 264
        assert entry.fiber == 17.0
        assert entry.meal_type == MealType.LUNCH
        assert entry.date == DAY
        assert str(entry.user_id) == "user_123"
        assert await repository.get_by_date(signed_in.user_id, DAY) == [entry]

    @pytest.mark.asyncio
    async def test_defaults_to_today(
        self,
        repository: InMemoryFoodLogRepository,
        sample_record: NutritionRecord,
        signed_in: UserSession,
    ) -> None:
        entry = await FoodLogService(repository).log(sample_record, MealType.SNACK, signed_in)
        assert entry.date == datetime.now(timezone.utc).date()

    @pytest.mark.asyncio
    async def test_requires_user(
        self, repository: InMemoryFoodLogRepository, sample_record: NutritionRecord
    ) -> None:
        """Test signed-out users cannot log."""
        with pytest.raises(AuthenticationRequiredError):
            await FoodLogService(repository).log(sample_record, MealType.DINNER, UserSession())
        assert repository.count() == 0


class TestDailyTotals:
    """Test totals with the optional cache."""

    @pytest.mark.asyncio
    async def test_totals_without_cache(
        self,
        repository: InMemoryFoodLogRepository,
        sample_record: NutritionRecord,
        signed_in: UserSession,
    ) -> None:
        service = FoodLogService(repository)
        await service.log(sample_record, MealType.LUNCH, signed_in, DAY)
        await service.log(sample_record, MealType.DINNER, signed_in, DAY)

        totals = await service.daily_totals(signed_in, DAY)

        assert totals.calories == 528
        assert totals.entries == 2

    @pytest.mark.asyncio
    async def test_optimistic_update(
        self,
        repository: InMemoryFoodLogRepository,
        sample_record: NutritionRecord,
        signed_in: UserSession,
    ) -> None:
        """Test a fresh cached total is updated in place after logging."""
        cache: TimedCache[DailyTotals] = TimedCache(ttl_seconds=60, name="daily_totals")
        service = FoodLogService(repository, cache)

        await service.daily_totals(signed_in, DAY)
        await service.log(sample_record, MealType.LUNCH, signed_in, DAY)

        assert cache.value is not None
        assert cache.value.calories == 264
        assert cache.value.entries == 1

        totals = await service.daily_totals(signed_in, DAY)
        assert totals.calories == 264
        assert cache.hits == 1

    @pytest.mark.asyncio
    async def test_other_day_not_updated(
        self,
        repository: InMemoryFoodLogRepository,
        sample_record: NutritionRecord,
        signed_in: UserSession,
    ) -> None:
        cache: TimedCache[DailyTotals] = TimedCache(ttl_seconds=60)
        service = FoodLogService(repository, cache)

        await service.daily_totals(signed_in, DAY)
        await service.log(sample_record, MealType.LUNCH, signed_in, date(2024, 5, 11))

        assert cache.value is not None
        assert cache.value.calories == 0

    @pytest.mark.asyncio
    async def test_requires_user(self, repository: InMemoryFoodLogRepository) -> None:
        with pytest.raises(AuthenticationRequiredError):
            await FoodLogService(repository).daily_totals(UserSession(), DAY)
