"""
Food log repository interface.

Storage for logged meals; the schema is owned by the adapter.
"""

from datetime import date
from typing import List, Protocol, runtime_checkable

from kalry.domain.food_log.models import FoodLogEntry
from kalry.domain.shared.value_objects import UserId


@runtime_checkable
class IFoodLogRepository(Protocol):
    """
    Repository interface for logged meals.

    Design Pattern: Repository Pattern + Protocol (Dependency Injection)

    Example:
        >>> repository = InMemoryFoodLogRepository()
        >>> await repository.save(entry)
        >>> entries = await repository.get_by_date(entry.user_id, entry.date)
    """

    async def save(self, entry: FoodLogEntry) -> None:
        """
        Insert a log entry.

        Args:
            entry: Entry to store
        """
        ...

    async def get_by_date(self, user_id: UserId, day: date) -> List[FoodLogEntry]:
        """
        Entries of a user for one day, oldest first.

        Args:
            user_id: Owner
            day: Log date

        Returns:
            List of FoodLogEntry (may be empty)
        """
        ...
