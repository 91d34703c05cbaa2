"""In-memory food log repository implementation.

Provides an in-memory implementation of IFoodLogRepository, used by the
FoodLogService tests.
"""

from datetime import date
from typing import Dict, List

from kalry.domain.food_log.models import FoodLogEntry
from kalry.domain.shared.value_objects import UserId


class InMemoryFoodLogRepository:
    """
    In-memory implementation of IFoodLogRepository port.

    Thread safety: NOT thread-safe (use locks if needed in production)
    Persistence: Data lost on process restart (in-memory only)

    Example:
        >>> repository = InMemoryFoodLogRepository()
        >>> await repository.save(entry)
        >>> await repository.get_by_date(entry.user_id, entry.date)
        [FoodLogEntry(...)]
    """

    def __init__(self) -> None:
        """Initialize repository with empty storage."""
        self._storage: Dict[str, FoodLogEntry] = {}

    async def save(self, entry: FoodLogEntry) -> None:
        """Insert or replace an entry (entries are immutable)."""
        self._storage[entry.id] = entry

    async def get_by_date(self, user_id: UserId, day: date) -> List[FoodLogEntry]:
        """Entries of a user for one day, oldest first."""
        entries = [
            entry
            for entry in self._storage.values()
            if entry.user_id == user_id and entry.date == day
        ]
        return sorted(entries, key=lambda entry: entry.created_at)

    def count(self) -> int:
        """Total entries stored."""
        return len(self._storage)

    def clear(self) -> None:
        """Remove all entries (for testing)."""
        self._storage.clear()
