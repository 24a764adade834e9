"""Popular search providers.

There is no aggregation over recorded queries yet: the default provider
serves a fixed list.  Callers depend on :class:`PopularSearchesProvider`
so a provider backed by real search analytics can replace it.
"""

from abc import ABC, abstractmethod
from typing import Sequence

DEFAULT_POPULAR_SEARCHES: tuple[str, ...] = (
    "Weekend getaway",
    "Beach vacation",
    "City tour",
    "Food tour",
    "Adventure travel",
    "Cultural experiences",
    "Photography spots",
    "Budget travel",
)


class PopularSearchesProvider(ABC):
    @abstractmethod
    def popular_searches(self, limit: int = 10) -> list[str]:
        """Return at most *limit* popular search strings, most popular first."""
        ...


class StaticPopularSearches(PopularSearchesProvider):
    """Serves a configured, fixed list of searches."""

    def __init__(self, searches: Sequence[str] = DEFAULT_POPULAR_SEARCHES):
        self._searches = list(searches)

    def popular_searches(self, limit: int = 10) -> list[str]:
        if limit <= 0:
            return []
        return self._searches[:limit]
