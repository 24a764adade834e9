"""Search orchestrator.

:class:`SearchService` is the library-level entry point used by the HTTP
layer:

* ``search`` – ranked itineraries and users for a free-text query.
* ``suggest`` – autocomplete strings taken from recent itinerary titles
  and locations.
* ``popular_searches`` – from the configured provider.
* ``record_query`` – fire-and-forget search history write.

Search is a discovery feature, so every method fails soft: storage
errors are logged and turn into empty (or partial) results, never into
exceptions for the caller.
"""

import asyncio
import logging
from datetime import datetime, timezone

from ...config import get_search_fetch_window, get_suggestion_fetch_window
from ...models import SearchFilters, SearchResults, SearchType
from ..locations import extract_location_hint
from .base import EntitySearcher, FetchFailed, capture_fetch, get_searcher
from .fuzzy import rank_texts
from .popular import PopularSearchesProvider, StaticPopularSearches
from .store import SearchStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tunables
# ---------------------------------------------------------------------------

DEFAULT_RESULT_LIMIT = 20
DEFAULT_SUGGESTION_LIMIT = 5
DEFAULT_POPULAR_LIMIT = 10

# Shorter partial queries get no suggestions (and cause no store access).
MIN_SUGGESTION_QUERY_LENGTH = 2

SUGGESTION_FIELDS = ("title", "location")


def kinds_for(search_type: SearchType | None) -> list[str]:
    """Entity kinds to search for a ``type`` filter (both when unset or ``all``)."""
    if search_type is None or search_type == "all":
        return ["itinerary", "user"]
    return [search_type]


class SearchService:
    def __init__(
        self,
        store: SearchStore,
        popular: PopularSearchesProvider | None = None,
        fetch_window: int | None = None,
        suggestion_window: int | None = None,
    ):
        self.store = store
        self.popular = popular or StaticPopularSearches()
        self.fetch_window = (
            get_search_fetch_window() if fetch_window is None else fetch_window
        )
        self.suggestion_window = (
            get_suggestion_fetch_window() if suggestion_window is None else suggestion_window
        )

    def _searcher(self, kind: str) -> EntitySearcher:
        searcher = get_searcher(kind)
        if searcher is None:
            raise LookupError(f"No searcher registered for '{kind}'")
        return searcher

    async def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
        limit: int = DEFAULT_RESULT_LIMIT,
    ) -> SearchResults:
        """Rank recent itineraries and/or users against *query*.

        Each requested kind is fetched concurrently; a kind whose fetch
        fails contributes no results.  ``total_count`` is the number of
        results returned after truncation to *limit*.
        """
        if not query or not query.strip():
            return SearchResults()

        filters = filters or SearchFilters()
        query = query.strip()
        kinds = kinds_for(filters.type)
        searchers = [self._searcher(kind) for kind in kinds]

        ranked = await asyncio.gather(*(
            searcher.search(self.store, query, filters, self.fetch_window, limit)
            for searcher in searchers
        ))
        by_kind = dict(zip(kinds, ranked))

        itineraries = by_kind.get("itinerary", [])
        users = by_kind.get("user", [])
        logger.info(
            "Search %r returned %d itineraries and %d users",
            query,
            len(itineraries),
            len(users),
        )
        return SearchResults(
            itineraries=itineraries,
            users=users,
            total_count=len(itineraries) + len(users),
        )

    async def suggest(self, partial_query: str, limit: int = DEFAULT_SUGGESTION_LIMIT) -> list[str]:
        """Autocomplete suggestions for *partial_query*.

        Candidates are the distinct titles and locations of recent public
        itineraries, matched as written (no location alias expansion).
        """
        text = (partial_query or "").strip()
        if len(text) < MIN_SUGGESTION_QUERY_LENGTH or limit <= 0:
            return []

        outcome = await capture_fetch(
            "itinerary",
            self.store.fetch_recent(
                "itinerary",
                public_only=True,
                limit=self.suggestion_window,
                fields=SUGGESTION_FIELDS,
            ),
        )
        if isinstance(outcome, FetchFailed):
            logger.warning("No suggestions for %r: %s", text, outcome.reason)
            return []

        candidates: dict[str, None] = {}
        for row in outcome.rows:
            for field in SUGGESTION_FIELDS:
                value = row.get(field)
                if isinstance(value, str) and value.strip():
                    candidates.setdefault(value, None)

        return rank_texts(text, candidates, limit=limit)

    def popular_searches(self, limit: int = DEFAULT_POPULAR_LIMIT) -> list[str]:
        return self.popular.popular_searches(limit)

    async def record_query(self, user_id: str, query: str) -> None:
        """Append *query* to the search history of *user_id*.

        Blank queries are ignored.  Failures are logged, never raised.
        """
        if not query or not query.strip():
            return

        location = extract_location_hint(query)
        try:
            await self.store.append_search_log(
                user_id,
                query,
                location,
                datetime.now(timezone.utc),
            )
        except Exception:
            logger.exception("Failed to record search query for user %s", user_id)
