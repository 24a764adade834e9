"""Itinerary searcher.

Pipeline per search:

1. Fetch the most recent public itineraries from the store, with the
   caller's date range pushed down as storage predicates.
2. Look up the owners' profiles in one request and copy their username
   and display name onto each row.
3. Expand each location into its alias variants so "TX" finds "Texas".
4. Rank with the itinerary field weights.
5. Drop results whose location does not match the caller's location
   filter (alias aware, so it cannot be pushed down to the store).
"""

import logging

from ...models import ItineraryCandidate, RankedResult, SearchFilters
from ..locations import location_matches, normalize_location
from .base import EntitySearcher, as_text, row_id
from .fuzzy import FuzzyMatcher
from .store import SearchStore

logger = logging.getLogger(__name__)

# Location variants outrank the raw location so alias hits count.
ITINERARY_FIELD_WEIGHTS = {
    "title": 0.30,
    "location_text": 0.25,
    "location": 0.15,
    "description": 0.15,
    "owner_username": 0.10,
    "owner_name": 0.05,
}


def build_itinerary_candidate(row: dict) -> ItineraryCandidate:
    owner = row.get("owner") or {}
    location = as_text(row.get("location"))
    variants = normalize_location(location)
    owner_id = row.get("user_id")

    return ItineraryCandidate(
        id=row_id(row),
        owner_id=str(owner_id) if owner_id is not None else None,
        title=as_text(row.get("title")),
        description=as_text(row.get("description")),
        image_url=row.get("image_url"),
        location=location,
        location_variants=variants,
        location_text=" ".join(variants),
        start_date=row.get("start_date"),
        end_date=row.get("end_date"),
        created_at=row.get("created_at"),
        owner_username=as_text(owner.get("username")),
        owner_name=as_text(owner.get("name")),
        owner_avatar_url=owner.get("avatar_url"),
    )


async def attach_owners(store: SearchStore, rows: list[dict]) -> list[dict]:
    """Return *rows* with the owning profile under ``owner`` where found.

    A failed profile lookup is logged and the rows are returned without
    owners; itinerary results do not depend on it.
    """
    owner_ids = list(dict.fromkeys(
        str(row["user_id"]) for row in rows if row.get("user_id") is not None
    ))
    if not owner_ids:
        return rows

    try:
        profiles = await store.fetch_profiles(owner_ids)
    except Exception:
        logger.exception("Owner lookup for %d itineraries failed", len(rows))
        return rows

    by_id = {str(p.get("id")): p for p in profiles}
    attached = []
    for row in rows:
        owner = by_id.get(str(row.get("user_id")))
        attached.append({**row, "owner": owner} if owner else row)
    return attached


class ItinerarySearcher(EntitySearcher):
    """Searches public itineraries by title, location aliases, text and owner."""

    def __init__(self, weights: dict[str, float] | None = None):
        self._matcher = FuzzyMatcher(ItineraryCandidate, weights or ITINERARY_FIELD_WEIGHTS)

    @property
    def name(self) -> str:
        return "itinerary"

    @property
    def matcher(self) -> FuzzyMatcher:
        return self._matcher

    async def fetch_rows(self, store: SearchStore, filters: SearchFilters, window: int) -> list[dict]:
        rows = await store.fetch_recent(
            "itinerary",
            public_only=True,
            start_date=filters.start_date,
            end_date=filters.end_date,
            limit=window,
        )
        return await attach_owners(store, rows)

    def to_candidate(self, row: dict) -> ItineraryCandidate:
        return build_itinerary_candidate(row)

    def post_filter(self, results: list[RankedResult], filters: SearchFilters) -> list[RankedResult]:
        if not filters.location or not filters.location.strip():
            return results
        return [r for r in results if location_matches(filters.location, r.item.location)]
