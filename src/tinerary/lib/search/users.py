"""User profile searcher.

Profiles are ranked on username and display name (weighted equally) and
bio.  A profile's display title falls back from display name to username
to ``"Unknown User"``.
"""

from ...models import SearchFilters, UserCandidate
from .base import EntitySearcher, as_text, row_id
from .fuzzy import FuzzyMatcher
from .store import SearchStore

USER_FIELD_WEIGHTS = {
    "username": 0.4,
    "display_name": 0.4,
    "bio": 0.2,
}

UNKNOWN_USER_TITLE = "Unknown User"


def build_user_candidate(row: dict) -> UserCandidate:
    username = as_text(row.get("username"))
    display_name = as_text(row.get("name"))
    bio = as_text(row.get("bio"))

    return UserCandidate(
        id=row_id(row),
        username=username,
        display_name=display_name,
        bio=bio,
        avatar_url=row.get("avatar_url"),
        created_at=row.get("created_at"),
        title=display_name or username or UNKNOWN_USER_TITLE,
        description=bio,
    )


class UserSearcher(EntitySearcher):
    """Searches the most recently created profiles."""

    def __init__(self, weights: dict[str, float] | None = None):
        self._matcher = FuzzyMatcher(UserCandidate, weights or USER_FIELD_WEIGHTS)

    @property
    def name(self) -> str:
        return "user"

    @property
    def matcher(self) -> FuzzyMatcher:
        return self._matcher

    async def fetch_rows(self, store: SearchStore, filters: SearchFilters, window: int) -> list[dict]:
        # Profiles have no visibility flag or dates; the filters only
        # apply to itineraries.
        return await store.fetch_recent("profile", limit=window)

    def to_candidate(self, row: dict) -> UserCandidate:
        return build_user_candidate(row)
