"""Search and suggestion ranking over itineraries and user profiles.

Provides named entity searchers (fetch, fuzzy rank, post-filter) and the
:class:`SearchService` orchestrator that combines them.
"""

from ..errors import MatcherConfigurationError, SearchError, StorageFetchError
from .base import (
    EntitySearcher,
    FetchFailed,
    FetchOk,
    get_searcher,
    list_searchers,
    register_searcher,
)
from .fuzzy import FuzzyMatcher, highlight_matches, rank_texts
from .itineraries import ItinerarySearcher
from .popular import PopularSearchesProvider, StaticPopularSearches
from .store import ElasticsearchSearchStore, SearchStore
from .users import UserSearcher

# Register built-in searchers
_itineraries = ItinerarySearcher()
register_searcher(_itineraries)

_users = UserSearcher()
register_searcher(_users)

from .service import SearchService  # noqa: E402

__all__ = [
    "ElasticsearchSearchStore",
    "EntitySearcher",
    "FetchFailed",
    "FetchOk",
    "FuzzyMatcher",
    "ItinerarySearcher",
    "MatcherConfigurationError",
    "PopularSearchesProvider",
    "SearchError",
    "SearchService",
    "SearchStore",
    "StaticPopularSearches",
    "StorageFetchError",
    "UserSearcher",
    "get_searcher",
    "highlight_matches",
    "list_searchers",
    "rank_texts",
    "register_searcher",
]
