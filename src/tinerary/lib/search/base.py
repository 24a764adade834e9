"""Base abstraction for entity searchers.

Each searcher owns one entity kind (``itinerary``, ``user``): it fetches a
window of recent rows from the record store, turns them into candidates,
ranks them with its :class:`FuzzyMatcher`, applies any post-filters and
truncates.  Searchers are registered in a global registry so the
orchestrator can look them up by name.

Fetches report a tagged outcome (:class:`FetchOk` / :class:`FetchFailed`)
instead of raising, which is what lets one failed kind degrade to zero
results while the other kind still returns.
"""

import logging
from abc import ABC, abstractmethod
from typing import Annotated, Any, Awaitable, Literal

from pydantic import BaseModel, Field, ValidationError

from ...models import RankedResult, SearchFilters
from .fuzzy import FuzzyMatcher
from .store import SearchStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Fetch outcomes
# ---------------------------------------------------------------------------

class FetchOk(BaseModel):
    status: Literal["ok"] = "ok"
    rows: list[dict[str, Any]] = Field(default_factory=list)


class FetchFailed(BaseModel):
    status: Literal["failed"] = "failed"
    reason: str = Field(..., description="Why the fetch failed (for logs)")


FetchOutcome = Annotated[FetchOk | FetchFailed, Field(discriminator="status")]


async def capture_fetch(kind: str, fetch: Awaitable[list[dict]]) -> FetchOutcome:
    """Await *fetch*, converting any failure into a :class:`FetchFailed`."""
    try:
        rows = await fetch
    except Exception as exc:
        logger.exception("Fetching '%s' rows failed", kind)
        return FetchFailed(reason=str(exc) or type(exc).__name__)
    return FetchOk(rows=rows)


def row_id(row: dict) -> str:
    """The row's id as a string.  Raises ``ValueError`` when it has none."""
    value = row.get("id")
    if value is None or str(value).strip() == "":
        raise ValueError("row has no id")
    return str(value)


def as_text(value: Any) -> str:
    """Optional text field as a string (``None`` becomes ``""``)."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------

class EntitySearcher(ABC):
    """Abstract base class for named entity searchers.

    Subclasses implement `name`, `matcher`, `fetch_rows` and
    `to_candidate`; `post_filter` is optional.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Entity kind handled by this searcher (e.g. ``itinerary``)."""
        ...

    @property
    @abstractmethod
    def matcher(self) -> FuzzyMatcher:
        ...

    @abstractmethod
    async def fetch_rows(
        self,
        store: SearchStore,
        filters: SearchFilters,
        window: int,
    ) -> list[dict]:
        """Fetch up to *window* of the most recent rows eligible for search.

        Parameters
        ----------
        store:
            The record store to read from.
        filters:
            Caller filters; storage-level predicates are pushed down here.
        window:
            Maximum number of rows to fetch.
        """
        ...

    @abstractmethod
    def to_candidate(self, row: dict) -> BaseModel:
        """Convert a store row into the candidate model the matcher ranks."""
        ...

    def post_filter(self, results: list[RankedResult], filters: SearchFilters) -> list[RankedResult]:
        """Drop ranked results that fail filters the store cannot express."""
        return results

    async def fetch(self, store: SearchStore, filters: SearchFilters, window: int) -> FetchOutcome:
        return await capture_fetch(self.name, self.fetch_rows(store, filters, window))

    def build_candidates(self, rows: list[dict]) -> list[BaseModel]:
        candidates = []
        for row in rows:
            try:
                candidates.append(self.to_candidate(row))
            except (KeyError, TypeError, ValueError, ValidationError) as exc:
                logger.warning("Skipping malformed %s row %r: %s", self.name, row.get("id"), exc)
        return candidates

    async def search(
        self,
        store: SearchStore,
        query: str,
        filters: SearchFilters,
        window: int,
        limit: int,
    ) -> list[RankedResult]:
        """Fetch, rank, post-filter and truncate results for this kind.

        Truncation happens last so ranking always sees the whole window.
        """
        outcome = await self.fetch(store, filters, window)
        if isinstance(outcome, FetchFailed):
            logger.warning("Degrading '%s' results to empty: %s", self.name, outcome.reason)
            return []

        candidates = self.build_candidates(outcome.rows)
        ranked = self.matcher.rank(candidates, query)
        ranked = self.post_filter(ranked, filters)
        return ranked[:max(limit, 0)]


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_searchers: dict[str, EntitySearcher] = {}


def register_searcher(searcher: EntitySearcher) -> None:
    """Register a searcher instance by its name."""
    _searchers[searcher.name] = searcher


def get_searcher(name: str) -> EntitySearcher | None:
    """Look up a registered searcher by name.  Returns ``None`` if not found."""
    return _searchers.get(name)


def list_searchers() -> list[str]:
    """Return the names of all registered searchers."""
    return list(_searchers.keys())
