"""Record store collaborator for search.

The search subsystem only depends on the read/write shape of
:class:`SearchStore`; :class:`ElasticsearchSearchStore` implements it on an
``AsyncElasticsearch`` client.  Document kinds:

* ``itinerary`` – ``id, user_id, title, description, image_url, location,
  start_date, end_date, created_at, is_public``
* ``profile`` – ``id, username, name, bio, avatar_url, created_at``
* ``search_log`` – ``user_id, query, location, created_at``
"""

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Sequence

from ...config import get_index_names
from ..elasticsearch import hit_sources, unwrap_es_response
from ..errors import StorageFetchError

logger = logging.getLogger(__name__)

DEFAULT_FETCH_LIMIT = 100


class SearchStore(ABC):
    """Read (and history write) interface the search subsystem depends on."""

    @abstractmethod
    async def fetch_recent(
        self,
        kind: str,
        *,
        public_only: bool = False,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = DEFAULT_FETCH_LIMIT,
        fields: Sequence[str] | None = None,
    ) -> list[dict]:
        """Return up to *limit* rows of *kind*, most recently created first.

        ``start_date`` keeps rows with ``start_date >=`` it and ``end_date``
        rows with ``end_date <=`` it.  No check is made that the range is
        ordered; an inverted range simply matches nothing.
        """
        ...

    @abstractmethod
    async def fetch_profiles(self, ids: Sequence[str]) -> list[dict]:
        """Return the profile rows for *ids* (missing ids are skipped)."""
        ...

    @abstractmethod
    async def append_search_log(
        self,
        user_id: str,
        query: str,
        location: str | None,
        timestamp: datetime,
    ) -> None:
        ...


def build_recent_query(
    public_only: bool = False,
    start_date: date | None = None,
    end_date: date | None = None,
) -> dict:
    """Build the filter-only query used for recent-row fetches."""
    filters = [
        f for f in [
            {"term": {"is_public": True}} if public_only else None,
            {"range": {"start_date": {"gte": start_date.isoformat()}}} if start_date else None,
            {"range": {"end_date": {"lte": end_date.isoformat()}}} if end_date else None,
        ] if f is not None
    ]
    if not filters:
        return {"match_all": {}}
    return {"bool": {"filter": filters}}


class ElasticsearchSearchStore(SearchStore):
    """:class:`SearchStore` backed by ``AsyncElasticsearch``.

    Client and transport errors on reads are re-raised as
    :class:`StorageFetchError`; timeouts are left to the client's own
    configuration.
    """

    def __init__(self, es, indices: dict[str, str] | None = None):
        self.es = es
        self.indices = indices or get_index_names()

    def index_for(self, kind: str) -> str:
        try:
            return self.indices[kind]
        except KeyError:
            raise ValueError(f"Unknown document kind: {kind}") from None

    async def fetch_recent(
        self,
        kind: str,
        *,
        public_only: bool = False,
        start_date: date | None = None,
        end_date: date | None = None,
        limit: int = DEFAULT_FETCH_LIMIT,
        fields: Sequence[str] | None = None,
    ) -> list[dict]:
        index = self.index_for(kind)
        query = build_recent_query(public_only, start_date, end_date)

        kwargs = {}
        if fields:
            kwargs["_source"] = list(fields)

        try:
            resp = await self.es.search(
                index=index,
                query=query,
                size=limit,
                sort=[{"created_at": "desc"}],
                **kwargs,
            )
        except Exception as exc:
            raise StorageFetchError(kind, str(exc) or type(exc).__name__) from exc

        return hit_sources(unwrap_es_response(resp, kind))

    async def fetch_profiles(self, ids: Sequence[str]) -> list[dict]:
        if not ids:
            return []

        try:
            resp = await self.es.search(
                index=self.index_for("profile"),
                query={"terms": {"id": list(ids)}},
                size=len(ids),
            )
        except Exception as exc:
            raise StorageFetchError("profile", str(exc) or type(exc).__name__) from exc

        return hit_sources(unwrap_es_response(resp, "profile"))

    async def append_search_log(
        self,
        user_id: str,
        query: str,
        location: str | None,
        timestamp: datetime,
    ) -> None:
        await self.es.index(
            index=self.index_for("search_log"),
            document={
                "user_id": user_id,
                "query": query,
                "location": location,
                "created_at": timestamp.isoformat(),
            },
        )
        logger.debug("Recorded search query for user %s", user_id)
