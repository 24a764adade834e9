"""Search router – exposes the search subsystem via HTTP.

GET /search
    Ranked itineraries and users for a query.

GET /search/suggestions
    Autocomplete suggestions for a partial query.

GET /search/popular
    Popular searches.

POST /search/history
    Record a query in the user's search history (processed in the background).
"""

import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from pydantic import BaseModel, Field

from ..lib.search import ElasticsearchSearchStore, SearchService
from ..lib.search.service import (
    DEFAULT_POPULAR_LIMIT,
    DEFAULT_RESULT_LIMIT,
    DEFAULT_SUGGESTION_LIMIT,
)
from ..models import SearchFilters, SearchResults, SearchType
from ..security import OptionalUserId, verify_api_key

router = APIRouter(tags=["search"], dependencies=[Depends(verify_api_key)])

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request / Response models
# ---------------------------------------------------------------------------

class SuggestionsResponse(BaseModel):
    suggestions: list[str]


class PopularSearchesResponse(BaseModel):
    searches: list[str]


class SearchHistoryRequest(BaseModel):
    """Request body for recording a search."""

    user_id: str = Field(..., min_length=1, description="Id of the searching user")
    query: str = Field(..., description="The query as typed")


class SearchHistoryResponse(BaseModel):
    status: str


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_search_service(request: Request) -> SearchService:
    """Build a service on the application-scoped Elasticsearch client.

    In production ``app.state.es`` is created by the lifespan in
    ``main.py``; tests set it to a fake with async ``search``/``index``.
    """
    return SearchService(
        store=ElasticsearchSearchStore(request.app.state.es),
        popular=getattr(request.app.state, "popular_searches", None),
    )


SearchServiceDep = Annotated[SearchService, Depends(get_search_service)]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/search", response_model=SearchResults)
async def search_content(
    service: SearchServiceDep,
    background_tasks: BackgroundTasks,
    user_id: OptionalUserId,
    q: str = Query(..., description="Free-text search query"),
    type_: SearchType = Query("all", alias="type", description="Entity kind to search"),
    location: str | None = Query(None, description="Location filter, e.g. 'TX' or 'Austin, Texas'"),
    start_date: date | None = Query(None, description="Itineraries starting on or after"),
    end_date: date | None = Query(None, description="Itineraries ending on or before"),
    limit: int = Query(DEFAULT_RESULT_LIMIT, ge=1, le=100, description="Results per kind"),
) -> SearchResults:
    """Search itineraries and users.  Always succeeds, possibly with no results.

    When the caller identifies the user (``X-User-Id``) the query is also
    added to their search history after the response is sent.
    """
    filters = SearchFilters(
        type=type_,
        location=location,
        start_date=start_date,
        end_date=end_date,
    )
    results = await service.search(q, filters, limit)

    if user_id and q.strip():
        background_tasks.add_task(service.record_query, user_id, q)
    return results


@router.get("/search/suggestions", response_model=SuggestionsResponse)
async def search_suggestions(
    service: SearchServiceDep,
    q: str = Query(..., description="Partial query"),
    limit: int = Query(DEFAULT_SUGGESTION_LIMIT, ge=1, le=20),
) -> SuggestionsResponse:
    return SuggestionsResponse(suggestions=await service.suggest(q, limit))


@router.get("/search/popular", response_model=PopularSearchesResponse)
async def popular_searches(
    service: SearchServiceDep,
    limit: int = Query(DEFAULT_POPULAR_LIMIT, ge=1, le=50),
) -> PopularSearchesResponse:
    return PopularSearchesResponse(searches=service.popular_searches(limit))


@router.post(
    "/search/history",
    response_model=SearchHistoryResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def record_search(
    payload: SearchHistoryRequest,
    service: SearchServiceDep,
    background_tasks: BackgroundTasks,
) -> SearchHistoryResponse:
    """Queue *payload.query* for the user's search history."""
    background_tasks.add_task(service.record_query, payload.user_id, payload.query)
    return SearchHistoryResponse(status="accepted")
