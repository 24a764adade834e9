"""Tests for the search orchestrator and the built-in entity searchers."""

from datetime import date

import pytest

from ...models import SearchFilters
from ..errors import StorageFetchError
from . import get_searcher, list_searchers
from .itineraries import attach_owners, build_itinerary_candidate
from .popular import PopularSearchesProvider
from .service import SearchService, kinds_for
from .store import SearchStore
from .users import UNKNOWN_USER_TITLE, build_user_candidate


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

class FakeStore(SearchStore):
    """In-memory store recording every call.

    ``failing`` may contain ``itinerary``, ``profile`` (the recent-profile
    fetch), ``owners`` (the owner lookup) and ``search_log``.
    """

    def __init__(self, itineraries=None, profiles=None, failing=()):
        self.itineraries = itineraries or []
        self.profiles = profiles or []
        self.failing = set(failing)
        self.calls: list[dict] = []
        self.logs: list[dict] = []

    async def fetch_recent(
        self, kind, *, public_only=False, start_date=None, end_date=None, limit=100, fields=None
    ):
        self.calls.append({
            "method": "fetch_recent",
            "kind": kind,
            "public_only": public_only,
            "start_date": start_date,
            "end_date": end_date,
            "limit": limit,
            "fields": fields,
        })
        if kind in self.failing:
            raise StorageFetchError(kind, "connection refused")
        rows = self.itineraries if kind == "itinerary" else self.profiles
        return [dict(r) for r in rows[:limit]]

    async def fetch_profiles(self, ids):
        self.calls.append({"method": "fetch_profiles", "ids": list(ids)})
        if "owners" in self.failing:
            raise StorageFetchError("profile", "timeout")
        return [dict(p) for p in self.profiles if p["id"] in ids]

    async def append_search_log(self, user_id, query, location, timestamp):
        self.calls.append({"method": "append_search_log"})
        if "search_log" in self.failing:
            raise ConnectionError("index closed")
        self.logs.append(
            {"user_id": user_id, "query": query, "location": location, "timestamp": timestamp}
        )


def make_service(store, **kwargs) -> SearchService:
    kwargs.setdefault("fetch_window", 100)
    kwargs.setdefault("suggestion_window", 50)
    return SearchService(store, **kwargs)


BEACH_VACATION = {
    "id": "itin-1",
    "user_id": "u1",
    "title": "Beach Vacation",
    "description": "A fun trip",
    "image_url": "https://example.com/image.jpg",
    "location": "Miami, FL",
    "start_date": "2024-06-01",
    "end_date": "2024-06-07",
    "created_at": "2024-01-01T00:00:00Z",
    "is_public": True,
}

TRAVELER = {
    "id": "u1",
    "username": "traveler",
    "name": "John Traveler",
    "bio": "Always on the road",
    "avatar_url": "https://example.com/avatar.jpg",
    "created_at": "2023-12-01T00:00:00Z",
}

BEACH_LOVER = {
    "id": "u2",
    "username": "beachlover",
    "name": "Beach Lover",
    "bio": "I love the ocean",
    "avatar_url": None,
    "created_at": "2024-01-02T00:00:00Z",
}


# ---------------------------------------------------------------------------
# search
# ---------------------------------------------------------------------------

class TestSearch:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   ", "\t\n"])
    @pytest.mark.parametrize("filters", [
        None,
        SearchFilters(type="itinerary"),
        SearchFilters(type="all", location="TX", start_date=date(2024, 1, 1)),
    ])
    async def test_blank_query_short_circuits(self, query, filters):
        store = FakeStore(itineraries=[BEACH_VACATION], profiles=[BEACH_LOVER])
        results = await make_service(store).search(query, filters)

        assert results.itineraries == []
        assert results.users == []
        assert results.total_count == 0
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_end_to_end_itinerary(self):
        store = FakeStore(itineraries=[BEACH_VACATION], profiles=[TRAVELER])
        results = await make_service(store).search("beach", SearchFilters(type="itinerary"))

        assert len(results.itineraries) == 1
        assert results.users == []
        assert results.total_count == 1

        top = results.itineraries[0]
        assert top.item.title == "Beach Vacation"
        assert top.relevance_score is not None
        assert 0.0 < top.relevance_score <= 1.0
        assert top.item.owner_username == "traveler"
        assert top.item.owner_name == "John Traveler"
        assert top.item.start_date == date(2024, 6, 1)

        assert store.calls[0] == {
            "method": "fetch_recent",
            "kind": "itinerary",
            "public_only": True,
            "start_date": None,
            "end_date": None,
            "limit": 100,
            "fields": None,
        }
        assert store.calls[1] == {"method": "fetch_profiles", "ids": ["u1"]}
        assert all(c.get("kind") != "profile" for c in store.calls)

    @pytest.mark.asyncio
    async def test_location_variants_are_not_serialized(self):
        store = FakeStore(itineraries=[BEACH_VACATION])
        results = await make_service(store).search("beach", SearchFilters(type="itinerary"))

        dumped = results.itineraries[0].item.model_dump()
        assert "location_variants" not in dumped
        assert "location_text" not in dumped
        assert results.itineraries[0].item.location_variants[0] == "Miami, FL"

    @pytest.mark.asyncio
    async def test_truncation_happens_after_ranking(self):
        rows = [
            {"id": f"itin-{i}", "title": f"Bench Trip {i}", "created_at": "2024-01-01T00:00:00Z"}
            for i in range(30)
        ]
        rows[24] = {"id": "best", "title": "Beach Paradise", "created_at": "2024-01-01T00:00:00Z"}
        store = FakeStore(itineraries=rows)

        results = await make_service(store).search("beach", SearchFilters(type="itinerary"), limit=5)

        assert len(results.itineraries) == 5
        assert results.itineraries[0].item.id == "best"
        assert store.calls[0]["limit"] == 100

    @pytest.mark.asyncio
    async def test_total_count_is_sum_of_truncated_lists(self):
        itineraries = [{"id": f"i{i}", "title": "Beach Trip"} for i in range(30)]
        profiles = [{"id": f"u{i}", "username": f"beachfan{i}"} for i in range(30)]
        store = FakeStore(itineraries=itineraries, profiles=profiles)

        results = await make_service(store).search("beach", limit=5)

        assert len(results.itineraries) == 5
        assert len(results.users) == 5
        assert results.total_count == 10

    @pytest.mark.asyncio
    async def test_user_type_only_fetches_profiles(self):
        store = FakeStore(itineraries=[BEACH_VACATION], profiles=[BEACH_LOVER])
        results = await make_service(store).search("beach", SearchFilters(type="user"))

        assert results.itineraries == []
        assert [u.item.username for u in results.users] == ["beachlover"]
        assert [c["kind"] for c in store.calls] == ["profile"]

    @pytest.mark.asyncio
    async def test_user_title_falls_back_to_username(self):
        row = {"id": "u3", "username": "beachlover", "name": None, "bio": None}
        store = FakeStore(profiles=[row])
        results = await make_service(store).search("beach", SearchFilters(type="user"))

        assert results.users[0].item.title == "beachlover"
        assert results.users[0].item.description == ""

    @pytest.mark.asyncio
    async def test_unknown_user_title(self):
        row = {"id": "u4", "username": None, "name": None, "bio": "beach bum"}
        store = FakeStore(profiles=[row])
        results = await make_service(store).search("beach", SearchFilters(type="user"))

        assert results.users[0].item.title == UNKNOWN_USER_TITLE

    @pytest.mark.asyncio
    async def test_failed_kind_degrades_to_empty(self):
        store = FakeStore(itineraries=[BEACH_VACATION], profiles=[BEACH_LOVER], failing=("itinerary",))
        results = await make_service(store).search("beach", SearchFilters(type="all"))

        assert results.itineraries == []
        assert len(results.users) == 1
        assert results.total_count == 1

    @pytest.mark.asyncio
    async def test_total_outage_is_an_empty_result(self):
        store = FakeStore(itineraries=[BEACH_VACATION], failing=("itinerary", "profile"))
        results = await make_service(store).search("beach")

        assert results.total_count == 0
        assert results.itineraries == [] and results.users == []

    @pytest.mark.asyncio
    async def test_owner_lookup_failure_keeps_itineraries(self):
        store = FakeStore(itineraries=[BEACH_VACATION], profiles=[TRAVELER], failing=("owners",))
        results = await make_service(store).search("beach", SearchFilters(type="itinerary"))

        assert len(results.itineraries) == 1
        assert results.itineraries[0].item.owner_username == ""

    @pytest.mark.asyncio
    async def test_malformed_rows_are_skipped(self):
        rows = [
            {"title": "Beach without id"},
            {"id": "bad-date", "title": "Beach Day", "start_date": "not a date"},
            {"id": "ok", "title": "Beach Week"},
        ]
        store = FakeStore(itineraries=rows)
        results = await make_service(store).search("beach", SearchFilters(type="itinerary"))

        assert [r.item.id for r in results.itineraries] == ["ok"]

    @pytest.mark.asyncio
    async def test_rows_with_null_or_blank_ids_are_skipped(self):
        itineraries = [
            {"id": None, "title": "Beach Vacation"},
            {"id": "  ", "title": "Beach Day"},
            {"id": "ok", "title": "Beach Week"},
        ]
        profiles = [
            {"id": None, "username": "beachlover"},
            {"id": "u9", "username": "beachbum"},
        ]
        store = FakeStore(itineraries=itineraries, profiles=profiles)
        results = await make_service(store).search("beach")

        assert [r.item.id for r in results.itineraries] == ["ok"]
        assert [r.item.id for r in results.users] == ["u9"]

    @pytest.mark.asyncio
    async def test_timestamped_dates_keep_the_row(self):
        row = {
            "id": "i1",
            "title": "Beach Vacation",
            "start_date": "2024-06-01T09:30:00Z",
            "end_date": "2024-06-07T18:00:00+02:00",
        }
        store = FakeStore(itineraries=[row])
        results = await make_service(store).search("beach", SearchFilters(type="itinerary"))

        assert len(results.itineraries) == 1
        item = results.itineraries[0].item
        assert item.start_date == date(2024, 6, 1)
        assert item.end_date == date(2024, 6, 7)

    @pytest.mark.asyncio
    async def test_alias_aware_matching(self):
        row = {"id": "nyc", "title": "Weekend getaway", "location": "NYC"}
        store = FakeStore(itineraries=[row])
        results = await make_service(store).search("manhattan", SearchFilters(type="itinerary"))

        assert [r.item.id for r in results.itineraries] == ["nyc"]
        assert "location_text" in results.itineraries[0].matched_fields

    @pytest.mark.asyncio
    @pytest.mark.parametrize("location_filter", ["Texas", "TX"])
    async def test_location_filter_applied_after_ranking(self, location_filter):
        rows = [
            {"id": "austin", "title": "Beach day", "location": "Austin, TX"},
            {"id": "miami", "title": "Beach week", "location": "Miami, FL"},
            {"id": "galveston", "title": "Beach escape", "location": "Galveston, Texas"},
        ]
        store = FakeStore(itineraries=rows)
        results = await make_service(store).search(
            "beach", SearchFilters(type="itinerary", location=location_filter)
        )

        assert sorted(r.item.id for r in results.itineraries) == ["austin", "galveston"]
        # the location filter is never pushed down to the store
        assert "location" not in store.calls[0]

    @pytest.mark.asyncio
    async def test_date_range_pushed_down(self):
        store = FakeStore(itineraries=[BEACH_VACATION])
        filters = SearchFilters(type="itinerary", start_date=date(2024, 6, 1), end_date=date(2024, 6, 30))
        await make_service(store).search("beach", filters)

        assert store.calls[0]["start_date"] == date(2024, 6, 1)
        assert store.calls[0]["end_date"] == date(2024, 6, 30)

    @pytest.mark.asyncio
    async def test_inverted_date_range_is_not_validated(self):
        store = FakeStore(itineraries=[])
        filters = SearchFilters(type="itinerary", start_date=date(2024, 7, 1), end_date=date(2024, 6, 1))
        results = await make_service(store).search("beach", filters)

        assert results.total_count == 0
        assert store.calls[0]["start_date"] == date(2024, 7, 1)
        assert store.calls[0]["end_date"] == date(2024, 6, 1)

    @pytest.mark.asyncio
    async def test_fetch_window_is_configurable(self):
        store = FakeStore(itineraries=[BEACH_VACATION])
        await make_service(store, fetch_window=30).search("beach", SearchFilters(type="itinerary"))
        assert store.calls[0]["limit"] == 30

    @pytest.mark.asyncio
    async def test_explicit_zero_windows_are_kept(self):
        store = FakeStore(itineraries=[BEACH_VACATION])
        service = SearchService(store, fetch_window=0, suggestion_window=0)

        assert service.fetch_window == 0
        assert service.suggestion_window == 0
        results = await service.search("beach", SearchFilters(type="itinerary"))
        assert results.itineraries == []
        assert store.calls[0]["limit"] == 0


# ---------------------------------------------------------------------------
# suggest
# ---------------------------------------------------------------------------

class TestSuggest:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   ", "b", " b "])
    async def test_short_queries_skip_the_store(self, query):
        store = FakeStore(itineraries=[{"id": "1", "title": "Beach Trip"}])
        assert await make_service(store).suggest(query) == []
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_fetches_public_titles_and_locations(self):
        store = FakeStore(itineraries=[{"title": "Beach Trip", "location": "Miami"}])
        await make_service(store).suggest("beach")

        call = store.calls[0]
        assert call["kind"] == "itinerary"
        assert call["public_only"] is True
        assert call["limit"] == 50
        assert tuple(call["fields"]) == ("title", "location")

    @pytest.mark.asyncio
    async def test_duplicates_appear_once(self):
        rows = [{"title": "Beach Trip", "location": "Beach Trip"} for _ in range(3)]
        store = FakeStore(itineraries=rows)
        suggestions = await make_service(store).suggest("beach", 10)

        assert suggestions.count("Beach Trip") == 1
        assert len(suggestions) == len(set(suggestions))

    @pytest.mark.asyncio
    async def test_fuzzy_not_prefix_only(self):
        rows = [
            {"title": "Beach Trip", "location": "Miami"},
            {"title": "Great Beach", "location": "Beach City"},
        ]
        store = FakeStore(itineraries=rows)
        suggestions = await make_service(store).suggest("beach", 10)

        assert suggestions == ["Beach Trip", "Great Beach", "Beach City"]
        assert "Miami" not in suggestions

    @pytest.mark.asyncio
    async def test_limit_and_original_text(self):
        rows = [
            {"title": "BEACH TRIP", "location": "Miami"},
            {"title": "beach vacation", "location": "California"},
        ]
        store = FakeStore(itineraries=rows)

        assert await make_service(store).suggest("Beach", 10) == ["BEACH TRIP", "beach vacation"]
        assert await make_service(store).suggest("Beach", 1) == ["BEACH TRIP"]

    @pytest.mark.asyncio
    async def test_suggestions_do_not_expand_aliases(self):
        store = FakeStore(itineraries=[{"title": "Weekend getaway", "location": "NYC"}])
        assert await make_service(store).suggest("manhattan") == []

    @pytest.mark.asyncio
    async def test_fetch_error_gives_no_suggestions(self):
        store = FakeStore(failing=("itinerary",))
        assert await make_service(store).suggest("beach") == []


# ---------------------------------------------------------------------------
# popular_searches / record_query
# ---------------------------------------------------------------------------

class TestPopularAndHistory:
    def test_default_popular_searches(self):
        searches = make_service(FakeStore()).popular_searches()
        assert "Weekend getaway" in searches
        assert "Beach vacation" in searches
        assert len(searches) == 8

    def test_popular_searches_limit(self):
        assert len(make_service(FakeStore()).popular_searches(3)) == 3

    def test_injected_provider(self):
        class Trending(PopularSearchesProvider):
            def popular_searches(self, limit=10):
                return ["Cherry blossoms"][:limit]

        service = make_service(FakeStore(), popular=Trending())
        assert service.popular_searches() == ["Cherry blossoms"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   "])
    async def test_blank_queries_are_not_recorded(self, query):
        store = FakeStore()
        await make_service(store).record_query("u1", query)
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_records_query_with_location_hint(self):
        store = FakeStore()
        await make_service(store).record_query("u1", "Miami, FL")

        assert len(store.logs) == 1
        log = store.logs[0]
        assert log["user_id"] == "u1"
        assert log["query"] == "Miami, FL"
        assert log["location"] == "Miami, FL"
        assert log["timestamp"].tzinfo is not None

    @pytest.mark.asyncio
    async def test_records_query_without_location(self):
        store = FakeStore()
        await make_service(store).record_query("u1", "food tour")
        assert store.logs[0]["location"] is None

    @pytest.mark.asyncio
    async def test_history_failures_are_swallowed(self):
        store = FakeStore(failing=("search_log",))
        await make_service(store).record_query("u1", "beach")
        assert store.logs == []


# ---------------------------------------------------------------------------
# Searchers and registry
# ---------------------------------------------------------------------------

class TestSearchers:
    def test_builtin_searchers_registered(self):
        assert "itinerary" in list_searchers()
        assert "user" in list_searchers()
        assert get_searcher("itinerary").name == "itinerary"
        assert get_searcher("nope") is None

    @pytest.mark.parametrize("search_type,expected", [
        (None, ["itinerary", "user"]),
        ("all", ["itinerary", "user"]),
        ("itinerary", ["itinerary"]),
        ("user", ["user"]),
    ])
    def test_kinds_for(self, search_type, expected):
        assert kinds_for(search_type) == expected

    def test_itinerary_candidate_defaults_missing_text(self):
        candidate = build_itinerary_candidate({"id": 7, "title": None})
        assert candidate.id == "7"
        assert candidate.title == ""
        assert candidate.description == ""
        assert candidate.location == ""
        assert candidate.location_variants == []
        assert candidate.location_text == ""

    def test_itinerary_candidate_location_variants(self):
        candidate = build_itinerary_candidate({"id": "1", "location": "Austin, TX"})
        assert candidate.location_variants == ["Austin, TX", "Austin, Texas"]
        assert candidate.location_text == "Austin, TX Austin, Texas"

    def test_user_candidate_title_chain(self):
        assert build_user_candidate({"id": "1", "username": "u", "name": "Name"}).title == "Name"
        assert build_user_candidate({"id": "1", "username": "beachlover", "name": None}).title == "beachlover"
        assert build_user_candidate({"id": "1", "username": None, "name": None}).title == "Unknown User"

    @pytest.mark.asyncio
    async def test_attach_owners_single_lookup(self):
        store = FakeStore(profiles=[TRAVELER])
        rows = [{"id": "a", "user_id": "u1"}, {"id": "b", "user_id": "u1"}, {"id": "c"}]
        attached = await attach_owners(store, rows)

        assert store.calls == [{"method": "fetch_profiles", "ids": ["u1"]}]
        assert attached[0]["owner"]["username"] == "traveler"
        assert attached[1]["owner"]["username"] == "traveler"
        assert "owner" not in attached[2]
