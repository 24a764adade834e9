"""Environment-driven settings.

Values are read lazily so tests can patch ``os.environ`` without having to
reload modules.
"""

import os

DEFAULT_ELASTICSEARCH_URL = "http://localhost:9200"


def get_api_key() -> str | None:
    return os.environ.get("API_KEY")


def get_elasticsearch_url() -> str:
    return os.environ.get("ELASTICSEARCH_URL", DEFAULT_ELASTICSEARCH_URL)


def get_elasticsearch_api_key() -> str | None:
    return os.environ.get("ELASTICSEARCH_API_KEY") or None


def get_index_names() -> dict[str, str]:
    """Index name per document kind (``itinerary``, ``profile``, ``search_log``)."""
    return {
        "itinerary": os.environ.get("ITINERARIES_INDEX", "itineraries"),
        "profile": os.environ.get("PROFILES_INDEX", "profiles"),
        "search_log": os.environ.get("SEARCH_LOGS_INDEX", "search_logs"),
    }


def _get_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 1:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


def get_search_fetch_window() -> int:
    return _get_int("SEARCH_FETCH_WINDOW", 100)


def get_suggestion_fetch_window() -> int:
    return _get_int("SUGGESTION_FETCH_WINDOW", 50)


def get_log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").upper()
