"""Shared Elasticsearch utilities.

Helpers for working with Elasticsearch responses that are used by the
record store and its tests.
"""

import logging

from elastic_transport import ObjectApiResponse

from .errors import StorageFetchError

logger = logging.getLogger(__name__)


def unwrap_es_response(resp, kind: str) -> dict:
    """Unwrap an Elasticsearch response, handling both ObjectApiResponse and dict.

    Raises ``StorageFetchError`` for *kind* if the response type is unexpected.
    """
    if isinstance(resp, ObjectApiResponse):
        return resp.body
    elif isinstance(resp, dict):
        return resp
    else:
        logger.error("Unexpected Elasticsearch response type: %s", type(resp))
        raise StorageFetchError(kind, f"invalid Elasticsearch response ({type(resp).__name__})")


def hit_sources(data: dict) -> list[dict]:
    """Return the ``_source`` of every hit, skipping empty ones."""
    sources: list[dict] = []
    for hit in data.get("hits", {}).get("hits", []):
        src = hit.get("_source") or {}
        if src:
            sources.append(src)
    return sources
