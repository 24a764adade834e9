"""Exceptions raised by the search subsystem."""


class SearchError(Exception):
    """Base class for search subsystem errors."""


class StorageFetchError(SearchError):
    """The backing read for one entity kind failed.

    Never surfaced to API callers: the orchestrator turns it into a
    ``FetchFailed`` outcome and that kind degrades to zero candidates.
    """

    def __init__(self, kind: str, reason: str):
        super().__init__(f"{kind} fetch failed: {reason}")
        self.kind = kind
        self.reason = reason


class MatcherConfigurationError(SearchError):
    """A fuzzy matcher was configured with unknown fields or bad tunables."""
