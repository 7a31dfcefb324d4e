"""Exception hierarchy for the enrichment pipeline and its data sources.

Only ``BaseFetchFailure`` ends a search. Everything raised after the base
fetch is scoped to one hotspot, one cached value, or one summary, and the
pipeline degrades to a partial result instead of propagating it.
"""

from __future__ import annotations


class HotspotPlannerError(Exception):
    """Base class for all hotspot-planner errors."""


# -----------------------------------------------------------------------------
# Upstream HTTP
# -----------------------------------------------------------------------------


class ApiError(HotspotPlannerError):
    """An external API answered with a non-success status or a malformed body."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidApiKeyError(ApiError):
    """The API rejected the credential token (401/403)."""


class RateLimitedError(ApiError):
    """The API kept answering 429 after every backoff attempt."""


# -----------------------------------------------------------------------------
# Pipeline
# -----------------------------------------------------------------------------


class TransientItemFailure(HotspotPlannerError):
    """A single enrichment call failed; the batch carries on without it."""

    def __init__(self, item_id: str, source: str, reason: str) -> None:
        super().__init__(f"{source} enrichment failed for {item_id}: {reason}")
        self.item_id = item_id
        self.source = source
        self.reason = reason


class BaseFetchFailure(HotspotPlannerError):
    """The discovery call failed, so there is no partial result to return."""


class CacheMissWithFetchFailure(HotspotPlannerError):
    """No fresh or stale entry exists and the underlying fetch failed."""

    def __init__(self, key: str) -> None:
        super().__init__(f"No cached value for {key!r} and fetch failed")
        self.key = key


class DataIntegrityError(HotspotPlannerError):
    """An externally computed trip order does not match the request shape."""


class AggregateEmptyError(HotspotPlannerError):
    """A summary was requested over zero successful inputs."""
