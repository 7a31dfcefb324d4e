"""Async orchestration: paced batching and progressive enrichment.

Modules:
  - batcher: RateLimitedBatcher, PacingPolicy, BatchProgress
  - enrichment: EnrichmentPipeline and its enrichers (import directly)
  - itinerary: build_itinerary (import directly)

Only the batcher is re-exported here; datasources depend on it, and the
enrichment module depends on datasources.
"""

from hotspot_planner.pipeline.batcher import (
    BatchProgress,
    ItemFailure,
    PacingPolicy,
    RateLimitedBatcher,
)

__all__ = ["BatchProgress", "ItemFailure", "PacingPolicy", "RateLimitedBatcher"]
