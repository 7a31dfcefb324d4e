"""
Prefect flows for the hotspot planner.

Flows:
- search: Discover, enrich, sort, and save hotspots near a point
- taxonomy: Refresh the eBird species taxonomy snapshot (7-day TTL)
- itinerary: Route a day trip through the best hotspots of a saved search
- species: Find where one species was seen recently near a point

Usage (local):
    python -m hotspot_planner.flows.search
    python -m hotspot_planner.flows.taxonomy
    python -m hotspot_planner.flows.itinerary
    python -m hotspot_planner.flows.species

Usage (Prefect):
    prefect server start  # Optional, for dashboard
    prefect deployment run 'search-hotspots/default'
"""
