"""
Command-line entry point: ``hotspot-planner {info,search,taxonomy,itinerary,species}``.

Every command but ``info`` wraps a Prefect flow and turns its outcome into an exit code.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime

from hotspot_planner import __version__
from hotspot_planner.config import get_settings
from hotspot_planner.errors import HotspotPlannerError
from hotspot_planner.schemas import Priority, SortBy


def _lat_lon(value: str) -> tuple[float, float]:
    """Parse ``"lat,lon"``."""
    try:
        lat, lon = (float(part) for part in value.split(","))
    except ValueError:
        msg = f"expected 'lat,lon', got {value!r}"
        raise argparse.ArgumentTypeError(msg) from None
    return lat, lon


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="hotspot-planner",
        description="Find and rank nearby birding hotspots with live enrichment",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log at DEBUG level (cache hits, snapshot details)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("info", help="Show application info")

    # 'search' command - discover and enrich hotspots
    search_parser = subparsers.add_parser("search", help="Search hotspots near a point")
    search_parser.add_argument("--lat", type=float, default=None, help="Origin latitude")
    search_parser.add_argument("--lon", type=float, default=None, help="Origin longitude")
    search_parser.add_argument("--near", default=None, help="Place name to search around")
    search_parser.add_argument("--radius", type=float, default=None, help="Radius in km (max 50)")
    search_parser.add_argument("--max-results", type=int, default=None, help="Hotspots to keep")
    search_parser.add_argument(
        "--sort",
        choices=[s.value for s in SortBy],
        default=SortBy.DISTANCE.value,
        help="Result order (default: distance)",
    )
    search_parser.add_argument("--days-back", type=int, default=None, help="Lookback window (1-30)")
    search_parser.add_argument("--address", action="store_true", help="Add street addresses")
    search_parser.add_argument("--route", action="store_true", help="Add driving distance and time")
    search_parser.add_argument("--weather", action="store_true", help="Add current weather")
    search_parser.add_argument(
        "--route-to",
        type=_lat_lon,
        default=None,
        metavar="LAT,LON",
        help="Keep only hotspots along the way to this point",
    )
    search_parser.add_argument(
        "--max-detour",
        type=float,
        default=5.0,
        help="Corridor half-width in km for --route-to (default: 5)",
    )
    search_parser.add_argument(
        "--life-list",
        default=None,
        metavar="CSV",
        help="eBird CSV export; species missing from it are flagged as lifers",
    )

    # 'taxonomy' command - refresh the species reference list
    taxonomy_parser = subparsers.add_parser("taxonomy", help="Refresh eBird taxonomy snapshot")
    taxonomy_parser.add_argument("--force", action="store_true", help="Ignore the cached snapshot")

    # 'itinerary' command - route a day trip through a saved search
    itinerary_parser = subparsers.add_parser("itinerary", help="Plan a day trip")
    itinerary_parser.add_argument("--lat", type=float, default=None, help="Start latitude")
    itinerary_parser.add_argument("--lon", type=float, default=None, help="Start longitude")
    itinerary_parser.add_argument("--radius", type=float, default=None, help="Saved search radius")
    itinerary_parser.add_argument("--stops", type=int, default=5, help="Maximum stops (default: 5)")
    itinerary_parser.add_argument(
        "--priority",
        choices=[p.value for p in Priority],
        default=Priority.BALANCED.value,
        help="Favor species, distance, or both (default: balanced)",
    )
    itinerary_parser.add_argument(
        "--end",
        type=_lat_lon,
        default=None,
        metavar="LAT,LON",
        help="Finish here instead of returning to the start",
    )
    itinerary_parser.add_argument(
        "--depart",
        type=datetime.fromisoformat,
        default=None,
        metavar="ISO-TIME",
        help="Departure time, e.g. 2026-05-02T06:00 (default: now)",
    )

    # 'species' command - where has one species been seen lately
    species_parser = subparsers.add_parser("species", help="Find recent sightings of a species")
    species_parser.add_argument("query", help="eBird species code or (part of) its name")
    species_parser.add_argument("--lat", type=float, default=None, help="Origin latitude")
    species_parser.add_argument("--lon", type=float, default=None, help="Origin longitude")
    species_parser.add_argument("--radius", type=float, default=None, help="Radius in km (max 50)")
    species_parser.add_argument("--days-back", type=int, default=None, help="Lookback (1-30)")
    species_parser.add_argument(
        "--no-nearest",
        dest="nearest",
        action="store_false",
        help="Do not look beyond the radius when nothing was seen inside it",
    )

    return parser


def cmd_info(_args: argparse.Namespace) -> int:
    """Handle the 'info' command."""
    settings = get_settings()
    print(f"Application: {settings.app_name}")
    print(f"Version: {__version__}")
    print(f"Environment: {settings.app_env}")
    print(f"Debug: {settings.debug}")
    print(f"Default origin: ({settings.lat}, {settings.lon})")
    print(f"eBird key: {'set' if settings.ebird_api_key else 'missing'}")
    print(f"LocationIQ key: {'set' if settings.locationiq_api_key else 'missing'}")
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    """Handle the 'search' command: run the search flow."""
    from hotspot_planner.flows.search import search_hotspots

    settings = get_settings()
    if settings.ebird_api_key is None:
        print("HOTSPOT_PLANNER_EBIRD_API_KEY is not set.", file=sys.stderr)
        return 1

    try:
        result = asyncio.run(
            search_hotspots(
                lat=args.lat if args.lat is not None else settings.lat,
                lon=args.lon if args.lon is not None else settings.lon,
                near=args.near,
                radius_km=args.radius,
                max_results=args.max_results,
                sort_by=args.sort,
                days_back=args.days_back,
                include_address=args.address,
                include_route=args.route,
                include_weather=args.weather,
                route_to=args.route_to,
                max_detour_km=args.max_detour,
                life_list_path=args.life_list,
            )
        )
    except (HotspotPlannerError, ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Done: {result['hotspots']} hotspots, {result['failures']} enrichment failures.")
    return 0


def cmd_taxonomy(args: argparse.Namespace) -> int:
    """Handle the 'taxonomy' command."""
    from hotspot_planner.flows.taxonomy import refresh_taxonomy

    try:
        count = asyncio.run(refresh_taxonomy(force=args.force))
    except (HotspotPlannerError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"Taxonomy: {count} species")
    return 0


def cmd_itinerary(args: argparse.Namespace) -> int:
    """Handle the 'itinerary' command."""
    from hotspot_planner.flows.itinerary import plan_itinerary

    settings = get_settings()
    try:
        result = asyncio.run(
            plan_itinerary(
                lat=args.lat if args.lat is not None else settings.lat,
                lon=args.lon if args.lon is not None else settings.lon,
                radius_km=args.radius,
                max_stops=args.stops,
                priority=args.priority,
                end=args.end,
                depart_at=args.depart,
            )
        )
    except (HotspotPlannerError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"Itinerary: {result['stops']} stops, saved to {result['path']}")
    return 0


def cmd_species(args: argparse.Namespace) -> int:
    """Handle the 'species' command."""
    from hotspot_planner.flows.species import find_species_hotspots

    settings = get_settings()
    try:
        result = asyncio.run(
            find_species_hotspots(
                args.query,
                lat=args.lat if args.lat is not None else settings.lat,
                lon=args.lon if args.lon is not None else settings.lon,
                radius_km=args.radius,
                days_back=args.days_back,
                nearest=args.nearest,
            )
        )
    except (HotspotPlannerError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    where = "nearest sightings" if result["nearest"] else "locations"
    print(f"{result['common_name']}: {result['locations']} {where}, saved to {result['path']}")
    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "info": cmd_info,
        "search": cmd_search,
        "taxonomy": cmd_taxonomy,
        "itinerary": cmd_itinerary,
        "species": cmd_species,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
