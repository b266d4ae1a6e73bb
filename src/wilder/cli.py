"""
Command-line interface for the application.

This module provides the main entry point for the CLI.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from wilder import __version__
from wilder.config import get_settings
from wilder.datasources.dataset import DatasetError, load_dataset
from wilder.flows.build import build_all
from wilder.flows.fetch import fetch_all
from wilder.schemas import SortMode
from wilder.serialization import hotspot_set_to_geojson
from wilder.session import Session
from wilder.store import DataStore


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="wilder",
        description="Rank wild edible plants and occurrence hotspots around a location",
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
        help="Enable debug mode",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("info", help="Show application info")

    # Shared selection options for 'rank' and 'hotspots'
    selection = argparse.ArgumentParser(add_help=False)
    selection.add_argument("--lat", type=float, default=None, help="Latitude (default: settings)")
    selection.add_argument("--lon", type=float, default=None, help="Longitude (default: settings)")
    selection.add_argument(
        "--top-n", type=int, default=None, help="Number of species to select (min 1)"
    )
    selection.add_argument(
        "--sort-mode",
        choices=[m.value for m in SortMode],
        default=None,
        help="Ranking mode (default: settings)",
    )

    subparsers.add_parser("rank", parents=[selection], help="Print the species shortlist")

    hotspots_parser = subparsers.add_parser(
        "hotspots", parents=[selection], help="Print hotspot cells as GeoJSON"
    )
    hotspots_parser.add_argument(
        "--grid-km", type=float, default=None, help="Grid cell size in km (default: settings)"
    )
    hotspots_parser.add_argument(
        "--seasonal",
        action="store_true",
        help="Weight cells by the 3-month window around the current month",
    )

    # 'refresh' command - fetch GBIF data and build outputs
    subparsers.add_parser("refresh", help="Fetch GBIF data and build outputs")

    return parser


def _session(args: argparse.Namespace) -> Session:
    """Load the dataset into a session configured from settings and args.

    Raises:
        DatasetError: The dataset could not be loaded.
    """
    settings = get_settings()
    overrides: dict[str, Any] = {}
    if args.top_n is not None:
        overrides["top_n"] = args.top_n
    if args.sort_mode is not None:
        overrides["sort_mode"] = SortMode(args.sort_mode)
    if getattr(args, "grid_km", None) is not None:
        overrides["grid_size_km"] = args.grid_km

    dataset = load_dataset(DataStore(settings.data_dir))
    session = Session.from_settings(settings, **overrides)
    session.load(dataset)
    session.update_location(
        settings.lat if args.lat is None else args.lat,
        settings.lon if args.lon is None else args.lon,
    )
    return session


def cmd_info(_args: argparse.Namespace) -> int:
    """Handle the 'info' command."""
    settings = get_settings()
    print(f"Application: {settings.app_name}")
    print(f"Version: {__version__}")
    print(f"Environment: {settings.app_env}")
    print(f"Debug: {settings.debug}")
    print(f"Data dir: {settings.data_dir}")
    print(f"Location: ({settings.lat}, {settings.lon})")
    return 0


def cmd_rank(args: argparse.Namespace) -> int:
    """Handle the 'rank' command: print the shortlist in card order."""
    try:
        session = _session(args)
    except DatasetError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for i, entry in enumerate(session.shortlist(), start=1):
        sp = entry.species
        nearest = f"{entry.nearest_km:.1f} km" if entry.has_nearby_point else "-"
        print(
            f"{i:>3}. {sp.display_name} ({sp.scientific_name})  "
            f"[{sp.rarity}] local={entry.local_count} nearest={nearest}"
        )
    return 0


def cmd_hotspots(args: argparse.Namespace) -> int:
    """Handle the 'hotspots' command: print merged hotspots as GeoJSON."""
    try:
        session = _session(args)
    except DatasetError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    seasonal = True if args.seasonal else None
    print(json.dumps(hotspot_set_to_geojson(session.hotspots(seasonal=seasonal)), indent=2))
    return 0


def cmd_refresh(_args: argparse.Namespace) -> int:
    """Handle the 'refresh' command: fetch data then build outputs."""
    settings = get_settings()
    print(f"Fetching data for ({settings.lat}, {settings.lon})...")
    fetch_all(
        lat=settings.lat,
        lon=settings.lon,
        radius_km=settings.radius_km,
        limit=settings.gbif_limit,
    )

    print("Building outputs...")
    result = build_all(lat=settings.lat, lon=settings.lon)
    if "error" in result:
        print(f"Error: {result['error']}", file=sys.stderr)
        return 1

    print("Done.")
    return 0


def main() -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "info": cmd_info,
        "rank": cmd_rank,
        "hotspots": cmd_hotspots,
        "refresh": cmd_refresh,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
