"""Command line interface for rendering contact maps, finding events and grouping contacts."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .clustering import locations_from_contacts
from .config import AtlasSettings, ConfigurationError, load_configuration
from .events import NearbyEventFinder
from .factory import build_providers
from .groups import AutoGroupOptions, auto_generate_groups, suggest_event_groups
from .ingestion import (
    export_events,
    export_groups,
    export_render_plan,
    export_suggestions,
    load_contacts,
    load_groups,
)
from .merge import build_grouping_model
from .places.base import QuotaExceededError
from .rate_limit import DelayPolicy
from .zoom import ZoomThresholds

LOGGER = logging.getLogger(__name__)

EXIT_CONFIGURATION_ERROR = 1
EXIT_QUOTA_EXCEEDED = 3

_GROUP_BY_CHOICES = ("company", "location", "events")


def build_parser(prog: str | None = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Cluster contacts on a map, detect nearby events and build contact groups",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    render = subparsers.add_parser("render", help="Compute the visible markers for a zoom level")
    render.add_argument("contacts", help="Path to the contacts file (CSV, XLSX or JSON)")
    render.add_argument("--groups", help="Path to a JSON file with existing groups")
    render.add_argument("--zoom", type=float, required=True, help="Map zoom level")
    render.add_argument("--config", help="Optional configuration file (YAML or JSON)")
    render.add_argument("--output", help="Write the render plan to this JSON file instead of stdout")

    events = subparsers.add_parser("events", help="Search venue providers for events near contacts")
    events.add_argument("contacts", help="Path to the contacts file (CSV, XLSX or JSON)")
    events.add_argument("output", help="Path where detected events should be written (CSV, TSV or XLSX)")
    events.add_argument("--config", required=True, help="Path to the configuration file (YAML or JSON)")
    events.add_argument(
        "--cluster-distance",
        type=float,
        default=None,
        help="Distance in metres used to merge nearby contacts into one search location",
    )
    events.add_argument("--groups", help="Existing groups, used to skip suggestions already covered")
    events.add_argument("--suggestions", help="Write event group suggestions to this JSON file")
    events.add_argument(
        "--raise-on-error",
        action="store_true",
        help="Propagate provider exceptions instead of recording them in the report",
    )
    events.add_argument(
        "--adaptive",
        action="store_true",
        help="Tune the search radius and text queries to each location's city and the current date",
    )

    auto_group = subparsers.add_parser("auto-group", help="Generate groups from shared company, city or event")
    auto_group.add_argument("contacts", help="Path to the contacts file (CSV, XLSX or JSON)")
    auto_group.add_argument("output", help="Path where generated groups should be written (JSON)")
    auto_group.add_argument("--groups", help="Existing groups; their names are not reused")
    auto_group.add_argument(
        "--by",
        default="company,events",
        help=f"Comma separated criteria out of {', '.join(_GROUP_BY_CHOICES)}",
    )
    auto_group.add_argument("--min-size", type=int, default=2, help="Minimum number of contacts per group")
    auto_group.add_argument("--max-groups", type=int, default=10, help="Maximum number of groups to create")
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    handlers = {
        "render": _run_render,
        "events": _run_events,
        "auto-group": _run_auto_group,
    }
    try:
        return handlers[args.command](args)
    except QuotaExceededError as exc:
        LOGGER.error("Venue search quota exceeded: %s", exc)
        return EXIT_QUOTA_EXCEEDED
    except ConfigurationError as exc:
        LOGGER.error("%s", exc)
        return EXIT_CONFIGURATION_ERROR


def _run_render(args: argparse.Namespace) -> int:
    config = load_configuration(args.config) if args.config else {}
    settings = AtlasSettings.from_config(config)
    contacts = load_contacts(args.contacts)
    groups = load_groups(args.groups) if args.groups else []

    model = build_grouping_model(
        groups,
        contacts,
        zoom=args.zoom,
        thresholds=ZoomThresholds(
            group_clusters=settings.map.group_cluster_zoom,
            individual_markers=settings.map.individual_marker_zoom,
        ),
        mixed_min_members=settings.map.mixed_min_members,
    )
    payload = model.plan.as_dict()
    payload["ungrouped_contacts"] = [contact.id for contact in model.ungrouped_contacts]

    if args.output:
        export_render_plan(payload, args.output)
        LOGGER.info("Render plan (%s) written to %s", model.plan.mode.value, Path(args.output).resolve())
    else:
        print(json.dumps(payload, indent=2))
    return 0


def _run_events(args: argparse.Namespace) -> int:
    config = load_configuration(args.config)
    settings = AtlasSettings.from_config(config)
    providers = build_providers(config)
    if not providers:
        LOGGER.warning("No venue providers are enabled - nothing to do")
        return 0

    try:
        return _search_events(args, settings, providers)
    finally:
        for provider in providers:
            provider.close()


def _search_events(args: argparse.Namespace, settings: AtlasSettings, providers) -> int:
    contacts = load_contacts(args.contacts)
    distance = args.cluster_distance if args.cluster_distance is not None else settings.events.cluster_distance_m
    locations = locations_from_contacts(contacts, distance)

    finder = NearbyEventFinder(
        providers,
        radius=settings.events.radius,
        event_types=settings.events.event_types or None,
        include_text_search=settings.events.include_text_search,
        text_queries=settings.events.text_queries or None,
        nearby_threshold=settings.events.nearby_threshold,
        text_threshold=settings.events.text_threshold,
        delay_policy=DelayPolicy(settings.events.location_delay_seconds),
        adaptive_search=args.adaptive or settings.events.adaptive_search,
        raise_on_error=args.raise_on_error,
    )
    report = finder.find(locations)
    export_events(report.events, args.output)

    for error in report.errors:
        LOGGER.warning("Search %s at %s failed on %s: %s", error["search"], error["location"], error["provider"], error["error"])

    if args.suggestions:
        groups = load_groups(args.groups) if args.groups else []
        suggestions = suggest_event_groups(report.events, groups)
        export_suggestions(suggestions, args.suggestions)
        LOGGER.info("%s group suggestions written to %s", len(suggestions), Path(args.suggestions).resolve())

    LOGGER.info(
        "Processed %s contacts at %s locations with %s providers",
        len(contacts),
        report.analytics.locations_processed,
        len(providers),
    )
    LOGGER.info("%s events written to %s", len(report.events), Path(args.output).resolve())
    return 0


def _run_auto_group(args: argparse.Namespace) -> int:
    criteria = {item.strip().lower() for item in args.by.split(",") if item.strip()}
    unknown = criteria.difference(_GROUP_BY_CHOICES)
    if unknown:
        raise ConfigurationError(f"Unknown grouping criteria: {', '.join(sorted(unknown))}")

    contacts = load_contacts(args.contacts)
    existing = load_groups(args.groups) if args.groups else []
    options = AutoGroupOptions(
        group_by_company="company" in criteria,
        group_by_location="location" in criteria,
        group_by_events="events" in criteria,
        min_group_size=args.min_size,
        max_groups=args.max_groups,
    )
    generated = auto_generate_groups(contacts, options, existing)
    export_groups(generated, args.output)
    LOGGER.info("%s groups written to %s", len(generated), Path(args.output).resolve())
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
