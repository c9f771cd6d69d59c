"""Geospatial clustering, zoom-aware rendering and event grouping for contacts."""

from . import models  # noqa: F401
from .clustering import GroupClusterManager, RenderPlan, cluster_by_proximity, locations_from_contacts  # noqa: F401
from .events import NearbyEventFinder  # noqa: F401
from .groups import (  # noqa: F401
    AutoGroupOptions,
    GroupSuggestion,
    accept_suggestion,
    auto_generate_groups,
    create_group,
    suggest_event_groups,
    update_group,
)
from .merge import GroupingModel, build_grouping_model, merge_events  # noqa: F401
from .models import (  # noqa: F401
    Contact,
    GeoPoint,
    Group,
    GroupType,
    LocationQuery,
    NearbyEvent,
    NearbyEventsReport,
    VenueCandidate,
)
from .scoring import analyze_event_venue  # noqa: F401
from .zoom import RenderMode, ZoomThresholds, select_render_mode  # noqa: F401

__all__ = [
    "AutoGroupOptions",
    "Contact",
    "GeoPoint",
    "Group",
    "GroupClusterManager",
    "GroupSuggestion",
    "GroupType",
    "GroupingModel",
    "LocationQuery",
    "NearbyEvent",
    "NearbyEventFinder",
    "NearbyEventsReport",
    "RenderMode",
    "RenderPlan",
    "VenueCandidate",
    "ZoomThresholds",
    "accept_suggestion",
    "analyze_event_venue",
    "auto_generate_groups",
    "build_grouping_model",
    "cluster_by_proximity",
    "create_group",
    "locations_from_contacts",
    "merge_events",
    "select_render_mode",
    "suggest_event_groups",
    "update_group",
]
