"""Utility helpers for merging venue results and building the grouping model."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .clustering import GroupClusterManager, RenderPlan
from .groups import GroupSuggestion, suggest_event_groups
from .models import Contact, Group, NearbyEvent
from .zoom import MIXED_CLUSTER_MIN_MEMBERS, ZoomThresholds


def merge_event(event: NearbyEvent, contact_ids: Iterable[str], source: Optional[str] = None) -> NearbyEvent:
    """Add ``contact_ids`` and ``source`` to ``event`` without duplicating entries."""

    for contact_id in contact_ids:
        if contact_id not in event.contact_ids:
            event.contact_ids.append(contact_id)
    if source and source not in event.sources:
        event.sources.append(source)
    return event


def merge_events(*event_lists: Iterable[NearbyEvent]) -> List[NearbyEvent]:
    """Merge events from several searches, deduplicating by place id.

    The first occurrence of a place keeps its score and position; later
    occurrences only contribute contact ids and sources.
    """

    aggregated: Dict[str, NearbyEvent] = {}
    ordered_keys: List[str] = []

    for events in event_lists:
        for event in events or ():
            key = event.id
            if not key:
                continue
            if key not in aggregated:
                aggregated[key] = NearbyEvent(
                    venue=event.venue,
                    contact_ids=list(dict.fromkeys(event.contact_ids)),
                    event_score=event.event_score,
                    confidence=event.confidence,
                    indicators=list(event.indicators),
                    venue_type=event.venue_type,
                    search_query=event.search_query,
                    distance_km=event.distance_km,
                    temporal_relevance=event.temporal_relevance,
                    overall_score=event.overall_score,
                    sources=list(dict.fromkeys(event.sources)),
                )
                ordered_keys.append(key)
            else:
                merged = aggregated[key]
                merge_event(merged, event.contact_ids)
                for source in event.sources:
                    merge_event(merged, (), source)

    return [aggregated[key] for key in ordered_keys]


@dataclass
class GroupingModel:
    """Everything a map view needs: visible markers, loose contacts, events and suggestions."""

    plan: RenderPlan
    ungrouped_contacts: List[Contact] = field(default_factory=list)
    events: List[NearbyEvent] = field(default_factory=list)
    suggestions: List[GroupSuggestion] = field(default_factory=list)

    def as_dict(self) -> Dict[str, object]:
        return {
            "plan": self.plan.as_dict(),
            "ungrouped_contacts": [contact.id for contact in self.ungrouped_contacts],
            "events": [event.as_event_data() for event in self.events],
            "suggestions": [suggestion.as_dict() for suggestion in self.suggestions],
        }


def build_grouping_model(
    groups: Sequence[Group],
    contacts: Sequence[Contact],
    events: Iterable[NearbyEvent] = (),
    zoom: Optional[float] = None,
    thresholds: Optional[ZoomThresholds] = None,
    *,
    mixed_min_members: int = MIXED_CLUSTER_MIN_MEMBERS,
    max_suggestions: int = 5,
) -> GroupingModel:
    manager = GroupClusterManager(
        groups,
        contacts,
        thresholds=thresholds,
        mixed_min_members=mixed_min_members,
    )
    plan = manager.plan(zoom)
    merged = merge_events(events)
    return GroupingModel(
        plan=plan,
        ungrouped_contacts=[marker.contact for marker in manager.ungrouped_markers],
        events=merged,
        suggestions=suggest_event_groups(merged, groups, max_suggestions=max_suggestions),
    )
