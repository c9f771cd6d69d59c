"""Group cluster visualisation and proximity clustering of contacts."""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .geometry import Bounds, bounding_radius, bounds, centroid, haversine_distance, max_distance
from .models import Contact, GeoPoint, Group, LocationQuery
from .zoom import (
    MIXED_CLUSTER_MIN_MEMBERS,
    ZOOM_CHANGE_TOLERANCE,
    RenderMode,
    ZoomThresholds,
    partition_mixed,
    select_render_mode,
    zoom_changed,
)

LOGGER = logging.getLogger(__name__)

GROUP_COLORS = (
    "#3B82F6",
    "#10B981",
    "#F59E0B",
    "#EF4444",
    "#8B5CF6",
    "#06B6D4",
    "#84CC16",
    "#F97316",
    "#EC4899",
    "#6366F1",
)
UNGROUPED_COLOR = "#6B7280"

CLUSTER_DISTANCE_THRESHOLDS = {
    "tight": 500.0,
    "moderate": 1000.0,
    "loose": 2000.0,
    "city_wide": 5000.0,
}


# --- Render Models ---

@dataclass(slots=True)
class MarkerSpec:
    """An individual contact marker."""

    contact: Contact
    position: GeoPoint
    color: str
    initials: str
    group_id: Optional[str] = None

    @property
    def title(self) -> str:
        return self.contact.display_name()


@dataclass
class GroupClusterData:
    """Aggregate geometry for the located members of one group."""

    group: Group
    contacts: List[Contact]
    center: GeoPoint
    radius: float
    color: str
    bounds: Bounds
    markers: List[MarkerSpec] = field(default_factory=list)

    @property
    def member_count(self) -> int:
        return len(self.contacts)

    @property
    def display_size(self) -> int:
        """Cluster marker diameter in pixels."""
        return max(40, min(80, self.member_count * 8))

    @property
    def title(self) -> str:
        return f"{self.group.name} ({self.member_count} members)"


@dataclass
class RenderPlan:
    """Markers that should be visible for one zoom level."""

    zoom: float
    mode: RenderMode
    clusters: List[GroupClusterData] = field(default_factory=list)
    markers: List[MarkerSpec] = field(default_factory=list)

    def as_dict(self) -> Dict[str, object]:
        return {
            "zoom": self.zoom,
            "mode": self.mode.value,
            "clusters": [
                {
                    "group_id": cluster.group.id,
                    "name": cluster.group.name,
                    "center": cluster.center.as_dict(),
                    "radius": round(cluster.radius, 2),
                    "color": cluster.color,
                    "member_count": cluster.member_count,
                    "display_size": cluster.display_size,
                }
                for cluster in self.clusters
            ],
            "markers": [
                {
                    "contact_id": marker.contact.id,
                    "title": marker.title,
                    "initials": marker.initials,
                    "position": marker.position.as_dict(),
                    "color": marker.color,
                    "group_id": marker.group_id,
                }
                for marker in self.markers
            ],
        }


def located(contacts: Iterable[Contact]) -> List[Contact]:
    return [contact for contact in contacts if contact.has_location()]


def build_group_cluster(group: Group, contacts: Sequence[Contact], color: str) -> GroupClusterData:
    """Compute centre, radius and bounds for already-located group members."""

    points = [contact.location for contact in contacts]  # type: ignore[misc]
    center = centroid(points)
    markers = [
        MarkerSpec(
            contact=contact,
            position=contact.location,  # type: ignore[arg-type]
            color=color,
            initials=contact.initials(),
            group_id=group.id,
        )
        for contact in contacts
    ]
    return GroupClusterData(
        group=group,
        contacts=list(contacts),
        center=center,
        radius=bounding_radius(points, center),
        color=color,
        bounds=bounds(points),
        markers=markers,
    )


class GroupClusterManager:
    """Decides which group clusters and contact markers are visible per zoom level."""

    def __init__(
        self,
        groups: Sequence[Group],
        contacts: Sequence[Contact],
        *,
        thresholds: Optional[ZoomThresholds] = None,
        colors: Sequence[str] = GROUP_COLORS,
        mixed_min_members: int = MIXED_CLUSTER_MIN_MEMBERS,
        initial_zoom: Optional[float] = None,
    ) -> None:
        if not colors:
            raise ValueError("At least one group colour is required")
        self._groups = list(groups)
        self._contacts = list(contacts)
        self._thresholds = thresholds or ZoomThresholds()
        self._colors = tuple(colors)
        self._mixed_min_members = mixed_min_members
        self._clusters: Dict[str, GroupClusterData] = {}
        self._ungrouped: List[MarkerSpec] = []
        self._initialized = False
        self.current_zoom = self._thresholds.group_clusters if initial_zoom is None else float(initial_zoom)

        LOGGER.debug(
            "GroupClusterManager created with %s groups, %s contacts, thresholds %s",
            len(self._groups),
            len(self._contacts),
            self._thresholds,
        )

    @property
    def thresholds(self) -> ZoomThresholds:
        return self._thresholds

    @property
    def clusters(self) -> List[GroupClusterData]:
        self.initialize()
        return list(self._clusters.values())

    @property
    def ungrouped_markers(self) -> List[MarkerSpec]:
        self.initialize()
        return list(self._ungrouped)

    def initialize(self) -> None:
        if self._initialized:
            return
        self._process_groups()
        self._process_ungrouped_contacts()
        self._initialized = True

    def _process_groups(self) -> None:
        contacts_by_id = {contact.id: contact for contact in self._contacts}
        for index, group in enumerate(self._groups):
            members = [contacts_by_id[cid] for cid in group.contact_ids if cid in contacts_by_id]
            members_with_location = located(members)
            if not members_with_location:
                LOGGER.info("Skipping group %s - no contacts with location", group.name)
                continue

            color = self._colors[index % len(self._colors)]
            cluster = build_group_cluster(group, members_with_location, color)
            self._clusters[group.id] = cluster
            LOGGER.debug(
                "Processed group %s: %s contacts, center %s, radius %.1fm",
                group.name,
                cluster.member_count,
                cluster.center,
                cluster.radius,
            )

    def _process_ungrouped_contacts(self) -> None:
        grouped_ids = {cid for group in self._groups for cid in group.contact_ids}
        self._ungrouped = [
            MarkerSpec(
                contact=contact,
                position=contact.location,  # type: ignore[arg-type]
                color=UNGROUPED_COLOR,
                initials=contact.initials(),
            )
            for contact in self._contacts
            if contact.id not in grouped_ids and contact.has_location()
        ]
        LOGGER.debug("Processed %s ungrouped contacts", len(self._ungrouped))

    def set_zoom(self, zoom: float, tolerance: float = ZOOM_CHANGE_TOLERANCE) -> bool:
        """Record a zoom change; returns ``True`` when the view should be re-planned."""

        if not zoom_changed(self.current_zoom, zoom, tolerance):
            return False
        self.current_zoom = float(zoom)
        return True

    def plan(self, zoom: Optional[float] = None) -> RenderPlan:
        self.initialize()
        zoom = self.current_zoom if zoom is None else float(zoom)
        mode = select_render_mode(zoom, self._thresholds)
        clusters = list(self._clusters.values())

        if mode is RenderMode.GROUPED_CLUSTER:
            return RenderPlan(zoom=zoom, mode=mode, clusters=clusters)

        if mode is RenderMode.INDIVIDUAL_MARKERS:
            markers = [marker for cluster in clusters for marker in cluster.markers]
            return RenderPlan(zoom=zoom, mode=mode, markers=markers + self._ungrouped)

        as_cluster, individually = partition_mixed(clusters, min_members=self._mixed_min_members)
        markers = [marker for cluster in individually for marker in cluster.markers]
        return RenderPlan(zoom=zoom, mode=mode, clusters=as_cluster, markers=markers + self._ungrouped)

    def cluster_for(self, group_id: str) -> Optional[GroupClusterData]:
        self.initialize()
        return self._clusters.get(group_id)

    def update_data(self, groups: Sequence[Group], contacts: Sequence[Contact]) -> None:
        LOGGER.debug("Updating group cluster manager with new data")
        self.cleanup()
        self._groups = list(groups)
        self._contacts = list(contacts)
        self.initialize()

    def cleanup(self) -> None:
        self._clusters.clear()
        self._ungrouped = []
        self._initialized = False

    def state(self) -> Dict[str, object]:
        plan = self.plan()
        return {
            "current_zoom": self.current_zoom,
            "mode": plan.mode.value,
            "group_markers_visible": len(plan.clusters),
            "individual_markers_visible": len(plan.markers),
        }


# --- Proximity Clustering ---

@dataclass
class ProximityCluster:
    """Contacts standing close to each other, regardless of group membership."""

    contacts: List[Contact] = field(default_factory=list)
    center: Optional[GeoPoint] = None

    @property
    def member_count(self) -> int:
        return len(self.contacts)

    @property
    def contact_ids(self) -> List[str]:
        return [contact.id for contact in self.contacts]

    @property
    def spread(self) -> float:
        """Largest distance from the centre to a member, in metres (unclamped)."""
        if self.center is None:
            return 0.0
        return max_distance([contact.location for contact in self.contacts], self.center)  # type: ignore[misc]

    def add(self, contact: Contact) -> None:
        self.contacts.append(contact)
        self.center = centroid([member.location for member in self.contacts])  # type: ignore[misc]


def cluster_by_proximity(
    contacts: Iterable[Contact],
    threshold_m: float = CLUSTER_DISTANCE_THRESHOLDS["moderate"],
    *,
    min_size: int = 1,
) -> List[ProximityCluster]:
    """Greedy single-pass clustering on haversine distance to cluster centres."""

    if threshold_m < 0:
        raise ValueError("threshold_m must be non-negative")

    clusters: List[ProximityCluster] = []
    for contact in located(contacts):
        target = None
        for cluster in clusters:
            if haversine_distance(cluster.center, contact.location) <= threshold_m:  # type: ignore[arg-type]
                target = cluster
                break
        if target is None:
            target = ProximityCluster()
            clusters.append(target)
        target.add(contact)

    return [cluster for cluster in clusters if cluster.member_count >= min_size]


def locations_from_contacts(
    contacts: Iterable[Contact],
    threshold_m: float = CLUSTER_DISTANCE_THRESHOLDS["moderate"],
) -> List[LocationQuery]:
    """One search location per proximity cluster, carrying its contact ids and most common city."""

    queries: List[LocationQuery] = []
    for cluster in cluster_by_proximity(contacts, threshold_m):
        center = cluster.center
        assert center is not None
        metadata: Dict[str, object] = {"spread_m": round(cluster.spread, 1)}
        cities = Counter(contact.city for contact in cluster.contacts if contact.city)
        if cities:
            metadata["city"] = cities.most_common(1)[0][0]
        queries.append(
            LocationQuery(
                latitude=center.latitude,
                longitude=center.longitude,
                contact_ids=cluster.contact_ids,
                metadata=metadata,
            )
        )
    return queries
