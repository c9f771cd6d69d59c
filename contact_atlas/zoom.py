"""Zoom level to render detail classification."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Protocol, Sequence, Tuple, TypeVar

DEFAULT_GROUP_CLUSTER_ZOOM = 12.0
DEFAULT_INDIVIDUAL_MARKER_ZOOM = 15.0
MIXED_CLUSTER_MIN_MEMBERS = 3
ZOOM_CHANGE_TOLERANCE = 0.5


class RenderMode(str, Enum):
    GROUPED_CLUSTER = "grouped-cluster"
    MIXED = "mixed"
    INDIVIDUAL_MARKERS = "individual-markers"


@dataclass(frozen=True)
class ZoomThresholds:
    """Zoom values at which rendering switches detail level.

    Below ``group_clusters`` every group is drawn as one cluster marker; at or
    above ``individual_markers`` every contact gets its own marker. In between
    the view is mixed.
    """

    group_clusters: float = DEFAULT_GROUP_CLUSTER_ZOOM
    individual_markers: float = DEFAULT_INDIVIDUAL_MARKER_ZOOM

    def __post_init__(self) -> None:
        if self.group_clusters > self.individual_markers:
            raise ValueError(
                "group_clusters threshold must not exceed individual_markers "
                f"({self.group_clusters} > {self.individual_markers})"
            )


def select_render_mode(zoom: float, thresholds: ZoomThresholds = ZoomThresholds()) -> RenderMode:
    if zoom < thresholds.group_clusters:
        return RenderMode.GROUPED_CLUSTER
    if zoom >= thresholds.individual_markers:
        return RenderMode.INDIVIDUAL_MARKERS
    return RenderMode.MIXED


class _Sized(Protocol):
    member_count: int


T = TypeVar("T", bound=_Sized)


def partition_mixed(
    clusters: Sequence[T],
    *,
    min_members: int = MIXED_CLUSTER_MIN_MEMBERS,
) -> Tuple[List[T], List[T]]:
    """Split clusters into ``(shown_as_cluster, shown_individually)``."""

    as_cluster: List[T] = []
    individually: List[T] = []
    for cluster in clusters:
        if cluster.member_count >= min_members:
            as_cluster.append(cluster)
        else:
            individually.append(cluster)
    return as_cluster, individually


def zoom_changed(previous: float, new: float, tolerance: float = ZOOM_CHANGE_TOLERANCE) -> bool:
    return abs(new - previous) > tolerance
