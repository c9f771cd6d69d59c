import pytest

from contact_atlas.clustering import GroupClusterManager
from contact_atlas.models import Contact, GeoPoint, Group
from contact_atlas.zoom import (
    RenderMode,
    ZoomThresholds,
    partition_mixed,
    select_render_mode,
    zoom_changed,
)

_ORDER = {
    RenderMode.GROUPED_CLUSTER: 0,
    RenderMode.MIXED: 1,
    RenderMode.INDIVIDUAL_MARKERS: 2,
}


def test_render_mode_boundaries() -> None:
    thresholds = ZoomThresholds(12, 15)

    assert select_render_mode(11.99, thresholds) is RenderMode.GROUPED_CLUSTER
    assert select_render_mode(12, thresholds) is RenderMode.MIXED
    assert select_render_mode(14.99, thresholds) is RenderMode.MIXED
    assert select_render_mode(15, thresholds) is RenderMode.INDIVIDUAL_MARKERS


@pytest.mark.parametrize("thresholds", [ZoomThresholds(), ZoomThresholds(10, 10), ZoomThresholds(3, 18)])
def test_render_mode_is_monotonic_in_zoom(thresholds) -> None:
    zooms = [step / 4 for step in range(0, 22 * 4 + 1)]
    ranks = [_ORDER[select_render_mode(zoom, thresholds)] for zoom in zooms]

    assert ranks == sorted(ranks)


def test_equal_thresholds_skip_the_mixed_band() -> None:
    thresholds = ZoomThresholds(13, 13)

    assert select_render_mode(12.9, thresholds) is RenderMode.GROUPED_CLUSTER
    assert select_render_mode(13, thresholds) is RenderMode.INDIVIDUAL_MARKERS


def test_thresholds_reject_inverted_values() -> None:
    with pytest.raises(ValueError):
        ZoomThresholds(group_clusters=15, individual_markers=12)


def test_two_nearby_contacts_switch_from_cluster_to_markers() -> None:
    contacts = [
        Contact(id="a", name="Ada Lovelace", location=GeoPoint(40.0, -74.0)),
        Contact(id="b", name="Grace Hopper", location=GeoPoint(40.01, -74.0)),
    ]
    group = Group(id="g1", name="Pioneers", contact_ids=["a", "b"])
    manager = GroupClusterManager([group], contacts, thresholds=ZoomThresholds(12, 15))

    far = manager.plan(10)
    assert far.mode is RenderMode.GROUPED_CLUSTER
    assert [cluster.group.id for cluster in far.clusters] == ["g1"]
    assert far.markers == []

    near = manager.plan(16)
    assert near.mode is RenderMode.INDIVIDUAL_MARKERS
    assert near.clusters == []
    assert sorted(marker.contact.id for marker in near.markers) == ["a", "b"]


class _Cluster:
    def __init__(self, name: str, member_count: int) -> None:
        self.name = name
        self.member_count = member_count


def test_partition_mixed_splits_on_member_count() -> None:
    clusters = [_Cluster("big", 5), _Cluster("pair", 2), _Cluster("trio", 3)]

    as_cluster, individually = partition_mixed(clusters, min_members=3)

    assert [cluster.name for cluster in as_cluster] == ["big", "trio"]
    assert [cluster.name for cluster in individually] == ["pair"]


def test_zoom_changed_uses_tolerance() -> None:
    assert not zoom_changed(12.0, 12.5)
    assert zoom_changed(12.0, 12.6)
    assert zoom_changed(12.0, 11.0)
