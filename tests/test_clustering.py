import pytest

from contact_atlas.clustering import (
    GROUP_COLORS,
    UNGROUPED_COLOR,
    GroupClusterManager,
    cluster_by_proximity,
    locations_from_contacts,
)
from contact_atlas.models import Contact, GeoPoint, Group
from contact_atlas.zoom import RenderMode


def _contact(contact_id: str, lat=None, lng=None, **kwargs) -> Contact:
    location = GeoPoint(lat, lng) if lat is not None and lng is not None else None
    return Contact(id=contact_id, name=kwargs.pop("name", f"Contact {contact_id}"), location=location, **kwargs)


@pytest.fixture()
def sample_data():
    contacts = [
        _contact("a1", 40.7128, -74.0060, name="Ada Lovelace"),
        _contact("a2", 40.7130, -74.0055),
        _contact("a3", 40.7125, -74.0065),
        _contact("b1", 40.7580, -73.9855),
        _contact("b2", 40.7585, -73.9850),
        _contact("c1"),
        _contact("u1", 40.7306, -73.9352, name="Grace Hopper"),
        _contact("u2"),
    ]
    groups = [
        Group(id="team", name="Team", contact_ids=["a1", "a2", "a3"]),
        Group(id="no-location", name="Remote", contact_ids=["c1"]),
        Group(id="pair", name="Pair", contact_ids=["b1", "b2", "missing"]),
    ]
    return groups, contacts


def test_initialize_builds_clusters_for_located_groups(sample_data) -> None:
    groups, contacts = sample_data
    manager = GroupClusterManager(groups, contacts)

    clusters = {cluster.group.id: cluster for cluster in manager.clusters}

    assert set(clusters) == {"team", "pair"}
    assert clusters["team"].member_count == 3
    assert clusters["team"].color == GROUP_COLORS[0]
    assert clusters["pair"].color == GROUP_COLORS[2]
    assert clusters["pair"].member_count == 2
    assert 50 <= clusters["team"].radius <= 500
    assert clusters["team"].display_size == 40
    assert clusters["team"].title == "Team (3 members)"
    assert all(marker.group_id == "team" for marker in clusters["team"].markers)


def test_ungrouped_markers_only_include_located_contacts(sample_data) -> None:
    groups, contacts = sample_data
    manager = GroupClusterManager(groups, contacts)

    markers = manager.ungrouped_markers

    assert [marker.contact.id for marker in markers] == ["u1"]
    assert markers[0].color == UNGROUPED_COLOR
    assert markers[0].group_id is None
    assert markers[0].initials == "GH"


def test_mixed_mode_shows_small_groups_individually(sample_data) -> None:
    groups, contacts = sample_data
    manager = GroupClusterManager(groups, contacts)

    plan = manager.plan(13)

    assert plan.mode is RenderMode.MIXED
    assert [cluster.group.id for cluster in plan.clusters] == ["team"]
    assert sorted(marker.contact.id for marker in plan.markers) == ["b1", "b2", "u1"]


def test_grouped_cluster_mode_hides_individual_markers(sample_data) -> None:
    groups, contacts = sample_data
    manager = GroupClusterManager(groups, contacts)

    plan = manager.plan(8)

    assert plan.mode is RenderMode.GROUPED_CLUSTER
    assert len(plan.clusters) == 2
    assert plan.markers == []


def test_individual_mode_shows_every_located_contact(sample_data) -> None:
    groups, contacts = sample_data
    manager = GroupClusterManager(groups, contacts)

    plan = manager.plan(17)

    assert plan.clusters == []
    assert sorted(marker.contact.id for marker in plan.markers) == ["a1", "a2", "a3", "b1", "b2", "u1"]


def test_set_zoom_ignores_small_changes_and_reports_state(sample_data) -> None:
    groups, contacts = sample_data
    manager = GroupClusterManager(groups, contacts)

    assert manager.current_zoom == 12
    assert manager.set_zoom(12.3) is False
    assert manager.set_zoom(16) is True

    state = manager.state()
    assert state == {
        "current_zoom": 16.0,
        "mode": "individual-markers",
        "group_markers_visible": 0,
        "individual_markers_visible": 6,
    }


def test_update_data_rebuilds_clusters(sample_data) -> None:
    groups, contacts = sample_data
    manager = GroupClusterManager(groups, contacts)
    assert manager.cluster_for("team") is not None

    manager.update_data([Group(id="solo", name="Solo", contact_ids=["u1"])], contacts)

    assert manager.cluster_for("team") is None
    assert manager.cluster_for("solo").member_count == 1
    assert "u1" not in [marker.contact.id for marker in manager.ungrouped_markers]


def test_render_plan_as_dict_is_serialisable(sample_data) -> None:
    groups, contacts = sample_data
    plan = GroupClusterManager(groups, contacts).plan(13)

    payload = plan.as_dict()

    assert payload["mode"] == "mixed"
    assert payload["clusters"][0]["group_id"] == "team"
    assert payload["clusters"][0]["member_count"] == 3
    assert {marker["contact_id"] for marker in payload["markers"]} == {"b1", "b2", "u1"}


def test_cluster_by_proximity_groups_nearby_contacts() -> None:
    contacts = [
        _contact("a", 40.0, -74.0),
        _contact("b", 40.001, -74.0),
        _contact("c", 40.2, -74.0),
        _contact("d"),
    ]

    clusters = cluster_by_proximity(contacts, threshold_m=500)

    assert [cluster.contact_ids for cluster in clusters] == [["a", "b"], ["c"]]
    assert cluster_by_proximity(contacts, threshold_m=500, min_size=2)[0].contact_ids == ["a", "b"]


def test_cluster_by_proximity_rejects_negative_threshold() -> None:
    with pytest.raises(ValueError):
        cluster_by_proximity([], threshold_m=-1)


def test_locations_from_contacts_carry_contact_ids() -> None:
    contacts = [_contact("a", 40.0, -74.0), _contact("b", 40.002, -74.0)]

    [location] = locations_from_contacts(contacts, 1000)

    assert location.contact_ids == ["a", "b"]
    assert location.latitude == pytest.approx(40.001)
    assert location.metadata["spread_m"] == pytest.approx(111.2, abs=0.2)


def test_locations_from_contacts_carry_most_common_city() -> None:
    contacts = [
        _contact("a", 30.26, -97.74, city="Austin"),
        _contact("b", 30.2601, -97.74, city="Austin"),
        _contact("c", 30.2602, -97.74, city="Round Rock"),
        _contact("d", 40.0, -74.0),
    ]

    austin, other = locations_from_contacts(contacts, 1000)

    assert austin.metadata["city"] == "Austin"
    assert "city" not in other.metadata
