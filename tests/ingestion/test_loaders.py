import json

import pandas as pd
import pytest

from contact_atlas.ingestion.loaders import UnsupportedFileTypeError, load_contacts, load_contacts_json, load_groups
from contact_atlas.models import ContactStatus, GroupType


@pytest.fixture()
def sample_dataframe():
    return pd.DataFrame(
        [
            {
                "Contact ID": "1",
                "First Name": "Ada",
                "Last Name": "Lovelace",
                "Email": "ada@example.com",
                "Organisation": "Analytical Engines",
                "Lat": 51.5074,
                "Lon": -0.1278,
                "City": "London",
                "Event": "Royal Society Soiree",
                "Status": "viewed",
            },
            {
                "Contact ID": "2",
                "First Name": "Grace",
                "Last Name": "Hopper",
                "Email": "",
                "Organisation": "US Navy",
                "Lat": None,
                "Lon": None,
                "City": "",
                "Event": "",
                "Status": "unknown",
            },
            {
                "Contact ID": None,
                "First Name": None,
                "Last Name": None,
                "Email": None,
                "Organisation": None,
                "Lat": None,
                "Lon": None,
                "City": None,
                "Event": None,
                "Status": None,
            },
        ]
    )


def test_load_contacts_from_csv_with_synonyms(sample_dataframe, tmp_path):
    csv_path = tmp_path / "contacts.csv"
    sample_dataframe.to_csv(csv_path, index=False)

    contacts = load_contacts(csv_path)

    assert len(contacts) == 2
    ada, grace = contacts
    assert ada.id == "1"
    assert ada.name == "Ada Lovelace"
    assert ada.email == "ada@example.com"
    assert ada.company == "Analytical Engines"
    assert ada.location.latitude == pytest.approx(51.5074)
    assert ada.location.longitude == pytest.approx(-0.1278)
    assert ada.city == "London"
    assert ada.event_info.event_name == "Royal Society Soiree"
    assert ada.status is ContactStatus.VIEWED
    assert grace.location is None
    assert not grace.has_location()
    assert grace.email is None
    assert grace.event_info is None
    assert grace.status is ContactStatus.NEW


def test_load_contacts_from_excel_with_mapping(sample_dataframe, tmp_path):
    excel_path = tmp_path / "contacts.xlsx"
    sample_dataframe.rename(columns={"Lat": "Y", "Lon": "X", "Contact ID": "Ref"}).to_excel(excel_path, index=False)

    contacts = load_contacts(excel_path, column_mapping={"latitude": "Y", "longitude": "X", "id": "Ref"})

    assert [contact.id for contact in contacts] == ["1", "2"]
    assert contacts[0].has_location()


def test_load_contacts_generates_missing_ids(tmp_path):
    tsv_path = tmp_path / "contacts.tsv"
    tsv_path.write_text("name\tlatitude\tlongitude\nAda\t40.0\t-74.0\nGrace\tnorth\t-74.0\n", encoding="utf-8")

    contacts = load_contacts(tsv_path)

    assert [contact.id for contact in contacts] == ["row-0", "row-1"]
    assert contacts[0].has_location()
    assert contacts[1].location is None


def test_load_contacts_and_groups_from_json(tmp_path):
    contacts_path = tmp_path / "contacts.json"
    contacts_path.write_text(
        json.dumps(
            {
                "contacts": [
                    {
                        "id": "c1",
                        "name": "Ada Lovelace",
                        "location": {"latitude": 51.5, "longitude": -0.12, "city": "London"},
                        "eventInfo": {"eventName": "Expo", "booth": "12"},
                    },
                    "not a contact",
                ]
            }
        ),
        encoding="utf-8",
    )
    groups_path = tmp_path / "groups.json"
    groups_path.write_text(
        json.dumps([{"id": "g1", "name": "Expo", "type": "event", "contactIds": ["c1", "c1", "c2"]}]),
        encoding="utf-8",
    )

    [contact] = load_contacts(contacts_path)
    assert contact.city == "London"
    assert contact.event_info.metadata == {"booth": "12"}
    assert load_contacts_json(contacts_path)[0].id == "c1"

    [group] = load_groups(groups_path)
    assert group.type is GroupType.EVENT
    assert group.contact_ids == ["c1", "c2"]


def test_unsupported_file_extension(tmp_path):
    bad_path = tmp_path / "contacts.txt"
    bad_path.write_text("{}", encoding="utf-8")

    with pytest.raises(UnsupportedFileTypeError):
        load_contacts(bad_path)
    with pytest.raises(UnsupportedFileTypeError):
        load_groups(bad_path)
