"""Utilities for loading contacts and groups from spreadsheets and JSON documents."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Mapping, MutableMapping, Optional, Sequence, Union

import pandas as pd

from ..models import Contact, ContactStatus, EventInfo, GeoPoint, Group

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]

_FIELD_SYNONYMS: Mapping[str, Sequence[str]] = {
    "id": ("id", "contact_id", "record_id"),
    "name": ("name", "full_name"),
    "first_name": ("first_name", "firstname", "first"),
    "last_name": ("last_name", "lastname", "last"),
    "email": ("email", "email_address", "primary_email"),
    "company": ("company", "organisation", "organization", "employer"),
    "latitude": ("latitude", "lat"),
    "longitude": ("longitude", "lng", "lon", "long"),
    "city": ("city", "town"),
    "country": ("country",),
    "event_name": ("event_name", "event", "met_at"),
    "status": ("status",),
}


class UnsupportedFileTypeError(ValueError):
    """Raised when an unsupported file format is passed to the loader."""


def load_contacts(
    path: PathLike,
    *,
    column_mapping: Optional[Mapping[str, str]] = None,
    sheet_name: Union[str, int, None] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> List[Contact]:
    """Load contacts from a CSV/TSV/XLSX file, or a JSON document.

    Parameters
    ----------
    path:
        Path to the file to be loaded. ``.json`` files are delegated to
        :func:`load_contacts_json`.
    column_mapping:
        Optional mapping of contact field names (``id``, ``name``,
        ``latitude`` ...) to column names, overriding the built-in synonyms.
    sheet_name:
        Sheet selector passed to :func:`pandas.read_excel`. Ignored for CSV files.
    loader_kwargs:
        Extra keyword arguments forwarded to :func:`pandas.read_csv` or
        :func:`pandas.read_excel`.
    """

    if Path(path).suffix.lower() == ".json":
        return load_contacts_json(path)

    dataframe = _read_dataframe(path, sheet_name=sheet_name, loader_kwargs=loader_kwargs)
    mapping = dict(column_mapping or {})
    resolved_columns = {field: _resolve_columns(field, dataframe.columns, mapping) for field in _FIELD_SYNONYMS}
    contacts: List[Contact] = []

    for index, row in dataframe.iterrows():
        if _row_is_empty(row):
            continue
        contacts.append(_row_to_contact(row, index, resolved_columns))

    LOGGER.info("Loaded %s contacts from %s", len(contacts), path)
    return contacts


def load_contacts_json(path: PathLike) -> List[Contact]:
    """Load contacts from ``{"contacts": [...]}`` or a bare JSON list."""

    return [Contact.from_dict(item) for item in _read_json_items(path, "contacts")]


def load_groups(path: PathLike) -> List[Group]:
    """Load groups from ``{"groups": [...]}`` or a bare JSON list."""

    groups = [Group.from_dict(item) for item in _read_json_items(path, "groups")]
    LOGGER.info("Loaded %s groups from %s", len(groups), path)
    return groups


def _read_json_items(path: PathLike, key: str) -> List[Mapping[str, Any]]:
    path_obj = Path(path)
    if path_obj.suffix.lower() != ".json":
        raise UnsupportedFileTypeError(f"Unsupported file extension: {path_obj.suffix}")
    with path_obj.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if isinstance(data, Mapping):
        data = data.get(key, [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of {key} in {path_obj}")
    return [item for item in data if isinstance(item, Mapping)]


def _read_dataframe(
    path: PathLike,
    *,
    sheet_name: Union[str, int, None] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> pd.DataFrame:
    loader_kwargs = dict(loader_kwargs or {})
    path_obj = Path(path)
    suffix = path_obj.suffix.lower()

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            loader_kwargs.setdefault("sep", "\t")
        return pd.read_csv(path_obj, **loader_kwargs)

    if suffix in {".xls", ".xlsx", ".xlsm", ".xlsb"}:
        return pd.read_excel(path_obj, sheet_name=sheet_name, engine=loader_kwargs.pop("engine", None) or "openpyxl", **loader_kwargs)

    raise UnsupportedFileTypeError(f"Unsupported file extension: {path_obj.suffix}")


def _row_is_empty(row: pd.Series) -> bool:
    return all(pd.isna(value) or (isinstance(value, str) and not value.strip()) for value in row.values)


def _row_to_contact(row: pd.Series, index: Any, columns: Mapping[str, List[str]]) -> Contact:
    contact_id = _extract_scalar(row, columns["id"]) or f"row-{index}"
    first_name = _extract_scalar(row, columns["first_name"])
    last_name = _extract_scalar(row, columns["last_name"])
    name = _extract_scalar(row, columns["name"]) or " ".join(filter(None, [first_name, last_name]))

    location = None
    latitude = _extract_float(row, columns["latitude"])
    longitude = _extract_float(row, columns["longitude"])
    if latitude is not None and longitude is not None:
        location = GeoPoint(latitude, longitude)

    event_name = _extract_scalar(row, columns["event_name"])

    return Contact(
        id=contact_id,
        name=name,
        email=_extract_scalar(row, columns["email"]),
        company=_extract_scalar(row, columns["company"]),
        location=location,
        city=_extract_scalar(row, columns["city"]),
        country=_extract_scalar(row, columns["country"]),
        event_info=EventInfo(event_name=event_name) if event_name else None,
        status=ContactStatus.parse(_extract_scalar(row, columns["status"])),
    )


def _resolve_columns(
    field: str,
    available_columns: Iterable[str],
    mapping: Mapping[str, str],
) -> List[str]:
    if field in mapping:
        return [mapping[field]]

    synonyms = tuple(name.lower() for name in _FIELD_SYNONYMS.get(field, (field,)))
    resolved: List[str] = []

    for column in available_columns:
        column_lc = "_".join(str(column).strip().lower().split())
        if column_lc in synonyms:
            resolved.append(column)

    return resolved


def _extract_scalar(row: pd.Series, columns: Sequence[str]) -> Optional[str]:
    for column in columns:
        if column not in row:
            continue
        text = _clean_text(row[column])
        if text is not None:
            return text
    return None


def _extract_float(row: pd.Series, columns: Sequence[str]) -> Optional[float]:
    text = _extract_scalar(row, columns)
    if text is None:
        return None
    try:
        return float(text)
    except ValueError:
        LOGGER.warning("Ignoring non-numeric coordinate %r", text)
        return None


def _clean_text(value: Any) -> Optional[str]:
    if pd.isna(value):
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    if isinstance(value, float) and value.is_integer():
        # Integer columns with blanks are read as floats
        return str(int(value))
    text = str(value).strip()
    return text or None


__all__ = ["load_contacts", "load_contacts_json", "load_groups", "UnsupportedFileTypeError"]
