"""Export utilities for detected events, groups and render plans."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, Mapping, MutableMapping, Optional, Sequence, Union

import pandas as pd

from ..clustering import RenderPlan
from ..groups import GroupSuggestion
from ..models import Group, NearbyEvent

PathLike = Union[str, Path]

EVENT_COLUMNS = (
    "event_id",
    "name",
    "latitude",
    "longitude",
    "vicinity",
    "types",
    "rating",
    "user_ratings_total",
    "business_status",
    "event_score",
    "overall_score",
    "confidence",
    "venue_type",
    "search_query",
    "distance_km",
    "contact_ids",
    "indicators",
    "sources",
)


def export_events(
    events: Sequence[NearbyEvent],
    path: PathLike,
    *,
    sheet_name: str = "Events",
    exporter_kwargs: Optional[MutableMapping[str, object]] = None,
) -> Path:
    """Write detected events to a CSV, TSV or Excel file."""

    dataframe = events_to_dataframe(events)
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    _write_dataframe(dataframe, output_path, sheet_name=sheet_name, exporter_kwargs=exporter_kwargs)
    return output_path


def events_to_dataframe(events: Iterable[NearbyEvent]) -> pd.DataFrame:
    """Convert detected events into a :class:`pandas.DataFrame`, one row per venue."""

    return pd.DataFrame([event.as_row() for event in events], columns=list(EVENT_COLUMNS))


def export_groups(groups: Iterable[Group], path: PathLike) -> Path:
    return _write_json({"groups": [group.to_dict() for group in groups]}, path)


def export_suggestions(suggestions: Iterable[GroupSuggestion], path: PathLike) -> Path:
    return _write_json({"suggestions": [suggestion.as_dict() for suggestion in suggestions]}, path)


def export_render_plan(plan: Union[RenderPlan, Mapping[str, Any]], path: PathLike) -> Path:
    payload = plan.as_dict() if hasattr(plan, "as_dict") else dict(plan)
    return _write_json(payload, path)


def _write_json(payload: Mapping[str, Any], path: PathLike) -> Path:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, default=str)
    return output_path


def _write_dataframe(
    dataframe: pd.DataFrame,
    path: Path,
    *,
    sheet_name: str,
    exporter_kwargs: Optional[MutableMapping[str, object]],
) -> None:
    exporter_kwargs = dict(exporter_kwargs or {})
    suffix = path.suffix.lower()

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            exporter_kwargs.setdefault("sep", "\t")
        dataframe.to_csv(path, index=False, **exporter_kwargs)
        return

    if suffix in {".xls", ".xlsx", ".xlsm", ".xlsb"}:
        engine = exporter_kwargs.pop("engine", None) or "openpyxl"
        dataframe.to_excel(path, index=False, sheet_name=sheet_name, engine=engine, **exporter_kwargs)
        return

    raise ValueError(f"Unsupported export file extension: {suffix}")


__all__ = ["EVENT_COLUMNS", "events_to_dataframe", "export_events", "export_groups", "export_render_plan", "export_suggestions"]
