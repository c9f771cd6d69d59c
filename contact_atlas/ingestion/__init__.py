"""Utilities for importing contacts and groups and exporting detection results."""
from __future__ import annotations

from .exporters import events_to_dataframe, export_events, export_groups, export_render_plan, export_suggestions
from .loaders import UnsupportedFileTypeError, load_contacts, load_contacts_json, load_groups

__all__ = [
    "UnsupportedFileTypeError",
    "events_to_dataframe",
    "export_events",
    "export_groups",
    "export_render_plan",
    "export_suggestions",
    "load_contacts",
    "load_contacts_json",
    "load_groups",
]
