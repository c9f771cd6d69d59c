"""Configuration helpers for map rendering, event detection and venue providers."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

LOGGER = logging.getLogger(__name__)

DEFAULT_API_KEY_ENV = "GOOGLE_MAPS_API_KEY"


class ConfigurationError(RuntimeError):
    """Raised when configuration files are missing or malformed."""


_SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}


def load_configuration(path: str | Path) -> Dict[str, Any]:
    """Load configuration data from a JSON or YAML file."""

    file_path = Path(path)
    if not file_path.exists():
        raise ConfigurationError(f"Configuration file '{file_path}' was not found")

    if file_path.suffix.lower() not in _SUPPORTED_EXTENSIONS:
        raise ConfigurationError(
            f"Unsupported configuration format '{file_path.suffix}'. Supported extensions: {sorted(_SUPPORTED_EXTENSIONS)}"
        )

    text = file_path.read_text(encoding="utf-8")
    if file_path.suffix.lower() == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Configuration file '{file_path}' is not valid JSON: {exc}") from exc
    else:
        import yaml

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Configuration file '{file_path}' is not valid YAML: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file '{file_path}' must contain a mapping at the top level")
    return data


def iter_enabled_provider_configs(config: Mapping[str, Any]) -> Iterable[Dict[str, Any]]:
    providers = config.get("providers", [])
    for provider in providers:
        if provider.get("enabled", True):
            yield provider
        else:
            LOGGER.debug("Skipping disabled provider %s", provider.get("name"))


def resolve_api_key(options: Mapping[str, Any], environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return the API key given inline or through the environment variable named by ``api_key_env``."""

    if options.get("api_key"):
        return str(options["api_key"])
    environ = os.environ if environ is None else environ
    env_name = options.get("api_key_env") or DEFAULT_API_KEY_ENV
    value = environ.get(env_name)
    return value or None


@dataclass
class MapSettings:
    group_cluster_zoom: float = 12.0
    individual_marker_zoom: float = 15.0
    mixed_min_members: int = 3


@dataclass
class EventSettings:
    radius: int = 1000
    event_types: List[str] = field(default_factory=list)
    include_text_search: bool = True
    text_queries: List[str] = field(default_factory=list)
    nearby_threshold: float = 0.3
    text_threshold: float = 0.4
    location_delay_seconds: float = 0.0
    cluster_distance_m: float = 1000.0
    adaptive_search: bool = False


@dataclass
class AtlasSettings:
    """Typed view over the ``map`` and ``events`` configuration sections."""

    map: MapSettings = field(default_factory=MapSettings)
    events: EventSettings = field(default_factory=EventSettings)

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]]) -> "AtlasSettings":
        config = config or {}
        map_cfg = config.get("map") or {}
        events_cfg = config.get("events") or {}
        zoom_cfg = map_cfg.get("zoom_thresholds") or {}

        try:
            map_settings = MapSettings(
                group_cluster_zoom=float(zoom_cfg.get("group_clusters", 12)),
                individual_marker_zoom=float(zoom_cfg.get("individual_markers", 15)),
                mixed_min_members=int(map_cfg.get("mixed_min_members", 3)),
            )
            event_settings = EventSettings(
                radius=int(events_cfg.get("radius", 1000)),
                event_types=[str(value) for value in events_cfg.get("event_types", [])],
                include_text_search=bool(events_cfg.get("include_text_search", True)),
                text_queries=[str(value) for value in events_cfg.get("text_queries", [])],
                nearby_threshold=float(events_cfg.get("nearby_threshold", 0.3)),
                text_threshold=float(events_cfg.get("text_threshold", 0.4)),
                location_delay_seconds=float(events_cfg.get("location_delay_seconds", 0) or 0),
                cluster_distance_m=float(events_cfg.get("cluster_distance_m", 1000)),
                adaptive_search=bool(events_cfg.get("adaptive_search", False)),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid configuration value: {exc}") from exc

        if map_settings.group_cluster_zoom > map_settings.individual_marker_zoom:
            raise ConfigurationError("map.zoom_thresholds.group_clusters must not exceed individual_markers")
        return cls(map=map_settings, events=event_settings)
