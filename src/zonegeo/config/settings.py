# src/zonegeo/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/zonegeo/config/defaults.yaml`, then optionally overridden by:
- an external YAML file via `ZONEGEO_CONFIG_PATH`
- environment variables (`ZONEGEO_LOG_LEVEL`, `ZONEGEO_DATASET_PATH`, `ZONEGEO_MAX_FALLBACK_KM`)

Design rule:
- Tuning knobs live in YAML, not hard-coded in business logic.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from zonegeo.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `zonegeo.config`."""
    text = resources.files("zonegeo.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "ZoneGeo"
    log_level: str = "INFO"


class DatasetSettings(BaseModel):
    path: str = "data/geo.generated.json"
    prefetch_on_startup: bool = True


class ResolverSettings(BaseModel):
    # Required: there is no intrinsic "right" value, the YAML must choose one.
    max_fallback_distance_km: float = Field(..., gt=0)


class BatchSettings(BaseModel):
    workers: int = Field(4, ge=1, le=64)
    zone_column: str = "zone"


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    dataset: DatasetSettings = Field(default_factory=DatasetSettings)
    resolver: ResolverSettings
    batch: BatchSettings = Field(default_factory=BatchSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("ZONEGEO_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    dataset_path = os.getenv("ZONEGEO_DATASET_PATH")
    if dataset_path:
        data.setdefault("dataset", {})["path"] = dataset_path

    max_km = os.getenv("ZONEGEO_MAX_FALLBACK_KM")
    if max_km:
        data.setdefault("resolver", {})["max_fallback_distance_km"] = max_km

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("ZONEGEO_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
