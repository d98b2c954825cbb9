import pytest
from pydantic import ValidationError

# The real loader, so tests see the packaged `defaults.yaml`.
from zonegeo.config.settings import get_settings


def test_defaults_are_packaged():
    # No env overrides are set here; this is the shipped configuration.
    settings = get_settings()

    # The fallback threshold must be an explicit positive value in the YAML.
    assert settings.resolver.max_fallback_distance_km > 0

    # The dataset path is relative to the project root and points at the generated JSON.
    assert settings.dataset.path.endswith(".json")
    assert settings.batch.zone_column == "zone"


def test_env_overrides_whitelisted_knobs(monkeypatch):
    # Set every whitelisted override; values arrive as strings like real env vars.
    monkeypatch.setenv("ZONEGEO_MAX_FALLBACK_KM", "7.5")
    monkeypatch.setenv("ZONEGEO_DATASET_PATH", "/tmp/other.json")
    monkeypatch.setenv("ZONEGEO_LOG_LEVEL", "debug")

    # Settings are cached with lru_cache, so drop the cached instance first.
    get_settings.cache_clear()
    settings = get_settings()

    # Numeric overrides are coerced by Pydantic; strings pass through unchanged.
    assert settings.resolver.max_fallback_distance_km == 7.5
    assert settings.dataset.path == "/tmp/other.json"
    assert settings.app.log_level == "debug"


def test_external_config_must_choose_a_fallback_distance(monkeypatch, tmp_path):
    # An external config that has a resolver section but no threshold in it.
    cfg = tmp_path / "zonegeo.yaml"
    cfg.write_text("dataset:\n  path: data/x.json\nresolver: {}\n", encoding="utf-8")
    monkeypatch.setenv("ZONEGEO_CONFIG_PATH", str(cfg))
    get_settings.cache_clear()

    # There is no silent default: validation names the missing field.
    with pytest.raises(ValidationError, match="max_fallback_distance_km"):
        get_settings()


def test_non_positive_fallback_distance_is_rejected(monkeypatch):
    # Zero would accept no fallback at all; the model rejects it outright.
    monkeypatch.setenv("ZONEGEO_MAX_FALLBACK_KM", "0")
    get_settings.cache_clear()

    with pytest.raises(ValidationError):
        get_settings()
