"""Minimal strict schema for the pipeline YAML config."""

from __future__ import annotations

from barmap.common.errors import ConfigError

SECTION_KEYS: dict[str, set[str]] = {
    "paths": {
        "csv_input",
        "store",
        "review_csv",
        "places_review_csv",
        "embedded_html",
        "embedded_output",
        "secrets_file",
        "run_meta_dir",
    },
    "region": {"city", "geocode_suffix", "center", "placeholder_radius_m"},
    "geocoder": {"endpoint", "language", "min_interval_seconds"},
    "places": {
        "find_endpoint",
        "details_endpoint",
        "query_suffix",
        "language",
        "details_language",
        "bias",
        "min_interval_seconds",
    },
    "classifier": {
        "endpoint",
        "model",
        "temperature",
        "max_tokens",
        "max_reviews",
        "review_chars",
        "min_interval_seconds",
    },
    "matcher": {"model", "temperature", "max_tokens"},
    "tags": {"high_rating_threshold"},
    "http": {"timeout", "retry"},
    "progress": {"every"},
}


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_mapping(obj, ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")


def _assert_point(obj, ctx: str) -> None:
    _assert_mapping(obj, ctx)
    _assert_required_keys(obj, {"lat", "lng"}, ctx)
    for key in ("lat", "lng"):
        if not isinstance(obj[key], (int, float)):
            raise ConfigError(f"{ctx}.{key} must be a number")


def validate_pipeline_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    _assert_mapping(cfg, "pipeline config")
    _assert_required_keys(cfg, set(SECTION_KEYS), "pipeline config")
    _assert_no_unknown_keys(cfg, set(SECTION_KEYS), "pipeline config", allow_unknown)

    for section, keys in SECTION_KEYS.items():
        _assert_mapping(cfg[section], section)
        _assert_required_keys(cfg[section], keys, section)
        _assert_no_unknown_keys(cfg[section], keys, section, allow_unknown)

    _assert_point(cfg["region"]["center"], "region.center")
    _assert_point(cfg["places"]["bias"], "places.bias")
    _assert_required_keys(cfg["places"]["bias"], {"radius_m"}, "places.bias")
    _assert_required_keys(cfg["http"]["timeout"], {"connect", "read"}, "http.timeout")
    _assert_required_keys(cfg["http"]["retry"], {"max_attempts"}, "http.retry")

    if int(cfg["http"]["retry"]["max_attempts"]) < 1:
        raise ConfigError("http.retry.max_attempts must be at least 1")
    if int(cfg["progress"]["every"]) < 1:
        raise ConfigError("progress.every must be at least 1")

    return cfg
