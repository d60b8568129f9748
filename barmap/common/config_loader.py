"""Configuration and credential loading."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from dotenv import dotenv_values

from barmap.common.constants import CLASSIFIER_PROVIDER, GEOCODER_PROVIDER, PLACES_PROVIDER
from barmap.common.errors import ConfigError
from barmap.common.fs import read_yaml
from barmap.common.http import HttpClient, ProviderRateLimiter, RetryConfig, TimeoutConfig
from barmap.common.schema import validate_pipeline_config

CREDENTIAL_ENV_NAMES = {
    "google_places_api_key": "GOOGLE_PLACES_API_KEY",
    "openai_api_key": "OPENAI_API_KEY",
}


@dataclass(frozen=True)
class Credentials:
    google_places_api_key: str | None = None
    openai_api_key: str | None = None

    def require(self, name: str) -> str:
        value = getattr(self, name)
        if not value:
            env_name = CREDENTIAL_ENV_NAMES[name]
            raise ConfigError(f"Set {env_name} in the environment or the local secrets file")
        return value


@dataclass(frozen=True)
class PipelineConfig:
    settings: dict
    credentials: Credentials = field(default_factory=Credentials)

    def path(self, key: str) -> Path:
        return Path(self.settings["paths"][key])

    def section(self, name: str) -> dict:
        return self.settings[name]


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    base = read_yaml(path)
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path)
    if overlay is None:
        return base
    if not isinstance(overlay, dict):
        raise ConfigError(f"Overlay config must be a mapping: {overlay_path}")
    return _deep_merge(base, overlay)


def _clean_secret(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip().rstrip(";").strip()
    return cleaned or None


def resolve_credentials(env: Mapping[str, str], secrets_path: Path | None) -> Credentials:
    """Resolve each credential from the environment first, then the secrets file."""
    secrets: dict[str, str | None] = {}
    if secrets_path is not None and secrets_path.exists():
        secrets = dict(dotenv_values(secrets_path))

    values = {}
    for attr, env_name in CREDENTIAL_ENV_NAMES.items():
        values[attr] = _clean_secret(env.get(env_name)) or _clean_secret(secrets.get(env_name))
    return Credentials(**values)


def load_config(
    config_path: Path,
    *,
    overlay_path: Path | None = None,
    env: Mapping[str, str] | None = None,
    secrets_path: Path | None = None,
    allow_unknown: bool = False,
) -> PipelineConfig:
    settings = validate_pipeline_config(
        _load_yaml_with_overlay(config_path, overlay_path),
        allow_unknown=allow_unknown,
    )
    if secrets_path is None:
        secrets_path = Path(settings["paths"]["secrets_file"])
    credentials = resolve_credentials(env or {}, secrets_path)
    return PipelineConfig(settings=settings, credentials=credentials)


def build_http_client(config: PipelineConfig) -> HttpClient:
    http_cfg = config.section("http")
    limiter = ProviderRateLimiter(
        {
            GEOCODER_PROVIDER: float(config.section("geocoder")["min_interval_seconds"]),
            PLACES_PROVIDER: float(config.section("places")["min_interval_seconds"]),
            CLASSIFIER_PROVIDER: float(config.section("classifier")["min_interval_seconds"]),
        }
    )
    retry_cfg = http_cfg["retry"]
    return HttpClient(
        timeout=TimeoutConfig(
            connect=float(http_cfg["timeout"]["connect"]),
            read=float(http_cfg["timeout"]["read"]),
        ),
        retry=RetryConfig(
            max_attempts=int(retry_cfg["max_attempts"]),
            multiplier=float(retry_cfg.get("multiplier", 1.0)),
            max_wait=float(retry_cfg.get("max_wait", 30.0)),
        ),
        limiter=limiter,
    )
