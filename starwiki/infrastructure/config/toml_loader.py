"""Config assembly: default.toml, then development.toml, then environment."""

import logging
import os
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any

from starwiki.domain.ports.config import AppConfig, ModelConfig, ProviderModelSet

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).resolve().parents[3] / "config"
SECTIONS = ("server", "llm", "ollama", "openai_compatible", "security", "wiki")


def _origins(value: str) -> list[str]:
    return [o.strip() for o in value.split(",")]


# env var -> (section, key, converter)
ENV_OVERRIDES: dict[str, tuple[str, str, Callable[[str], Any]]] = {
    "LLM_PROVIDER": ("llm", "provider", str),
    "OLLAMA_HOST": ("ollama", "host", str),
    "OPENAI_BASE_URL": ("openai_compatible", "base_url", str),
    "PORT": ("server", "port", int),
    "LOG_LEVEL": ("logging", "level", str.upper),
    "LOG_FILE": ("logging", "file", str.strip),
    "CORS_ORIGINS": ("security", "cors_origins", _origins),
    "RATE_LIMIT_PER_MINUTE": ("security", "rate_limit_requests_per_minute", int),
    "WIKI_CHECKPOINT_DIR": ("wiki", "checkpoint_dir", str.strip),
    "WIKI_DIST_DIR": ("wiki", "dist_dir", str.strip),
    "WIKI_LANGUAGE": ("wiki", "language_name", str.strip),
}


def _read(path: Path) -> dict:
    if not path.exists():
        return {}
    with path.open("rb") as f:
        return tomllib.load(f)


def _merge(base: dict, layer: dict) -> dict:
    """Shallow per-section merge; non-table values replace."""
    merged = dict(base)
    for key, value in layer.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def _apply_env_overrides(raw: dict) -> dict:
    """Overlay set env vars on raw TOML; unparseable values are logged and skipped."""
    for name, (section, key, convert) in ENV_OVERRIDES.items():
        value = os.getenv(name)
        if not value:
            continue
        try:
            raw.setdefault(section, {})[key] = convert(value)
        except ValueError:
            logger.warning("Ignoring %s=%r: not a valid %s", name, value, key)
    return raw


def _models(raw: dict) -> ModelConfig:
    """[models] holds default tier names; [models.<provider>] tables override them."""
    overrides = {k: ProviderModelSet(**v) for k, v in raw.items() if isinstance(v, dict)}
    tiers = {k: v for k, v in raw.items() if isinstance(v, str)}
    return ModelConfig(overrides=overrides, **tiers)


def load_config(config_dir: Path | None = None) -> AppConfig:
    """Build AppConfig; missing files simply contribute nothing."""
    config_dir = config_dir or CONFIG_DIR
    raw = _merge(_read(config_dir / "default.toml"), _read(config_dir / "development.toml"))
    raw = _apply_env_overrides(raw)

    log_raw = raw.get("logging") or {}
    return AppConfig(
        **{name: raw.get(name) or {} for name in SECTIONS},
        models=_models(raw.get("models") or {}),
        log_level=log_raw.get("level", "INFO"),
        log_file=(log_raw.get("file") or "").strip(),
        log_rotation_max_mb=int(log_raw.get("log_rotation_max_mb", 5)),
        log_rotation_backups=int(log_raw.get("log_rotation_backups", 3)),
    )
