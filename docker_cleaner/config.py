from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .models import EXCLUDABLE_CATEGORIES, Category, ResourceKind, split_exclusion_list


ENV_CONFIG = "DC_CONFIG"
ENV_LOG_LEVEL = "DC_LOG_LEVEL"
ENV_DRY_RUN = "DC_DRY_RUN"
ENV_QUIET = "DC_QUIET"
ENV_OLDER_THAN = "DC_OLDER_THAN"

BOOLEAN_KEYS = (
    "dry_run",
    "verbose",
    "quiet",
    "confirm",
    "clean_logs",
    "protect_current_dir",
    "reset_docker_desktop",
)


class ConfigError(ValueError):
    pass


@dataclass
class FileSettings:
    """Settings read from a YAML config file; unset keys stay None."""

    exclusions: dict[ResourceKind, list[str]] = field(default_factory=dict)
    older_than: int | None = None
    flags: dict[str, bool] = field(default_factory=dict)


def parse_boolish(value: str, *, default: bool = False) -> bool:
    normalized = str(value or "").strip().lower()
    if not normalized:
        return default
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def parse_older_than(value: Any) -> int | None:
    """Validate an age threshold in days; None and -1 mean no filtering."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise ConfigError(f"older_than must be a whole number of days, got {value!r}")
    try:
        days = int(str(value).strip())
    except ValueError:
        raise ConfigError(f"older_than must be a whole number of days, got {value!r}") from None
    if days == -1:
        return None
    if days < 0:
        raise ConfigError(f"older_than must be >= 0, got {days}")
    return days


def load_config_file(path: str | Path) -> FileSettings:
    config_path = Path(path)
    try:
        payload = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in config file {config_path}: {exc}") from exc

    if payload is None:
        return FileSettings()
    if not isinstance(payload, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")

    settings = FileSettings()

    exclude = payload.get("exclude") or {}
    if not isinstance(exclude, dict):
        raise ConfigError("exclude must be a mapping of category to names")
    for key, values in exclude.items():
        try:
            category = Category(str(key))
        except ValueError:
            category = None
        if category not in EXCLUDABLE_CATEGORIES:
            allowed = sorted(item.value for item in EXCLUDABLE_CATEGORIES)
            raise ConfigError(f"Invalid exclude category '{key}'. Allowed values: {allowed}")
        settings.exclusions[EXCLUDABLE_CATEGORIES[category]] = split_exclusion_list(values)

    settings.older_than = parse_older_than(payload.get("older_than"))

    for key in BOOLEAN_KEYS:
        if key not in payload:
            continue
        value = payload[key]
        settings.flags[key] = value if isinstance(value, bool) else parse_boolish(str(value))

    return settings


def config_path_from_env(environ: dict[str, str] | None = None) -> str | None:
    env = os.environ if environ is None else environ
    return str(env.get(ENV_CONFIG) or "").strip() or None


def env_flag(name: str, environ: dict[str, str] | None = None) -> bool | None:
    env = os.environ if environ is None else environ
    raw = str(env.get(name) or "").strip()
    if not raw:
        return None
    return parse_boolish(raw)


def log_level_from_env(environ: dict[str, str] | None = None) -> str:
    env = os.environ if environ is None else environ
    return str(env.get(ENV_LOG_LEVEL, "WARNING")).upper()


def older_than_from_env(environ: dict[str, str] | None = None) -> int | None:
    env = os.environ if environ is None else environ
    return parse_older_than(env.get(ENV_OLDER_THAN))
