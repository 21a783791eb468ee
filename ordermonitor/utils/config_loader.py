"""Load the monitoring YAML configuration into :class:`MonitoringConfig`."""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import ValidationError

from ordermonitor.utils.config_schemas import MonitoringConfig


DEFAULT_CONFIG_PATH = Path("config/monitoring.yaml")

_ENV_PATTERN = re.compile(r"^\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<default>.*))?\}$")


class ConfigError(ValueError):
    """Raised when the monitoring configuration cannot be loaded."""


def _load_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    if path.suffix in {".yaml", ".yml"}:
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse config at {path}: {exc}") from exc
    elif path.suffix == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
    else:
        raise ConfigError(f"Unsupported configuration format: {path.suffix or 'unknown'}")
    if data is None:
        raise ConfigError(f"Config file is empty: {path}")
    if not isinstance(data, Mapping):
        raise ConfigError(f"Config file must contain a mapping at root: {path}")
    return dict(data)


def resolve_env(value: Any, env: Optional[Mapping[str, str]] = None) -> Any:
    """Replace ``${VAR}`` and ``${VAR:-default}`` strings with environment values."""

    env = os.environ if env is None else env
    if isinstance(value, Mapping):
        return {k: resolve_env(v, env) for k, v in value.items()}
    if isinstance(value, list):
        return [resolve_env(item, env) for item in value]
    if isinstance(value, str):
        match = _ENV_PATTERN.match(value.strip())
        if match is None:
            return value
        name = match.group("name")
        if name in env:
            return env[name]
        if match.group("default") is not None:
            return match.group("default")
        raise ConfigError(f"Environment variable '{name}' not set")
    return value


def load_config(
    path: Path | str | None = None, *, env: Optional[Mapping[str, str]] = None
) -> MonitoringConfig:
    """Read, resolve and validate a monitoring configuration file.

    Missing sections fall back to the built-in defaults, so an empty
    ``monitoring:`` mapping yields the stock thresholds.
    """

    raw = _load_file(Path(path) if path is not None else DEFAULT_CONFIG_PATH)
    resolved = resolve_env(raw, env)
    try:
        return MonitoringConfig.model_validate(resolved)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
