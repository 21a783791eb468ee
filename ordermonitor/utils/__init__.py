"""Configuration helpers."""

from .config_loader import ConfigError, load_config, resolve_env
from .config_schemas import MonitoringConfig
from .config_validator import validate_all, validate_config_file

__all__ = [
    "ConfigError",
    "MonitoringConfig",
    "load_config",
    "resolve_env",
    "validate_all",
    "validate_config_file",
]
