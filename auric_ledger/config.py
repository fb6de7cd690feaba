"""
Application settings: YAML file, environment expansion, validation.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml


class ConfigValidationError(Exception):
    """Raised when configuration is invalid."""

    pass


@dataclass
class ApiConfig:
    """Quote API configuration."""

    base_url: str = "http://localhost:4000"
    timeout_seconds: float = 30


@dataclass
class StoreConfig:
    """Local key-value store configuration."""

    path: str = "data/auric.db"


@dataclass
class AlertsConfig:
    """Alert rule evaluation settings."""

    cooldown_minutes: float = 60
    target_tolerance_pct: float = 1.0
    toast_duration_ms: int = 4000


@dataclass
class NotificationsConfig:
    """Notification channel settings."""

    email_enabled: bool = True
    platform_notifications: bool = False


@dataclass
class ReportsConfig:
    """Report export settings."""

    output_dir: str = "exports"
    brand: str = "Auric Ledger"
    site_url: str = "https://auric-ledger.vercel.app/"
    logo_url: Optional[str] = None
    dark_mode: bool = False


@dataclass
class AdvancedConfig:
    """Logging and worker pool settings."""

    log_level: str = "INFO"
    max_workers: int = 4


@dataclass
class AppConfig:
    """All configuration sections."""

    api: ApiConfig = field(default_factory=ApiConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    alerts: AlertsConfig = field(default_factory=AlertsConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)
    reports: ReportsConfig = field(default_factory=ReportsConfig)
    advanced: AdvancedConfig = field(default_factory=AdvancedConfig)


_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def _expand_env(node: Any) -> Any:
    """Expand ${NAME} and ${NAME:-fallback} references anywhere in the parsed YAML."""
    if isinstance(node, str):
        return _ENV_PATTERN.sub(
            lambda m: os.environ.get(m.group(1)) or (m.group(2) or ""), node
        )
    if isinstance(node, dict):
        return {key: _expand_env(item) for key, item in node.items()}
    if isinstance(node, list):
        return [_expand_env(item) for item in node]
    return node


def _validate_config(config: AppConfig) -> None:
    """Reject values the application cannot run with."""
    if not config.api.base_url:
        raise ConfigValidationError("API base URL is required")
    if config.api.timeout_seconds <= 0:
        raise ConfigValidationError(
            f"API timeout must be positive, got {config.api.timeout_seconds}"
        )

    if not config.store.path:
        raise ConfigValidationError("Store path is required")
    parent = Path(config.store.path).parent
    if parent.exists() and not os.access(parent, os.W_OK):
        raise ConfigValidationError(f"Store path not writable: {parent}")

    if config.alerts.cooldown_minutes < 0:
        raise ConfigValidationError("Alert cooldown cannot be negative")
    if config.alerts.target_tolerance_pct < 0:
        raise ConfigValidationError("Target tolerance cannot be negative")
    if config.alerts.toast_duration_ms <= 0:
        raise ConfigValidationError("Toast duration must be positive")

    if config.advanced.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ConfigValidationError(f"Invalid log level: {config.advanced.log_level}")
    if config.advanced.max_workers <= 0:
        raise ConfigValidationError("max_workers must be positive")


def _section(config_dict: dict[str, Any], name: str) -> dict[str, Any]:
    section = config_dict.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigValidationError(f"Section '{name}' must be a mapping")
    return section


def build_config(config_dict: dict[str, Any]) -> AppConfig:
    """
    Build AppConfig from a parsed dict.

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    try:
        config = AppConfig(
            api=ApiConfig(**_section(config_dict, "api")),
            store=StoreConfig(**_section(config_dict, "store")),
            alerts=AlertsConfig(**_section(config_dict, "alerts")),
            notifications=NotificationsConfig(**_section(config_dict, "notifications")),
            reports=ReportsConfig(**_section(config_dict, "reports")),
            advanced=AdvancedConfig(**_section(config_dict, "advanced")),
        )
    except TypeError as e:
        raise ConfigValidationError(f"Unknown configuration key: {e}") from e

    _validate_config(config)
    return config


def load_config(config_path: str) -> AppConfig:
    """
    Read settings from a YAML file.

    Args:
        config_path: YAML file location

    Returns:
        AppConfig instance

    Raises:
        ConfigValidationError: If configuration is invalid
        FileNotFoundError: If the file is missing
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"No config file at {config_path}")

    with open(path) as f:
        raw_config = yaml.safe_load(f) or {}

    return build_config(_expand_env(raw_config))
