"""Configuration management for the cluster console.

Supports:
- Environment variables (CLUSTEROPS_API_URL, CLUSTEROPS_POLL_INTERVAL, etc.)
- Config file (~/.clusterops/config.toml)
- Programmatic configuration
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from clusterops._http import RetryPolicy

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


DEFAULT_BASE_URL = "http://localhost:8080"
DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_READ_TIMEOUT = 2.0
DEFAULT_READ_RETRIES = 3
DEFAULT_WRITE_TIMEOUT = 10.0
DEFAULT_WRITE_RETRIES = 1
DEFAULT_BACKOFF_BASE = 0.2
DEFAULT_BACKOFF_CAP = 5.0

CONFIG_DIR = Path.home() / ".clusterops"
CONFIG_FILE = CONFIG_DIR / "config.toml"

# Config file keys that differ from attribute names
_KEY_MAPPING = {"api_url": "base_url"}

# Env var suffix -> (attribute, converter)
_ENV_FIELDS: dict[str, tuple[str, Any]] = {
    "API_URL": ("base_url", str),
    "POLL_INTERVAL": ("poll_interval", float),
    "READ_TIMEOUT": ("read_timeout", float),
    "READ_RETRIES": ("read_retries", int),
    "WRITE_TIMEOUT": ("write_timeout", float),
    "WRITE_RETRIES": ("write_retries", int),
    "BACKOFF_BASE": ("backoff_base", float),
    "BACKOFF_CAP": ("backoff_cap", float),
    "DEBUG": ("debug", lambda v: v.lower() in ("1", "true", "yes")),
    "VERIFY_SSL": ("verify_ssl", lambda v: v.lower() not in ("0", "false", "no")),
}


@dataclass
class ConsoleConfig:
    """Console configuration."""

    base_url: str = DEFAULT_BASE_URL
    poll_interval: float = DEFAULT_POLL_INTERVAL

    # Reads retry more aggressively and with shorter deadlines than writes
    read_timeout: float = DEFAULT_READ_TIMEOUT
    read_retries: int = DEFAULT_READ_RETRIES
    write_timeout: float = DEFAULT_WRITE_TIMEOUT
    write_retries: int = DEFAULT_WRITE_RETRIES
    backoff_base: float = DEFAULT_BACKOFF_BASE
    backoff_cap: float = DEFAULT_BACKOFF_CAP

    debug: bool = False
    verify_ssl: bool = True

    def read_policy(self) -> RetryPolicy:
        """Retry policy for GET calls."""
        return RetryPolicy(
            max_retries=self.read_retries,
            base_delay=self.backoff_base,
            timeout=self.read_timeout,
            max_delay=self.backoff_cap,
        )

    def write_policy(self) -> RetryPolicy:
        """Retry policy for mutating calls."""
        return RetryPolicy(
            max_retries=self.write_retries,
            base_delay=self.backoff_base,
            timeout=self.write_timeout,
            max_delay=self.backoff_cap,
        )

    @classmethod
    def from_env(cls) -> ConsoleConfig:
        """Load configuration from environment variables."""
        config = cls()
        config._apply_env()
        return config

    @classmethod
    def from_file(cls, path: Path | None = None) -> ConsoleConfig:
        """Load configuration from TOML file."""
        config_path = path or CONFIG_FILE

        if not config_path.exists():
            return cls()

        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            attr_name = _KEY_MAPPING.get(key, key)
            if attr_name in known:
                values[attr_name] = value

        config = cls(**values)
        # TOML integers are valid for float settings
        for attr_name in ("poll_interval", "read_timeout", "write_timeout", "backoff_base", "backoff_cap"):
            setattr(config, attr_name, float(getattr(config, attr_name)))
        return config

    @classmethod
    def load(cls) -> ConsoleConfig:
        """Load configuration with precedence: env > file > defaults."""
        config = cls.from_file()
        config._apply_env()
        return config

    def _apply_env(self) -> None:
        for suffix, (attr_name, convert) in _ENV_FIELDS.items():
            raw = os.getenv(f"CLUSTEROPS_{suffix}")
            if raw:
                setattr(self, attr_name, convert(raw))


def get_config_dir() -> Path:
    """Get or create the config directory."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    return CONFIG_DIR


def save_config(config: dict[str, Any], path: Path | None = None) -> None:
    """Save configuration to TOML file.

    The file is written with 0o600 permissions.
    """
    import tomli_w

    config_path = path or CONFIG_FILE
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "wb") as f:
        tomli_w.dump(config, f)

    config_path.chmod(0o600)


def get_config_value(key: str) -> Any:
    """Get a single config value."""
    config = ConsoleConfig.load()
    attr_name = _KEY_MAPPING.get(key, key)
    return getattr(config, attr_name, None)


def set_config_value(key: str, value: Any) -> None:
    """Set a single config value in the config file."""
    config_path = CONFIG_FILE

    if config_path.exists():
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    else:
        data = {}

    data[key] = value
    save_config(data, config_path)
