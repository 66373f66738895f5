"""Configuration loading for credledger."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILENAME = "credledger.yaml"
DEFAULT_DB_PATH = "credledger.db"


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


@dataclass
class APIConfig:
    """REST API server settings."""

    host: str = "127.0.0.1"
    port: int = 8000


@dataclass
class LoggingConfig:
    """Log output settings."""

    dir: str = "logs"
    level: str = "INFO"
    console: bool = True


@dataclass
class CredLedgerConfig:
    """credledger configuration.

    Relative database and log paths resolve against the directory holding
    the config file.
    """

    database: str = DEFAULT_DB_PATH
    owner: str | None = None
    api: APIConfig = field(default_factory=APIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    root_path: Path = field(default_factory=Path)

    @classmethod
    def from_dict(cls, data: dict[str, Any], root_path: Path) -> CredLedgerConfig:
        """Create config from dictionary.

        Args:
            data: Configuration dictionary from YAML.
            root_path: Root directory containing the config file.

        Returns:
            Parsed configuration object.

        Raises:
            ConfigError: If a section has the wrong shape or type.
        """
        api_data = data.get("api") or {}
        logging_data = data.get("logging") or {}
        for name, section in (("api", api_data), ("logging", logging_data)):
            if not isinstance(section, dict):
                raise ConfigError(f"'{name}' must be a mapping, got {type(section).__name__}")

        try:
            port = int(api_data.get("port", 8000))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid api.port: {api_data.get('port')!r}") from e

        owner = data.get("owner")
        return cls(
            database=str(data.get("database", DEFAULT_DB_PATH)),
            owner=str(owner) if owner is not None else None,
            api=APIConfig(host=str(api_data.get("host", "127.0.0.1")), port=port),
            logging=LoggingConfig(
                dir=str(logging_data.get("dir", "logs")),
                level=str(logging_data.get("level", "INFO")).upper(),
                console=bool(logging_data.get("console", True)),
            ),
            root_path=root_path,
        )

    def get_db_path(self) -> str:
        """Get the database path, honouring CREDLEDGER_DB_PATH.

        Returns:
            ":memory:" unchanged, otherwise an absolute path.
        """
        database = os.environ.get("CREDLEDGER_DB_PATH", self.database)
        if database == ":memory:":
            return database
        path = Path(database)
        if not path.is_absolute():
            path = self.root_path / path
        return str(path)

    def get_log_dir(self) -> Path:
        """Get absolute path to the log directory."""
        path = Path(self.logging.dir)
        if not path.is_absolute():
            path = self.root_path / path
        return path


def load_config(config_path: Path | str) -> CredLedgerConfig:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to credledger.yaml file.

    Returns:
        Parsed configuration object.

    Raises:
        ConfigError: If file doesn't exist or is invalid.
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a YAML mapping, got {type(data).__name__}")

    return CredLedgerConfig.from_dict(data, config_path.parent.resolve())


def find_config(start_path: Path | str | None = None) -> Path | None:
    """Find credledger.yaml by walking up directory tree.

    Args:
        start_path: Starting directory. Defaults to current directory.

    Returns:
        Path to credledger.yaml, or None if there is none.
    """
    if start_path is None:
        start_path = Path.cwd()
    else:
        start_path = Path(start_path)

    current = start_path.resolve()

    while current != current.parent:
        config_path = current / CONFIG_FILENAME
        if config_path.exists():
            return config_path
        current = current.parent

    config_path = current / CONFIG_FILENAME
    if config_path.exists():
        return config_path

    return None


def resolve_config(config_path: Path | str | None = None) -> CredLedgerConfig:
    """Load the given config file, the nearest one found, or the defaults.

    Args:
        config_path: Explicit config file path (optional).

    Returns:
        Configuration object.

    Raises:
        ConfigError: If an explicit path is missing or any file is invalid.
    """
    if config_path is None:
        config_path = find_config()
        if config_path is None:
            return CredLedgerConfig(root_path=Path.cwd())
    return load_config(config_path)
