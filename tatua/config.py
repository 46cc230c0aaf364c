"""Configuration for the Tatua ticket desk.

Settings come from an optional YAML file and are then overridden by
``TATUA_*`` environment variables:

- TATUA_STORAGE_BACKEND: memory, session or local
- TATUA_STORAGE_PATH: directory for the local backend
- TATUA_CIPHER_KEY: payload encryption key
- TATUA_ENCRYPTION_ENABLED: "false" stores plain JSON
- TATUA_PAGE_SIZE: rows per grid page
- TATUA_LOG_LEVEL: logging level name
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .exceptions import ConfigLoadError
from .persistence.factory import RepositoryConfig, StorageBackend

logger = logging.getLogger(__name__)

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass
class TatuaConfig:
    """Complete ticket desk configuration."""

    # Storage
    storage_backend: str = "memory"
    storage_path: str = "./data"

    # Encryption of durable payloads
    cipher_key: Optional[str] = None
    encryption_enabled: bool = True

    # Grid
    page_size: int = 8

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "TatuaConfig":
        """Create configuration from environment variables only."""
        config = cls()
        config.apply_environment()
        return config

    def apply_environment(self) -> None:
        """Override fields with any TATUA_* variables that are set."""
        if os.getenv("TATUA_STORAGE_BACKEND"):
            self.storage_backend = os.getenv("TATUA_STORAGE_BACKEND", "").lower()
        if os.getenv("TATUA_STORAGE_PATH"):
            self.storage_path = os.getenv("TATUA_STORAGE_PATH", self.storage_path)
        if os.getenv("TATUA_CIPHER_KEY"):
            self.cipher_key = os.getenv("TATUA_CIPHER_KEY")
        if os.getenv("TATUA_ENCRYPTION_ENABLED"):
            self.encryption_enabled = os.getenv("TATUA_ENCRYPTION_ENABLED", "true").lower() == "true"
        if os.getenv("TATUA_PAGE_SIZE"):
            self.page_size = int(os.getenv("TATUA_PAGE_SIZE", str(self.page_size)))
        if os.getenv("TATUA_LOG_LEVEL"):
            self.log_level = os.getenv("TATUA_LOG_LEVEL", self.log_level).upper()

    def validate(self) -> None:
        """Validate configuration settings."""
        if self.storage_backend not in [backend.value for backend in StorageBackend]:
            raise ValueError(f"Unsupported storage backend: {self.storage_backend}")

        if self.page_size <= 0:
            raise ValueError("Page size must be positive")

        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")

    def repository_config(self, backend: Optional[str] = None) -> RepositoryConfig:
        """Build the repository configuration for ``backend`` (default: configured one)."""
        return RepositoryConfig(
            backend=StorageBackend(backend or self.storage_backend),
            storage_path=self.storage_path,
            cipher_key=self.cipher_key,
            encrypt=self.encryption_enabled
        )


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None
) -> TatuaConfig:
    """Load TatuaConfig from an optional YAML file plus environment overrides.

    Args:
        config_path: YAML file with top-level keys matching TatuaConfig fields
        overrides: Values applied last, e.g. from command-line options

    Returns:
        Validated configuration

    Raises:
        ConfigLoadError: If the file cannot be read or the result is invalid
    """
    config = TatuaConfig()
    known = {f.name for f in fields(TatuaConfig)}

    if config_path is not None:
        path = Path(config_path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise ConfigLoadError(f"Configuration file not found: {path}", path=str(path))
        except (OSError, yaml.YAMLError) as e:
            raise ConfigLoadError(f"Failed to read configuration: {e}", path=str(path)) from e

        if not isinstance(data, dict):
            raise ConfigLoadError("Configuration file must contain a mapping", path=str(path))

        for key, value in data.items():
            if key in known:
                setattr(config, key, value)
            else:
                logger.warning(f"Ignoring unknown configuration key '{key}' in {path}")

    try:
        config.apply_environment()
    except ValueError as e:
        raise ConfigLoadError(f"Invalid environment configuration: {e}") from e

    for key, value in (overrides or {}).items():
        if value is not None and key in known:
            setattr(config, key, value)

    config.storage_backend = str(config.storage_backend).lower()
    config.log_level = str(config.log_level).upper()

    try:
        config.validate()
    except ValueError as e:
        raise ConfigLoadError(str(e), path=str(config_path) if config_path else None) from e

    return config
