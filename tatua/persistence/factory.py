"""Repository factory for Tatua ticket storage.

This module selects a storage backend from configuration and builds the
matching repository: volatile memory, session-scoped slot, or file-backed
local slot, the latter two optionally encrypted.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from .crypto import PayloadCipher
from .kv_repositories import LOCAL_STORAGE_KEY, SESSION_STORAGE_KEY, KeyValueRecordRepository
from .kv_stores import FileKeyValueStore, MemoryKeyValueStore
from .repositories import InMemoryRecordRepository, RecordRepository

logger = logging.getLogger(__name__)


class StorageBackend(str, Enum):
    """Supported storage backends."""
    MEMORY = "memory"
    SESSION = "session"
    LOCAL = "local"


class RepositoryConfig:
    """Configuration for repository creation."""

    def __init__(
        self,
        backend: StorageBackend = StorageBackend.MEMORY,
        **kwargs
    ):
        """Initialize repository configuration.

        Args:
            backend: Storage backend type
            **kwargs: Backend-specific configuration options

        Backend-specific options:
        - local: storage_path (str) - Directory for the local slot files
        - session, local: cipher_key (str) - Fernet key for payload encryption
        - session, local: encrypt (bool) - Disable to store plain JSON
        - all: key_field (str) - Record key field (default "id")
        """
        self.backend = StorageBackend(backend)
        self.options = kwargs

    @classmethod
    def from_env(cls) -> "RepositoryConfig":
        """Create configuration from the TATUA_* environment variables.

        Parsing is shared with TatuaConfig; an unknown backend falls back to
        memory.
        """
        from ..config import TatuaConfig

        settings = TatuaConfig.from_environment()
        try:
            backend = StorageBackend(settings.storage_backend)
        except ValueError:
            logger.warning(f"Invalid storage backend '{settings.storage_backend}', defaulting to memory")
            backend = StorageBackend.MEMORY

        return settings.repository_config(backend.value)

    @classmethod
    def for_testing(cls) -> "RepositoryConfig":
        """Create configuration optimized for testing."""
        return cls(backend=StorageBackend.MEMORY)


class RepositoryFactory:
    """Builds repositories and keeps one instance per backend.

    A factory owns the session-scoped slot, so every session repository it
    hands out shares that slot for as long as the factory lives. Use one
    factory per desk; nothing here is global.
    """

    def __init__(self, storage_path: str = "./data", cipher_key: Optional[str] = None):
        self.storage_path = storage_path
        self.cipher_key = cipher_key
        self._session_store = MemoryKeyValueStore()
        self._cache: Dict[StorageBackend, RecordRepository] = {}

    def create_repository(
        self,
        config: Optional[RepositoryConfig] = None,
        use_cache: bool = True
    ) -> RecordRepository:
        """Create a repository instance.

        Args:
            config: Repository configuration (defaults to environment-based config)
            use_cache: Whether to cache and reuse the instance for its backend

        Returns:
            Configured record repository
        """
        if config is None:
            config = RepositoryConfig.from_env()

        if use_cache and config.backend in self._cache:
            return self._cache[config.backend]

        logger.info(f"Creating record repository with backend: {config.backend.value}")
        key_field = config.options.get("key_field", "id")

        if config.backend == StorageBackend.MEMORY:
            repository: RecordRepository = InMemoryRecordRepository(key_field=key_field)

        elif config.backend == StorageBackend.SESSION:
            repository = KeyValueRecordRepository(
                self._session_store,
                SESSION_STORAGE_KEY,
                cipher=self._cipher_for(config),
                key_field=key_field
            )

        elif config.backend == StorageBackend.LOCAL:
            storage_path = config.options.get("storage_path") or self.storage_path
            repository = KeyValueRecordRepository(
                FileKeyValueStore(storage_path),
                LOCAL_STORAGE_KEY,
                cipher=self._cipher_for(config),
                key_field=key_field
            )

        else:
            raise ValueError(f"Unknown storage backend: {config.backend}")

        if use_cache:
            self._cache[config.backend] = repository

        return repository

    def _cipher_for(self, config: RepositoryConfig) -> Optional[PayloadCipher]:
        if not config.options.get("encrypt", True):
            return None
        return PayloadCipher(config.options.get("cipher_key") or self.cipher_key)

    def clear_cache(self) -> None:
        """Forget cached repository instances."""
        self._cache.clear()

    def get_repository_info(self, config: Optional[RepositoryConfig] = None) -> Dict[str, Any]:
        """Describe the configured backend without creating it."""
        if config is None:
            config = RepositoryConfig.from_env()

        info: Dict[str, Any] = {
            "backend": config.backend.value,
            "encrypted": config.backend != StorageBackend.MEMORY and config.options.get("encrypt", True),
        }
        if config.backend == StorageBackend.SESSION:
            info["storage_key"] = SESSION_STORAGE_KEY
        elif config.backend == StorageBackend.LOCAL:
            info["storage_key"] = LOCAL_STORAGE_KEY
            info["storage_path"] = config.options.get("storage_path") or self.storage_path
        return info
