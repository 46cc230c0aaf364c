"""Unit tests for the repository factory."""

import pytest

from tatua.config import TatuaConfig
from tatua.persistence.crypto import PayloadCipher
from tatua.persistence.factory import RepositoryConfig, RepositoryFactory, StorageBackend
from tatua.persistence.kv_repositories import (
    LOCAL_STORAGE_KEY,
    SESSION_STORAGE_KEY,
    KeyValueRecordRepository,
)
from tatua.persistence.kv_stores import FileKeyValueStore, MemoryKeyValueStore
from tatua.persistence.repositories import InMemoryRecordRepository


class TestRepositoryConfig:
    """Test cases for RepositoryConfig."""

    def test_defaults_to_memory(self):
        assert RepositoryConfig().backend == StorageBackend.MEMORY
        assert RepositoryConfig.for_testing().backend == StorageBackend.MEMORY

    def test_accepts_backend_string(self):
        assert RepositoryConfig("local").backend == StorageBackend.LOCAL

    def test_from_env(self, monkeypatch, temp_storage_dir):
        monkeypatch.setenv("TATUA_STORAGE_BACKEND", "LOCAL")
        monkeypatch.setenv("TATUA_STORAGE_PATH", str(temp_storage_dir))
        monkeypatch.setenv("TATUA_ENCRYPTION_ENABLED", "false")

        config = RepositoryConfig.from_env()

        assert config.backend == StorageBackend.LOCAL
        assert config.options["storage_path"] == str(temp_storage_dir)
        assert config.options["encrypt"] is False

    def test_from_env_invalid_backend(self, monkeypatch):
        monkeypatch.setenv("TATUA_STORAGE_BACKEND", "redis")
        assert RepositoryConfig.from_env().backend == StorageBackend.MEMORY

    def test_from_env_matches_tatua_config(self, monkeypatch):
        key = PayloadCipher.generate_key()
        monkeypatch.setenv("TATUA_STORAGE_BACKEND", "session")
        monkeypatch.setenv("TATUA_CIPHER_KEY", key)

        config = RepositoryConfig.from_env()
        expected = TatuaConfig.from_environment().repository_config()

        assert config.backend == expected.backend == StorageBackend.SESSION
        assert config.options == expected.options
        assert config.options["cipher_key"] == key


class TestRepositoryFactory:
    """Test cases for RepositoryFactory."""

    def test_memory_backend(self):
        repository = RepositoryFactory().create_repository(RepositoryConfig.for_testing())
        assert isinstance(repository, InMemoryRecordRepository)

    def test_session_backend(self):
        repository = RepositoryFactory().create_repository(RepositoryConfig(StorageBackend.SESSION))

        assert isinstance(repository, KeyValueRecordRepository)
        assert isinstance(repository.store, MemoryKeyValueStore)
        assert repository.storage_key == SESSION_STORAGE_KEY
        assert repository.cipher is not None

    def test_local_backend(self, temp_storage_dir):
        factory = RepositoryFactory(storage_path=str(temp_storage_dir))
        repository = factory.create_repository(RepositoryConfig(StorageBackend.LOCAL))

        assert isinstance(repository.store, FileKeyValueStore)
        assert repository.storage_key == LOCAL_STORAGE_KEY

        repository.save_record({"id": "TKT-1"})
        assert (temp_storage_dir / f"{LOCAL_STORAGE_KEY}.dat").exists()

    def test_encryption_can_be_disabled(self):
        config = RepositoryConfig(StorageBackend.SESSION, encrypt=False)
        assert RepositoryFactory().create_repository(config).cipher is None

    def test_repository_caching(self):
        factory = RepositoryFactory()
        config = RepositoryConfig.for_testing()

        first = factory.create_repository(config)
        assert factory.create_repository(config) is first
        assert factory.create_repository(config, use_cache=False) is not first

        factory.clear_cache()
        assert factory.create_repository(config) is not first

    def test_session_slot_is_shared_within_factory(self):
        factory = RepositoryFactory()
        config = RepositoryConfig(StorageBackend.SESSION)

        factory.create_repository(config, use_cache=False).save_record({"id": "TKT-1"})
        again = factory.create_repository(config, use_cache=False)
        assert again.get_record("TKT-1") == {"id": "TKT-1"}

        other_factory = RepositoryFactory()
        assert other_factory.create_repository(config).list_records() == []

    @pytest.mark.parametrize("backend,encrypted", [
        (StorageBackend.MEMORY, False),
        (StorageBackend.SESSION, True),
        (StorageBackend.LOCAL, True),
    ])
    def test_repository_info(self, backend, encrypted):
        info = RepositoryFactory(storage_path="/tmp/tatua").get_repository_info(RepositoryConfig(backend))

        assert info["backend"] == backend.value
        assert info["encrypted"] is encrypted
        if backend == StorageBackend.LOCAL:
            assert info["storage_path"] == "/tmp/tatua"
            assert info["storage_key"] == LOCAL_STORAGE_KEY
