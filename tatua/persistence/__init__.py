"""Persistence layer for Tatua.

This module provides the record repository contract and its memory,
session and local implementations, with optional payload encryption for
the durable ones.
"""

from .repositories import InMemoryRecordRepository, RecordRepository
from .kv_repositories import KeyValueRecordRepository
from .kv_stores import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from .crypto import PayloadCipher
from .factory import RepositoryConfig, RepositoryFactory, StorageBackend

__all__ = [
    "RecordRepository",
    "InMemoryRecordRepository",
    "KeyValueRecordRepository",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "FileKeyValueStore",
    "PayloadCipher",
    "RepositoryConfig",
    "RepositoryFactory",
    "StorageBackend",
]
