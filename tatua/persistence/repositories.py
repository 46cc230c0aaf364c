"""Repository pattern implementations for Tatua ticket storage.

This module defines the record repository contract and its volatile
in-memory implementation. The durable implementations live in
``kv_repositories``. Every implementation keeps records newest-first and
hands out copies, so callers never hold references into stored state.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Mapping, Optional

from ..exceptions import DuplicateRecordError, InvalidRecordError
from ..grid.rules import Record

logger = logging.getLogger(__name__)


class RecordRepository(ABC):
    """Abstract base class for record repositories."""

    key_field: str = "id"

    @abstractmethod
    def list_records(self) -> List[Record]:
        """Return every stored record, newest first. Never raises on corrupt data."""
        pass

    @abstractmethod
    def get_record(self, record_id: Any) -> Optional[Record]:
        """Get a record by its key, or None."""
        pass

    @abstractmethod
    def save_record(self, record: Mapping[str, Any]) -> None:
        """Store a new record at the front of the collection."""
        pass

    @abstractmethod
    def update_record(self, record_id: Any, fields: Mapping[str, Any]) -> bool:
        """Shallow-merge ``fields`` into a record, keeping its key. Returns False if it does not exist."""
        pass

    @abstractmethod
    def delete_record(self, record_id: Any) -> bool:
        """Delete a record. Returns False if it does not exist."""
        pass


def check_new_record(record: Mapping[str, Any], existing: Iterable[Record], key_field: str) -> Record:
    """Validate a record about to be saved and return a detached copy of it."""
    if not isinstance(record, Mapping):
        raise InvalidRecordError(f"Records must be mappings, got {type(record).__name__}")
    if record.get(key_field) is None:
        raise InvalidRecordError(f"Record is missing its '{key_field}' field", key_field=key_field)

    record_id = record[key_field]
    if any(item.get(key_field) == record_id for item in existing):
        raise DuplicateRecordError(record_id)
    return dict(record)


def merge_update(records: List[Record], index: int, fields: Mapping[str, Any], key_field: str) -> Record:
    """Shallow-merge ``fields`` into ``records[index]``; the record keeps its key.

    Raises DuplicateRecordError if ``fields`` tries to move the record onto a
    key another record already holds.
    """
    current = records[index]
    changes = dict(fields)
    if key_field in changes:
        new_id = changes.pop(key_field)
        if new_id != current.get(key_field) and any(
            position != index and record.get(key_field) == new_id
            for position, record in enumerate(records)
        ):
            raise DuplicateRecordError(new_id)
    return {**current, **changes}


def find_index(records: List[Record], record_id: Any, key_field: str) -> int:
    """Linear scan for a record key; -1 when absent."""
    for index, record in enumerate(records):
        if record.get(key_field) == record_id:
            return index
    return -1


class InMemoryRecordRepository(RecordRepository):
    """Volatile repository; records live as long as the instance."""

    def __init__(self, key_field: str = "id"):
        """Initialize in-memory storage."""
        self.key_field = key_field
        self._records: List[Record] = []
        logger.info("InMemoryRecordRepository initialized")

    def list_records(self) -> List[Record]:
        return [dict(record) for record in self._records]

    def get_record(self, record_id: Any) -> Optional[Record]:
        index = find_index(self._records, record_id, self.key_field)
        if index == -1:
            return None
        return dict(self._records[index])

    def save_record(self, record: Mapping[str, Any]) -> None:
        stored = check_new_record(record, self._records, self.key_field)
        self._records.insert(0, stored)
        logger.debug(f"Saved record {stored[self.key_field]} in memory repository")

    def update_record(self, record_id: Any, fields: Mapping[str, Any]) -> bool:
        index = find_index(self._records, record_id, self.key_field)
        if index == -1:
            logger.debug(f"Update skipped, record {record_id} not found in memory repository")
            return False
        self._records[index] = merge_update(self._records, index, fields, self.key_field)
        logger.debug(f"Updated record {record_id} in memory repository")
        return True

    def delete_record(self, record_id: Any) -> bool:
        index = find_index(self._records, record_id, self.key_field)
        if index == -1:
            return False
        del self._records[index]
        logger.debug(f"Deleted record {record_id} from memory repository")
        return True
