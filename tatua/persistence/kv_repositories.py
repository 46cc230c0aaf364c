"""Durable repositories on top of key-value slots.

The whole collection is kept as one JSON array under a single key. Every
mutation is a full read-modify-write of that array; there are no partial
writes. When a cipher is configured the array is encrypted before it is
written and decrypted after it is read.
"""

import json
import logging
from typing import Any, List, Mapping, Optional

from ..grid.rules import Record
from .crypto import PayloadCipher
from .kv_stores import KeyValueStore
from .repositories import RecordRepository, check_new_record, find_index, merge_update

logger = logging.getLogger(__name__)

SESSION_STORAGE_KEY = "tatua_tickets_session_aes"
LOCAL_STORAGE_KEY = "tatua_tickets_local_aes"


class KeyValueRecordRepository(RecordRepository):
    """Repository persisting the serialized collection in a key-value slot."""

    def __init__(
        self,
        store: KeyValueStore,
        storage_key: str,
        cipher: Optional[PayloadCipher] = None,
        key_field: str = "id"
    ):
        """Initialize the repository.

        Args:
            store: Slot the collection is written to
            storage_key: Key holding the serialized collection
            cipher: Optional payload cipher; None stores plain JSON
            key_field: Field that identifies a record
        """
        self.store = store
        self.storage_key = storage_key
        self.cipher = cipher
        self.key_field = key_field
        logger.info(
            f"KeyValueRecordRepository initialized with key={storage_key}, "
            f"store={type(store).__name__}, encrypted={cipher is not None}"
        )

    def _load(self) -> List[Record]:
        """Read the collection; anything unreadable counts as empty."""
        raw = self.store.get_item(self.storage_key)
        if not raw:
            return []

        payload = self.cipher.decrypt(raw) if self.cipher else raw
        try:
            data = json.loads(payload)
        except (ValueError, RecursionError) as e:
            logger.error(f"Failed to parse stored records under '{self.storage_key}': {e}")
            return []

        if not isinstance(data, list):
            logger.error(
                f"Stored records under '{self.storage_key}' are a "
                f"{type(data).__name__}, expected a list"
            )
            return []

        records = [item for item in data if isinstance(item, dict)]
        if len(records) != len(data):
            logger.warning(f"Dropped {len(data) - len(records)} malformed stored records")
        return records

    def _save(self, records: List[Record]) -> None:
        payload = json.dumps(records, default=str)
        if self.cipher:
            payload = self.cipher.encrypt(payload)
        self.store.set_item(self.storage_key, payload)

    def list_records(self) -> List[Record]:
        return self._load()

    def get_record(self, record_id: Any) -> Optional[Record]:
        records = self._load()
        index = find_index(records, record_id, self.key_field)
        return records[index] if index != -1 else None

    def save_record(self, record: Mapping[str, Any]) -> None:
        records = self._load()
        stored = check_new_record(record, records, self.key_field)
        records.insert(0, stored)
        self._save(records)
        logger.debug(f"Saved record {stored[self.key_field]} under '{self.storage_key}'")

    def update_record(self, record_id: Any, fields: Mapping[str, Any]) -> bool:
        records = self._load()
        index = find_index(records, record_id, self.key_field)
        if index == -1:
            logger.debug(f"Update skipped, record {record_id} not found under '{self.storage_key}'")
            return False
        records[index] = merge_update(records, index, fields, self.key_field)
        self._save(records)
        logger.debug(f"Updated record {record_id} under '{self.storage_key}'")
        return True

    def delete_record(self, record_id: Any) -> bool:
        records = self._load()
        index = find_index(records, record_id, self.key_field)
        if index == -1:
            return False
        del records[index]
        self._save(records)
        logger.debug(f"Deleted record {record_id} under '{self.storage_key}'")
        return True

    def clear(self) -> None:
        """Drop the stored collection entirely."""
        self.store.remove_item(self.storage_key)
