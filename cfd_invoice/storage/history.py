"""History of past extraction results, persisted as one JSON document."""

import json
import logging
import random
import string
import time
import uuid
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import HistoryStorageError
from ..core.models import BillRecord, HistoryEntry
from .local_storage import KeyValueStorage

logger = logging.getLogger(__name__)

HISTORY_STORAGE_KEY = "cfd_invoice_history"

_BASE36_ALPHABET = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def _weak_id() -> str:
    # Not collision-proof; the timestamp suffix keeps practical uniqueness
    prefix = "".join(random.choice(_BASE36_ALPHABET) for _ in range(13))
    return prefix + _to_base36(int(time.time() * 1000))


def generate_entry_id(strong_only: bool = False) -> str:
    """Generate a unique history entry id.

    Uses a random UUID. Without an OS randomness source, falls back to a
    pseudo-random string plus the current timestamp, unless ``strong_only``
    is set.

    Raises:
        HistoryStorageError: If ``strong_only`` is set and no strong source exists
    """
    try:
        return str(uuid.uuid4())
    except NotImplementedError as e:
        if strong_only:
            raise HistoryStorageError("No strong randomness source available for history ids", e)
        logger.warning("No strong randomness source available; using weak history ids")
        return _weak_id()


def now_millis() -> int:
    return int(time.time() * 1000)


class HistoryStore:
    """
    Ordered collection of past results, most recent first.

    The whole collection lives under a single storage key and every mutation
    rewrites it. Entries are never modified once appended.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        storage_key: str = HISTORY_STORAGE_KEY,
        strong_ids_only: bool = False,
    ):
        self.storage = storage
        self.storage_key = storage_key
        self.strong_ids_only = strong_ids_only
        self._entries: List[HistoryEntry] = []

    @property
    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, entry_id: str) -> Optional[HistoryEntry]:
        return next((entry for entry in self._entries if entry.id == entry_id), None)

    def load(self) -> List[HistoryEntry]:
        """Load persisted history, replacing the in-memory collection.

        Absent or corrupt data yields an empty history; this never raises.
        """
        self._entries = self._read()
        logger.info(f"Loaded {len(self._entries)} history entries")
        return self.entries

    def _read(self) -> List[HistoryEntry]:
        try:
            raw = self.storage.get(self.storage_key)
        except Exception as e:
            logger.error(f"Failed to read history: {e}")
            return []

        if not raw:
            return []

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse history: {e}")
            return []

        if not isinstance(payload, list):
            logger.error(f"Failed to parse history: expected a list, got {type(payload).__name__}")
            return []

        entries = []
        for index, item in enumerate(payload):
            try:
                entries.append(HistoryEntry.model_validate(item))
            except PydanticValidationError as e:
                logger.warning(f"Skipping unreadable history entry {index}: {e.error_count()} errors")
        return entries

    def _persist(self, entries: List[HistoryEntry]) -> None:
        document = json.dumps(
            [entry.model_dump(by_alias=True, mode="json") for entry in entries],
            ensure_ascii=False,
        )
        try:
            self.storage.set(self.storage_key, document)
        except Exception as e:
            raise HistoryStorageError(f"Unable to save history: {e}", e) from e

    def append(self, record: BillRecord) -> HistoryEntry:
        """Create an entry for ``record``, prepend it and persist the history."""
        entry = HistoryEntry(
            id=generate_entry_id(self.strong_ids_only),
            timestamp=now_millis(),
            data=record,
        )
        updated = [entry, *self._entries]
        self._persist(updated)
        self._entries = updated
        logger.info(f"Saved history entry {entry.id} ({record.document_type})")
        return entry

    def remove(self, entry_id: str) -> None:
        """Remove one entry; an unknown id leaves the history unchanged."""
        updated = [entry for entry in self._entries if entry.id != entry_id]
        if len(updated) == len(self._entries):
            logger.debug(f"No history entry {entry_id} to remove")
            return
        self._persist(updated)
        self._entries = updated
        logger.info(f"Removed history entry {entry_id}")

    def clear(self) -> None:
        """Empty the history and delete the persisted document."""
        try:
            self.storage.delete(self.storage_key)
        except Exception as e:
            raise HistoryStorageError(f"Unable to clear history: {e}", e) from e
        self._entries = []
        logger.info("Cleared history")
