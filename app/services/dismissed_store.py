"""
Persistence backends for the dismissed-notification id list
"""
import asyncio
import json
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

from app.exceptions import DataUnavailableError
from app.logging_config import logger
from app.models import LedgerEntry

DISMISSED_KEY = "student_notifications_dismissed"

# Viewer stores share one file; writes are read-modify-write
_FILE_LOCK = threading.Lock()


def decode_ids(raw: Any) -> List[str]:
    """
    Decode a persisted id list, tolerating corruption

    Args:
        raw: JSON text or an already-decoded value

    Returns:
        The ordered, de-duplicated ids; an empty list when the value is not a list
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Corrupt dismissed-id list, starting empty: {str(e)}")
            return []

    if not isinstance(raw, list):
        if raw is not None:
            logger.warning(f"Dismissed-id list has unexpected type {type(raw).__name__}, starting empty")
        return []

    return list(dict.fromkeys(item for item in raw if isinstance(item, str)))


class DismissedStore(ABC):
    """Key-value persistence for the ledger's dismissed ids"""

    def __init__(self, key: str = DISMISSED_KEY):
        self.key = key

    @abstractmethod
    async def load(self) -> List[str]:
        """
        Read the persisted ids

        Corrupt or missing state yields an empty list.

        Raises:
            DataUnavailableError: If the backing storage cannot be reached
        """

    @abstractmethod
    async def save(self, ids: List[str]) -> None:
        """Persist the ids in order"""


class InMemoryDismissedStore(DismissedStore):
    """Process-local store holding the serialized list, for tests and previews"""

    def __init__(self, initial: Optional[str] = None, key: str = DISMISSED_KEY):
        super().__init__(key)
        self.raw = initial
        self.save_count = 0

    async def load(self) -> List[str]:
        return decode_ids(self.raw)

    async def save(self, ids: List[str]) -> None:
        self.raw = json.dumps(list(ids))
        self.save_count += 1


class JsonFileDismissedStore(DismissedStore):
    """Stores {key: [ids]} in a local JSON file shared by every viewer key.

    File access runs in a worker thread so the event loop never blocks.
    """

    def __init__(self, path: str, key: str = DISMISSED_KEY):
        super().__init__(key)
        self.path = Path(path)

    def _read_document(self) -> dict:
        """
        Read the whole file

        Raises:
            DataUnavailableError: If the file exists but cannot be read
        """
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning(f"Corrupt dismissed-id file {self.path}, starting empty: {str(e)}")
            return {}
        except OSError as e:
            raise DataUnavailableError("dismissed", f"Could not read {self.path}: {str(e)}") from e
        return document if isinstance(document, dict) else {}

    def _write_ids(self, ids: List[str]):
        with _FILE_LOCK:
            document = self._read_document()
            document[self.key] = list(ids)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(document, f, indent=2)

    async def load(self) -> List[str]:
        document = await asyncio.to_thread(self._read_document)
        ids = decode_ids(document.get(self.key))
        logger.info(f"Loaded {len(ids)} dismissed notification ids from {self.path}")
        return ids

    async def save(self, ids: List[str]) -> None:
        try:
            await asyncio.to_thread(self._write_ids, ids)
            logger.debug(f"Saved {len(ids)} dismissed notification ids")
        except (OSError, DataUnavailableError) as e:
            logger.error(f"Could not save dismissed-id file {self.path}: {str(e)}")


class DatabaseDismissedStore(DismissedStore):
    """Stores the serialized list in the ledger_state table"""

    def __init__(self, db_manager, key: str = DISMISSED_KEY):
        super().__init__(key)
        self.db_manager = db_manager

    async def load(self) -> List[str]:
        try:
            async with self.db_manager.get_session() as session:
                entry = await session.get(LedgerEntry, self.key)
        except Exception as e:
            logger.error(f"Error loading dismissed ids from database: {str(e)}")
            raise DataUnavailableError("dismissed", f"Database read failed: {str(e)}") from e
        return decode_ids(entry.value) if entry is not None else []

    async def save(self, ids: List[str]) -> None:
        try:
            async with self.db_manager.get_session() as session:
                entry = await session.get(LedgerEntry, self.key)
                if entry is None:
                    entry = LedgerEntry(key=self.key)
                entry.value = json.dumps(list(ids))
                entry.updated_at = datetime.now(timezone.utc)
                session.add(entry)
        except Exception as e:
            logger.error(f"Error saving dismissed ids to database: {str(e)}")
