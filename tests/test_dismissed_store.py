"""
Unit tests for dismissed-id persistence
"""
import json
import pytest
from unittest.mock import AsyncMock, Mock
from app.config import settings
from app.database import DatabaseManager
from app.exceptions import DataUnavailableError
from app.services.dismissed_store import (
    DISMISSED_KEY,
    DatabaseDismissedStore,
    InMemoryDismissedStore,
    JsonFileDismissedStore,
    decode_ids,
)


class TestDecodeIds:
    """Test tolerant decoding of persisted id lists"""

    def test_valid_list(self):
        """Test a JSON list decodes in order without duplicates"""
        assert decode_ids('["b", "a", "b"]') == ["b", "a"]

    def test_corrupt_json(self):
        """Test corrupt JSON yields an empty list"""
        assert decode_ids("[not json") == []

    def test_non_list_value(self):
        """Test a non-list value yields an empty list"""
        assert decode_ids('{"ids": ["a"]}') == []
        assert decode_ids(None) == []

    def test_non_string_items_dropped(self):
        """Test non-string entries are ignored"""
        assert decode_ids(["a", 1, None, "c"]) == ["a", "c"]


class TestInMemoryDismissedStore:
    """Test the in-memory store"""

    @pytest.mark.asyncio
    async def test_save_serializes_list(self):
        """Test saved ids are kept as a JSON list"""
        store = InMemoryDismissedStore()

        await store.save(["n1", "n2"])

        assert json.loads(store.raw) == ["n1", "n2"]
        assert await store.load() == ["n1", "n2"]
        assert store.save_count == 1


class TestJsonFileDismissedStore:
    """Test the JSON file store"""

    @pytest.mark.asyncio
    async def test_missing_file_loads_empty(self, tmp_path):
        """Test a missing file yields no ids"""
        store = JsonFileDismissedStore(str(tmp_path / "missing.json"))

        assert await store.load() == []

    @pytest.mark.asyncio
    async def test_save_and_load(self, tmp_path):
        """Test ids survive a new store instance under the fixed key"""
        path = tmp_path / "dismissed.json"
        await JsonFileDismissedStore(str(path)).save(["n2", "n1"])

        assert await JsonFileDismissedStore(str(path)).load() == ["n2", "n1"]
        assert json.loads(path.read_text())[DISMISSED_KEY] == ["n2", "n1"]

    @pytest.mark.asyncio
    async def test_other_keys_preserved(self, tmp_path):
        """Test saving keeps unrelated keys in the file"""
        path = tmp_path / "dismissed.json"
        path.write_text(json.dumps({"other": 1}))

        await JsonFileDismissedStore(str(path)).save(["n1"])

        assert json.loads(path.read_text()) == {"other": 1, DISMISSED_KEY: ["n1"]}

    @pytest.mark.asyncio
    async def test_unreadable_file_raises(self, tmp_path):
        """Test an unreadable file is reported instead of read as no ids"""
        path = tmp_path / "dismissed.json"
        path.mkdir()

        with pytest.raises(DataUnavailableError):
            await JsonFileDismissedStore(str(path)).load()

    @pytest.mark.asyncio
    async def test_viewer_keys_are_independent(self, tmp_path):
        """Test two keys in one file keep their own ids"""
        path = str(tmp_path / "dismissed.json")
        await JsonFileDismissedStore(path, key="a").save(["n1"])
        await JsonFileDismissedStore(path, key="b").save(["n2"])

        assert await JsonFileDismissedStore(path, key="a").load() == ["n1"]
        assert await JsonFileDismissedStore(path, key="b").load() == ["n2"]

    @pytest.mark.asyncio
    async def test_corrupt_file_loads_empty(self, tmp_path):
        """Test a corrupt file yields no ids"""
        path = tmp_path / "dismissed.json"
        path.write_text("{{{")

        assert await JsonFileDismissedStore(str(path)).load() == []


class TestDatabaseDismissedStore:
    """Test the database-backed store"""

    @pytest.mark.asyncio
    async def test_save_and_load(self, tmp_path, monkeypatch):
        """Test ids round-trip through the ledger_state table"""
        monkeypatch.setattr(settings, "DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
        manager = DatabaseManager()
        store = DatabaseDismissedStore(manager)

        try:
            assert await store.load() == []
            await store.save(["n1"])
            await store.save(["n1", "n2"])
            assert await store.load() == ["n1", "n2"]
        finally:
            await manager.close()

    @pytest.mark.asyncio
    async def test_database_error_is_not_empty_state(self):
        """Test an unreachable database is reported instead of read as no ids"""
        manager = Mock()
        manager.get_session.side_effect = RuntimeError("database is locked")

        with pytest.raises(DataUnavailableError):
            await DatabaseDismissedStore(manager).load()

    @pytest.mark.asyncio
    async def test_database_error_on_save_is_logged(self):
        """Test save failures do not raise"""
        manager = Mock()
        session_context = AsyncMock()
        session_context.__aenter__.side_effect = Exception("database down")
        manager.get_session.return_value = session_context

        await DatabaseDismissedStore(manager).save(["n1"])
