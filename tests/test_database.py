"""
Unit tests for database connection management
"""
import pytest
from unittest.mock import Mock, patch, AsyncMock
from sqlalchemy.ext.asyncio import AsyncSession
from app.config import settings
from app.database import DatabaseManager
from app.models import LedgerEntry


@pytest.fixture
def db_manager():
    """Create a fresh database manager instance for testing"""
    return DatabaseManager()


@pytest.fixture
def sqlite_url(tmp_path, monkeypatch):
    """Point the manager at a throwaway SQLite file"""
    url = f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}"
    monkeypatch.setattr(settings, "DATABASE_URL", url)
    return url


@pytest.mark.asyncio
async def test_database_initialization(db_manager, sqlite_url):
    """Test database manager initialization creates the ledger table"""
    await db_manager.initialize()

    try:
        assert db_manager._initialized is True
        assert db_manager.engine is not None
        assert db_manager.async_session_maker is not None

        # Idempotent
        engine = db_manager.engine
        await db_manager.initialize()
        assert db_manager.engine is engine

        async with db_manager.get_session() as session:
            session.add(LedgerEntry(key="sample", value='["a"]'))

        async with db_manager.get_session() as session:
            entry = await session.get(LedgerEntry, "sample")
            assert entry.value == '["a"]'
    finally:
        await db_manager.close()


@pytest.mark.asyncio
async def test_database_close(db_manager):
    """Test closing database connections"""
    mock_engine = AsyncMock()
    db_manager.engine = mock_engine
    db_manager._initialized = True

    await db_manager.close()

    assert db_manager._initialized is False
    mock_engine.dispose.assert_called_once()


@pytest.mark.asyncio
async def test_get_session_commits(db_manager):
    """Test a session is committed and closed"""
    mock_session = AsyncMock(spec=AsyncSession)
    mock_session_context = AsyncMock()
    mock_session_context.__aenter__.return_value = mock_session
    mock_session_context.__aexit__.return_value = None

    db_manager.async_session_maker = Mock(return_value=mock_session_context)
    db_manager._initialized = True

    async with db_manager.get_session() as session:
        assert session == mock_session

    mock_session.commit.assert_called_once()
    mock_session.close.assert_called_once()


@pytest.mark.asyncio
async def test_get_session_rollback_on_error(db_manager):
    """Test that session rolls back on error"""
    mock_session = AsyncMock(spec=AsyncSession)
    mock_session_context = AsyncMock()
    mock_session_context.__aenter__.return_value = mock_session
    mock_session_context.__aexit__.return_value = None

    db_manager.async_session_maker = Mock(return_value=mock_session_context)
    db_manager._initialized = True

    with pytest.raises(ValueError):
        async with db_manager.get_session():
            raise ValueError("Test error")

    mock_session.rollback.assert_called_once()
    mock_session.commit.assert_not_called()
    mock_session.close.assert_called_once()


@pytest.mark.asyncio
async def test_health_check_success(db_manager, sqlite_url):
    """Test successful health check"""
    try:
        assert await db_manager.health_check() is True
    finally:
        await db_manager.close()


@pytest.mark.asyncio
async def test_health_check_failure(db_manager):
    """Test failed health check"""
    with patch.object(db_manager, 'get_session') as mock_get_session:
        mock_get_session.side_effect = Exception("Database connection failed")

        result = await db_manager.health_check()
        assert result is False


@pytest.mark.asyncio
async def test_init_database():
    """Test the init script initializes and then closes the manager"""
    from app import db_init

    with patch.object(db_init, 'db_manager') as mock_manager:
        mock_manager.initialize = AsyncMock()
        mock_manager.close = AsyncMock()

        await db_init.init_database()

        mock_manager.initialize.assert_awaited_once()
        mock_manager.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_check_database_health_failure():
    """Test the health script reports initialization failures"""
    from app import db_init

    with patch.object(db_init, 'db_manager') as mock_manager:
        mock_manager.initialize = AsyncMock(side_effect=Exception("no database"))
        mock_manager.close = AsyncMock()

        assert await db_init.check_database_health() is False
        mock_manager.close.assert_awaited_once()
