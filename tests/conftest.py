"""Shared pytest fixtures for Decision Memory API tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from tests.mocks import InMemoryDecisionStore, InMemoryLinkStore, RecordingBus

# ============================================================================
# PostgreSQL Session Fixtures
# ============================================================================


@pytest.fixture
def mock_postgres_session():
    """Mock PostgreSQL async session for unit tests.

    Provides a mock SQLAlchemy async session with the operations the stores
    use: execute, get, add, delete, commit, rollback and refresh.

    Example:
        async def test_get_all(mock_postgres_session, mock_postgres_result_factory):
            mock_postgres_session.execute.return_value = mock_postgres_result_factory(
                scalars_all=[row]
            )
    """
    session = MagicMock()

    result = MagicMock()
    result.scalars = MagicMock(return_value=MagicMock(all=MagicMock(return_value=[])))

    session.execute = AsyncMock(return_value=result)
    session.get = AsyncMock(return_value=None)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.refresh = AsyncMock()
    session.add = MagicMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()

    # Context manager support
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=None)

    return session


@pytest.fixture
def mock_session_maker(mock_postgres_session):
    """Callable returning the mock session, like ``async_sessionmaker``."""
    return MagicMock(return_value=mock_postgres_session)


@pytest.fixture
def mock_postgres_result_factory():
    """Factory for creating mock PostgreSQL query results."""

    def _create_result(scalars_all=None):
        result = MagicMock()
        result.scalars = MagicMock(
            return_value=MagicMock(all=MagicMock(return_value=scalars_all or []))
        )
        return result

    return _create_result


# ============================================================================
# Redis Fixtures
# ============================================================================


@pytest.fixture
def mock_redis():
    """Mock async Redis client with an empty keyspace."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.setex = AsyncMock(return_value=True)
    redis.delete = AsyncMock(return_value=1)
    redis.scan = AsyncMock(return_value=(0, []))
    redis.ping = AsyncMock(return_value=True)
    return redis


# ============================================================================
# Store and Event Fixtures
# ============================================================================


@pytest.fixture
def decision_store():
    return InMemoryDecisionStore()


@pytest.fixture
def link_store(decision_store):
    store = InMemoryLinkStore()
    decision_store.link_store = store
    return store


@pytest.fixture
def event_bus():
    return RecordingBus()
