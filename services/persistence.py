"""Persistence Service and Link Store contracts with SQLAlchemy implementations.

The services depend only on ``DecisionStore`` and ``LinkStore``. Any backend
that honours the contracts can be swapped in:

- a missing id on ``update``/``remove``/``remove_link`` raises ``NotFoundError``
- ``get_by_id`` returns ``None`` for a missing id
- every transport failure raises ``StoreUnavailableError``
- ``find_by_from``/``find_by_to`` return links in a stable order (oldest first)
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from models.errors import DecisionValidationError, NotFoundError, StoreUnavailableError
from models.postgres import DecisionLinkRow, DecisionRecordRow
from models.schemas import DecisionInsert, DecisionLink, DecisionRecord, RelationshipType
from utils.logging import get_logger

logger = get_logger(__name__)


class DecisionStore(ABC):
    """Durable keyed storage of decision records."""

    @abstractmethod
    async def get_all(self, owner_id: Optional[str] = None) -> list[DecisionRecord]:
        """Return every record (optionally one owner's), newest first."""
        ...

    @abstractmethod
    async def get_by_id(self, decision_id: str) -> Optional[DecisionRecord]:
        ...

    @abstractmethod
    async def insert(self, data: DecisionInsert) -> DecisionRecord:
        ...

    @abstractmethod
    async def update(self, decision_id: str, fields: dict[str, Any]) -> DecisionRecord:
        """Apply ``fields`` to the record and refresh ``updated_at``."""
        ...

    @abstractmethod
    async def remove(self, decision_id: str) -> None:
        """Delete the record. Links referencing it are the store's to clean up."""
        ...


class LinkStore(ABC):
    """Durable keyed storage of directed, typed decision links."""

    @abstractmethod
    async def find_by_from(self, decision_id: str) -> list[DecisionLink]:
        ...

    @abstractmethod
    async def find_by_to(self, decision_id: str) -> list[DecisionLink]:
        ...

    @abstractmethod
    async def insert_link(
        self,
        from_id: str,
        to_id: str,
        relationship_type: RelationshipType,
        confidence_score: Optional[float] = None,
        created_by: Optional[str] = None,
    ) -> DecisionLink:
        ...

    @abstractmethod
    async def remove_link(self, link_id: str) -> None:
        ...


@asynccontextmanager
async def _store_errors(operation: str):
    """Translate driver/ORM failures into ``StoreUnavailableError``."""
    try:
        yield
    except (NotFoundError, DecisionValidationError):
        raise
    except (SQLAlchemyError, ConnectionError, TimeoutError, OSError) as e:
        logger.error(f"{operation} failed: {type(e).__name__}: {e}")
        raise StoreUnavailableError(f"Decision store unavailable during {operation}") from e


def _row_values(data: DecisionInsert) -> dict[str, Any]:
    # JSON columns hold plain dicts, not pydantic models
    return data.model_dump(mode="json")


class SqlDecisionStore(DecisionStore):
    """``DecisionStore`` over the ``decision_records`` table."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def get_all(self, owner_id: Optional[str] = None) -> list[DecisionRecord]:
        stmt = select(DecisionRecordRow).order_by(DecisionRecordRow.created_at.desc())
        if owner_id is not None:
            stmt = stmt.where(DecisionRecordRow.owner_id == owner_id)
        async with _store_errors("get_all"):
            async with self._session_maker() as session:
                result = await session.execute(stmt)
                rows = result.scalars().all()
        return [DecisionRecord.model_validate(row) for row in rows]

    async def get_by_id(self, decision_id: str) -> Optional[DecisionRecord]:
        async with _store_errors("get_by_id"):
            async with self._session_maker() as session:
                row = await session.get(DecisionRecordRow, decision_id)
        return DecisionRecord.model_validate(row) if row is not None else None

    async def insert(self, data: DecisionInsert) -> DecisionRecord:
        async with _store_errors("insert"):
            async with self._session_maker() as session:
                row = DecisionRecordRow(**_row_values(data))
                session.add(row)
                await session.commit()
                await session.refresh(row)
        return DecisionRecord.model_validate(row)

    async def update(self, decision_id: str, fields: dict[str, Any]) -> DecisionRecord:
        async with _store_errors("update"):
            async with self._session_maker() as session:
                row = await session.get(DecisionRecordRow, decision_id)
                if row is None:
                    raise NotFoundError("Decision", decision_id)
                for name, value in fields.items():
                    setattr(row, name, value)
                await session.commit()
                await session.refresh(row)
        return DecisionRecord.model_validate(row)

    async def remove(self, decision_id: str) -> None:
        async with _store_errors("remove"):
            async with self._session_maker() as session:
                row = await session.get(DecisionRecordRow, decision_id)
                if row is None:
                    raise NotFoundError("Decision", decision_id)
                await session.delete(row)
                await session.commit()


class SqlLinkStore(LinkStore):
    """``LinkStore`` over the ``decision_links`` table."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def _find(self, column, decision_id: str, operation: str) -> list[DecisionLink]:
        stmt = (
            select(DecisionLinkRow)
            .where(column == decision_id)
            .order_by(DecisionLinkRow.created_at, DecisionLinkRow.id)
        )
        async with _store_errors(operation):
            async with self._session_maker() as session:
                result = await session.execute(stmt)
                rows = result.scalars().all()
        return [DecisionLink.model_validate(row) for row in rows]

    async def find_by_from(self, decision_id: str) -> list[DecisionLink]:
        return await self._find(DecisionLinkRow.from_id, decision_id, "find_by_from")

    async def find_by_to(self, decision_id: str) -> list[DecisionLink]:
        return await self._find(DecisionLinkRow.to_id, decision_id, "find_by_to")

    async def insert_link(
        self,
        from_id: str,
        to_id: str,
        relationship_type: RelationshipType,
        confidence_score: Optional[float] = None,
        created_by: Optional[str] = None,
    ) -> DecisionLink:
        async with _store_errors("insert_link"):
            async with self._session_maker() as session:
                row = DecisionLinkRow(
                    from_id=from_id,
                    to_id=to_id,
                    relationship_type=RelationshipType(relationship_type),
                    confidence_score=confidence_score,
                    created_by=created_by,
                )
                session.add(row)
                try:
                    await session.commit()
                except IntegrityError as e:
                    await session.rollback()
                    raise DecisionValidationError(
                        "Link endpoints must be two distinct, existing decisions"
                    ) from e
                await session.refresh(row)
        return DecisionLink.model_validate(row)

    async def remove_link(self, link_id: str) -> None:
        async with _store_errors("remove_link"):
            async with self._session_maker() as session:
                row = await session.get(DecisionLinkRow, link_id)
                if row is None:
                    raise NotFoundError("Link", link_id)
                await session.delete(row)
                await session.commit()
