"""Redis read cache for decision lists, single records and related lists.

Cache keys:
- cache:decisions:{actor_id}:all - an actor's full collection
- cache:decision:{decision_id} - one record
- cache:decision_links:{decision_id} - resolved related decisions

Entries are dropped by subscribing to the change event bus rather than by the
mutation code. When Redis is unavailable or the cache is disabled every read
is a miss and every write a no-op.
"""

import json
from typing import Any, Optional

from pydantic import TypeAdapter

from config import get_settings
from db.redis import get_redis
from models.schemas import DecisionRecord, LinkedDecision
from services.events import ChangeEvent, ChangeEventBus, ChangeKind
from utils.logging import get_logger

logger = get_logger(__name__)

CACHE_PREFIXES = {
    "collection": "cache:decisions",
    "record": "cache:decision",
    "links": "cache:decision_links",
}

_records_adapter = TypeAdapter(list[DecisionRecord])
_related_adapter = TypeAdapter(list[LinkedDecision])


class DecisionReadCache:
    def __init__(self, redis_client=None):
        self._redis = redis_client
        self._settings = get_settings()
        self._enabled = self._settings.read_cache_enabled

    def _client(self):
        if not self._enabled:
            return None
        return self._redis if self._redis is not None else get_redis()

    @staticmethod
    def collection_key(actor_id: str) -> str:
        return f"{CACHE_PREFIXES['collection']}:{actor_id}:all"

    @staticmethod
    def record_key(decision_id: str) -> str:
        return f"{CACHE_PREFIXES['record']}:{decision_id}"

    @staticmethod
    def links_key(decision_id: str) -> str:
        return f"{CACHE_PREFIXES['links']}:{decision_id}"

    async def _get(self, key: str) -> Optional[Any]:
        client = self._client()
        if client is None:
            return None
        try:
            cached = await client.get(key)
        except Exception as e:
            logger.warning(f"Cache read error for {key}: {e}")
            return None
        if cached is None:
            logger.debug(f"Cache miss: {key}")
            return None
        logger.debug(f"Cache hit: {key}")
        return json.loads(cached)

    async def _set(self, key: str, value: str, ttl: int) -> bool:
        client = self._client()
        if client is None:
            return False
        try:
            await client.setex(key, ttl, value)
            return True
        except Exception as e:
            logger.warning(f"Cache write error for {key}: {e}")
            return False

    async def _delete(self, *keys: str) -> int:
        client = self._client()
        if client is None or not keys:
            return 0
        try:
            return await client.delete(*keys)
        except Exception as e:
            logger.warning(f"Cache delete error for {keys}: {e}")
            return 0

    async def _delete_pattern(self, pattern: str) -> int:
        client = self._client()
        if client is None:
            return 0
        deleted = 0
        try:
            # SCAN rather than KEYS so large keyspaces don't block Redis
            cursor = 0
            while True:
                cursor, keys = await client.scan(cursor, match=pattern, count=100)
                if keys:
                    deleted += await client.delete(*keys)
                if cursor == 0:
                    break
        except Exception as e:
            logger.warning(f"Cache invalidation error for {pattern}: {e}")
        return deleted

    # -- collection -----------------------------------------------------

    async def get_collection(self, actor_id: str) -> Optional[list[DecisionRecord]]:
        data = await self._get(self.collection_key(actor_id))
        return None if data is None else _records_adapter.validate_python(data)

    async def set_collection(self, actor_id: str, records: list[DecisionRecord]) -> bool:
        return await self._set(
            self.collection_key(actor_id),
            _records_adapter.dump_json(records).decode(),
            self._settings.collection_cache_ttl,
        )

    # -- single record --------------------------------------------------

    async def get_record(self, decision_id: str) -> Optional[DecisionRecord]:
        data = await self._get(self.record_key(decision_id))
        return None if data is None else DecisionRecord.model_validate(data)

    async def set_record(self, record: DecisionRecord) -> bool:
        return await self._set(
            self.record_key(record.id),
            record.model_dump_json(),
            self._settings.record_cache_ttl,
        )

    # -- related decisions ----------------------------------------------

    async def get_related(self, decision_id: str) -> Optional[list[LinkedDecision]]:
        data = await self._get(self.links_key(decision_id))
        return None if data is None else _related_adapter.validate_python(data)

    async def set_related(self, decision_id: str, related: list[LinkedDecision]) -> bool:
        return await self._set(
            self.links_key(decision_id),
            _related_adapter.dump_json(related).decode(),
            self._settings.links_cache_ttl,
        )

    # -- invalidation ---------------------------------------------------

    async def handle_change(self, event: ChangeEvent) -> None:
        """Drop every entry ``event`` may have made stale."""
        if event.kind == ChangeKind.LINKS_CHANGED:
            deleted = await self._delete(self.links_key(event.decision_id))
        else:
            # Titles and deletions show up in other decisions' related lists
            deleted = await self._delete(self.record_key(event.decision_id))
            deleted += await self._delete_pattern(f"{CACHE_PREFIXES['collection']}:*")
            deleted += await self._delete_pattern(f"{CACHE_PREFIXES['links']}:*")
        if deleted:
            logger.info(
                f"Invalidated {deleted} cache entries after {event.kind.value} "
                f"{event.decision_id}"
            )

    def attach(self, bus: ChangeEventBus) -> "DecisionReadCache":
        bus.subscribe(self.handle_change)
        return self


_read_cache: DecisionReadCache | None = None


def get_read_cache() -> DecisionReadCache:
    global _read_cache
    if _read_cache is None:
        _read_cache = DecisionReadCache()
    return _read_cache
