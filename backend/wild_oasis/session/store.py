from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Any

import redis.asyncio as redis

from wild_oasis.booking.workflow import BookingWorkflow
from wild_oasis.core.config import get_settings

logger = logging.getLogger(__name__)


class WorkflowStore:
    async def get(self, session_id: str) -> BookingWorkflow | None:
        raise NotImplementedError

    async def set(self, workflow: BookingWorkflow) -> None:
        raise NotImplementedError

    async def delete(self, session_id: str) -> None:
        raise NotImplementedError

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


class InMemoryWorkflowStore(WorkflowStore):
    """Keeps live workflow objects; a submission in flight stays visible."""

    def __init__(self) -> None:
        self._storage: dict[str, BookingWorkflow] = {}

    async def get(self, session_id: str) -> BookingWorkflow | None:
        return self._storage.get(session_id)

    async def set(self, workflow: BookingWorkflow) -> None:
        self._storage[workflow.session_id] = workflow

    async def delete(self, session_id: str) -> None:
        self._storage.pop(session_id, None)


class RedisWorkflowStore(WorkflowStore):
    """Booking sessions serialised into Redis with a TTL."""

    key_prefix = "oasis:booking:"

    def __init__(self, redis_client: redis.Redis, ttl_seconds: int) -> None:
        self._redis = redis_client
        self._ttl_seconds = ttl_seconds

    async def get(self, session_id: str) -> BookingWorkflow | None:
        data = await self._redis.get(self._build_key(session_id))
        if data is None:
            return None
        decoded = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else str(data)
        try:
            raw: dict[str, Any] = json.loads(decoded)
            return BookingWorkflow.from_dict(raw)
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Dropping unreadable booking session %s: %s", session_id, exc)
            await self.delete(session_id)
            return None

    async def set(self, workflow: BookingWorkflow) -> None:
        payload = json.dumps(workflow.to_dict(), ensure_ascii=False).encode("utf-8")
        await self._redis.setex(self._build_key(workflow.session_id), self._ttl_seconds, payload)

    async def delete(self, session_id: str) -> None:
        await self._redis.delete(self._build_key(session_id))

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except redis.RedisError:
            return False

    async def close(self) -> None:
        await self._redis.aclose()

    def _build_key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"


@lru_cache(maxsize=1)
def get_workflow_store() -> WorkflowStore:
    settings = get_settings()
    if not settings.use_redis_state_store:
        logger.info("Using in-memory store for booking sessions")
        return InMemoryWorkflowStore()
    client = redis.Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=False)
    logger.info("Using Redis store for booking sessions")
    return RedisWorkflowStore(client, ttl_seconds=settings.session_ttl_seconds)


__all__ = [
    "WorkflowStore",
    "InMemoryWorkflowStore",
    "RedisWorkflowStore",
    "get_workflow_store",
]
