import asyncio

from _helpers import DummyRedis, make_snapshot

from wild_oasis.booking.workflow import BookingPhase, BookingWorkflow
from wild_oasis.session.store import InMemoryWorkflowStore, RedisWorkflowStore


def test_in_memory_store_keeps_live_object():
    store = InMemoryWorkflowStore()
    workflow = BookingWorkflow(make_snapshot(), session_id="abc")

    async def scenario():
        await store.set(workflow)
        found = await store.get("abc")
        await store.delete("abc")
        return found, await store.get("abc")

    found, missing = asyncio.run(scenario())

    assert found is workflow
    assert missing is None


def test_redis_store_serialises_with_ttl():
    redis_client = DummyRedis()
    store = RedisWorkflowStore(redis_client, ttl_seconds=600)
    workflow = BookingWorkflow(make_snapshot(), session_id="abc")

    async def scenario():
        await store.set(workflow)
        return await store.get("abc")

    restored = asyncio.run(scenario())

    assert redis_client.ttls["oasis:booking:abc"] == 600
    assert restored is not workflow
    assert restored.session_id == "abc"
    assert restored.phase == BookingPhase.DRAFT


def test_redis_store_drops_unreadable_payload():
    redis_client = DummyRedis()
    redis_client.data["oasis:booking:bad"] = b"{not json"
    store = RedisWorkflowStore(redis_client, ttl_seconds=600)

    assert asyncio.run(store.get("bad")) is None
    assert "oasis:booking:bad" not in redis_client.data
