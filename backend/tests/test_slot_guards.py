"""
Tests for slot guard strategies and the allocator that uses them.
"""

import pytest

from arena.core.errors import SlotConflict, StoreUnavailable
from arena.models.booking import Booking
from arena.services.guards import OptimisticSlotGuard, RedisSlotGuard, build_slot_guard, slot_key
from arena.services.slot_allocator import SlotAllocator
from arena.stores.memory import InMemoryBookingStore

from conftest import TOMORROW

KEY = slot_key(1, TOMORROW, 18)


class FakeRedis:
    def __init__(self):
        self.data = {}

    async def set(self, key, value, nx=False, px=None):
        if nx and key in self.data:
            return None
        self.data[key] = value
        return True

    async def delete(self, key):
        self.data.pop(key, None)


class BrokenRedis:
    async def set(self, *args, **kwargs):
        raise ConnectionError("redis down")

    async def delete(self, key):
        raise ConnectionError("redis down")


def _use_redis(monkeypatch, client):
    async def fake_get_redis():
        return client

    monkeypatch.setattr("arena.services.guards.redis_guard.get_redis", fake_get_redis)


def _booking(hour: int = 18) -> Booking:
    return Booking(
        venue_id=1,
        user_id=1,
        booking_date=TOMORROW,
        slot_start=f"{hour:02d}:00",
        slot_hour=hour,
        duration=1,
        total_amount=2400,
        status="pending",
    )


def test_slot_key_format():
    assert KEY == "slot:1:2026-03-03:18"


def test_build_slot_guard():
    assert isinstance(build_slot_guard("redis"), RedisSlotGuard)
    assert isinstance(build_slot_guard("optimistic"), OptimisticSlotGuard)
    assert isinstance(build_slot_guard("unknown"), OptimisticSlotGuard)


@pytest.mark.asyncio
async def test_redis_guard_admits_first_claim_only(monkeypatch):
    client = FakeRedis()
    _use_redis(monkeypatch, client)
    guard = RedisSlotGuard(ttl_ms=1000)

    assert await guard.acquire(KEY) is True
    assert await guard.acquire(KEY) is False

    await guard.release(KEY)
    assert await guard.acquire(KEY) is True


@pytest.mark.asyncio
@pytest.mark.parametrize("client", [None, BrokenRedis()])
async def test_redis_guard_fails_open(monkeypatch, client):
    _use_redis(monkeypatch, client)
    guard = RedisSlotGuard(ttl_ms=1000)

    assert await guard.acquire(KEY) is True
    assert await guard.acquire(KEY) is True
    await guard.release(KEY)


@pytest.mark.asyncio
async def test_allocator_rejects_when_guard_holds_slot(monkeypatch):
    client = FakeRedis()
    _use_redis(monkeypatch, client)
    allocator = SlotAllocator(InMemoryBookingStore(), RedisSlotGuard(ttl_ms=1000))

    await allocator.try_reserve(_booking())
    with pytest.raises(SlotConflict):
        await allocator.try_reserve(_booking())


@pytest.mark.asyncio
async def test_allocator_releases_marker_when_insert_fails(monkeypatch):
    client = FakeRedis()
    _use_redis(monkeypatch, client)

    class DownStore(InMemoryBookingStore):
        async def atomic_create(self, booking):
            raise StoreUnavailable()

    allocator = SlotAllocator(DownStore(), RedisSlotGuard(ttl_ms=1000))
    with pytest.raises(StoreUnavailable):
        await allocator.try_reserve(_booking())
    assert KEY not in client.data


@pytest.mark.asyncio
async def test_db_decides_even_when_guard_admits():
    store = InMemoryBookingStore()
    allocator = SlotAllocator(store, OptimisticSlotGuard())

    await allocator.try_reserve(_booking())
    with pytest.raises(SlotConflict):
        await allocator.try_reserve(_booking())
    await allocator.try_reserve(_booking(hour=19))
