from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from threadanswer.quota import REDIS_QUOTA_TTL_SECONDS, InMemoryQuotaStore, RedisQuotaStore, utc_date_key


class FakePipeline:
    """Queues INCR/EXPIRE and applies them together on ``execute``."""

    def __init__(self, client: FakeRedis, transaction: bool) -> None:
        self.client = client
        self.transaction = transaction
        self.commands: list[tuple] = []

    def incr(self, key: str) -> FakePipeline:
        self.commands.append(("incr", key))
        return self

    def expire(self, key: str, seconds: int, nx: bool = False) -> FakePipeline:
        self.commands.append(("expire", key, seconds, nx))
        return self

    async def execute(self) -> list:
        if self.client.fail_execute:
            raise ConnectionError("connection lost")
        results: list = []
        for command in self.commands:
            if command[0] == "incr":
                key = command[1]
                self.client.values[key] = self.client.values.get(key, 0) + 1
                results.append(self.client.values[key])
            else:
                _, key, seconds, nx = command
                if nx and key in self.client.expirations:
                    results.append(False)
                else:
                    self.client.expirations[key] = seconds
                    results.append(True)
        self.commands = []
        return results


class FakeRedis:
    """Just enough of the async Redis counter API for quota tests."""

    def __init__(self) -> None:
        self.values: dict[str, int] = {}
        self.expirations: dict[str, int] = {}
        self.pipelines: list[FakePipeline] = []
        self.fail_execute = False

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        pipe = FakePipeline(self, transaction)
        self.pipelines.append(pipe)
        return pipe

    async def decr(self, key: str) -> int:
        self.values[key] -= 1
        return self.values[key]


def test_utc_date_key_converts_to_utc() -> None:
    moment = datetime(2026, 10, 19, 23, 30, tzinfo=timezone(timedelta(hours=-5)))

    assert utc_date_key(moment) == "2026-10-20"
    assert utc_date_key(datetime(2026, 1, 2, 3, 4)) == "2026-01-02"


@pytest.mark.anyio
async def test_memory_store_allows_limit_then_denies() -> None:
    store = InMemoryQuotaStore()

    results = [await store.consume("agent:bot", 3, "2026-10-19") for _ in range(4)]

    assert results == [True, True, True, False]
    entry = store.get("agent:bot")
    assert entry is not None
    assert entry.count == 3


@pytest.mark.anyio
async def test_memory_store_resets_on_new_day() -> None:
    store = InMemoryQuotaStore()
    await store.consume("ip:1.2.3.4", 1, "2026-10-19")
    assert await store.consume("ip:1.2.3.4", 1, "2026-10-19") is False

    assert await store.consume("ip:1.2.3.4", 1, "2026-10-20") is True
    assert store.get("ip:1.2.3.4").count == 1


@pytest.mark.anyio
async def test_memory_store_counts_identities_separately() -> None:
    store = InMemoryQuotaStore()

    assert await store.consume("agent:a", 1, "2026-10-19") is True
    assert await store.consume("agent:b", 1, "2026-10-19") is True
    assert await store.consume("agent:a", 1, "2026-10-19") is False


@pytest.mark.anyio
async def test_redis_store_never_stores_more_than_limit() -> None:
    client = FakeRedis()
    store = RedisQuotaStore(client, prefix="test:")

    results = [await store.consume("key:abcdefgh", 2, "2026-10-19") for _ in range(3)]

    key = "test:key:abcdefgh:2026-10-19"
    assert results == [True, True, False]
    assert client.values[key] == 2
    assert client.expirations == {key: REDIS_QUOTA_TTL_SECONDS}


@pytest.mark.anyio
async def test_redis_store_sets_ttl_in_same_transaction_as_increment() -> None:
    client = FakeRedis()
    store = RedisQuotaStore(client, prefix="test:", ttl_seconds=60)

    await store.consume("agent:bot", 5, "2026-10-19")
    await store.consume("agent:bot", 5, "2026-10-19")

    assert all(pipe.transaction for pipe in client.pipelines)
    assert client.expirations == {"test:agent:bot:2026-10-19": 60}


@pytest.mark.anyio
async def test_redis_store_failure_leaves_no_untimed_counter() -> None:
    """A dropped connection applies neither the increment nor the TTL."""
    client = FakeRedis()
    client.fail_execute = True
    store = RedisQuotaStore(client, prefix="test:")

    with pytest.raises(ConnectionError):
        await store.consume("agent:bot", 5, "2026-10-19")

    assert client.values == {}
    assert client.expirations == {}
