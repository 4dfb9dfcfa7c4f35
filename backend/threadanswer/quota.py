from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

from redis.asyncio import Redis

# Redis counters expire two days after first use.
REDIS_QUOTA_TTL_SECONDS = 2 * 24 * 60 * 60


def utc_date_key(now: datetime | None = None) -> str:
    """Return the ``YYYY-MM-DD`` UTC day a timestamp falls in."""
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%d")


@dataclass
class QuotaEntry:
    date_key: str
    count: int


class QuotaStore(Protocol):
    async def consume(self, identity: str, limit: int, date_key: str) -> bool:
        """Count one use for ``identity`` on ``date_key`` if it is under ``limit``."""
        ...


class InMemoryQuotaStore:
    """Per-process daily counters keyed by caller identity.

    ``consume`` never awaits between reading and updating an entry, so on a
    single event loop the check-and-increment cannot interleave with another
    request. Counters are not shared between processes; use ``RedisQuotaStore``
    when the service runs on more than one worker.
    """

    def __init__(self) -> None:
        self._entries: dict[str, QuotaEntry] = {}

    def get(self, identity: str) -> QuotaEntry | None:
        return self._entries.get(identity)

    async def consume(self, identity: str, limit: int, date_key: str) -> bool:
        entry = self._entries.get(identity)
        if entry is None or entry.date_key != date_key:
            self._entries[identity] = QuotaEntry(date_key=date_key, count=1)
            return True
        if entry.count >= limit:
            return False
        entry.count += 1
        return True


class RedisQuotaStore:
    """Daily counters in Redis, safe across workers and hosts.

    Each ``identity:date`` key is bumped with an atomic ``INCR``; a bump that
    crosses the limit is undone with ``DECR`` and reported as denied, so the
    stored count never exceeds the limit. ``EXPIRE ... NX`` needs Redis 7 or
    later.
    """

    def __init__(self, client: Redis, prefix: str, ttl_seconds: int = REDIS_QUOTA_TTL_SECONDS) -> None:
        self._client = client
        self._prefix = prefix
        self._ttl_seconds = ttl_seconds

    def make_key(self, identity: str, date_key: str) -> str:
        return f"{self._prefix}{identity}:{date_key}"

    async def consume(self, identity: str, limit: int, date_key: str) -> bool:
        key = self.make_key(identity, date_key)
        # INCR and the first-use EXPIRE go out in one MULTI/EXEC so a key never lives without a TTL.
        pipe = self._client.pipeline(transaction=True)
        pipe.incr(key)
        pipe.expire(key, self._ttl_seconds, nx=True)
        incremented, _ = await pipe.execute()
        count = int(incremented)
        if count > limit:
            await self._client.decr(key)
            return False
        return True
