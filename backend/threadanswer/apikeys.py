from __future__ import annotations

import hashlib
import hmac
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

KEY_PREFIX_LENGTH = 8


def hash_api_key(raw_key: str) -> str:
    return hashlib.sha256(raw_key.encode()).hexdigest()


def parse_bearer_token(authorization: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        return None
    scheme, _, rest = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = rest.strip()
    return token or None


@dataclass(frozen=True)
class ApiKeyRecord:
    key_prefix: str
    key_hash: str
    revoked_at: datetime | None = None
    expires_at: datetime | None = None

    @classmethod
    def from_raw(cls, raw_key: str, expires_at: datetime | None = None) -> ApiKeyRecord:
        return cls(key_prefix=raw_key[:KEY_PREFIX_LENGTH], key_hash=hash_api_key(raw_key), expires_at=expires_at)


@dataclass(frozen=True)
class ApiKeyCheck:
    ok: bool
    reason: str | None = None
    key_prefix: str | None = None


class ApiKeyStore(Protocol):
    async def find(self, key_prefix: str, key_hash: str) -> ApiKeyRecord | None:
        """Return the non-revoked key matching prefix and hash, if any."""
        ...


class InMemoryApiKeyStore:
    """API key lookup backed by a dict; keys are kept hashed only."""

    def __init__(self, records: Iterable[ApiKeyRecord] = ()) -> None:
        self._records: dict[str, list[ApiKeyRecord]] = {}
        for record in records:
            self.add(record)

    @classmethod
    def from_raw_keys(cls, raw_keys: Iterable[str]) -> InMemoryApiKeyStore:
        return cls(ApiKeyRecord.from_raw(key) for key in raw_keys)

    def add(self, record: ApiKeyRecord) -> None:
        self._records.setdefault(record.key_prefix, []).append(record)

    async def find(self, key_prefix: str, key_hash: str) -> ApiKeyRecord | None:
        for record in self._records.get(key_prefix, []):
            if record.revoked_at is None and hmac.compare_digest(record.key_hash, key_hash):
                return record
        return None


async def validate_api_key(token: str | None, store: ApiKeyStore, now: datetime | None = None) -> ApiKeyCheck:
    """Resolve a raw bearer token to a live (non-revoked, non-expired) key.

    Args:
        token: The raw key presented by the caller, or ``None``.
        store: Where hashed keys are looked up.
        now: Reference time for expiry; defaults to the current UTC time.

    Returns:
        ``ApiKeyCheck`` with ``ok`` set, or the reason the key was rejected.
    """
    if not token:
        return ApiKeyCheck(ok=False, reason="Missing API key")

    key_prefix = token[:KEY_PREFIX_LENGTH]
    record = await store.find(key_prefix, hash_api_key(token))
    if record is None:
        return ApiKeyCheck(ok=False, reason="Invalid API key")

    moment = now or datetime.now(timezone.utc)
    if record.expires_at is not None and record.expires_at < moment:
        return ApiKeyCheck(ok=False, reason="API key expired")
    return ApiKeyCheck(ok=True, key_prefix=key_prefix)
