from __future__ import annotations

import functools

import structlog

from threadanswer.apikeys import InMemoryApiKeyStore
from threadanswer.clients import get_completion, get_redis_client
from threadanswer.config import settings
from threadanswer.pipelines.llm import CompletionFn
from threadanswer.policy import LlmPolicy
from threadanswer.quota import InMemoryQuotaStore, QuotaStore, RedisQuotaStore
from threadanswer.threads import InMemoryThreadStore, ThreadStore

logger = structlog.get_logger()


@functools.lru_cache(maxsize=1)
def get_thread_store() -> ThreadStore:
    """Thread store seeded from ``THREADS_FILE`` (singleton)."""
    if not settings.THREADS_FILE:
        return InMemoryThreadStore()
    return InMemoryThreadStore.from_json_file(settings.THREADS_FILE)


@functools.lru_cache(maxsize=1)
def get_api_key_store() -> InMemoryApiKeyStore:
    return InMemoryApiKeyStore.from_raw_keys(settings.api_keys)


@functools.lru_cache(maxsize=1)
def get_quota_store() -> QuotaStore:
    """Quota counters per ``QUOTA_BACKEND``: process memory (default) or Redis."""
    if settings.QUOTA_BACKEND == "redis":
        logger.info("quota_backend_selected", backend="redis")
        return RedisQuotaStore(get_redis_client(), prefix=settings.QUOTA_KEY_PREFIX)
    return InMemoryQuotaStore()


def get_llm_completion() -> CompletionFn | None:
    return get_completion()


@functools.lru_cache(maxsize=1)
def get_llm_policy() -> LlmPolicy:
    return LlmPolicy.from_settings(
        settings,
        client_configured=get_completion() is not None,
        api_key_store=get_api_key_store(),
        quota_store=get_quota_store(),
    )
