from __future__ import annotations

import structlog
from redis.asyncio import Redis

from threadanswer.config import settings
from threadanswer.pipelines.llm import CompletionFn, create_completion_from_settings

logger = structlog.get_logger()

_redis_client: Redis | None = None
_completion: CompletionFn | None = None
_completion_loaded = False


def get_redis_client() -> Redis:
    """Get or create the singleton async Redis client.

    Returns:
        The shared async Redis instance. Created on first call and reused
        on subsequent calls (singleton pattern).
    """
    global _redis_client
    if _redis_client is None:
        _redis_client = Redis.from_url(settings.REDIS_URL, decode_responses=True)
        logger.info("redis_client_created", url=settings.REDIS_URL)
    return _redis_client


def get_completion() -> CompletionFn | None:
    """Get the process-wide LLM completion function, or ``None`` if no model is configured."""
    global _completion, _completion_loaded
    if not _completion_loaded:
        _completion = create_completion_from_settings(settings)
        _completion_loaded = True
        if _completion is None:
            logger.info("llm_client_not_configured")
    return _completion


async def close_clients() -> None:
    """Close all singleton clients. Called on app shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None
        logger.info("redis_client_closed")
