from __future__ import annotations

import structlog
from fastapi import APIRouter
from redis.asyncio import Redis

from threadanswer.clients import get_completion
from threadanswer.config import settings
from threadanswer.schemas.health import HealthResponse, ServiceStatus

logger = structlog.get_logger()
router = APIRouter()


async def _check_redis() -> ServiceStatus:
    if settings.QUOTA_BACKEND != "redis":
        return ServiceStatus(status="disabled", detail="in-memory quota backend")
    try:
        client = Redis.from_url(settings.REDIS_URL, socket_timeout=5)
        await client.ping()
        await client.aclose()
        return ServiceStatus(status="healthy")
    except Exception as e:
        logger.error("health_check_redis_failed", error=str(e))
        return ServiceStatus(status="unhealthy", detail=str(e))


def _check_llm() -> ServiceStatus:
    if not settings.LLM_ENABLED:
        return ServiceStatus(status="disabled", detail="LLM_ENABLED is false")
    if get_completion() is None:
        return ServiceStatus(status="disabled", detail="LLM_API_KEY or LLM_MODEL not set")
    return ServiceStatus(status="healthy", detail=settings.LLM_MODEL)


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report quota-store and model-client status; evidence-only answers work either way."""
    redis_status = await _check_redis()
    llm = _check_llm()

    degraded = redis_status.status == "unhealthy"

    return HealthResponse(
        status="degraded" if degraded else "healthy",
        redis=redis_status,
        llm=llm,
    )
