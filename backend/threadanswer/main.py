from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from threadanswer.api.v1.router import api_v1_router
from threadanswer.clients import close_clients
from threadanswer.config import settings
from threadanswer.dependencies import get_llm_policy, get_thread_store
from threadanswer.logging_config import setup_logging
from threadanswer.middleware.logging import RequestLoggingMiddleware

setup_logging(settings.LOG_LEVEL, json_logs=settings.ENVIRONMENT != "dev")


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: warm the thread store and policy on startup, close clients on shutdown.

    Args:
        application: The FastAPI application instance (unused directly but
            required by the lifespan protocol).
    """
    get_thread_store()
    get_llm_policy()
    yield
    await close_clients()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        A fully configured FastAPI instance with middleware and routers applied.
    """
    application = FastAPI(
        title="Thread Answer",
        description="Grounded answers with citations over Q&A threads",
        version="0.1.0",
        lifespan=lifespan,
    )

    Instrumentator().instrument(application).expose(application, endpoint="/metrics")

    # Middleware: last added runs first
    application.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",")],
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Agent-Name", "X-Request-Id"],
    )
    application.add_middleware(RequestLoggingMiddleware)

    # Routers
    application.include_router(api_v1_router)

    return application


app = create_app()
