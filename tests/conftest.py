from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient

from threadanswer.main import app
from threadanswer.schemas.answer import Thread, ThreadReply


@pytest.fixture
def anyio_backend() -> str:
    """Configure anyio to use the asyncio backend for all async tests."""
    return "asyncio"


@pytest.fixture
async def api_client() -> AsyncIterator[AsyncClient]:
    """Async HTTP client for API integration tests.

    Yields an ``AsyncClient`` wired directly to the FastAPI ASGI app so no
    real network socket is required during testing.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def fastify_thread() -> Thread:
    """A thread with a question and two replies of different lengths."""
    return Thread(
        id="t1",
        title="How do I register a Fastify plugin?",
        body_md="I call `fastify.register(plugin)` but the **decorator** is missing.",
        answers=[
            ThreadReply(id="a1", body_md="Use fastify-plugin."),
            ThreadReply(
                id="a2",
                body_md=(
                    "Wrap the plugin with `fastify-plugin` so decorators escape encapsulation. "
                    "Then await the register call.\n\n```js\nawait fastify.register(fp(plugin))\n```"
                ),
            ),
        ],
    )
