from __future__ import annotations

import pytest
from httpx import AsyncClient

from threadanswer.apikeys import InMemoryApiKeyStore
from threadanswer.main import app
from threadanswer.metrics import citation_range_warnings_total, llm_policy_denials_total
from threadanswer.pipelines.citations import build_citations
from threadanswer.policy import CallerIdentity, LlmPolicy
from threadanswer.quota import InMemoryQuotaStore


def test_metrics_module_imports() -> None:
    """All metric objects should be importable."""
    from threadanswer.metrics import (
        answer_duration,
        answer_generation_duration,
        answer_retrieval_duration,
        answers_total,
        llm_invalid_json_total,
    )
    assert answer_duration is not None
    assert answer_generation_duration is not None
    assert answer_retrieval_duration is not None
    assert answers_total is not None
    assert llm_invalid_json_total is not None


def test_clients_module_imports() -> None:
    """Client singleton functions should be importable."""
    from threadanswer.clients import close_clients, get_completion, get_redis_client
    assert callable(get_completion)
    assert callable(get_redis_client)
    assert callable(close_clients)


@pytest.mark.anyio
async def test_policy_denials_are_counted() -> None:
    counter = llm_policy_denials_total.labels(reason="disabled")
    before = counter._value.get()
    policy = LlmPolicy(
        enabled=False,
        client_configured=False,
        require_api_key=False,
        agent_allowlist=frozenset(),
        daily_limit=0,
        api_key_store=InMemoryApiKeyStore(),
        quota_store=InMemoryQuotaStore(),
    )

    await policy.evaluate(CallerIdentity())

    assert counter._value.get() == before + 1


def test_out_of_range_citations_are_counted() -> None:
    before = citation_range_warnings_total._value.get()

    build_citations([4, 5], [], [])

    assert citation_range_warnings_total._value.get() == before + 2


@pytest.mark.anyio
async def test_prometheus_endpoint_is_mounted(api_client: AsyncClient) -> None:
    """/metrics is served next to the versioned API routes."""
    response = await api_client.get("/metrics")

    assert response.status_code == 200
    assert "answers_total" in response.text
    assert app.url_path_for("create_answer") == "/api/v1/answer"
    assert app.url_path_for("health_check") == "/api/v1/health"
