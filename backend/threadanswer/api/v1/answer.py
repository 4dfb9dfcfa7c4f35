from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request

from threadanswer.apikeys import parse_bearer_token
from threadanswer.config import settings
from threadanswer.dependencies import get_llm_completion, get_llm_policy, get_thread_store
from threadanswer.pipelines.answer import AnswerDeps, run_answer
from threadanswer.pipelines.llm import CompletionFn
from threadanswer.policy import CallerIdentity, LlmPolicy
from threadanswer.schemas.answer import AnswerRequest, AnswerResponse
from threadanswer.threads import ThreadStore

logger = structlog.get_logger()
router = APIRouter(tags=["answer"])

AGENT_NAME_HEADERS = ("x-agent-name", "x-mcp-client-name", "mcp-client-name", "x-client-name")
MAX_AGENT_NAME_LENGTH = 128


def get_agent_name(request: Request) -> str | None:
    for header in AGENT_NAME_HEADERS:
        value = request.headers.get(header)
        if value:
            return value[:MAX_AGENT_NAME_LENGTH]
    return None


def get_client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    for header in ("x-real-ip", "cf-connecting-ip"):
        value = request.headers.get(header)
        if value:
            return value
    return request.client.host if request.client else None


def get_base_url(request: Request) -> str:
    """Public base URL for canonical thread links.

    ``PUBLIC_BASE_URL`` wins; otherwise the forwarded proto/host headers are
    trusted, falling back to the request's own scheme and Host header.
    """
    if settings.PUBLIC_BASE_URL:
        return settings.PUBLIC_BASE_URL
    proto = request.headers.get("x-forwarded-proto") or request.url.scheme or "http"
    host = request.headers.get("x-forwarded-host") or request.headers.get("host") or "localhost"
    return f"{proto}://{host}"


def get_caller_identity(request: Request) -> CallerIdentity:
    return CallerIdentity(
        api_key=parse_bearer_token(request.headers.get("authorization")),
        agent_name=get_agent_name(request),
        client_ip=get_client_ip(request),
    )


@router.post("/answer", response_model=AnswerResponse)
async def create_answer(
    request_body: AnswerRequest,
    request: Request,
    thread_store: ThreadStore = Depends(get_thread_store),
    policy: LlmPolicy = Depends(get_llm_policy),
    completion: CompletionFn | None = Depends(get_llm_completion),
) -> AnswerResponse:
    """Synthesize a grounded answer from stored threads, with citations.

    The model path runs only when the policy gate allows it for this caller;
    otherwise, or when the model misbehaves, the response lists the retrieved
    threads as evidence and explains why in ``warnings``.

    Args:
        request_body: The validated answer request.
        request: The raw request, used for caller identity and the base URL.
        thread_store: Search and fetch collaborator, injected by FastAPI.
        policy: The LLM policy gate, injected by FastAPI.
        completion: The configured completion function, if any.

    Returns:
        AnswerResponse with the answer markdown, citations, retrieved items and warnings.
    """
    identity = get_caller_identity(request)
    decision = await policy.evaluate(identity)

    deps = AnswerDeps(
        base_url=get_base_url(request),
        search=thread_store.search,
        fetch_thread=thread_store.fetch_thread,
        completion=completion if decision.allowed else None,
        llm_timeout=settings.LLM_TIMEOUT_SECONDS,
    )
    response = await run_answer(
        request_body,
        deps,
        evidence_only_message=decision.message or None,
        evidence_only_warnings=decision.warnings or None,
    )

    logger.info(
        "answer_response_built",
        llm_allowed=decision.allowed,
        agent_name=identity.agent_name,
        citation_count=len(response.citations),
    )
    return response
