from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import structlog

from threadanswer.exceptions import RetrievalError
from threadanswer.metrics import answer_duration, answer_retrieval_duration, answers_total, llm_invalid_json_total
from threadanswer.pipelines.citations import build_citations
from threadanswer.pipelines.evidence import build_retrieved_items, clamp, strip_snippets
from threadanswer.pipelines.fallback import (
    INVALID_JSON_WARNING,
    NOT_CONFIGURED_MESSAGE,
    UNAVAILABLE_MESSAGE,
    evidence_only_answer,
)
from threadanswer.pipelines.llm import CompletionFn, invoke_model
from threadanswer.pipelines.parser import parse_answer_json
from threadanswer.pipelines.prompts import SYSTEM_PROMPT, build_retry_prompt, build_user_prompt
from threadanswer.schemas.answer import (
    MAX_EVIDENCE_CHARS,
    MIN_EVIDENCE_CHARS,
    AnswerRequest,
    AnswerResponse,
    ParsedModelOutput,
    SearchResult,
    Thread,
)

logger = structlog.get_logger()

SearchFn = Callable[[str, int], Awaitable[list[SearchResult]]]
FetchThreadFn = Callable[[str], Awaitable[Thread | None]]


@dataclass(frozen=True)
class AnswerDeps:
    """Collaborators for one answer run.

    ``completion`` is ``None`` when the model path is unavailable or was
    denied for this caller.
    """

    base_url: str
    search: SearchFn
    fetch_thread: FetchThreadFn
    completion: CompletionFn | None = None
    llm_timeout: float | None = None


async def retrieve_threads(query: str, top_k: int, deps: AnswerDeps) -> list[Thread]:
    """Search, then hydrate the top hits concurrently, keeping search-rank order.

    Raises:
        RetrievalError: If the search or any fetch fails.
    """
    try:
        results = await deps.search(query, top_k)
        threads = await asyncio.gather(*(deps.fetch_thread(result.id) for result in results[:top_k]))
    except Exception as exc:
        logger.error("retrieval_failed", error=str(exc), error_type=type(exc).__name__)
        raise RetrievalError() from exc
    return [thread for thread in threads if thread is not None]


async def generate_answer(
    completion: CompletionFn,
    user_prompt: str,
    timeout: float | None = None,
) -> ParsedModelOutput | None:
    """Ask the model for a structured answer, retrying once with a JSON-only reminder.

    The two calls are sequential. Returns ``None`` when neither reply parses.
    """
    first = await invoke_model(completion, SYSTEM_PROMPT, user_prompt, timeout)
    parsed = parse_answer_json(first)
    if parsed is not None:
        return parsed

    llm_invalid_json_total.labels(attempt="first").inc()
    logger.info("llm_invalid_json_retrying", reply_length=len(first))
    second = await invoke_model(completion, SYSTEM_PROMPT, build_retry_prompt(user_prompt), timeout)
    parsed = parse_answer_json(second)
    if parsed is None:
        llm_invalid_json_total.labels(attempt="retry").inc()
        logger.warning("llm_invalid_json", reply_length=len(second))
    return parsed


def _finish(response: AnswerResponse, outcome: str, start_time: float) -> AnswerResponse:
    elapsed = time.perf_counter() - start_time
    answer_duration.observe(elapsed)
    answers_total.labels(outcome=outcome).inc()
    logger.info(
        "answer_complete",
        outcome=outcome,
        retrieved=len(response.retrieved),
        citations=len(response.citations),
        warnings=len(response.warnings),
        latency_ms=round(elapsed * 1000),
    )
    return response


async def run_answer(
    request: AnswerRequest,
    deps: AnswerDeps,
    *,
    evidence_only_message: str | None = None,
    evidence_only_warnings: list[str] | None = None,
) -> AnswerResponse:
    """Produce a grounded, cited answer, or an evidence-only answer when the model can't be used.

    Args:
        request: The validated request.
        deps: Retrieval collaborators, base URL and the optional completion function.
        evidence_only_message: Lead line for the fallback answer when ``deps.completion``
            is ``None`` (typically the policy gate's message).
        evidence_only_warnings: Warnings for that fallback (typically the gate's warnings).

    Returns:
        The response. Model, policy and parsing problems only show up in ``warnings``.

    Raises:
        RetrievalError: If the search or fetch collaborators fail.
    """
    start_time = time.perf_counter()
    query = request.query.strip()
    top_k = clamp(request.top_k, 1, 10)
    max_chars = clamp(request.max_chars_per_evidence, MIN_EVIDENCE_CHARS, MAX_EVIDENCE_CHARS)
    logger.info("answer_started", query=query[:100], top_k=top_k, mode=request.mode)

    with answer_retrieval_duration.time():
        threads = await retrieve_threads(query, top_k, deps)

    # The model always sees full snippets; the caller only sees them if asked.
    retrieved_for_model = build_retrieved_items(threads, deps.base_url, max_chars, include_evidence=True)
    retrieved_for_response = (
        retrieved_for_model if request.include_evidence else strip_snippets(retrieved_for_model)
    )

    if deps.completion is None:
        message = evidence_only_message or NOT_CONFIGURED_MESSAGE
        warnings = list(evidence_only_warnings) if evidence_only_warnings else [NOT_CONFIGURED_MESSAGE]
        response = evidence_only_answer(query, retrieved_for_response, warnings, message)
        return _finish(response, "no_results" if not threads else "fallback_policy", start_time)

    user_prompt = build_user_prompt(query, request.mode, retrieved_for_model)
    parsed = await generate_answer(deps.completion, user_prompt, deps.llm_timeout)
    if parsed is None:
        response = evidence_only_answer(query, retrieved_for_response, [INVALID_JSON_WARNING], UNAVAILABLE_MESSAGE)
        return _finish(response, "fallback_invalid_json", start_time)

    cited = build_citations(parsed.used_indices, parsed.quotes, retrieved_for_model)
    response = AnswerResponse(
        query=query,
        answer_markdown=parsed.answer_markdown,
        citations=cited.citations,
        retrieved=retrieved_for_response,
        warnings=[*parsed.warnings, *cited.warnings],
    )
    return _finish(response, "llm", start_time)
