from __future__ import annotations

from threadanswer.schemas.answer import AnswerResponse, RetrievedItem

NO_RESULTS_ANSWER = "No matching threads were found for this query."
DEFAULT_FALLBACK_MESSAGE = "Returning retrieved evidence only."
NOT_CONFIGURED_MESSAGE = "LLM not configured; returning retrieved evidence only."
UNAVAILABLE_MESSAGE = "LLM unavailable; returning retrieved evidence only."
INVALID_JSON_WARNING = "LLM failed to return valid JSON; returning retrieved evidence only."


def evidence_only_answer(
    query: str,
    retrieved: list[RetrievedItem],
    warnings: list[str],
    message: str = DEFAULT_FALLBACK_MESSAGE,
) -> AnswerResponse:
    """Build the deterministic answer used whenever the model path is skipped or fails.

    Args:
        query: The trimmed query echoed back to the caller.
        retrieved: Caller-facing items (snippets already blanked if evidence is hidden).
        warnings: Warnings to pass through unchanged.
        message: Lead line explaining why no model answer is given.

    Returns:
        A response with a markdown bullet list of the retrieved threads and no citations.
    """
    if not retrieved:
        return AnswerResponse(
            query=query,
            answer_markdown=NO_RESULTS_ANSWER,
            citations=[],
            retrieved=retrieved,
            warnings=list(warnings),
        )

    bullets = []
    for item in retrieved:
        snippet = f"\n{item.snippet}" if item.snippet else ""
        bullets.append(f"- [{item.title}]({item.url}){snippet}")

    return AnswerResponse(
        query=query,
        answer_markdown=f"{message}\n\n" + "\n\n".join(bullets),
        citations=[],
        retrieved=retrieved,
        warnings=list(warnings),
    )
