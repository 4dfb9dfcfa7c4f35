from __future__ import annotations

from threadanswer.markdown import markdown_to_text
from threadanswer.schemas.answer import (
    DEFAULT_MAX_CHARS,
    MAX_EVIDENCE_CHARS,
    MIN_EVIDENCE_CHARS,
    RetrievedItem,
    Thread,
    ThreadReply,
)

ELLIPSIS = "…"
MAX_REPLIES_PER_SNIPPET = 2


def clamp(value: int, minimum: int, maximum: int) -> int:
    return min(maximum, max(minimum, value))


def truncate(text: str, max_chars: int) -> str:
    """Cut ``text`` to at most ``max_chars`` characters, ending in a single ellipsis."""
    if len(text) <= max_chars:
        return text
    return text[: max(0, max_chars - 1)].rstrip() + ELLIPSIS


def _reply_length(reply: ThreadReply) -> int:
    # bodyText is the stored plain-text projection; an empty string still counts.
    text = reply.body_text if reply.body_text is not None else reply.body_md
    return len(text or "")


def build_evidence_snippet(thread: Thread, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    """Render a thread as a length-bounded plain-text evidence block.

    The block holds the title, the question body and up to two replies,
    longest first, each converted from markdown. The joined text is then
    truncated to ``max_chars``.

    Args:
        thread: The hydrated thread.
        max_chars: Upper bound on the returned length.

    Returns:
        The evidence text, possibly ending in an ellipsis.
    """
    parts: list[str] = []
    if thread.title:
        parts.append(f"Title: {thread.title}")

    question_text = markdown_to_text(thread.body_md or thread.body_text or "")
    if question_text:
        parts.append(f"Question:\n{question_text}")

    # sorted() is stable: equal-length replies keep their stored order.
    replies = sorted(thread.answers, key=_reply_length, reverse=True)
    for position, reply in enumerate(replies[:MAX_REPLIES_PER_SNIPPET], start=1):
        reply_text = markdown_to_text(reply.body_md or reply.body_text or "")
        if reply_text:
            parts.append(f"Answer {position}:\n{reply_text}")

    raw = "\n\n".join(parts).strip()
    return truncate(raw, max_chars)


def thread_url(base_url: str, thread_id: str) -> str:
    return f"{base_url.removesuffix('/')}/q/{thread_id}"


def build_retrieved_items(
    threads: list[Thread],
    base_url: str,
    max_chars: int = DEFAULT_MAX_CHARS,
    include_evidence: bool = True,
) -> list[RetrievedItem]:
    """Turn fetched threads into retrieved items, preserving their order.

    Args:
        threads: Threads in search-rank order (not-found entries already dropped).
        base_url: Public base URL used to build each canonical thread URL.
        max_chars: Snippet bound, clamped to the supported evidence range.
        include_evidence: When false every snippet is an empty string.

    Returns:
        One ``RetrievedItem`` per thread.
    """
    limit = clamp(max_chars, MIN_EVIDENCE_CHARS, MAX_EVIDENCE_CHARS)
    return [
        RetrievedItem(
            id=thread.id,
            title=thread.title,
            url=thread_url(base_url, thread.id),
            snippet=build_evidence_snippet(thread, limit) if include_evidence else "",
        )
        for thread in threads
    ]


def strip_snippets(items: list[RetrievedItem]) -> list[RetrievedItem]:
    """Caller-facing copy of ``items`` with snippets blanked out."""
    return [item.model_copy(update={"snippet": ""}) for item in items]
