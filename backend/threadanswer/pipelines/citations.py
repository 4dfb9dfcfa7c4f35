from __future__ import annotations

import re
from dataclasses import dataclass

import structlog

from threadanswer.metrics import citation_range_warnings_total
from threadanswer.pipelines.evidence import truncate
from threadanswer.schemas.answer import AnswerCitation, ModelQuote, RetrievedItem

logger = structlog.get_logger()

MAX_QUOTE_CHARS = 200

_WHITESPACE_RE = re.compile(r"\s+")
_SENTENCE_END_RE = re.compile(r"[.!?]\s")


@dataclass(frozen=True)
class CitationResult:
    citations: list[AnswerCitation]
    warnings: list[str]


def extract_quote(snippet: str, max_len: int = MAX_QUOTE_CHARS) -> str | None:
    """Derive a short supporting quote: the snippet's first sentence, bounded.

    Returns ``None`` (not ``""``) when the snippet has no visible text.
    """
    collapsed = _WHITESPACE_RE.sub(" ", snippet).strip()
    if not collapsed:
        return None
    match = _SENTENCE_END_RE.search(collapsed)
    candidate = collapsed[: match.start() + 1] if match and match.start() > 0 else collapsed
    return truncate(candidate, max_len)


def build_citations(
    used_indices: list[int],
    quotes: list[ModelQuote],
    retrieved: list[RetrievedItem],
) -> CitationResult:
    """Map model-claimed evidence numbers back to retrieved items.

    Out-of-range numbers become warnings and are skipped; duplicates are kept
    as the model sent them. A model-declared quote for an index wins over one
    derived from the snippet, and both are bounded to ``MAX_QUOTE_CHARS``.

    Args:
        used_indices: 1-based evidence numbers in the model's order.
        quotes: Model-declared quotes; the last one per index wins.
        retrieved: Model-facing items with full snippets.

    Returns:
        The citations and any range warnings.
    """
    quote_by_index = {item.index: item.quote for item in quotes}
    citations: list[AnswerCitation] = []
    warnings: list[str] = []

    for index in used_indices:
        if not 1 <= index <= len(retrieved):
            warnings.append(f"Citation index {index} is out of range.")
            citation_range_warnings_total.inc()
            continue

        item = retrieved[index - 1]
        declared = quote_by_index.get(index)
        quote = truncate(declared, MAX_QUOTE_CHARS) if declared else extract_quote(item.snippet)
        citations.append(AnswerCitation(id=item.id, title=item.title, url=item.url, quote=quote))

    if warnings:
        logger.info("citations_out_of_range", count=len(warnings), retrieved=len(retrieved))
    return CitationResult(citations=citations, warnings=warnings)
