from __future__ import annotations

from threadanswer.pipelines.fallback import NO_RESULTS_ANSWER, evidence_only_answer
from threadanswer.schemas.answer import RetrievedItem


def test_no_results_answer() -> None:
    response = evidence_only_answer("demo", [], ["LLM disabled by policy."], "ignored")

    assert response.query == "demo"
    assert response.answer_markdown == NO_RESULTS_ANSWER
    assert response.citations == []
    assert response.retrieved == []
    assert response.warnings == ["LLM disabled by policy."]


def test_evidence_only_answer_lists_links_and_snippets() -> None:
    """Empty snippets are omitted; each item becomes a markdown link bullet."""
    retrieved = [
        RetrievedItem(id="1", title="One", url="https://a/q/1", snippet="snip"),
        RetrievedItem(id="2", title="Two", url="https://a/q/2", snippet=""),
    ]

    response = evidence_only_answer("demo", retrieved, ["w"], "Heads up.")

    assert response.answer_markdown == "Heads up.\n\n- [One](https://a/q/1)\nsnip\n\n- [Two](https://a/q/2)"
    assert response.citations == []
    assert response.retrieved == retrieved
    assert response.warnings == ["w"]
