from __future__ import annotations

from threadanswer.config import Settings


def test_llm_defaults_are_conservative() -> None:
    """The model path is off and, once on, gated by API key and a daily limit."""
    s = Settings()
    assert s.LLM_ENABLED is False
    assert s.LLM_REQUIRE_API_KEY is True
    assert s.LLM_DAILY_LIMIT == 50
    assert s.LLM_BASE_URL == "https://api.openai.com/v1"
    assert s.QUOTA_BACKEND == "memory"


def test_agent_allowlist_is_normalized() -> None:
    s = Settings(LLM_AGENT_ALLOWLIST=" Claude, cursor ,,")
    assert s.agent_allowlist == frozenset({"claude", "cursor"})
    assert Settings(LLM_AGENT_ALLOWLIST="").agent_allowlist == frozenset()


def test_api_keys_are_split_and_secret() -> None:
    s = Settings(API_KEYS="k1, k2,,")
    assert s.api_keys == ["k1", "k2"]
    assert "k1" not in repr(s)
