from __future__ import annotations

from threadanswer.pipelines.parser import extract_json, parse_answer_json


def test_fenced_json_reply_is_parsed() -> None:
    """A reply wrapped in a ```json fence parses to the structured answer."""
    text = '```json {"answer_markdown":"ok","used_indices":[1],"quotes":[{"index":1,"quote":"hi"}],"warnings":[]} ```'

    parsed = parse_answer_json(text)

    assert parsed is not None
    assert parsed.answer_markdown == "ok"
    assert parsed.used_indices == [1]
    assert parsed.quotes[0].index == 1
    assert parsed.quotes[0].quote == "hi"
    assert parsed.warnings == []


def test_parsing_is_deterministic() -> None:
    text = '```JSON\n{"answer_markdown": "same", "used_indices": [2, 1]}\n```'

    assert parse_answer_json(text) == parse_answer_json(text)


def test_object_inside_prose_is_found_and_defaults_apply() -> None:
    parsed = parse_answer_json('Sure! Here you go: {"answer_markdown": "x"} Thanks')

    assert parsed is not None
    assert parsed.answer_markdown == "x"
    assert parsed.used_indices == []
    assert parsed.quotes == []
    assert parsed.warnings == []


def test_extract_json_prefers_fenced_block() -> None:
    text = '{"a": 1} then ```json {"answer_markdown": "f"} ```'

    assert extract_json(text) == '{"answer_markdown": "f"}'


def test_extract_json_without_object_returns_none() -> None:
    assert extract_json("no braces at all") is None
    assert extract_json("} backwards {") is None
    assert extract_json("") is None


def test_unparseable_replies_return_none() -> None:
    assert parse_answer_json("not json") is None
    assert parse_answer_json("{not json}") is None
    # Two separate objects span to one invalid slice.
    assert parse_answer_json('{"answer_markdown": "a"} {"answer_markdown": "b"}') is None


def test_schema_violations_return_none() -> None:
    assert parse_answer_json('{"used_indices": [1]}') is None
    assert parse_answer_json('{"answer_markdown": 5}') is None
    assert parse_answer_json('{"answer_markdown": "x", "used_indices": [0]}') is None
    assert parse_answer_json('{"answer_markdown": "x", "used_indices": [true]}') is None
    assert parse_answer_json('{"answer_markdown": "x", "used_indices": [1.5]}') is None
    assert parse_answer_json('{"answer_markdown": "x", "quotes": [{"index": "1", "quote": "q"}]}') is None
    assert parse_answer_json('{"answer_markdown": "x", "warnings": [3]}') is None


def test_deeply_nested_reply_returns_none() -> None:
    """Nesting beyond the decoder's recursion limit is a parse failure, not a crash."""
    text = '{"a":' + "[" * 100000 + "]" * 100000 + "}"

    assert parse_answer_json(text) is None
