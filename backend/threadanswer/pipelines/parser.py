from __future__ import annotations

import json
import re

import structlog
from pydantic import ValidationError

from threadanswer.schemas.answer import ParsedModelOutput

logger = structlog.get_logger()

_FENCED_JSON_RE = re.compile(r"```json\s*(.*?)```", re.IGNORECASE | re.DOTALL)


def extract_json(text: str) -> str | None:
    """Pull the JSON object candidate out of free-form model text.

    Heuristic, not a JSON scanner: a ```json fenced block wins when present,
    then the slice from the first ``{`` to the last ``}`` is taken. Two
    separate objects in one reply yield an unparseable slice, which the
    caller treats as a parse failure.

    Args:
        text: Raw model output.

    Returns:
        The candidate JSON text, or ``None`` when no brace pair is found.
    """
    fenced = _FENCED_JSON_RE.search(text)
    candidate = fenced.group(1) if fenced else text
    start = candidate.find("{")
    end = candidate.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    return candidate[start : end + 1]


def parse_answer_json(text: str) -> ParsedModelOutput | None:
    """Parse and validate a model reply, returning ``None`` on any failure."""
    json_text = extract_json(text or "")
    if json_text is None:
        logger.debug("model_output_no_json", length=len(text or ""))
        return None

    try:
        payload = json.loads(json_text)
    except (ValueError, RecursionError) as exc:
        logger.debug("model_output_json_error", error=str(exc))
        return None

    try:
        return ParsedModelOutput.model_validate(payload)
    except ValidationError as exc:
        logger.debug("model_output_schema_error", error_count=exc.error_count())
        return None
