from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
import structlog

from threadanswer.config import Settings, settings
from threadanswer.metrics import answer_generation_duration

logger = structlog.get_logger()

# (system, user) -> raw model text
CompletionFn = Callable[[str, str], Awaitable[str]]


def _extract_content(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content if isinstance(content, str) else ""


def create_completion_from_settings(config: Settings = settings) -> CompletionFn | None:
    """Build a chat-completions client for any OpenAI-compatible endpoint.

    Args:
        config: Settings providing ``LLM_API_KEY``, ``LLM_MODEL``, ``LLM_BASE_URL``
            and the generation parameters.

    Returns:
        An async ``(system, user) -> text`` function, or ``None`` when no API key
        or model is configured (the model path is then permanently unavailable).
    """
    api_key = config.LLM_API_KEY.get_secret_value()
    model = config.LLM_MODEL
    if not api_key or not model:
        return None

    url = f"{config.LLM_BASE_URL.removesuffix('/')}/chat/completions"
    headers = {"Authorization": f"Bearer {api_key}"}

    async def complete(system: str, user: str) -> str:
        payload: dict[str, object] = {
            "model": model,
            "temperature": config.LLM_TEMPERATURE,
            "max_tokens": config.LLM_MAX_TOKENS,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        }
        async with httpx.AsyncClient(timeout=config.LLM_TIMEOUT_SECONDS) as client:
            response = await client.post(url, json=payload, headers=headers)

        if not response.is_success:
            logger.warning("llm_http_error", status=response.status_code, body=response.text[:500])
            return ""
        return _extract_content(response.json())

    logger.info("llm_client_configured", model=model, base_url=config.LLM_BASE_URL)
    return complete


async def invoke_model(
    completion: CompletionFn,
    system: str,
    user: str,
    timeout: float | None = None,
) -> str:
    """Call ``completion`` once, mapping every failure to an empty string.

    Transport errors, HTTP errors, malformed bodies and timeouts are logged and
    surface as ``""`` so that the caller's JSON parsing fails and it can fall
    back. Nothing is raised.

    Args:
        completion: The injected completion function.
        system: System instruction.
        user: User message.
        timeout: Seconds before the call is abandoned. Defaults to ``LLM_TIMEOUT_SECONDS``.

    Returns:
        The raw model text, or ``""`` on any failure.
    """
    limit = settings.LLM_TIMEOUT_SECONDS if timeout is None else timeout
    try:
        with answer_generation_duration.time():
            text = await asyncio.wait_for(completion(system, user), timeout=limit)
    except asyncio.TimeoutError:
        logger.warning("llm_timeout", timeout=limit)
        return ""
    except Exception as exc:
        logger.warning("llm_call_failed", error=str(exc), error_type=type(exc).__name__)
        return ""

    return text if isinstance(text, str) else ""
