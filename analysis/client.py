from __future__ import annotations

import logging

import httpx

from common.config import OpenAISettings
from common.errors import CredentialMissing, SchemaViolation, TransportFailure

logger = logging.getLogger(__name__)


async def chat_completion(
    messages: list[dict[str, str]],
    settings: OpenAISettings | None = None,
    max_tokens: int | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Call the OpenAI /chat/completions endpoint and return the assistant message content."""
    settings = settings or OpenAISettings()
    if not settings.api_key:
        raise CredentialMissing()

    url = f"{settings.base_url}/chat/completions"
    payload = {
        "model": settings.chat_model,
        "messages": messages,
        "temperature": settings.temperature,
        "max_tokens": max_tokens or settings.analysis_max_tokens,
        "response_format": {"type": "json_object"},
    }
    headers = {"Authorization": f"Bearer {settings.api_key}"}

    try:
        async with httpx.AsyncClient(timeout=settings.timeout_s, transport=transport) as client:
            resp = await client.post(url, json=payload, headers=headers)
            resp.raise_for_status()
            data = resp.json()
    except httpx.HTTPStatusError as exc:
        raise TransportFailure(f"API error: {exc.response.status_code}", exc.response.status_code) from exc
    except httpx.HTTPError as exc:
        raise TransportFailure(f"Transport error: {exc}") from exc
    except ValueError as exc:
        raise SchemaViolation(f"Chat response is not JSON: {exc}") from exc

    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise SchemaViolation("Chat response has no message content") from exc
    if not isinstance(content, str):
        raise SchemaViolation("Chat message content is not text")
    return content
