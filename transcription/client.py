from __future__ import annotations

import logging

import httpx

from common.config import OpenAISettings
from common.errors import CredentialMissing, SchemaViolation, TransportFailure
from transcription.models import AudioSegment

logger = logging.getLogger(__name__)


async def transcribe_audio(
    segment: AudioSegment,
    settings: OpenAISettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Call the OpenAI /audio/transcriptions endpoint and return the text."""
    settings = settings or OpenAISettings()
    if not settings.api_key:
        raise CredentialMissing()

    url = f"{settings.base_url}/audio/transcriptions"
    files = {"file": (segment.filename, segment.payload, segment.content_type)}
    data = {
        "model": settings.transcription_model,
        "response_format": "json",
        "temperature": str(settings.decoding_temperature),
        "language": settings.language,
    }
    headers = {"Authorization": f"Bearer {settings.api_key}"}

    try:
        async with httpx.AsyncClient(timeout=settings.timeout_s, transport=transport) as client:
            resp = await client.post(url, data=data, files=files, headers=headers)
            resp.raise_for_status()
            body = resp.json()
    except httpx.HTTPStatusError as exc:
        raise TransportFailure(f"API error: {exc.response.status_code}", exc.response.status_code) from exc
    except httpx.HTTPError as exc:
        raise TransportFailure(f"Transport error: {exc}") from exc
    except ValueError as exc:
        raise SchemaViolation(f"Transcription response is not JSON: {exc}") from exc

    text = body.get("text") if isinstance(body, dict) else None
    if not isinstance(text, str):
        raise SchemaViolation("Transcription response has no text field")
    return text
