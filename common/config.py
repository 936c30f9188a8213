from __future__ import annotations

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings

from common.storage import KeyValueStore

API_KEY_KEY = "tenant_assistant_api_key"
MODEL_KEY = "tenant_assistant_model"
TRANSCRIPTION_SPEED_KEY = "tenant_assistant_transcription_speed"


class TranscriptionSpeed(str, Enum):
    fast = "fast"
    accurate = "accurate"


class OpenAISettings(BaseSettings):
    api_key: str = ""
    base_url: str = "https://api.openai.com/v1"
    transcription_model: str = "whisper-1"
    chat_model: str = "gpt-4o"
    transcription_speed: TranscriptionSpeed = TranscriptionSpeed.fast
    language: str = "en"
    temperature: float = 0.3
    analysis_max_tokens: int = 500
    summary_max_tokens: int = 1000
    timeout_s: float = 60.0

    model_config = {"env_prefix": "OPENAI_"}

    @property
    def decoding_temperature(self) -> float:
        return 0.0 if self.transcription_speed == TranscriptionSpeed.accurate else 0.2


class PipelineSettings(BaseSettings):
    transcription_interval_ms: int = Field(default=500, gt=0)
    suggestion_interval_ms: int = Field(default=2000, gt=0)
    max_transcript_length: int = Field(default=10000, gt=0)
    speaker_gap_ms: int = 2000
    max_suggestions: int = 5

    model_config = {"env_prefix": "PIPELINE_"}


class GatewaySettings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 8000
    storage_path: str = "assistant_store.json"
    sample_rate: int = 16000
    channels: int = 1
    encoding: str = "pcm_s16le"
    slice_duration_s: float = 1.0
    log_level: str = "INFO"

    model_config = {"env_prefix": "GATEWAY_"}


def load_saved_settings(store: KeyValueStore, settings: OpenAISettings) -> OpenAISettings:
    """Overlay persisted user choices onto ``settings``; absent keys keep defaults."""
    api_key = store.get(API_KEY_KEY)
    if api_key:
        settings.api_key = api_key
    model = store.get(MODEL_KEY)
    if model:
        settings.chat_model = model
    speed = store.get(TRANSCRIPTION_SPEED_KEY)
    if speed in TranscriptionSpeed.__members__:
        settings.transcription_speed = TranscriptionSpeed(speed)
    return settings


def save_settings(
    store: KeyValueStore,
    settings: OpenAISettings,
    api_key: str | None = None,
    model: str | None = None,
    transcription_speed: TranscriptionSpeed | None = None,
) -> None:
    if api_key:
        store.set(API_KEY_KEY, api_key)
        settings.api_key = api_key
    if model:
        store.set(MODEL_KEY, model)
        settings.chat_model = model
    if transcription_speed:
        store.set(TRANSCRIPTION_SPEED_KEY, transcription_speed.value)
        settings.transcription_speed = transcription_speed
