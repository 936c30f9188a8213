from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from common.config import TranscriptionSpeed


class CamelModel(BaseModel):
    """Fields are snake_case in Python and camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Analysis results ---

class Priority(str, Enum):
    high = "high"
    medium = "medium"
    low = "low"


class SuggestionType(str, Enum):
    question = "question"
    red_flag = "red_flag"
    missing_info = "missing_info"


class Suggestion(CamelModel):
    text: str
    priority: Priority
    type: SuggestionType


class AnalysisResult(CamelModel):
    suggestions: list[Suggestion]
    summary: str


class KeyPoints(CamelModel):
    income: str
    employment: str
    rental_history: str
    move_in_plans: str
    other_notes: str


class FinalSummary(CamelModel):
    summary: str
    missing_information: list[str]
    risk_assessment: str
    key_points: KeyPoints


# --- Knowledge base ---

def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class KnowledgeDocument(CamelModel):
    id: str
    name: str
    mime_type: str = ""
    size_bytes: int = 0
    content: str = ""
    added_at: str = Field(default_factory=_utcnow)


class DocumentUpload(CamelModel):
    name: str
    mime_type: str = ""
    content_base64: str
    id: Optional[str] = None


# --- Settings ---

class SettingsView(CamelModel):
    model: str
    transcription_speed: TranscriptionSpeed
    has_api_key: bool


class SettingsUpdate(CamelModel):
    api_key: Optional[str] = None
    model: Optional[str] = None
    transcription_speed: Optional[TranscriptionSpeed] = None


# --- WebSocket messages: client <-> gateway ---

class ClientMessageType(str, Enum):
    start = "start"
    end = "end"


class StartMessage(CamelModel):
    type: ClientMessageType = ClientMessageType.start
    sample_rate: int = 16000
    channels: int = 1
    encoding: str = "pcm_s16le"
    # audio payload sent as binary frames, not in JSON


class EndMessage(CamelModel):
    type: ClientMessageType = ClientMessageType.end


class ServerMessageType(str, Enum):
    transcript = "transcript"
    analysis = "analysis"
    volume = "volume"
    documents = "documents"
    final_summary = "final_summary"
    error = "error"


class TranscriptMessage(CamelModel):
    type: ServerMessageType = ServerMessageType.transcript
    text: str


class AnalysisMessage(CamelModel):
    type: ServerMessageType = ServerMessageType.analysis
    analysis: AnalysisResult


class VolumeMessage(CamelModel):
    type: ServerMessageType = ServerMessageType.volume
    level: float


class DocumentsMessage(CamelModel):
    type: ServerMessageType = ServerMessageType.documents
    documents: list[KnowledgeDocument]


class FinalSummaryMessage(CamelModel):
    type: ServerMessageType = ServerMessageType.final_summary
    summary: FinalSummary


class ErrorMessage(CamelModel):
    type: ServerMessageType = ServerMessageType.error
    detail: str
