"""Internal models for the transcription pipeline."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class AudioSegment:
    payload: bytes
    sequence: int
    filename: str = "segment.wav"
    content_type: str = "audio/wav"
