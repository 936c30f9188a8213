from __future__ import annotations

import io
import subprocess
import wave

import numpy as np

from transcription.models import AudioSegment

TARGET_SAMPLE_RATE = 16000


def normalize_audio(
    data: bytes,
    input_sample_rate: int = TARGET_SAMPLE_RATE,
    input_channels: int = 1,
    input_encoding: str = "pcm_s16le",
) -> bytes:
    """Convert incoming audio to 16kHz mono 16-bit PCM.

    If the audio is already in the target format, return as-is.
    Otherwise shell out to ffmpeg for conversion.
    """
    if input_sample_rate == TARGET_SAMPLE_RATE and input_channels == 1 and input_encoding == "pcm_s16le":
        return data

    cmd = [
        "ffmpeg",
        "-hide_banner",
        "-loglevel", "error",
        "-f", _ffmpeg_format(input_encoding),
        "-ar", str(input_sample_rate),
        "-ac", str(input_channels),
        "-i", "pipe:0",
        "-f", "s16le",
        "-ar", str(TARGET_SAMPLE_RATE),
        "-ac", "1",
        "pipe:1",
    ]
    result = subprocess.run(cmd, input=data, capture_output=True, check=True)
    return result.stdout


def _ffmpeg_format(encoding: str) -> str:
    mapping = {
        "pcm_s16le": "s16le",
        "pcm_f32le": "f32le",
        "webm": "webm",
        "ogg": "ogg",
        "wav": "wav",
    }
    return mapping.get(encoding, "s16le")


def pcm_to_wav(pcm: bytes, sample_rate: int = TARGET_SAMPLE_RATE) -> bytes:
    buf = io.BytesIO()
    with wave.open(buf, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm)
    return buf.getvalue()


def volume_level(pcm: bytes) -> float:
    """Mean absolute amplitude of 16-bit PCM scaled to 0-100."""
    samples = np.frombuffer(pcm[: len(pcm) - len(pcm) % 2], dtype=np.int16)
    if samples.size == 0:
        return 0.0
    average = float(np.abs(samples.astype(np.float32)).mean())
    return min(100.0, max(0.0, average * 100.0 / 32768.0))


class AudioSlicer:
    """Cuts a PCM stream into fixed-duration WAV segments."""

    def __init__(self, slice_duration_s: float = 1.0, sample_rate: int = TARGET_SAMPLE_RATE) -> None:
        self.sample_rate = sample_rate
        self.slice_bytes = int(slice_duration_s * sample_rate) * 2
        self._buffer = bytearray()
        self._sequence = 0

    @property
    def buffered_bytes(self) -> int:
        return len(self._buffer)

    def feed(self, pcm: bytes) -> list[AudioSegment]:
        self._buffer.extend(pcm)
        segments = []
        while len(self._buffer) >= self.slice_bytes:
            chunk = bytes(self._buffer[: self.slice_bytes])
            del self._buffer[: self.slice_bytes]
            segments.append(AudioSegment(payload=pcm_to_wav(chunk, self.sample_rate), sequence=self._sequence))
            self._sequence += 1
        return segments

    def discard(self) -> int:
        dropped = len(self._buffer)
        self._buffer.clear()
        return dropped
