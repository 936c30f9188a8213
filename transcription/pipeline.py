from __future__ import annotations

import logging
from collections import deque
from typing import Awaitable, Callable

from common.config import OpenAISettings
from common.errors import AssistantError
from transcription.buffer import TranscriptBuffer
from transcription.client import transcribe_audio
from transcription.demo import DemoLineGenerator
from transcription.models import AudioSegment

logger = logging.getLogger(__name__)

Transcriber = Callable[[AudioSegment], Awaitable[str]]


class TranscriptionPipeline:
    """FIFO of audio segments drained one at a time into the transcript.

    At most one transcription call is outstanding, however deep the queue is.
    Failures never reach the caller: a demo line is appended instead.
    """

    def __init__(
        self,
        buffer: TranscriptBuffer,
        settings: OpenAISettings | None = None,
        transcriber: Transcriber | None = None,
        demo: DemoLineGenerator | None = None,
    ) -> None:
        self.buffer = buffer
        self.settings = settings or OpenAISettings()
        self._transcriber = transcriber or self._call_service
        self._demo = demo or DemoLineGenerator()
        self._queue: deque[AudioSegment] = deque()
        self._processing = False

    @property
    def pending(self) -> int:
        return len(self._queue)

    @property
    def processing(self) -> bool:
        return self._processing

    def enqueue(self, segment: AudioSegment) -> None:
        self._queue.append(segment)

    async def tick(self) -> bool:
        """Transcribe the next queued segment. Returns False when skipped."""
        if self._processing or not self._queue:
            return False

        segment = self._queue.popleft()
        self._processing = True
        try:
            text = await self._transcriber(segment)
        except AssistantError as exc:
            logger.warning("Transcription of segment %d failed: %s", segment.sequence, exc)
            self._append_demo_line()
        except Exception:
            logger.exception("Unexpected transcription error on segment %d", segment.sequence)
            self._append_demo_line()
        else:
            if text.strip():
                self.buffer.append(text)
            else:
                logger.debug("Segment %d transcribed to silence", segment.sequence)
        finally:
            self._processing = False
        return True

    def reset(self) -> None:
        dropped = len(self._queue)
        self._queue.clear()
        self._processing = False
        if dropped:
            logger.info("Dropped %d pending audio segments", dropped)

    def _append_demo_line(self) -> None:
        speaker, phrase = self._demo.next_line()
        self.buffer.append(phrase, speaker=speaker)

    async def _call_service(self, segment: AudioSegment) -> str:
        return await transcribe_audio(segment, self.settings)
