from __future__ import annotations

import time
from typing import Callable, Optional

from common.events import Channel

YOU = "You"
TENANT = "Tenant"


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class TranscriptBuffer:
    """Append-only transcript text capped at ``max_length`` characters.

    Speaker labels are a timing heuristic: when more than ``speaker_gap_ms``
    passes between appends the new text starts a line labelled with the speaker
    opposite to the last label in the buffer.
    """

    def __init__(
        self,
        max_length: int = 10000,
        speaker_gap_ms: float = 2000,
        clock: Callable[[], float] = _monotonic_ms,
    ) -> None:
        self.max_length = max_length
        self.speaker_gap_ms = speaker_gap_ms
        self._clock = clock
        self._text = ""
        self._last_append_ms: float | None = None
        self._last_speaker: str | None = None
        self._revision = 0
        self.changed: Channel[str] = Channel("transcript")

    def __len__(self) -> int:
        return len(self._text)

    def snapshot(self) -> str:
        return self._text

    @property
    def revision(self) -> int:
        """Number of appends so far. Never decreases, even when the front is trimmed."""
        return self._revision

    def last_speaker(self) -> str | None:
        return self._last_speaker

    def next_speaker(self) -> str:
        return YOU if self.last_speaker() == TENANT else TENANT

    def append(self, text: str, at_ms: Optional[float] = None, speaker: Optional[str] = None) -> None:
        """Append one transcribed unit.

        ``speaker`` forces a labelled line regardless of timing.
        """
        text = text.strip()
        if not text:
            return

        now = self._clock() if at_ms is None else at_ms
        gap = None if self._last_append_ms is None else now - self._last_append_ms
        self._last_append_ms = now

        if speaker is None and (gap is None or gap > self.speaker_gap_ms):
            speaker = self.next_speaker()

        if speaker is not None:
            separator = "" if not self._text or self._text.endswith("\n") else "\n"
            self._text += f"{separator}{speaker}: {text}"
            self._last_speaker = speaker
        else:
            separator = "" if not self._text or self._text.endswith("\n") else " "
            self._text += separator + text

        if len(self._text) > self.max_length:
            self._text = self._text[len(self._text) - self.max_length:]

        self._revision += 1
        self.changed.emit(self._text)

    def clear(self) -> None:
        self._text = ""
        self._last_append_ms = None
        self._last_speaker = None
        self.changed.emit("")
