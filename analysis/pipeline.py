from __future__ import annotations

import logging
from typing import Awaitable, Callable

from analysis.client import chat_completion
from analysis.heuristics import HeuristicAnalyzer
from analysis.parsing import decode_analysis, decode_final_summary
from analysis.prompts import build_analysis_messages, build_summary_messages
from common.config import OpenAISettings
from common.errors import AssistantError
from common.events import Channel
from common.schemas import AnalysisResult, FinalSummary, KeyPoints
from knowledge.store import KnowledgeStore
from transcription.buffer import TranscriptBuffer

logger = logging.getLogger(__name__)

Completer = Callable[[list[dict[str, str]], int], Awaitable[str]]

EMPTY_SUMMARY = FinalSummary(
    summary="No conversation recorded.",
    missing_information=[],
    risk_assessment="Unable to assess risk without conversation data.",
    key_points=KeyPoints(income="", employment="", rental_history="", move_in_plans="", other_notes=""),
)


class AnalysisPipeline:
    """Periodic coaching suggestions plus the end-of-call summary.

    Any failure of the reasoning service (missing key, transport error, reply
    that does not decode) is replaced by :class:`HeuristicAnalyzer` output.
    """

    def __init__(
        self,
        transcript: TranscriptBuffer,
        knowledge: KnowledgeStore,
        settings: OpenAISettings | None = None,
        heuristics: HeuristicAnalyzer | None = None,
        complete: Completer | None = None,
        max_suggestions: int = 5,
    ) -> None:
        self.transcript = transcript
        self.knowledge = knowledge
        self.settings = settings or OpenAISettings()
        self.heuristics = heuristics or HeuristicAnalyzer()
        self.max_suggestions = max_suggestions
        self._complete = complete or self._call_service
        self._analyzing = False
        self._last_revision = 0
        self.results: Channel[AnalysisResult] = Channel("analysis")

    @property
    def analyzing(self) -> bool:
        return self._analyzing

    def reset(self) -> None:
        self._last_revision = 0

    async def tick(self) -> AnalysisResult | None:
        """Analyze the transcript if it grew since the last attempt."""
        transcript = self.transcript.snapshot()
        revision = self.transcript.revision
        if self._analyzing or not transcript or revision == self._last_revision:
            return None

        self._last_revision = revision
        self._analyzing = True
        try:
            result = await self._analyze(transcript)
        finally:
            self._analyzing = False

        self.results.emit(result)
        return result

    async def generate_final_summary(self) -> FinalSummary:
        transcript = self.transcript.snapshot()
        if not transcript:
            return EMPTY_SUMMARY.model_copy(deep=True)

        messages = build_summary_messages(transcript, self.knowledge.build_context())
        try:
            content = await self._complete(messages, self.settings.summary_max_tokens)
            return decode_final_summary(content)
        except AssistantError as exc:
            logger.warning("Final summary unavailable, using heuristics: %s", exc)
        except Exception:
            logger.exception("Unexpected error generating final summary")
        return self.heuristics.final_summary(transcript)

    async def _analyze(self, transcript: str) -> AnalysisResult:
        messages = build_analysis_messages(transcript, self.knowledge.build_context())
        try:
            content = await self._complete(messages, self.settings.analysis_max_tokens)
            result = decode_analysis(content)
        except AssistantError as exc:
            logger.warning("Analysis unavailable, using heuristics: %s", exc)
            return self.heuristics.analyze(transcript)
        except Exception:
            logger.exception("Unexpected analysis error")
            return self.heuristics.analyze(transcript)

        if len(result.suggestions) > self.max_suggestions:
            result.suggestions = result.suggestions[: self.max_suggestions]
        return result

    async def _call_service(self, messages: list[dict[str, str]], max_tokens: int) -> str:
        return await chat_completion(messages, self.settings, max_tokens=max_tokens)
