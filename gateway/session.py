from __future__ import annotations

import logging

from analysis.heuristics import HeuristicAnalyzer
from analysis.pipeline import AnalysisPipeline, Completer
from common.config import GatewaySettings, OpenAISettings, PipelineSettings, load_saved_settings
from common.events import Channel
from common.schemas import FinalSummary
from common.storage import JsonFileStore, KeyValueStore
from common.ticker import PeriodicTask
from gateway.audio_utils import AudioSlicer, normalize_audio, volume_level
from knowledge.store import KnowledgeStore
from transcription.buffer import TranscriptBuffer
from transcription.demo import DemoLineGenerator
from transcription.pipeline import TranscriptionPipeline, Transcriber

logger = logging.getLogger(__name__)


class ScreeningSession:
    """One screening call: audio in, transcript and coaching out.

    Owns the transcript buffer, knowledge store, both pipelines and the two
    periodic drivers that pump them.
    """

    def __init__(
        self,
        storage: KeyValueStore,
        openai_settings: OpenAISettings | None = None,
        pipeline_settings: PipelineSettings | None = None,
        gateway_settings: GatewaySettings | None = None,
        transcriber: Transcriber | None = None,
        completer: Completer | None = None,
        heuristics: HeuristicAnalyzer | None = None,
        demo: DemoLineGenerator | None = None,
    ) -> None:
        self.storage = storage
        self.openai_settings = openai_settings or OpenAISettings()
        self.pipeline_settings = pipeline_settings or PipelineSettings()
        self.gateway_settings = gateway_settings or GatewaySettings()

        self.transcript = TranscriptBuffer(
            max_length=self.pipeline_settings.max_transcript_length,
            speaker_gap_ms=self.pipeline_settings.speaker_gap_ms,
        )
        self.knowledge = KnowledgeStore(storage)
        self.transcription = TranscriptionPipeline(
            self.transcript, self.openai_settings, transcriber=transcriber, demo=demo
        )
        self.analysis = AnalysisPipeline(
            self.transcript,
            self.knowledge,
            self.openai_settings,
            heuristics=heuristics,
            complete=completer,
            max_suggestions=self.pipeline_settings.max_suggestions,
        )
        self.volume: Channel[float] = Channel("volume")

        self._slicer = AudioSlicer(
            slice_duration_s=self.gateway_settings.slice_duration_s,
            sample_rate=self.gateway_settings.sample_rate,
        )
        self._transcription_driver = PeriodicTask(
            self.pipeline_settings.transcription_interval_ms / 1000,
            self.transcription.tick,
            name="transcription-driver",
        )
        self._analysis_driver = PeriodicTask(
            self.pipeline_settings.suggestion_interval_ms / 1000,
            self.analysis.tick,
            name="analysis-driver",
        )
        self._recording = False
        self._input_rate = self.gateway_settings.sample_rate
        self._input_channels = self.gateway_settings.channels
        self._input_encoding = self.gateway_settings.encoding

    @property
    def recording(self) -> bool:
        return self._recording

    def start(
        self,
        sample_rate: int | None = None,
        channels: int | None = None,
        encoding: str | None = None,
    ) -> bool:
        if self._recording:
            logger.warning("Session already recording")
            return False

        self._input_rate = sample_rate or self.gateway_settings.sample_rate
        self._input_channels = channels or self.gateway_settings.channels
        self._input_encoding = encoding or self.gateway_settings.encoding

        self.transcript.clear()
        self.transcription.reset()
        self.analysis.reset()
        self._slicer.discard()
        self._recording = True
        self._transcription_driver.start()
        self._analysis_driver.start()
        logger.info("Recording started")
        return True

    def feed_audio(self, data: bytes) -> int:
        """Meter and slice one frame of capture audio. Returns segments queued."""
        if not self._recording:
            return 0
        pcm = normalize_audio(
            data,
            input_sample_rate=self._input_rate,
            input_channels=self._input_channels,
            input_encoding=self._input_encoding,
        )
        self.volume.emit(volume_level(pcm))
        segments = self._slicer.feed(pcm)
        for segment in segments:
            self.transcription.enqueue(segment)
        return len(segments)

    async def stop(self) -> FinalSummary:
        """Tear down in order: producer, queue, drivers. Then summarize."""
        if self._recording:
            self._recording = False
            dropped = self._slicer.discard()
            logger.info("Recording stopped (%d bytes of partial audio dropped)", dropped)
        self.transcription.reset()
        await self._transcription_driver.stop()
        await self._analysis_driver.stop()
        return await self.analysis.generate_final_summary()


def build_session(
    gateway_settings: GatewaySettings | None = None,
    storage: KeyValueStore | None = None,
) -> ScreeningSession:
    gateway_settings = gateway_settings or GatewaySettings()
    storage = storage if storage is not None else JsonFileStore(gateway_settings.storage_path)
    openai_settings = load_saved_settings(storage, OpenAISettings())
    session = ScreeningSession(
        storage,
        openai_settings=openai_settings,
        gateway_settings=gateway_settings,
    )
    session.knowledge.load()
    return session
