import asyncio
import random

import httpx
import pytest

from common.config import OpenAISettings, TranscriptionSpeed
from common.errors import CredentialMissing, SchemaViolation, TransportFailure
from transcription.buffer import TENANT, YOU, TranscriptBuffer
from transcription.client import transcribe_audio
from transcription.demo import INTERVIEWER_PHRASES, TENANT_PHRASES, DemoLineGenerator
from transcription.models import AudioSegment
from transcription.pipeline import TranscriptionPipeline


def _segment(sequence: int = 0) -> AudioSegment:
    return AudioSegment(payload=b"RIFF-fake-wav", sequence=sequence)


class TestTranscriptBuffer:
    def test_first_append_gets_default_label(self):
        buf = TranscriptBuffer()
        buf.append("hello", at_ms=0)
        assert buf.snapshot() == "Tenant: hello"

    def test_long_gap_alternates_label(self):
        buf = TranscriptBuffer()
        buf.append("hello", at_ms=0)
        buf.append("hi there", at_ms=2500)
        assert buf.snapshot() == "Tenant: hello\nYou: hi there"
        buf.append("welcome", at_ms=5000)
        assert buf.snapshot().endswith("\nTenant: welcome")

    def test_short_gap_joins_with_space(self):
        buf = TranscriptBuffer()
        buf.append("hello", at_ms=0)
        buf.append("again", at_ms=2000)
        assert buf.snapshot() == "Tenant: hello again"

    def test_forced_speaker(self):
        buf = TranscriptBuffer()
        buf.append("first", at_ms=0)
        buf.append("Do you have pets?", at_ms=100, speaker=YOU)
        assert buf.snapshot() == "Tenant: first\nYou: Do you have pets?"
        assert buf.last_speaker() == YOU
        assert buf.next_speaker() == TENANT

    def test_length_never_exceeds_cap_and_trims_front(self):
        buf = TranscriptBuffer(max_length=50)
        for i in range(40):
            buf.append(f"word{i}", at_ms=i * 100)
            assert len(buf) <= 50
        assert buf.snapshot().endswith("word39")
        assert "word0 " not in buf.snapshot()

    def test_observer_gets_full_text(self):
        buf = TranscriptBuffer()
        seen = []
        buf.changed.subscribe(seen.append)
        buf.append("a", at_ms=0)
        buf.append("b", at_ms=10)
        buf.clear()
        assert seen == ["Tenant: a", "Tenant: a b", ""]
        assert buf.snapshot() == ""

    def test_zero_cap_keeps_nothing(self):
        buf = TranscriptBuffer(max_length=0)
        buf.append("hello", at_ms=0)
        assert len(buf) == 0

    def test_label_alternates_after_trim_drops_it(self):
        buf = TranscriptBuffer(max_length=30)
        buf.append("aaa", at_ms=0)
        buf.append("b" * 25, at_ms=100)
        assert "Tenant:" not in buf.snapshot()
        buf.append("next", at_ms=5000)
        assert buf.snapshot().endswith("\nYou: next")
        assert len(buf) <= 30

    def test_revision_keeps_rising_at_cap(self):
        buf = TranscriptBuffer(max_length=10)
        for i in range(5):
            buf.append("abcdefghij", at_ms=i * 10)
        assert len(buf) == 10
        assert buf.revision == 5
        buf.clear()
        assert buf.revision == 5
        assert buf.last_speaker() is None

    def test_blank_text_ignored(self):
        buf = TranscriptBuffer()
        buf.append("   ", at_ms=0)
        assert buf.snapshot() == ""


class TestTranscriptionClient:
    @pytest.mark.asyncio
    async def test_missing_key(self):
        with pytest.raises(CredentialMissing):
            await transcribe_audio(_segment(), OpenAISettings(api_key=""))

    @pytest.mark.asyncio
    async def test_success_sends_form_fields(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = request.content
            return httpx.Response(200, json={"text": "I work nights."})

        settings = OpenAISettings(api_key="sk-test", transcription_speed=TranscriptionSpeed.accurate)
        text = await transcribe_audio(_segment(), settings, transport=httpx.MockTransport(handler))
        assert text == "I work nights."
        assert seen["url"] == "https://api.openai.com/v1/audio/transcriptions"
        assert seen["auth"] == "Bearer sk-test"
        assert b"whisper-1" in seen["body"]
        assert b"segment.wav" in seen["body"]

    @pytest.mark.asyncio
    async def test_http_error_is_transport_failure(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500, json={"error": "boom"}))
        with pytest.raises(TransportFailure) as info:
            await transcribe_audio(_segment(), OpenAISettings(api_key="sk-test"), transport=transport)
        assert info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_missing_text_is_schema_violation(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"nope": 1}))
        with pytest.raises(SchemaViolation):
            await transcribe_audio(_segment(), OpenAISettings(api_key="sk-test"), transport=transport)

    def test_decoding_temperature(self):
        assert OpenAISettings(transcription_speed=TranscriptionSpeed.fast).decoding_temperature == 0.2
        assert OpenAISettings(transcription_speed=TranscriptionSpeed.accurate).decoding_temperature == 0.0


class TestDemoLines:
    def test_lines_come_from_phrase_sets(self):
        demo = DemoLineGenerator(random.Random(7))
        for _ in range(20):
            speaker, phrase = demo.next_line()
            if speaker == TENANT:
                assert phrase in TENANT_PHRASES
            else:
                assert speaker == YOU
                assert phrase in INTERVIEWER_PHRASES


class TestTranscriptionPipeline:
    @pytest.mark.asyncio
    async def test_tick_drains_one_segment(self):
        buf = TranscriptBuffer()

        async def transcriber(segment):
            return f"chunk {segment.sequence}"

        pipeline = TranscriptionPipeline(buf, transcriber=transcriber)
        pipeline.enqueue(_segment(0))
        pipeline.enqueue(_segment(1))
        assert await pipeline.tick() is True
        assert pipeline.pending == 1
        assert "chunk 0" in buf.snapshot()
        assert "chunk 1" not in buf.snapshot()

    @pytest.mark.asyncio
    async def test_empty_queue_is_noop(self):
        pipeline = TranscriptionPipeline(TranscriptBuffer(), transcriber=None)
        assert await pipeline.tick() is False

    @pytest.mark.asyncio
    async def test_second_tick_while_in_flight_is_noop(self):
        release = asyncio.Event()
        calls = []

        async def slow(segment):
            calls.append(segment.sequence)
            await release.wait()
            return "hello"

        pipeline = TranscriptionPipeline(TranscriptBuffer(), transcriber=slow)
        pipeline.enqueue(_segment(0))
        pipeline.enqueue(_segment(1))

        first = asyncio.create_task(pipeline.tick())
        await asyncio.sleep(0)
        assert pipeline.processing
        assert await pipeline.tick() is False
        assert pipeline.pending == 1

        release.set()
        assert await first is True
        assert calls == [0]
        assert not pipeline.processing

    @pytest.mark.asyncio
    async def test_transport_failure_appends_one_demo_line(self):
        buf = TranscriptBuffer()
        updates = []
        buf.changed.subscribe(updates.append)

        async def failing(segment):
            raise TransportFailure("API error: 503", 503)

        pipeline = TranscriptionPipeline(buf, transcriber=failing, demo=DemoLineGenerator(random.Random(3)))
        pipeline.enqueue(_segment(0))
        await pipeline.tick()
        assert len(updates) == 1
        assert buf.snapshot().startswith(("You: ", "Tenant: "))
        assert not pipeline.processing

    @pytest.mark.asyncio
    async def test_missing_credential_falls_back(self):
        buf = TranscriptBuffer()
        pipeline = TranscriptionPipeline(buf, OpenAISettings(api_key=""))
        pipeline.enqueue(_segment(0))
        await pipeline.tick()
        assert buf.snapshot() != ""

    @pytest.mark.asyncio
    async def test_unexpected_error_does_not_raise(self):
        buf = TranscriptBuffer()

        async def broken(segment):
            raise RuntimeError("bug")

        pipeline = TranscriptionPipeline(buf, transcriber=broken)
        pipeline.enqueue(_segment(0))
        assert await pipeline.tick() is True
        assert buf.snapshot() != ""
        assert not pipeline.processing

    @pytest.mark.asyncio
    async def test_silence_appends_nothing(self):
        buf = TranscriptBuffer()

        async def silent(segment):
            return "  "

        pipeline = TranscriptionPipeline(buf, transcriber=silent)
        pipeline.enqueue(_segment(0))
        await pipeline.tick()
        assert buf.snapshot() == ""

    def test_reset_drains_queue(self):
        pipeline = TranscriptionPipeline(TranscriptBuffer())
        for i in range(3):
            pipeline.enqueue(_segment(i))
        pipeline.reset()
        assert pipeline.pending == 0
        assert not pipeline.processing
