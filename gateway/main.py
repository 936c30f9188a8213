from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect

from common.config import GatewaySettings, save_settings
from common.errors import DocumentExists
from common.schemas import (
    AnalysisMessage,
    ClientMessageType,
    DocumentsMessage,
    DocumentUpload,
    ErrorMessage,
    FinalSummaryMessage,
    KnowledgeDocument,
    SettingsUpdate,
    SettingsView,
    StartMessage,
    TranscriptMessage,
    VolumeMessage,
)
from gateway.session import ScreeningSession, build_session
from knowledge.ingest import build_document

logger = logging.getLogger(__name__)


def _dump(message) -> str:
    return message.model_dump_json(by_alias=True)


def create_app(session: ScreeningSession | None = None) -> FastAPI:
    app = FastAPI(title="Tenant Screening Assistant Gateway")
    app.state.session = session or build_session()

    @app.get("/health")
    async def health():
        return {"status": "ok", "recording": app.state.session.recording}

    @app.get("/settings")
    async def get_settings():
        settings = app.state.session.openai_settings
        view = SettingsView(
            model=settings.chat_model,
            transcription_speed=settings.transcription_speed,
            has_api_key=bool(settings.api_key),
        )
        return view.model_dump(by_alias=True, mode="json")

    @app.put("/settings")
    async def put_settings(update: SettingsUpdate):
        current: ScreeningSession = app.state.session
        save_settings(
            current.storage,
            current.openai_settings,
            api_key=update.api_key,
            model=update.model,
            transcription_speed=update.transcription_speed,
        )
        return await get_settings()

    @app.get("/documents")
    async def list_documents():
        return [doc.model_dump(by_alias=True) for doc in app.state.session.knowledge.documents()]

    @app.post("/documents", status_code=201)
    async def add_document(upload: DocumentUpload):
        try:
            data = base64.b64decode(upload.content_base64, validate=True)
        except (binascii.Error, ValueError):
            raise HTTPException(status_code=400, detail="content_base64 is not valid base64")
        doc: KnowledgeDocument = build_document(upload.name, upload.mime_type, data, doc_id=upload.id)
        try:
            app.state.session.knowledge.add(doc)
        except DocumentExists as exc:
            raise HTTPException(status_code=409, detail=str(exc))
        return doc.model_dump(by_alias=True)

    @app.delete("/documents/{doc_id}")
    async def remove_document(doc_id: str):
        if not app.state.session.knowledge.remove(doc_id):
            raise HTTPException(status_code=404, detail=f"Document {doc_id} not found")
        return {"removed": doc_id}

    @app.websocket("/audio")
    async def audio_endpoint(ws: WebSocket):
        await ws.accept()
        await _run_call(ws, app.state.session)

    return app


async def _run_call(ws: WebSocket, session: ScreeningSession) -> None:
    outbox: asyncio.Queue[str] = asyncio.Queue()
    unsubscribers = [
        session.transcript.changed.subscribe(lambda text: outbox.put_nowait(_dump(TranscriptMessage(text=text)))),
        session.analysis.results.subscribe(
            lambda result: outbox.put_nowait(_dump(AnalysisMessage(analysis=result)))
        ),
        session.volume.subscribe(lambda level: outbox.put_nowait(_dump(VolumeMessage(level=level)))),
        session.knowledge.changed.subscribe(
            lambda docs: outbox.put_nowait(_dump(DocumentsMessage(documents=docs)))
        ),
    ]
    pump_task = asyncio.create_task(_pump(outbox, ws))
    started = False
    try:
        # Expect a start message first (text frame)
        raw = await ws.receive_text()
        msg = json.loads(raw)
        if msg.get("type") != ClientMessageType.start:
            await ws.send_text(_dump(ErrorMessage(detail="Expected start message")))
            await ws.close()
            return

        start = StartMessage.model_validate(msg)
        if not session.start(start.sample_rate, start.channels, start.encoding):
            await ws.send_text(_dump(ErrorMessage(detail="A screening call is already in progress")))
            await ws.close()
            return
        started = True

        while True:
            message = await ws.receive()
            if message.get("type") == "websocket.disconnect":
                break

            if message.get("bytes") is not None:
                session.feed_audio(message["bytes"])
            elif message.get("text") is not None:
                data = json.loads(message["text"])
                if data.get("type") == ClientMessageType.end:
                    started = False
                    summary = await session.stop()
                    outbox.put_nowait(_dump(FinalSummaryMessage(summary=summary)))
                    await outbox.join()
                    await ws.close()
                    break

    except WebSocketDisconnect:
        logger.info("Client disconnected")
    except Exception:
        logger.exception("Unexpected error in audio endpoint")
    finally:
        for unsubscribe in unsubscribers:
            unsubscribe()
        pump_task.cancel()
        try:
            await pump_task
        except asyncio.CancelledError:
            pass
        if started:
            await session.stop()


async def _pump(outbox: asyncio.Queue[str], ws: WebSocket) -> None:
    """Forward queued session events to the client in order."""
    while True:
        message = await outbox.get()
        try:
            await ws.send_text(message)
        except Exception:
            logger.exception("Failed to deliver event to client")
        finally:
            outbox.task_done()


if __name__ == "__main__":
    import uvicorn

    gateway_settings = GatewaySettings()
    logging.basicConfig(
        level=gateway_settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app(build_session(gateway_settings))
    uvicorn.run(app, host=gateway_settings.host, port=gateway_settings.port)
