from __future__ import annotations

import random
import time

from common.schemas import KnowledgeDocument


def generate_document_id() -> str:
    return f"doc_{int(time.time() * 1000)}_{random.randint(0, 999)}"


def extract_text(name: str, mime_type: str, data: bytes) -> str:
    # Binary formats are not parsed, only named.
    if "image" in mime_type:
        return f"[Image file: {name}]"
    if "pdf" in mime_type:
        return f"[PDF content from: {name}]"
    return data.decode("utf-8", errors="replace")


def build_document(
    name: str,
    mime_type: str,
    data: bytes,
    doc_id: str | None = None,
) -> KnowledgeDocument:
    return KnowledgeDocument(
        id=doc_id or generate_document_id(),
        name=name,
        mime_type=mime_type,
        size_bytes=len(data),
        content=extract_text(name, mime_type, data),
    )
