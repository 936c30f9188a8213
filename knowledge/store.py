from __future__ import annotations

import json
import logging

from pydantic import TypeAdapter, ValidationError

from common.errors import DocumentExists
from common.events import Channel
from common.schemas import KnowledgeDocument
from common.storage import KeyValueStore

logger = logging.getLogger(__name__)

DOCUMENTS_KEY = "tenant_assistant_documents"
NO_KNOWLEDGE = "No custom knowledge available."

_documents_adapter = TypeAdapter(list[KnowledgeDocument])


class KnowledgeStore:
    """Reference documents keyed by id, kept in insertion order and persisted."""

    def __init__(self, storage: KeyValueStore) -> None:
        self._storage = storage
        self._documents: dict[str, KnowledgeDocument] = {}
        self.changed: Channel[list[KnowledgeDocument]] = Channel("documents")

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, doc_id: str) -> bool:
        return doc_id in self._documents

    def documents(self) -> list[KnowledgeDocument]:
        return list(self._documents.values())

    def get(self, doc_id: str) -> KnowledgeDocument | None:
        return self._documents.get(doc_id)

    def load(self) -> list[KnowledgeDocument]:
        raw = self._storage.get(DOCUMENTS_KEY)
        if not raw:
            return []
        try:
            docs = _documents_adapter.validate_json(raw)
        except ValidationError as exc:
            logger.error("Error loading documents: %s", exc)
            self._documents = {}
            return []
        self._documents = {doc.id: doc for doc in docs}
        logger.info("Loaded %d knowledge documents", len(self._documents))
        self.changed.emit(self.documents())
        return self.documents()

    def add(self, document: KnowledgeDocument) -> KnowledgeDocument:
        if document.id in self._documents:
            raise DocumentExists(document.id)
        self._documents[document.id] = document
        self._save()
        logger.info("Added document %s (%s)", document.id, document.name)
        self.changed.emit(self.documents())
        return document

    def remove(self, doc_id: str) -> bool:
        if self._documents.pop(doc_id, None) is None:
            return False
        self._save()
        logger.info("Removed document %s", doc_id)
        self.changed.emit(self.documents())
        return True

    def build_context(self) -> str:
        if not self._documents:
            return NO_KNOWLEDGE
        return "\n\n".join(
            f"Document: {doc.name}\nContent: {doc.content}" for doc in self._documents.values()
        )

    def _save(self) -> None:
        payload = [doc.model_dump(by_alias=True) for doc in self._documents.values()]
        self._storage.set(DOCUMENTS_KEY, json.dumps(payload))
