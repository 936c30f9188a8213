from __future__ import annotations


class AssistantError(Exception):
    """Base class for recoverable failures around the external service."""


class CredentialMissing(AssistantError):
    def __init__(self, detail: str = "OpenAI API key not set") -> None:
        super().__init__(detail)


class TransportFailure(AssistantError):
    def __init__(self, detail: str, status_code: int | None = None) -> None:
        super().__init__(detail)
        self.status_code = status_code


class SchemaViolation(AssistantError):
    """The service answered, but not with the structure we asked for."""


class DocumentExists(AssistantError):
    def __init__(self, doc_id: str) -> None:
        super().__init__(f"Document {doc_id} already exists")
        self.doc_id = doc_id
