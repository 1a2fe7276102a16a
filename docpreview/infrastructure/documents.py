"""Infrastructure layer for document persistence."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Protocol

from docpreview.domain import ContentRecord, DocumentRecord


class DocumentRepository(Protocol):
    """Persistence contract for documents and their content."""

    def create_document(
        self,
        owner_id: str,
        title: str,
        *,
        description: str | None = None,
        document_type: str | None = None,
    ) -> DocumentRecord: ...

    def get_document(self, document_id: str) -> DocumentRecord | None: ...

    def list_documents(self, owner_id: str) -> list[DocumentRecord]: ...

    def save_content(
        self,
        document_id: str,
        *,
        content_json: dict[str, Any] | None = None,
        html_content: str | None = None,
    ) -> ContentRecord: ...

    def next_document_id(self) -> str: ...

    def reset(self) -> None: ...


class InMemoryDocumentRepository:
    """Simple in-memory repository for fast iteration and tests."""

    def __init__(self) -> None:
        self._documents: dict[str, DocumentRecord] = {}
        self._counter = 0

    def next_document_id(self) -> str:
        self._counter += 1
        return f"doc-{self._counter:05d}"

    def create_document(
        self,
        owner_id: str,
        title: str,
        *,
        description: str | None = None,
        document_type: str | None = None,
    ) -> DocumentRecord:
        record = DocumentRecord(
            document_id=self.next_document_id(),
            owner_id=owner_id,
            title=title,
            description=description,
            document_type=document_type,
        )
        self._documents[record.document_id] = record
        return record

    def get_document(self, document_id: str) -> DocumentRecord | None:
        return self._documents.get(document_id)

    def list_documents(self, owner_id: str) -> list[DocumentRecord]:
        documents = [doc for doc in self._documents.values() if doc.owner_id == owner_id]
        # newest first; ids are monotonic so they break timestamp ties
        documents.sort(key=lambda doc: (doc.created_at, doc.document_id), reverse=True)
        return documents

    def save_content(
        self,
        document_id: str,
        *,
        content_json: dict[str, Any] | None = None,
        html_content: str | None = None,
    ) -> ContentRecord:
        document = self._documents.get(document_id)
        if document is None:
            raise KeyError(document_id)

        now = datetime.now(timezone.utc)
        current = document.content
        if current is None:
            current = ContentRecord(
                document_id=document_id,
                content_json=content_json,
                html_content=html_content,
                created_at=now,
                updated_at=now,
            )
            document.content = current
        else:
            if content_json is not None:
                current.content_json = content_json
            if html_content is not None:
                current.html_content = html_content
            current.version += 1
            current.updated_at = now
        document.updated_at = now
        return current

    def reset(self) -> None:
        self._documents.clear()
        self._counter = 0
