"""Application service layer for documents and previews."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fastapi.concurrency import run_in_threadpool

from docpreview.core.render import render_pdf
from docpreview.domain import ContentRecord, DocumentRecord
from docpreview.infrastructure import DocumentRepository, InMemoryDocumentRepository, get_session_repository

logger = logging.getLogger(__name__)


class DocumentService:
    """Coordinates document use cases; every lookup is scoped to an owner."""

    def __init__(self, repository: DocumentRepository) -> None:
        self._repository = repository

    # ------------------------------------------------------------------
    # documents
    # ------------------------------------------------------------------
    def create_document(
        self,
        owner_id: str,
        title: str,
        *,
        description: str | None = None,
        document_type: str | None = None,
    ) -> DocumentRecord:
        record = self._repository.create_document(
            owner_id,
            title,
            description=description,
            document_type=document_type,
        )
        logger.info("Created document %s for user %s", record.document_id, owner_id)
        return record

    def get_document_for_user(self, document_id: str, owner_id: str) -> DocumentRecord | None:
        record = self._repository.get_document(document_id)
        if record is None or record.owner_id != owner_id:
            return None
        return record

    def list_documents(self, owner_id: str) -> list[DocumentRecord]:
        return self._repository.list_documents(owner_id)

    # ------------------------------------------------------------------
    # content
    # ------------------------------------------------------------------
    def save_content(
        self,
        document_id: str,
        owner_id: str,
        *,
        content_json: dict[str, Any] | None = None,
        html_content: str | None = None,
    ) -> ContentRecord | None:
        if self.get_document_for_user(document_id, owner_id) is None:
            return None
        return self._repository.save_content(
            document_id,
            content_json=content_json,
            html_content=html_content,
        )

    def get_content_for_user(self, document_id: str, owner_id: str) -> tuple[bool, ContentRecord | None]:
        """Return ``(found, content)``; ``found`` is False for unknown or foreign documents."""

        record = self.get_document_for_user(document_id, owner_id)
        if record is None:
            return False, None
        return True, record.content

    # ------------------------------------------------------------------
    # previews
    # ------------------------------------------------------------------
    async def render_preview(self, tree: Mapping[str, Any]) -> bytes:
        """Render ``tree`` off the event loop."""

        return await run_in_threadpool(render_pdf, tree)

    # ------------------------------------------------------------------
    # testing helpers
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self._repository.reset()


_repository = InMemoryDocumentRepository()
_service = DocumentService(_repository)


def get_document_service() -> DocumentService:
    """Return the singleton document service for the process."""

    return _service


def reset_document_state() -> None:
    """Reset the in-memory stores (used in tests)."""

    _service.reset()
    get_session_repository().reset()
