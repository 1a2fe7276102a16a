"""Infrastructure layer exports."""

from .documents import DocumentRepository, InMemoryDocumentRepository
from .generation import (
    HttpPreviewGenerator,
    LocalPreviewGenerator,
    PreviewGenerator,
    configure_preview_generator,
    get_preview_generator,
    reset_preview_generator,
)
from .sessions import InMemorySessionRepository, SessionRepository, get_session_repository

__all__ = [
    "DocumentRepository",
    "HttpPreviewGenerator",
    "InMemoryDocumentRepository",
    "InMemorySessionRepository",
    "LocalPreviewGenerator",
    "PreviewGenerator",
    "SessionRepository",
    "configure_preview_generator",
    "get_preview_generator",
    "get_session_repository",
    "reset_preview_generator",
]
