"""Application services."""

from .documents import DocumentService, get_document_service, reset_document_state
from .preview import PreviewCoordinator, build_coordinator

__all__ = [
    "DocumentService",
    "PreviewCoordinator",
    "build_coordinator",
    "get_document_service",
    "reset_document_state",
]
