"""Error taxonomy for preview generation.

Callers only need to branch on :class:`GenerationFailed`; the subclasses exist
so that the API layer and logs can tell a local validation failure apart from
a collaborator failure.
"""
from __future__ import annotations


class PreviewError(Exception):
    """Base class for preview errors."""

    error_code = "preview_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message


class GenerationFailed(PreviewError):
    """Raised when the content-generation service reports a failure."""

    error_code = "generation_failed"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidPreviewRequest(GenerationFailed):
    """Raised before any network call when the request itself is unusable."""

    error_code = "invalid_request"


class PreviewInProgress(GenerationFailed):
    """Raised when a document already has a pending preview and queuing is off."""

    error_code = "preview_in_progress"

    def __init__(self, document_id: str) -> None:
        super().__init__(f"a preview for document {document_id!r} is already pending")
        self.document_id = document_id
