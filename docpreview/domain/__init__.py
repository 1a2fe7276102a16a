"""Domain layer definitions."""

from .documents import ContentRecord, DocumentRecord
from .errors import GenerationFailed, InvalidPreviewRequest, PreviewError, PreviewInProgress
from .previews import ConcurrencyPolicy, PreviewRequest, PreviewResult, PreviewState, RequestState

__all__ = [
    "ConcurrencyPolicy",
    "ContentRecord",
    "DocumentRecord",
    "GenerationFailed",
    "InvalidPreviewRequest",
    "PreviewError",
    "PreviewInProgress",
    "PreviewRequest",
    "PreviewResult",
    "PreviewState",
    "RequestState",
]
