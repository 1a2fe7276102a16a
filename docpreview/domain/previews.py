"""Domain entities for preview requests."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import InvalidPreviewRequest, PreviewError


class RequestState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ConcurrencyPolicy(str, Enum):
    """What a coordinator does with a second request for a pending document."""

    REJECT = "reject"
    QUEUE = "queue"


@dataclass(frozen=True, slots=True)
class PreviewRequest:
    """A document id plus the structured content to render."""

    document_id: str
    content: Mapping[str, Any]

    def __post_init__(self) -> None:
        if not isinstance(self.document_id, str) or not self.document_id.strip():
            raise InvalidPreviewRequest("document_id must be a non-empty string")


@dataclass(frozen=True, slots=True)
class PreviewResult:
    """Rendered preview artifact: either the bytes or a reference to them."""

    document_id: str
    data: bytes | None = None
    url: str | None = None
    content_type: str = "application/pdf"
    filename: str = "preview.pdf"

    @property
    def size(self) -> int:
        return len(self.data) if self.data is not None else 0

    def is_complete(self) -> bool:
        return bool(self.data) or bool(self.url)


@dataclass(frozen=True, slots=True)
class PreviewState:
    """Snapshot of a single document's preview state on a coordinator."""

    state: RequestState = RequestState.IDLE
    result: PreviewResult | None = None
    error: PreviewError | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state in (RequestState.SUCCEEDED, RequestState.FAILED)
