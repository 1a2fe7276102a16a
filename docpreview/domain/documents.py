"""Domain entities for documents and their editable content."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class ContentRecord:
    """Current editable content of a document."""

    document_id: str
    content_json: dict[str, Any] | None = None
    html_content: str | None = None
    version: int = 1
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)


@dataclass(slots=True)
class DocumentRecord:
    """A document owned by a single user."""

    document_id: str
    owner_id: str
    title: str
    description: str | None = None
    document_type: str | None = None
    status: str = "draft"
    content: ContentRecord | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
