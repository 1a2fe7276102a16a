from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, constr

from docpreview.domain import ContentRecord, DocumentRecord


class CreateDocumentInput(BaseModel):
    title: constr(strip_whitespace=True, min_length=1)
    description: str | None = None
    document_type: str | None = Field(default=None, alias="documentType")

    model_config = ConfigDict(populate_by_name=True)


class ContentModel(BaseModel):
    id: str
    document_id: str = Field(serialization_alias="documentId")
    content_json: dict[str, Any] | None = Field(default=None, serialization_alias="contentJson")
    html_content: str | None = Field(default=None, serialization_alias="htmlContent")
    version: int
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    @classmethod
    def from_record(cls, record: ContentRecord) -> "ContentModel":
        return cls(
            id=f"{record.document_id}-v{record.version}",
            document_id=record.document_id,
            content_json=record.content_json,
            html_content=record.html_content,
            version=record.version,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class DocumentModel(BaseModel):
    id: str
    owner_id: str = Field(serialization_alias="ownerId")
    title: str
    description: str | None = None
    document_type: str | None = Field(default=None, serialization_alias="documentType")
    status: str = "draft"
    has_content: bool = Field(default=False, serialization_alias="hasContent")
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    @classmethod
    def from_record(cls, record: DocumentRecord) -> "DocumentModel":
        return cls(
            id=record.document_id,
            owner_id=record.owner_id,
            title=record.title,
            description=record.description,
            document_type=record.document_type,
            status=record.status,
            has_content=record.content is not None,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


def dump(model: BaseModel) -> dict[str, Any]:
    """JSON-ready dict using the camelCase wire names."""

    return model.model_dump(mode="json", by_alias=True)
