from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from docpreview.application import get_document_service
from docpreview.core.schema import ContentModel, CreateDocumentInput, DocumentModel, dump
from docpreview.routes.session import get_current_user

router = APIRouter(prefix="/documents", tags=["documents"])


def _extract_html(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and isinstance(value.get("html"), str):
        return value["html"]
    return None


@router.post("", status_code=201)
async def create_document(payload: dict, user_id: str = Depends(get_current_user)) -> dict:
    try:
        data = CreateDocumentInput.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="title is required") from exc

    service = get_document_service()
    record = service.create_document(
        user_id,
        data.title,
        description=data.description,
        document_type=data.document_type,
    )
    return dump(DocumentModel.from_record(record))


@router.get("")
async def list_documents(user_id: str = Depends(get_current_user)) -> dict:
    service = get_document_service()
    items = [dump(DocumentModel.from_record(record)) for record in service.list_documents(user_id)]
    return {"items": items}


@router.get("/{document_id}")
async def get_document(document_id: str, user_id: str = Depends(get_current_user)) -> dict:
    service = get_document_service()
    record = service.get_document_for_user(document_id, user_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return dump(DocumentModel.from_record(record))


@router.post("/{document_id}/content", status_code=201)
async def save_document_content(
    document_id: str,
    payload: dict[str, Any],
    user_id: str = Depends(get_current_user),
) -> dict:
    content_json = payload.get("contentJson")
    if content_json is not None and not isinstance(content_json, dict):
        raise HTTPException(status_code=400, detail="contentJson must be an object")

    html_content = _extract_html(payload.get("htmlContent"))
    if content_json is None and html_content is None:
        raise HTTPException(status_code=400, detail="contentJson or htmlContent is required")

    service = get_document_service()
    record = service.save_content(
        document_id,
        user_id,
        content_json=content_json,
        html_content=html_content,
    )
    if record is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return dump(ContentModel.from_record(record))


@router.get("/{document_id}/content")
async def get_document_content(document_id: str, user_id: str = Depends(get_current_user)) -> dict:
    service = get_document_service()
    found, record = service.get_content_for_user(document_id, user_id)
    if not found:
        raise HTTPException(status_code=404, detail="Document not found")
    return {"content": dump(ContentModel.from_record(record)) if record else None}
