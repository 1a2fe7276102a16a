from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from docpreview.application import get_document_service
from docpreview.core.content import ContentError, content_digest, unwrap_envelope
from docpreview.routes.session import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["preview"])


@router.post("/{document_id}/preview")
async def generate_preview(
    document_id: str,
    payload: dict[str, Any],
    user_id: str = Depends(get_current_user),
) -> Response:
    """Render the posted content tree and return the PDF inline."""
    try:
        tree = unwrap_envelope(payload)
    except ContentError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    service = get_document_service()
    if service.get_document_for_user(document_id, user_id) is None:
        raise HTTPException(status_code=404, detail="Document not found")

    digest = content_digest(tree)
    try:
        pdf_bytes = await service.render_preview(tree)
    except Exception as exc:
        logger.exception("Preview rendering failed for document %s", document_id)
        raise HTTPException(status_code=500, detail=f"Failed to generate PDF preview: {exc}") from exc

    logger.info("Rendered preview for document %s (%d bytes, digest %s)", document_id, len(pdf_bytes), digest[:12])
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": "inline; filename=preview.pdf",
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "X-Content-Digest": digest,
        },
    )
