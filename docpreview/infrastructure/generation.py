"""Content-generation service integration.

The coordinator talks to whatever :class:`PreviewGenerator` is installed here.
Deployments point it at the preview HTTP API with
``configure_preview_generator(HttpPreviewGenerator(...))``; when nothing is
configured the document is rendered in-process.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, Protocol
from urllib.parse import quote, urlparse

import httpx
from fastapi.concurrency import run_in_threadpool

from docpreview.core.content import ContentError, build_envelope
from docpreview.core.render import render_pdf
from docpreview.domain import GenerationFailed, InvalidPreviewRequest, PreviewRequest, PreviewResult

logger = logging.getLogger(__name__)


class PreviewGenerator(Protocol):
    """Contract for content-generation backends."""

    async def generate(self, request: PreviewRequest) -> PreviewResult:
        """Render ``request`` and return the artifact or raise ``GenerationFailed``."""


class LocalPreviewGenerator:
    """Renders previews in-process without a network hop."""

    def __init__(self, renderer: Callable[[Mapping[str, Any]], bytes] = render_pdf) -> None:
        self._renderer = renderer

    async def generate(self, request: PreviewRequest) -> PreviewResult:
        try:
            data = await run_in_threadpool(self._renderer, request.content)
        except Exception as exc:
            raise GenerationFailed(f"failed to render preview: {exc}") from exc
        return PreviewResult(document_id=request.document_id, data=data)


class HttpPreviewGenerator:
    """Client for ``POST /api/documents/{id}/preview`` on the preview API."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        parsed = urlparse(base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("base_url must include scheme and host")

        self._base_url = base_url.rstrip("/")
        self._token = token
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _preview_url(self, document_id: str) -> str:
        return f"{self._base_url}/api/documents/{quote(document_id, safe='')}/preview"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/pdf, application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            for key in ("detail", "message", "error"):
                value = body.get(key)
                if isinstance(value, str) and value:
                    return value
        return response.reason_phrase or f"HTTP {response.status_code}"

    def _parse_result(self, document_id: str, response: httpx.Response) -> PreviewResult:
        content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()

        if content_type == "application/json":
            try:
                body = response.json()
            except ValueError as exc:
                raise GenerationFailed("preview service returned malformed JSON") from exc
            url = body.get("url") if isinstance(body, dict) else None
            if not isinstance(url, str) or not url:
                raise GenerationFailed("preview service response did not include a preview url")
            return PreviewResult(
                document_id=document_id,
                url=url,
                content_type=str(body.get("contentType") or "application/pdf"),
                filename=str(body.get("filename") or "preview.pdf"),
            )

        if not response.content:
            raise GenerationFailed("preview service returned an empty body")
        return PreviewResult(
            document_id=document_id,
            data=response.content,
            content_type=content_type or "application/pdf",
        )

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def generate(self, request: PreviewRequest) -> PreviewResult:
        try:
            envelope = build_envelope(request.content)
        except ContentError as exc:
            raise InvalidPreviewRequest(str(exc)) from exc
        url = self._preview_url(request.document_id)
        try:
            response = await self._client.post(url, json=envelope, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning("Preview request to %s failed: %s", url, exc)
            raise GenerationFailed(f"preview service unavailable: {exc}") from exc

        if response.is_error:
            raise GenerationFailed(self._error_message(response), status_code=response.status_code)
        return self._parse_result(request.document_id, response)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


_generator: PreviewGenerator = LocalPreviewGenerator()


def configure_preview_generator(generator: PreviewGenerator) -> None:
    """Install the generator used by new coordinators."""

    global _generator
    _generator = generator


def get_preview_generator() -> PreviewGenerator:
    """Return the currently configured generator."""

    return _generator


def reset_preview_generator() -> None:
    """Restore the in-process generator (used in tests)."""

    configure_preview_generator(LocalPreviewGenerator())


__all__ = [
    "HttpPreviewGenerator",
    "LocalPreviewGenerator",
    "PreviewGenerator",
    "configure_preview_generator",
    "get_preview_generator",
    "reset_preview_generator",
]
