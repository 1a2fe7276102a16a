"""Preview request coordination.

A :class:`PreviewCoordinator` forwards a document's content to the configured
content-generation backend and tracks, per document, whether the latest
request is pending, succeeded or failed.  Every call ends in exactly one of
two ways: it returns a complete :class:`PreviewResult` or it raises a
:class:`GenerationFailed`.  Nothing is retried or cached.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from docpreview.core.config import Settings
from docpreview.core.content import ContentError, build_envelope
from docpreview.domain import (
    ConcurrencyPolicy,
    GenerationFailed,
    InvalidPreviewRequest,
    PreviewInProgress,
    PreviewRequest,
    PreviewResult,
    PreviewState,
    RequestState,
)
from docpreview.infrastructure import HttpPreviewGenerator, PreviewGenerator, get_preview_generator

logger = logging.getLogger(__name__)

_IDLE = PreviewState()


class PreviewCoordinator:
    """Coordinates preview generation requests for any number of documents."""

    def __init__(
        self,
        generator: PreviewGenerator | None = None,
        *,
        policy: ConcurrencyPolicy | str = ConcurrencyPolicy.REJECT,
        timeout: float | None = None,
    ) -> None:
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be positive")
        self._generator = generator
        self._policy = ConcurrencyPolicy(policy)
        self._timeout = timeout
        self._states: dict[str, PreviewState] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @property
    def generator(self) -> PreviewGenerator:
        return self._generator or get_preview_generator()

    @property
    def policy(self) -> ConcurrencyPolicy:
        return self._policy

    # ------------------------------------------------------------------
    # state inspection
    # ------------------------------------------------------------------
    def state(self, document_id: str) -> PreviewState:
        return self._states.get(document_id, _IDLE)

    def is_pending(self, document_id: str) -> bool:
        return self.state(document_id).state is RequestState.PENDING

    def reset(self, document_id: str | None = None) -> None:
        """Forget recorded outcomes. Requests still in flight keep their locks."""

        if document_id is None:
            self._states.clear()
            return
        self._states.pop(document_id, None)

    # ------------------------------------------------------------------
    # requests
    # ------------------------------------------------------------------
    async def request_preview(self, document_id: str, content: Mapping[str, Any]) -> PreviewResult:
        """Generate a preview of ``content`` for ``document_id``."""

        try:
            tree = build_envelope(content)["tiptapJson"]
        except ContentError as exc:
            raise InvalidPreviewRequest(str(exc)) from exc
        request = PreviewRequest(document_id=document_id, content=tree)

        if self._policy is ConcurrencyPolicy.QUEUE:
            return await self._run_queued(request)

        if self.is_pending(request.document_id):
            raise PreviewInProgress(request.document_id)
        return await self._run(request)

    async def _run_queued(self, request: PreviewRequest) -> PreviewResult:
        document_id = request.document_id
        lock = self._locks.get(document_id)
        if lock is None:
            lock = self._locks[document_id] = asyncio.Lock()
        self._lock_users[document_id] = self._lock_users.get(document_id, 0) + 1
        try:
            async with lock:
                return await self._run(request)
        finally:
            # drop the lock once nobody holds or waits on it
            remaining = self._lock_users[document_id] - 1
            if remaining:
                self._lock_users[document_id] = remaining
            else:
                del self._lock_users[document_id]
                del self._locks[document_id]

    async def _generate(self, request: PreviewRequest) -> PreviewResult:
        call = self.generator.generate(request)
        if self._timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, self._timeout)
        except asyncio.TimeoutError as exc:
            raise GenerationFailed(f"preview generation timed out after {self._timeout:g}s") from exc

    async def _run(self, request: PreviewRequest) -> PreviewResult:
        document_id = request.document_id
        pending = PreviewState(RequestState.PENDING)
        self._states[document_id] = pending
        logger.debug("Requesting preview for document %s", document_id)

        try:
            result = await self._generate(request)
        except asyncio.CancelledError:
            if self._states.get(document_id) is pending:
                del self._states[document_id]
            raise
        except GenerationFailed as exc:
            self._fail(document_id, pending, exc)
            raise
        except Exception as exc:
            error = GenerationFailed(str(exc) or exc.__class__.__name__)
            self._fail(document_id, pending, error)
            raise error from exc

        if result is None or not result.is_complete():
            error = GenerationFailed("preview service returned an incomplete result")
            self._fail(document_id, pending, error)
            raise error

        self._settle(document_id, pending, PreviewState(RequestState.SUCCEEDED, result=result))
        if result.data is not None:
            logger.info("Preview for document %s ready (%d bytes)", document_id, result.size)
        else:
            logger.info("Preview for document %s ready at %s", document_id, result.url)
        return result

    def _settle(self, document_id: str, pending: PreviewState, outcome: PreviewState) -> None:
        # a reset or a newer request owns the slot now
        if self._states.get(document_id) is pending:
            self._states[document_id] = outcome

    def _fail(self, document_id: str, pending: PreviewState, error: GenerationFailed) -> None:
        self._settle(document_id, pending, PreviewState(RequestState.FAILED, error=error))
        logger.warning("Preview for document %s failed: %s", document_id, error)


def build_coordinator(settings: Settings | None = None) -> tuple[PreviewCoordinator, HttpPreviewGenerator]:
    """Create a coordinator wired to the preview HTTP API described by ``settings``.

    The caller owns the returned generator and should ``await generator.aclose()``.
    """

    settings = settings or Settings.from_env()
    generator = HttpPreviewGenerator(
        settings.service_url,
        token=settings.service_token,
        timeout=settings.timeout,
    )
    coordinator = PreviewCoordinator(
        generator,
        policy=settings.concurrency_policy,
        timeout=settings.timeout,
    )
    return coordinator, generator


__all__ = ["PreviewCoordinator", "build_coordinator"]
