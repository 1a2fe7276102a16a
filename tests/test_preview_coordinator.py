from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from docpreview.application import PreviewCoordinator, build_coordinator
from docpreview.core.config import Settings
from docpreview.domain import (
    ConcurrencyPolicy,
    GenerationFailed,
    InvalidPreviewRequest,
    PreviewInProgress,
    PreviewRequest,
    PreviewResult,
    RequestState,
)
from docpreview.infrastructure import (
    HttpPreviewGenerator,
    LocalPreviewGenerator,
    configure_preview_generator,
    reset_preview_generator,
)

EMPTY_DOC = {"type": "doc", "content": []}


class FakeGenerator:
    """Scriptable generator: per-document outcomes, optional gates."""

    def __init__(self, outcomes: dict[str, object] | None = None) -> None:
        self.outcomes = outcomes or {}
        self.gates: dict[str, asyncio.Event] = {}
        self.calls: list[PreviewRequest] = []
        self.active = 0
        self.max_active = 0

    def gate(self, document_id: str) -> asyncio.Event:
        return self.gates.setdefault(document_id, asyncio.Event())

    async def generate(self, request: PreviewRequest) -> PreviewResult:
        self.calls.append(request)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if request.document_id in self.gates:
                await self.gates[request.document_id].wait()
            outcome = self.outcomes.get(
                request.document_id,
                PreviewResult(document_id=request.document_id, data=b"%PDF-1.7 fake"),
            )
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome  # type: ignore[return-value]
        finally:
            self.active -= 1


@pytest.fixture(autouse=True)
def reset_generator():
    reset_preview_generator()
    yield
    reset_preview_generator()


@pytest.mark.asyncio
async def test_request_preview_resolves_with_collaborator_url():
    url = "https://storage.example.com/previews/preview-123.pdf"
    generator = FakeGenerator({"doc-123": PreviewResult(document_id="doc-123", url=url)})
    coordinator = PreviewCoordinator(generator)

    assert coordinator.state("doc-123").state is RequestState.IDLE

    result = await coordinator.request_preview("doc-123", EMPTY_DOC)

    assert result.url == url
    assert result.data is None
    state = coordinator.state("doc-123")
    assert state.state is RequestState.SUCCEEDED
    assert state.is_terminal
    assert state.result is result
    assert state.error is None
    assert generator.calls[0].content == EMPTY_DOC


@pytest.mark.asyncio
@pytest.mark.parametrize("document_id", ["", "   "])
async def test_empty_document_id_fails_without_contacting_generator(document_id):
    generator = FakeGenerator()
    coordinator = PreviewCoordinator(generator)

    with pytest.raises(GenerationFailed) as excinfo:
        await coordinator.request_preview(document_id, EMPTY_DOC)

    assert isinstance(excinfo.value, InvalidPreviewRequest)
    assert excinfo.value.error_code == "invalid_request"
    assert generator.calls == []


@pytest.mark.asyncio
async def test_unserialisable_content_is_rejected_locally():
    generator = FakeGenerator()
    coordinator = PreviewCoordinator(generator)

    with pytest.raises(InvalidPreviewRequest):
        await coordinator.request_preview("doc-1", ["not", "a", "mapping"])  # type: ignore[arg-type]
    with pytest.raises(InvalidPreviewRequest):
        await coordinator.request_preview("doc-1", {"type": "doc", "content": [object()]})

    assert generator.calls == []
    assert coordinator.state("doc-1").state is RequestState.IDLE


@pytest.mark.asyncio
async def test_collaborator_failure_is_surfaced_verbatim():
    failure = GenerationFailed("Document not found", status_code=404)
    generator = FakeGenerator({"doc-9": failure})
    coordinator = PreviewCoordinator(generator)

    with pytest.raises(GenerationFailed) as excinfo:
        await coordinator.request_preview("doc-9", EMPTY_DOC)

    assert excinfo.value is failure
    state = coordinator.state("doc-9")
    assert state.state is RequestState.FAILED
    assert state.is_terminal
    assert state.result is None
    assert state.error is failure


@pytest.mark.asyncio
async def test_unexpected_errors_are_wrapped_as_generation_failed():
    boom = RuntimeError("renderer crashed")
    coordinator = PreviewCoordinator(FakeGenerator({"doc-1": boom}))

    with pytest.raises(GenerationFailed) as excinfo:
        await coordinator.request_preview("doc-1", EMPTY_DOC)

    assert str(excinfo.value) == "renderer crashed"
    assert excinfo.value.__cause__ is boom
    assert coordinator.state("doc-1").state is RequestState.FAILED


@pytest.mark.asyncio
async def test_incomplete_result_is_never_returned():
    coordinator = PreviewCoordinator(FakeGenerator({"doc-1": PreviewResult(document_id="doc-1")}))

    with pytest.raises(GenerationFailed):
        await coordinator.request_preview("doc-1", EMPTY_DOC)

    state = coordinator.state("doc-1")
    assert state.state is RequestState.FAILED
    assert state.result is None


@pytest.mark.asyncio
async def test_concurrent_requests_for_different_documents_resolve_independently():
    generator = FakeGenerator({"doc-b": GenerationFailed("service unavailable", status_code=503)})
    gate_a = generator.gate("doc-a")
    gate_b = generator.gate("doc-b")
    coordinator = PreviewCoordinator(generator)

    task_a = asyncio.create_task(coordinator.request_preview("doc-a", EMPTY_DOC))
    task_b = asyncio.create_task(coordinator.request_preview("doc-b", EMPTY_DOC))
    await asyncio.sleep(0)

    assert coordinator.is_pending("doc-a")
    assert coordinator.is_pending("doc-b")
    assert not coordinator.state("doc-a").is_terminal
    assert generator.max_active == 2

    gate_b.set()
    with pytest.raises(GenerationFailed, match="service unavailable"):
        await task_b
    assert coordinator.is_pending("doc-a")

    gate_a.set()
    result = await task_a

    assert result.document_id == "doc-a"
    assert coordinator.state("doc-a").state is RequestState.SUCCEEDED
    assert coordinator.state("doc-b").state is RequestState.FAILED


@pytest.mark.asyncio
async def test_reject_policy_refuses_second_request_for_pending_document():
    generator = FakeGenerator()
    gate = generator.gate("doc-1")
    coordinator = PreviewCoordinator(generator)

    first = asyncio.create_task(coordinator.request_preview("doc-1", EMPTY_DOC))
    await asyncio.sleep(0)

    with pytest.raises(PreviewInProgress) as excinfo:
        await coordinator.request_preview("doc-1", {"type": "doc", "content": [{"type": "paragraph"}]})
    assert excinfo.value.document_id == "doc-1"
    assert isinstance(excinfo.value, GenerationFailed)
    assert excinfo.value.error_code == "preview_in_progress"

    gate.set()
    result = await first

    assert result.data == b"%PDF-1.7 fake"
    assert len(generator.calls) == 1
    assert coordinator.state("doc-1").state is RequestState.SUCCEEDED


@pytest.mark.asyncio
async def test_queue_policy_serialises_requests_for_the_same_document():
    generator = FakeGenerator()
    gate = generator.gate("doc-1")
    coordinator = PreviewCoordinator(generator, policy="queue")
    assert coordinator.policy is ConcurrencyPolicy.QUEUE

    first = asyncio.create_task(coordinator.request_preview("doc-1", {"type": "doc", "content": [], "rev": 1}))
    second = asyncio.create_task(coordinator.request_preview("doc-1", {"type": "doc", "content": [], "rev": 2}))
    await asyncio.sleep(0)
    gate.set()

    results = await asyncio.gather(first, second)

    assert [result.document_id for result in results] == ["doc-1", "doc-1"]
    assert [call.content["rev"] for call in generator.calls] == [1, 2]
    assert generator.max_active == 1


@pytest.mark.asyncio
async def test_timeout_turns_into_generation_failed():
    generator = FakeGenerator()
    generator.gate("doc-slow")
    coordinator = PreviewCoordinator(generator, timeout=0.01)

    with pytest.raises(GenerationFailed, match="timed out"):
        await coordinator.request_preview("doc-slow", EMPTY_DOC)

    assert coordinator.state("doc-slow").state is RequestState.FAILED


@pytest.mark.asyncio
async def test_cancelled_request_returns_document_to_idle():
    generator = FakeGenerator()
    generator.gate("doc-1")
    coordinator = PreviewCoordinator(generator)

    task = asyncio.create_task(coordinator.request_preview("doc-1", EMPTY_DOC))
    await asyncio.sleep(0)
    assert coordinator.is_pending("doc-1")

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert coordinator.state("doc-1").state is RequestState.IDLE


@pytest.mark.asyncio
async def test_request_is_isolated_from_later_caller_mutation():
    generator = FakeGenerator()
    gate = generator.gate("doc-1")
    coordinator = PreviewCoordinator(generator)
    content = {"type": "doc", "content": [{"type": "paragraph", "content": [{"type": "text", "text": "v1"}]}]}

    task = asyncio.create_task(coordinator.request_preview("doc-1", content))
    await asyncio.sleep(0)
    content["content"][0]["content"][0]["text"] = "v2"
    gate.set()
    await task

    sent = generator.calls[0].content
    assert sent["content"][0]["content"][0]["text"] == "v1"


@pytest.mark.asyncio
async def test_default_generator_comes_from_registry():
    generator = FakeGenerator()
    configure_preview_generator(generator)
    coordinator = PreviewCoordinator()

    await coordinator.request_preview("doc-1", EMPTY_DOC)

    assert len(generator.calls) == 1


@pytest.mark.asyncio
async def test_reset_clears_state():
    coordinator = PreviewCoordinator(FakeGenerator())
    await coordinator.request_preview("doc-1", EMPTY_DOC)
    await coordinator.request_preview("doc-2", EMPTY_DOC)

    coordinator.reset("doc-1")
    assert coordinator.state("doc-1").state is RequestState.IDLE
    assert coordinator.state("doc-2").state is RequestState.SUCCEEDED

    coordinator.reset()
    assert coordinator.state("doc-2").state is RequestState.IDLE


def test_invalid_timeout_is_rejected():
    with pytest.raises(ValueError):
        PreviewCoordinator(FakeGenerator(), timeout=0)


@pytest.mark.asyncio
async def test_build_coordinator_uses_settings():
    settings = Settings(
        service_url="http://preview.internal:9000",
        service_token="secret",
        timeout=5.0,
        concurrency_policy=ConcurrencyPolicy.QUEUE,
    )

    coordinator, generator = build_coordinator(settings)
    try:
        assert isinstance(generator, HttpPreviewGenerator)
        assert coordinator.generator is generator
        assert coordinator.policy is ConcurrencyPolicy.QUEUE
    finally:
        await generator.aclose()


@pytest.mark.asyncio
async def test_local_generator_renders_in_process():
    coordinator = PreviewCoordinator()
    content = {"type": "doc", "content": [{"type": "paragraph", "content": [{"type": "text", "text": "Hi"}]}]}

    result = await coordinator.request_preview("doc-1", content)

    assert result.data is not None and result.data.startswith(b"%PDF")
    assert result.content_type == "application/pdf"


@pytest.mark.asyncio
async def test_local_generator_failures_become_generation_failed():
    def broken_renderer(_tree):
        raise ValueError("font missing")

    coordinator = PreviewCoordinator(LocalPreviewGenerator(broken_renderer))

    with pytest.raises(GenerationFailed, match="failed to render preview: font missing"):
        await coordinator.request_preview("doc-1", EMPTY_DOC)
    assert coordinator.state("doc-1").state is RequestState.FAILED


@pytest.mark.asyncio
async def test_reset_during_queued_request_keeps_serialising():
    generator = FakeGenerator()
    gate = generator.gate("doc-1")
    coordinator = PreviewCoordinator(generator, policy=ConcurrencyPolicy.QUEUE)

    first = asyncio.create_task(coordinator.request_preview("doc-1", {"type": "doc", "content": [], "rev": 1}))
    await asyncio.sleep(0)
    coordinator.reset("doc-1")
    assert coordinator.state("doc-1").state is RequestState.IDLE

    second = asyncio.create_task(coordinator.request_preview("doc-1", {"type": "doc", "content": [], "rev": 2}))
    await asyncio.sleep(0)
    assert len(generator.calls) == 1

    gate.set()
    await asyncio.gather(first, second)

    assert generator.max_active == 1
    assert [call.content["rev"] for call in generator.calls] == [1, 2]
    assert coordinator.state("doc-1").state is RequestState.SUCCEEDED
    assert coordinator._locks == {}


@pytest.mark.asyncio
async def test_request_finishing_after_reset_does_not_restore_state():
    generator = FakeGenerator({"doc-1": GenerationFailed("service unavailable")})
    gate = generator.gate("doc-1")
    coordinator = PreviewCoordinator(generator)

    task = asyncio.create_task(coordinator.request_preview("doc-1", EMPTY_DOC))
    await asyncio.sleep(0)
    coordinator.reset()
    gate.set()

    with pytest.raises(GenerationFailed):
        await task
    assert coordinator.state("doc-1").state is RequestState.IDLE


@pytest.mark.asyncio
async def test_queue_locks_are_released_per_document():
    coordinator = PreviewCoordinator(FakeGenerator(), policy=ConcurrencyPolicy.QUEUE)

    for index in range(5):
        await coordinator.request_preview(f"doc-{index}", EMPTY_DOC)

    assert coordinator._locks == {}
    assert coordinator.state("doc-4").is_terminal
