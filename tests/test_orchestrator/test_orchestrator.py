"""Tests for ExecutionOrchestrator cycles against a fake backend."""

import asyncio
import json
from typing import Any

import httpx
import pytest

from model_aggregator.client import (
    AggregatorClient,
    ExecutionMode,
    MultiModelResponse,
    SingleModelResponse,
)
from model_aggregator.orchestrator import ExecutionOrchestrator, ExecutionPhase

CATALOG_BODY = {
    "models": [
        {"id": "gpt-x", "name": "GPT X", "capabilities": ["text", "image"]},
        {"id": "a", "capabilities": ["text"]},
        {"id": "b", "capabilities": ["text", "audio"]},
    ]
}


class FakeBackend:
    """Scriptable backend: queued responses per path, every request recorded."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: dict[str, list[httpx.Response | Exception]] = {
            "/api/models": [httpx.Response(200, json=CATALOG_BODY)],
        }

    def queue(self, path: str, response: httpx.Response | Exception) -> None:
        self.responses.setdefault(path, []).append(response)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queued = self.responses[request.url.path]
        outcome = queued.pop(0) if len(queued) > 1 else queued[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def execution_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    def execution_bodies(self) -> list[Any]:
        return [json.loads(r.content) for r in self.execution_requests()]


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def orchestrator(backend: FakeBackend) -> ExecutionOrchestrator:
    client = AggregatorClient(
        base_url="http://aggregator.test", transport=httpx.MockTransport(backend.handler)
    )
    return ExecutionOrchestrator(client)


@pytest.mark.asyncio
async def test_initial_state(orchestrator: ExecutionOrchestrator) -> None:
    """Test that a new orchestrator starts idle and empty in SINGLE mode."""
    state = orchestrator.state

    assert state.mode == ExecutionMode.SINGLE
    assert state.selection == ()
    assert state.prompt.text == ""
    assert state.phase == ExecutionPhase.IDLE
    assert not state.in_flight
    assert state.result is None
    assert state.error is None


@pytest.mark.asyncio
async def test_load_catalog(orchestrator: ExecutionOrchestrator) -> None:
    """Test that the catalog is populated from GET /api/models."""
    state = await orchestrator.load_catalog()

    assert [m.id for m in state.catalog] == ["gpt-x", "a", "b"]
    assert state.error is None


@pytest.mark.asyncio
async def test_load_catalog_failure(orchestrator: ExecutionOrchestrator, backend: FakeBackend) -> None:
    """Test that any catalog failure yields the fixed message and an empty catalog."""
    backend.responses["/api/models"] = [httpx.ConnectError("refused")]

    state = await orchestrator.load_catalog()

    assert state.catalog == ()
    assert state.error == "Failed to load available models"
    assert not state.can_execute


@pytest.mark.asyncio
async def test_load_catalog_http_error(orchestrator: ExecutionOrchestrator, backend: FakeBackend) -> None:
    """Test that a non-2xx catalog response is treated as a load failure."""
    backend.responses["/api/models"] = [httpx.Response(503, json={"error": {"message": "down"}})]

    state = await orchestrator.load_catalog()

    assert state.error == "Failed to load available models"


@pytest.mark.asyncio
async def test_load_catalog_recovers_after_failure(
    orchestrator: ExecutionOrchestrator, backend: FakeBackend
) -> None:
    """Test that a successful reload clears the earlier catalog failure."""
    backend.responses["/api/models"] = [
        httpx.Response(500),
        httpx.Response(200, json={"models": [{"id": "a"}]}),
    ]

    failed = await orchestrator.load_catalog()
    recovered = await orchestrator.load_catalog()

    assert failed.error == "Failed to load available models"
    assert [m.id for m in recovered.catalog] == ["a"]
    assert recovered.error is None


@pytest.mark.asyncio
async def test_execute_empty_prompt_sends_nothing(
    orchestrator: ExecutionOrchestrator, backend: FakeBackend
) -> None:
    """Test that a whitespace-only prompt fails validation before the network."""
    await orchestrator.load_catalog()
    orchestrator.set_selection(["gpt-x"])
    orchestrator.set_prompt(text="   ")

    state = await orchestrator.execute()

    assert state.error == "Please enter a prompt"
    assert state.phase == ExecutionPhase.IDLE
    assert backend.execution_requests() == []


@pytest.mark.asyncio
async def test_execute_empty_selection_sends_nothing(
    orchestrator: ExecutionOrchestrator, backend: FakeBackend
) -> None:
    """Test that an empty selection fails validation before the network."""
    orchestrator.set_prompt(text="hello")

    state = await orchestrator.execute()

    assert state.error == "Please select at least one model"
    assert backend.execution_requests() == []


@pytest.mark.asyncio
async def test_execute_unbuildable_selection_settles_idle(
    orchestrator: ExecutionOrchestrator, backend: FakeBackend
) -> None:
    """Test that an id the request body rejects fails validation instead of raising."""
    orchestrator.set_selection([""])
    orchestrator.set_prompt(text="hello")

    state = await orchestrator.execute()

    assert state.phase == ExecutionPhase.IDLE
    assert not state.in_flight
    assert state.error is not None
    assert state.error.startswith("Invalid request")
    assert backend.execution_requests() == []


@pytest.mark.asyncio
async def test_execute_keeps_unrecognized_success_payload(
    orchestrator: ExecutionOrchestrator, backend: FakeBackend
) -> None:
    """Test that a 2xx body with an unfamiliar status and null usage becomes the result."""
    backend.queue(
        "/api/models/single",
        httpx.Response(
            200,
            json={"model": "a", "status": "completed", "response": "hi", "usage": None, "trace": "x1"},
        ),
    )
    orchestrator.set_selection(["a"])
    orchestrator.set_prompt(text="hello")

    state = await orchestrator.execute()

    assert state.error is None
    assert isinstance(state.result, SingleModelResponse)
    assert state.result.status == "completed"
    assert state.result.usage is None
    assert state.result.model_extra == {"trace": "x1"}

@pytest.mark.asyncio
async def test_execute_prompt_checked_before_selection(
    orchestrator: ExecutionOrchestrator,
) -> None:
    """Test that the prompt check wins when both preconditions fail."""
    state = await orchestrator.execute()

    assert state.error == "Please enter a prompt"


@pytest.mark.asyncio
async def test_execute_single(orchestrator: ExecutionOrchestrator, backend: FakeBackend) -> None:
    """Test the single body shape and the stored result."""
    backend.queue("/api/models/single", httpx.Response(200, json={"model": "gpt-x", "response": "hi"}))
    orchestrator.set_selection(["gpt-x"])
    orchestrator.set_prompt(text="hello", image_url="  ", audio_url="")

    state = await orchestrator.execute()

    assert backend.execution_bodies() == [{"model": "gpt-x", "prompt": "hello"}]
    assert backend.execution_requests()[0].url.path == "/api/models/single"
    assert isinstance(state.result, SingleModelResponse)
    assert state.result.response == "hi"
    assert state.error is None
    assert not state.in_flight
    assert state.last_trace_id is not None


@pytest.mark.asyncio
async def test_execute_multi(orchestrator: ExecutionOrchestrator, backend: FakeBackend) -> None:
    """Test the multi body shape with an image reference."""
    backend.queue(
        "/api/models/multi",
        httpx.Response(
            200,
            json={
                "responses": [
                    {"model": "a", "status": "success", "response": "A"},
                    {"model": "b", "status": "error", "error": "quota"},
                ]
            },
        ),
    )
    orchestrator.set_mode(ExecutionMode.MULTI)
    orchestrator.set_selection(["a", "b"])
    orchestrator.set_prompt(text="hi", image_url="http://img")

    state = await orchestrator.execute()

    assert backend.execution_bodies() == [{"models": ["a", "b"], "prompt": "hi", "image_url": "http://img"}]
    assert isinstance(state.result, MultiModelResponse)
    assert [r.status for r in state.result.responses] == ["success", "error"]
    assert state.error is None


@pytest.mark.asyncio
async def test_execute_application_error(
    orchestrator: ExecutionOrchestrator, backend: FakeBackend
) -> None:
    """Test that a 500 with error.message lands in the error slot."""
    backend.queue("/api/models/single", httpx.Response(500, json={"error": {"message": "boom"}}))
    orchestrator.set_selection(["gpt-x"])
    orchestrator.set_prompt(text="hello")

    state = await orchestrator.execute()

    assert state.error == "boom"
    assert state.result is None
    assert state.in_flight is False
    assert state.phase == ExecutionPhase.IDLE


@pytest.mark.asyncio
async def test_execute_application_error_fallback(
    orchestrator: ExecutionOrchestrator, backend: FakeBackend
) -> None:
    """Test the generic message when the failure body has no message."""
    backend.queue("/api/models/single", httpx.Response(502, text="Bad Gateway"))
    orchestrator.set_selection(["gpt-x"])
    orchestrator.set_prompt(text="hello")

    state = await orchestrator.execute()

    assert state.error == "API request failed"


@pytest.mark.asyncio
async def test_execute_transport_error(orchestrator: ExecutionOrchestrator, backend: FakeBackend) -> None:
    """Test that a network failure surfaces the exception message."""
    backend.queue("/api/models/single", httpx.ConnectError("Connection refused"))
    orchestrator.set_selection(["gpt-x"])
    orchestrator.set_prompt(text="hello")

    state = await orchestrator.execute()

    assert state.error == "Connection refused"
    assert state.result is None
    assert not state.in_flight


@pytest.mark.asyncio
async def test_execute_unexpected_exception_uses_fallback(orchestrator: ExecutionOrchestrator) -> None:
    """Test that an exception without text falls back to the generic message."""

    class Exploding(AggregatorClient):
        async def dispatch(self, request: Any, trace_ctx: Any = None) -> Any:
            raise RuntimeError()

    orchestrator.client = Exploding(base_url="http://aggregator.test")
    orchestrator.set_selection(["gpt-x"])
    orchestrator.set_prompt(text="hello")

    state = await orchestrator.execute()

    assert state.error == "An error occurred during execution"
    assert not state.in_flight


@pytest.mark.asyncio
async def test_second_execution_replaces_first(
    orchestrator: ExecutionOrchestrator, backend: FakeBackend
) -> None:
    """Test that a second cycle's result fully replaces the first."""
    backend.queue(
        "/api/models/multi",
        httpx.Response(200, json={"responses": [{"model": "a", "response": "first"}, {"model": "b"}]}),
    )
    backend.queue("/api/models/multi", httpx.Response(200, json={"responses": [{"model": "a", "response": "second"}]}))
    orchestrator.set_mode(ExecutionMode.MULTI)
    orchestrator.set_selection(["a", "b"])
    orchestrator.set_prompt(text="hi")

    first = await orchestrator.execute()
    second = await orchestrator.execute()

    assert isinstance(first.result, MultiModelResponse)
    assert len(first.result.responses) == 2
    assert isinstance(second.result, MultiModelResponse)
    assert [r.response for r in second.result.responses] == ["second"]
    assert first.last_trace_id != second.last_trace_id


@pytest.mark.asyncio
async def test_error_then_success_clears_error(
    orchestrator: ExecutionOrchestrator, backend: FakeBackend
) -> None:
    """Test that a retry after a failure clears the stale error."""
    backend.queue("/api/models/single", httpx.Response(500, json={"error": {"message": "boom"}}))
    backend.queue("/api/models/single", httpx.Response(200, json={"model": "gpt-x", "response": "ok"}))
    orchestrator.set_selection(["gpt-x"])
    orchestrator.set_prompt(text="hello")

    failed = await orchestrator.execute()
    retried = await orchestrator.execute()

    assert failed.error == "boom"
    assert retried.error is None
    assert retried.result is not None


@pytest.mark.asyncio
async def test_prompt_edit_keeps_result_but_selection_clears_it(
    orchestrator: ExecutionOrchestrator, backend: FakeBackend
) -> None:
    """Test the asymmetry between prompt edits and selection changes."""
    backend.queue("/api/models/single", httpx.Response(200, json={"model": "gpt-x", "response": "ok"}))
    orchestrator.set_selection(["gpt-x"])
    orchestrator.set_prompt(text="hello")
    await orchestrator.execute()

    after_edit = orchestrator.set_prompt(text="hello again")
    assert after_edit.result is not None

    after_selection = orchestrator.set_selection(["a"])
    assert after_selection.result is None


@pytest.mark.asyncio
async def test_mode_change_resets(orchestrator: ExecutionOrchestrator, backend: FakeBackend) -> None:
    """Test that a mode change after a result empties selection and result."""
    backend.queue("/api/models/single", httpx.Response(200, json={"model": "gpt-x"}))
    orchestrator.set_selection(["gpt-x"])
    orchestrator.set_prompt(text="hello")
    await orchestrator.execute()

    state = orchestrator.set_mode(ExecutionMode.MULTI)

    assert state.selection == ()
    assert state.result is None
    assert state.error is None
    assert state.prompt.text == "hello"


@pytest.mark.asyncio
async def test_execute_refused_while_in_flight(orchestrator: ExecutionOrchestrator) -> None:
    """Test that a second Execute during an in-flight call sends nothing."""
    release = asyncio.Event()
    calls: list[Any] = []

    class Slow(AggregatorClient):
        async def dispatch(self, request: Any, trace_ctx: Any = None) -> Any:
            calls.append(request)
            await release.wait()
            return SingleModelResponse(model="gpt-x", response="done")

    orchestrator.client = Slow(base_url="http://aggregator.test")
    orchestrator.set_selection(["gpt-x"])
    orchestrator.set_prompt(text="hello")

    first = asyncio.create_task(orchestrator.execute())
    await asyncio.sleep(0)
    assert orchestrator.state.in_flight
    assert orchestrator.state.phase == ExecutionPhase.IN_FLIGHT

    refused = await orchestrator.execute()
    assert refused.in_flight
    assert len(calls) == 1

    release.set()
    final = await first

    assert not final.in_flight
    assert final.result is not None
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_cancelled_execution_clears_in_flight(orchestrator: ExecutionOrchestrator) -> None:
    """Test that in_flight is cleared even when the awaiting task is cancelled."""

    class Hanging(AggregatorClient):
        async def dispatch(self, request: Any, trace_ctx: Any = None) -> Any:
            await asyncio.Event().wait()

    orchestrator.client = Hanging(base_url="http://aggregator.test")
    orchestrator.set_selection(["gpt-x"])
    orchestrator.set_prompt(text="hello")

    task = asyncio.create_task(orchestrator.execute())
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert not orchestrator.state.in_flight
    assert orchestrator.state.error == "An error occurred during execution"


@pytest.mark.asyncio
async def test_attachment_warnings(orchestrator: ExecutionOrchestrator) -> None:
    """Test that selected models without the needed capability are reported."""
    await orchestrator.load_catalog()
    orchestrator.set_mode(ExecutionMode.MULTI)
    orchestrator.set_selection(["gpt-x", "a"])
    orchestrator.set_prompt(text="describe", image_url="http://img")

    assert orchestrator.attachment_warnings() == {"image": ["a"]}
