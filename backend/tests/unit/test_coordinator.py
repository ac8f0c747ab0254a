"""Dual validation coordinator unit tests."""

import asyncio
from typing import Any, Mapping, Optional

import httpx
import pytest

from configurator.client.coordinator import (
    ALLOWED_TRANSITIONS,
    DualValidationCoordinator,
    ValidationStatus,
)
from configurator.client.transport import ValidationServiceClient
from configurator.errors import InvalidTransitionError, TransportError
from configurator.models.events import StatusChangedEvent
from configurator.rules.models import ValidationResult, Violation

CLEAN = {"model": "A", "size": "M", "color": "blue"}
SERVER_VIOLATION = Violation(id="no-small-white", field="color", message="White is not available in size S")


class FakeTransport:
    """Records calls and answers with a fixed result or error."""

    def __init__(self, result: Optional[ValidationResult] = None, error: Optional[Exception] = None):
        self.result = result or ValidationResult.build([])
        self.error = error
        self.calls: list[dict] = []
        self.gate: Optional[asyncio.Event] = None

    async def validate(self, configuration: Mapping[str, Any]) -> ValidationResult:
        self.calls.append(dict(configuration))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result


def recorder(coordinator: DualValidationCoordinator) -> list[StatusChangedEvent]:
    events: list[StatusChangedEvent] = []

    async def listener(event: StatusChangedEvent) -> None:
        events.append(event)

    coordinator.subscribe(listener)
    return events


@pytest.mark.asyncio
async def test_local_violation_skips_remote_call() -> None:
    transport = FakeTransport()
    coordinator = DualValidationCoordinator(transport)

    status = await coordinator.submit({"model": "C", "color": "red"})

    assert status is ValidationStatus.CLIENT_ERROR
    assert coordinator.status is ValidationStatus.CLIENT_ERROR
    assert transport.calls == []
    assert [v.id for v in coordinator.violations] == ["no-red-model-c"]
    assert coordinator.violations[0].message.endswith("(client check)")


@pytest.mark.asyncio
async def test_clean_locally_and_on_server() -> None:
    transport = FakeTransport()
    coordinator = DualValidationCoordinator(transport)
    events = recorder(coordinator)

    status = await coordinator.submit(CLEAN)

    assert status is ValidationStatus.VALID
    assert transport.calls == [CLEAN]
    assert coordinator.violations == ()
    assert [(e.previous, e.status) for e in events] == [
        ("idle", "idle"),
        ("idle", "pending"),
        ("pending", "valid"),
    ]


@pytest.mark.asyncio
async def test_server_violations_replace_local_state() -> None:
    transport = FakeTransport(result=ValidationResult.build([SERVER_VIOLATION]))
    coordinator = DualValidationCoordinator(transport)

    await coordinator.submit({"model": "C", "color": "red"})
    status = await coordinator.submit({"model": "A", "size": "S", "color": "white"})

    assert status is ValidationStatus.SERVER_ERROR
    assert coordinator.violations == (SERVER_VIOLATION,)
    assert coordinator.last_result == ValidationResult.build([SERVER_VIOLATION])


@pytest.mark.asyncio
async def test_transport_failure_resolves_to_server_failed() -> None:
    transport = FakeTransport(error=TransportError("Validation service unreachable"))
    coordinator = DualValidationCoordinator(transport)
    events = recorder(coordinator)

    status = await coordinator.submit({"model": "B", "size": "L", "color": "black"})

    assert status is ValidationStatus.SERVER_FAILED
    assert status not in (ValidationStatus.VALID, ValidationStatus.SERVER_ERROR)
    assert events[-1].message == "Validation service unreachable"


@pytest.mark.asyncio
async def test_unexpected_transport_exception_resolves_to_server_failed() -> None:
    coordinator = DualValidationCoordinator(FakeTransport(error=ValueError("bad payload")))
    events = recorder(coordinator)

    status = await coordinator.submit(CLEAN)

    assert status is ValidationStatus.SERVER_FAILED
    assert coordinator.status is ValidationStatus.SERVER_FAILED
    assert events[-1].message == "Validation call failed: bad payload"


@pytest.mark.asyncio
async def test_closed_http_client_resolves_to_server_failed() -> None:
    http_client = httpx.AsyncClient(
        base_url="http://validator.test",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"valid": True, "violations": []})),
    )
    await http_client.aclose()
    coordinator = DualValidationCoordinator(ValidationServiceClient(http_client=http_client))

    assert await coordinator.submit(CLEAN) is ValidationStatus.SERVER_FAILED
    assert coordinator.status is ValidationStatus.SERVER_FAILED


@pytest.mark.asyncio
async def test_model_b_without_size_never_reaches_server() -> None:
    transport = FakeTransport(error=TransportError("refused"))
    coordinator = DualValidationCoordinator(transport)

    assert await coordinator.submit({"model": "B"}) is ValidationStatus.CLIENT_ERROR
    assert transport.calls == []


@pytest.mark.asyncio
async def test_transport_failure_keeps_last_known_violations() -> None:
    transport = FakeTransport(result=ValidationResult.build([SERVER_VIOLATION]))
    coordinator = DualValidationCoordinator(transport)
    await coordinator.submit({"model": "A", "size": "S", "color": "white"})

    transport.error = TransportError("refused")
    status = await coordinator.submit(CLEAN)

    assert status is ValidationStatus.SERVER_FAILED
    assert coordinator.violations == (SERVER_VIOLATION,)


@pytest.mark.asyncio
async def test_each_submission_starts_from_idle() -> None:
    coordinator = DualValidationCoordinator(FakeTransport())
    events = recorder(coordinator)

    await coordinator.submit({"model": "C", "color": "red"})
    await coordinator.submit(CLEAN)

    starts = [e for e in events if e.status == "idle"]
    assert [(e.sequence, e.previous) for e in starts] == [(1, "idle"), (2, "client-error")]
    assert coordinator.sequence == 2


@pytest.mark.asyncio
async def test_stale_response_is_discarded() -> None:
    slow = FakeTransport(result=ValidationResult.build([SERVER_VIOLATION]))
    slow.gate = asyncio.Event()
    coordinator = DualValidationCoordinator(slow)

    first = asyncio.create_task(coordinator.submit(CLEAN))
    while coordinator.status is not ValidationStatus.PENDING:
        await asyncio.sleep(0)

    second = await coordinator.submit({"model": "C", "color": "red"})
    slow.gate.set()

    assert await first is None
    assert second is ValidationStatus.CLIENT_ERROR
    assert coordinator.status is ValidationStatus.CLIENT_ERROR
    assert [v.id for v in coordinator.violations] == ["no-red-model-c"]


@pytest.mark.asyncio
async def test_round_returns_its_own_status_when_listener_yields() -> None:
    coordinator = DualValidationCoordinator(FakeTransport())
    blocked = asyncio.Event()
    release = asyncio.Event()

    async def slow_renderer(event: StatusChangedEvent) -> None:
        if event.status == "valid" and not blocked.is_set():
            blocked.set()
            await release.wait()

    coordinator.subscribe(slow_renderer)

    first = asyncio.create_task(coordinator.submit(CLEAN))
    await blocked.wait()
    second = await coordinator.submit({"model": "C", "color": "red"})
    release.set()

    assert await first is ValidationStatus.VALID
    assert second is ValidationStatus.CLIENT_ERROR
    assert coordinator.status is ValidationStatus.CLIENT_ERROR


@pytest.mark.asyncio
async def test_failing_listener_is_dropped() -> None:
    coordinator = DualValidationCoordinator(FakeTransport())
    calls = []

    async def broken(event: StatusChangedEvent) -> None:
        calls.append(event.status)
        raise RuntimeError("render failed")

    coordinator.subscribe(broken)
    events = recorder(coordinator)

    assert await coordinator.submit(CLEAN) is ValidationStatus.VALID
    assert calls == ["idle"]
    assert [e.status for e in events] == ["idle", "pending", "valid"]


@pytest.mark.asyncio
async def test_illegal_transition_is_rejected() -> None:
    coordinator = DualValidationCoordinator(FakeTransport())
    with pytest.raises(InvalidTransitionError):
        await coordinator._transition(1, ValidationStatus.VALID)


def test_terminal_states_only_restart() -> None:
    for status in (
        ValidationStatus.CLIENT_ERROR,
        ValidationStatus.VALID,
        ValidationStatus.SERVER_ERROR,
        ValidationStatus.SERVER_FAILED,
    ):
        assert ALLOWED_TRANSITIONS[status] == frozenset()
    assert ALLOWED_TRANSITIONS[ValidationStatus.IDLE] == {ValidationStatus.CLIENT_ERROR, ValidationStatus.PENDING}
