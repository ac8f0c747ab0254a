"""Dual validation coordinator: instant local checks, then the authoritative service.

Status machine, one run per submission:

    idle -> client-error                      local subset found violations
    idle -> pending -> valid | server-error   service answered
                    -> server-failed          service call did not complete

The local subset short-circuits the round trip only when it already fails.
A configuration that passes locally is always sent to the service, which has
the final word.
"""

from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, Protocol

import structlog

from configurator.client.local_rules import LOCAL_RULES
from configurator.errors import InvalidTransitionError, TransportError
from configurator.models.events import StatusChangedEvent
from configurator.rules.collector import ViolationCollector
from configurator.rules.models import Rule, ValidationResult, Violation

logger = structlog.get_logger()


class ValidationStatus(str, Enum):
    """Presentation-side status of the current validation round."""

    IDLE = "idle"
    CLIENT_ERROR = "client-error"
    PENDING = "pending"
    VALID = "valid"
    SERVER_ERROR = "server-error"
    SERVER_FAILED = "server-failed"


# A new submission may start from any state
ALLOWED_TRANSITIONS: dict[ValidationStatus, frozenset[ValidationStatus]] = {
    ValidationStatus.IDLE: frozenset({ValidationStatus.CLIENT_ERROR, ValidationStatus.PENDING}),
    ValidationStatus.PENDING: frozenset(
        {ValidationStatus.VALID, ValidationStatus.SERVER_ERROR, ValidationStatus.SERVER_FAILED}
    ),
    ValidationStatus.CLIENT_ERROR: frozenset(),
    ValidationStatus.VALID: frozenset(),
    ValidationStatus.SERVER_ERROR: frozenset(),
    ValidationStatus.SERVER_FAILED: frozenset(),
}


class ValidationTransport(Protocol):
    async def validate(self, configuration: Mapping[str, Any]) -> ValidationResult: ...


StatusListener = Callable[[StatusChangedEvent], Awaitable[None]]


class DualValidationCoordinator:
    """Runs the local rule subset, then the remote service, and tracks the outcome.

    Each round gets a sequence number. When a newer submission starts while an
    older round is still waiting on the service, the older round's response
    is discarded on arrival instead of overwriting the newer state.
    """

    def __init__(self, transport: ValidationTransport, local_rules: Iterable[Rule] = LOCAL_RULES):
        self.transport = transport
        self.local_collector = ViolationCollector(local_rules)
        self._status = ValidationStatus.IDLE
        self._violations: tuple[Violation, ...] = ()
        self._last_result: Optional[ValidationResult] = None
        self._sequence = 0
        self._listeners: list[StatusListener] = []

    @property
    def status(self) -> ValidationStatus:
        return self._status

    @property
    def violations(self) -> tuple[Violation, ...]:
        return self._violations

    @property
    def last_result(self) -> Optional[ValidationResult]:
        return self._last_result

    @property
    def sequence(self) -> int:
        return self._sequence

    def subscribe(self, listener: StatusListener) -> None:
        """Register a callback for every status transition."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: StatusListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def submit(self, configuration: Mapping[str, Any]) -> Optional[ValidationStatus]:
        """Validate a submitted configuration.

        Args:
            configuration: Field name to value mapping from the form

        Returns:
            The status this round resolved to, or None if a newer submission
            superseded it while the service call was in flight
        """
        self._sequence += 1
        sequence = self._sequence
        configuration = dict(configuration)

        await self._transition(sequence, ValidationStatus.IDLE)
        if self._is_stale(sequence, outcome="superseded"):
            return None

        local_result = self.local_collector.collect(configuration)
        if not local_result.valid:
            self._apply_result(local_result)
            await self._transition(sequence, ValidationStatus.CLIENT_ERROR)
            return ValidationStatus.CLIENT_ERROR

        await self._transition(sequence, ValidationStatus.PENDING)
        if self._is_stale(sequence, outcome="superseded"):
            return None

        try:
            result = await self.transport.validate(configuration)
        except TransportError as e:
            return await self._fail(sequence, e.message)
        except Exception as e:
            logger.error("validation_call_failed", sequence=sequence, error=str(e), error_type=type(e).__name__)
            return await self._fail(sequence, f"Validation call failed: {e}")

        if self._is_stale(sequence, outcome="result"):
            return None

        self._apply_result(result)
        status = ValidationStatus.VALID if result.valid else ValidationStatus.SERVER_ERROR
        await self._transition(sequence, status)
        return status

    async def _fail(self, sequence: int, message: str) -> Optional[ValidationStatus]:
        if self._is_stale(sequence, outcome="transport_error"):
            return None
        # Violations stay as last known: a failed call is no verdict
        await self._transition(sequence, ValidationStatus.SERVER_FAILED, message=message)
        return ValidationStatus.SERVER_FAILED

    def _apply_result(self, result: ValidationResult) -> None:
        self._last_result = result
        self._violations = result.violations

    def _is_stale(self, sequence: int, outcome: str) -> bool:
        if sequence == self._sequence:
            return False
        logger.info(
            "stale_response_discarded",
            sequence=sequence,
            current_sequence=self._sequence,
            outcome=outcome,
        )
        return True

    async def _transition(
        self,
        sequence: int,
        status: ValidationStatus,
        message: Optional[str] = None,
    ) -> None:
        previous = self._status
        if status is not ValidationStatus.IDLE and status not in ALLOWED_TRANSITIONS[previous]:
            raise InvalidTransitionError(f"Cannot move from '{previous.value}' to '{status.value}'")

        self._status = status
        logger.debug("status_changed", sequence=sequence, previous=previous.value, status=status.value)

        event = StatusChangedEvent(
            sequence=sequence,
            previous=previous.value,
            status=status.value,
            violations=list(self._violations),
            message=message,
        )

        dead_listeners = []
        for listener in list(self._listeners):
            try:
                await listener(event)
            except Exception as e:
                logger.warning("status_listener_failed", sequence=sequence, error=str(e))
                dead_listeners.append(listener)

        for dead in dead_listeners:
            self.unsubscribe(dead)
