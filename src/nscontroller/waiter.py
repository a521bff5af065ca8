"""Bounded polling until a Supervisor Namespace reaches a terminal phase.

The backend provisions and tears down namespaces asynchronously. After a
create or delete request is accepted, the waiter polls ``read`` at a fixed
interval and classifies every observation:

- Pending: any phase that is neither the target nor ERROR. Keep polling.
- Done: the target phase (CREATED for create). For delete, the object
  disappearing (NotFound) is the terminal success; the backend never serves
  a DELETED object.
- Failed: phase ERROR (case-insensitive), regardless of the operation.
  Abort immediately; never retried.

A transport failure other than NotFound-during-delete aborts the wait. Only
pending phases are retried, and only at the fixed cadence (no backoff).

The clock and sleep are injectable so the loop can be driven by a fake clock
in tests. Cancellation is cooperative through an ``asyncio.Event``: it is
checked before every sleep and every poll, wakes a sleep early and abandons
a poll whose request is still in flight.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar, cast

from .client import Transport
from .config import DEFAULT_DELETE_TIMEOUT_SECONDS, DEFAULT_POLL_INTERVAL_SECONDS
from .errors import (
    LABEL_SUPERVISOR_NAMESPACE,
    BackendErrorState,
    NotFoundError,
    SupervisorNamespaceError,
    WaitCancelledError,
    WaitTimeoutError,
)
from .models import SupervisorNamespace
from .operations import read_supervisor_namespace

logger = logging.getLogger(__name__)

PHASE_CREATED = "CREATED"
PHASE_DELETED = "DELETED"
PHASE_ERROR = "ERROR"

T = TypeVar("T")

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class Pending(Generic[T]):
    """Non-terminal observation; polling continues."""

    value: T
    state: str


@dataclass(frozen=True)
class Done(Generic[T]):
    """Terminal success."""

    value: T | None
    state: str


@dataclass(frozen=True)
class Failed:
    """Terminal failure; the error is raised to the caller."""

    error: Exception
    state: str = PHASE_ERROR


PollOutcome = Pending[T] | Done[T] | Failed


def normalize_phase(phase: str | None) -> str:
    return (phase or "").upper()


def classify_phase(obj: SupervisorNamespace, target: str) -> PollOutcome[SupervisorNamespace]:
    """Classify a remote observation against a target phase."""
    phase = normalize_phase(obj.phase)
    if phase == PHASE_ERROR:
        return Failed(
            BackendErrorState(
                f"{LABEL_SUPERVISOR_NAMESPACE} {obj.name} is in an ERROR state",
                project_name=obj.metadata.namespace,
                name=obj.name,
            )
        )
    if phase == target:
        return Done(obj, phase)
    return Pending(obj, phase)


async def run_unless_cancelled(
    awaitable: Awaitable[T],
    cancel_event: asyncio.Event | None,
    *,
    description: str,
    operation: str | None = None,
    project_name: str | None = None,
    name: str | None = None,
) -> T:
    """Await a single request, abandoning it as soon as cancel_event is set.

    The request runs as its own task and races the event. If the event wins,
    the request task is cancelled and WaitCancelledError is raised; a request
    that already completed wins over a simultaneous cancellation.
    """
    if cancel_event is None:
        return await awaitable

    request = asyncio.ensure_future(awaitable)
    cancelled = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({request, cancelled}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        cancelled.cancel()
        if not request.done():
            request.cancel()

    if request.done() and not request.cancelled():
        return request.result()

    logger.info("Request abandoned on cancellation", extra={"subject": description})
    raise WaitCancelledError(
        f"{description} cancelled", operation=operation, project_name=project_name, name=name
    )


async def _sleep_or_cancel(delay: float, cancel_event: asyncio.Event | None) -> None:
    if cancel_event is None:
        await asyncio.sleep(delay)
        return
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay)
    except TimeoutError:
        # Normal timeout, poll next
        pass


async def wait_for_state(
    refresh: Callable[[], Awaitable[PollOutcome[T]]],
    *,
    description: str,
    timeout: float,
    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    clock: Clock = time.monotonic,
    sleep: Sleeper | None = None,
    cancel_event: asyncio.Event | None = None,
) -> T | None:
    """Poll ``refresh`` until it reports a terminal outcome.

    ``poll_interval`` is both the delay before the first poll and the spacing
    between polls. The total wait is bounded by ``timeout``.

    Args:
        refresh: Coroutine factory returning one PollOutcome per call.
        description: Human-readable subject for log and error messages.
        timeout: Overall bound in seconds.
        poll_interval: Fixed delay between polls in seconds.
        clock: Monotonic clock.
        sleep: Sleep function; defaults to an event-aware asyncio sleep.
        cancel_event: When set, the wait stops at once, interrupting a sleep
            or an in-flight poll.

    Returns:
        The value carried by the Done outcome.

    Raises:
        WaitTimeoutError: If the timeout elapses while still pending.
        WaitCancelledError: If cancel_event is set.
        Exception: Whatever a Failed outcome carries, or refresh raises.
    """
    deadline = clock() + timeout
    polls = 0
    last_state: str | None = None

    def check_cancelled() -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info(
                "Wait cancelled",
                extra={"subject": description, "polls": polls, "last_phase": last_state},
            )
            raise WaitCancelledError(f"wait for {description} cancelled after {polls} polls")

    while True:
        check_cancelled()

        remaining = deadline - clock()
        if remaining <= 0:
            raise WaitTimeoutError(
                f"timeout after {timeout}s waiting for {description} "
                f"(last phase: {last_state or 'unknown'}, polls: {polls})",
                last_phase=last_state,
                polls=polls,
            )

        delay = min(poll_interval, remaining)
        if sleep is not None:
            await sleep(delay)
        else:
            await _sleep_or_cancel(delay, cancel_event)

        check_cancelled()
        if clock() >= deadline:
            continue

        polls += 1
        try:
            outcome = await run_unless_cancelled(refresh(), cancel_event, description=description)
        except WaitCancelledError:
            # Raise with the poll count and last phase
            check_cancelled()
            raise

        if isinstance(outcome, Failed):
            logger.warning(
                "Wait aborted by terminal failure",
                extra={"subject": description, "polls": polls, "error": str(outcome.error)},
            )
            raise outcome.error

        last_state = outcome.state
        if isinstance(outcome, Done):
            logger.info(
                "Wait reached terminal state",
                extra={"subject": description, "phase": outcome.state, "polls": polls},
            )
            return outcome.value

        logger.debug(
            "Still pending",
            extra={"subject": description, "phase": outcome.state, "polls": polls},
        )


def _with_context(
    e: SupervisorNamespaceError, *, operation: str, project_name: str, name: str
) -> SupervisorNamespaceError:
    e.operation = e.operation or operation
    e.project_name = e.project_name or project_name
    e.name = e.name or name
    return e


async def wait_for_create(
    client: Transport,
    project_name: str,
    name: str,
    *,
    timeout: float = DEFAULT_DELETE_TIMEOUT_SECONDS,
    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    clock: Clock = time.monotonic,
    sleep: Sleeper | None = None,
    cancel_event: asyncio.Event | None = None,
) -> SupervisorNamespace:
    """Wait until a submitted namespace reaches phase CREATED.

    Raises:
        BackendErrorState: If the phase becomes ERROR.
        WaitTimeoutError: If still pending after timeout.
        TransportError: If a poll fails (NotFound included).
    """

    async def refresh() -> PollOutcome[SupervisorNamespace]:
        obj = await read_supervisor_namespace(client, project_name, name)
        logger.debug(
            "Supervisor Namespace current phase",
            extra={"project_name": project_name, "namespace_name": name, "phase": obj.phase},
        )
        return classify_phase(obj, PHASE_CREATED)

    description = f"{LABEL_SUPERVISOR_NAMESPACE} {name} in Project {project_name} to be created"
    try:
        result = await wait_for_state(
            refresh,
            description=description,
            timeout=timeout,
            poll_interval=poll_interval,
            clock=clock,
            sleep=sleep,
            cancel_event=cancel_event,
        )
    except SupervisorNamespaceError as e:
        raise _with_context(e, operation="waiting", project_name=project_name, name=name)
    return cast(SupervisorNamespace, result)


async def wait_for_delete(
    client: Transport,
    project_name: str,
    name: str,
    *,
    timeout: float = DEFAULT_DELETE_TIMEOUT_SECONDS,
    poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    clock: Clock = time.monotonic,
    sleep: Sleeper | None = None,
    cancel_event: asyncio.Event | None = None,
) -> None:
    """Wait until a namespace no longer exists.

    Raises:
        BackendErrorState: If the phase becomes ERROR.
        WaitTimeoutError: If the namespace still exists after timeout.
        TransportError: If a poll fails with anything but NotFound.
    """

    async def refresh() -> PollOutcome[SupervisorNamespace]:
        try:
            obj = await read_supervisor_namespace(client, project_name, name)
        except NotFoundError:
            return Done(None, PHASE_DELETED)
        logger.debug(
            "Supervisor Namespace current phase",
            extra={"project_name": project_name, "namespace_name": name, "phase": obj.phase},
        )
        return classify_phase(obj, PHASE_DELETED)

    description = f"{LABEL_SUPERVISOR_NAMESPACE} {name} in Project {project_name} to be deleted"
    try:
        await wait_for_state(
            refresh,
            description=description,
            timeout=timeout,
            poll_interval=poll_interval,
            clock=clock,
            sleep=sleep,
            cancel_event=cancel_event,
        )
    except SupervisorNamespaceError as e:
        raise _with_context(e, operation="waiting", project_name=project_name, name=name)
