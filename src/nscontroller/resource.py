"""Create, read, update, delete and import of a single Supervisor Namespace.

Ties the CRUD operations, the waiter and the projector together into the
lifecycle contract a declarative tool drives:

- create: submit, wait for CREATED, read back and project.
- read: decode the local id, read and project.
- update: always rejected; every spec field is write-once.
- delete: request deletion and wait until the object is gone.
- import: attach an existing namespace by its import key.

A failed create wait is surfaced as-is. No compensating delete is issued;
the accepted name is logged so an operator can clean up by hand.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from .client import Transport
from .config import (
    DEFAULT_DELETE_TIMEOUT_SECONDS,
    DEFAULT_IMPORT_SEPARATOR,
    DEFAULT_POLL_INTERVAL_SECONDS,
    Settings,
)
from .errors import SupervisorNamespaceError, TransportError
from .identity import build_resource_id, parse_import_id, parse_resource_id
from .models import SupervisorNamespaceConfig, SupervisorNamespaceState
from .operations import (
    create_supervisor_namespace,
    delete_supervisor_namespace,
    read_supervisor_namespace,
    update_supervisor_namespace,
)
from .projector import project_state
from .waiter import Clock, Sleeper, run_unless_cancelled, wait_for_create, wait_for_delete

logger = logging.getLogger(__name__)

# Declared fields compared when an update is requested
IMMUTABLE_FIELDS = (
    "name_prefix",
    "project_name",
    "class_name",
    "description",
    "region_name",
    "vpc_name",
    "storage_classes_initial_class_config_overrides",
    "zones_initial_class_config_overrides",
)


def _entries_by_name(entries: list[Any]) -> list[dict[str, Any]]:
    return sorted((entry.model_dump() for entry in entries), key=lambda e: e["name"])


def diff_immutable_fields(
    state: SupervisorNamespaceState, config: SupervisorNamespaceConfig
) -> list[str]:
    """List the declared fields whose value differs from the recorded state.

    Override collections are compared as sets: entries are dumped to plain
    mappings and ordered by name, so the backend may echo them in any order.
    """
    changed: list[str] = []
    for field_name in IMMUTABLE_FIELDS:
        before: Any = getattr(state, field_name)
        after: Any = getattr(config, field_name)
        if isinstance(before, list):
            before = _entries_by_name(before)
            after = _entries_by_name(after)
        if field_name == "name_prefix" and before is None:
            # Imported namespaces may not record their prefix
            continue
        if before != after:
            changed.append(field_name)
    return changed


class SupervisorNamespaceResource:
    """Lifecycle driver for Supervisor Namespaces.

    Stateless apart from its collaborators and timing parameters, so a single
    instance may run several lifecycles concurrently.
    """

    def __init__(
        self,
        client: Transport,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        create_timeout: float = DEFAULT_DELETE_TIMEOUT_SECONDS,
        delete_timeout: float = DEFAULT_DELETE_TIMEOUT_SECONDS,
        import_separator: str = DEFAULT_IMPORT_SEPARATOR,
        clock: Clock = time.monotonic,
        sleep: Sleeper | None = None,
    ) -> None:
        self._client = client
        self._poll_interval = poll_interval
        self._create_timeout = create_timeout
        self._delete_timeout = delete_timeout
        self._import_separator = import_separator
        self._clock = clock
        self._sleep = sleep

    @classmethod
    def from_settings(cls, client: Transport, settings: Settings) -> SupervisorNamespaceResource:
        return cls(
            client,
            poll_interval=settings.poll_interval_seconds,
            create_timeout=settings.create_wait_timeout_seconds,
            delete_timeout=settings.delete_timeout_seconds,
            import_separator=settings.import_separator,
        )

    async def create(
        self,
        config: SupervisorNamespaceConfig,
        *,
        timeout: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> SupervisorNamespaceState:
        """Create a namespace and wait until it is usable.

        Args:
            config: Validated declared configuration.
            timeout: Override for the create wait timeout.
            cancel_event: Abandons the current request or wait when set.

        Returns:
            Projected state with every computed field populated.

        Raises:
            InvalidConfigError: Before any network call, for missing inputs.
            BackendErrorState: If the backend reports ERROR while provisioning.
            WaitTimeoutError: If CREATED is not reached in time.
            WaitCancelledError: If cancel_event is set before the namespace is ready.
            TransportError: If any request fails.
        """
        project_name = config.project_name
        submitted = await run_unless_cancelled(
            create_supervisor_namespace(
                self._client, project_name, config.to_supervisor_namespace()
            ),
            cancel_event,
            description=f"create request in Project {project_name}",
            operation="creating",
            project_name=project_name,
        )
        name = submitted.name
        if not name:
            raise TransportError(
                "backend accepted the Supervisor Namespace without assigning a name",
                operation="creating",
                project_name=project_name,
            )

        try:
            await wait_for_create(
                self._client,
                project_name,
                name,
                timeout=self._create_timeout if timeout is None else timeout,
                poll_interval=self._poll_interval,
                clock=self._clock,
                sleep=self._sleep,
                cancel_event=cancel_event,
            )
        except SupervisorNamespaceError as e:
            # Accepted by the backend but not usable; left in place
            logger.error(
                "Supervisor Namespace did not become ready; it was not deleted",
                extra={
                    "project_name": project_name,
                    "namespace_name": name,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
            )
            raise

        resource_id = build_resource_id(project_name, name)
        state = await run_unless_cancelled(
            self.read(resource_id, name_prefix=config.name_prefix),
            cancel_event,
            description=f"read of {resource_id}",
            operation="reading",
            project_name=project_name,
            name=name,
        )
        logger.info(
            "Supervisor Namespace created",
            extra={"resource_id": resource_id, "phase": state.phase, "ready": state.ready},
        )
        return state

    async def read(
        self, resource_id: str, *, name_prefix: str | None = None
    ) -> SupervisorNamespaceState:
        """Read and project the namespace behind a local id.

        Raises:
            MalformedIdentifierError: If the id cannot be decoded.
            NotFoundError: If the namespace no longer exists.
        """
        project_name, name = parse_resource_id(resource_id)
        obj = await read_supervisor_namespace(self._client, project_name, name)
        return project_state(project_name, name, obj, name_prefix=name_prefix)

    def update(
        self, state: SupervisorNamespaceState, config: SupervisorNamespaceConfig
    ) -> None:
        """Reject any modification of an existing namespace.

        Raises:
            UnsupportedOperationError: Always. Neither the client nor
                ``state`` is touched.
        """
        update_supervisor_namespace(
            state.project_name, state.name, fields=diff_immutable_fields(state, config)
        )

    async def delete(
        self,
        resource_id: str,
        *,
        timeout: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> None:
        """Delete a namespace and wait until it is gone.

        Returns only after terminal success; the caller clears its local
        record afterwards.

        Raises:
            MalformedIdentifierError: If the id cannot be decoded.
            NotFoundError: If the namespace was already gone before the request.
            BackendErrorState: If the backend reports ERROR while deleting.
            WaitTimeoutError: If the namespace still exists after the timeout.
            WaitCancelledError: If cancel_event is set before the namespace is gone.
        """
        project_name, name = parse_resource_id(resource_id)
        await run_unless_cancelled(
            delete_supervisor_namespace(self._client, project_name, name),
            cancel_event,
            description=f"delete request for {resource_id}",
            operation="deleting",
            project_name=project_name,
            name=name,
        )
        await wait_for_delete(
            self._client,
            project_name,
            name,
            timeout=self._delete_timeout if timeout is None else timeout,
            poll_interval=self._poll_interval,
            clock=self._clock,
            sleep=self._sleep,
            cancel_event=cancel_event,
        )
        logger.info("Supervisor Namespace deleted", extra={"resource_id": resource_id})

    async def import_(self, import_id: str) -> SupervisorNamespaceState:
        """Attach an existing namespace by ``<project><sep><name>``.

        Raises:
            MalformedIdentifierError: If the key is malformed.
            NotFoundError: If the namespace does not exist.
        """
        project_name, name = parse_import_id(import_id, self._import_separator)
        obj = await read_supervisor_namespace(self._client, project_name, name)
        state = project_state(project_name, name, obj)
        logger.info(
            "Supervisor Namespace imported",
            extra={"resource_id": state.id, "phase": state.phase},
        )
        return state
