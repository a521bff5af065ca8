"""Single-call CRUD operations for Supervisor Namespaces.

Each function performs at most one REST call. Inputs are validated before
the call, and every failure is re-raised with the operation name, resource
label, project and name attached. None of these functions wait for the
backend to settle; that is the waiter's job.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from .client import Transport
from .errors import (
    LABEL_SUPERVISOR_NAMESPACE,
    InvalidConfigError,
    TransportError,
    UnsupportedOperationError,
)
from .models import SupervisorNamespace
from .urls import build_supervisor_namespace_url

logger = logging.getLogger(__name__)


def _decode(
    payload: dict | None, *, operation: str, project_name: str, name: str | None
) -> SupervisorNamespace:
    target = f"{name} " if name else ""
    if payload is None:
        raise TransportError(
            f"error {operation} {LABEL_SUPERVISOR_NAMESPACE} {target}in Project "
            f"{project_name}: empty response body",
            operation=operation,
            project_name=project_name,
            name=name,
        )
    try:
        return SupervisorNamespace.model_validate(payload)
    except ValidationError as e:
        raise TransportError(
            f"error {operation} {LABEL_SUPERVISOR_NAMESPACE} {target}in Project "
            f"{project_name}: invalid response: {e}",
            operation=operation,
            project_name=project_name,
            name=name,
        ) from e


def _rewrap(
    e: TransportError, *, operation: str, project_name: str, name: str | None
) -> TransportError:
    """Re-raise a transport error with lifecycle context, keeping its class."""
    target = f"{name} " if name else ""
    return type(e)(
        f"error {operation} {LABEL_SUPERVISOR_NAMESPACE} {target}in Project {project_name}: {e}",
        status_code=e.status_code,
        operation=operation,
        project_name=project_name,
        name=name,
    )


async def create_supervisor_namespace(
    client: Transport,
    project_name: str,
    namespace: SupervisorNamespace,
) -> SupervisorNamespace:
    """Submit a new Supervisor Namespace.

    The object must carry ``metadata.generateName``; the backend picks the
    final name. The returned object is the accepted one, typically in phase
    CREATING or WAITING.

    Raises:
        InvalidConfigError: If project or name prefix is missing.
        URLConstructionError: If the endpoint cannot be built.
        TransportError: If the request fails.
    """
    operation = "creating"
    if not project_name:
        raise InvalidConfigError("project_name not specified", operation=operation)
    if not namespace.metadata.generate_name:
        raise InvalidConfigError(
            "name_prefix not specified", operation=operation, project_name=project_name
        )

    url = build_supervisor_namespace_url(client.server_url, project_name)
    try:
        payload = await client.send_request("POST", url, namespace.to_create_payload())
    except TransportError as e:
        raise _rewrap(e, operation=operation, project_name=project_name, name=None) from e

    created = _decode(payload, operation=operation, project_name=project_name, name=None)
    logger.info(
        "Supervisor Namespace submitted",
        extra={
            "project_name": project_name,
            "namespace_name": created.name,
            "generate_name": namespace.metadata.generate_name,
            "phase": created.phase,
        },
    )
    return created


async def read_supervisor_namespace(
    client: Transport, project_name: str, name: str
) -> SupervisorNamespace:
    """Fetch the current state of a Supervisor Namespace.

    Raises:
        NotFoundError: If the namespace does not exist.
        TransportError: For any other failure.
    """
    operation = "reading"
    if not project_name or not name:
        raise InvalidConfigError(
            "project_name and name are required",
            operation=operation,
            project_name=project_name or None,
            name=name or None,
        )

    url = build_supervisor_namespace_url(client.server_url, project_name, name)
    try:
        payload = await client.send_request("GET", url)
    except TransportError as e:
        raise _rewrap(e, operation=operation, project_name=project_name, name=name) from e

    return _decode(payload, operation=operation, project_name=project_name, name=name)


def update_supervisor_namespace(
    project_name: str | None = None, name: str | None = None, *, fields: list[str] | None = None
) -> None:
    """Reject an update. The backend has no modification endpoint.

    Raises:
        UnsupportedOperationError: Always, without any network call.
    """
    detail = f" (requested changes: {', '.join(fields)})" if fields else ""
    raise UnsupportedOperationError(
        f"{LABEL_SUPERVISOR_NAMESPACE} updates are not supported{detail}",
        operation="updating",
        project_name=project_name,
        name=name,
    )


async def delete_supervisor_namespace(
    client: Transport, project_name: str, name: str
) -> None:
    """Request deletion of a Supervisor Namespace.

    Raises:
        NotFoundError: If the namespace is already gone.
        TransportError: For any other failure.
    """
    operation = "deleting"
    if not project_name or not name:
        raise InvalidConfigError(
            "project_name and name are required",
            operation=operation,
            project_name=project_name or None,
            name=name or None,
        )

    url = build_supervisor_namespace_url(client.server_url, project_name, name)
    try:
        await client.send_request("DELETE", url)
    except TransportError as e:
        raise _rewrap(e, operation=operation, project_name=project_name, name=name) from e

    logger.info(
        "Supervisor Namespace deletion requested",
        extra={"project_name": project_name, "namespace_name": name},
    )

