"""Error taxonomy for Supervisor Namespace lifecycle operations.

Every error carries enough context (operation, project, name) to be logged
and diagnosed without the caller re-deriving it. Underlying causes are
chained with ``raise ... from``.
"""

from __future__ import annotations

LABEL_SUPERVISOR_NAMESPACE = "Supervisor Namespace"


class SupervisorNamespaceError(Exception):
    """Base class for all lifecycle errors."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        project_name: str | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.project_name = project_name
        self.name = name

    def context(self) -> dict[str, str | None]:
        """Structured context for log records."""
        return {
            "operation": self.operation,
            "resource_kind": LABEL_SUPERVISOR_NAMESPACE,
            "project_name": self.project_name,
            "namespace_name": self.name,
            "error_type": type(self).__name__,
        }


class InvalidConfigError(SupervisorNamespaceError):
    """Raised when declared configuration is missing or invalid.

    Always detected before any network call.
    """

    pass


class MalformedIdentifierError(SupervisorNamespaceError):
    """Raised when a local id or import key cannot be decoded."""

    pass


class URLConstructionError(SupervisorNamespaceError):
    """Raised when a control-plane URL cannot be built."""

    pass


class TransportError(SupervisorNamespaceError):
    """Raised when an HTTP call or response decoding fails."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        operation: str | None = None,
        project_name: str | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(message, operation=operation, project_name=project_name, name=name)
        self.status_code = status_code


class NotFoundError(TransportError):
    """Raised when the addressed object does not exist (HTTP 404)."""

    pass


class BackendErrorState(SupervisorNamespaceError):
    """Raised when the backend reports phase ERROR."""

    pass


class WaitTimeoutError(SupervisorNamespaceError):
    """Raised when a wait exceeds its timeout while still pending."""

    def __init__(
        self,
        message: str,
        *,
        last_phase: str | None = None,
        polls: int = 0,
        operation: str | None = None,
        project_name: str | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(message, operation=operation, project_name=project_name, name=name)
        self.last_phase = last_phase
        self.polls = polls


class WaitCancelledError(SupervisorNamespaceError):
    """Raised when a wait is aborted through its cancellation event."""

    pass


class UnsupportedOperationError(SupervisorNamespaceError):
    """Raised for operations the backend does not offer (updates)."""

    pass
