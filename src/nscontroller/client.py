"""HTTP transport for the CCI control-plane API.

Built on the azure-core pipeline, which gives us header injection, bounded
retries for connection failures and a typed exception hierarchy. The pipeline
is synchronous, so every request is run in the default executor and bounded
by the request timeout; the event loop never blocks on network I/O.

Errors are classified into NotFoundError (HTTP 404) and TransportError
(everything else). The distinction drives termination of the delete wait.
"""

from __future__ import annotations

import asyncio
import functools
import json
import logging
from typing import Any, Protocol

from azure.core import PipelineClient
from azure.core.exceptions import (
    AzureError,
    HttpResponseError,
    ResourceNotFoundError,
    map_error,
)
from azure.core.pipeline.policies import HeadersPolicy, RetryPolicy, UserAgentPolicy
from azure.core.rest import HttpRequest

from .config import DEFAULT_REQUEST_TIMEOUT_SECONDS, MAX_TRANSPORT_RETRIES, Settings
from .errors import NotFoundError, TransportError

logger = logging.getLogger(__name__)

USER_AGENT = "nscontroller"

# Status codes mapped to typed azure-core errors before the generic fallback
ERROR_MAP: dict[int, type[HttpResponseError]] = {404: ResourceNotFoundError}


class Transport(Protocol):
    """Request-send primitive consumed by the CRUD operations."""

    @property
    def server_url(self) -> str: ...

    async def send_request(
        self, method: str, url: str, body: dict[str, Any] | None = None
    ) -> dict[str, Any] | None: ...


class ControlPlaneClient:
    """JSON client for the CCI Kubernetes-style API.

    Holds no per-resource state; one instance can serve concurrent waits on
    different Supervisor Namespaces.
    """

    def __init__(
        self,
        server_url: str,
        api_token: str,
        *,
        verify: bool = True,
        request_timeout_seconds: int = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        transport: Any | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            server_url: VCFA base URL.
            api_token: Bearer token.
            verify: Verify TLS certificates.
            request_timeout_seconds: Upper bound for a single request.
            transport: Optional azure-core HttpTransport (tests).
        """
        self._server_url = server_url.rstrip("/")
        self._verify = verify
        self._request_timeout = request_timeout_seconds

        policies = [
            HeadersPolicy(
                base_headers={
                    "Authorization": f"Bearer {api_token}",
                    "Accept": "application/json",
                }
            ),
            UserAgentPolicy(base_user_agent=USER_AGENT),
            # Only connection/read failures are retried; HTTP errors surface as-is
            RetryPolicy(retry_total=MAX_TRANSPORT_RETRIES, retry_status=0),
        ]
        kwargs: dict[str, Any] = {"policies": policies}
        if transport is not None:
            kwargs["transport"] = transport
        self._client = PipelineClient(base_url=self._server_url, **kwargs)

    @classmethod
    def from_settings(cls, settings: Settings) -> ControlPlaneClient:
        """Create a client from validated settings."""
        return cls(
            settings.server_url,
            settings.api_token,
            verify=not settings.allow_insecure,
            request_timeout_seconds=settings.request_timeout_seconds,
        )

    @property
    def server_url(self) -> str:
        return self._server_url

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ControlPlaneClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    async def send_request(
        self, method: str, url: str, body: dict[str, Any] | None = None
    ) -> dict[str, Any] | None:
        """Send a request and decode the JSON response.

        Args:
            method: HTTP verb.
            url: Absolute resource URL.
            body: JSON payload, if any.

        Returns:
            Decoded JSON object, or None for an empty body.

        Raises:
            NotFoundError: If the server answers 404.
            TransportError: For any other HTTP, connection or decoding failure.
        """
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(
                    None, functools.partial(self._send_sync, method, url, body)
                ),
                timeout=self._request_timeout,
            )
        except TimeoutError as e:
            logger.error(
                "Control-plane request timed out",
                extra={"method": method, "url": url, "timeout_seconds": self._request_timeout},
            )
            raise TransportError(
                f"{method} {url} timed out after {self._request_timeout}s"
            ) from e

    def _send_sync(
        self, method: str, url: str, body: dict[str, Any] | None
    ) -> dict[str, Any] | None:
        request = HttpRequest(method, url, json=body) if body is not None else HttpRequest(
            method, url
        )
        logger.debug("Sending request", extra={"method": method, "url": url})

        try:
            response = self._client.send_request(
                request,
                connection_verify=self._verify,
                connection_timeout=self._request_timeout,
                read_timeout=self._request_timeout,
            )
            if response.status_code >= 400:
                map_error(status_code=response.status_code, response=response, error_map=ERROR_MAP)
                raise HttpResponseError(response=response)
        except ResourceNotFoundError as e:
            raise NotFoundError(f"{method} {url}: not found", status_code=404) from e
        except HttpResponseError as e:
            raise TransportError(
                f"{method} {url} failed with status {e.status_code}: {e.message}",
                status_code=e.status_code,
            ) from e
        except AzureError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        text = response.text()
        if not text:
            return None
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError as e:
            raise TransportError(
                f"{method} {url}: response is not valid JSON: {e}",
                status_code=response.status_code,
            ) from e
        if not isinstance(decoded, dict):
            raise TransportError(
                f"{method} {url}: expected a JSON object, got {type(decoded).__name__}",
                status_code=response.status_code,
            )
        return decoded
