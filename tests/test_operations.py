"""Tests for single-call CRUD operations."""

from __future__ import annotations

import pytest
from vcfa_mock import MockControlPlane

from nscontroller.errors import (
    InvalidConfigError,
    NotFoundError,
    TransportError,
    UnsupportedOperationError,
    URLConstructionError,
)
from nscontroller.models import ObjectMeta, SupervisorNamespace, SupervisorNamespaceConfig
from nscontroller.operations import (
    create_supervisor_namespace,
    delete_supervisor_namespace,
    read_supervisor_namespace,
    update_supervisor_namespace,
)


class TestCreate:
    """Tests for create_supervisor_namespace."""

    @pytest.mark.asyncio
    async def test_create_posts_to_collection(
        self, plane: MockControlPlane, config: SupervisorNamespaceConfig
    ) -> None:
        """Test that create POSTs once and returns the accepted object."""
        created = await create_supervisor_namespace(
            plane, "proj-1", config.to_supervisor_namespace()
        )

        assert created.name == "team-a-x7k2p"
        assert created.phase == "CREATING"
        assert plane.request_count() == 1
        request = plane.requests[0]
        assert request.method == "POST"
        assert request.url.endswith("/namespaces/proj-1/supervisornamespaces")
        assert request.body is not None
        assert request.body["metadata"]["generateName"] == "team-a"
        assert "name" not in request.body["metadata"]

    @pytest.mark.asyncio
    async def test_create_requires_generate_name(self, plane: MockControlPlane) -> None:
        """Test that a missing prefix is rejected before any call."""
        namespace = SupervisorNamespace(metadata=ObjectMeta(namespace="proj-1"))

        with pytest.raises(InvalidConfigError) as exc_info:
            await create_supervisor_namespace(plane, "proj-1", namespace)

        assert "name_prefix" in str(exc_info.value)
        assert plane.request_count() == 0

    @pytest.mark.asyncio
    async def test_create_requires_project(
        self, plane: MockControlPlane, config: SupervisorNamespaceConfig
    ) -> None:
        """Test that a missing project is rejected before any call."""
        with pytest.raises(InvalidConfigError):
            await create_supervisor_namespace(plane, "", config.to_supervisor_namespace())

        assert plane.request_count() == 0

    @pytest.mark.asyncio
    async def test_create_invalid_project_url(
        self, plane: MockControlPlane, config: SupervisorNamespaceConfig
    ) -> None:
        """Test that an unaddressable project never reaches the network."""
        with pytest.raises(URLConstructionError):
            await create_supervisor_namespace(plane, "Bad_Project", config.to_supervisor_namespace())

        assert plane.request_count() == 0

    @pytest.mark.asyncio
    async def test_create_transport_error_wrapped(
        self, plane: MockControlPlane, config: SupervisorNamespaceConfig
    ) -> None:
        """Test that failures carry operation, label and project."""
        plane.fail_next("POST", TransportError("status 409", status_code=409))

        with pytest.raises(TransportError) as exc_info:
            await create_supervisor_namespace(plane, "proj-1", config.to_supervisor_namespace())

        message = str(exc_info.value)
        assert message.startswith("error creating Supervisor Namespace in Project proj-1")
        assert exc_info.value.status_code == 409
        assert exc_info.value.operation == "creating"
        assert isinstance(exc_info.value.__cause__, TransportError)

    @pytest.mark.asyncio
    async def test_create_empty_response(
        self, plane: MockControlPlane, config: SupervisorNamespaceConfig
    ) -> None:
        """Test that an empty create response is a decoding failure."""

        async def empty(method: str, url: str, body: dict | None = None) -> None:
            return None

        plane.send_request = empty  # type: ignore[method-assign]

        with pytest.raises(TransportError) as exc_info:
            await create_supervisor_namespace(plane, "proj-1", config.to_supervisor_namespace())

        assert "empty response body" in str(exc_info.value)


class TestRead:
    """Tests for read_supervisor_namespace."""

    @pytest.mark.asyncio
    async def test_read(self, plane: MockControlPlane) -> None:
        """Test reading an existing namespace."""
        plane.add_namespace("proj-1", "ns-1", phase="CREATED")

        obj = await read_supervisor_namespace(plane, "proj-1", "ns-1")

        assert obj.name == "ns-1"
        assert obj.phase == "CREATED"
        assert plane.requests[0].method == "GET"
        assert plane.requests[0].url.endswith("/supervisornamespaces/ns-1")

    @pytest.mark.asyncio
    async def test_read_not_found(self, plane: MockControlPlane) -> None:
        """Test that a missing namespace raises NotFoundError with context."""
        with pytest.raises(NotFoundError) as exc_info:
            await read_supervisor_namespace(plane, "proj-1", "ns-1")

        assert "error reading Supervisor Namespace ns-1 in Project proj-1" in str(exc_info.value)
        assert exc_info.value.project_name == "proj-1"
        assert exc_info.value.name == "ns-1"

    @pytest.mark.asyncio
    async def test_read_requires_name(self, plane: MockControlPlane) -> None:
        """Test that inputs are validated before the call."""
        with pytest.raises(InvalidConfigError):
            await read_supervisor_namespace(plane, "proj-1", "")

        assert plane.request_count() == 0


class TestUpdate:
    """Tests for update_supervisor_namespace."""

    def test_update_always_rejected(self) -> None:
        """Test that updates are refused."""
        with pytest.raises(UnsupportedOperationError) as exc_info:
            update_supervisor_namespace("proj-1", "ns-1")

        assert "updates are not supported" in str(exc_info.value)

    def test_update_lists_changes(self) -> None:
        """Test that the requested changes are named in the error."""
        with pytest.raises(UnsupportedOperationError) as exc_info:
            update_supervisor_namespace("proj-1", "ns-1", fields=["class_name", "vpc_name"])

        assert "class_name, vpc_name" in str(exc_info.value)


class TestDelete:
    """Tests for delete_supervisor_namespace."""

    @pytest.mark.asyncio
    async def test_delete(self, plane: MockControlPlane) -> None:
        """Test that delete issues one DELETE and does not wait."""
        plane.add_namespace("proj-1", "ns-1")

        await delete_supervisor_namespace(plane, "proj-1", "ns-1")

        assert plane.request_count() == 1
        assert plane.requests[0].method == "DELETE"

    @pytest.mark.asyncio
    async def test_delete_not_found(self, plane: MockControlPlane) -> None:
        """Test that deleting a missing namespace raises NotFoundError."""
        with pytest.raises(NotFoundError) as exc_info:
            await delete_supervisor_namespace(plane, "proj-1", "ns-1")

        assert str(exc_info.value).startswith(
            "error deleting Supervisor Namespace ns-1 in Project proj-1"
        )
