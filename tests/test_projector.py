"""Tests for projecting remote objects onto local state."""

import pytest
from vcfa_mock import make_namespace

from nscontroller.models import SupervisorNamespace
from nscontroller.projector import is_ready, project_state


def remote(**kwargs) -> SupervisorNamespace:
    return SupervisorNamespace.model_validate(make_namespace("proj-1", "ns-1", **kwargs))


class TestReadiness:
    """Tests for the ready flag."""

    @pytest.mark.parametrize(
        ("conditions", "expected"),
        [
            ([{"type": "Ready", "status": "True"}], True),
            ([{"type": "ready", "status": "true"}], True),
            ([{"type": "READY", "status": "TRUE"}], True),
            ([{"type": "Ready", "status": "False"}], False),
            ([{"type": "Ready", "status": "Unknown"}], False),
            ([{"type": "Available", "status": "True"}], False),
            ([], False),
            (
                [{"type": "Ready", "status": "False"}, {"type": "Ready", "status": "True"}],
                True,
            ),
        ],
    )
    def test_ready_from_conditions(self, conditions: list, expected: bool) -> None:
        """Test that ready is true iff a ready condition is true."""
        state = project_state("proj-1", "ns-1", remote(status={"conditions": conditions}))

        assert state.ready is expected

    def test_is_ready_empty(self) -> None:
        assert is_ready([]) is False


class TestProjectState:
    """Tests for project_state."""

    def test_projects_all_fields(self) -> None:
        """Test that spec and status fields land in the state record."""
        obj = remote(
            generate_name="ns-",
            status={
                "storageClasses": [{"name": "sc-b", "limitMiB": 2}, {"name": "sc-a", "limitMiB": 1}],
                "vmClasses": [{"name": "vm-1"}],
                "zones": [
                    {
                        "name": "z1",
                        "cpuLimitMHz": 10,
                        "cpuReservationMHz": 5,
                        "memoryLimitMiB": 20,
                        "memoryReservationMiB": 10,
                    }
                ],
            },
            spec={
                "className": "medium",
                "description": "d",
                "regionName": "r",
                "vpcName": "v",
                "initialClassConfigOverrides": {
                    "storageClasses": [{"name": "sc-a", "limitMiB": 1}],
                    "zones": [],
                },
            },
        )

        state = project_state("proj-1", "ns-1", obj)

        assert state.id == "proj-1:ns-1"
        assert state.name == "ns-1"
        assert state.name_prefix == "ns-"
        assert state.class_name == "medium"
        assert state.description == "d"
        assert state.region_name == "r"
        assert state.vpc_name == "v"
        assert state.phase == "CREATED"
        assert [sc.name for sc in state.storage_classes] == ["sc-b", "sc-a"]
        assert state.vm_classes[0].name == "vm-1"
        assert state.zones[0].memory_reservation_mib == 10
        assert state.storage_classes_initial_class_config_overrides[0].limit_mib == 1
        assert state.zones_initial_class_config_overrides == []

    def test_empty_collections_never_none(self) -> None:
        """Test that absent collections project to empty lists."""
        obj = SupervisorNamespace.model_validate(
            {"metadata": {"name": "ns-1"}, "status": {"phase": "CREATED"}}
        )

        state = project_state("proj-1", "ns-1", obj)

        assert state.storage_classes == []
        assert state.vm_classes == []
        assert state.zones == []
        assert state.storage_classes_initial_class_config_overrides == []
        assert state.zones_initial_class_config_overrides == []
        assert state.ready is False

    def test_prior_name_prefix_kept(self) -> None:
        """Test that the prior prefix is used when the backend does not echo it."""
        state = project_state("proj-1", "ns-1", remote(), name_prefix="team-a")

        assert state.name_prefix == "team-a"

    def test_pure(self) -> None:
        """Test that projecting twice gives equal records."""
        obj = remote()

        assert project_state("proj-1", "ns-1", obj) == project_state("proj-1", "ns-1", obj)
