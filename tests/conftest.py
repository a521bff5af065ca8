"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Add tests to path for vcfa_mock imports
tests_path = Path(__file__).parent
sys.path.insert(0, str(tests_path))

from nscontroller.models import SupervisorNamespaceConfig  # noqa: E402
from vcfa_mock import FakeClock, MockControlPlane  # noqa: E402


@pytest.fixture
def plane() -> MockControlPlane:
    """In-memory control plane."""
    return MockControlPlane()


@pytest.fixture
def clock() -> FakeClock:
    """Clock that advances only when slept on."""
    return FakeClock()


@pytest.fixture
def declared() -> dict:
    """Valid declared configuration as written by a user."""
    return {
        "name_prefix": "team-a",
        "project_name": "proj-1",
        "class_name": "small",
        "description": "Team A sandbox",
        "region_name": "region-1",
        "vpc_name": "vpc-1",
        "storage_classes_initial_class_config_overrides": [
            {"name": "vsan-default", "limit_mib": 10240},
        ],
        "zones_initial_class_config_overrides": [
            {
                "name": "zone-1",
                "cpu_limit_mhz": 4000,
                "cpu_reservation_mhz": 1000,
                "memory_limit_mib": 8192,
                "memory_reservation_mib": 2048,
            },
        ],
    }


@pytest.fixture
def config(declared: dict) -> SupervisorNamespaceConfig:
    return SupervisorNamespaceConfig.model_validate(declared)
