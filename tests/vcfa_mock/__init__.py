"""VCFA control-plane mock for testing.

Provides an in-memory stand-in for the CCI Supervisor Namespace API that
satisfies the ``Transport`` protocol, plus a fake clock that makes waits
instantaneous and deterministic.

Key Features:
- In-memory namespaces keyed by (project, name)
- Scripted read sequences (phases, NotFound, injected errors)
- Request recording for asserting call counts
- Server-side name generation from ``generateName``

Usage:
    from vcfa_mock import FakeClock, MockControlPlane, NOT_FOUND

    plane = MockControlPlane()
    plane.add_namespace("proj", "ns-1", phase="DELETING")
    plane.script_reads("proj", "ns-1", "DELETING", NOT_FOUND)

    clock = FakeClock()
    await wait_for_delete(plane, "proj", "ns-1", clock=clock, sleep=clock.sleep)

    assert plane.request_count("GET") == 2
"""

from .clock import FakeClock
from .control_plane import NOT_FOUND, MockControlPlane, RecordedRequest, make_namespace

__all__ = [
    "NOT_FOUND",
    "FakeClock",
    "MockControlPlane",
    "RecordedRequest",
    "make_namespace",
]
