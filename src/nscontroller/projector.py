"""Projection of a remote Supervisor Namespace onto the local state model.

Pure function of its inputs. Collection order is the order the backend
returned; missing collections become empty lists.
"""

from __future__ import annotations

from .identity import build_resource_id
from .models import (
    StatusCondition,
    StorageClassEntry,
    SupervisorNamespace,
    SupervisorNamespaceState,
    VMClassEntry,
    ZoneEntry,
)

READY_CONDITION_TYPE = "ready"
CONDITION_STATUS_TRUE = "true"


def is_ready(conditions: list[StatusCondition]) -> bool:
    """True iff a "ready" condition has status "true" (both case-insensitive)."""
    return any(
        c.type.lower() == READY_CONDITION_TYPE and c.status.lower() == CONDITION_STATUS_TRUE
        for c in conditions
    )


def project_state(
    project_name: str,
    name: str,
    obj: SupervisorNamespace,
    *,
    name_prefix: str | None = None,
) -> SupervisorNamespaceState:
    """Build the local state record for a remote object.

    Args:
        project_name: Project the namespace belongs to.
        name: Namespace name.
        obj: Object as returned by a read.
        name_prefix: Prior name prefix, used when the backend does not echo
            ``metadata.generateName``.

    Returns:
        Frozen state record with every computed field populated.
    """
    spec = obj.spec
    status = obj.status
    overrides = spec.initial_class_config_overrides

    return SupervisorNamespaceState(
        id=build_resource_id(project_name, name),
        name=name,
        name_prefix=obj.metadata.generate_name or name_prefix,
        project_name=project_name,
        class_name=spec.class_name,
        description=spec.description,
        region_name=spec.region_name,
        vpc_name=spec.vpc_name,
        phase=status.phase,
        ready=is_ready(status.conditions),
        storage_classes=[
            StorageClassEntry(name=sc.name, limit_mib=sc.limit_mib)
            for sc in status.storage_classes
        ],
        vm_classes=[VMClassEntry(name=vc.name) for vc in status.vm_classes],
        zones=[
            ZoneEntry(
                name=z.name,
                cpu_limit_mhz=z.cpu_limit_mhz,
                cpu_reservation_mhz=z.cpu_reservation_mhz,
                memory_limit_mib=z.memory_limit_mib,
                memory_reservation_mib=z.memory_reservation_mib,
            )
            for z in status.zones
        ],
        storage_classes_initial_class_config_overrides=[
            StorageClassEntry(name=sc.name, limit_mib=sc.limit_mib)
            for sc in overrides.storage_classes
        ],
        zones_initial_class_config_overrides=[
            ZoneEntry(
                name=z.name,
                cpu_limit_mhz=z.cpu_limit_mhz,
                cpu_reservation_mhz=z.cpu_reservation_mhz,
                memory_limit_mib=z.memory_limit_mib,
                memory_reservation_mib=z.memory_reservation_mib,
            )
            for z in overrides.zones
        ],
    )
