"""Pydantic models for Supervisor Namespaces.

Two families of models live here:

1. Wire models: the JSON object exchanged with the CCI control plane
   (camelCase aliases, unknown fields ignored for forward compatibility).
2. Local models: the declared configuration a user writes, and the state
   record the projector produces from a remote read (snake_case).

Computed fields exist only on the state model, so they can never be sent on
create.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, Field, field_validator

from .urls import (
    MAX_LABEL_LENGTH,
    SUPERVISOR_NAMESPACE_API_GROUP,
    SUPERVISOR_NAMESPACE_API_VERSION,
    is_rfc1123_label,
)

SUPERVISOR_NAMESPACE_KIND = "SupervisorNamespace"
SUPERVISOR_NAMESPACE_API = f"{SUPERVISOR_NAMESPACE_API_GROUP}/{SUPERVISOR_NAMESPACE_API_VERSION}"

_WIRE_CONFIG = {"extra": "ignore", "populate_by_name": True}


def _none_to_list(v: Any) -> Any:
    # The backend omits or nulls empty collections
    return [] if v is None else v


# =============================================================================
# Wire Models
# =============================================================================


class StorageClassOverride(BaseModel):
    """Initial storage class override sent in spec."""

    model_config = _WIRE_CONFIG

    name: str
    limit_mib: int = Field(alias="limitMiB")


class ZoneOverride(BaseModel):
    """Initial zone override sent in spec."""

    model_config = _WIRE_CONFIG

    name: str
    cpu_limit_mhz: int = Field(alias="cpuLimitMHz")
    cpu_reservation_mhz: int = Field(alias="cpuReservationMHz")
    memory_limit_mib: int = Field(alias="memoryLimitMiB")
    memory_reservation_mib: int = Field(alias="memoryReservationMiB")


class InitialClassConfigOverrides(BaseModel):
    """Write-once overrides applied when the namespace is created."""

    model_config = _WIRE_CONFIG

    storage_classes: list[StorageClassOverride] = Field(
        default_factory=list, alias="storageClasses"
    )
    zones: list[ZoneOverride] = Field(default_factory=list)

    @field_validator("storage_classes", "zones", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return _none_to_list(v)


class SupervisorNamespaceSpec(BaseModel):
    """Desired state. Immutable once the namespace exists."""

    model_config = _WIRE_CONFIG

    class_name: str = Field("", alias="className")
    description: str = ""
    initial_class_config_overrides: InitialClassConfigOverrides = Field(
        default_factory=InitialClassConfigOverrides, alias="initialClassConfigOverrides"
    )
    region_name: str = Field("", alias="regionName")
    vpc_name: str = Field("", alias="vpcName")


class StatusCondition(BaseModel):
    """A named boolean-ish fact about the namespace."""

    model_config = _WIRE_CONFIG

    type: str = ""
    status: str = ""
    reason: str = ""
    message: str = ""
    severity: str = ""


class StatusStorageClass(BaseModel):
    model_config = _WIRE_CONFIG

    name: str = ""
    limit_mib: int = Field(0, alias="limitMiB")


class StatusVMClass(BaseModel):
    model_config = _WIRE_CONFIG

    name: str = ""


class StatusZone(BaseModel):
    model_config = _WIRE_CONFIG

    name: str = ""
    cpu_limit_mhz: int = Field(0, alias="cpuLimitMHz")
    cpu_reservation_mhz: int = Field(0, alias="cpuReservationMHz")
    memory_limit_mib: int = Field(0, alias="memoryLimitMiB")
    memory_reservation_mib: int = Field(0, alias="memoryReservationMiB")


class SupervisorNamespaceStatus(BaseModel):
    """Observed state computed by the backend."""

    model_config = _WIRE_CONFIG

    conditions: list[StatusCondition] = Field(default_factory=list)
    namespace_endpoint_url: str = Field("", alias="namespaceEndpointURL")
    phase: str = ""
    storage_classes: list[StatusStorageClass] = Field(
        default_factory=list, alias="storageClasses"
    )
    vm_classes: list[StatusVMClass] = Field(default_factory=list, alias="vmClasses")
    zones: list[StatusZone] = Field(default_factory=list)

    @field_validator("conditions", "storage_classes", "vm_classes", "zones", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return _none_to_list(v)


class ObjectMeta(BaseModel):
    """Subset of Kubernetes object metadata used here."""

    model_config = _WIRE_CONFIG

    name: str | None = None
    generate_name: str | None = Field(None, alias="generateName")
    namespace: str | None = None


class SupervisorNamespace(BaseModel):
    """Remote Supervisor Namespace object."""

    model_config = _WIRE_CONFIG

    api_version: str = Field(SUPERVISOR_NAMESPACE_API, alias="apiVersion")
    kind: str = SUPERVISOR_NAMESPACE_KIND
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: SupervisorNamespaceSpec = Field(default_factory=SupervisorNamespaceSpec)
    status: SupervisorNamespaceStatus = Field(default_factory=SupervisorNamespaceStatus)

    @field_validator("metadata", "spec", "status", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return {} if v is None else v

    @property
    def name(self) -> str:
        return self.metadata.name or ""

    @property
    def phase(self) -> str:
        return self.status.phase

    def to_create_payload(self) -> dict[str, Any]:
        """Serialize for POST. Status is server-computed and never sent."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"status"})


# =============================================================================
# Local Models
# =============================================================================


class StorageClassEntry(BaseModel):
    """Storage class with a limit, as recorded in local state."""

    model_config = {"extra": "forbid", "frozen": True}

    name: str
    limit_mib: int


class ZoneEntry(BaseModel):
    """Zone with CPU and memory limits/reservations, as recorded in local state."""

    model_config = {"extra": "forbid", "frozen": True}

    name: str
    cpu_limit_mhz: int
    cpu_reservation_mhz: int
    memory_limit_mib: int
    memory_reservation_mib: int


class StorageClassOverrideInput(StorageClassEntry):
    """Declared storage class override."""

    name: Annotated[str, Field(min_length=1)]
    limit_mib: Annotated[int, Field(ge=0)]


class ZoneOverrideInput(ZoneEntry):
    """Declared zone override."""

    name: Annotated[str, Field(min_length=1)]
    cpu_limit_mhz: Annotated[int, Field(ge=0)]
    cpu_reservation_mhz: Annotated[int, Field(ge=0)]
    memory_limit_mib: Annotated[int, Field(ge=0)]
    memory_reservation_mib: Annotated[int, Field(ge=0)]


class VMClassEntry(BaseModel):
    model_config = {"extra": "forbid", "frozen": True}

    name: str


class SupervisorNamespaceConfig(BaseModel):
    """Declared configuration for one Supervisor Namespace.

    Computed fields (name, phase, ready, storage_classes, vm_classes, zones)
    are not accepted here.
    """

    model_config = {"extra": "forbid", "frozen": True}

    name_prefix: Annotated[str, Field(min_length=1, max_length=MAX_LABEL_LENGTH)]
    project_name: Annotated[str, Field(min_length=1)]
    class_name: Annotated[str, Field(min_length=1)]
    description: str = ""
    region_name: Annotated[str, Field(min_length=1)]
    vpc_name: Annotated[str, Field(min_length=1)]
    storage_classes_initial_class_config_overrides: Annotated[
        list[StorageClassOverrideInput], Field(min_length=1)
    ]
    zones_initial_class_config_overrides: Annotated[
        list[ZoneOverrideInput], Field(min_length=1)
    ]

    @field_validator("name_prefix")
    @classmethod
    def validate_name_prefix(cls, v: str) -> str:
        if not is_rfc1123_label(v):
            raise ValueError(
                "Name must match RFC 1123 Label name (lower case alphabet, 0-9 and hyphen -)"
            )
        return v

    def to_supervisor_namespace(self) -> SupervisorNamespace:
        """Build the wire object submitted on create."""
        return SupervisorNamespace(
            metadata=ObjectMeta(generate_name=self.name_prefix, namespace=self.project_name),
            spec=SupervisorNamespaceSpec(
                class_name=self.class_name,
                description=self.description,
                initial_class_config_overrides=InitialClassConfigOverrides(
                    storage_classes=[
                        StorageClassOverride(name=sc.name, limit_mib=sc.limit_mib)
                        for sc in self.storage_classes_initial_class_config_overrides
                    ],
                    zones=[
                        ZoneOverride(
                            name=z.name,
                            cpu_limit_mhz=z.cpu_limit_mhz,
                            cpu_reservation_mhz=z.cpu_reservation_mhz,
                            memory_limit_mib=z.memory_limit_mib,
                            memory_reservation_mib=z.memory_reservation_mib,
                        )
                        for z in self.zones_initial_class_config_overrides
                    ],
                ),
                region_name=self.region_name,
                vpc_name=self.vpc_name,
            ),
        )


class SupervisorNamespaceState(BaseModel):
    """Local record of a Supervisor Namespace as last read from the backend."""

    model_config = {"extra": "ignore", "frozen": True}

    id: str
    name: str
    name_prefix: str | None = None
    project_name: str
    class_name: str = ""
    description: str = ""
    region_name: str = ""
    vpc_name: str = ""

    # Computed
    phase: str = ""
    ready: bool = False
    storage_classes: list[StorageClassEntry] = Field(default_factory=list)
    vm_classes: list[VMClassEntry] = Field(default_factory=list)
    zones: list[ZoneEntry] = Field(default_factory=list)

    # Echoed initial overrides
    storage_classes_initial_class_config_overrides: list[StorageClassEntry] = Field(
        default_factory=list
    )
    zones_initial_class_config_overrides: list[ZoneEntry] = Field(default_factory=list)
