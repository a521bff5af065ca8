"""Compound identifiers for Supervisor Namespaces.

A Supervisor Namespace is addressed by (project name, namespace name). Two
string encodings exist:

- the local id, ``<project>:<name>``, used as the state key;
- the import key, ``<project><sep><name>``, supplied by an operator when
  attaching an existing namespace. ``sep`` is configurable and defaults to ".".

Both components are RFC 1123 labels, so neither separator can occur inside
them. Encoding refuses components that contain the separator instead of
producing an id that would not decode back.
"""

from __future__ import annotations

from .config import DEFAULT_IMPORT_SEPARATOR
from .errors import MalformedIdentifierError

ID_SEPARATOR = ":"


def build_resource_id(project_name: str, name: str) -> str:
    """Encode (project_name, name) into a local id.

    Raises:
        MalformedIdentifierError: If a component is empty or contains ':'.
    """
    for label, value in (("project name", project_name), ("name", name)):
        if not value:
            raise MalformedIdentifierError(
                f"cannot build id: {label} is empty",
                project_name=project_name or None,
                name=name or None,
            )
        if ID_SEPARATOR in value:
            raise MalformedIdentifierError(
                f"cannot build id: {label} '{value}' contains '{ID_SEPARATOR}'",
                project_name=project_name,
                name=name,
            )
    return f"{project_name}{ID_SEPARATOR}{name}"


def parse_resource_id(resource_id: str) -> tuple[str, str]:
    """Decode a local id into (project_name, name).

    Raises:
        MalformedIdentifierError: If the id does not contain exactly two
            non-empty parts.
    """
    parts = resource_id.split(ID_SEPARATOR)
    if len(parts) != 2 or not all(parts):
        raise MalformedIdentifierError(f"id {resource_id!r} does not contain two parts")
    return parts[0], parts[1]


def parse_import_id(
    import_id: str, separator: str = DEFAULT_IMPORT_SEPARATOR
) -> tuple[str, str]:
    """Decode an import key into (project_name, name).

    Raises:
        MalformedIdentifierError: If the key is not exactly two non-empty fields.
    """
    parts = import_id.split(separator)
    if len(parts) != 2 or not all(parts):
        raise MalformedIdentifierError(
            f"expected import ID to be <project_name>{separator}<supervisor_namespace_name>, "
            f"got {import_id!r}"
        )
    return parts[0], parts[1]
