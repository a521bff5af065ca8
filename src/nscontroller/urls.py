"""Control-plane endpoint construction for Supervisor Namespaces."""

from __future__ import annotations

import re
from urllib.parse import quote, urlparse

from .errors import LABEL_SUPERVISOR_NAMESPACE, URLConstructionError

SUPERVISOR_NAMESPACE_API_GROUP = "infrastructure.cci.vmware.com"
SUPERVISOR_NAMESPACE_API_VERSION = "v1alpha1"

# Kubernetes-style API served by CCI under the VCFA host
CCI_KUBERNETES_SUBPATH = "{scheme}://{host}/cci/kubernetes"
SUPERVISOR_NAMESPACES_PATH = (
    "{server}/apis/"
    + SUPERVISOR_NAMESPACE_API_GROUP
    + "/"
    + SUPERVISOR_NAMESPACE_API_VERSION
    + "/namespaces/{project}/supervisornamespaces"
)

RFC1123_LABEL_PATTERN = r"[a-z0-9]([-a-z0-9]*[a-z0-9])?"
MAX_LABEL_LENGTH = 63


def is_rfc1123_label(value: str) -> bool:
    """Check whether value is a valid RFC 1123 label."""
    return (
        len(value) <= MAX_LABEL_LENGTH
        and re.fullmatch(RFC1123_LABEL_PATTERN, value) is not None
    )


def build_supervisor_namespace_url(
    base_server: str, project_name: str, name: str | None = None
) -> str:
    """Build the collection URL for a project, or the item URL when name is set.

    Args:
        base_server: VCFA base URL; only its scheme and host are used.
        project_name: Project (parent scope) name.
        name: Supervisor Namespace name, or None/"" for the collection.

    Returns:
        Absolute URL string.

    Raises:
        URLConstructionError: If the base is not an absolute http(s) URL or
            a path component is not an RFC 1123 label.
    """
    if not base_server:
        raise URLConstructionError(
            f"error building {LABEL_SUPERVISOR_NAMESPACE} URL: empty server URL",
            project_name=project_name,
            name=name,
        )

    parsed = urlparse(base_server)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise URLConstructionError(
            f"error building {LABEL_SUPERVISOR_NAMESPACE} URL: "
            f"server URL {base_server!r} is not an absolute http(s) URL",
            project_name=project_name,
            name=name,
        )

    if not is_rfc1123_label(project_name):
        raise URLConstructionError(
            f"error building {LABEL_SUPERVISOR_NAMESPACE} URL: "
            f"invalid project name {project_name!r}",
            project_name=project_name,
            name=name,
        )
    if name and not is_rfc1123_label(name):
        raise URLConstructionError(
            f"error building {LABEL_SUPERVISOR_NAMESPACE} URL: invalid name {name!r}",
            project_name=project_name,
            name=name,
        )

    server = CCI_KUBERNETES_SUBPATH.format(scheme=parsed.scheme, host=parsed.netloc)
    url = SUPERVISOR_NAMESPACES_PATH.format(server=server, project=quote(project_name, safe=""))
    if name:
        url = f"{url}/{quote(name, safe='')}"
    return url
