"""Declared configuration loading with validation.

SECURITY: The file size is checked before reading. Input validation happens
here, at the boundary, so nothing downstream sees an invalid configuration.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .config import MAX_DECLARED_CONFIG_SIZE_BYTES
from .errors import InvalidConfigError
from .models import SUPERVISOR_NAMESPACE_KIND, SupervisorNamespaceConfig

logger = logging.getLogger(__name__)


def parse_declared_config(data: Any, *, source: str = "<input>") -> SupervisorNamespaceConfig:
    """Validate raw declared configuration.

    Args:
        data: Mapping of declared fields.
        source: Where the data came from, for error messages.

    Raises:
        InvalidConfigError: With one ``field: message`` line per problem.
    """
    if not isinstance(data, dict):
        raise InvalidConfigError(
            f"Supervisor Namespace configuration must be a mapping: {source}",
            operation="validating",
        )

    try:
        return SupervisorNamespaceConfig.model_validate(data)
    except ValidationError as e:
        # Format Pydantic validation errors for readability
        errors = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"]) or "<root>"
            errors.append(f"  - {loc}: {error['msg']}")

        error_list = "\n".join(errors)
        raise InvalidConfigError(
            f"Validation failed for {source}:\n{error_list}",
            operation="validating",
            project_name=data.get("project_name") or None,
        ) from e


def load_declared_config(path: Path) -> SupervisorNamespaceConfig:
    """Load and validate a Supervisor Namespace configuration from YAML.

    Both a flat mapping of fields and a Kubernetes-style document
    (``apiVersion``/``kind``/``spec``) are accepted.

    Raises:
        InvalidConfigError: If the file cannot be read, parsed or validated.
    """
    path = Path(path)
    if not path.exists():
        raise InvalidConfigError(f"Configuration file not found: {path}")

    try:
        file_size = path.stat().st_size
    except OSError as e:
        raise InvalidConfigError(f"Failed to stat configuration file {path}: {e}") from e

    if file_size > MAX_DECLARED_CONFIG_SIZE_BYTES:
        raise InvalidConfigError(
            f"Configuration file exceeds maximum size of "
            f"{MAX_DECLARED_CONFIG_SIZE_BYTES} bytes: {path}"
        )

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise InvalidConfigError(f"Failed to read configuration file {path}: {e}") from e

    try:
        raw_data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise InvalidConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(raw_data, dict):
        raise InvalidConfigError(f"Configuration file must contain a YAML mapping: {path}")

    if "apiVersion" in raw_data and "spec" in raw_data:
        kind = raw_data.get("kind")
        if kind is not None and kind != SUPERVISOR_NAMESPACE_KIND:
            raise InvalidConfigError(
                f"Unsupported kind {kind!r} in {path}, expected {SUPERVISOR_NAMESPACE_KIND}"
            )
        data = raw_data.get("spec")
    else:
        data = raw_data

    config = parse_declared_config(data, source=str(path))
    logger.info(
        "Loaded Supervisor Namespace configuration",
        extra={"path": str(path), "project_name": config.project_name},
    )
    return config
