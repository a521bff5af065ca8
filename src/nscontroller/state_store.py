"""Local state file for managed Supervisor Namespaces.

The file is a YAML mapping of local id to the last projected state:

    version: 1
    resources:
      my-project:my-ns-abc12:
        id: my-project:my-ns-abc12
        name: my-ns-abc12
        ...

SECURITY: The file size is checked before reading, and writes go through a
temporary file in the same directory followed by an atomic replace, so a
crash never leaves a truncated state file behind.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .config import MAX_STATE_FILE_SIZE_BYTES
from .models import SupervisorNamespaceState

logger = logging.getLogger(__name__)

STATE_FILE_VERSION = 1


class StateStoreError(Exception):
    """Raised when the state file cannot be read or written."""

    pass


class StateStore:
    """YAML-backed mapping of local id to SupervisorNamespaceState.

    Every call re-reads the file; nothing is cached between calls.
    """

    def __init__(self, path: Path, *, max_size_bytes: int = MAX_STATE_FILE_SIZE_BYTES) -> None:
        self._path = Path(path)
        self._max_size_bytes = max_size_bytes

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, dict[str, Any]]:
        if not self._path.exists():
            return {}

        try:
            file_size = self._path.stat().st_size
        except OSError as e:
            raise StateStoreError(f"Failed to stat state file {self._path}: {e}") from e

        if file_size > self._max_size_bytes:
            raise StateStoreError(
                f"State file exceeds maximum size of {self._max_size_bytes} bytes: {self._path}"
            )

        try:
            content = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise StateStoreError(f"Failed to read state file {self._path}: {e}") from e

        try:
            raw = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise StateStoreError(f"Invalid YAML in {self._path}: {e}") from e

        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise StateStoreError(f"State file must contain a YAML mapping: {self._path}")

        version = raw.get("version", STATE_FILE_VERSION)
        if version != STATE_FILE_VERSION:
            raise StateStoreError(
                f"Unsupported state file version {version!r} in {self._path}"
            )

        resources = raw.get("resources") or {}
        if not isinstance(resources, dict):
            raise StateStoreError(f"'resources' must be a mapping: {self._path}")
        return resources

    def _save(self, resources: dict[str, dict[str, Any]]) -> None:
        document = {"version": STATE_FILE_VERSION, "resources": resources}
        directory = self._path.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump(document, f, default_flow_style=False, sort_keys=True)
            os.replace(tmp_name, self._path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StateStoreError(f"Failed to write state file {self._path}: {e}") from e

        logger.debug(
            "State file written",
            extra={"path": str(self._path), "resource_count": len(resources)},
        )

    def get(self, resource_id: str) -> SupervisorNamespaceState | None:
        """Return the recorded state for an id, or None if not managed."""
        raw = self._load().get(resource_id)
        if raw is None:
            return None
        try:
            return SupervisorNamespaceState.model_validate(raw)
        except ValidationError as e:
            raise StateStoreError(
                f"Corrupt state entry {resource_id!r} in {self._path}: {e}"
            ) from e

    def put(self, state: SupervisorNamespaceState) -> None:
        """Record or replace the state for ``state.id``."""
        resources = self._load()
        resources[state.id] = state.model_dump(mode="json")
        self._save(resources)

    def remove(self, resource_id: str) -> bool:
        """Forget an id. Returns False if it was not recorded."""
        resources = self._load()
        if resources.pop(resource_id, None) is None:
            return False
        self._save(resources)
        return True

    def list_ids(self) -> list[str]:
        return sorted(self._load())
