"""Tests for the local state file."""

from pathlib import Path

import pytest
import yaml

from nscontroller.models import StorageClassEntry, SupervisorNamespaceState
from nscontroller.state_store import StateStore, StateStoreError


def make_state(name: str = "ns-1", **kwargs) -> SupervisorNamespaceState:
    return SupervisorNamespaceState(
        id=f"proj-1:{name}", name=name, project_name="proj-1", **kwargs
    )


class TestStateStore:
    """Tests for StateStore."""

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        """Test that a store without a file has no entries."""
        store = StateStore(tmp_path / "state.yaml")

        assert store.list_ids() == []
        assert store.get("proj-1:ns-1") is None

    def test_put_get(self, tmp_path: Path) -> None:
        """Test that a recorded state reads back equal."""
        store = StateStore(tmp_path / "state.yaml")
        state = make_state(
            phase="CREATED",
            ready=True,
            name_prefix="ns-",
            storage_classes=[StorageClassEntry(name="sc", limit_mib=5)],
        )

        store.put(state)

        assert store.get("proj-1:ns-1") == state
        assert store.list_ids() == ["proj-1:ns-1"]

    def test_file_layout(self, tmp_path: Path) -> None:
        """Test the on-disk format."""
        path = tmp_path / "state.yaml"
        StateStore(path).put(make_state())

        document = yaml.safe_load(path.read_text())

        assert document["version"] == 1
        assert document["resources"]["proj-1:ns-1"]["name"] == "ns-1"
        assert document["resources"]["proj-1:ns-1"]["vm_classes"] == []

    def test_put_replaces(self, tmp_path: Path) -> None:
        """Test that put overwrites the previous record."""
        store = StateStore(tmp_path / "state.yaml")
        store.put(make_state(phase="CREATING"))
        store.put(make_state(phase="CREATED"))

        state = store.get("proj-1:ns-1")
        assert state is not None
        assert state.phase == "CREATED"

    def test_remove(self, tmp_path: Path) -> None:
        """Test forgetting an id."""
        store = StateStore(tmp_path / "state.yaml")
        store.put(make_state("ns-1"))
        store.put(make_state("ns-2"))

        assert store.remove("proj-1:ns-1") is True
        assert store.remove("proj-1:ns-1") is False
        assert store.list_ids() == ["proj-1:ns-2"]

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        """Test that missing directories are created on write."""
        path = tmp_path / "nested" / "dir" / "state.yaml"

        StateStore(path).put(make_state())

        assert path.exists()

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        """Test that the atomic write cleans up after itself."""
        store = StateStore(tmp_path / "state.yaml")
        store.put(make_state())
        store.remove("proj-1:ns-1")

        assert [p.name for p in tmp_path.iterdir()] == ["state.yaml"]

    def test_oversized_file(self, tmp_path: Path) -> None:
        """Test that the size limit is enforced before reading."""
        path = tmp_path / "state.yaml"
        path.write_text("x" * 200)

        with pytest.raises(StateStoreError) as exc_info:
            StateStore(path, max_size_bytes=100).list_ids()

        assert "maximum size" in str(exc_info.value)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "state.yaml"
        path.write_text("resources: [unclosed")

        with pytest.raises(StateStoreError):
            StateStore(path).list_ids()

    def test_wrong_version(self, tmp_path: Path) -> None:
        """Test that unknown file versions are refused."""
        path = tmp_path / "state.yaml"
        path.write_text("version: 99\nresources: {}\n")

        with pytest.raises(StateStoreError) as exc_info:
            StateStore(path).list_ids()

        assert "version" in str(exc_info.value)

    def test_corrupt_entry(self, tmp_path: Path) -> None:
        """Test that an entry failing validation is reported with its id."""
        path = tmp_path / "state.yaml"
        path.write_text("version: 1\nresources:\n  proj-1:ns-1:\n    ready: maybe\n")

        with pytest.raises(StateStoreError) as exc_info:
            StateStore(path).get("proj-1:ns-1")

        assert "proj-1:ns-1" in str(exc_info.value)
