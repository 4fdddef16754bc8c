"""Tests for the per-task artifact store."""

from pathlib import Path

import pytest

from snapshot_relay.errors import CorruptRecordError
from snapshot_relay.store import (
    METADATA_FILE,
    FileArtifactStore,
    create_artifact_store,
    validate_task_id,
)


class TestFileArtifactStore:
    """Directory-per-task persistence."""

    def test_write_file_creates_task_directory(self, store, store_root):
        store.write_file("T1", "image-small.png", b"png-bytes")

        assert (store_root / "T1" / "image-small.png").read_bytes() == b"png-bytes"
        assert store.has_file("T1", "image-small.png")
        assert not store.has_file("T1", "image-large.png")

    def test_ensure_dir_is_idempotent(self, store, store_root):
        store.ensure_dir("T1")
        store.ensure_dir("T1")

        assert (store_root / "T1").is_dir()

    def test_metadata_round_trip(self, store, store_root):
        record = {"id": "T1", "name": "Sales KPI", "displayMode": "snapshot"}
        store.write_metadata("T1", record)

        assert store.read_metadata("T1") == record
        # Pretty-printed with two-space indentation
        text = (store_root / "T1" / METADATA_FILE).read_text(encoding="utf-8")
        assert text.startswith('{\n  "id"')

    def test_read_metadata_absent_returns_none(self, store):
        assert store.read_metadata("missing") is None

        store.ensure_dir("T1")
        assert store.read_metadata("T1") is None

    def test_read_metadata_unparsable_raises(self, store, store_root):
        store.ensure_dir("T1")
        (store_root / "T1" / METADATA_FILE).write_text("{not json", encoding="utf-8")

        with pytest.raises(CorruptRecordError) as exc_info:
            store.read_metadata("T1")
        assert exc_info.value.task_id == "T1"
        assert exc_info.value.code == "CORRUPT_RECORD"

    def test_read_metadata_non_object_raises(self, store, store_root):
        store.ensure_dir("T1")
        (store_root / "T1" / METADATA_FILE).write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(CorruptRecordError):
            store.read_metadata("T1")

    def test_remove_dir_removes_everything(self, store, store_root):
        store.write_file("T1", "snapshot.json", b"{}")
        store.write_metadata("T1", {"id": "T1"})

        store.remove_dir("T1")

        assert not (store_root / "T1").exists()

    def test_remove_dir_missing_is_not_an_error(self, store):
        store.remove_dir("never-created")

    def test_list_task_dirs(self, store, store_root):
        assert store.list_task_dirs() == []
        assert not store.exists()

        store.ensure_dir("b")
        store.ensure_dir("a")
        (store_root / "stray.txt").write_text("not a task", encoding="utf-8")

        assert store.exists()
        assert store.list_task_dirs() == ["a", "b"]

    def test_list_files(self, store):
        assert store.list_files("T1") == []

        store.write_file("T1", "image-large.png", b"x")
        store.write_metadata("T1", {"id": "T1"})

        assert store.list_files("T1") == ["image-large.png", "metadata.json"]

    def test_tasks_do_not_share_directories(self, store):
        store.write_file("T1", "snapshot.json", b"{}")
        store.write_file("T2", "snapshot.json", b"[]")

        store.remove_dir("T1")

        assert store.has_file("T2", "snapshot.json")

    def test_get_uri(self, store, store_root):
        assert store.get_uri() == f"file://{store_root.resolve()}"


class TestTaskIdValidation:
    """Task ids must stay a single directory below the root."""

    @pytest.mark.parametrize("task_id", ["", ".", "..", "a/b", "..\\x", "a\x00b"])
    def test_rejects_unsafe_ids(self, task_id):
        with pytest.raises(ValueError):
            validate_task_id(task_id)

    def test_accepts_remote_ids(self):
        assert validate_task_id("65f1c0de9a0b1c2d3e4f5a6b") == "65f1c0de9a0b1c2d3e4f5a6b"

    def test_store_rejects_traversal(self, store):
        with pytest.raises(ValueError):
            store.write_file("../outside", "x.png", b"x")


class TestCreateArtifactStore:
    """URI-based store factory."""

    def test_relative_file_uri(self):
        store = create_artifact_store("file://./public/snapshots")

        assert isinstance(store, FileArtifactStore)
        assert store.root == Path("./public/snapshots")

    def test_absolute_file_uri(self, tmp_path):
        store = create_artifact_store(f"file://{tmp_path}/snapshots")

        assert store.root == tmp_path / "snapshots"

    def test_bare_path(self, tmp_path):
        store = create_artifact_store(str(tmp_path / "snapshots"))

        assert store.root == tmp_path / "snapshots"

    def test_unsupported_scheme(self):
        with pytest.raises(ValueError, match="Unsupported storage scheme"):
            create_artifact_store("s3://bucket/snapshots")
