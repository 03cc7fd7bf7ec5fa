"""
Tests for ManagedLinksManifest: stale-link bookkeeping.
A manifest must never cause deletion of anything that is not a symbolic link.
"""
import json
import logging
import os
from unittest import mock

import pytest

from skillssync.core.errors import SyncIOError
from skillssync.core.manifest import ManagedLinksManifest
from skillssync.core.paths import standardized_path


class TestManifestPersistence:
    """Test load/save of the manifest file."""

    def test_missing_manifest_is_empty(self, tmp_path):
        assert ManagedLinksManifest(str(tmp_path / "m.json")).load() == set()

    @pytest.mark.parametrize("content", ["{not json", "[]", '{"managed_links": "oops"}', ""])
    def test_corrupt_manifest_is_empty(self, tmp_path, content):
        path = tmp_path / "m.json"
        path.write_text(content)

        assert ManagedLinksManifest(str(path)).load() == set()

    def test_save_writes_sorted_document(self, tmp_path):
        path = tmp_path / "runtime" / "m.json"
        links = {str(tmp_path / "b"), str(tmp_path / "a")}

        ManagedLinksManifest(str(path)).save(links)

        data = json.loads(path.read_text())
        assert data["version"] == 1
        assert data["managed_links"] == sorted(links)
        assert data["generated_at"].endswith("Z")

    def test_save_then_load_round_trips(self, tmp_path):
        manifest = ManagedLinksManifest(str(tmp_path / "m.json"))
        links = {standardized_path(str(tmp_path / "x" / "one")), standardized_path(str(tmp_path / "two"))}

        manifest.save(links)

        assert manifest.load() == links

    def test_failed_write_keeps_previous_manifest(self, tmp_path):
        path = tmp_path / "m.json"
        manifest = ManagedLinksManifest(str(path))
        manifest.save({"/old/link"})

        with mock.patch("skillssync.utils.file_utils.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(SyncIOError):
                manifest.save({"/new/link"})

        assert json.loads(path.read_text())["managed_links"] == ["/old/link"]
        assert os.listdir(tmp_path) == ["m.json"], "Temp file must be cleaned up"


class TestStaleCleanup:
    """Test removal of links no longer needed."""

    def test_removes_stale_symlinks_only(self, tmp_path):
        keep = tmp_path / "keep"
        stale = tmp_path / "stale"
        os.symlink(tmp_path, keep)
        os.symlink(tmp_path, stale)

        removed = ManagedLinksManifest.cleanup_stale({str(keep), str(stale)}, {str(keep)})

        assert removed == [str(stale)]
        assert keep.is_symlink()
        assert not os.path.lexists(stale)

    def test_user_replaced_file_is_left_alone(self, tmp_path):
        replaced = tmp_path / "replaced"
        replaced.write_text("user content")

        removed = ManagedLinksManifest.cleanup_stale({str(replaced)}, set())

        assert removed == []
        assert replaced.read_text() == "user content"

    def test_missing_stale_path_is_ignored(self, tmp_path):
        assert ManagedLinksManifest.cleanup_stale({str(tmp_path / "gone")}, set()) == []

    def test_removal_failure_is_logged_not_raised(self, tmp_path, caplog):
        stale = tmp_path / "stale"
        os.symlink(tmp_path, stale)

        with mock.patch("skillssync.core.manifest.os.unlink", side_effect=PermissionError(13, "denied")):
            with caplog.at_level(logging.WARNING, logger="skillssync.core.manifest"):
                removed = ManagedLinksManifest.cleanup_stale({str(stale)}, set())

        assert removed == []
        assert "Could not remove stale link" in caplog.text
