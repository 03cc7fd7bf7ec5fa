"""
Unit tests for PackageScannerImpl.
Verifies package boundaries, key derivation, safety rails and error handling.
"""
import os
from unittest import mock

from skillssync.core.models import SourceRoot, Scope
from skillssync.core.scanner import PackageScannerImpl


def _scan(root, **kwargs):
    return PackageScannerImpl(**kwargs).scan(SourceRoot(str(root), Scope.GLOBAL))


class TestPackageScannerImpl:
    """Test package discovery under one source root."""

    def test_finds_packages_with_relative_keys(self, tmp_path, write_skill):
        write_skill(tmp_path, "alpha")
        write_skill(tmp_path, "group/beta")

        packages = _scan(tmp_path)

        assert [p.skill_key for p in packages] == ["alpha", "group/beta"]
        beta = packages[1]
        assert beta.name == "beta"
        assert beta.canonical_path == str(tmp_path / "group" / "beta")
        assert beta.source_root == str(tmp_path)
        assert beta.scope is Scope.GLOBAL
        assert beta.package_type == "dir"
        assert len(beta.package_hash) == 64

    def test_keys_come_out_in_lexical_preorder(self, tmp_path, write_skill):
        for key in ("zeta", "alpha/two", "alpha/one", "mid"):
            write_skill(tmp_path, key)

        assert [p.skill_key for p in _scan(tmp_path)] == ["alpha/one", "alpha/two", "mid", "zeta"]

    def test_directory_without_marker_is_not_a_package(self, tmp_path):
        (tmp_path / "notes").mkdir()
        (tmp_path / "notes" / "README.md").write_text("hi")

        assert _scan(tmp_path) == []

    def test_marker_must_be_a_regular_file(self, tmp_path):
        (tmp_path / "odd" / "SKILL.md").mkdir(parents=True)

        assert _scan(tmp_path) == []

    def test_marker_at_root_is_ignored(self, tmp_path, write_skill):
        (tmp_path / "SKILL.md").write_text("root marker")
        write_skill(tmp_path, "real")

        assert [p.skill_key for p in _scan(tmp_path)] == ["real"]

    def test_missing_root_returns_empty_list(self, tmp_path):
        assert _scan(tmp_path / "does-not-exist") == []

    def test_hidden_directories_are_skipped(self, tmp_path, write_skill):
        write_skill(tmp_path, ".system/builtin")
        write_skill(tmp_path, ".cache/thing")
        write_skill(tmp_path, "visible")

        assert [p.skill_key for p in _scan(tmp_path)] == ["visible"]

    def test_protected_segments_are_excluded(self, tmp_path, write_skill):
        write_skill(tmp_path, "vendor/locked")
        write_skill(tmp_path, "mine")

        packages = _scan(tmp_path, protected_segments={"vendor"})

        assert [p.skill_key for p in packages] == ["mine"]

    def test_symlinked_directories_are_not_followed(self, tmp_path, write_skill):
        """Links created by the engine must never be rediscovered as candidates."""
        elsewhere = write_skill(tmp_path / "elsewhere", "linked")
        root = tmp_path / "root"
        root.mkdir()
        os.symlink(elsewhere, root / "linked", target_is_directory=True)

        assert _scan(root) == []

    def test_nested_packages_are_both_reported(self, tmp_path, write_skill):
        write_skill(tmp_path, "outer")
        write_skill(tmp_path, "outer/inner")

        assert [p.skill_key for p in _scan(tmp_path)] == ["outer", "outer/inner"]

    def test_unhashable_package_is_dropped(self, tmp_path, write_skill):
        write_skill(tmp_path, "broken")
        write_skill(tmp_path, "fine")
        hasher = mock.Mock()
        hasher.hash_directory.side_effect = lambda path: None if path.endswith("broken") else "abc"

        packages = _scan(tmp_path, hasher=hasher)

        assert [p.skill_key for p in packages] == ["fine"]
        assert packages[0].package_hash == "abc"

    def test_project_root_carries_workspace(self, tmp_path, write_skill):
        write_skill(tmp_path / "skills", "proj-skill")
        root = SourceRoot(str(tmp_path / "skills"), Scope.PROJECT, workspace=str(tmp_path))

        packages = PackageScannerImpl().scan(root)

        assert packages[0].scope is Scope.PROJECT
        assert packages[0].workspace == str(tmp_path)

    def test_progress_callback_is_invoked(self, tmp_path, write_skill):
        write_skill(tmp_path, "a")
        write_skill(tmp_path, "b")
        calls = []

        PackageScannerImpl().scan(SourceRoot(str(tmp_path), Scope.GLOBAL),
                                  progress_callback=lambda *args: calls.append(args))

        assert calls == [("scanning", 1, None), ("scanning", 2, None)]
