"""
Tests for WorkspaceFinder: discovery of directories with project-level skill roots.
"""
import os

from skillssync.core.paths import standardized_path
from skillssync.core.workspaces import WorkspaceFinder


def _make_workspace(path, subpath=(".claude", "skills")):
    path.joinpath(*subpath).mkdir(parents=True)
    return standardized_path(str(path))


class TestWorkspaceFinder:
    """Test the three discovery sources and the workspace rule."""

    def test_dev_root_children_with_skill_roots(self, env, home):
        with_skills = _make_workspace(home / "Dev" / "app")
        (home / "Dev" / "plain").mkdir()

        assert WorkspaceFinder(env).find_workspaces() == [with_skills]

    def test_any_project_root_qualifies(self, env, home):
        agents = _make_workspace(home / "Dev" / "one", (".agents", "skills"))
        codex = _make_workspace(home / "Dev" / "two", (".codex", "skills"))

        assert WorkspaceFinder(env).find_workspaces() == sorted([agents, codex])

    def test_hidden_dev_children_are_skipped(self, env, home):
        _make_workspace(home / "Dev" / ".hidden")

        assert WorkspaceFinder(env).find_workspaces() == []

    def test_symlinked_dev_children_are_not_followed(self, env, home, tmp_path):
        real = tmp_path / "real-project"
        _make_workspace(real)
        (home / "Dev").mkdir()
        os.symlink(real, home / "Dev" / "linked", target_is_directory=True)

        assert WorkspaceFinder(env).find_workspaces() == []

    def test_worktrees_owner_repo_layout(self, env, home):
        repo = _make_workspace(home / ".codex" / "worktrees" / "owner" / "repo")
        _make_workspace(home / ".codex" / "worktrees" / "too" / "deep" / "repo")

        assert WorkspaceFinder(env).find_workspaces() == [repo]

    def test_custom_roots_are_searched_to_depth_three(self, env, tmp_path):
        code = tmp_path / "code"
        at_root = _make_workspace(code)
        depth_three = _make_workspace(code / "a" / "b" / "c")
        _make_workspace(code / "a" / "b" / "c" / "d")

        found = WorkspaceFinder(env, discovery_roots=[str(code)]).find_workspaces()

        assert found == sorted([at_root, depth_three])

    def test_missing_sources_yield_nothing(self, env, tmp_path):
        assert WorkspaceFinder(env, discovery_roots=[str(tmp_path / "nope")]).find_workspaces() == []

    def test_duplicates_are_collapsed(self, env, home):
        workspace = _make_workspace(home / "Dev" / "app")

        found = WorkspaceFinder(env, discovery_roots=[env.dev_root, env.dev_root]).find_workspaces()

        assert found == [workspace]
