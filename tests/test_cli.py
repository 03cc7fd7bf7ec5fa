"""
CLI tests: argument handling, output formats and exit codes.
Every command runs against an isolated home directory.
"""
import json
import os
from unittest import mock

import pytest

from skillssync.cli import CLIApplication, main
from skillssync.services.file_service import FileService


def _run(env, *argv, file_service=None):
    CLIApplication(environment=env, file_service=file_service).run(list(argv))


class TestArgumentParsing:
    def test_command_is_required(self):
        with pytest.raises(SystemExit) as excinfo:
            CLIApplication.parse_args([])
        assert excinfo.value.code == 2

    def test_delete_needs_key_or_path(self):
        with pytest.raises(SystemExit):
            CLIApplication.parse_args(["delete", "--confirm"])

    def test_delete_key_and_path_are_exclusive(self):
        with pytest.raises(SystemExit):
            CLIApplication.parse_args(["delete", "--skill-key", "a", "--path", "/b"])

    def test_defaults(self):
        args = CLIApplication.parse_args(["sync"])
        assert (args.command, args.trigger, args.json, args.verbose) == ("sync", "manual", False, False)

    def test_invalid_trigger_is_rejected(self):
        with pytest.raises(SystemExit):
            CLIApplication.parse_args(["sync", "--trigger", "whenever"])


class TestSyncCommand:
    def test_prints_summary(self, env, global_roots, write_skill, capsys):
        write_skill(global_roots[0], "one")

        _run(env, "sync")

        assert capsys.readouterr().out.strip() == "sync=ok skills(global=1,project=0) conflicts=0"

    def test_json_output(self, env, global_roots, write_skill, capsys):
        write_skill(global_roots[0], "one")

        _run(env, "sync", "--json", "--trigger", "scheduled")

        data = json.loads(capsys.readouterr().out)
        assert data["sync"]["status"] == "ok"
        assert data["sync"]["trigger"] == "scheduled"
        assert data["skills"][0]["skill_key"] == "one"

    def test_conflicts_exit_with_error(self, env, global_roots, write_skill, capsys):
        write_skill(global_roots[0], "clash", body="one")
        write_skill(global_roots[1], "clash", body="two")

        with pytest.raises(SystemExit) as excinfo:
            _run(env, "sync")

        assert excinfo.value.code == 1
        err = capsys.readouterr().err
        assert "global - clash" in err
        assert "Error: Detected 1 skill conflict(s)" in err

    def test_quiet_suppresses_summary(self, env, capsys):
        _run(env, "--quiet", "sync")

        assert capsys.readouterr().out == ""


class TestListCommand:
    def test_tab_separated_output(self, env, home, global_roots, write_skill, capsys):
        write_skill(global_roots[0], "g")
        write_skill(home / "Dev" / "app" / ".claude" / "skills", "p")
        _run(env, "sync")
        capsys.readouterr()

        _run(env, "list", "--scope", "project")

        line = capsys.readouterr().out.strip()
        key, scope, path = line.split("\t")
        assert (key, scope) == ("p", "project")
        assert path.endswith(os.path.join(".claude", "skills", "p"))

    def test_empty_state_hint(self, env, capsys):
        _run(env, "list")

        assert "No skills found" in capsys.readouterr().out

    def test_json_output(self, env, global_roots, write_skill, capsys):
        write_skill(global_roots[0], "g")
        _run(env, "sync")
        capsys.readouterr()

        _run(env, "list", "--json")

        assert [s["skill_key"] for s in json.loads(capsys.readouterr().out)] == ["g"]


class TestDeleteCommand:
    def test_without_confirm_is_rejected(self, env, global_roots, write_skill, capsys):
        skill = write_skill(global_roots[0], "g")
        _run(env, "sync")

        with pytest.raises(SystemExit) as excinfo:
            _run(env, "delete", "--skill-key", "g")

        assert excinfo.value.code == 1
        assert "requires confirmed=true" in capsys.readouterr().err
        assert skill.exists()

    def test_unknown_key(self, env, capsys):
        with pytest.raises(SystemExit):
            _run(env, "delete", "--skill-key", "nope", "--confirm")

        assert "Skill not found: nope" in capsys.readouterr().err

    def test_delete_by_key(self, env, home, global_roots, write_skill, capsys):
        skill = write_skill(global_roots[0], "g")
        _run(env, "sync")

        _run(env, "delete", "--skill-key", "g", "--confirm")

        assert not skill.exists()
        assert (home / ".Trash" / "g").exists()
        assert "sync=ok skills(global=0,project=0)" in capsys.readouterr().out

    def test_delete_by_path_outside_roots(self, env, tmp_path, capsys):
        outside = tmp_path / "outside"
        outside.mkdir()

        with pytest.raises(SystemExit):
            _run(env, "delete", "--path", str(outside), "--confirm")

        assert "outside allowed roots" in capsys.readouterr().err
        assert outside.exists()


class TestOpenRevealDoctor:
    def test_open_uses_file_service(self, env, global_roots, write_skill):
        skill = write_skill(global_roots[0], "g")
        _run(env, "sync")
        file_service = mock.Mock(spec=FileService)

        _run(env, "open", "--skill-key", "g", file_service=file_service)

        file_service.open_in_editor.assert_called_once_with(str(skill), editor="zed")

    def test_reveal_failure_is_reported(self, env, global_roots, write_skill, capsys):
        write_skill(global_roots[0], "g")
        _run(env, "sync")
        file_service = mock.Mock(spec=FileService)
        file_service.reveal_in_file_manager.side_effect = RuntimeError("no file manager")

        with pytest.raises(SystemExit):
            _run(env, "reveal", "--skill-key", "g", file_service=file_service)

        assert "no file manager" in capsys.readouterr().err

    def test_doctor_prints_paths_and_summary(self, env, capsys):
        _run(env, "doctor")

        out = capsys.readouterr().out
        assert f"runtime:    {env.runtime_directory}" in out
        assert "manifest:" in out
        assert "sync=unknown" in out


class TestMain:
    def test_keyboard_interrupt_exits_130(self):
        with mock.patch.object(CLIApplication, "run", side_effect=KeyboardInterrupt):
            with pytest.raises(SystemExit) as excinfo:
                main([])
        assert excinfo.value.code == 130

    def test_unexpected_error_exits_1(self, capsys, monkeypatch):
        monkeypatch.delenv("DEBUG", raising=False)
        with mock.patch.object(CLIApplication, "run", side_effect=ValueError("kaboom")):
            with pytest.raises(SystemExit) as excinfo:
                main([])
        assert excinfo.value.code == 1
        assert "kaboom" in capsys.readouterr().err


class TestLifecycleCommands:
    def test_archive_needs_confirm(self, env, global_roots, write_skill, capsys):
        skill = write_skill(global_roots[0], "g")
        _run(env, "sync")

        with pytest.raises(SystemExit) as excinfo:
            _run(env, "archive", "--skill-key", "g")

        assert excinfo.value.code == 1
        assert "❌ Error: archive_canonical_source requires confirmed=true" in capsys.readouterr().err
        assert skill.exists()

    def test_archive_then_restore(self, env, global_roots, write_skill, capsys):
        skill = write_skill(global_roots[0], "g")
        _run(env, "sync")

        _run(env, "archive", "--skill-key", "g", "--confirm")
        assert not skill.exists()
        _run(env, "list", "--scope", "archived")
        out = capsys.readouterr().out
        assert "✅ Archived: g" in out
        assert "sync=ok skills(global=0,project=0)" in out
        assert out.strip().splitlines()[-1].split("\t")[:2] == ["g", "global"]

        _run(env, "restore", "--skill-key", "g", "--confirm")

        assert (skill / "SKILL.md").exists()
        assert "✅ Restored: g" in capsys.readouterr().out

    def test_restore_unknown_archive(self, env, global_roots, write_skill, capsys):
        write_skill(global_roots[0], "g")
        _run(env, "sync")

        with pytest.raises(SystemExit):
            _run(env, "restore", "--skill-key", "g", "--confirm")

        assert "Skill not found: g" in capsys.readouterr().err

    def test_make_global(self, env, home, global_roots, write_skill, capsys):
        write_skill(home / "Dev" / "app" / ".claude" / "skills", "p")
        _run(env, "sync")

        _run(env, "make-global", "--skill-key", "p", "--confirm")

        assert (global_roots[0] / "p" / "SKILL.md").exists()
        assert "sync=ok skills(global=1,project=0)" in capsys.readouterr().out

    def test_rename(self, env, global_roots, write_skill, capsys):
        write_skill(global_roots[0], "g")
        _run(env, "sync")

        _run(env, "rename", "--skill-key", "g", "--title", "Good Name")

        assert (global_roots[0] / "good-name" / "SKILL.md").read_text().startswith("---\ntitle: Good Name\n---\n")
        assert "✅ Renamed: g" in capsys.readouterr().out

    def test_rename_to_same_key_fails(self, env, global_roots, write_skill, capsys):
        write_skill(global_roots[0], "g")
        _run(env, "sync")

        with pytest.raises(SystemExit):
            _run(env, "rename", "--skill-key", "g", "--title", "G")

        assert "Rename is a no-op" in capsys.readouterr().err


class TestStarCommands:
    def test_star_filters_list(self, env, global_roots, write_skill, capsys):
        write_skill(global_roots[0], "a")
        write_skill(global_roots[0], "b")
        _run(env, "sync")

        _run(env, "star", "--skill-key", "b")
        assert "⭐ Starred: b" in capsys.readouterr().out

        _run(env, "list", "--starred")
        assert [line.split("\t")[0] for line in capsys.readouterr().out.strip().splitlines()] == ["b"]

        _run(env, "unstar", "--skill-key", "b")
        _run(env, "list", "--starred")
        assert "No skills found" in capsys.readouterr().out


class TestFailedSyncWarning:
    def test_list_warns_and_keeps_previous_skills(self, env, global_roots, write_skill, capsys):
        write_skill(global_roots[0], "g")
        _run(env, "sync")
        write_skill(global_roots[0], "clash", body="one")
        write_skill(global_roots[1], "clash", body="two")
        with pytest.raises(SystemExit):
            _run(env, "sync")
        capsys.readouterr()

        _run(env, "list")

        captured = capsys.readouterr()
        assert "Last sync failed (Detected 1 skill conflict(s))" in captured.err
        assert captured.out.startswith("g\tglobal\t")

    def test_quiet_hides_warning(self, env, global_roots, write_skill, capsys):
        write_skill(global_roots[0], "clash", body="one")
        write_skill(global_roots[1], "clash", body="two")
        with pytest.raises(SystemExit):
            _run(env, "sync")
        capsys.readouterr()

        _run(env, "--quiet", "list")

        assert capsys.readouterr().err == ""
