"""
Tests for file service, critical for safe deletion.
Deleted skills must always be recoverable: moved, never erased, never overwriting trash.
"""
import sys
from unittest import mock

import pytest

from skillssync.core.interfaces import CommandResult
from skillssync.services.file_service import FileService, SubprocessShellRunner


class RecordingRunner:
    """Shell capability that records commands and fails for selected programs."""

    def __init__(self, failing=()):
        self.commands = []
        self.failing = set(failing)

    def run(self, command):
        self.commands.append(command)
        if command[0] in self.failing:
            raise RuntimeError(f"{command[0]} failed")
        return CommandResult(0)


class TestMoveToTrash:
    """Test relocation into the runtime trash directory."""

    def test_moves_directory_into_trash(self, tmp_path, write_skill):
        skill = write_skill(tmp_path / "skills", "foo")
        trash = tmp_path / "Trash"

        destination = FileService(shell_runner=RecordingRunner()).move_to_trash(str(skill), str(trash))

        assert destination == str(trash / "foo")
        assert not skill.exists()
        assert (trash / "foo" / "SKILL.md").exists()

    def test_existing_trash_entries_get_numeric_suffix(self, tmp_path, write_skill):
        trash = tmp_path / "Trash"
        (trash / "foo").mkdir(parents=True)
        (trash / "foo.1").mkdir()
        skill = write_skill(tmp_path / "skills", "foo")

        destination = FileService(shell_runner=RecordingRunner()).move_to_trash(str(skill), str(trash))

        assert destination == str(trash / "foo.2")
        assert (trash / "foo").exists() and (trash / "foo.1").exists()

    def test_missing_source_raises_runtime_error(self, tmp_path):
        with pytest.raises(RuntimeError, match="Failed to move to trash"):
            FileService(shell_runner=RecordingRunner()).move_to_trash(str(tmp_path / "nope"), str(tmp_path / "T"))

    def test_system_trash_uses_send2trash(self, tmp_path, write_skill):
        skill = write_skill(tmp_path / "skills", "foo")

        with mock.patch("skillssync.services.file_service.send2trash") as mock_trash:
            result = FileService(RecordingRunner(), use_system_trash=True).move_to_trash(str(skill), str(tmp_path / "T"))

        mock_trash.assert_called_once_with(str(skill))
        assert result is None
        assert not (tmp_path / "T").exists()

    def test_system_trash_errors_are_wrapped(self, tmp_path, write_skill):
        skill = write_skill(tmp_path / "skills", "foo")

        with mock.patch("skillssync.services.file_service.send2trash", side_effect=OSError("no trash")):
            with pytest.raises(RuntimeError, match="Failed to move to trash"):
                FileService(RecordingRunner(), use_system_trash=True).move_to_trash(str(skill), str(tmp_path / "T"))


class TestOpenAndReveal:
    """Test platform command selection through the shell capability."""

    def test_open_on_macos_uses_open_a(self, tmp_path):
        runner = RecordingRunner()
        with mock.patch.object(sys, "platform", "darwin"):
            FileService(runner).open_in_editor(str(tmp_path), editor="zed")

        assert runner.commands == [["open", "-a", "zed", str(tmp_path)]]

    def test_reveal_on_macos_uses_open_r(self, tmp_path):
        runner = RecordingRunner()
        with mock.patch.object(sys, "platform", "darwin"):
            FileService(runner).reveal_in_file_manager(str(tmp_path))

        assert runner.commands == [["open", "-R", str(tmp_path)]]

    def test_reveal_on_windows_selects_item(self, tmp_path):
        runner = RecordingRunner()
        with mock.patch.object(sys, "platform", "win32"):
            FileService(runner).reveal_in_file_manager(str(tmp_path))

        assert runner.commands == [["explorer", "/select,", str(tmp_path)]]

    def test_linux_falls_back_to_xdg_open(self, tmp_path):
        runner = RecordingRunner(failing={"gio"})
        with mock.patch.object(sys, "platform", "linux"), \
                mock.patch("skillssync.services.file_service.shutil.which", return_value=None):
            FileService(runner).open_in_editor(str(tmp_path), editor="zed")

        assert runner.commands == [["gio", "open", str(tmp_path)], ["xdg-open", str(tmp_path)]]

    def test_linux_uses_editor_when_installed(self, tmp_path):
        runner = RecordingRunner()
        with mock.patch.object(sys, "platform", "linux"), \
                mock.patch("skillssync.services.file_service.shutil.which", return_value="/usr/bin/zed"):
            FileService(runner).open_in_editor(str(tmp_path), editor="zed")

        assert runner.commands == [["zed", str(tmp_path)]]

    def test_reveal_on_linux_opens_parent(self, tmp_path):
        target = tmp_path / "skill"
        target.mkdir()
        runner = RecordingRunner()
        with mock.patch.object(sys, "platform", "linux"):
            FileService(runner).reveal_in_file_manager(str(target))

        assert runner.commands == [["gio", "open", str(tmp_path)]]

    def test_missing_path_raises_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            FileService(RecordingRunner()).open_in_editor(str(tmp_path / "missing"))

    def test_runner_failure_is_reported(self, tmp_path):
        runner = RecordingRunner(failing={"open"})
        with mock.patch.object(sys, "platform", "darwin"):
            with pytest.raises(RuntimeError, match="Failed to open"):
                FileService(runner).open_in_editor(str(tmp_path))


class TestSubprocessShellRunner:
    def test_captures_output(self):
        result = SubprocessShellRunner().run([sys.executable, "-c", "print('hello')"])

        assert result.returncode == 0
        assert result.stdout.strip() == "hello"

    def test_non_zero_exit_raises(self):
        with pytest.raises(RuntimeError, match="exited with code 3"):
            SubprocessShellRunner().run([sys.executable, "-c", "import sys; sys.exit(3)"])

    def test_missing_program_raises(self):
        with pytest.raises(RuntimeError, match="Cannot run"):
            SubprocessShellRunner().run(["definitely-not-a-real-program-xyz"])
