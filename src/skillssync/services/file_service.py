"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/file_service.py
Cross-platform file operations kept outside the reconciliation core.
Relocates deleted skills to a recoverable trash and opens or reveals skills
through an injected shell capability.
"""
import os
import sys
import shutil
import logging
import subprocess
from typing import List, Optional, Mapping

from send2trash import send2trash

from skillssync.core.interfaces import CommandResult, ShellRunner

logger = logging.getLogger(__name__)

DEFAULT_EDITOR = "zed"


class SubprocessShellRunner(ShellRunner):
    """Runs a command without a shell; a non-zero exit is an error."""

    def __init__(self, env: Optional[Mapping[str, str]] = None, timeout: float = 10):
        self.env = dict(env) if env is not None else None
        self.timeout = timeout

    def run(self, command: List[str]) -> CommandResult:
        logger.debug(f"Running: {' '.join(command)}")
        try:
            completed = subprocess.run(
                command, capture_output=True, text=True, env=self.env, timeout=self.timeout)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            raise RuntimeError(f"Cannot run {command[0]}: {e}") from e

        result = CommandResult(completed.returncode, completed.stdout or "", completed.stderr or "")
        if result.returncode != 0:
            detail = result.stderr.strip() or result.stdout.strip()
            raise RuntimeError(f"{command[0]} exited with code {result.returncode}: {detail}")
        return result


class FileService:
    """
    File operations on behalf of presentation layers.
    Uses universal system tools with proper error handling.
    """

    def __init__(self, shell_runner: ShellRunner = None, use_system_trash: bool = False):
        self.shell_runner = shell_runner or SubprocessShellRunner()
        self.use_system_trash = use_system_trash

    def move_to_trash(self, path: str, trash_directory: str) -> Optional[str]:
        """
        Relocates a file, directory or link to a recoverable location.
        Existing trash entries are never overwritten: a numeric suffix is appended instead.

        Returns:
            Path inside trash_directory, or None when the system trash was used
        Raises:
            RuntimeError: if the move fails
        """
        if self.use_system_trash:
            try:
                send2trash(path)
            except Exception as e:
                raise RuntimeError(f"Failed to move to trash: {e}") from e
            logger.debug(f"Sent to system trash: {path}")
            return None

        try:
            os.makedirs(trash_directory, exist_ok=True)
            destination = self.free_trash_name(trash_directory, os.path.basename(path.rstrip(os.sep)))
            shutil.move(path, destination)
        except OSError as e:
            raise RuntimeError(f"Failed to move to trash: {e}") from e

        logger.debug(f"Moved to trash: {path} -> {destination}")
        return destination

    @staticmethod
    def free_trash_name(trash_directory: str, name: str) -> str:
        """First of name, name.1, name.2, ... that does not exist yet."""
        candidate = os.path.join(trash_directory, name)
        suffix = 1
        while os.path.lexists(candidate):
            candidate = os.path.join(trash_directory, f"{name}.{suffix}")
            suffix += 1
        return candidate

    def open_in_editor(self, path: str, editor: str = DEFAULT_EDITOR) -> None:
        """Opens a skill directory in an editor, falling back to the default application."""
        self._require_exists(path)
        try:
            if sys.platform == "darwin":
                self.shell_runner.run(["open", "-a", editor, path])
            elif sys.platform == "win32":
                self.shell_runner.run(["explorer", path])
            elif shutil.which(editor):
                self.shell_runner.run([editor, path])
            else:
                self._open_linux(path)
        except RuntimeError as e:
            raise RuntimeError(f"Failed to open {path}: {e}") from e

    def reveal_in_file_manager(self, path: str) -> None:
        """Reveals a skill in the system file manager."""
        self._require_exists(path)
        try:
            if sys.platform == "darwin":
                self.shell_runner.run(["open", "-R", path])
            elif sys.platform == "win32":
                self.shell_runner.run(["explorer", "/select,", path])
            else:
                self._open_linux(os.path.dirname(path.rstrip(os.sep)) or path)
        except RuntimeError as e:
            raise RuntimeError(f"Failed to reveal {path}: {e}") from e

    def _open_linux(self, path: str) -> None:
        """Linux: Tries gio, falls back to xdg-open."""
        try:
            self.shell_runner.run(["gio", "open", path])
            return
        except RuntimeError as e:
            logger.debug(f"gio failed, falling back to xdg-open: {e}")
        self.shell_runner.run(["xdg-open", path])

    @staticmethod
    def _require_exists(path: str) -> None:
        if not os.path.lexists(path):
            raise FileNotFoundError(f"File not found: {path}")
