#!/usr/bin/env python3
"""
SkillsSync CLI — Command line interface for skill reconciliation.
Runs the same engine an embedding application would, with console output.
All operations are safe: deletion moves skills to a trash directory, never permanent erase.
"""
from __future__ import annotations  # Enable postponed evaluation of annotations (PEP 563)
import argparse
import json
import os
import sys
import time
from typing import Callable, List, Optional, NoReturn
import logging

logging.basicConfig(
    level=logging.ERROR,
    format="%(levelname)-8s | %(name)-25s | %(message)s"
)

# === EARLY DEPENDENCY VALIDATION ===
_MISSING_DEPS = []
try:
    from send2trash import send2trash
except ImportError:
    _MISSING_DEPS.append("send2trash")

try:
    import xxhash
except ImportError:
    _MISSING_DEPS.append("xxhash")

if _MISSING_DEPS:
    print("❌ Missing required dependencies:", file=sys.stderr)
    print(f"   pip install {' '.join(_MISSING_DEPS)}", file=sys.stderr)
    sys.exit(1)

# === NORMAL IMPORTS (after validation) ===
from skillssync.core.errors import SyncEngineError, ConflictsDetected
from skillssync.core.models import (
    SyncEnvironment, SkillRecord, SyncState, Scope, SkillLifecycleStatus, SyncHealthStatus)
from skillssync.core.manifest import ManagedLinksManifest
from skillssync.commands import SyncEngine
from skillssync.services.file_service import FileService, DEFAULT_EDITOR
from skillssync.aliases import (
    SCOPE_ALIASES, SCOPE_CHOICES, SCOPE_HELP_TEXT,
    TRIGGER_ALIASES, TRIGGER_CHOICES, TRIGGER_HELP_TEXT,
    EPILOG_TEXT
)


class CLIApplication:
    """Main CLI application controller."""

    def __init__(self, environment: Optional[SyncEnvironment] = None,
                 file_service: Optional[FileService] = None):
        self.start_time: float = time.time()
        self.verbose: bool = False
        self.quiet: bool = False
        self.environment = environment
        self.file_service = file_service
        self._engine: Optional[SyncEngine] = None

        # Fix encoding for Windows consoles to prevent UnicodeEncodeError
        for stream in (sys.stdout, sys.stderr):
            if hasattr(stream, "reconfigure"):
                stream.reconfigure(encoding='utf-8')

    @staticmethod
    def parse_args(args=None) -> argparse.Namespace:
        """Parse and validate command-line arguments."""
        parser = argparse.ArgumentParser(
            prog="skillssync",
            description="SkillsSync — Keep agent skill directories linked to one canonical source",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=EPILOG_TEXT
        )
        parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress non-essential output"
        )
        parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Show debug logging and progress"
        )

        subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
        subparsers.required = True

        sync_parser = subparsers.add_parser(
            "sync", help="Run one reconciliation pass",
            formatter_class=argparse.RawTextHelpFormatter)
        sync_parser.add_argument(
            "--trigger",
            choices=TRIGGER_CHOICES,
            default="manual",
            type=str,
            help=TRIGGER_HELP_TEXT
        )
        sync_parser.add_argument("--json", action="store_true", help="Print the resulting state as JSON")

        list_parser = subparsers.add_parser(
            "list", help="List skills from the last sync",
            formatter_class=argparse.RawTextHelpFormatter)
        list_parser.add_argument(
            "--scope",
            choices=SCOPE_CHOICES,
            default="all",
            type=str,
            help=SCOPE_HELP_TEXT
        )
        list_parser.add_argument("--json", action="store_true", help="Print skills as JSON")
        list_parser.add_argument("--starred", action="store_true", help="Only starred skills")

        delete_parser = subparsers.add_parser("delete", help="Move a canonical skill to the trash and re-sync")
        target_group = delete_parser.add_mutually_exclusive_group(required=True)
        target_group.add_argument("--skill-key", dest="skill_key", metavar="KEY", help="Skill key to delete")
        target_group.add_argument("--path", metavar="PATH", help="Canonical source path to delete")
        CLIApplication._add_selector_args(delete_parser)
        delete_parser.add_argument(
            "--confirm",
            action="store_true",
            help="Required: confirm that the canonical source should be moved to the trash"
        )

        open_parser = subparsers.add_parser("open", help="Open a skill in an editor")
        open_parser.add_argument("--skill-key", dest="skill_key", metavar="KEY", required=True)
        open_parser.add_argument("--editor", default=DEFAULT_EDITOR, help=f"Editor to use. Default: {DEFAULT_EDITOR}")
        CLIApplication._add_selector_args(open_parser)

        reveal_parser = subparsers.add_parser("reveal", help="Reveal a skill in the file manager")
        reveal_parser.add_argument("--skill-key", dest="skill_key", metavar="KEY", required=True)
        CLIApplication._add_selector_args(reveal_parser)

        archive_parser = subparsers.add_parser("archive", help="Move a skill and its links into an archive bundle")
        archive_parser.add_argument("--skill-key", dest="skill_key", metavar="KEY", required=True)
        CLIApplication._add_selector_args(archive_parser)
        archive_parser.add_argument("--confirm", action="store_true", help="Required: confirm the archive")

        restore_parser = subparsers.add_parser("restore", help="Restore an archived skill as a global skill")
        restore_parser.add_argument("--skill-key", dest="skill_key", metavar="KEY", required=True)
        CLIApplication._add_selector_args(restore_parser)
        restore_parser.add_argument("--confirm", action="store_true", help="Required: confirm the restore")

        make_global_parser = subparsers.add_parser("make-global", help="Move a project skill into the global roots")
        make_global_parser.add_argument("--skill-key", dest="skill_key", metavar="KEY", required=True)
        make_global_parser.add_argument("--workspace", default=None, help="Workspace that owns the skill")
        make_global_parser.add_argument("--confirm", action="store_true", help="Required: confirm the move")

        rename_parser = subparsers.add_parser("rename", help="Rename a skill: new key and SKILL.md title")
        rename_parser.add_argument("--skill-key", dest="skill_key", metavar="KEY", required=True)
        rename_parser.add_argument("--title", required=True, help="New human-readable title")
        CLIApplication._add_selector_args(rename_parser)

        for name, help_text in (("star", "Star a skill"), ("unstar", "Remove the star from a skill")):
            star_parser = subparsers.add_parser(name, help=help_text)
            star_parser.add_argument("--skill-key", dest="skill_key", metavar="KEY", required=True)
            CLIApplication._add_selector_args(star_parser)

        subparsers.add_parser("doctor", help="Show environment paths and the last sync result")

        return parser.parse_args(args)

    @staticmethod
    def _add_selector_args(parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--scope",
            choices=[Scope.GLOBAL.value, Scope.PROJECT.value],
            default=None,
            help="Narrow --skill-key to one scope"
        )
        parser.add_argument("--workspace", default=None, help="Narrow --skill-key to one workspace")

    @property
    def engine(self) -> SyncEngine:
        if self._engine is None:
            self._engine = SyncEngine(self.environment or SyncEnvironment.current())
        return self._engine

    def progress_callback(self, stage: str, current: int, total: Optional[int]) -> None:
        """CLI progress callback - shows progress in console."""
        if not self.verbose:
            return
        if total and total > 0:
            sys.stderr.write(f"\r  [{stage}] {current}/{total}")
        else:
            sys.stderr.write(f"\r  [{stage}] {current} skills processed...")
        sys.stderr.flush()

    # ======================
    #  Commands
    # ======================

    def cmd_sync(self, args: argparse.Namespace) -> None:
        trigger = TRIGGER_ALIASES[args.trigger]
        try:
            state = self.engine.run_sync(
                trigger,
                progress_callback=self.progress_callback if self.verbose else None
            )
        except ConflictsDetected as e:
            for conflict in e.conflicts:
                print(f"  {conflict.scope} {conflict.workspace or '-'} {conflict.skill_key}", file=sys.stderr)
            self.error_exit(str(e))
        except SyncEngineError as e:
            self.error_exit(str(e))
        finally:
            if self.verbose:
                sys.stderr.write("\n")

        if args.json:
            print(json.dumps(state.to_dict(), indent=2))
        elif not self.quiet:
            print(self.format_summary(state))

    def cmd_list(self, args: argparse.Namespace) -> None:
        state = self.engine.load_state()
        if state.sync.status is SyncHealthStatus.FAILED:
            self.warning(f"Last sync failed ({state.sync.error}); showing the previous result")

        skills = self.engine.list_skills(SCOPE_ALIASES[args.scope])
        if args.starred:
            starred = set(self.engine.starred_skill_ids())
            skills = [skill for skill in skills if skill.id in starred]
        if args.json:
            print(json.dumps([skill.to_dict() for skill in skills], indent=2))
            return
        if not skills and not self.quiet:
            print("No skills found. Run 'skillssync sync' first.")
            return
        for skill in skills:
            print(f"{skill.skill_key}\t{skill.scope}\t{skill.canonical_source_path}")

    def cmd_delete(self, args: argparse.Namespace) -> None:
        path = args.path if args.path else self.resolve_skill(args).canonical_source_path
        try:
            state = self.engine.delete(path, confirmed=args.confirm)
        except SyncEngineError as e:
            self.error_exit(str(e))

        if not self.quiet:
            print(f"✅ Moved to trash: {path}")
            print(self.format_summary(state))

    def cmd_archive(self, args: argparse.Namespace) -> None:
        skill = self.resolve_skill(args)
        self._apply(f"Archived: {skill.skill_key}", lambda: self.engine.archive(skill, confirmed=args.confirm))

    def cmd_restore(self, args: argparse.Namespace) -> None:
        skill = self.resolve_skill(args, status=SkillLifecycleStatus.ARCHIVED)
        self._apply(f"Restored: {skill.skill_key}", lambda: self.engine.restore(skill, confirmed=args.confirm))

    def cmd_make_global(self, args: argparse.Namespace) -> None:
        skill = self.resolve_skill(args, scope=Scope.PROJECT)
        self._apply(f"Moved to global: {skill.skill_key}",
                    lambda: self.engine.make_global(skill, confirmed=args.confirm))

    def cmd_rename(self, args: argparse.Namespace) -> None:
        skill = self.resolve_skill(args)
        self._apply(f"Renamed: {skill.skill_key}", lambda: self.engine.rename(skill, args.title))

    def cmd_star(self, args: argparse.Namespace) -> None:
        self._set_starred(args, True)

    def cmd_unstar(self, args: argparse.Namespace) -> None:
        self._set_starred(args, False)

    def _set_starred(self, args: argparse.Namespace, starred: bool) -> None:
        skill = self.resolve_skill(args)
        try:
            self.engine.set_skill_starred(skill.id, starred)
        except SyncEngineError as e:
            self.error_exit(str(e))
        if not self.quiet:
            print(f"{'⭐ Starred' if starred else 'Unstarred'}: {skill.skill_key}")

    def _apply(self, message: str, operation: Callable[[], SyncState]) -> None:
        """Run one state-changing engine operation and report the new summary."""
        try:
            state = operation()
        except SyncEngineError as e:
            self.error_exit(str(e))
        if not self.quiet:
            print(f"✅ {message}")
            print(self.format_summary(state))

    def cmd_open(self, args: argparse.Namespace) -> None:
        skill = self.resolve_skill(args)
        try:
            self.get_file_service().open_in_editor(skill.canonical_source_path, editor=args.editor)
        except (OSError, RuntimeError) as e:
            self.error_exit(str(e))

    def cmd_reveal(self, args: argparse.Namespace) -> None:
        skill = self.resolve_skill(args)
        try:
            self.get_file_service().reveal_in_file_manager(skill.canonical_source_path)
        except (OSError, RuntimeError) as e:
            self.error_exit(str(e))

    def cmd_doctor(self, args: argparse.Namespace) -> None:
        environment = self.engine.environment
        paths = self.engine.paths
        state = self.engine.load_state()
        managed = ManagedLinksManifest(paths.manifest_path).load()

        print(f"home:       {environment.home_directory}")
        print(f"dev root:   {environment.dev_root}")
        print(f"worktrees:  {environment.worktrees_root}")
        print(f"runtime:    {environment.runtime_directory}")
        print(f"trash:      {environment.trash_directory}")
        print(f"archives:   {paths.archives_directory}")
        print(f"state:      {paths.state_path} ({self._exists_label(paths.state_path)})")
        print(f"settings:   {paths.settings_path} ({self._exists_label(paths.settings_path)})")
        print(f"manifest:   {paths.manifest_path} ({len(managed)} managed links)")
        print(f"workspaces: {len(self.engine.discover_workspaces())}")
        print(f"last sync:  {state.sync.status.value}"
              f" at {state.sync.last_finished_at or 'never'}"
              f" ({state.sync.trigger or 'n/a'})")
        if state.sync.error:
            print(f"error:      {state.sync.error}")
        print(self.format_summary(state))

    # ======================
    #  Helpers
    # ======================

    def resolve_skill(self, args: argparse.Namespace, scope: Optional[Scope] = None,
                      status: SkillLifecycleStatus = SkillLifecycleStatus.ACTIVE) -> SkillRecord:
        if scope is None and getattr(args, "scope", None):
            scope = Scope(args.scope)
        skill = self.engine.find_skill(args.skill_key, scope=scope,
                                       workspace=getattr(args, "workspace", None), status=status)
        if skill is None:
            self.error_exit(f"Skill not found: {args.skill_key}")
        return skill

    def get_file_service(self) -> FileService:
        if self.file_service is None:
            settings = self.engine.settings_store.load_settings()
            self.file_service = FileService(use_system_trash=settings.use_system_trash)
        return self.file_service

    @staticmethod
    def format_summary(state: SyncState) -> str:
        return (f"sync={state.sync.status.value} "
                f"skills(global={state.summary.global_count},project={state.summary.project_count}) "
                f"conflicts={state.summary.conflict_count}")

    @staticmethod
    def _exists_label(path: str) -> str:
        return "present" if os.path.exists(path) else "missing"

    def warning(self, message: str) -> None:
        """Print a warning message to stderr."""
        if not self.quiet:
            print(f"⚠️  {message}", file=sys.stderr)

    @staticmethod
    def error_exit(message: str, code: int = 1) -> NoReturn:
        """Print error and exit."""
        print(f"❌ Error: {message}", file=sys.stderr)
        sys.exit(code)

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Main entry point with conditional output behavior."""
        args = self.parse_args(argv)
        self.verbose = args.verbose
        self.quiet = args.quiet
        if self.verbose:
            logging.getLogger().setLevel(logging.DEBUG)

        handler = getattr(self, f"cmd_{args.command.replace('-', '_')}")
        handler(args)

        elapsed = time.time() - self.start_time
        if self.verbose:
            print(f"\n✅ Completed in {elapsed:.2f} seconds", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> None:
    """Application entry point."""
    app = CLIApplication()
    try:
        app.run(argv)
    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user (Ctrl+C)")
        sys.exit(130)
    except Exception as e:
        if os.environ.get("DEBUG"):
            raise
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
