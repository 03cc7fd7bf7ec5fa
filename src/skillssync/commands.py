"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

commands.py
Unified sync orchestrator.
This is the SINGLE source of truth for reconciliation, guarded deletion and
the skill lifecycle (archive, restore, make global, rename, stars),
used by the CLI and by any embedding application.
"""
import os
import shutil
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Callable, Sequence

from skillssync.core import errors
from skillssync.core.archives import ArchiveStore, ArchivedSkillManifest
from skillssync.core.errors import (
    SyncEngineError, ConflictsDetected, SyncIOError, DeleteRequiresConfirmation,
    DeletionBlockedProtectedPath, DeletionOutsideAllowedRoots, DeletionTargetMissing)
from skillssync.core.frontmatter import normalized_skill_key, update_skill_title
from skillssync.core.hasher import skill_entry_id
from skillssync.core.interfaces import PackageScanner, CanonicalResolver
from skillssync.core.linker import SymlinkFarm
from skillssync.core.manifest import ManagedLinksManifest
from skillssync.core.models import (
    Scope, ScopeFilter, SkillPackage, SkillRecord, SourceRoot, ScopeResolution, SyncConflict,
    SyncEnvironment, SyncPaths, SyncState, SyncMetadata, SyncSummary, SyncHealthStatus,
    SyncTrigger, SkillLifecycleStatus, utc_now, iso8601)
from skillssync.core.paths import (
    RootLayout, MARKER_FILE, standardized_path, is_relative_to, is_protected_path,
    is_protected_skill_key, path_exists_or_symlink, is_symlink)
from skillssync.core.resolver import CanonicalResolverImpl
from skillssync.core.scanner import PackageScannerImpl
from skillssync.core.sorter import Sorter
from skillssync.core.workspaces import WorkspaceFinder
from skillssync.services.file_service import FileService
from skillssync.services.settings_store import SyncSettings, SyncSettingsStore
from skillssync.services.state_store import SyncStateStore

logger = logging.getLogger(__name__)

STATE_VERSION = 1


@dataclass
class _ScopePlan:
    """Resolution of one (scope, workspace) pair plus where its links go."""
    scope: Scope
    workspace: Optional[str]
    resolution: ScopeResolution
    targets: List[str]


class SyncEngine:
    """
    Orchestrates one reconciliation run:
    1. Discover workspaces and scan every source root
    2. Resolve one canonical package per key, per (scope, workspace)
    3. Abort before any mutation if any key is in conflict
    4. Link every canonical package into every target root of its scope
    5. Remove stale links from the previous manifest and save the new one
    6. Persist the resulting state, on success and on failure

    Usage:
        engine = SyncEngine(SyncEnvironment.current())
        state = engine.run_sync(SyncTrigger.MANUAL)

    The caller must make sure only one run mutates the link farm at a time.
    """

    def __init__(
            self,
            environment: SyncEnvironment,
            paths: Optional[SyncPaths] = None,
            scanner: Optional[PackageScanner] = None,
            resolver: Optional[CanonicalResolver] = None,
            file_service: Optional[FileService] = None,
            layout: Optional[RootLayout] = None,
            clock: Callable[[], datetime] = utc_now,
    ):
        self.environment = environment
        self.paths = paths or environment.paths
        self.layout = layout or RootLayout(environment)
        self.scanner = scanner or PackageScannerImpl()
        self.resolver = resolver or CanonicalResolverImpl()
        self.file_service = file_service
        self.clock = clock
        self.state_store = SyncStateStore(self.paths.state_path)
        self.settings_store = SyncSettingsStore(self.paths.settings_path)
        self.manifest = ManagedLinksManifest(self.paths.manifest_path)
        self.archive_store = ArchiveStore(self.paths.archives_directory)

    # ======================
    #  Reconciliation
    # ======================

    def run_sync(
            self,
            trigger: SyncTrigger = SyncTrigger.MANUAL,
            progress_callback: Optional[Callable[[str, int, Optional[int]], None]] = None
    ) -> SyncState:
        """
        Run one full reconciliation pass.

        Returns:
            The persisted state with status ok
        Raises:
            ConflictsDetected: if any key has diverging content (nothing is mutated)
            SyncIOError: if a link, directory or runtime file cannot be written
        """
        started_at = self.clock()
        previous = self.state_store.load_state()
        logger.debug(f"Sync started (trigger: {trigger.value})")

        try:
            state = self._reconcile(trigger, started_at, progress_callback)
            self.state_store.save_state(state)
        except SyncEngineError as e:
            self._persist_failure(previous, trigger, started_at, e, str(e))
            raise
        except Exception as e:
            logger.exception("Unexpected error during sync")
            self._persist_failure(previous, trigger, started_at, e, f"Unexpected sync error: {e}")
            raise

        logger.debug(f"Sync finished: {state.summary.global_count} global, "
                     f"{state.summary.project_count} project skills")
        return state

    def _reconcile(self, trigger: SyncTrigger, started_at: datetime,
                   progress_callback=None) -> SyncState:
        plans = self._discover(progress_callback)

        conflicts: List[SyncConflict] = []
        for plan in plans:
            conflicts.extend(plan.resolution.conflicts)
        if conflicts:
            raise ConflictsDetected(conflicts)

        # Mutation starts here
        self._ensure_directories()
        old_links = self.manifest.load()

        canonical_paths = [package.canonical_path
                           for plan in plans for package in plan.resolution.canonical.values()]
        farm = SymlinkFarm(canonical_paths)

        records: List[SkillRecord] = []
        new_links = set()
        for plan in plans:
            for skill_key in sorted(plan.resolution.canonical):
                package = plan.resolution.canonical[skill_key]
                target_paths, managed = farm.link_package(package, plan.targets)
                new_links |= managed
                records.append(self.build_record(package, target_paths))
            if progress_callback:
                progress_callback("linking", len(records), None)

        # Only after every link is in place
        removed = self.manifest.cleanup_stale(old_links, new_links)
        if removed:
            logger.debug(f"Removed {len(removed)} stale links")
        self.manifest.save(new_links)

        records.extend(self.archive_store.load_entries())
        skills = Sorter.sort_skills(records)
        finished_at = self.clock()
        return SyncState(
            version=STATE_VERSION,
            generated_at=iso8601(finished_at),
            sync=SyncMetadata(
                status=SyncHealthStatus.OK,
                last_started_at=iso8601(started_at),
                last_finished_at=iso8601(finished_at),
                duration_ms=self._duration_ms(started_at, finished_at),
                error=None,
                trigger=trigger.value,
            ),
            summary=SyncSummary(
                global_count=sum(1 for s in skills if ScopeFilter.GLOBAL.matches(s)),
                project_count=sum(1 for s in skills if ScopeFilter.PROJECT.matches(s)),
                conflict_count=0,
            ),
            skills=skills,
            top_skills=Sorter.top_skill_ids(skills),
        )

    def _discover(self, progress_callback=None) -> List[_ScopePlan]:
        """Read-only phase: scan and resolve every (scope, workspace) pair."""
        plans = []

        global_roots = self.layout.global_roots()
        packages = self._scan_roots(global_roots, Scope.GLOBAL, None, progress_callback)
        plans.append(_ScopePlan(
            scope=Scope.GLOBAL,
            workspace=None,
            resolution=self.resolver.resolve(packages, Scope.GLOBAL, None, global_roots),
            targets=self.layout.global_targets(),
        ))

        for workspace in self.discover_workspaces():
            project_roots = self.layout.project_roots(workspace)
            packages = self._scan_roots(project_roots, Scope.PROJECT, workspace, progress_callback)
            plans.append(_ScopePlan(
                scope=Scope.PROJECT,
                workspace=workspace,
                resolution=self.resolver.resolve(packages, Scope.PROJECT, workspace, project_roots),
                targets=self.layout.project_targets(workspace),
            ))

        return plans

    def _scan_roots(self, roots: Sequence[str], scope: Scope, workspace: Optional[str],
                    progress_callback=None) -> List[SkillPackage]:
        packages = []
        for root in roots:
            packages.extend(self.scanner.scan(SourceRoot(root, scope, workspace), progress_callback))
        return packages

    def _ensure_directories(self) -> None:
        for directory in self.layout.required_directories():
            try:
                os.makedirs(directory, exist_ok=True)
            except OSError as e:
                raise SyncIOError(directory, e) from e

    @staticmethod
    def build_record(package: SkillPackage, target_paths: List[str]) -> SkillRecord:
        return SkillRecord(
            id=skill_entry_id(package.scope.value, package.workspace, package.skill_key),
            name=package.name,
            scope=package.scope.value,
            workspace=package.workspace,
            canonical_source_path=package.canonical_path,
            target_paths=list(target_paths),
            exists=path_exists_or_symlink(package.canonical_path),
            is_symlink_canonical=is_symlink(package.canonical_path),
            package_type=package.package_type,
            skill_key=package.skill_key,
            symlink_target=package.canonical_path,
        )

    def _persist_failure(self, previous: SyncState, trigger: SyncTrigger, started_at: datetime,
                         error: BaseException, message: str) -> None:
        """
        Failed state keeps the previous skill list so readers never go blank.
        Best-effort: a write failure is logged and the original error wins.
        """
        finished_at = self.clock()
        conflict_count = len(error.conflicts) if isinstance(error, ConflictsDetected) else 0
        state = SyncState(
            version=STATE_VERSION,
            generated_at=iso8601(finished_at),
            sync=SyncMetadata(
                status=SyncHealthStatus.FAILED,
                last_started_at=iso8601(started_at),
                last_finished_at=iso8601(finished_at),
                duration_ms=self._duration_ms(started_at, finished_at),
                error=message,
                trigger=trigger.value,
            ),
            summary=SyncSummary(
                global_count=previous.summary.global_count,
                project_count=previous.summary.project_count,
                conflict_count=conflict_count,
            ),
            skills=list(previous.skills),
            top_skills=list(previous.top_skills),
        )
        try:
            self.state_store.save_state(state)
        except Exception as save_error:
            logger.warning(f"Could not persist failed sync state: {save_error}")

    @staticmethod
    def _duration_ms(started_at: datetime, finished_at: datetime) -> int:
        return max(0, int((finished_at - started_at).total_seconds() * 1000))

    # ======================
    #  Guarded deletion
    # ======================

    def delete(self, canonical_path: str, confirmed: bool = False) -> SyncState:
        """
        Move a canonical source to the trash, then reconcile.

        Checks, in order, each a hard stop:
        1. explicit confirmation
        2. no protected segment in the path
        3. path at or beneath a global root or a project root of a current workspace
        4. path exists (a dangling link counts)
        """
        if not confirmed:
            raise DeleteRequiresConfirmation()

        target = standardized_path(canonical_path)
        if is_protected_path(target):
            raise DeletionBlockedProtectedPath()

        settings = self.settings_store.load_settings()
        allowed_roots = self.allowed_delete_roots(settings.workspace_discovery_roots)
        if not any(is_relative_to(target, root) for root in allowed_roots):
            raise DeletionOutsideAllowedRoots()

        if not path_exists_or_symlink(target):
            raise DeletionTargetMissing()

        # An archived package leaves together with its bundle
        target = self.archive_store.bundle_of(target) or target

        file_service =self.file_service or FileService(use_system_trash=settings.use_system_trash)
        try:
            destination = file_service.move_to_trash(target, self.environment.trash_directory)
        except RuntimeError as e:
            raise SyncIOError(target, e) from e
        logger.debug(f"Deleted {target} (trash: {destination or 'system'})")

        return self.run_sync(SyncTrigger.DELETE)

    def allowed_delete_roots(self, discovery_roots: Optional[Sequence[str]] = None) -> List[str]:
        """
        Global roots, the archives directory and project roots of every workspace.
        Recomputed on each call.
        """
        roots = list(self.layout.global_roots())
        roots.append(self.paths.archives_directory)
        roots.extend(self.allowed_project_roots(discovery_roots))
        return roots

    def allowed_project_roots(self, discovery_roots: Optional[Sequence[str]] = None) -> List[str]:
        if discovery_roots is None:
            discovery_roots = self.settings_store.load_settings().workspace_discovery_roots
        roots = []
        for workspace in self.discover_workspaces(discovery_roots):
            roots.extend(self.layout.project_roots(workspace))
        return roots

    def discover_workspaces(self, discovery_roots: Optional[Sequence[str]] = None) -> List[str]:
        if discovery_roots is None:
            discovery_roots = self.settings_store.load_settings().workspace_discovery_roots
        return WorkspaceFinder(self.environment, self.layout, discovery_roots).find_workspaces()

    # ======================
    #  Archive and restore
    # ======================

    def archive(self, skill: SkillRecord, confirmed: bool = False) -> SyncState:
        """
        Move an active skill and its links into a new archive bundle, then reconcile.

        Checks, in order, each a hard stop:
        1. explicit confirmation
        2. the skill is active
        3. no protected segment in the canonical path
        4. canonical path beneath an allowed root
        5. canonical path exists
        """
        if not confirmed:
            raise errors.ArchiveRequiresConfirmation()
        if skill.is_archived:
            raise errors.ArchiveOnlyForActiveSkill()

        source = standardized_path(skill.canonical_source_path)
        if is_protected_path(source):
            raise errors.ArchiveBlockedProtectedPath()
        if not self._is_within(source, self.allowed_delete_roots()):
            raise errors.ArchiveOutsideAllowedRoots()
        if not path_exists_or_symlink(source):
            raise errors.ArchiveSourceMissing()

        archived_at = self.clock()
        bundle = self.archive_store.new_bundle_path(skill.skill_key, archived_at)
        links_root = self.archive_store.links_path(bundle)
        self._makedirs(links_root)
        self._move(source, self.archive_store.source_path(bundle))

        moved_links = []
        used_names = set()
        for target_path in skill.target_paths:
            if standardized_path(target_path) == source or not is_symlink(target_path):
                continue
            archived_link = self.archive_store.unique_link_path(
                os.path.basename(target_path), links_root, used_names)
            self._move(target_path, archived_link)
            moved_links.append(target_path)

        self.archive_store.write_manifest(bundle, ArchivedSkillManifest(
            archived_at=iso8601(archived_at),
            skill_key=skill.skill_key,
            name=skill.name,
            original_scope=skill.scope,
            original_workspace=skill.workspace,
            original_canonical_source_path=source,
            moved_links=moved_links,
        ))
        logger.debug(f"Archived {skill.skill_key} into {bundle} ({len(moved_links)} links)")
        return self.run_sync(SyncTrigger.ARCHIVE)

    def restore(self, skill: SkillRecord, confirmed: bool = False) -> SyncState:
        """Move an archived package back into the preferred global root, then reconcile."""
        if not confirmed:
            raise errors.RestoreRequiresConfirmation()
        if not skill.is_archived:
            raise errors.RestoreOnlyForArchivedSkill()

        bundle = skill.archived_bundle_path
        if not bundle or not is_relative_to(bundle, self.paths.archives_directory):
            raise errors.RestoreBundleMissing()
        source = self.archive_store.source_path(bundle)
        if not path_exists_or_symlink(source):
            raise errors.RestoreSourceMissing()

        manifest = self.archive_store.read_manifest(bundle)
        destination = self.layout.preferred_global_destination(manifest.skill_key)
        if path_exists_or_symlink(destination):
            raise errors.RestoreTargetExists()

        self._makedirs(os.path.dirname(destination))
        self._move(source, destination)
        try:
            shutil.rmtree(bundle)
        except OSError as e:
            logger.warning(f"Could not remove archive bundle {bundle}: {e}")

        logger.debug(f"Restored {manifest.skill_key} to {destination}")
        return self.run_sync(SyncTrigger.RESTORE)

    # ======================
    #  Moves between scopes and keys
    # ======================

    def make_global(self, skill: SkillRecord, confirmed: bool = False) -> SyncState:
        """Move a project skill into the preferred global root, then reconcile."""
        if not confirmed:
            raise errors.MakeGlobalRequiresConfirmation()
        if skill.scope != Scope.PROJECT.value:
            raise errors.MakeGlobalOnlyForProject()

        skill_key = skill.skill_key.strip()
        if not skill_key:
            raise errors.MakeGlobalOutsideAllowedRoots()
        if is_protected_skill_key(skill_key):
            raise errors.MakeGlobalBlockedProtectedPath()

        source = standardized_path(skill.canonical_source_path)
        if is_protected_path(source):
            raise errors.MakeGlobalBlockedProtectedPath()
        if not self._is_within(source, self.allowed_project_roots()):
            raise errors.MakeGlobalOutsideAllowedRoots()
        if not path_exists_or_symlink(source):
            raise errors.MakeGlobalSourceMissing()

        destination = self.layout.preferred_global_destination(skill_key)
        if path_exists_or_symlink(destination):
            raise errors.MakeGlobalTargetExists()

        self._makedirs(os.path.dirname(destination))
        self._move(source, destination)

        state = self.run_sync(SyncTrigger.MAKE_GLOBAL)
        self._migrate_starred_skill_id(skill.id, skill_entry_id(Scope.GLOBAL.value, None, skill_key), state)
        return state

    def rename(self, skill: SkillRecord, new_title: str) -> SyncState:
        """
        Give a skill a new key derived from new_title, and write the title into SKILL.md.
        The package stays in its scope; a project skill moves to the workspace's first project root.
        """
        new_key = normalized_skill_key(new_title)
        if not new_key:
            raise errors.RenameRequiresNonEmptyTitle()
        if skill.is_archived:
            raise errors.RenameOnlyForActiveSkill()
        if new_key == skill.skill_key:
            raise errors.RenameNoOp()
        if is_protected_skill_key(skill.skill_key) or is_protected_skill_key(new_key):
            raise errors.RenameBlockedProtectedPath()

        source = standardized_path(skill.canonical_source_path)
        if is_protected_path(source):
            raise errors.RenameBlockedProtectedPath()
        if not self._is_within(source, self.allowed_delete_roots()):
            raise errors.RenameOutsideAllowedRoots()
        if not path_exists_or_symlink(source):
            raise errors.RenameRequiresExistingSource()

        if skill.scope == Scope.PROJECT.value:
            workspace = (skill.workspace or "").strip()
            if not workspace:
                raise errors.RenameOutsideAllowedRoots()
            destination = self.layout.preferred_project_destination(workspace, new_key)
        else:
            destination = self.layout.preferred_global_destination(new_key)

        if is_protected_path(destination):
            raise errors.RenameBlockedProtectedPath()
        if standardized_path(destination) == source:
            raise errors.RenameNoOp()
        if path_exists_or_symlink(destination):
            raise errors.RenameConflictTargetExists()

        self._makedirs(os.path.dirname(destination))
        self._move(source, destination)
        try:
            update_skill_title(os.path.join(destination, MARKER_FILE), new_title.strip())
        except SyncIOError:
            # Put the package back where it was
            try:
                shutil.move(destination, source)
            except OSError as e:
                logger.warning(f"Could not move {destination} back to {source}: {e}")
            raise

        state = self.run_sync(SyncTrigger.RENAME)
        self._migrate_starred_skill_id(
            skill.id, skill_entry_id(skill.scope, skill.workspace, new_key), state)
        return state

    @staticmethod
    def _is_within(path: str, roots: Sequence[str]) -> bool:
        return any(is_relative_to(path, root) for root in roots)

    @staticmethod
    def _makedirs(directory: str) -> None:
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            raise SyncIOError(directory, e) from e

    @staticmethod
    def _move(source: str, destination: str) -> None:
        try:
            shutil.move(source, destination)
        except OSError as e:
            raise SyncIOError(source, e) from e
        logger.debug(f"Moved {source} -> {destination}")

    # ======================
    #  Starred skills
    # ======================

    def starred_skill_ids(self) -> List[str]:
        """Starred ids that still name a persisted skill, in starring order."""
        return self._sanitize_starred(self.state_store.load_state(), self.settings_store.load_settings())

    def set_skill_starred(self, skill_id: str, starred: bool = True) -> List[str]:
        """Unknown ids leave the preference untouched."""
        state = self.state_store.load_state()
        if not any(skill.id == skill_id for skill in state.skills):
            return self.starred_skill_ids()

        settings = self.settings_store.load_settings()
        ids = self._sanitize_starred(state, settings)
        if starred and skill_id not in ids:
            ids.append(skill_id)
        elif not starred:
            ids = [item for item in ids if item != skill_id]

        settings.starred_skill_ids = ids
        self.settings_store.save_settings(settings)
        return ids

    @staticmethod
    def _sanitize_starred(state: SyncState, settings: SyncSettings) -> List[str]:
        known = {skill.id for skill in state.skills}
        return [item for item in settings.starred_skill_ids if item in known]

    def _migrate_starred_skill_id(self, old_id: str, new_id: str, state: SyncState) -> None:
        """A skill that changed identity keeps its star."""
        settings = self.settings_store.load_settings()
        if old_id not in settings.starred_skill_ids:
            return
        known = {skill.id for skill in state.skills}
        migrated = [new_id if item == old_id else item for item in settings.starred_skill_ids]
        settings.starred_skill_ids = list(dict.fromkeys(item for item in migrated if item in known))
        self.settings_store.save_settings(settings)
        logger.debug(f"Moved star from {old_id} to {new_id}")

    # ======================
    #  Read-only queries
    # ======================

    def load_state(self) -> SyncState:
        return self.state_store.load_state()

    def list_skills(self, scope_filter: ScopeFilter = ScopeFilter.ALL) -> List[SkillRecord]:
        skills = self.state_store.load_state().skills
        return [skill for skill in Sorter.sort_skills(skills) if scope_filter.matches(skill)]

    def find_skill(self, skill_key: str, scope: Optional[Scope] = None,
                   workspace: Optional[str] = None,
                   status: SkillLifecycleStatus = SkillLifecycleStatus.ACTIVE) -> Optional[SkillRecord]:
        """First persisted skill with this key and status in canonical order, optionally narrowed."""
        wanted_workspace = standardized_path(workspace) if workspace else None
        for skill in self.list_skills():
            if skill.skill_key != skill_key or skill.status != status.value:
                continue
            if scope is not None and skill.scope != scope.value:
                continue
            if wanted_workspace is not None and (
                    not skill.workspace or standardized_path(skill.workspace) != wanted_workspace):
                continue
            return skill
        return None
