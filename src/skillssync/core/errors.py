"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/errors.py
Typed error conditions surfaced by the sync engine.
"""

from typing import List
from skillssync.core.models import SyncConflict


class SyncEngineError(RuntimeError):
    """Base class for every condition the engine reports to its caller."""


class ConflictsDetected(SyncEngineError):
    """At least one skill key has candidates with different content."""

    def __init__(self, conflicts: List[SyncConflict]):
        self.conflicts = list(conflicts)
        super().__init__(f"Detected {len(self.conflicts)} skill conflict(s)")


class DeleteRequiresConfirmation(SyncEngineError):
    def __init__(self):
        super().__init__("delete_canonical_source requires confirmed=true")


class DeletionBlockedProtectedPath(SyncEngineError):
    def __init__(self):
        super().__init__("Deletion blocked for protected path")


class DeletionOutsideAllowedRoots(SyncEngineError):
    def __init__(self):
        super().__init__("Deletion blocked: target outside allowed roots")


class DeletionTargetMissing(SyncEngineError):
    def __init__(self):
        super().__init__("Deletion target does not exist")


class SyncIOError(SyncEngineError):
    """Filesystem failure while mutating the link farm or runtime files."""

    def __init__(self, path: str, error: Exception):
        self.path = path
        self.error = error
        super().__init__(f"I/O error at {path}: {error}")


# ======================
#  Archive and restore
# ======================

class ArchiveRequiresConfirmation(SyncEngineError):
    def __init__(self):
        super().__init__("archive_canonical_source requires confirmed=true")


class ArchiveOnlyForActiveSkill(SyncEngineError):
    def __init__(self):
        super().__init__("archive_canonical_source is only allowed for active skills")


class ArchiveBlockedProtectedPath(SyncEngineError):
    def __init__(self):
        super().__init__("Archive blocked for protected path")


class ArchiveOutsideAllowedRoots(SyncEngineError):
    def __init__(self):
        super().__init__("Archive blocked: source outside allowed roots")


class ArchiveSourceMissing(SyncEngineError):
    def __init__(self):
        super().__init__("Archive source does not exist")


class ArchiveManifestWriteFailed(SyncEngineError):
    def __init__(self):
        super().__init__("Archive manifest write failed")


class RestoreRequiresConfirmation(SyncEngineError):
    def __init__(self):
        super().__init__("restore_archived_skill_to_global requires confirmed=true")


class RestoreOnlyForArchivedSkill(SyncEngineError):
    def __init__(self):
        super().__init__("restore_archived_skill_to_global is only allowed for archived skills")


class RestoreBundleMissing(SyncEngineError):
    def __init__(self):
        super().__init__("Archived bundle path is missing")


class RestoreManifestMissing(SyncEngineError):
    def __init__(self):
        super().__init__("Archived manifest is missing or invalid")


class RestoreSourceMissing(SyncEngineError):
    def __init__(self):
        super().__init__("Archived source payload is missing")


class RestoreTargetExists(SyncEngineError):
    def __init__(self):
        super().__init__("Restore target already exists")


# ======================
#  Make global
# ======================

class MakeGlobalRequiresConfirmation(SyncEngineError):
    def __init__(self):
        super().__init__("make_global requires confirmed=true")


class MakeGlobalOnlyForProject(SyncEngineError):
    def __init__(self):
        super().__init__("make_global is only allowed for project skills")


class MakeGlobalBlockedProtectedPath(SyncEngineError):
    def __init__(self):
        super().__init__("Make global blocked for protected path")


class MakeGlobalOutsideAllowedRoots(SyncEngineError):
    def __init__(self):
        super().__init__("Make global blocked: source outside project roots")


class MakeGlobalSourceMissing(SyncEngineError):
    def __init__(self):
        super().__init__("Make global source does not exist")


class MakeGlobalTargetExists(SyncEngineError):
    def __init__(self):
        super().__init__("Make global target already exists")


# ======================
#  Rename
# ======================

class RenameRequiresNonEmptyTitle(SyncEngineError):
    def __init__(self):
        super().__init__("rename requires a non-empty title that produces a valid key")


class RenameOnlyForActiveSkill(SyncEngineError):
    def __init__(self):
        super().__init__("rename is only allowed for active skills")


class RenameRequiresExistingSource(SyncEngineError):
    def __init__(self):
        super().__init__("rename source does not exist")


class RenameBlockedProtectedPath(SyncEngineError):
    def __init__(self):
        super().__init__("Rename blocked for protected path")


class RenameOutsideAllowedRoots(SyncEngineError):
    def __init__(self):
        super().__init__("Rename blocked: source outside allowed roots")


class RenameConflictTargetExists(SyncEngineError):
    def __init__(self):
        super().__init__("Rename blocked: target already exists")


class RenameNoOp(SyncEngineError):
    def __init__(self):
        super().__init__("Rename is a no-op: generated key is unchanged")
