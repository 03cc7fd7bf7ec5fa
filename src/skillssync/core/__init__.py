"""
Core reconciliation engine: scanner, hasher, resolver, symlink farm and manifest.

This package contains the filesystem-facing foundation of skillssync:
- PackageScannerImpl: stack-based walk of a source root, one candidate per SKILL.md directory
- DirectoryHasherImpl + Sha256AlgorithmImpl: content digest of a whole package directory
- CanonicalResolverImpl: groups candidates by key, reports conflicts, picks one source per key
- SymlinkFarm + ManagedLinksManifest: idempotent link maintenance and stale-link cleanup
- ArchiveStore: archive bundles of skills taken out of the link farm
- Models: SkillPackage, SkillRecord, SyncState and the environment objects

Nothing here launches external programs; the shell capability lives in services.
"""

from .scanner import PackageScannerImpl
from .hasher import DirectoryHasherImpl, Sha256AlgorithmImpl, XXHashAlgorithmImpl, skill_entry_id
from .resolver import CanonicalResolverImpl
from .linker import SymlinkFarm
from .manifest import ManagedLinksManifest
from .sorter import Sorter
from .workspaces import WorkspaceFinder
from .archives import ArchiveStore, ArchivedSkillManifest
from .paths import RootLayout, standardized_path, is_relative_to
from .models import (
    Scope, ScopeFilter, SyncTrigger, SyncHealthStatus, SkillLifecycleStatus, SourceRoot, SkillPackage,
    SyncConflict, SkillRecord, SyncState, SyncEnvironment, SyncPaths)

__all__ = [
    "PackageScannerImpl",
    "DirectoryHasherImpl",
    "Sha256AlgorithmImpl",
    "XXHashAlgorithmImpl",
    "skill_entry_id",
    "CanonicalResolverImpl",
    "SymlinkFarm",
    "ManagedLinksManifest",
    "Sorter",
    "WorkspaceFinder",
    "ArchiveStore",
    "ArchivedSkillManifest",
    "RootLayout",
    "standardized_path",
    "is_relative_to",
    "Scope",
    "ScopeFilter",
    "SyncTrigger",
    "SyncHealthStatus",
    "SkillLifecycleStatus",
    "SourceRoot",
    "SkillPackage",
    "SyncConflict",
    "SkillRecord",
    "SyncState",
    "SyncEnvironment",
    "SyncPaths",
]
