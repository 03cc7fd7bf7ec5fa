"""
SkillsSync — keeps agent skill directories linked to one canonical source.

Core features:
- Discovers skill packages (directories with SKILL.md) in global and per-workspace roots
- Detects conflicting copies by content hash before touching anything
- Links every canonical skill into ~/.claude/skills, ~/.agents/skills and ~/.codex/skills
- Removes links it no longer needs, tracked through a manifest
- Safe deletion to a trash directory (or the system trash via send2trash)
- Archive, restore, promote to global, rename and star skills
- CLI interface for manual, scheduled and scripted runs
"""

# Get version
try:
    from importlib.metadata import version as _version
    __version__ = _version("skillssync")
except Exception:
    try:
        import tomllib  # Python 3.11+
    except ImportError:
        import tomli as tomllib  # Python < 3.11: pip install tomli

    import os as _os
    _pyproject = _os.path.join(_os.path.dirname(__file__), "..", "..", "pyproject.toml")
    try:
        with open(_pyproject, "rb") as f:
            __version__ = tomllib.load(f)["project"]["version"]
    except OSError:
        __version__ = "0.0.0"

# Public API: only what users should import directly
from skillssync.commands import SyncEngine
from skillssync.core.models import (
    SyncEnvironment, SyncPaths, SyncState, SyncTrigger, SkillRecord, Scope, ScopeFilter,
    SkillLifecycleStatus)
from skillssync.core.errors import (
    SyncEngineError, ConflictsDetected, DeleteRequiresConfirmation, DeletionBlockedProtectedPath,
    DeletionOutsideAllowedRoots, DeletionTargetMissing, SyncIOError)
from skillssync.services.file_service import FileService
from skillssync.services import SyncStateStore, SyncSettings, SyncSettingsStore

__all__ = [
    "SyncEngine",
    "SyncEnvironment",
    "SyncPaths",
    "SyncState",
    "SyncTrigger",
    "SkillRecord",
    "Scope",
    "ScopeFilter",
    "SkillLifecycleStatus",
    "SyncEngineError",
    "ConflictsDetected",
    "DeleteRequiresConfirmation",
    "DeletionBlockedProtectedPath",
    "DeletionOutsideAllowedRoots",
    "DeletionTargetMissing",
    "SyncIOError",
    "FileService",
    "SyncStateStore",
    "SyncSettings",
    "SyncSettingsStore",
    "__version__",
]
