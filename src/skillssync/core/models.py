"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Data models for skill discovery, canonical selection and the persisted sync state.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Dict, Optional, Any
import os
from enum import Enum


# =============================
# Enums
# =============================

class Scope(str, Enum):
    """Where a skill package lives: the user's home or a single workspace."""
    GLOBAL = "global"
    PROJECT = "project"


class SyncHealthStatus(str, Enum):
    OK = "ok"
    FAILED = "failed"
    UNKNOWN = "unknown"


class SkillLifecycleStatus(str, Enum):
    """Active skills are linked; archived ones live in a bundle under the runtime directory."""
    ACTIVE = "active"
    ARCHIVED = "archived"


class SyncTrigger(str, Enum):
    """
    Reason a reconciliation run was requested.
    Recorded in the persisted state for observability only.
    """
    MANUAL = "manual"
    SCHEDULED = "scheduled"
    DELETE = "delete"
    AUTO_FILESYSTEM = "auto-filesystem"
    ARCHIVE = "archive"
    RESTORE = "restore"
    MAKE_GLOBAL = "make-global"
    RENAME = "rename"


class ScopeFilter(Enum):
    ALL = "all"
    GLOBAL = "global"
    PROJECT = "project"
    ARCHIVED = "archived"

    def matches(self, skill: "SkillRecord") -> bool:
        if self is ScopeFilter.ALL:
            return True
        if self is ScopeFilter.ARCHIVED:
            return skill.status == SkillLifecycleStatus.ARCHIVED.value
        return skill.status == SkillLifecycleStatus.ACTIVE.value and skill.scope == self.value


# ======================
#  Discovery Models
# ======================

@dataclass(frozen=True)
class SourceRoot:
    """
    A directory that may contain skill packages.
    Project roots carry the workspace that owns them.
    """
    path: str
    scope: Scope
    workspace: Optional[str] = None

    def __post_init__(self):
        if not os.path.isabs(self.path):
            raise ValueError(f"Source root must be an absolute path: {self.path}")
        if self.scope is Scope.PROJECT and not self.workspace:
            raise ValueError("Project source roots require a workspace")


@dataclass
class SkillPackage:
    """
    One candidate package found on disk during a run.
    Rebuilt on every run and never persisted directly.
    """
    scope: Scope
    workspace: Optional[str]
    source_root: str
    skill_key: str
    name: str
    canonical_path: str
    package_hash: str
    package_type: str = "dir"

    def __repr__(self):
        return f"<SkillPackage key={self.skill_key}, path={self.canonical_path}>"


@dataclass(frozen=True)
class SyncConflict:
    """Two or more candidates share a key but differ in content."""
    scope: str
    workspace: Optional[str]
    skill_key: str

    def to_dict(self) -> Dict[str, Any]:
        return {"scope": self.scope, "workspace": self.workspace, "skill_key": self.skill_key}


@dataclass
class ScopeResolution:
    """Outcome of canonical selection for one (scope, workspace) pair."""
    canonical: Dict[str, SkillPackage] = field(default_factory=dict)
    conflicts: List[SyncConflict] = field(default_factory=list)


# ======================
#  Persisted State
# ======================
#
# Readers below decode known fields and fall back to documented defaults,
# so a state file written by an older version still loads.

def _as_str(value: Any, default: str = "") -> str:
    return value if isinstance(value, str) else default


def _as_optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    return value


def _as_bool(value: Any, default: bool = False) -> bool:
    return value if isinstance(value, bool) else default


def _as_str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


@dataclass
class SkillRecord:
    """A canonical skill as reported to presentation layers."""
    id: str
    name: str
    scope: str
    workspace: Optional[str]
    canonical_source_path: str
    target_paths: List[str] = field(default_factory=list)
    exists: bool = True
    is_symlink_canonical: bool = False
    package_type: str = "dir"
    skill_key: str = ""
    symlink_target: str = ""
    status: str = SkillLifecycleStatus.ACTIVE.value
    archived_at: Optional[str] = None
    archived_bundle_path: Optional[str] = None
    archived_original_scope: Optional[str] = None
    archived_original_workspace: Optional[str] = None

    @property
    def is_archived(self) -> bool:
        return self.status == SkillLifecycleStatus.ARCHIVED.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "scope": self.scope,
            "workspace": self.workspace,
            "canonical_source_path": self.canonical_source_path,
            "target_paths": list(self.target_paths),
            "exists": self.exists,
            "is_symlink_canonical": self.is_symlink_canonical,
            "package_type": self.package_type,
            "skill_key": self.skill_key,
            "symlink_target": self.symlink_target,
            "status": self.status,
            "archived_at": self.archived_at,
            "archived_bundle_path": self.archived_bundle_path,
            "archived_original_scope": self.archived_original_scope,
            "archived_original_workspace": self.archived_original_workspace,
        }

    @staticmethod
    def from_dict(data: Any) -> Optional["SkillRecord"]:
        """Returns None when the identity fields are missing."""
        if not isinstance(data, dict):
            return None
        skill_id = _as_str(data.get("id"))
        skill_key = _as_str(data.get("skill_key"))
        if not skill_id or not skill_key:
            return None
        canonical = _as_str(data.get("canonical_source_path"))
        status = _as_str(data.get("status"), SkillLifecycleStatus.ACTIVE.value)
        if status not in (SkillLifecycleStatus.ACTIVE.value, SkillLifecycleStatus.ARCHIVED.value):
            status = SkillLifecycleStatus.ACTIVE.value
        return SkillRecord(
            id=skill_id,
            name=_as_str(data.get("name"), skill_key.rsplit("/", 1)[-1]),
            scope=_as_str(data.get("scope"), Scope.GLOBAL.value),
            workspace=_as_optional_str(data.get("workspace")),
            canonical_source_path=canonical,
            target_paths=_as_str_list(data.get("target_paths")),
            exists=_as_bool(data.get("exists"), True),
            is_symlink_canonical=_as_bool(data.get("is_symlink_canonical")),
            package_type=_as_str(data.get("package_type"), "dir"),
            skill_key=skill_key,
            symlink_target=_as_str(data.get("symlink_target"), canonical),
            status=status,
            archived_at=_as_optional_str(data.get("archived_at")),
            archived_bundle_path=_as_optional_str(data.get("archived_bundle_path")),
            archived_original_scope=_as_optional_str(data.get("archived_original_scope")),
            archived_original_workspace=_as_optional_str(data.get("archived_original_workspace")),
        )


@dataclass
class SyncMetadata:
    status: SyncHealthStatus = SyncHealthStatus.UNKNOWN
    last_started_at: Optional[str] = None
    last_finished_at: Optional[str] = None
    duration_ms: Optional[int] = None
    error: Optional[str] = None
    trigger: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "last_started_at": self.last_started_at,
            "last_finished_at": self.last_finished_at,
            "duration_ms": self.duration_ms,
            "error": self.error,
            "trigger": self.trigger,
        }

    @staticmethod
    def from_dict(data: Any) -> "SyncMetadata":
        if not isinstance(data, dict):
            return SyncMetadata()
        try:
            status = SyncHealthStatus(data.get("status"))
        except ValueError:
            status = SyncHealthStatus.UNKNOWN
        duration = data.get("duration_ms")
        return SyncMetadata(
            status=status,
            last_started_at=_as_optional_str(data.get("last_started_at")),
            last_finished_at=_as_optional_str(data.get("last_finished_at")),
            duration_ms=_as_int(duration) if duration is not None else None,
            error=_as_optional_str(data.get("error")),
            trigger=_as_optional_str(data.get("trigger")),
        )


@dataclass
class SyncSummary:
    global_count: int = 0
    project_count: int = 0
    conflict_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "global_count": self.global_count,
            "project_count": self.project_count,
            "conflict_count": self.conflict_count,
        }

    @staticmethod
    def from_dict(data: Any) -> "SyncSummary":
        if not isinstance(data, dict):
            return SyncSummary()
        return SyncSummary(
            global_count=_as_int(data.get("global_count")),
            project_count=_as_int(data.get("project_count")),
            conflict_count=_as_int(data.get("conflict_count")),
        )


@dataclass
class SyncState:
    """
    Result of the latest reconciliation run.
    Persisted after every run, successful or not.
    """
    version: int = 1
    generated_at: str = ""
    sync: SyncMetadata = field(default_factory=SyncMetadata)
    summary: SyncSummary = field(default_factory=SyncSummary)
    skills: List[SkillRecord] = field(default_factory=list)
    top_skills: List[str] = field(default_factory=list)

    @staticmethod
    def empty() -> "SyncState":
        return SyncState()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "generated_at": self.generated_at,
            "sync": self.sync.to_dict(),
            "summary": self.summary.to_dict(),
            "skills": [skill.to_dict() for skill in self.skills],
            "top_skills": list(self.top_skills),
        }

    @staticmethod
    def from_dict(data: Any) -> "SyncState":
        if not isinstance(data, dict):
            return SyncState.empty()
        skills = []
        raw_skills = data.get("skills")
        if isinstance(raw_skills, list):
            for item in raw_skills:
                record = SkillRecord.from_dict(item)
                if record is not None:
                    skills.append(record)
        return SyncState(
            version=_as_int(data.get("version"), 1),
            generated_at=_as_str(data.get("generated_at")),
            sync=SyncMetadata.from_dict(data.get("sync")),
            summary=SyncSummary.from_dict(data.get("summary")),
            skills=skills,
            top_skills=_as_str_list(data.get("top_skills")),
        )


# =============================
# Configuration
# =============================

@dataclass
class SyncPaths:
    """Fixed file locations inside the runtime directory."""
    runtime_directory: str
    state_path: str
    settings_path: str
    manifest_path: str
    archives_directory: str

    @staticmethod
    def from_runtime(runtime_directory: str) -> "SyncPaths":
        return SyncPaths(
            runtime_directory=runtime_directory,
            state_path=os.path.join(runtime_directory, "state.json"),
            settings_path=os.path.join(runtime_directory, "app-settings.json"),
            manifest_path=os.path.join(runtime_directory, ".skill-sync-manifest.json"),
            archives_directory=os.path.join(runtime_directory, "archives"),
        )


@dataclass
class SyncEnvironment:
    """
    Explicit configuration passed into every engine entry point.
    Tests build one over a temporary directory instead of patching globals.
    """
    home_directory: str
    dev_root: str
    worktrees_root: str
    runtime_directory: str
    trash_directory: str

    def __post_init__(self):
        """Validate paths immediately after creation."""
        for name in ("home_directory", "dev_root", "worktrees_root",
                     "runtime_directory", "trash_directory"):
            value = getattr(self, name)
            if not value:
                raise ValueError(f"{name} cannot be empty")
            if not os.path.isabs(value):
                raise ValueError(f"{name} must be an absolute path: {value}")

    @staticmethod
    def for_home(home: str, runtime_directory: Optional[str] = None) -> "SyncEnvironment":
        """Standard layout beneath a home directory."""
        return SyncEnvironment(
            home_directory=home,
            dev_root=os.path.join(home, "Dev"),
            worktrees_root=os.path.join(home, ".codex", "worktrees"),
            runtime_directory=runtime_directory or os.path.join(home, ".config", "ai-agents", "skillssync"),
            trash_directory=os.path.join(home, ".Trash"),
        )

    @staticmethod
    def current() -> "SyncEnvironment":
        home = os.path.expanduser("~")
        if not os.path.isabs(home):
            home = os.path.abspath(os.sep)
        runtime = os.environ.get("SKILLS_SYNC_RUNTIME_DIR", "").strip() or None
        if runtime is not None:
            runtime = os.path.abspath(runtime)
        return SyncEnvironment.for_home(home, runtime)

    @property
    def paths(self) -> SyncPaths:
        return SyncPaths.from_runtime(self.runtime_directory)


# =============================
# Time helpers
# =============================

def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso8601(value: datetime) -> str:
    """Seconds precision, UTC, 'Z' suffix."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
