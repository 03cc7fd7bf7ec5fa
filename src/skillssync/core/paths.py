"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/paths.py
Path standardization and the fixed layout of skill roots.
"""

import os
from typing import List, Iterable, FrozenSet

from skillssync.core.models import SyncEnvironment

PROTECTED_SEGMENTS: FrozenSet[str] = frozenset({".system"})
MARKER_FILE = "SKILL.md"

# Priority order: first entry wins ties between identical candidates.
SKILL_ROOT_SUBPATHS = (
    (".claude", "skills"),
    (".agents", "skills"),
    (".codex", "skills"),
)


def standardized_path(path: str) -> str:
    """
    Absolute, normalized path with symlinks resolved in the parent only.
    The last component is kept as-is so a link is never confused with its target.
    """
    normalized = os.path.normpath(os.path.abspath(path))
    parent, name = os.path.split(normalized)
    if not name:
        return normalized
    return os.path.join(os.path.realpath(parent), name)


def is_relative_to(path: str, base: str) -> bool:
    """True if path equals base or lies beneath it (after standardization)."""
    candidate = standardized_path(path)
    base_path = standardized_path(base)
    return candidate == base_path or candidate.startswith(base_path.rstrip(os.sep) + os.sep)


def is_protected_path(path: str, protected: Iterable[str] = PROTECTED_SEGMENTS) -> bool:
    segments = set(os.path.normpath(path).split(os.sep))
    return not segments.isdisjoint(protected)


def is_protected_skill_key(key: str, protected: Iterable[str] = PROTECTED_SEGMENTS) -> bool:
    return not set(key.split("/")).isdisjoint(protected)


def path_exists_or_symlink(path: str) -> bool:
    """Like os.path.exists, but also True for a dangling symbolic link."""
    return os.path.lexists(path)


def is_symlink(path: str) -> bool:
    """False for missing paths and for paths that cannot be inspected."""
    try:
        return os.path.islink(path)
    except OSError:
        return False


class RootLayout:
    """
    Source and target roots derived from the environment.
    Global roots double as global link targets; the same holds per workspace.
    """

    def __init__(self, environment: SyncEnvironment):
        self.environment = environment

    def global_roots(self) -> List[str]:
        home = self.environment.home_directory
        return [os.path.join(home, *parts) for parts in SKILL_ROOT_SUBPATHS]

    def global_targets(self) -> List[str]:
        return self.global_roots()

    def project_roots(self, workspace: str) -> List[str]:
        return [os.path.join(workspace, *parts) for parts in SKILL_ROOT_SUBPATHS]

    def project_targets(self, workspace: str) -> List[str]:
        return self.project_roots(workspace)

    def preferred_global_destination(self, skill_key: str) -> str:
        """Where a package moved into global scope lands: the highest-priority global root."""
        return os.path.join(self.global_roots()[0], *skill_key.split("/"))

    def preferred_project_destination(self, workspace: str, skill_key: str) -> str:
        return os.path.join(self.project_roots(workspace)[0], *skill_key.split("/"))

    def has_project_roots(self, workspace: str) -> bool:
        return any(os.path.exists(root) for root in self.project_roots(workspace))

    def required_directories(self) -> List[str]:
        """Directories created before the link farm is touched."""
        return self.global_roots() + [self.environment.runtime_directory]
