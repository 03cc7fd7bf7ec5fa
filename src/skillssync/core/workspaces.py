"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/workspaces.py
Finds workspace directories that carry project-level skill roots.
Workspaces are recomputed on every call; nothing is cached.
"""

import os
import logging
from typing import List, Iterable, Sequence

from skillssync.core.models import SyncEnvironment
from skillssync.core.paths import RootLayout, standardized_path

logger = logging.getLogger(__name__)

CUSTOM_ROOT_MAX_DEPTH = 3


class WorkspaceFinder:
    """
    Candidate locations:
    - every direct child of dev_root
    - every worktrees_root/<owner>/<repo>
    - every directory up to depth 3 under each custom discovery root
    A candidate is a workspace when at least one of its project roots exists.
    """

    def __init__(self, environment: SyncEnvironment, layout: RootLayout = None,
                 discovery_roots: Sequence[str] = ()):
        self.environment = environment
        self.layout = layout or RootLayout(environment)
        self.discovery_roots = list(discovery_roots)

    def find_workspaces(self) -> List[str]:
        candidates = []
        candidates.extend(self._child_directories(self.environment.dev_root))
        for owner in self._child_directories(self.environment.worktrees_root):
            candidates.extend(self._child_directories(owner))
        for root in self.discovery_roots:
            candidates.extend(self._walk_limited(root, CUSTOM_ROOT_MAX_DEPTH))

        workspaces = set()
        for candidate in candidates:
            if self.layout.has_project_roots(candidate):
                workspaces.add(standardized_path(candidate))

        result = sorted(workspaces)
        logger.debug(f"Discovered {len(result)} workspaces")
        return result

    @staticmethod
    def _child_directories(parent: str) -> List[str]:
        """Visible real subdirectories; a missing parent yields nothing."""
        try:
            with os.scandir(parent) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError:
            return []

        children = []
        for entry in entries:
            if entry.name.startswith("."):
                continue
            try:
                if entry.is_dir(follow_symlinks=False):
                    children.append(entry.path)
            except OSError as e:
                logger.debug(f"Cannot stat {entry.path}: {e}")
        return children

    @staticmethod
    def _walk_limited(root: str, max_depth: int) -> Iterable[str]:
        """The root and its subdirectories down to max_depth, without following links."""
        if not os.path.isdir(root) or os.path.islink(root):
            return []

        found = []
        stack = [(root, 0)]
        while stack:
            current, depth = stack.pop()
            found.append(current)
            if depth >= max_depth:
                continue
            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except OSError as e:
                logger.debug(f"Skipping inaccessible directory {current}: {e}")
                continue
            for entry in entries:
                try:
                    if entry.is_dir(follow_symlinks=False):
                        stack.append((entry.path, depth + 1))
                except OSError:
                    continue
        return found
