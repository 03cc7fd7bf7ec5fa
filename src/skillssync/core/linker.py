"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/linker.py
Maintains the symlink farm: every target root links each canonical package by key.
"""

import errno
import logging
import os
import shutil
from typing import List, Set, Tuple, Iterable

from skillssync.core.errors import SyncIOError
from skillssync.core.models import SkillPackage
from skillssync.core.paths import standardized_path, is_relative_to

logger = logging.getLogger(__name__)


class SymlinkFarm:
    """
    Idempotent link maintenance.

    A link that already points at the canonical source is left untouched.
    Anything else at the target path is replaced, except a real directory
    that still holds a canonical source of this run.
    """

    def __init__(self, canonical_paths: Iterable[str] = ()):
        self.canonical_paths = {standardized_path(p) for p in canonical_paths}

    def link_package(self, package: SkillPackage,
                     target_roots: List[str]) -> Tuple[List[str], Set[str]]:
        """
        Fan one canonical package out to every target root.

        Returns:
            (sorted target paths, standardized paths of links created or confirmed)
        Raises:
            SyncIOError: if a required link cannot be created
        """
        target_paths = []
        managed: Set[str] = set()
        canonical = standardized_path(package.canonical_path)

        for target_root in target_roots:
            target = os.path.join(target_root, *package.skill_key.split("/"))
            target_paths.append(target)

            # Canonical source living inside its own target root
            if standardized_path(target) == canonical:
                logger.debug(f"Target is the canonical source: {target}")
                continue

            self.create_or_update_symlink(target, package.canonical_path)
            managed.add(standardized_path(target))

        return sorted(target_paths), managed

    def create_or_update_symlink(self, target: str, destination: str) -> bool:
        """
        Ensure target is a symbolic link to destination.
        Returns True if a link was created, False if an existing one was confirmed.
        """
        if os.path.lexists(target):
            if os.path.islink(target) and self._points_to(target, destination):
                logger.debug(f"Link confirmed: {target}")
                return False
            self._remove_path(target)

        parent = os.path.dirname(target)
        try:
            os.makedirs(parent, exist_ok=True)
        except OSError as e:
            raise SyncIOError(parent, e) from e

        try:
            os.symlink(destination, target, target_is_directory=True)
        except OSError as e:
            raise SyncIOError(target, e) from e

        logger.debug(f"Link created: {target} -> {destination}")
        return True

    @staticmethod
    def _points_to(link: str, destination: str) -> bool:
        try:
            existing = os.readlink(link)
        except OSError:
            return False
        if not os.path.isabs(existing):
            existing = os.path.join(os.path.dirname(link), existing)
        return standardized_path(existing) == standardized_path(destination)

    def _remove_path(self, path: str) -> None:
        """Remove a wrong link, file or directory standing where a link belongs."""
        try:
            if os.path.islink(path) or not os.path.isdir(path):
                os.unlink(path)
                logger.debug(f"Removed stale entry: {path}")
                return

            if any(is_relative_to(canonical, path) for canonical in self.canonical_paths):
                raise SyncIOError(path, FileExistsError(
                    errno.EEXIST, "target directory contains a canonical source", path))

            shutil.rmtree(path)
            logger.debug(f"Removed directory at link target: {path}")
        except SyncIOError:
            raise
        except OSError as e:
            raise SyncIOError(path, e) from e
