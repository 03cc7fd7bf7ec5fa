"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/scanner.py
Implements skill package discovery.
Features:
- Walks a source root with an explicit work stack (no recursion)
- A directory directly containing SKILL.md is a package; its key is the path from the root
- Skips hidden entries and never follows symbolic links
- Drops packages under protected segments and packages that cannot be hashed
"""

import os
import time
import logging
from typing import List, Optional, Callable, Iterable

from skillssync.core.models import SkillPackage, SourceRoot
from skillssync.core.interfaces import PackageScanner, DirectoryHasher
from skillssync.core.hasher import DirectoryHasherImpl
from skillssync.core.paths import MARKER_FILE, PROTECTED_SEGMENTS, is_protected_skill_key

logger = logging.getLogger(__name__)


class PackageScannerImpl(PackageScanner):
    """
    Scans source roots and builds hashed candidate packages.

    Attributes:
        hasher: Directory hasher used for every accepted package
        marker: File name that marks a package directory
        protected_segments: Key segments that exclude a package unconditionally
    """

    def __init__(
        self,
        hasher: Optional[DirectoryHasher] = None,
        marker: str = MARKER_FILE,
        protected_segments: Iterable[str] = PROTECTED_SEGMENTS
    ):
        self.hasher = hasher or DirectoryHasherImpl()
        self.marker = marker
        self.protected_segments = frozenset(protected_segments)

    def scan(self,
             root: SourceRoot,
             progress_callback: Optional[Callable[[str, int, object], None]] = None) -> List[SkillPackage]:
        """
        Single-pass scan of one root.
        Returns candidates in lexical pre-order of their directories.
        """
        if not os.path.isdir(root.path):
            logger.debug(f"Source root missing, skipping: {root.path}")
            return []

        logger.debug(f"Scanning source root: {root.path} ({root.scope.value})")
        start_time = time.time()

        packages: List[SkillPackage] = []
        seen = set()
        stack = [(root.path, "")]

        while stack:
            current, prefix = stack.pop()
            try:
                with os.scandir(current) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                logger.debug(f"Skipping inaccessible directory {current}: {e}")
                continue

            subdirs = []
            has_marker = False
            for entry in entries:
                if entry.name.startswith("."):
                    continue
                try:
                    if entry.is_dir(follow_symlinks=False):
                        subdirs.append(entry)
                    elif entry.name == self.marker and entry.is_file(follow_symlinks=False):
                        has_marker = True
                except OSError as e:
                    logger.debug(f"Cannot stat {entry.path}: {e}")

            if has_marker:
                package = self._process_package(root, current, prefix.strip("/"), seen)
                if package:
                    packages.append(package)
                    if progress_callback:
                        progress_callback("scanning", len(packages), None)

            # Reverse so the lexically first directory is popped first
            for entry in reversed(subdirs):
                stack.append((entry.path, f"{prefix}{entry.name}/"))

        elapsed = time.time() - start_time
        logger.debug(f"Scan of {root.path} found {len(packages)} packages in {elapsed:.3f}s")
        return packages

    def _process_package(self, root: SourceRoot, directory: str, skill_key: str,
                         seen: set) -> Optional[SkillPackage]:
        """
        Build a candidate for one package directory.
        Returns None when the key is empty, protected, already seen, or unhashable.
        """
        if not skill_key:
            logger.debug(f"Ignoring marker at source root: {directory}")
            return None
        if is_protected_skill_key(skill_key, self.protected_segments):
            logger.debug(f"Skipping protected package: {skill_key}")
            return None
        if skill_key in seen:
            logger.debug(f"Skipping duplicate key {skill_key} in {root.path}")
            return None
        seen.add(skill_key)

        package_hash = self.hasher.hash_directory(directory)
        if package_hash is None:
            logger.debug(f"Dropping unhashable package: {directory}")
            return None

        logger.debug(f"Accepted package: {skill_key}")
        return SkillPackage(
            scope=root.scope,
            workspace=root.workspace,
            source_root=root.path,
            skill_key=skill_key,
            name=os.path.basename(directory) or skill_key,
            canonical_path=directory,
            package_hash=package_hash,
        )
