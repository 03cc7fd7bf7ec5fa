"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

hasher.py
Implements directory content hashing with pluggable hash algorithms.

DirectoryHasherImpl folds every visible file of a package into one digest:
relative path, separator, file contents, separator, in sorted path order.
A symbolic link to a file contributes its target's bytes under its own path;
a link to anything else, or to nothing, contributes a fixed marker.
The digest is the only signal used to tell identical copies from conflicting ones,
so the default algorithm is SHA-256.
"""

import hashlib
import logging
import os
from typing import List, Optional, Tuple

import xxhash

from skillssync.core.interfaces import HashAlgorithm, DirectoryHasher

logger = logging.getLogger(__name__)

EMPTY_SENTINEL = b"<empty>"
BROKEN_SYMLINK = b"<broken-symlink>"
SEPARATOR = b"\x00"


# Use the same way to implement and use any other hashing algorithm
class Sha256AlgorithmImpl(HashAlgorithm):
    def new(self):
        return hashlib.sha256()

    @staticmethod
    def hash(data: bytes) -> bytes:
        return hashlib.sha256(data).digest()


class XXHashAlgorithmImpl(HashAlgorithm):
    def new(self):
        return xxhash.xxh64()

    @staticmethod
    def hash(data: bytes) -> bytes:
        return xxhash.xxh64(data).digest()


class DirectoryHasherImpl(DirectoryHasher):
    """
    Hashes a package directory using any algorithm via the HashAlgorithm interface.
    Hidden entries are skipped. Linked directories are never descended into.
    """

    def __init__(self, algorithm: HashAlgorithm = None):
        self.algorithm = algorithm or Sha256AlgorithmImpl()

    def hash_directory(self, directory: str) -> Optional[str]:
        try:
            files = self._list_files(directory)
        except OSError as e:
            logger.debug(f"Cannot enumerate {directory}: {e}")
            return None

        digest = self.algorithm.new()
        if not files:
            digest.update(EMPTY_SENTINEL)
            return digest.hexdigest()

        for relative, full_path, is_link in files:
            digest.update(relative.encode("utf-8", "surrogateescape"))
            digest.update(SEPARATOR)
            data = self._read_link(full_path) if is_link else self._read_file(full_path)
            if data:
                digest.update(data)
            digest.update(SEPARATOR)
        return digest.hexdigest()

    @staticmethod
    def _list_files(directory: str) -> List[Tuple[str, str, bool]]:
        """
        Collects (relative_path, full_path, is_link) for regular files and symbolic links,
        sorted by relative path.
        Uses an explicit stack instead of recursion to bound depth on deep trees.
        Raises OSError only if the top-level directory cannot be read.
        """
        files = []
        stack = [(directory, "")]
        is_top = True

        while stack:
            current, prefix = stack.pop()
            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except OSError as e:
                if is_top:
                    raise
                logger.debug(f"Skipping unreadable directory {current}: {e}")
                continue
            finally:
                is_top = False

            for entry in entries:
                if entry.name.startswith("."):
                    continue
                relative = f"{prefix}{entry.name}"
                try:
                    if entry.is_symlink():
                        files.append((relative, entry.path, True))
                    elif entry.is_dir(follow_symlinks=False):
                        stack.append((entry.path, relative + "/"))
                    elif entry.is_file(follow_symlinks=False):
                        files.append((relative, entry.path, False))
                except OSError as e:
                    logger.debug(f"Cannot stat {entry.path}: {e}")

        files.sort(key=lambda item: item[0])
        return files

    @staticmethod
    def _read_file(path: str) -> bytes:
        """Reads the whole file; unreadable files contribute no content."""
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            logger.warning(f"Error reading {path}: {e}")
            return b""

    def _read_link(self, path: str) -> bytes:
        """Bytes of the file a link points at, or the broken-link marker."""
        try:
            target = os.readlink(path)
        except OSError as e:
            logger.debug(f"Cannot read link {path}: {e}")
            return BROKEN_SYMLINK
        if not os.path.isabs(target):
            target = os.path.join(os.path.dirname(path), target)
        if not os.path.isfile(target):
            return BROKEN_SYMLINK
        return self._read_file(target)


def skill_entry_id(scope: str, workspace: Optional[str], skill_key: str) -> str:
    """Stable short identity for a logical skill across runs."""
    value = f"{scope}|{workspace or 'global'}|{skill_key}"
    return "skill-" + XXHashAlgorithmImpl.hash(value.encode("utf-8")).hex()[:12]
