"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Defines core interfaces (Protocols) used throughout the sync engine.
These protocols enforce structural typing using Python's `typing.Protocol` so that
tests and alternative implementations can be swapped in without inheritance.

Key Components:
---------------
- HashAlgorithm: Streaming hash factory (e.g., SHA-256) plus one-shot hashing.
- DirectoryHasher: Interface for computing a stable digest of a package directory.
- PackageScanner: Interface for walking a source root and returning candidate packages.
- CanonicalResolver: Interface for grouping candidates by key and picking one per key.
- ShellRunner: Narrow capability for launching external programs (editor, file manager).
"""

from dataclasses import dataclass
from typing import Protocol, List, Optional, Callable, Sequence
from skillssync.core.models import SkillPackage, SourceRoot, ScopeResolution, Scope


class HashAlgorithm(Protocol):
    """
    Interface for generic hash algorithms.

    Allows plugging in different hashing functions without affecting
    the rest of the discovery logic.
    """

    def new(self):
        """Returns a fresh incremental hash object with update() and hexdigest()."""
        ...

    @staticmethod
    def hash(data: bytes) -> bytes:
        """Computes the hash of the provided byte data."""
        ...


class DirectoryHasher(Protocol):
    def hash_directory(self, directory: str) -> Optional[str]:
        """Hex digest of the directory contents, or None if it cannot be enumerated."""
        ...


class PackageScanner(Protocol):
    """
    Interface for scanning a source root and collecting candidate packages.
    """
    def scan(
        self,
        root: SourceRoot,
        progress_callback: Optional[Callable[[str, int, object], None]] = None
    ) -> List[SkillPackage]:
        """
        Scan one source root.

        Args:
            root: Directory to scan with its scope and workspace.
            progress_callback: Optional callback for reporting progress (stage, current, total).

        Returns:
            Candidate packages in discovery order.
        """
        ...


class CanonicalResolver(Protocol):
    def resolve(
        self,
        packages: List[SkillPackage],
        scope: Scope,
        workspace: Optional[str],
        priority_roots: Sequence[str],
    ) -> ScopeResolution:
        """
        Group candidates of one (scope, workspace) pair by key.

        Args:
            packages: Candidates discovered for this pair.
            scope: Scope of every candidate.
            workspace: Owning workspace for project scope, None for global.
            priority_roots: Source roots in priority order (first wins ties).

        Returns:
            Canonical package per conflict-free key plus the list of conflicts.
        """
        ...


@dataclass
class CommandResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""


class ShellRunner(Protocol):
    def run(self, command: List[str]) -> CommandResult:
        ...
