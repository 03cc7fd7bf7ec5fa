"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/resolver.py
Groups candidate packages by skill key and selects one canonical source per key.
"""

import sys
import logging
from collections import defaultdict
from typing import List, Dict, Any, Callable, Optional, Sequence

from skillssync.core.interfaces import CanonicalResolver
from skillssync.core.models import SkillPackage, SyncConflict, ScopeResolution, Scope
from skillssync.core.paths import standardized_path

logger = logging.getLogger(__name__)

UNKNOWN_PRIORITY = sys.maxsize


class CanonicalResolverImpl(CanonicalResolver):
    """
    Pure selection logic: reads candidates, never touches the filesystem
    beyond path standardization.

    Selection order for identical candidates:
    1. Source priority (index of the source root in the ordered root list)
    2. Source root path (lexical)
    3. Canonical path (lexical)
    """

    def resolve(
        self,
        packages: List[SkillPackage],
        scope: Scope,
        workspace: Optional[str],
        priority_roots: Sequence[str],
    ) -> ScopeResolution:
        ranks = {standardized_path(root): idx for idx, root in enumerate(priority_roots)}
        resolution = ScopeResolution()

        groups = self.group_by_key(packages)
        for skill_key in sorted(groups):
            candidates = groups[skill_key]
            hashes = {package.package_hash for package in candidates}
            if len(hashes) > 1:
                logger.debug(f"Conflict for {skill_key}: {len(hashes)} distinct hashes")
                resolution.conflicts.append(SyncConflict(
                    scope=scope.value,
                    workspace=workspace,
                    skill_key=skill_key,
                ))
                continue

            selected = min(candidates, key=lambda p: (
                self.source_priority(p, ranks),
                p.source_root,
                p.canonical_path,
            ))
            resolution.canonical[skill_key] = selected

        return resolution

    @staticmethod
    def source_priority(package: SkillPackage, ranks: Dict[str, int]) -> int:
        """Lower wins; roots outside the configured list lose every tie."""
        return ranks.get(standardized_path(package.source_root), UNKNOWN_PRIORITY)

    def group_by_key(self, packages: List[SkillPackage]) -> Dict[str, List[SkillPackage]]:
        """Groups candidates by their logical skill key."""
        return self._group_by(packages, lambda p: p.skill_key)

    @staticmethod
    def _group_by(packages: List[SkillPackage],
                  key_func: Callable[[SkillPackage], Any]) -> Dict[Any, List[SkillPackage]]:
        """
        Helper method to group packages by any computed key.
        Args:
            packages: Candidates to group
            key_func: Function that computes a hashable key from a package
        Returns:
            Dict[key, List[SkillPackage]] preserving discovery order inside each group
        """
        groups = defaultdict(list)
        for package in packages:
            groups[key_func(package)].append(package)
        return dict(groups)
