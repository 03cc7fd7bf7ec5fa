"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/archives.py
Archived skills: one bundle directory per archive operation.

Bundle layout:
    <archives>/<timestamp>-<key>-<suffix>/
        manifest.json   what was archived and from where
        source/         the former canonical package
        links/          the links that pointed at it
"""
import logging
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Set, Dict, Any

from skillssync.core.errors import ArchiveManifestWriteFailed, RestoreManifestMissing
from skillssync.core.hasher import skill_entry_id
from skillssync.core.models import (
    SkillRecord, SkillLifecycleStatus, Scope, iso8601, _as_str, _as_optional_str, _as_str_list)
from skillssync.core.paths import standardized_path, path_exists_or_symlink, is_symlink
from skillssync.utils.file_utils import FileUtils

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"
SOURCE_NAME = "source"
LINKS_NAME = "links"
ARCHIVED_SCOPE = "archived"


@dataclass
class ArchivedSkillManifest:
    archived_at: str
    skill_key: str
    name: str
    original_scope: str
    original_workspace: Optional[str]
    original_canonical_source_path: str
    moved_links: List[str] = field(default_factory=list)
    version: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "archived_at": self.archived_at,
            "skill_key": self.skill_key,
            "name": self.name,
            "original_scope": self.original_scope,
            "original_workspace": self.original_workspace,
            "original_canonical_source_path": self.original_canonical_source_path,
            "moved_links": list(self.moved_links),
        }

    @staticmethod
    def from_dict(data: Any) -> Optional["ArchivedSkillManifest"]:
        """Returns None unless the document names the archived key."""
        if not isinstance(data, dict):
            return None
        skill_key = _as_str(data.get("skill_key"))
        if not skill_key:
            return None
        return ArchivedSkillManifest(
            archived_at=_as_str(data.get("archived_at")),
            skill_key=skill_key,
            name=_as_str(data.get("name"), skill_key.rsplit("/", 1)[-1]),
            original_scope=_as_str(data.get("original_scope")),
            original_workspace=_as_optional_str(data.get("original_workspace")),
            original_canonical_source_path=_as_str(data.get("original_canonical_source_path")),
            moved_links=_as_str_list(data.get("moved_links")),
        )


class ArchiveStore:
    """Creates, reads and lists bundles beneath the archives directory."""

    def __init__(self, archives_directory: str):
        self.archives_directory = archives_directory

    def new_bundle_path(self, skill_key: str, now: datetime) -> str:
        safe_key = skill_key.replace("/", "--")
        compact_time = iso8601(now).replace(":", "").replace("-", "")
        return os.path.join(self.archives_directory,
                            f"{compact_time}-{safe_key}-{uuid.uuid4().hex[:8]}")

    def bundle_of(self, path: str) -> Optional[str]:
        """The bundle whose payload is path, or None for any other path."""
        bundle, name = os.path.split(standardized_path(path))
        if name == SOURCE_NAME and os.path.dirname(bundle) == standardized_path(self.archives_directory):
            return bundle
        return None

    @staticmethod
    def source_path(bundle: str) -> str:
        return os.path.join(bundle, SOURCE_NAME)

    @staticmethod
    def links_path(bundle: str) -> str:
        return os.path.join(bundle, LINKS_NAME)

    @staticmethod
    def write_manifest(bundle: str, manifest: ArchivedSkillManifest) -> None:
        try:
            FileUtils.write_json_atomic(os.path.join(bundle, MANIFEST_NAME), manifest.to_dict())
        except OSError as e:
            logger.warning(f"Cannot write archive manifest in {bundle}: {e}")
            raise ArchiveManifestWriteFailed() from e

    @staticmethod
    def read_manifest(bundle: str) -> ArchivedSkillManifest:
        manifest = ArchivedSkillManifest.from_dict(
            FileUtils.read_json(os.path.join(bundle, MANIFEST_NAME)))
        if manifest is None:
            raise RestoreManifestMissing()
        return manifest

    @staticmethod
    def unique_link_path(base_name: str, links_root: str, used: Set[str]) -> str:
        """A free name inside links_root: base, base-1, base-2, ..."""
        root = base_name.strip() or "link"
        candidate = root
        index = 1
        while candidate in used or os.path.lexists(os.path.join(links_root, candidate)):
            candidate = f"{root}-{index}"
            index += 1
        used.add(candidate)
        return os.path.join(links_root, candidate)

    def load_entries(self) -> List[SkillRecord]:
        """
        One archived record per readable bundle.
        Bundles without a valid manifest are skipped.
        """
        try:
            with os.scandir(self.archives_directory) as it:
                bundles = sorted(entry.path for entry in it if entry.is_dir(follow_symlinks=False))
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.warning(f"Cannot list archives in {self.archives_directory}: {e}")
            return []

        records = []
        for bundle in bundles:
            try:
                manifest = self.read_manifest(bundle)
            except RestoreManifestMissing:
                logger.debug(f"Skipping archive bundle without manifest: {bundle}")
                continue
            source = self.source_path(bundle)
            records.append(SkillRecord(
                id=skill_entry_id(ARCHIVED_SCOPE, bundle, manifest.skill_key),
                name=manifest.name,
                scope=manifest.original_scope.strip() or Scope.GLOBAL.value,
                workspace=manifest.original_workspace,
                canonical_source_path=source,
                target_paths=list(manifest.moved_links),
                exists=path_exists_or_symlink(source),
                is_symlink_canonical=is_symlink(source),
                package_type="dir",
                skill_key=manifest.skill_key,
                symlink_target=source,
                status=SkillLifecycleStatus.ARCHIVED.value,
                archived_at=manifest.archived_at,
                archived_bundle_path=bundle,
                archived_original_scope=manifest.original_scope,
                archived_original_workspace=manifest.original_workspace,
            ))
        return records
