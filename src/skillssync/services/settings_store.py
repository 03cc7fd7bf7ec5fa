"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/settings_store.py
User preferences stored in app-settings.json.

Schema history:
- version 1: workspace_discovery_roots only
- version 2: adds use_system_trash (default false)
- version 3: adds starred_skill_ids (default empty)
Absent fields take their defaults, so any older file still loads.
"""
import os
import logging
from dataclasses import dataclass, field
from typing import List, Any, Iterable

from skillssync.core.errors import SyncIOError
from skillssync.core.paths import standardized_path
from skillssync.utils.file_utils import FileUtils

logger = logging.getLogger(__name__)

SETTINGS_VERSION = 3


def normalize_discovery_roots(roots: Iterable[Any]) -> List[str]:
    """Drops blank and relative entries and duplicates, keeping the first occurrence."""
    result = []
    seen = set()
    for root in roots:
        if not isinstance(root, str):
            continue
        value = root.strip()
        if not value or not os.path.isabs(value):
            logger.debug(f"Ignoring discovery root: {root!r}")
            continue
        value = standardized_path(value)
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


@dataclass
class SyncSettings:
    workspace_discovery_roots: List[str] = field(default_factory=list)
    use_system_trash: bool = False
    starred_skill_ids: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.workspace_discovery_roots = normalize_discovery_roots(self.workspace_discovery_roots)
        self.starred_skill_ids = list(dict.fromkeys(
            item for item in self.starred_skill_ids if isinstance(item, str) and item))

    def to_dict(self):
        return {
            "version": SETTINGS_VERSION,
            "workspace_discovery_roots": list(self.workspace_discovery_roots),
            "use_system_trash": self.use_system_trash,
            "starred_skill_ids": list(self.starred_skill_ids),
        }

    @staticmethod
    def from_dict(data: Any) -> "SyncSettings":
        if not isinstance(data, dict):
            return SyncSettings()
        roots = data.get("workspace_discovery_roots")
        trash = data.get("use_system_trash")
        starred = data.get("starred_skill_ids")
        return SyncSettings(
            workspace_discovery_roots=roots if isinstance(roots, list) else [],
            use_system_trash=trash if isinstance(trash, bool) else False,
            starred_skill_ids=starred if isinstance(starred, list) else [],
        )


class SyncSettingsStore:
    def __init__(self, settings_path: str):
        self.settings_path = settings_path

    def load_settings(self) -> SyncSettings:
        return SyncSettings.from_dict(FileUtils.read_json(self.settings_path))

    def save_settings(self, settings: SyncSettings) -> SyncSettings:
        """Writes the normalized document and returns what was written."""
        normalized = SyncSettings(
            workspace_discovery_roots=settings.workspace_discovery_roots,
            use_system_trash=settings.use_system_trash,
            starred_skill_ids=settings.starred_skill_ids,
        )
        try:
            FileUtils.write_json_atomic(self.settings_path, normalized.to_dict())
        except OSError as e:
            raise SyncIOError(self.settings_path, e) from e
        return normalized
