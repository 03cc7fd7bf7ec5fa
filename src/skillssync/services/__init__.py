"""File operations and persisted state/settings services."""

from .file_service import FileService, SubprocessShellRunner
from .state_store import SyncStateStore
from .settings_store import SyncSettings, SyncSettingsStore

__all__ = ["FileService", "SubprocessShellRunner", "SyncStateStore", "SyncSettings", "SyncSettingsStore"]
