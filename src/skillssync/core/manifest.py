"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/manifest.py
Bookkeeping of the links owned by the engine, used to find links that became stale.
"""

import logging
import os
from typing import Set, List

from skillssync.core.errors import SyncIOError
from skillssync.core.models import utc_now, iso8601
from skillssync.core.paths import standardized_path
from skillssync.utils.file_utils import FileUtils

logger = logging.getLogger(__name__)

MANIFEST_VERSION = 1


class ManagedLinksManifest:
    """
    JSON file holding the standardized paths of every link created or confirmed
    by the last successful run.
    """

    def __init__(self, path: str):
        self.path = path

    def load(self) -> Set[str]:
        """Previous managed links; a missing or corrupt manifest is an empty set."""
        data = FileUtils.read_json(self.path)
        if not isinstance(data, dict):
            return set()
        links = data.get("managed_links")
        if not isinstance(links, list):
            return set()
        return {standardized_path(link) for link in links if isinstance(link, str) and link}

    def save(self, links: Set[str]) -> None:
        payload = {
            "version": MANIFEST_VERSION,
            "generated_at": iso8601(utc_now()),
            "managed_links": sorted(links),
        }
        try:
            FileUtils.write_json_atomic(self.path, payload)
        except OSError as e:
            raise SyncIOError(self.path, e) from e
        logger.debug(f"Manifest saved with {len(links)} links: {self.path}")

    @staticmethod
    def cleanup_stale(old_links: Set[str], new_links: Set[str]) -> List[str]:
        """
        Remove links owned by a previous run that this run no longer needs.
        Only symbolic links are removed; anything a user put in their place stays.

        Returns:
            Paths that were actually removed, sorted
        """
        removed = []
        for stale in sorted(old_links - new_links):
            if not os.path.islink(stale):
                logger.debug(f"Stale path is no longer a link, leaving it: {stale}")
                continue
            try:
                os.unlink(stale)
            except OSError as e:
                logger.warning(f"Could not remove stale link {stale}: {e}")
                continue
            logger.debug(f"Removed stale link: {stale}")
            removed.append(stale)
        return removed
