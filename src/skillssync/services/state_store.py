"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/state_store.py
"""
import logging
from typing import List

from skillssync.core.errors import SyncIOError
from skillssync.core.models import SyncState, SkillRecord
from skillssync.core.sorter import Sorter, TOP_SKILLS_LIMIT
from skillssync.utils.file_utils import FileUtils

logger = logging.getLogger(__name__)


class SyncStateStore:
    """
    Reads and writes state.json.
    Presentation layers use it to show the last result without running a sync.
    """

    def __init__(self, state_path: str):
        self.state_path = state_path

    def load_state(self) -> SyncState:
        """A missing or corrupt file loads as the empty state."""
        return SyncState.from_dict(FileUtils.read_json(self.state_path))

    def save_state(self, state: SyncState) -> None:
        try:
            FileUtils.write_json_atomic(self.state_path, state.to_dict())
        except OSError as e:
            raise SyncIOError(self.state_path, e) from e
        logger.debug(f"State saved: {state.sync.status.value}, {len(state.skills)} skills")

    @staticmethod
    def top_skills(state: SyncState, limit: int = TOP_SKILLS_LIMIT) -> List[SkillRecord]:
        """
        Records named by state.top_skills, padded with the canonical order.
        Unknown ids are ignored.
        """
        by_id = {skill.id: skill for skill in state.skills}
        result = []
        seen = set()
        for skill_id in state.top_skills:
            record = by_id.get(skill_id)
            if record is not None and skill_id not in seen:
                result.append(record)
                seen.add(skill_id)
        for record in Sorter.sort_skills(state.skills):
            if len(result) >= limit:
                break
            if record.id not in seen:
                result.append(record)
                seen.add(record.id)
        return result[:limit]
