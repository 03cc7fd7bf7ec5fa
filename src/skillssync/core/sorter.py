"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/sorter.py
Pure ordering logic for skill records, zero dependencies outside core.
"""
from typing import List

from skillssync.core.models import SkillRecord, Scope, SkillLifecycleStatus

TOP_SKILLS_LIMIT = 6


class Sorter:
    """
    Canonical order for every list of skills the engine reports.
    Sorting priority (applied lexicographically):
    1. Active skills before archived ones
    2. Global scope before project scope
    3. Case-insensitive name
    4. Workspace path (global records use "" and sort first)
    """

    @staticmethod
    def sort_key(skill: SkillRecord):
        return (
            skill.status != SkillLifecycleStatus.ACTIVE.value,
            skill.scope != Scope.GLOBAL.value,
            skill.name.casefold(),
            skill.workspace or "",
        )

    @staticmethod
    def sort_skills(skills: List[SkillRecord]) -> List[SkillRecord]:
        """Returns a new sorted list; the input is left untouched."""
        return sorted(skills, key=Sorter.sort_key)

    @staticmethod
    def top_skill_ids(skills: List[SkillRecord], limit: int = TOP_SKILLS_LIMIT) -> List[str]:
        return [skill.id for skill in Sorter.sort_skills(skills)[:limit]]
