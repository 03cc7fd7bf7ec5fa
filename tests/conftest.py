"""
Shared fixtures for sync engine tests.
Creates an isolated home directory with controlled skill packages.
"""
import pytest
from pathlib import Path
import sys

# Add src/ to sys.path so 'skillssync' is importable without installation
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from skillssync.core.models import SyncEnvironment  # noqa: E402


@pytest.fixture
def home(tmp_path) -> Path:
    """Throw-away home directory, auto-cleanup after test."""
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def env(home) -> SyncEnvironment:
    return SyncEnvironment.for_home(str(home))


@pytest.fixture
def global_roots(home):
    """The three global skill roots in priority order (not created)."""
    return [home / ".claude" / "skills", home / ".agents" / "skills", home / ".codex" / "skills"]


def make_skill(root: Path, key: str, body: str = "# Skill\n", extra=None) -> Path:
    """
    Creates root/<key>/SKILL.md plus optional extra files {relative_path: text}.
    Returns the package directory.
    """
    package = root.joinpath(*key.split("/"))
    package.mkdir(parents=True, exist_ok=True)
    (package / "SKILL.md").write_text(body)
    for relative, text in (extra or {}).items():
        target = package / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text)
    return package


@pytest.fixture
def write_skill():
    return make_skill
