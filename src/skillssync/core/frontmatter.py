"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/frontmatter.py
Skill titles: key derivation from a human title and the title line of SKILL.md.
"""
import logging
import string

from skillssync.core.errors import SyncIOError

logger = logging.getLogger(__name__)

_KEY_CHARACTERS = frozenset(string.ascii_lowercase + string.digits)


def normalized_skill_key(title: str) -> str:
    """
    Lowercase ASCII letters and digits; every other run of characters becomes one dash.
    Leading and trailing dashes are dropped, so a title of only punctuation yields "".
    """
    result = []
    previous_dash = False
    for ch in title.strip().lower():
        if ch in _KEY_CHARACTERS:
            result.append(ch)
            previous_dash = False
        elif not previous_dash:
            result.append("-")
            previous_dash = True
    return "".join(result).strip("-")


def updated_skill_contents(original: str, title: str) -> str:
    """
    Sets `title:` in the YAML front matter, adding the block when there is none.
    Only the first title line is replaced; the body is kept byte for byte.
    """
    normalized = original.replace("\r\n", "\n")
    if normalized.startswith("---\n"):
        rest = normalized[len("---\n"):]
        end = rest.find("\n---")
        if end != -1:
            lines = rest[:end].splitlines()
            for index, line in enumerate(lines):
                key, sep, _ = line.partition(":")
                if sep and key.strip().lower() == "title":
                    lines[index] = f"title: {title}"
                    break
            else:
                lines.append(f"title: {title}")
            suffix = rest[end + len("\n---"):]
            return "---\n" + "\n".join(lines) + "\n---" + suffix

    return f"---\ntitle: {title}\n---\n\n{normalized}"


def update_skill_title(path: str, title: str) -> None:
    """Rewrites the title of one SKILL.md in place."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            contents = f.read()
        with open(path, "w", encoding="utf-8") as f:
            f.write(updated_skill_contents(contents, title))
    except (OSError, UnicodeDecodeError) as e:
        raise SyncIOError(path, e) from e
    logger.debug(f"Updated title of {path}")
