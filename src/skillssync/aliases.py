from skillssync.core.models import ScopeFilter, SyncTrigger

SCOPE_ALIASES = {
    "all": ScopeFilter.ALL,
    "global": ScopeFilter.GLOBAL,
    "project": ScopeFilter.PROJECT,
    "archived": ScopeFilter.ARCHIVED,
}

SCOPE_CHOICES = list(SCOPE_ALIASES.keys())

SCOPE_HELP_TEXT = (
    "Which skills to list:\n"
    "  all     : Every skill, archived ones last (default)\n"
    "  global  : Skills from ~/.claude/skills, ~/.agents/skills, ~/.codex/skills\n"
    "  project : Skills from workspace-level skill directories\n"
    "  archived: Skills moved into archive bundles\n"
)

TRIGGER_ALIASES = {
    "manual": SyncTrigger.MANUAL,
    "scheduled": SyncTrigger.SCHEDULED,
    "delete": SyncTrigger.DELETE,
    "auto-filesystem": SyncTrigger.AUTO_FILESYSTEM,
}

TRIGGER_CHOICES = list(TRIGGER_ALIASES.keys())

TRIGGER_HELP_TEXT = (
    "Reason recorded in the sync state (does not change behavior):\n"
    "  manual          : Started by the user (default)\n"
    "  scheduled       : Started by a timer or launch agent\n"
    "  delete          : Follow-up run after a deletion\n"
    "  auto-filesystem : Started by a filesystem watcher\n"
)

EPILOG_TEXT = """
Examples:
  Link every skill into every agent directory
  %(prog)s sync

  Same as above, print the resulting state as JSON (for scripts)
  %(prog)s sync --json > state.json

  List project-level skills from the last sync
  %(prog)s list --scope project

  Move a skill to the trash and re-sync
  %(prog)s delete --skill-key my-skill --confirm

  Archive a skill, then bring it back as a global skill
  %(prog)s archive --skill-key my-skill --confirm
  %(prog)s restore --skill-key my-skill --confirm

  Promote a project skill to every agent in the home directory
  %(prog)s make-global --skill-key my-skill --workspace ~/Dev/app --confirm

  Rename a skill (key and SKILL.md title)
  %(prog)s rename --skill-key my-skill --title "Release Notes"

  Show where state, settings and manifest live
  %(prog)s doctor
"""
