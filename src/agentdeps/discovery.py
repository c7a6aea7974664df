"""
Discovery -- find installable items in a cached repository.

Skills: subdirectories of ``skills/`` that contain a SKILL.md.
Agents: subdirectories of ``agents/``, plus single-file ``agents/*.md``
        definitions (named by their stem).
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from .models import DesiredItem, ItemKind, Selection

SKILLS_DIR = "skills"
AGENTS_DIR = "agents"
SKILL_MARKER = "SKILL.md"
AGENT_FILE_SUFFIX = ".md"


class SelectionResult(BaseModel):
    """Items picked by a selection, and explicit names that matched nothing."""

    selected: list[DesiredItem] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)

    @property
    def names(self) -> list[str]:
        return [item.name for item in self.selected]


def discover_skills(repo_root: Path) -> list[DesiredItem]:
    """Skill bundles under ``skills/``, sorted by name."""
    skills_dir = Path(repo_root) / SKILLS_DIR
    if not skills_dir.is_dir():
        return []

    return [
        DesiredItem(name=entry.name, source_path=entry, kind=ItemKind.DIRECTORY)
        for entry in sorted(skills_dir.iterdir())
        if entry.is_dir() and (entry / SKILL_MARKER).is_file()
    ]


def discover_agents(repo_root: Path) -> list[DesiredItem]:
    """Subagents under ``agents/``, sorted by name.

    A directory and a ``.md`` file with the same stem describe one agent;
    the directory wins.
    """
    agents_dir = Path(repo_root) / AGENTS_DIR
    if not agents_dir.is_dir():
        return []

    found: dict[str, DesiredItem] = {}
    for entry in sorted(agents_dir.iterdir()):
        if entry.name.startswith("."):
            continue
        if entry.is_dir():
            found[entry.name] = DesiredItem(
                name=entry.name, source_path=entry, kind=ItemKind.DIRECTORY
            )
        elif entry.is_file() and entry.suffix == AGENT_FILE_SUFFIX:
            found.setdefault(
                entry.stem,
                DesiredItem(name=entry.stem, source_path=entry, kind=ItemKind.FILE),
            )

    return [found[name] for name in sorted(found)]


def filter_items(discovered: list[DesiredItem], selection: Selection) -> SelectionResult:
    """Apply a dependency's selection to what was discovered.

    ``"*"`` keeps everything, ``False`` nothing, and a list keeps the
    named items in the order requested, reporting names not found.
    """
    if selection is False:
        return SelectionResult()
    if selection == "*":
        return SelectionResult(selected=list(discovered))

    by_name = {item.name: item for item in discovered}
    result = SelectionResult()
    for name in selection:
        item = by_name.get(name)
        if item is None:
            result.missing.append(name)
        elif item not in result.selected:
            result.selected.append(item)
    return result


def discovery_warnings(
    repo: str,
    item_type: str,
    discovered: list[DesiredItem],
    selection: Selection,
    missing: list[str],
) -> list[str]:
    """Human-readable problems with a dependency's discovery results."""
    if selection is False:
        return []

    warnings = []
    if not discovered:
        reason = (
            "no skills/ directory or no SKILL.md files"
            if item_type == SKILLS_DIR
            else "no agents/ directory"
        )
        warnings.append(f"No {item_type} found in {repo} ({reason})")
    if missing:
        warnings.append(f"{item_type} not found in {repo}: {', '.join(missing)}")
    return warnings
