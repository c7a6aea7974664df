"""
Consumer registry -- which directories each coding agent reads.

``ConsumerCatalog`` is immutable. User-defined agents from config.yaml
are layered on with ``with_overrides``, which returns a new catalog;
the catalog is then passed explicitly to whatever needs it.

``resolve_dedup_targets`` turns a list of consumers into the physical
reconciliation jobs for one scope. Agents that follow the shared
``.agents/`` convention collapse into a single job, so their items are
written and reported once.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Mapping, Optional

from .models import Consumer, CustomConsumer, DedupTarget, Scope
from .paths import expand_home

UNIVERSAL_PROJECT_SKILLS = ".agents/skills"
UNIVERSAL_PROJECT_AGENTS = ".agents/agents"


def _agent(name: str, display: str, skills: str, agents: str, global_skills: str,
           global_agents: str, **extra) -> Consumer:
    return Consumer(
        name=name,
        display_name=display,
        project_skills=skills,
        project_agents=agents,
        global_skills=global_skills,
        global_agents=global_agents,
        **extra,
    )


def _universal(name: str, display: str, global_root: str, **extra) -> Consumer:
    return _agent(
        name, display, UNIVERSAL_PROJECT_SKILLS, UNIVERSAL_PROJECT_AGENTS,
        f"{global_root}/skills", f"{global_root}/agents",
        is_universal=True, **extra,
    )


BUILT_IN_CONSUMERS: tuple[Consumer, ...] = (
    _universal(
        "pi", "Pi", "~/.pi/agent",
        legacy_project_skills=".pi/skills", legacy_project_agents=".pi/agents",
    ),
    _agent("claude-code", "Claude Code", ".claude/skills", ".claude/agents",
           "~/.claude/skills", "~/.claude/agents"),
    _agent("cursor", "Cursor", ".cursor/skills", ".cursor/agents",
           "~/.cursor/skills", "~/.cursor/agents"),
    _agent("roo", "Roo", ".roo/skills", ".roo/agents",
           "~/.roo/skills", "~/.roo/agents"),
    _agent("cline", "Cline", ".cline/skills", ".cline/agents",
           "~/.cline/skills", "~/.cline/agents"),
    _agent("windsurf", "Windsurf", ".windsurf/skills", ".windsurf/agents",
           "~/.windsurf/skills", "~/.windsurf/agents"),
    _universal(
        "opencode", "OpenCode", "~/.config/opencode",
        legacy_project_skills=".opencode/skills", legacy_project_agents=".opencode/agents",
    ),
    _universal("codex", "Codex", "~/.config/codex"),
    _universal("amp", "Amp", "~/.config/amp"),
    _universal("gemini-cli", "Gemini CLI", "~/.config/gemini-cli"),
    _universal("github-copilot", "GitHub Copilot", "~/.config/github-copilot"),
    _universal("kimi-cli", "Kimi CLI", "~/.config/kimi-cli"),
)


class ConsumerCatalog:
    """An ordered, read-only set of consumers keyed by name."""

    def __init__(self, consumers: Iterable[Consumer] = BUILT_IN_CONSUMERS):
        self._consumers: tuple[Consumer, ...] = tuple(consumers)

    def __iter__(self):
        return iter(self._consumers)

    def __len__(self) -> int:
        return len(self._consumers)

    def get(self, name: str) -> Optional[Consumer]:
        for consumer in self._consumers:
            if consumer.name == name:
                return consumer
        return None

    def with_overrides(self, overrides: Mapping[str, CustomConsumer]) -> "ConsumerCatalog":
        """New catalog where user definitions replace same-named built-ins."""
        if not overrides:
            return self
        kept = [c for c in self._consumers if c.name not in overrides]
        custom = [
            Consumer(
                name=name,
                display_name=name,
                project_skills=d.project_skills,
                project_agents=d.project_agents,
                global_skills=d.global_skills,
                global_agents=d.global_agents,
            )
            for name, d in overrides.items()
        ]
        return ConsumerCatalog(kept + custom)

    def unknown_names(self, names: Iterable[str]) -> list[str]:
        """Names with no matching consumer, in the order given."""
        return [n for n in names if self.get(n) is None]

    def resolve(self, names: Iterable[str]) -> list[Consumer]:
        """Consumers for ``names`` in declaration order; unknown names are dropped."""
        resolved = []
        for name in names:
            consumer = self.get(name)
            if consumer is not None:
                resolved.append(consumer)
        return resolved

    def legacy_project_paths(self, names: Iterable[str]) -> list[tuple[str, str]]:
        """(skills, agents) project paths the named agents used to read."""
        paths = []
        for consumer in self.resolve(names):
            if consumer.legacy_project_skills and consumer.legacy_project_agents:
                paths.append((consumer.legacy_project_skills, consumer.legacy_project_agents))
        return paths


def scope_dirs(consumer: Consumer, scope: Scope, project_root: Optional[Path] = None) -> tuple[Path, Path]:
    """Concrete (skills_dir, agents_dir) a consumer uses in ``scope``.

    Global paths have ``~`` expanded; project paths are joined onto
    ``project_root`` (current directory by default).
    """
    skills, agents = consumer.dirs_for(scope)
    if scope == Scope.GLOBAL:
        return expand_home(skills), expand_home(agents)
    root = project_root or Path.cwd()
    return root / expand_home(skills), root / expand_home(agents)


def resolve_dedup_targets(
    consumers: Iterable[Consumer],
    scope: Scope,
    project_root: Optional[Path] = None,
) -> list[DedupTarget]:
    """Merge consumers that share a directory pair into one reconciliation job.

    Targets come back in order of first appearance, and each target's
    display names keep the order the consumers were declared in.
    """
    merged: dict[tuple[str, str], DedupTarget] = {}

    for consumer in consumers:
        skills_dir, agents_dir = scope_dirs(consumer, scope, project_root)
        key = (_compare_key(skills_dir), _compare_key(agents_dir))
        target = merged.get(key)
        if target is None:
            merged[key] = DedupTarget(
                skills_dir=skills_dir,
                agents_dir=agents_dir,
                display_names=[consumer.display_name],
            )
        else:
            target.display_names.append(consumer.display_name)

    return list(merged.values())


def _compare_key(path: Path) -> str:
    return os.path.normcase(os.path.normpath(str(path)))
