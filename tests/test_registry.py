"""Tests for the consumer catalog and dedup target resolution."""

from pathlib import Path

import pytest

from agentdeps.models import CustomConsumer, Scope
from agentdeps.registry import (
    BUILT_IN_CONSUMERS,
    UNIVERSAL_PROJECT_AGENTS,
    UNIVERSAL_PROJECT_SKILLS,
    ConsumerCatalog,
    resolve_dedup_targets,
    scope_dirs,
)


@pytest.fixture
def catalog():
    return ConsumerCatalog()


class TestCatalog:
    def test_names_are_unique(self):
        names = [c.name for c in BUILT_IN_CONSUMERS]
        assert len(names) == len(set(names))

    def test_pi_is_universal_with_legacy_paths(self, catalog):
        pi = catalog.get("pi")
        assert pi.is_universal
        assert pi.project_skills == UNIVERSAL_PROJECT_SKILLS
        assert pi.project_agents == UNIVERSAL_PROJECT_AGENTS
        assert pi.legacy_project_skills == ".pi/skills"
        assert pi.global_skills == "~/.pi/agent/skills"

    def test_claude_code_has_own_directories(self, catalog):
        claude = catalog.get("claude-code")
        assert not claude.is_universal
        assert claude.project_skills == ".claude/skills"
        assert claude.global_agents == "~/.claude/agents"

    def test_universal_consumers_share_project_dirs(self, catalog):
        universal = [c for c in catalog if c.is_universal]
        assert {c.name for c in universal} >= {"pi", "opencode", "codex", "amp"}
        assert all(c.project_skills == UNIVERSAL_PROJECT_SKILLS for c in universal)
        assert all(c.project_skills != UNIVERSAL_PROJECT_SKILLS for c in catalog if not c.is_universal)

    def test_get_unknown(self, catalog):
        assert catalog.get("nope") is None

    def test_unknown_names_keep_order(self, catalog):
        assert catalog.unknown_names(["zed", "pi", "vim"]) == ["zed", "vim"]

    def test_resolve_follows_declaration_order(self, catalog):
        names = [c.name for c in catalog.resolve(["cursor", "bogus", "pi"])]
        assert names == ["cursor", "pi"]

    def test_legacy_paths_only_for_configured_agents(self, catalog):
        assert catalog.legacy_project_paths(["claude-code"]) == []
        assert catalog.legacy_project_paths(["opencode", "pi"]) == [
            (".opencode/skills", ".opencode/agents"),
            (".pi/skills", ".pi/agents"),
        ]


class TestOverrides:
    def test_custom_agent_is_added(self, catalog):
        custom = CustomConsumer(
            project_skills=".zed/skills",
            project_agents=".zed/agents",
            global_skills="~/.zed/skills",
            global_agents="~/.zed/agents",
        )
        extended = catalog.with_overrides({"zed": custom})

        assert extended.get("zed").project_skills == ".zed/skills"
        assert len(extended) == len(catalog) + 1
        assert catalog.get("zed") is None

    def test_custom_agent_replaces_builtin(self, catalog):
        custom = CustomConsumer(
            project_skills="skills",
            project_agents="agents",
            global_skills="~/skills",
            global_agents="~/agents",
        )
        extended = catalog.with_overrides({"claude-code": custom})

        assert len(extended) == len(catalog)
        assert extended.get("claude-code").project_skills == "skills"
        assert catalog.get("claude-code").project_skills == ".claude/skills"

    def test_no_overrides_returns_same_catalog(self, catalog):
        assert catalog.with_overrides({}) is catalog


class TestScopeDirs:
    def test_project_dirs_join_root(self, catalog, tmp_path):
        skills, agents = scope_dirs(catalog.get("claude-code"), Scope.PROJECT, tmp_path)
        assert skills == tmp_path / ".claude" / "skills"
        assert agents == tmp_path / ".claude" / "agents"

    def test_global_dirs_expand_home(self, catalog, isolated_dirs):
        skills, _ = scope_dirs(catalog.get("claude-code"), Scope.GLOBAL)
        assert skills == isolated_dirs["home"] / ".claude" / "skills"


class TestDedupTargets:
    def test_universal_consumers_collapse_in_project_scope(self, catalog, tmp_path):
        consumers = catalog.resolve(["pi", "opencode", "codex"])

        targets = resolve_dedup_targets(consumers, Scope.PROJECT, tmp_path)

        assert len(targets) == 1
        assert targets[0].display_names == ["Pi", "OpenCode", "Codex"]
        assert targets[0].skills_dir == tmp_path / ".agents" / "skills"
        assert targets[0].label == "Pi, OpenCode, Codex"

    def test_universal_consumers_split_in_global_scope(self, catalog):
        consumers = catalog.resolve(["pi", "opencode"])

        targets = resolve_dedup_targets(consumers, Scope.GLOBAL)

        assert [t.display_names for t in targets] == [["Pi"], ["OpenCode"]]

    def test_mixed_consumers_keep_first_appearance_order(self, catalog, tmp_path):
        consumers = catalog.resolve(["claude-code", "pi", "cursor", "amp"])

        targets = resolve_dedup_targets(consumers, Scope.PROJECT, tmp_path)

        assert [t.display_names for t in targets] == [
            ["Claude Code"],
            ["Pi", "Amp"],
            ["Cursor"],
        ]

    def test_custom_agent_on_shared_path_merges(self, catalog, tmp_path):
        custom = CustomConsumer(
            project_skills=".agents/skills/",
            project_agents="./.agents/agents",
            global_skills="~/.mine/skills",
            global_agents="~/.mine/agents",
        )
        extended = catalog.with_overrides({"mine": custom})

        targets = resolve_dedup_targets(extended.resolve(["pi", "mine"]), Scope.PROJECT, tmp_path)

        assert len(targets) == 1
        assert targets[0].display_names == ["Pi", "mine"]

    def test_empty(self):
        assert resolve_dedup_targets([], Scope.PROJECT) == []
