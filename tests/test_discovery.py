"""Tests for skill and agent discovery in cached repositories."""

from pathlib import Path

import pytest

from agentdeps.discovery import (
    discover_agents,
    discover_skills,
    discovery_warnings,
    filter_items,
)
from agentdeps.models import ItemKind

from conftest import populate_skill_repo


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    root.mkdir()
    populate_skill_repo(root)
    return root


def test_discover_skills_requires_marker(repo):
    skills = discover_skills(repo)
    assert [s.name for s in skills] == ["alpha", "beta"]
    assert all(s.kind == ItemKind.DIRECTORY for s in skills)
    assert skills[0].source_path == repo / "skills" / "alpha"


def test_discover_agents_files_and_directories(repo):
    agents = {a.name: a for a in discover_agents(repo)}
    assert sorted(agents) == ["planner", "reviewer"]
    assert agents["planner"].kind == ItemKind.DIRECTORY
    assert agents["reviewer"].kind == ItemKind.FILE
    assert agents["reviewer"].source_path == repo / "agents" / "reviewer.md"


def test_discover_agents_skips_hidden_and_non_markdown(repo):
    (repo / "agents" / ".hidden.md").write_text("x")
    (repo / "agents" / "README.txt").write_text("x")
    assert [a.name for a in discover_agents(repo)] == ["planner", "reviewer"]


def test_directory_wins_over_file_with_same_stem(repo):
    (repo / "agents" / "planner.md").write_text("# planner file\n")
    agents = {a.name: a for a in discover_agents(repo)}
    assert agents["planner"].kind == ItemKind.DIRECTORY


def test_missing_directories(tmp_path):
    assert discover_skills(tmp_path) == []
    assert discover_agents(tmp_path) == []


class TestFilterItems:
    def test_all(self, repo):
        result = filter_items(discover_skills(repo), "*")
        assert result.names == ["alpha", "beta"]
        assert result.missing == []

    def test_none(self, repo):
        assert filter_items(discover_skills(repo), False).selected == []

    def test_named_in_request_order(self, repo):
        result = filter_items(discover_skills(repo), ["beta", "ghost", "alpha", "beta"])
        assert result.names == ["beta", "alpha"]
        assert result.missing == ["ghost"]

    def test_empty_list_selects_nothing(self, repo):
        result = filter_items(discover_skills(repo), [])
        assert result.selected == []
        assert result.missing == []


class TestWarnings:
    def test_nothing_found(self):
        warnings = discovery_warnings("o/r", "skills", [], "*", [])
        assert warnings == ["No skills found in o/r (no skills/ directory or no SKILL.md files)"]

    def test_missing_names(self, repo):
        found = discover_agents(repo)
        warnings = discovery_warnings("o/r", "agents", found, ["ghost"], ["ghost"])
        assert warnings == ["agents not found in o/r: ghost"]

    def test_disabled_selection_is_silent(self):
        assert discovery_warnings("o/r", "agents", [], False, []) == []
