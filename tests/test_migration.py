"""Tests for legacy managed-directory cleanup."""

from agentdeps.install.migration import cleanup_legacy_managed_dirs
from agentdeps.registry import ConsumerCatalog

MANAGED = "_agentdeps_managed"


def test_removes_only_managed_subdirectory(tmp_path):
    skills = tmp_path / ".pi" / "skills"
    (skills / MANAGED / "old-skill").mkdir(parents=True)
    (skills / "my-skill").mkdir()
    agents = tmp_path / ".pi" / "agents"
    (agents / MANAGED).mkdir(parents=True)

    removed = cleanup_legacy_managed_dirs(ConsumerCatalog(), ["pi"], tmp_path)

    assert removed == [skills / MANAGED, agents / MANAGED]
    assert not (skills / MANAGED).exists()
    assert (skills / "my-skill").is_dir()
    assert agents.is_dir()


def test_agents_not_configured_are_left_alone(tmp_path):
    legacy = tmp_path / ".opencode" / "skills" / MANAGED
    legacy.mkdir(parents=True)

    assert cleanup_legacy_managed_dirs(ConsumerCatalog(), ["claude-code", "pi"], tmp_path) == []
    assert legacy.is_dir()


def test_missing_paths_are_skipped(tmp_path):
    assert cleanup_legacy_managed_dirs(ConsumerCatalog(), ["pi", "opencode"], tmp_path) == []


def test_symlinked_managed_dir_is_unlinked_not_followed(tmp_path):
    real = tmp_path / "elsewhere"
    real.mkdir()
    (real / "keep.md").write_text("keep")
    parent = tmp_path / ".pi" / "skills"
    parent.mkdir(parents=True)
    (parent / MANAGED).symlink_to(real, target_is_directory=True)

    cleanup_legacy_managed_dirs(ConsumerCatalog(), ["pi"], tmp_path)

    assert not (parent / MANAGED).is_symlink()
    assert (real / "keep.md").read_text() == "keep"
