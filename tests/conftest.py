"""Shared test fixtures for agentdeps."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

import pytest

from agentdeps.cache.git import GitResult, GitRunner


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path_factory, monkeypatch):
    """Point config, cache, log and home directories into a private temp dir."""
    base = tmp_path_factory.mktemp("isolated")
    dirs = {
        "config": base / "config",
        "cache": base / "cache",
        "logs": base / "logs",
        "home": base / "home",
    }
    dirs["home"].mkdir()
    monkeypatch.setenv("AGENTDEPS_CONFIG_DIR", str(dirs["config"]))
    monkeypatch.setenv("AGENTDEPS_CACHE_DIR", str(dirs["cache"]))
    monkeypatch.setenv("AGENTDEPS_LOG_DIR", str(dirs["logs"]))
    monkeypatch.setenv("HOME", str(dirs["home"]))
    monkeypatch.setenv("USERPROFILE", str(dirs["home"]))
    yield dirs

    root = logging.getLogger("agentdeps")
    for handler in list(root.handlers):
        if isinstance(handler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()


@pytest.fixture
def sources(tmp_path: Path) -> Path:
    """A source tree with a directory item ``a`` and a file item ``b.md``."""
    src = tmp_path / "src"
    (src / "a").mkdir(parents=True)
    (src / "a" / "SKILL.md").write_text("# a\n")
    (src / "a" / "scripts").mkdir()
    (src / "a" / "scripts" / "run.sh").write_text("echo a\n")
    (src / "b.md").write_text("# agent b\n")
    return src


def populate_skill_repo(root: Path) -> None:
    """Lay out a minimal skills repository at ``root``."""
    for name in ("alpha", "beta"):
        skill = root / "skills" / name
        skill.mkdir(parents=True)
        (skill / "SKILL.md").write_text(f"# {name}\n")
    (root / "skills" / "not-a-skill").mkdir()
    (root / "agents").mkdir()
    (root / "agents" / "reviewer.md").write_text("# reviewer\n")
    (root / "agents" / "planner").mkdir()
    (root / "agents" / "planner" / "AGENT.md").write_text("# planner\n")


class FakeGit(GitRunner):
    """GitRunner that records calls and fakes their effects on disk.

    ``failures`` names operations that should fail: ``clone-branch``,
    ``clone-full``, ``fetch``, ``reset``, ``checkout``.
    """

    def __init__(
        self,
        populate: Optional[Callable[[Path], None]] = populate_skill_repo,
        failures: Optional[set[str]] = None,
    ):
        super().__init__()
        self.populate = populate
        self.failures = set(failures or ())
        self.calls: list[tuple] = []

    def _result(self, op: str) -> GitResult:
        if op in self.failures:
            return GitResult(returncode=128, stderr=f"fatal: {op} failed")
        return GitResult(returncode=0)

    async def clone(self, url, dest, branch=None, shallow=False):
        op = "clone-branch" if branch else "clone-full"
        self.calls.append((op, url, str(dest), branch, shallow))
        result = self._result(op)
        dest.mkdir(parents=True, exist_ok=True)
        (dest / ".git").mkdir(exist_ok=True)
        if result.ok and self.populate:
            self.populate(dest)
        return result

    async def available(self):
        return True

    async def fetch(self, repo, remote="origin"):
        self.calls.append(("fetch", str(repo), remote))
        return self._result("fetch")

    async def reset_hard(self, repo, ref):
        self.calls.append(("reset", str(repo), ref))
        return self._result("reset")

    async def checkout(self, repo, ref):
        self.calls.append(("checkout", str(repo), ref))
        return self._result("checkout")

    def ops(self) -> list[str]:
        return [c[0] for c in self.calls]


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit()
