"""Tests for GitRunner against a real git executable and local repositories."""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
from pathlib import Path

import pytest

from agentdeps.cache.git import TIMEOUT_RETURNCODE, GitRunner
from agentdeps.cache.repo_cache import RepoCache

needs_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")

GIT_IDENTITY = {
    "GIT_AUTHOR_NAME": "agentdeps",
    "GIT_AUTHOR_EMAIL": "agentdeps@example.com",
    "GIT_COMMITTER_NAME": "agentdeps",
    "GIT_COMMITTER_EMAIL": "agentdeps@example.com",
}


def _git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        env={**os.environ, **GIT_IDENTITY},
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def _commit(repo: Path, relpath: str, content: str, message: str) -> None:
    path = repo / relpath
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    _git(repo, "add", relpath)
    _git(repo, "commit", "-q", "-m", message)


@pytest.fixture
def upstream(tmp_path: Path) -> Path:
    """A local repository on branch main with one skill and a v1.0 tag."""
    repo = tmp_path / "upstream"
    repo.mkdir()
    _git(repo, "init", "-q")
    _git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    _commit(repo, "skills/alpha/SKILL.md", "# alpha\n", "add alpha")
    _git(repo, "tag", "v1.0")
    _commit(repo, "skills/beta/SKILL.md", "# beta\n", "add beta")
    return repo


@pytest.fixture
def url(upstream: Path) -> str:
    # file:// so that --depth is honoured for local clones
    return upstream.as_uri()


class TestRun:
    @pytest.mark.asyncio
    async def test_missing_executable(self):
        git = GitRunner(executable="no-such-git")

        result = await git.run("--version")

        assert result.returncode == 127
        assert not result.ok
        assert not await git.available()

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self):
        runner = GitRunner(executable=sys.executable)

        result = await runner.run("-c", "import time; time.sleep(5)", timeout=0.2)

        assert result.returncode == TIMEOUT_RETURNCODE
        assert "timed out after 0.2s" in result.stderr

    @pytest.mark.asyncio
    async def test_output_is_captured(self):
        runner = GitRunner(executable=sys.executable)

        result = await runner.run("-c", "import sys; print('out'); print('err', file=sys.stderr)")

        assert result.ok
        assert result.stdout == "out"
        assert result.stderr == "err"

    @pytest.mark.asyncio
    async def test_fetch_timeout_applies_to_fetch(self, tmp_path):
        class Recording(GitRunner):
            async def run(self, *args, cwd=None, timeout=None):
                self.seen = (args, timeout)
                return await super().run("--version")

        runner = Recording(executable=sys.executable, fetch_timeout=7, clone_timeout=70)
        await runner.fetch(tmp_path)
        assert runner.seen == (("fetch", "origin"), 7)
        await runner.clone("url", tmp_path / "dest")
        assert runner.seen[1] == 70
        await runner.checkout(tmp_path, "main")
        assert runner.seen[1] is None


@needs_git
class TestRealGit:
    @pytest.mark.asyncio
    async def test_available(self):
        assert await GitRunner().available()

    @pytest.mark.asyncio
    async def test_shallow_branch_clone(self, url, tmp_path):
        dest = tmp_path / "clone"

        result = await GitRunner().clone(url, dest, branch="main", shallow=True)

        assert result.ok, result.stderr
        assert (dest / "skills" / "beta" / "SKILL.md").exists()
        assert _git(dest, "rev-parse", "--is-shallow-repository") == "true"
        assert _git(dest, "rev-parse", "--abbrev-ref", "HEAD") == "main"

    @pytest.mark.asyncio
    async def test_clone_of_unknown_branch_fails(self, url, tmp_path):
        result = await GitRunner().clone(url, tmp_path / "clone", branch="nope", shallow=True)
        assert not result.ok
        assert result.stderr

    @pytest.mark.asyncio
    async def test_full_clone_then_checkout_tag(self, url, tmp_path):
        git = GitRunner()
        dest = tmp_path / "clone"

        assert (await git.clone(url, dest)).ok
        assert (await git.checkout(dest, "v1.0")).ok

        assert (dest / "skills" / "alpha").is_dir()
        assert not (dest / "skills" / "beta").exists()

    @pytest.mark.asyncio
    async def test_fetch_and_reset_pick_up_new_commits(self, upstream, url, tmp_path):
        git = GitRunner()
        dest = tmp_path / "clone"
        await git.clone(url, dest, branch="main", shallow=True)
        _commit(upstream, "skills/gamma/SKILL.md", "# gamma\n", "add gamma")

        assert (await git.fetch(dest)).ok
        assert (await git.reset_hard(dest, "origin/main")).ok

        assert (dest / "skills" / "gamma" / "SKILL.md").read_text() == "# gamma\n"


@needs_git
class TestRepoCacheWithRealGit:
    @pytest.mark.asyncio
    async def test_clone_then_update(self, upstream, url, tmp_path):
        cache = RepoCache(tmp_path / "repos", git=GitRunner())

        first = await cache.ensure(url, "main", "local-upstream-main")
        _commit(upstream, "skills/gamma/SKILL.md", "# gamma\n", "add gamma")
        second = await cache.ensure(url, "main", "local-upstream-main")

        assert first.cloned
        assert second.updated
        assert second.warning is None
        assert (second.path / "skills" / "gamma").is_dir()

    @pytest.mark.asyncio
    async def test_tag_ref_checks_out_tagged_commit(self, url, tmp_path):
        cache = RepoCache(tmp_path / "repos", git=GitRunner())

        result = await cache.ensure(url, "v1.0", "local-upstream-v1.0")

        assert result.success, result.error
        assert (result.path / "skills" / "alpha").is_dir()
        assert not (result.path / "skills" / "beta").exists()

    @pytest.mark.asyncio
    async def test_unreachable_remote_leaves_nothing_behind(self, tmp_path):
        cache = RepoCache(tmp_path / "repos", git=GitRunner())

        result = await cache.ensure((tmp_path / "missing").as_uri(), "main", "missing-main")

        assert not result.success
        assert not (tmp_path / "repos" / "missing-main").exists()
