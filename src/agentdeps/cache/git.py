"""
Thin async wrapper around the ``git`` executable.

Each call runs one subprocess, waits for it, and hands back the exit
status and captured output. Nothing here interprets failures; that is
RepoCache's job.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger("agentdeps.cache.git")

TIMEOUT_RETURNCODE = -1


@dataclass
class GitResult:
    """Exit status and trimmed output of a single git invocation."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class GitRunner:
    """Runs git subcommands, killing network operations that hang.

    ``fetch_timeout`` bounds fetches and ``clone_timeout`` bounds clones;
    None means no limit. Local operations (checkout, reset) are not
    timed. A command that outlives its limit is killed and reported as
    a failed GitResult, the same as any other non-zero exit.
    """

    def __init__(
        self,
        executable: str = "git",
        fetch_timeout: Optional[float] = None,
        clone_timeout: Optional[float] = None,
    ):
        self.executable = executable
        self.fetch_timeout = fetch_timeout
        self.clone_timeout = clone_timeout

    async def run(
        self, *args: str, cwd: Optional[Path] = None, timeout: Optional[float] = None
    ) -> GitResult:
        cmd = [self.executable, *args]
        logger.debug("git %s (cwd=%s)", " ".join(args), cwd)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=str(cwd) if cwd else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=_git_env(),
            )
        except OSError as exc:
            return GitResult(returncode=127, stderr=str(exc))

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            return GitResult(
                returncode=TIMEOUT_RETURNCODE,
                stderr=f"git {args[0]} timed out after {timeout:g}s",
            )

        return GitResult(
            returncode=proc.returncode if proc.returncode is not None else TIMEOUT_RETURNCODE,
            stdout=stdout.decode("utf-8", errors="replace").strip(),
            stderr=stderr.decode("utf-8", errors="replace").strip(),
        )

    async def available(self) -> bool:
        """True when the executable runs and answers ``--version``."""
        result = await self.run("--version")
        if result.ok:
            logger.debug("Using %s", result.stdout)
        return result.ok

    async def clone(
        self,
        url: str,
        dest: Path,
        branch: Optional[str] = None,
        shallow: bool = False,
    ) -> GitResult:
        args = ["clone"]
        if shallow:
            args += ["--depth", "1"]
        if branch:
            args += ["--branch", branch, "--single-branch"]
        args += [url, str(dest)]
        return await self.run(*args, timeout=self.clone_timeout)

    async def fetch(self, repo: Path, remote: str = "origin") -> GitResult:
        return await self.run("fetch", remote, cwd=repo, timeout=self.fetch_timeout)

    async def checkout(self, repo: Path, ref: str) -> GitResult:
        return await self.run("checkout", ref, cwd=repo)

    async def reset_hard(self, repo: Path, ref: str) -> GitResult:
        return await self.run("reset", "--hard", ref, cwd=repo)


def _git_env() -> dict[str, str]:
    env = os.environ.copy()
    # Never block on a credential prompt; a missing credential is a failure.
    env.setdefault("GIT_TERMINAL_PROMPT", "0")
    return env
