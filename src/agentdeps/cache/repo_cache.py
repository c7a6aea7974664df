"""
Repository cache -- one working copy per (repository, ref).

    ensure()  ->  absent:  shallow branch clone  ->  full clone + checkout
                  present: fetch origin  ->  reset --hard origin/<ref>  ->  checkout <ref>

A failed clone means the dependency cannot be served and the caller
skips it. A failed update is only a warning: the previous checkout is
still a usable source of skills, so it is returned as a success.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Optional

from ..errors import CloneFailure, UpdateFailure
from ..models import CacheEntry, EnsureResult
from ..paths import EntryKind, cache_dir, entry_kind
from .git import GitRunner

logger = logging.getLogger("agentdeps.cache")


class RepoCache:
    """Maps cache keys to working copies under ``root`` and keeps them fresh.

    Calls to ``ensure`` that share a cache key are serialized; different
    keys proceed concurrently.
    """

    def __init__(self, root: Optional[Path] = None, git: Optional[GitRunner] = None):
        self.root = Path(root) if root else cache_dir()
        self.git = git or GitRunner()
        self._locks: dict[str, asyncio.Lock] = {}

    def path_for(self, cache_key: str) -> Path:
        """Working-copy location; depends on the cache key alone."""
        return self.root / cache_key

    def entry(self, remote: str, ref: str, cache_key: str) -> CacheEntry:
        return CacheEntry(
            cache_key=cache_key,
            remote_url=remote,
            ref=ref,
            local_path=self.path_for(cache_key),
        )

    def _lock_for(self, cache_key: str) -> asyncio.Lock:
        lock = self._locks.get(cache_key)
        if lock is None:
            lock = self._locks[cache_key] = asyncio.Lock()
        return lock

    async def ensure(self, remote: str, ref: str, cache_key: str) -> EnsureResult:
        """Clone ``remote`` at ``ref`` if missing, otherwise refresh it.

        Args:
            remote: Clone URL (already expanded from shorthand).
            ref: Branch, tag or commit SHA.
            cache_key: Key from ``derive_cache_key``.

        Returns:
            EnsureResult. ``success`` is False only when no working copy
            exists after a failed clone.
        """
        async with self._lock_for(cache_key):
            entry = self.entry(remote, ref, cache_key)
            if entry_kind(entry.local_path) == EntryKind.ABSENT:
                return await self._clone(entry)
            return await self._update(entry)

    async def ensure_or_raise(self, remote: str, ref: str, cache_key: str) -> Path:
        """Like ``ensure`` but raises CloneFailure instead of returning it."""
        result = await self.ensure(remote, ref, cache_key)
        if not result.success:
            raise CloneFailure(remote, ref, result.error or "")
        return result.path

    async def _clone(self, entry: CacheEntry) -> EnsureResult:
        self.root.mkdir(parents=True, exist_ok=True)
        dest = entry.local_path

        result = await self.git.clone(entry.remote_url, dest, branch=entry.ref, shallow=True)
        if result.ok:
            logger.info("Cloned %s (%s) into %s", entry.remote_url, entry.ref, dest)
            return EnsureResult(success=True, path=dest, cloned=True)

        # Tags that are not branches and bare SHAs need a full clone.
        logger.debug("Branch clone of %s@%s failed: %s", entry.remote_url, entry.ref, result.stderr)
        _remove_partial(dest)

        fallback = await self.git.clone(entry.remote_url, dest)
        if not fallback.ok:
            _remove_partial(dest)
            error = fallback.stderr or result.stderr
            logger.error("Failed to clone %s: %s", entry.remote_url, error)
            return EnsureResult(success=False, path=dest, error=error)

        checkout = await self.git.checkout(dest, entry.ref)
        if not checkout.ok:
            _remove_partial(dest)
            logger.error(
                "Cloned %s but could not check out %s: %s",
                entry.remote_url, entry.ref, checkout.stderr,
            )
            return EnsureResult(success=False, path=dest, error=checkout.stderr)

        logger.info("Cloned %s and checked out %s", entry.remote_url, entry.ref)
        return EnsureResult(success=True, path=dest, cloned=True)

    async def _update(self, entry: CacheEntry) -> EnsureResult:
        repo = entry.local_path

        fetch = await self.git.fetch(repo)
        if not fetch.ok:
            return self._stale(entry, fetch.stderr)

        reset = await self.git.reset_hard(repo, f"origin/{entry.ref}")
        if reset.ok:
            logger.info("Updated %s to origin/%s", entry.cache_key, entry.ref)
            return EnsureResult(success=True, path=repo, updated=True)

        checkout = await self.git.checkout(repo, entry.ref)
        if not checkout.ok:
            return self._stale(entry, checkout.stderr)

        logger.info("Updated %s to %s", entry.cache_key, entry.ref)
        return EnsureResult(success=True, path=repo, updated=True)

    def _stale(self, entry: CacheEntry, error: str) -> EnsureResult:
        warning = str(UpdateFailure(entry.cache_key, error))
        logger.warning(warning)
        return EnsureResult(success=True, path=entry.local_path, warning=warning)


def _remove_partial(path: Path) -> None:
    """Drop whatever a failed clone left behind so the next attempt starts clean."""
    kind = entry_kind(path)
    if kind == EntryKind.DIRECTORY:
        shutil.rmtree(path)
    elif kind != EntryKind.ABSENT:
        path.unlink()
