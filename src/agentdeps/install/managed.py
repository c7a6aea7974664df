"""
Managed directories -- reconcile a tool-owned directory against a desired set.

A managed directory (``<skills_dir>/_agentdeps_managed``) belongs to
agentdeps alone. Each pass:

    resolve targets -> prune stale entries -> install desired entries

and leaves behind exactly one entry per desired item, or no directory
at all when nothing is desired. Nothing outside the managed directory
is read or written, which is what lets user-authored skills live next
to it.

A pass is not transactional. If an install fails the error propagates
and the pass stops; entries already written stay written, each one
complete on its own.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Mapping

from ..discovery import AGENT_FILE_SUFFIX
from ..errors import TargetCollisionError
from ..models import DesiredItem, ResolvedTarget, SyncSummary
from ..paths import EntryKind, entry_kind, list_entries, remove_entry
from .backends import InstallBackend

logger = logging.getLogger("agentdeps.install.managed")


def resolve_targets(desired: Mapping[str, Path]) -> list[ResolvedTarget]:
    """Pair each desired item with the entry name it will occupy.

    Directory sources keep their name; file sources gain the source's
    suffix (``b`` from ``b.md`` installs as ``b.md``), so a switch
    between a directory-backed and a file-backed item never reuses a
    stale entry.

    Raises:
        TargetCollisionError: If two items would occupy the same entry.
    """
    targets: list[ResolvedTarget] = []
    claimed: dict[str, str] = {}

    for name, source in desired.items():
        source = Path(source)
        target_name = name if source.is_dir() else name + source.suffix
        if target_name in claimed:
            raise TargetCollisionError(target_name, [claimed[target_name], name])
        claimed[target_name] = name
        targets.append(ResolvedTarget(name=name, target_name=target_name, source_path=source))

    return targets


def desired_map(items: list[DesiredItem]) -> dict[str, Path]:
    """name -> source path, later items overriding earlier ones."""
    return {item.name: item.source_path for item in items}


def sync_managed_dir(
    managed_dir: Path,
    desired: Mapping[str, Path],
    backend: InstallBackend,
) -> SyncSummary:
    """Make ``managed_dir`` hold exactly one entry per desired item.

    Args:
        managed_dir: The tool-owned directory.
        desired: Item name -> source path in the repository cache.
        backend: Link or copy backend.

    Returns:
        SyncSummary by item name. ``added`` covers new and corrected
        entries, ``removed`` stale entries, ``unchanged`` verified ones.
    """
    managed_dir = Path(managed_dir)
    summary = SyncSummary()
    targets = resolve_targets(desired)
    wanted = {t.target_name for t in targets}

    kind = entry_kind(managed_dir)
    if kind not in (EntryKind.ABSENT, EntryKind.DIRECTORY):
        # Tool-owned path; anything but a real directory is replaced.
        logger.info("Replacing %s at managed path %s", kind.value, managed_dir)
        remove_entry(managed_dir)
        kind = EntryKind.ABSENT

    if not targets and kind == EntryKind.ABSENT:
        return summary

    for entry in list_entries(managed_dir):
        if entry in wanted:
            continue
        path = managed_dir / entry
        name = _item_name(path)
        remove_entry(path)
        summary.removed.append(name)
        logger.info("Removed stale %s from %s", entry, managed_dir)

    if not targets:
        if not list_entries(managed_dir):
            os.rmdir(managed_dir)
            logger.info("Removed empty managed directory %s", managed_dir)
        return summary

    managed_dir.mkdir(parents=True, exist_ok=True)

    for target in targets:
        outcome = backend.install(target.source_path, managed_dir / target.target_name)
        if outcome.wrote:
            summary.added.append(target.name)
            logger.info("%s %s in %s", outcome.value.capitalize(), target.target_name, managed_dir)
        else:
            summary.unchanged.append(target.name)

    return summary


def _item_name(path: Path) -> str:
    """Item name for an on-disk entry: file entries drop their suffix.

    Links are classified by what they point at. A dangling link no longer
    says whether it stood for a file, so only the agent-file suffix is
    stripped from it.
    """
    kind = entry_kind(path)
    if kind == EntryKind.SYMLINK:
        if os.path.isdir(path):
            return path.name
        if not os.path.exists(path) and path.suffix != AGENT_FILE_SUFFIX:
            return path.name
    elif kind == EntryKind.DIRECTORY:
        return path.name
    return path.stem if path.suffix else path.name


class ManagedDirSync:
    """Runs reconciliation passes off the event loop, one at a time per directory."""

    def __init__(self, backend: InstallBackend):
        self.backend = backend
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, managed_dir: Path) -> asyncio.Lock:
        key = os.path.normcase(os.path.abspath(managed_dir))
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    async def sync(self, managed_dir: Path, desired: Mapping[str, Path]) -> SyncSummary:
        async with self._lock_for(managed_dir):
            return await asyncio.to_thread(
                sync_managed_dir, managed_dir, dict(desired), self.backend
            )
