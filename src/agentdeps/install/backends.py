"""
Install backends -- how one item lands in a managed directory.

Link: a symbolic link pointing back into the repository cache.
Copy: a mirrored copy, refreshed by size and modification time.

Both are idempotent and self-healing. Calling install again with the
same arguments writes nothing; calling it after the source moved, or
after switching backends, converges on the right entry.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import sys
from abc import ABC, abstractmethod
from pathlib import Path

from ..errors import LinkCreationFailure
from ..models import InstallMethod, InstallOutcome
from ..paths import EntryKind, entry_kind, remove_entry

logger = logging.getLogger("agentdeps.install.backends")

_TMP_SUFFIX = ".agentdeps-tmp"


class InstallBackend(ABC):
    """Strategy for materialising a single item at a target path."""

    @abstractmethod
    def install(self, source: Path, target: Path) -> InstallOutcome:
        """Make ``target`` present ``source``.

        Args:
            source: File or directory inside the repository cache.
            target: Entry path inside a managed directory.

        Returns:
            CREATED when target was absent, REPLACED when an existing
            entry was rewritten, UNCHANGED when nothing was written.
        """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name as written in config.yaml."""


class LinkBackend(InstallBackend):
    """Symbolic links, with a junction fallback for directories on Windows."""

    @property
    def name(self) -> str:
        return InstallMethod.LINK.value

    def install(self, source: Path, target: Path) -> InstallOutcome:
        is_dir = source.is_dir()
        kind = entry_kind(target)

        if kind == EntryKind.ABSENT:
            _create_link(source, target, is_dir)
            return InstallOutcome.CREATED

        if kind == EntryKind.SYMLINK and _same_path(_read_link(target), source):
            return InstallOutcome.UNCHANGED

        # Wrong link target, or a leftover copy-mode entry.
        logger.debug("Replacing %s entry at %s", kind.value, target)
        remove_entry(target)
        _create_link(source, target, is_dir)
        return InstallOutcome.REPLACED


class CopyBackend(InstallBackend):
    """Mirrored copies refreshed by size and modification time.

    A file is recopied when the destination is missing, the sizes
    differ, or the source is strictly newer. Content is never hashed,
    so an in-place edit that keeps the size and does not advance the
    source mtime goes unnoticed.
    """

    @property
    def name(self) -> str:
        return InstallMethod.COPY.value

    def install(self, source: Path, target: Path) -> InstallOutcome:
        existed = entry_kind(target) != EntryKind.ABSENT
        if source.is_dir():
            wrote = _mirror_dir(source, target)
        else:
            wrote = _mirror_file(source, target)

        if not existed:
            return InstallOutcome.CREATED
        return InstallOutcome.REPLACED if wrote else InstallOutcome.UNCHANGED


def create_backend(method: InstallMethod | str) -> InstallBackend:
    """Factory for the configured install method.

    Raises:
        ValueError: If the method is not supported.
    """
    factories = {
        InstallMethod.LINK: LinkBackend,
        InstallMethod.COPY: CopyBackend,
    }
    try:
        factory = factories[InstallMethod(method)]
    except (KeyError, ValueError):
        raise ValueError(f"Unsupported install method: {method}") from None
    return factory()


# --- link helpers -------------------------------------------------------


def _create_link(source: Path, target: Path, is_dir: bool) -> None:
    try:
        os.symlink(source, target, target_is_directory=is_dir)
        return
    except OSError as exc:
        if not (is_dir and sys.platform == "win32"):
            raise LinkCreationFailure(target, str(exc)) from exc
        logger.debug("Symlink failed at %s (%s), trying a junction", target, exc)

    result = subprocess.run(
        ["cmd", "/c", "mklink", "/J", str(target), str(source)],
        capture_output=True, text=True, check=False,
    )
    if result.returncode != 0:
        raise LinkCreationFailure(
            target,
            f"{result.stderr.strip()} (enable Developer Mode to allow symlinks)",
        )


def _read_link(path: Path) -> str:
    target = os.readlink(path)
    # Junctions read back with the NT namespace prefix.
    if target.startswith("\\\\?\\"):
        target = target[4:]
    return target


def _same_path(link_target: str, source: Path) -> bool:
    return os.path.normcase(os.path.normpath(link_target)) == os.path.normcase(
        os.path.normpath(str(source))
    )


# --- copy helpers -------------------------------------------------------


def _mirror_file(source: Path, dest: Path) -> bool:
    """Copy ``source`` over ``dest`` if it looks stale. Returns True on write."""
    kind = entry_kind(dest)
    if kind == EntryKind.FILE:
        src_stat = source.stat()
        dst_stat = dest.stat()
        if src_stat.st_size == dst_stat.st_size and src_stat.st_mtime_ns <= dst_stat.st_mtime_ns:
            return False
    elif kind != EntryKind.ABSENT:
        remove_entry(dest)

    # copy2 keeps the source mtime, so an unchanged file stays "not newer".
    tmp = dest.with_name(dest.name + _TMP_SUFFIX)
    shutil.copy2(source, tmp)
    os.replace(tmp, dest)
    return True


def _mirror_dir(source: Path, dest: Path) -> bool:
    """Make ``dest`` an exact structural mirror of ``source``."""
    wrote = False
    kind = entry_kind(dest)
    if kind != EntryKind.DIRECTORY:
        # Never write through a link left behind by the link backend.
        remove_entry(dest)
        dest.mkdir(parents=True)
        wrote = True

    source_names = set()
    for name in os.listdir(source):
        src = source / name
        # Directory links are never followed.
        if src.is_symlink() and src.is_dir():
            logger.debug("Skipping directory link %s", src)
            continue
        source_names.add(name)

    for name in sorted(os.listdir(dest)):
        if name not in source_names:
            remove_entry(dest / name)
            wrote = True

    for name in sorted(source_names):
        src = source / name
        dst = dest / name
        if src.is_dir():
            wrote = _mirror_dir(src, dst) or wrote
        elif src.is_file():
            wrote = _mirror_file(src, dst) or wrote
        else:
            logger.debug("Skipping unsupported entry %s", src)

    return wrote
