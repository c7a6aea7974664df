"""
Platform directories and small filesystem helpers.

Config, cache and log locations follow each platform's convention
and can be pinned with AGENTDEPS_CONFIG_DIR, AGENTDEPS_CACHE_DIR and
AGENTDEPS_LOG_DIR (handy for tests and sandboxed CI runs).
"""

from __future__ import annotations

import os
import shutil
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

from . import CACHE_DIR_ENV, CONFIG_DIR_ENV, LOG_DIR_ENV

APP_NAME = "agentdeps"


def _env_path(name: str) -> Optional[Path]:
    value = os.environ.get(name)
    return Path(value).expanduser() if value else None


def config_dir() -> Path:
    """Directory holding config.yaml and the global agents.yaml."""
    override = _env_path(CONFIG_DIR_ENV)
    if override:
        return override

    home = Path.home()
    if sys.platform == "darwin":
        return home / "Library" / "Application Support" / APP_NAME
    if sys.platform == "win32":
        appdata = _env_path("APPDATA") or home / "AppData" / "Roaming"
        return appdata / APP_NAME
    xdg = _env_path("XDG_CONFIG_HOME") or home / ".config"
    return xdg / APP_NAME


def cache_dir() -> Path:
    """Root of the repository cache, one working copy per cache key."""
    override = _env_path(CACHE_DIR_ENV)
    if override:
        return override

    home = Path.home()
    if sys.platform == "darwin":
        return home / "Library" / "Caches" / APP_NAME / "repos"
    if sys.platform == "win32":
        local = _env_path("LOCALAPPDATA") or home / "AppData" / "Local"
        return local / APP_NAME / "repos"
    xdg = _env_path("XDG_CACHE_HOME") or home / ".cache"
    return xdg / APP_NAME / "repos"


def log_dir() -> Path:
    """Directory for agentdeps.log."""
    override = _env_path(LOG_DIR_ENV)
    if override:
        return override

    home = Path.home()
    if sys.platform == "darwin":
        return home / "Library" / "Logs" / APP_NAME
    if sys.platform == "win32":
        local = _env_path("LOCALAPPDATA") or home / "AppData" / "Local"
        return local / APP_NAME / "logs"
    state = _env_path("XDG_STATE_HOME")
    if state:
        return state / APP_NAME / "logs"
    xdg = _env_path("XDG_CACHE_HOME") or home / ".cache"
    return xdg / APP_NAME / "logs"


def expand_home(path: str | Path) -> Path:
    """Expand a leading ``~`` only; relative paths stay relative."""
    text = str(path)
    if text == "~" or text.startswith("~/") or text.startswith("~\\"):
        return Path(os.path.expanduser(text))
    return Path(text)


class EntryKind(str, Enum):
    """What occupies a path, without following symlinks."""

    ABSENT = "absent"
    SYMLINK = "symlink"
    DIRECTORY = "directory"
    FILE = "file"
    OTHER = "other"


def entry_kind(path: Path) -> EntryKind:
    """Classify ``path`` with lstat semantics.

    Dangling symlinks report SYMLINK, not ABSENT. Windows directory
    junctions also report SYMLINK. Permission errors and other I/O
    failures propagate.
    """
    if not os.path.lexists(path):
        return EntryKind.ABSENT
    if path.is_symlink() or is_junction(path):
        return EntryKind.SYMLINK
    if path.is_dir():
        return EntryKind.DIRECTORY
    if path.is_file():
        return EntryKind.FILE
    return EntryKind.OTHER


def list_entries(directory: Path) -> list[str]:
    """Entry names of ``directory``, or an empty list when it is absent."""
    if entry_kind(directory) != EntryKind.DIRECTORY:
        return []
    return sorted(os.listdir(directory))


def is_junction(path: Path) -> bool:
    """True for a Windows directory junction (always False elsewhere)."""
    check = getattr(os.path, "isjunction", None)
    return bool(check and check(path))


def remove_entry(path: Path) -> None:
    """Delete whatever is at ``path`` without following links.

    Symlinks and junctions are removed themselves, never their targets;
    real directories are removed recursively. Absent paths are a no-op.
    """
    kind = entry_kind(path)
    if kind == EntryKind.ABSENT:
        return
    if kind == EntryKind.SYMLINK:
        if sys.platform == "win32" and os.path.isdir(path):
            os.rmdir(path)
        else:
            path.unlink()
    elif kind == EntryKind.DIRECTORY:
        shutil.rmtree(path)
    else:
        path.unlink()
