"""
Legacy path cleanup.

Some agents used to read project skills from their own dot-directory
(``.pi/skills``) and now share the universal ``.agents/`` convention.
Managed directories left at the old locations are removed so the
agent does not see every skill twice.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from .. import MANAGED_DIR_NAME
from ..paths import EntryKind, entry_kind, remove_entry
from ..registry import ConsumerCatalog

logger = logging.getLogger("agentdeps.install.migration")


def cleanup_legacy_managed_dirs(
    catalog: ConsumerCatalog,
    agent_names: Iterable[str],
    project_root: Optional[Path] = None,
) -> list[Path]:
    """Remove ``_agentdeps_managed`` under each configured agent's legacy paths.

    Only the managed subdirectory is removed; its parent and anything the
    user put there stay. Missing paths are skipped.

    Returns:
        The managed directories that were actually removed.
    """
    root = project_root or Path.cwd()
    removed: list[Path] = []

    for skills, agents in catalog.legacy_project_paths(agent_names):
        for parent in (skills, agents):
            managed = root / parent / MANAGED_DIR_NAME
            if entry_kind(managed) == EntryKind.ABSENT:
                continue
            remove_entry(managed)
            removed.append(managed)
            logger.info("Removed legacy managed directory %s", managed)

    return removed
