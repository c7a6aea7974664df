"""
Install layer -- backends and managed-directory reconciliation.

The link backend symlinks items out of the repository cache; the copy
backend mirrors them. Either one is driven by ``sync_managed_dir``,
which owns the ``_agentdeps_managed`` directory it is pointed at.
"""

from .backends import CopyBackend, InstallBackend, LinkBackend, create_backend
from .managed import ManagedDirSync, resolve_targets, sync_managed_dir

__all__ = [
    "CopyBackend",
    "InstallBackend",
    "LinkBackend",
    "ManagedDirSync",
    "create_backend",
    "resolve_targets",
    "sync_managed_dir",
]
