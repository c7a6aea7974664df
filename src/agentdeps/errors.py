"""
Error taxonomy for agentdeps.

Only ConfigError is fatal to a whole run. Everything else is caught
at the dependency or reconciliation-target boundary and recorded as
a run event so the remaining work still happens.
"""

from __future__ import annotations


class AgentDepsError(Exception):
    """Base class for all agentdeps errors."""


class ConfigError(AgentDepsError):
    """A config file is missing required fields or holds invalid values."""

    def __init__(self, message: str, path: object = None):
        self.path = path
        if path is not None:
            message = f"{message} ({path})"
        super().__init__(message)


class CloneFailure(AgentDepsError):
    """Neither the shallow branch clone nor the full clone succeeded."""

    def __init__(self, remote: str, ref: str, detail: str = ""):
        self.remote = remote
        self.ref = ref
        self.detail = detail
        msg = f"Failed to clone {remote} at {ref}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class UpdateFailure(AgentDepsError):
    """Fetching or checking out an existing cache entry failed.

    Never raised out of RepoCache.ensure; the stale working copy is
    reused and the message is recorded as a warning.
    """

    def __init__(self, cache_key: str, detail: str = ""):
        self.cache_key = cache_key
        self.detail = detail
        msg = f"Failed to update {cache_key}, using cached copy"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class LinkCreationFailure(AgentDepsError):
    """A symbolic link (or junction fallback) could not be created."""

    def __init__(self, target_path: object, detail: str = ""):
        self.target_path = target_path
        msg = (
            f"Failed to create link at {target_path}. "
            "Consider switching to install_method: copy"
        )
        if detail:
            msg += f". Error: {detail}"
        super().__init__(msg)


class TargetCollisionError(AgentDepsError):
    """Two desired items resolve to the same entry name in a managed dir."""

    def __init__(self, target_name: str, names: list[str]):
        self.target_name = target_name
        self.names = names
        super().__init__(
            f"Items {', '.join(repr(n) for n in names)} would all install "
            f"as '{target_name}'"
        )
