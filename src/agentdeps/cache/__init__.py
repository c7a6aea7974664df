"""
Repository cache -- local working copies of skill repositories.

One checkout per (repository, ref), keyed so that every URL form of
the same repository lands in the same directory.
"""

from .git import GitResult, GitRunner
from .repo_cache import RepoCache
from .url import derive_cache_key, normalize_repo, resolve_repo_url

__all__ = [
    "GitResult",
    "GitRunner",
    "RepoCache",
    "derive_cache_key",
    "normalize_repo",
    "resolve_repo_url",
]
