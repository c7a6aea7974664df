"""Repository URL expansion and cache-key derivation."""

from __future__ import annotations

import hashlib
import re
from urllib.parse import urlparse

from ..models import CloneMethod

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_REF_DIGEST_LEN = 8


def is_shorthand(repo: str) -> bool:
    """True for ``owner/repo``: no scheme, no scp-style user, one slash."""
    if "://" in repo or repo.startswith("git@"):
        return False
    return repo.count("/") == 1


def expand_shorthand(repo: str, clone_method: CloneMethod) -> str:
    if clone_method == CloneMethod.SSH:
        return f"git@github.com:{repo}.git"
    return f"https://github.com/{repo}.git"


def resolve_repo_url(repo: str, clone_method: CloneMethod) -> str:
    """Expand shorthand to a GitHub URL; full URLs pass through untouched."""
    if is_shorthand(repo):
        return expand_shorthand(repo, clone_method)
    return repo


def owner_repo(repo: str) -> str:
    """Extract ``owner/repo`` from shorthand, scp-style or URL forms.

    >>> owner_repo("git@github.com:my-org/skills.git")
    'my-org/skills'
    >>> owner_repo("https://github.com/my-org/skills.git")
    'my-org/skills'
    """
    if repo.startswith("git@"):
        path = repo.split(":", 1)[1] if ":" in repo else repo
    elif "://" in repo:
        path = urlparse(repo).path.lstrip("/") or repo
    else:
        path = repo

    path = path.rstrip("/")
    if path.endswith(".git"):
        path = path[:-4]
    return path


def normalize_repo(repo: str) -> str:
    """Comparison form used to spot duplicate declarations."""
    return owner_repo(repo).lower()


def derive_cache_key(repo: str, ref: str) -> str:
    """Stable directory name for one repository at one ref.

    Every URL form of the same repository yields the same key, so
    switching between shorthand, ssh and https reuses one checkout::

        "vercel-labs/agent-skills", "main"            -> "vercel-labs-agent-skills-main"
        "git@github.com:my-org/skills.git", "v1.2.0"  -> "my-org-skills-v1.2.0"
        "my-org/skills", "release/1.0"                -> "my-org-skills-release-1.0-<hash>"

    Refs that need characters replaced get a short digest of the raw
    ref appended, so ``release/1.0`` and ``release-1.0`` never share a key.
    """
    prefix = owner_repo(repo).replace("/", "-")
    safe_ref = _UNSAFE_KEY_CHARS.sub("-", ref)
    if safe_ref != ref:
        digest = hashlib.sha256(ref.encode("utf-8")).hexdigest()[:_REF_DIGEST_LEN]
        safe_ref = f"{safe_ref}-{digest}"
    return _UNSAFE_KEY_CHARS.sub("-", prefix) + "-" + safe_ref
