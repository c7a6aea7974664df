"""
Pydantic models for dependencies, consumers, cache entries and
reconciliation results.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# "*" selects everything, False selects nothing, a list selects by name.
Selection = Union[Literal["*"], Literal[False], list[str]]


class CloneMethod(str, Enum):
    """How owner/repo shorthand is expanded to a clone URL."""

    SSH = "ssh"
    HTTPS = "https"


class InstallMethod(str, Enum):
    """Install backend used for every managed directory."""

    LINK = "link"
    COPY = "copy"


class ItemKind(str, Enum):
    """Whether a discovered item is a directory bundle or a single file."""

    DIRECTORY = "directory"
    FILE = "file"


class Scope(str, Enum):
    """Which set of consumer directories a pass writes to."""

    PROJECT = "project"
    GLOBAL = "global"


class InstallOutcome(str, Enum):
    """What a backend did for a single target path."""

    CREATED = "created"
    REPLACED = "replaced"
    UNCHANGED = "unchanged"

    @property
    def wrote(self) -> bool:
        return self is not InstallOutcome.UNCHANGED


# --- Configuration ------------------------------------------------------


class Dependency(BaseModel):
    """One repository declared in an agents.yaml."""

    repo: str
    ref: str = "main"
    skills: Selection = "*"
    agents: Selection = "*"


class ProjectConfig(BaseModel):
    """Parsed agents.yaml (project or global)."""

    dependencies: list[Dependency] = Field(default_factory=list)


class CustomConsumer(BaseModel):
    """User-declared agent directories, from config.yaml custom_agents."""

    project_skills: str
    project_agents: str
    global_skills: str
    global_agents: str


class GlobalConfig(BaseModel):
    """User preferences stored in config.yaml."""

    clone_method: CloneMethod = CloneMethod.SSH
    agents: list[str] = Field(default_factory=list)
    install_method: InstallMethod = InstallMethod.LINK
    custom_agents: dict[str, CustomConsumer] = Field(default_factory=dict)
    fetch_timeout: float = 120.0
    clone_timeout: float = 600.0


# --- Consumers ----------------------------------------------------------


class Consumer(BaseModel):
    """A coding agent and the directories it reads skills and agents from."""

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str
    project_skills: str
    project_agents: str
    global_skills: str
    global_agents: str
    is_universal: bool = False
    legacy_project_skills: Optional[str] = None
    legacy_project_agents: Optional[str] = None

    def dirs_for(self, scope: Scope) -> tuple[str, str]:
        """(skills_dir, agents_dir) as declared, unexpanded."""
        if scope == Scope.GLOBAL:
            return self.global_skills, self.global_agents
        return self.project_skills, self.project_agents


class DedupTarget(BaseModel):
    """One physical reconciliation job shared by one or more consumers."""

    skills_dir: Path
    agents_dir: Path
    display_names: list[str] = Field(default_factory=list)

    @property
    def label(self) -> str:
        return ", ".join(self.display_names)


# --- Cache --------------------------------------------------------------


class CacheEntry(BaseModel):
    """A (remote, ref) pair and the working copy that mirrors it."""

    cache_key: str
    remote_url: str
    ref: str
    local_path: Path


class EnsureResult(BaseModel):
    """Outcome of RepoCache.ensure."""

    success: bool
    path: Path
    error: Optional[str] = None
    warning: Optional[str] = None
    cloned: bool = False
    updated: bool = False


# --- Reconciliation -----------------------------------------------------


class DesiredItem(BaseModel):
    """A discovered skill or agent ready to be installed."""

    model_config = ConfigDict(frozen=True)

    name: str
    source_path: Path
    kind: ItemKind = ItemKind.DIRECTORY


class ResolvedTarget(BaseModel):
    """A desired item paired with the entry name it occupies on disk."""

    model_config = ConfigDict(frozen=True)

    name: str
    target_name: str
    source_path: Path


class SyncSummary(BaseModel):
    """What a single managed-directory pass did, by item name."""

    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    unchanged: list[str] = Field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)
