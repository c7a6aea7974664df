"""
Install orchestration -- from agents.yaml to reconciled managed directories.

    for each scope (global, project):
        load agents.yaml
        fan out per dependency:  ensure cache -> discover -> select
        build desired skills / agents maps
        merge consumers into dedup targets
        reconcile <skills_dir>/_agentdeps_managed and <agents_dir>/_agentdeps_managed

A dependency that cannot be cloned or discovered is skipped and
recorded; it never stops the others. A reconciliation pass that fails
stops only that pass. Only a ConfigError escapes ``run``.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from . import MANAGED_DIR_NAME
from .cache import GitRunner, RepoCache, derive_cache_key, resolve_repo_url
from .config import global_agents_yaml_path, load_project_config, project_agents_yaml_path
from .discovery import discover_agents, discover_skills, discovery_warnings, filter_items
from .errors import AgentDepsError
from .install import ManagedDirSync, create_backend
from .install.managed import desired_map
from .install.migration import cleanup_legacy_managed_dirs
from .logs import EventLevel, EventLog, RunEvent
from .models import Dependency, DesiredItem, GlobalConfig, Scope, SyncSummary
from .registry import ConsumerCatalog, resolve_dedup_targets

logger = logging.getLogger("agentdeps.installer")


class ResolvedDependency(BaseModel):
    """A dependency after caching, discovery and selection."""

    dependency: Dependency
    cache_path: Path
    skills: list[DesiredItem] = Field(default_factory=list)
    agents: list[DesiredItem] = Field(default_factory=list)
    cloned: bool = False
    updated: bool = False


class TargetResult(BaseModel):
    """Reconciliation outcome for one dedup target."""

    display_names: list[str]
    skills: SyncSummary = Field(default_factory=SyncSummary)
    agents: SyncSummary = Field(default_factory=SyncSummary)
    errors: list[str] = Field(default_factory=list)

    @property
    def label(self) -> str:
        return ", ".join(self.display_names)


class ScopeReport(BaseModel):
    scope: Scope
    dependencies: list[ResolvedDependency] = Field(default_factory=list)
    results: list[TargetResult] = Field(default_factory=list)


class InstallReport(BaseModel):
    scopes: list[ScopeReport] = Field(default_factory=list)
    events: list[RunEvent] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(e.level == EventLevel.ERROR for e in self.events)


class Installer:
    """Runs the install flow for one global config.

    The consumer catalog, repository cache and backend are all passed in
    or built here from ``config``; nothing is read from module state.
    """

    def __init__(
        self,
        config: GlobalConfig,
        catalog: Optional[ConsumerCatalog] = None,
        cache: Optional[RepoCache] = None,
        project_root: Optional[Path] = None,
        global_agents_yaml: Optional[Path] = None,
    ):
        self.config = config
        self.catalog = (catalog or ConsumerCatalog()).with_overrides(config.custom_agents)
        self.cache = cache or RepoCache(
            git=GitRunner(fetch_timeout=config.fetch_timeout, clone_timeout=config.clone_timeout)
        )
        self.project_root = project_root or Path.cwd()
        self.global_agents_yaml = global_agents_yaml or global_agents_yaml_path()
        self.syncer = ManagedDirSync(create_backend(config.install_method))

    # --- dependencies ---------------------------------------------------

    async def resolve_dependency(
        self, dep: Dependency, events: EventLog
    ) -> Optional[ResolvedDependency]:
        """Cache, discover and select one dependency; None if it must be skipped."""
        context = f"dependency {dep.repo}@{dep.ref}"
        try:
            url = resolve_repo_url(dep.repo, self.config.clone_method)
            result = await self.cache.ensure(url, dep.ref, derive_cache_key(dep.repo, dep.ref))
            if not result.success:
                events.error(context, f"Failed to cache {dep.repo}, skipping: {result.error}")
                return None
            if result.warning:
                events.warn(context, result.warning)

            discovered_skills = await asyncio.to_thread(discover_skills, result.path)
            discovered_agents = await asyncio.to_thread(discover_agents, result.path)
        except (AgentDepsError, OSError) as exc:
            events.error(context, exc)
            return None

        skills = filter_items(discovered_skills, dep.skills)
        agents = filter_items(discovered_agents, dep.agents)
        for message in discovery_warnings(
            dep.repo, "skills", discovered_skills, dep.skills, skills.missing
        ) + discovery_warnings(
            dep.repo, "agents", discovered_agents, dep.agents, agents.missing
        ):
            events.warn(context, message)

        return ResolvedDependency(
            dependency=dep,
            cache_path=result.path,
            skills=skills.selected,
            agents=agents.selected,
            cloned=result.cloned,
            updated=result.updated,
        )

    async def resolve_dependencies(
        self, deps: list[Dependency], events: EventLog
    ) -> list[ResolvedDependency]:
        """Resolve all dependencies concurrently, returned in declaration order."""
        logs = [EventLog("agentdeps.installer") for _ in deps]
        results = await asyncio.gather(
            *(self.resolve_dependency(dep, log) for dep, log in zip(deps, logs))
        )
        for log in logs:
            events.extend(log)
        return [r for r in results if r is not None]

    # --- reconciliation -------------------------------------------------

    async def install_scope(
        self, resolved: list[ResolvedDependency], scope: Scope, events: EventLog
    ) -> list[TargetResult]:
        """Reconcile every dedup target of ``scope`` against ``resolved``.

        Later dependencies win when two provide an item with the same name.
        """
        desired_skills = desired_map([s for dep in resolved for s in dep.skills])
        desired_agents = desired_map([a for dep in resolved for a in dep.agents])

        consumers = self.catalog.resolve(self.config.agents)
        results = []
        for target in resolve_dedup_targets(consumers, scope, self.project_root):
            result = TargetResult(display_names=target.display_names)
            for kind, parent, desired in (
                ("skills", target.skills_dir, desired_skills),
                ("agents", target.agents_dir, desired_agents),
            ):
                managed_dir = parent / MANAGED_DIR_NAME
                try:
                    summary = await self.syncer.sync(managed_dir, desired)
                except (AgentDepsError, OSError) as exc:
                    events.error(f"sync {managed_dir}", exc)
                    result.errors.append(f"{kind}: {exc}")
                    continue
                setattr(result, kind, summary)
            results.append(result)
        return results

    async def run_scope(self, scope: Scope, agents_yaml: Path, events: EventLog) -> Optional[ScopeReport]:
        """Process one agents.yaml. Returns None when the file does not exist."""
        if not agents_yaml.is_file():
            return None

        project = load_project_config(agents_yaml, events)
        logger.info(
            "Processing %d %s dependencies from %s",
            len(project.dependencies), scope.value, agents_yaml,
        )
        resolved = await self.resolve_dependencies(project.dependencies, events)
        # An emptied agents.yaml still reconciles, pruning what it used to install.
        results = await self.install_scope(resolved, scope, events)
        return ScopeReport(scope=scope, dependencies=resolved, results=results)

    async def run(self) -> InstallReport:
        events = EventLog("agentdeps.installer")

        unknown = self.catalog.unknown_names(self.config.agents)
        if unknown:
            events.warn("config", f"Unknown agents in config: {', '.join(unknown)}")
        if not self.config.agents:
            events.warn("config", "No agents configured; nothing will be installed")

        try:
            cleanup_legacy_managed_dirs(self.catalog, self.config.agents, self.project_root)
        except OSError as exc:
            events.error("migration", exc)

        report = InstallReport()
        for scope, path in (
            (Scope.GLOBAL, self.global_agents_yaml),
            (Scope.PROJECT, project_agents_yaml_path(self.project_root)),
        ):
            scope_report = await self.run_scope(scope, path, events)
            if scope_report is not None:
                report.scopes.append(scope_report)

        report.events = list(events.events)
        return report


async def run_install(config: GlobalConfig, **kwargs) -> InstallReport:
    """Convenience wrapper: build an Installer and run it."""
    return await Installer(config, **kwargs).run()
