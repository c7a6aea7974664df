"""Dependency commands: add, remove, list."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click
from rich.markup import escape

from ..cache import GitRunner, RepoCache, derive_cache_key, normalize_repo, resolve_repo_url
from ..config import (
    global_agents_yaml_path,
    load_project_config,
    project_agents_yaml_path,
    save_project_config,
)
from ..discovery import discover_agents, discover_skills, filter_items
from ..errors import CloneFailure, ConfigError
from ..models import Dependency, ProjectConfig, Selection
from ._common import console, err_console, install_and_report, logger, require_global_config


def _selection(names: tuple[str, ...], select_all: bool, none: bool) -> Selection:
    if none:
        return False
    if names and not select_all:
        return list(names)
    return "*"


def _describe(selection: Selection) -> str:
    if selection == "*":
        return "all"
    if selection is False:
        return "none"
    return ", ".join(selection)


def _load(path: Path) -> ProjectConfig:
    try:
        return load_project_config(path)
    except ConfigError as exc:
        err_console.print(f"[bold red]✗ {escape(str(exc))}[/]")
        sys.exit(1)


def _print_deps(title: str, deps: list[Dependency], targets: list[str]) -> None:
    console.print(f"\n[bold]{title}[/]\n")
    for dep in deps:
        console.print(f"  [cyan]{escape(dep.repo)}[/] [dim](ref: {escape(dep.ref)})[/]")
        console.print(f"    skills: {escape(_describe(dep.skills))}")
        console.print(f"    agents: {escape(_describe(dep.agents))}")
        console.print(f"    targets: {', '.join(targets) or '-'}")


def register_deps_commands(main: click.Group) -> None:
    """Register add, remove and list."""

    @main.command("add")
    @click.argument("repo")
    @click.option("--ref", default="main", show_default=True, help="Branch, tag or commit SHA.")
    @click.option("--skill", "skill_names", multiple=True, help="Install only this skill (repeatable).")
    @click.option("--agent", "agent_names", multiple=True, help="Install only this agent (repeatable).")
    @click.option("--all", "select_all", is_flag=True, help="Install all skills and agents.")
    @click.option("--no-skills", is_flag=True, help="Don't install any skills.")
    @click.option("--no-agents", is_flag=True, help="Don't install any agents.")
    def add(repo, ref, skill_names, agent_names, select_all, no_skills, no_agents):
        """Add REPO (owner/repo or a git URL) to the project agents.yaml."""
        config = require_global_config()
        path = project_agents_yaml_path()
        project = _load(path)

        if any(normalize_repo(d.repo) == normalize_repo(repo) for d in project.dependencies):
            err_console.print(
                f"[bold red]✗ {escape(repo)} already exists in agents.yaml.[/] "
                "Edit the file directly to modify it."
            )
            sys.exit(1)

        console.print(f"\n  Fetching [cyan]{escape(repo)}[/] ({escape(ref)})...", end=" ")
        cache = RepoCache(
            git=GitRunner(fetch_timeout=config.fetch_timeout, clone_timeout=config.clone_timeout)
        )
        try:
            repo_path = asyncio.run(
                cache.ensure_or_raise(
                    resolve_repo_url(repo, config.clone_method), ref, derive_cache_key(repo, ref)
                )
            )
        except CloneFailure as exc:
            console.print("[red]failed[/]")
            logger.error("%s", exc)
            err_console.print(f"[bold red]✗ {escape(str(exc))}[/]")
            sys.exit(1)
        console.print("[green]done[/]")

        skills = discover_skills(repo_path)
        agents = discover_agents(repo_path)
        console.print(f"  Found {len(skills)} skill(s), {len(agents)} agent(s)")

        dep = Dependency(
            repo=repo,
            ref=ref,
            skills=_selection(skill_names, select_all, no_skills),
            agents=_selection(agent_names, select_all, no_agents),
        )
        for kind, found, selection in (("skills", skills, dep.skills), ("agents", agents, dep.agents)):
            missing = filter_items(found, selection).missing
            if missing:
                console.print(f"  [yellow]⚠ {kind} not found in {escape(repo)}: {escape(', '.join(missing))}[/]")

        project.dependencies.append(dep)
        save_project_config(path, project)
        console.print(f"\n  [green]✓[/] Added {escape(repo)} to agents.yaml")

        install_and_report(config)

    @main.command("remove")
    @click.argument("repo")
    def remove(repo):
        """Remove REPO from the project agents.yaml and prune its items."""
        config = require_global_config()
        path = project_agents_yaml_path()
        if not path.is_file():
            err_console.print("[bold red]✗ No agents.yaml found in current directory[/]")
            sys.exit(1)

        project = _load(path)
        wanted = normalize_repo(repo)
        kept = [d for d in project.dependencies if normalize_repo(d.repo) != wanted]
        if len(kept) == len(project.dependencies):
            err_console.print(f"[bold red]✗ {escape(repo)} not found in agents.yaml[/]")
            sys.exit(1)

        save_project_config(path, ProjectConfig(dependencies=kept))
        console.print(f"  [green]✓[/] Removed {escape(repo)} from agents.yaml")

        install_and_report(config)

    @main.command("list")
    def list_deps():
        """List global and project dependencies."""
        config = require_global_config()

        found = False
        for title, path in (
            ("Global dependencies", global_agents_yaml_path()),
            ("Project dependencies", project_agents_yaml_path()),
        ):
            project = _load(path)
            if project.dependencies:
                found = True
                _print_deps(title, project.dependencies, config.agents)

        if not found:
            console.print(
                "No dependencies configured.\n\n"
                "Add one with:\n"
                "  [cyan]agentdeps add <owner/repo>[/]\n\n"
                "Or create agents.yaml manually."
            )
        console.print()
