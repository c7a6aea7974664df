"""Shared utilities for all CLI command modules.

Provides the Rich console instance, config loading with CLI error
handling, and the install report printer.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from ..cache import GitRunner
from ..config import global_config_path, load_global_config
from ..errors import ConfigError
from ..installer import InstallReport, ScopeReport, run_install
from ..logs import EventLevel, RunEvent, log_hint
from ..models import GlobalConfig

console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger("agentdeps.cli")


def require_git() -> None:
    """Exit with install instructions when git cannot be run."""
    if asyncio.run(GitRunner().available()):
        return
    logger.error("git executable not found or not runnable")
    err_console.print(
        "[bold red]✗ git is not installed or not in PATH.[/]\n"
        "  agentdeps requires git to clone and update repositories.\n"
        "  Install git: https://git-scm.com/downloads"
    )
    sys.exit(1)


def require_global_config() -> GlobalConfig:
    """Load config.yaml or exit with a pointer to ``agentdeps config``."""
    try:
        config = load_global_config()
    except ConfigError as exc:
        logger.error("Invalid global config: %s", exc)
        err_console.print(f"[bold red]Invalid config at {global_config_path()}:[/] {escape(str(exc))}")
        err_console.print("  Fix the file by hand or delete it and run [cyan]agentdeps config set[/] again.")
        sys.exit(1)
    if config is None:
        err_console.print(
            "[bold red]No global config found.[/] "
            "Run [cyan]agentdeps config set agents <names>[/] first."
        )
        sys.exit(1)
    return config


def _scope_line(report: ScopeReport) -> str:
    title = report.scope.value.capitalize()
    if not report.results:
        return f"  [green]✓[/] {title}: nothing to do"

    lines = []
    for result in report.results:
        parts = []
        if result.skills.added:
            parts.append(f"{len(result.skills.added)} skills added")
        if result.agents.added:
            parts.append(f"{len(result.agents.added)} agents added")
        removed = len(result.skills.removed) + len(result.agents.removed)
        if removed:
            parts.append(f"{removed} removed")
        if result.errors:
            parts.append(f"[red]{len(result.errors)} failed[/]")
        elif not (result.skills.changed or result.agents.changed):
            parts.append("up to date")
        lines.append((result.label, ", ".join(parts)))

    if len(lines) == 1:
        label, text = lines[0]
        return f"  [green]✓[/] {title} ({label}): {text}"
    body = "\n".join(f"      {label}: {text}" for label, text in lines)
    return f"  [green]✓[/] {title}:\n{body}"


def _cache_line(report: ScopeReport) -> str:
    cloned = sum(1 for d in report.dependencies if d.cloned)
    updated = sum(1 for d in report.dependencies if d.updated)
    parts = [f"{len(report.dependencies)} resolved"]
    if cloned:
        parts.append(f"{cloned} cloned")
    if updated:
        parts.append(f"{updated} updated")
    return ", ".join(parts)


def print_install_report(report: InstallReport) -> None:
    if not report.scopes:
        console.print(
            "\n  [yellow]No agents.yaml found[/] (project or global). "
            "Add a dependency with [cyan]agentdeps add <owner/repo>[/]."
        )
    for scope in report.scopes:
        console.print(f"\n  [bold]{scope.scope.value} dependencies[/] ({_cache_line(scope)})")
        console.print(_scope_line(scope))


def print_events(events: list[RunEvent]) -> None:
    """Show warnings inline and the log-file hint when anything failed."""
    for event in events:
        if event.level == EventLevel.WARNING:
            console.print(f"  [yellow]⚠ {escape(event.message)}[/]")
    hint = log_hint(events)
    if hint:
        err_console.print(f"\n[yellow]⚠ {escape(hint)}[/]")


def install_and_report(config: GlobalConfig, project_root: Path | None = None) -> InstallReport:
    """Run the install flow, print its report, and return it."""
    try:
        report = asyncio.run(run_install(config, project_root=project_root))
    except ConfigError as exc:
        logger.error("Config error during install: %s", exc)
        err_console.print(f"[bold red]✗ {escape(str(exc))}[/]")
        sys.exit(1)
    print_install_report(report)
    print_events(report.events)
    console.print("\n[bold green]Install complete[/]\n")
    return report
