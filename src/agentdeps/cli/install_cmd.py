"""Install command: reconcile every configured agent with agents.yaml."""

from __future__ import annotations

import click

from ._common import console, install_and_report, require_global_config


def register_install_commands(main: click.Group) -> None:
    """Register the install command."""

    @main.command("install")
    def install():
        """Install dependencies from the global and project agents.yaml.

        Clones or refreshes each repository in the cache, then makes every
        configured agent's _agentdeps_managed directories match exactly.
        """
        config = require_global_config()
        console.print(
            f"\n[bold blue]agentdeps[/] installing for "
            f"[cyan]{', '.join(config.agents) or 'no agents'}[/] "
            f"([dim]{config.install_method.value}[/])"
        )
        install_and_report(config)
