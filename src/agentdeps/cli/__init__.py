"""
agentdeps CLI -- manage skill and agent dependencies for coding agents.

Each command group lives in its own module and is registered on the
main Click group here.

Entry point: agentdeps.cli:main
"""

from __future__ import annotations

import click

from .. import __version__
from ..logs import setup_logging
from ._common import require_git

# Commands that clone or read repositories; config editing works without git.
GIT_COMMANDS = ("install", "add", "remove", "list")


@click.group()
@click.version_option(version=__version__, prog_name="agentdeps")
@click.pass_context
def main(ctx):
    """agentdeps -- skills and subagents for every coding agent you use.

    Declare repositories in agents.yaml; agentdeps caches them and keeps
    each agent's _agentdeps_managed directories in sync.
    """
    setup_logging()
    if ctx.invoked_subcommand in GIT_COMMANDS:
        require_git()


# ---------------------------------------------------------------------------
# Register all command groups/commands from modular files
# ---------------------------------------------------------------------------

from .install_cmd import register_install_commands
from .deps_cmd import register_deps_commands
from .config_cmd import register_config_commands

register_install_commands(main)
register_deps_commands(main)
register_config_commands(main)
