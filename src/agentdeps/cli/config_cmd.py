"""Config commands: show and set values in config.yaml."""

from __future__ import annotations

import sys

import click
import yaml
from pydantic import ValidationError
from rich.markup import escape
from rich.panel import Panel

from ..config import global_config_path, load_global_config, save_global_config
from ..errors import ConfigError
from ..models import GlobalConfig
from ..registry import ConsumerCatalog
from ._common import console, err_console

SETTABLE_KEYS = ("agents", "clone_method", "install_method", "fetch_timeout", "clone_timeout")


def _load_for_update() -> GlobalConfig:
    """Current config, or defaults when none exists; exits if it is invalid."""
    try:
        return load_global_config() or GlobalConfig()
    except ConfigError as exc:
        err_console.print(f"[bold red]✗ {escape(str(exc))}[/]")
        err_console.print("  Fix or delete the file first; nothing was written.")
        sys.exit(1)


def register_config_commands(main: click.Group) -> None:
    """Register the config command group."""

    @main.group("config")
    def config_group():
        """View or change global preferences (config.yaml)."""

    @config_group.command("show")
    def config_show():
        """Print the current configuration."""
        path = global_config_path()
        try:
            config = load_global_config()
        except ConfigError as exc:
            err_console.print(f"[bold red]✗ {escape(str(exc))}[/]")
            sys.exit(1)
        if config is None:
            console.print(f"[yellow]No config at {path}[/]")
            return

        body = yaml.safe_dump(config.model_dump(mode="json"), default_flow_style=False, sort_keys=False)
        console.print(Panel(escape(body.rstrip()), title=str(path), border_style="blue"))

    @config_group.command("set")
    @click.argument("key", type=click.Choice(SETTABLE_KEYS))
    @click.argument("value")
    def config_set(key, value):
        """Set KEY to VALUE. For agents, VALUE is a comma-separated list."""
        config = _load_for_update()
        data = config.model_dump()

        if key == "agents":
            names = [n.strip() for n in value.split(",") if n.strip()]
            catalog = ConsumerCatalog().with_overrides(config.custom_agents)
            unknown = catalog.unknown_names(names)
            if unknown:
                known = ", ".join(c.name for c in catalog)
                err_console.print(f"[bold red]✗ Unknown agents:[/] {', '.join(unknown)}")
                err_console.print(f"  Known agents: {known}")
                sys.exit(1)
            data["agents"] = names
        else:
            data[key] = value

        try:
            updated = GlobalConfig(**data)
        except ValidationError as exc:
            err_console.print(f"[bold red]✗ Invalid value for {key}:[/] {escape(str(exc.errors()[0]['msg']))}")
            sys.exit(1)

        path = save_global_config(updated)
        console.print(f"  [green]✓[/] {key} set in {path}")
