"""Show the proxy routing derived from the current runtime config."""

from __future__ import annotations

import os
import sys

import click
from rich.table import Table

from ..config_store import ConfigStore
from ..console import console
from ..errors import ConfigureError
from ..paths import ContainerPaths
from ..proxy import RouteKind
from ..proxy import derive_routes
from ..ui.error_display import display_configure_error
from ..utils.error_format import escape_markup


@click.command("routes")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Runtime config to read (default: the persisted config)",
)
def routes_cmd(config_path: str | None):
    """Show which paths bypass proxy basic auth."""
    paths = ContainerPaths.from_environ(os.environ)
    store = ConfigStore(config_path or paths.config_file)

    try:
        runtime = store.read()
    except ConfigureError as e:
        display_configure_error(console, e)
        sys.exit(1)

    if not store.exists():
        console.print(f"[yellow]No runtime config at {escape_markup(store.path)}; showing defaults.[/yellow]")

    routing = derive_routes(runtime)

    table = Table(title="Proxy Routes", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim")
    table.add_column("Matches", style="green")
    table.add_column("Auth")

    for index, rule in enumerate(routing.rules):
        matches = "(everything else)" if rule.is_catch_all else " ".join(rule.caddy_paths())
        auth = "[yellow]none (bypass)[/yellow]" if rule.kind is RouteKind.BYPASS else "basic auth + gateway token"
        table.add_row(str(index), matches, auth)

    console.print(table)


__all__ = ["routes_cmd"]
