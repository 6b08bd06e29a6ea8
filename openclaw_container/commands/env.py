"""List the environment variables the configure pass recognizes."""

from __future__ import annotations

import os

import click
from rich.table import Table

from ..console import console
from ..env_schema import AGENT_DEFAULT_FIELDS
from ..env_schema import AUTH_PASSWORD_ENV
from ..env_schema import AUTH_USERNAME_ENV
from ..env_schema import BROWSER_FIELDS
from ..env_schema import CHANNELS
from ..env_schema import CONVENTION_PREFIX
from ..env_schema import DEEPGRAM_ENV
from ..env_schema import GATEWAY_FIELDS
from ..env_schema import GATEWAY_TOKEN_ENV
from ..env_schema import HOOKS_FIELDS
from ..env_schema import HOOKS_GATE
from ..env_schema import JSON_ONLY_VARIABLES
from ..env_schema import REQUIRED_SECRETS
from ..env_schema import EnvBinding
from ..env_schema import is_secret_variable
from ..providers import BUILTIN_PROVIDERS
from ..providers import CUSTOM_PROVIDERS

# (group, variable, target, type)
InventoryRow = tuple[str, str, str, str]


def _fields(group: str, root: str, fields: tuple[EnvBinding, ...]) -> list[InventoryRow]:
    return [(group, b.env, f"{root}.{b.path}", b.type) for b in fields]


def inventory() -> list[InventoryRow]:
    """Every recognized variable with the document path it feeds."""
    rows: list[InventoryRow] = []

    rows += _fields("gateway", "gateway", GATEWAY_FIELDS)
    rows.append(("gateway", GATEWAY_TOKEN_ENV, "gateway.auth.token", "str"))
    rows += _fields("agents", "agents.defaults", AGENT_DEFAULT_FIELDS)

    for spec in CHANNELS:
        if spec.gate_kind == "bool":
            rows.append((spec.key, spec.gates[0], f"{spec.root}.enabled", "bool"))
        else:
            for gate, token_field in zip(spec.gates, spec.token_fields):
                rows.append((spec.key, gate, f"{spec.root}.{token_field}", "str"))
        rows += _fields(spec.key, spec.root, spec.fields)

    for provider in BUILTIN_PROVIDERS:
        for env in provider.env_vars:
            rows.append(("providers", env, f"(auto-detected: {provider.name})", "str"))

    for custom in CUSTOM_PROVIDERS:
        root = f"models.providers.{custom.name}"
        for gate in custom.gate:
            target = f"{root}.apiKey" if gate == custom.api_key_env else f"(enables {custom.name})"
            rows.append(("providers", gate, target, "str"))
        rows.append(("providers", custom.api_env, f"{root}.api", "str"))
        rows.append(("providers", custom.base_url_env, f"{root}.baseUrl", "str"))
        rows.append(("providers", custom.models_env, f"{root}.models", "csv"))

    rows.append(("audio", DEEPGRAM_ENV, "tools.media.audio", "str"))
    rows += _fields("browser", "browser", BROWSER_FIELDS)
    rows.append(("hooks", HOOKS_GATE, "hooks.enabled", "bool"))
    rows += _fields("hooks", "hooks", HOOKS_FIELDS)

    rows.append(("proxy", AUTH_USERNAME_ENV, "(proxy basic auth user)", "str"))
    rows.append(("proxy", AUTH_PASSWORD_ENV, "(proxy basic auth password)", "str"))
    rows.append(("convention", f"{CONVENTION_PREFIX}<a>__<b>", "a.b", "auto"))

    for env, path in JSON_ONLY_VARIABLES.items():
        rows.append(("rejected", env, f"{path} (custom JSON only)", "-"))

    return rows


@click.command("env")
@click.option("--group", "-g", "group", default=None, help="Only show one group (e.g. telegram, providers)")
@click.option("--set", "only_set", is_flag=True, help="Only show variables set in this environment")
def env_cmd(group: str | None, only_set: bool):
    """List recognized environment variables and where they land."""
    rows = inventory()
    if group:
        rows = [row for row in rows if row[0] == group]
    if only_set:
        rows = [row for row in rows if (os.environ.get(row[1]) or "").strip()]

    if not rows:
        console.print("[yellow]No matching variables.[/yellow]")
        return

    table = Table(title="Recognized Environment Variables", show_header=True, header_style="bold cyan")
    table.add_column("Group", style="dim")
    table.add_column("Variable", style="green")
    table.add_column("Target")
    table.add_column("Type", style="dim")
    table.add_column("Set")

    for row_group, variable, target, value_type in rows:
        value = (os.environ.get(variable) or "").strip()
        if not value:
            status = ""
        elif is_secret_variable(variable):
            status = "[green]✓[/green] [dim](secret)[/dim]"
        else:
            status = "[green]✓[/green]"
        required = " [red]*[/red]" if variable in REQUIRED_SECRETS else ""
        table.add_row(row_group, f"{variable}{required}", target, value_type, status)

    console.print(table)
    console.print("[dim][red]*[/red] required at startup[/dim]")


__all__ = ["env_cmd", "inventory"]
