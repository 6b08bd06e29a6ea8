"""The configure pass run by the container entrypoint before startup."""

from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass

import click

from ..agent import run_doctor_fix
from ..config_store import ConfigStore
from ..console import console
from ..document import Document
from ..env_schema import REQUIRED_SECRETS
from ..errors import ConfigureError
from ..errors import MissingRequiredSecretError
from ..layers import LayerLoader
from ..logging_setup import LOG_PATH_ENV
from ..logging_setup import init_logging
from ..paths import ContainerPaths
from ..providers import ProviderClassifier
from ..proxy import ProxyRoutingConfig
from ..proxy import ProxySettings
from ..proxy import caddy_hash_password
from ..proxy import derive_routes
from ..proxy import render_caddyfile
from ..proxy import write_routes
from ..synthesizer import default_document
from ..synthesizer import synthesize
from ..ui.error_display import display_configure_error
from ..ui.log_filter import SecretRedactionFilter
from ..utils.error_format import escape_markup
from ..utils.error_format import format_error_message

logger = logging.getLogger(__name__)


@dataclass
class ConfigureOutcome:
    """What a configure pass produced."""

    config: Document
    routing: ProxyRoutingConfig
    caddyfile: str
    eligible_providers: list[str]
    primary_model: str | None
    doctor_ok: bool | None = None


def check_required_secrets(environ: Mapping[str, str]) -> None:
    """Raise MissingRequiredSecretError for the first unset required secret."""
    for name in REQUIRED_SECRETS:
        if not (environ.get(name) or "").strip():
            raise MissingRequiredSecretError(name)


def run_configure(
    paths: ContainerPaths,
    environ: Mapping[str, str],
    *,
    fix_channels: bool = False,
    dry_run: bool = False,
) -> ConfigureOutcome:
    """Run one configure pass: load, synthesize, persist, derive routes.

    Nothing is written until every step that can fail on input has passed,
    except the runtime document, which is durable before the doctor runs.

    Raises:
        ConfigureError: Any input problem; nothing further is written
    """
    check_required_secrets(environ)

    classifier = ProviderClassifier(environ)
    store = ConfigStore(paths.config_file)
    layers = LayerLoader(paths.custom_config, store, environ, classifier).load()
    result = synthesize(layers, classifier, defaults=default_document(paths.workspace_dir))

    routing = derive_routes(result.config)
    # Proxy settings must be valid before anything is written
    settings = ProxySettings.from_runtime(result.config, environ, hasher=caddy_hash_password)
    caddyfile = render_caddyfile(routing, settings)

    outcome = ConfigureOutcome(
        config=result.config,
        routing=routing,
        caddyfile=caddyfile,
        eligible_providers=list(result.providers.eligible),
        primary_model=result.providers.primary_model,
    )

    if dry_run:
        logger.info("Dry run: nothing written")
        return outcome

    store.write(result.config)
    if fix_channels:
        outcome.doctor_ok = run_doctor_fix(paths.agent_binary)
    write_routes(paths.routes_file, caddyfile)
    return outcome


def _print_summary(outcome: ConfigureOutcome, paths: ContainerPaths, dry_run: bool) -> None:
    if dry_run:
        console.print("[yellow]Dry run:[/yellow] no files written")
    else:
        console.print(f"[green]✓[/green] Runtime config written to {escape_markup(paths.config_file)}")
        console.print(f"[green]✓[/green] Proxy routes written to {escape_markup(paths.routes_file)}")

    console.print(f"[bold]Providers:[/bold] {', '.join(outcome.eligible_providers)}")
    if outcome.primary_model:
        console.print(f"[bold]Primary model:[/bold] {escape_markup(outcome.primary_model)}")

    bypass = outcome.routing.bypass_rules
    if bypass:
        console.print(f"[bold]Auth bypass:[/bold] {', '.join(rule.caddy_paths()[0] for rule in bypass)}")
    else:
        console.print("[bold]Auth bypass:[/bold] [dim]none[/dim]")

    if outcome.doctor_ok is False:
        console.print("[yellow]⚠ doctor --fix did not complete; see the configure log[/yellow]")


@click.command("configure")
@click.option("--fix-channels", is_flag=True, help="Run 'openclaw doctor --fix' after writing the config")
@click.option("--dry-run", is_flag=True, help="Synthesize and print the result without writing files")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging and tracebacks on error")
def configure_cmd(fix_channels: bool, dry_run: bool, verbose: bool):
    """Synthesize the runtime config and proxy routes from all layers.

    Reads the custom document, the persisted runtime document and the
    environment, writes the merged runtime document and the Caddy routes
    snippet. Exits 1 on any configuration error.
    """
    environ = dict(os.environ)
    paths = ContainerPaths.from_environ(environ)
    init_logging(
        path=environ.get(LOG_PATH_ENV) or paths.log_file,
        level="DEBUG" if verbose else None,
        environ=environ,
    )

    try:
        outcome = run_configure(paths, environ, fix_channels=fix_channels, dry_run=dry_run)
    except ConfigureError as e:
        logger.error(str(e))
        display_configure_error(console, e, verbose=verbose)
        sys.exit(1)
    except OSError as e:
        logger.error(format_error_message(e))
        console.print(f"[red]Error:[/red] {escape_markup(format_error_message(e))}")
        if verbose:
            console.print_exception()
        sys.exit(1)

    if dry_run:
        redaction = SecretRedactionFilter(environ, document=outcome.config)
        console.print_json(redaction.redact(json.dumps(outcome.config)))
        console.print(redaction.redact(outcome.caddyfile), markup=False, highlight=False)

    _print_summary(outcome, paths, dry_run)


__all__ = ["configure_cmd", "run_configure", "check_required_secrets", "ConfigureOutcome"]
