"""openclaw-container CLI entry point."""

import click

from .commands.configure import configure_cmd
from .commands.env import env_cmd
from .commands.routes import routes_cmd


@click.group(invoke_without_command=True)
@click.version_option(package_name="openclaw-container")
@click.pass_context
def cli(ctx):
    """Configure the OpenClaw agent container from env vars and config documents."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


cli.add_command(configure_cmd)
cli.add_command(env_cmd)
cli.add_command(routes_cmd)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
