"""Clean error display for configure-pass failures."""

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from ..errors import ConfigParseError
from ..errors import ConfigureError
from ..errors import ConfigValueError
from ..errors import MissingRequiredSecretError
from ..errors import NoProviderConfiguredError
from ..errors import ProviderConfigError
from ..errors import ProxyConfigError
from ..utils.error_format import escape_markup

_TITLES: dict[type, str] = {
    ConfigParseError: "Config Document Unreadable",
    ConfigValueError: "Invalid Environment Variable",
    ProviderConfigError: "Incomplete Provider",
    NoProviderConfiguredError: "No AI Provider",
    MissingRequiredSecretError: "Missing Secret",
    ProxyConfigError: "Proxy Configuration Failed",
}


def _get_actionable_tip(error: ConfigureError) -> str:
    """Generate an actionable tip based on the error."""
    if isinstance(error, ConfigParseError):
        return f"Fix or remove {error.path}; the container will not start with a malformed document."

    if isinstance(error, ConfigValueError):
        return f"Correct or unset {error.variable}. Run 'openclaw-container env' for accepted values."

    if isinstance(error, ProviderConfigError):
        if error.variable:
            return f"Set {error.variable}, or unset the provider's API key to disable it."
        return f"Complete models.providers.{error.provider} in the custom config (api, baseUrl, models)."

    if isinstance(error, NoProviderConfiguredError):
        return "Provider API keys are only read from the environment. Set at least one provider key."

    if isinstance(error, MissingRequiredSecretError):
        return f"Set {error.variable} in the container environment."

    if isinstance(error, ProxyConfigError):
        return "Check that caddy is installed and the auth values contain no whitespace or quotes."

    return "Review the configure log for details."


def display_configure_error(console: Console, error: Exception, verbose: bool = False) -> bool:
    """Display a ConfigureError with clean Rich formatting.

    Args:
        console: Rich console for output
        error: The error to display
        verbose: If True, also print traceback

    Returns:
        True if error was handled as a ConfigureError, False if not (caller should handle)
    """
    if not isinstance(error, ConfigureError):
        return False

    title = next((t for exc_type, t in _TITLES.items() if isinstance(error, exc_type)), "Configure Failed")

    content = Text()
    content.append(str(error), style="white")

    console.print()
    console.print(
        Panel(
            content,
            title=f"[bold red]{title}[/bold red]",
            border_style="red",
            padding=(1, 2),
        )
    )

    console.print(f"[dim]Tip: {escape_markup(_get_actionable_tip(error))}[/dim]")
    console.print()

    # Verbose mode: show traceback
    if verbose:
        import sys

        console.print("[dim]─── Traceback ───[/dim]")
        if sys.exc_info()[0] is not None:
            console.print_exception()

    return True
