"""Terminal display and log presentation helpers."""

from .error_display import display_configure_error
from .log_filter import SecretRedactionFilter

__all__ = ["display_configure_error", "SecretRedactionFilter"]
