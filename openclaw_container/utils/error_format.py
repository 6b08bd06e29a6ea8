"""One-line messages for filesystem failures and Rich markup escaping."""

from __future__ import annotations

from rich.markup import escape as _escape_markup

# Volume problems the configure pass runs into, keyed by exception type
VOLUME_HINTS: dict[type, str] = {
    PermissionError: "check the state volume's ownership and mount mode",
    IsADirectoryError: "a directory is mounted where a file is expected",
    FileNotFoundError: "the parent directory is missing",
}


def format_error_message(e: BaseException) -> str:
    """Describe ``e`` in one non-empty line, naming the file for OS errors.

    >>> format_error_message(PermissionError(13, "Permission denied", "/x"))
    "PermissionError: Permission denied: /x (check the state volume's ownership and mount mode)"
    """
    name = type(e).__name__
    if isinstance(e, OSError) and e.strerror:
        message = f"{e.strerror}: {e.filename}" if e.filename else e.strerror
    else:
        message = str(e) or "(no additional details)"

    hint = next((h for exc_type, h in VOLUME_HINTS.items() if isinstance(e, exc_type)), None)
    if hint:
        message = f"{message} ({hint})"
    return f"{name}: {message}"


def escape_markup(value: object) -> str:
    """Escape a value for safe interpolation into Rich markup strings."""
    return _escape_markup(str(value))
