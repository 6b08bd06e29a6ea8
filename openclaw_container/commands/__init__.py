"""CLI commands for openclaw-container."""

__all__ = [
    "configure",
    "env",
    "routes",
]
