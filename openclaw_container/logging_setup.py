"""
Logging bootstrap for the configure pass.
Installs a JSONL file sink and a stderr console handler, both behind the
secret redaction filter.
"""

import json
import logging
import os
import sys
from collections.abc import Mapping
from datetime import UTC
from datetime import datetime
from pathlib import Path

from .ui.log_filter import SecretRedactionFilter

LOG_PATH_ENV = "OPENCLAW_CONFIGURE_LOG_PATH"
LOG_LEVEL_ENV = "OPENCLAW_CONFIGURE_LOG_LEVEL"
DEFAULT_LEVEL = "INFO"

CONSOLE_FORMAT = "[configure] %(levelname)s %(message)s"

_RESERVED_ATTRS = frozenset(
    {
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "name",
        "message",
    }
)


class JsonlHandler(logging.Handler):
    def __init__(self, path: str | Path):
        super().__init__()
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            # Build a structured payload
            base = {
                "ts": datetime.now(UTC).isoformat(timespec="milliseconds"),
                "lvl": record.levelname,
                "schema": {"name": "openclaw.configure.log", "ver": "1.0.0"},
                "logger": record.name,
                "event": getattr(record, "event", None),
                "message": record.getMessage(),
            }
            # Attach any extra fields on the record
            for k, v in record.__dict__.items():
                if k in _RESERVED_ATTRS:
                    continue
                base.setdefault(k, v)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(base, ensure_ascii=False, default=str) + "\n")
        except Exception:
            self.handleError(record)


def init_logging(
    path: str | Path | None = None,
    level: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> None:
    """Configure the root logger for a configure pass.

    Args:
        path: JSONL log file; falls back to OPENCLAW_CONFIGURE_LOG_PATH, then no file sink
        level: Log level name; falls back to OPENCLAW_CONFIGURE_LOG_LEVEL, then INFO
        environ: Environment whose secret values are redacted (default ``os.environ``)
    """
    env = os.environ if environ is None else environ
    path = path or env.get(LOG_PATH_ENV)
    level = (level or env.get(LOG_LEVEL_ENV) or DEFAULT_LEVEL).upper()

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))

    # Remove handlers from a previous init to avoid duplicates
    for h in list(root.handlers):
        if getattr(h, "_openclaw_configure", False):
            root.removeHandler(h)

    redaction = SecretRedactionFilter(env)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    handlers: list[logging.Handler] = [console]
    if path:
        handlers.append(JsonlHandler(path))

    for handler in handlers:
        handler.addFilter(redaction)
        handler._openclaw_configure = True  # type: ignore[attr-defined]
        root.addHandler(handler)
