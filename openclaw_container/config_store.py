"""
Persisted runtime config management.

Manages the runtime document on the state volume with atomic writes and a
backup of the previous file. The store is the only process-wide state shared
between runs: read once at the start of a configure pass, rewritten once at
the end.
"""

import contextlib
import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any

from .errors import ConfigParseError

logger = logging.getLogger(__name__)

CONFIG_FILE_MODE = 0o600


class ConfigStore:
    """
    File-backed store for the persisted/runtime config document.

    Contract:
    - Inputs: path to the JSON document
    - Outputs: parsed document (empty when the file is absent)
    - Side Effects: writes <path> and <path>.backup
    - Errors: ConfigParseError for malformed files, OSError for disk issues
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    @property
    def backup_path(self) -> Path:
        return self.path.with_name(self.path.name + ".backup")

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> dict[str, Any]:
        """Load the persisted document.

        Returns:
            Parsed document, or {} on first run (file absent)

        Raises:
            ConfigParseError: If the file exists but is not a JSON object
        """
        if not self.path.exists():
            logger.info(f"No persisted config at {self.path} (first run)")
            return {}

        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigParseError(self.path, str(e)) from e

        if not text.strip():
            return {}

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigParseError(self.path, f"invalid JSON at line {e.lineno} column {e.colno}: {e.msg}") from e

        if not isinstance(data, dict):
            raise ConfigParseError(self.path, f"top level must be an object, got {type(data).__name__}")

        logger.info(f"Loaded persisted config from {self.path}")
        return data

    def write(self, document: dict[str, Any]) -> None:
        """Write the document atomically, keeping a backup of the previous file.

        Args:
            document: Runtime document to persist

        Raises:
            OSError: If unable to write the file
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)

        # Create backup if file exists
        if self.path.exists():
            try:
                shutil.copy2(self.path, self.backup_path)
            except OSError as e:
                logger.warning(f"Failed to create backup: {e}")

        # Write to temp file first (atomic write pattern)
        with tempfile.NamedTemporaryFile(
            mode="w", dir=self.path.parent, prefix=".openclaw_", suffix=".tmp", delete=False, encoding="utf-8"
        ) as tmp_file:
            temp_path = Path(tmp_file.name)
            try:
                json.dump(document, tmp_file, indent=2, ensure_ascii=False)
                tmp_file.write("\n")
                tmp_file.flush()
                os.chmod(temp_path, CONFIG_FILE_MODE)

                # Atomic rename
                temp_path.replace(self.path)

            except Exception as e:
                # Clean up temp file on failure
                with contextlib.suppress(Exception):
                    temp_path.unlink()
                raise OSError(f"Failed to write config {self.path}: {e}") from e

        logger.info(f"Config written to {self.path}")
