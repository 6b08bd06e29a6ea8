"""Log filter that masks secret values before records reach any handler.

Tokens, API keys and passwords arrive through the environment or the config
documents and flow into the runtime document, so any log line that echoes a
document value could leak one. This filter, attached to every handler,
replaces each known secret value with ``***``.
"""

import json
import logging
import re
from collections.abc import Iterator
from collections.abc import Mapping
from typing import Any

from ..env_schema import is_secret_variable

MASK = "***"

# Shorter values would mask unrelated text (e.g. "true", port numbers)
MIN_SECRET_LENGTH = 6

# Document keys holding credentials: apiKey, botToken, appToken, password, ...
SECRET_KEY_PATTERN = re.compile(r"(key|token|secret|password)$", re.IGNORECASE)


def document_secrets(document: Any) -> Iterator[str]:
    """Yield string values stored under secret-looking keys anywhere in ``document``."""
    if isinstance(document, dict):
        for key, value in document.items():
            if isinstance(value, str) and SECRET_KEY_PATTERN.search(str(key)):
                yield value
            else:
                yield from document_secrets(value)
    elif isinstance(document, list):
        for item in document:
            yield from document_secrets(item)


class SecretRedactionFilter(logging.Filter):
    """Replace known secret values in the formatted message.

    The record's ``msg`` is rewritten to the redacted text and ``args`` cleared,
    so every downstream handler sees the masked form.

    Each secret is also matched in its JSON-escaped form, so serialized
    documents are masked too.
    """

    def __init__(self, environ: Mapping[str, str], document: Any = None):
        super().__init__()
        values = [value for name, value in environ.items() if is_secret_variable(name) and value]
        if document is not None:
            values.extend(document_secrets(document))

        secrets: set[str] = set()
        for value in values:
            value = value.strip()
            if len(value) >= MIN_SECRET_LENGTH:
                secrets.add(value)
                secrets.add(json.dumps(value)[1:-1])
        # Longest first so a secret containing another is masked whole
        self._secrets = sorted(secrets, key=len, reverse=True)

    def redact(self, text: str) -> str:
        for secret in self._secrets:
            if secret in text:
                text = text.replace(secret, MASK)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        """Always let the record through, masked."""
        if not self._secrets:
            return True
        message = record.getMessage()
        redacted = self.redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True
