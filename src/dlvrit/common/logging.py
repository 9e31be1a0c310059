"""Structured JSON logging for the DLVRIT backend, with secret redaction."""

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Iterable

REDACTED = "***"

# MASV access tokens ride in the path of templated portal links
_UPLOAD_TOKEN_PATTERN = re.compile(r"(/upload/)[^/?#\s\"']+")

_TRACEBACK_FORMATTER = logging.Formatter()


class RedactingFilter(logging.Filter):
    """Scrub registered secrets and upload tokens from log records.

    The message is rendered once, scrubbed, and stored back on the record
    with ``args`` cleared, so every formatter downstream sees the safe text.
    """

    def __init__(self, secrets: Iterable[str] = ()):
        super().__init__()
        self._secrets = {s for s in secrets if s}

    def add_secret(self, value: str) -> None:
        if value:
            self._secrets.add(value)

    def redact(self, text: str) -> str:
        # Longest first so a secret containing another is fully masked
        for secret in sorted(self._secrets, key=len, reverse=True):
            text = text.replace(secret, REDACTED)
        return _UPLOAD_TOKEN_PATTERN.sub(rf"\g<1>{REDACTED}", text)

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self.redact(record.getMessage())
        record.args = None
        # Tracebacks are rendered here so formatters reuse the scrubbed exc_text
        if record.exc_info and not record.exc_text:
            record.exc_text = _TRACEBACK_FORMATTER.formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = self.redact(record.exc_text)
        if record.stack_info:
            record.stack_info = self.redact(record.stack_info)
        return True


class JSONFormatter(logging.Formatter):
    """Format log records as JSON lines."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_text:
            log_entry["exception"] = record.exc_text
        elif record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def setup_logging(level: str = "INFO", secrets: Iterable[str] = ()) -> RedactingFilter:
    """Configure structured, redacted logging for the application."""
    redactor = RedactingFilter(secrets)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(redactor)

    root = logging.getLogger("dlvrit")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.propagate = False
    return redactor
