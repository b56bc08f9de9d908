"""Centralized logging helpers.

Provides the structured ``extra`` payload used by DEBUG traces, a small
duration timer, URL redaction, and the one-time root logger setup used by
the CLI entrypoint.
"""
from __future__ import annotations

import logging
import os
import re
import time
from typing import Any, Dict, Optional
from urllib.parse import urlsplit, urlunsplit

from constants import Constants

_SECRET_PATTERN = re.compile(r"(?i)(token|access_token|api_key|password)=([^&\s]+)")


def configure_logging(log_file: Optional[str] = None) -> None:
    """Configure the root logger from INCREMENTALS_LOG_LEVEL.

    Args:
        log_file: Optional path; when given, records go to that file instead of stderr.
    """
    level_name = os.environ.get(Constants.ENV_LOG_LEVEL, "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    if log_file:
        handler: logging.Handler = logging.FileHandler(log_file)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records from this logger would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build the ``extra`` mapping for a structured log record.

    None values are dropped so records only carry fields that were set.
    """
    return {key: value for key, value in fields.items() if value is not None}


def redact(text: str) -> str:
    """Mask secret-looking query parameters in free text."""
    return _SECRET_PATTERN.sub(r"\1=***", text)


def safe_url(url: str) -> str:
    """Strip credentials and secret query parameters from a URL for logging."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return redact(url)
    netloc = parts.hostname or ""
    if parts.port:
        netloc = f"{netloc}:{parts.port}"
    return urlunsplit((parts.scheme, netloc, parts.path, redact(parts.query), ""))


class Timer:
    """Context manager measuring elapsed wall-clock time."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Milliseconds elapsed so far, or in total once the block exited."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
