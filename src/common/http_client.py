"""Shared HTTP helpers used across registry and repository clients.

Encapsulates common request/timeout error handling so modules avoid
duplicating try/except blocks. This module is dependency-light and can be
safely imported by both registry/* and repository/* without cycles.

Timeouts and connection failures are raised as TransportError; callers
decide what a given status code means. Nothing here retries.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from constants import Constants
from errors import TransportError
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

STATUS_NOT_FOUND = 404


def safe_get(url: str, *, context: str, timeout: Optional[float] = None, **kwargs: Any) -> requests.Response:
    """Perform a GET request with consistent error handling and DEBUG traces.

    Args:
        url: Target URL.
        context: Human-readable source tag for logs (e.g., "maven", "github").
        timeout: Seconds before giving up; defaults to Constants.REQUEST_TIMEOUT.
        **kwargs: Passed through to requests.get.

    Returns:
        requests.Response: The HTTP response object, whatever its status.

    Raises:
        TransportError: On timeout or connection failure.
    """
    safe_target = safe_url(url)
    timeout = Constants.REQUEST_TIMEOUT if timeout is None else timeout
    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action="GET",
                    target=safe_target,
                    context=context
                )
            )
        try:
            res = requests.get(url, timeout=timeout, **kwargs)
        except requests.Timeout as exc:
            logger.error(
                "%s request timed out after %s seconds",
                context,
                timeout,
            )
            raise TransportError(f"{context} request to {safe_target} timed out after {timeout} seconds") from exc
        except requests.RequestException as exc:  # includes ConnectionError
            logger.error("%s connection error: %s", context, exc)
            raise TransportError(f"{context} request to {safe_target} failed: {exc}") from exc
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    outcome="success" if res.status_code == 200 else "handled_non_2xx",
                    status_code=res.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context
                )
            )
        return res
