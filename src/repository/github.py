"""GitHub API client for commit ancestry checks.

Provides a lightweight REST client around the "compare two commits"
endpoint, which tells whether a commit is reachable from a branch head.
"""
from __future__ import annotations

import json
import logging
import os
from typing import Dict, Optional
from urllib.parse import quote

from constants import Constants
from errors import ResolutionError
from common.http_client import safe_get, STATUS_NOT_FOUND
from common.logging_utils import extra_context, is_debug_enabled
from versioning.models import CompareStatus

logger = logging.getLogger(__name__)


class GitHubClient:
    """Lightweight REST client for GitHub API operations.

    Supports optional authentication via GITHUB_TOKEN environment variable,
    which only raises the API rate limit.
    """

    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None,
                 timeout: Optional[float] = None):
        """Initialize GitHub client.

        Args:
            base_url: Base URL for GitHub API (defaults to Constants.GITHUB_API_BASE)
            token: GitHub access token (defaults to GITHUB_TOKEN env var)
            timeout: Request timeout in seconds (defaults to Constants.REQUEST_TIMEOUT)
        """
        self.base_url = (base_url or Constants.GITHUB_API_BASE).rstrip("/")
        self.token = token or os.environ.get(Constants.ENV_GITHUB_TOKEN)
        self.timeout = timeout

    def _get_headers(self) -> Dict[str, str]:
        """Get request headers including authorization if token is available."""
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def compare(self, owner: str, repo: str, base: str, head: str) -> Optional[CompareStatus]:
        """Compare a commit against a branch.

        Args:
            owner: Repository owner
            repo: Repository name
            base: Commit hash to check
            head: Branch name, or ``forker:branch`` for a branch in a fork

        Returns:
            The comparison status, or None when the repository or branch does not exist

        Raises:
            ResolutionError: On any other failure
        """
        url = (
            f"{self.base_url}/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"
            f"/compare/{quote(base, safe='')}...{quote(head, safe=':/')}"
        )
        res = safe_get(url, context="github", timeout=self.timeout, headers=self._get_headers())

        if res.status_code == STATUS_NOT_FOUND:
            if is_debug_enabled(logger):
                logger.debug(
                    "Comparison target not found",
                    extra=extra_context(
                        event="decision",
                        component="github",
                        action="compare",
                        outcome="not_found",
                        owner=owner,
                        repo=repo
                    )
                )
            return None
        if res.status_code != 200:
            raise ResolutionError(
                f"GitHub comparison of {base} with {head} in {owner}/{repo} failed: HTTP {res.status_code}"
            )

        try:
            status = json.loads(res.text).get("status")
            return CompareStatus(status)
        except (ValueError, AttributeError) as exc:
            raise ResolutionError(
                f"Unexpected GitHub comparison response for {owner}/{repo}: {exc}"
            ) from exc
