"""Formatting of the release suffix derived from a revision."""
from __future__ import annotations

import re
from typing import Mapping, Optional

from constants import Constants

# A hex digit "a" or "b" directly followed by a digit is parsed by Maven as
# the "alpha"/"beta" qualifier, so each gets a separator appended.
_QUALIFIER_LETTER = re.compile(r"([ab])(?!_)")
_TRAILING_SEPARATOR = re.compile(r"_$")
_INCREMENTAL_VERSION = re.compile(r".+-rc[0-9]+[.][0-9a-f_]{12,}")


def sanitize(abbreviated_hash: str) -> str:
    """Make an abbreviated hash safe to embed in a Maven version.

    ``852b473a2b8c`` becomes ``852b_473a_2b_8c`` and ``852b473a2bcb`` becomes
    ``852b_473a_2b_cb``; a separator is never left at the end. Already
    sanitized input is returned unchanged.
    """
    return _TRAILING_SEPARATOR.sub("", _QUALIFIER_LETTER.sub(r"\1_", abbreviated_hash))


def format_changelist(count: int, abbreviated_hash: str, fmt: Optional[str] = None) -> str:
    """Render the ``changelist`` property, e.g. ``-rc1234.852b_473a_2b_8c``."""
    return (fmt or Constants.CHANGELIST_FORMAT) % (count, sanitize(abbreviated_hash))


def is_incremental(version: str) -> bool:
    """Whether a version looks like ``1.23-rc1234.abc123def456``."""
    return bool(_INCREMENTAL_VERSION.fullmatch(version))


def derive_github_repo(env: Mapping[str, str]) -> Optional[str]:
    """Work out the ``owner/repo`` a pull request build comes from.

    Uses CHANGE_FORK as set by multibranch CI for forked pull requests; when it
    holds only the owner, the repository name is taken from JOB_NAME
    (``Plugins/build-token-root-plugin/PR-21``).
    """
    change_fork = env.get(Constants.ENV_CHANGE_FORK)
    if change_fork is None:
        return None
    if "/" in change_fork:
        return change_fork
    job_name = env.get(Constants.ENV_JOB_NAME)
    if job_name is None:
        return None
    pieces = job_name.split("/")
    if len(pieces) < 2:
        return None
    return f"{change_fork}/{pieces[-2]}"
