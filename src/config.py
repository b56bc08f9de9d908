"""Settings layered from built-in defaults, a YAML file and CLI flags.

Example ``incrementals.yml``::

    repositories:
      - https://repo.jenkins-ci.org/releases/
      - https://repo.jenkins-ci.org/incrementals/
    branch: master
    github_api: https://api.github.com
    timeout: 30
    changelist_format: "-rc%d.%s"
    ignore_dirt: false
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

import yaml

from constants import Constants
from errors import IncrementalsError

logger = logging.getLogger(__name__)


class ConfigError(IncrementalsError):
    """The configuration file could not be read."""


@dataclass(frozen=True)
class Settings:
    repositories: List[str] = field(default_factory=lambda: list(Constants.DEFAULT_REPOSITORIES))
    branch: str = Constants.DEFAULT_BRANCH
    github_api: str = Constants.GITHUB_API_BASE
    timeout: float = Constants.REQUEST_TIMEOUT
    changelist_format: str = Constants.CHANGELIST_FORMAT
    ignore_dirt: bool = False


_KEYS = {
    "repositories": list,
    "branch": str,
    "github_api": str,
    "timeout": (int, float),
    "changelist_format": str,
    "ignore_dirt": bool,
}


def _read_yaml(path: str) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Malformed config file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def find_config_file(locations: Optional[List[str]] = None) -> Optional[str]:
    """First existing file among the default config locations."""
    for location in locations if locations is not None else Constants.CONFIG_FILE_LOCATIONS:
        path = os.path.expanduser(location)
        if os.path.isfile(path):
            return path
    return None


def load_settings(config_path: Optional[str] = None, overrides: Optional[Dict[str, Any]] = None) -> Settings:
    """Build settings from defaults, then the config file, then ``overrides``.

    An explicit ``config_path`` must exist; otherwise the default locations
    are searched and a missing file means defaults only. Override values of
    None are ignored.
    """
    path = config_path
    if path is None:
        path = find_config_file()
    elif not os.path.isfile(path):
        raise ConfigError(f"Config file not found: {path}")

    values: Dict[str, Any] = {}
    if path is not None:
        data = _read_yaml(path)
        for key, value in data.items():
            expected = _KEYS.get(key)
            if expected is None:
                logger.warning("Ignoring unknown config key %r in %s", key, path)
                continue
            if not isinstance(value, expected):
                raise ConfigError(f"Config key {key!r} in {path} has the wrong type")
            values[key] = value
        logger.debug("Loaded config from %s", path)

    for key, value in (overrides or {}).items():
        if value is not None:
            values[key] = value

    if "repositories" in values:
        values["repositories"] = [str(r) for r in values["repositories"]]
    return replace(Settings(), **values)
