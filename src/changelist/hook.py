"""Build-lifecycle hook setting the ``changelist`` and ``scmTag`` properties.

With ``set.changelist=true`` this is equivalent to::

    -Dchangelist=-rc$(git rev-list --count HEAD).$(git rev-parse --short=12 HEAD)
    -DscmTag=$(git rev-parse HEAD)

and, for pull requests from forks, also sets ``gitHubRepo``.
"""
from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Iterable, Mapping, MutableMapping, Optional, Tuple, Union

from constants import Constants
from errors import ChangelistError
from changelist.format import derive_github_repo, format_changelist
from changelist.identifier import Revision, RevisionIdentifier
from descriptor.editor import find, parse, read_text
from extensions.registry import CapabilityRegistry

logger = logging.getLogger(__name__)

_PROPERTY_REF = re.compile(r"\$\{([^}]+)\}")


def _enabled(properties: Mapping[str, str], name: str) -> bool:
    return properties.get(name) == "true"


class ChangelistHook:
    """Computes build-wide version properties from the git checkout.

    Args:
        identifier: Computes the revision of a checkout.
        registry: When given, the hook publishes itself there so version
            rules can find it.
    """

    def __init__(self, identifier: Optional[RevisionIdentifier] = None,
                 registry: Optional[CapabilityRegistry] = None):
        self.identifier = identifier or RevisionIdentifier()
        if registry is not None:
            registry.register(Constants.EXTENSION_NAME, Constants.VERSION)

    def after_session_start(self, properties: MutableMapping[str, str],
                            directory: Union[str, Path],
                            env: Optional[Mapping[str, str]] = None) -> Optional[Revision]:
        """Set ``changelist``, ``scmTag`` and ``gitHubRepo`` in ``properties``.

        Returns the computed revision, or None when nothing was computed.
        """
        if not _enabled(properties, Constants.PROP_SET_CHANGELIST):
            logger.debug("Skipping Git version setting unless run with -D%s", Constants.PROP_SET_CHANGELIST)
            return None
        env = os.environ if env is None else env

        revision = None
        if Constants.PROP_CHANGELIST not in properties and Constants.PROP_SCM_TAG not in properties:
            revision = self.identifier.identify(
                directory, ignore_dirt=_enabled(properties, Constants.PROP_IGNORE_DIRT)
            )
            value = format_changelist(
                revision.count, revision.abbreviated_hash,
                properties.get(Constants.PROP_CHANGELIST_FORMAT),
            )
            logger.info("Setting: -D%s=%s -D%s=%s",
                        Constants.PROP_CHANGELIST, value, Constants.PROP_SCM_TAG, revision.full_hash)
            properties[Constants.PROP_CHANGELIST] = value
            properties[Constants.PROP_SCM_TAG] = revision.full_hash
        else:
            logger.info("Declining to override the `%s` or `%s` properties",
                        Constants.PROP_CHANGELIST, Constants.PROP_SCM_TAG)

        if Constants.PROP_GITHUB_REPO in properties:
            logger.info("Declining to override the `%s` property", Constants.PROP_GITHUB_REPO)
        else:
            github_repo = derive_github_repo(env)
            if github_repo is None:
                logger.info("No information available to set -D%s", Constants.PROP_GITHUB_REPO)
            else:
                logger.info("Setting: -D%s=%s", Constants.PROP_GITHUB_REPO, github_repo)
                properties[Constants.PROP_GITHUB_REPO] = github_repo
        return revision

    def after_projects_read(self, properties: Mapping[str, str],
                            projects: Iterable[Tuple[str, str]]) -> None:
        """Reject the build if a project version does not embed the changelist.

        Args:
            properties: Build properties after ``after_session_start``.
            projects: ``(project id, version)`` pairs.

        Raises:
            ChangelistError: Naming every project missing ``${changelist}``.
        """
        if not _enabled(properties, Constants.PROP_SET_CHANGELIST):
            return
        changelist = properties.get(Constants.PROP_CHANGELIST)
        if not changelist:
            raise ChangelistError(f"-D{Constants.PROP_SET_CHANGELIST} given but no changelist was computed")
        missing = [project_id for project_id, version in projects if changelist not in version]
        if missing:
            raise ChangelistError(
                f"{', '.join(missing)} does not seem to be including ${{changelist}} in its <version>"
            )


def read_project(pom_path: Union[str, Path], properties: Mapping[str, str]) -> Tuple[str, str]:
    """Return ``(artifactId, version)`` of a POM with ``${...}`` references resolved.

    Build ``properties`` take precedence over the POM's own <properties>.
    """
    document = Path(pom_path).read_text(encoding="utf-8")
    root = parse(document)
    values = {}
    for props in find(root, "/project/properties"):
        for child in props.children:
            values[child.name] = child.text(document).strip()
    values.update(properties)
    version = read_text(root, document, "/project/version") or read_text(root, document, "/project/parent/version")
    if version is None:
        raise ChangelistError(f"No <version> found in {pom_path}")
    version = _PROPERTY_REF.sub(lambda m: values.get(m.group(1), m.group(0)), version)
    return read_text(root, document, "/project/artifactId") or str(pom_path), version
