"""Maven repository reader: version listings and project descriptors.

Fetches ``maven-metadata.xml`` and ``.pom`` documents straight from a
repository URL such as ``https://repo.jenkins-ci.org/incrementals/``.
"""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import List, Optional, Set, Tuple

from constants import Constants
from errors import ResolutionError
from common.http_client import safe_get, STATUS_NOT_FOUND
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from versioning.models import ArtifactCoordinate, VersionCandidate

logger = logging.getLogger(__name__)


def normalize_repository_url(url: str) -> str:
    """Ensure the repository URL ends with a slash so paths can be appended."""
    return url if url.endswith("/") else url + "/"


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def find_all(parent: ET.Element, name: str) -> List[ET.Element]:
    """All descendants with this local name, ignoring any XML namespace."""
    return [el for el in parent.iter() if el is not parent and _local_name(el.tag) == name]


def the_element(parent: ET.Element, name: str, url: str) -> ET.Element:
    """The single descendant called ``name``; anything else is malformed."""
    found = find_all(parent, name)
    if len(found) != 1:
        raise ResolutionError(f"Could not find <{name}> in {url}")
    return found[0]


def _parse(text: str, url: str) -> ET.Element:
    try:
        return ET.fromstring(text)
    except ET.ParseError as exc:
        raise ResolutionError(f"Malformed XML in {url}: {exc}") from exc


class MavenRepositoryClient:
    """Reads version listings and descriptors from Maven repositories."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    def metadata_url(self, coordinate: ArtifactCoordinate, repository: str) -> str:
        return f"{normalize_repository_url(repository)}{coordinate.path}/{Constants.MAVEN_METADATA_FILE}"

    def list_versions(self, coordinate: ArtifactCoordinate, repository: str) -> Optional[Set[str]]:
        """Return the versions a repository lists for a coordinate.

        Args:
            coordinate: Artifact family to look up.
            repository: Repository base URL.

        Returns:
            Set of version strings, or None when the repository does not know the artifact.

        Raises:
            ResolutionError: On any non-404 failure or malformed metadata.
        """
        url = self.metadata_url(coordinate, repository)
        res = safe_get(url, context="maven", timeout=self.timeout)
        if res.status_code == STATUS_NOT_FOUND:
            if is_debug_enabled(logger):
                logger.debug(
                    "Artifact not in repository",
                    extra=extra_context(
                        event="decision",
                        component="metadata",
                        action="list_versions",
                        outcome="not_found",
                        target=safe_url(url),
                        package_manager="maven"
                    )
                )
            return None
        if res.status_code != 200:
            raise ResolutionError(f"Failed to fetch {url}: HTTP {res.status_code}")

        root = _parse(res.text, url)
        versions_elem = the_element(root, "versions", url)
        versions = set()
        for item in find_all(versions_elem, "version"):
            if item.text and item.text.strip():
                versions.add(item.text.strip())
        return versions

    def read_descriptor(self, candidate: VersionCandidate, artifact_type: str = "pom") -> ET.Element:
        """Fetch and parse the descriptor document of a candidate version."""
        url = candidate.full_url(artifact_type)
        res = safe_get(url, context="maven", timeout=self.timeout)
        if res.status_code != 200:
            raise ResolutionError(f"Failed to fetch {url}: HTTP {res.status_code}")
        return _parse(res.text, url)


def scm_section(document: ET.Element, url: str) -> Optional[Tuple[str, str]]:
    """Extract ``(url, tag)`` from the single <scm> section of a descriptor.

    Returns None when the document has no <scm> section or more than one.
    """
    scms = find_all(document, "scm")
    if len(scms) != 1:
        return None
    scm = scms[0]
    scm_url = (the_element(scm, "url", url).text or "").strip()
    tag = (the_element(scm, "tag", url).text or "").strip()
    return scm_url, tag

