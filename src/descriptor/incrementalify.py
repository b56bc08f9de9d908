"""Edit lists that switch a project to and from incremental versioning.

``incrementalify`` turns ``<version>1.23-SNAPSHOT</version>`` into
``${revision}${changelist}`` with the matching properties and makes the
<scm> section point at ``${gitHubRepo}`` and ``${scmTag}``.
``reincrementalify`` restores that form after a release tool has
replaced it with a literal version.

``incrementalify_project`` applies the POM edits and sets up ``.mvn/`` so
the build loads the changelist extension.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Union

from constants import Constants
from errors import DescriptorEditError, ManifestError, ResolutionError
from descriptor.editor import (
    Edit,
    PrependProperty,
    SetElementText,
    SetProperty,
    apply_edits,
    parse,
    property_names,
    read_text,
)
from versioning.comparable import ComparableVersion
from versioning.models import ArtifactCoordinate

logger = logging.getLogger(__name__)

INCREMENTAL_VERSION = "${revision}${changelist}"
MINIMUM_JENKINS_PARENT = "1.47"
MINIMUM_PLUGIN_PARENT = "3.10"
JENKINS_POM = "org.jenkins-ci:jenkins"
PLUGIN_POM = "org.jenkins-ci.plugins:plugin"
_MINIMUM_PARENTS = {JENKINS_POM: MINIMUM_JENKINS_PARENT, PLUGIN_POM: MINIMUM_PLUGIN_PARENT}

_SNAPSHOT = re.compile(r"(.+)-SNAPSHOT")
_REPO_TEXT = re.compile(r"(.+[:/])((?:[^/]+)/(?:[^/]+?))((?:[.]git)?)")

EXTENSION_COORDINATE = ArtifactCoordinate(Constants.EXTENSION_GROUP_ID, Constants.EXTENSION_ARTIFACT_ID)
EXTENSIONS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<extensions xmlns="http://maven.apache.org/EXTENSIONS/1.0.0" xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" xsi:schemaLocation="http://maven.apache.org/EXTENSIONS/1.0.0 http://maven.apache.org/xsd/core-extensions-1.0.0.xsd">
  <extension>
    <groupId>{group_id}</groupId>
    <artifactId>{artifact_id}</artifactId>
    <version>{version}</version>
  </extension>
</extensions>
"""


@dataclass(frozen=True)
class ReplaceGitHubRepo:
    interpolable_text: str
    github_repo: str


def replace_github_repo(text: str) -> ReplaceGitHubRepo:
    """Split an SCM URL into its ``owner/repo`` part and a ``${gitHubRepo}`` template."""
    m = _REPO_TEXT.fullmatch(text)
    if not m:
        raise DescriptorEditError(f"{text} did not match {_REPO_TEXT.pattern}")
    return ReplaceGitHubRepo(m.group(1) + "${gitHubRepo}" + m.group(3), m.group(2))


def _snapshot_base(version: str) -> str:
    m = _SNAPSHOT.fullmatch(version or "")
    if not m:
        raise DescriptorEditError(f"Unexpected version: {version}")
    return m.group(1)


def incrementalify_edits(document: str) -> List[Edit]:
    """Edits that set a ``X-SNAPSHOT`` project up for incrementals."""
    root = parse(document)
    revision = _snapshot_base(read_text(root, document, "/project/version"))

    tag = read_text(root, document, "/project/scm/tag")
    if tag != "HEAD":
        raise DescriptorEditError(f"Unexpected tag: {tag}")

    group = read_text(root, document, "/project/parent/groupId")
    artifact = read_text(root, document, "/project/parent/artifactId")
    parent_version = read_text(root, document, "/project/parent/version")
    if group is None or artifact is None or parent_version is None:
        raise DescriptorEditError("No <parent> found")
    minimum = _MINIMUM_PARENTS.get(f"{group}:{artifact}")
    if minimum is None:
        raise DescriptorEditError(f"Unexpected <parent> {group}:{artifact}:{parent_version}")

    scm = {name: read_text(root, document, f"/project/scm/{name}")
           for name in ("connection", "developerConnection", "url")}
    if any(value is None for value in scm.values()):
        raise DescriptorEditError("<scm> must contain all of connection, developerConnection, and url")
    replaced = {name: replace_github_repo(value) for name, value in scm.items()}
    repos = {r.github_repo for r in replaced.values()}
    if len(repos) != 1:
        raise DescriptorEditError(
            "Mismatch among gitHubRepo parts of <scm>: "
            + " vs. ".join(replaced[name].github_repo for name in ("connection", "developerConnection", "url"))
        )

    edits: List[Edit] = [SetElementText("/project/version", INCREMENTAL_VERSION)]
    if ComparableVersion(parent_version) < ComparableVersion(minimum):
        edits.append(SetElementText("/project/parent/version", minimum))
    edits += [
        PrependProperty("gitHubRepo", repos.pop()),
        PrependProperty("changelist", "-SNAPSHOT"),
        PrependProperty("revision", revision),
        SetElementText("/project/scm/tag", "${scmTag}"),
    ]
    edits += [SetElementText(f"/project/scm/{name}", r.interpolable_text) for name, r in replaced.items()]
    return edits


def reincrementalify_edits(document: str) -> List[Edit]:
    """Edits that switch a released project back to ``${revision}${changelist}``."""
    root = parse(document)
    names = property_names(root)
    if "revision" not in names or "changelist" not in names:
        raise DescriptorEditError(
            "Cannot use reincrementalify before incrementals is enabled; use incrementalify first"
        )
    revision = _snapshot_base(read_text(root, document, "/project/version"))
    return [
        SetElementText("/project/version", INCREMENTAL_VERSION),
        SetProperty("revision", revision),
    ]


def newest_extension_version(metadata_client, repositories: Iterable[str]) -> str:
    """Newest released version of the changelist extension across repositories.

    Raises:
        ResolutionError: If no repository lists a released version.
    """
    versions = set()
    for repository in repositories:
        listed = metadata_client.list_versions(EXTENSION_COORDINATE, repository)
        if listed:
            versions.update(v for v in listed if not v.endswith("-SNAPSHOT"))
    if not versions:
        raise ResolutionError(f"No released version of {EXTENSION_COORDINATE} found")
    return str(max(ComparableVersion(v) for v in versions))


def incrementalify_project(pom_path: Union[str, Path], metadata_client, repositories: Iterable[str]) -> None:
    """Switch the project owning ``pom_path`` to incrementals.

    Rewrites the POM, prepends the incrementals profiles to
    ``.mvn/maven.config`` and writes ``.mvn/extensions.xml`` naming the
    newest changelist extension.

    Raises:
        DescriptorEditError: If the POM cannot be converted or
            ``.mvn/extensions.xml`` already exists.
        ManifestError: If the POM cannot be read.
        ResolutionError: If the extension version cannot be looked up.
    """
    pom_path = Path(pom_path)
    dot_mvn = pom_path.parent / Constants.DOT_MVN_DIR
    extensions_xml = dot_mvn / Constants.EXTENSIONS_XML_FILE
    if extensions_xml.is_file():
        raise DescriptorEditError(f"Editing an existing {extensions_xml} is not yet supported")
    try:
        document = pom_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"Cannot read {pom_path}: {e}") from e

    version = newest_extension_version(metadata_client, repositories)
    updated = apply_edits(document, incrementalify_edits(document))
    pom_path.write_text(updated, encoding="utf-8")
    logger.info("Updated %s", pom_path)

    maven_config = dot_mvn / Constants.MAVEN_CONFIG_FILE
    existing = maven_config.read_text(encoding="utf-8") if maven_config.is_file() else ""
    dot_mvn.mkdir(parents=True, exist_ok=True)
    profiles = "".join(f"-P{profile}\n" for profile in Constants.INCREMENTALS_PROFILES)
    maven_config.write_text(profiles + existing, encoding="utf-8")
    extensions_xml.write_text(
        EXTENSIONS_XML.format(group_id=EXTENSION_COORDINATE.group_id,
                              artifact_id=EXTENSION_COORDINATE.artifact_id,
                              version=version),
        encoding="utf-8",
    )
    logger.info("Configured %s with %s %s", dot_mvn, EXTENSION_COORDINATE, version)
