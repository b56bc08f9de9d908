"""Update drivers: apply resolver results to plugins.txt and pom.xml files."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple, Union

from errors import ManifestError
from changelist.format import is_incremental
from descriptor.editor import DEPENDENCY_PATHS, Edit, SetDependencyVersion, SetProperty, apply_edits, find, parse
from manifest.plugins_txt import PluginRefList
from versioning.models import ArtifactCoordinate
from versioning.resolver import VersionResolver

logger = logging.getLogger(__name__)

_PROPERTY_REF = re.compile(r"\$\{([^}]+)\}")


@dataclass(frozen=True)
class Update:
    """One version change made by a driver."""
    target: str
    old_version: str
    new_version: str


def _is_snapshot(version: str) -> bool:
    return version.endswith("-SNAPSHOT")


def update_plugins_txt(path: Union[str, Path], resolver: VersionResolver, branch: str,
                       update_nonincremental: bool = False) -> List[Update]:
    """Update the incremental entries of a plugins.txt file in place.

    Raises:
        ManifestError: If the file is missing or malformed.
        ResolutionError: If a lookup fails.
    """
    path = Path(path)
    if not path.exists():
        raise ManifestError(f"File does not exist: {path}")
    if not path.is_file():
        raise ManifestError(f"Path is not a file: {path}")
    plugins = PluginRefList.from_file(path)

    updates = []
    for dep in plugins:
        if dep.is_comment:
            continue
        if not update_nonincremental and not dep.incrementals:
            logger.info("Skipping non-incrementals dependency: %s", dep)
            continue
        version = dep.version
        if version is None:
            logger.info("Skipping plugin without version definition: %s", dep)
            continue
        if _is_snapshot(version):
            logger.info("Skipping plugin with snapshot version: %s", dep)
            continue
        if not update_nonincremental and not is_incremental(version):
            logger.debug("Skipping plugin with non-incremental version %s", dep)
            continue
        if dep.group_id is None:
            raise ManifestError(f"No group ID for the dependency: {dep}")

        result = resolver.find(ArtifactCoordinate(dep.group_id, dep.artifact_id), version, dep.branch or branch)
        if result is None:
            logger.info("No update found for %s", dep)
            continue
        logger.info("Can update dependency %s to %s", dep, result.version)
        dep.version = str(result.version)
        updates.append(Update(str(ArtifactCoordinate(dep.group_id, dep.artifact_id)), version, dep.version))

    plugins.write_to_file(path)
    logger.info("Updated plugins.txt: %s", path)
    return updates


def update_pom(path: Union[str, Path], resolver: VersionResolver, branch: str,
               update_nonincremental: bool = True) -> List[Update]:
    """Update dependency versions and version properties of a pom.xml in place.

    Dependencies with a literal version are updated directly. A property is
    updated when it is the whole version of dependencies on exactly one
    coordinate.
    """
    path = Path(path)
    document = path.read_text(encoding="utf-8")
    root = parse(document)
    properties = {}
    for props in find(root, "/project/properties"):
        for child in props.children:
            properties[child.name] = child.text(document).strip()

    literal: List[Tuple[ArtifactCoordinate, str]] = []
    by_property: Dict[str, Set[ArtifactCoordinate]] = {}
    for dep_path in DEPENDENCY_PATHS:
        for dep in find(root, dep_path):
            fields = [dep.child(n) for n in ("groupId", "artifactId", "version")]
            if any(f is None for f in fields):
                continue
            group, artifact, version = (f.text(document).strip() for f in fields)
            coordinate = ArtifactCoordinate(group, artifact)
            m = _PROPERTY_REF.fullmatch(version)
            if m:
                by_property.setdefault(m.group(1), set()).add(coordinate)
            elif "${" not in version and (coordinate, version) not in literal:
                literal.append((coordinate, version))

    edits: List[Edit] = []
    updates: List[Update] = []
    for coordinate, version in literal:
        new_version = _check(resolver, coordinate, version, branch, update_nonincremental, str(coordinate))
        if new_version is not None:
            edits.append(SetDependencyVersion(coordinate.group_id, coordinate.artifact_id, new_version, version))
            updates.append(Update(str(coordinate), version, new_version))

    for name, coordinates in sorted(by_property.items()):
        version = properties.get(name)
        if version is None:
            continue
        if len(coordinates) > 1:
            logger.info("Skipping update of ${%s} because it is used in %s",
                        name, " and ".join(sorted(str(c) for c in coordinates)))
            continue
        coordinate = next(iter(coordinates))
        new_version = _check(resolver, coordinate, version, branch, update_nonincremental, f"${{{name}}}")
        if new_version is not None:
            edits.append(SetProperty(name, new_version))
            updates.append(Update(f"${{{name}}}", version, new_version))

    if edits:
        path.write_text(apply_edits(document, edits), encoding="utf-8")
    return updates


def _check(resolver: VersionResolver, coordinate: ArtifactCoordinate, version: str, branch: str,
           update_nonincremental: bool, label: str) -> Optional[str]:
    if _is_snapshot(version):
        logger.info("Skipping snapshot dep %s:%s", label, version)
        return None
    if not update_nonincremental and not is_incremental(version):
        logger.debug("Skipping nonincremental %s=%s", label, version)
        return None
    result = resolver.find(coordinate, version, branch)
    if result is None:
        logger.info("No update found for %s:%s", coordinate, version)
        return None
    logger.info("Can update %s to %s", label, result.version)
    return str(result.version)
