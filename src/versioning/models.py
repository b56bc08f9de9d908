"""Data models for version lookup and commit provenance."""

from dataclasses import dataclass, field
from enum import Enum

from versioning.comparable import ComparableVersion


class CompareStatus(Enum):
    """Status of a hosting-service comparison of a commit against a branch."""
    IDENTICAL = "identical"
    AHEAD = "ahead"
    BEHIND = "behind"
    DIVERGED = "diverged"

    @property
    def is_ancestor(self) -> bool:
        """True when the compared commit is reachable from (or equal to) the branch head."""
        return self in (CompareStatus.IDENTICAL, CompareStatus.AHEAD)


@dataclass(frozen=True)
class ArtifactCoordinate:
    """Identifies an artifact family across versions."""
    group_id: str
    artifact_id: str

    @property
    def path(self) -> str:
        """Repository-relative directory, e.g. ``net/nowhere/lib``."""
        return f"{self.group_id.replace('.', '/')}/{self.artifact_id}"

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"


@dataclass(frozen=True)
class VersionCandidate:
    """A version found in one repository.

    Candidates sort by version descending; the repository is provenance only.
    """
    coordinate: ArtifactCoordinate
    version: ComparableVersion
    repository: str = field(compare=False)

    def __lt__(self, other: "VersionCandidate") -> bool:
        return other.version < self.version

    def base_url(self) -> str:
        """For example: ``https://repo/net/nowhere/lib/1.23/``."""
        return f"{self.repository}{self.coordinate.path}/{self.version}/"

    def full_url(self, artifact_type: str) -> str:
        """For example: ``https://repo/net/nowhere/lib/1.23/lib-1.23.pom``."""
        return f"{self.base_url()}{self.coordinate.artifact_id}-{self.version}.{artifact_type}"

    def __str__(self) -> str:
        return self.base_url()


@dataclass(frozen=True)
class CommitReference:
    """A commit on a remote hosting service, parsed from a descriptor's <scm> section."""
    owner: str
    repo: str
    full_hash: str

    @property
    def abbreviated_hash(self) -> str:
        return self.full_hash[:12]

    def __str__(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}/commit/{self.full_hash}"
