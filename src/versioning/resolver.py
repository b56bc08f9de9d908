"""Looks for updates (incremental or otherwise) to a specific artifact.

Candidates from every repository are examined newest first. The search
stops at the first version that is not newer than the current one, so the
number of remote calls is bounded by the number of newer candidates.
"""
from __future__ import annotations

import logging
import re
import threading
from typing import Iterable, List, Optional, Sequence

from constants import Constants
from errors import ResolutionCancelled, ResolutionError
from common.logging_utils import extra_context, is_debug_enabled, Timer
from registry.maven.metadata import MavenRepositoryClient, normalize_repository_url, scm_section
from repository.github import GitHubClient
from versioning.comparable import ComparableVersion
from versioning.models import ArtifactCoordinate, CommitReference, VersionCandidate

logger = logging.getLogger(__name__)

SCM_URL_PATTERN = re.compile(r"https?://github[.]com/([^/]+)/([^/]+?)([.]git)?(/.*)?")
COMMIT_HASH_PATTERN = re.compile(r"[a-f0-9]{40}")


def parse_commit_reference(scm_url: str, tag: str, artifact_id: str, descriptor_url: str) -> Optional[CommitReference]:
    """Map a descriptor's <scm> url and tag to a commit.

    Returns None when the tag is not a full commit hash, meaning the version
    was not produced by a commit-addressed build.

    Raises:
        ResolutionError: If the URL is not a recognized hosting-service URL.
    """
    m = SCM_URL_PATTERN.fullmatch(scm_url)
    if not m:
        raise ResolutionError(
            f"Unexpected /project/scm/url {scm_url} in {descriptor_url}; "
            "expecting https://github.com/owner/repo format"
        )
    if not COMMIT_HASH_PATTERN.fullmatch(tag):
        return None
    repo = m.group(2).replace("${project.artifactId}", artifact_id)
    return CommitReference(owner=m.group(1), repo=repo, full_hash=tag)


class VersionResolver:
    """Finds the newest version of an artifact that is safe to adopt from a branch.

    Args:
        metadata_client: Reads version listings and descriptors.
        ancestry_client: Answers whether a commit is within a branch.
        repositories: Default repository URLs searched by ``find``.
    """

    def __init__(self,
                 metadata_client: Optional[MavenRepositoryClient] = None,
                 ancestry_client: Optional[GitHubClient] = None,
                 repositories: Optional[Sequence[str]] = None):
        self.metadata_client = metadata_client or MavenRepositoryClient()
        self.ancestry_client = ancestry_client or GitHubClient()
        self.repositories = list(repositories or Constants.DEFAULT_REPOSITORIES)

    def find(self,
             coordinate: ArtifactCoordinate,
             current_version: str,
             branch: str,
             repositories: Optional[Iterable[str]] = None,
             cancel: Optional[threading.Event] = None) -> Optional[VersionCandidate]:
        """Return the best newer version within ``branch``, or None.

        Args:
            coordinate: Artifact family to search.
            current_version: Version currently in use.
            branch: Branch name, or ``forker:branch`` to search in forked PRs.
            repositories: Repository URLs; defaults to the resolver's list.
            cancel: Checked before each candidate; when set the lookup aborts.

        Raises:
            ResolutionError: On malformed metadata or descriptors, or transport failures.
            ResolutionCancelled: When ``cancel`` was set mid-search.
        """
        current = ComparableVersion(current_version)
        logger.info("Searching for updates to %s:%s within %s", coordinate, current, branch)
        with Timer() as t:
            candidates = self.load_candidates(coordinate, repositories or self.repositories)
            result = self._search(coordinate, current, branch, candidates, cancel)
        if is_debug_enabled(logger):
            logger.debug(
                "Search finished",
                extra=extra_context(
                    event="function_exit",
                    component="resolver",
                    action="find",
                    outcome="found" if result else "none",
                    count=len(candidates),
                    duration_ms=t.duration_ms()
                )
            )
        return result

    def load_candidates(self, coordinate: ArtifactCoordinate, repositories: Iterable[str]) -> List[VersionCandidate]:
        """Look for all known versions of an artifact, sorted by version descending.

        A version listed by several repositories is attributed to the first one.
        """
        found = {}
        for repository in repositories:
            repository = normalize_repository_url(repository)
            versions = self.metadata_client.list_versions(coordinate, repository)
            if versions is None:
                continue  # not even defined in this repo, fine
            for text in sorted(versions):
                candidate = VersionCandidate(coordinate, ComparableVersion(text), repository)
                found.setdefault(candidate.version, candidate)
        return sorted(found.values())

    def _search(self, coordinate, current, branch, candidates, cancel) -> Optional[VersionCandidate]:
        if not candidates:
            logger.info("Found no candidates")
            return None
        logger.info("Found %d candidates from %s down to %s", len(candidates), candidates[0], candidates[-1])
        for candidate in candidates:
            if cancel is not None and cancel.is_set():
                raise ResolutionCancelled(f"Search for updates to {coordinate} was cancelled")
            if candidate.version <= current:
                logger.info("Stopping search at %s since it is no newer than %s", candidate, current)
                return None
            logger.info("Considering %s", candidate)
            commit = self.load_commit(candidate)
            if commit is None:
                logger.info("Does not seem to be an incremental release, so accepting")
                return candidate
            logger.info("Mapped to: %s", commit)
            if self.is_ancestor(commit, branch):
                logger.info("Seems to be within %s, so accepting", branch)
                return candidate
            logger.info("Does not seem to be within %s", branch)
        return None

    def load_commit(self, candidate: VersionCandidate) -> Optional[CommitReference]:
        """Parse /project/scm/url and /project/scm/tag out of a descriptor, if mapped to a commit."""
        url = candidate.full_url("pom")
        document = self.metadata_client.read_descriptor(candidate, "pom")
        scm = scm_section(document, url)
        if scm is None:
            return None
        scm_url, tag = scm
        return parse_commit_reference(scm_url, tag, candidate.coordinate.artifact_id, url)

    def is_ancestor(self, commit: CommitReference, branch: str) -> bool:
        """Whether a commit is an ancestor of (or equal to) a branch head.

        A branch missing from the repository counts as "not an ancestor".
        """
        status = self.ancestry_client.compare(commit.owner, commit.repo, commit.full_hash, branch)
        if status is None:
            logger.info("%s not found in %s/%s", branch, commit.owner, commit.repo)
            return False
        return status.is_ancestor
