"""Git checkout access via subprocess calls to the git CLI.

Reads working-tree status and the commit graph reachable from HEAD. The
graph is loaded once; every walk over it starts with fresh traversal state,
so nested counting walks never interfere with an outer walk.
"""
from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Dict, Iterator, List, Sequence, Set, Union

from errors import GitError
from common.logging_utils import extra_context, is_debug_enabled, Timer

logger = logging.getLogger(__name__)

_FIELD_SEP = "\x1f"
_RECORD_FORMAT = _FIELD_SEP.join(["%H", "%P", "%ct", "%s"])


@dataclass(frozen=True)
class Commit:
    """One commit of the graph."""
    hash: str
    parents: tuple
    commit_time: int
    summary: str

    def abbreviate(self, length: int) -> str:
        return self.hash[:length]

    @property
    def commit_date(self) -> date:
        return datetime.fromtimestamp(self.commit_time).date()


@dataclass
class CheckoutStatus:
    """Working-tree status: paths with uncommitted changes and untracked paths."""
    uncommitted: Set[str] = field(default_factory=set)
    untracked: Set[str] = field(default_factory=set)

    @property
    def clean(self) -> bool:
        return not self.uncommitted and not self.untracked

    def dirty_paths(self) -> List[str]:
        return sorted(self.uncommitted | self.untracked)


class CommitGraph:
    """Commits reachable from a head, indexed by full hash."""

    def __init__(self, commits: Sequence[Commit]):
        self._commits: Dict[str, Commit] = {c.hash: c for c in commits}

    def __len__(self) -> int:
        return len(self._commits)

    def __contains__(self, commit_hash: str) -> bool:
        return commit_hash in self._commits

    def get(self, commit_hash: str) -> Commit:
        try:
            return self._commits[commit_hash]
        except KeyError:
            raise GitError(f"Commit {commit_hash} is not part of the loaded history") from None

    def walk(self, start: str) -> Iterator[Commit]:
        """Yield every commit reachable from ``start``, including it, once each."""
        seen = {start}
        pending = [start]
        while pending:
            commit = self.get(pending.pop())
            yield commit
            for parent in commit.parents:
                if parent not in seen and parent in self._commits:
                    seen.add(parent)
                    pending.append(parent)

    def reachable_count(self, start: str) -> int:
        """Number of commits reachable from ``start`` (inclusive), like ``git rev-list --count``."""
        return sum(1 for _ in self.walk(start))


class GitCheckout:
    """A git working tree, accessed through the git executable."""

    def __init__(self, directory: Union[str, Path], git: str = "git"):
        self.directory = Path(directory)
        self.git = git

    def _run(self, *args: str) -> str:
        cmd = [self.git, *args]
        try:
            result = subprocess.run(
                cmd,
                cwd=self.directory,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise GitError(f"Git operations failed: {exc}") from exc
        if result.returncode != 0:
            raise GitError(f"Git operations failed: git {' '.join(args)}: {result.stderr.strip()}")
        return result.stdout

    def status(self) -> CheckoutStatus:
        """Equivalent of ``git status --porcelain``, split into uncommitted and untracked paths."""
        out = self._run("status", "--porcelain=v1", "-z", "--untracked-files=all")
        status = CheckoutStatus()
        entries = out.split("\0")
        i = 0
        while i < len(entries):
            entry = entries[i]
            i += 1
            if len(entry) < 4:
                continue
            code, path = entry[:2], entry[3:]
            if code == "??":
                status.untracked.add(path)
            elif code != "!!":
                status.uncommitted.add(path)
                if code[0] in "RC":
                    # Renames and copies are followed by the source path.
                    i += 1
        return status

    def resolve_head(self) -> str:
        return self._run("rev-parse", "--verify", "HEAD^{commit}").strip()

    def load_graph(self, head: str) -> CommitGraph:
        """Read every commit reachable from ``head``."""
        with Timer() as t:
            out = self._run("-c", "log.showSignature=false", "log", "-z", f"--format={_RECORD_FORMAT}", head, "--")
            commits = []
            for record in out.split("\0"):
                record = record.strip("\n")
                if not record:
                    continue
                try:
                    commit_hash, parents, commit_time, summary = record.split(_FIELD_SEP, 3)
                    commits.append(Commit(
                        hash=commit_hash,
                        parents=tuple(parents.split()),
                        commit_time=int(commit_time),
                        summary=summary,
                    ))
                except ValueError as exc:
                    raise GitError(f"Unexpected git log record: {record[:80]!r}") from exc
        if is_debug_enabled(logger):
            logger.debug(
                "Loaded commit graph",
                extra=extra_context(
                    event="function_exit",
                    component="git",
                    action="load_graph",
                    count=len(commits),
                    duration_ms=t.duration_ms()
                )
            )
        return CommitGraph(commits)
