"""Computes the revision identifier of a checkout.

The identifier is the number of commits reachable from HEAD plus HEAD's
hash abbreviated to 12 characters, equivalent to::

    $(git rev-list --count HEAD).$(git rev-parse --short=12 HEAD)

A 12-character abbreviation is not unique, so every commit reachable from
HEAD is checked: two commits sharing an abbreviation AND a revision count
would produce the same identifier, which aborts the computation.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Union

from constants import Constants
from errors import ClashError, DirtyCheckoutError
from common.logging_utils import extra_context, is_debug_enabled, Timer
from changelist.git import Commit, CommitGraph, GitCheckout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Revision:
    """Identifier triple for the commit a build is made from."""
    full_hash: str
    abbreviated_hash: str
    count: int

    def __str__(self) -> str:
        return f"{self.count}.{self.abbreviated_hash}"


def summarize(commit: Commit) -> str:
    return f"{commit.hash} “{commit.summary}” {commit.commit_date.isoformat()}"


class ClashTable:
    """Commits seen so far, keyed by abbreviated hash.

    Only a shared abbreviation with an equal revision count is a clash;
    differing counts keep the identifiers distinct and are just logged.
    """

    def __init__(self, graph: CommitGraph, length: int = Constants.ABBREV_LENGTH):
        self.graph = graph
        self.length = length
        self.encountered: Dict[str, List[Commit]] = {}

    def observe(self, commit: Commit) -> None:
        abbreviated = commit.abbreviate(self.length)
        earlier = self.encountered.get(abbreviated)
        if earlier is None:
            self.encountered[abbreviated] = [commit]
            return
        this_count = self.graph.reachable_count(commit.hash)
        for other in earlier:
            other_count = self.graph.reachable_count(other.hash)
            if other_count == this_count:
                value = f"{this_count}.{abbreviated}"
                raise ClashError(
                    f"{summarize(commit)} clashes with {summarize(other)} as they would both be identified as {value}",
                    commit, other, value,
                )
            logger.info(
                "%s would clash with %s except they have differing revcounts: %d vs. %d",
                summarize(commit), summarize(other), this_count, other_count,
            )
        earlier.append(commit)


class RevisionIdentifier:
    """Identifies the HEAD commit of a checkout and verifies it is unambiguous."""

    def __init__(self, checkout_factory: Callable[[Path], GitCheckout] = GitCheckout,
                 abbrev_length: int = Constants.ABBREV_LENGTH):
        self.checkout_factory = checkout_factory
        self.abbrev_length = abbrev_length

    def identify(self, directory: Union[str, Path], ignore_dirt: bool = False) -> Revision:
        """Compute the revision of ``directory``.

        Args:
            directory: Root of the git checkout.
            ignore_dirt: Only warn about uncommitted or untracked files.

        Raises:
            DirtyCheckoutError: If the checkout is not clean and dirt is not ignored.
            ClashError: If two reachable commits would share the identifier.
            GitError: If git cannot be run or the history cannot be read.
        """
        checkout = self.checkout_factory(Path(directory))
        logger.debug("running in %s", directory)
        with Timer() as t:
            self.check_clean(checkout, ignore_dirt)
            head = checkout.resolve_head()
            graph = checkout.load_graph(head)
            count = graph.reachable_count(head)
            analyzed = self.check_clashes(graph, head)
        if is_debug_enabled(logger):
            logger.debug(
                "Analyzed %d commits for clashes",
                analyzed,
                extra=extra_context(
                    event="function_exit",
                    component="identifier",
                    action="identify",
                    count=analyzed,
                    duration_ms=t.duration_ms()
                )
            )
        return Revision(full_hash=head, abbreviated_hash=head[:self.abbrev_length], count=count)

    @staticmethod
    def check_clean(checkout: GitCheckout, ignore_dirt: bool) -> None:
        status = checkout.status()
        if status.clean:
            return
        paths = status.dirty_paths()
        error = f"Make sure `git status -s` is empty before using -D{Constants.PROP_SET_CHANGELIST}: {paths}"
        if ignore_dirt:
            logger.warning(error)
            return
        raise DirtyCheckoutError(
            f"{error} (use -D{Constants.PROP_IGNORE_DIRT} to make this nonfatal)", paths
        )

    def check_clashes(self, graph: CommitGraph, head: str) -> int:
        """Walk all commits reachable from ``head`` through a fresh ClashTable."""
        table = ClashTable(graph, self.abbrev_length)
        analyzed = 0
        for commit in graph.walk(head):
            analyzed += 1
            table.observe(commit)
        return analyzed
