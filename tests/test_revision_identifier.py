"""Tests for revision identification and clash detection."""

import logging
import shutil
import subprocess
from unittest.mock import patch

import pytest

from errors import ClashError, DirtyCheckoutError, GitError
from changelist.git import CheckoutStatus, Commit, CommitGraph, GitCheckout
from changelist.identifier import Revision, RevisionIdentifier

CLASHING = "deadbeefcafe"


def h(n):
    """A 40-character hash whose 12-character abbreviation is unique to ``n``."""
    return f"{n:012x}".ljust(40, "f")


def chain(length):
    """Linear history of ``length`` commits; returns (commits, tip hash)."""
    commits = []
    parent = ()
    for n in range(1, length + 1):
        commits.append(Commit(h(n), parent, 1500000000 + n, f"commit {n}"))
        parent = (h(n),)
    return commits, h(length)


class FakeCheckout:
    """Stand-in for GitCheckout over an in-memory graph."""

    def __init__(self, commits, head, status=None):
        self.commits = commits
        self.head = head
        self._status = status or CheckoutStatus()

    def status(self):
        return self._status

    def resolve_head(self):
        return self.head

    def load_graph(self, head):
        return CommitGraph(self.commits)


def identifier_for(checkout):
    return RevisionIdentifier(checkout_factory=lambda directory: checkout)


def two_branches(first_depth, second_depth):
    """History with two clashing commits merged at HEAD.

    Each side branches off a shared 49-commit trunk; ``first_depth`` and
    ``second_depth`` are the number of commits on each side, the last of
    which carries the clashing abbreviation.
    """
    commits, trunk = chain(49)
    tips = []
    for side, depth in ((1, first_depth), (2, second_depth)):
        parent = trunk
        for n in range(depth):
            last = n == depth - 1
            commit_hash = (CLASHING + f"{side:x}").ljust(40, "0") if last else h(1000 * side + n)
            commits.append(Commit(commit_hash, (parent,), 1600000000 + n, f"side {side} #{n}"))
            parent = commit_hash
        tips.append(parent)
    head = h(9999)
    commits.append(Commit(head, tuple(tips), 1700000000, "Merge"))
    return commits, head, tips


class TestCommitGraph:
    """Reachability counting."""

    def test_linear_count(self):
        """Test counting a linear history."""
        commits, tip = chain(5)
        graph = CommitGraph(commits)
        assert graph.reachable_count(tip) == 5
        assert graph.reachable_count(h(2)) == 2

    def test_merge_counts_shared_history_once(self):
        """Test shared history is counted once."""
        commits, head, tips = two_branches(1, 1)
        graph = CommitGraph(commits)
        assert graph.reachable_count(head) == 52
        assert graph.reachable_count(tips[0]) == 50

    def test_walks_are_independent(self):
        """Test nested walks do not share state."""
        commits, tip = chain(3)
        graph = CommitGraph(commits)
        outer = []
        for commit in graph.walk(tip):
            outer.append(commit.hash)
            assert graph.reachable_count(commit.hash) >= 1
        assert len(outer) == 3

    def test_missing_parents_are_skipped(self):
        """Test parents outside the graph are skipped."""
        commits, tip = chain(3)
        graph = CommitGraph(commits[1:])
        assert graph.reachable_count(tip) == 2

    def test_unknown_start(self):
        """Test walking from an unknown commit fails."""
        with pytest.raises(GitError):
            list(CommitGraph([]).walk("f" * 40))


class TestLoadGraph:
    """Parsing git log output."""

    @patch.object(GitCheckout, "_run")
    def test_parses_records(self, mock_run):
        """Test records become commits with signatures disabled."""
        mock_run.return_value = f"{h(2)}\x1f{h(1)}\x1f1500000002\x1fsecond\0\n{h(1)}\x1f\x1f1500000001\x1ffirst\0"

        graph = GitCheckout(".").load_graph(h(2))

        assert graph.reachable_count(h(2)) == 2
        assert mock_run.call_args[0][:3] == ("-c", "log.showSignature=false", "log")

    @patch.object(GitCheckout, "_run")
    def test_unexpected_record(self, mock_run):
        """Test output that is not a commit record raises GitError."""
        mock_run.return_value = "gpg: Signature made Mon 01 Jan\n\0"

        with pytest.raises(GitError):
            GitCheckout(".").load_graph(h(1))


class TestIdentify:
    """RevisionIdentifier over fake checkouts."""

    def test_linear_history(self):
        """Test identifying a linear history."""
        commits, tip = chain(10)
        revision = identifier_for(FakeCheckout(commits, tip)).identify(".")
        assert revision == Revision(tip, tip[:12], 10)
        assert str(revision) == f"10.{tip[:12]}"

    def test_hard_clash(self):
        """Test equal identifiers from two commits fail."""
        commits, head, tips = two_branches(1, 1)

        with pytest.raises(ClashError) as excinfo:
            identifier_for(FakeCheckout(commits, head)).identify(".")

        assert excinfo.value.value == f"50.{CLASHING}"
        assert {excinfo.value.first.hash, excinfo.value.second.hash} == set(tips)
        assert tips[0] in str(excinfo.value) and tips[1] in str(excinfo.value)

    def test_soft_clash_is_logged(self, caplog):
        """Test a shared abbreviation with different counts is logged."""
        commits, head, _ = two_branches(1, 2)

        with caplog.at_level(logging.INFO):
            revision = identifier_for(FakeCheckout(commits, head)).identify(".")

        assert revision.count == 53
        assert revision.full_hash == head
        assert "differing revcounts" in caplog.text

    def test_dirty_checkout(self):
        """Test uncommitted and untracked files fail."""
        commits, tip = chain(2)
        status = CheckoutStatus(uncommitted={"pom.xml"}, untracked={"new.txt"})

        with pytest.raises(DirtyCheckoutError) as excinfo:
            identifier_for(FakeCheckout(commits, tip, status)).identify(".")

        assert excinfo.value.paths == ["new.txt", "pom.xml"]
        assert "git status -s" in str(excinfo.value)

    def test_dirt_ignored(self, caplog):
        """Test dirt is only logged when ignored."""
        commits, tip = chain(2)
        status = CheckoutStatus(untracked={"new.txt"})

        with caplog.at_level(logging.WARNING):
            revision = identifier_for(FakeCheckout(commits, tip, status)).identify(".", ignore_dirt=True)

        assert revision.count == 2
        assert "new.txt" in caplog.text


def _git(directory, *args):
    subprocess.run(
        ["git", "-c", "user.name=Tester", "-c", "user.email=tester@example.com",
         "-c", "commit.gpgsign=false", *args],
        cwd=directory, check=True, capture_output=True,
    )


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
class TestRealCheckout:
    """GitCheckout against a repository created on disk."""

    @pytest.fixture
    def repo(self, tmp_path):
        _git(tmp_path, "init", "-q")
        for n in range(3):
            (tmp_path / "file.txt").write_text(f"content {n}\n")
            _git(tmp_path, "add", "file.txt")
            _git(tmp_path, "commit", "-q", "-m", f"change {n}")
        return tmp_path

    def test_identify(self, repo):
        """Test identifying a real repository."""
        head = subprocess.run(["git", "rev-parse", "HEAD"], cwd=repo, check=True,
                              capture_output=True, text=True).stdout.strip()

        revision = RevisionIdentifier().identify(repo)

        assert revision.count == 3
        assert revision.full_hash == head
        assert revision.abbreviated_hash == head[:12]

    def test_status(self, repo):
        """Test status of a real repository."""
        (repo / "file.txt").write_text("modified\n")
        (repo / "sub").mkdir()
        (repo / "sub" / "new.txt").write_text("new\n")

        status = GitCheckout(repo).status()

        assert status.uncommitted == {"file.txt"}
        assert status.untracked == {"sub/new.txt"}
        with pytest.raises(DirtyCheckoutError):
            RevisionIdentifier().identify(repo)

    def test_not_a_repository(self, tmp_path):
        """Test a directory that is not a repository."""
        with pytest.raises(GitError):
            GitCheckout(tmp_path).resolve_head()
