"""Exception hierarchy shared by the resolver, changelist and driver modules."""
from __future__ import annotations


class IncrementalsError(Exception):
    """Base class for all errors raised by this project."""


class ResolutionError(IncrementalsError):
    """Version lookup failed: malformed metadata, descriptor or hosting response."""


class TransportError(ResolutionError):
    """A remote call failed in a way not distinguishable as "not found"."""


class ResolutionCancelled(ResolutionError):
    """The caller cancelled a lookup between two candidate checks."""


class InvalidVersionSpecError(IncrementalsError):
    """A version range specification could not be parsed."""


class GitError(IncrementalsError):
    """Git operations failed."""


class DirtyCheckoutError(IncrementalsError):
    """The checkout has uncommitted or untracked files."""

    def __init__(self, message: str, paths):
        super().__init__(message)
        self.paths = list(paths)


class ClashError(IncrementalsError):
    """Two commits reachable from HEAD would get the same identifier."""

    def __init__(self, message: str, first, second, value: str):
        super().__init__(message)
        self.first = first
        self.second = second
        self.value = value


class ChangelistError(IncrementalsError):
    """The build is not set up to consume the computed changelist."""


class EnforcerRuleError(IncrementalsError):
    """A registered extension does not satisfy the required version range."""


class DescriptorEditError(IncrementalsError):
    """A project descriptor could not be parsed or edited."""


class ManifestError(IncrementalsError):
    """A dependency manifest (such as plugins.txt) is malformed."""
