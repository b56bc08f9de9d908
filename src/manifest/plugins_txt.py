"""Reading and writing ``plugins.txt`` files used by Jenkins Docker images.

Each line is a comment, a blank line, or a plugin reference::

    git
    git:4.11.0
    git:latest
    workflow-cps:incrementals;org.jenkins-ci.plugins.workflow;2.19-rc289.d09828a05a74;oleg-nenashev;my-branch
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from errors import ManifestError

INCREMENTALS = "incrementals"
TAGS = ("latest", "experimental")


@dataclass
class PluginRef:
    """One line of plugins.txt: either a comment or a plugin definition."""
    artifact_id: Optional[str] = None
    group_id: Optional[str] = None
    tag: Optional[str] = None
    version: Optional[str] = None
    incrementals: bool = False
    comment: Optional[str] = None
    # Not part of the plugins.txt format proper; lets an entry name its own branch.
    github_user: Optional[str] = None
    github_branch: Optional[str] = None

    @property
    def is_comment(self) -> bool:
        return self.comment is not None

    @classmethod
    def for_comment(cls, line: str) -> "PluginRef":
        return cls(comment=line)

    @classmethod
    def from_string(cls, line: str) -> "PluginRef":
        entries = line.split(":")
        if not entries or not entries[0]:
            raise ManifestError(f"Version string is corrupted: {line}")
        plugin = cls(artifact_id=entries[0])
        if len(entries) < 2:
            return plugin
        version_entries = entries[1].split(";")
        kind = version_entries[0]
        if kind in TAGS:
            plugin.tag = kind
        elif kind == INCREMENTALS:
            # incrementals;group;version[;branch] or incrementals;group;version;user;branch
            if not 3 <= len(version_entries) <= 5:
                raise ManifestError(f"Wrong incrementals format: {line}")
            plugin.group_id = version_entries[1]
            plugin.version = version_entries[2]
            if len(version_entries) == 4:
                plugin.github_branch = version_entries[3]
            elif len(version_entries) == 5:
                plugin.github_user = version_entries[3]
                plugin.github_branch = version_entries[4]
            plugin.incrementals = True
        else:
            plugin.version = kind
        return plugin

    @property
    def branch(self) -> Optional[str]:
        """Branch to search for this entry, as ``user:branch`` for forks."""
        if self.github_branch is None:
            return None
        if self.github_user is not None:
            return f"{self.github_user}:{self.github_branch}"
        return self.github_branch

    def to_line(self) -> str:
        if self.comment is not None:
            return self.comment
        if self.incrementals:
            fields = [f"{self.artifact_id}:{INCREMENTALS}", self.group_id, self.version]
            fields += [f for f in (self.github_user, self.github_branch) if f is not None]
            return ";".join(fields)
        label = self.version if self.version is not None else self.tag
        return self.artifact_id + (f":{label}" if label is not None else "")

    def __str__(self) -> str:
        if self.comment is not None:
            return f"comment: {self.comment}"
        return self.artifact_id + (f":{self.version}" if self.version is not None else "")


class PluginRefList(list):
    """Plugins and comments of a plugins.txt file, in file order."""

    @classmethod
    def parse(cls, text: str) -> "PluginRefList":
        plugins = cls()
        for line in text.splitlines():
            if not line.strip() or line.startswith("#"):
                plugins.append(PluginRef.for_comment(line))
            else:
                plugins.append(PluginRef.from_string(line))
        return plugins

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "PluginRefList":
        with open(path, encoding="utf-8") as fh:
            return cls.parse(fh.read())

    def to_text(self) -> str:
        return "".join(ref.to_line() + "\n" for ref in self)

    def write_to_file(self, path: Union[str, Path]) -> None:
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(self.to_text())
