"""Formatting-preserving edits of POM documents.

The document is parsed into a tree of element spans (offsets into the
original text), each edit rewrites only the characters of the elements it
targets, and everything else (comments, whitespace, attribute quoting) is
kept byte for byte. ``apply_edits`` is a pure function from a document and
an edit list to a new document.
"""
from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence
from xml.sax.saxutils import escape

from errors import DescriptorEditError

_MARKUP = re.compile(
    r"<!--.*?-->"
    r"|<!\[CDATA\[.*?\]\]>"
    r"|<\?.*?\?>"
    r"|<!DOCTYPE[^>]*>"
    r"|<(?P<close>/)?(?P<name>[A-Za-z_][\w:.-]*)(?P<attrs>(?:[^>\"']|\"[^\"]*\"|'[^']*')*?)(?P<empty>/)?>",
    re.DOTALL,
)


@dataclass
class Node:
    """An element of the document and where it sits in the text."""
    name: str
    start: int
    content_start: int
    content_end: int = -1
    end: int = -1
    parent: Optional["Node"] = None
    children: List["Node"] = field(default_factory=list)

    def child(self, name: str) -> Optional["Node"]:
        for c in self.children:
            if c.name == name:
                return c
        return None

    def text(self, document: str) -> str:
        return document[self.content_start:self.content_end]


def _local(name: str) -> str:
    return name.split(":", 1)[-1]


def parse(document: str) -> Node:
    """Parse a document into its element span tree and return the root element."""
    try:
        ET.fromstring(document)
    except ET.ParseError as exc:
        raise DescriptorEditError(f"Malformed descriptor: {exc}") from exc

    root: Optional[Node] = None
    current: Optional[Node] = None
    for m in _MARKUP.finditer(document):
        name = m.group("name")
        if name is None:
            continue
        name = _local(name)
        if m.group("close"):
            current.content_end = m.start()
            current.end = m.end()
            current = current.parent
            continue
        node = Node(name=name, start=m.start(), content_start=m.end(), parent=current)
        if current is None:
            root = node
        else:
            current.children.append(node)
        if m.group("empty"):
            node.content_start = node.content_end = node.end = m.end()
        else:
            current = node
    return root


def find(root: Node, path: str) -> List[Node]:
    """Elements at an absolute path such as ``/project/properties/revision``."""
    parts = [p for p in path.split("/") if p]
    if not parts or parts[0] != root.name:
        return []
    nodes = [root]
    for part in parts[1:]:
        nodes = [c for n in nodes for c in n.children if c.name == part]
    return nodes


def find_one(root: Node, path: str) -> Node:
    nodes = find(root, path)
    if len(nodes) != 1:
        raise DescriptorEditError(f"Expected exactly one {path}, found {len(nodes)}")
    return nodes[0]


@dataclass(frozen=True)
class Indent:
    """Indentation unit detected from existing lines."""
    size: int = 0
    type: str = " "

    def __str__(self) -> str:
        return self.type * self.size


def detect_indent(text: str) -> Indent:
    """Indentation of the first indented line of ``text``."""
    for line in re.split(r"\r\n|\r|\n", text or ""):
        stripped = line.lstrip(" \t")
        if not stripped:
            continue
        leading = line[:len(line) - len(stripped)]
        if leading:
            return Indent(len(leading), leading[-1])
    return Indent()


def _replace_content(document: str, node: Node, value: str) -> str:
    if node.content_start == node.end:
        # <tag/> becomes <tag>value</tag>
        opening = document[node.start:node.end - 2].rstrip()
        return f"{document[:node.start]}{opening}>{escape(value)}</{node.name}>{document[node.end:]}"
    return document[:node.content_start] + escape(value) + document[node.content_end:]


class Edit:
    """One change to a document."""

    def apply(self, document: str, root: Node) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class SetElementText(Edit):
    path: str
    value: str

    def apply(self, document: str, root: Node) -> str:
        return _replace_content(document, find_one(root, self.path), self.value)


@dataclass(frozen=True)
class SetProperty(Edit):
    name: str
    value: str

    def apply(self, document: str, root: Node) -> str:
        return _replace_content(document, find_one(root, f"/project/properties/{self.name}"), self.value)


@dataclass(frozen=True)
class PrependProperty(Edit):
    """Insert ``<name>value</name>`` as the first child of <properties>."""
    name: str
    value: str

    def apply(self, document: str, root: Node) -> str:
        properties = find(root, "/project/properties")
        if len(properties) != 1 or properties[0].content_start == properties[0].end:
            raise DescriptorEditError("failed to find <properties>")
        node = properties[0]
        indent = detect_indent(node.text(document))
        insertion = f"\n{indent}<{self.name}>{escape(self.value)}</{self.name}>"
        return document[:node.content_start] + insertion + document[node.content_start:]


DEPENDENCY_PATHS = (
    "/project/dependencies/dependency",
    "/project/dependencyManagement/dependencies/dependency",
)


@dataclass(frozen=True)
class SetDependencyVersion(Edit):
    """Set <version> of every dependency on ``group_id:artifact_id``.

    When ``old_version`` is given only dependencies at that version change.
    """
    group_id: str
    artifact_id: str
    version: str
    old_version: Optional[str] = None

    def apply(self, document: str, root: Node) -> str:
        targets = []
        for path in DEPENDENCY_PATHS:
            for dep in find(root, path):
                group, artifact, version = (dep.child(n) for n in ("groupId", "artifactId", "version"))
                if group is None or artifact is None or version is None:
                    continue
                if group.text(document).strip() != self.group_id or artifact.text(document).strip() != self.artifact_id:
                    continue
                if self.old_version is not None and version.text(document).strip() != self.old_version:
                    continue
                targets.append(version)
        if not targets:
            raise DescriptorEditError(f"No dependency on {self.group_id}:{self.artifact_id} to update")
        # Rewrite back to front so earlier offsets stay valid.
        for version in sorted(targets, key=lambda n: n.start, reverse=True):
            document = _replace_content(document, version, self.version)
        return document


def apply_edits(document: str, edits: Iterable[Edit]) -> str:
    """Apply edits in order and return the new document text."""
    for edit in edits:
        document = edit.apply(document, parse(document))
    return document


def read_text(root: Node, document: str, path: str) -> Optional[str]:
    """Stripped text of the single element at ``path``, or None when absent."""
    nodes = find(root, path)
    if len(nodes) != 1:
        return None
    return nodes[0].text(document).strip()


def property_names(root: Node) -> Sequence[str]:
    properties = find(root, "/project/properties")
    return [c.name for c in properties[0].children] if properties else []
