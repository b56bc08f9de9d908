"""Maven version ordering and version range semantics.

ComparableVersion implements the ordering artifact repositories use for
``maven-metadata.xml`` listings: a version is split on ``.``, ``-`` and
digit/letter transitions into integer items, qualifier items and nested
lists, so that ``1.2-rc1.abc`` sorts before ``1.2`` and after ``1.1``.
"""
from __future__ import annotations

import functools
from typing import List, Optional, Union

from errors import InvalidVersionSpecError

QUALIFIERS = ["alpha", "beta", "milestone", "rc", "snapshot", "", "sp"]
ALIASES = {"ga": "", "final": "", "release": "", "cr": "rc"}
RELEASE_VERSION_INDEX = str(QUALIFIERS.index(""))


def _comparable_qualifier(qualifier: str) -> str:
    # Unknown qualifiers sort after snapshot and before the release, lexically
    # among themselves: "4-foo" falls between "4" and "5".
    if qualifier in QUALIFIERS:
        return str(QUALIFIERS.index(qualifier))
    return f"{QUALIFIERS.index('snapshot')}-{qualifier}"


class _IntItem:
    __slots__ = ("value",)

    def __init__(self, value: int):
        self.value = value

    def is_null(self) -> bool:
        return self.value == 0

    def compare(self, other: Optional["_Item"]) -> int:
        if other is None:
            return 0 if self.value == 0 else 1
        if isinstance(other, _IntItem):
            return (self.value > other.value) - (self.value < other.value)
        return 1  # 1.1 > 1-sp, 1.1 > 1-1

    def __str__(self) -> str:
        return str(self.value)


class _StringItem:
    __slots__ = ("value",)

    def __init__(self, value: str, followed_by_digit: bool):
        if followed_by_digit and len(value) == 1:
            value = {"a": "alpha", "b": "beta", "m": "milestone"}.get(value, value)
        self.value = ALIASES.get(value, value)

    def is_null(self) -> bool:
        return _comparable_qualifier(self.value) == RELEASE_VERSION_INDEX

    def compare(self, other: Optional["_Item"]) -> int:
        mine = _comparable_qualifier(self.value)
        if other is None:
            return (mine > RELEASE_VERSION_INDEX) - (mine < RELEASE_VERSION_INDEX)
        if isinstance(other, _StringItem):
            theirs = _comparable_qualifier(other.value)
            return (mine > theirs) - (mine < theirs)
        return -1

    def __str__(self) -> str:
        return self.value


class _ListItem(list):

    def is_null(self) -> bool:
        return len(self) == 0

    def normalize(self) -> None:
        for i in range(len(self) - 1, -1, -1):
            last = self[i]
            if last.is_null():
                del self[i]
            elif not isinstance(last, _ListItem):
                break

    def compare(self, other: Optional["_Item"]) -> int:
        if other is None:
            if not self:
                return 0
            return self[0].compare(None)
        if isinstance(other, _IntItem):
            return -1  # 1-1 < 1.0.x
        if isinstance(other, _StringItem):
            return 1  # 1-1 > 1-sp
        for i in range(max(len(self), len(other))):
            left = self[i] if i < len(self) else None
            right = other[i] if i < len(other) else None
            if left is None:
                result = 0 if right is None else -1 * right.compare(left)
            else:
                result = left.compare(right)
            if result != 0:
                return result
        return 0

    def __str__(self) -> str:
        buffer = ""
        for item in self:
            if buffer:
                buffer += "-" if isinstance(item, _ListItem) else "."
            buffer += str(item)
        return buffer


_Item = Union[_IntItem, _StringItem, _ListItem]


def _parse_item(is_digit: bool, buf: str) -> _Item:
    if is_digit:
        return _IntItem(int(buf))
    return _StringItem(buf, False)


def _parse(version: str) -> _ListItem:
    version = version.lower()
    items = current = _ListItem()
    stack = [current]
    is_digit = False
    start = 0

    for i, c in enumerate(version):
        if c == ".":
            current.append(_IntItem(0) if i == start else _parse_item(is_digit, version[start:i]))
            start = i + 1
        elif c == "-":
            current.append(_IntItem(0) if i == start else _parse_item(is_digit, version[start:i]))
            start = i + 1
            nested = _ListItem()
            current.append(nested)
            current = nested
            stack.append(current)
        elif c.isdigit():
            if not is_digit and i > start:
                current.append(_StringItem(version[start:i], True))
                start = i
                nested = _ListItem()
                current.append(nested)
                current = nested
                stack.append(current)
            is_digit = True
        else:
            if is_digit and i > start:
                current.append(_parse_item(True, version[start:i]))
                start = i
                nested = _ListItem()
                current.append(nested)
                current = nested
                stack.append(current)
            is_digit = False

    if len(version) > start:
        current.append(_parse_item(is_digit, version[start:]))

    while stack:
        stack.pop().normalize()
    return items


@functools.total_ordering
class ComparableVersion:
    """A version string with Maven ordering semantics.

    ``str()`` returns the text as given; equality and hashing use the
    canonical form, so ``1.0`` equals ``1.0.0`` and ``1-ga``.
    """

    __slots__ = ("_value", "_items", "_canonical")

    def __init__(self, version: str):
        self._value = version
        self._items = _parse(version)
        self._canonical = str(self._items)

    @property
    def canonical(self) -> str:
        return self._canonical

    def compare_to(self, other: "ComparableVersion") -> int:
        return self._items.compare(other._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComparableVersion):
            return NotImplemented
        return self._canonical == other._canonical

    def __lt__(self, other: "ComparableVersion") -> bool:
        if not isinstance(other, ComparableVersion):
            return NotImplemented
        return self.compare_to(other) < 0

    def __hash__(self) -> int:
        return hash(self._canonical)

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"ComparableVersion({self._value!r})"


class Restriction:
    """One bracketed interval of a version range; None bounds are open-ended."""

    def __init__(self, lower: Optional[ComparableVersion], lower_inclusive: bool,
                 upper: Optional[ComparableVersion], upper_inclusive: bool):
        self.lower = lower
        self.lower_inclusive = lower_inclusive
        self.upper = upper
        self.upper_inclusive = upper_inclusive

    def contains(self, version: ComparableVersion) -> bool:
        if self.lower is not None:
            comparison = self.lower.compare_to(version)
            if comparison > 0 or (comparison == 0 and not self.lower_inclusive):
                return False
        if self.upper is not None:
            comparison = self.upper.compare_to(version)
            if comparison < 0 or (comparison == 0 and not self.upper_inclusive):
                return False
        return True

    def __str__(self) -> str:
        return "{}{},{}{}".format(
            "[" if self.lower_inclusive else "(",
            self.lower if self.lower is not None else "",
            self.upper if self.upper is not None else "",
            "]" if self.upper_inclusive else ")",
        )


class VersionRange:
    """A Maven version range such as ``[2.0,2.1)`` or ``(,1.0],[1.2,)``.

    A bare version (``2.0.4``) produces a range with only a recommended
    version; ``contains`` treats that as "this version or newer".
    """

    def __init__(self, restrictions: List[Restriction], recommended: Optional[ComparableVersion] = None):
        self.restrictions = restrictions
        self.recommended = recommended

    @classmethod
    def parse(cls, spec: str) -> "VersionRange":
        spec = (spec or "").strip()
        if not spec:
            raise InvalidVersionSpecError("Version range specification is empty")
        if spec[0] not in "[(":
            if any(ch in spec for ch in "[]()"):
                raise InvalidVersionSpecError(f"Unbounded range: {spec}")
            return cls([], ComparableVersion(spec))

        restrictions: List[Restriction] = []
        process = spec
        previous_upper: Optional[ComparableVersion] = None
        while process.startswith(("[", "(")):
            closers = [i for i in (process.find("]"), process.find(")")) if i >= 0]
            if not closers:
                raise InvalidVersionSpecError(f"Unbounded range: {spec}")
            index = min(closers)
            restriction = cls._parse_restriction(process[:index + 1], spec)
            if previous_upper is not None and restriction.lower is not None \
                    and restriction.lower.compare_to(previous_upper) < 0:
                raise InvalidVersionSpecError(f"Ranges overlap: {spec}")
            restrictions.append(restriction)
            previous_upper = restriction.upper
            process = process[index + 1:].strip()
            if process.startswith(","):
                process = process[1:].strip()
        if process:
            raise InvalidVersionSpecError(f"Only fully-qualified sets allowed in multiple set scenario: {spec}")
        return cls(restrictions)

    @staticmethod
    def _parse_restriction(text: str, spec: str) -> Restriction:
        lower_inclusive = text.startswith("[")
        upper_inclusive = text.endswith("]")
        inner = text[1:-1].strip()
        if "," not in inner:
            if not (lower_inclusive and upper_inclusive) or not inner:
                raise InvalidVersionSpecError(f"Single version must be surrounded by []: {spec}")
            version = ComparableVersion(inner)
            return Restriction(version, True, version, True)
        lower_text, upper_text = (part.strip() for part in inner.split(",", 1))
        if "," in upper_text:
            raise InvalidVersionSpecError(f"Invalid version range {text}, too many bounds: {spec}")
        lower = ComparableVersion(lower_text) if lower_text else None
        upper = ComparableVersion(upper_text) if upper_text else None
        if lower is None and lower_inclusive or upper is None and upper_inclusive:
            raise InvalidVersionSpecError(f"Unbounded bound must be exclusive: {spec}")
        if lower is not None and upper is not None and upper.compare_to(lower) < 0:
            raise InvalidVersionSpecError(f"Range defies version ordering: {spec}")
        return Restriction(lower, lower_inclusive, upper, upper_inclusive)

    def contains(self, version: ComparableVersion) -> bool:
        if self.recommended is not None:
            return self.recommended.compare_to(version) <= 0
        return any(r.contains(version) for r in self.restrictions)

    def __str__(self) -> str:
        if self.recommended is not None:
            return f"[{self.recommended},)"
        return ",".join(str(r) for r in self.restrictions)
