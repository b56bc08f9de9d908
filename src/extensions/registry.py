"""Registry of build participants and the extension version rule.

Participants announce their identity and version when a build starts; rules
query the registry instead of inspecting how participants were loaded. A
registry is created per build invocation and closed when the build ends.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, Optional

from errors import EnforcerRuleError, IncrementalsError, InvalidVersionSpecError
from versioning.comparable import ComparableVersion, VersionRange

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Capability:
    """A participant's published identity."""
    name: str
    version: str


class CapabilityRegistry:
    """Capabilities registered for one build.

    Use as a context manager to bound its lifetime::

        with CapabilityRegistry() as registry:
            hook = ChangelistHook(registry=registry)
            ...
    """

    def __init__(self) -> None:
        self._capabilities: Dict[str, Capability] = {}
        self._open = True

    def __enter__(self) -> "CapabilityRegistry":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._capabilities.clear()
        self._open = False

    def register(self, name: str, version: str) -> Capability:
        if not self._open:
            raise IncrementalsError(f"Cannot register {name}: registry already closed")
        existing = self._capabilities.get(name)
        if existing is not None and existing.version != version:
            raise IncrementalsError(
                f"{name} already registered with version {existing.version}, not {version}"
            )
        capability = Capability(name, version)
        self._capabilities[name] = capability
        logger.debug("Registered %s %s", name, version)
        return capability

    def lookup(self, name: str) -> Optional[Capability]:
        return self._capabilities.get(name)

    def __iter__(self) -> Iterator[Capability]:
        return iter(list(self._capabilities.values()))


class RequireExtensionVersion:
    """Verifies that an extension, if present, is sufficiently new.

    Some examples of ``required_range``:

    * ``2.0.4`` version 2.0.4 and higher (different from the Maven meaning)
    * ``[2.0,2.1)`` versions 2.0 (included) to 2.1 (not included)
    * ``[2.0.5,)`` versions 2.0.5 and higher
    * ``(,2.0.5],[2.1.1,)`` versions up to 2.0.5 (included) and 2.1.1 or higher
    """

    def __init__(self, name: str, required_range: Optional[str]):
        self.name = name
        self.required_range = required_range

    def enforce(self, registry: CapabilityRegistry) -> None:
        capability = registry.lookup(self.name)
        if capability is None:
            logger.debug("%s is not registered, nothing to check", self.name)
            return
        self.enforce_version(ComparableVersion(capability.version))

    def enforce_version(self, actual: ComparableVersion) -> None:
        if not self.required_range:
            raise EnforcerRuleError(f"{self.name} version can't be empty.")
        msg = f"Detected {self.name} Version: {actual}"
        # short circuit check if the strings are exactly equal
        if str(actual) == self.required_range:
            logger.debug("%s is allowed in the range %s.", msg, self.required_range)
            return
        try:
            allowed = VersionRange.parse(self.required_range)
        except InvalidVersionSpecError as exc:
            raise EnforcerRuleError(
                f"The requested {self.name} version {self.required_range} is invalid."
            ) from exc
        if not allowed.contains(actual):
            raise EnforcerRuleError(f"{msg} is not in the allowed range {allowed}.")
        logger.debug("%s is allowed in the range %s.", msg, allowed)
