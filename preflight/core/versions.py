"""
Semantic version parsing and hub compatibility checks.

The interactor is compatible with any hub whose version satisfies the caret
range of the interactor's own version (``^MAJOR.MINOR.PATCH``): same major
version, or same minor version below 1.0.0, and not older.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from ..errors import InvalidVersionError


_SEMVER = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+(?P<build>[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


def _prerelease_key(identifier: str) -> Tuple[int, Union[int, str]]:
    # Numeric identifiers sort before alphanumeric ones
    if identifier.isdigit():
        return (0, int(identifier))
    return (1, identifier)


@dataclass(frozen=True)
class SemanticVersion:
    """An immutable ``MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]`` version."""

    major: int
    minor: int
    patch: int
    prerelease: Tuple[str, ...] = ()
    build: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "SemanticVersion":
        match = _SEMVER.match(text.strip()) if isinstance(text, str) else None
        if match is None:
            raise InvalidVersionError(text)
        prerelease = match.group("prerelease")
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            prerelease=tuple(prerelease.split(".")) if prerelease else (),
            build=match.group("build"),
        )

    @classmethod
    def is_valid(cls, text: str) -> bool:
        try:
            cls.parse(text)
        except InvalidVersionError:
            return False
        return True

    @property
    def core(self) -> Tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def _precedence_key(self):
        # A release sorts after every pre-release of the same core version
        if not self.prerelease:
            return (self.core, (1,))
        return (self.core, (0, tuple(_prerelease_key(p) for p in self.prerelease)))

    def __lt__(self, other: "SemanticVersion") -> bool:
        return self._precedence_key() < other._precedence_key()

    def __le__(self, other: "SemanticVersion") -> bool:
        return self._precedence_key() <= other._precedence_key()

    def __gt__(self, other: "SemanticVersion") -> bool:
        return self._precedence_key() > other._precedence_key()

    def __ge__(self, other: "SemanticVersion") -> bool:
        return self._precedence_key() >= other._precedence_key()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + self.build
        return text


class VersionCompatibilityChecker:
    """
    Decides whether a remote component is compatible with this one.

    Args:
        component_version: semver of the component that owns the checker.

    Raises:
        InvalidVersionError: if ``component_version`` is not valid semver.
    """

    def __init__(self, component_version: str):
        self._version = SemanticVersion.parse(component_version)
        self.component_version = component_version

    @property
    def version(self) -> SemanticVersion:
        return self._version

    @property
    def compatibility_range(self) -> str:
        return f"^{self.component_version}"

    def _upper_bound(self) -> Tuple[int, int, int]:
        own = self._version
        if own.major > 0:
            return (own.major + 1, 0, 0)
        if own.minor > 0:
            return (0, own.minor + 1, 0)
        return (0, 0, own.patch + 1)

    def is_compatible(self, remote_version: str) -> bool:
        """
        Return True if ``remote_version`` satisfies the caret range of the
        component version.

        Some early verifiers report pre-releases with an underscore
        separator, so underscores are read as hyphens.
        """
        try:
            remote = SemanticVersion.parse(remote_version.replace("_", "-"))
        except (InvalidVersionError, AttributeError):
            return False

        own = self._version
        if remote.prerelease and not (own.prerelease and remote.core == own.core):
            return False

        return own <= remote and remote.core < self._upper_bound()


__all__ = [
    "SemanticVersion",
    "VersionCompatibilityChecker",
]
