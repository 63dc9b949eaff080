"""Semantic-style versions for mods.

A mod version is a dot-separated list of non-negative integer components,
optionally followed by a pre-release suffix (``-alpha.1``) and a build
suffix (``+build.5``). Unlike strict SemVer any number of components is
accepted; missing trailing components compare as zero, so ``1.0`` and
``1.0.0`` are the same version.

Ordering follows SemVer 2.0.0 section 11:

- numeric components are compared numerically (``10 > 9``);
- a pre-release version has lower precedence than its release;
- pre-release identifiers are compared one by one, numeric identifiers
  numerically and below alphanumeric ones, and a longer identifier list
  wins when all shared identifiers are equal;
- build metadata never affects precedence or equality.

References
----------
.. [SemVer] Preston-Werner, T. (2013). "Semantic Versioning 2.0.0."
   https://semver.org/
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import total_ordering

from modresolver.exceptions import InvalidVersionError

# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

_IDENTIFIERS = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"

_VERSION_RE = re.compile(
    r"^(?P<components>\d+(?:\.\d+)*)"
    rf"(?:-(?P<pre>{_IDENTIFIERS}))?"
    rf"(?:\+(?P<build>{_IDENTIFIERS}))?$"
)

_NUMERIC_IDENTIFIER_RE = re.compile(r"^(?:0|[1-9]\d*)$")


def _prerelease_key(prerelease: str | None) -> tuple:
    """Sort key for the pre-release part. Releases sort above pre-releases."""
    if prerelease is None:
        return (1,)
    parts: list[tuple[int, int | str]] = []
    for ident in prerelease.split("."):
        if _NUMERIC_IDENTIFIER_RE.match(ident):
            parts.append((0, int(ident)))
        else:
            parts.append((1, ident))
    return (0, tuple(parts))


def _strip_trailing_zeros(components: tuple[int, ...]) -> tuple[int, ...]:
    end = len(components)
    while end > 0 and components[end - 1] == 0:
        end -= 1
    return components[:end]


# ---------------------------------------------------------------------------
# Version
# ---------------------------------------------------------------------------


@total_ordering
@dataclass(frozen=True, eq=False)
class Version:
    """An immutable, totally ordered mod version.

    Attributes:
        components: Numeric components, e.g. ``(1, 20, 4)``.
        prerelease: Pre-release identifiers without the leading ``-``.
        build: Build metadata without the leading ``+``. Ignored by
            comparisons, equality and hashing.
    """

    components: tuple[int, ...]
    prerelease: str | None = None
    build: str | None = None
    _key: tuple = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.components:
            raise InvalidVersionError("A version needs at least one component")
        if any(c < 0 for c in self.components):
            raise InvalidVersionError(
                f"Negative version component in {self.components!r}"
            )
        key = (_strip_trailing_zeros(self.components), _prerelease_key(self.prerelease))
        object.__setattr__(self, "_key", key)

    @property
    def major(self) -> int:
        return self.component(0)

    @property
    def minor(self) -> int:
        return self.component(1)

    @property
    def patch(self) -> int:
        return self.component(2)

    @property
    def is_prerelease(self) -> bool:
        return self.prerelease is not None

    def component(self, index: int) -> int:
        """Return component *index*, treating missing components as zero."""
        if index < len(self.components):
            return self.components[index]
        return 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key == other._key

    def __lt__(self, other: Version) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key < other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __str__(self) -> str:
        text = ".".join(str(c) for c in self.components)
        if self.prerelease is not None:
            text += f"-{self.prerelease}"
        if self.build is not None:
            text += f"+{self.build}"
        return text


def parse_version(text: str) -> Version:
    """Parse a version string.

    Args:
        text: Version string such as ``"1.2.3"``, ``"2.0-beta.1"`` or
            ``"1.18.2+build.7"``. Surrounding whitespace is ignored.

    Returns:
        The parsed ``Version``.

    Raises:
        InvalidVersionError: If *text* is not a well-formed version.
    """
    if not isinstance(text, str):
        raise InvalidVersionError(f"Version must be a string, got {type(text).__name__}")
    m = _VERSION_RE.match(text.strip())
    if not m:
        raise InvalidVersionError(f"Invalid version: {text!r}")
    components = tuple(int(c) for c in m.group("components").split("."))
    return Version(components, m.group("pre"), m.group("build"))


def compare_versions(a: Version, b: Version) -> int:
    """Three-way comparison: -1 if a < b, 0 if equal, 1 if a > b."""
    if a < b:
        return -1
    if b < a:
        return 1
    return 0
