"""Version predicates: the version-range half of a mod dependency.

A predicate string is a list of terms separated by whitespace or commas.
All terms must hold (conjunction). Supported terms:

- ``*`` or an empty string: any version.
- ``1.2.3`` or ``=1.2.3``: exact match (build metadata ignored).
- ``>1.2``, ``>=1.2``, ``<2``, ``<=2.0``: comparisons.
- ``^1.2``: same major version, at least 1.2.
- ``~1.2.3``: same major and minor version, at least 1.2.3.
- ``1.x``, ``1.2.*``: wildcard segment match on the leading components.
  Wildcards cannot be combined with an operator or a pre-release.

There is deliberately no OR operator. A dependency that accepts several
disjoint ranges is declared as several dependency entries, and the
resolver accepts a candidate matching any one of them.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from modresolver.core.version.version import Version, parse_version
from modresolver.exceptions import InvalidVersionError


class Operator(Enum):
    """Comparison operators, in longest-prefix-first match order."""

    GREATER_EQUAL = ">="
    LESS_EQUAL = "<="
    GREATER = ">"
    LESS = "<"
    EQUAL = "="
    SAME_MINOR = "~"
    SAME_MAJOR = "^"

    @property
    def symbol(self) -> str:
        return self.value


class VersionPredicate(ABC):
    """A side-effect-free boolean test over a ``Version``.

    ``test()`` is total: it never raises for a well-formed ``Version``.
    """

    @abstractmethod
    def test(self, version: Version) -> bool:
        """Return True if *version* satisfies this predicate."""

    @abstractmethod
    def describe(self) -> str:
        """Human-readable form used in resolution explanations."""

    @property
    def terms(self) -> tuple[VersionPredicate, ...]:
        """The conjunctive terms of this predicate."""
        return (self,)

    def __call__(self, version: Version) -> bool:
        return self.test(version)


@dataclass(frozen=True)
class AnyVersion(VersionPredicate):
    """Matches every version."""

    def test(self, version: Version) -> bool:
        return True

    def describe(self) -> str:
        return "any version"

    @property
    def terms(self) -> tuple[VersionPredicate, ...]:
        return ()

    def __str__(self) -> str:
        return "*"


ANY_VERSION = AnyVersion()


@dataclass(frozen=True)
class ComparisonPredicate(VersionPredicate):
    """A single ``<operator><version>`` term."""

    operator: Operator
    reference: Version

    def test(self, version: Version) -> bool:
        op = self.operator
        ref = self.reference
        if op is Operator.EQUAL:
            return version == ref
        if op is Operator.GREATER_EQUAL:
            return version >= ref
        if op is Operator.LESS_EQUAL:
            return version <= ref
        if op is Operator.GREATER:
            return version > ref
        if op is Operator.LESS:
            return version < ref
        if op is Operator.SAME_MAJOR:
            return version.major == ref.major and version >= ref
        if op is Operator.SAME_MINOR:
            return (
                version.major == ref.major
                and version.minor == ref.minor
                and version >= ref
            )
        return False  # pragma: no cover

    def describe(self) -> str:
        op = self.operator
        ref = self.reference
        if op is Operator.EQUAL:
            return f"version {ref}"
        if op is Operator.GREATER_EQUAL:
            return f"version {ref} or later"
        if op is Operator.LESS_EQUAL:
            return f"version {ref} or earlier"
        if op is Operator.GREATER:
            return f"any version after {ref}"
        if op is Operator.LESS:
            return f"any version before {ref}"
        if op is Operator.SAME_MAJOR:
            return f"version {ref} or later within {ref.major}.x"
        return f"version {ref} or later within {ref.major}.{ref.minor}.x"

    def __str__(self) -> str:
        if self.operator is Operator.EQUAL:
            return str(self.reference)
        return f"{self.operator.symbol}{self.reference}"


@dataclass(frozen=True)
class WildcardPredicate(VersionPredicate):
    """Matches versions whose leading components equal ``prefix``.

    ``1.2.x`` has prefix ``(1, 2)`` and matches 1.2, 1.2.9 and 1.2.0-rc.1,
    but not 1.3.
    """

    prefix: tuple[int, ...]

    def test(self, version: Version) -> bool:
        return all(version.component(i) == c for i, c in enumerate(self.prefix))

    def describe(self) -> str:
        return f"version {self}"

    def __str__(self) -> str:
        return ".".join(str(c) for c in self.prefix) + ".x"


@dataclass(frozen=True)
class AllOf(VersionPredicate):
    """Conjunction of two or more terms."""

    predicates: tuple[VersionPredicate, ...]

    def test(self, version: Version) -> bool:
        return all(p.test(version) for p in self.predicates)

    def describe(self) -> str:
        return " and ".join(p.describe() for p in self.predicates)

    @property
    def terms(self) -> tuple[VersionPredicate, ...]:
        return self.predicates

    def __str__(self) -> str:
        return " ".join(str(p) for p in self.predicates)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

_TERM_SPLIT_RE = re.compile(r"[\s,]+")
_WILDCARD_COMPONENTS = {"x", "X", "*"}


def _parse_wildcard(text: str) -> WildcardPredicate | None:
    """Parse ``1.x`` / ``1.2.*`` forms. Returns None when *text* has no wildcard."""
    parts = text.split(".")
    if not any(p in _WILDCARD_COMPONENTS for p in parts):
        return None
    if "-" in text or "+" in text:
        raise InvalidVersionError(
            f"Wildcard ranges cannot carry pre-release or build data: {text!r}"
        )
    first = next(i for i, p in enumerate(parts) if p in _WILDCARD_COMPONENTS)
    if first == 0:
        raise InvalidVersionError(f"Version ranges of form 'x' are not allowed: {text!r}")
    if any(p not in _WILDCARD_COMPONENTS for p in parts[first:]):
        raise InvalidVersionError(f"Interjacent wildcards are not allowed: {text!r}")
    prefix = []
    for p in parts[:first]:
        if not p.isdigit():
            raise InvalidVersionError(f"Invalid version range: {text!r}")
        prefix.append(int(p))
    return WildcardPredicate(tuple(prefix))


def _parse_term(term: str) -> VersionPredicate:
    operator = Operator.EQUAL
    explicit = False
    for op in Operator:
        if term.startswith(op.symbol):
            operator = op
            explicit = True
            term = term[len(op.symbol):]
            break

    wildcard = _parse_wildcard(term)
    if wildcard is not None:
        if explicit and operator is not Operator.EQUAL:
            raise InvalidVersionError(
                "Version ranges with wildcards require the equality operator "
                f"or no operator at all: {operator.symbol}{term!r}"
            )
        return wildcard

    return ComparisonPredicate(operator, parse_version(term))


def parse_predicate(text: str) -> VersionPredicate:
    """Parse a version predicate string.

    Args:
        text: Predicate such as ``">=1.0 <2.0"``, ``"^1.4"`` or ``"*"``.

    Returns:
        ``ANY_VERSION``, a single-term predicate, or an ``AllOf``.

    Raises:
        InvalidVersionError: If any term is malformed.
    """
    if not isinstance(text, str):
        raise InvalidVersionError(
            f"Version predicate must be a string, got {type(text).__name__}"
        )
    terms = [
        _parse_term(t)
        for t in _TERM_SPLIT_RE.split(text.strip())
        if t and t != "*"
    ]
    if not terms:
        return ANY_VERSION
    if len(terms) == 1:
        return terms[0]
    return AllOf(tuple(terms))
