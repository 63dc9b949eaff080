"""Dependency edges between mods.

Every declared relationship of a mod is a ``Dependency``: a target mod id,
a version predicate and a kind. The kind decides how the resolver treats
the edge:

- ``REQUIRES``: the owner can only be selected together with a provider of
  the target whose version satisfies the predicate.
- ``RECOMMENDS``: never blocks selection; unmet recommendations are reported
  as warnings on a successful resolution.
- ``SUGGESTS``: informational only.
- ``CONFLICTS``: the owner cannot be selected together with a matching
  provider of the target.
- ``BREAKS``: as ``CONFLICTS`` but reported as a critical incompatibility.

Several ``REQUIRES`` entries from one owner to the same target form a
group that is satisfied by any one of them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from modresolver.core.version import ANY_VERSION, Version, VersionPredicate


class DependencyKind(Enum):
    """How a dependency edge constrains resolution."""

    REQUIRES = "depends"
    RECOMMENDS = "recommends"
    SUGGESTS = "suggests"
    CONFLICTS = "conflicts"
    BREAKS = "breaks"

    @property
    def descriptor_key(self) -> str:
        """The descriptor field this kind is declared under."""
        return self.value

    @property
    def is_positive(self) -> bool:
        """True for kinds that ask for the target to be present."""
        return self in (
            DependencyKind.REQUIRES,
            DependencyKind.RECOMMENDS,
            DependencyKind.SUGGESTS,
        )

    @property
    def is_hard(self) -> bool:
        """True for kinds that can block a selection."""
        return self in (
            DependencyKind.REQUIRES,
            DependencyKind.CONFLICTS,
            DependencyKind.BREAKS,
        )

    @property
    def verb(self) -> str:
        return _VERBS[self]


_VERBS: dict[DependencyKind, str] = {
    DependencyKind.REQUIRES: "requires",
    DependencyKind.RECOMMENDS: "recommends",
    DependencyKind.SUGGESTS: "suggests",
    DependencyKind.CONFLICTS: "conflicts with",
    DependencyKind.BREAKS: "is incompatible with",
}


@dataclass(frozen=True)
class Dependency:
    """A directed edge from a mod candidate to a target mod id.

    Attributes:
        target_id: Mod id (or provides alias) the edge points at.
        predicate: Versions of the target the edge applies to.
        kind: How the edge constrains resolution.
    """

    target_id: str
    predicate: VersionPredicate = ANY_VERSION
    kind: DependencyKind = DependencyKind.REQUIRES

    def matches(self, version: Version) -> bool:
        """Return True if *version* of the target falls under this edge."""
        return self.predicate.test(version)

    def describe_requirement(self) -> str:
        """E.g. ``"version 2.0 or later of b"``."""
        return f"{self.predicate.describe()} of {self.target_id}"

    def __str__(self) -> str:
        return f"{self.kind.verb} {self.target_id} {self.predicate}"
