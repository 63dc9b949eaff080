"""Mod candidates: one discovered physical instance of a mod.

A ``ModCandidate`` is created once per discovered location (or once per
builtin module) and is immutable from then on. Several candidates may share
a mod id, for example two versions of the same library found in different
archives; the resolver picks at most one of them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from modresolver.core.dependency.constraints import Dependency, DependencyKind
from modresolver.core.version import Version


class Environment(Enum):
    """Side a mod is restricted to. Runs are either CLIENT or SERVER."""

    CLIENT = "client"
    SERVER = "server"
    UNIVERSAL = "*"

    @classmethod
    def parse(cls, value: str | None) -> Environment:
        """Parse a descriptor or CLI environment value.

        ``None``, ``""`` and ``"*"`` mean universal. Matching is
        case-insensitive.

        Raises:
            ValueError: If *value* names no known environment.
        """
        if value is None:
            return cls.UNIVERSAL
        normalized = value.strip().lower()
        if normalized in ("", "*", "universal"):
            return cls.UNIVERSAL
        for env in (cls.CLIENT, cls.SERVER):
            if normalized == env.value:
                return env
        raise ValueError(f"Invalid environment type: {value!r}")

    def allows(self, run_environment: Environment) -> bool:
        """Return True if a mod restricted to ``self`` loads in *run_environment*."""
        return self is Environment.UNIVERSAL or self is run_environment


@dataclass(frozen=True)
class ModCandidate:
    """A single discovered mod at a specific version and location.

    Attributes:
        id: Mod id. Case-sensitive.
        version: Parsed mod version.
        name: Human-readable name; falls back to the id for display.
        dependencies: All declared dependency edges, in declaration order.
        provides: Alias ids this candidate also satisfies.
        environment: Environment restriction of the mod.
        location: Canonical identity of the location the mod was read from
            (an absolute path, or ``sha256:<hex>`` for nested archives).
        display_path: Human-oriented location, e.g. ``mods/z.zip!/lib/a.zip``.
        parents: Locations of the candidates this one is nested in. Empty for
            root candidates.
        depth: Nesting depth; 0 for root candidates.
        discovery_index: Stable position in discovery order, used for
            deterministic tie-breaking.
        builtin: True for synthetic modules injected by the host (the host
            application, the loader, the platform). Builtins are always
            selected.
    """

    id: str
    version: Version
    name: str = ""
    dependencies: tuple[Dependency, ...] = ()
    provides: tuple[str, ...] = ()
    environment: Environment = Environment.UNIVERSAL
    location: str = ""
    display_path: str = ""
    parents: tuple[str, ...] = ()
    depth: int = 0
    discovery_index: int = 0
    builtin: bool = False
    _hash: int = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Candidates key every resolver table; hash the identifying fields once.
        key = (self.id, self.version, self.location, self.discovery_index, self.builtin)
        object.__setattr__(self, "_hash", hash(key))

    def __hash__(self) -> int:
        return self._hash

    @property
    def ids(self) -> tuple[str, ...]:
        """The mod id followed by every provides alias."""
        return (self.id,) + tuple(p for p in self.provides if p != self.id)

    @property
    def is_root(self) -> bool:
        return not self.parents

    @property
    def display_name(self) -> str:
        if self.name and self.name != self.id:
            return f"'{self.name}' ({self.id})"
        return f"'{self.id}'"

    def dependencies_of(self, *kinds: DependencyKind) -> tuple[Dependency, ...]:
        """Return the declared edges of the given kinds, in declaration order."""
        return tuple(d for d in self.dependencies if d.kind in kinds)

    def describe(self) -> str:
        """E.g. ``"'Fancy Lib' (fancylib) 1.2.0"``."""
        return f"{self.display_name} {self.version}"

    def __str__(self) -> str:
        return f"{self.id} {self.version}"
