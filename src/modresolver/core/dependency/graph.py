"""Dependency graph over discovered mod candidates.

The graph keeps one bucket per mod id. A bucket holds every candidate whose
own id or one of whose provides aliases equals that id, so a dependency on
``x`` can be satisfied by ``x`` itself or by any mod that provides ``x``.
All candidates of an id are kept as alternatives: choosing between them is
the resolver's job, not the builder's.

The graph is built once per resolution attempt and is read-only afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from modresolver.core.dependency.candidate import ModCandidate
from modresolver.core.dependency.constraints import Dependency, DependencyKind
from modresolver.core.version import Version

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DuplicateModWarning:
    """Two candidates declare the same id and version from different locations.

    Attributes:
        mod_id: The shared mod id.
        version: The shared version.
        kept: The earliest discovered copy.
        duplicate: A later copy.
    """

    mod_id: str
    version: Version
    kept: ModCandidate
    duplicate: ModCandidate

    def message(self) -> str:
        return (
            f"Duplicate mod {self.mod_id} {self.version}: found at "
            f"{self.kept.display_path or self.kept.location} and "
            f"{self.duplicate.display_path or self.duplicate.location}; "
            "only one copy will be loaded"
        )


class DependencyGraph:
    """Read-only mapping from mod ids to candidate alternatives.

    Use :func:`build_graph` to construct one.

    Thread safety: instances are never mutated after construction, so
    concurrent readers need no locking.
    """

    def __init__(
        self,
        candidates: tuple[ModCandidate, ...],
        buckets: Mapping[str, tuple[ModCandidate, ...]],
        warnings: tuple[DuplicateModWarning, ...] = (),
    ) -> None:
        self._candidates = candidates
        self._buckets = MappingProxyType(dict(buckets))
        self._by_location = MappingProxyType(
            {c.location: c for c in candidates if c.location}
        )
        self._warnings = warnings

    @property
    def candidates(self) -> tuple[ModCandidate, ...]:
        """Every candidate, in discovery order."""
        return self._candidates

    @property
    def buckets(self) -> Mapping[str, tuple[ModCandidate, ...]]:
        """Bucket id -> candidates (own id or provides alias), discovery order."""
        return self._buckets

    @property
    def ids(self) -> tuple[str, ...]:
        """All bucket ids, sorted."""
        return tuple(sorted(self._buckets))

    @property
    def warnings(self) -> tuple[DuplicateModWarning, ...]:
        return self._warnings

    @property
    def node_count(self) -> int:
        return len(self._candidates)

    def has_id(self, mod_id: str) -> bool:
        return mod_id in self._buckets

    def providers(self, mod_id: str) -> tuple[ModCandidate, ...]:
        """Candidates that can satisfy a dependency on *mod_id*. Empty if none."""
        return self._buckets.get(mod_id, ())

    def versions(self, mod_id: str) -> list[Version]:
        """Distinct versions available for *mod_id*, newest first."""
        return sorted({c.version for c in self.providers(mod_id)}, reverse=True)

    def by_location(self, location: str) -> ModCandidate | None:
        return self._by_location.get(location)

    def dependencies(self, candidate: ModCandidate) -> tuple[Dependency, ...]:
        return candidate.dependencies

    def requirement_groups(
        self, candidate: ModCandidate, kind: DependencyKind = DependencyKind.REQUIRES
    ) -> tuple[tuple[str, tuple[Dependency, ...]], ...]:
        """Group the *kind* edges of *candidate* by target id.

        Edges to the same target are alternatives: the group is met when any
        one of them is. Groups appear in order of first declaration.
        """
        groups: dict[str, list[Dependency]] = {}
        for dep in candidate.dependencies_of(kind):
            groups.setdefault(dep.target_id, []).append(dep)
        return tuple((target, tuple(deps)) for target, deps in groups.items())

    def __contains__(self, candidate: object) -> bool:
        return candidate in self._candidates

    def __len__(self) -> int:
        return len(self._candidates)


def build_graph(candidates: Iterable[ModCandidate]) -> DependencyGraph:
    """Build the dependency graph for a candidate set.

    Candidates are ordered by discovery index (input order breaks ties).
    Same-id, same-version candidates from different locations are all kept,
    and one ``DuplicateModWarning`` is recorded per extra copy.

    Args:
        candidates: Discovered and builtin candidates.

    Returns:
        A read-only ``DependencyGraph``.
    """
    unique = list(dict.fromkeys(candidates))
    ordered = tuple(sorted(unique, key=lambda c: c.discovery_index))

    buckets: dict[str, list[ModCandidate]] = {}
    for candidate in ordered:
        for mod_id in candidate.ids:
            buckets.setdefault(mod_id, []).append(candidate)

    warnings: list[DuplicateModWarning] = []
    first_seen: dict[tuple[str, Version], ModCandidate] = {}
    for candidate in ordered:
        key = (candidate.id, candidate.version)
        kept = first_seen.get(key)
        if kept is None:
            first_seen[key] = candidate
            continue
        warning = DuplicateModWarning(candidate.id, candidate.version, kept, candidate)
        logger.warning("%s", warning.message())
        warnings.append(warning)

    logger.debug(
        "Built dependency graph: %d candidates in %d id buckets",
        len(ordered), len(buckets),
    )
    return DependencyGraph(
        candidates=ordered,
        buckets={k: tuple(v) for k, v in buckets.items()},
        warnings=tuple(warnings),
    )
