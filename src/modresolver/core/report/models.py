"""Resolution report data models.

A resolution run produces exactly one ``ResolutionResult``:

- ``ResolutionSuccess``: the selected candidates in activation order, the
  recommendations that were not met, and soft warnings.
- ``ResolutionFailure``: why no selection exists (or why it could not be
  ordered, or that the search ran out of time), citing concrete candidates
  and concrete dependency edges.

All models are frozen and hold tuples only, so the activation layer that
consumes a result cannot alter the selection it was handed.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from modresolver.core.dependency.candidate import ModCandidate
from modresolver.core.dependency.constraints import Dependency
from modresolver.exceptions import (
    ActivationOrderError,
    ResolutionError,
    ResolutionTimeoutError,
)


class BlameKind(Enum):
    """Why a candidate was ruled out (or a recommendation left unmet)."""

    MISSING_DEPENDENCY = "missing_dependency"
    UNSATISFIED_DEPENDENCY = "unsatisfied_dependency"
    CONFLICT = "conflict"
    BREAK = "break"
    UNIQUE_ID = "unique_id"
    MISSING_PARENT = "missing_parent"
    PARENT_REQUIRED = "parent_required"
    UNMET_RECOMMENDATION = "unmet_recommendation"


class FailureKind(Enum):
    """Distinct ways a resolution attempt can fail."""

    UNSATISFIABLE = "unsatisfiable"
    TIMEOUT = "timeout"
    ACTIVATION_ORDER = "activation_order"


@dataclass(frozen=True)
class Blame:
    """One recorded reason, tied to a concrete edge and concrete candidates.

    Attributes:
        kind: What kind of edge produced this blame.
        source: Candidate owning the edge (the requiring, conflicting or
            already-selected mod).
        bucket: Mod id the edge concerns.
        dependencies: The edge(s); several entries for an OR-group of
            requirements. Empty for unique-id and nesting blames.
        subject: Candidate that was ruled out. ``None`` for unmet
            recommendations. Equal to ``source`` when a candidate was
            ruled out by its own declarations.
        counterparts: Candidates on the other side of the edge: the versions
            that are present, or the candidates that caused the clash.
    """

    kind: BlameKind
    source: ModCandidate
    bucket: str
    dependencies: tuple[Dependency, ...] = ()
    subject: ModCandidate | None = None
    counterparts: tuple[ModCandidate, ...] = ()

    def describe(self) -> str:
        from modresolver.core.report.explanation import describe_blame

        return describe_blame(self)

    def __str__(self) -> str:
        return self.describe()


@dataclass(frozen=True)
class Conflict:
    """A contradiction: some mod id was left without any loadable candidate.

    Attributes:
        bucket: The id that could not be satisfied.
        blames: Why each candidate of that id was ruled out. For a missing
            dependency this is the single requiring edge.
        chain: Shortest chain of edges from a root candidate leading to the
            contradiction, root first.
    """

    bucket: str
    blames: tuple[Blame, ...]
    chain: tuple[Blame, ...] = ()

    @property
    def candidates(self) -> tuple[ModCandidate, ...]:
        """Every candidate cited by this conflict, without repeats."""
        seen: dict[ModCandidate, None] = {}
        for blame in self.chain + self.blames:
            seen.setdefault(blame.source, None)
            if blame.subject is not None:
                seen.setdefault(blame.subject, None)
            for c in blame.counterparts:
                seen.setdefault(c, None)
        return tuple(seen)

    def describe(self) -> str:
        from modresolver.core.report.explanation import describe_conflict

        return describe_conflict(self)


class ResolutionResult:
    """Common interface of ``ResolutionSuccess`` and ``ResolutionFailure``."""

    success: bool = False
    warnings: tuple[str, ...] = ()

    def explain(self) -> str:
        from modresolver.core.report.explanation import explain

        return explain(self)

    def to_dict(self) -> dict:
        from modresolver.core.report.serialize import result_to_dict

        return result_to_dict(self)

    def to_json(self) -> str:
        from modresolver.core.report.serialize import result_to_json

        return result_to_json(self)


@dataclass(frozen=True)
class ResolutionSuccess(ResolutionResult):
    """A consistent selection, ready for activation.

    Attributes:
        mods: Selected candidates in activation order (dependencies first,
            ties broken by discovery order).
        unmet_recommendations: Recommendations of selected mods that the
            selection does not satisfy.
        warnings: Soft issues, e.g. duplicate copies of a mod.
    """

    mods: tuple[ModCandidate, ...]
    unmet_recommendations: tuple[Blame, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def success(self) -> bool:  # type: ignore[override]
        return True

    @property
    def selected(self) -> Mapping[str, ModCandidate]:
        """Read-only mapping of every satisfied id (incl. provides) to its mod."""
        mapping: dict[str, ModCandidate] = {}
        for mod in self.mods:
            for mod_id in mod.ids:
                mapping.setdefault(mod_id, mod)
        return MappingProxyType(mapping)

    def version_of(self, mod_id: str) -> str | None:
        mod = self.selected.get(mod_id)
        return str(mod.version) if mod is not None else None

    def raise_for_failure(self) -> None:
        """No-op on success; mirrors ``ResolutionFailure.raise_for_failure``."""


@dataclass(frozen=True)
class ResolutionFailure(ResolutionResult):
    """Why resolution produced no usable selection.

    Attributes:
        kind: ``UNSATISFIABLE``, ``TIMEOUT`` or ``ACTIVATION_ORDER``.
        conflicts: The minimal contradictions found (unsatisfiable only).
        selection: For ``ACTIVATION_ORDER``: the valid selection that could
            not be ordered, in discovery order.
        cycles: For ``ACTIVATION_ORDER``: the requirement cycles.
        message: One-line summary.
        warnings: Soft issues collected before the failure.
    """

    kind: FailureKind
    conflicts: tuple[Conflict, ...] = ()
    selection: tuple[ModCandidate, ...] = ()
    cycles: tuple[tuple[ModCandidate, ...], ...] = ()
    message: str = ""
    warnings: tuple[str, ...] = ()

    @property
    def success(self) -> bool:  # type: ignore[override]
        return False

    def raise_for_failure(self) -> None:
        """Raise the ``ResolutionError`` subclass matching ``kind``."""
        text = self.explain()
        if self.kind is FailureKind.TIMEOUT:
            raise ResolutionTimeoutError(text, self)
        if self.kind is FailureKind.ACTIVATION_ORDER:
            raise ActivationOrderError(text, self)
        raise ResolutionError(text, self)
