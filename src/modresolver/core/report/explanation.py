"""Human-readable explanations for resolution results.

The wording follows the classic mod loader error messages, for example::

    Mod 'a' 1.2 requires version 2.0 or later of b, but only 'b' 1.0 is present!
    Mod 'a' 1.0 conflicts with any version of b, which rules out 'b' 1.5.

Callers are expected to print ``explain(result)`` verbatim; the engine
itself never writes to the console.
"""

from __future__ import annotations

from modresolver.core.dependency.candidate import ModCandidate
from modresolver.core.report.models import (
    Blame,
    BlameKind,
    Conflict,
    FailureKind,
    ResolutionFailure,
    ResolutionResult,
    ResolutionSuccess,
)


def _candidate_list(candidates: tuple[ModCandidate, ...]) -> str:
    return ", ".join(c.describe() for c in candidates)


def describe_requirement(blame: Blame) -> str:
    """E.g. ``"version 1.x or version 3.0 or later of b"``."""
    if not blame.dependencies:
        return blame.bucket
    ranges = " or ".join(d.predicate.describe() for d in blame.dependencies)
    return f"{ranges} of {blame.bucket}"


def describe_blame(blame: Blame) -> str:
    """Render one blame as a single sentence."""
    source = blame.source.describe()
    requirement = describe_requirement(blame)
    kind = blame.kind

    if kind is BlameKind.MISSING_DEPENDENCY:
        return (
            f"Mod {source} requires {requirement}, which is missing! "
            f"You must install {requirement}."
        )
    if kind is BlameKind.UNSATISFIED_DEPENDENCY:
        if blame.counterparts:
            return (
                f"Mod {source} requires {requirement}, but only "
                f"{_candidate_list(blame.counterparts)} is present!"
            )
        return (
            f"Mod {source} requires {requirement}, but no candidate of "
            f"{blame.bucket} can be loaded!"
        )
    if kind in (BlameKind.CONFLICT, BlameKind.BREAK):
        verb = "conflicts with" if kind is BlameKind.CONFLICT else "is incompatible with"
        clash = _candidate_list(blame.counterparts)
        if blame.subject is blame.source:
            return f"Mod {source} {verb} {requirement}, but only {clash} is available!"
        return f"Mod {source} {verb} {requirement}, which rules out {clash}."
    if kind is BlameKind.UNIQUE_ID:
        subject = blame.subject.describe() if blame.subject else blame.bucket
        return (
            f"Mod {subject} cannot load alongside {source}: only one mod may "
            f"provide the id {blame.bucket!r}."
        )
    if kind is BlameKind.MISSING_PARENT:
        parents = _candidate_list(blame.counterparts) or "its parent"
        return f"Mod {source} is nested in {parents}, which will not be loaded."
    if kind is BlameKind.PARENT_REQUIRED:
        subject = blame.subject.describe() if blame.subject else blame.bucket
        parents = _candidate_list(blame.counterparts)
        return (
            f"Mod {subject} cannot load: {source} is nested in {parents}, "
            "which must load instead."
        )
    if kind is BlameKind.UNMET_RECOMMENDATION:
        if blame.counterparts:
            return (
                f"Mod {source} recommends {requirement}, but only "
                f"{_candidate_list(blame.counterparts)} is present."
            )
        return f"Mod {source} recommends {requirement}, which is missing."
    return f"{kind.value}: {source} {requirement}"  # pragma: no cover


def _merge_blames(blames: tuple[Blame, ...]) -> list[Blame]:
    """Merge forward blames from the same edge so each edge is cited once.

    ``a requires b>=2`` ruling out both b 1.0 and b 1.5 renders as one
    "only 'b' 1.0, 'b' 1.5 is present" sentence rather than two.
    """
    merged: dict[tuple, Blame] = {}
    for blame in blames:
        if blame.subject is blame.source:
            merged.setdefault((id(blame),), blame)
            continue
        key = (blame.kind, blame.source, blame.dependencies, blame.bucket)
        prior = merged.get(key)
        if prior is None:
            merged[key] = blame
            continue
        counterparts = prior.counterparts + tuple(
            c for c in blame.counterparts if c not in prior.counterparts
        )
        merged[key] = Blame(
            kind=prior.kind,
            source=prior.source,
            bucket=prior.bucket,
            dependencies=prior.dependencies,
            subject=prior.subject,
            counterparts=counterparts,
        )
    return list(merged.values())


def describe_conflict(conflict: Conflict) -> str:
    """Render a conflict with its blames and, indented, its causal chain."""
    lines = [f" - {describe_blame(b)}" for b in _merge_blames(conflict.blames)]
    if not lines:
        lines.append(f" - No candidate of {conflict.bucket} can be loaded.")
    for blame in conflict.chain:
        lines.append(f"\t - Because: {describe_blame(blame)}")
    return "\n".join(lines)


def explain(result: ResolutionResult) -> str:
    """Render a full, multi-line explanation of *result*."""
    if isinstance(result, ResolutionSuccess):
        lines = [f"Resolved {len(result.mods)} mods:"]
        lines.extend(f" - {m.describe()}" for m in result.mods)
        for blame in result.unmet_recommendations:
            lines.append(f" ! {describe_blame(blame)}")
        for warning in result.warnings:
            lines.append(f" ! {warning}")
        return "\n".join(lines)

    if not isinstance(result, ResolutionFailure):
        raise TypeError(f"Cannot explain {type(result).__name__}; expected a resolution result")
    if result.kind is FailureKind.TIMEOUT:
        return result.message or "Mod resolution timed out."
    if result.kind is FailureKind.ACTIVATION_ORDER:
        lines = [result.message or "Selected mods cannot be ordered for activation:"]
        for cycle in result.cycles:
            path = " -> ".join(c.describe() for c in cycle + cycle[:1])
            lines.append(f" - Requirement cycle: {path}")
        return "\n".join(lines)

    lines = [result.message or "Mod resolution failed:"]
    lines.extend(describe_conflict(c) for c in result.conflicts)
    return "\n".join(lines)
