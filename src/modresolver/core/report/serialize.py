"""Deterministic serialization of resolution results.

``result_to_dict`` produces plain JSON-compatible data and
``result_to_json`` renders it with sorted keys, so two runs over the same
inputs produce byte-identical output.
"""

from __future__ import annotations

import json
from typing import Any

from modresolver.core.dependency.candidate import ModCandidate
from modresolver.core.dependency.constraints import Dependency
from modresolver.core.report.models import (
    Blame,
    Conflict,
    ResolutionFailure,
    ResolutionResult,
    ResolutionSuccess,
)


def candidate_to_dict(candidate: ModCandidate) -> dict[str, Any]:
    return {
        "id": candidate.id,
        "version": str(candidate.version),
        "name": candidate.name or candidate.id,
        "provides": list(candidate.provides),
        "environment": candidate.environment.value,
        "location": candidate.location,
        "display_path": candidate.display_path,
        "parents": list(candidate.parents),
        "depth": candidate.depth,
        "builtin": candidate.builtin,
    }


def _dependency_to_dict(dep: Dependency) -> dict[str, str]:
    return {
        "target": dep.target_id,
        "predicate": str(dep.predicate),
        "kind": dep.kind.value,
    }


def _candidate_ref(candidate: ModCandidate | None) -> str | None:
    return str(candidate) if candidate is not None else None


def _blame_to_dict(blame: Blame) -> dict[str, Any]:
    return {
        "kind": blame.kind.value,
        "source": _candidate_ref(blame.source),
        "bucket": blame.bucket,
        "dependencies": [_dependency_to_dict(d) for d in blame.dependencies],
        "subject": _candidate_ref(blame.subject),
        "counterparts": [str(c) for c in blame.counterparts],
        "message": blame.describe(),
    }


def _conflict_to_dict(conflict: Conflict) -> dict[str, Any]:
    return {
        "bucket": conflict.bucket,
        "blames": [_blame_to_dict(b) for b in conflict.blames],
        "chain": [_blame_to_dict(b) for b in conflict.chain],
    }


def result_to_dict(result: ResolutionResult) -> dict[str, Any]:
    """Convert a result into JSON-compatible data.

    List order is meaningful (activation order, conflict order) and is kept
    as produced by the resolver.
    """
    if not isinstance(result, (ResolutionSuccess, ResolutionFailure)):
        raise TypeError(f"Cannot serialize {type(result).__name__}; expected a resolution result")
    data: dict[str, Any] = {
        "success": result.success,
        "warnings": list(result.warnings),
    }
    if isinstance(result, ResolutionSuccess):
        data["mods"] = [candidate_to_dict(m) for m in result.mods]
        data["unmet_recommendations"] = [
            _blame_to_dict(b) for b in result.unmet_recommendations
        ]
        return data

    data["kind"] = result.kind.value
    data["message"] = result.message
    data["conflicts"] = [_conflict_to_dict(c) for c in result.conflicts]
    data["selection"] = [candidate_to_dict(m) for m in result.selection]
    data["cycles"] = [[str(c) for c in cycle] for cycle in result.cycles]
    return data


def result_to_json(result: ResolutionResult, indent: int = 2) -> str:
    """Serialize *result* to JSON with sorted keys."""
    return json.dumps(result_to_dict(result), indent=indent, sort_keys=True)
