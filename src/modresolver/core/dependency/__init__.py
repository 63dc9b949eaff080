"""Mod candidates, the dependency graph and the resolver.

Formal Definition
-----------------
A resolution problem is a tuple (C, B, D, P) where:

- **C** = set of mod candidates (one per discovered location or builtin)
- **B**: id -> 2^C = bucket of candidates whose id or provides alias is id
- **D**: C -> 2^(id x Predicate x Kind) = declared dependency edges
- **P**: C -> 2^C = nesting parents of each candidate

A selection S picks exactly one candidate per non-empty bucket such that
every REQUIRES group of every member of S is met, no CONFLICTS or BREAKS
edge of a member matches another member, and every nested member has a
parent in S.
"""

from modresolver.core.dependency.candidate import Environment, ModCandidate
from modresolver.core.dependency.constraints import Dependency, DependencyKind
from modresolver.core.dependency.graph import (
    DependencyGraph,
    DuplicateModWarning,
    build_graph,
)
from modresolver.core.dependency.ordering import (
    ActivationOrder,
    activation_order,
    requirement_edges,
)
from modresolver.core.dependency.resolver import (
    ModResolver,
    SelectionPolicy,
    resolve,
)

__all__ = [
    "ActivationOrder",
    "Dependency",
    "DependencyGraph",
    "DependencyKind",
    "DuplicateModWarning",
    "Environment",
    "ModCandidate",
    "ModResolver",
    "SelectionPolicy",
    "activation_order",
    "build_graph",
    "requirement_edges",
    "resolve",
]
