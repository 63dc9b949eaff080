"""Dependency resolution over a ``DependencyGraph``.

The resolver looks for a selection that picks exactly one candidate for
every open id bucket, such that:

- a candidate is selected in all of its buckets (own id and provides
  aliases) or in none of them;
- every REQUIRES group of a selected candidate is met by the candidate
  selected for the target id;
- no CONFLICTS or BREAKS edge of a selected candidate matches the
  candidate selected for its target id;
- every selected nested candidate has at least one selected parent;
- every builtin candidate is selected.

A bucket is open when it holds a root candidate, when a selected candidate
requires it, or when a selected parent bundles a candidate of that id. A
bucket of nested candidates that nothing asks for stays empty.

Search is backtracking with propagation. Each search node propagates to a
fixpoint: candidates whose constraints can no longer hold against the
remaining domains are pruned, single-candidate open buckets are forced, and
an empty open bucket is a contradiction. Propagation is driven by work
queues, so only candidates watching a changed bucket are revisited. Every
prune records a ``Blame`` naming the edge and candidates responsible; every
forced selection remembers the blames that forced it, which gives each
contradiction a causal chain back to a builtin or a search decision.

The search is single-threaded and deterministic: all iteration runs over
tuples ordered by discovery index, version or id, never over hash order.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Hashable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from modresolver.core.dependency.candidate import ModCandidate
from modresolver.core.dependency.constraints import Dependency, DependencyKind
from modresolver.core.dependency.graph import DependencyGraph
from modresolver.core.dependency.ordering import activation_order
from modresolver.core.report.models import (
    Blame,
    BlameKind,
    Conflict,
    FailureKind,
    ResolutionFailure,
    ResolutionResult,
    ResolutionSuccess,
)

logger = logging.getLogger(__name__)

_NEGATIVE_KINDS = (DependencyKind.CONFLICTS, DependencyKind.BREAKS)


class SelectionPolicy(Enum):
    """Order in which alternatives of one id are tried."""

    NEWEST = "newest"
    FIRST_DISCOVERED = "first-discovered"

    @classmethod
    def parse(cls, value: str | SelectionPolicy) -> SelectionPolicy:
        if isinstance(value, SelectionPolicy):
            return value
        normalized = value.strip().lower().replace("_", "-")
        for policy in cls:
            if policy.value == normalized:
                return policy
        raise ValueError(
            f"Unknown selection policy {value!r}; expected one of "
            + ", ".join(p.value for p in cls)
        )

    def order(self, candidates: tuple[ModCandidate, ...]) -> tuple[ModCandidate, ...]:
        """Sort alternatives of one bucket, most preferred first."""
        if self is SelectionPolicy.NEWEST:
            by_index = sorted(candidates, key=lambda c: c.discovery_index)
            return tuple(sorted(by_index, key=lambda c: c.version, reverse=True))
        by_version = sorted(candidates, key=lambda c: c.version, reverse=True)
        return tuple(sorted(by_version, key=lambda c: c.discovery_index))


class _SearchTimeout(Exception):
    """Internal signal: the search deadline passed."""


# ---------------------------------------------------------------------------
# Search state
# ---------------------------------------------------------------------------


class _WorkQueue:
    """FIFO of distinct pending items."""

    def __init__(self, items: Iterable[Hashable] = ()) -> None:
        self._items: deque = deque()
        self._members: set = set()
        self.extend(items)

    def extend(self, items: Iterable[Hashable]) -> None:
        for item in items:
            if item not in self._members:
                self._members.add(item)
                self._items.append(item)

    def pop(self):
        item = self._items.popleft()
        self._members.discard(item)
        return item

    def __bool__(self) -> bool:
        return bool(self._items)


@dataclass
class _SearchState:
    """Mutable per-branch state. Copied before every branching decision.

    Attributes:
        pruned: Ruled-out candidates and the blame that ruled each out.
        selected: Selected candidates, in selection order.
        forced_by: For each selected candidate, the blames that forced it.
            Empty for builtins and search decisions.
        chosen: Bucket id -> the candidate selected in it.
        opened: Buckets without a root candidate that must still be filled
            because a selected candidate requires or bundles them.
        recheck: Candidates whose viability must be re-evaluated.
        fresh: Selected candidates whose edges have not been applied yet.
        touched: Buckets whose domain changed since they were last settled.
    """

    pruned: dict[ModCandidate, Blame] = field(default_factory=dict)
    selected: dict[ModCandidate, None] = field(default_factory=dict)
    forced_by: dict[ModCandidate, tuple[Blame, ...]] = field(default_factory=dict)
    chosen: dict[str, ModCandidate] = field(default_factory=dict)
    opened: set[str] = field(default_factory=set)
    recheck: _WorkQueue = field(default_factory=_WorkQueue)
    fresh: _WorkQueue = field(default_factory=_WorkQueue)
    touched: _WorkQueue = field(default_factory=_WorkQueue)

    def copy(self) -> _SearchState:
        # Queues are drained by every propagation, so a branch starts empty.
        return _SearchState(
            pruned=dict(self.pruned),
            selected=dict(self.selected),
            forced_by=dict(self.forced_by),
            chosen=dict(self.chosen),
            opened=set(self.opened),
        )

    def alive(self, candidate: ModCandidate) -> bool:
        return candidate not in self.pruned


# ---------------------------------------------------------------------------
# ModResolver
# ---------------------------------------------------------------------------


class ModResolver:
    """Find a consistent mod selection for a dependency graph.

    Args:
        graph: The graph to resolve.
        policy: Preference order among alternatives of one id.
        timeout: Seconds before the search gives up, or None for no limit.
        break_cycles: Cut requirement cycles when ordering the selection
            instead of failing.

    Example::

        result = ModResolver(build_graph(candidates)).resolve()
        if not result.success:
            print(result.explain())
    """

    def __init__(
        self,
        graph: DependencyGraph,
        policy: SelectionPolicy = SelectionPolicy.NEWEST,
        timeout: float | None = None,
        break_cycles: bool = False,
    ) -> None:
        self._graph = graph
        self._policy = policy
        self._timeout = timeout
        self._break_cycles = break_cycles
        self._order = {
            bucket: policy.order(members) for bucket, members in graph.buckets.items()
        }
        self._bucket_ids = graph.ids
        self._deadline: float | None = None
        self._leaf_conflicts: list[Conflict] = []
        self._nodes = 0

        self._groups = {c: graph.requirement_groups(c) for c in graph.candidates}
        self._negatives = {c: c.dependencies_of(*_NEGATIVE_KINDS) for c in graph.candidates}
        self._parents_of: dict[ModCandidate, tuple[ModCandidate, ...]] = {}
        self._children: dict[ModCandidate, list[ModCandidate]] = {}
        self._watchers: dict[str, list[ModCandidate]] = {}
        for candidate in graph.candidates:
            parents = tuple(
                p for p in map(graph.by_location, candidate.parents) if p is not None
            )
            self._parents_of[candidate] = parents
            for parent in parents:
                self._children.setdefault(parent, []).append(candidate)
            targets = [t for t, _ in self._groups[candidate]]
            targets += [d.target_id for d in self._negatives[candidate]]
            for target in dict.fromkeys(targets):
                self._watchers.setdefault(target, []).append(candidate)
        # Nested candidates whose parents are not in the graph count as roots.
        self._root_buckets = frozenset(
            bucket
            for bucket, members in graph.buckets.items()
            if any(not self._parents_of[c] for c in members)
        )

    @property
    def graph(self) -> DependencyGraph:
        return self._graph

    def resolve(self) -> ResolutionResult:
        """Run the search and build the resolution report.

        Never raises for unsatisfiable input; the returned result carries
        the explanation. Call ``raise_for_failure()`` on it to convert a
        failure into an exception.
        """
        started = time.monotonic()
        self._deadline = started + self._timeout if self._timeout is not None else None
        self._leaf_conflicts = []
        self._nodes = 0
        warnings = tuple(w.message() for w in self._graph.warnings)

        try:
            outcome = self._run()
        except _SearchTimeout:
            logger.warning(
                "Resolution timed out after %.2fs (%d search nodes)",
                time.monotonic() - started, self._nodes,
            )
            return ResolutionFailure(
                kind=FailureKind.TIMEOUT,
                message=(
                    f"Mod resolution timed out after {self._timeout:g}s "
                    f"({len(self._graph)} candidates, {self._nodes} search nodes)."
                ),
                warnings=warnings,
            )

        logger.debug(
            "Resolution finished in %.3fs (%d search nodes)",
            time.monotonic() - started, self._nodes,
        )
        if isinstance(outcome, tuple):
            return ResolutionFailure(
                kind=FailureKind.UNSATISFIABLE,
                conflicts=outcome,
                message="Mod resolution encountered an incompatible mod set!",
                warnings=warnings,
            )
        return self._success(outcome, warnings)

    # -- search -------------------------------------------------------------

    def _run(self) -> _SearchState | tuple[Conflict, ...]:
        state = _SearchState()
        state.recheck.extend(self._graph.candidates)
        state.touched.extend(self._bucket_ids)
        for candidate in self._graph.candidates:
            if candidate.builtin and state.alive(candidate) and candidate not in state.selected:
                conflict = self._select(state, candidate, ())
                if conflict is not None:
                    return (conflict,)
        conflict = self._propagate(state)
        if conflict is not None:
            return (conflict,)

        solution = self._search(state)
        if solution is not None:
            return solution
        return self._minimal_conflicts()

    def _search(self, state: _SearchState) -> _SearchState | None:
        self._nodes += 1
        self._check_deadline()

        choice = self._choose_bucket(state)
        if choice is None:
            return state

        bucket, options = choice
        for option in options:
            logger.debug("Trying %s for %s", option, bucket)
            child = state.copy()
            conflict = self._select(child, option, ())
            if conflict is None:
                conflict = self._propagate(child)
            if conflict is not None:
                self._leaf_conflicts.append(conflict)
                continue
            solution = self._search(child)
            if solution is not None:
                return solution
        return None

    def _choose_bucket(
        self, state: _SearchState
    ) -> tuple[str, tuple[ModCandidate, ...]] | None:
        """Open bucket with the fewest options; ties by discovery index, then id.

        Once every open bucket is filled, a selected nested candidate that
        still lacks a selected parent branches over its remaining parents.
        """
        best: tuple[int, int, str] | None = None
        best_domain: tuple[ModCandidate, ...] = ()
        for bucket in self._bucket_ids:
            if bucket in state.chosen or not self._is_open(state, bucket):
                continue
            domain = self._domain(state, bucket)
            key = (len(domain), min(c.discovery_index for c in domain), bucket)
            if best is None or key < best:
                best, best_domain = key, domain
        if best is not None:
            return best[2], best_domain

        for candidate in state.selected:
            parents = self._parents_of[candidate]
            if parents and not any(p in state.selected for p in parents):
                return candidate.id, tuple(p for p in parents if state.alive(p))
        return None

    def _domain(self, state: _SearchState, bucket: str) -> tuple[ModCandidate, ...]:
        return tuple(c for c in self._order.get(bucket, ()) if state.alive(c))

    def _is_open(self, state: _SearchState, bucket: str) -> bool:
        return bucket in self._root_buckets or bucket in state.opened

    def _check_deadline(self) -> None:
        if self._deadline is not None and time.monotonic() > self._deadline:
            raise _SearchTimeout()

    # -- propagation --------------------------------------------------------

    def _select(
        self,
        state: _SearchState,
        candidate: ModCandidate,
        reasons: tuple[Blame, ...],
        sibling_kind: BlameKind = BlameKind.UNIQUE_ID,
        sibling_source: ModCandidate | None = None,
    ) -> Conflict | None:
        """Select *candidate* and prune the other candidates of its buckets."""
        state.selected[candidate] = None
        state.forced_by[candidate] = reasons
        state.fresh.extend((candidate,))
        state.recheck.extend((candidate,))
        source = sibling_source or candidate
        for bucket in candidate.ids:
            state.chosen[bucket] = candidate
            state.recheck.extend(self._watchers.get(bucket, ()))
            for other in self._domain(state, bucket):
                if other is candidate:
                    continue
                blame = Blame(
                    kind=sibling_kind,
                    source=source,
                    bucket=bucket,
                    subject=other,
                    counterparts=(candidate,),
                )
                if other in state.selected:
                    return self._conflict(state, bucket, (blame,))
                self._prune(state, other, blame)
        return None

    def _prune(self, state: _SearchState, candidate: ModCandidate, blame: Blame) -> None:
        state.pruned[candidate] = blame
        for bucket in candidate.ids:
            state.touched.extend((bucket,))
            state.recheck.extend(self._watchers.get(bucket, ()))
        state.recheck.extend(self._children.get(candidate, ()))

    def _open(self, state: _SearchState, bucket: str) -> None:
        """Require *bucket* to be filled even though it holds no root candidate."""
        if bucket not in self._order or self._is_open(state, bucket):
            return
        state.opened.add(bucket)
        state.touched.extend((bucket,))
        state.recheck.extend(self._watchers.get(bucket, ()))

    def _propagate(self, state: _SearchState) -> Conflict | None:
        """Prune and force until the work queues drain. Returns the first contradiction."""
        while state.recheck or state.fresh or state.touched:
            self._check_deadline()
            if state.recheck:
                conflict = self._revisit(state, state.recheck.pop())
            elif state.fresh:
                conflict = self._apply_edges(state, state.fresh.pop())
            else:
                conflict = self._settle(state, state.touched.pop())
            if conflict is not None:
                return conflict
        return None

    def _revisit(self, state: _SearchState, candidate: ModCandidate) -> Conflict | None:
        """Prune *candidate* if it can no longer be selected."""
        if not state.alive(candidate):
            return None
        blame = self._viability(state, candidate)
        if blame is not None:
            if candidate in state.selected:
                return self._conflict(state, blame.bucket, (blame,))
            self._prune(state, candidate, blame)
            return None
        if candidate in state.selected:
            return self._require_parent(state, candidate)
        return None

    def _require_parent(self, state: _SearchState, candidate: ModCandidate) -> Conflict | None:
        """Select the only remaining parent of a selected nested candidate."""
        alive = [p for p in self._parents_of[candidate] if state.alive(p)]
        if len(alive) != 1 or alive[0] in state.selected:
            return None
        parent = alive[0]
        reason = Blame(
            kind=BlameKind.PARENT_REQUIRED,
            source=candidate,
            bucket=parent.id,
            subject=parent,
            counterparts=(parent,),
        )
        return self._select(
            state, parent, (reason,),
            sibling_kind=BlameKind.PARENT_REQUIRED,
            sibling_source=candidate,
        )

    def _apply_edges(self, state: _SearchState, selected: ModCandidate) -> Conflict | None:
        """Open what a newly selected candidate needs and prune what it excludes."""
        for target, _ in self._groups[selected]:
            if target not in selected.ids:
                self._open(state, target)
        for child in self._children.get(selected, ()):
            self._open(state, child.id)
        return self._prune_from(state, selected)

    def _settle(self, state: _SearchState, bucket: str) -> Conflict | None:
        """Fail an empty open bucket; force an open bucket down to one option."""
        if bucket in state.chosen or not self._is_open(state, bucket):
            return None
        domain = self._domain(state, bucket)
        if len(domain) > 1:
            return None
        reasons = tuple(state.pruned[c] for c in self._order[bucket] if c in state.pruned)
        if not domain:
            return self._conflict(state, bucket, reasons)
        return self._select(state, domain[0], reasons)

    def _viability(self, state: _SearchState, candidate: ModCandidate) -> Blame | None:
        """Return why *candidate* can no longer be selected, or None."""
        for target, deps in self._groups[candidate]:
            if target in candidate.ids:
                if any(d.matches(candidate.version) for d in deps):
                    continue
                return Blame(
                    kind=BlameKind.UNSATISFIED_DEPENDENCY,
                    source=candidate,
                    bucket=target,
                    dependencies=deps,
                    subject=candidate,
                    counterparts=(candidate,),
                )
            providers = self._graph.providers(target)
            if not providers:
                return Blame(
                    kind=BlameKind.MISSING_DEPENDENCY,
                    source=candidate,
                    bucket=target,
                    dependencies=deps,
                    subject=candidate,
                )
            options = self._domain(state, target)
            if not any(_group_matches(deps, o) for o in options):
                return Blame(
                    kind=BlameKind.UNSATISFIED_DEPENDENCY,
                    source=candidate,
                    bucket=target,
                    dependencies=deps,
                    subject=candidate,
                    counterparts=options or _sorted_by_index(providers),
                )

        for dep in self._negatives[candidate]:
            target = dep.target_id
            if target in candidate.ids:
                continue
            # A bucket that may stay empty cannot force a conflict.
            if target not in state.chosen and not self._is_open(state, target):
                continue
            options = self._domain(state, target)
            if options and all(dep.matches(o.version) for o in options):
                return Blame(
                    kind=_blame_kind(dep),
                    source=candidate,
                    bucket=target,
                    dependencies=(dep,),
                    subject=candidate,
                    counterparts=options,
                )

        parents = self._parents_of[candidate]
        if parents and not any(state.alive(p) for p in parents):
            return Blame(
                kind=BlameKind.MISSING_PARENT,
                source=candidate,
                bucket=candidate.id,
                subject=candidate,
                counterparts=parents,
            )
        return None

    def _prune_from(self, state: _SearchState, selected: ModCandidate) -> Conflict | None:
        """Prune alternatives ruled out by the edges of a selected candidate."""
        for target, deps in self._groups[selected]:
            if target in selected.ids:
                continue
            for option in self._domain(state, target):
                if option in state.selected or _group_matches(deps, option):
                    continue
                self._prune(state, option, Blame(
                    kind=BlameKind.UNSATISFIED_DEPENDENCY,
                    source=selected,
                    bucket=target,
                    dependencies=deps,
                    subject=option,
                    counterparts=(option,),
                ))

        for dep in self._negatives[selected]:
            if dep.target_id in selected.ids:
                continue
            for option in self._domain(state, dep.target_id):
                if not dep.matches(option.version):
                    continue
                blame = Blame(
                    kind=_blame_kind(dep),
                    source=selected,
                    bucket=dep.target_id,
                    dependencies=(dep,),
                    subject=option,
                    counterparts=(option,),
                )
                if option in state.selected:
                    return self._conflict(state, dep.target_id, (blame,))
                self._prune(state, option, blame)
        return None

    # -- explanations -------------------------------------------------------

    def _conflict(
        self, state: _SearchState, bucket: str, blames: tuple[Blame, ...]
    ) -> Conflict:
        chain: tuple[Blame, ...] = ()
        memo: dict[Blame, tuple[Blame, ...]] = {}
        for blame in blames:
            candidate_chain = self._chain_to(state, blame, memo, set())
            if candidate_chain and (not chain or len(candidate_chain) < len(chain)):
                chain = candidate_chain
        return Conflict(bucket=bucket, blames=blames, chain=chain)

    def _causes(self, state: _SearchState, blame: Blame) -> tuple[Blame, ...]:
        """Blames that made *blame* happen."""
        source = blame.source
        if blame.subject is not source:
            return state.forced_by.get(source, ())
        if blame.kind is BlameKind.MISSING_PARENT:
            return tuple(state.pruned[p] for p in blame.counterparts if p in state.pruned)
        if blame.kind is BlameKind.UNSATISFIED_DEPENDENCY:
            return tuple(
                state.pruned[c]
                for c in self._order.get(blame.bucket, ())
                if c in state.pruned and _group_matches(blame.dependencies, c)
            )
        if blame.kind in (BlameKind.CONFLICT, BlameKind.BREAK):
            dep = blame.dependencies[0]
            return tuple(
                state.pruned[c]
                for c in self._order.get(blame.bucket, ())
                if c in state.pruned and not dep.matches(c.version)
            )
        return ()

    def _chain_to(
        self,
        state: _SearchState,
        blame: Blame,
        memo: dict[Blame, tuple[Blame, ...]],
        visiting: set[Blame],
    ) -> tuple[Blame, ...]:
        """Shortest chain of blames leading up to *blame*, root first."""
        if blame in memo:
            return memo[blame]
        visiting.add(blame)
        best: tuple[Blame, ...] | None = None
        for cause in self._causes(state, blame):
            if cause in visiting:
                continue
            path = self._chain_to(state, cause, memo, visiting) + (cause,)
            if best is None or len(path) < len(best):
                best = path
        visiting.discard(blame)
        memo[blame] = best or ()
        return memo[blame]

    def _minimal_conflicts(self) -> tuple[Conflict, ...]:
        """Distinct leaf conflicts with the fewest blames, in search order."""
        distinct: dict[tuple, Conflict] = {}
        for conflict in self._leaf_conflicts:
            distinct.setdefault((conflict.bucket, conflict.blames), conflict)
        if not distinct:
            return ()
        fewest = min(len(c.blames) for c in distinct.values())
        return tuple(c for c in distinct.values() if len(c.blames) == fewest)

    # -- success ------------------------------------------------------------

    def _success(
        self, state: _SearchState, warnings: tuple[str, ...]
    ) -> ResolutionResult:
        selection = tuple(c for c in self._graph.candidates if c in state.selected)
        order = activation_order(selection, break_cycles=self._break_cycles)
        if not order.complete:
            return ResolutionFailure(
                kind=FailureKind.ACTIVATION_ORDER,
                selection=selection,
                cycles=order.cycles,
                message=(
                    "Selected mods cannot be ordered for activation because "
                    "their requirements form a cycle:"
                ),
                warnings=warnings,
            )

        unmet = self._unmet_recommendations(order.mods)
        for blame in unmet:
            logger.warning("%s", blame.describe())
        return ResolutionSuccess(
            mods=order.mods,
            unmet_recommendations=unmet,
            warnings=warnings + order.warnings,
        )

    @staticmethod
    def _unmet_recommendations(mods: tuple[ModCandidate, ...]) -> tuple[Blame, ...]:
        provider_of: dict[str, ModCandidate] = {}
        for mod in mods:
            for mod_id in mod.ids:
                provider_of.setdefault(mod_id, mod)

        unmet: list[Blame] = []
        for mod in sorted(mods, key=lambda c: c.discovery_index):
            groups: dict[str, list[Dependency]] = {}
            for dep in mod.dependencies_of(DependencyKind.RECOMMENDS):
                groups.setdefault(dep.target_id, []).append(dep)
            for target, deps in groups.items():
                provider = provider_of.get(target)
                if provider is not None and _group_matches(tuple(deps), provider):
                    continue
                unmet.append(
                    Blame(
                        kind=BlameKind.UNMET_RECOMMENDATION,
                        source=mod,
                        bucket=target,
                        dependencies=tuple(deps),
                        counterparts=(provider,) if provider is not None else (),
                    )
                )
        return tuple(unmet)


def _group_matches(deps: tuple[Dependency, ...], candidate: ModCandidate) -> bool:
    return any(d.matches(candidate.version) for d in deps)


def _blame_kind(dep: Dependency) -> BlameKind:
    return BlameKind.BREAK if dep.kind is DependencyKind.BREAKS else BlameKind.CONFLICT


def _sorted_by_index(candidates: tuple[ModCandidate, ...]) -> tuple[ModCandidate, ...]:
    return tuple(sorted(candidates, key=lambda c: c.discovery_index))


def resolve(
    graph: DependencyGraph,
    policy: SelectionPolicy = SelectionPolicy.NEWEST,
    timeout: float | None = None,
    break_cycles: bool = False,
) -> ResolutionResult:
    """Convenience wrapper: ``ModResolver(graph, ...).resolve()``."""
    return ModResolver(graph, policy, timeout, break_cycles).resolve()
