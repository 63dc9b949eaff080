"""Activation ordering of a resolved selection.

A selection is activated dependencies first: whenever ``a`` requires ``b``
and both are selected, ``b`` comes before ``a``. Ties are broken by
discovery index, so the order is stable across runs.

Requirement cycles are legal for selection but have no valid activation
order. By default they are reported; with ``break_cycles`` the cycle is cut
at its member with the lowest discovery index and a warning is recorded.
"""

from __future__ import annotations

import heapq
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from modresolver.core.dependency.candidate import ModCandidate
from modresolver.core.dependency.constraints import DependencyKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActivationOrder:
    """Outcome of ordering a selection.

    Attributes:
        mods: Ordered candidates. Incomplete when ``cycles`` is non-empty and
            cycles were not broken.
        cycles: Requirement cycles found, each listed in requirement
            direction starting at its lowest-index member.
        warnings: One message per broken cycle.
    """

    mods: tuple[ModCandidate, ...]
    cycles: tuple[tuple[ModCandidate, ...], ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def complete(self) -> bool:
        return not self.cycles or bool(self.warnings)


def requirement_edges(
    mods: Iterable[ModCandidate],
) -> dict[ModCandidate, tuple[ModCandidate, ...]]:
    """Map each selected mod to the selected mods it requires.

    Self edges (a mod requiring one of its own ids) are dropped.
    """
    selection = tuple(mods)
    provider_of: dict[str, ModCandidate] = {}
    for mod in selection:
        for mod_id in mod.ids:
            provider_of.setdefault(mod_id, mod)

    edges: dict[ModCandidate, tuple[ModCandidate, ...]] = {}
    for mod in selection:
        targets: dict[ModCandidate, None] = {}
        for dep in mod.dependencies_of(DependencyKind.REQUIRES):
            provider = provider_of.get(dep.target_id)
            if provider is not None and provider is not mod:
                targets.setdefault(provider, None)
        edges[mod] = tuple(targets)
    return edges


def _strongly_connected(
    nodes: list[ModCandidate], edges: dict[ModCandidate, tuple[ModCandidate, ...]]
) -> list[list[ModCandidate]]:
    """Tarjan's algorithm restricted to *nodes*."""
    members = set(nodes)
    index: dict[ModCandidate, int] = {}
    low: dict[ModCandidate, int] = {}
    stack: list[ModCandidate] = []
    on_stack: set[ModCandidate] = set()
    components: list[list[ModCandidate]] = []

    def visit(node: ModCandidate) -> None:
        index[node] = low[node] = len(index)
        stack.append(node)
        on_stack.add(node)
        for succ in edges.get(node, ()):
            if succ not in members:
                continue
            if succ not in index:
                visit(succ)
                low[node] = min(low[node], low[succ])
            elif succ in on_stack:
                low[node] = min(low[node], index[succ])
        if low[node] == index[node]:
            component = []
            while True:
                member = stack.pop()
                on_stack.discard(member)
                component.append(member)
                if member is node:
                    break
            components.append(component)

    for node in nodes:
        if node not in index:
            visit(node)
    return components


def _cycle_path(
    component: list[ModCandidate], edges: dict[ModCandidate, tuple[ModCandidate, ...]]
) -> tuple[ModCandidate, ...]:
    """Shortest requirement cycle through the lowest-index member of *component*."""
    members = set(component)
    start = min(component, key=lambda c: c.discovery_index)
    previous: dict[ModCandidate, ModCandidate] = {}
    frontier = [start]
    while frontier:
        next_frontier = []
        for node in frontier:
            for succ in edges.get(node, ()):
                if succ not in members:
                    continue
                if succ is start:
                    path = [node]
                    while path[-1] is not start:
                        path.append(previous[path[-1]])
                    return tuple(reversed(path))
                if succ not in previous:
                    previous[succ] = node
                    next_frontier.append(succ)
        frontier = next_frontier
    return tuple(sorted(component, key=lambda c: c.discovery_index))


def activation_order(
    mods: Iterable[ModCandidate], break_cycles: bool = False
) -> ActivationOrder:
    """Topologically sort a selection, dependencies first.

    Args:
        mods: The selected candidates.
        break_cycles: Cut requirement cycles instead of reporting them.

    Returns:
        An ``ActivationOrder``. When cycles exist and ``break_cycles`` is
        False, ``cycles`` lists them and ``mods`` holds only the part that
        could be ordered.
    """
    selection = sorted(set(mods), key=lambda c: c.discovery_index)
    requires = requirement_edges(selection)

    dependents: dict[ModCandidate, list[ModCandidate]] = {m: [] for m in selection}
    pending: dict[ModCandidate, int] = {}
    for mod in selection:
        pending[mod] = len(requires[mod])
        for provider in requires[mod]:
            dependents[provider].append(mod)

    heap = [(m.discovery_index, i, m) for i, m in enumerate(selection) if not pending[m]]
    heapq.heapify(heap)
    position = {m: i for i, m in enumerate(selection)}
    ordered: list[ModCandidate] = []
    done: set[ModCandidate] = set()
    cycles: list[tuple[ModCandidate, ...]] = []
    warnings: list[str] = []

    while True:
        while heap:
            _, _, mod = heapq.heappop(heap)
            if mod in done:
                continue
            done.add(mod)
            ordered.append(mod)
            for dependent in dependents[mod]:
                pending[dependent] -= 1
                if pending[dependent] == 0 and dependent not in done:
                    heapq.heappush(
                        heap, (dependent.discovery_index, position[dependent], dependent)
                    )

        remaining = [m for m in selection if m not in done]
        if not remaining:
            break

        found = [
            _cycle_path(component, requires)
            for component in _strongly_connected(remaining, requires)
            if len(component) > 1
        ]
        found.sort(key=lambda cycle: cycle[0].discovery_index)
        cycles.extend(c for c in found if c not in cycles)
        if not break_cycles or not found:
            break

        victim = found[0][0]
        path = " -> ".join(str(c) for c in found[0] + found[0][:1])
        message = f"Requirement cycle {path} broken at {victim}"
        logger.warning("%s", message)
        warnings.append(message)
        pending[victim] = 0
        heapq.heappush(heap, (victim.discovery_index, position[victim], victim))

    return ActivationOrder(
        mods=tuple(ordered), cycles=tuple(cycles), warnings=tuple(warnings)
    )
