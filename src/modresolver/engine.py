"""End-to-end pipeline: finders -> discoverer -> graph -> resolver -> report.

``run(context)`` is the entry point hosts and the CLI use. It never prints;
callers render the returned ``PipelineResult`` themselves.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from modresolver.config import ResolverConfig
from modresolver.context import ResolutionContext
from modresolver.core.dependency.candidate import ModCandidate
from modresolver.core.dependency.graph import DependencyGraph, build_graph
from modresolver.core.dependency.resolver import ModResolver
from modresolver.core.report.models import ResolutionResult
from modresolver.discovery.models import DiscoveryResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    """Everything one run produced.

    Attributes:
        discovery: Candidates, non-modules, exclusions and issues.
        graph: The dependency graph the resolver worked on.
        result: The resolution outcome.
    """

    discovery: DiscoveryResult
    graph: DependencyGraph
    result: ResolutionResult

    @property
    def success(self) -> bool:
        return self.result.success


def discover(context: ResolutionContext) -> DiscoveryResult:
    """Run discovery only.

    Raises:
        DiscoveryError: If discovery as a whole failed.
    """
    return context.discoverer().discover()


def resolve_candidates(
    candidates: Iterable[ModCandidate], config: ResolverConfig | None = None
) -> ResolutionResult:
    """Build the graph for *candidates* and resolve it."""
    config = config or ResolverConfig()
    graph = build_graph(candidates)
    return ModResolver(
        graph,
        policy=config.policy,
        timeout=config.timeout,
        break_cycles=config.break_cycles,
    ).resolve()


def run(context: ResolutionContext) -> PipelineResult:
    """Discover, build the graph and resolve.

    Raises:
        DiscoveryError: If discovery as a whole failed. Resolution failures
            are returned in ``PipelineResult.result``, not raised.
    """
    discovery = discover(context)
    graph = build_graph(discovery.candidates)
    config = context.config
    result = ModResolver(
        graph,
        policy=config.policy,
        timeout=config.timeout,
        break_cycles=config.break_cycles,
    ).resolve()
    if result.success:
        logger.info("Resolved %d mods", len(result.mods))
    else:
        logger.info("Resolution failed: %s", result.kind.value)
    return PipelineResult(discovery=discovery, graph=graph, result=result)
