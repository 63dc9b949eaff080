"""Resolution context: everything one discovery and resolution run needs.

The context is an explicit value handed to the engine. Nothing is read from
global state, so several runs with different settings can coexist in one
process.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from modresolver.config import ResolverConfig
from modresolver.core.dependency.candidate import Environment
from modresolver.discovery import (
    BuiltinModule,
    CandidateFinder,
    DirectoryCandidateFinder,
    InMemoryCandidateFinder,
    ModDiscoverer,
    PathListCandidateFinder,
    default_builtins,
)
from modresolver.metadata import LoaderRegistry, default_registry


@dataclass(frozen=True)
class ResolutionContext:
    """Inputs of one run.

    Attributes:
        environment: Run environment; mods restricted to the other side are
            filtered out during discovery.
        mods_dir: Mods directory scanned one level deep, if any.
        extra_paths: Additional mod paths and ``@file`` lists.
        in_memory: Archives supplied as bytes, by display name.
        host: Host application injected as a builtin.
        builtins: Explicit builtin set. When None, the default builtins
            (host, resolver, platform) are used.
        extra_finders: Custom finders, run after the built-in ones.
        registry: Descriptor loaders; the default registry when None.
        config: Discovery and resolution settings.
    """

    environment: Environment = Environment.CLIENT
    mods_dir: Path | None = None
    extra_paths: tuple[str, ...] = ()
    in_memory: Mapping[str, bytes] = field(default_factory=dict)
    host: BuiltinModule | None = None
    builtins: tuple[BuiltinModule, ...] | None = None
    extra_finders: tuple[CandidateFinder, ...] = ()
    registry: LoaderRegistry | None = None
    config: ResolverConfig = field(default_factory=ResolverConfig)

    def loader_registry(self) -> LoaderRegistry:
        return self.registry or default_registry()

    def finders(self) -> list[CandidateFinder]:
        """Finders in priority order: mods dir, extra paths, in-memory, custom."""
        filenames = self.loader_registry().filenames
        finders: list[CandidateFinder] = []
        if self.mods_dir is not None:
            finders.append(DirectoryCandidateFinder(self.mods_dir, filenames))
        if self.extra_paths:
            finders.append(PathListCandidateFinder(self.extra_paths, filenames))
        if self.in_memory:
            finders.append(InMemoryCandidateFinder(self.in_memory))
        finders.extend(self.extra_finders)
        return finders

    def builtin_modules(self) -> tuple[BuiltinModule, ...]:
        if self.builtins is not None:
            if self.host is not None:
                return (self.host,) + self.builtins
            return self.builtins
        return default_builtins(self.host)

    def discoverer(self) -> ModDiscoverer:
        return ModDiscoverer(
            self.finders(),
            environment=self.environment,
            registry=self.loader_registry(),
            builtins=self.builtin_modules(),
            max_nesting_depth=self.config.max_nesting_depth,
            workers=self.config.workers,
            disabled_ids=self.config.disabled_ids,
            timeout=self.config.discovery_timeout,
        )
