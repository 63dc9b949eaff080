"""Mod discovery: finders, candidate locations, builtins and the discoverer."""

from modresolver.discovery.builtin import (
    PLATFORM_MOD_ID,
    BuiltinModule,
    default_builtins,
    loader_module,
    parse_host,
    platform_module,
)
from modresolver.discovery.discoverer import (
    DEFAULT_DISCOVERY_TIMEOUT,
    DEFAULT_MAX_NESTING_DEPTH,
    DEFAULT_WORKERS,
    ModDiscoverer,
)
from modresolver.discovery.finders import (
    CandidateFinder,
    DirectoryCandidateFinder,
    InMemoryCandidateFinder,
    PathListCandidateFinder,
)
from modresolver.discovery.locations import (
    ARCHIVE_SUFFIXES,
    ArchiveLocation,
    CandidateLocation,
    DirectoryLocation,
    MemoryArchiveLocation,
)
from modresolver.discovery.models import DiscoveryIssue, DiscoveryResult, IssueKind

__all__ = [
    "ARCHIVE_SUFFIXES",
    "ArchiveLocation",
    "BuiltinModule",
    "CandidateFinder",
    "CandidateLocation",
    "DEFAULT_DISCOVERY_TIMEOUT",
    "DEFAULT_MAX_NESTING_DEPTH",
    "DEFAULT_WORKERS",
    "DirectoryCandidateFinder",
    "DirectoryLocation",
    "DiscoveryIssue",
    "DiscoveryResult",
    "InMemoryCandidateFinder",
    "IssueKind",
    "MemoryArchiveLocation",
    "ModDiscoverer",
    "PLATFORM_MOD_ID",
    "PathListCandidateFinder",
    "default_builtins",
    "loader_module",
    "parse_host",
    "platform_module",
]
