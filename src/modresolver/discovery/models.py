"""Data models for the discovery module.

Contains the result types produced by ``ModDiscoverer``: per-location
issues and the aggregate discovery result.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from modresolver.core.dependency.candidate import ModCandidate


class IssueKind(Enum):
    """Category of a soft discovery failure."""

    FINDER_ERROR = "finder_error"
    IO_ERROR = "io_error"
    METADATA_ERROR = "metadata_error"
    NESTING_DEPTH = "nesting_depth"


@dataclass(frozen=True)
class DiscoveryIssue:
    """A location (or a whole finder) that could not be processed.

    Attributes:
        kind: Issue category.
        location: Display path of the offending location, or the finder name.
        message: Human-readable description.
    """

    kind: IssueKind
    location: str
    message: str

    def __str__(self) -> str:
        return f"{self.location}: {self.message}"


@dataclass(frozen=True)
class DiscoveryResult:
    """Complete result of one discovery run.

    Attributes:
        candidates: Loadable candidates in discovery order, builtins first.
        non_modules: Display paths of locations without a descriptor.
        env_excluded: Candidates dropped by the environment filter. Their
            nested modules were never read.
        disabled: Candidates dropped because their id is disabled.
        issues: Soft failures, one per affected location or finder.
    """

    candidates: tuple[ModCandidate, ...]
    non_modules: tuple[str, ...] = ()
    env_excluded: tuple[ModCandidate, ...] = ()
    disabled: tuple[ModCandidate, ...] = ()
    issues: tuple[DiscoveryIssue, ...] = ()

    @property
    def mods(self) -> tuple[ModCandidate, ...]:
        """Discovered candidates without the builtins."""
        return tuple(c for c in self.candidates if not c.builtin)

    @property
    def builtins(self) -> tuple[ModCandidate, ...]:
        return tuple(c for c in self.candidates if c.builtin)
