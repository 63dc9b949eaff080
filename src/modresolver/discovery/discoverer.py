"""Mod discoverer: turns finder output into a deterministic candidate set.

Discovery Algorithm
-------------------
1. Run every finder concurrently on a bounded thread pool. Emitted
   locations are appended to one lock-guarded list.
2. Sort the collected locations by ``(finder index, canonical key)`` and
   drop repeated keys, first one wins. Completion order never matters.
3. Read descriptors level by level (roots first, then their nested
   modules, and so on), loading each level in parallel and processing the
   results sequentially in sorted order:

   - no descriptor: recorded as a non-module;
   - unreadable location or invalid descriptor: recorded as an issue;
   - disabled id or environment mismatch: recorded, and nested modules of
     that candidate are never read;
   - otherwise a candidate. Its nested references are resolved inside it.
     A nested archive seen from several parents becomes one candidate with
     several parents. Going deeper than ``max_nesting_depth`` is an issue
     for that branch only.

4. Prepend the builtin modules and assign discovery indices in processing
   order.

Per-location problems never abort discovery. ``DiscoveryError`` is raised
only when finders failed and nothing at all was discovered, or when the
time budget runs out.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field

from modresolver.core.dependency.candidate import Environment, ModCandidate
from modresolver.discovery.builtin import BuiltinModule
from modresolver.discovery.finders import CandidateFinder
from modresolver.discovery.locations import LOCATION_ERRORS, CandidateLocation
from modresolver.discovery.models import DiscoveryIssue, DiscoveryResult, IssueKind
from modresolver.exceptions import DiscoveryError, MetadataError, NestingDepthError
from modresolver.metadata import LoaderRegistry, ModDescriptor, default_registry

logger = logging.getLogger(__name__)

DEFAULT_MAX_NESTING_DEPTH = 8
DEFAULT_WORKERS = 4
DEFAULT_DISCOVERY_TIMEOUT = 60.0


@dataclass
class _Entry:
    """A location waiting to be read."""

    location: CandidateLocation
    depth: int
    parents: list[str] = field(default_factory=list)


@dataclass
class _Record:
    """A discovered candidate before it is frozen into a ``ModCandidate``."""

    location: CandidateLocation
    descriptor: ModDescriptor
    depth: int
    index: int
    parents: list[str] = field(default_factory=list)

    def freeze(self) -> ModCandidate:
        d = self.descriptor
        return ModCandidate(
            id=d.id,
            version=d.version,
            name=d.name,
            dependencies=d.dependencies,
            provides=d.provides,
            environment=d.environment,
            location=self.location.key,
            display_path=self.location.display_path,
            parents=tuple(self.parents),
            depth=self.depth,
            discovery_index=self.index,
        )


class ModDiscoverer:
    """Orchestrates finders and metadata loading.

    Args:
        finders: Candidate sources, in priority order.
        environment: Run environment. ``UNIVERSAL`` disables filtering.
        registry: Descriptor loaders; ``default_registry()`` if omitted.
        builtins: Synthetic modules injected as always-selected candidates.
        max_nesting_depth: Deepest nesting level that is still read.
        workers: Thread pool size for finders and metadata loading.
        disabled_ids: Mod ids to drop.
        timeout: Seconds before discovery gives up, or None for no limit.
    """

    def __init__(
        self,
        finders: Iterable[CandidateFinder],
        environment: Environment = Environment.CLIENT,
        registry: LoaderRegistry | None = None,
        builtins: Iterable[BuiltinModule] = (),
        max_nesting_depth: int = DEFAULT_MAX_NESTING_DEPTH,
        workers: int = DEFAULT_WORKERS,
        disabled_ids: Iterable[str] = (),
        timeout: float | None = DEFAULT_DISCOVERY_TIMEOUT,
    ) -> None:
        self.finders = tuple(finders)
        self.environment = environment
        self.registry = registry or default_registry()
        self.builtins = tuple(builtins)
        self.max_nesting_depth = max_nesting_depth
        self.workers = max(1, workers)
        self.disabled_ids = frozenset(disabled_ids)
        self.timeout = timeout

    def discover(self) -> DiscoveryResult:
        """Run discovery.

        Raises:
            DiscoveryError: If finders failed and no mod was discovered, or
                if the discovery timeout expired.
        """
        started = time.monotonic()
        deadline = started + self.timeout if self.timeout is not None else None
        pool = ThreadPoolExecutor(
            max_workers=self.workers, thread_name_prefix="modresolver-discovery"
        )
        try:
            roots, issues, failed = self._collect(pool, deadline)
            result = self._expand(pool, roots, issues, deadline)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        if not result.mods and failed:
            raise DiscoveryError(
                "No mods could be discovered: "
                + "; ".join(str(i) for i in result.issues if i.kind is IssueKind.FINDER_ERROR)
            )
        logger.debug(
            "Discovered %d candidates (%d non-modules, %d env-excluded, %d issues) in %.3fs",
            len(result.candidates), len(result.non_modules),
            len(result.env_excluded), len(result.issues), time.monotonic() - started,
        )
        return result

    # -- finders ------------------------------------------------------------

    def _collect(
        self, pool: ThreadPoolExecutor, deadline: float | None
    ) -> tuple[list[_Entry], list[DiscoveryIssue], int]:
        lock = threading.Lock()
        collected: list[tuple[int, str, CandidateLocation, bool]] = []

        def run(index: int, finder: CandidateFinder) -> None:
            def emit(location: CandidateLocation, nested: bool = False) -> None:
                with lock:
                    collected.append((index, location.key, location, nested))

            finder.find_candidates(emit)

        futures = {
            pool.submit(run, index, finder): (index, finder)
            for index, finder in enumerate(self.finders)
        }
        done, pending = wait(futures, timeout=_remaining(deadline))
        if pending:
            raise DiscoveryError(f"Mod discovery timed out after {self.timeout:g}s")

        issues: list[DiscoveryIssue] = []
        failed = 0
        for future in sorted(done, key=lambda f: futures[f][0]):
            exc = future.exception()
            if exc is None:
                continue
            if not isinstance(exc, OSError):
                raise exc
            finder = futures[future][1]
            logger.warning("Finder %s failed: %s", finder.name, exc)
            issues.append(DiscoveryIssue(IssueKind.FINDER_ERROR, finder.name, str(exc)))
            failed += 1

        roots: list[_Entry] = []
        seen: set[str] = set()
        for _, key, location, nested in sorted(collected, key=lambda item: item[:2]):
            if key in seen:
                logger.debug("Dropping duplicate location %s", location.display_path)
                continue
            seen.add(key)
            roots.append(_Entry(location, depth=1 if nested else 0))
        return roots, issues, failed

    # -- descriptors and nesting -------------------------------------------

    def _load(
        self, location: CandidateLocation
    ) -> tuple[ModDescriptor | None, DiscoveryIssue | None]:
        try:
            return self.registry.load(location), None
        except MetadataError as exc:
            return None, DiscoveryIssue(
                IssueKind.METADATA_ERROR, location.display_path, str(exc)
            )
        except LOCATION_ERRORS as exc:
            return None, DiscoveryIssue(
                IssueKind.IO_ERROR, location.display_path, f"cannot read location: {exc}"
            )

    def _load_level(
        self, pool: ThreadPoolExecutor, level: list[_Entry], deadline: float | None
    ) -> list[tuple[ModDescriptor | None, DiscoveryIssue | None]]:
        futures = [pool.submit(self._load, entry.location) for entry in level]
        _, pending = wait(futures, timeout=_remaining(deadline))
        if pending:
            raise DiscoveryError(f"Mod discovery timed out after {self.timeout:g}s")
        return [f.result() for f in futures]

    def _excluded(self, descriptor: ModDescriptor) -> bool:
        if self.environment is Environment.UNIVERSAL:
            return False
        return not descriptor.environment.allows(self.environment)

    def _expand(
        self,
        pool: ThreadPoolExecutor,
        roots: list[_Entry],
        issues: list[DiscoveryIssue],
        deadline: float | None,
    ) -> DiscoveryResult:
        builtins = tuple(b.to_candidate(i) for i, b in enumerate(self.builtins))
        next_index = len(builtins)
        records: dict[str, _Record] = {}
        processed: set[str] = set()
        non_modules: list[str] = []
        env_excluded: list[ModCandidate] = []
        disabled: list[ModCandidate] = []

        level = roots
        while level:
            results = self._load_level(pool, level, deadline)
            upcoming: dict[str, _Entry] = {}

            for entry, (descriptor, issue) in zip(level, results):
                key = entry.location.key
                if key in records:
                    _merge_parents(records[key].parents, entry.parents)
                    continue
                if key in processed:
                    continue
                processed.add(key)

                if issue is not None:
                    logger.warning("Skipping %s", issue)
                    issues.append(issue)
                    continue
                if descriptor is None:
                    logger.debug("No descriptor in %s", entry.location.display_path)
                    non_modules.append(entry.location.display_path)
                    continue

                record = _Record(
                    entry.location, descriptor, entry.depth, next_index, list(entry.parents)
                )
                next_index += 1
                if descriptor.id in self.disabled_ids:
                    logger.info("Mod %s is disabled", descriptor.id)
                    disabled.append(record.freeze())
                    continue
                if self._excluded(descriptor):
                    logger.debug(
                        "Excluding %s from %s environment",
                        descriptor.id, self.environment.value,
                    )
                    env_excluded.append(record.freeze())
                    continue
                records[key] = record
                self._queue_nested(entry, descriptor, records, processed, upcoming, issues)

            level = list(upcoming.values())

        return DiscoveryResult(
            candidates=builtins + tuple(r.freeze() for r in records.values()),
            non_modules=tuple(non_modules),
            env_excluded=tuple(env_excluded),
            disabled=tuple(disabled),
            issues=tuple(issues),
        )

    def _check_depth(self, depth: int) -> None:
        if depth > self.max_nesting_depth:
            raise NestingDepthError(
                f"nested deeper than the maximum of {self.max_nesting_depth} levels"
            )

    def _queue_nested(
        self,
        entry: _Entry,
        descriptor: ModDescriptor,
        records: dict[str, _Record],
        processed: set[str],
        upcoming: dict[str, _Entry],
        issues: list[DiscoveryIssue],
    ) -> None:
        parent_key = entry.location.key
        for path in descriptor.nested:
            display = f"{entry.location.display_path}!/{path}"
            try:
                child = entry.location.nested(path)
            except LOCATION_ERRORS as exc:
                issue = DiscoveryIssue(
                    IssueKind.IO_ERROR, display, f"cannot read nested module: {exc}"
                )
                logger.warning("Skipping %s", issue)
                issues.append(issue)
                continue

            key = child.key
            if key == parent_key:
                continue
            if key in records:
                if records[key].parents:
                    _merge_parents(records[key].parents, [parent_key])
                continue
            if key in upcoming:
                _merge_parents(upcoming[key].parents, [parent_key])
                continue
            if key in processed:
                continue
            try:
                self._check_depth(entry.depth + 1)
            except NestingDepthError as exc:
                issue = DiscoveryIssue(IssueKind.NESTING_DEPTH, child.display_path, str(exc))
                logger.warning("Skipping %s", issue)
                issues.append(issue)
                continue
            upcoming[key] = _Entry(child, entry.depth + 1, [parent_key])


def _merge_parents(parents: list[str], extra: list[str]) -> None:
    for key in extra:
        if key not in parents:
            parents.append(key)


def _remaining(deadline: float | None) -> float | None:
    if deadline is None:
        return None
    return max(0.0, deadline - time.monotonic())
