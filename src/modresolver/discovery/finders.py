"""Candidate finders: pluggable sources of candidate locations.

A finder enumerates locations that might hold a mod and reports each one
through the ``emit`` callback passed to ``find_candidates``. Finders do not
read descriptors; that is the discoverer's job. They may run concurrently,
so ``emit`` is the only thing they share.

Built-in finders:

- ``DirectoryCandidateFinder`` -- one level of a mods directory.
- ``PathListCandidateFinder`` -- explicitly listed paths and ``@file`` lists.
- ``InMemoryCandidateFinder`` -- archives supplied as bytes.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path

from modresolver.discovery.locations import (
    ArchiveLocation,
    CandidateLocation,
    DirectoryLocation,
    MemoryArchiveLocation,
    is_archive_name,
)
from modresolver.metadata import default_registry

logger = logging.getLogger(__name__)

EmitFn = Callable[[CandidateLocation, bool], None]


def _default_descriptor_files() -> tuple[str, ...]:
    return default_registry().filenames


def _is_hidden(path: Path) -> bool:
    return path.name.startswith(".")


class CandidateFinder(ABC):
    """Abstract base class for candidate sources."""

    @property
    def name(self) -> str:
        """Label used in logs and discovery issues."""
        return type(self).__name__

    @abstractmethod
    def find_candidates(self, emit: EmitFn) -> None:
        """Report every candidate location via ``emit(location, nested)``.

        ``nested`` marks locations the host supplies as bundled libraries
        rather than top-level mods.

        Raises:
            OSError: If the source as a whole cannot be read.
        """


class DirectoryCandidateFinder(CandidateFinder):
    """Scans one level of a mods directory.

    Emits archives (``.zip`` / ``.jar``) and unpacked mod directories that
    contain a descriptor file. Hidden entries are skipped. A missing
    directory is created, so a fresh installation starts with an empty mods
    directory rather than an error.

    Args:
        path: The mods directory.
        descriptor_files: File names that mark an unpacked mod directory.
    """

    def __init__(self, path: Path, descriptor_files: Iterable[str] | None = None) -> None:
        self.path = Path(path)
        self.descriptor_files = tuple(descriptor_files or _default_descriptor_files())

    @property
    def name(self) -> str:
        return f"mods directory {self.path}"

    def find_candidates(self, emit: EmitFn) -> None:
        if not self.path.exists():
            logger.info("Creating missing mods directory %s", self.path)
            self.path.mkdir(parents=True, exist_ok=True)
        if not self.path.is_dir():
            raise NotADirectoryError(f"{self.path} is not a directory")

        for entry in sorted(self.path.iterdir()):
            if _is_hidden(entry):
                continue
            if entry.is_file() and is_archive_name(entry.name):
                emit(ArchiveLocation(entry), False)
            elif entry.is_dir() and _has_descriptor(entry, self.descriptor_files):
                emit(DirectoryLocation(entry), False)
            else:
                logger.debug("Ignoring %s: not a mod archive or mod directory", entry)


class PathListCandidateFinder(CandidateFinder):
    """Emits explicitly listed paths.

    Entries starting with ``@`` name a text file with one path per line
    (blank lines and ``#`` comments ignored, relative paths resolved
    against the list file's directory). Directories holding a descriptor
    are emitted as mod directories; other directories are searched
    recursively for archives and mod directories. Missing paths are logged
    and skipped.

    Args:
        paths: Paths and ``@file`` list references.
        descriptor_files: File names that mark an unpacked mod directory.
        nested: Emit every location as a bundled library.
    """

    def __init__(
        self,
        paths: Iterable[str | Path],
        descriptor_files: Iterable[str] | None = None,
        nested: bool = False,
    ) -> None:
        self.paths = tuple(str(p) for p in paths)
        self.descriptor_files = tuple(descriptor_files or _default_descriptor_files())
        self.nested = nested

    @property
    def name(self) -> str:
        return "additional mod paths"

    def expand(self) -> list[Path]:
        """Resolve ``@file`` entries into the flat list of paths."""
        expanded: list[Path] = []
        for entry in self.paths:
            if entry.startswith("@"):
                list_file = Path(entry[1:])
                base = list_file.parent
                for line in list_file.read_text(encoding="utf-8").splitlines():
                    line = line.strip()
                    if not line or line.startswith("#"):
                        continue
                    path = Path(line)
                    expanded.append(path if path.is_absolute() else base / path)
            else:
                expanded.append(Path(entry))
        return expanded

    def find_candidates(self, emit: EmitFn) -> None:
        for path in self.expand():
            if not path.exists():
                logger.warning("Skipping missing mod path %s", path)
                continue
            if path.is_file():
                emit(ArchiveLocation(path), self.nested)
            elif _has_descriptor(path, self.descriptor_files):
                emit(DirectoryLocation(path), self.nested)
            else:
                self._walk(path, emit)

    def _walk(self, root: Path, emit: EmitFn) -> None:
        for dirpath, dirnames, filenames in os.walk(root):
            current = Path(dirpath)
            dirnames.sort()
            kept = []
            for dirname in dirnames:
                sub = current / dirname
                if dirname.startswith("."):
                    continue
                if _has_descriptor(sub, self.descriptor_files):
                    emit(DirectoryLocation(sub), self.nested)
                else:
                    kept.append(dirname)
            dirnames[:] = kept
            for filename in sorted(filenames):
                if not filename.startswith(".") and is_archive_name(filename):
                    emit(ArchiveLocation(current / filename), self.nested)


class InMemoryCandidateFinder(CandidateFinder):
    """Emits archives supplied as bytes, keyed by display name.

    Useful for hosts that ship mods inside their own distribution, and for
    tests.
    """

    def __init__(self, archives: Mapping[str, bytes], nested: bool = False) -> None:
        self.archives = dict(archives)
        self.nested = nested

    @property
    def name(self) -> str:
        return "in-memory archives"

    def find_candidates(self, emit: EmitFn) -> None:
        for display, data in sorted(self.archives.items()):
            emit(MemoryArchiveLocation(data, display), self.nested)


def _has_descriptor(directory: Path, descriptor_files: tuple[str, ...]) -> bool:
    return any((directory / name).is_file() for name in descriptor_files)
