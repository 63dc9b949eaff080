"""Candidate locations: the places a mod can be read from.

A location is a directory, an archive on disk or an archive held in memory
(typically one nested inside another archive). Each location has a
canonical ``key`` used for deduplication:

- directories and archives on disk: the resolved absolute path;
- in-memory archives: ``sha256:<hex>`` of the archive bytes, so the same
  nested archive shipped by two parents is one location.

Archives are ZIP files (``.zip`` or ``.jar``). Every read opens the archive
afresh, so locations can be shared between worker threads.
"""

from __future__ import annotations

import hashlib
import io
import zipfile
from abc import abstractmethod
from pathlib import Path, PurePosixPath

from modresolver.metadata.base import DescriptorSource

ARCHIVE_SUFFIXES = (".zip", ".jar")

# Errors that mean "this location is unreadable", as opposed to invalid metadata.
LOCATION_ERRORS = (OSError, zipfile.BadZipFile, KeyError)


def is_archive_name(name: str) -> bool:
    return name.lower().endswith(ARCHIVE_SUFFIXES)


def _member_path(path: str) -> str:
    """Normalise a relative member path; rejects paths escaping the root."""
    parts = []
    for part in PurePosixPath(path.replace("\\", "/")).parts:
        if part in ("", ".", "/"):
            continue
        if part == "..":
            raise OSError(f"Nested path escapes its parent: {path!r}")
        parts.append(part)
    if not parts:
        raise OSError(f"Empty nested path: {path!r}")
    return "/".join(parts)


class CandidateLocation(DescriptorSource):
    """A directory or archive that may hold a mod."""

    @property
    @abstractmethod
    def key(self) -> str:
        """Canonical identity used for deduplication."""

    @abstractmethod
    def nested(self, path: str) -> CandidateLocation:
        """Return the location of a nested module at *path* inside this one.

        Raises:
            OSError: If *path* does not exist or cannot be read.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.display_path!r})"


class DirectoryLocation(CandidateLocation):
    """An unpacked mod directory on disk."""

    def __init__(self, path: Path, display_path: str | None = None) -> None:
        self._path = Path(path).resolve()
        self._display = display_path or str(path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def key(self) -> str:
        return str(self._path)

    @property
    def display_path(self) -> str:
        return self._display

    def has_file(self, path: str) -> bool:
        return (self._path / _member_path(path)).is_file()

    def read_bytes(self, path: str) -> bytes:
        return (self._path / _member_path(path)).read_bytes()

    def nested(self, path: str) -> CandidateLocation:
        member = _member_path(path)
        target = self._path / member
        display = f"{self._display}/{member}"
        if target.is_dir():
            return DirectoryLocation(target, display)
        return MemoryArchiveLocation(target.read_bytes(), display)


class ArchiveLocation(CandidateLocation):
    """A ZIP archive on disk."""

    def __init__(self, path: Path, display_path: str | None = None) -> None:
        self._path = Path(path).resolve()
        self._display = display_path or str(path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def key(self) -> str:
        return str(self._path)

    @property
    def display_path(self) -> str:
        return self._display

    def _open(self) -> zipfile.ZipFile:
        return zipfile.ZipFile(self._path)

    def has_file(self, path: str) -> bool:
        member = _member_path(path)
        with self._open() as archive:
            return member in archive.namelist()

    def read_bytes(self, path: str) -> bytes:
        with self._open() as archive:
            return archive.read(_member_path(path))

    def nested(self, path: str) -> CandidateLocation:
        member = _member_path(path)
        return MemoryArchiveLocation(self.read_bytes(member), f"{self._display}!/{member}")


class MemoryArchiveLocation(ArchiveLocation):
    """A ZIP archive held in memory, identified by its content hash."""

    def __init__(self, data: bytes, display_path: str) -> None:
        self._data = data
        self._display = display_path
        self._key = "sha256:" + hashlib.sha256(data).hexdigest()

    @property
    def path(self) -> Path:
        raise AttributeError("in-memory archives have no filesystem path")

    @property
    def key(self) -> str:
        return self._key

    @property
    def data(self) -> bytes:
        return self._data

    def _open(self) -> zipfile.ZipFile:
        return zipfile.ZipFile(io.BytesIO(self._data))
