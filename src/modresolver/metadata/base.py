"""Mod descriptor model and the metadata loader interface.

Every descriptor format implements ``MetadataLoader``, which offers two
methods:

- ``can_load(source)`` -- Cheap probe: does the location hold a descriptor
  file this loader understands?
- ``load(source)`` -- Read and validate the descriptor, returning a
  ``ModDescriptor``.

``ModDescriptor`` is the format-independent representation the discoverer
turns into ``ModCandidate`` instances. Format loaders only decode text into
plain data; ``descriptor_from_data`` does the shared validation so JSON and
YAML descriptors accept exactly the same content.

Validation rules:

- ``schemaVersion`` is optional and must be 1 when present.
- ``id`` must match ``[a-z][a-z0-9_-]{1,63}``.
- ``version`` must be a valid version.
- ``environment`` is ``"*"``, ``"client"`` or ``"server"``.
- Dependency maps take a predicate string or a list of predicate strings
  per target id; a list means any one of the ranges is acceptable.
- ``jars`` (alias ``nestedModules``) lists nested module paths, either as
  strings or ``{"file": ...}`` objects.

Unknown root entries are not errors: they are kept as warnings on the
descriptor, matching how mod loaders tolerate forward-compatible fields.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from modresolver.core.dependency.candidate import Environment
from modresolver.core.dependency.constraints import Dependency, DependencyKind
from modresolver.core.version import Version, parse_predicate, parse_version
from modresolver.exceptions import InvalidVersionError, MetadataError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

MOD_ID_RE = re.compile(r"[a-z][a-z0-9_-]{1,63}")

_KNOWN_KEYS = frozenset({
    "schemaVersion", "id", "version", "name", "description", "authors",
    "license", "environment", "provides", "jars", "nestedModules",
    "depends", "recommends", "suggests", "conflicts", "breaks",
})


class DescriptorSource(ABC):
    """Read access to the files of one candidate location.

    Implemented by filesystem directories, archives on disk and in-memory
    archives. Paths are ``/``-separated and relative to the location root.
    """

    @property
    @abstractmethod
    def display_path(self) -> str:
        """Human-oriented location, used in messages."""

    @abstractmethod
    def has_file(self, path: str) -> bool:
        """Return True if *path* exists as a regular file."""

    @abstractmethod
    def read_bytes(self, path: str) -> bytes:
        """Return the content of *path*.

        Raises:
            OSError: If the file cannot be read.
        """

    def read_text(self, path: str) -> str:
        return self.read_bytes(path).decode("utf-8")


@dataclass(frozen=True)
class ModDescriptor:
    """Validated, format-independent mod descriptor.

    Attributes:
        id: Mod id.
        version: Parsed version.
        name: Display name; empty when not declared.
        description: Short description.
        authors: Author names.
        license: License identifiers.
        environment: Environment restriction.
        dependencies: Every declared edge, in declaration order.
        provides: Alias ids.
        nested: Paths of nested modules, relative to the location root.
        source_file: Descriptor file the data was read from.
        warnings: Non-fatal format issues, e.g. unsupported root entries.
    """

    id: str
    version: Version
    name: str = ""
    description: str = ""
    authors: tuple[str, ...] = ()
    license: tuple[str, ...] = ()
    environment: Environment = Environment.UNIVERSAL
    dependencies: tuple[Dependency, ...] = ()
    provides: tuple[str, ...] = ()
    nested: tuple[str, ...] = ()
    source_file: str = ""
    warnings: tuple[str, ...] = ()


class MetadataLoader(ABC):
    """Abstract base class for descriptor formats."""

    #: Descriptor file names this loader reads, in preference order.
    filenames: tuple[str, ...] = ()

    def descriptor_file(self, source: DescriptorSource) -> str | None:
        """Return the first descriptor file present in *source*, if any."""
        for filename in self.filenames:
            if source.has_file(filename):
                return filename
        return None

    def can_load(self, source: DescriptorSource) -> bool:
        return self.descriptor_file(source) is not None

    def load(self, source: DescriptorSource) -> ModDescriptor:
        """Read and validate the descriptor of *source*.

        Raises:
            MetadataError: If no descriptor is present, it cannot be read,
                or it fails validation.
        """
        filename = self.descriptor_file(source)
        if filename is None:
            raise MetadataError(f"No descriptor in {source.display_path}")
        origin = f"{source.display_path}!/{filename}"
        try:
            text = source.read_text(filename)
        except (OSError, UnicodeDecodeError) as exc:
            raise MetadataError(f"Cannot read {origin}: {exc}") from exc
        data = self.decode(text, origin)
        return descriptor_from_data(data, origin)

    @abstractmethod
    def decode(self, text: str, origin: str) -> Any:
        """Decode descriptor text into plain data.

        Raises:
            MetadataError: On syntax errors.
        """


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def check_mod_id(mod_id: Any, what: str = "mod id") -> str:
    """Validate a mod id and return it.

    Raises:
        MetadataError: With every rule the id breaks.
    """
    if not isinstance(mod_id, str):
        raise MetadataError(f"Invalid {what}: must be a string, got {type(mod_id).__name__}")
    if MOD_ID_RE.fullmatch(mod_id):
        return mod_id

    errors: list[str] = []
    if not mod_id:
        errors.append("is empty")
    else:
        if len(mod_id) == 1:
            errors.append("is only a single character (it must be at least 2 characters long)")
        elif len(mod_id) > 64:
            errors.append("has more than 64 characters")
        first = mod_id[0]
        if not "a" <= first <= "z":
            errors.append(
                f"starts with an invalid character {first!r} (it must be a "
                "lowercase a-z letter)"
            )
        invalid = sorted(
            {c for c in mod_id[1:] if not (c in "-_" or "0" <= c <= "9" or "a" <= c <= "z")}
        )
        if invalid:
            errors.append("contains invalid characters: " + ", ".join(repr(c) for c in invalid))
    raise MetadataError(f"Invalid {what} {mod_id!r}: it " + "; it ".join(errors))


def _string(data: dict, key: str, origin: str) -> str:
    value = data.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise MetadataError(f"{origin}: {key!r} must be a string")
    return value


def _string_list(value: Any, key: str, origin: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list):
        raise MetadataError(f"{origin}: {key!r} must be a string or a list of strings")
    result = []
    for item in value:
        if isinstance(item, dict) and isinstance(item.get("name"), str):
            result.append(item["name"])
        elif isinstance(item, str):
            result.append(item)
        else:
            raise MetadataError(f"{origin}: invalid entry in {key!r}: {item!r}")
    return tuple(result)


def _dependencies(data: dict, origin: str) -> tuple[Dependency, ...]:
    edges: list[Dependency] = []
    for kind in DependencyKind:
        block = data.get(kind.descriptor_key)
        if block is None:
            continue
        if not isinstance(block, dict):
            raise MetadataError(f"{origin}: {kind.descriptor_key!r} must be an object")
        for target, ranges in block.items():
            if not isinstance(target, str) or not target:
                raise MetadataError(
                    f"{origin}: dependency target in {kind.descriptor_key!r} "
                    "must be a non-empty string"
                )
            if isinstance(ranges, str):
                ranges = [ranges]
            if not isinstance(ranges, list) or not ranges:
                raise MetadataError(
                    f"{origin}: version range for {target!r} must be a string "
                    "or a non-empty list of strings"
                )
            for text in ranges:
                if not isinstance(text, str):
                    raise MetadataError(
                        f"{origin}: version range for {target!r} must be a string"
                    )
                try:
                    predicate = parse_predicate(text)
                except InvalidVersionError as exc:
                    raise MetadataError(
                        f"{origin}: invalid version range {text!r} for {target!r}: {exc}"
                    ) from exc
                edges.append(Dependency(target, predicate, kind))
    return tuple(edges)


def _nested(data: dict, origin: str) -> tuple[str, ...]:
    entries = data.get("jars")
    if entries is None:
        entries = data.get("nestedModules")
    if entries is None:
        return ()
    if not isinstance(entries, list):
        raise MetadataError(f"{origin}: nested module entries must be a list")
    paths: list[str] = []
    for entry in entries:
        if isinstance(entry, dict):
            entry = entry.get("file")
        if not isinstance(entry, str) or not entry.strip():
            raise MetadataError(f"{origin}: invalid nested module entry: {entry!r}")
        paths.append(entry.strip().lstrip("/"))
    return tuple(dict.fromkeys(paths))


def descriptor_from_data(data: Any, origin: str = "<descriptor>") -> ModDescriptor:
    """Validate decoded descriptor data and build a ``ModDescriptor``.

    Args:
        data: The decoded document (a mapping).
        origin: Location used in error messages.

    Raises:
        MetadataError: If the data is not a valid descriptor.
    """
    if not isinstance(data, dict):
        raise MetadataError(f"{origin}: descriptor root must be an object")

    schema = data.get("schemaVersion", SCHEMA_VERSION)
    if schema != SCHEMA_VERSION:
        raise MetadataError(f"{origin}: unsupported schemaVersion {schema!r}")

    if "id" not in data:
        raise MetadataError(f"{origin}: missing required field 'id'")
    mod_id = check_mod_id(data["id"])

    raw_version = data.get("version")
    if raw_version is None:
        raise MetadataError(f"{origin}: missing required field 'version'")
    if not isinstance(raw_version, str) or not raw_version:
        raise MetadataError(f"{origin}: version must be a non-empty string")
    try:
        version = parse_version(raw_version)
    except InvalidVersionError as exc:
        raise MetadataError(f"{origin}: {exc}") from exc

    try:
        environment = Environment.parse(_string(data, "environment", origin) or None)
    except ValueError as exc:
        raise MetadataError(f"{origin}: {exc}") from exc

    provides = tuple(
        check_mod_id(p, "provided id")
        for p in _string_list(data.get("provides"), "provides", origin)
    )

    warnings = tuple(
        f"Unsupported root entry {key!r} in {origin}"
        for key in data
        if key not in _KNOWN_KEYS
    )
    for warning in warnings:
        logger.debug("%s", warning)

    return ModDescriptor(
        id=mod_id,
        version=version,
        name=_string(data, "name", origin),
        description=_string(data, "description", origin),
        authors=_string_list(data.get("authors"), "authors", origin),
        license=_string_list(data.get("license"), "license", origin),
        environment=environment,
        dependencies=_dependencies(data, origin),
        provides=tuple(dict.fromkeys(provides)),
        nested=_nested(data, origin),
        source_file=origin,
        warnings=warnings,
    )
