"""Shared test helpers for building candidates, mod directories and archives.

Candidates are built directly for graph and resolver tests; descriptor
files and ZIP archives are written for discovery, engine and CLI tests.
"""

from __future__ import annotations

import io
import json
import zipfile
from pathlib import Path
from typing import Any

from modresolver.core.dependency import (
    Dependency,
    DependencyKind,
    Environment,
    ModCandidate,
)
from modresolver.core.version import parse_predicate, parse_version

_KIND_ARGS = {
    "depends": DependencyKind.REQUIRES,
    "recommends": DependencyKind.RECOMMENDS,
    "suggests": DependencyKind.SUGGESTS,
    "conflicts": DependencyKind.CONFLICTS,
    "breaks": DependencyKind.BREAKS,
}


def make_candidate(
    mod_id: str,
    version: str = "1.0",
    *,
    index: int = 0,
    location: str | None = None,
    provides: tuple[str, ...] = (),
    parents: tuple[str, ...] = (),
    environment: Environment = Environment.UNIVERSAL,
    builtin: bool = False,
    name: str = "",
    **edges: dict[str, str | list[str]],
) -> ModCandidate:
    """Build a candidate; ``depends={"b": ">=2.0"}`` style keyword edges."""
    dependencies: list[Dependency] = []
    for arg, kind in _KIND_ARGS.items():
        for target, ranges in (edges.pop(arg, None) or {}).items():
            if isinstance(ranges, str):
                ranges = [ranges]
            for text in ranges:
                dependencies.append(Dependency(target, parse_predicate(text), kind))
    if edges:
        raise TypeError(f"Unknown edge kinds: {sorted(edges)}")
    return ModCandidate(
        id=mod_id,
        version=parse_version(version),
        name=name,
        dependencies=tuple(dependencies),
        provides=tuple(provides),
        environment=environment,
        location=location or f"/mods/{mod_id}-{version}-{index}.zip",
        display_path=location or f"mods/{mod_id}-{version}.zip",
        parents=tuple(parents),
        depth=1 if parents else 0,
        discovery_index=index,
        builtin=builtin,
    )


def descriptor(mod_id: str, version: str = "1.0", **fields: Any) -> dict[str, Any]:
    data: dict[str, Any] = {"schemaVersion": 1, "id": mod_id, "version": version}
    data.update(fields)
    return data


def zip_bytes(files: dict[str, bytes | str | dict]) -> bytes:
    """Build a ZIP archive in memory. Dict values are written as JSON."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in sorted(files.items()):
            if isinstance(content, dict):
                content = json.dumps(content)
            if isinstance(content, str):
                content = content.encode("utf-8")
            archive.writestr(name, content)
    return buffer.getvalue()


def mod_zip(data: dict[str, Any], nested: dict[str, bytes] | None = None) -> bytes:
    """A mod archive with ``mod.json`` and optional nested archives."""
    files: dict[str, bytes | str | dict] = {"mod.json": data}
    for path, content in (nested or {}).items():
        files[path] = content
    return zip_bytes(files)


def write_mod_zip(
    directory: Path, filename: str, data: dict[str, Any], nested: dict[str, bytes] | None = None
) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_bytes(mod_zip(data, nested))
    return path


def write_mod_dir(directory: Path, dirname: str, data: dict[str, Any]) -> Path:
    """An unpacked mod directory holding ``mod.json``."""
    path = directory / dirname
    path.mkdir(parents=True, exist_ok=True)
    (path / "mod.json").write_text(json.dumps(data), encoding="utf-8")
    return path
