"""Builtin modules: synthetic, always-selected candidates.

Builtins stand for things that are present before any mod is loaded, so
ordinary mods can depend on them:

- the resolver itself (id ``modresolver``, the package version);
- the running platform (id ``python``, the interpreter version);
- optionally the host application, supplied by the caller.
"""

from __future__ import annotations

import platform
from dataclasses import dataclass

from modresolver import LOADER_MOD_ID, __version__
from modresolver.core.dependency.candidate import ModCandidate
from modresolver.core.version import Version, parse_version

PLATFORM_MOD_ID = "python"


@dataclass(frozen=True)
class BuiltinModule:
    """A synthetic module with a fixed version.

    Attributes:
        id: Mod id. Not subject to descriptor id rules.
        version: Fixed version.
        name: Display name.
        provides: Alias ids.
    """

    id: str
    version: Version
    name: str = ""
    provides: tuple[str, ...] = ()

    def to_candidate(self, discovery_index: int) -> ModCandidate:
        return ModCandidate(
            id=self.id,
            version=self.version,
            name=self.name,
            provides=self.provides,
            location=f"builtin:{self.id}",
            display_path="<builtin>",
            discovery_index=discovery_index,
            builtin=True,
        )


def loader_module() -> BuiltinModule:
    return BuiltinModule(LOADER_MOD_ID, parse_version(__version__), "modresolver")


def platform_module() -> BuiltinModule:
    # python_version() may carry a suffix like "3.13.0+"; keep the numbers only.
    numbers = platform.python_version_tuple()
    version = ".".join(n.rstrip("+") for n in numbers if n.rstrip("+").isdigit())
    return BuiltinModule(PLATFORM_MOD_ID, parse_version(version), "Python")


def parse_host(text: str) -> BuiltinModule:
    """Parse ``ID:VERSION`` (e.g. ``game:1.20.4``) into a host builtin.

    Raises:
        ValueError: If *text* is not ``ID:VERSION`` or the version is invalid.
    """
    mod_id, sep, version = text.partition(":")
    if not sep or not mod_id.strip() or not version.strip():
        raise ValueError(f"Expected ID:VERSION, got {text!r}")
    return BuiltinModule(mod_id.strip(), parse_version(version.strip()))


def default_builtins(host: BuiltinModule | None = None) -> tuple[BuiltinModule, ...]:
    """The host (if any), the resolver and the platform, in that order."""
    modules = [loader_module(), platform_module()]
    if host is not None:
        modules.insert(0, host)
    return tuple(modules)
