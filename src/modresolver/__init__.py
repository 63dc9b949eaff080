"""modresolver: Mod discovery and dependency resolution for pluggable hosts."""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Id under which the resolver itself is injected as a builtin module.
LOADER_MOD_ID = "modresolver"
