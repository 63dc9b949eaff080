"""Loader registry for auto-detecting descriptor formats.

``LoaderRegistry`` keeps an ordered list of ``MetadataLoader`` instances
and probes each against a location. The first loader whose descriptor file
is present wins; a location with no recognised descriptor is not a mod.

``default_registry()`` pre-registers the built-in formats, JSON first.
Custom formats can be added with ``register()``.
"""

from __future__ import annotations

from modresolver.metadata.base import DescriptorSource, MetadataLoader, ModDescriptor
from modresolver.metadata.loaders import JsonMetadataLoader, YamlMetadataLoader


class LoaderRegistry:
    """Registry of descriptor loaders.

    Attributes:
        loaders: Ordered list of registered loader instances.
    """

    def __init__(self) -> None:
        self.loaders: list[MetadataLoader] = []

    def register(self, loader: MetadataLoader) -> None:
        """Add a loader. Loaders are probed in registration order."""
        self.loaders.append(loader)

    @property
    def filenames(self) -> tuple[str, ...]:
        """Every descriptor file name any registered loader reads."""
        names: dict[str, None] = {}
        for loader in self.loaders:
            for filename in loader.filenames:
                names.setdefault(filename, None)
        return tuple(names)

    def loader_for(self, source: DescriptorSource) -> MetadataLoader | None:
        for loader in self.loaders:
            if loader.can_load(source):
                return loader
        return None

    def load(self, source: DescriptorSource) -> ModDescriptor | None:
        """Load the descriptor of *source*.

        Returns:
            The descriptor, or None if *source* holds no known descriptor.

        Raises:
            MetadataError: If a descriptor exists but is invalid.
        """
        loader = self.loader_for(source)
        if loader is None:
            return None
        return loader.load(source)


def default_registry() -> LoaderRegistry:
    """Create a registry with the built-in JSON and YAML loaders."""
    registry = LoaderRegistry()
    registry.register(JsonMetadataLoader())
    registry.register(YamlMetadataLoader())
    return registry
