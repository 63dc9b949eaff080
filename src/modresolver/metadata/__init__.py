"""Mod descriptor loading.

All public names are re-exported here so callers can write
``from modresolver.metadata import default_registry``.
"""

from modresolver.metadata.base import (
    MOD_ID_RE,
    DescriptorSource,
    MetadataLoader,
    ModDescriptor,
    check_mod_id,
    descriptor_from_data,
)
from modresolver.metadata.loaders import JsonMetadataLoader, YamlMetadataLoader
from modresolver.metadata.registry import LoaderRegistry, default_registry

__all__ = [
    "MOD_ID_RE",
    "DescriptorSource",
    "JsonMetadataLoader",
    "LoaderRegistry",
    "MetadataLoader",
    "ModDescriptor",
    "YamlMetadataLoader",
    "check_mod_id",
    "default_registry",
    "descriptor_from_data",
]
