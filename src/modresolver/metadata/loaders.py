"""Built-in descriptor formats: ``mod.json`` and ``mod.yaml`` / ``mod.yml``."""

from __future__ import annotations

import json
from typing import Any

import yaml

from modresolver.exceptions import MetadataError
from modresolver.metadata.base import MetadataLoader


class JsonMetadataLoader(MetadataLoader):
    """Reads ``mod.json`` descriptors."""

    filenames = ("mod.json",)

    def decode(self, text: str, origin: str) -> Any:
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise MetadataError(
                f"{origin}: invalid JSON at line {exc.lineno} column {exc.colno}: {exc.msg}"
            ) from exc


class YamlMetadataLoader(MetadataLoader):
    """Reads ``mod.yaml`` and ``mod.yml`` descriptors.

    Documents are loaded with ``yaml.safe_load``. Versions and version
    ranges must be quoted strings, as plain ``1.10`` would load as a float.
    """

    filenames = ("mod.yaml", "mod.yml")

    def decode(self, text: str, origin: str) -> Any:
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise MetadataError(f"{origin}: invalid YAML: {exc}") from exc
