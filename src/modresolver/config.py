"""Resolver configuration.

``ResolverConfig`` holds the knobs that shape discovery and resolution.
Values come from, in increasing priority: the defaults below, a YAML file
(``load_config``), and explicit overrides such as CLI options
(``ResolverConfig.with_overrides``).

Example file::

    policy: first-discovered
    timeout: 30
    discovery_timeout: 60
    max_nesting_depth: 4
    workers: 8
    disabled_ids: [debug-overlay]
    break_cycles: false
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from modresolver.core.dependency.resolver import SelectionPolicy
from modresolver.discovery.discoverer import (
    DEFAULT_DISCOVERY_TIMEOUT,
    DEFAULT_MAX_NESTING_DEPTH,
    DEFAULT_WORKERS,
)
from modresolver.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "MODRESOLVER_CONFIG"


@dataclass(frozen=True)
class ResolverConfig:
    """Discovery and resolution settings.

    Attributes:
        policy: Preference among alternatives of one id.
        timeout: Resolver time budget in seconds; None for no limit.
        discovery_timeout: Discovery time budget in seconds; None for no limit.
        max_nesting_depth: Deepest nesting level that is still read.
        workers: Thread pool size used by discovery.
        disabled_ids: Mod ids dropped during discovery.
        break_cycles: Cut requirement cycles instead of failing activation
            ordering.
    """

    policy: SelectionPolicy = SelectionPolicy.NEWEST
    timeout: float | None = None
    discovery_timeout: float | None = DEFAULT_DISCOVERY_TIMEOUT
    max_nesting_depth: int = DEFAULT_MAX_NESTING_DEPTH
    workers: int = DEFAULT_WORKERS
    disabled_ids: tuple[str, ...] = ()
    break_cycles: bool = False

    def with_overrides(self, **overrides: Any) -> ResolverConfig:
        """Return a validated copy with *overrides* applied.

        Every given key is applied, so ``timeout=None`` or
        ``discovery_timeout=None`` lifts a limit set by a config file. Callers
        that collect optional values, like the CLI, drop the unset ones first.

        Raises:
            ConfigError: On unknown keys or invalid values.
        """
        if not overrides:
            return self
        merged = self.to_dict()
        merged.update(overrides)
        return config_from_dict(merged)

    def to_dict(self) -> dict[str, Any]:
        return {
            "policy": self.policy.value,
            "timeout": self.timeout,
            "discovery_timeout": self.discovery_timeout,
            "max_nesting_depth": self.max_nesting_depth,
            "workers": self.workers,
            "disabled_ids": list(self.disabled_ids),
            "break_cycles": self.break_cycles,
        }


_FIELDS = {f.name for f in dataclasses.fields(ResolverConfig)}


def _positive_number(key: str, value: Any, allow_none: bool = True) -> float | None:
    if value is None and allow_none:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{key} must be a positive number, got {value!r}")
    return float(value)


def _positive_int(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"{key} must be a positive integer, got {value!r}")
    return value


def config_from_dict(data: dict[str, Any]) -> ResolverConfig:
    """Build a validated ``ResolverConfig`` from plain data.

    Keys may use ``snake_case`` or ``kebab-case``.

    Raises:
        ConfigError: On unknown keys or invalid values.
    """
    normalized = {str(k).replace("-", "_"): v for k, v in data.items()}
    unknown = sorted(set(normalized) - _FIELDS)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

    values: dict[str, Any] = {}
    if "policy" in normalized:
        try:
            values["policy"] = SelectionPolicy.parse(normalized["policy"])
        except (ValueError, AttributeError) as exc:
            raise ConfigError(str(exc)) from exc
    for key in ("timeout", "discovery_timeout"):
        if key in normalized:
            values[key] = _positive_number(key, normalized[key])
    for key in ("max_nesting_depth", "workers"):
        if key in normalized:
            values[key] = _positive_int(key, normalized[key])
    if "disabled_ids" in normalized:
        ids = normalized["disabled_ids"] or []
        if isinstance(ids, str):
            ids = [ids]
        if not isinstance(ids, (list, tuple)) or not all(isinstance(i, str) for i in ids):
            raise ConfigError("disabled_ids must be a list of mod ids")
        values["disabled_ids"] = tuple(dict.fromkeys(ids))
    if "break_cycles" in normalized:
        if not isinstance(normalized["break_cycles"], bool):
            raise ConfigError("break_cycles must be true or false")
        values["break_cycles"] = normalized["break_cycles"]
    return ResolverConfig(**values)


def load_config(path: Path | str) -> ResolverConfig:
    """Load a YAML configuration file.

    An empty file yields the defaults.

    Raises:
        ConfigError: If the file cannot be read, is not valid YAML, or holds
            invalid settings.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    config = config_from_dict(data)
    logger.debug("Loaded configuration from %s: %s", path, config)
    return config
