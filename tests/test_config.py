"""Tests for resolver configuration loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from modresolver.config import ResolverConfig, config_from_dict, load_config
from modresolver.core.dependency import SelectionPolicy
from modresolver.discovery import DEFAULT_MAX_NESTING_DEPTH, DEFAULT_WORKERS
from modresolver.exceptions import ConfigError


class TestConfigFromDict:
    """Tests for ``config_from_dict``."""

    def test_defaults(self) -> None:
        config = config_from_dict({})
        assert config == ResolverConfig()
        assert config.policy is SelectionPolicy.NEWEST
        assert config.timeout is None
        assert config.max_nesting_depth == DEFAULT_MAX_NESTING_DEPTH
        assert config.workers == DEFAULT_WORKERS

    def test_kebab_case_keys(self) -> None:
        config = config_from_dict({
            "policy": "first-discovered",
            "max-nesting-depth": 2,
            "disabled-ids": ["one", "two", "one"],
            "break-cycles": True,
            "timeout": 1.5,
        })
        assert config.policy is SelectionPolicy.FIRST_DISCOVERED
        assert config.max_nesting_depth == 2
        assert config.disabled_ids == ("one", "two")
        assert config.break_cycles is True
        assert config.timeout == 1.5

    def test_single_disabled_id(self) -> None:
        assert config_from_dict({"disabled_ids": "debug"}).disabled_ids == ("debug",)

    @pytest.mark.parametrize(
        ("data", "fragment"),
        [
            ({"colour": "blue"}, "Unknown configuration keys: colour"),
            ({"policy": "oldest"}, "Unknown selection policy"),
            ({"policy": 3}, ""),
            ({"timeout": 0}, "timeout must be a positive number"),
            ({"timeout": "soon"}, "timeout must be a positive number"),
            ({"discovery_timeout": True}, "discovery_timeout must be a positive number"),
            ({"workers": 0}, "workers must be a positive integer"),
            ({"max_nesting_depth": 1.5}, "max_nesting_depth must be a positive integer"),
            ({"disabled_ids": [1, 2]}, "disabled_ids must be a list"),
            ({"break_cycles": "yes"}, "break_cycles must be true or false"),
        ],
    )
    def test_invalid(self, data, fragment: str) -> None:
        with pytest.raises(ConfigError) as excinfo:
            config_from_dict(data)
        assert fragment in str(excinfo.value)


class TestOverrides:
    """Tests for ``ResolverConfig.with_overrides``."""

    def test_no_overrides_returns_same_config(self) -> None:
        base = ResolverConfig(workers=2)
        assert base.with_overrides() is base

    def test_none_lifts_configured_limits(self) -> None:
        """A file that sets timeouts can be reset to no limit by a caller."""
        base = ResolverConfig(timeout=30.0, discovery_timeout=60.0)
        lifted = base.with_overrides(timeout=None)
        assert lifted.timeout is None
        assert lifted.discovery_timeout == 60.0
        assert base.with_overrides(discovery_timeout=None).discovery_timeout is None

    def test_none_for_required_setting_rejected(self) -> None:
        with pytest.raises(ConfigError, match="workers must be a positive integer"):
            ResolverConfig().with_overrides(workers=None)

    def test_overrides_applied_and_validated(self) -> None:
        base = ResolverConfig(workers=2)
        updated = base.with_overrides(policy="first-discovered", timeout=3)
        assert updated.policy is SelectionPolicy.FIRST_DISCOVERED
        assert updated.timeout == 3.0
        assert updated.workers == 2
        with pytest.raises(ConfigError):
            base.with_overrides(workers=-1)

    def test_round_trip_through_dict(self) -> None:
        config = ResolverConfig(
            policy=SelectionPolicy.FIRST_DISCOVERED, disabled_ids=("a1",), break_cycles=True
        )
        assert config_from_dict(config.to_dict()) == config


class TestLoadConfig:
    """Tests for reading YAML configuration files."""

    def test_load(self, tmp_path: Path) -> None:
        path = tmp_path / "modresolver.yaml"
        path.write_text("policy: first-discovered\nworkers: 8\ndisabled_ids: [debug-overlay]\n")
        config = load_config(path)
        assert config.policy is SelectionPolicy.FIRST_DISCOVERED
        assert config.workers == 8
        assert config.disabled_ids == ("debug-overlay",)

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == ResolverConfig()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Cannot read config file"):
            load_config(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("policy: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_non_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- newest\n")
        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_config(path)
