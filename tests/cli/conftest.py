"""Shared fixtures for CLI tests.

Provides a Click runner and temporary mods directories in a few shapes:
consistent, unsatisfiable, and holding two versions of one library.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from tests.helpers import descriptor, write_mod_zip


@pytest.fixture
def runner(monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    """Create a Click CliRunner with no ambient config file."""
    monkeypatch.delenv("MODRESOLVER_CONFIG", raising=False)
    return CliRunner()


@pytest.fixture
def empty_mods_dir(tmp_path: Path) -> Path:
    path = tmp_path / "mods"
    path.mkdir()
    return path


@pytest.fixture
def broken_mods_dir(empty_mods_dir: Path) -> Path:
    """``alpha`` requires ``gamma``, which is not installed."""
    write_mod_zip(empty_mods_dir, "alpha.zip", descriptor("alpha", depends={"gamma": ">=1.0"}))
    return empty_mods_dir


@pytest.fixture
def two_versions_dir(empty_mods_dir: Path) -> Path:
    """``lib`` 1.0 is discovered before ``lib`` 2.0."""
    write_mod_zip(empty_mods_dir, "lib-a.zip", descriptor("lib", "1.0"))
    write_mod_zip(empty_mods_dir, "lib-b.zip", descriptor("lib", "2.0"))
    return empty_mods_dir


@pytest.fixture
def sided_mods_dir(empty_mods_dir: Path) -> Path:
    """One mod for each side plus one that runs everywhere."""
    write_mod_zip(empty_mods_dir, "both.zip", descriptor("both"))
    write_mod_zip(empty_mods_dir, "client.zip", descriptor("minimap", environment="client"))
    write_mod_zip(empty_mods_dir, "server.zip", descriptor("backups", environment="server"))
    return empty_mods_dir
