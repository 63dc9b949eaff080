"""Shared fixtures for modresolver tests."""

import pathlib

import pytest

from tests.helpers import descriptor, write_mod_zip


@pytest.fixture
def mods_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """An empty mods directory."""
    path = tmp_path / "mods"
    path.mkdir()
    return path


@pytest.fixture
def simple_mods_dir(mods_dir: pathlib.Path) -> pathlib.Path:
    """A mods directory where ``alpha`` requires ``beta`` >=2.0 and both 1.0 and 2.1 exist."""
    write_mod_zip(mods_dir, "alpha.zip", descriptor("alpha", "1.0", depends={"beta": ">=2.0"}))
    write_mod_zip(mods_dir, "beta-1.0.zip", descriptor("beta", "1.0"))
    write_mod_zip(mods_dir, "beta-2.1.zip", descriptor("beta", "2.1"))
    return mods_dir
