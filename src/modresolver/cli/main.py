"""modresolver CLI -- Mod discovery and dependency resolution.

Entry point for the ``modresolver`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    resolve  -- Discover mods and resolve a consistent, ordered load set.
    discover -- List discovered mods, exclusions and issues.
    match    -- Test a version against a version range.

Usage::

    modresolver resolve ./mods
    modresolver resolve ./mods --env server --add-mods @extra-mods.txt
    modresolver -vv resolve ./mods --policy first-discovered --json
    modresolver discover ./mods
    modresolver match 1.2.3 ">=1.2 <2"
"""

from __future__ import annotations

import logging

import click

from modresolver import __version__
from modresolver.cli.discover_cmd import discover_command
from modresolver.cli.match_cmd import match_command
from modresolver.cli.resolve_cmd import resolve_command

_LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", count=True, help="Increase log output (-v info, -vv debug).")
def cli(verbose: int) -> None:
    """modresolver: Mod discovery and dependency resolution.

    Find mods in a directory, resolve their dependencies, conflicts and
    environment restrictions, and explain precisely why a mod set cannot
    load when no consistent selection exists.
    """
    logging.basicConfig(
        level=_LOG_LEVELS.get(verbose, logging.DEBUG),
        format="%(levelname)s %(name)s: %(message)s",
    )


# Register all subcommands
cli.add_command(resolve_command)
cli.add_command(discover_command)
cli.add_command(match_command)
