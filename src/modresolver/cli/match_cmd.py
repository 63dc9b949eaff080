"""``modresolver match <version> <predicate>`` -- Test a version against a range.

Exit Codes:
    0 -- VERSION satisfies PREDICATE.
    1 -- VERSION does not satisfy PREDICATE.
    2 -- VERSION or PREDICATE could not be parsed.
"""

from __future__ import annotations

import sys

import click

from modresolver.core.version import parse_predicate, parse_version
from modresolver.exceptions import InvalidVersionError


@click.command("match")
@click.argument("version")
@click.argument("predicate")
def match_command(version: str, predicate: str) -> None:
    """Check whether VERSION satisfies the version range PREDICATE."""
    try:
        parsed_version = parse_version(version)
        parsed_predicate = parse_predicate(predicate)
    except InvalidVersionError as exc:
        click.echo(f"Invalid input: {exc}", err=True)
        sys.exit(2)

    matched = parsed_predicate.test(parsed_version)
    verdict = "matches" if matched else "does not match"
    click.echo(f"{parsed_version} {verdict} {parsed_predicate.describe()} ({parsed_predicate})")
    sys.exit(0 if matched else 1)
