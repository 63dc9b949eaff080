"""``modresolver resolve <mods_dir>`` -- Discover mods and resolve a load set.

Discovers every mod in MODS_DIR (plus ``--add-mods`` paths), builds the
dependency graph, resolves it and prints the activation order or the
explanation of why no consistent set exists.

Exit Codes:
    0 -- Resolution succeeded.
    1 -- Resolution failed (unsatisfiable, timed out, or not orderable).
    2 -- Discovery failed, no mods found, or invalid usage.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from modresolver.cli.options import build_context, discovery_options, load_cli_config
from modresolver.core.report.models import ResolutionSuccess
from modresolver.engine import run
from modresolver.exceptions import DiscoveryError


@click.command("resolve")
@discovery_options
@click.option(
    "--policy",
    type=click.Choice(["newest", "first-discovered"], case_sensitive=False),
    default=None,
    help="Preference among versions of one id [default: newest].",
)
@click.option(
    "--timeout", type=click.FloatRange(min=0, min_open=True), default=None,
    help="Resolver time budget in seconds.",
)
@click.option(
    "--no-timeout", is_flag=True,
    help="Lift the resolver time budget set by the config file.",
)
@click.option(
    "--break-cycles", is_flag=True, default=None,
    help="Cut requirement cycles instead of failing activation ordering.",
)
def resolve_command(
    mods_dir: Path,
    environment: str,
    add_mods: tuple[str, ...],
    disabled: tuple[str, ...],
    host: str | None,
    config_path: Path | None,
    as_json: bool,
    policy: str | None,
    timeout: float | None,
    no_timeout: bool,
    break_cycles: bool | None,
) -> None:
    """Resolve the mods in MODS_DIR into a consistent, ordered load set.

    Exit code 0 on success, 1 on resolution failure, 2 on discovery failure.
    """
    config = load_cli_config(
        config_path,
        policy=policy,
        timeout=timeout,
        break_cycles=break_cycles or None,
    )
    if no_timeout:
        if timeout is not None:
            raise click.UsageError("--timeout and --no-timeout are mutually exclusive")
        config = config.with_overrides(timeout=None)
    context = build_context(mods_dir, environment, add_mods, disabled, host, config)

    try:
        outcome = run(context)
    except DiscoveryError as exc:
        if as_json:
            click.echo(json.dumps({"success": False, "error": str(exc)}, sort_keys=True))
        else:
            click.echo(f"Discovery failed: {exc}", err=True)
        sys.exit(2)

    if not outcome.discovery.mods:
        if as_json:
            click.echo(json.dumps({"mods": [], "summary": "No mods found"}, sort_keys=True))
        else:
            click.echo("No mods found in the target directory.")
        sys.exit(2)

    result = outcome.result
    if as_json:
        click.echo(result.to_json())
    else:
        from modresolver.cli.output import print_resolution_failure, print_resolution_success

        if isinstance(result, ResolutionSuccess):
            print_resolution_success(result)
        else:
            print_resolution_failure(result)
    sys.exit(0 if result.success else 1)
