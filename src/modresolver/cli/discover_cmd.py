"""``modresolver discover <mods_dir>`` -- List what discovery finds.

Runs discovery only: candidates (builtins included), environment-excluded
and disabled mods, files that are not mods, and per-location issues.

Exit Codes:
    0 -- Discovery completed.
    2 -- Discovery failed as a whole.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from modresolver.cli.options import build_context, discovery_options, load_cli_config
from modresolver.core.report.serialize import candidate_to_dict
from modresolver.discovery.models import DiscoveryResult
from modresolver.engine import discover
from modresolver.exceptions import DiscoveryError


def _discovery_to_dict(result: DiscoveryResult) -> dict:
    return {
        "candidates": [candidate_to_dict(c) for c in result.candidates],
        "env_excluded": [candidate_to_dict(c) for c in result.env_excluded],
        "disabled": [candidate_to_dict(c) for c in result.disabled],
        "non_modules": list(result.non_modules),
        "issues": [
            {"kind": i.kind.value, "location": i.location, "message": i.message}
            for i in result.issues
        ],
    }


@click.command("discover")
@discovery_options
def discover_command(
    mods_dir: Path,
    environment: str,
    add_mods: tuple[str, ...],
    disabled: tuple[str, ...],
    host: str | None,
    config_path: Path | None,
    as_json: bool,
) -> None:
    """List the mods discovered in MODS_DIR without resolving them."""
    config = load_cli_config(config_path)
    context = build_context(mods_dir, environment, add_mods, disabled, host, config)

    try:
        result = discover(context)
    except DiscoveryError as exc:
        click.echo(f"Discovery failed: {exc}", err=True)
        sys.exit(2)

    if as_json:
        click.echo(json.dumps(_discovery_to_dict(result), indent=2, sort_keys=True))
    else:
        from modresolver.cli.output import print_discovery

        print_discovery(result)
    sys.exit(0)
