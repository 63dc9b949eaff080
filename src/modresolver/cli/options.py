"""Options shared by ``resolve`` and ``discover``, and context construction."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import click

from modresolver.config import CONFIG_ENV_VAR, ResolverConfig, load_config
from modresolver.context import ResolutionContext
from modresolver.core.dependency.candidate import Environment
from modresolver.discovery import parse_host
from modresolver.exceptions import ConfigError


def discovery_options(func: Callable) -> Callable:
    """Attach the options every command that discovers mods accepts."""
    decorators = [
        click.argument("mods_dir", type=click.Path(file_okay=False, path_type=Path)),
        click.option(
            "--env", "environment",
            type=click.Choice(["client", "server"], case_sensitive=False),
            default="client", show_default=True,
            help="Run environment; mods restricted to the other side are skipped.",
        ),
        click.option(
            "--add-mods", "add_mods", multiple=True, metavar="PATH",
            help="Extra mod path or @file list (repeatable).",
        ),
        click.option(
            "--disable", "disabled", multiple=True, metavar="ID",
            help="Mod id to ignore during discovery (repeatable).",
        ),
        click.option(
            "--host", "host", default=None, metavar="ID:VERSION",
            help="Host application to inject as a builtin module.",
        ),
        click.option(
            "--config", "config_path", default=None, envvar=CONFIG_ENV_VAR,
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            help=f"YAML configuration file (default: ${CONFIG_ENV_VAR}).",
        ),
        click.option("--json", "as_json", is_flag=True, help="Emit JSON instead of tables."),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def load_cli_config(config_path: Path | None, **overrides) -> ResolverConfig:
    """Load the config file (if any) and apply CLI overrides.

    Options left unset (None) keep the configured value.

    Raises:
        click.BadParameter: If the configuration is invalid.
    """
    try:
        config = load_config(config_path) if config_path else ResolverConfig()
        return config.with_overrides(**{k: v for k, v in overrides.items() if v is not None})
    except ConfigError as exc:
        raise click.BadParameter(str(exc), param_hint="--config") from exc


def build_context(
    mods_dir: Path,
    environment: str,
    add_mods: tuple[str, ...],
    disabled: tuple[str, ...],
    host: str | None,
    config: ResolverConfig,
) -> ResolutionContext:
    """Turn parsed CLI options into a ``ResolutionContext``."""
    host_module = None
    if host:
        try:
            host_module = parse_host(host)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--host") from exc
    if disabled:
        config = config.with_overrides(
            disabled_ids=tuple(dict.fromkeys(config.disabled_ids + disabled))
        )
    return ResolutionContext(
        environment=Environment.parse(environment),
        mods_dir=mods_dir,
        extra_paths=tuple(add_mods),
        host=host_module,
        config=config,
    )
