"""Rich output formatting helpers for the modresolver CLI.

Tables for activation order and discovery listings, panels for outcome
headers. Failure explanations are echoed verbatim so they can be copied
into bug reports unchanged.

Style mapping:
    builtin = dim, nested = cyan, warnings = yellow, failures = bold red
"""

from __future__ import annotations

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from modresolver.core.dependency.candidate import ModCandidate
from modresolver.core.report.models import ResolutionFailure, ResolutionSuccess
from modresolver.discovery.models import DiscoveryResult

console = Console()


def candidate_style(candidate: ModCandidate) -> str:
    """Return the Rich style string for a candidate row."""
    if candidate.builtin:
        return "dim"
    if not candidate.is_root:
        return "cyan"
    return ""


def _candidate_table(title: str, candidates: tuple[ModCandidate, ...]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Mod", style="bold")
    table.add_column("Version")
    table.add_column("Env", justify="center")
    table.add_column("Location", style="dim")
    for position, candidate in enumerate(candidates, start=1):
        style = candidate_style(candidate)
        table.add_row(
            str(position),
            Text(candidate.display_name, style=style),
            str(candidate.version),
            candidate.environment.value,
            candidate.display_path,
        )
    return table


def print_resolution_success(result: ResolutionSuccess) -> None:
    """Print the activation order, unmet recommendations and warnings."""
    console.print(
        Panel(
            f"[bold green]Resolution successful[/bold green]: {len(result.mods)} mods",
            title="Mod Resolution",
        )
    )
    console.print(_candidate_table("Activation Order", result.mods))

    if result.unmet_recommendations:
        console.print("[yellow]Unmet recommendations:[/yellow]")
        for blame in result.unmet_recommendations:
            console.print(Text(f"  - {blame.describe()}", style="yellow"))
    if result.warnings:
        console.print("[yellow]Warnings:[/yellow]")
        for warning in result.warnings:
            console.print(Text(f"  - {warning}", style="yellow"))


def print_resolution_failure(result: ResolutionFailure) -> None:
    """Print a failure header followed by the verbatim explanation."""
    console.print(
        Panel(
            f"[bold red]Resolution failed[/bold red] ({result.kind.value})",
            title="Mod Resolution",
        )
    )
    click.echo(result.explain())
    for warning in result.warnings:
        console.print(Text(f"  ! {warning}", style="yellow"))


def print_discovery(result: DiscoveryResult) -> None:
    """Print discovered candidates, exclusions, non-modules and issues."""
    if not result.candidates:
        console.print("[dim]No mods found.[/dim]")
    else:
        console.print(_candidate_table("Discovered Mods", result.candidates))

    if result.env_excluded:
        console.print(_candidate_table("Excluded by Environment", result.env_excluded))
    if result.disabled:
        console.print(_candidate_table("Disabled", result.disabled))
    if result.non_modules:
        console.print("[dim]Not mods:[/dim]")
        for path in result.non_modules:
            console.print(Text(f"  - {path}", style="dim"))
    if result.issues:
        issue_table = Table(title="Issues", show_header=True, header_style="bold")
        issue_table.add_column("Kind", style="yellow")
        issue_table.add_column("Location")
        issue_table.add_column("Message")
        for issue in result.issues:
            issue_table.add_row(issue.kind.value, issue.location, issue.message)
        console.print(issue_table)

    parts = [f"[bold]{len(result.mods)}[/bold] mods"]
    if result.env_excluded:
        parts.append(f"{len(result.env_excluded)} excluded")
    if result.issues:
        parts.append(f"[yellow]{len(result.issues)} issues[/yellow]")
    console.print(" | ".join(parts))
