"""
adminforge command line.

Commands:
    inspect       Show the admin schema derived from a record type
    check-config  Validate an admin TOML config file
"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from adminforge.config import load_config
from adminforge.core.errors import AdminError
from adminforge.core.registration import build_model
from adminforge.core.strings import lower_case, snake_case
from adminforge.runtime.logging import setup_logging

app = typer.Typer(help="Embeddable admin generated from annotated record types")
console = Console()

NAME_TRANSFORMS = {
    "none": None,
    "snake": snake_case,
    "lower": lower_case,
}


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug messages"),
    log_file: Path | None = typer.Option(None, "--log-file", help="Also write JSONL logs to this file"),
) -> None:
    setup_logging(logging.DEBUG if verbose else logging.WARNING, log_file=log_file)


def _import_target(target: str) -> Any:
    """Import ``package.module:Name``."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise typer.BadParameter("expected MODULE:CLASS, e.g. myapp.models:Post")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise typer.BadParameter(f"cannot import {module_name}: {exc}") from exc
    try:
        return getattr(module, attr)
    except AttributeError:
        raise typer.BadParameter(f"{module_name} has no attribute {attr!r}") from None


@app.command("inspect")
def inspect_cmd(
    target: str = typer.Argument(..., help="Record type as MODULE:CLASS"),
    transform: str = typer.Option(
        "none", "--transform", "-t", help="Name transform: none, snake, lower"
    ),
    suffix: str = typer.Option("Id", "--suffix", help="Foreign-key suffix for references"),
) -> None:
    """Show the admin schema derived from a record type."""
    if transform not in NAME_TRANSFORMS:
        raise typer.BadParameter(f"unknown transform {transform!r}", param_hint="--transform")

    record = _import_target(target)
    try:
        model = build_model(record, name_transform=NAME_TRANSFORMS[transform], foreign_key_suffix=suffix)
    except AdminError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    console.print(
        f"[bold]{model.name}[/bold]  slug=[cyan]{model.slug}[/cyan]  table=[cyan]{model.table_name}[/cyan]"
    )
    table = Table(show_header=True, header_style="bold")
    table.add_column("Field")
    table.add_column("Kind")
    table.add_column("Label")
    table.add_column("Column")
    table.add_column("List")
    for field in model.fields:
        table.add_row(
            field.name,
            field.kind.value,
            field.label,
            field.column_name,
            "yes" if field.list_visible else "",
        )
    console.print(table)


@app.command("check-config")
def check_config(
    path: Path = typer.Argument(..., help="TOML file with an [admin] table"),
) -> None:
    """Validate an admin config file."""
    try:
        config = load_config(path)
    except AdminError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    missing = [name for name in ("username", "password") if not getattr(config, name)]
    if missing:
        console.print(f"[red]Error:[/red] missing {', '.join(missing)}")
        raise typer.Exit(code=1)

    console.print(f"[green]OK[/green] {config.title} at {config.path} (database {config.database})")


if __name__ == "__main__":
    app()
