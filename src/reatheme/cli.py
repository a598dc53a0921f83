"""Reatheme CLI Entry Point

Builds a REAPER theme archive from templated sources.

Usage:
    reatheme main.rtconfig.txt MyTheme.ReaperThemeZip
    reatheme main.rtconfig.txt MyTheme.ReaperThemeZip --overwrite
    reatheme main.rtconfig.txt out.zip --dry-run     # print, write nothing
    reatheme --config reatheme.yaml                  # paths from build file
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from reatheme._version import __version__
from reatheme.compiler import CompiledTheme, ThemeCompiler
from reatheme.config import BuildConfig, find_config, load_config
from reatheme.emitter import BuildOptions, PackageEmitter
from reatheme.errors import ThemeBuildError

DEBUG_ENV = "REATHEME_DEBUG"

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the reatheme CLI.

    Log levels:
    - Normal: Only warnings/errors shown
    - Verbose (--verbose): INFO level - resolved files, archive written
    - Debug (REATHEME_DEBUG=1): DEBUG level - shows everything
    """
    debug = bool(os.environ.get(DEBUG_ENV))
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=err_console,
        show_time=verbose,
        show_path=debug,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("reatheme")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False


def print_theme(theme: CompiledTheme) -> None:
    """Show both documents and the resource plan."""
    console.rule(f"{theme.name}/rtconfig.txt")
    console.print(theme.rtconfig, markup=False, highlight=False, end="")
    console.rule(f"{theme.name}.ReaperTheme")
    console.print(theme.reapertheme, markup=False, highlight=False, end="")

    table = Table(title="Resources")
    table.add_column("Source")
    table.add_column("Destination")
    for entry in theme.resources:
        for source, dest in entry.files:
            table.add_row(str(source), f"{theme.name}/{dest}")
    console.print(table)


def fail(message: str) -> NoReturn:
    typer.secho(f"Error: {message}", err=True, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def handle_error(error: Exception) -> NoReturn:
    """Report a build failure and exit 1."""
    if isinstance(error, ThemeBuildError):
        fail(str(error))
    # Unexpected error
    typer.secho(f"Unexpected error: {error}", err=True, fg=typer.colors.RED)
    raise typer.Exit(code=1)


typer_app = typer.Typer()


@typer_app.command()
def cli(
    input_path: Optional[Path] = typer.Argument(
        None, metavar="INPUT", help="Entry file of the theme."
    ),
    output: Optional[Path] = typer.Argument(
        None, metavar="OUTPUT", help="Archive to write (.ReaperThemeZip)."
    ),
    overwrite: Optional[bool] = typer.Option(
        None, "--overwrite/--no-overwrite", help="Replace an existing output archive."
    ),
    config_path: Optional[Path] = typer.Option(
        None, "-c", "--config", help="Path to reatheme.yaml."
    ),
    name: Optional[str] = typer.Option(
        None, "-n", "--name", help="Theme name (defaults to the output file stem)."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Print the compiled theme without writing it."
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show progress."),
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    """Compile a templated REAPER theme into a .ReaperThemeZip archive."""
    if version:
        typer.echo(f"reatheme {__version__}")
        raise typer.Exit()

    setup_logging(verbose)

    try:
        if config_path is None:
            config_path = find_config(input_path)
        config = load_config(config_path) if config_path else BuildConfig()
    except ThemeBuildError as exc:
        fail(str(exc))

    entry = input_path or config.input
    target = output or config.output
    if entry is None:
        fail("No input file given.")
    if target is None and not dry_run:
        fail("No output file given.")

    options = BuildOptions(
        overwrite=config.overwrite if overwrite is None else overwrite,
        compression_level=config.compression_level,
    )
    theme_name = name or config.name or (target.stem if target else entry.stem)

    try:
        theme = ThemeCompiler().compile(entry, theme_name)
        if dry_run:
            print_theme(theme)
            return
        PackageEmitter().emit(theme, target, options)
    except Exception as exc:
        handle_error(exc)

    typer.echo(f"Built {target}")


def app() -> None:
    typer_app()


if __name__ == "__main__":
    app()
