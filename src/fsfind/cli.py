"""Command line interface for fsfind."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional

import typer
from rich.console import Console
from rich.markup import escape

from fsfind import __version__
from fsfind.config import ConfigurationError, load_config
from fsfind.models.config import LoggingConfig
from fsfind.models.search_request import MatchMode, PatternSyntax, RequestError, SearchRequest, build_request
from fsfind.models.search_results import Match, TraversalError
from fsfind.tools.engine import run


console = Console()
err_console = Console(stderr=True)
app = typer.Typer(help="fsfind - find files by name pattern and content", add_completion=False)

EXIT_USAGE_ERROR = 2
EXIT_INTERRUPTED = 130


def _setup_logging(verbose: bool, logging_config: Optional[LoggingConfig] = None) -> None:
    logging_config = logging_config or LoggingConfig()
    level = logging.DEBUG if verbose else logging_config.get_level()
    logging.basicConfig(level=level, format=logging_config.format)


def _pick(flag: Optional[bool], on: Any, off: Any) -> Any:
    """Map an on/off flag to a value; None leaves the configured default."""
    if flag is None:
        return None
    return on if flag else off


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"fsfind {__version__}")
        raise typer.Exit()


def _print_parameters(request: SearchRequest) -> None:
    console.print("\n[bold]Search Parameters:[/bold]")
    for label, value in request.get_parameter_summary().items():
        if isinstance(value, list):
            console.print(f"  {label}:")
            for item in value:
                console.print(f"    - {escape(str(item))}", soft_wrap=True)
        else:
            console.print(f"  {label}: {escape(str(value))}", soft_wrap=True)


def _print_match(match: Match) -> None:
    if match.content is not None:
        console.print(
            f"  - {escape(match.path)}:[cyan]{match.content.line_number}[/cyan]: "
            f"{escape(match.content.excerpt)}",
            soft_wrap=True,
        )
    else:
        console.print(f"  - {escape(match.path)}", soft_wrap=True)


def _print_errors(errors: List[TraversalError]) -> None:
    denied = [error for error in errors if error.is_permission_denied()]
    others = [error for error in errors if not error.is_permission_denied()]

    if denied:
        err_console.print("\n[bold red]Permission Denied:[/bold red]")
        for error in denied:
            err_console.print(f"  - [red]{escape(error.path)}[/red]", soft_wrap=True)

    if others:
        err_console.print("\n[bold red]Errors:[/bold red]")
        for error in others:
            err_console.print(f"  [red]{escape(str(error))}[/red]", soft_wrap=True)


@app.command()
def search(
    root: Path = typer.Argument(..., help="Directory to search."),
    pattern: str = typer.Argument(..., help="Regular expression matched against file names."),
    dirs: Optional[List[Path]] = typer.Option(None, "--dir", "-d", help="Additional directory to search."),
    filters: Optional[List[str]] = typer.Option(None, "--filter", "-f", help="Additional file name pattern."),
    exclude: Optional[str] = typer.Option(None, "--exclude", "-e", help="Exclude file names matching this pattern."),
    all_files: Optional[bool] = typer.Option(
        None, "--all/--no-all", "-a", help="Include hidden files and directories.", show_default=False
    ),
    content: Optional[str] = typer.Option(None, "--content", "-c", help="Only keep files whose content matches."),
    fixed_strings: Optional[bool] = typer.Option(
        None, "--fixed-strings/--no-fixed-strings", "-F", help="Treat the content pattern as a literal.", show_default=False
    ),
    ignore_case: Optional[bool] = typer.Option(
        None, "--ignore-case/--no-ignore-case", "-i", help="Case-insensitive matching.", show_default=False
    ),
    full_match: Optional[bool] = typer.Option(
        None, "--full-match/--no-full-match", help="Name patterns must match the whole file name.", show_default=False
    ),
    wildcard: Optional[bool] = typer.Option(
        None, "--wildcard/--regex", "-w", help="Name patterns are shell wildcards.", show_default=False
    ),
    follow_symlinks: Optional[bool] = typer.Option(
        None, "--follow-symlinks/--no-follow-symlinks", "-L", help="Descend into symlinked directories.", show_default=False
    ),
    show_params: bool = typer.Option(False, "--show-params", "-p", help="Print the effective search parameters."),
    config: Optional[Path] = typer.Option(None, "--config", help="Configuration file path."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not print traversal errors."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging."),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit."
    ),
) -> None:
    """Find files under ROOT whose names match PATTERN."""
    try:
        config_result = load_config(config)
    except ConfigurationError as e:
        err_console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        raise typer.Exit(code=EXIT_USAGE_ERROR)

    _setup_logging(verbose, config_result.config.logging)

    try:
        request = build_request(
            roots=[str(root)] + [str(extra) for extra in dirs or []],
            include=[pattern] + list(filters or []),
            config=config_result.config,
            exclude=exclude,
            content=content,
            include_hidden=all_files,
            fixed_strings=fixed_strings,
            ignore_case=ignore_case,
            match_mode=_pick(full_match, MatchMode.FULLMATCH, MatchMode.SEARCH),
            pattern_syntax=_pick(wildcard, PatternSyntax.WILDCARD, PatternSyntax.REGEX),
            follow_symlinks=follow_symlinks,
        )
    except RequestError as e:
        err_console.print(f"[red]Invalid search:[/red] {escape(str(e))}")
        raise typer.Exit(code=EXIT_USAGE_ERROR)

    if show_params:
        _print_parameters(request)

    console.print("\n[bold]Search Results:[/bold]")
    match_count = 0
    errors: List[TraversalError] = []

    try:
        with run(request) as search_run:
            for event in search_run:
                if isinstance(event, Match):
                    match_count += 1
                    _print_match(event)
                else:
                    errors.append(event)
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Search interrupted.[/yellow]")
        raise typer.Exit(code=EXIT_INTERRUPTED)

    if match_count:
        console.print(f"  Found {match_count} file(s).")
    else:
        console.print("  No files found matching the criteria.")

    if errors and not quiet:
        _print_errors(errors)

    console.print("\n[bold]Search completed.[/bold]")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
