#!/usr/bin/env python3
"""
dlkit CLI Main Application

Typer-based command-line interface for expanding filename templates,
sanitizing and inspecting paths, and resolving download filenames from
response headers.
"""

import asyncio
import json
from typing import Optional, List, Annotated
from urllib.parse import urlparse

import typer
from rich.table import Table
from rich.text import Text

from dlkit import paths
from dlkit.cli import __version__
from dlkit.cli.config_utils import load_config_from_cli, setup_logging
from dlkit.cli.utils import console, parse_variables, handle_error
from dlkit.core.config import AppConfig
from dlkit.core.exceptions import DLKitError
from dlkit.core.templates import TemplateEngine
from dlkit.headers import FilenameResolver, RequestsHeaderSource

app = typer.Typer(
    name="dlkit",
    help="Filename templates, path sanitization and header based filename resolution",
    context_settings={"help_option_names": ["-h", "--help"]},
    rich_markup_mode="rich",
    no_args_is_help=True,
)


def version_callback(value: bool):
    """Show version information."""
    if value:
        console.print(f"[bold cyan]dlkit[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def app_callback(
    ctx: typer.Context,
    config: Annotated[Optional[str], typer.Option("--config", "-c", help="Configuration file path")] = None,
    verbose: Annotated[Optional[bool], typer.Option("--verbose", help="Enable verbose output")] = None,
    debug: Annotated[Optional[bool], typer.Option("--debug", help="Enable debug logging")] = None,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version information and exit"
    )] = None,
):
    """
    dlkit - download naming toolkit

    [bold]Quick Start:[/bold]

    • Expand a template: [cyan]dlkit template "<###index>-<name>" -V index=7 -V name=cat[/cyan]
    • Sanitize a path: [cyan]dlkit sanitize --path "pics//what?.png"[/cyan]
    • Join path parts: [cyan]dlkit join downloads 2024 cat.jpg[/cyan]
    • Resolve a download: [cyan]dlkit resolve https://example.com/get?id=1[/cyan]
    """
    app_config = load_config_from_cli(config, {'verbose': verbose, 'debug': debug})
    setup_logging(app_config)
    ctx.obj = app_config


def _config(ctx: typer.Context) -> AppConfig:
    return ctx.obj if isinstance(ctx.obj, AppConfig) else AppConfig()


@app.command("template")
def template_command(
    ctx: typer.Context,
    template: Annotated[Optional[str], typer.Argument(help="Template with <...> placeholders")] = None,
    var: Annotated[Optional[List[str]], typer.Option("--var", "-V", help="Variable as name=value (repeatable)")] = None,
    preset: Annotated[Optional[str], typer.Option("--preset", "-p", help="Use a named preset template")] = None,
    render: Annotated[bool, typer.Option("--render", help="Sanitize the result as a relative path")] = False,
    check: Annotated[bool, typer.Option("--check", help="Only validate the template")] = False,
    list_presets: Annotated[bool, typer.Option("--list-presets", help="List preset templates and exit")] = False,
):
    """Expand a filename template."""
    app_config = _config(ctx)
    engine = TemplateEngine(presets=app_config.templates.presets, replacement=app_config.paths.replacement)

    if list_presets:
        table = Table(title="Template presets")
        table.add_column("Name", style="cyan")
        table.add_column("Template")
        for name in engine.list_presets():
            table.add_row(name, Text(engine.get_preset(name)))
        console.print(table)
        return

    if preset:
        template = engine.get_preset(preset)
        if template is None:
            console.print(f"[red]Unknown preset: {preset}[/red]")
            raise typer.Exit(1)
    if template is None:
        raise typer.BadParameter("Provide a template or --preset")

    if check:
        problems = engine.validate_template(template)
        if problems:
            for problem in problems:
                console.print(f"[yellow]• {problem}[/yellow]", highlight=False)
            raise typer.Exit(1)
        console.print("[green]Template is valid[/green]")
        return

    variables = parse_variables(var)
    try:
        result = engine.render(template, variables) if render else engine.expand(template, variables)
    except DLKitError as e:
        handle_error(e)
    typer.echo(result)


@app.command("sanitize")
def sanitize_command(
    ctx: typer.Context,
    value: Annotated[str, typer.Argument(help="Filename or path to sanitize")],
    path: Annotated[bool, typer.Option("--path", help="Keep directory separators")] = False,
    replacement: Annotated[Optional[str], typer.Option("--replacement", "-r", help="Replacement for invalid characters")] = None,
):
    """Replace characters that are invalid in filenames or paths."""
    if replacement is None:
        replacement = _config(ctx).paths.replacement
    if path:
        typer.echo(paths.sanitize_path(value, replacement))
    else:
        typer.echo(paths.sanitize_filename(value, replacement))


@app.command("inspect")
def inspect_command(
    value: Annotated[str, typer.Argument(help="Path to break down")],
):
    """Show the components of a path and whether it is valid."""
    table = Table(title=Text(f"Path: {value}"), show_header=False)
    table.add_column("Component", style="cyan")
    table.add_column("Value")
    table.add_row("basename", Text(paths.basename(value)))
    table.add_row("filename", Text(paths.filename(value)))
    table.add_row("file part", Text(paths.file_part(value)))
    table.add_row("extension", Text(paths.file_ext(value)))
    table.add_row("dirname", Text(paths.dirname(value)))
    table.add_row("valid path", "yes" if paths.is_valid_path(value) else "no")
    table.add_row("valid filename", "yes" if paths.is_valid_filename(value) else "no")
    console.print(table)


@app.command("join")
def join_command(
    ctx: typer.Context,
    parts: Annotated[List[str], typer.Argument(help="Path parts to join")],
    separator: Annotated[Optional[str], typer.Option("--separator", "-s", help="Separator placed between parts")] = None,
):
    """Join path parts, collapsing repeated separators."""
    if separator is None:
        separator = _config(ctx).paths.separator
    typer.echo(paths.path_join(parts, separator))


@app.command("resolve")
def resolve_command(
    ctx: typer.Context,
    url: Annotated[str, typer.Argument(help="URL of the download")],
    sanitize: Annotated[bool, typer.Option(
        "--sanitize", "--suggest",
        help="Print a sanitized filename instead of the raw guess"
    )] = False,
):
    """Infer a download's filename from its response headers."""
    app_config = _config(ctx)

    with RequestsHeaderSource.from_config(app_config.headers) as header_source:
        resolver = FilenameResolver.from_config(app_config.headers, header_source)
        try:
            guess = asyncio.run(resolver.resolve(url))
        except DLKitError as e:
            handle_error(e)

    if sanitize:
        fallback = paths.filename(urlparse(url).path)
        typer.echo(guess.suggest(fallback, app_config.paths.replacement))
    else:
        typer.echo(json.dumps(guess.to_dict()))


def main():
    """Entry point for the dlkit console script."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
