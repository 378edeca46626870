"""
CLI Utilities

Shared helpers for CLI commands: console output, option parsing and
error reporting.
"""

from typing import Dict, List, Optional
import typer
from rich.console import Console
from rich.panel import Panel

from dlkit.core.exceptions import DLKitError

console = Console()


def parse_variables(values: Optional[List[str]]) -> Dict[str, str]:
    """
    Parse repeated ``name=value`` options into a dictionary.

    Raises:
        typer.BadParameter: If an entry has no ``=`` or an empty name
    """
    variables = {}
    for item in values or []:
        if '=' not in item:
            raise typer.BadParameter(f"Expected name=value, got '{item}'")
        name, value = item.split('=', 1)
        name = name.strip()
        if not name:
            raise typer.BadParameter(f"Empty variable name in '{item}'")
        variables[name] = value
    return variables


def handle_error(error: DLKitError) -> None:
    """Print a dlkit error with its suggestions and exit with status 1."""
    console.print(Panel(
        error.get_user_message(),
        title="[red]Error[/red]",
        border_style="red"
    ))
    raise typer.Exit(1)
