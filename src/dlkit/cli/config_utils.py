"""
Configuration Utilities for CLI Commands

Loads the application configuration for a CLI invocation and sets up
logging from it.
"""

import logging
from typing import Dict, Any, Optional
import typer

from dlkit.core.config import ConfigManager, AppConfig
from dlkit.core.exceptions import ConfigurationError
from dlkit.cli.utils import console


def load_config_from_cli(
    config_file: Optional[str] = None,
    cli_args: Optional[Dict[str, Any]] = None
) -> AppConfig:
    """
    Load configuration from CLI arguments with proper error handling.

    Args:
        config_file: Optional path to configuration file
        cli_args: Dictionary of CLI arguments to override config

    Returns:
        Validated AppConfig instance

    Raises:
        typer.Exit: If configuration is invalid
    """
    try:
        config_manager = ConfigManager(config_file=config_file)
        app_config = config_manager.load_config(cli_args=cli_args or {})
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e.message}[/red]")
        raise typer.Exit(1)

    warnings = config_manager.validate_config(app_config)
    if warnings:
        console.print("[yellow]Configuration warnings:[/yellow]")
        for warning in warnings:
            console.print(f"  • {warning}")
        console.print()

    return app_config


def setup_logging(config: AppConfig) -> None:
    """Set up logging configuration for the application."""
    logging.basicConfig(
        level=getattr(logging, config.get_log_level()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
