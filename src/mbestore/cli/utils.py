"""Utility functions for CLI commands."""

import os
from pathlib import Path
from typing import Any, Dict, Tuple

import typer
from rich.console import Console
from rich.markup import escape

from mbestore.config import Config, ProjectConfig
from mbestore.core.database import get_project_root
from mbestore.errors import MBEError
from mbestore.infrastructure.store_connection_pool import get_store
from mbestore.managers.branch import BranchManager
from mbestore.utils.log import setup_logging

console = Console()


def get_config_with_data() -> Tuple[Config, ProjectConfig]:
    """Get config and load data for the current project.

    MBESTORE_PROJECT_DIR takes precedence over searching from the current
    directory.

    Returns:
        tuple: (config, config_data)
    """
    env_dir = os.environ.get("MBESTORE_PROJECT_DIR")
    try:
        project_root = Path(env_dir) if env_dir else get_project_root(Path.cwd())
    except FileNotFoundError:
        console.print("[red]❌ Not in an mbestore project directory[/red]")
        raise typer.Exit(1)

    config = Config(project_root)
    try:
        config_data = config.load()
    except FileNotFoundError:
        console.print("[red]❌ Config file not found. Run 'mbe init' first.[/red]")
        raise typer.Exit(1)

    setup_logging(config_data.logging.level, config_data.logging.format)
    return config, config_data


def get_branch_context() -> Tuple[BranchManager, Dict[str, Any], ProjectConfig]:
    """Build a BranchManager for the active project.

    Returns:
        tuple: (manager, requesting user document, config_data)
    """
    config, config_data = get_config_with_data()
    if not config_data.active_org or not config_data.active_project:
        console.print("[red]❌ No active organization or project configured[/red]")
        raise typer.Exit(1)

    store = get_store(config.store_path)
    user = store.find_one("users", {"_id": config_data.active_user})
    if user is None:
        console.print(f"[red]❌ User '{config_data.active_user}' not found[/red]")
        raise typer.Exit(1)

    return BranchManager(store, config=config_data), user, config_data


def exit_on_error(error: MBEError) -> None:
    """Print an mbestore error and exit with status 1."""
    console.print(f"[red]❌ {escape(error.message)}[/red]")
    raise typer.Exit(1)
