"""Connecting to a local mbestore project."""

from pathlib import Path
from typing import Optional

from mbestore.config import Config
from mbestore.infrastructure.store_connection_pool import get_store
from mbestore.managers.base import ManagerContext


def get_project_root(start_path: Path) -> Path:
    """Find the project root by looking for a .mbestore directory.

    Args:
        start_path: Path to start searching from

    Returns:
        Path to project root

    Raises:
        FileNotFoundError: If no project root found
    """
    current = Path(start_path).resolve()

    while current != current.parent:
        if (current / ".mbestore").exists():
            return current
        current = current.parent

    raise FileNotFoundError(f"No mbestore project found from {start_path}")


def connect(project_dir: Optional[Path] = None) -> ManagerContext:
    """Open the store of a local project.

    Args:
        project_dir: Path to project directory (optional, will search for .mbestore)

    Returns:
        ManagerContext bound to the project's store and configuration

    Examples:
        ctx = connect()
        ctx.branches.find(user, "acme", "rocket")
    """
    if project_dir is None:
        try:
            project_dir = get_project_root(Path.cwd())
        except FileNotFoundError:
            raise ValueError("No .mbestore directory found. Run 'mbe init' first.")

    config = Config(project_dir)
    config_data = config.load()
    return ManagerContext(store=get_store(config.store_path), config=config_data)
