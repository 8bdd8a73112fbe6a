"""Main entry point for mbestore API server."""

from pathlib import Path
from typing import Optional

import typer
import uvicorn
from rich.console import Console

from mbestore.core.database import get_project_root

cli = typer.Typer(
    name="mbe-server",
    help="mbestore API server",
    add_completion=False,
)
console = Console()


@cli.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to"),
    project_dir: Optional[Path] = typer.Option(
        None, "--project-dir", "-d", help="Project directory"
    ),
):
    """Start the mbestore API server."""
    if project_dir:
        project_path = Path(project_dir)
    else:
        try:
            project_path = get_project_root(Path.cwd())
        except FileNotFoundError:
            console.print("[red]❌ No mbestore project found[/red]")
            raise typer.Exit(1)

    from mbestore.api.app import create_app

    console.print(f"[green]Starting mbestore API server for {project_path}[/green]")
    uvicorn.run(create_app(project_path), host=host, port=port)


if __name__ == "__main__":
    cli()
