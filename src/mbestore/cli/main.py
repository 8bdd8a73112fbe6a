"""Main CLI entry point for mbestore."""

from pathlib import Path
from typing import Optional

import typer

from mbestore.cli.commands import branch

app = typer.Typer(
    name="mbe",
    help="mbestore - Branch-versioned model element store",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """
    mbestore - Branch-versioned model element store
    """
    if ctx.invoked_subcommand is None:
        # No subcommand was invoked, show help
        print(ctx.get_help())
        raise typer.Exit(0)


app.add_typer(branch.app, name="branch", help="Branch management commands")


@app.command()
def init(
    path: Optional[Path] = typer.Argument(
        None, help="Directory to initialize project in (default: current directory)"
    ),
    org: str = typer.Option("default", "--org", "-o", help="Organization ID"),
    project: str = typer.Option("main", "--project", "-p", help="Project ID"),
    user: str = typer.Option("admin", "--user", "-u", help="Admin username"),
):
    """Initialize a new mbestore project."""
    from mbestore.config import Config
    from mbestore.errors import MBEError

    project_path = path or Path.cwd()

    try:
        Config(project_path).init_project(org, project, user)
        typer.secho(
            f"✅ Initialized mbestore project in {project_path}", fg=typer.colors.GREEN
        )
        typer.secho(
            f"   Organization: {org}, Project: {project}, Branch: master",
            fg=typer.colors.CYAN,
        )
    except FileExistsError:
        typer.secho(f"❌ Project already exists in {project_path}", fg=typer.colors.RED)
        raise typer.Exit(1)
    except MBEError as e:
        typer.secho(f"❌ {e.message}", fg=typer.colors.RED)
        raise typer.Exit(1)


@app.command()
def version():
    """Show mbestore version."""
    from mbestore import __version__

    typer.echo(f"mbestore version {__version__}")


@app.command()
def status():
    """Show the active project configuration."""
    from mbestore.cli.utils import get_config_with_data
    from rich.console import Console

    console = Console()
    config, config_data = get_config_with_data()

    console.print("\n[bold]mbestore Status[/bold]")
    console.print(f"Project directory: {config.project_dir}")
    console.print(f"Store: {config.store_path}")
    console.print(f"Active Organization: {config_data.active_org}")
    console.print(f"Active Project: {config_data.active_project}")
    console.print(f"Active Branch: {config_data.active_branch}")
    console.print(f"Active User: {config_data.active_user}")
    console.print(f"Root Branches: {', '.join(config_data.branches.root_branches)}")


if __name__ == "__main__":
    app()
