"""Branch management commands for mbestore CLI."""

from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table as RichTable

from mbestore.cli.utils import exit_on_error, get_branch_context
from mbestore.errors import MBEError
from mbestore.utils.ids import ID_DELIMITER

app = typer.Typer(help="Branch management commands", invoke_without_command=True)
console = Console()


@app.callback()
def callback(ctx: typer.Context):
    """Show help when no subcommand is provided."""
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(0)


def _leaf(uid: Optional[str]) -> str:
    return uid.split(ID_DELIMITER)[-1] if uid else "-"


def _print_branches(branches: List[Dict[str, Any]], title: str, roots: List[str]):
    table = RichTable(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Source", style="yellow")
    table.add_column("Tag", style="green")
    table.add_column("Archived", style="magenta")
    table.add_column("Protected", style="red")

    for branch in branches:
        leaf = _leaf(branch["_id"])
        table.add_row(
            leaf,
            branch.get("name", ""),
            _leaf(branch.get("source")),
            "✓" if branch.get("tag") else "",
            "✓" if branch.get("archived") else "",
            "✓" if leaf in roots else "",
        )

    console.print(table)


@app.command(name="list")
def list_branches(
    archived: bool = typer.Option(False, "--archived", help="Only archived branches"),
    include_all: bool = typer.Option(
        False, "--all", "-a", help="Include archived branches"
    ),
    source: Optional[str] = typer.Option(
        None, "--source", "-s", help="Only branches cloned from this branch"
    ),
):
    """List the branches of the active project."""
    manager, user, config_data = get_branch_context()

    options: Dict[str, Any] = {"includeArchived": include_all}
    if archived:
        options["archived"] = True
    if source:
        options["source"] = source

    try:
        branches = manager.find(
            user, config_data.active_org, config_data.active_project, options=options
        )
    except MBEError as e:
        exit_on_error(e)

    if not branches:
        console.print("[yellow]No branches found[/yellow]")
        return

    _print_branches(
        branches,
        f"Branches in '{config_data.active_project}'",
        config_data.branches.root_branches,
    )


@app.command()
def create(
    branch_id: str = typer.Argument(..., help="ID of the new branch"),
    source: Optional[str] = typer.Option(
        None, "--source", "-s", help="Source branch (default: active branch)"
    ),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Branch name"),
    tag: bool = typer.Option(False, "--tag", help="Create the branch as a tag"),
):
    """Create a branch by cloning another one."""
    manager, user, config_data = get_branch_context()
    source_branch = source or config_data.active_branch

    spec = {"id": branch_id, "source": source_branch, "name": name or branch_id, "tag": tag}
    try:
        manager.create(user, config_data.active_org, config_data.active_project, spec)
    except MBEError as e:
        exit_on_error(e)

    console.print(
        f"[green]✅ Created branch '{branch_id}' from '{source_branch}'[/green]"
    )


@app.command()
def update(
    branch_id: str = typer.Argument(..., help="ID of the branch to update"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="New branch name"),
):
    """Update a branch."""
    if name is None:
        console.print("[yellow]Nothing to update[/yellow]")
        raise typer.Exit(0)

    manager, user, config_data = get_branch_context()
    try:
        manager.update(
            user,
            config_data.active_org,
            config_data.active_project,
            {"id": branch_id, "name": name},
        )
    except MBEError as e:
        exit_on_error(e)

    console.print(f"[green]✅ Updated branch '{branch_id}'[/green]")


def _set_archived(branch_id: str, archived: bool) -> None:
    manager, user, config_data = get_branch_context()
    try:
        manager.update(
            user,
            config_data.active_org,
            config_data.active_project,
            {"id": branch_id, "archived": archived},
            options={"includeArchived": True},
        )
    except MBEError as e:
        exit_on_error(e)


@app.command()
def archive(branch_id: str = typer.Argument(..., help="ID of the branch to archive")):
    """Archive a branch."""
    _set_archived(branch_id, True)
    console.print(f"[green]✅ Archived branch '{branch_id}'[/green]")


@app.command()
def unarchive(
    branch_id: str = typer.Argument(..., help="ID of the branch to unarchive"),
):
    """Unarchive a branch."""
    _set_archived(branch_id, False)
    console.print(f"[green]✅ Unarchived branch '{branch_id}'[/green]")


@app.command()
def delete(
    branch_id: str = typer.Argument(..., help="ID of the branch to delete"),
    force: bool = typer.Option(
        False, "--force", "-f", help="Force deletion without confirmation"
    ),
):
    """Delete a branch with its elements and artifacts."""
    manager, user, config_data = get_branch_context()

    if not force:
        confirm = typer.confirm(f"Are you sure you want to delete branch '{branch_id}'?")
        if not confirm:
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(0)

    try:
        manager.remove(user, config_data.active_org, config_data.active_project, branch_id)
    except MBEError as e:
        exit_on_error(e)

    console.print(f"[green]✅ Deleted branch '{branch_id}'[/green]")


@app.command()
def info(
    branch_id: Optional[str] = typer.Argument(
        None, help="Branch ID (default: active branch)"
    ),
):
    """Show information about a branch."""
    manager, user, config_data = get_branch_context()
    branch_id = branch_id or config_data.active_branch

    try:
        found = manager.find(
            user,
            config_data.active_org,
            config_data.active_project,
            branch_id,
            options={"includeArchived": True},
        )
    except MBEError as e:
        exit_on_error(e)

    if not found:
        console.print(f"[red]❌ Branch '{branch_id}' does not exist[/red]")
        raise typer.Exit(1)

    branch = found[0]
    elements = manager.store.count("elements", {"branch": branch["_id"]})
    artifacts = manager.store.count("artifacts", {"branch": branch["_id"]})

    console.print(f"\n[bold]Branch: {branch_id}[/bold]")
    console.print(f"Name: {branch.get('name', '')}")
    console.print(f"Source: {_leaf(branch.get('source'))}")
    console.print(f"Created: {branch.get('createdOn')} by {branch.get('createdBy')}")
    console.print(f"Archived: {'Yes' if branch.get('archived') else 'No'}")
    protected = branch_id in config_data.branches.root_branches
    console.print(f"Protected: {'Yes' if protected else 'No'}")
    console.print(f"Elements: {elements}")
    console.print(f"Artifacts: {artifacts}")
