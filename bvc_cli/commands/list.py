"""
List command: repositories on the ledger, or local ones under the current directory.
"""

from datetime import datetime, timezone

import typer
from rich.table import Table

from bvc.sync import list_local_repositories, list_repositories

from ..output import command_errors, console


def list_command(
    ctx: typer.Context,
    mine: bool = typer.Option(False, "--mine", help="Only repositories owned by the configured account"),
    detailed: bool = typer.Option(False, "--detailed", help="Include owner, commit count and creation date"),
    local: bool = typer.Option(False, "--local", help="List local repositories in the current directory"),
):
    """List repositories."""
    app = ctx.obj
    with command_errors(app):
        if local:
            found = list_local_repositories(app.cwd)
            if not found:
                console.print("[yellow]No local repositories here[/yellow]")
                return
            table = Table(title=f"Local repositories in {app.cwd}")
            table.add_column("Directory", style="cyan")
            table.add_column("Name")
            table.add_column("Ledger ID")
            for path, config in found:
                table.add_row(path.name, config.name, config.repo_id or "Local only")
            console.print(table)
            return

        ledger = app.ledger()
        repos = list_repositories(ledger, mine=mine)
        if not repos:
            console.print("[yellow]No repositories found[/yellow]")
            return

        table = Table(title="Ledger repositories")
        table.add_column("Repository ID", style="cyan")
        table.add_column("Name")
        if detailed:
            table.add_column("Owner", style="dim")
            table.add_column("Commits", justify="right")
            table.add_column("Created")
        for repo in repos:
            row = [repo.repo_id, repo.name]
            if detailed:
                commits = ledger.list_commits(repo.repo_id).unwrap()
                created = datetime.fromtimestamp(repo.created_at, tz=timezone.utc).strftime("%Y-%m-%d")
                row += [repo.owner, str(len(commits)), created]
            table.add_row(*row)
        console.print(table)
