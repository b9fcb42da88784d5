"""
Clone command: create a local copy of a ledger repository.
"""

from typing import Optional

import typer

from bvc.sync import clone

from ..output import command_errors, console, warn


def clone_command(
    ctx: typer.Context,
    repo_id: str = typer.Argument(..., help="Ledger repository id"),
    dest: Optional[str] = typer.Option(None, "--dest", help="Directory name (default: repository name)"),
):
    """Clone a repository from the ledger."""
    app = ctx.obj
    with command_errors(app):
        user_config = app.user_config()
        store, report = clone(
            repo_id,
            app.cwd,
            app.ledger(),
            app.content(),
            app.clock,
            dest=dest,
            author=user_config.author,
        )
        for text in report.warnings:
            warn(text)
        console.print(f"[green]✓ Cloned {repo_id}[/green] into [cyan]{store.root}[/cyan]")
        console.print(f"  Commits: {len(report.pulled)}  Files: {len(report.files_written)}")
