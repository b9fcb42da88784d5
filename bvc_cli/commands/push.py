"""
Push command: record local commits the ledger does not have yet.
"""

from typing import Optional

import typer

from bvc.sync import RepositorySync, require_repo_id

from ..output import command_errors, console, warn


def push_command(
    ctx: typer.Context,
    commit: Optional[str] = typer.Argument(None, help="Push only this commit (id or prefix)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="List what would be pushed"),
):
    """
    Push unpushed commits, one ledger transaction each.

    Use 'bvc checkpoint' to anchor many commits in one transaction.
    """
    app = ctx.obj
    with command_errors(app):
        store = app.store()
        require_repo_id(store)
        sync = RepositorySync(store, app.ledger(), app.content())
        report = sync.push(commit_prefix=commit, dry_run=dry_run)

        for text in report.warnings:
            warn(text)
        if not report.pushed:
            console.print("[green]Everything up to date[/green]")
            return
        if report.dry_run:
            console.print(f"[bold]Would push {len(report.pushed)} commit(s):[/bold]")
            for c in report.pushed:
                console.print(f"  {c.short_id} {c.message}", highlight=False)
            return
        console.print(f"[green]✓ Pushed {len(report.pushed)} commit(s)[/green]")
        for c, tx_hash in zip(report.pushed, report.tx_hashes):
            console.print(f"  {c.short_id} {c.message} [dim]{tx_hash}[/dim]", highlight=False)
