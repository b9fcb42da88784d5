"""
Pull command: fetch ledger commits missing locally.
"""

from typing import Optional

import typer

from bvc.sync import RepositorySync, require_repo_id

from ..output import command_errors, console, warn


def pull_command(
    ctx: typer.Context,
    repo_id: Optional[str] = typer.Option(None, "--repo-id", help="Pull from another ledger repository"),
    no_download: bool = typer.Option(False, "--no-download", help="Fetch commit records only"),
    verify: bool = typer.Option(False, "--verify", help="Check downloaded files against their hashes"),
):
    """Fetch commits (and their files) from the ledger."""
    app = ctx.obj
    with command_errors(app):
        store = app.store()
        require_repo_id(store, repo_id)
        sync = RepositorySync(store, app.ledger(), app.content())
        report = sync.pull(repo_id=repo_id, download=not no_download, verify=verify)

        for text in report.warnings:
            warn(text)
        if report.up_to_date:
            console.print("[green]Already up to date[/green]")
            return
        console.print(f"[green]✓ Pulled {len(report.pulled)} commit(s)[/green]")
        for c in report.pulled:
            console.print(f"  {c.short_id} {c.message}", highlight=False)
        if report.files_written:
            console.print(f"  Files written: {len(report.files_written)}")
