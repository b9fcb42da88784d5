"""
Revert command: restore the working tree to a recorded commit.
"""

import typer

from bvc.revert import SOURCE_CONTENT_STORE, revert

from ..output import command_errors, console, warn


def revert_command(
    ctx: typer.Context,
    commit: str = typer.Argument(..., help="Commit id or prefix"),
    force: bool = typer.Option(False, "--force", help="Discard staged changes"),
    no_backup: bool = typer.Option(False, "--no-backup", help="Skip the backup in .bvc/backups"),
):
    """
    Restore files from a commit.

    The commit log is not changed; commit the restored files to record them.
    """
    app = ctx.obj
    with command_errors(app):
        store = app.store()
        content = app.content() if store.load_commits() else None
        report = revert(store, commit, app.clock, content=content, force=force, backup=not no_backup)

        for text in report.warnings:
            warn(text)
        for path in report.skipped:
            warn(f"{path} has no stored content; left unchanged")

        source = f"content store ({report.commit.content_id})" if report.source == SOURCE_CONTENT_STORE else "local commit data"
        console.print(f"[green]✓ Reverted to {report.commit.short_id}[/green] {report.commit.message}", highlight=False)
        console.print(f"  Files restored: {len(report.restored)} from {source}")
        if report.backup_path:
            console.print(f"  Backup: [cyan]{report.backup_path}[/cyan]")
