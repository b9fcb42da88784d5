"""
Commit command: record staged files as a new commit.
"""

from typing import Optional

import typer

from bvc.commit import CommitBuilder, CommitOptions
from bvc.core.errors import ConfigurationMissingError

from ..output import command_errors, console, warn


def commit_command(
    ctx: typer.Context,
    message: Optional[str] = typer.Option(None, "--message", "-m", help="Commit message"),
    amend: bool = typer.Option(False, "--amend", help="Replace the last commit"),
    remote: bool = typer.Option(False, "--remote", help="Upload files and record the commit on the ledger"),
):
    """
    Commit staged files.

    Remote anchoring is best effort: the commit is always kept locally.

    Examples:
        bvc commit -m "Add token contract"
        bvc commit --amend -m "Add token contract and tests"
        bvc commit -m "Release" --remote
    """
    app = ctx.obj
    if message is None:
        message = typer.prompt("Commit message")
    options = CommitOptions(message=message, amend=amend, remote=remote)
    try:
        options.validate()
    except ValueError as ex:
        raise typer.BadParameter(str(ex), param_hint="--message")

    with command_errors(app):
        store = app.store()
        options.author = app.user_config().author or store.load_config().author

        content = ledger = None
        if options.remote:
            content = app.content()
            if store.load_config().is_remote:
                try:
                    ledger = app.ledger()
                except ConfigurationMissingError as ex:
                    warn(f"{ex.message}. Commit will stay local. {ex.remediation}")

        outcome = CommitBuilder(store, app.clock, content=content, ledger=ledger).commit(options)

        for text in outcome.warnings:
            warn(text)
        commit = outcome.commit
        verb = "Amended" if options.amend else "Committed"
        console.print(f"[green]✓ {verb} {commit.short_id}[/green] {commit.message}", highlight=False)
        console.print(f"  Files: {len(commit.files)}")
        if commit.content_id:
            console.print(f"  Content: {commit.content_id}")
        if options.remote:
            state = "[green]anchored[/green]" if outcome.anchored else "[yellow]local only[/yellow]"
            console.print(f"  Ledger: {state}")
