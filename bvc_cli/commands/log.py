"""
Log command: commit history, newest first.
"""

from dataclasses import dataclass
from typing import Optional

import typer
from rich.table import Table

from bvc.core.chain import verify_chain
from bvc.core.errors import IntegrityError

from ..output import command_errors, console, print_error, print_json


@dataclass
class LogOptions:
    limit: Optional[int] = None
    json_output: bool = False
    verify: bool = False

    def validate(self) -> None:
        if self.limit is not None and self.limit < 1:
            raise typer.BadParameter("--limit must be at least 1", param_hint="--limit")


def log_command(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Number of commits to show"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    verify: bool = typer.Option(False, "--verify", help="Verify parent links and commit ids"),
):
    """
    Show commit history.

    Examples:
        bvc log
        bvc log --limit 5
        bvc log --verify
    """
    app = ctx.obj
    options = LogOptions(limit=limit, json_output=json_output, verify=verify)
    options.validate()

    with command_errors(app):
        store = app.store()
        commits = store.load_commits()
        anchored_by_checkpoint = set()
        for record in store.load_checkpoints():
            anchored_by_checkpoint.update(record.commit_ids or [record.from_commit_id, record.to_commit_id])

        shown = list(reversed(commits))
        if options.limit:
            shown = shown[: options.limit]

        verification = verify_chain(commits) if options.verify else None

        if options.json_output:
            data = {"commits": [c.to_dict() for c in shown], "count": len(commits)}
            if verification is not None:
                data["verification"] = {
                    "valid": verification.valid,
                    "length": verification.length,
                    "errors": verification.errors,
                }
            print_json(data)
        elif not commits:
            console.print("[yellow]No commits yet[/yellow]")
        else:
            table = Table(title=f"Commits ({len(commits)})")
            table.add_column("Commit", style="cyan")
            table.add_column("Date", style="dim")
            table.add_column("Author")
            table.add_column("Files", justify="right")
            table.add_column("Ledger", style="green")
            table.add_column("Message")
            for c in shown:
                if c.anchored:
                    ledger = "commit"
                elif c.commit_id in anchored_by_checkpoint:
                    ledger = "checkpoint"
                else:
                    ledger = ""
                message = c.message + (" [dim](amended)[/dim]" if c.amended else "")
                table.add_row(c.short_id, c.timestamp, c.author or "-", str(len(c.files)), ledger, message)
            console.print(table)

        if verification is not None:
            if verification.valid:
                if not options.json_output:
                    console.print(f"[green]✓ Chain verified ({verification.length} commits)[/green]")
            else:
                if not options.json_output:
                    for line in verification.errors:
                        console.print(f"[red]✗ {line}[/red]", highlight=False)
                print_error(IntegrityError(f"Commit chain verification failed ({len(verification.errors)} problems)"))
                raise typer.Exit(1)
