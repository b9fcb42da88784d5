"""
Status command: staged, modified, deleted and untracked files.
"""

import typer

from bvc.staging import working_tree_status

from ..output import command_errors, console, print_json


def status_command(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show repository status."""
    app = ctx.obj
    with command_errors(app):
        store = app.store()
        config = store.load_config()
        head = store.head()
        status = working_tree_status(store, app.ignore_rules())

        if json_output:
            data = status.to_dict()
            data.update(
                {
                    "repository": config.name,
                    "repoId": config.repo_id,
                    "branch": config.branch,
                    "head": head.commit_id if head else None,
                }
            )
            print_json(data)
            return

        console.print(f"[bold]Repository:[/bold] {config.name}", highlight=False)
        console.print(f"[bold]Ledger ID:[/bold] {config.repo_id or 'Local only'}", highlight=False)
        console.print(f"[bold]Branch:[/bold] {config.branch}")
        console.print(f"[bold]Head:[/bold] {head.short_id if head else '(no commits)'}")

        if status.clean:
            console.print("\n[green]Nothing to commit, working tree clean[/green]")
            return

        sections = [
            ("Changes to be committed", status.staged, "green"),
            ("Modified", status.modified, "yellow"),
            ("Deleted", status.deleted, "red"),
            ("Untracked files", status.untracked, "dim"),
        ]
        for title, paths, style in sections:
            if not paths:
                continue
            console.print(f"\n{title}:")
            for path in paths:
                console.print(f"  [{style}]{path}[/{style}]", highlight=False)
