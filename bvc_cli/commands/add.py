"""
Add command: stage files for the next commit.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import typer

from bvc.core.errors import NotFoundError
from bvc.staging import StagingManager

from ..output import command_errors, console, print_error, warn


@dataclass
class AddOptions:
    paths: List[str] = field(default_factory=list)
    all: bool = False
    force: bool = False

    def validate(self) -> None:
        if not self.paths and not self.all:
            raise typer.BadParameter("Pass at least one path, or --all", param_hint="PATHS")


def add_command(
    ctx: typer.Context,
    paths: Optional[List[str]] = typer.Argument(None, help="Files or directories to stage ('.' for the current directory)"),
    all_files: bool = typer.Option(False, "--all", "-A", help="Stage every new or modified file"),
    force: bool = typer.Option(False, "--force", "-f", help="Stage files matched by .bvcignore"),
):
    """
    Stage files.

    Examples:
        bvc add README.md src/
        bvc add .
        bvc add --all
    """
    app = ctx.obj
    options = AddOptions(paths=list(paths or []), all=all_files, force=force)
    options.validate()

    with command_errors(app):
        manager = StagingManager(app.store(), app.ignore_rules(force=options.force))
        if options.all:
            report = manager.stage_modified()
        else:
            report = manager.stage(options.paths, cwd=app.cwd)

        for error in report.missing:
            warn(error.message)
        for path in report.ignored:
            warn(f"{path} is ignored by .bvcignore (use --force to stage it)")

        if not report.staged:
            if report.missing:
                print_error(NotFoundError(f"No files staged: {len(report.missing)} path(s) not found"))
                raise typer.Exit(1)
            console.print("[yellow]Nothing to stage[/yellow]")
            return

        console.print(f"[green]✓ Staged {len(report.staged)} file(s)[/green]")
        for entry in report.staged[:20]:
            console.print(f"  [dim]+[/dim] {entry.path} ({entry.size} bytes)", highlight=False)
        if len(report.staged) > 20:
            console.print(f"  [dim]... and {len(report.staged) - 20} more[/dim]")
