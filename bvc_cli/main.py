#!/usr/bin/env python3
"""
BVC CLI - Blockchain Version Control

Main entrypoint for the bvc command-line tool.
"""

from typing import Optional

import typer
from rich.table import Table

from bvc.logging_config import setup_logging
from bvc_cli.commands import (
    add,
    checkpoint,
    clone,
    commit,
    config,
    init,
    list as list_cmd,
    log,
    pull,
    push,
    revert,
    status,
)
from bvc_cli.context import AppContext
from bvc_cli.output import console

# Initialize Typer app
app = typer.Typer(
    name="bvc",
    help="Blockchain Version Control: local commits, IPFS bundles, on-chain checkpoints",
    add_completion=False,
)

# Local repository
app.command("init")(init.init_command)
app.command("add")(add.add_command)
app.command("commit")(commit.commit_command)
app.command("status")(status.status_command)
app.command("log")(log.log_command)
app.command("revert")(revert.revert_command)

# Ledger and content store
app.command("checkpoint")(checkpoint.checkpoint_command)
app.command("push")(push.push_command)
app.command("pull")(pull.pull_command)
app.command("clone")(clone.clone_command)
app.command("list")(list_cmd.list_command)
app.command("config")(config.config_command)


def _version_callback(value: bool) -> None:
    if not value:
        return
    from bvc_cli import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]BVC CLI[/bold]", f"v{__version__}")
    console.print(table)
    raise typer.Exit()


@app.callback()
def root(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", envvar="BVC_DEBUG", help="Verbose logs and tracebacks"),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"
    ),
):
    """Blockchain Version Control."""
    if ctx.obj is None:
        ctx.obj = AppContext()
    ctx.obj.debug = ctx.obj.debug or debug
    setup_logging(level="DEBUG" if ctx.obj.debug else None)


def main():
    """Main entrypoint."""
    app()


if __name__ == "__main__":
    main()
