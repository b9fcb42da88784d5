"""
Console output and error rendering shared by all commands.
"""

import json
import logging
from contextlib import contextmanager
from typing import Any, Iterator

import click
import typer
from rich.console import Console

from bvc.core.errors import BvcError

from .context import AppContext

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)

EXIT_ERROR = 1
EXIT_UNEXPECTED = 2


def print_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2))


def warn(text: str) -> None:
    err_console.print(f"[yellow]Warning:[/yellow] {text}", highlight=False)


def print_error(error: BvcError) -> None:
    err_console.print(f"[red]Error:[/red] {error.message}", highlight=False, soft_wrap=True)
    if error.remediation:
        err_console.print(f"[cyan]Hint:[/cyan] {error.remediation}", highlight=False, soft_wrap=True)


@contextmanager
def command_errors(app: AppContext) -> Iterator[None]:
    """
    Map exceptions raised by a command body to exit codes.

    BvcError -> "Error:" + "Hint:" on stderr, exit 1
    anything else -> exit 2
    --debug also prints the traceback.
    """
    try:
        yield
    except (typer.Exit, typer.Abort, click.ClickException):
        raise
    except BvcError as ex:
        print_error(ex)
        if app.debug:
            err_console.print_exception()
        raise typer.Exit(EXIT_ERROR)
    except Exception as ex:  # noqa: BLE001
        logger.debug("Unexpected failure", exc_info=True)
        err_console.print(f"[red]Error:[/red] unexpected failure: {ex}", highlight=False, soft_wrap=True)
        if app.debug:
            err_console.print_exception()
        else:
            err_console.print("[cyan]Hint:[/cyan] rerun with --debug for details", highlight=False)
        raise typer.Exit(EXIT_UNEXPECTED)
