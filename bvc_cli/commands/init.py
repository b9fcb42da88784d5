"""
Init command: create a repository, or upgrade a local-only one.
"""

from dataclasses import dataclass
from typing import Optional

import typer

from bvc.config import require_remote
from bvc.core.errors import ConfigurationError, ConfigurationMissingError
from bvc.core.models import RepoConfig
from bvc.store import create_working_copy

from ..output import command_errors, console


@dataclass
class InitOptions:
    name: Optional[str]
    local_only: bool = False
    description: str = ""
    upgrade: bool = False

    def validate(self) -> None:
        if self.upgrade:
            if self.local_only:
                raise typer.BadParameter("--upgrade cannot be combined with --local-only")
            return
        if not self.name or not self.name.strip():
            raise typer.BadParameter("Repository name is required", param_hint="NAME")
        if "/" in self.name or "\\" in self.name or self.name in (".", ".."):
            raise typer.BadParameter("Repository name must be a plain directory name", param_hint="NAME")


def _upgrade(app) -> None:
    store = app.store()
    config = store.load_config()
    if config.repo_id:
        raise ConfigurationError(
            f"Repository is already on the ledger as {config.repo_id}",
            remediation="Nothing to upgrade.",
        )
    ledger = app.ledger()
    config.repo_id = ledger.create_repository(config.name).unwrap()
    store.save_config(config)
    console.print(f"[green]✓ Repository upgraded[/green] (ledger id: [cyan]{config.repo_id}[/cyan])")


def init_command(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="Repository (and directory) name"),
    local_only: bool = typer.Option(False, "--local-only", help="Create without a ledger repository"),
    description: str = typer.Option("", "--description", "-d", help="Repository description"),
    upgrade: bool = typer.Option(False, "--upgrade", help="Register the current local-only repository on the ledger"),
):
    """
    Create a new repository directory.

    Examples:
        bvc init my-project --local-only
        bvc init my-project --description "Smart contracts"
        bvc init --upgrade
    """
    app = ctx.obj
    options = InitOptions(name=name, local_only=local_only, description=description, upgrade=upgrade)
    options.validate()

    with command_errors(app):
        if options.upgrade:
            _upgrade(app)
            return

        target = app.cwd / options.name
        if target.exists():
            raise ConfigurationError(
                f"Directory {target} already exists",
                remediation="Pick another name, or remove the existing directory.",
            )

        user_config = app.user_config()
        repo_id = ""
        if not options.local_only:
            try:
                require_remote(user_config)
            except ConfigurationMissingError as ex:
                raise ConfigurationMissingError(
                    ex.message,
                    remediation=f"{ex.remediation} Or create a local repository: 'bvc init --local-only {options.name}'.",
                ) from ex
            repo_id = app.ledger().create_repository(options.name).unwrap()

        config = RepoConfig(
            name=options.name,
            created_at=app.clock.now(),
            repo_id=repo_id,
            description=options.description,
            author=user_config.author,
        )
        create_working_copy(target, config)

        console.print(f"[green]✓ Repository \"{options.name}\" initialized[/green]")
        console.print(f"  Location: [cyan]{target}[/cyan]")
        console.print(f"  Ledger ID: {repo_id or 'Local only'}")
        console.print("\nNext steps:")
        console.print(f"  cd {options.name}")
        console.print("  bvc add README.md")
        console.print('  bvc commit -m "Initial commit"')
