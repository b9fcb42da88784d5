"""
Config command: credentials and endpoints in user-config.json.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich.table import Table

from bvc.config import (
    PASSPHRASE_ENV,
    USER_CONFIG_FILE,
    UserConfig,
    check_configuration,
    encrypt_secret,
    save_user_config,
)
from bvc.config.user import parse_user_config, read_user_config_file
from bvc.core.errors import ConfigurationMissingError
from bvc.remote.networks import DEFAULT_NETWORK, NETWORKS, is_valid_network

from ..output import command_errors, console, print_json, warn


@dataclass
class ConfigOptions:
    setup: bool = False
    show: bool = False
    reset: bool = False
    check: bool = False
    encrypt_key: bool = False
    use_global: bool = False
    json_output: bool = False
    yes: bool = False
    updates: Dict[str, Any] = field(default_factory=dict)

    @property
    def actions(self) -> int:
        return sum([self.setup, self.show, self.reset, self.check, self.encrypt_key, bool(self.updates)])

    def validate(self) -> None:
        if self.actions > 1:
            raise typer.BadParameter("Use one of --setup, --show, --reset, --check, --encrypt-key or setters at a time")
        network = self.updates.get("network")
        if network is not None and not is_valid_network(network):
            raise typer.BadParameter(f"Unknown network {network!r}; use one of {', '.join(NETWORKS)}", param_hint="--network")


def _target_path(app, use_global: bool) -> Path:
    if not use_global:
        root = app.optional_repo_root()
        if root is not None:
            return root / ".bvc" / USER_CONFIG_FILE
    return app.home_dir() / ".bvc" / USER_CONFIG_FILE


def _load_target(path: Path) -> UserConfig:
    if path.is_file():
        return parse_user_config(read_user_config_file(path), path)
    return UserConfig()


def _apply(path: Path, updates: Dict[str, Any]) -> UserConfig:
    current = _load_target(path)
    data = current.model_dump()
    data.update(updates)
    if updates.get("private_key"):
        data["encrypted_private_key"] = None
    config = parse_user_config(data, path)
    save_user_config(config, path)
    return config


def _show(app, json_output: bool) -> None:
    config = app.user_config()
    masked = config.masked()
    source = str(config.source) if config.source else "(defaults)"
    if json_output:
        print_json({"source": source, "config": masked})
        return
    table = Table(title=f"User configuration: {source}", show_header=False)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in masked.items():
        table.add_row(key, str(value))
    console.print(table)


def _check(app, json_output: bool) -> None:
    issues = check_configuration(app.user_config())
    blocking = [i for i in issues if i.blocking]
    if json_output:
        print_json({"valid": not blocking, "issues": [i.to_dict() for i in issues]})
    elif not issues:
        console.print("[green]✓ Configuration is complete[/green]")
    else:
        for issue in issues:
            mark = "[red]✗[/red]" if issue.blocking else "[yellow]![/yellow]"
            console.print(f"{mark} {issue.message}", highlight=False)
            console.print(f"    {issue.solution}", highlight=False)
    if blocking:
        raise typer.Exit(1)


def _setup(path: Path) -> UserConfig:
    current = _load_target(path)
    console.print("[bold]BVC configuration[/bold] (press Enter to keep the current value)")
    network = typer.prompt(f"Network ({'/'.join(NETWORKS)})", default=current.network or DEFAULT_NETWORK)
    while not is_valid_network(network):
        warn(f"Unknown network {network}")
        network = typer.prompt("Network", default=DEFAULT_NETWORK)
    private_key = typer.prompt("Private key", default="", hide_input=True, show_default=False)
    rpc_url = typer.prompt("RPC URL (empty for network default)", default=current.rpc_url or "", show_default=bool(current.rpc_url))
    contract = typer.prompt(
        "Contract address (empty for network default)",
        default=current.contract_address or "",
        show_default=bool(current.contract_address),
    )
    ipfs = typer.prompt("IPFS endpoint", default=current.ipfs_endpoint)
    author = typer.prompt("Author name", default=current.author or "", show_default=bool(current.author))

    updates: Dict[str, Any] = {
        "network": network,
        "rpc_url": rpc_url or None,
        "contract_address": contract or None,
        "ipfs_endpoint": ipfs,
        "author": author,
    }
    if private_key:
        updates["private_key"] = private_key
    return _apply(path, updates)


def _encrypt(path: Path, app) -> None:
    config = _load_target(path)
    if not config.private_key:
        raise ConfigurationMissingError(
            f"No plaintext private key in {path}",
            remediation="Set one with 'bvc config --private-key <key>' first.",
        )
    passphrase = app.env.get(PASSPHRASE_ENV) or typer.prompt(
        "Passphrase", hide_input=True, confirmation_prompt=True
    )
    blob = encrypt_secret(config.private_key, passphrase)
    data = config.model_dump()
    data.update({"private_key": None, "encrypted_private_key": blob})
    save_user_config(parse_user_config(data, path), path)
    console.print(f"[green]✓ Private key encrypted[/green] in [cyan]{path}[/cyan]")
    console.print(f"  Export {PASSPHRASE_ENV} for non-interactive use.")


def config_command(
    ctx: typer.Context,
    setup: bool = typer.Option(False, "--setup", help="Interactive setup"),
    show: bool = typer.Option(False, "--show", help="Show the effective configuration"),
    reset: bool = typer.Option(False, "--reset", help="Delete the configuration file"),
    check: bool = typer.Option(False, "--check", help="Check configuration for remote operations"),
    encrypt_key: bool = typer.Option(False, "--encrypt-key", help="Encrypt the stored private key"),
    private_key: Optional[str] = typer.Option(None, "--private-key", help="Set the signing private key"),
    rpc_url: Optional[str] = typer.Option(None, "--rpc-url", help="Set the ledger RPC URL"),
    network: Optional[str] = typer.Option(None, "--network", help="Set the network (sepolia, localhost, mainnet)"),
    contract_address: Optional[str] = typer.Option(None, "--contract-address", help="Set the contract address"),
    ipfs_endpoint: Optional[str] = typer.Option(None, "--ipfs-endpoint", help="Set the IPFS API endpoint"),
    author: Optional[str] = typer.Option(None, "--author", help="Set the author name"),
    dev: Optional[bool] = typer.Option(None, "--dev/--no-dev", help="Allow simulated content ids (development)"),
    use_global: bool = typer.Option(False, "--global", help="Use ~/.bvc/user-config.json"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON (--show, --check)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation (--reset)"),
):
    """
    Manage user configuration.

    Examples:
        bvc config --setup
        bvc config --network localhost --contract-address 0x5FbDB2315678afecb367f032d93F642f64180aa3
        bvc config --check
        bvc config --encrypt-key
    """
    app = ctx.obj
    updates = {
        "private_key": private_key,
        "rpc_url": rpc_url,
        "network": network,
        "contract_address": contract_address,
        "ipfs_endpoint": ipfs_endpoint,
        "author": author,
        "development": dev,
    }
    options = ConfigOptions(
        setup=setup,
        show=show,
        reset=reset,
        check=check,
        encrypt_key=encrypt_key,
        use_global=use_global,
        json_output=json_output,
        yes=yes,
        updates={k: v for k, v in updates.items() if v is not None},
    )
    options.validate()

    with command_errors(app):
        path = _target_path(app, options.use_global)

        if options.setup:
            _setup(path)
            console.print(f"[green]✓ Configuration saved[/green] to [cyan]{path}[/cyan]")
        elif options.reset:
            if not path.exists():
                console.print(f"[yellow]No configuration at {path}[/yellow]")
                return
            if not options.yes and not typer.confirm(f"Delete {path}?"):
                raise typer.Abort()
            os.remove(path)
            console.print(f"[green]✓ Removed {path}[/green]")
        elif options.check:
            _check(app, options.json_output)
        elif options.encrypt_key:
            _encrypt(path, app)
        elif options.updates:
            _apply(path, options.updates)
            names = ", ".join(sorted(options.updates))
            console.print(f"[green]✓ Updated {names}[/green] in [cyan]{path}[/cyan]")
        else:
            _show(app, options.json_output)
