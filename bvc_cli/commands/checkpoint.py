"""
Checkpoint command: anchor a range of commits with one ledger transaction.
"""

from typing import Optional

import typer
from rich.table import Table

from bvc.checkpoint import SOURCE_WORKING_TREE, CheckpointBatcher, CheckpointOptions
from bvc.checkpoint.estimate import DEFAULT_GAS_PRICE_GWEI

from ..output import command_errors, console, print_json, warn


def checkpoint_command(
    ctx: typer.Context,
    from_id: Optional[str] = typer.Option(None, "--from", help="First commit (id or prefix); default: first commit"),
    to_id: Optional[str] = typer.Option(None, "--to", help="Last commit (id or prefix); default: head"),
    message: str = typer.Option("", "--message", "-m", help="Checkpoint message"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Estimate gas only; no uploads, no ledger calls"),
    since_last: bool = typer.Option(False, "--since-last", help="Start after the newest checkpoint"),
    source: str = typer.Option(
        SOURCE_WORKING_TREE,
        "--source",
        help="Bundle files from the working tree or from commit snapshots (working-tree|commits)",
    ),
    gas_price: float = typer.Option(DEFAULT_GAS_PRICE_GWEI, "--gas-price", help="Gas price in gwei for --dry-run"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Batch commits into one checkpoint.

    Examples:
        bvc checkpoint -m "Sprint 1"
        bvc checkpoint --from 1a2b3c --to 4d5e6f -m "Audit batch"
        bvc checkpoint --since-last -m "Nightly"
        bvc checkpoint --dry-run
    """
    app = ctx.obj
    options = CheckpointOptions(
        from_id=from_id,
        to_id=to_id,
        message=message,
        dry_run=dry_run,
        since_last=since_last,
        source=source,
        gas_price_gwei=gas_price,
    )
    try:
        options.validate()
    except ValueError as ex:
        raise typer.BadParameter(str(ex))

    with command_errors(app):
        store = app.store()
        content = ledger = None
        if not options.dry_run and store.load_config().is_remote:
            content = app.content()
            ledger = app.ledger()

        outcome = CheckpointBatcher(store, app.clock, content=content, ledger=ledger).checkpoint(options)

        if not json_output:
            for record in outcome.overlapping:
                warn(f"Range overlaps checkpoint {record.from_commit_id[:8]}..{record.to_commit_id[:8]}")
            for path in outcome.skipped_paths:
                warn(f"{path} missing from the working tree; not bundled")

        if outcome.estimate is not None:
            est = outcome.estimate
            if json_output:
                data = est.to_dict()
                data["commitIds"] = [c.commit_id for c in outcome.commits]
                print_json(data)
                return
            console.print(f"[bold]Dry run:[/bold] {est.commit_count} commits "
                          f"({outcome.commits[0].short_id}..{outcome.commits[-1].short_id})")
            table = Table(show_header=True)
            table.add_column("")
            table.add_column("Gas", justify="right")
            table.add_column("ETH", justify="right")
            table.add_row("Individual commits", f"{est.individual_gas:,}", f"{est.individual_eth:.6f}")
            table.add_row("One checkpoint", f"{est.checkpoint_gas:,}", f"{est.checkpoint_eth:.6f}")
            table.add_row("Saved", f"{est.saved_gas:,}", f"{est.savings_percent}%")
            console.print(table)
            console.print(f"[dim]Gas price: {est.gas_price_gwei} gwei. Nothing was uploaded or recorded.[/dim]")
            return

        record = outcome.checkpoint
        if json_output:
            print_json(record.to_dict())
            return
        console.print(f"[green]✓ Checkpoint recorded[/green] ({record.commit_count} commits)")
        console.print(f"  Range: {record.from_commit_id[:8]}..{record.to_commit_id[:8]}")
        console.print(f"  Bundle: {record.bundle_content_id} ({record.bundle_source})")
        console.print(f"  Aggregate digest: {record.aggregate_digest[:16]}...")
        console.print(f"  Transaction: {record.tx_hash}")
