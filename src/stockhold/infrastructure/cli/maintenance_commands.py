"""CLI commands for schema setup, expiry sweeps and stock audits."""

from __future__ import annotations

import click

from stockhold.infrastructure.bootstrap import (
    audit_stock_handler,
    expiry_sweeper,
    init_database,
)
from stockhold.infrastructure.cli.errors import TRANSIENT_ERRORS, transient_error


@click.command("init")
def db_init() -> None:
    """Create the database tables."""
    try:
        init_database()
    except TRANSIENT_ERRORS as exc:
        raise transient_error(exc)
    click.echo("Database schema ready.")


@click.command("sweep")
@click.option("--once", is_flag=True, default=False, help="Run a single cycle and exit.")
def sweep(once: bool) -> None:
    """Expire lapsed reservations, periodically unless --once."""
    sweeper = expiry_sweeper()
    if once:
        expired = sweeper.run_once()
        click.echo(f"Expired {expired} reservation(s).")
        return

    try:
        sweeper.run_forever()
    except KeyboardInterrupt:
        click.echo("Sweeper stopped.")


@click.command("audit")
def audit() -> None:
    """Check stock counters against active reservations."""
    try:
        problems = audit_stock_handler().handle()
    except TRANSIENT_ERRORS as exc:
        raise transient_error(exc)

    if not problems:
        click.echo("Stock counters are consistent.")
        return

    click.echo(f"{'Variant':<8} {'SKU':<20} {'Total':>6} {'Reserved':>9} {'Held':>6}  Problem")
    click.echo("-" * 80)
    for p in problems:
        click.echo(
            f"{p.variant_id:<8} {p.sku:<20} {p.stock_total:>6} {p.stock_reserved:>9} "
            f"{p.active_reserved:>6}  {p.problem}"
        )
    raise click.exceptions.Exit(1)
