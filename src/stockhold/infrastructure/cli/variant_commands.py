"""CLI commands for the ProductVariant aggregate."""

from __future__ import annotations

import click

from stockhold.domain.exceptions import DomainException
from stockhold.infrastructure.bootstrap import (
    add_variant_handler,
    show_inventory_handler,
    update_variant_handler,
)
from stockhold.infrastructure.cli.errors import (
    TRANSIENT_ERRORS,
    domain_error,
    transient_error,
)


@click.command("add")
@click.option("--sku", required=True, help="Unique stock keeping unit.")
@click.option("--price", required=True, help="Unit price in minor units (e.g. 15990).")
@click.option("--stock", "stock_total", required=True, type=int, help="Physical units on hand.")
@click.option("--color", default=None)
@click.option("--size", default=None)
@click.option("--engraving-code", default=None)
@click.option("--engraving-name", default=None)
def variant_add(
    sku: str,
    price: str,
    stock_total: int,
    color: str | None,
    size: str | None,
    engraving_code: str | None,
    engraving_name: str | None,
) -> None:
    """Add a new variant to the catalog."""
    handler = add_variant_handler()

    try:
        line = handler.handle(
            sku=sku,
            price=price,
            stock_total=stock_total,
            color=color,
            size=size,
            engraving_code=engraving_code,
            engraving_name=engraving_name,
        )
    except DomainException as exc:
        raise domain_error(exc)
    except TRANSIENT_ERRORS as exc:
        raise transient_error(exc)

    click.echo(f"Variant #{line.id} '{line.sku}' added at {line.price} ({line.total} in stock)")


@click.command("update")
@click.option("--id", "variant_id", required=True, type=int, help="Variant ID.")
@click.option("--price", default=None, help="New unit price in minor units.")
@click.option("--stock", "stock_total", default=None, type=int, help="New physical count.")
@click.option("--active/--inactive", default=None, help="Whether the variant is for sale.")
def variant_update(
    variant_id: int, price: str | None, stock_total: int | None, active: bool | None
) -> None:
    """Change a variant's price, stock count or sale status."""
    if price is None and stock_total is None and active is None:
        raise click.UsageError("Nothing to update: pass --price, --stock or --active/--inactive")

    handler = update_variant_handler()

    try:
        line = handler.handle(
            variant_id, price=price, stock_total=stock_total, active=active
        )
    except DomainException as exc:
        raise domain_error(exc)
    except TRANSIENT_ERRORS as exc:
        raise transient_error(exc)

    click.echo(
        f"Variant #{line.id} updated: price={line.price} total={line.total} "
        f"reserved={line.reserved} active={line.active}"
    )


@click.command("list")
@click.option("--active-only", is_flag=True, default=False, help="Hide inactive variants.")
def variant_list(active_only: bool) -> None:
    """Show variants with their stock levels."""
    try:
        lines = show_inventory_handler().handle(active_only=active_only)
    except TRANSIENT_ERRORS as exc:
        raise transient_error(exc)

    if not lines:
        click.echo("No variants found.")
        return

    click.echo(
        f"{'ID':<5} {'SKU':<20} {'Color':<10} {'Size':<6} {'Price':>8} "
        f"{'Total':>6} {'Reserved':>9} {'Available':>10}"
    )
    click.echo("-" * 80)
    for line in lines:
        flag = "" if line.active else "  (inactive)"
        click.echo(
            f"{line.id:<5} {line.sku:<20} {line.color or '-':<10} {line.size or '-':<6} "
            f"{line.price:>8} {line.total:>6} {line.reserved:>9} {line.available:>10}{flag}"
        )
