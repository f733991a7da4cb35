"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from stockhold.application.dto import OrderDTO, OrderItemSpec
from stockhold.domain.exceptions import DomainException
from stockhold.infrastructure.bootstrap import (
    create_order_handler,
    review_queue_handler,
    show_order_handler,
)
from stockhold.infrastructure.cli.errors import (
    TRANSIENT_ERRORS,
    domain_error,
    transient_error,
)


def _parse_items(raw: str) -> list[OrderItemSpec]:
    """Parse '3:2,3:1' (variant id : quantity) into OrderItemSpec list."""
    specs: list[OrderItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'VariantId:Quantity'."
            )
        variant_str, qty_str = pair.rsplit(":", 1)
        try:
            specs.append(OrderItemSpec(variant_id=int(variant_str), quantity=int(qty_str)))
        except ValueError:
            raise click.BadParameter(f"Invalid item '{pair}'. Both parts must be integers.")
    return specs


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id}  (status={dto.status}, reservation #{dto.reservation_id})")
    click.echo(f"Buyer:    {dto.buyer_name} <{dto.buyer_email}> {dto.buyer_phone}")
    delivery = dto.delivery_method
    if dto.delivery_address:
        delivery += f" to {dto.delivery_address}"
    click.echo(f"Delivery: {delivery}")
    if dto.reference:
        click.echo(f"Reference: {dto.reference}")
    if dto.paid_at:
        click.echo(f"Paid at:  {dto.paid_at} ({dto.payment_reference or 'no gateway id'})")
    if dto.review_reason:
        click.echo(f"REVIEW:   {dto.review_reason}")
    click.echo()

    click.echo(f"  {'SKU':<20} {'Qty':>5} {'Price':>10} {'Total':>10}")
    click.echo(f"  {'-'*47}")
    for item in dto.items:
        click.echo(
            f"  {item.sku:<20} {item.quantity:>5} {item.unit_price:>10} {item.line_total:>10}"
        )
    click.echo(f"  {'-'*47}")
    click.echo(f"  {'Order Total':<27} {dto.total:>16} {dto.currency}")


@click.command("create")
@click.option("--reservation", "reservation_id", required=True, type=int, help="Reservation ID.")
@click.option("--name", "buyer_name", required=True, help="Buyer name.")
@click.option("--email", "buyer_email", required=True, help="Buyer email.")
@click.option("--phone", "buyer_phone", required=True, help="Buyer phone.")
@click.option("--delivery", "delivery_method", required=True, help="pickup or ship (aliases accepted).")
@click.option("--address", "delivery_address", default=None, help="Shipping address.")
@click.option("--items", default=None, help="Items as 'VariantId:Qty,...' to check against the hold.")
@click.option("--notes", default=None)
def order_create(
    reservation_id: int,
    buyer_name: str,
    buyer_email: str,
    buyer_phone: str,
    delivery_method: str,
    delivery_address: str | None,
    items: str | None,
    notes: str | None,
) -> None:
    """Create (or update) the order for a live reservation."""
    specs = _parse_items(items) if items else None
    handler = create_order_handler()

    try:
        dto = handler.handle(
            reservation_id=reservation_id,
            buyer_name=buyer_name,
            buyer_email=buyer_email,
            buyer_phone=buyer_phone,
            delivery_method=delivery_method,
            delivery_address=delivery_address,
            item_specs=specs,
            notes=notes,
        )
    except DomainException as exc:
        raise domain_error(exc)
    except TRANSIENT_ERRORS as exc:
        raise transient_error(exc)

    _display_order(dto)


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(order_id: int) -> None:
    """Show details of an existing order."""
    try:
        dto = show_order_handler().handle(order_id)
    except DomainException as exc:
        raise domain_error(exc)
    except TRANSIENT_ERRORS as exc:
        raise transient_error(exc)

    _display_order(dto)


@click.command("review")
def order_review() -> None:
    """List orders flagged for manual review."""
    try:
        orders = review_queue_handler().handle()
    except TRANSIENT_ERRORS as exc:
        raise transient_error(exc)

    if not orders:
        click.echo("No orders need review.")
        return

    for dto in orders:
        click.echo(f"#{dto.id:<5} {dto.status:<16} {dto.reference or '-':<12} {dto.review_reason}")
