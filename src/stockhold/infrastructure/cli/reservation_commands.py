"""CLI command for placing stock holds."""

from __future__ import annotations

import click

from stockhold.domain.exceptions import DomainException
from stockhold.infrastructure.bootstrap import reserve_stock_handler
from stockhold.infrastructure.cli.errors import (
    TRANSIENT_ERRORS,
    domain_error,
    transient_error,
)


@click.command("reserve")
@click.option("--variant", "variant_id", required=True, type=int, help="Variant ID.")
@click.option("--quantity", required=True, type=int, help="Units to hold.")
def reserve(variant_id: int, quantity: int) -> None:
    """Hold stock of a variant for the configured time window."""
    handler = reserve_stock_handler()

    try:
        dto = handler.handle(variant_id, quantity)
    except DomainException as exc:
        raise domain_error(exc)
    except TRANSIENT_ERRORS as exc:
        raise transient_error(exc)

    click.echo(
        f"Reservation #{dto.id} holds {dto.quantity} of variant #{dto.variant_id} "
        f"until {dto.expires_at}"
    )
