"""CLI commands for payments: opening a checkout and replaying webhooks."""

from __future__ import annotations

import json

import click

from stockhold.domain.exceptions import DomainException
from stockhold.infrastructure.bootstrap import (
    create_payment_handler,
    receive_payment_notification_handler,
)
from stockhold.infrastructure.cli.errors import (
    TRANSIENT_ERRORS,
    domain_error,
    transient_error,
)
from stockhold.infrastructure.config import ConfigurationError


@click.command("create")
@click.option("--order", "order_id", required=True, type=int, help="Order ID to pay.")
@click.option("--client-ip", default=None, help="Buyer's public IPv4 address.")
@click.option("--user-agent", default=None, help="Buyer's browser user agent.")
def pay_create(order_id: int, client_ip: str | None, user_agent: str | None) -> None:
    """Open a checkout session and print the redirect URL."""
    try:
        handler = create_payment_handler()
    except ConfigurationError as exc:
        raise click.ClickException(str(exc))

    try:
        intent = handler.handle(order_id, client_ip=client_ip, user_agent=user_agent)
    except DomainException as exc:
        raise domain_error(exc)
    except TRANSIENT_ERRORS as exc:
        raise transient_error(exc)

    click.echo(f"Order #{intent.order_id} reference {intent.reference} via {intent.provider}")
    click.echo(intent.redirect_url)


@click.command("notify")
@click.option("--payload", required=True, help="Notification body as JSON.")
def pay_notify(payload: str) -> None:
    """Feed a gateway notification through the reconciler."""
    try:
        body = json.loads(payload)
    except ValueError as exc:
        raise click.BadParameter(f"Payload is not valid JSON: {exc}")
    if not isinstance(body, dict):
        raise click.BadParameter("Payload must be a JSON object")

    try:
        handler = receive_payment_notification_handler()
    except ConfigurationError as exc:
        raise click.ClickException(str(exc))

    ack = handler.handle(body)
    click.echo(json.dumps({"ok": ack.ok, **ack.detail}, sort_keys=True))
