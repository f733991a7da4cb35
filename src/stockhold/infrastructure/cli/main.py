import click

from stockhold.infrastructure import bootstrap
from stockhold.infrastructure.cli.maintenance_commands import audit, db_init, sweep
from stockhold.infrastructure.cli.order_commands import order_create, order_review, order_show
from stockhold.infrastructure.cli.payment_commands import pay_create, pay_notify
from stockhold.infrastructure.cli.reservation_commands import reserve
from stockhold.infrastructure.cli.variant_commands import variant_add, variant_list, variant_update
from stockhold.infrastructure.config import ConfigurationError
from stockhold.infrastructure.logging_config import setup_logging


@click.group()
def cli() -> None:
    """stockhold: stock holds, orders and payment reconciliation."""
    try:
        settings = bootstrap.settings()
    except ConfigurationError as exc:
        raise click.ClickException(str(exc))
    if settings.database_url == bootstrap.MEMORY_URL:
        # Each invocation is a new process, so an in-process store starts empty.
        raise click.ClickException(
            f"{bootstrap.MEMORY_URL} only lives inside one process; "
            "set STOCKHOLD_DATABASE_URL to a database URL to use the CLI"
        )
    setup_logging(settings.log_level, settings.log_format)


@cli.group()
def db() -> None:
    """Manage the database."""


@cli.group()
def variant() -> None:
    """Manage product variants."""


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def pay() -> None:
    """Manage payments."""


# Register subcommands
db.add_command(db_init)
variant.add_command(variant_add)
variant.add_command(variant_list)
variant.add_command(variant_update)
order.add_command(order_create)
order.add_command(order_review)
order.add_command(order_show)
pay.add_command(pay_create)
pay.add_command(pay_notify)
cli.add_command(reserve)
cli.add_command(sweep)
cli.add_command(audit)
