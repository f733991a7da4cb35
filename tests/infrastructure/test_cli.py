"""End-to-end tests of the click CLI against SQLite in memory."""

import json

import pytest
from click.testing import CliRunner
from sqlalchemy.exc import OperationalError

from stockhold.infrastructure import bootstrap
from stockhold.infrastructure.cli import reservation_commands
from stockhold.infrastructure.cli.errors import transient_error
from stockhold.infrastructure.cli.main import cli
from stockhold.infrastructure.config import Settings
from stockhold.infrastructure.persistence.memory import LockTimeoutError


@pytest.fixture
def run():
    bootstrap.configure(Settings(database_url="sqlite://", stub_pay_url="https://pay.test/stub"))
    runner = CliRunner()

    def invoke(*args):
        return runner.invoke(cli, list(args))

    assert invoke("db", "init").exit_code == 0
    yield invoke
    bootstrap.configure(Settings())


def _checkout(run, stock="5", qty="2"):
    assert run("variant", "add", "--sku", "TEE-BLK-M", "--price", "15990",
               "--stock", stock, "--color", "black", "--size", "M").exit_code == 0
    assert run("reserve", "--variant", "1", "--quantity", qty).exit_code == 0
    result = run("order", "create", "--reservation", "1", "--name", "Ana",
                 "--email", "ana@example.com", "--phone", "123", "--delivery", "retiro")
    assert result.exit_code == 0, result.output
    return result


def test_variant_add_and_list(run):
    run("variant", "add", "--sku", "TEE-BLK-M", "--price", "15990", "--stock", "5")
    result = run("variant", "list")
    assert result.exit_code == 0
    assert "TEE-BLK-M" in result.output


def test_out_of_stock_reports_structured_error(run):
    _checkout(run, stock="2", qty="2")
    result = run("reserve", "--variant", "1", "--quantity", "1")
    assert result.exit_code == 1
    payload = json.loads(result.output[result.output.index("{"):].strip())
    assert payload["error"] == "out_of_stock"
    assert payload["available"] == 0


def test_order_create_shows_total(run):
    result = _checkout(run)
    assert "Order #1" in result.output
    assert "31980 CLP" in result.output


def test_pay_create_and_notify(run):
    _checkout(run)
    created = run("pay", "create", "--order", "1")
    assert created.exit_code == 0, created.output
    assert "https://pay.test/stub?reference=ORD-1" in created.output

    notified = run("pay", "notify", "--payload", '{"reference": "ORD-1", "status": "paid"}')
    assert json.loads(notified.stdout.strip().splitlines()[-1]) == {"ok": True, "result": "paid"}

    [line] = bootstrap.show_inventory_handler().handle()
    assert (line.total, line.reserved, line.available) == (3, 0, 3)
    assert "status=paid" in run("order", "show", "--id", "1").output


def test_notify_rejects_non_json(run):
    result = run("pay", "notify", "--payload", "not json")
    assert result.exit_code == 2


def test_sweep_once_and_audit(run):
    _checkout(run)
    result = run("sweep", "--once")
    assert result.exit_code == 0
    assert "Expired 0 reservation(s)." in result.output
    assert "consistent" in run("audit").output


def test_review_queue_empty(run):
    assert "No orders need review." in run("order", "review").output


def test_update_requires_a_change(run):
    result = run("variant", "update", "--id", "1")
    assert result.exit_code == 2


def _payload(output):
    return json.loads(output[output.index("{"):].strip())


def test_lock_timeout_is_reported_as_retryable(run, monkeypatch):
    class StuckHandler:
        def handle(self, variant_id, quantity):
            raise LockTimeoutError("variants #1 is locked")

    monkeypatch.setattr(reservation_commands, "reserve_stock_handler", StuckHandler)
    result = run("reserve", "--variant", "1", "--quantity", "1")
    assert result.exit_code == 1
    assert _payload(result.output) == {"error": "lock_timeout", "retryable": True}


@pytest.mark.parametrize(
    "driver_message, code",
    [("database is locked", "lock_timeout"), ("could not connect to server", "database_unavailable")],
)
def test_operational_errors_are_retryable(driver_message, code):
    exc = OperationalError("BEGIN IMMEDIATE", {}, Exception(driver_message))
    payload = _payload(transient_error(exc).message)
    assert payload == {"error": code, "retryable": True}


def test_memory_store_is_refused():
    bootstrap.configure(Settings(database_url=bootstrap.MEMORY_URL))
    try:
        result = CliRunner().invoke(cli, ["variant", "list"])
    finally:
        bootstrap.configure(Settings())
    assert result.exit_code == 1
    assert "STOCKHOLD_DATABASE_URL" in result.output
