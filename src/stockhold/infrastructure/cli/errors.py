"""Turns domain and storage errors into click errors carrying a structured payload."""

from __future__ import annotations

import json
from typing import Any

import click
from sqlalchemy.exc import OperationalError

from stockhold.domain.exceptions import DomainException
from stockhold.infrastructure.persistence.memory import LockTimeoutError

# Raised when a row lock or the database cannot be had in time; the
# transaction was rolled back, so the command can simply be run again.
TRANSIENT_ERRORS = (LockTimeoutError, OperationalError)

# PostgreSQL lock_not_available and query_canceled (statement_timeout).
_PG_TIMEOUT_CODES = {"55P03", "57014"}


def domain_error(exc: DomainException) -> click.ClickException:
    return _with_payload(str(exc), exc.to_dict())


def transient_error(exc: Exception) -> click.ClickException:
    if _is_lock_timeout(exc):
        code, message = "lock_timeout", "Timed out waiting for a lock; retry the command"
    else:
        code, message = "database_unavailable", "Database unavailable; retry the command"
    return _with_payload(message, {"error": code, "retryable": True})


def _is_lock_timeout(exc: Exception) -> bool:
    if isinstance(exc, LockTimeoutError):
        return True
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) in _PG_TIMEOUT_CODES:
        return True
    # SQLite reports an expired busy timeout as "database is locked".
    return "locked" in str(orig or exc).lower()


def _with_payload(message: str, payload: dict[str, Any]) -> click.ClickException:
    return click.ClickException(f"{message} {json.dumps(payload, sort_keys=True)}")
