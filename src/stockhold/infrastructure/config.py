"""Runtime configuration read from the environment.

A ``.env`` file in the working directory is loaded first, so local
development needs no exported variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta

from dotenv import load_dotenv


class ConfigurationError(Exception):
    """An environment variable holds an unusable value."""


def _int_env(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def _bool_env(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "y", "on"}


def _str_env(name: str, default: str | None = None) -> str | None:
    val = os.getenv(name)
    if val is None or val.strip() == "":
        return default
    return val.strip()


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///stockhold.db"
    reservation_ttl_minutes: int = 15
    sweep_interval_seconds: int = 60
    db_statement_timeout_ms: int = 5000
    db_lock_timeout_ms: int = 3000
    currency: str = "CLP"

    pay_provider: str = "stub"
    stub_pay_url: str = "https://example.com/pay-stub"
    return_url: str | None = None
    cancel_url: str | None = None
    getnet_base_url: str | None = None
    getnet_login: str | None = None
    getnet_secret_key: str | None = None
    payment_session_ttl_minutes: int = 15

    notifier: str = "log"
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_from: str = "no-reply@example.com"
    smtp_use_tls: bool = True
    store_email: str | None = None

    log_level: str = "INFO"
    log_format: str = "text"

    @property
    def reservation_ttl(self) -> timedelta:
        return timedelta(minutes=self.reservation_ttl_minutes)

    @property
    def payment_session_ttl(self) -> timedelta:
        return timedelta(minutes=self.payment_session_ttl_minutes)

    @staticmethod
    def from_env() -> Settings:
        load_dotenv()
        return Settings(
            database_url=_str_env("STOCKHOLD_DATABASE_URL", "sqlite:///stockhold.db"),
            reservation_ttl_minutes=_int_env("STOCKHOLD_RESERVATION_TTL_MINUTES", 15, minimum=1),
            sweep_interval_seconds=_int_env("STOCKHOLD_SWEEP_INTERVAL_SECONDS", 60, minimum=1),
            db_statement_timeout_ms=_int_env("STOCKHOLD_DB_STATEMENT_TIMEOUT_MS", 5000),
            db_lock_timeout_ms=_int_env("STOCKHOLD_DB_LOCK_TIMEOUT_MS", 3000),
            currency=_str_env("STOCKHOLD_CURRENCY", "CLP").upper(),
            pay_provider=_str_env("STOCKHOLD_PAY_PROVIDER", "stub").lower(),
            stub_pay_url=_str_env("STOCKHOLD_STUB_PAY_URL", "https://example.com/pay-stub"),
            return_url=_str_env("STOCKHOLD_RETURN_URL"),
            cancel_url=_str_env("STOCKHOLD_CANCEL_URL"),
            getnet_base_url=_str_env("GETNET_BASE_URL"),
            getnet_login=_str_env("GETNET_LOGIN"),
            getnet_secret_key=_str_env("GETNET_SECRETKEY"),
            payment_session_ttl_minutes=_int_env(
                "STOCKHOLD_PAYMENT_SESSION_TTL_MINUTES", 15, minimum=1
            ),
            notifier=_str_env("STOCKHOLD_NOTIFIER", "log").lower(),
            smtp_host=_str_env("SMTP_HOST", "localhost"),
            smtp_port=_int_env("SMTP_PORT", 587, minimum=1),
            smtp_username=_str_env("SMTP_USERNAME"),
            smtp_password=_str_env("SMTP_PASSWORD"),
            smtp_from=_str_env("SMTP_FROM", "no-reply@example.com"),
            smtp_use_tls=_bool_env("SMTP_USE_TLS", True),
            store_email=_str_env("STOCKHOLD_STORE_EMAIL"),
            log_level=_str_env("STOCKHOLD_LOG_LEVEL", "INFO").upper(),
            log_format=_str_env("STOCKHOLD_LOG_FORMAT", "text").lower(),
        )
