"""Wall-clock access for application services.

Handlers receive a ``Clock`` so tests can move time forward instead of
sleeping through reservation TTLs.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
