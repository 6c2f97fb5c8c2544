"""Wall-clock helper shared by the ledger modules."""

from __future__ import annotations

from datetime import UTC, datetime


def now_millis() -> int:
    """Current UTC time as epoch milliseconds (the feed's timestamp unit)."""
    return int(datetime.now(UTC).timestamp() * 1000)
