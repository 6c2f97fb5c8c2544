"""Read-only report over a committed ledger snapshot.

The HTML page and the ``/api/report`` endpoint both render a
:class:`LedgerReport`.  Building one never mutates the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from coop_banker.ledger.deltas import UserDelta, compute_deltas
from coop_banker.ledger.reconciler import DRIFT_TOLERANCE
from coop_banker.ledger.types import LedgerState, Operation, Username

# Operations at or above this amount are highlighted in the report.
IMPORTANT_AMOUNT = 5_000_000


@dataclass(frozen=True, slots=True)
class UserBalance:
    username: Username
    balance: float


@dataclass(frozen=True)
class LedgerReport:
    """Everything the report page shows.

    Attributes:
        users: Member balances, largest first.
        recent_operations: Most recent operations, newest first.
        total_operations: Number of entries in the ledger.
        deltas: Per-member change over the last 24 hours.
        balance: Authoritative bank balance.
        max_balance_capacity: Bank capacity.
        completion_percentage: ``balance / capacity`` as a whole percentage,
            0 when the capacity is unknown.
        drift: Ledger vs bank disagreement.
        drift_exceeded: Whether ``drift`` is above the tolerance.
        bank_interest_accrued: Interest credited since the ledger started.
        last_check_timestamp: Last successful poll (epoch ms), ``None`` if
            the feed has not been read since startup.
        last_transaction_timestamp: Ledger watermark (epoch ms).
    """

    users: tuple[UserBalance, ...]
    recent_operations: tuple[Operation, ...]
    total_operations: int
    deltas: tuple[UserDelta, ...]
    balance: float
    max_balance_capacity: int
    completion_percentage: int
    drift: float
    drift_exceeded: bool
    bank_interest_accrued: float
    last_check_timestamp: int | None
    last_transaction_timestamp: int


def build_report(
    state: LedgerState,
    *,
    recent_operations: int = 25,
    last_check_timestamp: int | None = None,
    now_ms: int | None = None,
) -> LedgerReport:
    """Build a :class:`LedgerReport` from a committed snapshot."""
    users = sorted(
        (UserBalance(name, amount) for name, amount in state.users.items()),
        key=lambda user: (-user.balance, str(user.username)),
    )
    recent = tuple(reversed(state.operations[-recent_operations:])) if recent_operations > 0 else ()

    if state.max_balance_capacity > 0:
        completion = round(state.balance / state.max_balance_capacity * 100)
    else:
        completion = 0

    return LedgerReport(
        users=tuple(users),
        recent_operations=recent,
        total_operations=len(state.operations),
        deltas=tuple(compute_deltas(state.operations, now_ms=now_ms)),
        balance=state.balance,
        max_balance_capacity=state.max_balance_capacity,
        completion_percentage=completion,
        drift=state.drift,
        drift_exceeded=state.drift > DRIFT_TOLERANCE,
        bank_interest_accrued=state.bank_interest_accrued,
        last_check_timestamp=last_check_timestamp,
        last_transaction_timestamp=state.last_processed_timestamp,
    )


# ── Formatting helpers (registered as Jinja2 filters) ─────────────────────────


def format_balance(amount: float) -> str:
    """Round to whole coins and group thousands with spaces: ``1 234 567 ¤``."""
    rounded = round(amount)
    grouped = f"{abs(rounded):,}".replace(",", " ")
    sign = "-" if rounded < 0 else ""
    return f"{sign}{grouped} ¤"


def format_timestamp(timestamp_ms: int | None, timezone: str = "Europe/Paris") -> str:
    """Render epoch milliseconds as ``dd/mm HH:MM`` in ``timezone``."""
    if not timestamp_ms:
        return "never"
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=UTC)
    return moment.astimezone(ZoneInfo(timezone)).strftime("%d/%m %H:%M")


def is_important(amount: float | None) -> bool:
    return amount is not None and abs(amount) >= IMPORTANT_AMOUNT
