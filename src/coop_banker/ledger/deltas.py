"""Per-member balance change over a trailing time window."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from coop_banker.ledger.clock import now_millis
from coop_banker.ledger.types import Operation, OperationKind, Username

# 24 hours.
DEFAULT_WINDOW_MS = 86_400_000

_DELTA_KINDS = (OperationKind.PLAYER_PURSE, OperationKind.PLAYER_TRANSFER)


@dataclass(frozen=True, slots=True)
class UserDelta:
    username: Username
    delta: float


def compute_deltas(
    operations: Sequence[Operation],
    window_ms: int = DEFAULT_WINDOW_MS,
    *,
    now_ms: int | None = None,
) -> list[UserDelta]:
    """Net signed change per member over the last ``window_ms`` milliseconds.

    Operations are scanned from newest to oldest.  The first one at least
    ``window_ms`` old is the window boundary; everything strictly newer is
    counted.  Purse operations count toward their member, transfers toward
    their receiver.  Interest and anomaly markers are ignored.

    Members whose net change is exactly zero are left out.

    Returns:
        Deltas sorted by delta descending, then by username.
    """
    now = now_millis() if now_ms is None else now_ms

    start = 0
    for index in range(len(operations) - 1, -1, -1):
        if now - operations[index].timestamp >= window_ms:
            start = index + 1
            break

    totals: dict[Username, float] = {}
    for operation in operations[start:]:
        if operation.kind not in _DELTA_KINDS:
            continue
        if operation.username is None or operation.amount is None:
            continue
        totals[operation.username] = (
            totals.get(operation.username, 0) + operation.amount * operation.repeat_count
        )

    deltas = [UserDelta(name, delta) for name, delta in totals.items() if delta != 0]
    deltas.sort(key=lambda item: (-item.delta, str(item.username)))
    return deltas
