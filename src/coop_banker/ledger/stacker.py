"""Collapse runs of identical operations.

Members often move money in fixed chunks (ten withdrawals of 1M in a row).
Rather than store ten entries, the ledger keeps one with
``repeat_count == 10``.  Only *adjacent* operations are merged, and a merged
entry is never split again.
"""

from __future__ import annotations

from coop_banker.ledger.types import Operation


def stack(previous: Operation, following: Operation) -> Operation | None:
    """Merge ``following`` into ``previous`` if they are field-identical.

    Two operations stack when ``kind``, ``amount``, ``username`` and
    ``sender`` all match.  Timestamps are ignored; the merged entry keeps the
    timestamp of ``previous``.

    Returns:
        ``previous`` with ``repeat_count`` increased by one, or ``None`` when
        the operations differ.  On ``None`` the caller seals ``previous`` and
        carries on with ``following`` as the new tail.
    """
    if (
        previous.kind is following.kind
        and previous.amount == following.amount
        and previous.username == following.username
        and previous.sender == following.sender
    ):
        return previous.repeated()
    return None
