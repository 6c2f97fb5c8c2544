"""Manual transfers between co-op members.

The bank feed only knows who deposited and who withdrew.  When one member
pays another back in person, the ledger is told through a transfer: it moves
``amount`` from the sender's share to the receiver's, leaving the co-op total
(and therefore drift) unchanged.
"""

from __future__ import annotations

import logging
import math

from coop_banker.ledger.clock import now_millis
from coop_banker.ledger.errors import InvalidAmountError, ReservedActorError, UnknownUserError
from coop_banker.ledger.normalizer import is_reserved_actor
from coop_banker.ledger.types import LedgerState, Operation, Username

logger = logging.getLogger(__name__)


def transfer(
    state: LedgerState,
    amount: float,
    sender: str,
    receiver: str,
    *,
    now_ms: int | None = None,
) -> LedgerState:
    """Move ``amount`` from ``sender`` to ``receiver`` in place and return ``state``.

    A transfer to oneself is a no-op.  Otherwise both members must already
    have a balance entry, and neither may be the bank-interest actor.

    The new ``PLAYER_TRANSFER`` operation is stamped with the current time,
    raised if needed to the newest timestamp already in the ledger so that
    ``operations`` stays in chronological order.  The watermark advances to
    that timestamp.

    Raises:
        InvalidAmountError: ``amount`` is not a finite, strictly positive number.
        ReservedActorError: Either side is the bank-interest actor.
        UnknownUserError: Either side has no balance entry.
    """
    if not math.isfinite(amount) or amount <= 0:
        raise InvalidAmountError(f"transfer amount must be a positive number, got {amount!r}")
    if sender == receiver:
        logger.info("transfer: %s to themselves ignored", sender)
        return state

    for name in (sender, receiver):
        if is_reserved_actor(name):
            raise ReservedActorError(name)
    for name in (sender, receiver):
        if name not in state.users:
            raise UnknownUserError(name)

    sender_name = Username(sender)
    receiver_name = Username(receiver)

    timestamp = now_millis() if now_ms is None else now_ms
    if state.operations:
        timestamp = max(timestamp, state.operations[-1].timestamp)
    timestamp = max(timestamp, state.last_processed_timestamp)

    state.users[sender_name] -= amount
    state.users[receiver_name] += amount
    state.operations.append(
        Operation.player_transfer(timestamp, sender_name, receiver_name, amount)
    )
    state.last_processed_timestamp = timestamp

    logger.info("transfer: %s sent %g to %s", sender_name, amount, receiver_name)
    return state
