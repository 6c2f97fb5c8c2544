"""Fold a page of the bank feed into the ledger.

Overview
--------
The Hypixel profile endpoint returns, on every call, the most recent bank
transactions of the co-op (at most :data:`FEED_PAGE_LIMIT` of them, newest
first).  Successive pages overlap, and a busy co-op can push unseen
transactions off the end of a page between two polls.  :func:`reconcile`
turns such a page into ledger state:

1. **Filter** records at or below the watermark
   (``last_processed_timestamp``).  Replaying a page is therefore a no-op.
2. **Classify** each record through the normalizer into a purse or interest
   operation.  Any malformed record aborts before the state is touched.
3. **Truncation guard**: a full page gets an anomaly marker appended so the
   possible gap shows up in the ledger and the report.
4. **Fold** the batch into ``operations`` through the stacker, starting from
   the last persisted operation as the pending tail.
5. **Apply** balance effects: purse amounts to ``users``, interest to
   ``bank_interest_accrued``.
6. **Advance** the watermark to the newest accepted record.
7. **Recompute** drift against the authoritative balance.

Persisting the result is the caller's job; :class:`~coop_banker.core.service.BankerService`
runs this function inside :meth:`~coop_banker.ledger.store.LedgerStore.transaction`,
which flushes on success and discards the working copy on any exception.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from coop_banker.ledger.clock import now_millis
from coop_banker.ledger.errors import DriftWarning
from coop_banker.ledger.normalizer import normalize_initiator
from coop_banker.ledger.stacker import stack
from coop_banker.ledger.types import (
    LedgerState,
    Operation,
    OperationKind,
    RawTransaction,
    TransactionAction,
)

logger = logging.getLogger(__name__)

# Maximum number of transactions the feed returns per call.  A batch this
# large may be hiding older records.
FEED_PAGE_LIMIT = 50

# Drift above this many coins is reported.
DRIFT_TOLERANCE = 1.0


def reconcile(
    state: LedgerState,
    page: Iterable[RawTransaction],
    authoritative_balance: float,
    max_capacity: int,
    *,
    now_ms: int | None = None,
) -> LedgerState:
    """Merge a raw feed page into ``state`` in place and return it.

    Args:
        state: Working copy of the ledger.
        page: Raw transactions as returned by the feed, in any order.
        authoritative_balance: Bank balance reported alongside ``page``.
        max_capacity: Bank capacity derived from the co-op's upgrades.
        now_ms: Clock override for the anomaly marker timestamp.

    Returns:
        ``state``, updated.

    Raises:
        MalformedRecordError: If a newly seen record cannot be classified.
            ``state`` is left unmodified.
    """
    watermark = state.last_processed_timestamp
    fresh = sorted(
        (record for record in page if record.timestamp > watermark),
        key=lambda record: record.timestamp,
    )

    # Classify everything first so a bad record aborts before any mutation.
    batch = [_classify(record) for record in fresh]

    if len(batch) >= FEED_PAGE_LIMIT:
        logger.warning(
            "reconcile: %d new transactions fill a whole page, older ones may be missing",
            len(batch),
        )
        marker_ts = now_millis() if now_ms is None else now_ms
        batch.append(Operation.anomaly_marker(max(marker_ts, fresh[-1].timestamp)))
    elif not batch:
        logger.info("reconcile: no new transactions")
    else:
        logger.info("reconcile: %d new transactions", len(batch))

    _fold(state.operations, batch)

    for operation in batch:
        logger.debug("reconcile: new %s", describe(operation))
        _apply(state, operation)

    if fresh:
        state.last_processed_timestamp = fresh[-1].timestamp

    state.balance = authoritative_balance
    state.max_balance_capacity = max_capacity
    state.drift = abs(authoritative_balance - state.ledger_total)

    warning = check_drift(state)
    if warning is not None:
        logger.warning("reconcile: %s", warning)

    return state


def check_drift(state: LedgerState) -> DriftWarning | None:
    """Return a :class:`DriftWarning` if ``state.drift`` exceeds the tolerance."""
    if state.drift > DRIFT_TOLERANCE:
        return DriftWarning(
            drift=state.drift,
            balance=state.balance,
            ledger_total=state.ledger_total,
        )
    return None


def describe(operation: Operation) -> str:
    """One-line human description of an operation, for logs."""
    if operation.kind is OperationKind.PLAYER_PURSE:
        verb = "deposited" if operation.is_deposit else "withdrew"
        return f"{operation.username} {verb} {abs(operation.amount or 0):g}"
    if operation.kind is OperationKind.PLAYER_TRANSFER:
        return f"{operation.sender} transferred {operation.amount:g} to {operation.username}"
    if operation.kind is OperationKind.BANK_INTERESTS:
        return f"bank interest {operation.amount:g}"
    return "anomaly marker (feed page was full)"


# ── Internal helpers ──────────────────────────────────────────────────────────


def _classify(record: RawTransaction) -> Operation:
    initiator = normalize_initiator(record.initiator_name)
    if initiator.is_bank_interest:
        return Operation.interest(record.timestamp, abs(record.amount))

    assert initiator.username is not None
    if record.action is TransactionAction.WITHDRAW:
        amount = -record.amount
    else:
        amount = record.amount
    return Operation.purse(record.timestamp, initiator.username, amount)


def _fold(operations: list[Operation], batch: list[Operation]) -> None:
    """Append ``batch`` to ``operations``, stacking adjacent duplicates."""
    if not batch:
        return

    tail = operations.pop() if operations else None
    for operation in batch:
        if tail is None:
            tail = operation
            continue
        merged = stack(tail, operation)
        if merged is not None:
            tail = merged
        else:
            operations.append(tail)
            tail = operation
    if tail is not None:
        operations.append(tail)


def _apply(state: LedgerState, operation: Operation) -> None:
    if operation.kind is OperationKind.PLAYER_PURSE:
        assert operation.username is not None and operation.amount is not None
        state.users[operation.username] = state.users.get(operation.username, 0) + operation.amount
    elif operation.kind is OperationKind.BANK_INTERESTS:
        state.bank_interest_accrued += operation.amount or 0
