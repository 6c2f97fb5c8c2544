"""Ledger package - reconciliation engine for the co-op bank.

The ledger is the **local record** of who moved what through the shared
bank.  The Hypixel API is authoritative for the balance; the ledger is
authoritative for the split between members.  Their disagreement is
tracked as *drift*, never silently corrected.

Public surface
--------------
- :func:`reconcile` - fold a raw feed page into the ledger.
- :func:`transfer` - record a manual transfer between members.
- :func:`compute_deltas` - per-member change over a trailing window.
- :func:`normalize_initiator` - classify a raw initiator name.
- :func:`stack` - merge two identical adjacent operations.
- :class:`LedgerStore` - load / version gate / atomic flush.
- :class:`LedgerState`, :class:`Operation`, :class:`OperationKind` - data model.

Usage example
-------------
::

    from coop_banker.ledger import LedgerStore, reconcile

    store = LedgerStore("data/data.json")
    store.load()
    with store.transaction() as state:
        reconcile(state, page.transactions, page.balance, page.max_capacity)
"""

from coop_banker.ledger.deltas import DEFAULT_WINDOW_MS, UserDelta, compute_deltas
from coop_banker.ledger.errors import (
    BankerError,
    DriftWarning,
    FeedFetchError,
    InvalidAmountError,
    LedgerNotFoundError,
    LedgerStoreError,
    MalformedRecordError,
    ReservedActorError,
    SchemaVersionError,
    TransferError,
    UnknownUserError,
)
from coop_banker.ledger.normalizer import (
    BANK_INTEREST_ACTOR,
    NormalizedInitiator,
    is_reserved_actor,
    normalize_initiator,
)
from coop_banker.ledger.reconciler import (
    DRIFT_TOLERANCE,
    FEED_PAGE_LIMIT,
    check_drift,
    describe,
    reconcile,
)
from coop_banker.ledger.stacker import stack
from coop_banker.ledger.store import LedgerStore, check_schema_version
from coop_banker.ledger.transfers import transfer
from coop_banker.ledger.types import (
    LEDGER_SCHEMA_VERSION,
    LedgerState,
    Operation,
    OperationKind,
    RawTransaction,
    StyledUsername,
    TransactionAction,
    Username,
    Uuid,
)

__all__ = [
    "BANK_INTEREST_ACTOR",
    "DEFAULT_WINDOW_MS",
    "DRIFT_TOLERANCE",
    "FEED_PAGE_LIMIT",
    "LEDGER_SCHEMA_VERSION",
    "BankerError",
    "DriftWarning",
    "FeedFetchError",
    "InvalidAmountError",
    "LedgerNotFoundError",
    "LedgerState",
    "LedgerStore",
    "LedgerStoreError",
    "MalformedRecordError",
    "NormalizedInitiator",
    "Operation",
    "OperationKind",
    "RawTransaction",
    "ReservedActorError",
    "SchemaVersionError",
    "StyledUsername",
    "TransactionAction",
    "TransferError",
    "UnknownUserError",
    "UserDelta",
    "Username",
    "Uuid",
    "check_drift",
    "check_schema_version",
    "compute_deltas",
    "describe",
    "is_reserved_actor",
    "normalize_initiator",
    "reconcile",
    "stack",
    "transfer",
]
