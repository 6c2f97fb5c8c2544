"""Value types for the co-op ledger.

Everything the reconciler, stacker, transfer processor and store pass between
each other lives here:

- validated identifier types (:class:`Uuid`, :class:`StyledUsername`,
  :class:`Username`) so that a raw feed name can never be used where a
  normalized one is expected without going through the normalizer;
- :class:`RawTransaction`, one record of the external feed;
- :class:`Operation`, one reconciled ledger entry;
- :class:`LedgerState`, the persisted aggregate.

On-disk format
--------------
``LedgerState.to_dict`` / ``from_dict`` use the camelCase keys of the
historical ``data.json`` file (schema version 3), so an existing ledger
file loads unchanged::

    {
      "version": 3,
      "lastTransactionTimestamp": 1717000000000,
      "balance": 1250000.0,
      "maxBalance": 250000000,
      "drift": 0.0,
      "bankInterests": 50000.0,
      "users": {"Alice": 1200000.0},
      "operations": [
        {"kind": "PLAYER_PURSE", "timestamp": 1717000000000,
         "amount": 100000.0, "username": "Alice", "repeatCount": 2}
      ]
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

# Schema version written by this build.  The store refuses any other value.
LEDGER_SCHEMA_VERSION = 3


# =============================================================================
# IDENTIFIERS
# =============================================================================


class _Identifier(str):
    """Non-empty string with a distinct type."""

    __slots__ = ()

    def __new__(cls, value: str) -> _Identifier:
        if not isinstance(value, str):
            raise TypeError(f"{cls.__name__} must be built from a str, got {type(value).__name__}")
        if not value:
            raise ValueError(f"{cls.__name__} must not be empty")
        return super().__new__(cls, value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str.__repr__(self)})"


class Uuid(_Identifier):
    """Hypixel profile or member UUID."""

    __slots__ = ()


class StyledUsername(_Identifier):
    """Initiator name exactly as the feed reports it, colour codes included."""

    __slots__ = ()


class Username(_Identifier):
    """Normalized player name, the key of :attr:`LedgerState.users`."""

    __slots__ = ()


# =============================================================================
# RAW FEED RECORDS
# =============================================================================


class TransactionAction(str, Enum):
    """Direction of a raw bank transaction."""

    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"


@dataclass(frozen=True, slots=True)
class RawTransaction:
    """One record of the bank feed, before classification.

    ``initiator_name`` is kept as a plain ``str`` on purpose: the normalizer
    is the one place allowed to reject it.
    """

    action: TransactionAction
    amount: float
    timestamp: int
    initiator_name: str


# =============================================================================
# OPERATIONS
# =============================================================================


class OperationKind(str, Enum):
    """Variant tag of a ledger :class:`Operation`.

    The values are the tags stored on disk.
    """

    # A member deposited into (positive) or withdrew from (negative) the bank.
    PLAYER_PURSE = "PLAYER_PURSE"
    # Manual redistribution between two members.
    PLAYER_TRANSFER = "PLAYER_TRANSFER"
    # Interest credited by the bank itself.
    BANK_INTERESTS = "BANK_INTERESTS"
    # The feed returned a full page; older transactions may be missing.
    ANOMALY_MARKER = "WEIRD_WAYPOINT"


@dataclass(frozen=True, slots=True)
class Operation:
    """One reconciled ledger entry.

    Attributes:
        kind: Variant tag.
        timestamp: Event time in epoch milliseconds.
        amount: Signed amount for purse operations, amount received by
            ``username`` for transfers, credited amount for interest,
            ``None`` for anomaly markers.
        username: Principal actor (receiver for transfers).  ``None`` for
            interest and markers.
        sender: Sending member, transfers only.
        repeat_count: Number of identical consecutive raw records this entry
            stands for.  Always ``>= 1``.
    """

    kind: OperationKind
    timestamp: int
    amount: float | None = None
    username: Username | None = None
    sender: Username | None = None
    repeat_count: int = 1

    def __post_init__(self) -> None:
        if self.repeat_count < 1:
            raise ValueError(f"repeat_count must be >= 1, got {self.repeat_count}")

    @classmethod
    def purse(cls, timestamp: int, username: Username, amount: float) -> Operation:
        return cls(OperationKind.PLAYER_PURSE, timestamp, amount=amount, username=username)

    @classmethod
    def interest(cls, timestamp: int, amount: float) -> Operation:
        return cls(OperationKind.BANK_INTERESTS, timestamp, amount=amount)

    @classmethod
    def player_transfer(
        cls, timestamp: int, sender: Username, receiver: Username, amount: float
    ) -> Operation:
        return cls(
            OperationKind.PLAYER_TRANSFER,
            timestamp,
            amount=amount,
            username=receiver,
            sender=sender,
        )

    @classmethod
    def anomaly_marker(cls, timestamp: int) -> Operation:
        return cls(OperationKind.ANOMALY_MARKER, timestamp)

    def repeated(self) -> Operation:
        """Return a copy standing for one more identical record."""
        return replace(self, repeat_count=self.repeat_count + 1)

    @property
    def is_withdrawal(self) -> bool:
        return self.kind is OperationKind.PLAYER_PURSE and (self.amount or 0) < 0

    @property
    def is_deposit(self) -> bool:
        return self.kind is OperationKind.PLAYER_PURSE and (self.amount or 0) > 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind.value, "timestamp": self.timestamp}
        if self.amount is not None:
            data["amount"] = self.amount
        if self.username is not None:
            data["username"] = str(self.username)
        if self.sender is not None:
            data["sender"] = str(self.sender)
        data["repeatCount"] = self.repeat_count
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Operation:
        username = data.get("username")
        sender = data.get("sender")
        return cls(
            kind=OperationKind(data["kind"]),
            timestamp=int(data["timestamp"]),
            amount=data.get("amount"),
            username=Username(username) if username else None,
            sender=Username(sender) if sender else None,
            repeat_count=int(data.get("repeatCount") or 1),
        )


# =============================================================================
# LEDGER STATE
# =============================================================================


@dataclass
class LedgerState:
    """The persisted aggregate.

    Mutated only by :func:`~coop_banker.ledger.reconciler.reconcile` and
    :func:`~coop_banker.ledger.transfers.transfer`, always on a working copy
    handed out by :meth:`~coop_banker.ledger.store.LedgerStore.transaction`.
    """

    version: int = LEDGER_SCHEMA_VERSION
    last_processed_timestamp: int = 0
    balance: float = 0.0
    max_balance_capacity: int = 0
    drift: float = 0.0
    bank_interest_accrued: float = 0.0
    users: dict[Username, float] = field(default_factory=dict)
    operations: list[Operation] = field(default_factory=list)

    @property
    def ledger_total(self) -> float:
        """Sum of every member balance plus accrued interest."""
        return sum(self.users.values()) + self.bank_interest_accrued

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "lastTransactionTimestamp": self.last_processed_timestamp,
            "balance": self.balance,
            "maxBalance": self.max_balance_capacity,
            "drift": self.drift,
            "bankInterests": self.bank_interest_accrued,
            "users": {str(name): amount for name, amount in self.users.items()},
            "operations": [op.to_dict() for op in self.operations],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LedgerState:
        return cls(
            version=int(data["version"]),
            last_processed_timestamp=int(data.get("lastTransactionTimestamp") or 0),
            balance=data.get("balance") or 0.0,
            max_balance_capacity=int(data.get("maxBalance") or 0),
            drift=data.get("drift") or 0.0,
            bank_interest_accrued=data.get("bankInterests") or 0.0,
            users={Username(name): amount for name, amount in (data.get("users") or {}).items()},
            operations=[Operation.from_dict(op) for op in data.get("operations") or []],
        )
