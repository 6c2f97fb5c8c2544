"""Typed exceptions for the ledger package.

A small, explicit hierarchy so that each seam can react to exactly the
failure it cares about:

- the polling loop skips a cycle on :exc:`FeedFetchError` and keeps its
  schedule;
- startup refuses to continue on :exc:`SchemaVersionError`;
- the reconciler aborts the whole cycle on :exc:`MalformedRecordError`;
- API routes map :exc:`TransferError` subclasses to 4xx responses.

Drift is deliberately *not* an exception.  A ledger that disagrees with the
bank is still committed; the disagreement is reported through
:class:`DriftWarning`.
"""

from __future__ import annotations

from dataclasses import dataclass


class BankerError(RuntimeError):
    """Base exception for every failure raised by the banker core."""


# ── Feed ──────────────────────────────────────────────────────────────────────


class FeedFetchError(BankerError):
    """The external profile API could not be read.

    Covers network errors, non-2xx responses, ``success: false`` bodies and
    bodies that fail validation.  The current cycle is skipped and the last
    committed ledger stays in place.
    """


# ── Store ─────────────────────────────────────────────────────────────────────


class LedgerStoreError(BankerError):
    """Reading, decoding or flushing the ledger file failed."""


class LedgerNotFoundError(LedgerStoreError):
    """The ledger file does not exist yet (run ``coop-banker init-ledger``)."""


class SchemaVersionError(BankerError):
    """The ledger file is not at the schema version this build understands.

    Attributes:
        found: Version read from the file (``None`` if the field is missing).
        expected: Version this build was written against.
    """

    def __init__(self, found: int | None, expected: int, detail: str | None = None) -> None:
        message = f"ledger schema version {found!r} is not supported (expected {expected})"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.found = found
        self.expected = expected


# ── Reconciliation ────────────────────────────────────────────────────────────


class MalformedRecordError(BankerError):
    """A raw feed record could not be classified (e.g. empty initiator name)."""


# ── Transfers ─────────────────────────────────────────────────────────────────


class TransferError(BankerError):
    """Base class for rejected manual transfers.  State is left untouched."""


class UnknownUserError(TransferError):
    """Sender or receiver has no balance entry in the ledger."""

    def __init__(self, username: str) -> None:
        super().__init__(f"unknown user {username!r}")
        self.username = username


class ReservedActorError(TransferError):
    """Sender or receiver is the bank-interest pseudo-actor."""

    def __init__(self, username: str) -> None:
        super().__init__(f"{username!r} is reserved for bank interest")
        self.username = username


class InvalidAmountError(TransferError):
    """Transfer amount is not strictly positive."""


# ── Drift ─────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class DriftWarning:
    """Ledger total disagrees with the bank balance by more than the tolerance.

    Attributes:
        drift: Absolute difference between ``balance`` and ``ledger_total``.
        balance: Authoritative balance reported by the API.
        ledger_total: Sum of user balances plus accrued bank interest.
    """

    drift: float
    balance: float
    ledger_total: float

    def __str__(self) -> str:
        return (
            f"drift of {self.drift:g} between balance ({self.balance:g}) "
            f"and ledger total ({self.ledger_total:g})"
        )
