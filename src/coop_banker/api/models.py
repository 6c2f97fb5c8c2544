"""
Pydantic models for API requests and responses.

Models are organized into two categories:
1. Request models: Data sent FROM the client TO the server
2. Response models: Data sent FROM the server TO the client
"""

from pydantic import BaseModel, Field

from coop_banker.core.report import LedgerReport
from coop_banker.ledger.types import Operation

# ============================================================================
# REQUEST MODELS (Client → Server)
# ============================================================================


class TransferRequest(BaseModel):
    """
    Manual transfer between two co-op members.

    Attributes:
        amount: Coins to move (must be positive and finite)
        sender: Member giving up part of their share
        receiver: Member receiving it
    """

    amount: float = Field(gt=0, allow_inf_nan=False)
    sender: str
    receiver: str


# ============================================================================
# RESPONSE MODELS (Server → Client)
# ============================================================================


def _name(value: str | None) -> str | None:
    return None if value is None else str(value)


class OperationModel(BaseModel):
    """One ledger operation as exposed over the API."""

    kind: str
    timestamp: int
    amount: float | None = None
    username: str | None = None
    sender: str | None = None
    repeat_count: int = 1

    @classmethod
    def from_operation(cls, operation: Operation) -> "OperationModel":
        return cls(
            kind=operation.kind.value,
            timestamp=operation.timestamp,
            amount=operation.amount,
            username=_name(operation.username),
            sender=_name(operation.sender),
            repeat_count=operation.repeat_count,
        )


class UserBalanceModel(BaseModel):
    username: str
    balance: float


class UserDeltaModel(BaseModel):
    username: str
    delta: float


class ReportResponse(BaseModel):
    """
    Full ledger report.

    Mirrors :class:`~coop_banker.core.report.LedgerReport`.
    """

    users: list[UserBalanceModel]
    recent_operations: list[OperationModel]
    total_operations: int
    deltas: list[UserDeltaModel]
    balance: float
    max_balance_capacity: int
    completion_percentage: int
    drift: float
    drift_exceeded: bool
    bank_interest_accrued: float
    last_check_timestamp: int | None
    last_transaction_timestamp: int

    @classmethod
    def from_report(cls, report: LedgerReport) -> "ReportResponse":
        return cls(
            users=[
                UserBalanceModel(username=str(user.username), balance=user.balance)
                for user in report.users
            ],
            recent_operations=[
                OperationModel.from_operation(operation) for operation in report.recent_operations
            ],
            total_operations=report.total_operations,
            deltas=[
                UserDeltaModel(username=str(delta.username), delta=delta.delta)
                for delta in report.deltas
            ],
            balance=report.balance,
            max_balance_capacity=report.max_balance_capacity,
            completion_percentage=report.completion_percentage,
            drift=report.drift,
            drift_exceeded=report.drift_exceeded,
            bank_interest_accrued=report.bank_interest_accrued,
            last_check_timestamp=report.last_check_timestamp,
            last_transaction_timestamp=report.last_transaction_timestamp,
        )


class RefreshResponse(BaseModel):
    """
    Result of a manual reconciliation.

    Attributes:
        new_transactions: Raw records accepted past the watermark
        marker_added: Whether an anomaly marker was appended
        drift: Drift after reconciliation
        drift_exceeded: Whether drift is above tolerance
    """

    new_transactions: int
    marker_added: bool
    drift: float
    drift_exceeded: bool


class CommandResponse(BaseModel):
    """Generic success/message response for commands."""

    success: bool
    message: str
