"""Unit tests for manual transfers between members."""

import copy
import math

import pytest

from coop_banker.ledger import (
    InvalidAmountError,
    LedgerState,
    Operation,
    OperationKind,
    ReservedActorError,
    UnknownUserError,
    Username,
    transfer,
)
from tests.constants import NOW_MS

ALICE = Username("Alice")
BOB = Username("Bob")


@pytest.mark.unit
class TestTransfer:
    def test_moves_amount_between_members(self, funded_state):
        transfer(funded_state, 50, "Alice", "Bob", now_ms=NOW_MS)

        assert funded_state.users == {ALICE: 150, BOB: 350}
        operation = funded_state.operations[-1]
        assert operation.kind is OperationKind.PLAYER_TRANSFER
        assert operation.sender == ALICE
        assert operation.username == BOB
        assert operation.amount == 50
        assert operation.timestamp == NOW_MS
        assert funded_state.last_processed_timestamp == NOW_MS

    def test_ledger_total_and_drift_are_unchanged(self, funded_state):
        total = funded_state.ledger_total
        drift = funded_state.drift

        transfer(funded_state, 120, "Bob", "Alice", now_ms=NOW_MS)

        assert funded_state.ledger_total == total
        assert funded_state.drift == drift

    def test_sender_may_go_negative(self, funded_state):
        transfer(funded_state, 500, "Alice", "Bob", now_ms=NOW_MS)

        assert funded_state.users[ALICE] == -300

    def test_transfer_to_self_is_a_no_op(self, funded_state):
        before = copy.deepcopy(funded_state)

        transfer(funded_state, 50, "Alice", "Alice", now_ms=NOW_MS)

        assert funded_state == before

    def test_timestamp_never_goes_backwards(self, funded_state):
        funded_state.operations.append(Operation.purse(NOW_MS + 5_000, ALICE, 200))

        transfer(funded_state, 10, "Alice", "Bob", now_ms=NOW_MS)

        timestamps = [op.timestamp for op in funded_state.operations]
        assert timestamps == sorted(timestamps)
        assert funded_state.operations[-1].timestamp == NOW_MS + 5_000

    def test_repeated_transfers_stay_separate_entries(self, funded_state):
        transfer(funded_state, 10, "Alice", "Bob", now_ms=NOW_MS)
        transfer(funded_state, 10, "Alice", "Bob", now_ms=NOW_MS + 1)

        assert len(funded_state.operations) == 2


@pytest.mark.unit
class TestTransferRejections:
    def test_unknown_receiver(self, funded_state):
        before = copy.deepcopy(funded_state)

        with pytest.raises(UnknownUserError) as excinfo:
            transfer(funded_state, 50, "Alice", "Ghost", now_ms=NOW_MS)

        assert excinfo.value.username == "Ghost"
        assert funded_state == before

    def test_unknown_sender(self, funded_state):
        with pytest.raises(UnknownUserError):
            transfer(funded_state, 50, "Ghost", "Bob", now_ms=NOW_MS)

    @pytest.mark.parametrize("actor", ["@bank-interest", "Bank Interest", "Bank Interest (x2)"])
    def test_reserved_actor(self, funded_state, actor):
        with pytest.raises(ReservedActorError):
            transfer(funded_state, 50, actor, "Bob", now_ms=NOW_MS)
        with pytest.raises(ReservedActorError):
            transfer(funded_state, 50, "Alice", actor, now_ms=NOW_MS)

    @pytest.mark.parametrize("amount", [0, -1, -50.5, math.inf, -math.inf, math.nan])
    def test_amount_must_be_positive_and_finite(self, funded_state, amount):
        before = copy.deepcopy(funded_state)

        with pytest.raises(InvalidAmountError):
            transfer(funded_state, amount, "Alice", "Bob", now_ms=NOW_MS)

        assert funded_state == before

    def test_invalid_amount_checked_before_self_transfer(self):
        with pytest.raises(InvalidAmountError):
            transfer(LedgerState(), 0, "Alice", "Alice", now_ms=NOW_MS)

    def test_infinite_amount_leaves_ledger_serializable(self, funded_state):
        with pytest.raises(InvalidAmountError):
            transfer(funded_state, math.inf, "Alice", "Bob", now_ms=NOW_MS)

        assert all(math.isfinite(balance) for balance in funded_state.users.values())
        assert sum(funded_state.users.values()) == 500
