"""Unit tests for report building and display formatting."""

import pytest

from coop_banker.core.report import (
    IMPORTANT_AMOUNT,
    build_report,
    format_balance,
    format_timestamp,
    is_important,
)
from coop_banker.ledger import LedgerState, Operation, Username
from tests.constants import NOW_MS, ONE_HOUR_MS

ALICE = Username("Alice")
BOB = Username("Bob")


@pytest.mark.unit
class TestBuildReport:
    def test_users_sorted_by_balance(self, funded_state):
        report = build_report(funded_state, now_ms=NOW_MS)

        assert [(u.username, u.balance) for u in report.users] == [(BOB, 300), (ALICE, 200)]

    def test_recent_operations_newest_first(self):
        state = LedgerState(
            operations=[Operation.purse(1000 + i, ALICE, i + 1) for i in range(30)],
        )

        report = build_report(state, recent_operations=25, now_ms=NOW_MS)

        assert len(report.recent_operations) == 25
        assert report.recent_operations[0].timestamp == 1029
        assert report.recent_operations[-1].timestamp == 1005
        assert report.total_operations == 30

    def test_completion_percentage(self):
        state = LedgerState(balance=25_000_000, max_balance_capacity=100_000_000)

        assert build_report(state, now_ms=NOW_MS).completion_percentage == 25

    def test_completion_without_capacity(self):
        assert build_report(LedgerState(balance=10), now_ms=NOW_MS).completion_percentage == 0

    def test_drift_flag(self):
        assert build_report(LedgerState(drift=1.0), now_ms=NOW_MS).drift_exceeded is False
        assert build_report(LedgerState(drift=1.5), now_ms=NOW_MS).drift_exceeded is True

    def test_deltas_use_trailing_day(self):
        state = LedgerState(
            users={ALICE: 150.0},
            operations=[
                Operation.purse(NOW_MS - 48 * ONE_HOUR_MS, ALICE, 100),
                Operation.purse(NOW_MS - ONE_HOUR_MS, ALICE, 50),
            ],
        )

        report = build_report(state, now_ms=NOW_MS)

        assert [(d.username, d.delta) for d in report.deltas] == [(ALICE, 50)]

    def test_building_does_not_mutate_state(self, funded_state):
        before = funded_state.to_dict()

        build_report(funded_state, now_ms=NOW_MS)

        assert funded_state.to_dict() == before


@pytest.mark.unit
class TestFormatting:
    @pytest.mark.parametrize(
        ("amount", "expected"),
        [
            (0, "0 ¤"),
            (999, "999 ¤"),
            (1_234_567, "1 234 567 ¤"),
            (1_234_567.6, "1 234 568 ¤"),
            (-5_000_000, "-5 000 000 ¤"),
        ],
    )
    def test_format_balance(self, amount, expected):
        assert format_balance(amount) == expected

    def test_format_timestamp_in_paris(self):
        # 2024-06-01 12:00 UTC is 14:00 in Paris (CEST).
        assert format_timestamp(NOW_MS) == "01/06 14:00"

    def test_format_timestamp_other_zone(self):
        assert format_timestamp(NOW_MS, "UTC") == "01/06 12:00"

    @pytest.mark.parametrize("value", [None, 0])
    def test_format_missing_timestamp(self, value):
        assert format_timestamp(value) == "never"

    def test_is_important(self):
        assert is_important(IMPORTANT_AMOUNT)
        assert is_important(-IMPORTANT_AMOUNT)
        assert not is_important(IMPORTANT_AMOUNT - 1)
        assert not is_important(None)
