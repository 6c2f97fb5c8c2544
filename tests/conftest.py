"""
Shared pytest fixtures for the co-op banker test suite.

This module provides fixtures that are automatically available to all test files:
- Temporary ledger files and loaded ledger stores
- Raw feed pages and a stub feed client
- A BankerService wired to both
- FastAPI TestClient instances (poller disabled)

Every ledger lives under pytest's ``tmp_path``; no test touches ``data/``.
"""

from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from coop_banker.core.service import BankerService
from coop_banker.feed.client import FeedClient, FeedPage
from coop_banker.ledger.store import LedgerStore
from coop_banker.ledger.types import LedgerState, RawTransaction, TransactionAction, Username

# ============================================================================
# RAW RECORD FIXTURES
# ============================================================================


@pytest.fixture
def make_tx() -> Callable[..., RawTransaction]:
    """
    Factory for raw feed records.

    Example:
        def test_x(make_tx):
            tx = make_tx("DEPOSIT", 100, 1001, "Alice")
    """

    def _make(action: str, amount: float, timestamp: int, initiator: str) -> RawTransaction:
        return RawTransaction(
            action=TransactionAction(action),
            amount=amount,
            timestamp=timestamp,
            initiator_name=initiator,
        )

    return _make


@pytest.fixture
def sample_page(make_tx) -> FeedPage:
    """
    A small feed page, newest first as the API returns it.

    Alice deposits 100 twice, Bob deposits 300, and the bank pays 5 interest.
    """
    return FeedPage(
        transactions=(
            make_tx("DEPOSIT", 5, 1004, "Bank Interest"),
            make_tx("DEPOSIT", 300, 1003, "§aBob"),
            make_tx("DEPOSIT", 100, 1002, "§bAlice"),
            make_tx("DEPOSIT", 100, 1001, "§bAlice"),
        ),
        balance=505,
        max_capacity=100_000_000,
    )


# ============================================================================
# LEDGER FIXTURES
# ============================================================================


@pytest.fixture
def ledger_path(tmp_path: Path) -> Path:
    """Path of a not-yet-created ledger file."""
    return tmp_path / "data" / "data.json"


@pytest.fixture
def store(ledger_path: Path) -> LedgerStore:
    """A loaded store backed by a freshly created, empty ledger."""
    ledger_store = LedgerStore(ledger_path)
    ledger_store.create()
    return ledger_store


@pytest.fixture
def funded_state() -> LedgerState:
    """
    In-memory ledger with two funded members.

    Alice holds 200 and Bob 300; the bank agrees, so drift is 0.
    """
    return LedgerState(
        last_processed_timestamp=1003,
        balance=500,
        users={Username("Alice"): 200.0, Username("Bob"): 300.0},
    )


# ============================================================================
# SERVICE AND CLIENT FIXTURES
# ============================================================================


@pytest.fixture
def fake_feed(sample_page: FeedPage) -> MagicMock:
    """Feed client stub whose ``fetch()`` returns :func:`sample_page`."""
    feed = MagicMock(spec=FeedClient)
    feed.fetch.return_value = sample_page
    return feed


@pytest.fixture
def service(store: LedgerStore, fake_feed: MagicMock) -> BankerService:
    """BankerService over the temporary store and stub feed."""
    return BankerService(store, fake_feed)


@pytest.fixture
def test_client(service: BankerService) -> TestClient:
    """
    FastAPI TestClient for the full app (API, WebSocket and web routes).

    The background poller is disabled; tests trigger refreshes explicitly.
    """
    from coop_banker.api.server import create_app

    app = create_app(service, poll=False)
    return TestClient(app)
