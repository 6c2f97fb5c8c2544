"""
API endpoint tests for FastAPI routes (coop_banker/api/routes/).

Tests cover:
- Health endpoint
- Report endpoint
- Refresh command (success and feed failure)
- Transfer command (success and every rejection)

Uses TestClient for HTTP request testing.
"""

import pytest

from coop_banker import __version__
from coop_banker.ledger import FeedFetchError, LedgerStoreError

# ============================================================================
# HEALTH
# ============================================================================


@pytest.mark.api
def test_health_endpoint(test_client):
    """Health check reports status and version."""
    response = test_client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == __version__
    assert data["connected_clients"] == 0


# ============================================================================
# REPORT
# ============================================================================


@pytest.mark.api
def test_report_on_empty_ledger(test_client):
    """A fresh ledger reports no members and no operations."""
    response = test_client.get("/api/report")

    assert response.status_code == 200
    data = response.json()
    assert data["users"] == []
    assert data["recent_operations"] == []
    assert data["total_operations"] == 0
    assert data["last_check_timestamp"] is None


@pytest.mark.api
def test_report_after_refresh(test_client):
    """The report reflects a committed refresh."""
    test_client.post("/api/refresh")

    data = test_client.get("/api/report").json()

    assert data["users"] == [
        {"username": "Bob", "balance": 300},
        {"username": "Alice", "balance": 200},
    ]
    assert data["balance"] == 505
    assert data["bank_interest_accrued"] == 5
    assert data["drift"] == 0
    assert data["drift_exceeded"] is False
    assert data["completion_percentage"] == 0
    assert data["last_transaction_timestamp"] == 1004
    newest = data["recent_operations"][0]
    assert newest["kind"] == "BANK_INTERESTS"
    oldest = data["recent_operations"][-1]
    assert oldest == {
        "kind": "PLAYER_PURSE",
        "timestamp": 1001,
        "amount": 100,
        "username": "Alice",
        "sender": None,
        "repeat_count": 2,
    }


# ============================================================================
# REFRESH
# ============================================================================


@pytest.mark.api
def test_refresh_endpoint(test_client):
    """Refresh returns how many records were accepted."""
    response = test_client.post("/api/refresh")

    assert response.status_code == 200
    assert response.json() == {
        "new_transactions": 4,
        "marker_added": False,
        "drift": 0,
        "drift_exceeded": False,
    }


@pytest.mark.api
def test_refresh_feed_failure(test_client, fake_feed):
    """A feed failure answers 502 and leaves the report unchanged."""
    fake_feed.fetch.side_effect = FeedFetchError("API refused the request: Invalid API key")

    response = test_client.post("/api/refresh")

    assert response.status_code == 502
    assert "Invalid API key" in response.json()["detail"]
    assert test_client.get("/api/report").json()["users"] == []


@pytest.mark.api
def test_refresh_bad_record(test_client, fake_feed, make_tx):
    """A record that cannot be classified answers 502."""
    from coop_banker.feed.client import FeedPage

    fake_feed.fetch.return_value = FeedPage(
        transactions=(make_tx("DEPOSIT", 1, 1001, "§b"),),
        balance=1,
        max_capacity=0,
    )

    response = test_client.post("/api/refresh")

    assert response.status_code == 502


@pytest.mark.api
def test_refresh_flush_failure(test_client, service, monkeypatch):
    """A failed ledger flush answers 500."""

    def fail_refresh():
        raise LedgerStoreError("failed to flush ledger")

    monkeypatch.setattr(service, "refresh", fail_refresh)

    response = test_client.post("/api/refresh")

    assert response.status_code == 500


# ============================================================================
# TRANSFER
# ============================================================================


@pytest.mark.api
def test_transfer_success(test_client):
    """A valid transfer moves the amount between members."""
    test_client.post("/api/refresh")

    response = test_client.post(
        "/api/transfer", json={"amount": 50, "sender": "Alice", "receiver": "Bob"}
    )

    assert response.status_code == 200
    assert response.json()["success"] is True
    balances = {u["username"]: u["balance"] for u in test_client.get("/api/report").json()["users"]}
    assert balances == {"Alice": 150, "Bob": 350}


@pytest.mark.api
def test_transfer_unknown_user(test_client):
    """Unknown members answer 404 and change nothing."""
    test_client.post("/api/refresh")

    response = test_client.post(
        "/api/transfer", json={"amount": 50, "sender": "Alice", "receiver": "Ghost"}
    )

    assert response.status_code == 404
    assert "Ghost" in response.json()["detail"]
    balances = {u["username"]: u["balance"] for u in test_client.get("/api/report").json()["users"]}
    assert balances == {"Alice": 200, "Bob": 300}


@pytest.mark.api
def test_transfer_reserved_actor(test_client):
    """The bank-interest actor can never take part in a transfer."""
    test_client.post("/api/refresh")

    response = test_client.post(
        "/api/transfer", json={"amount": 50, "sender": "@bank-interest", "receiver": "Bob"}
    )

    assert response.status_code == 400


@pytest.mark.api
@pytest.mark.parametrize("amount", [0, -10])
def test_transfer_invalid_amount(test_client, amount):
    """Non-positive amounts fail request validation."""
    response = test_client.post(
        "/api/transfer", json={"amount": amount, "sender": "Alice", "receiver": "Bob"}
    )

    assert response.status_code == 422


@pytest.mark.api
@pytest.mark.parametrize("amount", ["inf", "-inf", "nan"])
def test_transfer_non_finite_amount(test_client, amount):
    """Infinite and NaN amounts fail request validation and change nothing."""
    test_client.post("/api/refresh")

    response = test_client.post(
        "/api/transfer", json={"amount": amount, "sender": "Alice", "receiver": "Bob"}
    )

    assert response.status_code == 422
    balances = {u["username"]: u["balance"] for u in test_client.get("/api/report").json()["users"]}
    assert balances == {"Alice": 200, "Bob": 300}


@pytest.mark.api
def test_transfer_to_self(test_client):
    """A transfer to oneself succeeds without recording anything."""
    test_client.post("/api/refresh")

    response = test_client.post(
        "/api/transfer", json={"amount": 50, "sender": "Alice", "receiver": "Alice"}
    )

    assert response.status_code == 200
    assert test_client.get("/api/report").json()["total_operations"] == 3
