"""Unit tests for the Hypixel profile API client."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from coop_banker.feed.client import FeedClient, max_balance_capacity, to_feed_page
from coop_banker.feed.models import Profile
from coop_banker.ledger import FeedFetchError, TransactionAction

API_URL = "https://api.hypixel.net/v2/skyblock/profile"
PROFILE = "0f1e2d3c-4b5a-6978-8796-a5b4c3d2e1f0"


@pytest.fixture
def client():
    return FeedClient(
        api_url=API_URL,
        api_key="test-key",
        profile_uuid=PROFILE,
        timeout_seconds=10.0,
    )


def _profile_body() -> dict:
    return {
        "success": True,
        "profile": {
            "profile_id": PROFILE,
            "members": {
                "member-a": {"leveling": {"completed_tasks": ["BANK_UPGRADE_GOLD"]}},
                "member-b": {"leveling": {"completed_tasks": ["BANK_UPGRADE_DELUXE", "OTHER"]}},
            },
            "banking": {
                "balance": 505.0,
                "transactions": [
                    {
                        "amount": 5,
                        "timestamp": 1004,
                        "action": "DEPOSIT",
                        "initiator_name": "Bank Interest",
                    },
                    {
                        "amount": 100,
                        "timestamp": 1001,
                        "action": "WITHDRAW",
                        "initiator_name": "§bAlice",
                    },
                ],
            },
        },
    }


def _mock_response(body, status_code: int = 200) -> MagicMock:
    """Build a mock requests.Response carrying ``body`` as JSON."""
    mock_resp = MagicMock()
    mock_resp.status_code = status_code
    mock_resp.ok = status_code < 400
    mock_resp.json.return_value = body
    return mock_resp


@pytest.mark.unit
class TestFetchSuccess:
    def test_returns_feed_page(self, client):
        with patch("requests.get", return_value=_mock_response(_profile_body())):
            page = client.fetch()

        assert page.balance == 505.0
        assert page.max_capacity == 250_000_000
        assert len(page.transactions) == 2
        assert page.transactions[1].action is TransactionAction.WITHDRAW
        assert page.transactions[1].initiator_name == "§bAlice"

    def test_sends_key_and_profile(self, client):
        with patch("requests.get", return_value=_mock_response(_profile_body())) as mock:
            client.fetch()

        args, kwargs = mock.call_args
        assert args[0] == API_URL
        assert kwargs["params"] == {"key": "test-key", "profile": PROFILE}
        assert kwargs["timeout"] == 10.0

    def test_extra_profile_fields_are_ignored(self, client):
        body = _profile_body()
        body["profile"]["community_upgrades"] = {"upgrade_states": []}

        with patch("requests.get", return_value=_mock_response(body)):
            page = client.fetch()

        assert page.balance == 505.0


@pytest.mark.unit
class TestFetchFailure:
    def test_timeout(self, client):
        with patch("requests.get", side_effect=requests.exceptions.Timeout):
            with pytest.raises(FeedFetchError, match="timed out"):
                client.fetch()

    def test_connection_error(self, client):
        with patch("requests.get", side_effect=requests.exceptions.ConnectionError):
            with pytest.raises(FeedFetchError, match="cannot connect"):
                client.fetch()

    def test_other_request_error(self, client):
        with patch("requests.get", side_effect=requests.exceptions.RequestException("boom")):
            with pytest.raises(FeedFetchError, match="boom"):
                client.fetch()

    def test_non_json_body(self, client):
        mock_resp = _mock_response(None, status_code=502)
        mock_resp.json.side_effect = requests.exceptions.JSONDecodeError(
            "Expecting value", "<html>", 0
        )

        with patch("requests.get", return_value=mock_resp):
            with pytest.raises(FeedFetchError, match="not JSON"):
                client.fetch()

    def test_api_refusal_reports_cause(self, client):
        body = {"success": False, "cause": "Invalid API key"}

        with patch("requests.get", return_value=_mock_response(body, status_code=403)):
            with pytest.raises(FeedFetchError, match="Invalid API key"):
                client.fetch()

    def test_http_error_status(self, client):
        with patch("requests.get", return_value=_mock_response(_profile_body(), 500)):
            with pytest.raises(FeedFetchError, match="HTTP 500"):
                client.fetch()

    def test_missing_profile(self, client):
        with patch("requests.get", return_value=_mock_response({"success": True})):
            with pytest.raises(FeedFetchError, match="no profile"):
                client.fetch()

    def test_invalid_transaction(self, client):
        body = _profile_body()
        body["profile"]["banking"]["transactions"][0]["action"] = "STEAL"

        with patch("requests.get", return_value=_mock_response(body)):
            with pytest.raises(FeedFetchError, match="unexpected profile response"):
                client.fetch()


@pytest.mark.unit
class TestCapacity:
    def test_highest_upgrade_across_members(self):
        profile = Profile.model_validate(_profile_body()["profile"])

        assert max_balance_capacity(profile) == 250_000_000

    def test_no_upgrades(self):
        profile = Profile.model_validate({"banking": {"balance": 0}})

        assert max_balance_capacity(profile) == 0
        assert to_feed_page(profile).transactions == ()
