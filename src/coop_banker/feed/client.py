"""Hypixel profile API client.

``FeedClient`` is a thin, synchronous wrapper around the SkyBlock profile
endpoint.  It is the only place in the banker that makes a network call.

Sync vs async
-------------
The client uses the synchronous ``requests`` library.  The polling loop and
the API routes run :meth:`~coop_banker.core.service.BankerService.refresh`
in a worker thread, so a blocking call here does not stall the event loop.

Failure handling
----------------
Every failure (timeout, connection error, non-2xx status, ``success:
false`` body, body that does not validate) is raised as
:exc:`~coop_banker.ledger.errors.FeedFetchError`.  The caller skips the
cycle; nothing here ever touches the ledger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import requests
from pydantic import ValidationError

from coop_banker.feed.models import Profile, ProfileResponse
from coop_banker.ledger.errors import FeedFetchError
from coop_banker.ledger.types import RawTransaction, Uuid

logger = logging.getLogger(__name__)

# Bank capacity unlocked by each bank-upgrade achievement.
BANK_UPGRADES: dict[str, int] = {
    "BANK_UPGRADE_STARTER": 5_000_000,
    "BANK_UPGRADE_GOLD": 100_000_000,
    "BANK_UPGRADE_DELUXE": 250_000_000,
    "BANK_UPGRADE_SUPER_DELUXE": 500_000_000,
    "BANK_UPGRADE_PREMIER": 1_000_000_000,
    "BANK_UPGRADE_LUXURIOUS": 6_000_000_000,
    "BANK_UPGRADE_PALATIAL": 60_000_000_000,
}


@dataclass(frozen=True, slots=True)
class FeedPage:
    """One successful poll of the bank feed.

    Attributes:
        transactions: Raw records, in the order the API returned them
            (newest first).
        balance: Authoritative bank balance.
        max_capacity: Bank capacity derived from the co-op's upgrades.
    """

    transactions: tuple[RawTransaction, ...]
    balance: float
    max_capacity: int


def max_balance_capacity(profile: Profile) -> int:
    """Highest bank capacity unlocked by any member's completed upgrades.

    Upgrades are co-op wide but only recorded on the member who bought them,
    so every member is inspected.  Returns 0 when no upgrade is found.
    """
    capacity = 0
    for member in profile.members.values():
        for task in member.leveling.completed_tasks:
            capacity = max(capacity, BANK_UPGRADES.get(task, 0))
    return capacity


class FeedClient:
    """Synchronous client for the SkyBlock profile endpoint.

    Attributes:
        _api_url:      Full profile endpoint URL.
        _api_key:      Hypixel API key.
        _profile_uuid: Co-op profile to poll.
        _timeout:      HTTP request timeout in seconds.
    """

    def __init__(
        self,
        *,
        api_url: str,
        api_key: str,
        profile_uuid: str,
        timeout_seconds: float,
    ) -> None:
        self._api_url = api_url
        self._api_key = api_key
        self._profile_uuid = Uuid(profile_uuid)
        self._timeout = timeout_seconds

    @property
    def profile_uuid(self) -> Uuid:
        return self._profile_uuid

    def fetch(self) -> FeedPage:
        """Fetch the current bank page for the configured profile.

        Returns:
            The parsed :class:`FeedPage`.

        Raises:
            FeedFetchError: On any network, HTTP, API or validation failure.
        """
        logger.info("feed: fetching profile %s", self._profile_uuid)

        try:
            response = requests.get(
                self._api_url,
                params={"key": self._api_key, "profile": str(self._profile_uuid)},
                timeout=self._timeout,
            )
            payload = response.json()
        except requests.exceptions.JSONDecodeError as exc:
            raise FeedFetchError(
                f"HTTP {response.status_code}: response is not JSON"
            ) from exc
        except requests.exceptions.Timeout as exc:
            raise FeedFetchError(f"request timed out after {self._timeout:.1f}s") from exc
        except requests.exceptions.ConnectionError as exc:
            raise FeedFetchError(f"cannot connect to {self._api_url}") from exc
        except requests.exceptions.RequestException as exc:
            raise FeedFetchError(f"request failed: {exc}") from exc

        # The API reports its own failures as {"success": false, "cause": ...},
        # usually alongside a 4xx status, so read the body before the status.
        try:
            parsed = ProfileResponse.model_validate(payload)
        except ValidationError as exc:
            raise FeedFetchError(f"unexpected profile response: {exc}") from exc

        if not parsed.success:
            raise FeedFetchError(f"API refused the request: {parsed.cause or 'no cause given'}")
        if not response.ok:
            raise FeedFetchError(f"HTTP {response.status_code} from {self._api_url}")
        if parsed.profile is None:
            raise FeedFetchError("API response has no profile")

        page = to_feed_page(parsed.profile)
        logger.info(
            "feed: got %d transactions, balance %g",
            len(page.transactions),
            page.balance,
        )
        return page


def to_feed_page(profile: Profile) -> FeedPage:
    """Convert a validated profile into the banker's :class:`FeedPage`."""
    transactions = tuple(
        RawTransaction(
            action=tx.action,
            amount=tx.amount,
            timestamp=tx.timestamp,
            initiator_name=tx.initiator_name,
        )
        for tx in profile.banking.transactions
    )
    return FeedPage(
        transactions=transactions,
        balance=profile.banking.balance,
        max_capacity=max_balance_capacity(profile),
    )
