"""Banker service: the single owner of the ledger at runtime.

``BankerService`` ties the feed client to the ledger store and exposes the
two commands the outside world can issue:

- :meth:`BankerService.refresh` : poll the feed and reconcile;
- :meth:`BankerService.transfer`: record a manual transfer.

Both mutate through :meth:`LedgerStore.transaction`, so they never
interleave.  The feed is fetched *before* the store lock is taken; a slow API
only delays the refresh that is waiting on it.

Both methods are synchronous.  Async callers (the polling loop, the
WebSocket handler) run them with ``asyncio.to_thread``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from coop_banker.core.report import LedgerReport, build_report
from coop_banker.feed.client import FeedClient
from coop_banker.ledger.clock import now_millis
from coop_banker.ledger.errors import DriftWarning, FeedFetchError
from coop_banker.ledger.reconciler import FEED_PAGE_LIMIT, check_drift, reconcile
from coop_banker.ledger.store import LedgerStore
from coop_banker.ledger.transfers import transfer

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RefreshResult:
    """Outcome of one committed reconciliation.

    Attributes:
        new_transactions: Raw records accepted past the watermark.
        marker_added: Whether the page was full and an anomaly marker was
            appended.
        drift: Drift after reconciliation.
        drift_warning: Set when drift exceeds the tolerance.
    """

    new_transactions: int
    marker_added: bool
    drift: float
    drift_warning: DriftWarning | None = None


class BankerService:
    """Runtime owner of the ledger store and feed client.

    Args:
        store: Loaded ledger store.
        feed: Feed client, or ``None`` when API credentials are not
            configured (refresh then always fails with
            :exc:`FeedFetchError`).
        recent_operations: Number of operations shown in reports.
    """

    def __init__(
        self,
        store: LedgerStore,
        feed: FeedClient | None,
        *,
        recent_operations: int = 25,
    ) -> None:
        self.store = store
        self.feed = feed
        self.recent_operations = recent_operations
        self.last_check_timestamp: int | None = None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def refresh(self) -> RefreshResult:
        """Fetch the feed and reconcile it into the ledger.

        Raises:
            FeedFetchError: The feed could not be read; the ledger is
                untouched.
            MalformedRecordError: A record could not be classified; the
                ledger is untouched.
            LedgerStoreError: The flush failed; the ledger is untouched.
        """
        if self.feed is None:
            raise FeedFetchError("feed is not configured (set HYPIXEL_API_KEY and PROFILE_UUID)")

        page = self.feed.fetch()

        with self.store.transaction() as state:
            accepted = sum(
                1 for tx in page.transactions if tx.timestamp > state.last_processed_timestamp
            )
            reconcile(state, page.transactions, page.balance, page.max_capacity)
            result = RefreshResult(
                new_transactions=accepted,
                marker_added=accepted >= FEED_PAGE_LIMIT,
                drift=state.drift,
                drift_warning=check_drift(state),
            )

        self.last_check_timestamp = now_millis()
        logger.info(
            "refresh: committed %d new transactions (drift %g)",
            result.new_transactions,
            result.drift,
        )
        return result

    def transfer(self, amount: float, sender: str, receiver: str) -> None:
        """Record a manual transfer of ``amount`` from ``sender`` to ``receiver``.

        Raises:
            TransferError: The transfer was rejected; the ledger is
                untouched.
            LedgerStoreError: The flush failed; the ledger is untouched.
        """
        with self.store.transaction() as state:
            transfer(state, amount, sender, receiver)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def report(self) -> LedgerReport:
        """Report over the last committed ledger state."""
        return build_report(
            self.store.snapshot(),
            recent_operations=self.recent_operations,
            last_check_timestamp=self.last_check_timestamp,
        )
