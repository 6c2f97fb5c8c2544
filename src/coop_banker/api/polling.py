"""Scheduled and on-demand reconciliation for the running server.

The blocking :meth:`BankerService.refresh` is run in a worker thread so the
event loop keeps serving report pages while the feed is fetched.  After a
committed refresh every connected page is told to reload.
"""

from __future__ import annotations

import asyncio
import logging

from coop_banker.api.reload import ReloadHub
from coop_banker.core.service import BankerService, RefreshResult
from coop_banker.ledger.errors import BankerError

logger = logging.getLogger(__name__)


async def refresh_and_notify(service: BankerService, hub: ReloadHub) -> RefreshResult:
    """Reconcile once and broadcast a reload.

    Raises:
        BankerError: Propagated from :meth:`BankerService.refresh`; nothing is
            broadcast in that case.
    """
    result = await asyncio.to_thread(service.refresh)
    await hub.broadcast()
    return result


async def poll_feed(service: BankerService, hub: ReloadHub, interval_seconds: float) -> None:
    """Refresh immediately, then every ``interval_seconds``, until cancelled.

    A failed cycle is logged and skipped; the schedule is kept.  Only
    cancellation ends the loop.
    """
    logger.info("poller: refreshing every %gs", interval_seconds)
    while True:
        try:
            await refresh_and_notify(service, hub)
        except BankerError as exc:
            logger.warning("poller: cycle skipped: %s", exc)
        except Exception:
            logger.exception("poller: unexpected failure, cycle skipped")
        await asyncio.sleep(interval_seconds)
