"""Ledger endpoints (report, refresh, transfer)."""

import asyncio
import logging

from fastapi import APIRouter, HTTPException

from coop_banker.api.models import (
    CommandResponse,
    RefreshResponse,
    ReportResponse,
    TransferRequest,
)
from coop_banker.api.polling import refresh_and_notify
from coop_banker.api.reload import ReloadHub
from coop_banker.api.routes.utils import transfer_error_status
from coop_banker.core.service import BankerService
from coop_banker.ledger.errors import (
    FeedFetchError,
    LedgerStoreError,
    MalformedRecordError,
    TransferError,
)

logger = logging.getLogger(__name__)


def router(service: BankerService, hub: ReloadHub) -> APIRouter:
    """Build the ledger router with access to the banker service."""
    api = APIRouter(prefix="/api")

    @api.get("/report", response_model=ReportResponse)
    async def get_report():
        """Current ledger report (last committed state)."""
        return ReportResponse.from_report(service.report())

    @api.post("/refresh", response_model=RefreshResponse)
    async def refresh():
        """
        Poll the feed now and reconcile.

        A feed failure leaves the ledger untouched and answers 502; the last
        committed report stays available.
        """
        try:
            result = await refresh_and_notify(service, hub)
        except FeedFetchError as exc:
            raise HTTPException(status_code=502, detail=f"Feed unavailable: {exc}") from exc
        except MalformedRecordError as exc:
            raise HTTPException(status_code=502, detail=f"Feed sent a bad record: {exc}") from exc
        except LedgerStoreError as exc:
            logger.error("refresh: ledger flush failed: %s", exc)
            raise HTTPException(status_code=500, detail="Ledger could not be saved") from exc

        return RefreshResponse(
            new_transactions=result.new_transactions,
            marker_added=result.marker_added,
            drift=result.drift,
            drift_exceeded=result.drift_warning is not None,
        )

    @api.post("/transfer", response_model=CommandResponse)
    async def transfer(request: TransferRequest):
        """
        Record a manual transfer between two members.

        Unknown members answer 404; a reserved actor or a bad amount answers
        400.  A transfer to oneself succeeds without changing anything.
        """
        try:
            await asyncio.to_thread(
                service.transfer, request.amount, request.sender, request.receiver
            )
        except TransferError as exc:
            raise HTTPException(status_code=transfer_error_status(exc), detail=str(exc)) from exc
        except LedgerStoreError as exc:
            logger.error("transfer: ledger flush failed: %s", exc)
            raise HTTPException(status_code=500, detail="Ledger could not be saved") from exc

        await hub.broadcast()
        return CommandResponse(
            success=True,
            message=f"{request.sender} transferred {request.amount:g} to {request.receiver}",
        )

    return api
