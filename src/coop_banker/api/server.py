"""
FastAPI server for the co-op banker.

This module builds the application that serves the report page, the JSON
API, and the WebSocket command channel.  It sets up:
- The banker service (ledger store + feed client) from configuration
- The reload hub that pushes ``reload`` to open report pages
- A background task that polls the feed on a fixed interval
- All API and web routes

The server binds to 127.0.0.1:7878 by default.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

import coop_banker.config as config_module
from coop_banker import __version__
from coop_banker.api.polling import poll_feed
from coop_banker.api.reload import ReloadHub
from coop_banker.api.routes import register_routes
from coop_banker.config import BankerConfig
from coop_banker.core.service import BankerService
from coop_banker.feed.client import FeedClient
from coop_banker.ledger.store import LedgerStore
from coop_banker.web.routes import register_web_routes

logger = logging.getLogger(__name__)


# ============================================================================
# SERVICE CONSTRUCTION
# ============================================================================


def build_service(cfg: BankerConfig | None = None) -> BankerService:
    """
    Load the ledger and wire up the feed client.

    Args:
        cfg: Configuration to use (defaults to the module-level config).

    Returns:
        A service owning a loaded ledger store.

    Raises:
        LedgerNotFoundError: The ledger file does not exist.
        SchemaVersionError: The ledger file has an unsupported version.
        LedgerStoreError: The ledger file could not be read or decoded.
    """
    cfg = cfg or config_module.config

    store = LedgerStore(cfg.ledger.absolute_path)
    store.load()

    feed = None
    if cfg.feed.is_configured:
        feed = FeedClient(
            api_url=cfg.feed.api_url,
            api_key=cfg.feed.api_key,
            profile_uuid=cfg.feed.profile_uuid,
            timeout_seconds=cfg.feed.timeout_seconds,
        )
    else:
        logger.warning("feed credentials missing; refresh is disabled")

    return BankerService(store, feed, recent_operations=cfg.report.recent_operations)


# ============================================================================
# APPLICATION FACTORY
# ============================================================================


def create_app(
    service: BankerService | None = None,
    *,
    cfg: BankerConfig | None = None,
    poll: bool = True,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        service: Pre-built service (tests pass one backed by a temp ledger).
            Built from ``cfg`` when omitted.
        cfg: Configuration to use (defaults to the module-level config).
        poll: Start the background feed poller with the app.

    Returns:
        Configured FastAPI application.  ``app.state.service`` and
        ``app.state.hub`` hold the shared service and reload hub.
    """
    cfg = cfg or config_module.config
    service = service or build_service(cfg)
    hub = ReloadHub()
    interval_seconds = cfg.feed.poll_interval_minutes * 60

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Start the poller on startup and cancel it on shutdown."""
        logger.info("Starting co-op banker v%s", __version__)
        poller = None
        if poll:
            poller = asyncio.create_task(poll_feed(service, hub, interval_seconds))
        yield
        if poller is not None:
            poller.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await poller
        logger.info("Co-op banker stopped")

    app = FastAPI(title="Co-op Banker", version=__version__, lifespan=lifespan)
    app.state.service = service
    app.state.hub = hub

    register_routes(app, service, hub)
    register_web_routes(app, service, timezone=cfg.report.timezone)
    return app


# ============================================================================
# SERVER STARTUP
# ============================================================================


def start_server(host: str | None = None, port: int | None = None) -> None:
    """
    Build the app from configuration and serve it with uvicorn.

    Args:
        host: Interface to bind (defaults to ``[server] host``).
        port: Port to listen on (defaults to ``[server] port``).
    """
    import uvicorn

    cfg = config_module.config
    app = create_app(cfg=cfg)
    uvicorn.run(
        app,
        host=host or cfg.server.host,
        port=port or cfg.server.port,
        log_config=None,
    )
