"""API route registration."""

from fastapi import FastAPI

from coop_banker.api.reload import ReloadHub
from coop_banker.api.routes import health, ledger, ws
from coop_banker.core.service import BankerService


def register_routes(app: FastAPI, service: BankerService, hub: ReloadHub) -> None:
    """Register all API routes with the FastAPI app."""
    app.include_router(health.router(hub))
    app.include_router(ledger.router(service, hub))
    app.include_router(ws.router(service, hub))
