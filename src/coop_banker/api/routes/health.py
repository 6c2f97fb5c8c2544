"""Health endpoint.

``/health`` is a liveness check that also reports the running version, read
from ``coop_banker.__version__``.
"""

from fastapi import APIRouter

from coop_banker import __version__
from coop_banker.api.reload import ReloadHub


def router(hub: ReloadHub) -> APIRouter:
    """Build the health router."""
    api = APIRouter()

    @api.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "ok", "version": __version__, "connected_clients": hub.client_count}

    return api
