"""Push-reload channel for connected report pages.

Every open report page holds a WebSocket to ``/ws``.  After each committed
mutation the server sends ``"reload"`` to all of them and the page reloads
itself.  Delivery is best effort: a client whose socket has gone away is
dropped from the hub.
"""

from __future__ import annotations

import logging

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

logger = logging.getLogger(__name__)

RELOAD_MESSAGE = "reload"


class ReloadHub:
    """Set of connected report clients."""

    def __init__(self) -> None:
        self._clients: set[WebSocket] = set()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self._clients.add(websocket)
        logger.debug("reload: client connected (%d open)", len(self._clients))

    def disconnect(self, websocket: WebSocket) -> None:
        self._clients.discard(websocket)
        logger.debug("reload: client disconnected (%d open)", len(self._clients))

    async def broadcast(self, message: str = RELOAD_MESSAGE) -> None:
        """Send ``message`` to every connected client."""
        for websocket in list(self._clients):
            try:
                await websocket.send_text(message)
            except (WebSocketDisconnect, RuntimeError):
                # Socket closed between the last receive and this send.
                self.disconnect(websocket)
