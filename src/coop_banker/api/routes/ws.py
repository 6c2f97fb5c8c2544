"""WebSocket command channel.

Report pages connect to ``/ws`` and stay subscribed to reload pushes.  They
may also send commands over the same socket:

    reload                               poll the feed now
    transfer;<amount>;<sender>;<receiver> record a manual transfer

A successful command makes the server push ``reload`` to every client.  A
rejected one answers ``error;<reason>`` to the sender only.
"""

import asyncio
import logging

from fastapi import APIRouter, WebSocket
from starlette.websockets import WebSocketDisconnect

from coop_banker.api.polling import refresh_and_notify
from coop_banker.api.reload import RELOAD_MESSAGE, ReloadHub
from coop_banker.api.routes.utils import parse_transfer_message
from coop_banker.core.service import BankerService
from coop_banker.ledger.errors import BankerError

logger = logging.getLogger(__name__)


def router(service: BankerService, hub: ReloadHub) -> APIRouter:
    """Build the WebSocket router."""
    api = APIRouter()

    async def _handle(websocket: WebSocket, message: str) -> None:
        command = message.split(";", 1)[0]

        if command == RELOAD_MESSAGE:
            logger.info("ws: reload requested")
            try:
                await refresh_and_notify(service, hub)
            except BankerError as exc:
                logger.warning("ws: reload failed: %s", exc)
                await websocket.send_text(f"error;{exc}")
            return

        if command == "transfer":
            logger.info("ws: transfer requested")
            try:
                amount, sender, receiver = parse_transfer_message(message)
                await asyncio.to_thread(service.transfer, amount, sender, receiver)
            except (ValueError, BankerError) as exc:
                logger.warning("ws: transfer rejected: %s", exc)
                await websocket.send_text(f"error;{exc}")
                return
            await hub.broadcast()
            return

        logger.error("ws: unknown message %r", message)
        await websocket.send_text(f"error;unknown command {command!r}")

    @api.websocket("/ws")
    async def command_socket(websocket: WebSocket):
        await hub.connect(websocket)
        try:
            while True:
                message = await websocket.receive_text()
                await _handle(websocket, message)
        except WebSocketDisconnect:
            logger.info("ws: client disconnected")
        finally:
            hub.disconnect(websocket)

    return api
