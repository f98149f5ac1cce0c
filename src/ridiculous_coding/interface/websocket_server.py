"""
WebSocket server for the XP panel.

Bridges browser panels to StateSync: every connected client receives the
outbound messages, and client frames are dispatched as panel commands.
"""

import asyncio
import json
import logging

import websockets
from websockets.exceptions import ConnectionClosed

from ..errors import ChannelClosedError
from .sync import StateSync

logger = logging.getLogger(__name__)


class PanelWebSocketServer:
    """WebSocket server that acts as the StateSync channel."""

    def __init__(self, sync: StateSync, host: str = "localhost", port: int = 8765):
        self.sync = sync
        self.host = host
        self.port = port
        self.clients: set = set()
        self._server = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.port}"

    async def start(self):
        """Start the WebSocket server."""
        self._loop = asyncio.get_running_loop()
        self._server = await websockets.serve(self._handle_client, self.host, self.port)
        logger.info(f"Panel server started on {self.url}")

    async def stop(self):
        """Stop the server and close all client connections."""
        self.sync.detach(self)
        if self._server:
            self._server.close()
            await self._server.wait_closed()
        for client in list(self.clients):
            await client.close()
        self.clients.clear()
        logger.info("Panel server stopped")

    # -------------------------------------------------------------------------
    # MessageChannel
    # -------------------------------------------------------------------------

    def send(self, payload: dict) -> None:
        """Queue a broadcast on the loop. Never blocks."""
        if not self.clients or self._loop is None or self._loop.is_closed():
            raise ChannelClosedError("no panel clients connected")
        task = self._loop.create_task(self.broadcast(json.dumps(payload)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def broadcast(self, message: str):
        """Send a raw frame to all connected clients."""
        disconnected = set()
        for client in list(self.clients):
            try:
                await client.send(message)
            except ConnectionClosed:
                disconnected.add(client)

        self.clients -= disconnected
        if not self.clients:
            self.sync.detach(self)

    # -------------------------------------------------------------------------
    # Clients
    # -------------------------------------------------------------------------

    async def _handle_client(self, websocket):
        """Handle a single panel connection."""
        self.clients.add(websocket)
        self.sync.attach(self)
        logger.info(f"Panel connected. Total clients: {len(self.clients)}")

        try:
            async for message in websocket:
                self.sync.handle(message)
        except ConnectionClosed:
            logger.info("Panel disconnected")
        finally:
            self.clients.discard(websocket)
            if not self.clients:
                self.sync.detach(self)
            logger.info(f"Panel removed. Total clients: {len(self.clients)}")
