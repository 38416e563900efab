# @role: WebSocket connection manager that fans quote updates out to clients
# @used_by: main.py
# @filter_type: system
# @tags: websocket, broadcast, stream
import asyncio
import logging
from typing import List, Optional, Set

from fastapi import WebSocket

from util.portfolio_schema import Quote

logger = logging.getLogger("stream_hub")

STOCK_UPDATE_EVENT = "stockUpdate"


def stock_update_message(quotes: List[Quote]) -> dict:
    return {"event": STOCK_UPDATE_EVENT, "data": [q.to_json_dict() for q in quotes]}


class StreamHub:
    """
    Tracks connected sockets. ``broadcast`` runs on the event loop;
    ``publish`` may be called from any thread (the scheduler's) and hands the
    broadcast to the loop bound with ``bind_loop``.
    """

    def __init__(self):
        self.connections: Set[WebSocket] = set()
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def bind_loop(self, loop: Optional[asyncio.AbstractEventLoop]) -> None:
        self._loop = loop

    async def connect(self, ws: WebSocket) -> None:
        await ws.accept()
        self.connections.add(ws)
        logger.info(f"[WS] Client connected ({len(self.connections)} total)")

    def disconnect(self, ws: WebSocket) -> None:
        self.connections.discard(ws)
        logger.info(f"[WS] Client disconnected ({len(self.connections)} total)")

    async def broadcast(self, message: dict) -> None:
        dead = set()
        for ws in list(self.connections):
            try:
                await ws.send_json(message)
            except Exception:
                logger.warning("[WS] Dropping socket after failed send", exc_info=True)
                dead.add(ws)
        self.connections -= dead

    def publish(self, quotes: List[Quote]) -> None:
        """Simulator subscriber: schedule a stockUpdate broadcast on the bound loop."""
        loop = self._loop
        if loop is None or loop.is_closed() or not self.connections:
            return
        asyncio.run_coroutine_threadsafe(self.broadcast(stock_update_message(quotes)), loop)
