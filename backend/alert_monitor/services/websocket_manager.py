"""
WebSocket Manager Service
Tracks connected dashboard clients and pushes newAlert events to them
"""

import asyncio
import logging
from typing import Any, Dict, List

from fastapi import WebSocket

from alert_monitor.services.events import NewAlert

logger = logging.getLogger(__name__)


class ConnectionManager:
    def __init__(self):
        self._connections: List[WebSocket] = []
        self._lock = asyncio.Lock()

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections.append(websocket)
        logger.info(f"[WS] Client connected ({self.connection_count} total)")

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            if websocket in self._connections:
                self._connections.remove(websocket)
        logger.info(f"[WS] Client disconnected ({self.connection_count} total)")

    async def broadcast(self, message: Dict[str, Any]) -> int:
        """Send to every client; clients that fail are dropped. Returns successful sends."""
        async with self._lock:
            targets = list(self._connections)

        sent = 0
        dead: List[WebSocket] = []
        for websocket in targets:
            try:
                await websocket.send_json(message)
                sent += 1
            except Exception as e:
                logger.warning(f"[WS] Dropping client after send failure: {e}")
                dead.append(websocket)

        for websocket in dead:
            await self.disconnect(websocket)
        return sent

    async def handle_event(self, event: Any) -> None:
        """EventBus handler: forwards NewAlert events to all clients."""
        if isinstance(event, NewAlert):
            await self.broadcast(event.to_message())
