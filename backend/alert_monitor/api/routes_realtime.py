"""Real-time channel: clients receive {"event": "newAlert", "data": alert} messages."""
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
import logging

from alert_monitor.deps.services import get_connection_manager
from alert_monitor.services.websocket_manager import ConnectionManager

logger = logging.getLogger(__name__)
router = APIRouter()


@router.websocket("/ws")
async def alerts_websocket(websocket: WebSocket):
    manager = websocket.app.state.connections
    await manager.connect(websocket)
    try:
        # Clients don't send anything meaningful; reading keeps the socket open
        # and surfaces the disconnect.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await manager.disconnect(websocket)


@router.get("/api/realtime/status")
def realtime_status(manager: ConnectionManager = Depends(get_connection_manager)):
    """Connected WebSocket clients (no auth required)"""
    return {"connected": manager.connection_count}
