"""
Game data blob endpoints.

The document is stored verbatim and never interpreted by the alert pipeline.
A rejected write leaves the stored document untouched.
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
import json
import logging
from typing import Optional

from alert_monitor.deps.services import get_storage
from alert_monitor.services.storage import GAME_DATA_DOC, JsonStorage, StorageError

logger = logging.getLogger(__name__)
router = APIRouter()


def _client_error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


async def _read_capped_body(request: Request, max_bytes: int) -> Optional[bytes]:
    """The request body, or None as soon as it is known to exceed max_bytes."""
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > max_bytes:
        return None

    chunks = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > max_bytes:
            return None
        chunks.append(chunk)
    return b"".join(chunks)


@router.get("/gameData")
def get_game_data(storage: JsonStorage = Depends(get_storage)):
    try:
        return storage.load(GAME_DATA_DOC)
    except StorageError as e:
        logger.error(f"Error loading game data: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/gameData")
async def save_game_data(request: Request, storage: JsonStorage = Depends(get_storage)):
    max_bytes = request.app.state.settings.GAME_DATA_MAX_BYTES
    body = await _read_capped_body(request, max_bytes)
    if body is None:
        return _client_error(413, f"Body exceeds {max_bytes} bytes")

    try:
        data = json.loads(body.decode("utf-8") or "{}")
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        return _client_error(400, f"Invalid JSON: {e}")
    if not isinstance(data, dict):
        return _client_error(400, f"Expected a JSON object, got {type(data).__name__}")

    try:
        storage.save(GAME_DATA_DOC, data)
    except StorageError as e:
        logger.error(f"Error saving game data: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})
    return {"success": True}
