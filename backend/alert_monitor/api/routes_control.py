"""
Operational endpoints: manual ingestion, feed diagnostics and health.

/api/debug exposes the raw upstream payload together with its detected shape,
for diagnosing feed-format drift.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from datetime import datetime, timezone
import asyncio
import logging

from alert_monitor.deps.services import get_scheduler
from alert_monitor.schemas.alerts import CheckNowResponse
from alert_monitor.services.feed_client import is_failure
from alert_monitor.services.normalizer import describe_payload
from alert_monitor.services.scheduler import STATUS_FEED_FAILURE, AlertScheduler
from alert_monitor.services.storage import StorageError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/check-now", response_model=CheckNowResponse)
async def check_now(scheduler: AlertScheduler = Depends(get_scheduler)):
    """Run one ingestion cycle now (waits for an in-flight scheduled cycle)."""
    try:
        result = await scheduler.run_cycle(wait=True)
    except StorageError as e:
        logger.error(f"check-now failed on storage: {e}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"success": False, "status": "storage_error", "error": str(e)},
        )

    if result.status == STATUS_FEED_FAILURE:
        return JSONResponse(
            status_code=502,
            content={
                "success": False,
                "status": result.status,
                "error": f"{result.failure.reason}: {result.failure.message}",
            },
        )

    return {
        "success": True,
        "status": result.status,
        "candidates": result.candidates,
        "accepted": len(result.accepted),
        "alerts": [alert.to_dict() for alert in result.accepted],
    }


@router.get("/debug")
async def debug_feed(scheduler: AlertScheduler = Depends(get_scheduler)):
    """Raw upstream payload plus shape metadata."""
    payload = await asyncio.to_thread(scheduler.feed_client.fetch)
    if is_failure(payload):
        return {
            "success": False,
            "source": scheduler.feed_client.source,
            "error": f"{payload.reason}: {payload.message}",
            "statusCode": payload.status_code,
        }
    return {
        "success": True,
        "source": scheduler.feed_client.source,
        "apiResponse": payload,
        **describe_payload(payload),
    }


@router.get("/test-connection")
async def test_connection(scheduler: AlertScheduler = Depends(get_scheduler)):
    probe = await asyncio.to_thread(scheduler.feed_client.probe)
    return {"success": probe["ok"], **probe}


@router.get("/health")
def api_health(scheduler: AlertScheduler = Depends(get_scheduler)):
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "scheduler": scheduler.status(),
    }
