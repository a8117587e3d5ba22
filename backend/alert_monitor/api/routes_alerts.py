"""Read-only alert endpoints: alerts by date, range queries and statistics."""
from fastapi import APIRouter, Depends, HTTPException, Path, Query
from typing import Any, Dict, List, Optional
import logging

from alert_monitor.deps.services import get_storage
from alert_monitor.schemas.alerts import AlertsPage, StatsResponse
from alert_monitor.services.alert_queries import DEFAULT_LIMIT, MAX_LIMIT, alerts_for_date, query_alerts
from alert_monitor.services.stats import aggregate
from alert_monitor.services.storage import ALERTS_DOC, JsonStorage, StorageError

logger = logging.getLogger(__name__)
router = APIRouter()

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def _load_store(storage: JsonStorage) -> Dict[str, Any]:
    try:
        return storage.load(ALERTS_DOC)
    except StorageError as e:
        logger.error(f"Error loading alert store: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Alert store unavailable: {e}")


@router.get("/alerts", response_model=AlertsPage)
def list_alerts(
    date_from: Optional[str] = Query(None, alias="from", pattern=DATE_PATTERN, description="First date (YYYY-MM-DD), inclusive"),
    date_to: Optional[str] = Query(None, alias="to", pattern=DATE_PATTERN, description="Last date (YYYY-MM-DD), inclusive"),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    offset: int = Query(0, ge=0),
    storage: JsonStorage = Depends(get_storage),
):
    """Alerts across a date range, newest first."""
    store = _load_store(storage)
    return query_alerts(store, date_from=date_from, date_to=date_to, limit=limit, offset=offset)


@router.get("/alerts/{date}", response_model=List[Dict[str, Any]])
def get_alerts_for_date(
    date: str = Path(..., pattern=DATE_PATTERN),
    storage: JsonStorage = Depends(get_storage),
):
    return alerts_for_date(_load_store(storage), date)


@router.get("/stats", response_model=StatsResponse)
def get_stats(storage: JsonStorage = Depends(get_storage)):
    return aggregate(_load_store(storage))
