"""Read-only queries over the alert store (no writes, no locking needed)."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from alert_monitor.models.alert import parse_timestamp

DEFAULT_LIMIT = 100
MAX_LIMIT = 1000

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def alerts_for_date(store: Dict[str, Any], date: str) -> List[Dict[str, Any]]:
    alerts = store.get(date)
    return list(alerts) if isinstance(alerts, list) else []


def _sort_key(alert: Dict[str, Any]) -> datetime:
    parsed = parse_timestamp(alert.get("timestamp"))
    if parsed is None:
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def query_alerts(
    store: Dict[str, Any],
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    limit: int = DEFAULT_LIMIT,
    offset: int = 0,
) -> Dict[str, Any]:
    """
    Alerts in the inclusive [date_from, date_to] range, newest first, paginated.

    Dates are YYYY-MM-DD, so plain string comparison orders them.
    """
    selected: List[Dict[str, Any]] = []
    for date, alerts in store.items():
        if date_from and date < date_from:
            continue
        if date_to and date > date_to:
            continue
        if isinstance(alerts, list):
            selected.extend(a for a in alerts if isinstance(a, dict))

    selected.sort(key=_sort_key, reverse=True)
    return {
        "alerts": selected[offset:offset + limit],
        "total": len(selected),
        "limit": limit,
        "offset": offset,
    }
