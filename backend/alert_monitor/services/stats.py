from __future__ import annotations

from typing import Any, Dict, Optional


def _hour_of(time_value: Any) -> Optional[int]:
    if not isinstance(time_value, str) or ":" not in time_value:
        return None
    head = time_value.split(":", 1)[0].strip()
    if not head.isdigit():
        return None
    return int(head)


def aggregate(store: Dict[str, Any]) -> Dict[str, Any]:
    """
    Statistics over the whole alert store.

    "Most active" keeps the first day/location to reach the maximum while
    scanning in insertion order; later ties do not take the lead.
    """
    total_alerts = 0
    by_location: Dict[str, int] = {}
    by_hour: Dict[int, int] = {}
    most_active_day: Optional[Dict[str, Any]] = None

    for date, alerts in store.items():
        if not isinstance(alerts, list):
            alerts = []
        day_count = 0
        for alert in alerts:
            if not isinstance(alert, dict):
                continue
            day_count += 1
            location = str(alert.get("location") or "Unknown")
            by_location[location] = by_location.get(location, 0) + 1
            hour = _hour_of(alert.get("time"))
            if hour is not None:
                by_hour[hour] = by_hour.get(hour, 0) + 1
        total_alerts += day_count
        if day_count > 0 and (most_active_day is None or day_count > most_active_day["count"]):
            most_active_day = {"date": date, "count": day_count}

    most_active_location = None
    best = 0
    for location, count in by_location.items():
        if count > best:
            best = count
            most_active_location = location

    return {
        "totalDays": len(store),
        "totalAlerts": total_alerts,
        "alertsByLocation": by_location,
        "alertsByHour": by_hour,
        "mostActiveDay": most_active_day,
        "mostActiveLocation": most_active_location,
    }
