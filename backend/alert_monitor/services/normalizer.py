"""
Alert normalizer

Maps the upstream payload into Alert candidates. Three payload shapes are
recognized:

    ARRAY         [record, ...]
    ALERTS        {"alerts": [record, ...]}
    DATA          {"data": [record, ...]}

Anything else is UNRECOGNIZED and yields no candidates (feed format drift
degrades to "nothing new" instead of breaking the polling loop).

A record is either an object or a bare location string. Candidates are not
deduplicated here.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone, tzinfo
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from alert_monitor.core.clock import epoch_millis, get_server_zone, localize, now_local, to_local
from alert_monitor.models.alert import Alert, parse_timestamp

logger = logging.getLogger(__name__)

LOCATION_FIELDS = ("location", "city", "area", "name")
TIME_FIELDS = ("time", "timestamp")
UNKNOWN_LOCATION = "Unknown"

# Epoch values above this are millis, below are seconds
_MILLIS_THRESHOLD = 10 ** 12

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


class PayloadShape(str, Enum):
    ARRAY = "array"
    ALERTS = "alerts"
    DATA = "data"
    UNRECOGNIZED = "unrecognized"


def classify_payload(raw: Any) -> Tuple[PayloadShape, List[Any]]:
    """Tag the payload with its shape and return the record list for that shape."""
    if isinstance(raw, list):
        return PayloadShape.ARRAY, raw
    if isinstance(raw, dict):
        if isinstance(raw.get("alerts"), list):
            return PayloadShape.ALERTS, raw["alerts"]
        if isinstance(raw.get("data"), list):
            return PayloadShape.DATA, raw["data"]
    return PayloadShape.UNRECOGNIZED, []


def describe_payload(raw: Any) -> Dict[str, Any]:
    """Shape metadata for diagnosing feed-format drift."""
    shape, records = classify_payload(raw)
    sample_keys: List[str] = []
    for record in records:
        if isinstance(record, dict):
            sample_keys = sorted(str(k) for k in record.keys())
            break
    return {
        "shape": shape.value,
        "type": type(raw).__name__,
        "topLevelKeys": sorted(str(k) for k in raw.keys()) if isinstance(raw, dict) else None,
        "recordCount": len(records),
        "sampleRecordKeys": sample_keys,
    }


def _first_present(record: Dict[str, Any], fields: Tuple[str, ...]) -> Any:
    for field in fields:
        value = record.get(field)
        if value is not None and value != "":
            return value
    return None


def parse_source_time(value: Any, now: datetime, zone: Optional[tzinfo] = None) -> datetime:
    """
    Interpret an upstream time value in the server zone.

    Accepts epoch seconds/millis, ISO-8601 strings and bare HH:MM[:SS] clock
    times (the most recent occurrence at or before `now`). Anything else
    falls back to `now`.
    """
    if value is None or isinstance(value, bool):
        return now

    if isinstance(value, (int, float)):
        seconds = value / 1000.0 if abs(value) >= _MILLIS_THRESHOLD else float(value)
        try:
            return to_local(datetime.fromtimestamp(seconds, tz=timezone.utc), zone)
        except (OverflowError, OSError, ValueError):
            return now

    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return parse_source_time(int(text), now, zone)

        match = _CLOCK_RE.match(text)
        if match:
            hour, minute, second = int(match.group(1)), int(match.group(2)), int(match.group(3) or 0)
            if hour < 24 and minute < 60 and second < 60:
                wall = now.replace(tzinfo=None, hour=hour, minute=minute, second=second, microsecond=0)
                moment = localize(wall, zone)
                if moment > now:
                    # Most recent past occurrence: "23:59" polled just after midnight is yesterday
                    moment = localize(wall - timedelta(days=1), zone)
                return moment
            return now

        parsed = parse_timestamp(text)
        if parsed is None:
            # "2024-05-01 12:30:00" style
            try:
                parsed = datetime.fromisoformat(text.replace(" ", "T", 1))
            except ValueError:
                return now
        if parsed.tzinfo is None:
            return localize(parsed, zone)
        return to_local(parsed, zone)

    return now


def normalize_record(record: Any, now: datetime, zone: Optional[tzinfo] = None) -> Optional[Alert]:
    if isinstance(record, str):
        location = record.strip() or UNKNOWN_LOCATION
        return Alert.from_moment(f"{location}_{epoch_millis(now)}", location, now)

    if not isinstance(record, dict):
        return None

    location = _first_present(record, LOCATION_FIELDS)
    location = str(location).strip() if location is not None else UNKNOWN_LOCATION
    location = location or UNKNOWN_LOCATION

    moment = parse_source_time(_first_present(record, TIME_FIELDS), now, zone)

    native_id = record.get("id")
    if native_id is not None and native_id != "":
        alert_id = str(native_id)
    else:
        alert_id = f"{location}_{epoch_millis(moment)}"

    return Alert.from_moment(alert_id, location, moment)


def normalize(raw: Any, now: Optional[datetime] = None, zone: Optional[tzinfo] = None) -> List[Alert]:
    """Turn a raw payload into Alert candidates, in payload order."""
    if zone is None:
        zone = get_server_zone()
    now = to_local(now, zone) if now is not None else now_local(zone)

    shape, records = classify_payload(raw)
    if shape is PayloadShape.UNRECOGNIZED:
        if raw not in (None, [], {}):
            logger.info(f"[INGEST] Unrecognized payload shape ({type(raw).__name__}), no candidates")
        return []

    candidates: List[Alert] = []
    skipped = 0
    for record in records:
        alert = normalize_record(record, now, zone)
        if alert is None:
            skipped += 1
            continue
        candidates.append(alert)

    if skipped:
        logger.debug(f"[INGEST] Skipped {skipped} non-object records in {shape.value} payload")
    return candidates
