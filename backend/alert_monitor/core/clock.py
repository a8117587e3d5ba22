"""
Server time zone helpers

Alert dates and HH:MM times are always expressed in the server zone. The zone
is the host's local zone unless TIMEZONE names a pytz zone.

Usage:
    from alert_monitor.core.clock import now_local, to_local

    today = now_local().strftime("%Y-%m-%d")
"""
import logging
from datetime import datetime, timezone, tzinfo
from typing import Optional

import pytz

from alert_monitor.core.config import settings

logger = logging.getLogger(__name__)


def get_server_zone(zone_name: Optional[str] = None) -> Optional[tzinfo]:
    """
    Resolve the configured zone.

    Returns:
        A pytz zone when TIMEZONE (or zone_name) is set and valid,
        None to mean "host local zone"
    """
    name = (zone_name if zone_name is not None else settings.TIMEZONE) or ""
    name = name.strip()
    if not name:
        return None
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        logger.warning(f"Unknown TIMEZONE value '{name}', falling back to host local zone")
        return None


def to_local(moment: datetime, zone: Optional[tzinfo] = None) -> datetime:
    """Convert an aware datetime to the server zone (naive input is taken as UTC)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    if zone is None:
        return moment.astimezone()
    return moment.astimezone(zone)


def localize(naive: datetime, zone: Optional[tzinfo] = None) -> datetime:
    """Attach the server zone to a naive wall-clock datetime."""
    if zone is None:
        return naive.astimezone()
    if hasattr(zone, "localize"):
        return zone.localize(naive)
    return naive.replace(tzinfo=zone)


def now_local(zone: Optional[tzinfo] = None) -> datetime:
    return to_local(datetime.now(timezone.utc), zone)


def epoch_millis(moment: datetime) -> int:
    return int(round(moment.timestamp() * 1000))
