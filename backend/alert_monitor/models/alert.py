from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Alert:
    """One normalized alert as stored in the per-day alert store."""

    id: str
    location: str
    time: str  # HH:MM in the server zone
    timestamp: str  # ISO-8601 with UTC offset
    date: str  # YYYY-MM-DD in the server zone

    @classmethod
    def from_moment(cls, alert_id: str, location: str, moment: datetime) -> "Alert":
        """Build an alert from an aware datetime already expressed in the server zone."""
        return cls(
            id=alert_id,
            location=location,
            time=moment.strftime("%H:%M"),
            timestamp=moment.isoformat(timespec="milliseconds"),
            date=moment.strftime("%Y-%m-%d"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse a stored ISO-8601 timestamp; 'Z' suffix allowed. None when unparseable."""
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def timestamp_millis(value: Any) -> Optional[int]:
    """Epoch millis of a stored timestamp (naive values read as local time)."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    return int(round(parsed.timestamp() * 1000))
