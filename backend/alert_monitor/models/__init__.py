from alert_monitor.models.alert import Alert, parse_timestamp, timestamp_millis

__all__ = [
    "Alert",
    "parse_timestamp",
    "timestamp_millis",
]
