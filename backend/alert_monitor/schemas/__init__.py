from alert_monitor.schemas.alerts import (
    AlertItem,
    AlertsPage,
    CheckNowResponse,
    MostActiveDay,
    StatsResponse,
)

__all__ = [
    "AlertItem",
    "AlertsPage",
    "CheckNowResponse",
    "MostActiveDay",
    "StatsResponse",
]
