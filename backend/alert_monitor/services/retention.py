"""Rolling retention for the processed-keys table."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from alert_monitor.services.storage import PROCESSED_DOC, JsonStorage

logger = logging.getLogger(__name__)

RETENTION_DAYS = 7


def embedded_millis(alert_id: str) -> Optional[int]:
    """
    The epoch millis after the last '_' of a synthesized id, or None.

    Only a 13-digit suffix counts; native ids like "alert_42" have no
    embedded time.
    """
    if not isinstance(alert_id, str) or "_" not in alert_id:
        return None
    suffix = alert_id.rsplit("_", 1)[1]
    if len(suffix) != 13 or not suffix.isdigit():
        return None
    return int(suffix)


def sweep(
    keys: Dict[str, bool],
    now: Optional[datetime] = None,
    retention_days: int = RETENTION_DAYS,
) -> Dict[str, bool]:
    """
    Drop keys whose embedded millis are older than the retention window.

    Ids without a parseable millis suffix are kept; a malformed id must never
    cause mass deletion.
    """
    now = now or datetime.now(timezone.utc)
    cutoff_ms = int((now - timedelta(days=retention_days)).timestamp() * 1000)
    kept: Dict[str, bool] = {}
    for alert_id, marker in keys.items():
        millis = embedded_millis(alert_id)
        if millis is not None and millis < cutoff_ms:
            continue
        kept[alert_id] = marker
    return kept


class RetentionSweeper:
    def __init__(self, storage: JsonStorage, retention_days: int = RETENTION_DAYS):
        self.storage = storage
        self.retention_days = retention_days

    def run(self, now: Optional[datetime] = None) -> int:
        """Sweep the persisted table. Returns the number of removed keys."""
        with self.storage.locked(PROCESSED_DOC):
            keys = self.storage.load(PROCESSED_DOC)
            kept = sweep(keys, now, self.retention_days)
            removed = len(keys) - len(kept)
            if removed:
                self.storage.save(PROCESSED_DOC, kept)
        logger.info(f"[SWEEP] removed={removed} kept={len(kept)} retention_days={self.retention_days}")
        return removed
