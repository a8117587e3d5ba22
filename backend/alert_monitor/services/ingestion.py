"""
Dedup & ingestion engine.

Duplicate checks guarding the alert store, in order:

1. Identity key: an id already present in the processed-keys table is skipped.
   An id that is no longer in the table (swept) but still sits in the store
   is re-marked and skipped too, so an id is never stored twice.
2. Dedup window: an alert whose day sequence already holds the same location
   within DEDUP_WINDOW_MS is marked processed but not stored. Upstream records
   without stable ids get a synthesized `location_millis` id, so the same event
   seen a second later arrives under a different id; the window catches it.
   The duplicate is discarded, never merged into the stored alert.

ingest() is pure and works on copies. IngestionEngine wraps it with the
load/save through storage. Notifying subscribers is the caller's job.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from alert_monitor.core.logging_config import get_ingest_logger
from alert_monitor.models.alert import Alert, timestamp_millis
from alert_monitor.services.storage import ALERTS_DOC, PROCESSED_DOC, JsonStorage

logger = logging.getLogger(__name__)
audit_log = get_ingest_logger()

DEDUP_WINDOW_MS = 5000

AlertStore = Dict[str, List[Dict[str, Any]]]
ProcessedKeys = Dict[str, bool]


@dataclass
class IngestResult:
    accepted: List[Alert] = field(default_factory=list)
    store: AlertStore = field(default_factory=dict)
    keys: ProcessedKeys = field(default_factory=dict)
    window_duplicates: int = 0
    stored_ids: int = 0
    known_ids: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.accepted) or self.window_duplicates > 0 or self.stored_ids > 0


def _copy_store(store: AlertStore) -> AlertStore:
    copied: AlertStore = {}
    for date, alerts in store.items():
        copied[date] = list(alerts) if isinstance(alerts, list) else []
    return copied


def find_window_duplicate(
    day_alerts: Iterable[Dict[str, Any]],
    candidate: Alert,
    window_ms: int = DEDUP_WINDOW_MS,
) -> Optional[Dict[str, Any]]:
    """Return the stored alert at the same location within window_ms, if any."""
    candidate_ms = timestamp_millis(candidate.timestamp)
    if candidate_ms is None:
        return None
    for existing in day_alerts:
        if not isinstance(existing, dict) or existing.get("location") != candidate.location:
            continue
        existing_ms = timestamp_millis(existing.get("timestamp"))
        if existing_ms is None:
            continue
        if abs(existing_ms - candidate_ms) < window_ms:
            return existing
    return None


def ingest(
    candidates: Iterable[Alert],
    store: AlertStore,
    keys: ProcessedKeys,
    window_ms: int = DEDUP_WINDOW_MS,
) -> IngestResult:
    """
    Merge candidates into the store, in order.

    Returns:
        IngestResult with the accepted alerts and the updated store/keys copies
    """
    result = IngestResult(store=_copy_store(store), keys=dict(keys))
    stored = {
        alert.get("id")
        for alerts in result.store.values()
        for alert in alerts
        if isinstance(alert, dict)
    }

    for candidate in candidates:
        if result.keys.get(candidate.id):
            result.known_ids += 1
            continue

        # Key swept from the processed table but the alert is still stored
        if candidate.id in stored:
            result.keys[candidate.id] = True
            result.stored_ids += 1
            audit_log.info("decision=STORED_ID id=%s location=%s", candidate.id, candidate.location)
            continue

        day_alerts = result.store.setdefault(candidate.date, [])
        duplicate = find_window_duplicate(day_alerts, candidate, window_ms)
        if duplicate is not None:
            result.keys[candidate.id] = True
            result.window_duplicates += 1
            audit_log.info(
                "decision=WINDOW_DUPLICATE id=%s location=%s matched_id=%s",
                candidate.id,
                candidate.location,
                duplicate.get("id"),
            )
            continue

        day_alerts.append(candidate.to_dict())
        stored.add(candidate.id)
        result.keys[candidate.id] = True
        result.accepted.append(candidate)
        audit_log.info(
            "decision=ACCEPTED id=%s location=%s date=%s time=%s",
            candidate.id,
            candidate.location,
            candidate.date,
            candidate.time,
        )

    # Don't leave an empty day behind when every candidate for it was dropped
    for date in [d for d, alerts in result.store.items() if not alerts and d not in store]:
        del result.store[date]

    return result


class IngestionEngine:
    """Owns all writes to the alert store and the processed-keys table."""

    def __init__(self, storage: JsonStorage, window_ms: int = DEDUP_WINDOW_MS):
        self.storage = storage
        self.window_ms = window_ms

    def process(self, candidates: List[Alert]) -> IngestResult:
        """
        Load, merge and persist.

        The processed-keys lock is held across the whole read-modify-write so a
        concurrent retention sweep cannot be overwritten by a stale copy.

        Raises:
            StorageError: when either document cannot be read or written
        """
        with self.storage.locked(PROCESSED_DOC), self.storage.locked(ALERTS_DOC):
            store = self.storage.load(ALERTS_DOC)
            keys = self.storage.load(PROCESSED_DOC)
            result = ingest(candidates, store, keys, self.window_ms)

            if result.changed:
                self.storage.save(ALERTS_DOC, result.store)
                self.storage.save(PROCESSED_DOC, result.keys)

        logger.info(
            f"[INGEST] candidates={len(candidates)} accepted={len(result.accepted)} "
            f"window_duplicates={result.window_duplicates} stored_ids={result.stored_ids} known_ids={result.known_ids}"
        )
        return result
