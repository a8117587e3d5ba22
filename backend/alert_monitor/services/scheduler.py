import asyncio
import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from alert_monitor.core.clock import get_server_zone, now_local
from alert_monitor.core.config import Settings
from alert_monitor.models.alert import Alert
from alert_monitor.services.event_bus import EventBus
from alert_monitor.services.events import NewAlert
from alert_monitor.services.feed_client import FeedClient, FeedFailure, is_failure
from alert_monitor.services.ingestion import IngestionEngine
from alert_monitor.services.normalizer import normalize
from alert_monitor.services.retention import RetentionSweeper
from alert_monitor.services.storage import JsonStorage

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_BUSY = "busy"
STATUS_FEED_FAILURE = "feed_failure"
STATUS_NO_CANDIDATES = "no_candidates"


@dataclass
class CycleResult:
    """Outcome of one fetch -> normalize -> ingest -> persist run."""
    status: str
    accepted: List[Alert] = field(default_factory=list)
    candidates: int = 0
    failure: Optional[FeedFailure] = None


class AlertScheduler:
    """
    Sequential polling loop for the alert feed.

    Owns the collaborators of the pipeline (storage, feed client, ingestion
    engine, sweeper, event bus); built once at startup and kept on app.state.
    A cycle lock makes sure two ingestion cycles never overlap: scheduled ticks
    skip while it is held, manual check-now calls wait for it.
    """

    def __init__(
        self,
        settings: Settings,
        storage: JsonStorage,
        feed_client: FeedClient,
        event_bus: EventBus,
    ):
        self.settings = settings
        self.storage = storage
        self.feed_client = feed_client
        self.event_bus = event_bus
        self.engine = IngestionEngine(storage, window_ms=settings.DEDUP_WINDOW_MS)
        self.sweeper = RetentionSweeper(storage, retention_days=settings.RETENTION_DAYS)
        self.zone = get_server_zone(settings.TIMEZONE)
        self.poll_interval = settings.POLL_INTERVAL_SECONDS
        self.sweep_hour = settings.SWEEP_HOUR

        self.running = False
        self._scheduler_task: Optional[asyncio.Task] = None
        self._cycle_lock = threading.Lock()

        self.tick_count = 0
        self.skipped_ticks = 0
        self.last_tick_at: Optional[str] = None
        self.last_tick_status: Optional[str] = None
        self.last_error: Optional[str] = None
        self.last_sweep_date = None
        self.last_sweep_at: Optional[str] = None

    # ------------------------------------------------------------------
    # Ingestion cycle
    # ------------------------------------------------------------------
    def run_cycle_sync(self, wait: bool = True) -> CycleResult:
        """
        One ingestion cycle - synchronous worker.

        Raises:
            StorageError: when the alert documents cannot be read or written
        """
        if not self._cycle_lock.acquire(blocking=wait):
            logger.info("[SCHEDULER] Previous cycle still in flight, skipping tick")
            return CycleResult(status=STATUS_BUSY)
        try:
            payload = self.feed_client.fetch()
            if is_failure(payload):
                logger.warning(f"[FEED] Fetch failed ({payload.reason}): {payload.message}")
                return CycleResult(status=STATUS_FEED_FAILURE, failure=payload)

            candidates = normalize(payload, zone=self.zone)
            if not candidates:
                logger.debug("[SCHEDULER] No candidates in payload")
                return CycleResult(status=STATUS_NO_CANDIDATES)

            result = self.engine.process(candidates)
            return CycleResult(status=STATUS_OK, accepted=result.accepted, candidates=len(candidates))
        finally:
            self._cycle_lock.release()

    async def publish_accepted(self, accepted: List[Alert]) -> None:
        """Push accepted alerts to subscribers; never undoes persistence."""
        for alert in accepted:
            try:
                await self.event_bus.publish(NewAlert(alert=alert.to_dict()))
            except Exception as e:
                logger.error(f"[SCHEDULER] Failed to publish alert {alert.id}: {e}", exc_info=True)

    async def run_cycle(self, wait: bool = True) -> CycleResult:
        """One ingestion cycle - async wrapper; publishes after persistence."""
        # Run blocking HTTP/disk work in thread pool
        result = await asyncio.to_thread(self.run_cycle_sync, wait)
        if result.accepted:
            await self.publish_accepted(result.accepted)
        return result

    async def tick(self) -> Optional[CycleResult]:
        """Scheduled tick: any failure is logged, never raised into the loop."""
        self.tick_count += 1
        self.last_tick_at = now_local(self.zone).isoformat(timespec="seconds")
        try:
            result = await self.run_cycle(wait=False)
        except Exception as e:
            self.last_tick_status = "error"
            self.last_error = str(e)
            logger.error(f"[SCHEDULER] Tick #{self.tick_count} failed: {e}", exc_info=True)
            return None
        if result.status == STATUS_BUSY:
            self.skipped_ticks += 1
        self.last_tick_status = result.status
        if result.status == STATUS_OK:
            self.last_error = None
        elif result.failure is not None:
            self.last_error = f"{result.failure.reason}: {result.failure.message}"
        return result

    # ------------------------------------------------------------------
    # Retention sweep
    # ------------------------------------------------------------------
    def check_retention_sweep_sync(self, now: Optional[datetime] = None) -> bool:
        """Run the daily processed-keys sweep once SWEEP_HOUR is reached - synchronous worker."""
        now = now or now_local(self.zone)
        today = now.date()
        if now.hour < self.sweep_hour or self.last_sweep_date == today:
            return False

        logger.info(f"[SWEEP] Running daily processed-keys sweep ({now.strftime('%Y-%m-%d %H:%M %Z')})")
        try:
            self.sweeper.run(now)
        except Exception as e:
            logger.error(f"[SWEEP] Error sweeping processed keys: {e}", exc_info=True)
            return False
        self.last_sweep_date = today
        self.last_sweep_at = now.isoformat(timespec="seconds")
        return True

    async def check_retention_sweep(self):
        """Daily sweep - async wrapper"""
        await asyncio.to_thread(self.check_retention_sweep_sync)

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------
    async def run_scheduler(self):
        """Main scheduler loop"""
        logger.info(f"[SCHEDULER] Polling {self.feed_client.source} every {self.poll_interval}s")
        while self.running:
            started = time.monotonic()
            try:
                await self.tick()
                await self.check_retention_sweep()
            except Exception as e:
                logger.error(f"Scheduler error: {e}", exc_info=True)

            # Fixed period; an overrunning tick skips missed periods instead of queueing them
            elapsed = time.monotonic() - started
            await asyncio.sleep(self.poll_interval - (elapsed % self.poll_interval))

    async def start(self):
        """Start the scheduler"""
        if self._scheduler_task is not None and not self._scheduler_task.done():
            logger.warning("[SCHEDULER] ⚠️ Scheduler task is already running, ignoring start() call")
            return

        # Mark as running BEFORE creating task to prevent race conditions
        self.running = True
        self._scheduler_task = asyncio.create_task(self.run_scheduler())
        logger.info("[SCHEDULER] Scheduler task created and started")

    async def stop(self):
        """Stop the scheduler"""
        self.running = False
        task, self._scheduler_task = self._scheduler_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info("[SCHEDULER] Scheduler stopped")

    def status(self) -> Dict[str, Any]:
        return {
            "running": self.running,
            "pollIntervalSeconds": self.poll_interval,
            "ticks": self.tick_count,
            "skippedTicks": self.skipped_ticks,
            "lastTick": self.last_tick_at,
            "lastTickStatus": self.last_tick_status,
            "lastError": self.last_error,
            "lastSweep": self.last_sweep_at,
            "feedSource": self.feed_client.source,
        }
