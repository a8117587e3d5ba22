"""
Logging setup for the alert monitor.

Application code logs through module loggers with bracketed tags
([FEED], [INGEST], [SCHEDULER], [SWEEP], [HTTP_CLIENT]); accept/reject
decisions go to the separate "alert_ingest" audit logger.
"""
import logging
import sys

INGEST_LOGGER_NAME = "alert_ingest"


def setup_logging(level: int = logging.INFO):
    """Root logger to stdout; called once from main before the app is built."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def get_ingest_logger():
    """
    Audit logger for ingestion decisions.

    Each line is one `decision=ACCEPTED|WINDOW_DUPLICATE|STORED_ID id=... location=...`
    record, one per candidate that reached the dedup window check.
    """
    return logging.getLogger(INGEST_LOGGER_NAME)
