"""Alert feed monitor: polls an alert feed, deduplicates, stores per day and pushes new alerts."""

__version__ = "1.0.0"
