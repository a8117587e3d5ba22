"""
Shared fixtures.

The environment is set before any alert_monitor import so that the module-level
app in alert_monitor.main never touches the working directory or starts polling.
"""
import os
import sys
import tempfile
from datetime import datetime, timezone
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent))

os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="alert-monitor-test-"))
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("TIMEZONE", "UTC")

import pytest

from alert_monitor.core.config import Settings
from alert_monitor.models.alert import Alert
from alert_monitor.services.storage import JsonStorage

BASE_TIME = datetime(2026, 10, 16, 8, 0, 0, tzinfo=timezone.utc)


def make_alert(location: str, moment: datetime, alert_id: str = None) -> Alert:
    millis = int(moment.timestamp() * 1000)
    return Alert.from_moment(alert_id or f"{location}_{millis}", location, moment)


@pytest.fixture
def storage(tmp_path):
    store = JsonStorage(str(tmp_path / "data"))
    store.ensure_documents()
    return store


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        DATA_DIR=str(tmp_path / "data"),
        SCHEDULER_ENABLED=False,
        TIMEZONE="UTC",
        FEED_SAMPLE_PATH=str(tmp_path / "sample_api_response.json"),
    )
