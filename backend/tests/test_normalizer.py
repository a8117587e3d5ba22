from datetime import datetime, timedelta, timezone

import pytest
import pytz

from alert_monitor.services.normalizer import (
    PayloadShape,
    classify_payload,
    describe_payload,
    normalize,
    parse_source_time,
)

NOW = datetime(2026, 10, 16, 12, 30, 15, tzinfo=timezone.utc)
UTC = pytz.utc


def _millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


@pytest.mark.parametrize(
    "payload, shape, count",
    [
        ([{"location": "A"}], PayloadShape.ARRAY, 1),
        ({"alerts": [{"location": "A"}, {"location": "B"}]}, PayloadShape.ALERTS, 2),
        ({"id": "1", "data": ["A", "B", "C"]}, PayloadShape.DATA, 3),
        (42, PayloadShape.UNRECOGNIZED, 0),
        (None, PayloadShape.UNRECOGNIZED, 0),
        ("not a payload", PayloadShape.UNRECOGNIZED, 0),
        ({"alerts": "A"}, PayloadShape.UNRECOGNIZED, 0),
    ],
)
def test_classify_payload(payload, shape, count):
    detected, records = classify_payload(payload)
    assert detected is shape
    assert len(records) == count


def test_alerts_key_wins_over_data():
    shape, records = classify_payload({"alerts": [1], "data": [1, 2]})
    assert shape is PayloadShape.ALERTS
    assert records == [1]


@pytest.mark.parametrize("payload", [42, None, 3.5, "text", {"unexpected": True}])
def test_unrecognized_payload_yields_no_candidates(payload):
    assert normalize(payload, now=NOW, zone=UTC) == []


def test_location_field_priority():
    candidates = normalize(
        [
            {"city": "City", "area": "Area", "name": "Name"},
            {"area": "Area", "name": "Name"},
            {"name": "Name"},
            {"location": "Loc", "city": "City"},
            {"other": "x"},
        ],
        now=NOW,
        zone=UTC,
    )
    assert [c.location for c in candidates] == ["City", "Area", "Name", "Loc", "Unknown"]


def test_iso_time_sets_timestamp_date_and_synthesized_id():
    source = datetime(2026, 10, 15, 23, 59, 30, tzinfo=timezone.utc)
    [alert] = normalize([{"location": "Haifa", "time": "2026-10-15T23:59:30Z"}], now=NOW, zone=UTC)

    assert alert.id == f"Haifa_{_millis(source)}"
    assert alert.date == "2026-10-15"
    assert alert.time == "23:59"
    assert alert.timestamp.startswith("2026-10-15T23:59:30")


def test_date_follows_server_zone():
    zone = pytz.timezone("Asia/Jerusalem")
    [alert] = normalize([{"location": "Haifa", "time": "2026-10-15T23:30:00Z"}], now=NOW, zone=zone)
    # 23:30 UTC is already the next day in Jerusalem (UTC+3 in October)
    assert alert.date == "2026-10-16"
    assert alert.time == "02:30"


def test_timestamp_field_used_when_time_missing():
    moment = NOW - timedelta(minutes=5)
    [alert] = normalize([{"location": "A", "timestamp": _millis(moment)}], now=NOW, zone=UTC)
    assert alert.id == f"A_{_millis(moment)}"
    assert alert.time == "12:25"


def test_epoch_seconds_are_accepted():
    moment = datetime(2026, 10, 16, 7, 0, tzinfo=timezone.utc)
    [alert] = normalize([{"location": "A", "time": int(moment.timestamp())}], now=NOW, zone=UTC)
    assert alert.time == "07:00"
    assert alert.id == f"A_{_millis(moment)}"


def test_clock_time_is_taken_as_today():
    [alert] = normalize([{"location": "A", "time": "08:15"}], now=NOW, zone=UTC)
    assert alert.date == "2026-10-16"
    assert alert.time == "08:15"


def test_clock_time_later_than_now_is_yesterday():
    just_after_midnight = datetime(2026, 10, 16, 0, 0, 30, tzinfo=timezone.utc)

    [alert] = normalize([{"location": "A", "time": "23:59"}], now=just_after_midnight, zone=UTC)

    assert alert.date == "2026-10-15"
    assert alert.time == "23:59"
    assert alert.timestamp.startswith("2026-10-15T23:59:00")


def test_missing_or_garbage_time_falls_back_to_now():
    candidates = normalize(
        [{"location": "A"}, {"location": "B", "time": "yesterday-ish"}],
        now=NOW,
        zone=UTC,
    )
    assert [c.time for c in candidates] == ["12:30", "12:30"]
    assert candidates[0].id == f"A_{_millis(NOW)}"


def test_native_id_is_kept_as_string():
    [alert] = normalize({"alerts": [{"id": 133852, "city": "Sderot"}]}, now=NOW, zone=UTC)
    assert alert.id == "133852"
    assert alert.location == "Sderot"


def test_string_records_are_locations():
    candidates = normalize({"id": "1", "cat": "1", "data": ["Sderot", "Nir Am"]}, now=NOW, zone=UTC)
    assert [c.location for c in candidates] == ["Sderot", "Nir Am"]
    assert candidates[0].id == f"Sderot_{_millis(NOW)}"


def test_non_object_records_are_skipped():
    candidates = normalize([1, None, ["x"], {"location": "A"}], now=NOW, zone=UTC)
    assert [c.location for c in candidates] == ["A"]


def test_candidates_keep_payload_order_and_are_not_deduplicated():
    candidates = normalize([{"id": "x", "location": "A"}, {"id": "x", "location": "A"}], now=NOW, zone=UTC)
    assert len(candidates) == 2


def test_parse_source_time_naive_iso_uses_zone():
    zone = pytz.timezone("Asia/Jerusalem")
    parsed = parse_source_time("2026-10-16 09:00:00", NOW, zone)
    assert parsed.hour == 9
    assert parsed.utcoffset() == timedelta(hours=3)


def test_describe_payload_reports_shape():
    info = describe_payload({"alerts": [{"city": "A", "time": "08:00"}]})
    assert info["shape"] == "alerts"
    assert info["type"] == "dict"
    assert info["recordCount"] == 1
    assert info["sampleRecordKeys"] == ["city", "time"]

    assert describe_payload(None)["shape"] == "unrecognized"
