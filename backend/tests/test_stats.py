from alert_monitor.services.stats import aggregate


def test_aggregate_single_day():
    store = {
        "2026-10-16": [
            {"location": "A", "time": "08:00"},
            {"location": "A", "time": "09:00"},
            {"location": "B", "time": "08:30"},
        ]
    }

    stats = aggregate(store)

    assert stats["totalDays"] == 1
    assert stats["totalAlerts"] == 3
    assert stats["alertsByLocation"] == {"A": 2, "B": 1}
    assert stats["alertsByHour"] == {8: 2, 9: 1}
    assert stats["mostActiveLocation"] == "A"
    assert stats["mostActiveDay"] == {"date": "2026-10-16", "count": 3}


def test_ties_keep_first_seen_leader():
    store = {
        "2026-10-15": [{"location": "B", "time": "10:00"}],
        "2026-10-16": [{"location": "A", "time": "11:00"}],
    }

    stats = aggregate(store)

    assert stats["mostActiveDay"] == {"date": "2026-10-15", "count": 1}
    assert stats["mostActiveLocation"] == "B"


def test_empty_store():
    stats = aggregate({})
    assert stats == {
        "totalDays": 0,
        "totalAlerts": 0,
        "alertsByLocation": {},
        "alertsByHour": {},
        "mostActiveDay": None,
        "mostActiveLocation": None,
    }


def test_malformed_entries_count_without_hour():
    stats = aggregate({"2026-10-16": [{"location": "A", "time": None}, "junk"]})
    assert stats["totalAlerts"] == 1
    assert stats["alertsByLocation"] == {"A": 1}
    assert stats["alertsByHour"] == {}
