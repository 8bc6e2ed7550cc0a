# tests/test_reminders.py
from datetime import datetime, timedelta

import pytest

from notemap.db import init_db
from notemap.reminders import (
    get_reminder_settings, next_reminder_at, parse_reminder_time, pending_reminder_message,
    set_reminder, time_until_reminder,
)
from notemap.subjects import create_subject


def test_parse_reminder_time():
    assert parse_reminder_time("09:00") == (9, 0)
    assert parse_reminder_time(" 7:05 ") == (7, 5)
    assert parse_reminder_time("23:59") == (23, 59)


@pytest.mark.parametrize("value", ["", "9", "24:00", "12:60", "ab:cd", "1:2:3", None])
def test_parse_reminder_time_invalid(value):
    with pytest.raises(ValueError):
        parse_reminder_time(value)


def test_reminder_later_today():
    now = datetime(2026, 3, 2, 8, 30)
    assert next_reminder_at("09:00", now) == datetime(2026, 3, 2, 9, 0)
    assert time_until_reminder("09:00", now) == timedelta(minutes=30)


def test_reminder_already_passed_is_tomorrow():
    now = datetime(2026, 3, 2, 21, 0)
    assert next_reminder_at("09:00", now) == datetime(2026, 3, 3, 9, 0)
    assert time_until_reminder("09:00", now) == timedelta(hours=12)


def test_reminder_at_exact_time_is_tomorrow():
    now = datetime(2026, 3, 2, 9, 0)
    assert next_reminder_at("09:00", now) == datetime(2026, 3, 3, 9, 0)


def test_reminder_settings_round_trip(tmp_db):
    init_db(tmp_db)
    assert get_reminder_settings(tmp_db) == {"time": "09:00", "enabled": False}
    set_reminder(tmp_db, "7:5")
    assert get_reminder_settings(tmp_db) == {"time": "07:05", "enabled": True}
    set_reminder(tmp_db, "20:00", enabled=False)
    assert get_reminder_settings(tmp_db) == {"time": "20:00", "enabled": False}


def test_set_reminder_rejects_bad_time(tmp_db):
    init_db(tmp_db)
    with pytest.raises(ValueError):
        set_reminder(tmp_db, "25:00")
    assert get_reminder_settings(tmp_db)["time"] == "09:00"


def test_pending_reminder_message(tmp_db, fixed_now):
    init_db(tmp_db)
    create_subject(tmp_db, "A", "", now=fixed_now)
    create_subject(tmp_db, "B", "", now=fixed_now)
    later = fixed_now + timedelta(days=2)
    # Disabled by default
    assert pending_reminder_message(tmp_db, now=later) is None
    set_reminder(tmp_db, "09:00")
    assert pending_reminder_message(tmp_db, now=fixed_now) is None
    assert pending_reminder_message(tmp_db, now=later) == "Time to review! 2 subjects due."
