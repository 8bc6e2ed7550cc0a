from notemap.db import init_db
from notemap.settings import get_review_batch_size, get_setting, set_setting


def test_get_setting_defaults(tmp_db):
    init_db(tmp_db)
    assert get_setting(tmp_db, "reminder_time") == "09:00"
    assert get_setting(tmp_db, "reminders_enabled") == "0"
    assert get_setting(tmp_db, "unknown") is None
    assert get_setting(tmp_db, "unknown", "fallback") == "fallback"


def test_set_setting_overwrites(tmp_db):
    init_db(tmp_db)
    set_setting(tmp_db, "theme", "dark")
    set_setting(tmp_db, "theme", "light")
    assert get_setting(tmp_db, "theme") == "light"


def test_review_batch_size(tmp_db):
    init_db(tmp_db)
    assert get_review_batch_size(tmp_db) == 10
    set_setting(tmp_db, "review_batch_size", "3")
    assert get_review_batch_size(tmp_db) == 3
