"""User settings stored in the database."""
from notemap.db import get_connection

DEFAULTS = {
    "reminder_time": "09:00",
    "reminders_enabled": "0",
    "review_batch_size": "10",
}


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    if row:
        return row["value"]
    return default if default is not None else DEFAULTS.get(key)


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


def get_review_batch_size(db_path: str) -> int:
    return int(get_setting(db_path, "review_batch_size"))
