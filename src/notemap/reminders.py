"""Daily review reminders."""
import logging
from datetime import datetime, timedelta
from typing import Optional

from notemap.settings import get_setting, set_setting
from notemap.subjects import get_due_subjects

logger = logging.getLogger(__name__)


def parse_reminder_time(value: str) -> tuple[int, int]:
    """Parse an "HH:MM" string into (hour, minute)."""
    try:
        hours, minutes = (int(part) for part in value.strip().split(":"))
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid reminder time {value!r}, expected HH:MM") from None
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Invalid reminder time {value!r}, expected HH:MM")
    return hours, minutes


def next_reminder_at(value: str, now: Optional[datetime] = None) -> datetime:
    """Next occurrence of the reminder time; tomorrow if it is now or already past today."""
    hours, minutes = parse_reminder_time(value)
    now = now or datetime.now()
    target = now.replace(hour=hours, minute=minutes, second=0, microsecond=0)
    if target <= now:
        target += timedelta(days=1)
    return target


def time_until_reminder(value: str, now: Optional[datetime] = None) -> timedelta:
    now = now or datetime.now()
    return next_reminder_at(value, now) - now


def get_reminder_settings(db_path: str) -> dict:
    return {
        "time": get_setting(db_path, "reminder_time"),
        "enabled": get_setting(db_path, "reminders_enabled") == "1",
    }


def set_reminder(db_path: str, value: str, enabled: bool = True) -> None:
    hours, minutes = parse_reminder_time(value)
    set_setting(db_path, "reminder_time", f"{hours:02d}:{minutes:02d}")
    set_setting(db_path, "reminders_enabled", "1" if enabled else "0")
    logger.info("Reminder %s at %02d:%02d", "enabled" if enabled else "disabled", hours, minutes)


def pending_reminder_message(db_path: str, now: Optional[datetime] = None) -> str | None:
    """Reminder text when reminders are on and something is due, else None."""
    if not get_reminder_settings(db_path)["enabled"]:
        return None
    due = get_due_subjects(db_path, now=now)
    if not due:
        return None
    noun = "subject" if len(due) == 1 else "subjects"
    return f"Time to review! {len(due)} {noun} due."
