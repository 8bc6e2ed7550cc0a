"""Review dashboard statistics."""
from datetime import datetime, time, timedelta, timezone
from typing import Optional

from notemap.db import get_connection, to_db_time, from_db_time
from notemap.models import SUBJECT_CONTEXTS
from notemap.sm2 import round_half_up


def get_mastery_label(ease_factor: float, repetitions: int) -> str:
    if repetitions == 0:
        return "NEW"
    elif repetitions < 3:
        return "LEARNING"
    elif ease_factor >= 2.5 and repetitions >= 5:
        return "MASTERED"
    return "REVIEWING"


def get_mastery_color(ease_factor: float, repetitions: int) -> str:
    return {
        "NEW": "blue",
        "LEARNING": "yellow",
        "REVIEWING": "cyan",
        "MASTERED": "green",
    }[get_mastery_label(ease_factor, repetitions)]


def get_review_stats(db_path: str, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now(timezone.utc)
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT COUNT(*) as t, AVG(ease_factor) as ef, MIN(next_review_at) as next_due FROM subjects"
    ).fetchone()
    due = conn.execute(
        "SELECT COUNT(*) FROM subjects WHERE next_review_at <= ?", (to_db_time(now),)
    ).fetchone()[0]
    reviews = conn.execute("SELECT COUNT(*) FROM review_results").fetchone()[0]
    conn.close()
    return {
        "total_subjects": row["t"],
        "due_now": due,
        "reviews_done": reviews,
        "avg_ease_factor": round_half_up(row["ef"], 2) if row["ef"] else 0.0,
        "next_due_at": from_db_time(row["next_due"]) if row["next_due"] else None,
    }


def get_subjects_by_context(db_path: str) -> dict[str, int]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT context, COUNT(*) as n FROM subjects GROUP BY context").fetchall()
    conn.close()
    counts = {context: 0 for context in SUBJECT_CONTEXTS}
    counts.update({r["context"]: r["n"] for r in rows})
    return counts


def get_upcoming_reviews(db_path: str, days: int = 7, now: Optional[datetime] = None) -> list[dict]:
    """Count of subjects falling due on each of the next `days` calendar days (day 0 includes overdue).

    Days are calendar dates in the timezone of `now` (UTC when naive or omitted).
    """
    if days <= 0:
        return []
    now = now or datetime.now(timezone.utc)
    tz = now.tzinfo or timezone.utc
    today = now.date()
    end = datetime.combine(today + timedelta(days=days), time.min, tzinfo=tz)
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT next_review_at FROM subjects WHERE next_review_at < ?", (to_db_time(end),)
    ).fetchall()
    conn.close()
    buckets = [0] * days
    for r in rows:
        due_day = from_db_time(r["next_review_at"]).astimezone(tz).date()
        buckets[max(0, (due_day - today).days)] += 1
    return [
        {"date": (today + timedelta(days=i)).isoformat(), "count": count}
        for i, count in enumerate(buckets)
    ]
