"""Subject storage and review recording."""
import json
import logging
from datetime import datetime, timezone
from typing import Optional

from notemap.db import get_connection, to_db_time, from_db_time
from notemap.models import MindMapNode, ReviewRecord, Subject, SUBJECT_CONTEXTS
from notemap.sm2 import compute_next_review, initial_review_state

logger = logging.getLogger(__name__)


class SubjectNotFound(LookupError):
    def __init__(self, subject_id: int):
        self.subject_id = subject_id
        super().__init__(f"Subject {subject_id} not found")


class StaleReviewError(RuntimeError):
    """The subject's review state changed between read and write."""

    def __init__(self, subject_id: int, expected_version: int):
        self.subject_id = subject_id
        self.expected_version = expected_version
        super().__init__(
            f"Subject {subject_id} was modified concurrently (expected version {expected_version})"
        )


def _row_to_subject(row) -> Subject:
    mind_map = MindMapNode.from_dict(json.loads(row["mind_map"])) if row["mind_map"] else None
    return Subject(
        id=row["id"],
        title=row["title"],
        context=row["context"],
        raw_notes=row["raw_notes"],
        mind_map=mind_map,
        ease_factor=row["ease_factor"],
        repetitions=row["repetitions"],
        interval_days=row["interval_days"],
        next_review_at=from_db_time(row["next_review_at"]),
        created_at=from_db_time(row["created_at"]),
        version=row["version"],
    )


def _dump_mind_map(mind_map: Optional[MindMapNode]) -> Optional[str]:
    return json.dumps(mind_map.to_dict()) if mind_map else None


def _check_title(title: str) -> str:
    title = (title or "").strip()
    if not title:
        raise ValueError("Subject title must not be empty")
    return title


def _check_context(context: str) -> str:
    if context not in SUBJECT_CONTEXTS:
        raise ValueError(f"Unknown context {context!r}, expected one of {', '.join(SUBJECT_CONTEXTS)}")
    return context


def create_subject(
    db_path: str,
    title: str,
    raw_notes: str,
    context: str = "idea",
    mind_map: Optional[MindMapNode] = None,
    now: Optional[datetime] = None,
) -> Subject:
    title = _check_title(title)
    context = _check_context(context)
    now = now or datetime.now(timezone.utc)
    state = initial_review_state(now)
    conn = get_connection(db_path)
    cursor = conn.execute(
        """INSERT INTO subjects
        (title, context, raw_notes, mind_map, ease_factor, repetitions, interval_days,
         next_review_at, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            title, context, raw_notes, _dump_mind_map(mind_map),
            state.ease_factor, state.repetitions, state.interval_days,
            to_db_time(state.next_review_at), to_db_time(now),
        ),
    )
    conn.commit()
    subject_id = cursor.lastrowid
    conn.close()
    logger.info("Created subject %s (%s)", subject_id, title)
    return get_subject(db_path, subject_id)


def get_subject(db_path: str, subject_id: int) -> Subject | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM subjects WHERE id = ?", (subject_id,)).fetchone()
    conn.close()
    return _row_to_subject(row) if row else None


def list_subjects(db_path: str) -> list[Subject]:
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM subjects ORDER BY created_at DESC, id DESC").fetchall()
    conn.close()
    return [_row_to_subject(r) for r in rows]


def get_due_subjects(db_path: str, now: Optional[datetime] = None, limit: Optional[int] = None) -> list[Subject]:
    """Subjects whose next review time has passed, oldest due first."""
    now = now or datetime.now(timezone.utc)
    query = "SELECT * FROM subjects WHERE next_review_at <= ? ORDER BY next_review_at ASC, id ASC"
    params: tuple = (to_db_time(now),)
    if limit is not None:
        query += " LIMIT ?"
        params += (limit,)
    conn = get_connection(db_path)
    rows = conn.execute(query, params).fetchall()
    conn.close()
    return [_row_to_subject(r) for r in rows]


def update_subject(
    db_path: str,
    subject_id: int,
    title: Optional[str] = None,
    raw_notes: Optional[str] = None,
    context: Optional[str] = None,
    mind_map: Optional[MindMapNode] = None,
) -> Subject:
    """Edit a subject's content. Review state is only changed through record_review."""
    updates = {}
    if title is not None:
        updates["title"] = _check_title(title)
    if raw_notes is not None:
        updates["raw_notes"] = raw_notes
    if context is not None:
        updates["context"] = _check_context(context)
    if mind_map is not None:
        updates["mind_map"] = _dump_mind_map(mind_map)

    conn = get_connection(db_path)
    if conn.execute("SELECT 1 FROM subjects WHERE id = ?", (subject_id,)).fetchone() is None:
        conn.close()
        raise SubjectNotFound(subject_id)
    if updates:
        assignments = ", ".join(f"{col} = ?" for col in updates)
        conn.execute(
            f"UPDATE subjects SET {assignments}, version = version + 1 WHERE id = ?",
            (*updates.values(), subject_id),
        )
        conn.commit()
    conn.close()
    return get_subject(db_path, subject_id)


def delete_subject(db_path: str, subject_id: int) -> bool:
    conn = get_connection(db_path)
    cursor = conn.execute("DELETE FROM subjects WHERE id = ?", (subject_id,))
    conn.commit()
    conn.close()
    deleted = cursor.rowcount > 0
    if deleted:
        logger.info("Deleted subject %s", subject_id)
    return deleted


def record_review(
    db_path: str,
    subject_id: int,
    quality: int,
    now: Optional[datetime] = None,
    expected_version: Optional[int] = None,
) -> Subject:
    """Apply a review rating to a subject and persist the new SM-2 state.

    The write is conditional on the subject's version, so two reviews racing
    on the same subject cannot silently overwrite each other.

    Raises:
        InvalidQuality: quality is not 3, 4 or 5.
        SubjectNotFound: no subject with this id.
        StaleReviewError: the subject changed since it was read (or since
            expected_version, when given).
    """
    now = now or datetime.now(timezone.utc)
    conn = get_connection(db_path)
    try:
        cursor = conn.execute("SELECT * FROM subjects WHERE id = ?", (subject_id,))
        row = cursor.fetchone()
        # Release the read lock so other writers are not blocked while we compute
        cursor.close()
        if row is None:
            raise SubjectNotFound(subject_id)
        version = row["version"] if expected_version is None else expected_version
        if row["version"] != version:
            raise StaleReviewError(subject_id, version)

        subject = _row_to_subject(row)
        state = compute_next_review(quality, subject.review_state, now=now)
        cursor = conn.execute(
            """UPDATE subjects
            SET ease_factor = ?, repetitions = ?, interval_days = ?, next_review_at = ?,
                version = version + 1
            WHERE id = ? AND version = ?""",
            (
                state.ease_factor, state.repetitions, state.interval_days,
                to_db_time(state.next_review_at), subject_id, version,
            ),
        )
        if cursor.rowcount == 0:
            conn.rollback()
            raise StaleReviewError(subject_id, version)
        conn.execute(
            """INSERT INTO review_results (subject_id, quality, interval_days, ease_factor, reviewed_at)
            VALUES (?, ?, ?, ?, ?)""",
            (subject_id, int(quality), state.interval_days, state.ease_factor, to_db_time(now)),
        )
        conn.commit()
    except StaleReviewError:
        logger.warning("Stale review for subject %s discarded", subject_id)
        raise
    finally:
        conn.close()
    logger.info(
        "Reviewed subject %s: quality=%s interval=%sd ease=%s",
        subject_id, int(quality), state.interval_days, state.ease_factor,
    )
    return get_subject(db_path, subject_id)


def get_review_history(db_path: str, subject_id: int) -> list[ReviewRecord]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM review_results WHERE subject_id = ? ORDER BY reviewed_at ASC, id ASC",
        (subject_id,),
    ).fetchall()
    conn.close()
    return [
        ReviewRecord(
            id=r["id"],
            subject_id=r["subject_id"],
            quality=r["quality"],
            interval_days=r["interval_days"],
            ease_factor=r["ease_factor"],
            reviewed_at=from_db_time(r["reviewed_at"]),
        )
        for r in rows
    ]
