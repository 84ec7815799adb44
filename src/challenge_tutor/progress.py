"""Per-user challenge progress records and the scheduling step of a submission."""
import logging
import sqlite3
from datetime import datetime

from challenge_tutor.clock import from_iso, to_iso, utc_now
from challenge_tutor.config import Settings
from challenge_tutor.db import get_connection
from challenge_tutor.models import Challenge, ChallengeAttempt, ChallengeProgress
from challenge_tutor.sm2 import compute_next_schedule, translate_quality

logger = logging.getLogger(__name__)

PROGRESS_FIELDS = {"mastered", "next_review_date", "repetition_count", "easiness_factor", "interval"}


def _attempts(conn: sqlite3.Connection, progress_id: int) -> list[ChallengeAttempt]:
    rows = conn.execute(
        "SELECT * FROM challenge_attempts WHERE progress_id = ? ORDER BY id", (progress_id,)
    ).fetchall()
    return [ChallengeAttempt.from_row(r) for r in rows]


def _from_row(conn: sqlite3.Connection, row) -> ChallengeProgress:
    return ChallengeProgress(
        id=row["id"],
        challenge_id=row["challenge_id"],
        user_id=row["user_id"],
        attempts=_attempts(conn, row["id"]),
        mastered=bool(row["mastered"]),
        next_review_date=from_iso(row["next_review_date"]),
        repetition_count=row["repetition_count"],
        easiness_factor=row["easiness_factor"],
        interval=row["interval"],
    )


def _load(conn: sqlite3.Connection, challenge_id: int, user_id: str) -> ChallengeProgress | None:
    row = conn.execute(
        "SELECT * FROM challenge_progress WHERE challenge_id = ? AND user_id = ?",
        (challenge_id, user_id),
    ).fetchone()
    return _from_row(conn, row) if row else None


def _insert_attempt(conn: sqlite3.Connection, progress_id: int, attempt: ChallengeAttempt) -> None:
    conn.execute(
        "INSERT INTO challenge_attempts (progress_id, timestamp, user_answer, correct, time_spent) VALUES (?, ?, ?, ?, ?)",
        (progress_id, to_iso(attempt.timestamp), attempt.user_answer, int(attempt.correct), attempt.time_spent),
    )


def _insert(conn: sqlite3.Connection, progress: ChallengeProgress) -> int:
    stamp = to_iso(utc_now())
    cursor = conn.execute(
        """INSERT INTO challenge_progress
        (challenge_id, user_id, mastered, next_review_date, repetition_count, easiness_factor, interval,
         created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            progress.challenge_id, progress.user_id, int(progress.mastered),
            to_iso(progress.next_review_date), progress.repetition_count,
            progress.easiness_factor, progress.interval, stamp, stamp,
        ),
    )
    progress_id = cursor.lastrowid
    for attempt in progress.attempts:
        _insert_attempt(conn, progress_id, attempt)
    return progress_id


def _update(conn: sqlite3.Connection, progress_id: int, updates: dict) -> None:
    unknown = set(updates) - PROGRESS_FIELDS
    if unknown:
        raise ValueError(f"unknown progress fields: {sorted(unknown)}")
    values = dict(updates)
    if "next_review_date" in values:
        values["next_review_date"] = to_iso(values["next_review_date"])
    if "mastered" in values:
        values["mastered"] = int(values["mastered"])
    assignments = ", ".join(f"{column} = ?" for column in values)
    conn.execute(
        f"UPDATE challenge_progress SET {assignments}, updated_at = ? WHERE id = ?",
        (*values.values(), to_iso(utc_now()), progress_id),
    )


def get_challenge_progress(db_path: str, challenge_id: int, user_id: str) -> ChallengeProgress | None:
    conn = get_connection(db_path)
    progress = _load(conn, challenge_id, user_id)
    conn.close()
    return progress


def create_challenge_progress(db_path: str, progress: ChallengeProgress) -> int:
    conn = get_connection(db_path)
    progress_id = _insert(conn, progress)
    conn.commit()
    conn.close()
    return progress_id


def update_challenge_progress(db_path: str, progress_id: int, updates: dict) -> None:
    """Partial update of the scheduling fields. Attempts go through append_attempt."""
    conn = get_connection(db_path)
    _update(conn, progress_id, updates)
    conn.commit()
    conn.close()


def append_attempt(db_path: str, progress_id: int, attempt: ChallengeAttempt) -> None:
    conn = get_connection(db_path)
    _insert_attempt(conn, progress_id, attempt)
    conn.commit()
    conn.close()


def get_user_progress(db_path: str, user_id: str) -> dict[int, ChallengeProgress]:
    """All of a user's progress records keyed by challenge id."""
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM challenge_progress WHERE user_id = ?", (user_id,)).fetchall()
    progress = {row["challenge_id"]: _from_row(conn, row) for row in rows}
    conn.close()
    return progress


def is_mastered(correct: bool, repetition_count: int, interval: int, settings: Settings) -> bool:
    return (
        correct
        and repetition_count >= settings.mastery_repetitions
        and interval >= settings.mastery_interval_days
    )


def record_attempt(
    db_path: str,
    challenge: Challenge,
    user_id: str,
    attempt: ChallengeAttempt,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> tuple[ChallengeProgress, int]:
    """Append ``attempt`` and reschedule the challenge for ``user_id``.

    The first attempt creates the record with repetition count 0; each later
    attempt bumps the count before scheduling. Runs in a single IMMEDIATE
    transaction so concurrent attempts on the same record serialize.
    Returns the updated progress and the quality used.
    """
    settings = settings or Settings()
    now = now or utc_now()
    quality = translate_quality(attempt.correct, attempt.time_spent, settings.expected_seconds)

    conn = get_connection(db_path)
    try:
        conn.execute("BEGIN IMMEDIATE")
        progress = _load(conn, challenge.id, user_id)
        if progress is None:
            progress = ChallengeProgress(challenge_id=challenge.id, user_id=user_id, next_review_date=now)
            progress.id = _insert(conn, progress)
        else:
            progress.repetition_count += 1
        _insert_attempt(conn, progress.id, attempt)
        progress.attempts.append(attempt)

        schedule = compute_next_schedule(
            quality, progress.easiness_factor, progress.interval, progress.repetition_count, now=now,
        )
        progress.easiness_factor = schedule.easiness_factor
        progress.interval = schedule.interval
        progress.next_review_date = schedule.due_at
        # Mastery is never revoked once earned
        progress.mastered = progress.mastered or is_mastered(
            attempt.correct, progress.repetition_count, schedule.interval, settings,
        )
        _update(conn, progress.id, {
            "mastered": progress.mastered,
            "next_review_date": progress.next_review_date,
            "repetition_count": progress.repetition_count,
            "easiness_factor": progress.easiness_factor,
            "interval": progress.interval,
        })
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

    logger.debug(
        "Challenge %s for %s: quality=%d interval=%d ef=%.2f reps=%d mastered=%s",
        challenge.id, user_id, quality, progress.interval, progress.easiness_factor,
        progress.repetition_count, progress.mastered,
    )
    return progress, quality
