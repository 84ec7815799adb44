"""Per-user daily activity aggregates."""
from datetime import datetime

from challenge_tutor.clock import DEFAULT_TIMEZONE, day_key, to_iso, utc_now
from challenge_tutor.db import get_connection
from challenge_tutor.models import DailyProgress

DAILY_FIELDS = ("challenges_completed", "correct_answers", "xp_earned", "streak_active")


def get_daily_progress(db_path: str, user_id: str, day: str) -> DailyProgress | None:
    conn = get_connection(db_path)
    row = conn.execute(
        "SELECT * FROM daily_progress WHERE user_id = ? AND date = ?", (user_id, day)
    ).fetchone()
    conn.close()
    return DailyProgress.from_row(row) if row else None


def get_today_progress(db_path: str, user_id: str, now: datetime | None = None,
                       tz: str = DEFAULT_TIMEZONE) -> DailyProgress | None:
    return get_daily_progress(db_path, user_id, day_key(now, tz))


def update_daily_progress(db_path: str, user_id: str, updates: dict, now: datetime | None = None,
                          tz: str = DEFAULT_TIMEZONE) -> None:
    """Upsert today's row with the given values.

    Values replace what is stored; callers pass running totals, not deltas.
    Use record_daily_activity to add to the totals instead.
    """
    unknown = set(updates) - set(DAILY_FIELDS)
    if unknown:
        raise ValueError(f"unknown daily progress fields: {sorted(unknown)}")
    day = day_key(now, tz)
    values = {k: int(v) for k, v in updates.items()}
    conn = get_connection(db_path)
    conn.execute(
        "INSERT OR IGNORE INTO daily_progress (user_id, date, created_at) VALUES (?, ?, ?)",
        (user_id, day, to_iso(now or utc_now())),
    )
    if values:
        assignments = ", ".join(f"{column} = ?" for column in values)
        conn.execute(
            f"UPDATE daily_progress SET {assignments} WHERE user_id = ? AND date = ?",
            (*values.values(), user_id, day),
        )
    conn.commit()
    conn.close()


def record_daily_activity(db_path: str, user_id: str, correct: bool, xp: int,
                          now: datetime | None = None, tz: str = DEFAULT_TIMEZONE) -> DailyProgress:
    """Count one completed challenge for today, incrementing in place."""
    day = day_key(now, tz)
    conn = get_connection(db_path)
    conn.execute(
        """INSERT INTO daily_progress (user_id, date, challenges_completed, correct_answers, xp_earned, created_at)
        VALUES (?, ?, 1, ?, ?, ?)
        ON CONFLICT(user_id, date) DO UPDATE SET
            challenges_completed = challenges_completed + 1,
            correct_answers = correct_answers + excluded.correct_answers,
            xp_earned = xp_earned + excluded.xp_earned""",
        (user_id, day, int(correct), max(0, int(xp)), to_iso(now or utc_now())),
    )
    conn.commit()
    row = conn.execute(
        "SELECT * FROM daily_progress WHERE user_id = ? AND date = ?", (user_id, day)
    ).fetchone()
    conn.close()
    return DailyProgress.from_row(row)


def get_recent_days(db_path: str, user_id: str, limit: int = 7) -> list[DailyProgress]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM daily_progress WHERE user_id = ? ORDER BY date DESC LIMIT ?", (user_id, limit)
    ).fetchall()
    conn.close()
    return [DailyProgress.from_row(r) for r in rows]
