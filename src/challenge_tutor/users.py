"""User profiles, XP and the leaderboard."""
import logging
from datetime import datetime

from challenge_tutor.clock import to_iso, utc_now
from challenge_tutor.db import get_connection
from challenge_tutor.errors import NotFound
from challenge_tutor.models import LeaderboardEntry, User
from challenge_tutor.rewards import level_from_xp

logger = logging.getLogger(__name__)

PROFILE_FIELDS = {"email", "display_name", "xp", "level", "streak", "last_activity"}


def create_user(db_path: str, user_id: str, display_name: str | None = None, email: str = "",
                now: datetime | None = None) -> User:
    stamp = to_iso(now or utc_now())
    conn = get_connection(db_path)
    conn.execute(
        """INSERT OR IGNORE INTO users (id, email, display_name, xp, level, streak, created_at, updated_at)
        VALUES (?, ?, ?, 0, 1, 0, ?, ?)""",
        (user_id, email, display_name, stamp, stamp),
    )
    conn.commit()
    conn.close()
    return get_user_by_id(db_path, user_id)


def get_user_by_id(db_path: str, user_id: str) -> User | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    conn.close()
    return User.from_row(row) if row else None


def update_user_profile(db_path: str, user_id: str, updates: dict) -> None:
    unknown = set(updates) - PROFILE_FIELDS
    if unknown:
        raise ValueError(f"unknown profile fields: {sorted(unknown)}")
    if not updates:
        return
    values = dict(updates)
    if isinstance(values.get("last_activity"), datetime):
        values["last_activity"] = to_iso(values["last_activity"])
    if "xp" in values:
        values["xp"] = max(0, int(values["xp"]))
        values.setdefault("level", level_from_xp(values["xp"]))
    assignments = ", ".join(f"{column} = ?" for column in values)
    conn = get_connection(db_path)
    conn.execute(
        f"UPDATE users SET {assignments}, updated_at = ? WHERE id = ?",
        (*values.values(), to_iso(utc_now()), user_id),
    )
    conn.commit()
    conn.close()


def award_xp(db_path: str, user_id: str, amount: int) -> tuple[int, int]:
    """Add ``amount`` XP in place and recompute the level. Returns (xp, level)."""
    amount = max(0, int(amount))
    conn = get_connection(db_path)
    try:
        conn.execute("BEGIN IMMEDIATE")
        conn.execute(
            "UPDATE users SET xp = xp + ?, updated_at = ? WHERE id = ?",
            (amount, to_iso(utc_now()), user_id),
        )
        row = conn.execute("SELECT xp FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            raise NotFound(f"user {user_id}")
        xp = row["xp"]
        level = level_from_xp(xp)
        conn.execute("UPDATE users SET level = ? WHERE id = ?", (level, user_id))
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
    logger.debug("User %s awarded %d XP (total %d, level %d)", user_id, amount, xp, level)
    return xp, level


def leaderboard_entry(row, rank: int) -> LeaderboardEntry:
    return LeaderboardEntry(
        user_id=row["id"],
        display_name=row["display_name"] or "Anonymous",
        xp=row["xp"] or 0,
        level=row["level"] or 1,
        streak=row["streak"] or 0,
        rank=rank,
    )


def get_leaderboard(db_path: str, limit: int = 50) -> list[LeaderboardEntry]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM users ORDER BY xp DESC, id ASC LIMIT ?", (limit,)
    ).fetchall()
    conn.close()
    return [leaderboard_entry(row, rank) for rank, row in enumerate(rows, 1)]
