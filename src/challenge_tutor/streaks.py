"""Daily streak tracking.

A user's streak is the number of consecutive calendar days with at least one
completed challenge. It is advanced by :func:`update_user_streak` after each
completed challenge, which credits a day at most once using the
``streak_active`` flag on that day's aggregate row. :func:`validate_user_streak`
is run separately (at login) and zeroes streaks that have lapsed.

Day boundaries come from :func:`challenge_tutor.clock.day_key` in the
configured time zone, so the update and validation passes agree on what
"today" and "yesterday" mean.
"""
import logging
from datetime import datetime

from challenge_tutor.clock import day_key, days_between, previous_day, to_iso, utc_now
from challenge_tutor.config import Settings
from challenge_tutor.db import get_connection
from challenge_tutor.models import User
from challenge_tutor.users import get_user_by_id

logger = logging.getLogger(__name__)

CONTINUE = "continue"
START = "start"
RESTART = "restart"
RESET_RESTART = "reset-restart"


def decide_streak(
    current_streak: int,
    had_yesterday_activity: bool,
    days_since_last_activity: int | None,
    grace_days: int = 2,
) -> tuple[int, str]:
    """Return the new streak and the name of the transition taken.

    Both lapsed branches restart at 1; they differ only in whether the gap
    fell inside the grace window.
    """
    if had_yesterday_activity:
        return current_streak + 1, CONTINUE
    if current_streak == 0:
        return 1, START
    if days_since_last_activity is not None and days_since_last_activity <= grace_days:
        return 1, RESTART
    return 1, RESET_RESTART


def should_reset(days_since_last_activity: int, had_yesterday_activity: bool, grace_days: int = 2) -> bool:
    return days_since_last_activity > grace_days or (
        days_since_last_activity == grace_days and not had_yesterday_activity
    )


def _had_activity(conn, user_id: str, day: str) -> bool:
    row = conn.execute(
        "SELECT challenges_completed FROM daily_progress WHERE user_id = ? AND date = ?", (user_id, day)
    ).fetchone()
    return bool(row and row["challenges_completed"] > 0)


def update_user_streak(db_path: str, user_id: str, now: datetime | None = None,
                       settings: Settings | None = None) -> int | None:
    """Credit today toward the user's streak if it has not been credited yet.

    Returns the streak after the update, or None for an unknown user.
    """
    settings = settings or Settings()
    now = now or utc_now()
    today = day_key(now, settings.timezone)
    yesterday = previous_day(today)

    conn = get_connection(db_path)
    try:
        conn.execute("BEGIN IMMEDIATE")
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        if row is None:
            conn.rollback()
            return None
        user = User.from_row(row)

        today_row = conn.execute(
            "SELECT * FROM daily_progress WHERE user_id = ? AND date = ?", (user_id, today)
        ).fetchone()
        if today_row is None or today_row["challenges_completed"] == 0:
            logger.debug("User %s has no completed challenges on %s", user_id, today)
            conn.rollback()
            return user.streak
        if today_row["streak_active"]:
            logger.debug("User %s already credited for %s", user_id, today)
            conn.rollback()
            return user.streak

        days_since = None
        if user.last_activity is not None:
            days_since = days_between(user.last_activity, now, settings.timezone)
        new_streak, transition = decide_streak(
            user.streak, _had_activity(conn, user_id, yesterday), days_since, settings.streak_grace_days,
        )

        claimed = conn.execute(
            "UPDATE daily_progress SET streak_active = 1 WHERE id = ? AND streak_active = 0",
            (today_row["id"],),
        ).rowcount
        if not claimed:
            conn.rollback()
            return user.streak
        conn.execute(
            "UPDATE users SET streak = ?, last_activity = ?, updated_at = ? WHERE id = ?",
            (new_streak, to_iso(now), to_iso(now), user_id),
        )
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

    if transition == CONTINUE:
        logger.info("User %s continuing streak: %d -> %d", user_id, user.streak, new_streak)
    elif transition == START:
        logger.info("User %s starting new streak", user_id)
    elif transition == RESTART:
        logger.info("User %s restarting streak after %s days", user_id, days_since)
    else:
        logger.info("User %s streak reset and restarted", user_id)
    return new_streak


def validate_user_streak(db_path: str, user_id: str, now: datetime | None = None,
                         settings: Settings | None = None) -> User | None:
    """Zero the streak when the user has missed too many days. Returns the user."""
    settings = settings or Settings()
    now = now or utc_now()
    user = get_user_by_id(db_path, user_id)
    if user is None or user.last_activity is None:
        return user

    yesterday = previous_day(day_key(now, settings.timezone))
    days_since = days_between(user.last_activity, now, settings.timezone)
    conn = get_connection(db_path)
    try:
        had_yesterday = _had_activity(conn, user_id, yesterday)
        if should_reset(days_since, had_yesterday, settings.streak_grace_days) and user.streak > 0:
            conn.execute(
                "UPDATE users SET streak = 0, updated_at = ? WHERE id = ?", (to_iso(now), user_id)
            )
            conn.commit()
            logger.info("User %s streak reset after %d days without activity", user_id, days_since)
            user.streak = 0
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
    return user
