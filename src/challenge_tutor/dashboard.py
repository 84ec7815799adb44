"""Progress dashboard scoring and statistics."""
from datetime import datetime

from challenge_tutor.clock import DEFAULT_TIMEZONE, day_key, utc_now
from challenge_tutor.daily import get_recent_days, get_today_progress
from challenge_tutor.progress import get_user_progress
from challenge_tutor.rewards import get_level_progress
from challenge_tutor.users import get_user_by_id


def get_accuracy_label(score: float) -> str:
    if score >= 80:
        return "STRONG"
    elif score >= 65:
        return "STEADY"
    elif score >= 50:
        return "NEEDS WORK"
    return "STRUGGLING"


def get_accuracy_color(score: float) -> str:
    if score >= 80:
        return "green"
    elif score >= 65:
        return "yellow"
    elif score >= 50:
        return "dark_orange"
    return "red"


def get_challenge_statistics(db_path: str, user_id: str, now: datetime | None = None,
                             tz: str = DEFAULT_TIMEZONE) -> dict:
    """Totals over all of a user's attempts.

    A challenge counts as completed once mastered or answered correctly at
    least once; it counts toward today when its latest attempt was today.
    """
    today = day_key(now or utc_now(), tz)
    completed = completed_today = correct = attempts = 0
    for progress in get_user_progress(db_path, user_id).values():
        if not progress.attempts:
            continue
        attempts += len(progress.attempts)
        right = sum(1 for a in progress.attempts if a.correct)
        correct += right
        if progress.mastered or right > 0:
            completed += 1
            if day_key(progress.latest_attempt.timestamp, tz) == today:
                completed_today += 1
    return {
        "total_completed": completed,
        "completed_today": completed_today,
        "average_score": round(correct / attempts * 100) if attempts else 0,
        "total_attempts": attempts,
    }


def get_study_stats(db_path: str, user_id: str, now: datetime | None = None,
                    tz: str = DEFAULT_TIMEZONE) -> dict | None:
    user = get_user_by_id(db_path, user_id)
    if user is None:
        return None
    today = get_today_progress(db_path, user_id, now=now, tz=tz)
    stats = get_challenge_statistics(db_path, user_id, now=now, tz=tz)
    return {
        "display_name": user.display_name or "Anonymous",
        "streak": user.streak,
        "level": get_level_progress(user.xp),
        "today_completed": today.challenges_completed if today else 0,
        "today_correct": today.correct_answers if today else 0,
        "today_xp": today.xp_earned if today else 0,
        "recent_days": get_recent_days(db_path, user_id),
        **stats,
    }
