"""Answer checking and the submit-answer pipeline."""
import logging
import sqlite3
from datetime import datetime

from challenge_tutor.challenges import get_challenge
from challenge_tutor.clock import utc_now
from challenge_tutor.config import Settings
from challenge_tutor.daily import record_daily_activity
from challenge_tutor.errors import InvalidSubmission, NotFound, PersistenceError
from challenge_tutor.models import Challenge, ChallengeAttempt, SubmissionResult
from challenge_tutor.progress import record_attempt
from challenge_tutor.rewards import compute_xp
from challenge_tutor.streaks import update_user_streak
from challenge_tutor.users import award_xp, get_user_by_id

logger = logging.getLogger(__name__)


def check_answer(challenge: Challenge, user_answer: str) -> bool:
    """Compare an answer with the challenge's key, ignoring case and outer spaces.

    Multiple-choice keys of one or two characters are option letters and are
    matched against the first character of the chosen option ("B" accepts
    "B. Paris"). Longer keys must equal the full option text.
    """
    return challenge.answer_key.matches(user_answer)


def is_fast_answer(time_spent: float, settings: Settings) -> bool:
    if settings.quick_answer_seconds is None:
        return False
    return time_spent < settings.quick_answer_seconds


def _stage(name: str, func, *args, **kwargs):
    try:
        return func(*args, **kwargs)
    except sqlite3.Error as e:
        logger.error("Submission failed at %s stage: %s", name, e)
        raise PersistenceError(name, str(e)) from e


def submit_answer(
    db_path: str,
    challenge_id: int,
    user_id: str,
    raw_answer: str,
    time_spent: float,
    now: datetime | None = None,
    settings: Settings | None = None,
) -> SubmissionResult:
    """Grade an answer and apply its effects.

    Steps run in order and each commits on its own: progress and schedule,
    XP and level, the daily aggregate, then the streak. A failure raises
    PersistenceError naming the step; earlier steps stay committed.
    """
    if not challenge_id:
        raise InvalidSubmission("no active challenge")
    if not user_id:
        raise InvalidSubmission("no user")
    if raw_answer is None or not str(raw_answer).strip():
        raise InvalidSubmission("no answer given")

    settings = settings or Settings()
    now = now or utc_now()
    time_spent = max(0.0, float(time_spent or 0))

    challenge = _stage("load", get_challenge, db_path, challenge_id)
    if challenge is None:
        raise NotFound(f"challenge {challenge_id}")
    user = _stage("load", get_user_by_id, db_path, user_id)
    if user is None:
        raise NotFound(f"user {user_id}")

    correct = check_answer(challenge, raw_answer)
    attempt = ChallengeAttempt(
        timestamp=now, user_answer=str(raw_answer).strip(), correct=correct, time_spent=time_spent,
    )
    progress, quality = _stage(
        "progress", record_attempt, db_path, challenge, user_id, attempt, settings=settings, now=now,
    )

    xp = compute_xp(correct, challenge.difficulty, is_fast_answer(time_spent, settings), user.streak)
    level = user.level
    if xp > 0:
        _, level = _stage("xp", award_xp, db_path, user_id, xp)

    _stage("daily", record_daily_activity, db_path, user_id, correct, xp, now=now, tz=settings.timezone)
    streak = _stage("streak", update_user_streak, db_path, user_id, now=now, settings=settings)

    logger.info(
        "User %s answered challenge %s %s (+%d XP, next review %s)",
        user_id, challenge_id, "correctly" if correct else "incorrectly", xp,
        progress.next_review_date.date().isoformat(),
    )
    return SubmissionResult(
        correct=correct,
        xp_awarded=xp,
        next_due_date=progress.next_review_date,
        mastered=progress.mastered,
        quality=quality,
        streak=streak if streak is not None else user.streak,
        level=level,
    )
