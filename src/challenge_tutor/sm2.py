"""SM-2 spaced repetition algorithm."""
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from challenge_tutor.clock import utc_now
from challenge_tutor.models import MIN_EASINESS


@dataclass(frozen=True)
class Schedule:
    easiness_factor: float
    interval: int
    due_at: datetime


def translate_quality(correct: bool, time_spent: float, expected_seconds: float = 30) -> int:
    """Map an answer outcome to an SM-2 quality rating.

    Wrong answers are a blackout (0). Right answers score 5 when given in at
    most half the expected time, 4 within three quarters of it, otherwise 3.
    """
    if not correct:
        return 0
    time_spent = max(0.0, time_spent)
    if time_spent <= expected_seconds * 0.5:
        return 5
    if time_spent <= expected_seconds * 0.75:
        return 4
    return 3


def compute_next_schedule(
    quality: int,
    easiness_factor: float,
    interval: int,
    repetitions: int,
    now: datetime | None = None,
) -> Schedule:
    """Calculate next review parameters using SM-2.

    Args:
        quality: Rating 0-5 (0=complete blackout, 5=perfect)
        easiness_factor: Current easiness factor (minimum 1.3)
        interval: Current interval in days
        repetitions: Completed review cycles. Callers own this counter;
            it is read here, never advanced.
        now: Reference time for the due date.

    Returns:
        Schedule with the new easiness factor, interval and due time.
    """
    quality = max(0, min(5, int(quality)))

    if quality >= 3:
        if repetitions == 0:
            new_interval = 1
        elif repetitions == 1:
            new_interval = 6
        else:
            # round half up
            new_interval = math.floor(interval * easiness_factor + 0.5)
    else:
        # Incorrect: restart the cycle
        new_interval = 1

    new_ef = easiness_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
    new_ef = max(MIN_EASINESS, new_ef)

    new_interval = max(1, new_interval)
    due_at = (now or utc_now()) + timedelta(days=new_interval)
    return Schedule(easiness_factor=new_ef, interval=new_interval, due_at=due_at)
