"""Which challenges a user should practice now."""
from datetime import datetime

from challenge_tutor.challenges import get_user_challenges
from challenge_tutor.clock import as_utc, utc_now
from challenge_tutor.models import Challenge, ChallengeProgress, DueChallenge
from challenge_tutor.progress import get_user_progress


def is_due(progress: ChallengeProgress | None, now: datetime) -> bool:
    if progress is None:
        return True
    return not progress.mastered and as_utc(progress.next_review_date) <= as_utc(now)


def resolve_due(
    challenges: list[Challenge],
    progress_by_challenge: dict[int, ChallengeProgress],
    now: datetime | None = None,
) -> list[DueChallenge]:
    """Never-attempted challenges plus unmastered ones whose review date has come.

    Input order is preserved. Nothing is mutated.
    """
    now = now or utc_now()
    due = []
    for challenge in challenges:
        progress = progress_by_challenge.get(challenge.id)
        if is_due(progress, now):
            due.append(DueChallenge(challenge=challenge, progress=progress))
    return due


def resolve_due_challenges(db_path: str, user_id: str, now: datetime | None = None,
                           limit: int | None = None) -> list[DueChallenge]:
    due = resolve_due(
        get_user_challenges(db_path, user_id),
        get_user_progress(db_path, user_id),
        now=now,
    )
    return due if limit is None else due[:limit]
