from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from challenge_tutor.challenges import get_challenge
from challenge_tutor.config import Settings
from challenge_tutor.models import ChallengeAttempt, ChallengeProgress
from challenge_tutor.progress import (
    append_attempt, create_challenge_progress, get_challenge_progress, get_user_progress,
    is_mastered, record_attempt, update_challenge_progress,
)

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def _attempt(correct=True, seconds=5, at=NOW):
    return ChallengeAttempt(timestamp=at, user_answer="x", correct=correct, time_spent=seconds)


def test_missing_progress_is_none(db, make_challenge):
    cid = make_challenge()
    assert get_challenge_progress(db, cid, "alice") is None


def test_create_and_get_progress(db, make_challenge):
    cid = make_challenge()
    progress = ChallengeProgress(challenge_id=cid, user_id="alice", next_review_date=NOW, attempts=[_attempt()])
    progress_id = create_challenge_progress(db, progress)
    loaded = get_challenge_progress(db, cid, "alice")
    assert loaded.id == progress_id
    assert loaded.next_review_date == NOW
    assert len(loaded.attempts) == 1
    assert loaded.attempts[0].correct is True


def test_update_progress_partial(db, make_challenge):
    cid = make_challenge()
    progress_id = create_challenge_progress(
        db, ChallengeProgress(challenge_id=cid, user_id="alice", next_review_date=NOW),
    )
    later = NOW + timedelta(days=6)
    update_challenge_progress(db, progress_id, {"interval": 6, "next_review_date": later})
    loaded = get_challenge_progress(db, cid, "alice")
    assert loaded.interval == 6
    assert loaded.next_review_date == later
    assert loaded.easiness_factor == 2.5


def test_update_progress_rejects_unknown_fields(db, make_challenge):
    cid = make_challenge()
    progress_id = create_challenge_progress(
        db, ChallengeProgress(challenge_id=cid, user_id="alice", next_review_date=NOW),
    )
    with pytest.raises(ValueError):
        update_challenge_progress(db, progress_id, {"attempts": []})


def test_append_attempt_keeps_order(db, make_challenge):
    cid = make_challenge()
    progress_id = create_challenge_progress(
        db, ChallengeProgress(challenge_id=cid, user_id="alice", next_review_date=NOW),
    )
    append_attempt(db, progress_id, _attempt(correct=False))
    append_attempt(db, progress_id, _attempt(correct=True))
    loaded = get_challenge_progress(db, cid, "alice")
    assert [a.correct for a in loaded.attempts] == [False, True]
    assert loaded.latest_attempt.correct is True


def test_get_user_progress_keyed_by_challenge(db, make_challenge):
    first, second = make_challenge(), make_challenge()
    record_attempt(db, get_challenge(db, second), "alice", _attempt(), now=NOW)
    progress = get_user_progress(db, "alice")
    assert set(progress) == {second}


def test_first_attempt_creates_record(db, make_challenge):
    challenge = get_challenge(db, make_challenge())
    progress, quality = record_attempt(db, challenge, "alice", _attempt(seconds=10), now=NOW)
    assert quality == 5
    assert progress.repetition_count == 0
    assert progress.interval == 1
    assert progress.easiness_factor == pytest.approx(2.6)
    assert progress.next_review_date == NOW + timedelta(days=1)
    assert progress.mastered is False
    stored = get_challenge_progress(db, challenge.id, "alice")
    assert stored.interval == 1
    assert len(stored.attempts) == 1


def test_later_attempts_bump_repetitions(db, make_challenge):
    challenge = get_challenge(db, make_challenge())
    record_attempt(db, challenge, "alice", _attempt(), now=NOW)
    progress, _ = record_attempt(db, challenge, "alice", _attempt(), now=NOW)
    assert progress.repetition_count == 1
    assert progress.interval == 6
    assert len(get_challenge_progress(db, challenge.id, "alice").attempts) == 2


def test_wrong_answer_restarts_interval(db, make_challenge):
    challenge = get_challenge(db, make_challenge())
    for _ in range(3):
        record_attempt(db, challenge, "alice", _attempt(), now=NOW)
    progress, quality = record_attempt(db, challenge, "alice", _attempt(correct=False), now=NOW)
    assert quality == 0
    assert progress.interval == 1
    assert progress.repetition_count == 3


def test_mastery_after_sustained_success(db, make_challenge):
    challenge = get_challenge(db, make_challenge())
    intervals = []
    for _ in range(4):
        progress, _ = record_attempt(db, challenge, "alice", _attempt(), now=NOW)
        intervals.append(progress.interval)
    assert intervals == [1, 6, 16, 45]
    assert progress.mastered is True
    assert get_challenge_progress(db, challenge.id, "alice").mastered is True


def test_mastery_is_sticky(db, make_challenge):
    challenge = get_challenge(db, make_challenge())
    for _ in range(4):
        record_attempt(db, challenge, "alice", _attempt(), now=NOW)
    progress, _ = record_attempt(db, challenge, "alice", _attempt(correct=False), now=NOW)
    assert progress.mastered is True
    assert progress.interval == 1


def test_is_mastered_thresholds():
    settings = Settings()
    assert is_mastered(True, 3, 30, settings)
    assert not is_mastered(False, 3, 30, settings)
    assert not is_mastered(True, 2, 30, settings)
    assert not is_mastered(True, 3, 29, settings)


def test_concurrent_attempts_are_all_kept(db, make_challenge):
    challenge = get_challenge(db, make_challenge())
    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda _: record_attempt(db, challenge, "alice", _attempt(), now=NOW), range(12)))
    progress = get_challenge_progress(db, challenge.id, "alice")
    assert len(progress.attempts) == 12
    assert progress.repetition_count == 11
