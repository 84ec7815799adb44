"""Notes, the challenges generated from them, and attempt history."""
import json
from datetime import datetime

from challenge_tutor.clock import to_iso, utc_now
from challenge_tutor.db import get_connection
from challenge_tutor.models import (
    CHALLENGE_TYPES, DIFFICULTIES, Challenge, ChallengeDraft, ChallengeProgress, Note,
)
from challenge_tutor.progress import get_user_progress


def create_note(db_path: str, user_id: str, title: str, content: str = "", file_type: str = "text",
                subject: str | None = None, tags: list[str] | None = None,
                now: datetime | None = None) -> int:
    conn = get_connection(db_path)
    cursor = conn.execute(
        "INSERT INTO notes (user_id, title, content, file_type, subject, tags, created_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
        (user_id, title, content, file_type, subject, json.dumps(tags or []), to_iso(now or utc_now())),
    )
    conn.commit()
    note_id = cursor.lastrowid
    conn.close()
    return note_id


def get_user_notes(db_path: str, user_id: str) -> list[Note]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM notes WHERE user_id = ? ORDER BY created_at DESC, id DESC", (user_id,)
    ).fetchall()
    conn.close()
    return [Note.from_row(r) for r in rows]


def create_challenge(db_path: str, note_id: int, user_id: str, draft: ChallengeDraft,
                     now: datetime | None = None) -> int:
    if draft.type not in CHALLENGE_TYPES:
        raise ValueError(f"unknown challenge type: {draft.type}")
    if draft.difficulty not in DIFFICULTIES:
        raise ValueError(f"unknown difficulty: {draft.difficulty}")
    conn = get_connection(db_path)
    cursor = conn.execute(
        """INSERT INTO challenges
        (note_id, user_id, type, question, options, correct_answer, explanation, difficulty, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            note_id, user_id, draft.type, draft.question,
            json.dumps(draft.options) if draft.options else None,
            draft.correct_answer, draft.explanation, draft.difficulty, to_iso(now or utc_now()),
        ),
    )
    conn.commit()
    challenge_id = cursor.lastrowid
    conn.close()
    return challenge_id


def get_challenge(db_path: str, challenge_id: int) -> Challenge | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM challenges WHERE id = ?", (challenge_id,)).fetchone()
    conn.close()
    return Challenge.from_row(row) if row else None


def get_challenges_for_note(db_path: str, note_id: int) -> list[Challenge]:
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM challenges WHERE note_id = ? ORDER BY created_at DESC, id DESC", (note_id,)
    ).fetchall()
    conn.close()
    return [Challenge.from_row(r) for r in rows]


def get_user_challenges(db_path: str, user_id: str, limit: int | None = None) -> list[Challenge]:
    """Newest first. ``limit`` of None returns every challenge."""
    conn = get_connection(db_path)
    rows = conn.execute(
        "SELECT * FROM challenges WHERE user_id = ? ORDER BY created_at DESC, id DESC LIMIT ?",
        (user_id, -1 if limit is None else limit),
    ).fetchall()
    conn.close()
    return [Challenge.from_row(r) for r in rows]


def get_active_challenges_for_note(db_path: str, note_id: int, user_id: str) -> list[Challenge]:
    """Challenges of a note that the user has not mastered yet, attempted or not."""
    progress = get_user_progress(db_path, user_id)
    return [
        c for c in get_challenges_for_note(db_path, note_id)
        if c.user_id == user_id and not (c.id in progress and progress[c.id].mastered)
    ]


def _last_attempt_key(item: tuple[Challenge, ChallengeProgress]) -> datetime:
    return item[1].latest_attempt.timestamp


def get_user_challenge_history(db_path: str, user_id: str) -> list[tuple[Challenge, ChallengeProgress]]:
    """Attempted challenges paired with progress, most recently attempted first."""
    progress = get_user_progress(db_path, user_id)
    history = [
        (c, progress[c.id]) for c in get_user_challenges(db_path, user_id)
        if c.id in progress and progress[c.id].attempts
    ]
    history.sort(key=_last_attempt_key, reverse=True)
    return history


def get_user_challenge_history_by_notes(db_path: str, user_id: str) -> dict[int, dict]:
    """History grouped per note: {note_id: {"note": Note, "challenges": [...]}}."""
    notes = {n.id: n for n in get_user_notes(db_path, user_id)}
    grouped = {}
    for challenge, progress in get_user_challenge_history(db_path, user_id):
        note = notes.get(challenge.note_id)
        if note is None:
            continue
        group = grouped.setdefault(note.id, {"note": note, "challenges": []})
        group["challenges"].append((challenge, progress))
    return grouped
