from datetime import datetime, timezone

import pytest

from challenge_tutor.challenges import create_challenge, create_note
from challenge_tutor.db import init_db
from challenge_tutor.models import ChallengeDraft
from challenge_tutor.users import create_user

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_tutor.db")
    return db_path


@pytest.fixture
def db(tmp_db):
    """Initialized database with one user, alice, who owns one note."""
    init_db(tmp_db)
    create_user(tmp_db, "alice", display_name="Alice", now=NOW)
    return tmp_db


@pytest.fixture
def note_id(db):
    return create_note(db, "alice", "Geography", "Capitals of Europe", now=NOW)


@pytest.fixture
def make_challenge(db, note_id):
    """Factory adding a challenge owned by alice. Returns its id."""
    def _make(type="short-answer", correct_answer="Paris", difficulty="medium", options=None,
              question="Capital of France?", now=NOW):
        draft = ChallengeDraft(
            type=type, question=question, correct_answer=correct_answer,
            options=options, difficulty=difficulty,
        )
        return create_challenge(db, note_id, "alice", draft, now=now)
    return _make
