import pytest

from challenge_tutor.challenges import get_challenges_for_note, get_user_notes
from challenge_tutor.generator import create_note_with_challenges, generate_challenges
from challenge_tutor.models import ChallengeDraft
from challenge_tutor.quiz import check_answer


def test_generate_cycles_types():
    drafts = generate_challenges("Cells divide by mitosis.", subject="Biology", count=5)
    assert [d.type for d in drafts] == [
        "multiple-choice", "short-answer", "true-false", "fill-blank", "multiple-choice",
    ]
    assert all(d.difficulty == "medium" for d in drafts)
    assert "Biology" in drafts[0].question


def test_generate_multiple_choice_has_letter_key():
    draft = generate_challenges("x", count=1)[0]
    assert draft.correct_answer == "A"
    assert draft.options[0].startswith("A.")


def test_generate_includes_tags_in_explanation():
    draft = generate_challenges("x", tags=["cells", "mitosis"], count=1)[0]
    assert "cells, mitosis" in draft.explanation


def test_generate_zero_count():
    assert generate_challenges("x", count=0) == []


def test_generate_rejects_unknown_difficulty():
    with pytest.raises(ValueError):
        generate_challenges("x", difficulty="brutal")


def test_create_note_with_challenges(db):
    note_id, ids = create_note_with_challenges(db, "alice", "Biology", "Cells divide.", difficulty="hard", count=4)
    assert len(ids) == 4
    assert [n.id for n in get_user_notes(db, "alice")][0] == note_id
    challenges = get_challenges_for_note(db, note_id)
    assert {c.difficulty for c in challenges} == {"hard"}


def test_generated_multiple_choice_is_answerable(db):
    note_id, _ = create_note_with_challenges(db, "alice", "Biology", "Cells divide.", count=1)
    challenge = get_challenges_for_note(db, note_id)[0]
    assert check_answer(challenge, challenge.options[0])
    assert not check_answer(challenge, challenge.options[1])


def test_custom_generator(db):
    def generator(content, file_type, subject, tags, difficulty, count):
        return [ChallengeDraft(type="short-answer", question=content, correct_answer="42")]

    note_id, ids = create_note_with_challenges(db, "alice", "Answers", "Meaning of life?", generator=generator)
    assert len(ids) == 1
    assert get_challenges_for_note(db, note_id)[0].question == "Meaning of life?"
