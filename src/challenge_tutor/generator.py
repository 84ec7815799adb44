"""Fallback challenge generation for newly added notes.

Produces template questions when no generation service is wired in. Any
callable with the same signature as :func:`generate_challenges` can be passed
to :func:`create_note_with_challenges` instead.
"""
import logging
from datetime import datetime
from typing import Callable

from challenge_tutor.challenges import create_challenge, create_note
from challenge_tutor.models import CHALLENGE_TYPES, DIFFICULTIES, ChallengeDraft

logger = logging.getLogger(__name__)

GENERATION_ORDER = ("multiple-choice", "short-answer", "true-false", "fill-blank")


def _draft(kind: str, file_type: str, subject: str | None, tags: list[str], difficulty: str) -> ChallengeDraft:
    topic = subject or "the topic"
    about = f" about {subject}" if subject else ""
    if kind == "multiple-choice":
        explanation = "The correct option states the main idea of the material."
        if tags:
            explanation += f" Key tags: {', '.join(tags)}"
        return ChallengeDraft(
            type=kind,
            question=f"Which of the following best describes the main concept in this {file_type} content{about}?",
            options=[
                "A. The primary definition and explanation",
                "B. A secondary but important detail",
                "C. A related but not central idea",
                "D. Unrelated information",
            ],
            correct_answer="A",
            explanation=explanation,
            difficulty=difficulty,
        )
    if kind == "true-false":
        return ChallengeDraft(
            type=kind,
            question=f"True or False: The uploaded content primarily discusses {topic} in detail.",
            options=["True", "False"],
            correct_answer="True",
            explanation="The statement reflects what the material covers.",
            difficulty=difficulty,
        )
    if kind == "short-answer":
        return ChallengeDraft(
            type=kind,
            question=f"Briefly explain the key takeaway from this {file_type} content.",
            correct_answer=f"Understanding the fundamental concepts of {topic}",
            explanation="A good answer captures the essence of the material.",
            difficulty=difficulty,
        )
    return ChallengeDraft(
        type="fill-blank",
        question=f'Complete this statement: "The main purpose of this content is to _____ the reader about {topic}."',
        correct_answer="educate",
        explanation="Study material aims to inform or educate its reader.",
        difficulty=difficulty,
    )


def generate_challenges(
    content: str,
    file_type: str = "text",
    subject: str | None = None,
    tags: list[str] | None = None,
    difficulty: str = "medium",
    count: int = 5,
) -> list[ChallengeDraft]:
    """Return ``count`` drafts cycling through every challenge type."""
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"unknown difficulty: {difficulty}")
    tags = tags or []
    return [
        _draft(GENERATION_ORDER[i % len(GENERATION_ORDER)], file_type, subject, tags, difficulty)
        for i in range(max(0, count))
    ]


def create_note_with_challenges(
    db_path: str,
    user_id: str,
    title: str,
    content: str,
    subject: str | None = None,
    tags: list[str] | None = None,
    difficulty: str = "medium",
    count: int = 5,
    generator: Callable[..., list[ChallengeDraft]] = generate_challenges,
    now: datetime | None = None,
) -> tuple[int, list[int]]:
    """Store a note and the challenges drafted from it. Returns (note_id, challenge_ids)."""
    note_id = create_note(db_path, user_id, title, content, subject=subject, tags=tags, now=now)
    drafts = generator(content, "text", subject, tags or [], difficulty, count)
    ids = [
        create_challenge(db_path, note_id, user_id, d, now=now)
        for d in drafts if d.type in CHALLENGE_TYPES
    ]
    logger.info("Created note %s with %d challenges for %s", note_id, len(ids), user_id)
    return note_id, ids
